"""FIRE Tools - asset allocation, FIRE projection, net worth tracking, DCA and questionnaire helpers."""

__version__ = "1.0.0"
