"""Exception types raised at the toolkit's input boundaries."""


class FireToolsError(Exception):
    """Base class for all toolkit errors."""


class CSVFormatError(FireToolsError, ValueError):
    """Raised when an imported CSV file is malformed or missing required data."""


class StorageError(FireToolsError):
    """Raised when persisting encrypted data fails."""


class InvalidInputError(FireToolsError, ValueError):
    """Raised when calculator input makes the arithmetic undefined."""
