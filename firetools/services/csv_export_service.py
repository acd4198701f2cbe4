"""CSV export and import for asset allocations and FIRE calculator inputs."""

import csv
import io
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from firetools.core.exceptions import CSVFormatError
from firetools.schemas.asset_allocation import (
    AllocationMode,
    Asset,
    AssetClass,
    AssetClassTarget,
    ClassTargets,
    PortfolioAllocation,
    SubAssetType,
)
from firetools.schemas.calculator import CalculatorInputs
from firetools.utils.datetime_utils import isoformat_z, utc_now

logger = logging.getLogger(__name__)

ALLOCATION_TITLE = "Asset Allocation Export"
FIRE_TITLE = "FIRE Calculator Data Export"
GENERATED_LABEL = "Generated"
TARGETS_SECTION = "Asset Class Targets"
ASSETS_SECTION = "Assets"

TARGET_HEADERS = ["Asset Class", "Target Mode", "Target Percent"]
ASSET_HEADERS = [
    "ID",
    "Name",
    "Ticker",
    "ISIN",
    "Asset Class",
    "Sub Asset Type",
    "Current Value",
    "Target Mode",
    "Target Percent",
    "Target Value",
    "Shares",
    "Price Per Share",
    "Original Currency",
    "Institution",
]
REPORT_HEADERS = [
    "Asset / Index",
    "Ticker(s)",
    "Asset Class",
    "% Target",
    "% Current",
    "Absolute Current",
    "Absolute Target",
    "Delta",
    "Action",
    "Notes",
]

# Export label -> CalculatorInputs field
FIRE_FIELDS = {
    "Initial Savings": "initial_savings",
    "Stocks Percent": "stocks_percent",
    "Bonds Percent": "bonds_percent",
    "Cash Percent": "cash_percent",
    "Current Annual Expenses": "current_annual_expenses",
    "FIRE Annual Expenses": "fire_annual_expenses",
    "Annual Labor Income": "annual_labor_income",
    "Labor Income Growth Rate": "labor_income_growth_rate",
    "Savings Rate": "savings_rate",
    "Desired Withdrawal Rate": "desired_withdrawal_rate",
    "Years Of Expenses": "years_of_expenses",
    "Expected Stock Return": "expected_stock_return",
    "Expected Bond Return": "expected_bond_return",
    "Expected Cash Return": "expected_cash_return",
    "Year of Birth": "year_of_birth",
    "Retirement Age": "retirement_age",
    "State Pension Income": "state_pension_income",
    "Private Pension Income": "private_pension_income",
    "Other Income": "other_income",
    "Stop Working At FIRE": "stop_working_at_fire",
    "Max Age": "max_age",
    "Use Asset Allocation Value": "use_asset_allocation_value",
}
FIRE_BOOLEAN_FIELDS = {"stop_working_at_fire", "use_asset_allocation_value"}
FIRE_REQUIRED_FIELDS = [
    "initial_savings",
    "stocks_percent",
    "bonds_percent",
    "cash_percent",
    "current_annual_expenses",
    "fire_annual_expenses",
    "annual_labor_income",
    "year_of_birth",
]


def _write_rows(rows: Iterable[Sequence[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue().rstrip("\n")


def _read_rows(csv_content: str) -> List[Tuple[int, List[str]]]:
    """Parse CSV text into (line_number, cells), skipping blank rows. Cells keep their whitespace."""
    reader = csv.reader(io.StringIO(csv_content))
    rows = []
    for row in reader:
        if any(cell.strip() for cell in row):
            rows.append((reader.line_num, row))
    return rows


def _labels(cells: List[str]) -> List[str]:
    return [cell.strip() for cell in cells]


def _format_decimal(value: Optional[Decimal]) -> str:
    return "" if value is None else format(value, "f")


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _parse_decimal(raw: str, field: str, line: int) -> Optional[Decimal]:
    if raw == "":
        return None
    try:
        return Decimal(raw)
    except InvalidOperation as e:
        raise CSVFormatError(f"Invalid number for {field} at line {line}: '{raw}'") from e


def _parse_enum(enum_cls, raw: str, field: str, line: int):
    try:
        return enum_cls(raw)
    except ValueError as e:
        raise CSVFormatError(f"Invalid {field} at line {line}: '{raw}'") from e


# --- Asset allocation ---


def export_asset_allocation_to_csv(
    assets: Sequence[Asset],
    class_targets: Mapping[AssetClass, AssetClassTarget],
    generated_at: Optional[datetime] = None,
) -> str:
    """
    Serialize assets and class targets to the sectioned export format.

    Args:
        assets: Assets in display order
        class_targets: Class-level targets
        generated_at: Timestamp for the header, defaults to now

    Returns:
        CSV text (no trailing newline)
    """
    rows: List[List[str]] = [
        [ALLOCATION_TITLE],
        [GENERATED_LABEL, isoformat_z(generated_at or utc_now())],
        [],
        [TARGETS_SECTION],
        TARGET_HEADERS,
    ]
    for asset_class, target in class_targets.items():
        rows.append(
            [
                asset_class.value,
                target.target_mode.value,
                _format_decimal(target.target_percent),
            ]
        )

    rows.extend([[], [ASSETS_SECTION], ASSET_HEADERS])
    for asset in assets:
        rows.append(
            [
                asset.id,
                asset.name,
                asset.ticker,
                asset.isin or "",
                asset.asset_class.value,
                asset.sub_asset_type.value,
                _format_decimal(asset.current_value),
                asset.target_mode.value,
                _format_decimal(asset.target_percent),
                _format_decimal(asset.target_value),
                _format_decimal(asset.shares),
                _format_decimal(asset.price_per_share),
                asset.original_currency or "",
                asset.institution or "",
            ]
        )

    logger.info(
        "asset_allocation_exported",
        extra={"asset_count": len(assets), "class_count": len(class_targets)},
    )
    return _write_rows(rows)


def _parse_class_target(labels: List[str], line: int) -> Optional[Tuple[AssetClass, AssetClassTarget]]:
    raw_class = labels[0]
    if raw_class not in AssetClass.__members__:
        logger.warning(
            "csv_unknown_asset_class_dropped",
            extra={"asset_class": raw_class, "line": line},
        )
        return None

    mode = _parse_enum(AllocationMode, labels[1] if len(labels) > 1 else "", "target mode", line)
    percent = _parse_decimal(labels[2] if len(labels) > 2 else "", "target percent", line)
    return AssetClass(raw_class), AssetClassTarget(target_mode=mode, target_percent=percent)


def _parse_asset(cells: List[str], line: int) -> Asset:
    """Text columns are taken verbatim; numbers and enum values are stripped."""
    if len(cells) < 7:
        raise CSVFormatError(
            f"Asset row at line {line} has {len(cells)} columns, expected at least 7"
        )

    cells = cells + [""] * (len(ASSET_HEADERS) - len(cells))
    values = _labels(cells)
    try:
        return Asset(
            id=cells[0],
            name=cells[1],
            ticker=cells[2],
            isin=cells[3] or None,
            asset_class=_parse_enum(AssetClass, values[4], "asset class", line),
            sub_asset_type=(
                _parse_enum(SubAssetType, values[5], "sub asset type", line)
                if values[5]
                else SubAssetType.NONE
            ),
            current_value=_parse_decimal(values[6], "current value", line) or Decimal("0"),
            target_mode=(
                _parse_enum(AllocationMode, values[7], "target mode", line)
                if values[7]
                else AllocationMode.PERCENTAGE
            ),
            target_percent=_parse_decimal(values[8], "target percent", line),
            target_value=_parse_decimal(values[9], "target value", line),
            shares=_parse_decimal(values[10], "shares", line),
            price_per_share=_parse_decimal(values[11], "price per share", line),
            original_currency=cells[12] or None,
            institution=cells[13] or None,
        )
    except ValidationError as e:
        raise CSVFormatError(f"Invalid asset at line {line}: {e}") from e


def _is_marker_row(labels: List[str]) -> bool:
    """Title and section rows hold one cell; the timestamp row holds two."""
    if len(labels) == 1:
        return labels[0] in (ALLOCATION_TITLE, TARGETS_SECTION, ASSETS_SECTION)
    return len(labels) == 2 and labels[0] == GENERATED_LABEL


def import_asset_allocation_from_csv(csv_content: str) -> Tuple[List[Asset], ClassTargets]:
    """
    Parse the sectioned export format back into assets and class targets.

    Target rows for unknown asset classes are dropped.

    Returns:
        Tuple of (assets, class_targets)

    Raises:
        CSVFormatError: If a row is malformed or no assets are present
    """
    assets: List[Asset] = []
    class_targets: Dict[AssetClass, AssetClassTarget] = {}
    section = None

    for line, cells in _read_rows(csv_content):
        labels = _labels(cells)

        # Everything after the asset header row is data, whatever its first cell says
        if section != ASSETS_SECTION:
            if labels == TARGET_HEADERS:
                section = TARGETS_SECTION
                continue
            if labels[:4] == ASSET_HEADERS[:4]:
                section = ASSETS_SECTION
                continue
            if _is_marker_row(labels):
                continue

        if section == TARGETS_SECTION:
            parsed = _parse_class_target(labels, line)
            if parsed is not None:
                class_targets[parsed[0]] = parsed[1]
        elif section == ASSETS_SECTION:
            assets.append(_parse_asset(cells, line))

    if not assets:
        raise CSVFormatError("No assets found in CSV file")

    logger.info(
        "asset_allocation_imported",
        extra={"asset_count": len(assets), "class_count": len(class_targets)},
    )
    return assets, class_targets


def export_allocation_report_to_csv(allocation: PortfolioAllocation) -> str:
    """Flat per-asset report with targets, current position, delta and action."""
    rows: List[List[str]] = [REPORT_HEADERS]
    for asset in allocation.assets:
        delta = allocation.delta_for(asset.id)
        if asset.target_mode == AllocationMode.PERCENTAGE:
            target_label = f"{asset.percent:.2f}%"
        else:
            target_label = asset.target_mode.value

        rows.append(
            [
                asset.name,
                asset.ticker,
                asset.asset_class.value,
                target_label,
                f"{delta.current_percent:.2f}%" if delta else "0%",
                f"{asset.current_value:.2f}",
                f"{delta.target_value:.2f}" if delta else "0",
                f"{delta.delta:.2f}" if delta else "0",
                delta.action.value if delta else "HOLD",
                "",
            ]
        )
    return _write_rows(rows)


# --- FIRE calculator inputs ---


def export_fire_inputs_to_csv(
    inputs: CalculatorInputs,
    generated_at: Optional[datetime] = None,
) -> str:
    rows: List[List[str]] = [
        [FIRE_TITLE],
        [GENERATED_LABEL, isoformat_z(generated_at or utc_now())],
        [],
        ["Field", "Value"],
    ]
    for label, field in FIRE_FIELDS.items():
        rows.append([label, _format_scalar(getattr(inputs, field))])
    return _write_rows(rows)


def import_fire_inputs_from_csv(csv_content: str) -> CalculatorInputs:
    """
    Parse ``Field,Value`` rows into calculator inputs.

    Unknown labels and unparsable numbers are ignored; fields that are absent
    fall back to their defaults, except the required ones.

    Raises:
        CSVFormatError: If a required field is missing or a value is out of range
    """
    data: Dict[str, Any] = {}
    for line, cells in _read_rows(csv_content):
        labels = _labels(cells)
        if len(labels) < 2:
            continue
        field = FIRE_FIELDS.get(labels[0])
        if field is None:
            continue

        raw = labels[1]
        if field in FIRE_BOOLEAN_FIELDS:
            data[field] = raw.lower() == "true"
            continue
        try:
            number = float(raw)
        except ValueError:
            logger.warning("csv_unparsable_value", extra={"field": field, "line": line})
            continue
        data[field] = number

    for field in FIRE_REQUIRED_FIELDS:
        if field not in data:
            raise CSVFormatError(f"Missing required field: {field}")

    for field in ("year_of_birth", "retirement_age", "max_age"):
        if field in data:
            data[field] = int(data[field])

    try:
        return CalculatorInputs(**data)
    except ValidationError as e:
        raise CSVFormatError(f"Invalid FIRE calculator data: {e}") from e
