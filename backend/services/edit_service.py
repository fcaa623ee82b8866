"""
Edit Merge — applies a user's correction to a working copy of BillData.

Every function returns a new BillData; the bill passed in is never touched,
so the analysis result (and the raw AI response kept beside it) stays
available for comparison.

Chart cells reset to full confidence when edited.  Top-level fields keep
whatever confidence the AI reported — only the value changes.
"""
import logging
from typing import Any

from models.schemas import BillData, ChartCellEdit, FieldEdit, MonthEdit, UsageChartDataPointValue
from services.coercion_service import coerce_number
from services.confidence_service import HUMAN_CONFIDENCE
from services.errors import EditError, FormatError

logger = logging.getLogger("billsight.edit")

# Placeholder label for a year slot the AI never reported.
NEW_YEAR_LABEL = "New"

# wire name -> attribute name
EDITABLE_FIELDS = {
    "accountName": "account_name",
    "accountNumber": "account_number",
    "serviceAddress": "service_address",
    "statementDate": "statement_date",
    "servicePeriodStart": "service_period_start",
    "servicePeriodEnd": "service_period_end",
    "totalCurrentCharges": "total_current_charges",
    "dueDate": "due_date",
}
REQUIRED_ATTRS = {"account_number", "total_current_charges", "due_date"}


def _resolve_field(field: str) -> str:
    if field in EDITABLE_FIELDS:
        return EDITABLE_FIELDS[field]
    if field in EDITABLE_FIELDS.values():
        return field
    raise EditError(f"Field {field!r} is not editable")


def _to_number(value: Any, field: str) -> float:
    try:
        return coerce_number(value, field)
    except FormatError as e:
        raise EditError(e.message) from e


def apply_field_edit(bill: BillData, field: str, value: Any) -> BillData:
    """Replace one top-level scalar.  Confidence scores are left as they were."""
    attr = _resolve_field(field)

    blank = value is None or (isinstance(value, str) and not value.strip())
    if blank and attr in REQUIRED_ATTRS:
        raise EditError(f"Field {field!r} is required and cannot be cleared")

    if blank:
        new_value = None   # cleared optional field is omitted again
    elif attr == "total_current_charges":
        new_value = _to_number(value, field)
    else:
        new_value = str(value)

    updated = bill.model_copy(deep=True)
    setattr(updated, attr, new_value)
    logger.debug("Edited %s", attr)
    return updated


def _locate_point(bill: BillData, chart_index: int, data_index: int):
    if not 0 <= chart_index < len(bill.usage_charts):
        raise EditError(f"No usage chart at index {chart_index}")
    chart = bill.usage_charts[chart_index]
    if not 0 <= data_index < len(chart.data):
        raise EditError(f"Chart {chart_index} has no data point at index {data_index}")
    return chart.data[data_index]


def apply_chart_cell_edit(
    bill: BillData,
    chart_index: int,
    data_index: int,
    year_index: int,
    value: Any,
) -> BillData:
    """
    Set one usage value and mark it fully trusted.

    Providers sometimes report fewer years for one month than for its
    neighbours; editing the first missing slot creates it.
    """
    number = _to_number(value, f"usageCharts[{chart_index}].data[{data_index}].usage[{year_index}].value")

    updated = bill.model_copy(deep=True)
    point = _locate_point(updated, chart_index, data_index)

    if year_index == len(point.usage):
        point.usage.append(UsageChartDataPointValue(
            year=NEW_YEAR_LABEL, value=number, confidence=HUMAN_CONFIDENCE,
        ))
        logger.debug("Synthesized usage slot %d for %s", year_index, point.month)
        return updated
    if not 0 <= year_index < len(point.usage):
        raise EditError(f"Data point {point.month!r} has no year slot at index {year_index}")

    cell = point.usage[year_index]
    cell.value = number
    cell.confidence = HUMAN_CONFIDENCE
    return updated


def apply_month_edit(bill: BillData, chart_index: int, data_index: int, month: str) -> BillData:
    """Relabel a data point's month.  Labels carry no confidence."""
    updated = bill.model_copy(deep=True)
    point = _locate_point(updated, chart_index, data_index)
    point.month = month
    return updated


def apply_edit(bill: BillData, edit: FieldEdit | ChartCellEdit | MonthEdit) -> BillData:
    if isinstance(edit, FieldEdit):
        return apply_field_edit(bill, edit.field, edit.value)
    if isinstance(edit, ChartCellEdit):
        return apply_chart_cell_edit(
            bill, edit.chart_index, edit.data_index, edit.year_index, edit.value,
        )
    if isinstance(edit, MonthEdit):
        return apply_month_edit(bill, edit.chart_index, edit.data_index, edit.month)
    raise EditError(f"Unsupported edit: {type(edit).__name__}")
