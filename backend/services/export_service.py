"""
Export Projection — flattens BillData into the CSV layout users download.

Three record categories (Account Info, Line Items, Usage Chart), one blank
row between sections.  The only encoding rule is standard CSV quoting.
"""
import re
from datetime import datetime
from typing import Any, Optional

from models.schemas import BillData

ACCOUNT_INFO_ROWS = [
    ("Account Name",         "account_name"),
    ("Account Number",       "account_number"),
    ("Service Address",      "service_address"),
    ("Statement Date",       "statement_date"),
    ("Service Period Start", "service_period_start"),
    ("Service Period End",   "service_period_end"),
    ("Due Date",             "due_date"),
    ("Total Charges",        "total_current_charges"),
]


def format_cell(value: Any) -> str:
    """Render a value as CSV text.  None → empty; 100.0 → "100"; 12.5 → "12.5"."""
    if value is None:
        return ""
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return str(value)


def escape_csv_cell(value: Any) -> str:
    text = format_cell(value)
    if ',' in text or '"' in text or '\n' in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def _row(*cells: Any) -> str:
    return ",".join(escape_csv_cell(c) for c in cells)


def bill_to_csv(bill: BillData) -> str:
    rows = ["Category,Field,Value"]
    for label, attr in ACCOUNT_INFO_ROWS:
        rows.append(_row("Account Info", label, getattr(bill, attr)))
    rows.append("")

    if bill.line_items:
        rows.append("Line Items,Description,Amount")
        for item in bill.line_items:
            rows.append(_row("", item.description, item.amount))
        rows.append("")

    for chart in bill.usage_charts:
        rows.append("Usage Chart,Title,Unit")
        rows.append(_row("", chart.title, chart.unit))
        rows.append(",Month,Year,Value")
        for point in chart.data:
            for usage in point.usage:
                rows.append(_row("", point.month, usage.year, usage.value))
        rows.append("")

    return "\n".join(rows)


def csv_filename(bill: BillData, now: Optional[datetime] = None) -> str:
    """e.g. ``2026-03-14-09-05-12_jane_doe_bill-data.csv``"""
    now = now or datetime.now()
    stamp = now.strftime("%Y-%m-%d-%H-%M-%S")
    name = re.sub(r'[^a-z0-9]', '_', bill.account_name, flags=re.I).lower() if bill.account_name else ""
    return f"{stamp}_{name or 'account'}_bill-data.csv"
