"""
Schema Coercion — the single trust boundary between AI providers and the app.

Whatever a provider returns is treated as untrusted: this module checks it
against the canonical BillData shape, repairs what can safely be repaired
(numbers sent as strings, ids sent as numbers, missing arrays, missing
usage-point confidence) and fails loudly, naming the field, on any
mandatory value it cannot repair.  Unusable optional values are logged and
dropped.  Nothing downstream of coerce_bill_data() inspects raw
provider output.
"""
import json
import logging
import math
import re
from typing import Any

from models.schemas import BillData
from services.errors import FormatError

logger = logging.getLogger("billsight.coercion")

# Must be present and non-null or the bill is rejected outright.
REQUIRED_FIELDS = ("accountNumber", "totalCurrentCharges", "dueDate", "confidenceScores")

# Required by the provider schema, but a bill can legitimately have none.
COLLECTION_FIELDS = ("usageCharts", "lineItems")

OPTIONAL_FIELDS = (
    "accountName",
    "serviceAddress",
    "statementDate",
    "servicePeriodStart",
    "servicePeriodEnd",
)

REQUIRED_CONFIDENCE_KEYS = ("overall", "accountNumber", "totalCurrentCharges", "dueDate")

# Usage points the AI did not score are trusted fully.
DEFAULT_USAGE_CONFIDENCE = 1.0

# "$1,234.56", "-$12.50", "€ 40"
CURRENCY_PREFIX_RE = re.compile(r'^([-+]?)\s*[$€£¥]\s*')
THOUSANDS_RE       = re.compile(r'^[-+]?\d{1,3}(,\d{3})+(\.\d+)?$')


# ── Scalar coercion ───────────────────────────────────────────────────────────

def coerce_number(value: Any, field: str) -> float:
    """Return *value* as a finite float or raise FormatError naming *field*."""
    if isinstance(value, bool):
        raise FormatError(f"Field '{field}' must be a number, got {value!r}", field=field)

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            raise FormatError(
                f"Field '{field}' must be a finite number, got {value!r}", field=field
            ) from None
    elif isinstance(value, str):
        text = CURRENCY_PREFIX_RE.sub(r'\1', value.strip())
        if THOUSANDS_RE.match(text):
            text = text.replace(',', '')
        try:
            number = float(text)
        except ValueError:
            raise FormatError(
                f"Field '{field}' must be a number, got {value!r}", field=field
            ) from None
    else:
        raise FormatError(f"Field '{field}' must be a number, got {value!r}", field=field)

    if not math.isfinite(number):
        raise FormatError(f"Field '{field}' must be a finite number, got {value!r}", field=field)
    return number


def coerce_string(value: Any, field: str) -> str:
    """Return *value* as a string.  Numbers are stringified (ids, years)."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FormatError(f"Field '{field}' must be a string, got {value!r}", field=field)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def coerce_confidence(value: Any, field: str) -> float:
    score = coerce_number(value, field)
    if score < 0.0 or score > 1.0:
        clamped = min(max(score, 0.0), 1.0)
        logger.warning("Confidence %s=%s out of range, clamped to %s", field, score, clamped)
        return clamped
    return score


# ── Structural helpers ────────────────────────────────────────────────────────

def _require(obj: dict, key: str, path: str) -> Any:
    value = obj.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise FormatError(f"Missing required field '{path}'", field=path)
    return value


def _as_object(value: Any, path: str) -> dict:
    if not isinstance(value, dict):
        raise FormatError(f"Field '{path}' must be an object, got {type(value).__name__}", field=path)
    return value


def _as_list(value: Any, path: str) -> list:
    """Absent/null collections become empty; anything else must be a list."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise FormatError(f"Field '{path}' must be an array, got {type(value).__name__}", field=path)
    return value


# ── Nested structures ─────────────────────────────────────────────────────────

def _coerce_confidence_scores(raw: Any) -> dict:
    scores = _as_object(raw, "confidenceScores")
    for key in REQUIRED_CONFIDENCE_KEYS:
        _require(scores, key, f"confidenceScores.{key}")

    result = {}
    for key, value in scores.items():
        if value is None:
            continue   # no signal for this field
        if key in REQUIRED_CONFIDENCE_KEYS:
            result[key] = coerce_confidence(value, f"confidenceScores.{key}")
            continue
        try:
            result[key] = coerce_confidence(value, f"confidenceScores.{key}")
        except FormatError as e:
            logger.warning("Dropping unusable confidence: %s", e)
    return result


def _coerce_usage_value(raw: Any, path: str) -> dict:
    entry = _as_object(raw, path)
    confidence = entry.get("confidence")
    return {
        "year": coerce_string(_require(entry, "year", f"{path}.year"), f"{path}.year"),
        "value": coerce_number(_require(entry, "value", f"{path}.value"), f"{path}.value"),
        "confidence": (
            DEFAULT_USAGE_CONFIDENCE if confidence is None
            else coerce_confidence(confidence, f"{path}.confidence")
        ),
    }


def _coerce_usage_chart(raw: Any, path: str) -> dict:
    chart = _as_object(raw, path)
    points = []
    for i, point_raw in enumerate(_as_list(chart.get("data"), f"{path}.data")):
        point_path = f"{path}.data[{i}]"
        point = _as_object(point_raw, point_path)
        usage = [
            _coerce_usage_value(u, f"{point_path}.usage[{j}]")
            for j, u in enumerate(_as_list(point.get("usage"), f"{point_path}.usage"))
        ]
        points.append({
            "month": coerce_string(_require(point, "month", f"{point_path}.month"), f"{point_path}.month"),
            "usage": usage,
        })
    return {
        "title": coerce_string(_require(chart, "title", f"{path}.title"), f"{path}.title"),
        "unit": coerce_string(_require(chart, "unit", f"{path}.unit"), f"{path}.unit"),
        "data": points,
    }


def _coerce_line_item(raw: Any, path: str) -> dict:
    item = _as_object(raw, path)
    return {
        "description": coerce_string(
            _require(item, "description", f"{path}.description"), f"{path}.description"
        ),
        "amount": coerce_number(_require(item, "amount", f"{path}.amount"), f"{path}.amount"),
    }


# ── Entry point ───────────────────────────────────────────────────────────────

def coerce_bill_data(raw: Any) -> BillData:
    """
    Validate and normalize an untrusted provider response into BillData.

    Raises FormatError (with .field set) when a required field is missing or
    a value cannot be coerced to the type the schema requires.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise FormatError(f"Response is not valid JSON: {e}") from e

    if raw is None:
        raise FormatError("Response is empty; expected a JSON object")
    if not isinstance(raw, dict):
        raise FormatError(f"Expected a JSON object, got {type(raw).__name__}")
    bill = raw

    for key in REQUIRED_FIELDS:
        _require(bill, key, key)

    canonical: dict[str, Any] = {
        "accountNumber": coerce_string(bill["accountNumber"], "accountNumber"),
        "totalCurrentCharges": coerce_number(bill["totalCurrentCharges"], "totalCurrentCharges"),
        "dueDate": coerce_string(bill["dueDate"], "dueDate"),
        "confidenceScores": _coerce_confidence_scores(bill["confidenceScores"]),
    }

    # Optional fields pass through when present; absent stays absent.
    for key in OPTIONAL_FIELDS:
        value = bill.get(key)
        if value is None:
            continue
        try:
            canonical[key] = coerce_string(value, key)
        except FormatError as e:
            logger.warning("Dropping unusable optional field: %s", e)

    canonical["usageCharts"] = [
        _coerce_usage_chart(c, f"usageCharts[{i}]")
        for i, c in enumerate(_as_list(bill.get("usageCharts"), "usageCharts"))
    ]
    canonical["lineItems"] = [
        _coerce_line_item(item, f"lineItems[{i}]")
        for i, item in enumerate(_as_list(bill.get("lineItems"), "lineItems"))
    ]

    for key in COLLECTION_FIELDS:
        if bill.get(key) is None:
            logger.debug("Response had no %s — defaulting to empty", key)

    ignored = set(bill) - set(REQUIRED_FIELDS) - set(COLLECTION_FIELDS) - set(OPTIONAL_FIELDS)
    if ignored:
        logger.debug("Ignoring unexpected fields: %s", ", ".join(sorted(ignored)))

    return BillData.model_validate(canonical)
