"""
Tests for edit merge — scalar fields, chart cells, month labels.

Chart-cell edits reset confidence to 1.0; scalar edits leave the AI's
confidence alone.  The source bill is never modified.
"""
import pytest

from models.schemas import ChartCellEdit, FieldEdit, MonthEdit
from services.confidence_service import review_summary
from services.edit_service import (
    NEW_YEAR_LABEL,
    apply_chart_cell_edit,
    apply_edit,
    apply_field_edit,
    apply_month_edit,
)
from services.errors import EditError


# ── Scalar fields ────────────────────────────────────────────────────────────

class TestFieldEdit:

    def test_replaces_value(self, bill):
        updated = apply_field_edit(bill, "accountName", "John Roe")
        assert updated.account_name == "John Roe"
        assert bill.account_name == "Jane Doe"

    def test_total_coerced_to_number(self, bill):
        updated = apply_field_edit(bill, "totalCurrentCharges", "150.00")
        assert updated.total_current_charges == 150.0

    def test_unparseable_total_rejected(self, bill):
        with pytest.raises(EditError):
            apply_field_edit(bill, "totalCurrentCharges", "lots")

    def test_attribute_name_accepted(self, bill):
        assert apply_field_edit(bill, "due_date", "2026-03-01").due_date == "2026-03-01"

    def test_unknown_field_rejected(self, bill):
        with pytest.raises(EditError):
            apply_field_edit(bill, "confidenceScores", "x")

    def test_required_field_cannot_be_cleared(self, bill):
        with pytest.raises(EditError):
            apply_field_edit(bill, "accountNumber", "")

    def test_optional_field_cleared(self, bill):
        updated = apply_field_edit(bill, "serviceAddress", "  ")
        assert updated.service_address is None
        assert "serviceAddress" not in updated.model_dump(by_alias=True, exclude_none=True)

    def test_confidence_untouched(self, bill):
        updated = apply_field_edit(bill, "serviceAddress", "1 Main St")
        assert updated.confidence_scores.service_address == 0.7
        assert review_summary(updated).fields == ["serviceAddress"]


# ── Chart cells ──────────────────────────────────────────────────────────────

class TestChartCellEdit:

    def test_sets_value_and_full_confidence(self, bill):
        updated = apply_chart_cell_edit(bill, 0, 0, 1, "600")
        cell = updated.usage_charts[0].data[0].usage[1]
        assert cell.value == 600.0
        assert cell.confidence == 1.0
        assert cell.year == "2026"

    def test_source_bill_unchanged(self, bill):
        apply_chart_cell_edit(bill, 0, 0, 1, 600)
        cell = bill.usage_charts[0].data[0].usage[1]
        assert cell.value == 580
        assert cell.confidence == 0.3

    def test_edited_cell_no_longer_flagged(self, bill):
        updated = apply_chart_cell_edit(bill, 0, 0, 1, 580)
        assert review_summary(updated).cells == []

    def test_synthesizes_missing_year_slot(self, bill):
        updated = apply_chart_cell_edit(bill, 0, 1, 1, 512)
        usage = updated.usage_charts[0].data[1].usage
        assert len(usage) == 2
        assert usage[1].year == NEW_YEAR_LABEL
        assert usage[1].value == 512
        assert usage[1].confidence == 1.0

    def test_index_past_end_rejected(self, bill):
        with pytest.raises(EditError):
            apply_chart_cell_edit(bill, 0, 1, 2, 512)

    @pytest.mark.parametrize("chart,data", [(1, 0), (0, 5), (-1, 0)])
    def test_bad_location_rejected(self, bill, chart, data):
        with pytest.raises(EditError):
            apply_chart_cell_edit(bill, chart, data, 0, 1)

    def test_unparseable_value_rejected(self, bill):
        with pytest.raises(EditError):
            apply_chart_cell_edit(bill, 0, 0, 0, "abc")

    def test_empty_value_rejected(self, bill):
        with pytest.raises(EditError):
            apply_chart_cell_edit(bill, 0, 0, 0, "")


# ── Asymmetry between scalar and cell edits ──────────────────────────────────

class TestConfidenceAsymmetry:

    def test_cell_edit_resets_but_field_edit_keeps(self, raw_bill):
        from services.coercion_service import coerce_bill_data

        raw_bill["confidenceScores"]["dueDate"] = 0.4
        bill = coerce_bill_data(raw_bill)

        after_field = apply_field_edit(bill, "dueDate", "2026-02-25")
        after_cell = apply_chart_cell_edit(bill, 0, 0, 1, 581)

        assert after_field.confidence_scores.due_date == 0.4
        assert after_cell.usage_charts[0].data[0].usage[1].confidence == 1.0


# ── Month labels ─────────────────────────────────────────────────────────────

class TestMonthEdit:

    def test_relabels(self, bill):
        updated = apply_month_edit(bill, 0, 1, "February")
        assert updated.usage_charts[0].data[1].month == "February"
        assert bill.usage_charts[0].data[1].month == "Feb"

    def test_usage_untouched(self, bill):
        updated = apply_month_edit(bill, 0, 0, "January")
        assert updated.usage_charts[0].data[0].usage == bill.usage_charts[0].data[0].usage

    def test_bad_location_rejected(self, bill):
        with pytest.raises(EditError):
            apply_month_edit(bill, 0, 9, "Dec")


# ── Dispatch ─────────────────────────────────────────────────────────────────

class TestApplyEdit:

    def test_field(self, bill):
        updated = apply_edit(bill, FieldEdit(field="accountName", value="A"))
        assert updated.account_name == "A"

    def test_chart_cell(self, bill):
        edit = ChartCellEdit(chart_index=0, data_index=0, year_index=0, value=1)
        assert apply_edit(bill, edit).usage_charts[0].data[0].usage[0].value == 1

    def test_month(self, bill):
        edit = MonthEdit(chart_index=0, data_index=0, month="Jan.")
        assert apply_edit(bill, edit).usage_charts[0].data[0].month == "Jan."
