"""
Tests for review flagging — threshold, independence of fields, chart cells.
"""
import pytest

from services.confidence_service import (
    REVIEW_THRESHOLD,
    field_confidence,
    needs_review,
    review_summary,
)


class TestNeedsReview:

    @pytest.mark.parametrize("score,expected", [
        (0.0, True),
        (0.5, True),
        (0.749, True),
        (0.7499, True),
        (0.75, False),
        (0.9, False),
        (1.0, False),
    ])
    def test_threshold(self, score, expected):
        assert needs_review(score) is expected

    def test_missing_score_is_not_flagged(self):
        assert needs_review(None) is False

    def test_threshold_value(self):
        assert REVIEW_THRESHOLD == 0.75


class TestFieldConfidence:

    def test_by_wire_name(self, bill):
        assert field_confidence(bill.confidence_scores, "accountNumber") == 0.95

    def test_by_attribute_name(self, bill):
        assert field_confidence(bill.confidence_scores, "due_date") == 0.88

    def test_unscored_field(self, bill):
        assert field_confidence(bill.confidence_scores, "servicePeriodStart") is None


class TestReviewSummary:

    def test_flags_low_field_and_cell(self, bill):
        summary = review_summary(bill)
        assert summary.fields == ["serviceAddress"]
        assert len(summary.cells) == 1
        cell = summary.cells[0]
        assert (cell.chart_index, cell.data_index, cell.year_index) == (0, 0, 1)
        assert cell.confidence == 0.3
        assert summary.needs_review is True
        assert summary.threshold == REVIEW_THRESHOLD

    def test_fields_flagged_independently(self, raw_bill):
        from services.coercion_service import coerce_bill_data

        raw_bill["confidenceScores"]["accountNumber"] = 0.2
        raw_bill["confidenceScores"]["serviceAddress"] = 0.99
        summary = review_summary(coerce_bill_data(raw_bill))
        assert summary.fields == ["accountNumber"]

    def test_overall_is_not_a_reviewable_field(self, raw_bill):
        from services.coercion_service import coerce_bill_data

        raw_bill["confidenceScores"]["overall"] = 0.1
        summary = review_summary(coerce_bill_data(raw_bill))
        assert "overall" not in summary.fields

    def test_clean_bill(self, raw_bill):
        from services.coercion_service import coerce_bill_data

        raw_bill["confidenceScores"]["serviceAddress"] = 0.8
        raw_bill["usageCharts"][0]["data"][0]["usage"][1]["confidence"] = 0.75
        summary = review_summary(coerce_bill_data(raw_bill))
        assert summary.fields == []
        assert summary.cells == []
        assert summary.needs_review is False

    def test_defaulted_usage_confidence_not_flagged(self, bill):
        summary = review_summary(bill)
        assert all(c.data_index != 1 for c in summary.cells)
