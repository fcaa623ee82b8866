"""
Confidence Model

AI-reported confidence is a float in [0.0, 1.0].  Anything strictly below
REVIEW_THRESHOLD is flagged for the user to verify.  Usage-chart cells a user
has edited carry exactly 1.0.  Fields are judged independently — a bill can
have a trustworthy total and a doubtful account number.
"""
from typing import Optional

from models.schemas import BillData, ConfidenceScores, ReviewCell, ReviewSummary

REVIEW_THRESHOLD = 0.75
HUMAN_CONFIDENCE = 1.0

# Top-level fields a reviewer sees, in display order.
REVIEWABLE_FIELDS = (
    "accountName",
    "accountNumber",
    "serviceAddress",
    "statementDate",
    "totalCurrentCharges",
    "dueDate",
)


def needs_review(score: Optional[float]) -> bool:
    """True when a confidence signal exists and is below the threshold."""
    return score is not None and score < REVIEW_THRESHOLD


def field_confidence(scores: ConfidenceScores, field: str) -> Optional[float]:
    """Look up a score by wire name (``accountNumber``) or attribute name."""
    dumped = scores.model_dump(by_alias=True, exclude_none=True)
    if field in dumped:
        return dumped[field]
    return getattr(scores, field, None)


def review_summary(bill: BillData) -> ReviewSummary:
    fields = [
        name for name in REVIEWABLE_FIELDS
        if needs_review(field_confidence(bill.confidence_scores, name))
    ]

    cells = []
    for c, chart in enumerate(bill.usage_charts):
        for d, point in enumerate(chart.data):
            for y, usage in enumerate(point.usage):
                if needs_review(usage.confidence):
                    cells.append(ReviewCell(
                        chart_index=c, data_index=d, year_index=y,
                        confidence=usage.confidence,
                    ))

    return ReviewSummary(
        threshold=REVIEW_THRESHOLD,
        fields=fields,
        cells=cells,
        needs_review=bool(fields or cells),
    )
