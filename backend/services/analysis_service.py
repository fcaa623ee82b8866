"""
Analysis pipeline: image → provider → coercion → review flags.

The raw provider JSON is returned untouched beside the canonical BillData so
edits can be compared against what the AI actually said.
"""
import logging
import time

from models.schemas import AiSettings, AnalysisResult
from services.coercion_service import coerce_bill_data
from services.confidence_service import review_summary
from services.errors import FormatError
from services.image_service import parse_data_uri
from services.providers import get_provider

logger = logging.getLogger("billsight.analysis")


async def analyze_bill(image_data: str, settings: AiSettings) -> AnalysisResult:
    """
    Run one analysis with the provider named in *settings*.

    Raises ValueError for unusable image data and BillAnalysisError
    subclasses for everything the provider or the coercion layer rejects.
    """
    image = parse_data_uri(image_data)
    provider = get_provider(settings)

    logger.info("Analyzing %s (%d KB) with %s", image.mime_type, len(image.data) // 1024, provider.name)
    start = time.monotonic()
    raw = await provider.analyze(image)

    try:
        data = coerce_bill_data(raw)
    except FormatError as e:
        e.provider = provider.name
        logger.warning("Rejected %s response: %s", provider.name, e)
        raise

    review = review_summary(data)
    logger.info(
        "Analysis complete in %.1fs — %d line items, %d charts, %d fields to review",
        time.monotonic() - start, len(data.line_items), len(data.usage_charts), len(review.fields),
    )
    return AnalysisResult(provider=settings.provider, data=data, raw=raw, review=review)
