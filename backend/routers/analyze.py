"""
Analyze Router

POST /api/analyze   — send a bill image to the configured AI provider
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from models.schemas import AiSettings, AnalysisResult, AnalyzeRequest
from services.analysis_service import analyze_bill
from services.errors import (
    BillAnalysisError,
    ConfigurationError,
    EmptyResponseError,
    FormatError,
    TransportError,
)
from services.settings_service import get_settings, unmask

logger = logging.getLogger("billsight.analyze")
router = APIRouter()

ERROR_STATUS = {
    ConfigurationError: 400,   # user needs to visit settings
    FormatError: 422,
    TransportError: 502,
    EmptyResponseError: 502,
}


def error_status(exc: BillAnalysisError) -> int:
    for cls, status in ERROR_STATUS.items():
        if isinstance(exc, cls):
            return status
    return 500


@router.post("", response_model=AnalysisResult, response_model_exclude_none=True)
async def analyze(
    body: AnalyzeRequest,
    stored: AiSettings = Depends(get_settings),
):
    """
    Run one analysis.  Settings in the request body win over the stored ones,
    so the client can try a provider before saving it.  No retries — a failed
    attempt is reported straight back.
    """
    settings = unmask(body.settings, stored) if body.settings else stored
    try:
        return await analyze_bill(body.image_data, settings)
    except BillAnalysisError as e:
        logger.warning("Analysis failed (%s): %s", e.kind, e)
        raise HTTPException(status_code=error_status(e), detail=e.to_detail())
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"error": "invalid_image", "message": str(e)})
