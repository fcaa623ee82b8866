"""
Bills Router

POST /api/bills/validate  — coerce a raw AI-style JSON blob into canonical BillData
POST /api/bills/review    — which fields / chart cells need a human look
POST /api/bills/edit      — apply one user correction to a working copy

All three are stateless: the client holds the working copy and sends it back.
"""
import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException

from models.schemas import BillData, EditRequest, ReviewSummary
from services.coercion_service import coerce_bill_data
from services.confidence_service import review_summary
from services.edit_service import apply_edit
from services.errors import EditError, FormatError

logger = logging.getLogger("billsight.bills")
router = APIRouter()


@router.post("/validate", response_model=BillData, response_model_exclude_none=True)
async def validate_bill(raw: Any = Body(...)):
    try:
        return coerce_bill_data(raw)
    except FormatError as e:
        raise HTTPException(status_code=422, detail=e.to_detail())


@router.post("/review", response_model=ReviewSummary)
async def review_bill(bill: BillData):
    return review_summary(bill)


@router.post("/edit", response_model=BillData, response_model_exclude_none=True)
async def edit_bill(body: EditRequest):
    try:
        return apply_edit(body.data, body.edit)
    except EditError as e:
        raise HTTPException(status_code=400, detail=str(e))
