"""
History Router

GET    /api/history       — saved analyses, newest first
GET    /api/history/{id}  — one saved analysis
POST   /api/history       — save an analysis (bill data + source image)
DELETE /api/history       — clear all history and stored images
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from models.schemas import AnalysisRecord, HistoryCreate
from services.history_service import HistoryStore, get_history_store

logger = logging.getLogger("billsight.history")
router = APIRouter()


@router.get("", response_model=list[AnalysisRecord], response_model_exclude_none=True)
async def list_history(store: HistoryStore = Depends(get_history_store)):
    return store.list_records()


@router.get("/{record_id}", response_model=AnalysisRecord, response_model_exclude_none=True)
async def get_history_record(record_id: str, store: HistoryStore = Depends(get_history_store)):
    record = store.get_record(record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Record not found")
    return record


@router.post("", response_model=AnalysisRecord, response_model_exclude_none=True, status_code=201)
async def save_history_record(body: HistoryCreate, store: HistoryStore = Depends(get_history_store)):
    try:
        return store.add_record(body.data, body.image_src)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("")
async def clear_history(store: HistoryStore = Depends(get_history_store)):
    store.clear()
    return {"message": "History cleared successfully"}
