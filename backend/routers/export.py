"""
Export Router

POST /api/export/csv   — download the bill as CSV
POST /api/export/save  — write the CSV into the server's export directory
"""
import logging
import os

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from models.schemas import BillData
from services.export_service import bill_to_csv, csv_filename

logger = logging.getLogger("billsight.export")
router = APIRouter()

DATA_DIR = os.environ.get("DATA_DIR", "/data")
CSV_DIR = os.environ.get("CSV_DIR", os.path.join(DATA_DIR, "csv"))


@router.post("/csv")
async def download_csv(bill: BillData):
    return Response(
        content=bill_to_csv(bill),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="bill-data.csv"'},
    )


@router.post("/save")
async def save_csv(bill: BillData):
    filename = csv_filename(bill)
    try:
        os.makedirs(CSV_DIR, exist_ok=True)
        with open(os.path.join(CSV_DIR, filename), "w", encoding="utf-8", newline="") as f:
            f.write(bill_to_csv(bill))
    except OSError as e:
        logger.error("Error saving CSV: %s", e)
        raise HTTPException(status_code=500, detail="Failed to save CSV to server")
    logger.info("Saved %s", filename)
    return {"message": f"CSV saved on server as {filename}", "filename": filename}
