"""
History store — the last MAX_RECORDS analyses, newest first, in one JSON
file, with each bill's source image (and a thumbnail) saved beside it.

Records are immutable once written; the only ways out are eviction when
the list overflows and clearing the whole history.
"""
import json
import logging
import os
import threading
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from models.schemas import AnalysisRecord, BillData
from services.image_service import generate_thumbnail, parse_data_uri

logger = logging.getLogger("billsight.history")

DATA_DIR = os.environ.get("DATA_DIR", "/data")
HISTORY_FILE = os.environ.get("HISTORY_FILE", os.path.join(DATA_DIR, "history.json"))
UPLOADS_DIR = os.environ.get("UPLOADS_DIR", os.path.join(DATA_DIR, "uploads"))
UPLOADS_URL = "/uploads"
MAX_RECORDS = 50


def human_timestamp(moment: datetime) -> str:
    """e.g. ``3/14/2026, 9:05:12 AM`` in local time."""
    local = moment.astimezone()
    hour = local.hour % 12 or 12
    return f"{local.month}/{local.day}/{local.year}, {hour}:{local:%M:%S} {local:%p}"


class HistoryStore:

    def __init__(
        self,
        history_file: str = HISTORY_FILE,
        uploads_dir: str = UPLOADS_DIR,
        max_records: int = MAX_RECORDS,
    ):
        self.history_file = Path(history_file)
        self.uploads_dir = Path(uploads_dir)
        self.max_records = max_records
        self._lock = threading.Lock()

    # ── File access ───────────────────────────────────────────────────────────

    def _read(self) -> list[AnalysisRecord]:
        if not self.history_file.exists():
            return []
        try:
            entries = json.loads(self.history_file.read_text(encoding="utf-8") or "[]")
        except ValueError as e:
            logger.error("Failed to parse history from %s: %s — starting empty", self.history_file, e)
            return []
        if not isinstance(entries, list):
            logger.error("History file %s does not hold a list — starting empty", self.history_file)
            return []
        records = []
        for entry in entries:
            try:
                records.append(AnalysisRecord.model_validate(entry))
            except ValidationError as e:
                logger.warning("Skipping unreadable history entry %s: %s",
                               entry.get("id") if isinstance(entry, dict) else "?", e)
        return records

    def _write(self, records: list[AnalysisRecord]) -> None:
        self.history_file.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.model_dump(by_alias=True, exclude_none=True, mode="json") for r in records]
        tmp = self.history_file.with_suffix(".tmp")
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(tmp, self.history_file)

    def _remove_files(self, record: AnalysisRecord) -> None:
        for url in (record.image_path, record.thumbnail_path):
            if url and url.startswith(UPLOADS_URL + "/"):
                path = self.uploads_dir / url[len(UPLOADS_URL) + 1:]
                if path.exists():
                    path.unlink()

    # ── Public API ────────────────────────────────────────────────────────────

    def list_records(self) -> list[AnalysisRecord]:
        with self._lock:
            records = self._read()
        return sorted(records, key=lambda r: r.raw_timestamp, reverse=True)

    def get_record(self, record_id: str) -> Optional[AnalysisRecord]:
        return next((r for r in self.list_records() if r.id == record_id), None)

    def add_record(
        self,
        data: BillData,
        image_src: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AnalysisRecord:
        """Append a snapshot of *data*, evicting the oldest beyond MAX_RECORDS."""
        now = now or datetime.now(timezone.utc)
        record_id = f"{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:6]}"

        image_path = thumbnail_path = None
        if image_src:
            image = parse_data_uri(image_src)
            self.uploads_dir.mkdir(parents=True, exist_ok=True)
            filename = f"{record_id}.{image.extension}"
            (self.uploads_dir / filename).write_bytes(image.data)
            image_path = f"{UPLOADS_URL}/{filename}"

            thumb = generate_thumbnail(image.data)
            if thumb:
                thumb_name = f"thumb_{record_id}.jpg"
                (self.uploads_dir / thumb_name).write_bytes(thumb)
                thumbnail_path = f"{UPLOADS_URL}/{thumb_name}"

        record = AnalysisRecord(
            id=record_id,
            timestamp=human_timestamp(now),
            raw_timestamp=now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            data=data.model_copy(deep=True),
            image_path=image_path,
            thumbnail_path=thumbnail_path,
        )

        with self._lock:
            records = sorted(self._read(), key=lambda r: r.raw_timestamp, reverse=True)
            records.insert(0, record)
            kept, evicted = records[:self.max_records], records[self.max_records:]
            self._write(kept)
            for old in evicted:
                self._remove_files(old)

        if evicted:
            logger.info("History full — evicted %d oldest record(s)", len(evicted))
        logger.info("Saved analysis %s to history", record_id)
        return record

    def clear(self) -> None:
        """Drop every record and every stored image."""
        with self._lock:
            self._write([])
            if self.uploads_dir.exists():
                for path in self.uploads_dir.iterdir():
                    if path.is_file():
                        path.unlink()
        logger.info("History cleared")


@lru_cache(maxsize=None)
def get_history_store() -> HistoryStore:
    """Dependency: one store per process, so its lock covers every request."""
    return HistoryStore()
