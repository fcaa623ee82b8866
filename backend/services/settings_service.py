"""
Settings store — AiSettings persisted as a JSON file.

Loaded and saved only at request boundaries; everything else receives the
AiSettings object explicitly.  Stored values are merged over the defaults so
files written by older versions pick up new fields, and API keys fall back
to the environment when the file leaves them blank.
"""
import json
import logging
import os
import threading
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from models.schemas import AiProvider, AiSettings

logger = logging.getLogger("billsight.settings")

DATA_DIR = os.environ.get("DATA_DIR", "/data")
SETTINGS_FILE = os.environ.get("SETTINGS_FILE", os.path.join(DATA_DIR, "settings.json"))

_lock = threading.Lock()


def default_settings() -> AiSettings:
    settings = AiSettings()
    settings.gemini.api_key = os.environ.get("GEMINI_API_KEY", "")
    settings.openai.api_key = os.environ.get("OPENAI_API_KEY", "")
    settings.ollama.server_url = os.environ.get("OLLAMA_URL", settings.ollama.server_url)
    return settings


def merge_settings(stored: dict) -> AiSettings:
    """Overlay a stored (possibly partial) settings dict on the defaults."""
    merged = default_settings().model_dump(by_alias=True)
    for key, value in stored.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update({k: v for k, v in value.items() if v not in (None, "")})
        elif value is not None:
            merged[key] = value
    return AiSettings.model_validate(merged)


def load_settings(path: Optional[str] = None) -> AiSettings:
    path = Path(path or SETTINGS_FILE)
    if not path.exists():
        return default_settings()
    try:
        stored = json.loads(path.read_text(encoding="utf-8"))
        return merge_settings(stored if isinstance(stored, dict) else {})
    except (ValueError, ValidationError) as e:
        logger.error("Failed to parse settings from %s: %s — using defaults", path, e)
        return default_settings()


def save_settings(settings: AiSettings, path: Optional[str] = None) -> None:
    path = Path(path or SETTINGS_FILE)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    with _lock:
        tmp.write_text(json.dumps(settings.model_dump(by_alias=True, mode="json"), indent=2), encoding="utf-8")
        os.replace(tmp, path)
    logger.info("Saved settings (provider=%s)", settings.provider.value)


def is_configured(settings: AiSettings) -> bool:
    if settings.provider == AiProvider.GEMINI:
        return bool(settings.gemini.api_key.strip())
    if settings.provider == AiProvider.OLLAMA:
        return bool(settings.ollama.server_url.strip() and settings.ollama.model.strip())
    if settings.provider == AiProvider.OPENAI:
        return bool(settings.openai.api_key.strip())
    return False


def mask_key(key: str) -> str:
    """Show only enough of a key to recognise it."""
    if not key:
        return ""
    return key[:4] + "…" if len(key) > 8 else "…"


def masked(settings: AiSettings) -> AiSettings:
    view = settings.model_copy(deep=True)
    view.gemini.api_key = mask_key(view.gemini.api_key)
    view.openai.api_key = mask_key(view.openai.api_key)
    return view


def unmask(incoming: AiSettings, current: AiSettings) -> AiSettings:
    """Keep stored keys when the client echoes back the masked form."""
    updated = incoming.model_copy(deep=True)
    if current.gemini.api_key and updated.gemini.api_key == mask_key(current.gemini.api_key):
        updated.gemini.api_key = current.gemini.api_key
    if current.openai.api_key and updated.openai.api_key == mask_key(current.openai.api_key):
        updated.openai.api_key = current.openai.api_key
    return updated


def get_settings() -> AiSettings:
    """Dependency: the currently stored settings."""
    return load_settings()
