"""
Settings Router

GET  /api/settings                 — current AI settings (keys masked)
PUT  /api/settings                 — replace AI settings
POST /api/settings/ollama/test     — can we reach an Ollama server?
POST /api/settings/ollama/models   — vision-capable models on that server
"""
import logging

from fastapi import APIRouter, Depends

from models.schemas import AiSettings, OllamaUrl, SettingsResponse
from services.providers.ollama import check_connection, list_multimodal_models
from services.settings_service import get_settings, is_configured, masked, save_settings, unmask

logger = logging.getLogger("billsight.settings")
router = APIRouter()


@router.get("", response_model=SettingsResponse)
async def read_settings(settings: AiSettings = Depends(get_settings)):
    return SettingsResponse(settings=masked(settings), is_configured=is_configured(settings))


@router.put("", response_model=SettingsResponse)
async def update_settings(body: AiSettings, current: AiSettings = Depends(get_settings)):
    settings = unmask(body, current)
    save_settings(settings)
    return SettingsResponse(settings=masked(settings), is_configured=is_configured(settings))


@router.post("/ollama/test")
async def probe_ollama(body: OllamaUrl):
    return {"success": await check_connection(body.url)}


@router.post("/ollama/models")
async def ollama_models(body: OllamaUrl):
    return {"models": await list_multimodal_models(body.url)}
