"""
Tests for POST /api/analyze — status mapping of the error taxonomy and
request-supplied settings overriding stored ones.

The pipeline itself is patched; see test_analysis_service for its behavior.
"""
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from models.schemas import AiProvider, AiSettings, AnalysisResult
from routers.analyze import router
from services.confidence_service import review_summary
from services.errors import ConfigurationError, EmptyResponseError, FormatError, TransportError
from services.settings_service import get_settings


@pytest.fixture
def stored_settings():
    settings = AiSettings(provider=AiProvider.OPENAI)
    settings.openai.api_key = "sk-stored-1234567890"
    return settings


@pytest.fixture
def app(stored_settings):
    test_app = FastAPI()
    test_app.include_router(router, prefix="/api/analyze")
    test_app.dependency_overrides[get_settings] = lambda: stored_settings
    return test_app


async def post(app, body):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.post("/api/analyze", json=body)


class TestAnalyzeEndpoint:

    @pytest.mark.asyncio
    async def test_success(self, app, bill, raw_bill, png_data_uri):
        result = AnalysisResult(
            provider=AiProvider.OPENAI, data=bill, raw=raw_bill, review=review_summary(bill),
        )
        with patch("routers.analyze.analyze_bill", AsyncMock(return_value=result)):
            resp = await post(app, {"imageData": png_data_uri})

        assert resp.status_code == 200
        body = resp.json()
        assert body["provider"] == "openai"
        assert body["data"]["accountNumber"] == "1234-5678-90"
        assert body["raw"] == raw_bill
        assert body["review"]["fields"] == ["serviceAddress"]

    @pytest.mark.asyncio
    async def test_uses_stored_settings(self, app, bill, raw_bill, png_data_uri, stored_settings):
        mock = AsyncMock(side_effect=ConfigurationError("stop", provider="openai"))
        with patch("routers.analyze.analyze_bill", mock):
            await post(app, {"imageData": png_data_uri})
        assert mock.call_args.args[1] == stored_settings

    @pytest.mark.asyncio
    async def test_request_settings_win_with_masked_key_restored(self, app, png_data_uri):
        mock = AsyncMock(side_effect=ConfigurationError("stop", provider="openai"))
        body = {
            "imageData": png_data_uri,
            "settings": {"provider": "openai", "openai": {"apiKey": "sk-s…"}, "verboseLogging": True},
        }
        with patch("routers.analyze.analyze_bill", mock):
            await post(app, body)

        used = mock.call_args.args[1]
        assert used.verbose_logging is True
        assert used.openai.api_key == "sk-stored-1234567890"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error,status", [
        (ConfigurationError("API key is not set.", provider="gemini"), 400),
        (FormatError("Missing required field 'dueDate'", provider="ollama", field="dueDate"), 422),
        (TransportError("Request failed (500)", provider="openai", status_code=500), 502),
        (EmptyResponseError("The AI returned an empty response.", provider="gemini"), 502),
    ])
    async def test_error_mapping(self, app, png_data_uri, error, status):
        with patch("routers.analyze.analyze_bill", AsyncMock(side_effect=error)):
            resp = await post(app, {"imageData": png_data_uri})

        assert resp.status_code == status
        detail = resp.json()["detail"]
        assert detail["error"] == error.kind
        assert detail["provider"] == error.provider
        assert detail["message"] == str(error)

    @pytest.mark.asyncio
    async def test_format_error_names_field(self, app, png_data_uri):
        error = FormatError("Missing required field 'dueDate'", provider="ollama", field="dueDate")
        with patch("routers.analyze.analyze_bill", AsyncMock(side_effect=error)):
            resp = await post(app, {"imageData": png_data_uri})
        assert resp.json()["detail"]["field"] == "dueDate"
        assert resp.json()["detail"]["message"].startswith("Ollama: ")

    @pytest.mark.asyncio
    async def test_invalid_image(self, app):
        resp = await post(app, {"imageData": ""})
        assert resp.status_code == 400
        assert resp.json()["detail"]["error"] == "invalid_image"

    @pytest.mark.asyncio
    async def test_missing_image_field(self, app):
        resp = await post(app, {})
        assert resp.status_code == 422
