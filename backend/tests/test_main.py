"""
Tests for the application shell — router wiring, health and diagnose.
"""
import pytest
from httpx import ASGITransport, AsyncClient

from services import settings_service


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setattr(settings_service, "SETTINGS_FILE", str(tmp_path / "settings.json"))
    from main import app

    return app


class TestAppShell:

    @pytest.mark.asyncio
    async def test_health(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            resp = await client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_diagnose_reports_each_check(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            resp = await client.get("/api/diagnose")
        checks = resp.json()["checks"]
        assert set(checks) == {"pillow", "google_genai", "data_dir", "provider"}
        assert checks["pillow"]["ok"] is True
        assert "apiKey" not in str(checks["provider"])

    @pytest.mark.asyncio
    async def test_routers_mounted(self, app):
        paths = set(app.openapi()["paths"])
        for path in ("/api/analyze", "/api/bills/validate", "/api/bills/edit",
                     "/api/export/csv", "/api/history", "/api/settings"):
            assert path in paths
