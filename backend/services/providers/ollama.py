"""
Ollama provider — a local multimodal model (llava, moondream, ...) asked for
JSON through the prompt plus ``format: "json"``; the ``response`` string is
parsed here.

Also hosts the helpers the settings screen uses to probe a server and list
its vision-capable models.
"""
import logging
from typing import Any, Optional

import httpx

from services.errors import EmptyResponseError
from services.image_service import ImagePayload
from services.prompt import USER_INSTRUCTION, build_schema_prompt

from .base import BaseProvider

logger = logging.getLogger("billsight.providers.ollama")

MULTIMODAL_HINT = "Ensure a multimodal model (e.g. llava) is selected in Settings."
PROBE_TIMEOUT = 5.0


class OllamaProvider(BaseProvider):
    name = "ollama"

    def __init__(
        self,
        server_url: str,
        model: str,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.server_url = server_url.rstrip("/")
        self.model = model
        self._transport = transport

    def build_payload(self, image: ImagePayload) -> dict:
        return {
            "model": self.model,
            "system": build_schema_prompt(),
            "prompt": USER_INSTRUCTION,
            "images": [image.data_b64],
            "format": "json",
            "stream": False,
            "options": {"temperature": 0},
        }

    async def analyze(self, image: ImagePayload) -> Any:
        payload = self.build_payload(image)
        self._log_verbose("Ollama request:", {
            "url": self.server_url,
            "model": self.model,
            "image": f"<{image.mime_type}, {len(image.data)} bytes>",
        })

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(f"{self.server_url}/api/generate", json=payload)
        except httpx.HTTPError as e:
            raise self._transport_error(e, f"Ollama at {self.server_url}") from e

        data = self._check_response(resp, hint=MULTIMODAL_HINT)
        self._log_verbose("Ollama response:", data)

        if not isinstance(data, dict) or not data.get("response"):
            raise EmptyResponseError(
                f"Ollama returned no content. {MULTIMODAL_HINT}", provider=self.name,
            )
        return self._parse_json(data["response"])


# ── Settings helpers ──────────────────────────────────────────────────────────

async def check_connection(url: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> bool:
    """True if an Ollama server answers at *url*."""
    try:
        async with httpx.AsyncClient(timeout=PROBE_TIMEOUT, transport=transport) as client:
            resp = await client.get(url.rstrip("/") + "/")
        return resp.status_code == 200
    except httpx.HTTPError as e:
        logger.info("Ollama connection test to %s failed: %s", url, e)
        return False


def is_multimodal(model: dict) -> bool:
    """Heuristic: CLIP-family projector, or a known vision model name."""
    details = model.get("details") or {}
    family = (details.get("family") or "").lower()
    families = [f.lower() for f in (details.get("families") or [])]
    name = model.get("name") or ""
    return "clip" in family or "clip" in families or "llava" in name or "moondream" in name


async def list_multimodal_models(url: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> list[str]:
    """Names of installed models that can read images; empty on any failure."""
    try:
        async with httpx.AsyncClient(timeout=PROBE_TIMEOUT, transport=transport) as client:
            resp = await client.get(url.rstrip("/") + "/api/tags")
        resp.raise_for_status()
        models = resp.json().get("models") or []
    except (httpx.HTTPError, ValueError, AttributeError) as e:
        logger.warning("Failed to list Ollama models at %s: %s", url, e)
        return []
    return [m["name"] for m in models if isinstance(m, dict) and m.get("name") and is_multimodal(m)]
