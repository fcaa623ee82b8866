"""Gemini provider — schema-constrained generation via the google-genai SDK."""
import logging
import os
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from services.errors import ConfigurationError, TransportError
from services.image_service import ImagePayload
from services.prompt import MASTER_SYSTEM_PROMPT, RESPONSE_JSON_SCHEMA, USER_INSTRUCTION

from .base import BaseProvider

logger = logging.getLogger("billsight.providers.gemini")

GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")


class GeminiProvider(BaseProvider):
    name = "gemini"

    _GENERATION_CONFIG = types.GenerateContentConfig(
        system_instruction=MASTER_SYSTEM_PROMPT,
        response_mime_type="application/json",
        response_schema=RESPONSE_JSON_SCHEMA,
        temperature=0.1,
    )

    def __init__(self, api_key: str, *, model: str = GEMINI_MODEL, **kwargs) -> None:
        super().__init__(**kwargs)
        self.model = model
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(self.timeout * 1000)),
        )

    async def analyze(self, image: ImagePayload) -> Any:
        self._log_verbose("Gemini request:", {
            "model": self.model,
            "image": f"<{image.mime_type}, {len(image.data)} bytes>",
        })

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=image.data, mime_type=image.mime_type),
                    USER_INSTRUCTION,
                ],
                config=self._GENERATION_CONFIG,
            )
        except genai_errors.APIError as e:
            if e.code in (401, 403) or "API key" in (e.message or ""):
                raise ConfigurationError(
                    f"API key was rejected: {e.message}. Check the key in Settings.",
                    provider=self.name,
                ) from e
            raise TransportError(
                f"Request failed ({e.code}): {e.message}", provider=self.name, status_code=e.code,
            ) from e
        except httpx.HTTPError as e:
            raise self._transport_error(e, "the Gemini API") from e

        text = response.text
        self._log_verbose("Gemini response:", text)
        return self._parse_json(text)
