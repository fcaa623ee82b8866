"""OpenAI provider — chat completions in JSON mode."""
import logging
import os
from typing import Any, Optional

import httpx

from services.errors import EmptyResponseError, FormatError
from services.image_service import ImagePayload
from services.prompt import USER_INSTRUCTION, build_schema_prompt

from .base import BaseProvider

logger = logging.getLogger("billsight.providers.openai")

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o")


class OpenAIProvider(BaseProvider):
    name = "openai"

    def __init__(
        self,
        api_key: str,
        *,
        model: str = OPENAI_MODEL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._api_key = api_key
        self.model = model
        self._transport = transport

    def build_payload(self, image: ImagePayload) -> dict:
        return {
            "model": self.model,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": build_schema_prompt()},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": USER_INSTRUCTION},
                        {"type": "image_url", "image_url": {"url": image.data_uri}},
                    ],
                },
            ],
        }

    async def analyze(self, image: ImagePayload) -> Any:
        payload = self.build_payload(image)
        self._log_verbose("OpenAI request:", {
            "model": self.model,
            "image": f"<{image.mime_type}, {len(image.data)} bytes>",
        })

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    OPENAI_URL,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
        except httpx.HTTPError as e:
            raise self._transport_error(e, "the OpenAI API") from e

        data = self._check_response(resp)
        self._log_verbose("OpenAI response:", data)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            if isinstance(data, dict) and data.get("choices") == []:
                raise EmptyResponseError("OpenAI returned no choices.", provider=self.name) from e
            raise FormatError("Unexpected response shape from OpenAI.", provider=self.name) from e

        return self._parse_json(content)
