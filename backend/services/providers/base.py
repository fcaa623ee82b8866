"""Abstract base for the AI vision providers."""
import abc
import json
import logging
import os
from typing import Any, Optional

import httpx

from services.errors import ConfigurationError, EmptyResponseError, FormatError, TransportError
from services.image_service import ImagePayload

logger = logging.getLogger("billsight.providers")

PROVIDER_TIMEOUT = float(os.environ.get("PROVIDER_TIMEOUT", "120"))


class BaseProvider(abc.ABC):
    """
    One attempt, no retries: send the image with the shared extraction
    instructions and return the provider's JSON, still untrusted.
    """

    name: str = "base"

    def __init__(self, *, verbose: bool = False, timeout: float = PROVIDER_TIMEOUT) -> None:
        self.verbose = verbose
        self.timeout = timeout

    @abc.abstractmethod
    async def analyze(self, image: ImagePayload) -> Any:
        """Return the raw JSON value extracted from *image*."""

    def _log_verbose(self, message: str, data: Any) -> None:
        # Verbose mode promotes payload logging so it shows at the default level.
        level = logging.INFO if self.verbose else logging.DEBUG
        if logger.isEnabledFor(level):
            logger.log(level, "%s %s", message, json.dumps(data, default=str)[:4000])

    def _parse_json(self, text: Optional[str]) -> Any:
        """Parse the model's text.  Fenced or prefixed output is a failure."""
        if text is None or not text.strip():
            raise EmptyResponseError("The AI returned an empty response.", provider=self.name)
        try:
            return json.loads(text)
        except ValueError as e:
            logger.warning("%s returned non-JSON content: %.200s", self.name, text)
            raise FormatError(
                f"The AI returned an invalid JSON format ({e.msg}).", provider=self.name,
            ) from e

    def _check_response(self, resp: httpx.Response, hint: str = "") -> Any:
        """Map HTTP status to the error taxonomy and return the decoded body."""
        if resp.status_code in (401, 403):
            raise ConfigurationError(
                f"Credentials were rejected ({resp.status_code}). Check the API key in Settings.",
                provider=self.name,
            )
        if resp.is_error:
            detail = _error_detail(resp)
            message = f"Request failed ({resp.status_code}): {detail}"
            if hint:
                message = f"{message}. {hint}"
            raise TransportError(message, provider=self.name, status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise FormatError("Response body is not valid JSON.", provider=self.name) from e

    def _transport_error(self, exc: httpx.HTTPError, target: str) -> TransportError:
        if isinstance(exc, httpx.TimeoutException):
            return TransportError(f"Request to {target} timed out after {self.timeout:.0f}s.", provider=self.name)
        return TransportError(f"Could not reach {target}: {exc}", provider=self.name)


def _error_detail(resp: httpx.Response) -> str:
    """Pull a human message out of the usual error bodies."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text.strip()[:300] or resp.reason_phrase
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str):
            return err
        if body.get("message"):
            return str(body["message"])
    return resp.reason_phrase
