"""
Error taxonomy for bill analysis.

Every failure carries the provider that produced it (when known) and, for
schema problems, the offending field path, so routers can turn it into a
message the user can act on.
"""
from typing import Optional

PROVIDER_LABELS = {
    "gemini": "Gemini",
    "ollama": "Ollama",
    "openai": "OpenAI",
}


class BillAnalysisError(Exception):
    """Base class for failures surfaced by the analysis pipeline."""
    kind = "analysis_error"

    def __init__(self, message: str, *, provider: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.field = field

    def __str__(self) -> str:
        if self.provider:
            return f"{PROVIDER_LABELS.get(self.provider, self.provider)}: {self.message}"
        return self.message

    def to_detail(self) -> dict:
        return {
            "error": self.kind,
            "provider": self.provider,
            "field": self.field,
            "message": str(self),
        }


class ConfigurationError(BillAnalysisError):
    """Credentials, model or server URL missing/rejected — send the user to settings."""
    kind = "configuration_error"


class TransportError(BillAnalysisError):
    """Endpoint unreachable, timed out, or answered with a non-2xx status."""
    kind = "transport_error"

    def __init__(self, message: str, *, provider: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, provider=provider)
        self.status_code = status_code


class EmptyResponseError(BillAnalysisError):
    """Provider answered but returned no content."""
    kind = "empty_response"


class FormatError(BillAnalysisError):
    """Response was not JSON, or was JSON missing/mistyping a required field."""
    kind = "format_error"


class EditError(ValueError):
    """A user edit addressed a field or cell that cannot be edited."""
    pass
