"""Gateway error taxonomy."""

from __future__ import annotations

from typing import Optional


class ConfigError(RuntimeError):
    """Raised at start-up when configuration cannot be loaded."""


class GatewayError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, str]:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidRequest(GatewayError):
    """Malformed or missing batch fields."""

    status_code = 400


class Unauthorized(GatewayError):
    """No usable credential in the Authorization header."""

    status_code = 401

    def __init__(self, message: str = "authorization required", details: Optional[str] = None) -> None:
        super().__init__(
            message,
            details
            or "Provide the credential in the Authorization header as 'DeepL-Auth-Key <token>' or 'Bearer <token>'",
        )


class UpstreamError(Exception):
    """A single upstream call failed; confined to that text's slot.

    Never surfaced as an HTTP error: the orchestrator renders it inline.
    """

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body
