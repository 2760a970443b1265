from __future__ import annotations

from typing import Any

import httpx


class ExporterError(RuntimeError):
    """Base exception for exporter-related failures."""


class ConfigurationError(ExporterError):
    """Missing or malformed configuration (e.g. an API key of the wrong shape)."""


class TransportError(ExporterError):
    """HTTP/network/transport layer failures (timeouts, connection errors)."""


class UpstreamAPIError(ExporterError):
    """Target service answered with a non-success status or an embedded error.

    Keeps the raw response and the parsed JSON body (``None`` when the body was not JSON)
    so callers can report what the service actually said.
    """

    def __init__(
        self,
        message: str,
        *,
        response: httpx.Response,
        json: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.response = response
        self.json = json

    @property
    def status_code(self) -> int:
        return self.response.status_code

    def __str__(self) -> str:
        return f"{self.message} (HTTP {self.status_code}): {self.json!r}"


class MappingError(ExporterError):
    """Mapping/extraction failed due to unexpected schema or values."""

    def __init__(self, message: str, context: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"
