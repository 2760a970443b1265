from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from .errors import TransportError

Json = Any


@dataclass
class BaseHttpClient:
    """
    Target-agnostic async HTTP client wrapper.

    - Uses a single underlying httpx.AsyncClient for connection pooling.
    - Converts transport failures into TransportError.
    - Leaves status interpretation to the caller, which gets the raw response back.
    """

    base_url: str
    timeout_s: float = 30.0
    connect_timeout_s: float = 10.0
    headers: Mapping[str, str] = field(default_factory=dict)

    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self.base_url.rstrip("/") + "/",
            timeout=httpx.Timeout(self.timeout_s, connect=self.connect_timeout_s),
            headers=dict(self.headers),
            transport=self.transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> BaseHttpClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        content: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """
        Perform an HTTP request and return the response as-is.
        Raises TransportError on timeouts / network errors.
        """
        try:
            return await self._client.request(
                method=method,
                url=path.lstrip("/"),
                params=params,
                content=content,
                headers=headers,
            )
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

    async def get(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        return await self.request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        *,
        content: bytes,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        return await self.request("POST", path, content=content, headers=headers)


def json_or_none(resp: httpx.Response) -> Json:
    """Parsed JSON body, or None when the body is empty or not JSON."""
    try:
        return resp.json()
    except ValueError:
        return None
