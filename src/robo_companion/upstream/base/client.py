from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from .errors import ProviderRequestError


def _looks_like_html(text: str) -> bool:
    head = text.lstrip()[:200].lower()
    return head.startswith("<!doctype html") or head.startswith("<html")


@dataclass(frozen=True)
class RawResponse:
    """Status, headers and body of one upstream response, before any JSON decoding."""

    status_code: int
    headers: Mapping[str, str]
    text: str
    url: str

    @property
    def is_html(self) -> bool:
        return _looks_like_html(self.text)

    @property
    def is_login_page(self) -> bool:
        return self.is_html and "login" in self.text.lower()

    def json(self) -> Any:
        try:
            return json.loads(self.text)
        except ValueError as e:
            raise ProviderRequestError(f"Response from {self.url} was not valid JSON.") from e


def encode_params(params: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    """
    Flatten query params the way both upstreams expect.

    - None values are dropped.
    - Sequences become repeated `name[]=value` pairs.
    - Booleans are sent as "true"/"false".
    """
    out: list[tuple[str, str]] = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            for v in value:
                out.append((f"{key}[]", str(v)))
        elif isinstance(value, bool):
            out.append((key, "true" if value else "false"))
        else:
            out.append((key, str(value)))
    return out


@dataclass
class BaseHttpClient:
    """
    Upstream-agnostic async HTTP client wrapper.

    - Uses a single underlying httpx.AsyncClient for connection pooling.
    - Provides consistent transport error handling.
    - Status-code policy (429, auth pages) is left to the upstream-specific clients,
      which read `RawResponse` and decide whether to retry or rotate keys.
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
            headers={"Content-Type": "application/json", **dict(self.headers)},
            transport=self.transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> BaseHttpClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def request_raw(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RawResponse:
        """
        Perform an HTTP request and return the undecoded response.
        Raises ProviderRequestError on transport issues only.

        `path` may be absolute (http...) to reach a sibling API on the same host.
        """
        url = path if path.startswith(("http://", "https://")) else path.lstrip("/")
        try:
            resp = await self._client.request(
                method=method,
                url=url,
                params=encode_params(params),
                headers=headers,
            )
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            raise ProviderRequestError(str(e)) from e

        return RawResponse(
            status_code=resp.status_code,
            headers=dict(resp.headers),
            text=resp.text,
            url=str(resp.request.url),
        )

