from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .client import BaseHttpClient, RawResponse
from .errors import (
    ProviderAuthError,
    ProviderMappingError,
    ProviderNotFound,
    ProviderRateLimited,
    ProviderRequestError,
)
from .keys import ApiKeyPool, FailureTracker, KeyStatus, RequestPacer
from .types import MAX_PER_PAGE

logger = logging.getLogger(__name__)

ApiItem = dict[str, Any]

# Hard stop for paginated walks.
MAX_PAGES = 200


def _parse_retry_after(headers: Mapping[str, str]) -> float | None:
    for key, value in headers.items():
        if key.lower() == "retry-after":
            try:
                return float(value)
            except (TypeError, ValueError):
                return None
    return None


async def _async_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


@dataclass
class KeyedApiClient:
    """
    Bearer-key REST client shared by both upstream families.

    - Paces requests (RequestPacer).
    - Draws keys from `pool`, falling back to `fallback_pool` once `pool` is exhausted.
    - Retries HTTP 429 honouring Retry-After.
    - Treats 401/403 and HTML login pages as a rejected key: marks it failed and retries
      with the next key. When every key is gone the failure tracker trips.
    """

    http: BaseHttpClient
    pool: ApiKeyPool
    fallback_pool: ApiKeyPool | None = None
    pacer: RequestPacer = field(default_factory=RequestPacer)
    failure: FailureTracker = field(default_factory=FailureTracker)
    max_rate_limit_retries: int = 5
    default_retry_after_s: float = 5.0
    label: str = "upstream"

    _sleep: Callable[[float], Awaitable[Any]] = field(default=_async_sleep, repr=False)

    async def aclose(self) -> None:
        await self.http.aclose()

    # -----------------------------
    # Keys
    # -----------------------------

    def _has_any_keys(self) -> bool:
        return bool(self.pool.keys) or bool(self.fallback_pool and self.fallback_pool.keys)

    def _next_key(self, *, prefer_fallback: bool = False) -> tuple[ApiKeyPool | None, str | None]:
        if not self._has_any_keys():
            return None, None

        order = [self.pool, self.fallback_pool]
        if prefer_fallback:
            order.reverse()

        for pool in order:
            if pool is None or not pool.keys:
                continue
            key = pool.next_key()
            if key is not None:
                return pool, key
            logger.warning("[%s] %s key pool exhausted", self.label, pool.name)

        self.failure.trip()
        raise ProviderAuthError(f"[{self.label}] All API keys are exhausted.")

    def _all_keys_failed(self) -> bool:
        pools = [p for p in (self.pool, self.fallback_pool) if p is not None and p.keys]
        return bool(pools) and all(p.all_failed for p in pools)

    def key_status(self) -> KeyStatus:
        return self.pool.status()

    # -----------------------------
    # Requests
    # -----------------------------

    @staticmethod
    def _is_auth_rejection(raw: RawResponse) -> bool:
        if raw.status_code in (401, 403):
            return True
        if 200 <= raw.status_code < 300:
            # Upstream redirects expired keys to an HTML page with a 200.
            return raw.is_html
        return raw.is_login_page

    async def get(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        *,
        authenticated: bool = True,
        prefer_fallback: bool = False,
    ) -> Any:
        """GET `path` and return decoded JSON."""

        rate_limited = 0
        auth_retries = 0

        while True:
            await self.pacer.before_request()

            pool, key = (None, None)
            if authenticated:
                pool, key = self._next_key(prefer_fallback=prefer_fallback)
            headers = {"Authorization": f"Bearer {key}"} if key else None

            raw = await self.http.request_raw("GET", path, params=params, headers=headers)

            if raw.status_code == 429:
                rate_limited += 1
                if rate_limited > self.max_rate_limit_retries:
                    raise ProviderRateLimited(
                        f"[{self.label}] Rate limited {rate_limited} times for {raw.url}"
                    )
                wait = _parse_retry_after(raw.headers) or self.default_retry_after_s
                logger.warning("[%s] Rate limited; waiting %.1fs before retry", self.label, wait)
                await self._sleep(wait)
                continue

            if pool is not None and self._is_auth_rejection(raw):
                pool.mark_failed()
                if auth_retries < len(pool) - 1:
                    auth_retries += 1
                    logger.info(
                        "[%s] Retrying with next API key (attempt %d)", self.label, auth_retries
                    )
                    continue
                if self._all_keys_failed():
                    self.failure.trip()
                raise ProviderAuthError(
                    f"[{self.label}] Authentication failed; API keys may be expired or invalid."
                )

            if raw.status_code == 404:
                raise ProviderNotFound(f"HTTP 404 for GET {raw.url}")

            if not 200 <= raw.status_code < 300:
                logger.error("[%s] HTTP %d for %s", self.label, raw.status_code, raw.url)
                raise ProviderRequestError(f"HTTP {raw.status_code} for GET {raw.url}")

            data = raw.json()
            if pool is not None:
                pool.record_success()
            return data

    async def get_object(
        self, path: str, params: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> ApiItem:
        data = await self.get(path, params, **kwargs)
        if not isinstance(data, dict):
            raise ProviderMappingError(
                "Expected JSON object", context={"path": path, "type": type(data).__name__}
            )
        return data

    async def get_data_items(
        self, path: str, params: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> list[ApiItem]:
        """One page of a `{"data": [...], "meta": {...}}` list endpoint."""

        query = {"per_page": MAX_PER_PAGE, **dict(params or {})}
        payload = await self.get_object(path, query, **kwargs)
        items = payload.get("data")
        if not isinstance(items, list):
            raise ProviderMappingError(
                "Expected 'data' list", context={"path": path, "type": type(items).__name__}
            )
        return [i for i in items if isinstance(i, dict)]

    async def get_all_pages(
        self, path: str, params: Mapping[str, Any] | None = None, *, max_pages: int = MAX_PAGES
    ) -> list[ApiItem]:
        """Walk every page of a list endpoint using `meta.current_page`/`meta.last_page`."""

        per_page = int(dict(params or {}).get("per_page") or MAX_PER_PAGE)
        out: list[ApiItem] = []
        page = 1
        while True:
            query = {**dict(params or {}), "page": page, "per_page": per_page}
            payload = await self.get_object(path, query)
            items = [i for i in payload.get("data") or [] if isinstance(i, dict)]
            if not items:
                break
            out.extend(items)

            meta = payload.get("meta") or {}
            current, last = meta.get("current_page"), meta.get("last_page")
            if isinstance(current, int) and isinstance(last, int):
                more = current < last
            else:
                more = len(items) == per_page

            if not more:
                break
            page += 1
            if page > max_pages:
                logger.warning("[%s] Reached page limit (%d) for %s", self.label, max_pages, path)
                break

        return out
