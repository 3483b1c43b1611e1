from __future__ import annotations

import httpx

from robo_companion.core.config import Settings
from robo_companion.upstream.base.api_client import KeyedApiClient
from robo_companion.upstream.base.client import BaseHttpClient
from robo_companion.upstream.base.keys import ApiKeyPool, RequestPacer
from robo_companion.upstream.recf.adapter import RecfEventsAdapter


def build_recf_adapter(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RecfEventsAdapter:
    client = KeyedApiClient(
        http=BaseHttpClient(base_url=settings.recf_base_url, transport=transport),
        pool=ApiKeyPool(
            name="recf",
            keys=settings.recf_key_list(),
            calls_before_rotation=settings.calls_before_rotation,
            reset_after_s=settings.key_reset_s,
            max_failed_cycles=settings.max_cycles_before_fallback,
        ),
        pacer=RequestPacer(min_interval_s=settings.request_delay_s),
        max_rate_limit_retries=settings.max_rate_limit_retries,
        default_retry_after_s=settings.default_retry_after_s,
        label="RECFEvents",
    )
    return RecfEventsAdapter(
        client=client,
        default_season_id=settings.recf_default_season_id,
        team_cache_ttl_s=settings.team_cache_ttl_s,
    )
