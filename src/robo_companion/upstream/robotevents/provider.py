from __future__ import annotations

import httpx

from robo_companion.core.config import Settings
from robo_companion.upstream.base.api_client import KeyedApiClient
from robo_companion.upstream.base.client import BaseHttpClient
from robo_companion.upstream.base.keys import ApiKeyPool, RequestPacer
from robo_companion.upstream.robotevents.adapter import RobotEventsAdapter


def build_robotevents_adapter(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RobotEventsAdapter:
    def make_pool(name: str, keys: list[str]) -> ApiKeyPool:
        return ApiKeyPool(
            name=name,
            keys=keys,
            calls_before_rotation=settings.calls_before_rotation,
            reset_after_s=settings.key_reset_s,
            max_failed_cycles=settings.max_cycles_before_fallback,
        )

    client = KeyedApiClient(
        http=BaseHttpClient(base_url=settings.robotevents_base_url, transport=transport),
        pool=make_pool("general", settings.robotevents_key_list()),
        # Team-browser keys back up the general pool once it is exhausted.
        fallback_pool=make_pool("team-browser", settings.robotevents_team_browser_key_list()),
        pacer=RequestPacer(min_interval_s=settings.request_delay_s),
        max_rate_limit_retries=settings.max_rate_limit_retries,
        default_retry_after_s=settings.default_retry_after_s,
        label="RobotEvents",
    )
    return RobotEventsAdapter(
        client=client,
        default_season_id=settings.default_season_id,
        team_cache_ttl_s=settings.team_cache_ttl_s,
        world_skills_url=settings.robotevents_world_skills_url,
    )
