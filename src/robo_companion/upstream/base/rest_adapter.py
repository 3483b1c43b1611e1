from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from robo_companion.core.programs import ProgramDescriptor
from robo_companion.enums import ApiFamilyEnum
from robo_companion.models.api import Award, Event, Match, Ranking, Season, SkillRecord, Team

from .api_client import KeyedApiClient
from .errors import ProviderCapabilityError, ProviderError, ProviderNotFound
from .keys import FailureInfo, KeyStatus
from .types import (
    AwardFilter,
    EventFilter,
    EventTeamFilter,
    MatchFilter,
    QueryFilter,
    RankingFilter,
    SeasonFilter,
)

logger = logging.getLogger(__name__)


def _params(filter: QueryFilter | None) -> dict[str, Any]:
    return filter.to_params() if filter is not None else {}


@dataclass
class RestEventsAdapter:
    """
    Maps the REST resource layout shared by both upstream families
    (`/seasons`, `/events/{id}/...`, `/teams/{id}/...`) onto domain models.

    Subclasses set `family` and decide how world skills are served.
    """

    client: KeyedApiClient
    default_season_id: int
    team_cache_ttl_s: float = 24 * 60 * 60
    selected_program: ProgramDescriptor | None = None

    family: ApiFamilyEnum = field(init=False)

    _team_cache: dict[tuple[str, int | None], tuple[Team, float]] = field(
        default_factory=dict, repr=False
    )
    _monotonic: Callable[[], float] = field(default=time.monotonic, repr=False)

    def set_selected_program(self, program: ProgramDescriptor) -> None:
        if self.selected_program != program:
            logger.info("[%s] Selected program: %s", self.family.value, program.name)
        self.selected_program = program

    def _program_id(self, program: ProgramDescriptor | None = None) -> int | None:
        p = program or self.selected_program
        return p.id if p is not None else None

    # -----------------------------
    # Seasons
    # -----------------------------

    async def get_seasons(self, filter: SeasonFilter | None = None) -> list[Season]:
        params = _params(filter)
        if "program" not in params and (program_id := self._program_id()) is not None:
            params["program"] = [program_id]
        items = await self.client.get_data_items("seasons", params)
        return [Season.from_api(i) for i in items]

    async def get_current_season_id(self, program: ProgramDescriptor | None = None) -> int:
        params: dict[str, Any] = {"per_page": 1}
        if (program_id := self._program_id(program)) is not None:
            params["program"] = [program_id]

        try:
            items = await self.client.get_data_items("seasons", params)
        except ProviderError as e:
            logger.warning(
                "[%s] Season lookup failed (%s); using default season %d",
                self.family.value,
                e,
                self.default_season_id,
            )
            return self.default_season_id
        if not items:
            logger.warning(
                "[%s] No seasons returned; using default season %d",
                self.family.value,
                self.default_season_id,
            )
            return self.default_season_id
        return Season.from_api(items[0]).id

    # -----------------------------
    # Events
    # -----------------------------

    async def get_event_by_id(self, event_id: int) -> Event | None:
        try:
            item = await self.client.get_object(f"events/{event_id}")
        except ProviderNotFound:
            return None
        return Event.from_api(item)

    async def get_event_teams(
        self, event_id: int, filter: EventTeamFilter | None = None
    ) -> list[Team]:
        items = await self.client.get_data_items(f"events/{event_id}/teams", _params(filter))
        return [Team.from_api(i) for i in items]

    async def get_event_awards(
        self, event_id: int, filter: AwardFilter | None = None
    ) -> list[Award]:
        items = await self.client.get_data_items(f"events/{event_id}/awards", _params(filter))
        return [Award.from_api(i) for i in items]

    async def get_event_division_rankings(
        self, event_id: int, division_id: int, filter: RankingFilter | None = None
    ) -> list[Ranking]:
        items = await self.client.get_all_pages(
            f"events/{event_id}/divisions/{division_id}/rankings", _params(filter)
        )
        return [Ranking.from_api(i) for i in items]

    async def get_event_division_matches(
        self, event_id: int, division_id: int, filter: MatchFilter | None = None
    ) -> list[Match]:
        items = await self.client.get_data_items(
            f"events/{event_id}/divisions/{division_id}/matches", _params(filter)
        )
        return [Match.from_api(i) for i in items]

    # -----------------------------
    # Teams
    # -----------------------------

    async def get_team_by_number(
        self, number: str, program: ProgramDescriptor | None = None
    ) -> Team | None:
        """Resolve a team number, preferring an exact match; results are cached for the TTL."""

        program_id = self._program_id(program)
        cache_key = (number.strip().upper(), program_id)
        now = float(self._monotonic())

        cached = self._team_cache.get(cache_key)
        if cached is not None and cached[1] > now:
            logger.debug("[%s] Team cache hit for %s", self.family.value, number)
            return cached[0]

        params: dict[str, Any] = {"number": [number.strip()]}
        if program_id is not None:
            params["program"] = [program_id]
        items = await self.client.get_data_items("teams", params)
        if not items:
            return None

        teams = [Team.from_api(i) for i in items]
        team = next((t for t in teams if t.number.upper() == cache_key[0]), teams[0])
        self._team_cache[cache_key] = (team, now + self.team_cache_ttl_s)
        return team

    async def get_team_events(
        self, team_id: int, filter: EventFilter | None = None
    ) -> list[Event]:
        items = await self.client.get_data_items(f"teams/{team_id}/events", _params(filter))
        return [Event.from_api(i) for i in items]

    async def get_team_matches(
        self, team_id: int, filter: MatchFilter | None = None
    ) -> list[Match]:
        items = await self.client.get_data_items(f"teams/{team_id}/matches", _params(filter))
        return [Match.from_api(i) for i in items]

    async def get_team_rankings(
        self, team_id: int, filter: RankingFilter | None = None
    ) -> list[Ranking]:
        items = await self.client.get_data_items(f"teams/{team_id}/rankings", _params(filter))
        return [Ranking.from_api(i) for i in items]

    async def get_team_awards(
        self, team_id: int, filter: AwardFilter | None = None
    ) -> list[Award]:
        items = await self.client.get_data_items(f"teams/{team_id}/awards", _params(filter))
        return [Award.from_api(i) for i in items]

    async def get_world_skills_rankings(self, season_id: int, grade: str) -> list[SkillRecord]:
        raise ProviderCapabilityError(
            f"{self.family.value} does not provide world skills rankings"
        )

    # -----------------------------
    # Failure state / diagnostics
    # -----------------------------

    def is_in_failure_state(self) -> bool:
        return self.client.failure.in_failure

    def get_failure_info(self) -> FailureInfo:
        return self.client.failure.info()

    def mark_notification_shown(self) -> None:
        self.client.failure.mark_notification_shown()

    def reset_failure_state(self) -> None:
        self.client.failure.reset()
        self.client.pool.reset()
        if self.client.fallback_pool is not None:
            self.client.fallback_pool.reset()

    def key_status(self) -> KeyStatus:
        return self.client.key_status()

    def clear_cache(self) -> None:
        self._team_cache.clear()

    async def aclose(self) -> None:
        await self.client.aclose()
