from __future__ import annotations

from typing import Protocol, runtime_checkable

from robo_companion.core.programs import ProgramDescriptor
from robo_companion.enums import ApiFamilyEnum
from robo_companion.models.api import Award, Event, Match, Ranking, Season, SkillRecord, Team

from .keys import FailureInfo, KeyStatus
from .types import (
    AwardFilter,
    EventFilter,
    EventTeamFilter,
    MatchFilter,
    RankingFilter,
    SeasonFilter,
)


@runtime_checkable
class UpstreamAdapter(Protocol):
    """
    Consumers depend on this, not on any HTTP client.

    Both upstream families implement the same surface; an operation a family cannot
    serve raises ProviderCapabilityError. Network methods raise ProviderError subclasses
    on transport/auth failure.
    """

    family: ApiFamilyEnum

    def set_selected_program(self, program: ProgramDescriptor) -> None:
        """Default program used for filters when a call does not name one."""
        ...

    async def get_seasons(self, filter: SeasonFilter | None = None) -> list[Season]: ...

    async def get_current_season_id(self, program: ProgramDescriptor | None = None) -> int: ...

    async def get_event_by_id(self, event_id: int) -> Event | None: ...

    async def get_event_teams(
        self, event_id: int, filter: EventTeamFilter | None = None
    ) -> list[Team]: ...

    async def get_event_awards(
        self, event_id: int, filter: AwardFilter | None = None
    ) -> list[Award]: ...

    async def get_event_division_rankings(
        self, event_id: int, division_id: int, filter: RankingFilter | None = None
    ) -> list[Ranking]: ...

    async def get_event_division_matches(
        self, event_id: int, division_id: int, filter: MatchFilter | None = None
    ) -> list[Match]: ...

    async def get_team_by_number(
        self, number: str, program: ProgramDescriptor | None = None
    ) -> Team | None: ...

    async def get_team_events(
        self, team_id: int, filter: EventFilter | None = None
    ) -> list[Event]: ...

    async def get_team_matches(
        self, team_id: int, filter: MatchFilter | None = None
    ) -> list[Match]: ...

    async def get_team_rankings(
        self, team_id: int, filter: RankingFilter | None = None
    ) -> list[Ranking]: ...

    async def get_team_awards(
        self, team_id: int, filter: AwardFilter | None = None
    ) -> list[Award]: ...

    async def get_world_skills_rankings(self, season_id: int, grade: str) -> list[SkillRecord]: ...

    def is_in_failure_state(self) -> bool: ...

    def get_failure_info(self) -> FailureInfo: ...

    def mark_notification_shown(self) -> None: ...

    def reset_failure_state(self) -> None: ...

    def key_status(self) -> KeyStatus: ...

    def clear_cache(self) -> None: ...

    async def aclose(self) -> None: ...
