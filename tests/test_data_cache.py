from __future__ import annotations

from datetime import UTC, datetime

import pytest

from robo_companion.core.programs import ProgramDescriptor, get_program
from robo_companion.enums import ApiFamilyEnum
from robo_companion.models.api import Award, Event, IdInfo, Season, SkillRecord, SkillScores, SkillTeam
from robo_companion.services.data_cache import DataCache
from robo_companion.services.selector import UpstreamServiceSelector
from robo_companion.upstream.base.errors import ProviderRequestError
from robo_companion.upstream.base.types import SeasonFilter


class FakeAdapter:
    def __init__(self, family: ApiFamilyEnum) -> None:
        self.family = family
        self.skills_calls: list[tuple[int, str]] = []
        self.season_filters: list[SeasonFilter | None] = []
        self.failing_grades: set[str] = set()
        self.team_event_calls: list[int] = []

    def set_selected_program(self, program: ProgramDescriptor) -> None:
        pass

    def clear_cache(self) -> None:
        pass

    async def aclose(self) -> None:
        pass

    async def get_seasons(self, filter: SeasonFilter | None = None) -> list[Season]:
        self.season_filters.append(filter)
        return [Season(id=190, name="High Stakes")]

    async def get_current_season_id(self, program: ProgramDescriptor | None = None) -> int:
        return 190

    async def get_world_skills_rankings(self, season_id: int, grade: str) -> list[SkillRecord]:
        self.skills_calls.append((season_id, grade))
        if grade in self.failing_grades:
            raise ProviderRequestError("boom")
        return [SkillRecord(rank=1, team=SkillTeam(id=1, number="1A"), scores=SkillScores(score=10))]

    async def get_team_events(self, team_id: int, filter=None) -> list[Event]:
        self.team_event_calls.append(team_id)
        base = 100 if self.family is ApiFamilyEnum.RECF_EVENTS else 0

        def ev(eid: int, month: int) -> Event:
            return Event(
                id=eid,
                sku=f"RE-{eid}",
                name=f"Event {eid}",
                start=datetime(2025, month, 1, tzinfo=UTC),
                end=datetime(2025, month, 2, tzinfo=UTC),
                program=IdInfo(id=1),
            )

        return [ev(base + 1, 1), ev(base + 2, 3), ev(base + 3, 2)]

    async def get_team_awards(self, team_id: int, filter=None) -> list[Award]:
        return [Award(id=9, title="Excellence Award")]


def _cache() -> tuple[DataCache, FakeAdapter, FakeAdapter]:
    re_adapter = FakeAdapter(ApiFamilyEnum.ROBOT_EVENTS)
    recf_adapter = FakeAdapter(ApiFamilyEnum.RECF_EVENTS)
    selector = UpstreamServiceSelector(
        robotevents=re_adapter, recf=recf_adapter, current_program=get_program("V5RC")
    )
    return DataCache(selector), re_adapter, recf_adapter


@pytest.mark.asyncio
async def test_team_events_are_sorted_newest_first() -> None:
    cache, _, _ = _cache()
    events = await cache.get_team_events(229)
    assert [e.id for e in events] == [2, 3, 1]
    assert cache.team_events.get((1, 229)) == events


@pytest.mark.asyncio
async def test_team_events_are_cached_per_program() -> None:
    cache, re_adapter, recf_adapter = _cache()

    robotevents_events = await cache.get_team_events(229)
    cache.selector.set_current_program(get_program("ADC"))
    recf_events = await cache.get_team_events(229)

    assert [e.id for e in robotevents_events] == [2, 3, 1]
    assert [e.id for e in recf_events] == [102, 103, 101]
    assert re_adapter.team_event_calls == [229]
    assert recf_adapter.team_event_calls == [229]

    cache.clear_for_program(44)
    assert cache.team_events.get((44, 229)) == []
    assert cache.team_events.get((1, 229)) == robotevents_events


@pytest.mark.asyncio
async def test_seasons_route_through_program_family() -> None:
    cache, re_adapter, recf_adapter = _cache()

    await cache.get_seasons(44)
    assert recf_adapter.season_filters == [SeasonFilter(program=[44])]
    assert re_adapter.season_filters == []


@pytest.mark.asyncio
async def test_world_skills_are_fetched_once_per_key() -> None:
    cache, re_adapter, _ = _cache()

    await cache.get_world_skills(190, 1, "High School")
    await cache.get_world_skills(190, 1, "High School")
    await cache.get_world_skills(190, 1, "Middle School")
    assert re_adapter.skills_calls == [(190, "High School"), (190, "Middle School")]


@pytest.mark.asyncio
async def test_clear_for_program_and_season_are_targeted() -> None:
    cache, _, _ = _cache()

    await cache.get_seasons(1)
    await cache.get_seasons(41)
    await cache.get_world_skills(190, 1, "High School")
    await cache.get_world_skills(190, 41, "Middle School")
    await cache.get_world_skills(181, 41, "Middle School")
    await cache.get_team_awards(229)

    cache.clear_for_program(1)
    assert cache.seasons.get((1,)) == []
    assert cache.seasons.get((41,)) != []
    assert cache.world_skills.get((190, 1, "High School")) == []
    assert cache.world_skills.get((190, 41, "Middle School")) != []

    cache.clear_for_season(190)
    assert cache.world_skills.get((190, 41, "Middle School")) == []
    assert cache.world_skills.get((181, 41, "Middle School")) != []

    cache.clear()
    assert cache.team_awards.get((1, 229)) == []


@pytest.mark.asyncio
async def test_preload_essential_logs_failures_without_raising() -> None:
    cache, re_adapter, _ = _cache()
    re_adapter.failing_grades = {"Middle School"}

    await cache.preload_essential(get_program("V5RC"))

    assert sorted(re_adapter.skills_calls) == [(190, "High School"), (190, "Middle School")]
    assert cache.world_skills.get((190, 1, "High School")) != []
    assert cache.world_skills.get((190, 1, "Middle School")) == []


@pytest.mark.asyncio
async def test_preload_essential_skips_programs_without_world_skills() -> None:
    cache, _, recf_adapter = _cache()
    await cache.preload_essential(get_program("ADC"))
    assert recf_adapter.skills_calls == []
