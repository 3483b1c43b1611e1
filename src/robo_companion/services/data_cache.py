from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from robo_companion.core.programs import ProgramDescriptor, get_program
from robo_companion.enums import GradeEnum
from robo_companion.models.api import Award, Event, Season, SkillRecord
from robo_companion.services.cache import CacheKey, MultiKeyCache
from robo_companion.services.selector import UpstreamServiceSelector
from robo_companion.upstream.base.adapter import UpstreamAdapter
from robo_companion.upstream.base.types import SeasonFilter

logger = logging.getLogger(__name__)

ESSENTIAL_GRADES = (GradeEnum.HIGH_SCHOOL, GradeEnum.MIDDLE_SCHOOL)

_OLDEST = datetime.min.replace(tzinfo=UTC)


class DataCache:
    """
    Shared lookups keyed by their natural dimensions:

      seasons       (program_id,)
      world skills  (season_id, program_id, grade)
      team events   (program_id, team_id)   newest first
      team awards   (program_id, team_id)

    Team ids are only unique within one upstream, so team keys carry the program.
    """

    def __init__(self, selector: UpstreamServiceSelector) -> None:
        self.selector = selector
        self.seasons: MultiKeyCache[Season] = MultiKeyCache(self._fetch_seasons, name="seasons")
        self.world_skills: MultiKeyCache[SkillRecord] = MultiKeyCache(
            self._fetch_world_skills, name="world-skills"
        )
        self.team_events: MultiKeyCache[Event] = MultiKeyCache(
            self._fetch_team_events, name="team-events"
        )
        self.team_awards: MultiKeyCache[Award] = MultiKeyCache(
            self._fetch_team_awards, name="team-awards"
        )

    def _caches(self) -> tuple[MultiKeyCache, ...]:
        return (self.seasons, self.world_skills, self.team_events, self.team_awards)

    # -----------------------------
    # Fetchers
    # -----------------------------

    async def _fetch_seasons(self, key: CacheKey) -> list[Season]:
        (program_id,) = key
        program = get_program(int(program_id))
        adapter = self.selector.select(program)
        return await adapter.get_seasons(SeasonFilter(program=[program.id]))

    async def _fetch_world_skills(self, key: CacheKey) -> list[SkillRecord]:
        season_id, program_id, grade = key
        adapter = self.selector.select(get_program(int(program_id)))
        return await adapter.get_world_skills_rankings(int(season_id), str(grade))

    def _team_adapter(self, key: CacheKey) -> tuple[UpstreamAdapter, int]:
        program_id, team_id = key
        return self.selector.select(get_program(int(program_id))), int(team_id)

    async def _fetch_team_events(self, key: CacheKey) -> list[Event]:
        adapter, team_id = self._team_adapter(key)
        events = await adapter.get_team_events(team_id)
        return sorted(events, key=lambda e: e.start or _OLDEST, reverse=True)

    async def _fetch_team_awards(self, key: CacheKey) -> list[Award]:
        adapter, team_id = self._team_adapter(key)
        return await adapter.get_team_awards(team_id)

    # -----------------------------
    # Convenience accessors
    # -----------------------------

    async def get_seasons(self, program_id: int) -> list[Season]:
        return await self.seasons.preload((program_id,))

    async def get_world_skills(
        self, season_id: int, program_id: int, grade: GradeEnum | str
    ) -> list[SkillRecord]:
        return await self.world_skills.preload((season_id, program_id, str(GradeEnum(grade).value)))

    def _team_key(self, team_id: int, program_id: int | None) -> CacheKey:
        if program_id is None:
            program = self.selector.current_program
            if program is None:
                raise ValueError("No program given and no current program set")
            program_id = program.id
        return (program_id, team_id)

    async def get_team_events(self, team_id: int, program_id: int | None = None) -> list[Event]:
        return await self.team_events.preload(self._team_key(team_id, program_id))

    async def get_team_awards(self, team_id: int, program_id: int | None = None) -> list[Award]:
        return await self.team_awards.preload(self._team_key(team_id, program_id))

    # -----------------------------
    # Invalidation
    # -----------------------------

    def clear(self) -> None:
        for cache in self._caches():
            cache.clear()

    def clear_for_program(self, program_id: int) -> None:
        logger.info("Clearing cache for program %s", program_id)
        self.seasons.invalidate_where(lambda k: k[0] == program_id)
        self.world_skills.invalidate_where(lambda k: k[1] == program_id)
        self.team_events.invalidate_where(lambda k: k[0] == program_id)
        self.team_awards.invalidate_where(lambda k: k[0] == program_id)

    def clear_for_season(self, season_id: int) -> None:
        logger.info("Clearing cache for season %s", season_id)
        self.world_skills.invalidate_where(lambda k: k[0] == season_id)

    # -----------------------------
    # Warm-up
    # -----------------------------

    async def preload_essential(
        self, program: ProgramDescriptor, season_id: int | None = None
    ) -> None:
        """Warm world skills for the program's main grades. Errors are logged, not raised."""

        if not program.has_world_skills:
            return

        if season_id is None:
            try:
                season_id = await self.selector.select(program).get_current_season_id(program)
            except Exception as e:
                logger.error("Could not resolve current season for %s: %s", program.name, e)
                return

        grades = [g for g in ESSENTIAL_GRADES if g in program.grades] or sorted(program.grades)
        results = await asyncio.gather(
            *(self.get_world_skills(season_id, program.id, g) for g in grades),
            return_exceptions=True,
        )
        for grade, result in zip(grades, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "World skills preload failed for %s %s: %s",
                    program.short_name,
                    grade.value,
                    result,
                )
