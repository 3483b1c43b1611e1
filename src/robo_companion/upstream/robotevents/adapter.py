from __future__ import annotations

import logging
from dataclasses import dataclass, field

from robo_companion.enums import ApiFamilyEnum
from robo_companion.models.api import SkillRecord
from robo_companion.upstream.base.errors import ProviderMappingError
from robo_companion.upstream.base.rest_adapter import RestEventsAdapter

logger = logging.getLogger(__name__)


@dataclass
class RobotEventsAdapter(RestEventsAdapter):
    """RobotEvents v2 plus the unauthenticated season-wide skills standings."""

    world_skills_url: str = "https://www.robotevents.com/api"

    family: ApiFamilyEnum = field(default=ApiFamilyEnum.ROBOT_EVENTS, init=False)

    async def get_world_skills_rankings(self, season_id: int, grade: str) -> list[SkillRecord]:
        url = f"{self.world_skills_url.rstrip('/')}/seasons/{season_id}/skills"
        logger.debug("Getting world skills for season=%s grade=%s", season_id, grade)

        data = await self.client.get(url, {"grade_level": grade}, authenticated=False)
        if not isinstance(data, list):
            raise ProviderMappingError(
                "Expected world skills list", context={"type": type(data).__name__}
            )

        return [
            SkillRecord.from_api(item, index=i)
            for i, item in enumerate(data)
            if isinstance(item, dict)
        ]
