from __future__ import annotations

import logging
from dataclasses import dataclass

from robo_companion.core.programs import ProgramDescriptor, programs_by_family
from robo_companion.enums import ApiFamilyEnum
from robo_companion.upstream.base.adapter import UpstreamAdapter
from robo_companion.upstream.base.errors import UnknownProgramFamily

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoutingStatus:
    current_program: str | None
    current_family: ApiFamilyEnum | None
    last_cached_program: str | None
    cache_hits: int
    cache_misses: int
    cache_efficiency: str


class UpstreamServiceSelector:
    """
    Routes a program to the adapter of its upstream family.

    The last (program, adapter) pair is remembered so repeated selections for the same
    program skip classification. No network calls are made here.
    """

    def __init__(
        self,
        *,
        robotevents: UpstreamAdapter,
        recf: UpstreamAdapter,
        current_program: ProgramDescriptor | None = None,
    ) -> None:
        self._adapters: dict[ApiFamilyEnum, UpstreamAdapter] = {
            ApiFamilyEnum.ROBOT_EVENTS: robotevents,
            ApiFamilyEnum.RECF_EVENTS: recf,
        }
        self._current_program: ProgramDescriptor | None = None
        self._last_program: ProgramDescriptor | None = None
        self._last_adapter: UpstreamAdapter | None = None
        self.cache_hits = 0
        self.cache_misses = 0

        if current_program is not None:
            self.set_current_program(current_program)

    @property
    def current_program(self) -> ProgramDescriptor | None:
        return self._current_program

    @staticmethod
    def _family(program: ProgramDescriptor) -> ApiFamilyEnum:
        try:
            return ApiFamilyEnum(program.family)
        except ValueError as e:
            raise UnknownProgramFamily(
                f"Program {program.name!r} has unknown family {program.family!r}"
            ) from e

    def _classify(self, program: ProgramDescriptor) -> UpstreamAdapter:
        return self._adapters[self._family(program)]

    def select(self, program: ProgramDescriptor | None = None) -> UpstreamAdapter:
        program = program or self._current_program
        if program is None:
            raise ValueError("No program given and no current program set")

        if self._last_adapter is not None and self._last_program == program:
            self.cache_hits += 1
            logger.debug("Routing cache hit for %s", program.name)
            return self._last_adapter

        adapter = self._classify(program)
        self._last_program = program
        self._last_adapter = adapter
        self.cache_misses += 1
        logger.debug("Routing %s -> %s", program.name, adapter.family)
        return adapter

    def set_current_program(self, program: ProgramDescriptor) -> None:
        """Record the current program and push it to both adapters as their default."""

        self._family(program)
        self._current_program = program
        for adapter in self._adapters.values():
            adapter.set_selected_program(program)
        logger.info("Current program set to %s", program.name)

    def adapters(self) -> list[UpstreamAdapter]:
        return list(self._adapters.values())

    def cache_efficiency(self) -> str:
        total = self.cache_hits + self.cache_misses
        if total == 0:
            return "N/A"
        return f"{self.cache_hits / total * 100:.1f}%"

    def routing_status(self) -> RoutingStatus:
        family = None
        if self._current_program is not None:
            family = self._family(self._current_program)
        return RoutingStatus(
            current_program=self._current_program.name if self._current_program else None,
            current_family=family,
            last_cached_program=self._last_program.name if self._last_program else None,
            cache_hits=self.cache_hits,
            cache_misses=self.cache_misses,
            cache_efficiency=self.cache_efficiency(),
        )

    @staticmethod
    def supported_programs(*, include_dev_only: bool = True) -> dict[ApiFamilyEnum, list[str]]:
        return programs_by_family(include_dev_only=include_dev_only)

    def clear_caches(self) -> None:
        for adapter in self._adapters.values():
            adapter.clear_cache()
        logger.info("Cleared adapter caches")

    async def aclose(self) -> None:
        for adapter in self._adapters.values():
            await adapter.aclose()
