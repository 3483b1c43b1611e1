from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import typer

from robo_companion.core.config import settings
from robo_companion.core.logging import configure_logging
from robo_companion.core.programs import ProgramDescriptor, UnknownProgram, get_program
from robo_companion.services.selector import UpstreamServiceSelector
from robo_companion.upstream.recf.provider import build_recf_adapter
from robo_companion.upstream.robotevents.provider import build_robotevents_adapter


def resolve_program(value: str | None) -> ProgramDescriptor:
    try:
        return get_program(value or settings.default_program)
    except UnknownProgram as e:
        raise typer.BadParameter(str(e)) from e


@asynccontextmanager
async def selector_scope(program: ProgramDescriptor) -> AsyncIterator[UpstreamServiceSelector]:
    """
    Selector wired to both upstream families for one CLI command.
    Ensures both adapters' HTTP clients are closed.
    """
    configure_logging(settings.log_level)
    selector = UpstreamServiceSelector(
        robotevents=build_robotevents_adapter(settings),
        recf=build_recf_adapter(settings),
        current_program=program,
    )
    try:
        yield selector
    finally:
        await selector.aclose()
