from __future__ import annotations

import asyncio

import typer

from robo_companion.cli.common import resolve_program, selector_scope
from robo_companion.enums import GradeEnum
from robo_companion.models.api import SkillRecord
from robo_companion.services.data_cache import DataCache

app = typer.Typer(help="Season-wide skills standings.")


@app.command("world-skills")
def world_skills_cmd(
    program: str = typer.Option(None, "--program", help="Program name, short name or id."),
    grade: GradeEnum = typer.Option(GradeEnum.HIGH_SCHOOL, "--grade", help="Grade level."),
    season_id: int = typer.Option(None, "--season-id", help="Season id (defaults to current)."),
    top: int = typer.Option(10, "--top", min=1, help="Rows to print."),
) -> None:
    """Load world skills through the data cache and print the top rows."""

    descriptor = resolve_program(program)
    if not descriptor.has_world_skills:
        typer.echo(f"{descriptor.short_name} has no world skills standings.", err=True)
        raise typer.Exit(code=1)

    async def run() -> list[SkillRecord]:
        async with selector_scope(descriptor) as selector:
            sid = season_id
            if sid is None:
                sid = await selector.select().get_current_season_id(descriptor)
            cache = DataCache(selector)
            return await cache.get_world_skills(sid, descriptor.id, grade)

    rows = asyncio.run(run())
    for r in rows[:top]:
        typer.echo(
            f"{r.rank:>4}  {r.team.number:<8} {r.scores.score:>4} "
            f"(prog {r.scores.programming}, driver {r.scores.driver})  {r.team.name}"
        )
