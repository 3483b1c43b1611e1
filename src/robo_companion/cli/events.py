from __future__ import annotations

import asyncio

import typer

from robo_companion.cli.common import resolve_program, selector_scope
from robo_companion.core.config import settings
from robo_companion.enums import ApiFamilyEnum
from robo_companion.models.api import Event
from robo_companion.services.league_sessions import event_status, expand_league_event
from robo_companion.services.live_event import (
    LiveResolution,
    TeamLiveEventService,
    alliance_color_for,
    next_unplayed_match,
    source_event_id,
)
from robo_companion.upstream.base.types import MatchFilter

app = typer.Typer(help="Event lookups against the live upstream services.")


@app.command("live-event")
def live_event_cmd(
    team_number: str = typer.Argument(..., help="Team number (e.g. 229V)."),
    program: str = typer.Option(None, "--program", help="Program name, short name or id."),
    override_event_id: int = typer.Option(
        None, "--override-event-id", help="Force this event id (developer mode)."
    ),
) -> None:
    """Decide which event a team is competing at right now."""

    descriptor = resolve_program(program)
    if descriptor.family == ApiFamilyEnum.ROBOT_EVENTS:
        settings.require_robotevents_keys()
    run_settings = settings
    if override_event_id is not None:
        run_settings = settings.model_copy(
            update={"developer_mode": True, "dev_live_event_id": override_event_id}
        )

    async def run() -> tuple[LiveResolution, str | None]:
        async with selector_scope(descriptor) as selector:
            adapter = selector.select()
            team = await adapter.get_team_by_number(team_number, descriptor)
            if team is None:
                raise typer.BadParameter(
                    f"Unknown team {team_number!r} for {descriptor.short_name}"
                )

            resolution = await TeamLiveEventService(selector, run_settings).find_live_event(team)
            if resolution.event is None:
                return resolution, None

            event_id = source_event_id(resolution.event)
            matches = await adapter.get_team_matches(team.id, MatchFilter(event=[event_id]))
            division_matches = []
            if matches and matches[0].division_id is not None:
                division_matches = await adapter.get_event_division_matches(
                    event_id, matches[0].division_id
                )
            nxt = next_unplayed_match(matches, division_matches)
            if nxt is None:
                return resolution, None
            color = alliance_color_for(nxt, team.id)
            return resolution, f"{nxt.name} ({color.value if color else 'unknown'})"

    resolution, next_match = asyncio.run(run())
    event = resolution.event
    typer.echo(f"outcome={resolution.outcome.value} reason={resolution.reason}")
    if event is not None:
        typer.echo(f"event={event.id} {event.name}")
    if next_match:
        typer.echo(f"next_match={next_match}")


def _describe(event: Event) -> str:
    start = event.start.isoformat() if event.start else "?"
    return f"{event.ui_key:<16} {start}  {event_status(event).value:<9} {event.name}"


@app.command("league-sessions")
def league_sessions_cmd(
    event_id: int = typer.Argument(..., help="Upstream event id."),
    program: str = typer.Option(None, "--program", help="Program name, short name or id."),
) -> None:
    """Show an event split into its league sessions."""

    descriptor = resolve_program(program)

    async def run() -> Event | None:
        async with selector_scope(descriptor) as selector:
            return await selector.select().get_event_by_id(event_id)

    event = asyncio.run(run())
    if event is None:
        typer.echo(f"Event {event_id} not found.", err=True)
        raise typer.Exit(code=1)

    for session in expand_league_event(event):
        typer.echo(_describe(session))
