from __future__ import annotations

import asyncio

import typer

from robo_companion.cli.common import resolve_program, selector_scope
from robo_companion.core.programs import PROGRAMS
from robo_companion.services.selector import RoutingStatus

app = typer.Typer(help="Competition programs and upstream routing.")


@app.command("list")
def list_programs_cmd(
    include_dev_only: bool = typer.Option(
        False, "--include-dev-only", help="Also show developer-only programs."
    ),
) -> None:
    """List known programs and the upstream family serving each."""

    for p in PROGRAMS:
        if p.dev_only and not include_dev_only:
            continue
        flags = []
        if p.limited_mode:
            flags.append("limited")
        if p.dev_only:
            flags.append("dev-only")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        typer.echo(f"{p.id:>3}  {p.short_name:<6} {p.family:<12} {p.name}{suffix}")


@app.command("routing-status")
def routing_status_cmd(
    program: str = typer.Option(None, "--program", help="Program name, short name or id."),
    repeat: int = typer.Option(1, "--repeat", min=1, help="Number of selections to perform."),
) -> None:
    """Select the adapter for a program and print the routing counters (no network calls)."""

    descriptor = resolve_program(program)

    async def run() -> RoutingStatus:
        async with selector_scope(descriptor) as selector:
            for _ in range(repeat):
                selector.select(descriptor)
            return selector.routing_status()

    status = asyncio.run(run())
    typer.echo(
        " ".join(
            [
                f"program={status.current_program}",
                f"family={status.current_family}",
                f"hits={status.cache_hits}",
                f"misses={status.cache_misses}",
                f"efficiency={status.cache_efficiency}",
            ]
        )
    )
