from __future__ import annotations

import typer

from robo_companion.cli.events import app as events_app
from robo_companion.cli.programs import app as programs_app
from robo_companion.cli.skills import app as skills_app

app = typer.Typer(no_args_is_help=True)
app.add_typer(programs_app, name="programs")
app.add_typer(events_app, name="events")
app.add_typer(skills_app, name="skills")
