from __future__ import annotations

from dataclasses import fields, replace
from datetime import datetime, time

from robo_companion.core.dates import local_date, local_datetime, parse_session_date
from robo_companion.core.text import looks_cancelled, session_name, strip_session_suffix
from robo_companion.enums import EventStatusEnum
from robo_companion.models.api import Event, IdInfo, LeagueSession

SESSION_START = time(9, 0)
SESSION_END = time(17, 0)

_EVENT_FIELDS = tuple(f.name for f in fields(Event))


def is_league_event(event: Event) -> bool:
    return len(event.locations) > 1


def _normalized_program(program: IdInfo) -> IdInfo:
    if program.code:
        return program
    return replace(program, code="UNKNOWN")


def _as_plain_event(event: Event, **changes: object) -> Event:
    values = {name: getattr(event, name) for name in _EVENT_FIELDS}
    values.update(changes)
    return Event(**values)


def expand_league_event(event: Event) -> list[Event]:
    """
    Split a multi-date league event into one pseudo-event per date.

    Sessions are numbered by ascending date from 1 and run 09:00-17:00 local time.
    Events with zero or one location come back as a single normalized event.
    """

    program = _normalized_program(event.program)
    if not is_league_event(event):
        return [replace(event, program=program)]

    dates = sorted(event.locations)
    total = len(dates)
    base = {name: getattr(event, name) for name in _EVENT_FIELDS}

    sessions: list[Event] = []
    for i, day_str in enumerate(dates, start=1):
        day = parse_session_date(day_str)
        sessions.append(
            LeagueSession(
                **{
                    **base,
                    "name": session_name(event.name, i),
                    "start": local_datetime(day, SESSION_START),
                    "end": local_datetime(day, SESSION_END),
                    "location": event.locations[day_str],
                    "locations": {day_str: event.locations[day_str]},
                    "program": program,
                },
                original_event_id=event.id,
                original_sku=event.sku,
                original_start=event.start,
                original_end=event.end,
                original_location=event.location,
                original_locations=dict(event.locations),
                session_number=i,
                total_sessions=total,
                ui_id=f"{event.id}-session-{i}",
            )
        )
    return sessions


def collapse_for_favorites(event: Event) -> Event:
    """A league session becomes its parent event again; anything else is returned unchanged."""

    if not isinstance(event, LeagueSession):
        return event
    return _as_plain_event(
        event,
        id=event.original_event_id,
        sku=event.original_sku,
        name=strip_session_suffix(event.name),
        start=event.original_start,
        end=event.original_end,
        location=event.original_location,
        locations=dict(event.original_locations),
    )


def event_status(event: Event, now: datetime | None = None) -> EventStatusEnum:
    if looks_cancelled(event.name):
        return EventStatusEnum.CANCELLED

    now = now or datetime.now().astimezone()

    if event.start is None:
        return EventStatusEnum.UPCOMING

    if event.is_league_session:
        if local_date(now) == local_date(event.start):
            return EventStatusEnum.LIVE
        return EventStatusEnum.UPCOMING if now < event.start else EventStatusEnum.COMPLETED

    end = event.end or event.start
    if now < event.start:
        return EventStatusEnum.UPCOMING
    if now <= end:
        return EventStatusEnum.LIVE
    return EventStatusEnum.COMPLETED
