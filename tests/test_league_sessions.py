from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta

from robo_companion.core.dates import local_datetime
from robo_companion.enums import EventStatusEnum
from robo_companion.models.api import Event, IdInfo, LeagueSession, Location
from robo_companion.services.league_sessions import (
    collapse_for_favorites,
    event_status,
    expand_league_event,
    is_league_event,
)


def _league_event() -> Event:
    return Event(
        id=55123,
        sku="RE-V5RC-24-5512",
        name="Northside Winter League",
        start=datetime(2025, 1, 10, tzinfo=UTC),
        end=datetime(2025, 3, 1, tzinfo=UTC),
        program=IdInfo(id=1, name="VEX V5 Robotics Competition", code=None),
        locations={
            "2025-02-14": Location(city="B"),
            "2025-01-10": Location(city="A"),
            "2025-03-01": Location(city="C"),
        },
    )


def test_expand_three_date_league_event() -> None:
    sessions = expand_league_event(_league_event())

    assert len(sessions) == 3
    assert all(isinstance(s, LeagueSession) for s in sessions)
    assert [s.name for s in sessions] == [
        "Northside Winter League - Session 1",
        "Northside Winter League - Session 2",
        "Northside Winter League - Session 3",
    ]
    assert [s.location.city for s in sessions] == ["A", "B", "C"]
    assert [s.session_number for s in sessions] == [1, 2, 3]
    assert {s.total_sessions for s in sessions} == {3}
    assert [s.ui_key for s in sessions] == [
        "55123-session-1",
        "55123-session-2",
        "55123-session-3",
    ]

    first = sessions[0]
    assert first.original_event_id == 55123
    assert first.original_sku == "RE-V5RC-24-5512"
    assert first.start == local_datetime(date(2025, 1, 10), time(9, 0))
    assert first.end == local_datetime(date(2025, 1, 10), time(17, 0))
    assert first.program.code == "UNKNOWN"


def test_collapse_session_back_to_parent_event() -> None:
    session = expand_league_event(_league_event())[1]
    parent = collapse_for_favorites(session)

    assert not isinstance(parent, LeagueSession)
    assert parent.id == 55123
    assert parent.sku == "RE-V5RC-24-5512"
    assert parent.name == "Northside Winter League"
    assert not parent.is_league_session


def test_collapsed_session_keeps_parent_dates_and_expands_again() -> None:
    original = _league_event()
    parent = collapse_for_favorites(expand_league_event(original)[1])

    assert parent.locations == original.locations
    assert parent.start == original.start
    assert parent.end == original.end
    assert is_league_event(parent)

    again = expand_league_event(parent)
    assert len(again) == 3
    assert [s.ui_key for s in again] == [s.ui_key for s in expand_league_event(original)]


def test_single_location_event_is_not_split() -> None:
    event = Event(
        id=7,
        sku="RE-VIQRC-24-0007",
        name="Spring Signature Event",
        start=datetime(2025, 4, 5, tzinfo=UTC),
        end=datetime(2025, 4, 6, tzinfo=UTC),
        program=IdInfo(id=41, name="VEX IQ Robotics Competition"),
        locations={"2025-04-05": Location(city="X")},
    )
    assert not is_league_event(event)

    out = expand_league_event(event)
    assert len(out) == 1
    assert out[0].id == 7
    assert out[0].name == "Spring Signature Event"
    assert out[0].program.code == "UNKNOWN"
    assert collapse_for_favorites(out[0]) is out[0]


def test_event_status_rules() -> None:
    now = datetime(2025, 2, 14, 12, 0).astimezone()

    cancelled = Event(
        id=1, sku="s", name="Qualifier (CANCELLED)", start=now, end=now, program=IdInfo(id=1)
    )
    assert event_status(cancelled, now) is EventStatusEnum.CANCELLED

    running = Event(
        id=2,
        sku="s",
        name="Two Day Tournament",
        start=now - timedelta(hours=5),
        end=now + timedelta(days=1),
        program=IdInfo(id=1),
    )
    assert event_status(running, now) is EventStatusEnum.LIVE
    assert event_status(running, now + timedelta(days=3)) is EventStatusEnum.COMPLETED
    assert event_status(running, now - timedelta(days=1)) is EventStatusEnum.UPCOMING

    sessions = expand_league_event(_league_event())
    assert event_status(sessions[1], now) is EventStatusEnum.LIVE
    assert event_status(sessions[0], now) is EventStatusEnum.COMPLETED
    assert event_status(sessions[2], now) is EventStatusEnum.UPCOMING
