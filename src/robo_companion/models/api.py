from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from robo_companion.core.dates import parse_api_datetime

ApiItem = Mapping[str, Any]


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _opt_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _str(value: Any) -> str:
    return "" if value is None else str(value)


def _mapping(value: Any) -> ApiItem:
    return value if isinstance(value, Mapping) else {}


@dataclass(frozen=True)
class IdInfo:
    id: int
    name: str = ""
    code: str | None = None

    @classmethod
    def from_api(cls, item: Any) -> IdInfo | None:
        if not isinstance(item, Mapping):
            return None
        return cls(id=_int(item.get("id")), name=_str(item.get("name")), code=item.get("code"))


@dataclass(frozen=True)
class Location:
    city: str = ""
    region: str = ""
    country: str = ""
    venue: str | None = None
    address_1: str | None = None
    postcode: str | None = None
    lat: float | None = None
    lon: float | None = None

    @classmethod
    def from_api(cls, item: Any) -> Location | None:
        if not isinstance(item, Mapping):
            return None
        coords = _mapping(item.get("coordinates"))
        return cls(
            city=_str(item.get("city")),
            region=_str(item.get("region")),
            country=_str(item.get("country")),
            venue=item.get("venue"),
            address_1=item.get("address_1"),
            postcode=item.get("postcode"),
            lat=coords.get("lat"),
            lon=coords.get("lon"),
        )


@dataclass(frozen=True)
class Division:
    id: int
    name: str = ""
    order: int = 0

    @classmethod
    def from_api(cls, item: ApiItem) -> Division:
        return cls(
            id=_int(item.get("id")), name=_str(item.get("name")), order=_int(item.get("order"))
        )


@dataclass(frozen=True)
class Season:
    id: int
    name: str
    program: IdInfo | None = None
    start: datetime | None = None
    end: datetime | None = None
    years_start: int | None = None
    years_end: int | None = None

    @classmethod
    def from_api(cls, item: ApiItem) -> Season:
        return cls(
            id=_int(item.get("id")),
            name=_str(item.get("name")),
            program=IdInfo.from_api(item.get("program")),
            start=parse_api_datetime(item.get("start")),
            end=parse_api_datetime(item.get("end")),
            years_start=_opt_int(item.get("years_start")),
            years_end=_opt_int(item.get("years_end")),
        )


@dataclass(frozen=True)
class Event:
    id: int
    sku: str
    name: str
    start: datetime | None
    end: datetime | None
    program: IdInfo
    season: IdInfo | None = None
    location: Location | None = None
    # date string ("YYYY-MM-DD") -> location; more than one entry means a league event
    locations: dict[str, Location] = field(default_factory=dict)
    divisions: tuple[Division, ...] = ()
    level: str | None = None
    event_type: str | None = None
    ongoing: bool = False

    @property
    def ui_key(self) -> str:
        return str(self.id)

    @property
    def is_league_session(self) -> bool:
        return False

    @classmethod
    def from_api(cls, item: ApiItem) -> Event:
        raw_locations = _mapping(item.get("locations"))
        locations: dict[str, Location] = {}
        for day, loc in raw_locations.items():
            parsed = Location.from_api(loc)
            locations[str(day)] = parsed if parsed is not None else Location()

        return cls(
            id=_int(item.get("id")),
            sku=_str(item.get("sku")),
            name=_str(item.get("name")),
            start=parse_api_datetime(item.get("start")),
            end=parse_api_datetime(item.get("end")),
            program=IdInfo.from_api(item.get("program")) or IdInfo(id=0),
            season=IdInfo.from_api(item.get("season")),
            location=Location.from_api(item.get("location")),
            locations=locations,
            divisions=tuple(
                Division.from_api(d) for d in item.get("divisions") or [] if isinstance(d, Mapping)
            ),
            level=item.get("level"),
            event_type=item.get("event_type"),
            ongoing=bool(item.get("ongoing", False)),
        )


@dataclass(frozen=True)
class LeagueSession(Event):
    """One calendar day of a multi-date league event. Never persisted."""

    original_event_id: int = 0
    original_sku: str = ""
    # parent values restored by collapse_for_favorites
    original_start: datetime | None = None
    original_end: datetime | None = None
    original_location: Location | None = None
    original_locations: dict[str, Location] = field(default_factory=dict)
    session_number: int = 1
    total_sessions: int = 1
    ui_id: str = ""

    @property
    def ui_key(self) -> str:
        return self.ui_id

    @property
    def is_league_session(self) -> bool:
        return True


@dataclass(frozen=True)
class Team:
    id: int
    number: str
    team_name: str = ""
    organization: str | None = None
    robot_name: str | None = None
    location: Location | None = None
    program: IdInfo | None = None
    grade: str | None = None
    registered: bool = True

    @classmethod
    def from_api(cls, item: ApiItem) -> Team:
        return cls(
            id=_int(item.get("id")),
            number=_str(item.get("number")),
            team_name=_str(item.get("team_name")),
            organization=item.get("organization"),
            robot_name=item.get("robot_name"),
            location=Location.from_api(item.get("location")),
            program=IdInfo.from_api(item.get("program")),
            grade=item.get("grade"),
            registered=bool(item.get("registered", True)),
        )


@dataclass(frozen=True)
class AllianceTeam:
    team: IdInfo
    sitting: bool = False


@dataclass(frozen=True)
class Alliance:
    color: str
    score: int | None
    teams: tuple[AllianceTeam, ...] = ()

    @classmethod
    def from_api(cls, item: ApiItem) -> Alliance:
        teams: list[AllianceTeam] = []
        for t in item.get("teams") or []:
            if not isinstance(t, Mapping):
                continue
            info = IdInfo.from_api(t.get("team"))
            if info is not None:
                teams.append(AllianceTeam(team=info, sitting=bool(t.get("sitting", False))))
        return cls(
            color=_str(item.get("color")), score=_opt_int(item.get("score")), teams=tuple(teams)
        )

    def has_team(self, team_id: int) -> bool:
        return any(t.team.id == team_id for t in self.teams)


@dataclass(frozen=True)
class Match:
    id: int
    name: str
    division: IdInfo | None = None
    event: IdInfo | None = None
    round: int | None = None
    instance: int | None = None
    matchnum: int | None = None
    scheduled: datetime | None = None
    started: datetime | None = None
    scored: bool = False
    field_name: str | None = None
    alliances: tuple[Alliance, ...] = ()

    @classmethod
    def from_api(cls, item: ApiItem) -> Match:
        return cls(
            id=_int(item.get("id")),
            name=_str(item.get("name")),
            division=IdInfo.from_api(item.get("division")),
            event=IdInfo.from_api(item.get("event")),
            round=_opt_int(item.get("round")),
            instance=_opt_int(item.get("instance")),
            matchnum=_opt_int(item.get("matchnum")),
            scheduled=parse_api_datetime(item.get("scheduled")),
            started=parse_api_datetime(item.get("started")),
            scored=bool(item.get("scored", False)),
            field_name=item.get("field"),
            alliances=tuple(
                Alliance.from_api(a) for a in item.get("alliances") or [] if isinstance(a, Mapping)
            ),
        )

    @property
    def division_id(self) -> int | None:
        return self.division.id if self.division is not None else None

    def has_real_score(self) -> bool:
        """Some alliance has a positive score, or the scores are not uniformly zero/null."""

        if not self.alliances:
            return False
        if any((a.score or 0) > 0 for a in self.alliances):
            return True
        return not all(a.score in (0, None) for a in self.alliances)


@dataclass(frozen=True)
class Ranking:
    id: int
    rank: int
    team: IdInfo | None = None
    event: IdInfo | None = None
    division: IdInfo | None = None
    wins: int = 0
    losses: int = 0
    ties: int = 0
    wp: int = 0
    ap: int = 0
    sp: int = 0
    high_score: int | None = None
    average_points: float | None = None
    total_points: int | None = None

    @classmethod
    def from_api(cls, item: ApiItem) -> Ranking:
        avg = item.get("average_points")
        return cls(
            id=_int(item.get("id")),
            rank=_int(item.get("rank")),
            team=IdInfo.from_api(item.get("team")),
            event=IdInfo.from_api(item.get("event")),
            division=IdInfo.from_api(item.get("division")),
            wins=_int(item.get("wins")),
            losses=_int(item.get("losses")),
            ties=_int(item.get("ties")),
            wp=_int(item.get("wp")),
            ap=_int(item.get("ap")),
            sp=_int(item.get("sp")),
            high_score=_opt_int(item.get("high_score")),
            average_points=float(avg) if isinstance(avg, (int, float)) else None,
            total_points=_opt_int(item.get("total_points")),
        )


@dataclass(frozen=True)
class Award:
    id: int
    title: str
    event: IdInfo | None = None
    order: int = 0
    qualifications: tuple[str, ...] = ()
    team_winners: tuple[IdInfo, ...] = ()
    individual_winners: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, item: ApiItem) -> Award:
        winners: list[IdInfo] = []
        for w in item.get("teamWinners") or []:
            info = IdInfo.from_api(_mapping(w).get("team"))
            if info is not None:
                winners.append(info)
        return cls(
            id=_int(item.get("id")),
            title=_str(item.get("title")),
            event=IdInfo.from_api(item.get("event")),
            order=_int(item.get("order")),
            qualifications=tuple(str(q) for q in item.get("qualifications") or []),
            team_winners=tuple(winners),
            individual_winners=tuple(str(w) for w in item.get("individualWinners") or []),
        )


@dataclass(frozen=True)
class SkillTeam:
    id: int
    number: str
    name: str = ""
    organization: str = ""
    city: str = ""
    region: str = ""
    country: str = ""
    grade: str = ""


@dataclass(frozen=True)
class SkillScores:
    score: int = 0
    programming: int = 0
    driver: int = 0
    max_programming: int = 0
    max_driver: int = 0
    tier: str = ""


@dataclass(frozen=True)
class SkillRecord:
    """One row of the season-wide world skills standings."""

    rank: int
    team: SkillTeam
    scores: SkillScores
    event: IdInfo | None = None

    @property
    def id(self) -> str:
        return str(self.team.id)

    @classmethod
    def from_api(cls, item: ApiItem, *, index: int = 0) -> SkillRecord:
        team = _mapping(item.get("team"))
        loc = _mapping(team.get("location"))
        scores = _mapping(item.get("scores"))
        programming = _int(scores.get("programming"))
        driver = _int(scores.get("driver"))
        return cls(
            rank=_int(item.get("rank")),
            team=SkillTeam(
                id=_int(team.get("id"), default=index),
                number=_str(team.get("number") or team.get("team")),
                name=_str(team.get("name") or team.get("teamName")),
                organization=_str(team.get("organization")),
                city=_str(loc.get("city") or team.get("city")),
                region=_str(loc.get("region") or team.get("region")),
                country=_str(loc.get("country") or team.get("country")),
                grade=_str(team.get("grade") or team.get("gradeLevel")),
            ),
            scores=SkillScores(
                score=_int(scores.get("score")),
                programming=programming,
                driver=driver,
                max_programming=_int(scores.get("maxProgramming"), default=programming)
                or programming,
                max_driver=_int(scores.get("maxDriver"), default=driver) or driver,
                tier=_str(scores.get("tier")),
            ),
            event=IdInfo.from_api(item.get("event")),
        )
