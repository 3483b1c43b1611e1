from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime

from robo_companion.core.config import Settings
from robo_companion.core.dates import local_date
from robo_companion.core.text import extract_match_number
from robo_companion.enums import AllianceColorEnum, LiveOutcomeEnum
from robo_companion.models.api import Event, LeagueSession, Match, Team
from robo_companion.services.league_sessions import expand_league_event
from robo_companion.services.selector import UpstreamServiceSelector
from robo_companion.upstream.base.types import EventFilter, MatchFilter

logger = logging.getLogger(__name__)

MatchesFor = Callable[[int], Awaitable[list[Match]]]


class LiveEventLookupError(RuntimeError):
    """Match data could not be fetched for any live candidate."""


@dataclass(frozen=True)
class LiveResolution:
    outcome: LiveOutcomeEnum
    event: Event | None = None
    reason: str = ""


def _today() -> date:
    return datetime.now().astimezone().date()


def source_event_id(event: Event) -> int:
    """Upstream id to query for an event; league sessions map back to their parent."""

    if isinstance(event, LeagueSession):
        return event.original_event_id
    return event.id


# -----------------------------
# Match rules
# -----------------------------


def is_match_played(match: Match, all_matches: Iterable[Match]) -> bool:
    """
    A match counts as played when it started and carries a real score, or when a
    later-numbered match in the same division already has one.
    """

    if match.started is not None and match.has_real_score():
        return True

    number = extract_match_number(match.name)
    division_id = match.division_id
    for other in all_matches:
        if other.division_id != division_id:
            continue
        if extract_match_number(other.name) <= number:
            continue
        if other.has_real_score():
            logger.debug("Match %s unscored but a later match is; counting as played", match.name)
            return True
    return False


def _match_sort_key(match: Match) -> tuple[int, float, int]:
    if match.scheduled is not None:
        return (0, match.scheduled.timestamp(), extract_match_number(match.name))
    return (1, 0.0, extract_match_number(match.name))


def next_unplayed_match(
    team_matches: Sequence[Match], all_division_matches: Sequence[Match] | None = None
) -> Match | None:
    """First unplayed match by schedule; unscheduled matches follow, by match number."""

    reference = all_division_matches if all_division_matches else team_matches
    unplayed = [m for m in team_matches if not is_match_played(m, reference)]
    if not unplayed:
        return None
    return min(unplayed, key=_match_sort_key)


def alliance_color_for(match: Match, team_id: int) -> AllianceColorEnum | None:
    for alliance in match.alliances:
        if alliance.has_team(team_id):
            try:
                return AllianceColorEnum(alliance.color.lower())
            except ValueError:
                return None
    return None


# -----------------------------
# Candidates
# -----------------------------


def _spans_day(event: Event, today: date) -> bool:
    if event.start is None:
        return False
    start = local_date(event.start)
    end = local_date(event.end) if event.end is not None else start
    return start <= today <= end


def filter_live_candidates(
    events: Iterable[Event],
    today: date | None = None,
    *,
    forced_event_id: int | None = None,
    simulate: bool = False,
) -> list[Event]:
    """
    Expand league events and keep those whose dates include `today`.

    With developer simulation on, the forced event is kept whatever its dates.
    """

    today = today or _today()
    out: list[Event] = []
    for event in events:
        for candidate in expand_league_event(event):
            forced = simulate and forced_event_id is not None and (
                source_event_id(candidate) == forced_event_id
            )
            if forced or _spans_day(candidate, today):
                out.append(candidate)
    return out


# -----------------------------
# Resolver
# -----------------------------


@dataclass
class _CandidateReport:
    event: Event
    matches: list[Match] | None
    failed: bool = False

    @property
    def has_matches(self) -> bool:
        return bool(self.matches)

    def is_complete(self) -> bool:
        matches = self.matches or []
        return bool(matches) and all(is_match_played(m, matches) for m in matches)

    def activity(self, today: date) -> int:
        matches = self.matches or []
        count = 0
        for m in matches:
            if is_match_played(m, matches):
                continue
            if m.scheduled is None or local_date(m.scheduled) == today:
                count += 1
        return count


@dataclass
class LiveEventResolver:
    """
    Picks the one event a team is competing at right now.

    Outcomes:
      - SELECTED: override hit, or the candidate with the most unplayed matches for today.
      - NO_LIVE_EVENT: no candidates, or every candidate with match data is finished.
      - FALLBACK: nothing is active; best guess by start date.
    """

    matches_for: MatchesFor
    today: Callable[[], date] = field(default=_today)

    async def _report(self, event: Event) -> _CandidateReport:
        event_id = source_event_id(event)
        try:
            matches = await self.matches_for(event_id)
        except Exception as e:
            logger.warning("Could not fetch matches for event %s: %s", event_id, e)
            return _CandidateReport(event=event, matches=None, failed=True)
        return _CandidateReport(event=event, matches=list(matches))

    async def resolve(
        self, candidates: Sequence[Event], *, override_id: int | None = None
    ) -> LiveResolution:
        if not candidates:
            return LiveResolution(LiveOutcomeEnum.NO_LIVE_EVENT, reason="no candidates")

        if override_id is not None:
            for event in candidates:
                if source_event_id(event) == override_id or event.id == override_id:
                    logger.info("Using override live event %s", override_id)
                    return LiveResolution(LiveOutcomeEnum.SELECTED, event, reason="override")

        reports = await asyncio.gather(*(self._report(e) for e in candidates))
        if all(r.failed for r in reports):
            raise LiveEventLookupError(
                f"Match lookup failed for all {len(reports)} live candidates"
            )

        with_matches = [r for r in reports if r.has_matches]
        remaining = [r for r in reports if not r.is_complete()]

        if with_matches and all(r.is_complete() for r in with_matches):
            return LiveResolution(
                LiveOutcomeEnum.NO_LIVE_EVENT, reason="all candidate matches played"
            )

        today = self.today()
        best: _CandidateReport | None = None
        best_activity = 0
        for r in remaining:
            activity = r.activity(today)
            if activity > best_activity:
                best, best_activity = r, activity

        if best is not None:
            logger.debug(
                "Selected event %s with %d active matches", best.event.id, best_activity
            )
            return LiveResolution(
                LiveOutcomeEnum.SELECTED, best.event, reason=f"{best_activity} active matches"
            )

        def fallback_key(r: _CandidateReport) -> tuple[int, float]:
            start = r.event.start
            started_today = start is not None and local_date(start) == today
            return (0 if started_today else 1, -(start.timestamp() if start else 0.0))

        chosen = sorted(remaining, key=fallback_key)[0]
        return LiveResolution(LiveOutcomeEnum.FALLBACK, chosen.event, reason="no active matches")


async def resolve_current_live_event(
    candidates: Sequence[Event],
    matches_for: MatchesFor,
    override_id: int | None = None,
    *,
    today: Callable[[], date] | None = None,
) -> LiveResolution:
    resolver = LiveEventResolver(matches_for=matches_for, today=today or _today)
    return await resolver.resolve(candidates, override_id=override_id)


# -----------------------------
# Team-level service
# -----------------------------


@dataclass
class TeamLiveEventService:
    """Fetches a team's events through the selected upstream and resolves the live one."""

    selector: UpstreamServiceSelector
    settings: Settings

    async def find_live_event(self, team: Team, today: date | None = None) -> LiveResolution:
        adapter = self.selector.select()
        today = today or _today()

        events = await adapter.get_team_events(team.id, EventFilter())
        override = self.settings.live_event_override()
        candidates = filter_live_candidates(
            events,
            today,
            forced_event_id=override,
            simulate=self.settings.dev_live_event_simulation,
        )
        logger.debug("Team %s has %d live candidates", team.number, len(candidates))

        async def matches_for(event_id: int) -> list[Match]:
            return await adapter.get_team_matches(team.id, MatchFilter(event=[event_id]))

        return await resolve_current_live_event(
            candidates, matches_for, override, today=lambda: today
        )
