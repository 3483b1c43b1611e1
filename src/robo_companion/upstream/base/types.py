from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, fields
from typing import Any

# Largest page size both upstreams accept.
MAX_PER_PAGE = 250


@dataclass(frozen=True)
class QueryFilter:
    """
    Standardized list-endpoint filter.

    Field names are the upstream query parameter names; sequence fields are sent
    as `name[]=...` by the HTTP layer.
    """

    page: int | None = None
    per_page: int | None = None

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, Sequence) and not isinstance(value, str):
                value = list(value)
            params[f.name] = value
        return params


@dataclass(frozen=True)
class SeasonFilter(QueryFilter):
    id: Sequence[int] | None = None
    program: Sequence[int] | None = None
    team: Sequence[int] | None = None
    start: str | None = None
    end: str | None = None
    active: bool | None = None


@dataclass(frozen=True)
class EventFilter(QueryFilter):
    id: Sequence[int] | None = None
    sku: Sequence[str] | None = None
    team: Sequence[int] | None = None
    season: Sequence[int] | None = None
    program: Sequence[int] | None = None
    start: str | None = None
    end: str | None = None
    region: str | None = None
    level: Sequence[str] | None = None



@dataclass(frozen=True)
class EventTeamFilter(QueryFilter):
    number: Sequence[str] | None = None
    registered: bool | None = None
    grade: Sequence[str] | None = None
    country: Sequence[str] | None = None


@dataclass(frozen=True)
class MatchFilter(QueryFilter):
    event: Sequence[int] | None = None
    season: Sequence[int] | None = None
    team: Sequence[int] | None = None
    round: Sequence[int] | None = None
    instance: Sequence[int] | None = None
    matchnum: Sequence[int] | None = None


@dataclass(frozen=True)
class RankingFilter(QueryFilter):
    event: Sequence[int] | None = None
    season: Sequence[int] | None = None
    team: Sequence[int] | None = None
    rank: Sequence[int] | None = None


@dataclass(frozen=True)
class AwardFilter(QueryFilter):
    event: Sequence[int] | None = None
    season: Sequence[int] | None = None
    team: Sequence[int] | None = None
    winner: Sequence[str] | None = None
