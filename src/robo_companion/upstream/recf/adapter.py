from __future__ import annotations

from dataclasses import dataclass, field

from robo_companion.enums import ApiFamilyEnum
from robo_companion.upstream.base.rest_adapter import RestEventsAdapter


@dataclass
class RecfEventsAdapter(RestEventsAdapter):
    """RECF events service. Same resource layout; no world skills standings."""

    family: ApiFamilyEnum = field(default=ApiFamilyEnum.RECF_EVENTS, init=False)
