from __future__ import annotations

from enum import Enum, StrEnum


class ApiFamilyEnum(StrEnum):
    ROBOT_EVENTS = "RobotEvents"
    RECF_EVENTS = "RECFEvents"


class GradeEnum(str, Enum):
    ELEMENTARY = "Elementary"
    MIDDLE_SCHOOL = "Middle School"
    HIGH_SCHOOL = "High School"
    COLLEGE = "College"


class EventStatusEnum(str, Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class LiveOutcomeEnum(str, Enum):
    SELECTED = "SELECTED"
    NO_LIVE_EVENT = "NO_LIVE_EVENT"
    FALLBACK = "FALLBACK"


class CacheStateEnum(str, Enum):
    EMPTY = "EMPTY"
    POPULATING = "POPULATING"
    POPULATED = "POPULATED"


class AllianceColorEnum(str, Enum):
    RED = "red"
    BLUE = "blue"
