from __future__ import annotations

from dataclasses import dataclass

from robo_companion.enums import ApiFamilyEnum, GradeEnum


class UnknownProgram(LookupError):
    """No program descriptor matches the requested name/id."""


@dataclass(frozen=True)
class ProgramDescriptor:
    """
    Static description of a competition program.

    `family` decides which upstream service serves the program's data.
    """

    name: str
    id: int
    short_name: str
    family: ApiFamilyEnum | str
    grades: frozenset[GradeEnum]
    has_world_skills: bool = True
    has_finalist_rankings: bool = False
    limited_mode: bool = False
    limited_mode_message: str | None = None
    dev_only: bool = False


_HS_MS = frozenset({GradeEnum.HIGH_SCHOOL, GradeEnum.MIDDLE_SCHOOL})

PROGRAMS: tuple[ProgramDescriptor, ...] = (
    ProgramDescriptor(
        name="VEX V5 Robotics Competition",
        id=1,
        short_name="V5RC",
        family=ApiFamilyEnum.ROBOT_EVENTS,
        grades=_HS_MS,
    ),
    ProgramDescriptor(
        name="VEX IQ Robotics Competition",
        id=41,
        short_name="VIQRC",
        family=ApiFamilyEnum.ROBOT_EVENTS,
        grades=frozenset({GradeEnum.ELEMENTARY, GradeEnum.MIDDLE_SCHOOL}),
        has_finalist_rankings=True,
    ),
    ProgramDescriptor(
        name="VEX U Robotics Competition",
        id=4,
        short_name="VURC",
        family=ApiFamilyEnum.ROBOT_EVENTS,
        grades=frozenset({GradeEnum.COLLEGE}),
    ),
    ProgramDescriptor(
        name="VEX AI Robotics Competition",
        id=57,
        short_name="VAIRC",
        family=ApiFamilyEnum.ROBOT_EVENTS,
        grades=frozenset({GradeEnum.HIGH_SCHOOL, GradeEnum.COLLEGE}),
    ),
    ProgramDescriptor(
        name="Aerial Drone Competition",
        id=44,
        short_name="ADC",
        family=ApiFamilyEnum.RECF_EVENTS,
        grades=_HS_MS,
        has_world_skills=False,
        limited_mode=True,
        limited_mode_message=(
            "Due to the change in website for the Aerial Drone Competition, data for this "
            "program is currently unavailable. Score calculators and the game manual remain "
            "available."
        ),
    ),
    ProgramDescriptor(
        name="VEX AIR Drone Competition",
        id=58,
        short_name="VADC",
        family=ApiFamilyEnum.ROBOT_EVENTS,
        grades=frozenset({GradeEnum.HIGH_SCHOOL}),
        has_world_skills=False,
        dev_only=True,
    ),
)

_BY_NAME = {p.name.lower(): p for p in PROGRAMS}
_BY_SHORT = {p.short_name.lower(): p for p in PROGRAMS}
_BY_ID = {p.id: p for p in PROGRAMS}


def get_program(value: str | int) -> ProgramDescriptor:
    """Look up a program by full name, short name (V5RC) or numeric id."""

    if isinstance(value, int):
        program = _BY_ID.get(value)
    else:
        key = value.strip().lower()
        program = _BY_NAME.get(key) or _BY_SHORT.get(key)
        if program is None and key.isdigit():
            program = _BY_ID.get(int(key))

    if program is None:
        raise UnknownProgram(f"Unknown program: {value!r}")
    return program


def programs_by_family(*, include_dev_only: bool = True) -> dict[ApiFamilyEnum, list[str]]:
    out: dict[ApiFamilyEnum, list[str]] = {f: [] for f in ApiFamilyEnum}
    for p in PROGRAMS:
        if p.dev_only and not include_dev_only:
            continue
        out[ApiFamilyEnum(p.family)].append(p.name)
    return out
