from __future__ import annotations

import pytest

from robo_companion.core.programs import ProgramDescriptor, UnknownProgram, get_program
from robo_companion.enums import ApiFamilyEnum, GradeEnum
from robo_companion.services.selector import UpstreamServiceSelector
from robo_companion.upstream.base.errors import UnknownProgramFamily


class RecordingAdapter:
    def __init__(self, family: ApiFamilyEnum) -> None:
        self.family = family
        self.selected: list[str] = []
        self.cache_clears = 0

    def set_selected_program(self, program: ProgramDescriptor) -> None:
        self.selected.append(program.short_name)

    def clear_cache(self) -> None:
        self.cache_clears += 1

    async def aclose(self) -> None:
        pass


def _selector() -> tuple[UpstreamServiceSelector, RecordingAdapter, RecordingAdapter]:
    re_adapter = RecordingAdapter(ApiFamilyEnum.ROBOT_EVENTS)
    recf_adapter = RecordingAdapter(ApiFamilyEnum.RECF_EVENTS)
    return UpstreamServiceSelector(robotevents=re_adapter, recf=recf_adapter), re_adapter, recf_adapter


def test_select_routes_by_program_family() -> None:
    selector, re_adapter, recf_adapter = _selector()

    assert selector.select(get_program("V5RC")) is re_adapter
    assert selector.select(get_program("ADC")) is recf_adapter
    assert selector.select(get_program("VIQRC")) is re_adapter


def test_repeated_select_hits_routing_cache() -> None:
    selector, re_adapter, _ = _selector()
    v5 = get_program("VEX V5 Robotics Competition")

    for _ in range(3):
        assert selector.select(v5) is re_adapter

    status = selector.routing_status()
    assert status.cache_misses == 1
    assert status.cache_hits == 2
    assert status.cache_efficiency == "66.7%"
    assert status.last_cached_program == v5.name


def test_routing_status_without_selections_reports_na() -> None:
    selector, _, _ = _selector()
    status = selector.routing_status()
    assert status.cache_efficiency == "N/A"
    assert status.current_program is None
    assert status.current_family is None


def test_set_current_program_propagates_to_both_adapters() -> None:
    selector, re_adapter, recf_adapter = _selector()

    before = selector.select(get_program("V5RC"))
    selector.set_current_program(get_program("ADC"))

    assert re_adapter.selected == ["ADC"]
    assert recf_adapter.selected == ["ADC"]
    # Adapters already handed out are not reclassified.
    assert before is re_adapter
    assert selector.select() is recf_adapter
    assert selector.routing_status().current_family == ApiFamilyEnum.RECF_EVENTS


def test_unknown_family_raises() -> None:
    selector, _, _ = _selector()
    odd = ProgramDescriptor(
        name="Mystery Program",
        id=999,
        short_name="MP",
        family="SomewhereElse",
        grades=frozenset({GradeEnum.HIGH_SCHOOL}),
    )
    with pytest.raises(UnknownProgramFamily):
        selector.select(odd)


def test_set_current_program_rejects_unknown_family() -> None:
    selector, re_adapter, _ = _selector()
    selector.set_current_program(get_program("V5RC"))
    odd = ProgramDescriptor(
        name="Mystery Program",
        id=999,
        short_name="MP",
        family="SomewhereElse",
        grades=frozenset({GradeEnum.HIGH_SCHOOL}),
    )

    with pytest.raises(UnknownProgramFamily):
        selector.set_current_program(odd)

    assert selector.current_program == get_program("V5RC")
    assert re_adapter.selected == ["V5RC"]
    assert selector.routing_status().current_family == ApiFamilyEnum.ROBOT_EVENTS


def test_select_without_current_program_raises() -> None:
    selector, _, _ = _selector()
    with pytest.raises(ValueError):
        selector.select()


def test_clear_caches_hits_both_adapters() -> None:
    selector, re_adapter, recf_adapter = _selector()
    selector.clear_caches()
    assert re_adapter.cache_clears == 1
    assert recf_adapter.cache_clears == 1


def test_supported_programs_groups_by_family() -> None:
    grouped = UpstreamServiceSelector.supported_programs(include_dev_only=False)
    assert "Aerial Drone Competition" in grouped[ApiFamilyEnum.RECF_EVENTS]
    assert "VEX V5 Robotics Competition" in grouped[ApiFamilyEnum.ROBOT_EVENTS]
    assert "VEX AIR Drone Competition" not in grouped[ApiFamilyEnum.ROBOT_EVENTS]


def test_get_program_lookup_variants() -> None:
    assert get_program(41).short_name == "VIQRC"
    assert get_program("viqrc").id == 41
    assert get_program("57").short_name == "VAIRC"
    with pytest.raises(UnknownProgram):
        get_program("Underwater Basket Weaving")
