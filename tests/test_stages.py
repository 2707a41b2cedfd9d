from __future__ import annotations

import pytest

from floracast.engine.stages import (
    DEFAULT_DURATIONS,
    FALLBACK_DURATION_DAYS,
    OBSERVABLE_STAGES,
    STAGE_ORDER,
    Stage,
    StageDurations,
    next_stage,
    parse_observable_stage,
)


def test_stage_order_is_closed_cycle() -> None:
    assert len(STAGE_ORDER) == 13
    assert STAGE_ORDER[0] is Stage.brotacion
    assert STAGE_ORDER[-1] is Stage.cosecha
    assert next_stage(Stage.cosecha) is Stage.brotacion
    assert next_stage(Stage.arroz) is Stage.arveja


def test_observable_stages_exclude_uva_and_harvest() -> None:
    assert Stage.uva not in OBSERVABLE_STAGES
    assert Stage.cosecha not in OBSERVABLE_STAGES
    assert Stage.brotacion not in OBSERVABLE_STAGES
    assert list(OBSERVABLE_STAGES) == sorted(OBSERVABLE_STAGES, key=STAGE_ORDER.index)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("arroz", Stage.arroz),
        ("  Arveja ", Stage.arveja),
        ("SEPALOS_ABIERTOS", Stage.sepalos_abiertos),
        ("uva", None),
        ("brotacion", None),
        ("cosecha", None),
        ("", None),
        (None, None),
        ("rosa", None),
    ],
)
def test_parse_observable_stage(raw: object, expected: Stage | None) -> None:
    assert parse_observable_stage(raw) == expected


def test_default_durations_and_cycle_length() -> None:
    durations = StageDurations()

    assert durations.duration_of(Stage.brotacion) == 14
    assert durations.duration_of(Stage.arveja) == 5
    assert durations.duration_of(Stage.cosecha) == 1
    assert durations.cycle_length == sum(DEFAULT_DURATIONS.values()) == 74


def test_configured_values_override_and_invalid_values_fall_back() -> None:
    durations = StageDurations.from_config(
        {
            "arroz": 9,
            "arveja": 0,
            "garbanzo": None,
            "uva": "abc",
            "cosecha": -2,
            "rayando_color": "4",
            "tallo": 12,
        }
    )

    assert durations.duration_of(Stage.arroz) == 9
    assert durations.duration_of(Stage.rayando_color) == 4
    assert durations.duration_of(Stage.arveja) == DEFAULT_DURATIONS[Stage.arveja]
    assert durations.duration_of(Stage.garbanzo) == DEFAULT_DURATIONS[Stage.garbanzo]
    assert durations.duration_of(Stage.uva) == DEFAULT_DURATIONS[Stage.uva]
    assert durations.duration_of(Stage.cosecha) == DEFAULT_DURATIONS[Stage.cosecha]
    assert set(durations.configured) == {Stage.arroz, Stage.rayando_color}
    assert durations.cycle_length == 74 + 2 + 1


def test_every_duration_is_positive() -> None:
    durations = StageDurations.from_config({stage.value: 0 for stage in STAGE_ORDER})
    assert all(durations.duration_of(stage) >= 1 for stage in STAGE_ORDER)
    assert FALLBACK_DURATION_DAYS > 0


def test_days_to_harvest() -> None:
    durations = StageDurations()

    assert durations.days_to_harvest(Stage.arroz) == 7 + 5 + 4 + 3 + 3 + 2 + 1
    assert durations.days_to_harvest("cosecha") == 1
    assert durations.days_to_harvest(Stage.brotacion) == durations.cycle_length
    assert durations.days_to_harvest("rosa") == 0


def test_duration_table_marks_configured_rows() -> None:
    table = StageDurations.from_config({"arroz": 10}).duration_table()

    assert [entry.stage for entry in table] == list(STAGE_ORDER)
    arroz = next(entry for entry in table if entry.stage is Stage.arroz)
    assert arroz.days == 10
    assert arroz.configured is True
    assert arroz.label == "arroz"
    assert arroz.days_to_harvest == 10 + 5 + 4 + 3 + 3 + 2 + 1
    assert table[-1].days_to_harvest == 1
    assert not any(entry.configured for entry in table if entry.stage is not Stage.arroz)
