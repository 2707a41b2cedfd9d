from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from floracast.engine import (
    FarmMetadata,
    ObservationEvent,
    PinchEvent,
    SourceKind,
    Stage,
    UnitKey,
    extract_cohorts,
)
from floracast.engine.records import coerce_quantity, to_local_date


def test_observations_resolve_through_bed(farm_metadata: FarmMetadata, morning: datetime) -> None:
    observations = [
        ObservationEvent(id=1, recorded_at=morning, bed_id=100, stage_name="Arroz", quantity=10),
        ObservationEvent(id=2, recorded_at=morning, bed_id=101, stage_name="arveja", quantity="5"),
    ]

    units = extract_cohorts(observations, [], farm_metadata)

    entry = units[UnitKey(1, 10)]
    assert (entry.farm, entry.block, entry.variety) == ("Bogotá", "B1", "Freedom")
    assert [c.start_stage for c in entry.cohorts] == [Stage.arroz, Stage.arveja]
    assert [c.quantity for c in entry.cohorts] == [10, 5]
    assert entry.cohorts[1].source.bed == "C-101"
    assert entry.cohorts[0].source.kind is SourceKind.observacion


def test_unresolvable_observations_are_dropped(farm_metadata: FarmMetadata, morning: datetime) -> None:
    observations = [
        ObservationEvent(id=1, recorded_at=morning, bed_id=999, stage_name="arroz", quantity=10),
        ObservationEvent(id=2, recorded_at=morning, bed_id=None, stage_name="arroz", quantity=10),
        ObservationEvent(id=3, recorded_at=morning, bed_id=100, stage_name="uva", quantity=10),
        ObservationEvent(id=4, recorded_at=morning, bed_id=100, stage_name=None, quantity=10),
    ]

    assert extract_cohorts(observations, [], farm_metadata) == {}


def test_pinches_always_start_at_brotacion(farm_metadata: FarmMetadata, morning: datetime) -> None:
    pinches = [PinchEvent(id=7, recorded_at=morning, quantity=40, bed_id=200)]

    units = extract_cohorts([], pinches, farm_metadata)

    cohort = units[UnitKey(2, 20)].cohorts[0]
    assert cohort.start_stage is Stage.brotacion
    assert cohort.source.original_stage is Stage.brotacion
    assert cohort.source.kind is SourceKind.pinche
    assert cohort.source.bed == "C-200"


def test_pinch_without_bed_uses_direct_unit_reference(farm_metadata: FarmMetadata, morning: datetime) -> None:
    pinches = [
        PinchEvent(id=1, recorded_at=morning, quantity=12, block_id=3, variety_id=30),
        PinchEvent(id=2, recorded_at=morning, quantity=12, block_id=3, variety_id=None),
        PinchEvent(id=3, recorded_at=morning, quantity=12, block_id=0, variety_id=30),
    ]

    units = extract_cohorts([], pinches, farm_metadata)

    assert list(units) == [UnitKey(3, 30)]
    entry = units[UnitKey(3, 30)]
    assert (entry.farm, entry.block, entry.variety) == ("Ávila", "B3", "Explorer")
    assert entry.cohorts[0].source.bed == ""


def test_pinch_on_unknown_bed_falls_back_to_ids(farm_metadata: FarmMetadata, morning: datetime) -> None:
    pinches = [
        PinchEvent(id=1, recorded_at=morning, quantity=3, bed_id=555, block_id=2, variety_id=20),
        PinchEvent(id=2, recorded_at=morning, quantity=3, bed_id=556),
    ]

    units = extract_cohorts([], pinches, farm_metadata)

    assert list(units) == [UnitKey(2, 20)]
    assert units[UnitKey(2, 20)].cohorts[0].source.bed == "555"


def test_display_names_come_from_first_observation(farm_metadata: FarmMetadata, morning: datetime) -> None:
    pinches = [PinchEvent(id=1, recorded_at=morning, quantity=3, bed_id=555, block_id=1, variety_id=10)]
    observations = [ObservationEvent(id=9, recorded_at=morning, bed_id=100, stage_name="garbanzo", quantity=1)]

    entry = extract_cohorts(observations, pinches, farm_metadata)[UnitKey(1, 10)]

    assert entry.block == "B1"
    assert [c.source.kind for c in entry.cohorts] == [SourceKind.observacion, SourceKind.pinche]


def test_observed_on_uses_local_calendar_date(farm_metadata: FarmMetadata) -> None:
    # 03:00 UTC is still the previous evening in Bogotá
    recorded = datetime(2024, 5, 2, 3, 0, tzinfo=UTC)
    observations = [ObservationEvent(id=1, recorded_at=recorded, bed_id=100, stage_name="arroz", quantity=1)]

    units = extract_cohorts(observations, [], farm_metadata, ZoneInfo("America/Bogota"))

    assert units[UnitKey(1, 10)].cohorts[0].observed_on == date(2024, 5, 1)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 0),
        (True, 0),
        (7, 7),
        (7.0, 7),
        (2.5, 2.5),
        ("12", 12),
        (" 3.5 ", 3.5),
        ("doce", 0),
        (float("nan"), 0),
        (float("inf"), 0),
        (Decimal("4"), 4),
    ],
)
def test_coerce_quantity(raw: object, expected: float) -> None:
    assert coerce_quantity(raw) == expected


def test_to_local_date_keeps_naive_and_plain_dates() -> None:
    tz = ZoneInfo("America/Bogota")
    assert to_local_date(datetime(2024, 5, 1, 23, 59), tz) == date(2024, 5, 1)
    assert to_local_date(date(2024, 5, 1), tz) == date(2024, 5, 1)
