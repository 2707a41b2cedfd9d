"""Turn raw observation and pinch events into per-unit cohorts."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from enum import StrEnum

from floracast.engine.records import (
	FarmMetadata,
	ObservationEvent,
	PinchEvent,
	UnitKey,
	coerce_quantity,
	to_local_date,
)
from floracast.engine.stages import FIRST_STAGE, Stage, parse_observable_stage

_logger = logging.getLogger("floracast.engine.cohorts")


class SourceKind(StrEnum):
	observacion = "observacion"
	pinche = "pinche"


@dataclass(slots=True, frozen=True)
class CohortSource:
	kind: SourceKind
	id: int
	recorded_at: datetime | date
	bed: str
	original_stage: Stage


@dataclass(slots=True, frozen=True)
class Cohort:
	observed_on: date
	start_stage: Stage
	quantity: float
	source: CohortSource


@dataclass(slots=True)
class UnitCohorts:
	"""Cohorts of one planting unit plus the display names it was first seen with."""

	unit: UnitKey
	farm: str = ""
	block: str = ""
	variety: str = ""
	cohorts: list[Cohort] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class _Placement:
	unit: UnitKey
	farm: str
	block: str
	variety: str
	bed: str


def _resolve_observation(event: ObservationEvent, metadata: FarmMetadata) -> tuple[_Placement, Stage] | None:
	bed = metadata.beds.get(event.bed_id) if event.bed_id is not None else None
	if bed is None:
		return None
	stage = parse_observable_stage(event.stage_name)
	if stage is None:
		return None
	return _Placement(bed.unit, bed.farm, bed.block, bed.variety, bed.bed), stage


def _resolve_pinch(event: PinchEvent, metadata: FarmMetadata) -> _Placement | None:
	if event.bed_id:
		bed = metadata.beds.get(event.bed_id)
		if bed is not None:
			return _Placement(bed.unit, bed.farm, bed.block, bed.variety, bed.bed)
		# unknown bed: fall through to the direct reference with blank names
		if not event.block_id or not event.variety_id:
			return None
		return _Placement(UnitKey(event.block_id, event.variety_id), "", "", "", str(event.bed_id))

	if not event.block_id or not event.variety_id:
		return None
	block = metadata.blocks.get(event.block_id)
	return _Placement(
		UnitKey(event.block_id, event.variety_id),
		block.farm if block is not None else "",
		block.name if block is not None else "",
		metadata.varieties.get(event.variety_id, ""),
		"",
	)


def _entry_for(units: dict[UnitKey, UnitCohorts], placement: _Placement) -> UnitCohorts:
	entry = units.get(placement.unit)
	if entry is None:
		entry = UnitCohorts(
			unit=placement.unit,
			farm=placement.farm,
			block=placement.block,
			variety=placement.variety,
		)
		units[placement.unit] = entry
	return entry


def extract_cohorts(
	observations: Iterable[ObservationEvent],
	pinches: Iterable[PinchEvent],
	metadata: FarmMetadata,
	tz: tzinfo | None = None,
) -> dict[UnitKey, UnitCohorts]:
	"""Group every resolvable event into cohorts keyed by planting unit.

	Observations are processed before pinches, so a unit's display names come
	from the first observation that references it when there is one.
	"""
	units: dict[UnitKey, UnitCohorts] = {}
	dropped_observations = 0
	dropped_pinches = 0

	for event in observations:
		resolved = _resolve_observation(event, metadata)
		if resolved is None:
			dropped_observations += 1
			_logger.debug("observation_dropped", extra={"observation_id": event.id, "bed_id": event.bed_id})
			continue
		placement, stage = resolved
		_entry_for(units, placement).cohorts.append(
			Cohort(
				observed_on=to_local_date(event.recorded_at, tz),
				start_stage=stage,
				quantity=coerce_quantity(event.quantity),
				source=CohortSource(
					kind=SourceKind.observacion,
					id=event.id,
					recorded_at=event.recorded_at,
					bed=placement.bed,
					original_stage=stage,
				),
			)
		)

	for event in pinches:
		placement = _resolve_pinch(event, metadata)
		if placement is None:
			dropped_pinches += 1
			_logger.debug("pinch_dropped", extra={"pinch_id": event.id, "bed_id": event.bed_id})
			continue
		_entry_for(units, placement).cohorts.append(
			Cohort(
				observed_on=to_local_date(event.recorded_at, tz),
				start_stage=FIRST_STAGE,
				quantity=coerce_quantity(event.quantity),
				source=CohortSource(
					kind=SourceKind.pinche,
					id=event.id,
					recorded_at=event.recorded_at,
					bed=placement.bed,
					original_stage=FIRST_STAGE,
				),
			)
		)

	if dropped_observations or dropped_pinches:
		_logger.info(
			"cohort_extraction_dropped_events",
			extra={
				"dropped_observations": dropped_observations,
				"dropped_pinches": dropped_pinches,
				"units": len(units),
			},
		)
	return units
