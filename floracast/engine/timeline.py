"""Per-unit day-by-day stage occupancy with source attribution."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from floracast.engine.cohorts import SourceKind, UnitCohorts
from floracast.engine.harvest import ProductionLedger
from floracast.engine.records import UnitKey
from floracast.engine.resolver import stage_on
from floracast.engine.stages import HARVEST_STAGE, OBSERVABLE_STAGES, Stage, StageDurations


@dataclass(slots=True, frozen=True)
class SourceInfo:
	kind: SourceKind
	id: int
	date: datetime | date
	bed: str
	original_stage: Stage
	current_stage: Stage
	quantity: float


@dataclass(slots=True, frozen=True)
class TimelineRow:
	key: str
	date: date
	is_past: bool
	stage_quantities: dict[Stage, float] = field(default_factory=dict)
	harvest_available: float = 0
	sources: tuple[SourceInfo, ...] = ()

	@property
	def has_activity(self) -> bool:
		return any(value > 0 for value in self.stage_quantities.values()) or self.harvest_available > 0


def unit_ref(unit: UnitKey) -> str:
	return f"{unit.block_id}-{unit.variety_id}"


def timeline_key(unit: UnitKey, day: date) -> str:
	return f"{unit_ref(unit)}-{day.isoformat()}"


def build_timeline(
	entry: UnitCohorts,
	durations: StageDurations,
	ledger: ProductionLedger,
	today: date,
) -> list[TimelineRow]:
	"""Project every cohort of one unit over ``today .. today + cycle_length``."""
	timeline: list[TimelineRow] = []

	for offset in range(durations.cycle_length + 1):
		day = today + timedelta(days=offset)
		quantities: dict[Stage, float] = {}
		sources: list[SourceInfo] = []
		raw_harvest = 0

		for cohort in entry.cohorts:
			stage = stage_on(cohort, day, durations)
			if stage is None:
				continue
			if stage == HARVEST_STAGE:
				raw_harvest += cohort.quantity
			elif stage in OBSERVABLE_STAGES:
				quantities[stage] = quantities.get(stage, 0) + cohort.quantity
			else:
				# alive but in an unreported stage
				continue
			sources.append(
				SourceInfo(
					kind=cohort.source.kind,
					id=cohort.source.id,
					date=cohort.source.recorded_at,
					bed=cohort.source.bed,
					original_stage=cohort.source.original_stage,
					current_stage=stage,
					quantity=cohort.quantity,
				)
			)

		timeline.append(
			TimelineRow(
				key=timeline_key(entry.unit, day),
				date=day,
				is_past=day < today,
				stage_quantities=quantities,
				harvest_available=ledger.available(entry.unit, day, raw_harvest),
				sources=tuple(sources),
			)
		)

	return timeline
