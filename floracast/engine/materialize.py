"""Output rows, ordering, filtering and drill-down summaries."""

from __future__ import annotations

import unicodedata
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Protocol, TypeVar

from floracast.engine.cohorts import SourceKind, UnitCohorts
from floracast.engine.records import UnitKey
from floracast.engine.stages import Stage
from floracast.engine.timeline import SourceInfo, TimelineRow, timeline_key


@dataclass(slots=True, frozen=True)
class PrediccionRow:
	key: str
	date: date
	unit: UnitKey
	farm: str
	block: str
	variety: str
	stage_quantities: dict[Stage, float]
	harvest_available: float
	timeline: Sequence[TimelineRow] = field(repr=False, compare=False)


def materialize_rows(entry: UnitCohorts, timeline: Sequence[TimelineRow]) -> list[PrediccionRow]:
	"""One row per active day; every row shares the unit's complete timeline."""
	return [
		PrediccionRow(
			key=timeline_key(entry.unit, row.date),
			date=row.date,
			unit=entry.unit,
			farm=entry.farm,
			block=entry.block,
			variety=entry.variety,
			stage_quantities=row.stage_quantities,
			harvest_available=row.harvest_available,
			timeline=timeline,
		)
		for row in timeline
		if row.has_activity
	]


class _NamedRow(Protocol):
	farm: str
	block: str
	variety: str


_NamedRowT = TypeVar("_NamedRowT", bound=_NamedRow)


def collation_key(value: str) -> tuple[str, str]:
	"""Accent- and case-insensitive ordering with the raw value as tiebreaker."""
	decomposed = unicodedata.normalize("NFKD", value)
	folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
	return folded, value


def sort_rows(rows: Iterable[PrediccionRow]) -> list[PrediccionRow]:
	return sorted(
		rows,
		key=lambda row: (
			row.date,
			collation_key(row.farm),
			collation_key(row.block),
			collation_key(row.variety),
			row.unit,
		),
	)


def filter_rows(
	rows: Iterable[_NamedRowT],
	farms: Collection[str] = (),
	blocks: Collection[str] = (),
	varieties: Collection[str] = (),
) -> list[_NamedRowT]:
	"""Keep rows matching every non-empty name filter."""
	result: list[_NamedRowT] = []
	for row in rows:
		if farms and row.farm not in farms:
			continue
		if blocks and row.block not in blocks:
			continue
		if varieties and row.variety not in varieties:
			continue
		result.append(row)
	return result


@dataclass(slots=True)
class SourceGroup:
	"""All of one event's contributions to a single timeline day."""

	kind: SourceKind
	id: int
	date: datetime | date
	beds: list[str] = field(default_factory=list)
	stages: dict[Stage, float] = field(default_factory=dict)


def group_sources(sources: Iterable[SourceInfo]) -> list[SourceGroup]:
	groups: dict[tuple[SourceKind, int, datetime | date], SourceGroup] = {}
	for source in sources:
		key = (source.kind, source.id, source.date)
		group = groups.get(key)
		if group is None:
			group = SourceGroup(kind=source.kind, id=source.id, date=source.date)
			groups[key] = group
		if source.bed and source.bed not in group.beds:
			group.beds.append(source.bed)
		group.stages[source.original_stage] = group.stages.get(source.original_stage, 0) + source.quantity
	return list(groups.values())


@dataclass(slots=True, frozen=True)
class HarvestWindow:
	"""Consecutive days with stems available to cut, reported on the last day."""

	unit: UnitKey
	farm: str
	block: str
	variety: str
	start: date
	end: date
	days: int
	last_day_quantity: float
	total_quantity: float


def harvest_windows(rows: Iterable[PrediccionRow]) -> list[HarvestWindow]:
	"""Collapse each unit's timeline into its harvest windows, most recent first."""
	seen: set[UnitKey] = set()
	windows: list[HarvestWindow] = []

	for row in rows:
		if row.unit in seen:
			continue
		seen.add(row.unit)

		run: list[TimelineRow] = []
		for day_row in [*row.timeline, None]:
			if day_row is not None and day_row.harvest_available > 0:
				if run and (day_row.date - run[-1].date).days != 1:
					windows.append(_close_window(row, run))
					run = []
				run.append(day_row)
				continue
			if run:
				windows.append(_close_window(row, run))
				run = []

	windows.sort(key=lambda w: (collation_key(w.farm), collation_key(w.block), collation_key(w.variety), w.unit))
	windows.sort(key=lambda w: w.end, reverse=True)
	return windows


def _close_window(row: PrediccionRow, run: Sequence[TimelineRow]) -> HarvestWindow:
	return HarvestWindow(
		unit=row.unit,
		farm=row.farm,
		block=row.block,
		variety=row.variety,
		start=run[0].date,
		end=run[-1].date,
		days=len(run),
		last_day_quantity=run[-1].harvest_available,
		total_quantity=sum(day_row.harvest_available for day_row in run),
	)
