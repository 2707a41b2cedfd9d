"""Already-harvested stems, netted against projected harvest-stage totals."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, tzinfo

from floracast.engine.records import (
	ProductionEntry,
	UnitDayKey,
	UnitKey,
	coerce_quantity,
	to_local_date,
)


@dataclass(slots=True, frozen=True)
class ProductionLedger:
	produced: Mapping[UnitDayKey, float] = field(default_factory=dict)

	@classmethod
	def from_entries(cls, entries: Iterable[ProductionEntry], tz: tzinfo | None = None) -> ProductionLedger:
		totals: dict[UnitDayKey, float] = defaultdict(int)
		for entry in entries:
			if not entry.block_id or not entry.variety_id:
				continue
			key = UnitDayKey(
				UnitKey(entry.block_id, entry.variety_id),
				to_local_date(entry.recorded_at, tz),
			)
			totals[key] += coerce_quantity(entry.quantity)
		return cls(produced=dict(totals))

	def produced_on(self, unit: UnitKey, day: date) -> float:
		return self.produced.get(UnitDayKey(unit, day), 0)

	def available(self, unit: UnitKey, day: date, raw_harvest_total: float) -> float:
		"""Stems at harvest stage on ``day`` minus what was already cut; never negative."""
		return max(0, raw_harvest_total - self.produced_on(unit, day))
