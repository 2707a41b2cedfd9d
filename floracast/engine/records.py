"""Input records consumed by the projection engine and typed grouping keys."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import Any


@dataclass(slots=True, frozen=True, order=True)
class UnitKey:
	"""A planting unit: one (block, variety) pair."""

	block_id: int
	variety_id: int


@dataclass(slots=True, frozen=True, order=True)
class UnitDayKey:
	unit: UnitKey
	day: date


@dataclass(slots=True, frozen=True)
class BedInfo:
	bed: str
	block_id: int
	variety_id: int
	farm: str = ""
	block: str = ""
	variety: str = ""

	@property
	def unit(self) -> UnitKey:
		return UnitKey(self.block_id, self.variety_id)


@dataclass(slots=True, frozen=True)
class BlockInfo:
	name: str
	farm: str = ""


@dataclass(slots=True, frozen=True)
class FarmMetadata:
	"""Bed → unit resolution table plus block and variety name lookups."""

	beds: Mapping[int, BedInfo] = field(default_factory=dict)
	blocks: Mapping[int, BlockInfo] = field(default_factory=dict)
	varieties: Mapping[int, str] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ObservationEvent:
	id: int
	recorded_at: datetime | date
	bed_id: int | None
	stage_name: str | None
	quantity: Any = 0


@dataclass(slots=True, frozen=True)
class PinchEvent:
	id: int
	recorded_at: datetime | date
	quantity: Any = 0
	bed_id: int | None = None
	block_id: int | None = None
	variety_id: int | None = None


@dataclass(slots=True, frozen=True)
class StageDurationConfig:
	"""Per-unit stage durations keyed by stage name; values may be null."""

	unit: UnitKey
	durations: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ProductionEntry:
	recorded_at: datetime | date
	block_id: int | None
	variety_id: int | None
	quantity: Any = 0


@dataclass(slots=True, frozen=True)
class ProjectionInputs:
	observations: Sequence[ObservationEvent] = ()
	pinches: Sequence[PinchEvent] = ()
	duration_configs: Sequence[StageDurationConfig] = ()
	production: Sequence[ProductionEntry] = ()
	metadata: FarmMetadata = field(default_factory=FarmMetadata)


def coerce_quantity(value: Any) -> float:
	"""Coerce a raw quantity to a finite number; anything malformed becomes 0."""
	if value is None or isinstance(value, bool):
		return 0
	if isinstance(value, int):
		return value
	if isinstance(value, (float, Decimal)):
		number = float(value)
	else:
		try:
			number = float(str(value).strip())
		except ValueError:
			return 0
	if not math.isfinite(number):
		return 0
	return int(number) if number.is_integer() else number


def to_local_date(value: datetime | date, tz: tzinfo | None = None) -> date:
	"""Calendar date of a timestamp in ``tz``; naive datetimes are taken as local."""
	if isinstance(value, datetime):
		if value.tzinfo is not None and tz is not None:
			return value.astimezone(tz).date()
		return value.date()
	return value
