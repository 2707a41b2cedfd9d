"""Phenological stage catalog and per-unit duration resolution.

The stage sequence is closed and cyclic: ``cosecha`` is followed by
``brotacion`` again.  Only a subset of stages is reported by field
observers (``OBSERVABLE_STAGES``); the remaining ones are simulated but never
surface as quantities.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Stage(StrEnum):
	"""Growth stages in cycle order."""

	brotacion = "brotacion"
	cincuenta_mm = "cincuenta_mm"
	quince_cm = "quince_cm"
	veinte_cm = "veinte_cm"
	primera_hoja = "primera_hoja"
	espiga = "espiga"
	arroz = "arroz"
	arveja = "arveja"
	garbanzo = "garbanzo"
	uva = "uva"
	rayando_color = "rayando_color"
	sepalos_abiertos = "sepalos_abiertos"
	cosecha = "cosecha"


STAGE_ORDER: tuple[Stage, ...] = tuple(Stage)
FIRST_STAGE = STAGE_ORDER[0]
HARVEST_STAGE = Stage.cosecha

OBSERVABLE_STAGES: tuple[Stage, ...] = (
	Stage.arroz,
	Stage.arveja,
	Stage.garbanzo,
	Stage.rayando_color,
	Stage.sepalos_abiertos,
)

DEFAULT_DURATIONS: dict[Stage, int] = {
	Stage.brotacion: 14,
	Stage.cincuenta_mm: 7,
	Stage.quince_cm: 7,
	Stage.veinte_cm: 7,
	Stage.primera_hoja: 7,
	Stage.espiga: 7,
	Stage.arroz: 7,
	Stage.arveja: 5,
	Stage.garbanzo: 4,
	Stage.uva: 3,
	Stage.rayando_color: 3,
	Stage.sepalos_abiertos: 2,
	Stage.cosecha: 1,
}

FALLBACK_DURATION_DAYS = 3

STAGE_LABELS: dict[Stage, str] = {
	Stage.brotacion: "brotación",
	Stage.cincuenta_mm: "50mm",
	Stage.quince_cm: "15cm",
	Stage.veinte_cm: "20cm",
	Stage.primera_hoja: "hoja",
	Stage.espiga: "espiga",
	Stage.arroz: "arroz",
	Stage.arveja: "arveja",
	Stage.garbanzo: "garbanzo",
	Stage.uva: "uva",
	Stage.rayando_color: "color",
	Stage.sepalos_abiertos: "abiertos",
	Stage.cosecha: "cosecha",
}

_STAGE_INDEX: dict[Stage, int] = {stage: idx for idx, stage in enumerate(STAGE_ORDER)}


def parse_observable_stage(raw: Any) -> Stage | None:
	"""Normalize an observer-reported stage name; None when not observable."""
	if raw is None:
		return None
	token = str(raw).strip().lower()
	if not token:
		return None
	try:
		stage = Stage(token)
	except ValueError:
		return None
	return stage if stage in OBSERVABLE_STAGES else None


def next_stage(stage: Stage) -> Stage:
	return STAGE_ORDER[(_STAGE_INDEX[stage] + 1) % len(STAGE_ORDER)]


def _coerce_days(value: Any) -> int | None:
	if value is None or isinstance(value, bool):
		return None
	try:
		days = int(value)
	except (TypeError, ValueError):
		return None
	return days if days > 0 else None


@dataclass(slots=True, frozen=True)
class StageDurationEntry:
	stage: Stage
	label: str
	days: int
	days_to_harvest: int
	configured: bool


@dataclass(slots=True, frozen=True)
class StageDurations:
	"""Resolved stage durations for one planting unit.

	``configured`` holds only the positive per-unit overrides; every other
	stage resolves to ``DEFAULT_DURATIONS`` and finally to
	``FALLBACK_DURATION_DAYS``.
	"""

	configured: Mapping[Stage, int] = field(default_factory=dict)

	@classmethod
	def from_config(cls, raw: Mapping[Any, Any] | None) -> StageDurations:
		"""Build from a ``{stage: days}`` mapping, ignoring null/zero/invalid values."""
		if not raw:
			return cls()
		configured: dict[Stage, int] = {}
		for key, value in raw.items():
			try:
				stage = Stage(str(key))
			except ValueError:
				continue
			days = _coerce_days(value)
			if days is not None:
				configured[stage] = days
		return cls(configured=configured)

	def duration_of(self, stage: Stage) -> int:
		configured = self.configured.get(stage)
		if configured:
			return configured
		return DEFAULT_DURATIONS.get(stage) or FALLBACK_DURATION_DAYS

	@property
	def cycle_length(self) -> int:
		return sum(self.duration_of(stage) for stage in STAGE_ORDER)

	def days_to_harvest(self, from_stage: str | Stage) -> int:
		"""Days from the start of ``from_stage`` through the end of ``cosecha``."""
		try:
			stage = Stage(str(from_stage))
		except ValueError:
			return 0
		return sum(self.duration_of(s) for s in STAGE_ORDER[_STAGE_INDEX[stage] :])

	def duration_table(self) -> list[StageDurationEntry]:
		return [
			StageDurationEntry(
				stage=stage,
				label=STAGE_LABELS[stage],
				days=self.duration_of(stage),
				days_to_harvest=self.days_to_harvest(stage),
				configured=stage in self.configured,
			)
			for stage in STAGE_ORDER
		]
