"""Projection entry point: events + configuration + ledger → sorted output rows."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from datetime import date, tzinfo

from floracast.engine.cohorts import UnitCohorts, extract_cohorts
from floracast.engine.harvest import ProductionLedger
from floracast.engine.materialize import PrediccionRow, materialize_rows, sort_rows
from floracast.engine.records import ProjectionInputs, StageDurationConfig, UnitKey
from floracast.engine.stages import StageDurations
from floracast.engine.timeline import TimelineRow, build_timeline

_logger = logging.getLogger("floracast.engine")


def durations_by_unit(configs: Iterable[StageDurationConfig]) -> dict[UnitKey, StageDurations]:
	"""Later configs for the same unit replace earlier ones."""
	return {config.unit: StageDurations.from_config(config.durations) for config in configs}


def project_unit(
	entry: UnitCohorts,
	durations: StageDurations,
	ledger: ProductionLedger,
	today: date,
) -> tuple[list[TimelineRow], list[PrediccionRow]]:
	timeline = build_timeline(entry, durations, ledger, today)
	return timeline, materialize_rows(entry, timeline)


def project(
	inputs: ProjectionInputs,
	today: date,
	tz: tzinfo | None = None,
	max_workers: int = 1,
) -> list[PrediccionRow]:
	"""Run the whole projection for every planting unit.

	Units share nothing, so ``max_workers > 1`` fans them out over a thread
	pool; the result is identical either way because rows are sorted at the
	end.
	"""
	start = time.perf_counter()
	units = extract_cohorts(inputs.observations, inputs.pinches, inputs.metadata, tz)
	configured = durations_by_unit(inputs.duration_configs)
	ledger = ProductionLedger.from_entries(inputs.production, tz)
	default = StageDurations()

	def _run(entry: UnitCohorts) -> list[PrediccionRow]:
		_, rows = project_unit(entry, configured.get(entry.unit, default), ledger, today)
		return rows

	entries = list(units.values())
	if max_workers > 1 and len(entries) > 1:
		with ThreadPoolExecutor(max_workers=max_workers) as pool:
			per_unit = list(pool.map(_run, entries))
	else:
		per_unit = [_run(entry) for entry in entries]

	rows = sort_rows(row for unit_rows in per_unit for row in unit_rows)
	_logger.info(
		"projection_complete",
		extra={
			"evaluation_date": today.isoformat(),
			"units": len(entries),
			"rows": len(rows),
			"duration_ms": round((time.perf_counter() - start) * 1000.0, 2),
		},
	)
	return rows
