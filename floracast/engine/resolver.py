"""Place a cohort on the stage sequence for a given day."""

from __future__ import annotations

from datetime import date

from floracast.engine.cohorts import Cohort
from floracast.engine.stages import Stage, StageDurations, next_stage


def stage_on(cohort: Cohort, target: date, durations: StageDurations) -> Stage | None:
	"""Stage occupied by ``cohort`` on ``target``; None before it was observed.

	The cohort sits on day 0 of its start stage on the day it was recorded.
	Elapsed days are consumed stage by stage, wrapping from ``cosecha`` back to
	``brotacion``.  Every duration is positive, so the walk always ends.
	"""
	elapsed = (target - cohort.observed_on).days
	if elapsed < 0:
		return None

	# a full cycle from any stage lands back on that same stage
	elapsed %= durations.cycle_length

	stage = cohort.start_stage
	while True:
		days = durations.duration_of(stage)
		if elapsed < days:
			return stage
		elapsed -= days
		stage = next_stage(stage)
