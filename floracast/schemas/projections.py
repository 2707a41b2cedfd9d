"""Pydantic schemas for projection endpoints."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field


class SourceInfoRead(BaseModel):
	kind: str
	id: int
	date: dt.datetime | dt.date
	bed: str = ""
	original_stage: str
	current_stage: str
	quantity: float


class SourceGroupRead(BaseModel):
	kind: str
	id: int
	date: dt.datetime | dt.date
	beds: list[str] = Field(default_factory=list)
	stages: dict[str, float] = Field(default_factory=dict)


class TimelineRowRead(BaseModel):
	key: str
	date: dt.date
	is_past: bool = False
	stage_quantities: dict[str, float] = Field(default_factory=dict)
	harvest_available: float = 0
	sources: list[SourceInfoRead] = Field(default_factory=list)


class PrediccionRowRead(BaseModel):
	key: str
	date: dt.date
	farm: str
	block: str
	variety: str
	block_id: int
	variety_id: int
	unit_key: str
	stage_quantities: dict[str, float] = Field(default_factory=dict)
	harvest_available: float = 0


class FilterOptions(BaseModel):
	farms: list[str] = Field(default_factory=list)
	blocks: list[str] = Field(default_factory=list)
	varieties: list[str] = Field(default_factory=list)


class ProjectionResponse(BaseModel):
	evaluation_date: dt.date
	generated_at: dt.datetime
	cached: bool = False
	stages: list[str] = Field(default_factory=list)
	rows: list[PrediccionRowRead] = Field(default_factory=list)
	# one timeline per unit, keyed by PrediccionRowRead.unit_key
	timelines: dict[str, list[TimelineRowRead]] = Field(default_factory=dict)
	filters: FilterOptions = Field(default_factory=FilterOptions)


class HarvestWindowRead(BaseModel):
	date: dt.date
	start: dt.date
	days: int
	farm: str
	block: str
	variety: str
	block_id: int
	variety_id: int
	quantity: float
	total_quantity: float


class HarvestWindowResponse(BaseModel):
	evaluation_date: dt.date
	generated_at: dt.datetime
	items: list[HarvestWindowRead] = Field(default_factory=list)


class StageDurationRead(BaseModel):
	stage: str
	label: str
	days: int
	days_to_harvest: int
	configured: bool = False


class DurationTableResponse(BaseModel):
	block_id: int
	variety_id: int
	cycle_length: int
	durations: list[StageDurationRead] = Field(default_factory=list)


class UnitTimelineDay(TimelineRowRead):
	source_groups: list[SourceGroupRead] = Field(default_factory=list)


class UnitTimelineResponse(BaseModel):
	evaluation_date: dt.date
	block_id: int
	variety_id: int
	farm: str
	block: str
	variety: str
	cycle_length: int
	durations: list[StageDurationRead] = Field(default_factory=list)
	timeline: list[UnitTimelineDay] = Field(default_factory=list)
