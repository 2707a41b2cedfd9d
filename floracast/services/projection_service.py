"""Projection orchestration — loads inputs, runs the engine, caches responses."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Collection, Iterable, Sequence
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from floracast.config import Settings, get_settings
from floracast.engine import (
	OBSERVABLE_STAGES,
	BedInfo,
	PrediccionRow,
	ProductionLedger,
	ProjectionInputs,
	SourceInfo,
	StageDurations,
	TimelineRow,
	UnitKey,
	durations_by_unit,
	extract_cohorts,
	filter_rows,
	group_sources,
	harvest_windows,
	project,
	project_unit,
	unit_ref,
)
from floracast.engine.materialize import collation_key
from floracast.schemas.projections import (
	DurationTableResponse,
	FilterOptions,
	HarvestWindowRead,
	HarvestWindowResponse,
	PrediccionRowRead,
	ProjectionResponse,
	SourceGroupRead,
	SourceInfoRead,
	StageDurationRead,
	TimelineRowRead,
	UnitTimelineDay,
	UnitTimelineResponse,
)
from floracast.services.records_service import RecordsService

_logger = logging.getLogger("floracast.projections")


def input_fingerprint(inputs: ProjectionInputs) -> str:
	"""Digest of every record the projection reads; any new or edited record changes it."""
	digest = hashlib.sha256()
	for collection in (inputs.observations, inputs.pinches, inputs.duration_configs, inputs.production):
		for record in collection:
			digest.update(repr(record).encode())
		digest.update(b"|")
	metadata = inputs.metadata
	for lookup in (metadata.beds, metadata.blocks, metadata.varieties):
		for key in sorted(lookup):
			digest.update(repr((key, lookup[key])).encode())
		digest.update(b"|")
	return digest.hexdigest()[:20]


class ProjectionService:
	def __init__(
		self,
		records: RecordsService,
		redis_client: Redis | None = None,
		settings: Settings | None = None,
	):
		self.records = records
		self.redis_client = redis_client
		self.settings = settings or get_settings()

	@property
	def tz(self) -> ZoneInfo:
		return self.settings.tzinfo

	def resolve_evaluation_date(self, value: date | None = None) -> date:
		"""Today in the configured timezone unless a date is given."""
		if value is not None:
			return value
		return datetime.now(self.tz).date()

	async def get_projection(
		self,
		evaluation_date: date | None = None,
		farms: Collection[str] = (),
		blocks: Collection[str] = (),
		varieties: Collection[str] = (),
		include_timeline: bool = True,
	) -> ProjectionResponse:
		"""Unfiltered projection, cached per evaluation date and input fingerprint."""
		today = self.resolve_evaluation_date(evaluation_date)
		inputs = await self.records.load_inputs(today)
		cache_key = f"projection:{today.isoformat()}:{input_fingerprint(inputs)}"

		response = await self._read_cache(cache_key)
		if response is None:
			rows, unit_timelines = self._to_row_payloads(self._run_projection(inputs, today))
			response = ProjectionResponse(
				evaluation_date=today,
				generated_at=datetime.now(UTC),
				cached=False,
				stages=[stage.value for stage in OBSERVABLE_STAGES],
				rows=rows,
				timelines=unit_timelines,
			)
			await self._write_cache(cache_key, response)

		filtered = filter_rows(response.rows, farms, blocks, varieties)
		timelines: dict[str, list[TimelineRowRead]] = {}
		if include_timeline:
			refs = {row.unit_key for row in filtered}
			timelines = {ref: days for ref, days in response.timelines.items() if ref in refs}
		return response.model_copy(
			update={
				"rows": filtered,
				"timelines": timelines,
				"filters": self.filter_options(inputs.metadata.beds.values(), farms, blocks),
			}
		)

	async def get_harvest_windows(self, evaluation_date: date | None = None) -> HarvestWindowResponse:
		today = self.resolve_evaluation_date(evaluation_date)
		rows = self._run_projection(await self.records.load_inputs(today), today)
		items = [
			HarvestWindowRead(
				date=window.end,
				start=window.start,
				days=window.days,
				farm=window.farm,
				block=window.block,
				variety=window.variety,
				block_id=window.unit.block_id,
				variety_id=window.unit.variety_id,
				quantity=window.last_day_quantity,
				total_quantity=window.total_quantity,
			)
			for window in harvest_windows(rows)
		]
		return HarvestWindowResponse(evaluation_date=today, generated_at=datetime.now(UTC), items=items)

	async def get_unit_timeline(
		self,
		block_id: int,
		variety_id: int,
		evaluation_date: date | None = None,
	) -> UnitTimelineResponse:
		today = self.resolve_evaluation_date(evaluation_date)
		unit = UnitKey(block_id, variety_id)
		inputs = await self.records.load_inputs(today)

		entry = extract_cohorts(inputs.observations, inputs.pinches, inputs.metadata, self.tz).get(unit)
		if entry is None:
			raise LookupError(f"No observations or pinches for bloque {block_id} / variedad {variety_id}")

		durations = durations_by_unit(inputs.duration_configs).get(unit, StageDurations())
		ledger = ProductionLedger.from_entries(inputs.production, self.tz)
		timeline, _ = project_unit(entry, durations, ledger, today)

		return UnitTimelineResponse(
			evaluation_date=today,
			block_id=block_id,
			variety_id=variety_id,
			farm=entry.farm,
			block=entry.block,
			variety=entry.variety,
			cycle_length=durations.cycle_length,
			durations=self._duration_payloads(durations),
			timeline=[
				UnitTimelineDay(
					**self._timeline_payload(day).model_dump(),
					source_groups=self._source_group_payloads(day.sources),
				)
				for day in timeline
			],
		)

	async def get_unit_durations(self, block_id: int, variety_id: int) -> DurationTableResponse:
		if block_id <= 0 or variety_id <= 0:
			raise ValueError("block and variety ids must be positive")
		configs = await self.records.fetch_duration_configs()
		durations = durations_by_unit(configs).get(UnitKey(block_id, variety_id), StageDurations())
		return DurationTableResponse(
			block_id=block_id,
			variety_id=variety_id,
			cycle_length=durations.cycle_length,
			durations=self._duration_payloads(durations),
		)

	def _run_projection(self, inputs: ProjectionInputs, today: date) -> list[PrediccionRow]:
		return project(inputs, today, self.tz, max_workers=self.settings.projection_max_workers)

	@staticmethod
	def filter_options(
		beds: Iterable[BedInfo],
		farms: Collection[str] = (),
		blocks: Collection[str] = (),
	) -> FilterOptions:
		"""Options from every known bed; blocks narrow to the selected farms, varieties to farms and blocks."""
		known = list(beds)
		farm_names = {bed.farm for bed in known}
		block_names = {bed.block for bed in known if not farms or bed.farm in farms}
		variety_names = {
			bed.variety
			for bed in known
			if (not farms or bed.farm in farms) and (not blocks or bed.block in blocks)
		}
		return FilterOptions(
			farms=sorted(filter(None, farm_names), key=collation_key),
			blocks=sorted(filter(None, block_names), key=collation_key),
			varieties=sorted(filter(None, variety_names), key=collation_key),
		)

	def _to_row_payloads(
		self, rows: Sequence[PrediccionRow]
	) -> tuple[list[PrediccionRowRead], dict[str, list[TimelineRowRead]]]:
		timelines: dict[str, list[TimelineRowRead]] = {}
		payload: list[PrediccionRowRead] = []
		for row in rows:
			ref = unit_ref(row.unit)
			if ref not in timelines:
				timelines[ref] = [self._timeline_payload(day) for day in row.timeline]
			payload.append(
				PrediccionRowRead(
					key=row.key,
					date=row.date,
					farm=row.farm,
					block=row.block,
					variety=row.variety,
					block_id=row.unit.block_id,
					variety_id=row.unit.variety_id,
					unit_key=ref,
					stage_quantities={stage.value: qty for stage, qty in row.stage_quantities.items()},
					harvest_available=row.harvest_available,
				)
			)
		return payload, timelines

	@staticmethod
	def _timeline_payload(day: TimelineRow) -> TimelineRowRead:
		return TimelineRowRead(
			key=day.key,
			date=day.date,
			is_past=day.is_past,
			stage_quantities={stage.value: qty for stage, qty in day.stage_quantities.items()},
			harvest_available=day.harvest_available,
			sources=[
				SourceInfoRead(
					kind=source.kind.value,
					id=source.id,
					date=source.date,
					bed=source.bed,
					original_stage=source.original_stage.value,
					current_stage=source.current_stage.value,
					quantity=source.quantity,
				)
				for source in day.sources
			],
		)

	@staticmethod
	def _source_group_payloads(sources: Sequence[SourceInfo]) -> list[SourceGroupRead]:
		return [
			SourceGroupRead(
				kind=group.kind.value,
				id=group.id,
				date=group.date,
				beds=list(group.beds),
				stages={stage.value: qty for stage, qty in group.stages.items()},
			)
			for group in group_sources(sources)
		]

	@staticmethod
	def _duration_payloads(durations: StageDurations) -> list[StageDurationRead]:
		return [
			StageDurationRead(
				stage=entry.stage.value,
				label=entry.label,
				days=entry.days,
				days_to_harvest=entry.days_to_harvest,
				configured=entry.configured,
			)
			for entry in durations.duration_table()
		]

	async def _read_cache(self, key: str) -> ProjectionResponse | None:
		if self.redis_client is None:
			return None
		try:
			cached = await self.redis_client.get(key)
		except RedisError as exc:
			_logger.warning("projection_cache_read_failed", extra={"key": key, "error": str(exc)})
			return None
		if cached is None:
			return None
		try:
			response = ProjectionResponse.model_validate_json(cached)
		except ValidationError as exc:
			_logger.warning("projection_cache_read_failed", extra={"key": key, "error": str(exc)})
			return None
		return response.model_copy(update={"cached": True})

	async def _write_cache(self, key: str, response: ProjectionResponse) -> None:
		ttl = self.settings.projection_cache_ttl_seconds
		if self.redis_client is None or ttl <= 0:
			return
		try:
			await self.redis_client.setex(key, ttl, response.model_dump_json())
		except RedisError as exc:
			_logger.warning("projection_cache_write_failed", extra={"key": key, "error": str(exc)})
