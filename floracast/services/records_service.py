"""Read-only loading of projection inputs from the field-data store."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from datetime import date, datetime, time as dt_time, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from floracast.config import Settings, get_settings
from floracast.engine.records import (
	BedInfo,
	BlockInfo,
	FarmMetadata,
	ObservationEvent,
	PinchEvent,
	ProductionEntry,
	ProjectionInputs,
	StageDurationConfig,
	UnitKey,
)
from floracast.models.events import Observacion, Pinche, Produccion
from floracast.models.farm import Bloque, Cama, Finca, GrupoCama, Variedad
from floracast.models.phenology import EstadoFenologico

_logger = logging.getLogger("floracast.records")


class RecordsService:
	"""Fetch the four input collections and farm metadata, one session per read."""

	def __init__(
		self,
		session_factory: async_sessionmaker[AsyncSession],
		settings: Settings | None = None,
	):
		self.session_factory = session_factory
		self.settings = settings or get_settings()

	def fetch_window(self, evaluation_date: date) -> tuple[datetime, datetime]:
		"""Local-midnight start ``lookback`` days back through the end of the evaluation day."""
		tz = self.settings.tzinfo
		start_day = evaluation_date - timedelta(days=self.settings.projection_lookback_days)
		start = datetime.combine(start_day, dt_time.min, tzinfo=tz)
		end = datetime.combine(evaluation_date + timedelta(days=1), dt_time.min, tzinfo=tz)
		return start, end

	async def load_inputs(self, evaluation_date: date) -> ProjectionInputs:
		"""All reads are independent; the projection waits for every one of them."""
		start_ts = time.perf_counter()
		window_start, window_end = self.fetch_window(evaluation_date)

		observations, pinches, configs, production, metadata = await asyncio.gather(
			self.fetch_observations(window_start, window_end),
			self.fetch_pinches(window_start, window_end),
			self.fetch_duration_configs(),
			self.fetch_production(window_start),
			self.fetch_metadata(),
		)

		_logger.info(
			"projection_inputs_loaded",
			extra={
				"evaluation_date": evaluation_date.isoformat(),
				"observations": len(observations),
				"pinches": len(pinches),
				"duration_configs": len(configs),
				"production": len(production),
				"beds": len(metadata.beds),
				"duration_ms": round((time.perf_counter() - start_ts) * 1000.0, 2),
			},
		)
		return ProjectionInputs(
			observations=observations,
			pinches=pinches,
			duration_configs=configs,
			production=production,
			metadata=metadata,
		)

	async def fetch_observations(self, start: datetime, end: datetime) -> list[ObservationEvent]:
		stmt = (
			select(Observacion)
			.where(Observacion.creado_en >= start, Observacion.creado_en < end)
			.order_by(Observacion.creado_en.desc(), Observacion.id.desc())
			.limit(self.settings.projection_fetch_limit)
		)
		async with self.session_factory() as session:
			rows = (await session.execute(stmt)).scalars().all()
		self._check_limit("observacion", rows)
		return [
			ObservationEvent(
				id=row.id,
				recorded_at=row.creado_en,
				bed_id=row.id_cama,
				stage_name=row.tipo_observacion,
				quantity=row.cantidad,
			)
			for row in rows
		]

	async def fetch_pinches(self, start: datetime, end: datetime) -> list[PinchEvent]:
		stmt = (
			select(Pinche)
			.where(Pinche.created_at >= start, Pinche.created_at < end)
			.order_by(Pinche.created_at.desc(), Pinche.id.desc())
			.limit(self.settings.projection_fetch_limit)
		)
		async with self.session_factory() as session:
			rows = (await session.execute(stmt)).scalars().all()
		self._check_limit("pinche", rows)
		return [
			PinchEvent(
				id=row.id,
				recorded_at=row.created_at,
				quantity=row.cantidad,
				bed_id=row.cama,
				block_id=row.bloque,
				variety_id=row.variedad,
			)
			for row in rows
		]

	def _check_limit(self, table: str, rows: Sequence[object]) -> None:
		limit = self.settings.projection_fetch_limit
		if len(rows) >= limit:
			_logger.warning(
				"projection_fetch_limit_reached",
				extra={"table": table, "limit": limit},
			)

	async def fetch_duration_configs(self) -> list[StageDurationConfig]:
		async with self.session_factory() as session:
			rows = await session.execute(select(EstadoFenologico))
			return [
				StageDurationConfig(
					unit=UnitKey(row.id_bloque, row.id_variedad),
					durations=row.durations(),
				)
				for row in rows.scalars().all()
			]

	async def fetch_production(self, start: datetime) -> list[ProductionEntry]:
		stmt = select(Produccion).where(Produccion.created_at >= start).order_by(Produccion.id)
		async with self.session_factory() as session:
			rows = await session.execute(stmt)
			return [
				ProductionEntry(
					recorded_at=row.created_at,
					block_id=row.bloque,
					variety_id=row.variedad,
					quantity=row.cantidad,
				)
				for row in rows.scalars().all()
			]

	async def fetch_metadata(self) -> FarmMetadata:
		async with self.session_factory() as session:
			farms = (await session.execute(select(Finca))).scalars().all()
			blocks = (await session.execute(select(Bloque))).scalars().all()
			varieties = (await session.execute(select(Variedad))).scalars().all()
			groups = (await session.execute(select(GrupoCama))).scalars().all()
			beds = (await session.execute(select(Cama))).scalars().all()
		return build_metadata(farms, blocks, varieties, groups, beds)


def build_metadata(
	farms: Sequence[Finca],
	blocks: Sequence[Bloque],
	varieties: Sequence[Variedad],
	groups: Sequence[GrupoCama],
	beds: Sequence[Cama],
) -> FarmMetadata:
	"""Join the layout tables into the bed → unit resolution table.

	Beds whose group, block or variety cannot be resolved are left out, so
	events on them are dropped by the engine.
	"""
	farm_names = {farm.id_finca: farm.nombre for farm in farms}
	variety_names = {variety.id_variedad: variety.nombre for variety in varieties}
	block_info = {
		block.id_bloque: BlockInfo(name=block.nombre, farm=farm_names.get(block.id_finca, "") if block.id_finca is not None else "")
		for block in blocks
	}
	group_index = {group.id_grupo: group for group in groups}

	bed_info: dict[int, BedInfo] = {}
	for bed in beds:
		group = group_index.get(bed.id_grupo) if bed.id_grupo is not None else None
		if group is None or group.id_variedad is None:
			continue
		block = block_info.get(group.id_bloque)
		if block is None:
			continue
		bed_info[bed.id_cama] = BedInfo(
			bed=bed.nombre,
			block_id=group.id_bloque,
			variety_id=group.id_variedad,
			farm=block.farm,
			block=block.name,
			variety=variety_names.get(group.id_variedad, ""),
		)

	return FarmMetadata(beds=bed_info, blocks=block_info, varieties=variety_names)
