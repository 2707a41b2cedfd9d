"""Projection routes — stage occupancy, harvest windows, unit drill-down."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from floracast.database import get_session_factory
from floracast.schemas.projections import (
	DurationTableResponse,
	HarvestWindowResponse,
	ProjectionResponse,
	UnitTimelineResponse,
)
from floracast.services.projection_service import ProjectionService
from floracast.services.records_service import RecordsService

router = APIRouter(prefix="/predicciones", tags=["predicciones"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="projection failure")


def _service(request: Request, session_factory: async_sessionmaker[AsyncSession]) -> ProjectionService:
	return ProjectionService(RecordsService(session_factory), getattr(request.app.state, "redis", None))


@router.get("", response_model=ProjectionResponse)
async def get_projection(
	request: Request,
	fecha: date | None = Query(default=None),
	finca: list[str] | None = Query(default=None),
	bloque: list[str] | None = Query(default=None),
	variedad: list[str] | None = Query(default=None),
	include_timeline: bool = Query(default=True),
	session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ProjectionResponse:
	service = _service(request, session_factory)
	try:
		return await service.get_projection(
			fecha,
			farms=set(finca or ()),
			blocks=set(bloque or ()),
			varieties=set(variedad or ()),
			include_timeline=include_timeline,
		)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/cosecha", response_model=HarvestWindowResponse)
async def get_harvest_windows(
	request: Request,
	fecha: date | None = Query(default=None),
	session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> HarvestWindowResponse:
	service = _service(request, session_factory)
	try:
		return await service.get_harvest_windows(fecha)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{id_bloque}/{id_variedad}/timeline", response_model=UnitTimelineResponse)
async def get_unit_timeline(
	request: Request,
	id_bloque: int = Path(ge=1),
	id_variedad: int = Path(ge=1),
	fecha: date | None = Query(default=None),
	session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> UnitTimelineResponse:
	service = _service(request, session_factory)
	try:
		return await service.get_unit_timeline(id_bloque, id_variedad, fecha)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{id_bloque}/{id_variedad}/duraciones", response_model=DurationTableResponse)
async def get_unit_durations(
	request: Request,
	id_bloque: int = Path(ge=1),
	id_variedad: int = Path(ge=1),
	session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> DurationTableResponse:
	service = _service(request, session_factory)
	try:
		return await service.get_unit_durations(id_bloque, id_variedad)
	except Exception as exc:
		raise _map_error(exc) from exc
