"""Shared pytest fixtures — async test client, fake sessions, engine inputs."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from floracast.database import get_session_factory
from floracast.engine import BedInfo, BlockInfo, FarmMetadata
from floracast.main import app


class FakeResult:
	def __init__(self, items: list[Any]) -> None:
		self._items = items

	def scalars(self) -> FakeResult:
		return self

	def all(self) -> list[Any]:
		return list(self._items)


class FakeSession:
	"""Answers ``select(Model)`` with the preset rows for that model."""

	def __init__(self, tables: dict[type, list[Any]]) -> None:
		self.tables = tables
		self.statements: list[Any] = []

	async def execute(self, stmt: Any) -> FakeResult:
		self.statements.append(stmt)
		entity = stmt.column_descriptions[0]["entity"]
		return FakeResult(self.tables.get(entity, []))

	async def __aenter__(self) -> FakeSession:
		return self

	async def __aexit__(self, *_exc: object) -> None:
		return None


class FakeSessionFactory:
	def __init__(self, tables: dict[type, list[Any]] | None = None) -> None:
		self.tables = tables or {}
		self.sessions: list[FakeSession] = []

	def __call__(self) -> FakeSession:
		session = FakeSession(self.tables)
		self.sessions.append(session)
		return session


class FakeRedis:
	def __init__(self) -> None:
		self.get = AsyncMock(return_value=None)
		self.setex = AsyncMock()


@pytest.fixture
def fake_session_factory() -> FakeSessionFactory:
	return FakeSessionFactory()


@pytest.fixture
def fake_redis() -> FakeRedis:
	"""Fake Redis client exposing the two cache calls the service makes."""
	return FakeRedis()


@pytest.fixture
def today() -> date:
	return date(2024, 5, 1)


@pytest.fixture
def morning(today: date) -> datetime:
	return datetime(today.year, today.month, today.day, 9, 30)


@pytest.fixture
def farm_metadata() -> FarmMetadata:
	"""Two units on two farms: (1, 10) on 'Bogotá' and (2, 20) on 'Ávila'."""
	return FarmMetadata(
		beds={
			100: BedInfo(bed="C-100", block_id=1, variety_id=10, farm="Bogotá", block="B1", variety="Freedom"),
			101: BedInfo(bed="C-101", block_id=1, variety_id=10, farm="Bogotá", block="B1", variety="Freedom"),
			200: BedInfo(bed="C-200", block_id=2, variety_id=20, farm="Ávila", block="B2", variety="Vendela"),
		},
		blocks={
			1: BlockInfo(name="B1", farm="Bogotá"),
			2: BlockInfo(name="B2", farm="Ávila"),
			3: BlockInfo(name="B3", farm="Ávila"),
		},
		varieties={10: "Freedom", 20: "Vendela", 30: "Explorer"},
	)


@pytest.fixture
async def client(fake_session_factory: FakeSessionFactory) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled and the session factory mocked."""

	app.dependency_overrides[get_session_factory] = lambda: fake_session_factory
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()
