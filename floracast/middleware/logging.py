"""Structured logging with request ID propagation.

Engine and service modules log through stdlib ``logging`` with ``extra=``
fields; both those records and native structlog events are rendered by the
same structlog processor chain.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from floracast.config import LogFormat, get_settings

_configured = False


def configure_structured_logging() -> None:
	"""Route stdlib + structlog through one renderer, once per process."""
	global _configured
	if _configured:
		return

	settings = get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	shared_processors: list[Any] = [
		structlog.contextvars.merge_contextvars,
		structlog.stdlib.add_logger_name,
		structlog.stdlib.add_log_level,
		structlog.stdlib.ExtraAdder(),
		structlog.processors.TimeStamper(fmt="iso", utc=True),
	]

	renderer: Any
	if settings.log_format == LogFormat.json:
		renderer = structlog.processors.JSONRenderer()
	else:
		renderer = structlog.dev.ConsoleRenderer()

	formatter = structlog.stdlib.ProcessorFormatter(
		foreign_pre_chain=shared_processors,
		processors=[
			structlog.stdlib.ProcessorFormatter.remove_processors_meta,
			structlog.processors.format_exc_info,
			renderer,
		],
	)
	handler = logging.StreamHandler()
	handler.setFormatter(formatter)

	root = logging.getLogger()
	root.handlers = [handler]
	root.setLevel(log_level)

	structlog.configure(
		processors=[
			structlog.stdlib.filter_by_level,
			*shared_processors,
			structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
		],
		wrapper_class=structlog.stdlib.BoundLogger,
		logger_factory=structlog.stdlib.LoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Attach request IDs and emit one timing log per request."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id)
		fecha = request.query_params.get("fecha")
		if fecha:
			structlog.contextvars.bind_contextvars(evaluation_date=fecha)

		logger = structlog.get_logger("floracast.request")
		start = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception as exc:
			logger.exception(
				"http_request_failed",
				method=request.method,
				path=request.url.path,
				duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
				error=str(exc),
			)
			raise

		response.headers["x-request-id"] = request_id
		logger.info(
			"http_request",
			method=request.method,
			path=request.url.path,
			status_code=response.status_code,
			duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
		)
		return response
