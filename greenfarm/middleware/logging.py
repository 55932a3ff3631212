"""Structured logging for the game server, keyed by request and by game."""

from __future__ import annotations

import logging
import re
import time
import uuid
from collections.abc import MutableMapping
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from greenfarm.config import LogFormat, Settings, get_settings

GAME_PATH_PATTERN = re.compile(r"/games/(?P<game_id>[0-9a-fA-F-]{36})(?:/|$)")
DATA_URL_PREVIEW_CHARS = 48

_configured = False


def game_id_from_path(path: str) -> str | None:
	"""Game id addressed by a ``/games/{id}/...`` path, if any."""
	match = GAME_PATH_PATTERN.search(path)
	if match is None:
		return None
	try:
		return str(uuid.UUID(match.group("game_id")))
	except ValueError:
		return None


def shorten_data_urls(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
	"""Keep base64 farm images out of log lines."""
	for key, value in event_dict.items():
		if isinstance(value, str) and value.startswith("data:") and len(value) > DATA_URL_PREVIEW_CHARS:
			event_dict[key] = f"{value[:DATA_URL_PREVIEW_CHARS]}...({len(value)} chars)"
	return event_dict


def configure_structured_logging(settings: Settings | None = None) -> None:
	"""Configure stdlib + structlog once per process."""
	global _configured
	if _configured:
		return

	settings = settings or get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
	logging.basicConfig(level=log_level, format="%(message)s")

	renderer: Any
	if settings.log_format == LogFormat.json:
		renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
	else:
		renderer = structlog.dev.ConsoleRenderer()

	structlog.configure(
		processors=[
			structlog.contextvars.merge_contextvars,
			structlog.processors.add_log_level,
			structlog.processors.TimeStamper(fmt="iso", utc=True),
			shorten_data_urls,
			structlog.processors.format_exc_info,
			renderer,
		],
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind request and game ids for everything logged while serving a request.

	Background image and tips tasks spawned by the handler inherit the bound
	context, so their results can be traced back to the game they belong to.
	"""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
		request.state.request_id = request_id
		game_id = game_id_from_path(request.url.path)

		structlog.contextvars.clear_contextvars()
		context: dict[str, str] = {"request_id": request_id}
		if game_id is not None:
			context["game_id"] = game_id
		structlog.contextvars.bind_contextvars(**context)

		logger = structlog.get_logger("greenfarm.request")
		start = time.perf_counter()
		try:
			response = await call_next(request)
		except Exception:
			logger.exception(
				"game_request_failed",
				method=request.method,
				path=request.url.path,
				duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
			)
			raise

		response.headers["x-request-id"] = request_id
		log = logger.warning if response.status_code >= 500 else logger.info
		log(
			"game_request",
			method=request.method,
			path=request.url.path,
			status_code=response.status_code,
			duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
		)
		return response
