"""FastAPI application entrypoint: lifespan, routers, middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from greenfarm.config import get_settings
from greenfarm.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from greenfarm.routes import catalog, games
from greenfarm.services.content_gateway import ContentGateway
from greenfarm.services.gemini_generator import GeminiGenerator
from greenfarm.services.game_registry import GameRegistry
from greenfarm.services.retry import RetryPolicy
from greenfarm.services.weather_service import WeatherService

logger = logging.getLogger("greenfarm")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Open the shared HTTP client for content and weather providers
      3. Build the content gateway and the in-memory game registry

    Shutdown:
      1. Let outstanding background image/tips tasks settle
      2. Close the HTTP client
    """
    settings = get_settings()
    configure_structured_logging(settings)
    logger.info(
        "GreenFarm starting",
        extra={
            "log_level": settings.log_level,
            "max_rounds": settings.max_rounds,
            "gemini_configured": bool(settings.gemini_api_key),
        },
    )

    http_client = httpx.AsyncClient(timeout=settings.gemini_timeout_seconds)
    gateway = ContentGateway(
        GeminiGenerator(settings, http_client),
        RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            initial_delay=settings.retry_initial_delay_seconds,
        ),
    )
    registry = GameRegistry(gateway, settings)
    app.state.registry = registry
    app.state.weather_service = WeatherService(settings, http_client)

    yield

    logger.info("GreenFarm shutting down")
    await registry.shutdown()
    await http_client.aclose()


app = FastAPI(
    title="GreenFarm API",
    description=(
        "Round-based sustainable farming game where each round pairs a generated "
        "environmental scenario with a player decision, an evaluated outcome, "
        "and a best-effort farm image, with deterministic fallbacks when the "
        "content generators are unavailable."
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware ──────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic health check. Verifies the API process is alive."""
    return {
        "status": "ok",
        "service": "greenfarm",
        "version": "0.1.0",
    }


# ── Router registration ────────────────────────────────────────────────────
app.include_router(games.router, prefix="/api/v1")
app.include_router(catalog.router, prefix="/api/v1")
