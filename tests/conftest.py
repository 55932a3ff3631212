"""Shared pytest fixtures: scripted content generator, gateway, controller, API client."""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import AsyncGenerator, Callable, Sequence
from contextlib import asynccontextmanager
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from greenfarm.config import Settings
from greenfarm.main import app
from greenfarm.models.enums import ActionEnum, SoilTypeEnum
from greenfarm.schemas.game import FarmStats, HistoryEntry, Scenario, ScenarioData
from greenfarm.services.content_gateway import ContentGateway
from greenfarm.services.game_controller import GameController
from greenfarm.services.game_registry import GameRegistry
from greenfarm.services.retry import RetryPolicy
from greenfarm.services.weather_service import WeatherService

WHEAT = "القمح"


def scenario_payload(index: int) -> dict[str, Any]:
    return {
        "narrative": f"Scenario narrative {index}",
        "challenge": f"Challenge {index}",
        "data": {
            "temperature": 30,
            "rainfall": 1,
            "soil_moisture": 40,
            "ndvi": 0.6,
            "humidity": 45,
            "wind_speed": 12,
            "cloud_cover": 10,
            "pressure": 1010,
        },
    }


def _resolve(value: Any, *args: Any) -> Any:
    if isinstance(value, BaseException):
        raise value
    if callable(value):
        return value(*args)
    return value


class FakeGenerator:
    """Scriptable ContentGenerator.

    Each ``*_result`` attribute may be a payload, an exception instance (raised)
    or a callable receiving the call arguments. ``None`` means the default payload.
    """

    def __init__(self) -> None:
        self.calls: Counter[str] = Counter()
        self.scenario_result: Any = None
        self.scenario_text_result: Any = None
        self.outcome_result: Any = None
        self.image_result: Any = None
        self.tips_result: Any = None
        self.outcome_gate: asyncio.Event | None = None
        self.image_gate: asyncio.Event | None = None
        self.tips_gate: asyncio.Event | None = None
        self.scenario_args: list[tuple[tuple[HistoryEntry, ...], FarmStats]] = []
        self.image_args: list[tuple[str | None, str]] = []

    async def scenario(self, history: Sequence[HistoryEntry], stats: FarmStats) -> dict[str, Any]:
        self.calls["scenario"] += 1
        self.scenario_args.append((tuple(history), stats))
        if self.scenario_result is None:
            return scenario_payload(self.calls["scenario"])
        return _resolve(self.scenario_result, history, stats)

    async def scenario_text(self, seed: ScenarioData, soil_type: SoilTypeEnum, crop_type: str) -> dict[str, Any]:
        self.calls["scenario_text"] += 1
        if self.scenario_text_result is None:
            return {"narrative": f"Opening on {crop_type}", "challenge": "Use your own data"}
        return _resolve(self.scenario_text_result, seed, soil_type, crop_type)

    async def outcome(self, stats: FarmStats, scenario: Scenario, action: ActionEnum) -> dict[str, Any]:
        self.calls["outcome"] += 1
        if self.outcome_gate is not None:
            await self.outcome_gate.wait()
        if self.outcome_result is None:
            return {
                "narrative": f"{action.value} went fine",
                "updated_stats": {
                    "crop_health": min(100.0, stats.crop_health + 2),
                    "soil_moisture": stats.soil_moisture,
                    "water_reserves": max(0.0, stats.water_reserves - 5),
                    "soil_type": stats.soil_type.value,
                },
            }
        return _resolve(self.outcome_result, stats, scenario, action)

    async def image(
        self,
        scenario: Scenario,
        previous_image: str | None,
        outcome_narrative: str,
        crop_type: str,
        soil_type: SoilTypeEnum,
    ) -> str | None:
        self.calls["image"] += 1
        self.image_args.append((previous_image, outcome_narrative))
        if self.image_gate is not None:
            await self.image_gate.wait()
        if self.image_result is None:
            return f"data:image/jpeg;base64,image-{self.calls['image']}"
        return _resolve(self.image_result, scenario, previous_image)

    async def tips(self, final_stats: FarmStats, history: Sequence[HistoryEntry]) -> dict[str, Any]:
        self.calls["tips"] += 1
        if self.tips_gate is not None:
            await self.tips_gate.wait()
        if self.tips_result is None:
            return {"tips": [f"Played {len(history)} rounds", "Conserve water on hot days"]}
        return _resolve(self.tips_result, final_stats, history)


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_stats(
    crop_health: float = 70,
    soil_moisture: float = 60,
    water_reserves: float = 80,
    soil_type: SoilTypeEnum = SoilTypeEnum.silty,
    crop_type: str = WHEAT,
) -> FarmStats:
    return FarmStats(
        crop_health=crop_health,
        soil_moisture=soil_moisture,
        water_reserves=water_reserves,
        soil_type=soil_type,
        crop_type=crop_type,
    )


def outcome_with(**stats: float) -> Callable[[FarmStats, Scenario, ActionEnum], dict[str, Any]]:
    """Outcome script returning fixed numeric stats (identity fields omitted)."""

    def _script(current: FarmStats, _scenario: Scenario, action: ActionEnum) -> dict[str, Any]:
        return {
            "narrative": f"{action.value} outcome",
            "updated_stats": {
                "crop_health": stats.get("crop_health", current.crop_health),
                "soil_moisture": stats.get("soil_moisture", current.soil_moisture),
                "water_reserves": stats.get("water_reserves", current.water_reserves),
            },
        }

    return _script


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def gateway(generator: FakeGenerator, sleeper: SleepRecorder) -> ContentGateway:
    """Gateway over the fake generator with instant (recorded) retry delays."""
    return ContentGateway(generator, RetryPolicy(max_attempts=3, initial_delay=2.0, sleep=sleeper))


@pytest.fixture
def controller(gateway: ContentGateway) -> GameController:
    return GameController(gateway, max_rounds=5)


@pytest.fixture
async def active_controller(controller: GameController) -> GameController:
    controller.acknowledge_tutorial()
    await controller.start_game()
    await controller.tasks.drain()
    return controller


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        gemini_api_key="",
        openweather_api_key="weather-test-key",
        openweather_base_url="https://weather.test/data/2.5/weather",
        max_rounds=5,
    )


def openweather_payload() -> dict[str, Any]:
    return {
        "main": {"temp": 31.6, "humidity": 38, "pressure": 1009},
        "wind": {"speed": 5.0},
        "clouds": {"all": 15},
        "rain": {"1h": 0.4},
        "name": "Cairo",
    }


@pytest.fixture
def weather_transport() -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("q") == "Atlantis":
            return httpx.Response(404, json={"cod": "404", "message": "city not found"})
        return httpx.Response(200, json=openweather_payload())

    return httpx.MockTransport(handler)


@pytest.fixture
async def client(
    gateway: ContentGateway,
    test_settings: Settings,
    weather_transport: httpx.MockTransport,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async client with lifespan disabled and services wired to fakes."""
    registry = GameRegistry(gateway, test_settings)
    weather_http = httpx.AsyncClient(transport=weather_transport)
    app.state.registry = registry
    app.state.weather_service = WeatherService(test_settings, weather_http)
    original_lifespan = app.router.lifespan_context

    @asynccontextmanager
    async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
        yield

    app.router.lifespan_context = noop_lifespan

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    await registry.shutdown()
    await weather_http.aclose()
    app.router.lifespan_context = original_lifespan
    del app.state.registry
    del app.state.weather_service
