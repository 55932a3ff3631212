"""Real-weather seed lookup (OpenWeatherMap current conditions)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from greenfarm.config import Settings
from greenfarm.schemas.game import ScenarioData, clamp_percent

# Not reported by the provider.
DEFAULT_SOIL_MOISTURE = 50.0
DEFAULT_NDVI = 0.65

logger = structlog.get_logger("greenfarm.weather")


class WeatherLookupError(RuntimeError):
	"""Raised when the weather provider cannot produce a seed."""


def scenario_data_from_weather(payload: dict[str, Any]) -> ScenarioData:
	try:
		main = payload["main"]
		wind = payload.get("wind") or {}
		clouds = payload.get("clouds") or {}
		rain = payload.get("rain") or {}
		return ScenarioData(
			temperature=round(float(main["temp"])),
			rainfall=max(0.0, float(rain.get("1h") or 0.0)),
			soil_moisture=DEFAULT_SOIL_MOISTURE,
			ndvi=DEFAULT_NDVI,
			humidity=clamp_percent(main["humidity"]),
			wind_speed=round(float(wind.get("speed") or 0.0) * 3.6),
			cloud_cover=clamp_percent(clouds.get("all") or 0.0),
			pressure=float(main["pressure"]),
		)
	except (KeyError, TypeError, ValueError) as exc:
		raise WeatherLookupError(f"Unexpected weather payload: {exc}") from exc


class WeatherService:
	def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None):
		self.settings = settings
		self.http_client = http_client

	async def fetch_city(self, city: str) -> ScenarioData:
		if not self.settings.openweather_api_key:
			raise WeatherLookupError("Weather provider API key is not configured")

		params = {
			"q": city,
			"appid": self.settings.openweather_api_key,
			"units": "metric",
			"lang": "ar",
		}
		try:
			if self.http_client is not None:
				response = await self.http_client.get(self.settings.openweather_base_url, params=params)
			else:
				async with httpx.AsyncClient(timeout=self.settings.openweather_timeout_seconds) as client:
					response = await client.get(self.settings.openweather_base_url, params=params)
			response.raise_for_status()
			payload = response.json()
		except httpx.HTTPStatusError as exc:
			logger.warning("weather_lookup_failed", city=city, status_code=exc.response.status_code)
			raise WeatherLookupError(f"Weather provider returned HTTP {exc.response.status_code}") from exc
		except (httpx.HTTPError, ValueError) as exc:
			logger.warning("weather_lookup_failed", city=city, error=str(exc))
			raise WeatherLookupError(f"Weather provider unavailable: {exc}") from exc

		if not isinstance(payload, dict):
			raise WeatherLookupError("Unexpected weather payload shape")
		data = scenario_data_from_weather(payload)
		logger.info("weather_lookup", city=city, temperature=data.temperature)
		return data
