"""FastAPI dependencies resolving services built in the application lifespan."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from greenfarm.services.game_registry import GameRegistry
from greenfarm.services.weather_service import WeatherService


def get_registry(request: Request) -> GameRegistry:
	registry = getattr(request.app.state, "registry", None)
	if registry is None:
		raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Game registry not initialized")
	return registry


def get_weather_service(request: Request) -> WeatherService:
	service = getattr(request.app.state, "weather_service", None)
	if service is None:
		raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Weather service not initialized")
	return service
