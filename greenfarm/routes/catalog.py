"""Configuration-step reference data and real-weather seed lookup."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from greenfarm.catalog import CROP_TYPES, EGYPTIAN_CITIES, SOIL_TYPE_LABELS
from greenfarm.config import get_settings
from greenfarm.dependencies import get_weather_service
from greenfarm.models.enums import ActionEnum
from greenfarm.schemas.api import CatalogRead, CityOption, SoilTypeOption, WeatherRead
from greenfarm.services.weather_service import WeatherLookupError, WeatherService

router = APIRouter(tags=["catalog"])


@router.get("/catalog", response_model=CatalogRead)
async def get_catalog() -> CatalogRead:
	return CatalogRead(
		soil_types=[SoilTypeOption(value=soil, label=label) for soil, label in SOIL_TYPE_LABELS.items()],
		actions=list(ActionEnum),
		crop_types=CROP_TYPES,
		cities=[CityOption(name_en=name_en, name_ar=name_ar) for name_en, name_ar in EGYPTIAN_CITIES],
		max_rounds=get_settings().max_rounds,
	)


@router.get("/weather/{city}", response_model=WeatherRead)
async def get_city_weather(
	city: str,
	service: WeatherService = Depends(get_weather_service),
) -> WeatherRead:
	try:
		data = await service.fetch_city(city)
	except WeatherLookupError as exc:
		raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
	return WeatherRead(city=city, data=data)
