"""Pydantic request/response schemas for the game HTTP endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from greenfarm.models.enums import ActionEnum, SoilTypeEnum
from greenfarm.schemas.game import FarmStats, GameSnapshot, HistoryEntry, ScenarioData


class ActionRequest(BaseModel):
	action: ActionEnum
	scenario_data: ScenarioData | None = None


class RoundOutcomeRead(BaseModel):
	round: int
	action: ActionEnum
	narrative: str
	updated_stats: FarmStats
	terminal: bool


class HistoryRead(BaseModel):
	game_id: str
	entries: list[HistoryEntry] = Field(default_factory=list)


class SoilTypeOption(BaseModel):
	value: SoilTypeEnum
	label: str


class CityOption(BaseModel):
	name_en: str
	name_ar: str


class CatalogRead(BaseModel):
	soil_types: list[SoilTypeOption]
	actions: list[ActionEnum]
	crop_types: dict[str, dict[str, list[str]]]
	cities: list[CityOption]
	max_rounds: int


class WeatherRead(BaseModel):
	city: str
	data: ScenarioData


class ActionResponse(BaseModel):
	outcome: RoundOutcomeRead
	game: GameSnapshot
