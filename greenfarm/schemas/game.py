"""Pydantic models for the game domain: stats, scenarios, outcomes, history."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field

from greenfarm.models.enums import ActionEnum, GameStateEnum, RoundPhaseEnum, SoilTypeEnum

INITIAL_CROP_HEALTH = 70.0
INITIAL_SOIL_MOISTURE = 60.0
INITIAL_WATER_RESERVES = 80.0


def clamp_percent(value: float) -> float:
	return max(0.0, min(100.0, float(value)))


class FarmStats(BaseModel):
	model_config = ConfigDict(frozen=True)

	crop_health: float = Field(ge=0.0, le=100.0)
	soil_moisture: float = Field(ge=0.0, le=100.0)
	water_reserves: float = Field(ge=0.0, le=100.0)
	soil_type: SoilTypeEnum
	crop_type: str = Field(min_length=1, max_length=100)


class ScenarioData(BaseModel):
	"""Environmental snapshot attached to a scenario."""

	model_config = ConfigDict(frozen=True)

	temperature: float
	rainfall: float = Field(ge=0.0)
	soil_moisture: float = Field(ge=0.0, le=100.0)
	ndvi: float = Field(ge=0.0, le=1.0)
	humidity: float = Field(ge=0.0, le=100.0)
	wind_speed: float = Field(ge=0.0)
	cloud_cover: float = Field(ge=0.0, le=100.0)
	pressure: float = Field(gt=0.0)


class Scenario(BaseModel):
	model_config = ConfigDict(frozen=True)

	narrative: str
	challenge: str
	data: ScenarioData


class Outcome(BaseModel):
	model_config = ConfigDict(frozen=True)

	narrative: str
	updated_stats: FarmStats


class HistoryEntry(BaseModel):
	model_config = ConfigDict(frozen=True)

	round: int = Field(ge=1)
	scenario: Scenario
	action: ActionEnum
	outcome: Outcome


class ImageState(BaseModel):
	url: str | None = None
	generating: bool = False


class TipsState(BaseModel):
	tips: list[str] | None = None
	generating: bool = False


class GameConfiguration(BaseModel):
	"""Player choices submitted at the weather-input step."""

	soil_type: SoilTypeEnum | None = None
	crop_type: str | None = Field(default=None, min_length=1, max_length=100)
	scenario_data: ScenarioData | None = None


class GameSnapshot(BaseModel):
	"""Read-only view of a controller, as exposed to the presentation layer."""

	game_id: str
	state: GameStateEnum
	phase: RoundPhaseEnum
	is_loading: bool
	round: int
	max_rounds: int
	stats: FarmStats | None = None
	scenario: Scenario | None = None
	scenario_ready: bool
	image: ImageState
	tips: TipsState
	history_length: int
	error: str | None = None
	won: bool | None = None
	final_score: int | None = None


def initial_stats(soil_type: SoilTypeEnum, crop_type: str) -> FarmStats:
	return FarmStats(
		crop_health=INITIAL_CROP_HEALTH,
		soil_moisture=INITIAL_SOIL_MOISTURE,
		water_reserves=INITIAL_WATER_RESERVES,
		soil_type=soil_type,
		crop_type=crop_type,
	)


def final_score(stats: FarmStats) -> int:
	"""Display-only score shown on the game-over screen."""
	raw = stats.crop_health * 10 + stats.soil_moisture * 2.5 + stats.water_reserves * 2.5
	# Halves round up.
	return math.floor(raw + 0.5)
