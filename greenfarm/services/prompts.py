"""Prompt builders and response schemas for the Gemini generator.

Wording is free to change; only the JSON shapes requested here are relied on
by the gateway.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from greenfarm.models.enums import ActionEnum, SoilTypeEnum
from greenfarm.schemas.game import FarmStats, HistoryEntry, Scenario, ScenarioData

GAME_TITLE = "Get Ready for Green"

SCENARIO_DATA_SCHEMA: dict[str, Any] = {
	"type": "OBJECT",
	"properties": {
		"temperature": {"type": "NUMBER", "description": "Average temperature in Celsius."},
		"rainfall": {"type": "NUMBER", "description": "Rainfall in millimetres."},
		"soil_moisture": {"type": "NUMBER", "description": "Soil moisture percentage (0-100)."},
		"ndvi": {"type": "NUMBER", "description": "NDVI plant health index between 0 and 1."},
		"humidity": {"type": "NUMBER", "description": "Air humidity percentage (0-100)."},
		"wind_speed": {"type": "NUMBER", "description": "Wind speed in km/h."},
		"cloud_cover": {"type": "NUMBER", "description": "Cloud cover percentage (0-100)."},
		"pressure": {"type": "NUMBER", "description": "Atmospheric pressure in hPa."},
	},
	"required": [
		"temperature",
		"rainfall",
		"soil_moisture",
		"ndvi",
		"humidity",
		"wind_speed",
		"cloud_cover",
		"pressure",
	],
}

SCENARIO_SCHEMA: dict[str, Any] = {
	"type": "OBJECT",
	"properties": {
		"narrative": {"type": "STRING", "description": "Short story for this round, in Egyptian colloquial Arabic."},
		"challenge": {"type": "STRING", "description": "Concise challenge the player must handle."},
		"data": SCENARIO_DATA_SCHEMA,
	},
	"required": ["narrative", "challenge", "data"],
}

SCENARIO_TEXT_SCHEMA: dict[str, Any] = {
	"type": "OBJECT",
	"properties": {
		"narrative": SCENARIO_SCHEMA["properties"]["narrative"],
		"challenge": SCENARIO_SCHEMA["properties"]["challenge"],
	},
	"required": ["narrative", "challenge"],
}

OUTCOME_SCHEMA: dict[str, Any] = {
	"type": "OBJECT",
	"properties": {
		"narrative": {
			"type": "STRING",
			"description": "Why the decision produced these results, ending with a sustainability tip.",
		},
		"updated_stats": {
			"type": "OBJECT",
			"properties": {
				"crop_health": {"type": "NUMBER", "description": "New crop health (0-100)."},
				"soil_moisture": {"type": "NUMBER", "description": "New soil moisture (0-100)."},
				"water_reserves": {"type": "NUMBER", "description": "New water reserves (0-100)."},
				"soil_type": {"type": "STRING", "description": "Soil type, must stay unchanged."},
				"crop_type": {"type": "STRING", "description": "Crop type, must stay unchanged."},
			},
			"required": ["crop_health", "soil_moisture", "water_reserves", "soil_type", "crop_type"],
		},
	},
	"required": ["narrative", "updated_stats"],
}

TIPS_SCHEMA: dict[str, Any] = {
	"type": "OBJECT",
	"properties": {
		"tips": {
			"type": "ARRAY",
			"items": {"type": "STRING", "description": "Short actionable sustainable-farming tip."},
		}
	},
	"required": ["tips"],
}

ACTION_PHILOSOPHY = {
	ActionEnum.irrigate: "use water wisely",
	ActionEnum.fertilize: "use organic fertilizer",
	ActionEnum.pest_control: "use biological pest control",
	ActionEnum.conserve: "apply soil and water conservation techniques",
}

SOIL_VISUALS = {
	SoilTypeEnum.silty: "The soil is silty, appearing dark, fertile, and well-structured, capable of retaining moisture well.",
	SoilTypeEnum.sandy: "The soil is sandy, looking light-colored and granular, with a texture that suggests it drains water quickly.",
	SoilTypeEnum.chalky: "The soil is chalky, with a pale, stony appearance. It might look dry and alkaline.",
	SoilTypeEnum.saline: "The soil is saline, with subtle white, crystalline patches on the surface, indicating high salt content.",
	SoilTypeEnum.rocky: "The soil is rocky, visibly mixed with many small to medium-sized stones and pebbles, making it look rugged and less fertile.",
}


def soil_visual_description(soil_type: SoilTypeEnum) -> str:
	return SOIL_VISUALS.get(soil_type, "The soil appears normal.")


def describe_stats(stats: FarmStats) -> str:
	return (
		f"- Crop health: {stats.crop_health:g}%\n"
		f"- Soil moisture: {stats.soil_moisture:g}%\n"
		f"- Water reserves: {stats.water_reserves:g}%\n"
		f"- Soil type: {stats.soil_type.value}\n"
		f"- Crop: {stats.crop_type}"
	)


def describe_data(data: ScenarioData) -> str:
	return (
		f"temperature {data.temperature:g}°C, rainfall {data.rainfall:g}mm, "
		f"soil moisture {data.soil_moisture:g}%, NDVI {data.ndvi:.2f}, humidity {data.humidity:g}%, "
		f"wind {data.wind_speed:g} km/h, cloud cover {data.cloud_cover:g}%, pressure {data.pressure:g} hPa"
	)


def summarize_history(history: Sequence[HistoryEntry], *, outcome_chars: int = 100) -> str:
	if not history:
		return "This is the first round."
	lines = []
	for entry in history:
		lines.append(
			f"Round {entry.round}: the player faced \"{entry.scenario.challenge}\", chose {entry.action.value}, "
			f"which led to \"{entry.outcome.narrative[:outcome_chars]}...\""
		)
	return "\n".join(lines)


def build_scenario_prompt(history: Sequence[HistoryEntry], stats: FarmStats) -> str:
	last_action = history[-1].action.value if history else "NONE"
	return f"""
You are the sustainable-agriculture expert of the game "{GAME_TITLE}". Write a new educational
scenario for the player in Egyptian colloquial Arabic.

Current farm stats:
{describe_stats(stats)}

Previous rounds:
{summarize_history(history)}

Create a plausible challenge for the next round tied to the soil ({stats.soil_type.value}) and the
crop ({stats.crop_type}). Let the player's last decision ({last_action}) shape the new weather:
organic FERTILIZE or biological PEST_CONTROL slightly improve biodiversity, wise IRRIGATE raises
humidity, CONSERVE gradually improves soil health. Keep the data consistent with the narrative.
""".strip()


def build_scenario_from_seed_prompt(seed: ScenarioData, soil_type: SoilTypeEnum, crop_type: str) -> str:
	return f"""
You are the sustainable-agriculture expert of the game "{GAME_TITLE}". This is the first round and
the player supplied the conditions below. Write a welcoming, educational opening scenario in
Egyptian colloquial Arabic that matches them exactly.

Conditions: {describe_data(seed)}
Soil type: {soil_type.value}
Crop: {crop_type}

Return only a narrative and a challenge related to the crop.
""".strip()


def build_outcome_prompt(stats: FarmStats, scenario: Scenario, action: ActionEnum) -> str:
	return f"""
You are the sustainable-agriculture expert of the game "{GAME_TITLE}". Analyse the player's
decision from an environmental, educational perspective in Egyptian colloquial Arabic.

Current farm stats:
{describe_stats(stats)}

Scenario: "{scenario.narrative}"
Challenge: "{scenario.challenge}"
Conditions: {describe_data(scenario.data)}

Decision: {action.value} ({ACTION_PHILOSOPHY[action]})

Explain why the decision produced the new stats, covering the crop's needs, the soil's
properties and the weather. End the narrative with "Sustainability tip:" tailored to the new
stats. Compute updated crop health, soil moisture and water reserves between 0 and 100.
soil_type and crop_type must stay exactly as they are.
""".strip()


def build_tips_prompt(final_stats: FarmStats, history: Sequence[HistoryEntry]) -> str:
	decisions = "\n".join(
		f"- Round {entry.round}: faced \"{entry.scenario.challenge[:50]}...\" and chose \"{entry.action.value}\"."
		for entry in history
	) or "The player made no decisions."
	return f"""
You are a friendly sustainable-farming coach. The game "{GAME_TITLE}" just ended.

Final stats:
- Crop health: {final_stats.crop_health:g}%
- Soil moisture: {final_stats.soil_moisture:g}%
- Water reserves: {final_stats.water_reserves:g}%

Decisions:
{decisions}

Write 2 to 3 short, personal, actionable and encouraging tips in Egyptian colloquial Arabic,
linked to the final stats and the decisions above.
""".strip()


def build_image_create_prompt(scenario: Scenario, crop_type: str, soil_type: SoilTypeEnum) -> str:
	data = scenario.data
	return f"""
A photorealistic, vibrant, wide-angle cinematic shot of a modern sustainable farm in rural Egypt,
with fields of {crop_type}. The image must visually represent this situation: "{scenario.narrative}".

It must reflect these data points:
- Soil Type: {soil_visual_description(soil_type)}
- Crop Health (NDVI {data.ndvi:.2f}): near 1.0 is lush and green, near 0 is sparse and yellow.
- Soil Moisture ({data.soil_moisture:g}%): high looks dark and wet, low looks dry and cracked.
- Weather: {data.temperature:g}°C, rainfall {data.rainfall:g}mm, wind {data.wind_speed:g} km/h,
  cloud cover {data.cloud_cover:g}%, humidity {data.humidity:g}%.

Highly realistic and detailed, emphasizing ecological balance.
""".strip()


def build_image_edit_prompt(
	scenario: Scenario,
	outcome_narrative: str,
	crop_type: str,
	soil_type: SoilTypeEnum,
) -> str:
	data = scenario.data
	return f"""
Edit the provided image to reflect a change in the farm's condition. The farm is growing
{crop_type}. The previous action resulted in: "{outcome_narrative}".

New state:
- Soil Type: {soil_visual_description(soil_type)}
- Crop Health (NDVI {data.ndvi:.2f}): greener and lusher when higher, sparser when lower.
- Soil Moisture ({data.soil_moisture:g}%): darker and wetter when higher, drier when lower.
- Weather: {data.temperature:g}°C, rainfall {data.rainfall:g}mm, wind {data.wind_speed:g} km/h,
  cloud cover {data.cloud_cover:g}%, humidity {data.humidity:g}%.

Preserve the original composition and perspective; changes should be noticeable but realistic.
""".strip()
