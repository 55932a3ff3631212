"""Content gateway: retried generator calls with deterministic local fallbacks.

Every operation here is safe to await from the round orchestrator: upstream
failures (rate limiting after retries, HTTP errors, malformed payloads) are
absorbed and replaced by a fixed fallback value.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from greenfarm.models.enums import ActionEnum, SoilTypeEnum
from greenfarm.schemas.game import (
	FarmStats,
	HistoryEntry,
	Outcome,
	Scenario,
	ScenarioData,
	clamp_percent,
)
from greenfarm.services.content_generator import ContentGenerator
from greenfarm.services.retry import RetryPolicy

logger = structlog.get_logger("greenfarm.gateway")

FALLBACK_SCENARIO_DATA = ScenarioData(
	temperature=25,
	rainfall=2,
	soil_moisture=55,
	ndvi=0.7,
	humidity=60,
	wind_speed=10,
	cloud_cover=20,
	pressure=1012,
)
FALLBACK_SCENARIO = Scenario(
	narrative=(
		"القمر الصناعي فيه مشكلة ومش عارفين نجيب آخر تقرير للطقس. "
		"السما شكلها صافية دلوقتي، بس قلبك حاسس بحاجة."
	),
	challenge="خد قرارك بمعلومات ناقصة.",
	data=FALLBACK_SCENARIO_DATA,
)
FALLBACK_SEED_NARRATIVE = (
	"القمر الصناعي فيه مشكلة، بس إحنا هنعتمد على البيانات اللي أنت دخلتها. الجو حسب كلامك، محتاج تركيز."
)
FALLBACK_SEED_CHALLENGE = "خد قرارك بناءً على البيانات اللي أدخلتها."

_PERCENT_FIELDS = ("soil_moisture", "humidity", "cloud_cover")
_NON_NEGATIVE_FIELDS = ("rainfall", "wind_speed")


def fallback_outcome_narrative(action: ActionEnum) -> str:
	label = action.value.lower().replace("_", " ")
	return f"بسبب مشكلة في السيستم، النتيجة بالظبط مش محسوبة. أنت التزمت بـ {label}، وربنا يستر."


def _require_text(payload: Mapping[str, Any], key: str) -> str:
	value = payload.get(key)
	if not isinstance(value, str) or not value.strip():
		raise ValueError(f"Generated payload is missing '{key}'")
	return value.strip()


def _require_number(payload: Mapping[str, Any], key: str) -> float:
	value = payload.get(key)
	if isinstance(value, bool):
		raise ValueError(f"Generated field '{key}' is not numeric")
	try:
		number = float(value)  # type: ignore[arg-type]
	except (TypeError, ValueError) as exc:
		raise ValueError(f"Generated field '{key}' is not numeric") from exc
	if not math.isfinite(number):
		raise ValueError(f"Generated field '{key}' is not finite")
	return number


def parse_scenario_data(raw: Any) -> ScenarioData:
	if not isinstance(raw, Mapping):
		raise ValueError("Generated scenario data is not an object")
	values = {key: _require_number(raw, key) for key in ScenarioData.model_fields}
	for key in _PERCENT_FIELDS:
		values[key] = clamp_percent(values[key])
	for key in _NON_NEGATIVE_FIELDS:
		values[key] = max(0.0, values[key])
	values["ndvi"] = max(0.0, min(1.0, values["ndvi"]))
	return ScenarioData(**values)


def parse_scenario(payload: Mapping[str, Any]) -> Scenario:
	return Scenario(
		narrative=_require_text(payload, "narrative"),
		challenge=_require_text(payload, "challenge"),
		data=parse_scenario_data(payload.get("data")),
	)


def parse_outcome(payload: Mapping[str, Any], stats: FarmStats) -> Outcome:
	raw_stats = payload.get("updated_stats")
	if not isinstance(raw_stats, Mapping):
		raise ValueError("Generated outcome is missing 'updated_stats'")

	returned_soil = raw_stats.get("soil_type")
	returned_crop = raw_stats.get("crop_type")
	if (returned_soil and returned_soil != stats.soil_type.value) or (returned_crop and returned_crop != stats.crop_type):
		logger.warning(
			"outcome_identity_overridden",
			returned_soil=returned_soil,
			returned_crop=returned_crop,
			soil_type=stats.soil_type.value,
			crop_type=stats.crop_type,
		)

	updated = FarmStats(
		crop_health=clamp_percent(_require_number(raw_stats, "crop_health")),
		soil_moisture=clamp_percent(_require_number(raw_stats, "soil_moisture")),
		water_reserves=clamp_percent(_require_number(raw_stats, "water_reserves")),
		soil_type=stats.soil_type,
		crop_type=stats.crop_type,
	)
	return Outcome(narrative=_require_text(payload, "narrative"), updated_stats=updated)


def parse_tips(payload: Mapping[str, Any]) -> tuple[str, ...]:
	raw = payload.get("tips")
	if raw is None:
		return ()
	if not isinstance(raw, list):
		raise ValueError("Generated tips are not a list")
	return tuple(str(item).strip() for item in raw if isinstance(item, str) and item.strip())


class ContentGateway:
	def __init__(self, generator: ContentGenerator, retry_policy: RetryPolicy | None = None):
		self.generator = generator
		self.retry_policy = retry_policy or RetryPolicy()

	async def generate_scenario(self, history: Sequence[HistoryEntry], stats: FarmStats) -> Scenario:
		history = tuple(history)
		try:
			payload = await self.retry_policy.run(
				lambda: self.generator.scenario(history, stats),
				label="generate_scenario",
			)
			return parse_scenario(payload)
		except Exception as exc:
			self._log_fallback("generate_scenario", exc)
			return FALLBACK_SCENARIO

	async def generate_scenario_from_seed(
		self,
		seed: ScenarioData,
		soil_type: SoilTypeEnum,
		crop_type: str,
	) -> Scenario:
		try:
			payload = await self.retry_policy.run(
				lambda: self.generator.scenario_text(seed, soil_type, crop_type),
				label="generate_scenario_from_seed",
			)
			return Scenario(
				narrative=_require_text(payload, "narrative"),
				challenge=_require_text(payload, "challenge"),
				data=seed,
			)
		except Exception as exc:
			self._log_fallback("generate_scenario_from_seed", exc)
			return Scenario(narrative=FALLBACK_SEED_NARRATIVE, challenge=FALLBACK_SEED_CHALLENGE, data=seed)

	async def compute_outcome(self, stats: FarmStats, scenario: Scenario, action: ActionEnum) -> Outcome:
		try:
			payload = await self.retry_policy.run(
				lambda: self.generator.outcome(stats, scenario, action),
				label="compute_outcome",
			)
			return parse_outcome(payload, stats)
		except Exception as exc:
			self._log_fallback("compute_outcome", exc, action=action.value)
			return Outcome(narrative=fallback_outcome_narrative(action), updated_stats=stats)

	async def generate_image(
		self,
		scenario: Scenario,
		previous_image: str | None,
		outcome_narrative: str,
		crop_type: str,
		soil_type: SoilTypeEnum,
	) -> str | None:
		"""Best-effort image; never raises. Falls back to ``previous_image``."""
		try:
			image = await self.retry_policy.run(
				lambda: self.generator.image(scenario, previous_image, outcome_narrative, crop_type, soil_type),
				label="generate_image",
			)
		except Exception as exc:
			self._log_fallback("generate_image", exc, mode="create" if previous_image is None else "edit")
			return previous_image
		if not image:
			return previous_image
		return image

	async def generate_tips(self, final_stats: FarmStats, history: Sequence[HistoryEntry]) -> tuple[str, ...]:
		history = tuple(history)
		try:
			payload = await self.retry_policy.run(
				lambda: self.generator.tips(final_stats, history),
				label="generate_tips",
			)
			return parse_tips(payload)
		except Exception as exc:
			self._log_fallback("generate_tips", exc)
			return ()

	@staticmethod
	def _log_fallback(operation: str, exc: Exception, **extra: Any) -> None:
		logger.warning(
			"content_fallback_used",
			operation=operation,
			error_type=type(exc).__name__,
			error=str(exc),
			**extra,
		)
