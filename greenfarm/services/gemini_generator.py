"""Gemini REST integration: prompt dispatch, error classification, response parsing."""

from __future__ import annotations

import json
import time
from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from greenfarm.config import Settings
from greenfarm.models.enums import ActionEnum, GenerationErrorKind, SoilTypeEnum
from greenfarm.schemas.game import FarmStats, HistoryEntry, Scenario, ScenarioData
from greenfarm.services import prompts
from greenfarm.services.content_generator import GenerationError

RATE_LIMIT_STATUS = "RESOURCE_EXHAUSTED"
IMAGE_MIME_TYPE = "image/jpeg"

logger = structlog.get_logger("greenfarm.gemini")


def to_data_url(image_b64: str, mime_type: str = IMAGE_MIME_TYPE) -> str:
	return f"data:{mime_type};base64,{image_b64}"


def from_data_url(data_url: str) -> tuple[str, str]:
	"""Split a ``data:<mime>;base64,<payload>`` URL into (mime_type, payload)."""
	header, _, payload = data_url.partition(",")
	if not payload:
		return IMAGE_MIME_TYPE, header
	mime_type = header.removeprefix("data:").split(";")[0] or IMAGE_MIME_TYPE
	return mime_type, payload


def classify_response_error(response: httpx.Response) -> GenerationError:
	status_text = ""
	message = response.text[:500]
	try:
		body = response.json()
	except json.JSONDecodeError:
		body = None
	if isinstance(body, dict) and isinstance(body.get("error"), dict):
		status_text = str(body["error"].get("status") or "")
		message = str(body["error"].get("message") or message)

	if response.status_code == 429 or status_text == RATE_LIMIT_STATUS:
		return GenerationError.rate_limited(f"Gemini rate limited ({response.status_code}): {message}")
	return GenerationError(
		f"Gemini HTTP {response.status_code}: {message}",
		kind=GenerationErrorKind.unavailable,
		retryable=False,
	)


class GeminiGenerator:
	"""ContentGenerator backed by the Gemini ``generateContent`` / Imagen ``predict`` REST endpoints."""

	def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None):
		self.settings = settings
		self.http_client = http_client

	# ── ContentGenerator ────────────────────────────────────────────────────

	async def scenario(self, history: Sequence[HistoryEntry], stats: FarmStats) -> dict[str, Any]:
		prompt = prompts.build_scenario_prompt(history, stats)
		return await self.generate_json(prompt, prompts.SCENARIO_SCHEMA, temperature=0.8)

	async def scenario_text(
		self,
		seed: ScenarioData,
		soil_type: SoilTypeEnum,
		crop_type: str,
	) -> dict[str, Any]:
		prompt = prompts.build_scenario_from_seed_prompt(seed, soil_type, crop_type)
		return await self.generate_json(prompt, prompts.SCENARIO_TEXT_SCHEMA, temperature=0.7)

	async def outcome(self, stats: FarmStats, scenario: Scenario, action: ActionEnum) -> dict[str, Any]:
		prompt = prompts.build_outcome_prompt(stats, scenario, action)
		return await self.generate_json(prompt, prompts.OUTCOME_SCHEMA, temperature=0.5)

	async def tips(self, final_stats: FarmStats, history: Sequence[HistoryEntry]) -> dict[str, Any]:
		prompt = prompts.build_tips_prompt(final_stats, history)
		return await self.generate_json(prompt, prompts.TIPS_SCHEMA, temperature=0.6)

	async def image(
		self,
		scenario: Scenario,
		previous_image: str | None,
		outcome_narrative: str,
		crop_type: str,
		soil_type: SoilTypeEnum,
	) -> str | None:
		if previous_image is None:
			prompt = prompts.build_image_create_prompt(scenario, crop_type, soil_type)
			return await self.create_image(prompt)
		prompt = prompts.build_image_edit_prompt(scenario, outcome_narrative, crop_type, soil_type)
		return await self.edit_image(previous_image, prompt)

	# ── Endpoint calls ──────────────────────────────────────────────────────

	async def generate_json(self, prompt: str, schema: dict[str, Any], *, temperature: float) -> dict[str, Any]:
		body = {
			"contents": [{"role": "user", "parts": [{"text": prompt}]}],
			"generationConfig": {
				"responseMimeType": "application/json",
				"responseSchema": schema,
				"temperature": temperature,
			},
		}
		payload = await self._post(f"models/{self.settings.gemini_text_model}:generateContent", body)
		text = self._first_text(payload).strip()
		try:
			parsed = json.loads(text)
		except json.JSONDecodeError as exc:
			raise GenerationError(
				"Gemini returned non-JSON text",
				kind=GenerationErrorKind.malformed,
			) from exc
		if not isinstance(parsed, dict):
			raise GenerationError("Gemini returned a non-object JSON payload", kind=GenerationErrorKind.malformed)
		return parsed

	async def create_image(self, prompt: str) -> str | None:
		body = {
			"instances": [{"prompt": prompt}],
			"parameters": {
				"sampleCount": 1,
				"aspectRatio": "16:9",
				"outputOptions": {"mimeType": IMAGE_MIME_TYPE},
			},
		}
		payload = await self._post(f"models/{self.settings.gemini_image_model}:predict", body)
		predictions = payload.get("predictions")
		if not isinstance(predictions, list) or not predictions:
			return None
		first = predictions[0] if isinstance(predictions[0], dict) else {}
		image_b64 = first.get("bytesBase64Encoded")
		if not image_b64:
			return None
		return to_data_url(str(image_b64), str(first.get("mimeType") or IMAGE_MIME_TYPE))

	async def edit_image(self, previous_image: str, prompt: str) -> str | None:
		mime_type, image_b64 = from_data_url(previous_image)
		body = {
			"contents": [
				{
					"role": "user",
					"parts": [
						{"inlineData": {"mimeType": mime_type, "data": image_b64}},
						{"text": prompt},
					],
				}
			],
			"generationConfig": {"responseModalities": ["IMAGE", "TEXT"]},
		}
		payload = await self._post(f"models/{self.settings.gemini_image_edit_model}:generateContent", body)
		for part in self._first_parts(payload):
			inline = part.get("inlineData") if isinstance(part, dict) else None
			if isinstance(inline, dict) and inline.get("data"):
				return to_data_url(str(inline["data"]), str(inline.get("mimeType") or IMAGE_MIME_TYPE))
		return None

	# ── Transport ───────────────────────────────────────────────────────────

	async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
		if not self.settings.gemini_api_key:
			raise GenerationError("Gemini API key is not configured", kind=GenerationErrorKind.not_configured)

		url = f"{self.settings.gemini_base_url.rstrip('/')}/{path}"
		headers = {
			"x-goog-api-key": self.settings.gemini_api_key,
			"content-type": "application/json",
		}
		start = time.perf_counter()
		try:
			if self.http_client is not None:
				response = await self.http_client.post(url, headers=headers, json=body)
			else:
				async with httpx.AsyncClient(timeout=self.settings.gemini_timeout_seconds) as client:
					response = await client.post(url, headers=headers, json=body)
		except httpx.HTTPError as exc:
			logger.warning("gemini_transport_error", path=path, error=str(exc))
			raise GenerationError(f"Gemini transport error: {exc}", kind=GenerationErrorKind.unavailable) from exc

		duration_ms = round((time.perf_counter() - start) * 1000.0, 2)
		if response.status_code >= 400:
			error = classify_response_error(response)
			logger.warning(
				"gemini_call_failed",
				path=path,
				status_code=response.status_code,
				kind=error.kind.value,
				duration_ms=duration_ms,
			)
			raise error

		logger.info("gemini_call", path=path, status_code=response.status_code, duration_ms=duration_ms)
		try:
			payload = response.json()
		except json.JSONDecodeError as exc:
			raise GenerationError("Gemini returned a non-JSON response", kind=GenerationErrorKind.malformed) from exc
		if not isinstance(payload, dict):
			raise GenerationError("Gemini returned an unexpected response shape", kind=GenerationErrorKind.malformed)
		return payload

	@staticmethod
	def _first_parts(payload: dict[str, Any]) -> list[Any]:
		candidates = payload.get("candidates")
		if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
			return []
		content = candidates[0].get("content")
		if not isinstance(content, dict):
			return []
		parts = content.get("parts")
		return parts if isinstance(parts, list) else []

	def _first_text(self, payload: dict[str, Any]) -> str:
		texts = [str(part.get("text") or "") for part in self._first_parts(payload) if isinstance(part, dict)]
		text = "".join(texts)
		if not text.strip():
			raise GenerationError("Gemini response contained no text", kind=GenerationErrorKind.malformed)
		return text
