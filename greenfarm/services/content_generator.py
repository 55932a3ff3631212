"""Collaborator boundary for external content generation.

A generator turns game context into raw payloads (plain dicts / strings).
Validation, identity preservation and fallbacks live in the gateway, so a
generator is free to return whatever the upstream model produced.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from greenfarm.models.enums import ActionEnum, GenerationErrorKind, SoilTypeEnum
from greenfarm.schemas.game import FarmStats, HistoryEntry, Scenario, ScenarioData


class GenerationError(RuntimeError):
	"""Raised by a generator when an upstream call fails.

	``retryable`` is the only signal the retry policy looks at.
	"""

	def __init__(self, message: str, *, kind: GenerationErrorKind, retryable: bool = False):
		super().__init__(message)
		self.kind = kind
		self.retryable = retryable

	@classmethod
	def rate_limited(cls, message: str) -> GenerationError:
		return cls(message, kind=GenerationErrorKind.rate_limited, retryable=True)


class ContentGenerator(Protocol):
	async def scenario(self, history: Sequence[HistoryEntry], stats: FarmStats) -> dict[str, Any]: ...

	async def scenario_text(
		self,
		seed: ScenarioData,
		soil_type: SoilTypeEnum,
		crop_type: str,
	) -> dict[str, Any]: ...

	async def outcome(self, stats: FarmStats, scenario: Scenario, action: ActionEnum) -> dict[str, Any]: ...

	async def image(
		self,
		scenario: Scenario,
		previous_image: str | None,
		outcome_narrative: str,
		crop_type: str,
		soil_type: SoilTypeEnum,
	) -> str | None:
		"""Create an image when ``previous_image`` is None, edit it otherwise."""
		...

	async def tips(self, final_stats: FarmStats, history: Sequence[HistoryEntry]) -> dict[str, Any]: ...
