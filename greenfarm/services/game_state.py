"""Controller-owned session state and the errors raised while driving it."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from greenfarm.models.enums import GameStateEnum, RoundPhaseEnum
from greenfarm.schemas.game import FarmStats, Scenario, ScenarioData
from greenfarm.services.background import ImageTaskManager, TipsTaskManager
from greenfarm.services.history import HistoryLedger


class InvalidTransitionError(RuntimeError):
	"""Raised when a controller operation is not allowed in the current game state."""


class ActionRejectedError(RuntimeError):
	"""Raised when an action arrives while a round is loading or has no scenario yet."""


class OrchestrationError(RuntimeError):
	"""Raised when a round step fails past the gateway's own fallbacks."""


@dataclass
class GameSession:
	images: ImageTaskManager
	tips: TipsTaskManager
	game_id: uuid.UUID = field(default_factory=uuid.uuid4)
	state: GameStateEnum = GameStateEnum.setup
	phase: RoundPhaseEnum = RoundPhaseEnum.idle
	round: int = 1
	stats: FarmStats | None = None
	scenario: Scenario | None = None
	scenario_round: int = 0
	seed: ScenarioData | None = None
	history: HistoryLedger = field(default_factory=HistoryLedger)
	epoch: int = 0
	error: str | None = None

	@property
	def is_loading(self) -> bool:
		return self.phase in (RoundPhaseEnum.evaluating, RoundPhaseEnum.advancing)

	@property
	def scenario_ready(self) -> bool:
		return self.state == GameStateEnum.active and self.scenario is not None and self.scenario_round == self.round
