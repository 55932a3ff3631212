"""Top-level game state machine.

    setup --acknowledge_tutorial--> awaiting_configuration
    awaiting_configuration --start_game--> active
    active --submit_action--> active | ended
    ended --restart--> awaiting_configuration

The controller owns the session; the orchestrator only mutates it through
the sequenced steps of a round.
"""

from __future__ import annotations

import uuid

import structlog

from greenfarm.config import Settings
from greenfarm.models.enums import ActionEnum, GameStateEnum, RoundPhaseEnum, SoilTypeEnum
from greenfarm.schemas.game import (
	GameConfiguration,
	GameSnapshot,
	HistoryEntry,
	ScenarioData,
	final_score,
	initial_stats,
)
from greenfarm.services.background import BackgroundTasks, ImageTaskManager, TipsTaskManager
from greenfarm.services.content_gateway import ContentGateway
from greenfarm.services.game_state import (
	ActionRejectedError,
	GameSession,
	InvalidTransitionError,
)
from greenfarm.services.history import HistoryLedger
from greenfarm.services.round_orchestrator import NEW_FARM_NARRATIVE, RoundOrchestrator, RoundResult

logger = structlog.get_logger("greenfarm.controller")


class GameController:
	def __init__(
		self,
		gateway: ContentGateway,
		*,
		max_rounds: int = 5,
		default_soil_type: SoilTypeEnum = SoilTypeEnum.silty,
		default_crop_type: str = "القمح",
		discard_stale_results: bool = True,
		tasks: BackgroundTasks | None = None,
		game_id: uuid.UUID | None = None,
	):
		self.tasks = tasks or BackgroundTasks()
		self.orchestrator = RoundOrchestrator(gateway, max_rounds=max_rounds)
		self.default_soil_type = default_soil_type
		self.default_crop_type = default_crop_type
		self.session = GameSession(
			images=ImageTaskManager(self.tasks, discard_stale=discard_stale_results),
			tips=TipsTaskManager(self.tasks, discard_stale=discard_stale_results),
			game_id=game_id or uuid.uuid4(),
		)

	@classmethod
	def from_settings(
		cls,
		gateway: ContentGateway,
		settings: Settings,
		tasks: BackgroundTasks | None = None,
	) -> GameController:
		return cls(
			gateway,
			max_rounds=settings.max_rounds,
			default_soil_type=settings.default_soil_type,
			default_crop_type=settings.default_crop_type,
			discard_stale_results=settings.discard_stale_background_results,
			tasks=tasks,
		)

	@property
	def game_id(self) -> uuid.UUID:
		return self.session.game_id

	@property
	def state(self) -> GameStateEnum:
		return self.session.state

	@property
	def max_rounds(self) -> int:
		return self.orchestrator.max_rounds

	@property
	def history(self) -> tuple[HistoryEntry, ...]:
		return self.session.history.entries

	# ── Transitions ─────────────────────────────────────────────────────────

	def acknowledge_tutorial(self) -> GameSnapshot:
		self._require_state(GameStateEnum.setup, "acknowledge_tutorial")
		self._transition(GameStateEnum.awaiting_configuration)
		return self.snapshot()

	async def start_game(self, configuration: GameConfiguration | None = None) -> GameSnapshot:
		self._require_state(GameStateEnum.awaiting_configuration, "start_game")
		configuration = configuration or GameConfiguration()
		session = self.session

		session.epoch += 1
		session.round = 1
		session.stats = initial_stats(
			configuration.soil_type or self.default_soil_type,
			configuration.crop_type or self.default_crop_type,
		)
		session.history = HistoryLedger()
		session.scenario = None
		session.scenario_round = 0
		session.seed = configuration.scenario_data
		session.error = None
		session.images.reset(session.epoch)
		session.tips.reset(session.epoch)
		self._transition(GameStateEnum.active)

		await self.orchestrator.open_round(session, outcome_narrative=NEW_FARM_NARRATIVE)
		return self.snapshot()

	async def submit_action(self, action: ActionEnum, scenario_data: ScenarioData | None = None) -> RoundResult:
		self._require_state(GameStateEnum.active, "submit_action")
		if self.session.is_loading:
			raise ActionRejectedError("A round is already being evaluated")
		if not self.session.scenario_ready:
			raise ActionRejectedError(f"Scenario for round {self.session.round} is not ready")
		return await self.orchestrator.play(self.session, action, scenario_data)

	async def retry_scenario(self) -> GameSnapshot:
		"""Regenerate the current round's scenario after a failed foreground step."""
		self._require_state(GameStateEnum.active, "retry_scenario")
		if self.session.is_loading:
			raise ActionRejectedError("A round is already being evaluated")
		if self.session.scenario_ready:
			raise ActionRejectedError(f"Scenario for round {self.session.round} is already available")
		last = self.session.history.last
		narrative = last.outcome.narrative if last is not None else NEW_FARM_NARRATIVE
		await self.orchestrator.open_round(self.session, outcome_narrative=narrative)
		return self.snapshot()

	def restart(self) -> GameSnapshot:
		self._require_state(GameStateEnum.ended, "restart")
		session = self.session
		session.epoch += 1
		session.phase = RoundPhaseEnum.idle
		session.scenario = None
		session.scenario_round = 0
		session.error = None
		session.tips.reset(session.epoch)
		self._transition(GameStateEnum.awaiting_configuration)
		return self.snapshot()

	# ── Views ───────────────────────────────────────────────────────────────

	def snapshot(self) -> GameSnapshot:
		session = self.session
		ended = session.state == GameStateEnum.ended and session.stats is not None
		return GameSnapshot(
			game_id=str(session.game_id),
			state=session.state,
			phase=session.phase,
			is_loading=session.is_loading,
			round=session.round,
			max_rounds=self.max_rounds,
			stats=session.stats,
			scenario=session.scenario,
			scenario_ready=session.scenario_ready,
			image=session.images.state.model_copy(),
			tips=session.tips.state.model_copy(deep=True),
			history_length=len(session.history),
			error=session.error,
			won=session.stats.crop_health > 0 if ended else None,
			final_score=final_score(session.stats) if ended else None,
		)

	# ── Internals ───────────────────────────────────────────────────────────

	def _require_state(self, expected: GameStateEnum, operation: str) -> None:
		if self.session.state != expected:
			raise InvalidTransitionError(
				f"{operation} is not allowed in state '{self.session.state.value}' (expected '{expected.value}')"
			)

	def _transition(self, target: GameStateEnum) -> None:
		logger.info(
			"game_state_transition",
			game_id=str(self.session.game_id),
			source=self.session.state.value,
			target=target.value,
		)
		self.session.state = target
