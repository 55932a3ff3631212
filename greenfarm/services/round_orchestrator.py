"""Round orchestration: one player action from outcome to the next playable round.

Phases per action: idle → evaluating → (terminal | advancing) → idle.
An ended game stays in the terminal phase until it is restarted.

Ordering guarantees:
  1. The outcome is computed before history and stats change, and both change
     together or not at all.
  2. The terminal check runs once, right after the outcome is applied.
  3. The next scenario is adopted before the player is unblocked.
  4. Image and tips generation run detached and never gate the foreground.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from greenfarm.models.enums import ActionEnum, GameStateEnum, RoundPhaseEnum
from greenfarm.schemas.game import FarmStats, HistoryEntry, Scenario, ScenarioData
from greenfarm.services.content_gateway import ContentGateway
from greenfarm.services.game_state import GameSession, OrchestrationError

NEW_FARM_NARRATIVE = "A new farm is established."
OUTCOME_ERROR_MESSAGE = "حصلت مشكلة وإحنا بننفذ قرارك. حاول تاني لو سمحت."
SCENARIO_ERROR_MESSAGE = "حصلت مشكلة في تحميل السيناريو الجديد."

logger = structlog.get_logger("greenfarm.orchestrator")


@dataclass(frozen=True)
class RoundResult:
	entry: HistoryEntry
	terminal: bool
	next_scenario: Scenario | None = None


def is_terminal(stats: FarmStats, next_round: int, max_rounds: int) -> bool:
	return stats.crop_health <= 0 or next_round > max_rounds


class RoundOrchestrator:
	def __init__(self, gateway: ContentGateway, *, max_rounds: int = 5):
		if max_rounds < 1:
			raise ValueError("max_rounds must be >= 1")
		self.gateway = gateway
		self.max_rounds = max_rounds

	async def play(
		self,
		session: GameSession,
		action: ActionEnum,
		scenario_data: ScenarioData | None = None,
	) -> RoundResult:
		"""Evaluate ``action`` against the current scenario and move the session on."""
		if session.stats is None or session.scenario is None:
			raise OrchestrationError("Round has no stats or scenario to evaluate")

		submitted = session.scenario
		if scenario_data is not None:
			submitted = session.scenario.model_copy(update={"data": scenario_data})

		session.phase = RoundPhaseEnum.evaluating
		session.error = None
		log = logger.bind(game_id=str(session.game_id), round=session.round, action=action.value)

		try:
			outcome = await self.gateway.compute_outcome(session.stats, submitted, action)
			entry = HistoryEntry(round=session.round, scenario=submitted, action=action, outcome=outcome)
			session.history.append(entry)
		except Exception as exc:
			session.phase = RoundPhaseEnum.idle
			session.error = OUTCOME_ERROR_MESSAGE
			log.exception("round_evaluation_failed", error=str(exc))
			raise OrchestrationError("Outcome could not be applied") from exc

		session.stats = outcome.updated_stats
		next_round = session.round + 1

		if is_terminal(outcome.updated_stats, next_round, self.max_rounds):
			session.phase = RoundPhaseEnum.terminal
			session.state = GameStateEnum.ended
			log.info(
				"game_ended",
				crop_health=outcome.updated_stats.crop_health,
				rounds_played=len(session.history),
			)
			session.tips.dispatch(
				session.epoch,
				self.gateway.generate_tips(outcome.updated_stats, session.history.entries),
			)
			return RoundResult(entry=entry, terminal=True)

		session.round = next_round
		log.info("round_advanced", next_round=next_round)
		scenario = await self.open_round(session, outcome_narrative=outcome.narrative)
		return RoundResult(entry=entry, terminal=False, next_scenario=scenario)

	async def open_round(self, session: GameSession, *, outcome_narrative: str) -> Scenario:
		"""Produce the scenario for ``session.round`` (foreground) and kick off its image (background)."""
		if session.stats is None:
			raise OrchestrationError("Round has no stats to build a scenario from")
		stats = session.stats

		session.phase = RoundPhaseEnum.advancing
		try:
			if session.round == 1 and session.seed is not None:
				scenario = await self.gateway.generate_scenario_from_seed(session.seed, stats.soil_type, stats.crop_type)
			else:
				scenario = await self.gateway.generate_scenario(session.history.entries, stats)
		except Exception as exc:
			session.phase = RoundPhaseEnum.idle
			session.error = SCENARIO_ERROR_MESSAGE
			logger.exception("scenario_generation_failed", game_id=str(session.game_id), round=session.round)
			raise OrchestrationError("Scenario for the next round could not be generated") from exc

		session.scenario = scenario
		session.scenario_round = session.round
		session.error = None
		session.phase = RoundPhaseEnum.idle

		session.images.dispatch(
			session.epoch,
			lambda previous: self.gateway.generate_image(
				scenario,
				previous,
				outcome_narrative,
				stats.crop_type,
				stats.soil_type,
			),
		)
		return scenario
