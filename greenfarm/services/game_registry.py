"""Process-local registry of game controllers.

Games nobody has touched for ``game_idle_ttl_seconds`` are evicted when a new
game is created. Past ``max_games``, the least recently used games go first.
"""

from __future__ import annotations

import time
import uuid
from collections import OrderedDict
from collections.abc import Callable

import structlog

from greenfarm.config import Settings
from greenfarm.services.background import BackgroundTasks
from greenfarm.services.content_gateway import ContentGateway
from greenfarm.services.game_controller import GameController

logger = structlog.get_logger("greenfarm.registry")


class GameRegistry:
	def __init__(
		self,
		gateway: ContentGateway,
		settings: Settings,
		tasks: BackgroundTasks | None = None,
		clock: Callable[[], float] = time.monotonic,
	):
		if settings.max_games < 1:
			raise ValueError("max_games must be >= 1")
		self.gateway = gateway
		self.settings = settings
		self.tasks = tasks or BackgroundTasks()
		self._clock = clock
		# Least recently used first.
		self._games: OrderedDict[uuid.UUID, tuple[GameController, float]] = OrderedDict()

	def create(self) -> GameController:
		self.evict_idle()
		while len(self._games) >= self.settings.max_games:
			game_id, _ = self._games.popitem(last=False)
			logger.info("game_evicted", game_id=str(game_id), reason="capacity")
		controller = GameController.from_settings(self.gateway, self.settings, self.tasks)
		self._games[controller.game_id] = (controller, self._clock())
		return controller

	def get(self, game_id: uuid.UUID) -> GameController:
		item = self._games.get(game_id)
		if item is None:
			raise LookupError(f"Game {game_id} not found")
		controller, _ = item
		self._games[game_id] = (controller, self._clock())
		self._games.move_to_end(game_id)
		return controller

	def remove(self, game_id: uuid.UUID) -> None:
		if self._games.pop(game_id, None) is None:
			raise LookupError(f"Game {game_id} not found")

	def evict_idle(self) -> int:
		"""Drop games idle for longer than the configured TTL; returns how many went."""
		cutoff = self._clock() - self.settings.game_idle_ttl_seconds
		expired = [game_id for game_id, (_, last_seen) in self._games.items() if last_seen < cutoff]
		for game_id in expired:
			del self._games[game_id]
			logger.info("game_evicted", game_id=str(game_id), reason="idle")
		return len(expired)

	def __len__(self) -> int:
		return len(self._games)

	def __contains__(self, game_id: object) -> bool:
		return game_id in self._games

	async def shutdown(self) -> None:
		await self.tasks.drain()
		self._games.clear()
