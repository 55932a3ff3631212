"""Detached background work (farm images, end-of-game tips).

Results are tagged at dispatch time with the game epoch (and, for images, a
dispatch token). When stale-result discarding is on, a completion is applied
only if it still belongs to the current game and, for images, no newer image
task was dispatched in the meantime.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine, Sequence
from typing import Any

import structlog

from greenfarm.schemas.game import ImageState, TipsState

logger = structlog.get_logger("greenfarm.background")


class BackgroundTasks:
	"""Holds strong references to fire-and-forget tasks until they settle."""

	def __init__(self) -> None:
		self._tasks: set[asyncio.Task[Any]] = set()

	def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
		task = asyncio.create_task(coro, name=name)
		self._tasks.add(task)
		task.add_done_callback(self._tasks.discard)
		return task

	@property
	def pending(self) -> int:
		return len(self._tasks)

	async def drain(self) -> None:
		"""Wait until every outstanding task (including ones spawned meanwhile) settles."""
		while self._tasks:
			await asyncio.gather(*list(self._tasks), return_exceptions=True)


class ImageTaskManager:
	def __init__(self, tasks: BackgroundTasks, *, discard_stale: bool = True):
		self.tasks = tasks
		self.discard_stale = discard_stale
		self.state = ImageState()
		self._epoch = 0
		self._latest_token = 0

	def reset(self, epoch: int) -> None:
		self._epoch = epoch
		self.state = ImageState()

	def dispatch(
		self,
		epoch: int,
		operation: Callable[[str | None], Awaitable[str | None]],
	) -> asyncio.Task[None]:
		"""Start ``operation(previous_url)`` in the background."""
		self._latest_token += 1
		token = self._latest_token
		self.state.generating = True
		return self.tasks.spawn(self._run(epoch, token, operation(self.state.url)), name=f"farm-image-{epoch}-{token}")

	async def _run(self, epoch: int, token: int, pending: Awaitable[str | None]) -> None:
		try:
			url = await pending
		except Exception as exc:
			logger.warning("image_task_failed", epoch=epoch, token=token, error=str(exc))
			url = None

		latest = epoch == self._epoch and token == self._latest_token
		if latest or not self.discard_stale:
			if url is not None:
				self.state.url = url
		else:
			logger.info("image_result_discarded", epoch=epoch, token=token, current_epoch=self._epoch)

		if token == self._latest_token:
			self.state.generating = False


class TipsTaskManager:
	def __init__(self, tasks: BackgroundTasks, *, discard_stale: bool = True):
		self.tasks = tasks
		self.discard_stale = discard_stale
		self.state = TipsState()
		self._epoch = 0

	def reset(self, epoch: int) -> None:
		self._epoch = epoch
		self.state = TipsState()

	def dispatch(self, epoch: int, pending: Awaitable[Sequence[str]]) -> asyncio.Task[None]:
		self.state.generating = True
		return self.tasks.spawn(self._run(epoch, pending), name=f"game-tips-{epoch}")

	async def _run(self, epoch: int, pending: Awaitable[Sequence[str]]) -> None:
		try:
			tips = list(await pending)
		except Exception as exc:
			logger.warning("tips_task_failed", epoch=epoch, error=str(exc))
			tips = []

		if epoch == self._epoch:
			self.state.tips = tips
			self.state.generating = False
		elif not self.discard_stale:
			self.state.tips = tips
		else:
			logger.info("tips_result_discarded", epoch=epoch, current_epoch=self._epoch)
