"""Bounded exponential-backoff retry for rate-limited generation calls."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_DELAY_SECONDS = 2.0

logger = structlog.get_logger("greenfarm.retry")


def is_retryable(exc: BaseException) -> bool:
	return bool(getattr(exc, "retryable", False))


class RetryPolicy:
	"""Retry an async operation while it fails with a retryable error.

	Delays double after each attempt (2s, 4s, ...). Non-retryable errors and
	the error from the final attempt propagate unchanged.
	"""

	def __init__(
		self,
		max_attempts: int = DEFAULT_MAX_ATTEMPTS,
		initial_delay: float = DEFAULT_INITIAL_DELAY_SECONDS,
		sleep: Sleep = asyncio.sleep,
	):
		if max_attempts < 1:
			raise ValueError("max_attempts must be >= 1")
		if initial_delay < 0:
			raise ValueError("initial_delay must be >= 0")
		self.max_attempts = max_attempts
		self.initial_delay = initial_delay
		self._sleep = sleep

	async def run(self, operation: Callable[[], Awaitable[T]], *, label: str = "operation") -> T:
		delay = self.initial_delay
		attempt = 1
		while True:
			try:
				return await operation()
			except Exception as exc:
				if not is_retryable(exc) or attempt >= self.max_attempts:
					logger.warning(
						"retry_giving_up",
						operation=label,
						attempt=attempt,
						max_attempts=self.max_attempts,
						retryable=is_retryable(exc),
						error=str(exc),
					)
					raise
				logger.info(
					"retry_scheduled",
					operation=label,
					attempt=attempt,
					max_attempts=self.max_attempts,
					delay_seconds=delay,
				)
				await self._sleep(delay)
				attempt += 1
				delay *= 2


async def retry(
	operation: Callable[[], Awaitable[T]],
	max_attempts: int = DEFAULT_MAX_ATTEMPTS,
	initial_delay: float = DEFAULT_INITIAL_DELAY_SECONDS,
) -> T:
	return await RetryPolicy(max_attempts, initial_delay).run(operation)
