"""Append-only, round-indexed record of completed rounds."""

from __future__ import annotations

from collections.abc import Iterator

from greenfarm.schemas.game import HistoryEntry


class HistoryLedger:
	def __init__(self) -> None:
		self._entries: list[HistoryEntry] = []

	def append(self, entry: HistoryEntry) -> None:
		expected = len(self._entries) + 1
		if entry.round != expected:
			raise ValueError(f"History entry for round {entry.round} out of order, expected round {expected}")
		self._entries.append(entry)

	@property
	def entries(self) -> tuple[HistoryEntry, ...]:
		return tuple(self._entries)

	@property
	def last(self) -> HistoryEntry | None:
		return self._entries[-1] if self._entries else None

	def __len__(self) -> int:
		return len(self._entries)

	def __iter__(self) -> Iterator[HistoryEntry]:
		return iter(tuple(self._entries))

	def __getitem__(self, index: int) -> HistoryEntry:
		return self._entries[index]
