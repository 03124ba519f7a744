"""Bounded practice history (newest first) and the statistics derived from it."""

from collections import Counter
from typing import Iterable, List, Optional, Tuple

from .database import DatabaseClient
from .logger import logger
from .models import AttemptResult, HistoryStats
from .text import round_half_up

HISTORY_CAPACITY = 20
TIMELINE_LENGTH = 10


class HistoryStore:
    """Most-recent-first attempt log, persisted on every mutation."""

    def __init__(self, store: DatabaseClient, capacity: Optional[int] = None):
        self.store = store
        # A smaller capacity may be requested, never a larger one
        self.capacity = HISTORY_CAPACITY if capacity is None else max(0, min(capacity, HISTORY_CAPACITY))
        self._entries: List[AttemptResult] = []

    def load(self) -> None:
        self._entries = self.store.load_history()[: self.capacity]
        logger.db(f"History loaded: {len(self._entries)} attempt(s)")

    @property
    def entries(self) -> Tuple[AttemptResult, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, result: AttemptResult) -> None:
        """Prepend an attempt; entries beyond capacity are dropped (oldest first)."""
        self._entries = [result, *self._entries][: self.capacity]
        self.store.save_history(self._entries)

    def clear(self) -> None:
        self._entries = []
        self.store.save_history(self._entries)
        logger.info("Practice history cleared")

    def reset(self) -> None:
        """Forget in-memory entries without writing (used after the store is wiped)."""
        self._entries = []


def compute_stats(entries: Iterable[AttemptResult]) -> HistoryStats:
    """Aggregate a newest-first history."""
    entries = list(entries)
    if not entries:
        return HistoryStats()

    accuracies = [entry.similarity for entry in entries]
    counts = Counter(entry.language or "unknown" for entry in entries)
    # Ten most recent attempts, oldest first, for the trend chart
    timeline = list(reversed(accuracies[:TIMELINE_LENGTH]))

    return HistoryStats(
        total_practiced=len(entries),
        average_accuracy=round_half_up(sum(accuracies) / len(accuracies)),
        best_accuracy=max(accuracies),
        language_counts=dict(counts),
        timeline=timeline,
    )
