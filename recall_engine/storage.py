"""
Storage contract for progress records and study logs.

The scheduling core never talks to storage itself; the review service reads
progress through a ProgressStore before scheduling and writes it back after
each review. Two implementations ship with the package:

- InMemoryProgressStore (this module): dict-backed, with an optional quota
- SqlProgressStore (recall_engine.fsrs.database): SQLAlchemy-backed
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from recall_engine.dates import today_bounds
from recall_engine.errors import StorageQuotaExceededError
from recall_engine.fsrs.memory_state import CardState
from recall_engine.schemas import ProgressRecord

logger = logging.getLogger(__name__)

BYTES_PER_CHAR = 2  # UTF-16, as browsers account local storage


class ProgressStore(Protocol):
    """Anything the review service can load progress from and save it to."""

    def load_progress(self, word: str) -> Optional[CardState]:
        ...

    def save_progress(self, word: str, card: CardState) -> None:
        ...

    def load_all_progress(self) -> dict[str, CardState]:
        ...

    def append_log(self, event: dict) -> None:
        ...

    def load_logs(self) -> list[dict]:
        ...


@dataclass(frozen=True)
class StorageUsage:
    used: int
    total: Optional[int]
    percentage: float


class InMemoryProgressStore:
    """
    Dict-backed ProgressStore.

    With `quota_bytes` set, a write that would grow the JSON-encoded contents
    past the quota raises StorageQuotaExceededError and leaves the previous
    contents untouched.
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._progress: dict[str, CardState] = {}
        self._logs: list[dict] = []

    # ---- Progress ----

    def load_progress(self, word: str) -> Optional[CardState]:
        return self._progress.get(word)

    def save_progress(self, word: str, card: CardState) -> None:
        progress = dict(self._progress)
        progress[word] = card
        self._check_quota(progress, self._logs, f"save progress for {word!r}")
        self._progress = progress

    def save_many(self, cards: dict[str, CardState]) -> None:
        progress = {**self._progress, **cards}
        self._check_quota(progress, self._logs, "save progress batch")
        self._progress = progress

    def load_all_progress(self) -> dict[str, CardState]:
        return dict(self._progress)

    # ---- Logs ----

    def append_log(self, event: dict) -> None:
        logs = self._logs + [dict(event)]
        self._check_quota(self._progress, logs, "save study log")
        self._logs = logs

    def load_logs(self) -> list[dict]:
        return copy.deepcopy(self._logs)

    def logs_for_word(self, word: str) -> list[dict]:
        return [dict(log) for log in self._logs if log["word"] == word]

    def logs_between(self, start_ms: int, end_ms: int) -> list[dict]:
        return [dict(log) for log in self._logs if start_ms <= log["timestamp"] <= end_ms]

    def today_logs(self, now: datetime) -> list[dict]:
        start_ms, end_ms = today_bounds(now)
        return self.logs_between(start_ms, end_ms)

    def clear(self) -> None:
        self._progress = {}
        self._logs = []

    # ---- Quota ----

    def storage_usage(self) -> StorageUsage:
        used = _encoded_size(self._progress, self._logs)
        if not self.quota_bytes:
            return StorageUsage(used=used, total=None, percentage=0.0)
        return StorageUsage(used=used, total=self.quota_bytes, percentage=used / self.quota_bytes * 100)

    def _check_quota(self, progress: dict[str, CardState], logs: list[dict], action: str) -> None:
        if self.quota_bytes is None:
            return
        size = _encoded_size(progress, logs)
        if size > self.quota_bytes:
            logger.warning("Storage quota exceeded (%d > %d bytes) while trying to %s",
                           size, self.quota_bytes, action)
            raise StorageQuotaExceededError(f"Failed to {action}: storage quota exceeded")


def _encoded_size(progress: dict[str, CardState], logs: list[dict]) -> int:
    payload = {
        "progress": {
            word: ProgressRecord.from_card(card).model_dump(by_alias=True, mode="json")
            for word, card in progress.items()
        },
        "logs": logs,
    }
    return len(json.dumps(payload)) * BYTES_PER_CHAR
