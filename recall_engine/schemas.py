"""
Pydantic models for the progress wire format.

These models define the structured records exchanged with storage and with
import/export files. Field names on the wire are camelCase; every field of a
CardState or StudySet round-trips exactly.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from recall_engine.errors import DataCorruptionError
from recall_engine.fsrs.constants import CardStatus, Rating
from recall_engine.fsrs.memory_state import CardState
from recall_engine.session_builders.study_queue import StudySet

logger = logging.getLogger(__name__)


# ---- Progress ----

class ProgressRecord(BaseModel):
    """Stored memory state of one item."""
    state: CardStatus
    stability: float = Field(..., ge=0, description="Stability in days")
    difficulty: float = Field(..., ge=0, le=10)
    retrievability: float = Field(0.0, ge=0, le=1, description="Cached recall probability")
    elapsed_days: float = Field(0.0, ge=0, alias="elapsedDays")
    scheduled_days: int = Field(0, ge=0, alias="scheduledDays")
    reps: int = Field(0, ge=0)
    lapses: int = Field(0, ge=0)
    last_review: int = Field(0, ge=0, alias="lastReview", description="Epoch milliseconds")
    due: int = Field(..., ge=0, description="Epoch milliseconds")
    last_rating: Rating = Field(Rating.REMEMBERED, alias="lastRating")
    correct_count: int = Field(0, ge=0, alias="correctCount")
    wrong_count: int = Field(0, ge=0, alias="wrongCount")
    total_study_time_sec: float = Field(0.0, ge=0, alias="totalStudyTimeSec")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_counters(self) -> "ProgressRecord":
        if self.state == CardStatus.NEW:
            if self.stability != 0 or self.reps != 0 or self.lapses != 0:
                raise ValueError("New cards must have zero stability, reps and lapses")
        elif self.correct_count + self.wrong_count != self.reps:
            raise ValueError("correctCount + wrongCount must equal reps")
        return self

    @classmethod
    def from_card(cls, card: CardState) -> "ProgressRecord":
        return cls(
            state=card.state,
            stability=card.stability,
            difficulty=card.difficulty,
            retrievability=card.retrievability,
            elapsed_days=card.elapsed_days,
            scheduled_days=card.scheduled_days,
            reps=card.reps,
            lapses=card.lapses,
            last_review=card.last_review,
            due=card.due,
            last_rating=card.last_rating,
            correct_count=card.correct_count,
            wrong_count=card.wrong_count,
            total_study_time_sec=card.total_study_time_sec,
        )

    def to_card(self) -> CardState:
        return CardState(
            state=self.state,
            stability=self.stability,
            difficulty=self.difficulty,
            retrievability=self.retrievability,
            elapsed_days=self.elapsed_days,
            scheduled_days=self.scheduled_days,
            reps=self.reps,
            lapses=self.lapses,
            last_review=self.last_review,
            due=self.due,
            last_rating=self.last_rating,
            correct_count=self.correct_count,
            wrong_count=self.wrong_count,
            total_study_time_sec=self.total_study_time_sec,
        )


# ---- Study Logs ----

class StudyLogRecord(BaseModel):
    """One review of one item."""
    word: str
    timestamp: int = Field(..., ge=0, description="Epoch milliseconds")
    rating: Rating
    time_spent_sec: float = Field(0.0, ge=0, alias="timeSpentSec")
    state: CardStatus = Field(..., description="Stage the item was studied in")

    stability_before: Optional[float] = Field(None, alias="stabilityBefore")
    difficulty_before: Optional[float] = Field(None, alias="difficultyBefore")
    retrievability_before: Optional[float] = Field(None, alias="retrievabilityBefore")
    stability_after: Optional[float] = Field(None, alias="stabilityAfter")
    difficulty_after: Optional[float] = Field(None, alias="difficultyAfter")
    scheduled_days: Optional[int] = Field(None, alias="scheduledDays")

    class Config:
        populate_by_name = True

    def to_event(self) -> dict:
        """Event dict in the shape produced by scheduler.process_review."""
        return self.model_dump(mode="json")


# ---- Study Sets ----

class StudySetRecord(BaseModel):
    """Serialized study set; key lists keep batch order."""
    words: list[str]
    completed_words: list[str] = Field(default_factory=list, alias="completedWords")
    forgot_words: list[str] = Field(default_factory=list, alias="forgotWords")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_membership(self) -> "StudySetRecord":
        batch = set(self.words)
        if len(batch) != len(self.words):
            raise ValueError("words must not contain duplicates")
        if not set(self.completed_words) <= batch or not set(self.forgot_words) <= batch:
            raise ValueError("completedWords and forgotWords must be part of words")
        return self

    @classmethod
    def from_study_set(cls, study_set: StudySet) -> "StudySetRecord":
        return cls(
            words=list(study_set.words),
            completed_words=[w for w in study_set.words if w in study_set.completed_words],
            forgot_words=[w for w in study_set.words if w in study_set.forgot_words],
        )

    def to_study_set(self) -> StudySet:
        return StudySet(
            words=tuple(self.words),
            completed_words=frozenset(self.completed_words),
            forgot_words=frozenset(self.forgot_words),
        )


# ---- Export ----

class ExportData(BaseModel):
    """Full progress export."""
    exported_at: str = Field(..., alias="exportedAt", description="ISO 8601 timestamp")
    progress: dict[str, ProgressRecord] = Field(default_factory=dict)
    study_logs: list[StudyLogRecord] = Field(default_factory=list, alias="studyLogs")

    class Config:
        populate_by_name = True


def card_to_dict(card: CardState) -> dict:
    """Serialize a card to its camelCase wire record."""
    return ProgressRecord.from_card(card).model_dump(by_alias=True, mode="json")


def card_from_dict(data: dict) -> CardState:
    """
    Parse a camelCase wire record into a card.

    Raises:
        DataCorruptionError: if the record is invalid
    """
    try:
        return ProgressRecord.model_validate(data).to_card()
    except ValidationError as exc:
        raise DataCorruptionError(f"Invalid progress record: {exc}") from exc


def study_set_to_dict(study_set: StudySet) -> dict:
    return StudySetRecord.from_study_set(study_set).model_dump(by_alias=True, mode="json")


def study_set_from_dict(data: dict) -> StudySet:
    try:
        return StudySetRecord.model_validate(data).to_study_set()
    except ValidationError as exc:
        raise DataCorruptionError(f"Invalid study set: {exc}") from exc


def export_data(
    progress: dict[str, CardState],
    logs: list[dict],
    now: datetime
) -> dict:
    """
    Build a JSON-ready export of all progress and study logs.

    Args:
        progress: Mapping of word -> CardState
        logs: Study-log events
        now: Export time

    Returns:
        camelCase dict matching ExportData
    """
    data = ExportData(
        exported_at=now.isoformat(),
        progress={word: ProgressRecord.from_card(card) for word, card in progress.items()},
        study_logs=[StudyLogRecord.model_validate(log) for log in logs],
    )
    return data.model_dump(by_alias=True, mode="json")


def import_data(payload: Union[dict, str, bytes]) -> tuple[dict[str, CardState], list[dict]]:
    """
    Validate an export payload and convert it back to cards and events.

    Raises:
        DataCorruptionError: if any record is invalid (unknown states and
            ratings are rejected, never defaulted)
    """
    try:
        if isinstance(payload, (str, bytes)):
            data = ExportData.model_validate_json(payload)
        else:
            data = ExportData.model_validate(payload)
    except ValidationError as exc:
        raise DataCorruptionError(f"Invalid export data: {exc}") from exc

    progress = {word: record.to_card() for word, record in data.progress.items()}
    logs = [record.to_event() for record in data.study_logs]
    logger.info("Imported progress for %d items and %d study logs", len(progress), len(logs))
    return progress, logs
