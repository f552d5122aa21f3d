"""
Review service: runs one study round against a progress store.

Ties the pure pieces together:
1. start_round loads progress and builds a study set
2. answer loads the item's prior state, advances it with the memory model,
   advances the study set, and persists both the card and the study log

Storage failures on write never discard the computed state. They are
returned unmodified in ReviewResult.save_error for the caller to surface.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from recall_engine.dates import utc_now
from recall_engine.errors import StorageError, UnknownItemError
from recall_engine.fsrs.constants import parse_rating
from recall_engine.fsrs.memory_state import CardState
from recall_engine.fsrs.scheduler import process_review
from recall_engine.session_builders.study_queue import SET_SIZE, StudySet, create_set, record_answer
from recall_engine.storage import ProgressStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewResult:
    """Outcome of answering one item."""
    card: CardState
    study_set: StudySet
    event: dict
    save_error: Optional[StorageError] = None

    @property
    def saved(self) -> bool:
        return self.save_error is None


def start_round(
    store: ProgressStore,
    items: Iterable[str],
    now: Optional[datetime] = None,
    set_size: int = SET_SIZE
) -> StudySet:
    """
    Build the next study set from the item pool and stored progress.

    Load failures propagate: without progress there is nothing to rank.
    """
    if now is None:
        now = utc_now()
    return create_set(items, store.load_all_progress(), now, set_size)


def answer(
    store: ProgressStore,
    study_set: StudySet,
    word: str,
    rating,
    now: Optional[datetime] = None,
    time_spent_sec: float = 0.0
) -> ReviewResult:
    """
    Record the learner's answer for one item.

    Args:
        store: Progress store
        study_set: Current study set
        word: Item that was answered
        rating: Rating (or its string value)
        now: Review time (defaults to now)
        time_spent_sec: Time the learner spent answering

    Returns:
        ReviewResult with the new card, the advanced set and the log event

    Raises:
        InvalidRatingError: if the rating is not recognized
        UnknownItemError: if the word is not part of the study set
        StorageError: if the prior progress could not be loaded
    """
    rating = parse_rating(rating)
    if word not in study_set.words:
        raise UnknownItemError(word)
    if now is None:
        now = utc_now()

    prior = store.load_progress(word)
    card, event = process_review(word, prior, rating, now, time_spent_sec)
    next_set = record_answer(study_set, word, rating)

    save_error = None
    try:
        store.save_progress(word, card)
        store.append_log(event)
    except StorageError as exc:
        logger.warning("Progress for %r was not saved: %s", word, exc)
        save_error = exc

    return ReviewResult(card=card, study_set=next_set, event=event, save_error=save_error)
