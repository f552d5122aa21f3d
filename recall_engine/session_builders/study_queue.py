"""
Study Queue - Fixed-Size Study Sets

Builds a study set of the SET_SIZE most urgent items and sequences it:

- Items answered "forgot" stay outstanding and are re-presented before any
  item that has not been shown yet
- Any non-forgot answer completes the item for this round
- The set is complete once every item has been completed

StudySet values are immutable; record_answer returns a new set.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Iterable, Mapping, NamedTuple, Optional

from recall_engine.errors import EmptyPoolError, UnknownItemError
from recall_engine.fsrs.constants import Rating, parse_rating
from recall_engine.fsrs.memory_state import CardState
from recall_engine.session_builders.priority import calculate_priority_score

logger = logging.getLogger(__name__)

# ---- Set Configuration ----
SET_SIZE = 5    # Items per study set


class SetStatus(str, Enum):
    BUILDING = "building"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class SetProgress(NamedTuple):
    current: int
    total: int


@dataclass(frozen=True)
class StudySet:
    """
    One round of study.

    words: batch keys in presentation order
    completed_words: answered remembered/perfect this round
    forgot_words: answered forgot at least once this round
    """
    words: tuple[str, ...]
    completed_words: frozenset[str] = frozenset()
    forgot_words: frozenset[str] = frozenset()


def create_set(
    items: Iterable[str],
    progress_by_key: Mapping[str, CardState],
    now: datetime,
    set_size: int = SET_SIZE
) -> StudySet:
    """
    Create a study set from the most urgent items.

    Every item is scored with its current progress (or none), then the top
    `set_size` are taken in descending score order. Equal scores keep pool
    order.

    Args:
        items: Item keys in the pool (duplicates are ignored)
        progress_by_key: Progress per key; missing keys count as unseen
        now: Current time
        set_size: Maximum items per set

    Returns:
        A fresh StudySet

    Raises:
        EmptyPoolError: if the pool has no items
    """
    pool = list(dict.fromkeys(items))
    if not pool:
        raise EmptyPoolError("Cannot create a study set from an empty item pool")
    if set_size < 1:
        raise ValueError("set_size must be at least 1")

    ranked = sorted(
        pool,
        key=lambda word: calculate_priority_score(progress_by_key.get(word), now),
        reverse=True
    )
    selected = tuple(ranked[:min(set_size, len(ranked))])

    logger.debug("Created study set of %d from a pool of %d: %s", len(selected), len(pool), selected)
    return StudySet(words=selected)


def next_item(study_set: StudySet) -> Optional[str]:
    """
    Get the next item to present, or None once the set is complete.

    Forgotten items that are still outstanding come first, in batch order.
    """
    remaining = [word for word in study_set.words if word not in study_set.completed_words]
    if not remaining:
        return None

    for word in remaining:
        if word in study_set.forgot_words:
            return word

    return remaining[0]


def record_answer(study_set: StudySet, word: str, rating) -> StudySet:
    """
    Record an answer and return the updated set.

    Args:
        study_set: Current set (left untouched)
        word: Key that was answered
        rating: Rating (or its string value)

    Raises:
        InvalidRatingError: if the rating is not recognized
        UnknownItemError: if the key is not part of the set
    """
    rating = parse_rating(rating)
    if word not in study_set.words:
        raise UnknownItemError(word)

    if rating == Rating.FORGOT:
        # Stays outstanding; resurfaces via next_item
        return replace(study_set, forgot_words=study_set.forgot_words | {word})

    return replace(study_set, completed_words=study_set.completed_words | {word})


def is_complete(study_set: StudySet) -> bool:
    return len(study_set.completed_words) == len(study_set.words)


def set_progress(study_set: StudySet) -> SetProgress:
    return SetProgress(current=len(study_set.completed_words), total=len(study_set.words))


def has_forgotten(study_set: StudySet, word: str) -> bool:
    return word in study_set.forgot_words


def set_status(study_set: StudySet) -> SetStatus:
    return SetStatus.COMPLETE if is_complete(study_set) else SetStatus.IN_PROGRESS
