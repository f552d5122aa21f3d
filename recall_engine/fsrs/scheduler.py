"""
Scheduler - Memory Model Transition

Pure scheduling and state updates (no storage calls).

Main workflow:
1. Caller loads the prior card state (or None for an unseen item)
2. Determine the stage regime (first review, short-term, long-term)
3. Calculate retrievability at review time
4. Apply the stage's update rules
5. Return a new card (and, via process_review, the study-log event)

Stage transitions:
    New        --forgot/remembered--> Learning
    New        --perfect-->           Review
    Learning   --forgot-->            Learning
    Relearning --forgot-->            Relearning
    Learning / Relearning --remembered/perfect--> Review
    Review     --forgot-->            Relearning
    Review     --remembered/perfect-->Review
"""

from __future__ import annotations
from dataclasses import replace
from datetime import datetime
from typing import NamedTuple, Optional, Tuple

from recall_engine.dates import MS_PER_DAY, to_millis
from recall_engine.fsrs import memory_state, updates
from recall_engine.fsrs.constants import (
    CardStatus,
    Grade,
    Rating,
    RATING_TO_GRADE,
    LEARNING_STEP_MINUTES,
    RELEARNING_STEP_MINUTES,
    parse_rating,
)

MS_PER_MINUTE = 60 * 1000


class _Step(NamedTuple):
    state: CardStatus
    stability: float
    difficulty: float
    scheduled_days: int
    due: int


def transition(
    prior: Optional[memory_state.CardState],
    rating,
    now: datetime,
    time_spent_sec: float = 0.0
) -> memory_state.CardState:
    """
    Advance a card by one review.

    A missing prior and a prior in the New stage are treated identically:
    a fresh card is created at `now` and advanced by one step.

    Args:
        prior: Current card state, or None for an unseen item
        rating: Rating (or its string value)
        now: Review time (timezone-aware)
        time_spent_sec: Time the learner spent answering

    Returns:
        New CardState; the prior is left untouched

    Raises:
        InvalidRatingError: if the rating is not recognized
    """
    rating = parse_rating(rating)
    if time_spent_sec < 0:
        raise ValueError("time_spent_sec must be non-negative")

    grade = RATING_TO_GRADE[rating]
    now_ms = to_millis(now)

    if prior is None or prior.is_new:
        base = memory_state.new_card(now)
        retrievability = 0.0
        step = _first_review(grade, now_ms)
    else:
        base = prior
        retrievability = memory_state.calculate_retrievability(prior, now)
        if prior.state == CardStatus.REVIEW:
            step = _long_term_review(prior, grade, retrievability, now_ms)
        else:
            step = _short_term_review(prior, grade, retrievability, now_ms)

    forgot = rating == Rating.FORGOT

    return replace(
        base,
        state=step.state,
        stability=step.stability,
        difficulty=step.difficulty,
        retrievability=retrievability,
        elapsed_days=0.0,
        scheduled_days=step.scheduled_days,
        reps=base.reps + 1,
        lapses=base.lapses + (1 if forgot else 0),
        last_review=now_ms,
        due=step.due,
        last_rating=rating,
        correct_count=base.correct_count + (0 if forgot else 1),
        wrong_count=base.wrong_count + (1 if forgot else 0),
        total_study_time_sec=base.total_study_time_sec + time_spent_sec,
    )


def process_review(
    word: str,
    prior: Optional[memory_state.CardState],
    rating,
    now: datetime,
    time_spent_sec: float = 0.0
) -> Tuple[memory_state.CardState, dict]:
    """
    Process a review and return the updated card + study-log event data.

    This is the core algorithm. No storage calls.
    Caller is responsible for:
    1. Loading the prior card
    2. Saving the returned card
    3. Persisting the event

    Args:
        word: Item key
        prior: Current card state, or None for an unseen item
        rating: Rating (or its string value)
        now: Review time
        time_spent_sec: Time the learner spent answering

    Returns:
        Tuple of (updated_card, event_data_dict)
    """
    card = transition(prior, rating, now, time_spent_sec)
    is_new_card = prior is None or prior.is_new

    event_data = {
        'word': word,
        'timestamp': card.last_review,
        'rating': card.last_rating.value,
        'time_spent_sec': time_spent_sec,
        'state': CardStatus.NEW.value if is_new_card else prior.state.value,
        'stability_before': None if is_new_card else prior.stability,
        'difficulty_before': None if is_new_card else prior.difficulty,
        'retrievability_before': None if is_new_card else card.retrievability,
        'stability_after': card.stability,
        'difficulty_after': card.difficulty,
        'scheduled_days': card.scheduled_days,
    }

    return card, event_data


def _minutes_from(now_ms: int, minutes: int) -> int:
    return now_ms + minutes * MS_PER_MINUTE


def _days_from(now_ms: int, days: int) -> int:
    return now_ms + days * MS_PER_DAY


def _first_review(grade: Grade, now_ms: int) -> _Step:
    stability = updates.initial_stability(grade)
    difficulty = updates.initial_difficulty(grade)

    # Easy skips the learning steps
    if grade == Grade.EASY:
        interval = memory_state.next_interval(stability)
        return _Step(CardStatus.REVIEW, stability, difficulty, interval, _days_from(now_ms, interval))

    return _Step(
        CardStatus.LEARNING, stability, difficulty, 0,
        _minutes_from(now_ms, LEARNING_STEP_MINUTES[grade])
    )


def _short_term_review(
    card: memory_state.CardState,
    grade: Grade,
    retrievability: float,
    now_ms: int
) -> _Step:
    """Learning / Relearning: stay put on failure, graduate on success."""
    stability = updates.update_stability_short_term(card.stability, grade)
    difficulty = updates.update_difficulty(card.difficulty, retrievability, grade)

    if grade == Grade.AGAIN:
        if card.state == CardStatus.RELEARNING:
            minutes = RELEARNING_STEP_MINUTES
        else:
            minutes = LEARNING_STEP_MINUTES[Grade.AGAIN]
        return _Step(card.state, stability, difficulty, 0, _minutes_from(now_ms, minutes))

    interval = memory_state.next_interval(stability)
    return _Step(CardStatus.REVIEW, stability, difficulty, interval, _days_from(now_ms, interval))


def _long_term_review(
    card: memory_state.CardState,
    grade: Grade,
    retrievability: float,
    now_ms: int
) -> _Step:
    """Review: grow stability on success, relearn on failure."""
    difficulty = updates.update_difficulty(card.difficulty, retrievability, grade)

    if grade == Grade.AGAIN:
        stability = updates.update_stability_on_failure(card.stability, retrievability)
        return _Step(
            CardStatus.RELEARNING, stability, difficulty, 0,
            _minutes_from(now_ms, RELEARNING_STEP_MINUTES)
        )

    # Uses the difficulty from before this review
    stability = updates.update_stability_on_success(
        card.stability, retrievability, card.difficulty, grade
    )
    interval = memory_state.next_interval(stability)
    return _Step(CardStatus.REVIEW, stability, difficulty, interval, _days_from(now_ms, interval))
