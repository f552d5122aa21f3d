"""
Memory State - Card State and Retrievability

Defines the per-item memory record and the forgetting curve used to
estimate recall probability.

Key concepts:
- Stability (S): Interval in days at which recall probability falls to 90%
- Difficulty (D): How hard the item is to learn (0-10 scale, 0 until reviewed)
- Retrievability (R): Probability of successful recall at time t
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime

from recall_engine.dates import MS_PER_DAY, to_millis
from recall_engine.fsrs.constants import (
    CardStatus,
    Rating,
    DECAY_FACTOR,
    TARGET_RETENTION,
    MAX_INTERVAL_DAYS,
    parse_card_status,
    parse_rating,
)


@dataclass(frozen=True)
class CardState:
    """
    Memory state for a single item.

    Instances are never mutated: every review produces a new CardState.
    Timestamps are epoch milliseconds.
    """
    state: CardStatus = CardStatus.NEW

    # Memory parameters
    stability: float = 0.0  # S, in days
    difficulty: float = 0.0  # D, range 0-10
    retrievability: float = 0.0  # Cached R, recomputed on demand

    # Scheduling
    elapsed_days: float = 0.0
    scheduled_days: int = 0
    reps: int = 0
    lapses: int = 0
    last_review: int = 0
    due: int = 0
    last_rating: Rating = Rating.REMEMBERED

    # Bookkeeping counters (not touched by the update rules)
    correct_count: int = 0
    wrong_count: int = 0
    total_study_time_sec: float = 0.0

    def __post_init__(self):
        """Coerce stored string values, rejecting unknown ones."""
        object.__setattr__(self, "state", parse_card_status(self.state))
        object.__setattr__(self, "last_rating", parse_rating(self.last_rating))

    @property
    def is_new(self) -> bool:
        return self.state == CardStatus.NEW


def new_card(now: datetime) -> CardState:
    """
    Initialize state for an item that has never been reviewed.

    Args:
        now: Creation time; the card is due immediately

    Returns:
        Zero-valued CardState in the New stage
    """
    return CardState(state=CardStatus.NEW, due=to_millis(now))


def forgetting_curve(elapsed_days: float, stability: float) -> float:
    """
    Power-law forgetting curve.

    Formula: R = (1 + t / (9 * S)) ** -1

    The constant 9 makes R = 0.9 exactly when t = S.

    Args:
        elapsed_days: Time since last review (in days)
        stability: Current stability (in days, > 0)

    Returns:
        Retrievability between 0 and 1
    """
    if elapsed_days <= 0:
        return 1.0
    return (1.0 + elapsed_days / (DECAY_FACTOR * stability)) ** -1


def get_elapsed_days(card: CardState, now: datetime) -> float:
    """
    Days since the card's last review (fractional, never negative).

    Returns 0 for cards that have never been reviewed.
    """
    if not card.last_review:
        return 0.0
    return max(0.0, (to_millis(now) - card.last_review) / MS_PER_DAY)


def calculate_retrievability(card: CardState, now: datetime) -> float:
    """
    Estimate current recall probability for a card.

    New cards, or cards without stability, are treated as certain to be
    forgotten (R = 0). This estimate is for display and prioritization;
    due dates are owned by the scheduler.

    Args:
        card: Card to estimate
        now: Current time

    Returns:
        Retrievability between 0 and 1
    """
    if card.state == CardStatus.NEW or card.stability == 0:
        return 0.0

    return forgetting_curve(get_elapsed_days(card, now), card.stability)


def next_interval(stability: float, retention: float = TARGET_RETENTION) -> int:
    """
    Days until recall probability decays to `retention`.

    Inverts the forgetting curve: t = 9 * S * (1 / R - 1), rounded and
    clamped to [1, MAX_INTERVAL_DAYS].
    """
    interval = DECAY_FACTOR * stability * (1.0 / retention - 1.0)
    return int(min(MAX_INTERVAL_DAYS, max(1, round(interval))))
