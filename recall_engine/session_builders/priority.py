"""
Priority scoring for study-set selection.

Unseen items score a flat NEW_ITEM_PRIORITY. Reviewed items start from
BASE_PRIORITY, scaled up by how badly they were last recalled and by how far
past due they are.
"""

from __future__ import annotations
from datetime import datetime
from typing import Optional

from recall_engine.dates import MS_PER_DAY, to_millis
from recall_engine.fsrs.constants import CardStatus, Rating
from recall_engine.fsrs.memory_state import CardState

# ---- Priority Configuration ----
NEW_ITEM_PRIORITY = 100.0
BASE_PRIORITY = 50.0

LAST_RATING_FACTORS = {
    Rating.FORGOT: 1.5,
    Rating.REMEMBERED: 1.2,
    Rating.PERFECT: 1.0,
}


def overdue_ratio(card: CardState, now: datetime) -> float:
    """
    Elapsed days over scheduled days, never below 1.

    A not-yet-due card is never discounted below its base tier.
    """
    elapsed_days = (to_millis(now) - card.last_review) / MS_PER_DAY
    return max(1.0, elapsed_days / max(1, card.scheduled_days))


def calculate_priority_score(card: Optional[CardState], now: datetime) -> float:
    """
    Calculate how urgently an item should be studied (higher = sooner).

    Args:
        card: The item's progress, or None if never studied
        now: Current time

    Returns:
        Priority score
    """
    if card is None or card.state == CardStatus.NEW:
        return NEW_ITEM_PRIORITY

    return BASE_PRIORITY * LAST_RATING_FACTORS[card.last_rating] * overdue_ratio(card, now)
