"""
FSRS Constants and Parameters

All configurable parameters for the memory model in one place.
Initial stability and difficulty values follow the published FSRS-5
default weights; update rates are tuned for a three-button review.
"""

from enum import Enum, IntEnum

from recall_engine.errors import InvalidCardStateError, InvalidRatingError


# ---- Ratings ----

class Rating(str, Enum):
    """Learner's self-reported recall quality."""
    FORGOT = "forgot"
    REMEMBERED = "remembered"
    PERFECT = "perfect"


class Grade(IntEnum):
    """FSRS grade consumed by the update rules."""
    AGAIN = 1   # Retrieval failed
    GOOD = 3    # Retrieved normally
    EASY = 4    # Retrieved fluently


RATING_TO_GRADE = {
    Rating.FORGOT: Grade.AGAIN,
    Rating.REMEMBERED: Grade.GOOD,
    Rating.PERFECT: Grade.EASY,
}


class CardStatus(str, Enum):
    """Lifecycle stage of a card."""
    NEW = "New"
    LEARNING = "Learning"
    REVIEW = "Review"
    RELEARNING = "Relearning"


def parse_rating(value) -> Rating:
    """
    Parse a rating from a Rating or its string value.

    Raises:
        InvalidRatingError: for anything else (no silent default)
    """
    if isinstance(value, Rating):
        return value
    try:
        return Rating(value)
    except ValueError:
        raise InvalidRatingError(value) from None


def parse_card_status(value) -> CardStatus:
    """
    Parse a lifecycle state from a CardStatus or its string value.

    Raises:
        InvalidCardStateError: for anything else (never falls back to New)
    """
    if isinstance(value, CardStatus):
        return value
    try:
        return CardStatus(value)
    except ValueError:
        raise InvalidCardStateError(value) from None


# ---- Forgetting Curve ----

DECAY_FACTOR = 9.0        # R = (1 + t / (9 * S)) ** -1, so R(t=S) = 0.9
TARGET_RETENTION = 0.90   # Recall probability at which a review falls due


# ---- Global Constants ----

S_MIN = 0.1               # Minimum stability (days)
D_MIN = 1.0               # Minimum difficulty after a review
D_MAX = 10.0              # Maximum difficulty
MAX_INTERVAL_DAYS = 36500


# ---- First Review ----

INITIAL_STABILITY = {
    Grade.AGAIN: 0.40,
    Grade.GOOD: 3.17,
    Grade.EASY: 15.69,
}

INITIAL_DIFFICULTY = {
    Grade.AGAIN: 7.19,
    Grade.GOOD: 5.28,
    Grade.EASY: 3.22,
}


# ---- Learning Parameters ----

K = 1.2          # Stability learning rate
K_FAIL = 0.6     # Stability penalty rate on failure
ALPHA = 0.15     # Difficulty penalty factor (higher = slower learning for hard cards)
ETA = 0.8        # Difficulty adaptation rate (higher = faster difficulty changes)


# ---- Base Learning Gain by Grade ----
# Multiplier for stability increase on successful retrieval

BASE_GAIN = {
    Grade.GOOD: 1.0,
    Grade.EASY: 1.8,
}


# ---- Difficulty Update Direction by Grade ----

U_RATING = {
    Grade.AGAIN: +1.0,   # Failure increases difficulty
    Grade.GOOD: -0.20,   # Normal success slightly decreases difficulty
    Grade.EASY: -0.60,   # Fluent success significantly decreases difficulty
}


# ---- Short-Term (Learning / Relearning) Updates ----
# S_new = S * exp(SHORT_TERM_WEIGHT * (grade - 3 + SHORT_TERM_OFFSET))

SHORT_TERM_WEIGHT = 0.5
SHORT_TERM_OFFSET = 0.6


# ---- Learning Steps ----
# Minutes until a card in a short-term stage is shown again

LEARNING_STEP_MINUTES = {
    Grade.AGAIN: 1,
    Grade.GOOD: 10,
}
RELEARNING_STEP_MINUTES = 10
