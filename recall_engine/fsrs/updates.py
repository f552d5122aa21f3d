"""
Stability and Difficulty Updates

Implements the update rules applied by one review.

Two regimes:
- Long-term (Review stage): stability grows with spaced, effortful success
  and shrinks on failure in proportion to how much recall was expected.
- Short-term (Learning / Relearning stages): stability is scaled by a
  grade-dependent factor; same-session practice cannot certify mastery.

Difficulty reflects learning efficiency, not forgetting speed.
"""

from __future__ import annotations
import math

from recall_engine.fsrs.constants import (
    Grade,
    S_MIN,
    D_MIN,
    D_MAX,
    K,
    K_FAIL,
    ALPHA,
    ETA,
    BASE_GAIN,
    U_RATING,
    INITIAL_STABILITY,
    INITIAL_DIFFICULTY,
    SHORT_TERM_WEIGHT,
    SHORT_TERM_OFFSET,
)


def _clip_difficulty(difficulty: float) -> float:
    return max(D_MIN, min(D_MAX, difficulty))


def initial_stability(grade: Grade) -> float:
    """Stability after the very first review."""
    return INITIAL_STABILITY[grade]


def initial_difficulty(grade: Grade) -> float:
    """Difficulty after the very first review."""
    return _clip_difficulty(INITIAL_DIFFICULTY[grade])


def update_stability_on_success(
    stability: float,
    retrievability: float,
    difficulty: float,
    grade: Grade
) -> float:
    """
    Update stability after successful long-term retrieval (Good/Easy).

    Formula:
        ΔS = k * S * base_gain(grade) * (1 - R) * f(D)
        S_new = S + ΔS

    Where:
        - (1 - R) rewards risky (well-spaced) success
        - f(D) = 1 / (1 + alpha * (D - 1)) reduces gains for difficult items

    Stability never decreases on success, and Easy never gains less than
    Good from the same state.

    Args:
        stability: Current stability (S)
        retrievability: Recall probability at review time (R)
        difficulty: Difficulty before this review
        grade: GOOD or EASY

    Returns:
        New stability value
    """
    if grade == Grade.AGAIN:
        raise ValueError("Use update_stability_on_failure for AGAIN")

    f_d = 1.0 / (1.0 + ALPHA * (max(difficulty, D_MIN) - 1.0))
    delta_s = K * stability * BASE_GAIN[grade] * (1.0 - retrievability) * f_d

    return max(S_MIN, stability + delta_s)


def update_stability_on_failure(
    stability: float,
    retrievability: float
) -> float:
    """
    Update stability after failed long-term retrieval.

    Formula:
        S_new = max(S_min, S * (1 - k_fail * R))

    Failures are penalized more strongly when recall was expected (high R).
    """
    return max(S_MIN, stability * (1.0 - K_FAIL * retrievability))


def update_stability_short_term(stability: float, grade: Grade) -> float:
    """
    Update stability for a review inside a learning step.

    Formula:
        S_new = S * exp(w * (grade - 3 + offset))

    Monotone in grade: AGAIN shrinks stability, GOOD and EASY grow it.
    """
    factor = math.exp(SHORT_TERM_WEIGHT * (int(grade) - 3 + SHORT_TERM_OFFSET))
    return max(S_MIN, stability * factor)


def update_difficulty(
    difficulty: float,
    retrievability: float,
    grade: Grade
) -> float:
    """
    Update difficulty based on retrieval outcome.

    Formula:
        D_new = clip(D + eta * surprise * u(grade), 1, 10)

    Where surprise = R on failure and (1 - R) on success, so changes are
    larger when the outcome was unexpected given R.
    """
    if grade == Grade.AGAIN:
        surprise = retrievability
    else:
        surprise = 1.0 - retrievability

    return _clip_difficulty(difficulty + ETA * surprise * U_RATING[grade])
