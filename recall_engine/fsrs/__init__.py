"""
FSRS - Free Spaced Repetition Scheduler

Memory model for the recall engine.

This package implements:
- A four-stage card lifecycle (New, Learning, Review, Relearning)
- Power-law forgetting curve: R = (1 + t / (9 * S)) ** -1
- Interpretable memory state (Stability, Difficulty, Retrievability)
- Optional SQL persistence of progress and study logs

Quick start:
    from recall_engine import fsrs

    # Advance a card by one review (algorithm only, no DB calls)
    card = fsrs.transition(prior_card, "remembered", now)

    # Estimate current recall probability
    r = fsrs.calculate_retrievability(card, now)
"""

# Core scheduler API (algorithm logic)
from recall_engine.fsrs.scheduler import transition, process_review

# Database API
from recall_engine.fsrs.database import (
    init_db,
    reset_db,
    load_card_state,
    save_card_state,
    batch_save_card_states,
    load_all_card_states,
    log_study_event,
    batch_log_study_events,
    get_recent_events,
    get_logs_between,
    SqlProgressStore,
)

# Constants and parameters
from recall_engine.fsrs.constants import (
    Rating,
    Grade,
    CardStatus,
    parse_rating,
    parse_card_status,
    RATING_TO_GRADE,
    TARGET_RETENTION,
    S_MIN,
    D_MIN,
    D_MAX,
)

# Memory state
from recall_engine.fsrs.memory_state import (
    CardState,
    new_card,
    calculate_retrievability,
    forgetting_curve,
    get_elapsed_days,
    next_interval,
)


__all__ = [
    # Core algorithm
    "transition",
    "process_review",

    # Database operations
    "init_db",
    "reset_db",
    "load_card_state",
    "save_card_state",
    "batch_save_card_states",
    "load_all_card_states",
    "log_study_event",
    "batch_log_study_events",
    "get_recent_events",
    "get_logs_between",
    "SqlProgressStore",

    # Enums
    "Rating",
    "Grade",
    "CardStatus",
    "parse_rating",
    "parse_card_status",
    "RATING_TO_GRADE",

    # Memory state
    "CardState",
    "new_card",
    "calculate_retrievability",
    "forgetting_curve",
    "get_elapsed_days",
    "next_interval",

    # Parameters
    "TARGET_RETENTION",
    "S_MIN",
    "D_MIN",
    "D_MAX",
]
