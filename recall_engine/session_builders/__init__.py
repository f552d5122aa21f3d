"""Study-set building and sequencing."""

from recall_engine.session_builders.priority import (
    calculate_priority_score,
    overdue_ratio,
)
from recall_engine.session_builders.study_queue import (
    SET_SIZE,
    SetProgress,
    SetStatus,
    StudySet,
    create_set,
    has_forgotten,
    is_complete,
    next_item,
    record_answer,
    set_progress,
    set_status,
)

__all__ = [
    "calculate_priority_score",
    "overdue_ratio",
    "SET_SIZE",
    "SetProgress",
    "SetStatus",
    "StudySet",
    "create_set",
    "has_forgotten",
    "is_complete",
    "next_item",
    "record_answer",
    "set_progress",
    "set_status",
]
