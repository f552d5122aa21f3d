"""
Database - Progress Database I/O Operations

Handles all database operations for card state and study logs.
Uses SQLAlchemy ORM with a Postgres or SQLite backend.

This module handles ONLY database I/O.
Algorithm logic is handled by the scheduler module.
"""

from __future__ import annotations
import logging
from contextlib import contextmanager
from datetime import datetime
from functools import lru_cache
from typing import Iterator, Optional

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from recall_engine.config import get_database_url, get_default_user_id
from recall_engine.dates import today_bounds
from recall_engine.errors import (
    DataCorruptionError,
    InvalidCardStateError,
    InvalidRatingError,
    StorageError,
    StorageQuotaExceededError,
)
from recall_engine.fsrs.memory_state import CardState
from recall_engine.fsrs.models import Base, WordProgress as WordProgressModel, StudyLogEntry as StudyLogModel

logger = logging.getLogger(__name__)

POSTGRES_DISK_FULL = "53100"
MAX_TIMESTAMP_MS = 2 ** 63 - 1


@lru_cache(maxsize=None)
def _create_engine(db_url: str) -> Engine:
    if db_url.startswith("sqlite"):
        return create_engine(db_url, echo=False)
    return create_engine(
        db_url,
        pool_size=5,           # Keep 5 connections open
        max_overflow=10,       # Allow up to 10 extra connections
        pool_pre_ping=True,    # Verify connections before use
        echo=False
    )


def get_engine(database_url: Optional[str] = None) -> Engine:
    """
    Get the SQLAlchemy engine for a database URL.

    Engines are created once per URL and reused.

    Args:
        database_url: Connection string (defaults to DATABASE_URL)

    Returns:
        SQLAlchemy Engine instance
    """
    return _create_engine(database_url or get_database_url())


def get_session(database_url: Optional[str] = None) -> Session:
    """Get a SQLAlchemy session for database operations."""
    SessionLocal = sessionmaker(bind=get_engine(database_url), expire_on_commit=False)
    return SessionLocal()


def _is_disk_full(exc: OperationalError) -> bool:
    orig = exc.orig
    if getattr(orig, "pgcode", None) == POSTGRES_DISK_FULL:
        return True
    message = str(orig).lower()
    return "database or disk is full" in message or "no space left" in message


@contextmanager
def _session_scope(database_url: Optional[str], action: str) -> Iterator[Session]:
    """
    Open a session, translating driver errors into storage errors.
    """
    session = get_session(database_url)
    try:
        yield session
    except OperationalError as exc:
        session.rollback()
        logger.warning("Database error while trying to %s: %s", action, exc)
        if _is_disk_full(exc):
            raise StorageQuotaExceededError(f"Failed to {action}: storage is full") from exc
        raise StorageError(f"Failed to {action}") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.warning("Database error while trying to %s: %s", action, exc)
        raise StorageError(f"Failed to {action}") from exc
    finally:
        session.close()


def init_db(database_url: Optional[str] = None):
    """
    Initialize database schema if tables don't exist.

    Safe to call multiple times - only creates missing tables.
    """
    engine = get_engine(database_url)

    inspector = inspect(engine)
    existing_tables = inspector.get_table_names()

    if 'word_progress' not in existing_tables or 'study_logs' not in existing_tables:
        Base.metadata.create_all(engine)
        return

    progress_columns = {col["name"] for col in inspector.get_columns("word_progress")}
    if "user_id" not in progress_columns:
        raise RuntimeError(
            "Progress schema missing user_id column. "
            "Please reset or migrate the database to the per-user schema."
        )


def reset_db(database_url: Optional[str] = None):
    """
    DANGEROUS: Delete all data and recreate tables.

    Only use this for testing or when you want to start fresh.
    All review history will be lost!
    """
    engine = get_engine(database_url)
    Base.metadata.drop_all(engine)
    logger.warning("All progress tables dropped")

    init_db(database_url)


# ---- Row mapping ----

def _row_to_card(row: WordProgressModel) -> CardState:
    try:
        return CardState(
            state=row.state,
            stability=row.stability,
            difficulty=row.difficulty,
            retrievability=row.retrievability,
            elapsed_days=row.elapsed_days,
            scheduled_days=row.scheduled_days,
            reps=row.reps,
            lapses=row.lapses,
            last_review=row.last_review,
            due=row.due,
            last_rating=row.last_rating,
            correct_count=row.correct_count,
            wrong_count=row.wrong_count,
            total_study_time_sec=row.total_study_time_sec,
        )
    except (InvalidCardStateError, InvalidRatingError) as exc:
        raise DataCorruptionError(f"Stored progress for {row.word!r} is invalid: {exc}") from exc


def _apply_card(row: WordProgressModel, card: CardState):
    row.state = card.state.value
    row.stability = card.stability
    row.difficulty = card.difficulty
    row.retrievability = card.retrievability
    row.elapsed_days = card.elapsed_days
    row.scheduled_days = card.scheduled_days
    row.reps = card.reps
    row.lapses = card.lapses
    row.last_review = card.last_review
    row.due = card.due
    row.last_rating = card.last_rating.value
    row.correct_count = card.correct_count
    row.wrong_count = card.wrong_count
    row.total_study_time_sec = card.total_study_time_sec


def _event_to_row(user_id: str, event: dict) -> StudyLogModel:
    return StudyLogModel(
        user_id=user_id,
        word=event['word'],
        timestamp=event['timestamp'],
        rating=event['rating'],
        time_spent_sec=event.get('time_spent_sec', 0.0),
        state=event['state'],
        stability_before=event.get('stability_before'),
        difficulty_before=event.get('difficulty_before'),
        retrievability_before=event.get('retrievability_before'),
        stability_after=event.get('stability_after'),
        difficulty_after=event.get('difficulty_after'),
        scheduled_days=event.get('scheduled_days'),
    )


def _row_to_event(row: StudyLogModel) -> dict:
    return {
        "id": row.id,
        "word": row.word,
        "timestamp": row.timestamp,
        "rating": row.rating,
        "time_spent_sec": row.time_spent_sec,
        "state": row.state,
        "stability_before": row.stability_before,
        "difficulty_before": row.difficulty_before,
        "retrievability_before": row.retrievability_before,
        "stability_after": row.stability_after,
        "difficulty_after": row.difficulty_after,
        "scheduled_days": row.scheduled_days,
    }


def _find_row(session: Session, user_id: str, word: str) -> Optional[WordProgressModel]:
    return session.query(WordProgressModel).filter(
        WordProgressModel.user_id == user_id,
        WordProgressModel.word == word
    ).first()


# ---- Card state ----

def load_card_state(
    user_id: str,
    word: str,
    database_url: Optional[str] = None
) -> Optional[CardState]:
    """
    Load card state from database.

    Args:
        user_id: User identifier for scoping progress data
        word: Item key
        database_url: Connection string (defaults to DATABASE_URL)

    Returns:
        CardState if found, None if the item was never reviewed
    """
    with _session_scope(database_url, f"load progress for {word!r}") as session:
        row = _find_row(session, user_id, word)
        if row is None:
            return None
        return _row_to_card(row)


def load_all_card_states(
    user_id: str,
    database_url: Optional[str] = None
) -> dict[str, CardState]:
    """Load every stored card for a user, keyed by word."""
    with _session_scope(database_url, "load progress") as session:
        rows = session.query(WordProgressModel).filter(
            WordProgressModel.user_id == user_id
        ).all()
        return {row.word: _row_to_card(row) for row in rows}


def save_card_state(
    user_id: str,
    word: str,
    card: CardState,
    database_url: Optional[str] = None
):
    """
    Save card state to database (insert or update).
    """
    with _session_scope(database_url, f"save progress for {word!r}") as session:
        row = _find_row(session, user_id, word)
        if row is None:
            row = WordProgressModel(user_id=user_id, word=word)
            session.add(row)
        _apply_card(row, card)
        session.commit()


def batch_save_card_states(
    user_id: str,
    cards: dict[str, CardState],
    database_url: Optional[str] = None
):
    """
    Save multiple card states in a single database transaction.

    Args:
        user_id: User identifier
        cards: Mapping of word -> CardState
        database_url: Connection string (defaults to DATABASE_URL)
    """
    if not cards:
        return

    with _session_scope(database_url, "save progress batch") as session:
        for word, card in cards.items():
            row = _find_row(session, user_id, word)
            if row is None:
                row = WordProgressModel(user_id=user_id, word=word)
                session.add(row)
            _apply_card(row, card)
        session.commit()


# ---- Study logs ----

def log_study_event(
    user_id: str,
    event: dict,
    database_url: Optional[str] = None
):
    """
    Append a study-log event (as built by scheduler.process_review).
    """
    with _session_scope(database_url, "save study log") as session:
        session.add(_event_to_row(user_id, event))
        session.commit()


def batch_log_study_events(
    user_id: str,
    events: list[dict],
    database_url: Optional[str] = None
):
    """Append multiple study-log events in a single transaction."""
    if not events:
        return

    with _session_scope(database_url, "save study logs") as session:
        for event in events:
            session.add(_event_to_row(user_id, event))
        session.commit()


def get_recent_events(
    user_id: str,
    limit: int = 10,
    database_url: Optional[str] = None
) -> list[dict]:
    """
    Get recent study events (newest first).
    """
    with _session_scope(database_url, "load study logs") as session:
        rows = session.query(StudyLogModel).filter(
            StudyLogModel.user_id == user_id
        ).order_by(
            StudyLogModel.timestamp.desc(),
            StudyLogModel.id.desc()
        ).limit(limit).all()
        return [_row_to_event(row) for row in rows]


def get_logs_between(
    user_id: str,
    start_ms: int = 0,
    end_ms: int = MAX_TIMESTAMP_MS,
    word: Optional[str] = None,
    database_url: Optional[str] = None
) -> list[dict]:
    """
    Get study events with start_ms <= timestamp <= end_ms (oldest first).

    Args:
        user_id: User identifier
        start_ms: Inclusive lower bound (epoch milliseconds)
        end_ms: Inclusive upper bound (epoch milliseconds)
        word: Restrict to a single item
        database_url: Connection string (defaults to DATABASE_URL)
    """
    with _session_scope(database_url, "load study logs") as session:
        query = session.query(StudyLogModel).filter(
            StudyLogModel.user_id == user_id,
            StudyLogModel.timestamp >= start_ms,
            StudyLogModel.timestamp <= end_ms
        )
        if word is not None:
            query = query.filter(StudyLogModel.word == word)
        rows = query.order_by(StudyLogModel.timestamp.asc(), StudyLogModel.id.asc()).all()
        return [_row_to_event(row) for row in rows]


class SqlProgressStore:
    """
    ProgressStore backed by the progress database, scoped to one user.
    """

    def __init__(self, database_url: Optional[str] = None, user_id: Optional[str] = None):
        self.database_url = database_url or get_database_url()
        self.user_id = user_id or get_default_user_id()

    def init(self):
        init_db(self.database_url)

    def load_progress(self, word: str) -> Optional[CardState]:
        return load_card_state(self.user_id, word, self.database_url)

    def save_progress(self, word: str, card: CardState):
        save_card_state(self.user_id, word, card, self.database_url)

    def save_many(self, cards: dict[str, CardState]):
        batch_save_card_states(self.user_id, cards, self.database_url)

    def load_all_progress(self) -> dict[str, CardState]:
        return load_all_card_states(self.user_id, self.database_url)

    def append_log(self, event: dict):
        log_study_event(self.user_id, event, self.database_url)

    def load_logs(self) -> list[dict]:
        return get_logs_between(self.user_id, database_url=self.database_url)

    def logs_for_word(self, word: str) -> list[dict]:
        return get_logs_between(self.user_id, word=word, database_url=self.database_url)

    def logs_between(self, start_ms: int, end_ms: int) -> list[dict]:
        return get_logs_between(self.user_id, start_ms, end_ms, database_url=self.database_url)

    def today_logs(self, now: datetime) -> list[dict]:
        start_ms, end_ms = today_bounds(now)
        return self.logs_between(start_ms, end_ms)
