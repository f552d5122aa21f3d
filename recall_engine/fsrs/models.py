"""
SQLAlchemy ORM Models for the Progress Database

Defines WordProgress and StudyLogEntry models. Works against Postgres in
production and SQLite for local use and tests.
"""

from sqlalchemy import BigInteger, Column, Float, Index, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class WordProgress(Base):
    """
    Persistent memory state for a single item (user_id + word).
    """
    __tablename__ = 'word_progress'

    # Primary key: composite of user_id and word
    user_id = Column(String(255), primary_key=True, nullable=False)
    word = Column(String(255), primary_key=True, nullable=False)

    # Lifecycle stage: New, Learning, Review, Relearning
    state = Column(String(20), nullable=False)

    # Memory parameters
    stability = Column(Float, nullable=False)
    difficulty = Column(Float, nullable=False)
    retrievability = Column(Float, nullable=False)

    # Scheduling (timestamps are epoch milliseconds)
    elapsed_days = Column(Float, nullable=False)
    scheduled_days = Column(Integer, nullable=False)
    reps = Column(Integer, nullable=False)
    lapses = Column(Integer, nullable=False)
    last_review = Column(BigInteger, nullable=False)
    due = Column(BigInteger, nullable=False)
    last_rating = Column(String(20), nullable=False)

    # Bookkeeping counters
    correct_count = Column(Integer, nullable=False, default=0)
    wrong_count = Column(Integer, nullable=False, default=0)
    total_study_time_sec = Column(Float, nullable=False, default=0.0)

    def __repr__(self):
        return f"<WordProgress({self.user_id}, {self.word}, {self.state})>"


class StudyLogEntry(Base):
    """
    Log entry for a single review of an item.
    """
    __tablename__ = 'study_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(String(255), nullable=False)
    word = Column(String(255), nullable=False)

    # Timing and feedback
    timestamp = Column(BigInteger, nullable=False)  # Epoch milliseconds
    rating = Column(String(20), nullable=False)  # forgot, remembered, perfect
    time_spent_sec = Column(Float, nullable=False, default=0.0)
    state = Column(String(20), nullable=False)  # Stage the item was studied in

    # State before / after review
    stability_before = Column(Float, nullable=True)
    difficulty_before = Column(Float, nullable=True)
    retrievability_before = Column(Float, nullable=True)
    stability_after = Column(Float, nullable=True)
    difficulty_after = Column(Float, nullable=True)
    scheduled_days = Column(Integer, nullable=True)

    __table_args__ = (
        Index('idx_study_logs_user_timestamp', 'user_id', 'timestamp'),
        Index('idx_study_logs_user_word', 'user_id', 'word'),
    )

    def __repr__(self):
        return f"<StudyLogEntry(id={self.id}, {self.word}, rating={self.rating})>"
