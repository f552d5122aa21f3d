from datetime import datetime, timedelta, timezone

import pytest

from recall_engine.dates import to_millis
from recall_engine.fsrs.constants import CardStatus, Rating
from recall_engine.fsrs.memory_state import CardState

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _study_env(monkeypatch):
    monkeypatch.setenv("STUDY_TIMEZONE", "Asia/Tokyo")
    monkeypatch.delenv("TEST_MODE", raising=False)


@pytest.fixture
def now():
    return NOW


def reviewed_card(
    state=CardStatus.REVIEW,
    stability=10.0,
    difficulty=5.0,
    days_ago=10.0,
    scheduled_days=10,
    last_rating=Rating.REMEMBERED,
    reps=3,
    lapses=0,
    now=NOW,
):
    """A consistent reviewed card: wrong_count == lapses, correct + wrong == reps."""
    last_review = to_millis(now - timedelta(days=days_ago))
    return CardState(
        state=state,
        stability=stability,
        difficulty=difficulty,
        retrievability=0.9,
        elapsed_days=0.0,
        scheduled_days=scheduled_days,
        reps=reps,
        lapses=lapses,
        last_review=last_review,
        due=last_review + scheduled_days * 24 * 60 * 60 * 1000,
        last_rating=last_rating,
        correct_count=reps - lapses,
        wrong_count=lapses,
        total_study_time_sec=12.5,
    )


@pytest.fixture
def make_card():
    return reviewed_card
