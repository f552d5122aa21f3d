"""Tests for running a study round against a progress store."""

from datetime import timedelta

import pytest

from recall_engine import review_service
from recall_engine.errors import (
    InvalidRatingError,
    StorageError,
    StorageQuotaExceededError,
    UnknownItemError,
)
from recall_engine.fsrs.constants import CardStatus, Rating
from recall_engine.session_builders.study_queue import is_complete, next_item, set_progress
from recall_engine.storage import InMemoryProgressStore

POOL = ["huis", "kat", "fiets", "boom", "water", "brood", "melk"]


class FailingLoadStore(InMemoryProgressStore):
    def load_progress(self, word):
        raise StorageError(f"Failed to load progress for {word!r}")


def test_full_round(now):
    store = InMemoryProgressStore()
    study_set = review_service.start_round(store, POOL, now)
    answers = []

    clock = now
    while (word := next_item(study_set)) is not None:
        # Forget every item once, then remember it
        rating = Rating.REMEMBERED if word in study_set.forgot_words else Rating.FORGOT
        result = review_service.answer(store, study_set, word, rating, clock, time_spent_sec=2.0)
        assert result.saved
        answers.append((word, rating))
        study_set = result.study_set
        clock += timedelta(seconds=30)

    assert is_complete(study_set)
    assert len(answers) == 2 * len(study_set.words)
    assert len(store.load_logs()) == len(answers)

    progress = store.load_all_progress()
    assert set(progress) == set(study_set.words)
    for card in progress.values():
        assert card.state == CardStatus.REVIEW
        assert card.reps == 2
        assert card.lapses == 1
        assert card.total_study_time_sec == pytest.approx(4.0)


def test_next_round_prefers_unseen_items(now):
    store = InMemoryProgressStore()
    first = review_service.start_round(store, POOL, now)
    for word in first.words:
        review_service.answer(store, first, word, Rating.PERFECT, now)

    second = review_service.start_round(store, POOL, now + timedelta(minutes=5))

    assert set(second.words[:2]) == set(POOL) - set(first.words)


def test_answer_builds_on_stored_progress(now):
    store = InMemoryProgressStore()
    study_set = review_service.start_round(store, ["huis"], now)

    first = review_service.answer(store, study_set, "huis", Rating.PERFECT, now)
    later = now + timedelta(days=first.card.scheduled_days)
    second = review_service.answer(store, study_set, "huis", Rating.FORGOT, later)

    assert second.event["state"] == "Review"
    assert second.event["stability_before"] == first.card.stability
    assert second.card.state == CardStatus.RELEARNING
    assert store.load_progress("huis") == second.card


def test_save_failure_is_reported_not_lost(now):
    store = InMemoryProgressStore(quota_bytes=10)
    study_set = review_service.start_round(store, ["huis", "kat"], now)

    result = review_service.answer(store, study_set, "huis", Rating.REMEMBERED, now)

    assert not result.saved
    assert isinstance(result.save_error, StorageQuotaExceededError)
    assert result.card.state == CardStatus.LEARNING
    assert set_progress(result.study_set).current == 1
    assert store.load_progress("huis") is None


def test_load_failure_propagates(now):
    store = FailingLoadStore()
    study_set = review_service.start_round(store, ["huis"], now)

    with pytest.raises(StorageError):
        review_service.answer(store, study_set, "huis", Rating.REMEMBERED, now)


def test_invalid_rating_is_rejected_before_storage(now):
    store = FailingLoadStore()
    study_set = review_service.start_round(store, ["huis"], now)

    with pytest.raises(InvalidRatingError):
        review_service.answer(store, study_set, "huis", "good", now)


def test_unknown_word_is_rejected(now):
    store = InMemoryProgressStore()
    study_set = review_service.start_round(store, ["huis"], now)

    with pytest.raises(UnknownItemError):
        review_service.answer(store, study_set, "kat", Rating.REMEMBERED, now)

    assert store.load_logs() == []


def test_defaults_to_current_time():
    store = InMemoryProgressStore()
    study_set = review_service.start_round(store, ["huis"])

    result = review_service.answer(store, study_set, "huis", "perfect")

    assert result.event["timestamp"] > 0
    assert result.card.state == CardStatus.REVIEW
