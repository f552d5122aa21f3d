"""Tests for the priority scorer."""

from datetime import timedelta

import pytest

from recall_engine.fsrs.constants import CardStatus, Rating
from recall_engine.fsrs.memory_state import new_card
from recall_engine.session_builders.priority import (
    LAST_RATING_FACTORS,
    calculate_priority_score,
    overdue_ratio,
)


@pytest.mark.parametrize("offset_days", [-1000, 0, 1, 365])
def test_unseen_item_scores_100(now, offset_days):
    when = now + timedelta(days=offset_days)

    assert calculate_priority_score(None, when) == 100
    assert calculate_priority_score(new_card(now), when) == 100


@pytest.mark.parametrize("rating,expected", [
    (Rating.FORGOT, 75.0),
    (Rating.REMEMBERED, 60.0),
    (Rating.PERFECT, 50.0),
])
def test_not_yet_due_scores_base_tier(now, make_card, rating, expected):
    card = make_card(last_rating=rating, days_ago=1, scheduled_days=10)

    assert calculate_priority_score(card, now) == pytest.approx(expected)


def test_overdue_scales_linearly(now, make_card):
    card = make_card(last_rating=Rating.REMEMBERED, days_ago=6, scheduled_days=2)

    assert overdue_ratio(card, now) == pytest.approx(3.0)
    assert calculate_priority_score(card, now) == pytest.approx(50 * 1.2 * 3.0)


def test_zero_scheduled_days_counts_as_one(now, make_card):
    card = make_card(state=CardStatus.LEARNING, days_ago=0.5, scheduled_days=0)

    assert overdue_ratio(card, now) == 1.0

    card = make_card(state=CardStatus.LEARNING, days_ago=4, scheduled_days=0)

    assert overdue_ratio(card, now) == pytest.approx(4.0)


def test_weaker_recall_is_more_urgent(now, make_card):
    scores = [
        calculate_priority_score(make_card(last_rating=rating, days_ago=3, scheduled_days=3), now)
        for rating in (Rating.PERFECT, Rating.REMEMBERED, Rating.FORGOT)
    ]

    assert scores == sorted(scores)


@pytest.mark.parametrize("rating", list(Rating))
@pytest.mark.parametrize("days_ago", [-5, 0, 0.3, 2, 9, 40, 400])
@pytest.mark.parametrize("scheduled_days", [0, 1, 7, 30])
def test_never_below_base_tier(now, make_card, rating, days_ago, scheduled_days):
    card = make_card(last_rating=rating, days_ago=days_ago, scheduled_days=scheduled_days)

    assert calculate_priority_score(card, now) >= 50 * LAST_RATING_FACTORS[rating]


def test_heavily_overdue_item_can_outrank_new(now, make_card):
    card = make_card(last_rating=Rating.FORGOT, days_ago=20, scheduled_days=1)

    assert calculate_priority_score(card, now) > calculate_priority_score(None, now)
