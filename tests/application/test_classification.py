from datetime import timedelta

import pytest

from repaso.application.classification import (
    classify,
    days_since_review,
    difficulty_bucket,
    difficulty_weight,
)
from repaso.domain.cards.models import CardClass


def test_new_card(make_card, now):
    assert classify(make_card(), now) is CardClass.NEW


def test_not_yet_due_is_scheduled(make_card, now):
    card = make_card(reviewed_days_ago=1, interval_days=6)
    assert classify(card, now) is CardClass.SCHEDULED


def test_due_exactly_now(make_card, now):
    card = make_card(reviewed_days_ago=6, interval_days=6)
    assert card.next_review_at == now
    assert classify(card, now) is CardClass.DUE


def test_slightly_late_is_due(make_card, now):
    card = make_card(reviewed_days_ago=2, interval_days=1)
    assert classify(card, now) is CardClass.DUE


def test_overdue_threshold(make_card, now):
    # interval 2 -> overdue once more than 3 days late
    card = make_card(reviewed_days_ago=5, interval_days=2)
    assert classify(card, now) is CardClass.DUE
    assert classify(card, now + timedelta(minutes=1)) is CardClass.OVERDUE


def test_long_neglected_card_is_overdue(make_card, now):
    card = make_card(reviewed_days_ago=10, interval_days=1)
    assert classify(card, now) is CardClass.OVERDUE


@pytest.mark.parametrize(
    "ease, expected",
    [(2.5, 0.0), (3.0, 0.0), (1.3, 5.0), (1.9, 2.5), (2.26, 1.0)],
)
def test_difficulty_weight(ease, expected):
    assert difficulty_weight(ease) == pytest.approx(expected)


@pytest.mark.parametrize(
    "ease, expected",
    [(2.5, 0), (2.7, 0), (1.3, 5), (2.26, 1), (1.54, 4)],
)
def test_difficulty_bucket(ease, expected):
    assert difficulty_bucket(ease) == expected


def test_days_since_review(make_card, now):
    assert days_since_review(make_card(), now) == 0
    assert days_since_review(make_card(reviewed_days_ago=3.5, interval_days=1), now) == 3
