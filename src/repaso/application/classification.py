"""
Card classification and the difficulty proxy.

Shared by the session planner and the stats aggregator so both use the
same notion of new / due / overdue.
"""

import math
from datetime import datetime

from repaso.domain.cards.models import Card, CardClass
from repaso.domain.constants import (
    DEFAULT_EASE_FACTOR,
    MAX_DIFFICULTY,
    MIN_EASE_FACTOR,
    OVERDUE_INTERVAL_MULTIPLIER,
)

SECONDS_PER_DAY = 86400.0


def classify(card: Card, now: datetime) -> CardClass:
    """
    Classify `card` at `now`.

    NEW:       never reviewed.
    DUE:       next_review_at <= now.
    OVERDUE:   due, and late by more than 1.5x the card's interval.
    SCHEDULED: reviewed and not yet due.
    """
    if card.last_reviewed_at is None:
        return CardClass.NEW

    if card.next_review_at > now:
        return CardClass.SCHEDULED

    days_late = (now - card.next_review_at).total_seconds() / SECONDS_PER_DAY
    if days_late > OVERDUE_INTERVAL_MULTIPLIER * card.interval_days:
        return CardClass.OVERDUE
    return CardClass.DUE


def difficulty_weight(ease_factor: float) -> float:
    """
    Map an ease factor onto a 0-5 difficulty scale.

    Default ease (2.5) or higher -> 0, the 1.3 floor -> 5, linear between.
    """
    span = DEFAULT_EASE_FACTOR - MIN_EASE_FACTOR
    weight = (DEFAULT_EASE_FACTOR - ease_factor) / span * MAX_DIFFICULTY
    return min(float(MAX_DIFFICULTY), max(0.0, weight))


def difficulty_bucket(ease_factor: float) -> int:
    """Integer difficulty 0-5, rounding halves up."""
    return min(MAX_DIFFICULTY, math.floor(difficulty_weight(ease_factor) + 0.5))


def days_since_review(card: Card, now: datetime) -> int:
    """Whole days elapsed since the last review (0 for new cards)."""
    if card.last_reviewed_at is None:
        return 0
    elapsed = (now - card.last_reviewed_at).total_seconds()
    return max(0, math.floor(elapsed / SECONDS_PER_DAY))
