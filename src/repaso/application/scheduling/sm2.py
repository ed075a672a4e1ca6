"""
SM-2 scheduling engine.

This is a pure computation module with no I/O. The review time is always
passed in; nothing here reads the clock.

Interval ladder:
    1st consecutive success -> 1 day
    2nd consecutive success -> 6 days
    later successes         -> round(previous interval * ease factor), at most 365 days
    any failure (grade < 3) -> 1 day, streak reset, ease kept
"""

import math
from dataclasses import replace
from datetime import datetime, timedelta

from repaso.domain.cards.models import Card, ensure_utc
from repaso.domain.constants import (
    FAILED_INTERVAL_DAYS,
    FIRST_INTERVAL_DAYS,
    MAX_GRADE,
    MAX_INTERVAL_DAYS,
    MIN_EASE_FACTOR,
    MIN_GRADE,
    PASSING_GRADE,
    SECOND_INTERVAL_DAYS,
)
from repaso.domain.errors import InvalidGrade
from repaso.domain.scheduling.ports import SchedulingPolicy


def validate_grade(grade: object) -> int:
    """Return `grade` if it is an int in [0, 5], else raise InvalidGrade."""
    if isinstance(grade, bool) or not isinstance(grade, int):
        raise InvalidGrade(grade)
    if grade < MIN_GRADE or grade > MAX_GRADE:
        raise InvalidGrade(grade)
    return grade


def next_ease_factor(ease_factor: float, grade: int) -> float:
    """
    SM-2 ease update, floored at 1.3.

    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    """
    miss = MAX_GRADE - grade
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def next_interval(repetitions: int, previous_interval: int, ease_factor: float) -> int:
    """
    Interval in days for the `repetitions`-th consecutive success.

    Halves round up, so 32.5 days becomes 33. Capped at MAX_INTERVAL_DAYS.
    """
    if repetitions == 1:
        return FIRST_INTERVAL_DAYS
    if repetitions == 2:
        return SECOND_INTERVAL_DAYS
    interval = math.floor(previous_interval * ease_factor + 0.5)
    return min(MAX_INTERVAL_DAYS, max(1, interval))


class Sm2Policy(SchedulingPolicy):
    """
    SM-2 ease-factor scheduling.

    Stateless and side-effect free.
    """

    name = "sm2"

    def review(self, card: Card, grade: int, now: datetime) -> Card:
        grade = validate_grade(grade)
        now = ensure_utc(now)

        if grade < PASSING_GRADE:
            repetitions = 0
            interval = FAILED_INTERVAL_DAYS
            ease = card.ease_factor
        else:
            repetitions = card.repetitions + 1
            # The interval grows with the ease the card had before this review.
            interval = next_interval(repetitions, card.interval_days, card.ease_factor)
            ease = next_ease_factor(card.ease_factor, grade)

        return replace(
            card,
            ease_factor=ease,
            repetitions=repetitions,
            interval_days=interval,
            last_reviewed_at=now,
            next_review_at=now + timedelta(days=interval),
            review_count=card.review_count + 1,
        )


_default_policy = Sm2Policy()


def review(card: Card, grade: int, now: datetime) -> Card:
    """Apply one SM-2 review to `card`. See Sm2Policy.review."""
    return _default_policy.review(card, grade, now)
