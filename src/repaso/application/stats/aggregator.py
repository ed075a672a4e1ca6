"""
Stats aggregator for deriving summaries and recommendations from card state.

This is a pure computation module with no I/O.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from repaso.application.classification import classify, difficulty_bucket, difficulty_weight
from repaso.application.scheduling.sm2 import validate_grade
from repaso.domain.cards.models import Card, CardClass, ensure_utc
from repaso.domain.constants import (
    DIFFICULTY_BUCKETS,
    LOW_DIFFICULTY_THRESHOLD,
    MAINTENANCE_LOAD_THRESHOLD,
    MAINTENANCE_REVIEW_THRESHOLD,
    NEW_CARD_ALERT_THRESHOLD,
    OVERDUE_ALERT_THRESHOLD,
    PASSING_GRADE,
)
from repaso.domain.stats.models import (
    Recommendation,
    RecommendationPriority,
    SessionSummary,
    UserStats,
)

logger = logging.getLogger(__name__)


class StatsAggregator:
    """
    Computes UserStats from a card collection.

    Stateless and side-effect free.
    """

    def aggregate(self, cards: Iterable[Card], now: datetime) -> UserStats:
        """
        Summarize `cards` as seen at `now`.
        """
        now = ensure_utc(now)
        cards = list(cards)

        distribution = {bucket: 0 for bucket in DIFFICULTY_BUCKETS}
        reviewed = 0
        total_reviews = 0
        ease_sum = 0.0
        difficulty_sum = 0.0
        due = overdue = new = 0
        last_session: datetime | None = None

        for card in cards:
            total_reviews += card.review_count
            ease_sum += card.ease_factor
            difficulty_sum += difficulty_weight(card.ease_factor)
            distribution[difficulty_bucket(card.ease_factor)] += 1

            if card.last_reviewed_at is not None:
                reviewed += 1
                if last_session is None or card.last_reviewed_at > last_session:
                    last_session = card.last_reviewed_at

            cls = classify(card, now)
            if cls is CardClass.NEW:
                new += 1
            elif cls is CardClass.DUE:
                due += 1
            elif cls is CardClass.OVERDUE:
                # Overdue cards are due as well.
                due += 1
                overdue += 1

        total = len(cards)
        stats = UserStats(
            total_cards=total,
            reviewed_cards=reviewed,
            unreviewed_cards=total - reviewed,
            total_reviews=total_reviews,
            average_ease=round(ease_sum / total, 2) if total else 0.0,
            average_difficulty=round(difficulty_sum / total, 2) if total else 0.0,
            difficulty_distribution=distribution,
            due_cards=due,
            overdue_cards=overdue,
            new_cards=new,
            last_study_session=last_session,
        )
        stats.recommendations = self.recommend(stats)

        logger.debug(
            f"Aggregated {total} cards: due={due} overdue={overdue} new={new} "
            f"recommendations={len(stats.recommendations)}"
        )
        return stats

    def recommend(self, stats: UserStats) -> list[Recommendation]:
        """
        Rule-based study advice.

        Rules are independent and always reported in this order:
        overdue backlog, new-card backlog, low difficulty, maintenance mode.
        """
        recommendations: list[Recommendation] = []

        if stats.overdue_cards > OVERDUE_ALERT_THRESHOLD:
            recommendations.append(
                Recommendation(
                    type="overdue",
                    priority=RecommendationPriority.HIGH,
                    message=(
                        f"You have {stats.overdue_cards} overdue cards. "
                        "Focus on catching up with reviews."
                    ),
                )
            )

        if stats.new_cards > NEW_CARD_ALERT_THRESHOLD:
            recommendations.append(
                Recommendation(
                    type="new_cards",
                    priority=RecommendationPriority.MEDIUM,
                    message=(
                        f"You have {stats.new_cards} new cards. "
                        "Consider reviewing them gradually."
                    ),
                )
            )

        if stats.average_difficulty < LOW_DIFFICULTY_THRESHOLD:
            recommendations.append(
                Recommendation(
                    type="difficulty",
                    priority=RecommendationPriority.LOW,
                    message=(
                        "Your cards have low difficulty. Great job! "
                        "Consider adding more challenging content."
                    ),
                )
            )

        if (
            stats.total_reviews > MAINTENANCE_REVIEW_THRESHOLD
            and stats.study_load < MAINTENANCE_LOAD_THRESHOLD
        ):
            recommendations.append(
                Recommendation(
                    type="maintenance",
                    priority=RecommendationPriority.LOW,
                    message=(
                        "You're in maintenance mode. "
                        "Keep up with daily reviews to retain knowledge."
                    ),
                )
            )

        return recommendations


def summarize_session(
    grades: Iterable[int], duration_seconds: int | None = None
) -> SessionSummary:
    """
    Summarize the grades given during a finished study session.

    Raises:
        InvalidGrade: a grade outside [0, 5].
        ValueError: negative duration.
    """
    if duration_seconds is not None and duration_seconds < 0:
        raise ValueError("Session duration must be a non-negative number of seconds")

    checked = [validate_grade(g) for g in grades]
    breakdown: dict[int, int] = {}
    for grade in checked:
        breakdown[grade] = breakdown.get(grade, 0) + 1

    if checked:
        average = sum(checked) / len(checked)
        accuracy = sum(1 for g in checked if g >= PASSING_GRADE) / len(checked)
    else:
        average = None
        accuracy = None

    return SessionSummary(
        total_reviewed=len(checked),
        grade_breakdown=dict(sorted(breakdown.items())),
        average_grade=average,
        accuracy_rate=accuracy,
        duration_seconds=duration_seconds,
    )


def aggregate(cards: Iterable[Card], now: datetime) -> UserStats:
    """Compute UserStats for `cards` at `now`."""
    return StatsAggregator().aggregate(cards, now)
