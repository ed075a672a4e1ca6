"""
Session planner for spaced-repetition study sessions.

Builds ordered study sessions by:
1. Classifying every card against `now` (new / due / overdue / scheduled)
2. Scoring the eligible ones
3. Sorting by score, then due date, then id, and truncating to the limit
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from repaso.application.classification import classify, days_since_review, difficulty_weight
from repaso.domain.cards.models import Card, CardClass, ensure_utc
from repaso.domain.constants import (
    BASE_PRIORITY,
    DAYS_SINCE_REVIEW_WEIGHT,
    DIFFICULTY_PENALTY,
    FEW_REVIEWS_BONUS,
    FEW_REVIEWS_THRESHOLD,
    MAX_DUE_LISTING,
    MAX_RECENCY_BONUS,
    MAX_SESSION_SIZE,
    NEW_CARD_BONUS,
)
from repaso.domain.errors import InvalidSessionLimit
from repaso.domain.stats.models import DueBreakdown, SessionEntry, SessionMetadata, StudySession

logger = logging.getLogger(__name__)


def validate_limit(limit: object, cap: int = MAX_SESSION_SIZE) -> int:
    """
    Return the effective session size.

    Non-integers and values <= 0 are rejected; anything above `cap` is capped.
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidSessionLimit(limit)
    return min(limit, cap)


def study_priority(card: Card, now: datetime) -> float:
    """
    Priority score for an eligible card (higher = studied sooner).

    New cards get a flat 150. Reviewed cards start at 100, lose 10 per
    difficulty point, gain 2 per day since the last review (up to 40) and
    10 more while they have fewer than 3 reviews. Never below 0.
    """
    if card.is_new:
        return float(BASE_PRIORITY + NEW_CARD_BONUS)

    priority = float(BASE_PRIORITY)
    priority -= difficulty_weight(card.ease_factor) * DIFFICULTY_PENALTY
    priority += min(days_since_review(card, now) * DAYS_SINCE_REVIEW_WEIGHT, MAX_RECENCY_BONUS)
    if card.review_count < FEW_REVIEWS_THRESHOLD:
        priority += FEW_REVIEWS_BONUS

    return max(priority, 0.0)


def _sort_key(entry: SessionEntry) -> tuple:
    card = entry.card
    # New cards have no due date and sort ahead of dated ones at equal score.
    due_key = (0, 0.0) if card.next_review_at is None else (1, card.next_review_at.timestamp())
    return (-entry.priority, due_key, card.id)


def plan_session(cards: Iterable[Card], now: datetime, limit: int) -> StudySession:
    """
    Select and order the cards to study at `now`.

    Args:
        cards: The user's full collection.
        now: Planning time.
        limit: Requested session size. Capped at 50.

    Returns:
        StudySession with at most min(limit, 50) entries.

    Raises:
        InvalidSessionLimit: limit is not a positive integer.
    """
    size = validate_limit(limit)
    now = ensure_utc(now)

    entries: list[SessionEntry] = []
    skipped = 0
    for card in cards:
        cls = classify(card, now)
        if not cls.eligible:
            skipped += 1
            continue
        priority = study_priority(card, now)
        entries.append(SessionEntry(card=card, priority=priority, classification=cls))

    entries.sort(key=_sort_key)
    selected = entries[:size]

    logger.debug(
        f"Planned session: {len(selected)}/{len(entries)} eligible cards "
        f"(limit={size}, not due={skipped})"
    )

    return StudySession(entries=selected, metadata=_metadata(selected), generated_at=now)


def _metadata(entries: list[SessionEntry]) -> SessionMetadata:
    new_count = sum(1 for e in entries if e.classification is CardClass.NEW)
    overdue_count = sum(1 for e in entries if e.classification is CardClass.OVERDUE)

    if entries:
        average = sum(difficulty_weight(e.card.ease_factor) for e in entries) / len(entries)
    else:
        average = 0.0

    return SessionMetadata(
        new_count=new_count,
        review_count=len(entries) - new_count,
        overdue_count=overdue_count,
        average_difficulty=round(average, 2),
    )


def partition_due(
    cards: Iterable[Card], now: datetime, limit: int | None = None
) -> DueBreakdown:
    """
    Group eligible cards into new, due and overdue lists.

    Cards are taken oldest-review first (new cards ahead) until `limit`
    (default and cap 100) eligible cards have been collected.
    """
    size = validate_limit(limit, cap=MAX_DUE_LISTING) if limit is not None else MAX_DUE_LISTING
    now = ensure_utc(now)

    def by_last_review(card: Card) -> tuple:
        if card.last_reviewed_at is None:
            return (0, 0.0, card.id)
        return (1, card.last_reviewed_at.timestamp(), card.id)

    new_cards: list[Card] = []
    due_cards: list[Card] = []
    overdue_cards: list[Card] = []

    collected = 0
    for card in sorted(cards, key=by_last_review):
        if collected >= size:
            break
        cls = classify(card, now)
        if cls is CardClass.NEW:
            new_cards.append(card)
        elif cls is CardClass.DUE:
            due_cards.append(card)
        elif cls is CardClass.OVERDUE:
            overdue_cards.append(card)
        else:
            continue
        collected += 1

    return DueBreakdown(new_cards=new_cards, due_cards=due_cards, overdue_cards=overdue_cards)
