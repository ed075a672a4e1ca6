"""
Migration from the legacy fixed-interval policy to SM-2.

Older records carry a difficulty *level* (0-5) instead of an ease factor,
and their next review was `LEGACY_INTERVALS_DAYS[level]` days after the last
one. The legacy policy is not kept as a live scheduler; records are
converted once:

    never reviewed -> fresh SM-2 card
    reviewed       -> repetitions = level
                      interval_days = LEGACY_INTERVALS_DAYS[level]
                      ease_factor = default
                      next_review_at = last_reviewed_at + interval_days

Keeping the legacy interval means a migrated card comes due exactly when
the old policy would have shown it; SM-2 takes over from its next review.
"""

import logging
from datetime import datetime, timedelta

from repaso.domain.cards.models import Card, clean_text, ensure_utc
from repaso.domain.constants import DEFAULT_EASE_FACTOR, LEGACY_INTERVALS_DAYS
from repaso.domain.errors import CardValidationError

logger = logging.getLogger(__name__)


def legacy_interval(level: int) -> int:
    """Interval in days the legacy policy used for `level`."""
    if isinstance(level, bool) or not isinstance(level, int):
        raise CardValidationError(f"Legacy level must be an integer, got {level!r}")
    if level < 0 or level >= len(LEGACY_INTERVALS_DAYS):
        raise CardValidationError(
            f"Legacy level must be between 0 and {len(LEGACY_INTERVALS_DAYS) - 1}, got {level}"
        )
    return LEGACY_INTERVALS_DAYS[level]


def migrate_legacy_record(
    card_id: str,
    owner_id: str,
    front: str,
    back: str,
    level: int = 0,
    last_reviewed_at: datetime | None = None,
    review_count: int = 0,
    created_at: datetime | None = None,
) -> Card:
    """
    Convert one legacy record into an SM-2 Card.

    Raises:
        CardValidationError: bad level or text.
    """
    interval = legacy_interval(level)

    if last_reviewed_at is None:
        card = Card.create(card_id, owner_id, front, back, created_at=created_at)
        logger.debug(f"Migrated {card_id}: never reviewed, fresh SM-2 state")
        return card

    last = ensure_utc(last_reviewed_at)
    kwargs = {}
    if created_at is not None:
        kwargs["created_at"] = ensure_utc(created_at)

    card = Card(
        id=card_id,
        owner_id=owner_id,
        front=clean_text("front", front),
        back=clean_text("back", back),
        ease_factor=DEFAULT_EASE_FACTOR,
        repetitions=level,
        interval_days=interval,
        last_reviewed_at=last,
        next_review_at=last + timedelta(days=interval),
        # Legacy rows could be marked reviewed without a counted review.
        review_count=max(review_count, 1),
        **kwargs,
    )
    logger.debug(f"Migrated {card_id}: level {level} -> interval {interval}d")
    return card
