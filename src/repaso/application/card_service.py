"""
Card Service: Application layer orchestrator for card writes.

Resolves and authorizes cards before they reach the scheduling core, and
applies reviews as version-checked read-modify-write cycles against the
repository.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from repaso.application.id_service import generate_card_id
from repaso.application.scheduling.legacy import migrate_legacy_record
from repaso.application.scheduling.sm2 import Sm2Policy, validate_grade
from repaso.domain.cards.models import Card, utc_now
from repaso.domain.cards.ports import CardRepository
from repaso.domain.errors import AccessDenied, CardNotFound, ConcurrentUpdateError
from repaso.domain.scheduling.ports import SchedulingPolicy

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_RETRIES = 3


class CardService:
    """
    Create, edit, delete and review cards for a single owner at a time.

    Follows Dependency Inversion: the repository, scheduling policy and
    clock are all injected.
    """

    def __init__(
        self,
        repo: CardRepository,
        policy: SchedulingPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
        update_retries: int = DEFAULT_UPDATE_RETRIES,
    ):
        """
        Args:
            repo: The repository (port) for card records.
            policy: Scheduling policy; SM-2 if not provided.
            clock: Source of `now` when the caller does not pass one.
            update_retries: Attempts per review before a version conflict
                is reported to the caller.
        """
        if update_retries < 1:
            raise ValueError("update_retries must be at least 1")
        self._repo = repo
        self._policy = policy or Sm2Policy()
        self._clock = clock
        self._retries = update_retries

    async def create_card(self, owner_id: str, front: str, back: str) -> Card:
        """
        Create a new card with default scheduling state.

        Raises:
            CardValidationError: empty or oversized text.
        """
        card = Card.create(generate_card_id(), owner_id, front, back, created_at=self._clock())
        stored = await self._repo.save(card)
        logger.info(f"Created card {stored.id} for {owner_id}")
        return stored

    async def import_legacy_card(
        self,
        owner_id: str,
        front: str,
        back: str,
        level: int = 0,
        last_reviewed_at: datetime | None = None,
        review_count: int = 0,
    ) -> Card:
        """
        Store a card carried over from the legacy fixed-interval scheduler.

        The card keeps the due date the legacy table gave it; SM-2 takes
        over from its next review.

        Raises:
            CardValidationError: level outside 0-5, or bad text.
        """
        card = migrate_legacy_record(
            generate_card_id(),
            owner_id,
            front,
            back,
            level=level,
            last_reviewed_at=last_reviewed_at,
            review_count=review_count,
            created_at=self._clock(),
        )
        stored = await self._repo.save(card)
        logger.info(f"Imported legacy card {stored.id} for {owner_id} (level {level})")
        return stored

    async def get_card(self, card_id: str, owner_id: str) -> Card:
        """
        Load a card and check that `owner_id` owns it.

        Raises:
            CardNotFound: unknown id.
            AccessDenied: the card belongs to someone else.
        """
        card = await self._repo.get(card_id)
        if card is None:
            raise CardNotFound(card_id)
        if card.owner_id != owner_id:
            raise AccessDenied(card_id, owner_id)
        return card

    async def list_cards(self, owner_id: str) -> list[Card]:
        return await self._repo.list_by_owner(owner_id)

    async def update_content(
        self,
        card_id: str,
        owner_id: str,
        front: str | None = None,
        back: str | None = None,
    ) -> Card:
        """
        Edit a card's text. Scheduling fields are not touched.

        Raises:
            CardNotFound, AccessDenied, CardValidationError, ConcurrentUpdateError
        """
        card = await self.get_card(card_id, owner_id)
        edited = card.with_content(front=front, back=back)
        if edited is card:
            return card
        stored = await self._repo.save(edited, expected_version=card.version)
        logger.info(f"Edited card {card_id}")
        return stored

    async def delete_card(self, card_id: str, owner_id: str) -> None:
        """
        Raises:
            CardNotFound, AccessDenied
        """
        await self.get_card(card_id, owner_id)
        if not await self._repo.delete(card_id):
            raise CardNotFound(card_id)
        logger.info(f"Deleted card {card_id}")

    async def review_card(
        self,
        card_id: str,
        owner_id: str,
        grade: int,
        now: datetime | None = None,
    ) -> Card:
        """
        Apply a review and persist it atomically.

        The card is re-read and the review recomputed if another writer got
        there first, so concurrent reviews of one card are all counted.

        Raises:
            InvalidGrade: grade outside [0, 5]; nothing is read or written.
            CardNotFound, AccessDenied
            ConcurrentUpdateError: still conflicting after every retry.
        """
        grade = validate_grade(grade)
        review_time = now or self._clock()

        for attempt in range(1, self._retries + 1):
            card = await self.get_card(card_id, owner_id)
            updated = self._policy.review(card, grade, review_time)
            try:
                stored = await self._repo.save(updated, expected_version=card.version)
            except ConcurrentUpdateError as e:
                conflict = e
                logger.warning(
                    f"Version conflict reviewing {card_id} "
                    f"(attempt {attempt}/{self._retries}): {e}"
                )
                continue

            logger.info(
                f"Reviewed card {card_id} grade={grade} "
                f"interval={stored.interval_days}d ease={stored.ease_factor:.2f}"
            )
            return stored

        raise conflict
