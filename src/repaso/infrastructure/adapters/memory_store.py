"""
In-Memory Card Repository: Infrastructure adapter for process-local storage.

Implements CardRepository on a dict. Each card id has its own lock, so
writes to different cards never wait on each other.
"""

import logging
import threading
from dataclasses import replace

from repaso.domain.cards.models import Card
from repaso.domain.cards.ports import CardRepository
from repaso.domain.errors import ConcurrentUpdateError

logger = logging.getLogger(__name__)


class InMemoryCardRepository(CardRepository):
    """
    Stores cards in a dict keyed by id.

    Safe to share between threads. Data lives only as long as the instance.
    """

    def __init__(self, cards: list[Card] | None = None):
        self._cards: dict[str, Card] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry = threading.Lock()
        for card in cards or []:
            self._cards[card.id] = card

    def _lock_for(self, card_id: str) -> threading.Lock:
        with self._registry:
            lock = self._locks.get(card_id)
            if lock is None:
                lock = self._locks[card_id] = threading.Lock()
            return lock

    async def get(self, card_id: str) -> Card | None:
        return self._cards.get(card_id)

    async def save(self, card: Card, expected_version: int | None = None) -> Card:
        with self._lock_for(card.id):
            current = self._cards.get(card.id)

            if expected_version is None:
                if current is not None:
                    raise ConcurrentUpdateError(card.id, 0, current.version)
                stored = replace(card, version=1)
            else:
                if current is None:
                    raise ConcurrentUpdateError(card.id, expected_version, None)
                if current.version != expected_version:
                    raise ConcurrentUpdateError(card.id, expected_version, current.version)
                stored = replace(card, version=current.version + 1)

            self._cards[card.id] = stored

        logger.debug(f"Saved {card.id} at version {stored.version}")
        return stored

    async def list_by_owner(self, owner_id: str) -> list[Card]:
        # Copy first so concurrent inserts cannot change the dict mid-iteration.
        snapshot = list(self._cards.values())
        return sorted((c for c in snapshot if c.owner_id == owner_id), key=lambda c: c.id)

    async def delete(self, card_id: str) -> bool:
        with self._lock_for(card_id):
            removed = self._cards.pop(card_id, None)
        if removed is not None:
            with self._registry:
                self._locks.pop(card_id, None)
        return removed is not None
