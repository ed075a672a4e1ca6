"""
Ports (interfaces) for card persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import Card


class CardRepository(ABC):
    """
    Port for reading and writing card records.

    Implementations:
        - InMemoryCardRepository: Process-local dict, one lock per card.
        - SqliteCardRepository: SQLite table with a version column.

    Every method is individually atomic. Writes to different cards never
    contend with each other.
    """

    @abstractmethod
    async def get(self, card_id: str) -> Card | None:
        """
        Fetch a single card.

        Returns:
            The stored card, or None if the id does not resolve.
        """
        pass

    @abstractmethod
    async def save(self, card: Card, expected_version: int | None = None) -> Card:
        """
        Insert or update a card.

        Args:
            card: The card to store.
            expected_version: For updates, the version the caller read. The write
                only happens if the stored version still matches. None inserts a
                new card.

        Returns:
            The stored card with its bumped version.

        Raises:
            ConcurrentUpdateError: The stored version no longer matches, the card
                vanished, or an insert collides with an existing id.
        """
        pass

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> list[Card]:
        """
        Fetch every card owned by `owner_id`, ordered by id ascending.
        """
        pass

    @abstractmethod
    async def delete(self, card_id: str) -> bool:
        """
        Remove a card.

        Returns:
            True if a card was deleted.
        """
        pass
