"""
Port for scheduling policies.

A policy turns one review outcome into the card's next scheduling state.
Implementations must be pure: no clock reads, no I/O.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from repaso.domain.cards.models import Card


class SchedulingPolicy(ABC):
    """
    Strategy for computing the next review of a card.

    Implementations:
        - Sm2Policy: SM-2 ease-factor scheduling (the only active policy).
    """

    name: str

    @abstractmethod
    def review(self, card: Card, grade: int, now: datetime) -> Card:
        """
        Apply a review to `card`.

        Args:
            card: Current card state.
            grade: Recall quality, 0 (blackout) to 5 (perfect).
            now: Review time, injected by the caller.

        Returns:
            A new Card with updated scheduling fields. The input is not modified.

        Raises:
            InvalidGrade: grade outside [0, 5].
        """
        pass
