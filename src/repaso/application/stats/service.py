"""
Study Stats Service: Application layer orchestrator.

Coordinates loading a user's cards from the repository and running the
session planner and stats aggregator over them.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from repaso.application.session_planner import partition_due, plan_session
from repaso.domain.cards.models import utc_now
from repaso.domain.cards.ports import CardRepository
from repaso.domain.stats.models import DueBreakdown, Recommendation, StudySession, UserStats

from .aggregator import StatsAggregator

logger = logging.getLogger(__name__)


class StudyStatsService:
    """
    Application service for study sessions and statistics.

    Follows Dependency Inversion: depends on the CardRepository abstraction,
    not concrete adapter implementations. Reads are snapshot reads; no locks
    are taken.
    """

    def __init__(
        self,
        repo: CardRepository,
        aggregator: StatsAggregator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            repo: The repository (port) for loading cards.
            aggregator: Optional custom aggregator; uses default if not provided.
            clock: Source of `now` when the caller does not pass one.
        """
        self._repo = repo
        self._agg = aggregator or StatsAggregator()
        self._clock = clock

    async def get_user_stats(self, owner_id: str, now: datetime | None = None) -> UserStats:
        cards = await self._repo.list_by_owner(owner_id)
        return self._agg.aggregate(cards, now or self._clock())

    async def get_recommendations(
        self, owner_id: str, now: datetime | None = None
    ) -> list[Recommendation]:
        stats = await self.get_user_stats(owner_id, now)
        return stats.recommendations

    async def plan_session(
        self, owner_id: str, limit: int, now: datetime | None = None
    ) -> StudySession:
        """
        Build a study session for `owner_id`.

        Raises:
            InvalidSessionLimit: limit is not a positive integer.
        """
        cards = await self._repo.list_by_owner(owner_id)
        session = plan_session(cards, now or self._clock(), limit)
        logger.debug(f"Session for {owner_id}: {len(session)} of {len(cards)} cards")
        return session

    async def get_due(
        self, owner_id: str, limit: int | None = None, now: datetime | None = None
    ) -> DueBreakdown:
        cards = await self._repo.list_by_owner(owner_id)
        return partition_due(cards, now or self._clock(), limit)
