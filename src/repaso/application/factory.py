"""
Card Store Factory
Centralizes the logic for selecting the card repository and building the
application services on top of it.
"""

import logging

from repaso.application.card_service import CardService
from repaso.application.config import AppConfig
from repaso.application.stats.service import StudyStatsService
from repaso.domain.cards.ports import CardRepository
from repaso.infrastructure.adapters.memory_store import InMemoryCardRepository
from repaso.infrastructure.adapters.sqlite_store import SqliteCardRepository

logger = logging.getLogger(__name__)


def get_card_repository(config: AppConfig) -> CardRepository:
    """
    Returns the CardRepository implementation selected by config.
    """
    if config.backend == "memory":
        logger.debug("Backend: in-memory")
        return InMemoryCardRepository()

    logger.debug(f"Backend: SQLite at {config.db_path}")
    return SqliteCardRepository(config.db_path, timeout=config.store_timeout)


def get_card_service(config: AppConfig, repo: CardRepository) -> CardService:
    return CardService(repo, update_retries=config.update_retries)


def get_stats_service(repo: CardRepository) -> StudyStatsService:
    return StudyStatsService(repo)
