# Infrastructure Card Store Adapters Package
from .memory_store import InMemoryCardRepository
from .sqlite_store import SqliteCardRepository

__all__ = ["InMemoryCardRepository", "SqliteCardRepository"]
