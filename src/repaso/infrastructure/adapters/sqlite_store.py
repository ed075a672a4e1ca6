"""
SQLite Card Repository: Infrastructure adapter for a local SQLite database.

Implements CardRepository on a single `cards` table. Updates are
conditional on the row's `version` column, so a stale write changes
nothing and is reported as a conflict. Row-level conditions mean writes
to different cards do not depend on each other.
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from repaso.domain.cards.models import Card
from repaso.domain.cards.ports import CardRepository
from repaso.domain.errors import ConcurrentUpdateError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS cards (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    front TEXT NOT NULL,
    back TEXT NOT NULL,
    ease_factor REAL NOT NULL DEFAULT 2.5,
    repetitions INTEGER NOT NULL DEFAULT 0,
    interval_days INTEGER NOT NULL DEFAULT 0,
    last_reviewed_at TEXT,
    next_review_at TEXT,
    review_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 1
);
CREATE INDEX IF NOT EXISTS idx_cards_owner ON cards (owner_id);
"""

COLUMNS = (
    "id, owner_id, front, back, ease_factor, repetitions, interval_days, "
    "last_reviewed_at, next_review_at, review_count, created_at, version"
)


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _row_to_card(row: sqlite3.Row) -> Card:
    return Card(
        id=row["id"],
        owner_id=row["owner_id"],
        front=row["front"],
        back=row["back"],
        ease_factor=row["ease_factor"],
        repetitions=row["repetitions"],
        interval_days=row["interval_days"],
        last_reviewed_at=_parse_ts(row["last_reviewed_at"]),
        next_review_at=_parse_ts(row["next_review_at"]),
        review_count=row["review_count"],
        created_at=_parse_ts(row["created_at"]),
        version=row["version"],
    )


class SqliteCardRepository(CardRepository):
    """
    Stores cards in a SQLite database file.

    A connection is opened per call, so one instance can be shared across
    threads. `timeout` bounds how long a call waits on a locked database.
    """

    def __init__(self, db_path: Path, timeout: float = 5.0):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        try:
            with conn:  # commit on success, rollback on error
                yield conn
        finally:
            conn.close()

    async def get(self, card_id: str) -> Card | None:
        with self._connect() as conn:
            row = conn.execute(f"SELECT {COLUMNS} FROM cards WHERE id = ?", (card_id,)).fetchone()
        return _row_to_card(row) if row else None

    async def save(self, card: Card, expected_version: int | None = None) -> Card:
        if expected_version is None:
            return self._insert(card)
        return self._update(card, expected_version)

    def _insert(self, card: Card) -> Card:
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT INTO cards ({COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1)",
                    (
                        card.id,
                        card.owner_id,
                        card.front,
                        card.back,
                        card.ease_factor,
                        card.repetitions,
                        card.interval_days,
                        _ts(card.last_reviewed_at),
                        _ts(card.next_review_at),
                        card.review_count,
                        _ts(card.created_at),
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise ConcurrentUpdateError(card.id, 0, self._version_of(card.id)) from e

        logger.debug(f"Inserted {card.id}")
        return replace(card, version=1)

    def _update(self, card: Card, expected_version: int) -> Card:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE cards
                SET front = ?,
                    back = ?,
                    ease_factor = ?,
                    repetitions = ?,
                    interval_days = ?,
                    last_reviewed_at = ?,
                    next_review_at = ?,
                    review_count = ?,
                    version = version + 1
                WHERE id = ? AND version = ?
                """,
                (
                    card.front,
                    card.back,
                    card.ease_factor,
                    card.repetitions,
                    card.interval_days,
                    _ts(card.last_reviewed_at),
                    _ts(card.next_review_at),
                    card.review_count,
                    card.id,
                    expected_version,
                ),
            )
            changed = cursor.rowcount

        if changed == 0:
            raise ConcurrentUpdateError(card.id, expected_version, self._version_of(card.id))

        logger.debug(f"Updated {card.id} from version {expected_version}")
        return replace(card, version=expected_version + 1)

    def _version_of(self, card_id: str) -> int | None:
        with self._connect() as conn:
            row = conn.execute("SELECT version FROM cards WHERE id = ?", (card_id,)).fetchone()
        return row["version"] if row else None

    async def list_by_owner(self, owner_id: str) -> list[Card]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {COLUMNS} FROM cards WHERE owner_id = ? ORDER BY id ASC", (owner_id,)
            ).fetchall()
        return [_row_to_card(r) for r in rows]

    async def delete(self, card_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM cards WHERE id = ?", (card_id,))
            deleted = cursor.rowcount > 0
        if deleted:
            logger.debug(f"Deleted {card_id}")
        return deleted
