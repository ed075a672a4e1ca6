from datetime import datetime, timedelta, timezone

import pytest

from repaso.domain.cards.models import Card
from repaso.infrastructure.adapters.memory_store import InMemoryCardRepository

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def build_card(
    card_id: str = "card_1",
    owner_id: str = "alice",
    front: str = "hola",
    back: str = "hello",
    reviewed_days_ago: float | None = None,
    interval_days: int = 1,
    ease_factor: float = 2.5,
    repetitions: int = 1,
    review_count: int = 1,
    version: int = 0,
    now: datetime = NOW,
) -> Card:
    """Build a card relative to `now`. `reviewed_days_ago=None` gives a new card."""
    if reviewed_days_ago is None:
        return Card(
            id=card_id,
            owner_id=owner_id,
            front=front,
            back=back,
            ease_factor=ease_factor,
            created_at=now - timedelta(days=30),
            version=version,
        )

    last = now - timedelta(days=reviewed_days_ago)
    return Card(
        id=card_id,
        owner_id=owner_id,
        front=front,
        back=back,
        ease_factor=ease_factor,
        repetitions=repetitions,
        interval_days=interval_days,
        last_reviewed_at=last,
        next_review_at=last + timedelta(days=interval_days),
        review_count=review_count,
        created_at=now - timedelta(days=60),
        version=version,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_card():
    return build_card


@pytest.fixture
def memory_repo():
    return InMemoryCardRepository()


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and the database
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "REPASO_BACKEND",
        "REPASO_DB_PATH",
        "REPASO_DEFAULT_SESSION_LIMIT",
        "REPASO_MAX_SESSION_LIMIT",
        "REPASO_UPDATE_RETRIES",
        "REPASO_VERBOSE",
    ):
        monkeypatch.delenv(var, raising=False)
    return home
