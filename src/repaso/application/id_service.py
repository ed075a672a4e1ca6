"""Service for generating stable card IDs."""

from ulid import ULID

CARD_ID_PREFIX = "card_"


def generate_card_id() -> str:
    """Generate a stable, time-sortable card ID using ULID."""
    return f"{CARD_ID_PREFIX}{ULID()}"
