"""
Domain models for flashcards and their scheduling state.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum

from repaso.domain.constants import DEFAULT_EASE_FACTOR, MAX_TEXT_LENGTH, MIN_EASE_FACTOR
from repaso.domain.errors import CardValidationError


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def clean_text(name: str, value: str) -> str:
    """Strip and validate a front/back text field."""
    if not isinstance(value, str):
        raise CardValidationError(f"{name} must be a string")
    text = value.strip()
    if not text:
        raise CardValidationError(f"{name} text cannot be empty")
    if len(text) > MAX_TEXT_LENGTH:
        raise CardValidationError(f"{name} text cannot exceed {MAX_TEXT_LENGTH} characters")
    return text


class CardClass(str, Enum):
    """Where a card stands relative to `now`."""

    NEW = "new"
    DUE = "due"
    OVERDUE = "overdue"
    SCHEDULED = "scheduled"  # reviewed, not yet due

    @property
    def eligible(self) -> bool:
        return self is not CardClass.SCHEDULED


@dataclass(frozen=True)
class Card:
    """
    A bilingual flashcard plus its SM-2 scheduling state.

    Attributes:
        id: Stable card ID, assigned at creation.
        owner_id: Owning user. Never changes.
        front: Source-language text.
        back: Target-language text.
        ease_factor: Multiplicative interval growth rate (>= 1.3).
        repetitions: Consecutive successful reviews since the last failure.
        interval_days: Most recent gap until the next review (0 if never reviewed).
        last_reviewed_at: Time of the last review, None for new cards.
        next_review_at: Scheduled review time, None for new cards.
        review_count: Total reviews, successes and failures.
        created_at: Creation time.
        version: Store row version used for compare-and-swap writes.

    Construction validates every invariant, so `dataclasses.replace` on an
    existing card re-checks the result.
    """

    id: str
    owner_id: str
    front: str
    back: str
    ease_factor: float = DEFAULT_EASE_FACTOR
    repetitions: int = 0
    interval_days: int = 0
    last_reviewed_at: datetime | None = None
    next_review_at: datetime | None = None
    review_count: int = 0
    created_at: datetime = field(default_factory=utc_now)
    version: int = 0

    def __post_init__(self):
        if not self.id:
            raise CardValidationError("Card id is required")
        if not self.owner_id:
            raise CardValidationError("Card owner_id is required")

        for name in ("front", "back"):
            value = getattr(self, name)
            if clean_text(name, value) != value:
                raise CardValidationError(f"{name} text must be stripped")

        if self.ease_factor < MIN_EASE_FACTOR:
            raise CardValidationError(
                f"ease_factor must be >= {MIN_EASE_FACTOR}, got {self.ease_factor}"
            )
        for name in ("repetitions", "interval_days", "review_count", "version"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise CardValidationError(f"{name} must be a non-negative integer")

        if (self.last_reviewed_at is None) != (self.next_review_at is None):
            raise CardValidationError(
                "last_reviewed_at and next_review_at must both be set or both be empty"
            )

        if self.last_reviewed_at is not None:
            for name in ("last_reviewed_at", "next_review_at"):
                value = getattr(self, name)
                if value.tzinfo is None:
                    raise CardValidationError(f"{name} must be timezone-aware")
            if self.interval_days < 1:
                raise CardValidationError("Reviewed cards need interval_days >= 1")
            if self.next_review_at != self.last_reviewed_at + timedelta(days=self.interval_days):
                raise CardValidationError(
                    "next_review_at must equal last_reviewed_at + interval_days"
                )
            if self.review_count < 1:
                raise CardValidationError("Reviewed cards need review_count >= 1")

    @classmethod
    def create(
        cls,
        card_id: str,
        owner_id: str,
        front: str,
        back: str,
        created_at: datetime | None = None,
    ) -> "Card":
        """Build a new, never-reviewed card with default scheduling state."""
        return cls(
            id=card_id,
            owner_id=owner_id,
            front=clean_text("front", front),
            back=clean_text("back", back),
            created_at=ensure_utc(created_at) if created_at else utc_now(),
        )

    @property
    def is_new(self) -> bool:
        return self.last_reviewed_at is None

    def with_content(self, front: str | None = None, back: str | None = None) -> "Card":
        """Return a copy with edited text. Scheduling fields are untouched."""
        changes = {}
        if front is not None:
            changes["front"] = clean_text("front", front)
        if back is not None:
            changes["back"] = clean_text("back", back)
        if not changes:
            return self
        return replace(self, **changes)
