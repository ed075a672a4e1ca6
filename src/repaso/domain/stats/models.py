"""
Domain models for study sessions and statistics.

These are pure data structures with no I/O or external dependencies.
Nothing here is persisted; every object is computed fresh from a card
collection and a point in time.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from repaso.domain.cards.models import Card, CardClass


@dataclass(frozen=True)
class SessionEntry:
    """
    One card selected for study.

    Attributes:
        card: The card itself.
        priority: Score used for ordering (higher is studied sooner).
        classification: NEW, DUE or OVERDUE.
    """

    card: Card
    priority: float
    classification: CardClass


@dataclass(frozen=True)
class SessionMetadata:
    new_count: int
    review_count: int
    overdue_count: int
    average_difficulty: float


@dataclass(frozen=True)
class StudySession:
    """An ordered study plan. Ephemeral."""

    entries: list[SessionEntry]
    metadata: SessionMetadata
    generated_at: datetime

    @property
    def cards(self) -> list[Card]:
        return [e.card for e in self.entries]

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class DueBreakdown:
    """Eligible cards grouped by classification."""

    new_cards: list[Card]
    due_cards: list[Card]  # due but not overdue
    overdue_cards: list[Card]

    @property
    def total_due(self) -> int:
        return len(self.new_cards) + len(self.due_cards) + len(self.overdue_cards)


class RecommendationPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Recommendation:
    type: str
    priority: RecommendationPriority
    message: str


@dataclass
class UserStats:
    """
    Summary of a user's card collection at a point in time.
    """

    total_cards: int
    reviewed_cards: int
    unreviewed_cards: int
    total_reviews: int
    average_ease: float
    average_difficulty: float
    difficulty_distribution: dict[int, int]
    due_cards: int  # includes overdue
    overdue_cards: int
    new_cards: int
    last_study_session: datetime | None
    recommendations: list[Recommendation] = field(default_factory=list)

    @property
    def study_load(self) -> int:
        return self.due_cards + self.new_cards


@dataclass(frozen=True)
class SessionSummary:
    """
    Results of a completed study session.

    Attributes:
        total_reviewed: Number of graded cards.
        grade_breakdown: grade -> count, only grades that occurred.
        average_grade: Mean grade, None for an empty session.
        accuracy_rate: Share of passing grades, None for an empty session.
        duration_seconds: Wall time reported by the client, if any.
    """

    total_reviewed: int
    grade_breakdown: dict[int, int]
    average_grade: float | None
    accuracy_rate: float | None
    duration_seconds: int | None = None
