"""Pydantic request/response models shared by the HTTP server and the CLI's --json output."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from repaso.domain.stats.models import (
    DueBreakdown,
    SessionSummary,
    StudySession,
    UserStats,
)


class CardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    front: str
    back: str
    ease_factor: float
    repetitions: int
    interval_days: int
    last_reviewed_at: datetime | None
    next_review_at: datetime | None
    review_count: int
    created_at: datetime
    version: int


class CreateCardRequest(BaseModel):
    owner_id: str = Field(min_length=1)
    # Text rules (stripping, 500 chars) live on the Card model.
    front: str
    back: str


class UpdateCardRequest(BaseModel):
    owner_id: str = Field(min_length=1)
    front: str | None = None
    back: str | None = None


class ReviewRequest(BaseModel):
    owner_id: str = Field(min_length=1)
    # Range is checked by the scheduling engine so every caller gets the same error.
    grade: int


class SessionEntryOut(BaseModel):
    card: CardOut
    priority: float
    classification: str


class SessionMetadataOut(BaseModel):
    new_count: int
    review_count: int
    overdue_count: int
    average_difficulty: float


class StudySessionOut(BaseModel):
    cards: list[SessionEntryOut]
    total_cards: int
    metadata: SessionMetadataOut
    generated_at: datetime

    @classmethod
    def from_domain(cls, session: StudySession) -> "StudySessionOut":
        return cls(
            cards=[
                SessionEntryOut(
                    card=CardOut.model_validate(e.card),
                    priority=e.priority,
                    classification=e.classification.value,
                )
                for e in session.entries
            ],
            total_cards=len(session),
            metadata=SessionMetadataOut(
                new_count=session.metadata.new_count,
                review_count=session.metadata.review_count,
                overdue_count=session.metadata.overdue_count,
                average_difficulty=session.metadata.average_difficulty,
            ),
            generated_at=session.generated_at,
        )


class DueOut(BaseModel):
    new_cards: list[CardOut]
    due_cards: list[CardOut]
    overdue_cards: list[CardOut]
    total_due: int

    @classmethod
    def from_domain(cls, due: DueBreakdown) -> "DueOut":
        return cls(
            new_cards=[CardOut.model_validate(c) for c in due.new_cards],
            due_cards=[CardOut.model_validate(c) for c in due.due_cards],
            overdue_cards=[CardOut.model_validate(c) for c in due.overdue_cards],
            total_due=due.total_due,
        )


class RecommendationOut(BaseModel):
    type: str
    priority: str
    message: str


class UserStatsOut(BaseModel):
    total_cards: int
    reviewed_cards: int
    unreviewed_cards: int
    total_reviews: int
    average_ease: float
    average_difficulty: float
    difficulty_distribution: dict[int, int]
    due_cards: int
    overdue_cards: int
    new_cards: int
    study_load: int
    last_study_session: datetime | None
    recommendations: list[RecommendationOut]

    @classmethod
    def from_domain(cls, stats: UserStats) -> "UserStatsOut":
        return cls(
            total_cards=stats.total_cards,
            reviewed_cards=stats.reviewed_cards,
            unreviewed_cards=stats.unreviewed_cards,
            total_reviews=stats.total_reviews,
            average_ease=stats.average_ease,
            average_difficulty=stats.average_difficulty,
            difficulty_distribution=stats.difficulty_distribution,
            due_cards=stats.due_cards,
            overdue_cards=stats.overdue_cards,
            new_cards=stats.new_cards,
            study_load=stats.study_load,
            last_study_session=stats.last_study_session,
            recommendations=[
                RecommendationOut(type=r.type, priority=r.priority.value, message=r.message)
                for r in stats.recommendations
            ],
        )


class SessionSummaryRequest(BaseModel):
    grades: list[int] = Field(default_factory=list)
    duration_seconds: int | None = None


class SessionSummaryOut(BaseModel):
    total_reviewed: int
    grade_breakdown: dict[int, int]
    average_grade: float | None
    accuracy_rate: float | None
    duration_seconds: int | None

    @classmethod
    def from_domain(cls, summary: SessionSummary) -> "SessionSummaryOut":
        return cls(
            total_reviewed=summary.total_reviewed,
            grade_breakdown=summary.grade_breakdown,
            average_grade=summary.average_grade,
            accuracy_rate=summary.accuracy_rate,
            duration_seconds=summary.duration_seconds,
        )
