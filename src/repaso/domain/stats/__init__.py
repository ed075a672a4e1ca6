# Domain Stats Package
from .models import (
    DueBreakdown,
    Recommendation,
    RecommendationPriority,
    SessionEntry,
    SessionMetadata,
    SessionSummary,
    StudySession,
    UserStats,
)

__all__ = [
    "DueBreakdown",
    "Recommendation",
    "RecommendationPriority",
    "SessionEntry",
    "SessionMetadata",
    "SessionSummary",
    "StudySession",
    "UserStats",
]
