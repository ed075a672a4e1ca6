# Application Stats Package
from .aggregator import StatsAggregator, aggregate, summarize_session
from .service import StudyStatsService

__all__ = ["StatsAggregator", "StudyStatsService", "aggregate", "summarize_session"]
