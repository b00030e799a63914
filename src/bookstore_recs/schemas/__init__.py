from bookstore_recs.schemas.recommendation import (
    BookSummary,
    CacheClearResponse,
    EngagementResponse,
    PerformanceStats,
    PerformanceStatsResponse,
    RecommendationEntry,
    RecommendationsResponse,
)

__all__ = [
    "BookSummary",
    "CacheClearResponse",
    "EngagementResponse",
    "PerformanceStats",
    "PerformanceStatsResponse",
    "RecommendationEntry",
    "RecommendationsResponse",
]
