from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from bookstore_recs.domain import Algorithm, BookId, CacheId, RecommendationType, Score


class BookSummary(BaseModel):
    title: str = Field(description="Title of the book", examples=["Dune"])
    category: str | None = Field(
        default=None, description="Category name of the book", examples=["Science Fiction"]
    )
    author: str | None = Field(
        default=None, description="Author of the book", examples=["Frank Herbert"]
    )
    average_rating: float = Field(
        default=0.0, description="Average customer rating (0-5)", examples=[4.5], ge=0.0, le=5.0
    )


class RecommendationEntry(BaseModel):
    book_id: BookId = Field(
        description="Unique identifier of the recommended book", examples=["book-123"]
    )
    score: Score = Field(
        description=(
            "Ranking score. Personalized scores lie in [0, 1]; similar scores may exceed 1; "
            "trending scores are raw popularity."
        ),
        examples=[0.8523],
        ge=0.0,
    )
    reason: str = Field(
        description="Explanation for the recommendation", examples=["Based on your interests"]
    )
    book: BookSummary | None = Field(
        default=None, description="Catalog details of the recommended book, when available"
    )


class RecommendationsResponse(BaseModel):
    recommendations: list[RecommendationEntry] = Field(description="Ranked recommendations")
    recommendation_type: RecommendationType = Field(
        description="The kind of recommendation that was requested", examples=["personalized"]
    )
    algorithm: Algorithm = Field(
        description="Algorithm that produced the list; 'popularity' marks a trending fallback",
        examples=["content_based"],
    )
    is_cached: bool = Field(description="Whether the list was served from the cache")
    cached_at: datetime | None = Field(
        default=None, description="Generation time of the cached list"
    )
    cache_id: CacheId | None = Field(
        default=None, description="Cache row to report views, clicks and conversions against"
    )


class CacheClearResponse(BaseModel):
    status: Literal["cleared"] = "cleared"
    deleted_count: int = Field(description="Number of cached lists removed", ge=0)


class EngagementResponse(BaseModel):
    cache_id: CacheId = Field(description="Cache row the engagement was recorded on")
    view_count: int = Field(ge=0)
    click_count: int = Field(ge=0)
    conversion_count: int = Field(ge=0)
    conversion_rate: float = Field(description="Conversions per click, in percent", ge=0.0)

    model_config = ConfigDict(from_attributes=True)


class PerformanceStats(BaseModel):
    recommendation_type: RecommendationType
    count: int = Field(description="Number of cached lists generated in the window", ge=0)
    total_views: int = Field(ge=0)
    total_clicks: int = Field(ge=0)
    total_conversions: int = Field(ge=0)
    click_rate: float = Field(description="Clicks per view, in percent", ge=0.0)
    conversion_rate: float = Field(description="Conversions per click, in percent", ge=0.0)


class PerformanceStatsResponse(BaseModel):
    start: datetime
    end: datetime
    stats: list[PerformanceStats]
