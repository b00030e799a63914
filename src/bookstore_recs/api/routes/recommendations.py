from datetime import UTC, datetime, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from bookstore_recs.config import settings
from bookstore_recs.dependencies.auth import get_customer_id
from bookstore_recs.dependencies.recommendations import get_recommendation_service
from bookstore_recs.domain import BookId, CacheId, CustomerId, EngagementCounter
from bookstore_recs.schemas.recommendation import (
    CacheClearResponse,
    EngagementResponse,
    PerformanceStatsResponse,
    RecommendationsResponse,
)
from bookstore_recs.services.recommendation_service import RecommendationService

router = APIRouter(prefix="/recommendations", tags=["recommendations"])

STATS_DEFAULT_WINDOW = timedelta(days=30)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _validate_limit(limit: int) -> None:
    if limit < 1 or limit > settings.max_limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Query param 'limit' must be between 1 and {settings.max_limit}",
        )


@router.get(
    "/personalized",
    response_model=RecommendationsResponse,
    summary="Books picked for the current customer",
    description=(
        "Ranks unseen books against the customer's wishlist and delivered orders. "
        "Customers without history receive the trending list."
    ),
    responses={401: {"description": "Not authenticated"}},
)
def get_personalized_recommendations(
    customer_id: Annotated[CustomerId, Depends(get_customer_id)],
    svc: Annotated[RecommendationService, Depends(get_recommendation_service)],
    limit: int = Query(settings.default_limit, description="Max number of books to return"),
) -> RecommendationsResponse:
    _validate_limit(limit)
    return svc.get_personalized(customer_id=customer_id, limit=limit)


@router.get("/similar/{book_id}", response_model=RecommendationsResponse)
def get_similar_books(
    book_id: BookId,
    svc: Annotated[RecommendationService, Depends(get_recommendation_service)],
    limit: int = Query(settings.default_limit, description="Max number of books to return"),
) -> RecommendationsResponse:
    """Books sharing the source book's category or author, ranked by content similarity."""
    _validate_limit(limit)
    return svc.get_similar(book_id=book_id, limit=limit)


@router.get("/trending", response_model=RecommendationsResponse)
def get_trending_books(
    svc: Annotated[RecommendationService, Depends(get_recommendation_service)],
    limit: int = Query(settings.default_limit, description="Max number of books to return"),
) -> RecommendationsResponse:
    """Catalog-wide popularity ranking by purchases, rating and views."""
    _validate_limit(limit)
    return svc.get_trending(limit=limit)


@router.delete(
    "/cache",
    response_model=CacheClearResponse,
    summary="Clear the current customer's cached recommendations",
    responses={401: {"description": "Not authenticated"}},
)
def clear_recommendation_cache(
    customer_id: Annotated[CustomerId, Depends(get_customer_id)],
    svc: Annotated[RecommendationService, Depends(get_recommendation_service)],
) -> CacheClearResponse:
    deleted = svc.clear_cache(customer_id=customer_id)
    return CacheClearResponse(deleted_count=deleted)


@router.get("/stats", response_model=PerformanceStatsResponse)
def get_performance_stats(
    svc: Annotated[RecommendationService, Depends(get_recommendation_service)],
    start: datetime | None = Query(None, description="Window start (defaults to end - 30 days)"),
    end: datetime | None = Query(None, description="Window end (defaults to now)"),
) -> PerformanceStatsResponse:
    """Engagement totals and rates per recommendation type over a generation window."""
    window_end = _as_utc(end) if end else datetime.now(UTC)
    window_start = _as_utc(start) if start else window_end - STATS_DEFAULT_WINDOW
    if window_start > window_end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query param 'start' must not be after 'end'",
        )

    stats = svc.get_performance_stats(start=window_start, end=window_end)
    return PerformanceStatsResponse(start=window_start, end=window_end, stats=stats)


def _track(
    svc: RecommendationService, cache_id: CacheId, counter: EngagementCounter
) -> EngagementResponse:
    result = svc.track(cache_id=cache_id, counter=counter)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Recommendation list {cache_id} not found",
        )
    return result


@router.post("/{cache_id}/views", response_model=EngagementResponse)
def track_view(
    cache_id: CacheId,
    svc: Annotated[RecommendationService, Depends(get_recommendation_service)],
) -> EngagementResponse:
    return _track(svc, cache_id, EngagementCounter.VIEWS)


@router.post("/{cache_id}/clicks", response_model=EngagementResponse)
def track_click(
    cache_id: CacheId,
    svc: Annotated[RecommendationService, Depends(get_recommendation_service)],
) -> EngagementResponse:
    return _track(svc, cache_id, EngagementCounter.CLICKS)


@router.post("/{cache_id}/conversions", response_model=EngagementResponse)
def track_conversion(
    cache_id: CacheId,
    svc: Annotated[RecommendationService, Depends(get_recommendation_service)],
) -> EngagementResponse:
    return _track(svc, cache_id, EngagementCounter.CONVERSIONS)
