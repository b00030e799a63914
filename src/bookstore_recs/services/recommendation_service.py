import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from bookstore_recs.domain import (
    Algorithm,
    BookId,
    CacheId,
    CatalogBook,
    CustomerId,
    EngagementCounter,
    RecommendationType,
    reference_name,
)
from bookstore_recs.models import RecommendationCache
from bookstore_recs.repositories.protocols import CatalogReader
from bookstore_recs.repositories.recommendation_cache_repository import (
    RecommendationCacheRepository,
)
from bookstore_recs.schemas.recommendation import (
    BookSummary,
    EngagementResponse,
    PerformanceStats,
    RecommendationEntry,
    RecommendationsResponse,
)
from bookstore_recs.services.recommendation_engine import (
    DEFAULT_LIMIT,
    RankedList,
    RecommendationEngine,
    ScoredBook,
)

logger = logging.getLogger(__name__)

CACHE_SIZE = 50


def _percent(numerator: int, denominator: int) -> float:
    if denominator == 0:
        return 0.0
    return (numerator / denominator) * 100


def summarize(book: CatalogBook) -> BookSummary:
    return BookSummary(
        title=book.title,
        category=reference_name(book.category),
        author=reference_name(book.author),
        average_rating=book.average_rating,
    )


class RecommendationService:
    """
    Read-through cache in front of the recommendation engine.

    Lookups never raise for scoring problems: a failing strategy is logged and
    answered with the trending list (not cached), and a failing trending list
    becomes an empty one. Misses are computed at ``cache_size`` entries and
    stored whole, so one cached list answers every ``limit`` up to that size.
    """

    def __init__(
        self,
        engine: RecommendationEngine,
        cache: RecommendationCacheRepository,
        catalog: CatalogReader,
        cache_size: int = CACHE_SIZE,
    ) -> None:
        self.engine = engine
        self.cache = cache
        self.catalog = catalog
        self.cache_size = cache_size

    def get_personalized(
        self, customer_id: CustomerId, limit: int = DEFAULT_LIMIT
    ) -> RecommendationsResponse:
        return self._read_through(
            RecommendationType.PERSONALIZED,
            customer_id=customer_id,
            source_book_id=None,
            limit=limit,
            compute=lambda size: self.engine.personalized(customer_id, size),
        )

    def get_similar(self, book_id: BookId, limit: int = DEFAULT_LIMIT) -> RecommendationsResponse:
        return self._read_through(
            RecommendationType.SIMILAR,
            customer_id=None,
            source_book_id=book_id,
            limit=limit,
            compute=lambda size: self.engine.similar(book_id, size),
        )

    def get_trending(self, limit: int = DEFAULT_LIMIT) -> RecommendationsResponse:
        return self._read_through(
            RecommendationType.TRENDING,
            customer_id=None,
            source_book_id=None,
            limit=limit,
            compute=lambda size: self.engine.trending(size),
        )

    def clear_cache(self, customer_id: CustomerId) -> int:
        deleted = self.cache.clear_for_subject(customer_id)
        logger.info(
            "Cleared recommendation cache customer_id=%s deleted=%s", customer_id, deleted
        )
        return deleted

    def purge_expired_cache(self) -> int:
        deleted = self.cache.purge_expired()
        logger.info("Purged expired recommendation cache rows deleted=%s", deleted)
        return deleted

    def track(self, cache_id: CacheId, counter: EngagementCounter) -> EngagementResponse | None:
        row = self.cache.increment(cache_id, counter)
        if row is None:
            return None
        return EngagementResponse(
            cache_id=CacheId(row.id),
            view_count=row.view_count,
            click_count=row.click_count,
            conversion_count=row.conversion_count,
            conversion_rate=row.conversion_rate(),
        )

    def get_performance_stats(self, start: datetime, end: datetime) -> list[PerformanceStats]:
        return [
            PerformanceStats(
                recommendation_type=totals.recommendation_type,
                count=totals.count,
                total_views=totals.total_views,
                total_clicks=totals.total_clicks,
                total_conversions=totals.total_conversions,
                click_rate=_percent(totals.total_clicks, totals.total_views),
                conversion_rate=_percent(totals.total_conversions, totals.total_clicks),
            )
            for totals in self.cache.engagement_totals(start, end)
        ]

    def _read_through(
        self,
        recommendation_type: RecommendationType,
        *,
        customer_id: CustomerId | None,
        source_book_id: BookId | None,
        limit: int,
        compute: Callable[[int], RankedList],
    ) -> RecommendationsResponse:
        cached = self._lookup(recommendation_type, customer_id, source_book_id)
        if cached is not None:
            logger.info(
                "Recommendation cache hit type=%s cache_id=%s", recommendation_type, cached.id
            )
            return self._from_cache(recommendation_type, cached, limit)

        logger.info("Recommendation cache miss type=%s", recommendation_type)
        try:
            ranked = compute(max(self.cache_size, limit))
        except Exception:
            logger.exception(
                "Recommendation strategy failed type=%s customer_id=%s source_book_id=%s; "
                "falling back to trending",
                recommendation_type,
                customer_id,
                source_book_id,
            )
            self._rollback()
            return self._fallback(recommendation_type, limit)

        entries = self._to_entries(ranked.entries)
        row = self._store(recommendation_type, customer_id, source_book_id, entries, ranked)
        return RecommendationsResponse(
            recommendations=entries[: max(limit, 0)],
            recommendation_type=recommendation_type,
            algorithm=ranked.algorithm,
            is_cached=False,
            cache_id=CacheId(row.id) if row is not None else None,
        )

    def _fallback(
        self, recommendation_type: RecommendationType, limit: int
    ) -> RecommendationsResponse:
        try:
            ranked = self.engine.trending(limit)
        except Exception:
            logger.exception("Trending fallback failed; returning an empty list")
            ranked = RankedList(algorithm=Algorithm.POPULARITY)

        return RecommendationsResponse(
            recommendations=self._to_entries(ranked.entries),
            recommendation_type=recommendation_type,
            algorithm=Algorithm.POPULARITY,
            is_cached=False,
        )

    def _lookup(
        self,
        recommendation_type: RecommendationType,
        customer_id: CustomerId | None,
        source_book_id: BookId | None,
    ) -> RecommendationCache | None:
        try:
            cached = self.cache.get(customer_id, recommendation_type, source_book_id)
        except SQLAlchemyError:
            logger.warning(
                "Recommendation cache read failed type=%s; recomputing",
                recommendation_type,
                exc_info=True,
            )
            self._rollback()
            return None
        if cached is None or not cached.recommended_books:
            return None
        return cached

    def _store(
        self,
        recommendation_type: RecommendationType,
        customer_id: CustomerId | None,
        source_book_id: BookId | None,
        entries: Sequence[RecommendationEntry],
        ranked: RankedList,
    ) -> RecommendationCache | None:
        try:
            return self.cache.save(
                customer_id, recommendation_type, source_book_id, entries, ranked.algorithm
            )
        except SQLAlchemyError:
            logger.warning(
                "Recommendation cache save failed type=%s", recommendation_type, exc_info=True
            )
            self._rollback()
            return None

    def _from_cache(
        self, recommendation_type: RecommendationType, row: RecommendationCache, limit: int
    ) -> RecommendationsResponse:
        entries = [RecommendationEntry.model_validate(item) for item in row.recommended_books]
        entries = entries[: max(limit, 0)]

        try:
            books = self.catalog.find_books_by_ids(entry.book_id for entry in entries)
        except SQLAlchemyError:
            logger.warning("Catalog lookup for cached entries failed", exc_info=True)
            self._rollback()
            books = {}

        hydrated = [
            entry.model_copy(update={"book": summarize(books[entry.book_id])})
            if entry.book_id in books
            else entry
            for entry in entries
        ]

        return RecommendationsResponse(
            recommendations=hydrated,
            recommendation_type=recommendation_type,
            algorithm=row.algorithm,
            is_cached=True,
            cached_at=row.generated_at,
            cache_id=CacheId(row.id),
        )

    def _rollback(self) -> None:
        try:
            self.cache.rollback()
        except SQLAlchemyError:
            logger.warning("Session rollback failed", exc_info=True)

    @staticmethod
    def _to_entries(scored: Sequence[ScoredBook]) -> list[RecommendationEntry]:
        return [
            RecommendationEntry(
                book_id=item.book_id,
                score=item.score,
                reason=item.reason,
                book=summarize(item.book),
            )
            for item in scored
        ]
