import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import ColumnElement, delete, func, select, update
from sqlalchemy.orm import InstrumentedAttribute, Session

from bookstore_recs.domain import (
    Algorithm,
    BookId,
    CacheId,
    CustomerId,
    EngagementCounter,
    RecommendationType,
)
from bookstore_recs.models import RecommendationCache
from bookstore_recs.schemas.recommendation import RecommendationEntry

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)

_COUNTER_COLUMNS: dict[EngagementCounter, InstrumentedAttribute[int]] = {
    EngagementCounter.VIEWS: RecommendationCache.view_count,
    EngagementCounter.CLICKS: RecommendationCache.click_count,
    EngagementCounter.CONVERSIONS: RecommendationCache.conversion_count,
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class EngagementTotals:
    recommendation_type: RecommendationType
    count: int
    total_views: int
    total_clicks: int
    total_conversions: int


def _key_clause(
    customer_id: CustomerId | None,
    recommendation_type: RecommendationType,
    source_book_id: BookId | None,
) -> list[ColumnElement[bool]]:
    # NULL parts of the key only match NULL; a shared list never answers for a customer
    return [
        RecommendationCache.customer_id.is_(None)
        if customer_id is None
        else RecommendationCache.customer_id == customer_id,
        RecommendationCache.recommendation_type == recommendation_type,
        RecommendationCache.source_book_id.is_(None)
        if source_book_id is None
        else RecommendationCache.source_book_id == source_book_id,
    ]


class RecommendationCacheRepository:
    def __init__(
        self,
        session: Session,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session = session
        self._ttl = ttl
        self._clock = clock

    def get(
        self,
        customer_id: CustomerId | None,
        recommendation_type: RecommendationType,
        source_book_id: BookId | None = None,
    ) -> RecommendationCache | None:
        """
        Returns the live row for the key, or None once ``expires_at`` has passed.
        """
        stmt = (
            select(RecommendationCache)
            .where(*_key_clause(customer_id, recommendation_type, source_book_id))
            .where(RecommendationCache.expires_at > self._clock())
            .order_by(RecommendationCache.generated_at.desc(), RecommendationCache.id.desc())
            .limit(1)
        )
        return self._session.scalars(stmt).first()

    def save(
        self,
        customer_id: CustomerId | None,
        recommendation_type: RecommendationType,
        source_book_id: BookId | None,
        entries: Sequence[RecommendationEntry],
        algorithm: Algorithm,
    ) -> RecommendationCache | None:
        """
        Replaces whatever is cached under the key with ``entries``.

        An empty list is never persisted: the call is a no-op returning None and
        any existing row for the key is left untouched.
        """
        if not entries:
            logger.debug(
                "Skipping cache save for empty list type=%s customer_id=%s source_book_id=%s",
                recommendation_type,
                customer_id,
                source_book_id,
            )
            return None

        generated_at = self._clock()
        row = RecommendationCache(
            customer_id=customer_id,
            recommendation_type=recommendation_type,
            source_book_id=source_book_id,
            recommended_books=[self._to_payload(entry) for entry in entries],
            algorithm=algorithm,
            generated_at=generated_at,
            expires_at=generated_at + self._ttl,
            view_count=0,
            click_count=0,
            conversion_count=0,
        )

        self._session.execute(
            delete(RecommendationCache).where(
                *_key_clause(customer_id, recommendation_type, source_book_id)
            )
        )
        self._session.add(row)
        self._session.commit()
        self._session.refresh(row)

        return row

    def purge_expired(self) -> int:
        """
        Deletes every row with ``expires_at <= now`` and returns how many went.
        """
        result = self._session.execute(
            delete(RecommendationCache)
            .where(RecommendationCache.expires_at <= self._clock())
            .execution_options(synchronize_session=False)
        )
        self._session.commit()
        return max(getattr(result, "rowcount", 0), 0)

    def clear_for_subject(self, customer_id: CustomerId) -> int:
        result = self._session.execute(
            delete(RecommendationCache).where(RecommendationCache.customer_id == customer_id)
        )
        self._session.commit()
        return max(getattr(result, "rowcount", 0), 0)

    def increment(
        self, cache_id: CacheId, counter: EngagementCounter
    ) -> RecommendationCache | None:
        """
        Atomically bumps one engagement counter in the database.

        Returns the refreshed row, or None when no row has that id.
        """
        column = _COUNTER_COLUMNS[counter]
        result = self._session.execute(
            update(RecommendationCache)
            .where(RecommendationCache.id == cache_id)
            .values({column: column + 1})
            .execution_options(synchronize_session=False)
        )
        self._session.commit()

        if max(getattr(result, "rowcount", 0), 0) == 0:
            return None
        return self._session.get(RecommendationCache, cache_id, populate_existing=True)

    def rollback(self) -> None:
        """Discards the session's failed transaction so later queries can run."""
        self._session.rollback()

    def engagement_totals(self, start: datetime, end: datetime) -> list[EngagementTotals]:
        stmt = (
            select(
                RecommendationCache.recommendation_type,
                func.count(RecommendationCache.id),
                func.coalesce(func.sum(RecommendationCache.view_count), 0),
                func.coalesce(func.sum(RecommendationCache.click_count), 0),
                func.coalesce(func.sum(RecommendationCache.conversion_count), 0),
            )
            .where(RecommendationCache.generated_at >= start)
            .where(RecommendationCache.generated_at <= end)
            .group_by(RecommendationCache.recommendation_type)
            .order_by(RecommendationCache.recommendation_type)
        )
        return [
            EngagementTotals(
                recommendation_type=RecommendationType(row[0]),
                count=int(row[1]),
                total_views=int(row[2]),
                total_clicks=int(row[3]),
                total_conversions=int(row[4]),
            )
            for row in self._session.execute(stmt).all()
        ]

    @staticmethod
    def _to_payload(entry: RecommendationEntry) -> dict[str, Any]:
        return entry.model_dump(mode="json", include={"book_id", "score", "reason"})
