from datetime import timedelta
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from bookstore_recs.config import settings
from bookstore_recs.dependencies.database import get_db_session
from bookstore_recs.repositories.books_repository import BooksRepository
from bookstore_recs.repositories.orders_repository import OrdersRepository
from bookstore_recs.repositories.recommendation_cache_repository import (
    RecommendationCacheRepository,
)
from bookstore_recs.repositories.wishlist_repository import WishlistRepository
from bookstore_recs.services.recommendation_engine import RecommendationEngine
from bookstore_recs.services.recommendation_service import RecommendationService


def get_books_repository(session: Annotated[Session, Depends(get_db_session)]) -> BooksRepository:
    return BooksRepository(session=session)


def get_orders_repository(
    session: Annotated[Session, Depends(get_db_session)],
) -> OrdersRepository:
    return OrdersRepository(session=session)


def get_wishlist_repository(
    session: Annotated[Session, Depends(get_db_session)],
) -> WishlistRepository:
    return WishlistRepository(session=session)


def get_recommendation_cache_repository(
    session: Annotated[Session, Depends(get_db_session)],
) -> RecommendationCacheRepository:
    return RecommendationCacheRepository(
        session=session, ttl=timedelta(hours=settings.cache_ttl_hours)
    )


def get_recommendation_engine(
    catalog: Annotated[BooksRepository, Depends(get_books_repository)],
    orders: Annotated[OrdersRepository, Depends(get_orders_repository)],
    wishlist: Annotated[WishlistRepository, Depends(get_wishlist_repository)],
) -> RecommendationEngine:
    return RecommendationEngine(
        catalog=catalog,
        orders=orders,
        wishlist=wishlist,
        personalized_candidate_limit=settings.personalized_candidate_limit,
        similar_candidate_limit=settings.similar_candidate_limit,
        trending_candidate_limit=settings.trending_candidate_limit,
        recent_orders_limit=settings.recent_orders_limit,
    )


def get_recommendation_service(
    engine: Annotated[RecommendationEngine, Depends(get_recommendation_engine)],
    cache: Annotated[RecommendationCacheRepository, Depends(get_recommendation_cache_repository)],
    catalog: Annotated[BooksRepository, Depends(get_books_repository)],
) -> RecommendationService:
    """Dependency to provide the RecommendationService instance."""
    return RecommendationService(
        engine=engine, cache=cache, catalog=catalog, cache_size=settings.max_limit
    )
