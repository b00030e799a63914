import argparse
import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from bookstore_recs.database import SessionLocal
from bookstore_recs.repositories.recommendation_cache_repository import (
    RecommendationCacheRepository,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def purge_expired_recommendations(
    session_factory: Callable[[], AbstractContextManager[Session]] = SessionLocal,
    clock: Callable[[], datetime] = lambda: datetime.now(UTC),
) -> int:
    """
    Deletes cached recommendation lists past their expiry.

    Meant to be run by an external scheduler (e.g. daily at 02:00). Only rows
    already expired are touched, so it is safe alongside live traffic.
    """
    logger.info("Purging expired recommendation cache rows...")

    with session_factory() as session:
        deleted = RecommendationCacheRepository(session=session, clock=clock).purge_expired()

    logger.info(f"Removed {deleted} expired recommendation cache rows.")
    return deleted


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Purge expired recommendation cache rows.")
    parser.parse_args()
    purge_expired_recommendations()
