import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from bookstore_recs.domain import (
    Algorithm,
    BookFilter,
    BookId,
    CatalogBook,
    CustomerId,
    reference_id,
)
from bookstore_recs.engine import (
    TermVector,
    build_content_vector,
    cosine_similarity,
    mean_vector,
    term_frequency,
)
from bookstore_recs.repositories.protocols import (
    CatalogReader,
    OrderHistoryReader,
    WishlistReader,
)

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 8
SCORE_DECIMALS = 4

TITLE_SIMILARITY_WEIGHT = 0.5
SAME_CATEGORY_BONUS = 0.3
SAME_AUTHOR_BONUS = 0.2
SIMILAR_TITLE_THRESHOLD = 0.5

PURCHASE_WEIGHT = 0.5
RATING_WEIGHT = 0.3
VIEW_WEIGHT = 0.2

REASON_PERSONALIZED = "Based on your interests"
REASON_TRENDING = "Trending book"


@dataclass(frozen=True, slots=True)
class ScoredBook:
    book: CatalogBook
    score: float
    reason: str

    @property
    def book_id(self) -> BookId:
        return self.book.id


@dataclass(frozen=True, slots=True)
class RankedList:
    algorithm: Algorithm
    entries: list[ScoredBook] = field(default_factory=list)


def content_tf(book: CatalogBook) -> TermVector:
    return term_frequency(build_content_vector(book))


def rank(scored: Iterable[ScoredBook], limit: int) -> list[ScoredBook]:
    """Highest score first; equal scores keep candidate order."""
    if limit <= 0:
        return []
    return sorted(scored, key=lambda item: -item.score)[:limit]


def trending_score(book: CatalogBook) -> float:
    return (
        book.purchase_count * PURCHASE_WEIGHT
        + book.average_rating * 10 * RATING_WEIGHT
        + book.view_count * 0.0001 * VIEW_WEIGHT
    )


def similar_reason(title_similarity: float, same_category: bool, same_author: bool) -> str:
    if same_category and same_author:
        return "Same category and author"
    if same_category:
        return "Same category"
    if same_author:
        return "Same author"
    if title_similarity > SIMILAR_TITLE_THRESHOLD:
        return "Similar title"
    return "Similar book"


class RecommendationEngine:
    """
    Content-based scorers over the catalog, order history and wishlist.

    Every strategy is a single synchronous pass over a bounded candidate pool.
    Collaborator errors propagate; degrading to a cheaper list is the caller's job.
    """

    def __init__(
        self,
        catalog: CatalogReader,
        orders: OrderHistoryReader,
        wishlist: WishlistReader,
        *,
        personalized_candidate_limit: int = 100,
        similar_candidate_limit: int = 50,
        trending_candidate_limit: int = 100,
        recent_orders_limit: int = 10,
    ) -> None:
        self.catalog = catalog
        self.orders = orders
        self.wishlist = wishlist
        self.personalized_candidate_limit = personalized_candidate_limit
        self.similar_candidate_limit = similar_candidate_limit
        self.trending_candidate_limit = trending_candidate_limit
        self.recent_orders_limit = recent_orders_limit

    def interacted_books(self, customer_id: CustomerId) -> list[CatalogBook]:
        """Wishlist first, then delivered orders; first occurrence of each id wins."""
        seen: set[str] = set()
        books: list[CatalogBook] = []
        wishlist_books = self.wishlist.find_wishlist_books(customer_id)
        ordered_books = self.orders.find_delivered_ordered_books(
            customer_id, recent_limit=self.recent_orders_limit
        )
        for book in [*wishlist_books, *ordered_books]:
            if book.id not in seen:
                seen.add(book.id)
                books.append(book)
        return books

    def personalized(self, customer_id: CustomerId, limit: int = DEFAULT_LIMIT) -> RankedList:
        interacted = self.interacted_books(customer_id)
        if not interacted:
            logger.info(
                "No interaction history for customer_id=%s; serving trending", customer_id
            )
            return self.trending(limit)

        profile = mean_vector([content_tf(book) for book in interacted])

        candidates = self.catalog.find_active_books(
            BookFilter(exclude_ids=frozenset(book.id for book in interacted)),
            limit=self.personalized_candidate_limit,
        )

        scored = [
            ScoredBook(
                book=candidate,
                score=round(cosine_similarity(profile, content_tf(candidate)), SCORE_DECIMALS),
                reason=REASON_PERSONALIZED,
            )
            for candidate in candidates
        ]

        logger.debug(
            "Personalized scoring customer_id=%s interacted=%s candidates=%s",
            customer_id,
            len(interacted),
            len(candidates),
        )
        return RankedList(algorithm=Algorithm.CONTENT_BASED, entries=rank(scored, limit))

    def similar(self, book_id: BookId, limit: int = DEFAULT_LIMIT) -> RankedList:
        source = self.catalog.find_book_by_id(book_id)
        if source is None:
            logger.info("Source book not found book_id=%s", book_id)
            return RankedList(algorithm=Algorithm.HYBRID)

        source_tf = content_tf(source)
        category_id = reference_id(source.category)
        author_id = reference_id(source.author)

        candidates = self.catalog.find_active_books(
            BookFilter(
                exclude_ids=frozenset({source.id}),
                category_id=category_id,
                author_id=author_id,
            ),
            limit=self.similar_candidate_limit,
        )
        candidates = [candidate for candidate in candidates if candidate.id != source.id]
        if not candidates:
            logger.info("No similar candidates for book_id=%s; serving trending", book_id)
            return self.trending(limit, exclude_ids=frozenset({source.id}))

        scored: list[ScoredBook] = []
        for candidate in candidates:
            title_similarity = cosine_similarity(source_tf, content_tf(candidate))
            same_category = (
                category_id is not None and reference_id(candidate.category) == category_id
            )
            same_author = author_id is not None and reference_id(candidate.author) == author_id

            score = TITLE_SIMILARITY_WEIGHT * title_similarity
            if same_category:
                score += SAME_CATEGORY_BONUS
            if same_author:
                score += SAME_AUTHOR_BONUS

            scored.append(
                ScoredBook(
                    book=candidate,
                    score=round(score, SCORE_DECIMALS),
                    reason=similar_reason(title_similarity, same_category, same_author),
                )
            )

        return RankedList(algorithm=Algorithm.HYBRID, entries=rank(scored, limit))

    def trending(
        self, limit: int = DEFAULT_LIMIT, exclude_ids: frozenset[str] = frozenset()
    ) -> RankedList:
        candidates = self.catalog.find_active_books(
            BookFilter(exclude_ids=exclude_ids, by_popularity=True),
            limit=self.trending_candidate_limit,
        )
        scored = [
            ScoredBook(
                book=candidate,
                score=round(trending_score(candidate), SCORE_DECIMALS),
                reason=REASON_TRENDING,
            )
            for candidate in candidates
        ]
        return RankedList(algorithm=Algorithm.POPULARITY, entries=rank(scored, limit))
