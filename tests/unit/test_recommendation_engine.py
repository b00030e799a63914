from typing import cast
from unittest.mock import MagicMock, create_autospec

import pytest

from bookstore_recs.domain import (
    Algorithm,
    BookFilter,
    BookId,
    CatalogBook,
    CustomerId,
    NamedRef,
    reference_id,
)
from bookstore_recs.repositories.books_repository import BooksRepository
from bookstore_recs.repositories.orders_repository import OrdersRepository
from bookstore_recs.repositories.wishlist_repository import WishlistRepository
from bookstore_recs.services.recommendation_engine import (
    REASON_PERSONALIZED,
    REASON_TRENDING,
    RecommendationEngine,
    ScoredBook,
    rank,
    similar_reason,
    trending_score,
)

PROGRAMMING = NamedRef(id="cat-prog", name="Lập trình")
COOKING = NamedRef(id="cat-cook", name="Ẩm thực")
AUTHOR_X = NamedRef(id="auth-x", name="Nguyễn Văn X")
AUTHOR_Y = NamedRef(id="auth-y", name="Trần Thị Y")


def make_book(book_id: str, title: str, **kwargs) -> CatalogBook:
    return CatalogBook(id=BookId(book_id), title=title, **kwargs)


def make_catalog(books: list[CatalogBook]) -> MagicMock:
    """Autospec catalog whose queries are answered from an in-memory list."""
    catalog = cast(MagicMock, create_autospec(BooksRepository, instance=True, spec_set=True))
    by_id = {book.id: book for book in books}

    def find_active_books(book_filter: BookFilter, limit: int) -> list[CatalogBook]:
        matches = [
            book
            for book in books
            if book.is_active
            and book.id not in book_filter.exclude_ids
            and (
                (book_filter.category_id is None and book_filter.author_id is None)
                or (
                    book_filter.category_id is not None
                    and reference_id(book.category) == book_filter.category_id
                )
                or (
                    book_filter.author_id is not None
                    and reference_id(book.author) == book_filter.author_id
                )
            )
        ]
        if book_filter.by_popularity:
            matches.sort(key=lambda book: (-book.purchase_count, -book.average_rating, book.id))
        else:
            matches.sort(key=lambda book: book.id)
        return matches[:limit]

    catalog.find_active_books.side_effect = find_active_books
    catalog.find_book_by_id.side_effect = by_id.get
    return catalog


def make_engine(
    books: list[CatalogBook],
    wishlist_books: list[CatalogBook] | None = None,
    ordered_books: list[CatalogBook] | None = None,
) -> tuple[RecommendationEngine, MagicMock, MagicMock, MagicMock]:
    catalog = make_catalog(books)
    orders = cast(MagicMock, create_autospec(OrdersRepository, instance=True, spec_set=True))
    wishlist = cast(MagicMock, create_autospec(WishlistRepository, instance=True, spec_set=True))
    orders.find_delivered_ordered_books.return_value = ordered_books or []
    wishlist.find_wishlist_books.return_value = wishlist_books or []
    return RecommendationEngine(catalog, orders, wishlist), catalog, orders, wishlist


@pytest.fixture
def javascript_catalog() -> list[CatalogBook]:
    return [
        make_book("A", "Lập Trình JavaScript", category=PROGRAMMING, author=AUTHOR_X),
        make_book("B", "JavaScript Nâng Cao", category=PROGRAMMING, author=AUTHOR_Y),
        make_book("C", "Nấu Ăn Ngon", category=COOKING, author=AUTHOR_Y),
    ]


def test_trending_score_formula() -> None:
    book = make_book("t", "T", purchase_count=100, average_rating=4.5, view_count=10_000)

    assert trending_score(book) == pytest.approx(50 + 13.5 + 0.2)


def test_rank_is_stable_for_equal_scores() -> None:
    books = [make_book(str(i), f"Book {i}") for i in range(4)]
    scored = [
        ScoredBook(book=books[0], score=0.5, reason="r"),
        ScoredBook(book=books[1], score=0.9, reason="r"),
        ScoredBook(book=books[2], score=0.5, reason="r"),
        ScoredBook(book=books[3], score=0.1, reason="r"),
    ]

    assert [item.book_id for item in rank(scored, 3)] == ["1", "0", "2"]
    assert rank(scored, 0) == []


@pytest.mark.parametrize(
    ("title_similarity", "same_category", "same_author", "expected"),
    [
        (0.9, True, True, "Same category and author"),
        (0.9, True, False, "Same category"),
        (0.9, False, True, "Same author"),
        (0.51, False, False, "Similar title"),
        (0.5, False, False, "Similar book"),
    ],
)
def test_similar_reason(
    title_similarity: float, same_category: bool, same_author: bool, expected: str
) -> None:
    assert similar_reason(title_similarity, same_category, same_author) == expected


def test_personalized_ranks_related_book_first(javascript_catalog: list[CatalogBook]) -> None:
    book_a = javascript_catalog[0]
    engine, catalog, _, _ = make_engine(javascript_catalog, wishlist_books=[book_a])

    result = engine.personalized(CustomerId("cus-1"), limit=8)

    assert result.algorithm == Algorithm.CONTENT_BASED
    assert [item.book_id for item in result.entries] == ["B", "C"]
    assert result.entries[0].score > result.entries[1].score
    assert all(item.reason == REASON_PERSONALIZED for item in result.entries)
    assert all(0.0 <= item.score <= 1.0 for item in result.entries)

    book_filter = catalog.find_active_books.call_args.args[0]
    assert book_filter.exclude_ids == frozenset({"A"})
    assert catalog.find_active_books.call_args.kwargs["limit"] == 100


def test_personalized_never_returns_interacted_books(
    javascript_catalog: list[CatalogBook],
) -> None:
    book_a, book_b, _ = javascript_catalog
    engine, _, _, _ = make_engine(
        javascript_catalog, wishlist_books=[book_a], ordered_books=[book_b, book_a]
    )

    result = engine.personalized(CustomerId("cus-1"), limit=8)

    assert [item.book_id for item in result.entries] == ["C"]


def test_personalized_scores_are_rounded_to_four_decimals(
    javascript_catalog: list[CatalogBook],
) -> None:
    engine, _, _, _ = make_engine(javascript_catalog, wishlist_books=[javascript_catalog[0]])

    result = engine.personalized(CustomerId("cus-1"), limit=8)

    for item in result.entries:
        assert item.score == round(item.score, 4)


def test_personalized_without_history_serves_trending() -> None:
    books = [
        make_book("p1", "Quiet Book", purchase_count=1),
        make_book("p2", "Loud Book", purchase_count=50),
    ]
    engine, _, orders, wishlist = make_engine(books)

    result = engine.personalized(CustomerId("new-customer"), limit=8)

    assert result.algorithm == Algorithm.POPULARITY
    assert [item.book_id for item in result.entries] == ["p2", "p1"]
    assert all(item.reason == REASON_TRENDING for item in result.entries)
    wishlist.find_wishlist_books.assert_called_once_with("new-customer")
    orders.find_delivered_ordered_books.assert_called_once_with("new-customer", recent_limit=10)


def test_interacted_books_deduplicates_wishlist_first(
    javascript_catalog: list[CatalogBook],
) -> None:
    book_a, book_b, book_c = javascript_catalog
    engine, _, _, _ = make_engine(
        javascript_catalog, wishlist_books=[book_b], ordered_books=[book_a, book_b, book_c]
    )

    books = engine.interacted_books(CustomerId("cus-1"))

    assert [book.id for book in books] == ["B", "A", "C"]


def test_personalized_respects_limit(javascript_catalog: list[CatalogBook]) -> None:
    engine, _, _, _ = make_engine(javascript_catalog, wishlist_books=[javascript_catalog[0]])

    result = engine.personalized(CustomerId("cus-1"), limit=1)

    assert [item.book_id for item in result.entries] == ["B"]


def test_similar_prefers_same_category_and_author() -> None:
    source = make_book("S", "Clean Code", category=PROGRAMMING, author=AUTHOR_X)
    books = [
        source,
        make_book("both", "Clean Architecture", category=PROGRAMMING, author=AUTHOR_X),
        make_book("cat", "Refactoring", category=PROGRAMMING, author=AUTHOR_Y),
        make_book("auth", "Cooking for Coders", category=COOKING, author=AUTHOR_X),
        make_book("none", "Unrelated", category=COOKING, author=AUTHOR_Y),
    ]
    engine, _, _, _ = make_engine(books)

    result = engine.similar(BookId("S"), limit=8)

    assert result.algorithm == Algorithm.HYBRID
    assert [item.book_id for item in result.entries] == ["both", "cat", "auth"]
    reasons = {item.book_id: item.reason for item in result.entries}
    assert reasons == {
        "both": "Same category and author",
        "cat": "Same category",
        "auth": "Same author",
    }
    assert result.entries[0].score > 0.5


def test_similar_score_combines_title_similarity_and_bonuses() -> None:
    source = make_book("S", "Clean Code", category=PROGRAMMING, author=AUTHOR_X)
    twin = make_book("T", "Clean Code", category=PROGRAMMING, author=AUTHOR_X)
    engine, _, _, _ = make_engine([source, twin])

    result = engine.similar(BookId("S"), limit=8)

    assert len(result.entries) == 1
    assert result.entries[0].score == pytest.approx(0.5 + 0.3 + 0.2)


def test_similar_never_contains_source() -> None:
    source = make_book("S", "Clean Code", category=PROGRAMMING)
    other = make_book("O", "Clean Code 2", category=PROGRAMMING)
    engine, _, _, _ = make_engine([source, other])

    result = engine.similar(BookId("S"), limit=8)

    assert "S" not in [item.book_id for item in result.entries]


def test_similar_missing_source_returns_empty_list() -> None:
    engine, catalog, _, _ = make_engine([make_book("x", "X")])

    result = engine.similar(BookId("missing"), limit=8)

    assert result.entries == []
    catalog.find_active_books.assert_not_called()


def test_similar_without_candidates_serves_trending_without_source() -> None:
    source = make_book(
        "S", "Lonely Book", category=PROGRAMMING, author=AUTHOR_X, purchase_count=90
    )
    other = make_book("O", "Other Book", category=COOKING, author=AUTHOR_Y, purchase_count=3)
    engine, _, _, _ = make_engine([source, other])

    result = engine.similar(BookId("S"), limit=8)

    assert result.algorithm == Algorithm.POPULARITY
    assert [item.book_id for item in result.entries] == ["O"]


def test_trending_ranks_by_popularity() -> None:
    books = [
        make_book("low", "Low", purchase_count=1, average_rating=1.0),
        make_book("high", "High", purchase_count=100, average_rating=4.5, view_count=10_000),
        make_book("mid", "Mid", purchase_count=10, average_rating=5.0),
        make_book("gone", "Gone", purchase_count=1000, is_active=False),
    ]
    engine, _, _, _ = make_engine(books)

    result = engine.trending(limit=8)

    assert result.algorithm == Algorithm.POPULARITY
    assert [item.book_id for item in result.entries] == ["high", "mid", "low"]
    assert result.entries[0].score == pytest.approx(63.7)


def test_trending_empty_catalog() -> None:
    engine, _, _, _ = make_engine([])

    assert engine.trending(limit=8).entries == []
