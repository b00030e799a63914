from datetime import UTC, datetime

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from bookstore_recs.models import (
    Author,
    Book,
    Category,
    Order,
    OrderItem,
    RecommendationCache,
    WishlistItem,
)

BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


class DataFactory:
    def __init__(self, session: Session):
        self.session = session

    def create_category(self, id: str, name: str) -> Category:
        c = Category(id=id, name=name)
        self.session.add(c)
        return c

    def create_author(self, id: str, name: str) -> Author:
        a = Author(id=id, name=name)
        self.session.add(a)
        return a

    def create_book(self, id: str, title: str = "Test Book", **kwargs) -> Book:
        b = Book(id=id, title=title, **kwargs)
        self.session.add(b)
        return b

    def create_order(
        self,
        id: str,
        customer_id: str,
        book_ids: list[str],
        status: str = "delivered",
        created_at: datetime = BASE_TIME,
    ) -> Order:
        o = Order(id=id, customer_id=customer_id, status=status, created_at=created_at)
        o.items = [OrderItem(item_type="book", book_id=book_id) for book_id in book_ids]
        self.session.add(o)
        return o

    def add_to_wishlist(
        self, customer_id: str, book_id: str, added_at: datetime = BASE_TIME
    ) -> WishlistItem:
        w = WishlistItem(customer_id=customer_id, book_id=book_id, added_at=added_at)
        self.session.add(w)
        return w

    def cache_rows(self) -> list[RecommendationCache]:
        return list(
            self.session.execute(select(RecommendationCache).order_by(RecommendationCache.id))
            .scalars()
            .all()
        )

    def commit(self):
        self.session.commit()


@pytest.fixture
def test_data(db_session: Session) -> DataFactory:
    return DataFactory(db_session)


@pytest.fixture
def programming_catalog(test_data: DataFactory) -> DataFactory:
    test_data.create_category("cat-prog", "Lập trình")
    test_data.create_category("cat-cook", "Ẩm thực")
    test_data.create_author("auth-x", "Nguyễn Văn X")
    test_data.create_author("auth-y", "Trần Thị Y")
    test_data.create_book(
        "A",
        "Lập Trình JavaScript",
        category_id="cat-prog",
        author_id="auth-x",
        purchase_count=20,
        average_rating=4.0,
    )
    test_data.create_book(
        "B",
        "JavaScript Nâng Cao",
        category_id="cat-prog",
        author_id="auth-y",
        purchase_count=5,
        average_rating=4.5,
    )
    test_data.create_book(
        "C",
        "Nấu Ăn Ngon",
        category_id="cat-cook",
        author_id="auth-y",
        purchase_count=50,
        average_rating=3.0,
    )
    test_data.create_book("D", "Retired Title", category_id="cat-prog", is_active=False)
    test_data.commit()
    return test_data
