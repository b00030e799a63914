from collections.abc import Iterable
from typing import Protocol

from bookstore_recs.domain import BookFilter, BookId, CatalogBook, CustomerId


class CatalogReader(Protocol):
    def find_active_books(self, book_filter: BookFilter, limit: int) -> list[CatalogBook]: ...

    def find_book_by_id(self, book_id: BookId) -> CatalogBook | None: ...

    def find_books_by_ids(self, book_ids: Iterable[BookId]) -> dict[BookId, CatalogBook]: ...


class OrderHistoryReader(Protocol):
    def find_delivered_ordered_books(
        self, customer_id: CustomerId, recent_limit: int = 10
    ) -> list[CatalogBook]: ...


class WishlistReader(Protocol):
    def find_wishlist_books(self, customer_id: CustomerId) -> list[CatalogBook]: ...
