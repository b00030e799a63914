from sqlalchemy import select
from sqlalchemy.orm import Session

from bookstore_recs.domain import CatalogBook, CustomerId
from bookstore_recs.models import Book, WishlistItem
from bookstore_recs.repositories.books_repository import to_catalog_book


class WishlistRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_wishlist_books(self, customer_id: CustomerId) -> list[CatalogBook]:
        stmt = (
            select(Book)
            .join(WishlistItem, WishlistItem.book_id == Book.id)
            .where(WishlistItem.customer_id == customer_id)
            .order_by(WishlistItem.added_at, WishlistItem.book_id)
        )
        return [to_catalog_book(book) for book in self.session.scalars(stmt).all()]
