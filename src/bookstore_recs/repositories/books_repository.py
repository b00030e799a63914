from collections.abc import Iterable

from sqlalchemy import desc, or_, select
from sqlalchemy.orm import Session

from bookstore_recs.domain import BookFilter, BookId, CatalogBook, NamedRef, Reference
from bookstore_recs.models import Book


def to_catalog_book(book: Book) -> CatalogBook:
    category: Reference | None = book.category_id
    if book.category is not None:
        category = NamedRef(id=book.category.id, name=book.category.name)

    author: Reference | None = book.author_id
    if book.author is not None:
        author = NamedRef(id=book.author.id, name=book.author.name)

    return CatalogBook(
        id=BookId(book.id),
        title=book.title,
        description=book.description,
        category=category,
        author=author,
        average_rating=float(book.average_rating or 0.0),
        view_count=book.view_count or 0,
        purchase_count=book.purchase_count or 0,
        is_active=book.is_active,
    )


class BooksRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_book_by_id(self, book_id: BookId) -> CatalogBook | None:
        book = self.session.get(Book, book_id)
        if book is None:
            return None
        return to_catalog_book(book)

    def find_books_by_ids(self, book_ids: Iterable[BookId]) -> dict[BookId, CatalogBook]:
        ids = list(dict.fromkeys(book_ids))
        if not ids:
            return {}
        books = self.session.scalars(select(Book).where(Book.id.in_(ids))).all()
        return {BookId(book.id): to_catalog_book(book) for book in books}

    def find_active_books(self, book_filter: BookFilter, limit: int) -> list[CatalogBook]:
        """
        Returns up to ``limit`` active books in a deterministic order.

        Category and author conditions are OR-ed. Popularity ordering is purchases,
        then rating, then id; otherwise books come back by id.
        """
        stmt = select(Book).where(Book.is_active.is_(True))

        if book_filter.exclude_ids:
            stmt = stmt.where(Book.id.not_in(sorted(book_filter.exclude_ids)))

        conditions = []
        if book_filter.category_id is not None:
            conditions.append(Book.category_id == book_filter.category_id)
        if book_filter.author_id is not None:
            conditions.append(Book.author_id == book_filter.author_id)
        if conditions:
            stmt = stmt.where(or_(*conditions))

        if book_filter.by_popularity:
            stmt = stmt.order_by(desc(Book.purchase_count), desc(Book.average_rating), Book.id)
        else:
            stmt = stmt.order_by(Book.id)

        books = self.session.scalars(stmt.limit(limit)).all()
        return [to_catalog_book(book) for book in books]
