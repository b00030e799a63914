from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from bookstore_recs.domain import BookId, CatalogBook, CustomerId
from bookstore_recs.models import Book, Order
from bookstore_recs.repositories.books_repository import to_catalog_book


class OrdersRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_delivered_ordered_books(
        self, customer_id: CustomerId, recent_limit: int = 10
    ) -> list[CatalogBook]:
        """
        Books from the customer's most recent delivered orders, newest order first,
        deduplicated by id. Combo lines are skipped.
        """
        stmt = (
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.customer_id == customer_id, Order.status == "delivered")
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(recent_limit)
        )
        orders = self.session.scalars(stmt).all()

        book_ids: list[str] = []
        for order in orders:
            for item in order.items:
                if item.item_type == "book" and item.book_id and item.book_id not in book_ids:
                    book_ids.append(item.book_id)

        if not book_ids:
            return []

        books = self.session.scalars(select(Book).where(Book.id.in_(book_ids))).all()
        by_id = {book.id: book for book in books}
        return [to_catalog_book(by_id[BookId(bid)]) for bid in book_ids if bid in by_id]
