from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookstore_recs.database import Base
from bookstore_recs.domain import Algorithm, RecommendationType

ORDER_STATUSES = (
    "pending",
    "confirmed",
    "preparing",
    "shipping",
    "delivered",
    "cancelled",
    "returned",
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _str_enum(enum_cls: type) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        create_constraint=True,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class Author(Base):
    __tablename__ = "authors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class Book(Base):
    __tablename__ = "books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    category_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    author_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("authors.id", ondelete="SET NULL"), nullable=True, index=True
    )

    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    purchase_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    category: Mapped[Category | None] = relationship(lazy="joined")
    author: Mapped[Author | None] = relationship(lazy="joined")

    __table_args__ = (
        CheckConstraint("average_rating BETWEEN 0 AND 5", name="ck_books_average_rating_0_5"),
        CheckConstraint("view_count >= 0", name="ck_books_view_count_non_negative"),
        CheckConstraint("purchase_count >= 0", name="ck_books_purchase_count_non_negative"),
        Index("idx_books_popularity", "purchase_count", "average_rating"),
    )


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{s}'" for s in ORDER_STATUSES)),
            name="ck_orders_status",
        ),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_type: Mapped[str] = mapped_column(Text, nullable=False, default="book")
    book_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("books.id", ondelete="SET NULL"), nullable=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    order: Mapped[Order] = relationship(back_populates="items")

    __table_args__ = (
        CheckConstraint("item_type IN ('book', 'combo')", name="ck_order_items_type"),
    )


class WishlistItem(Base):
    __tablename__ = "wishlist_items"

    customer_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id", ondelete="CASCADE"), primary_key=True
    )
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class RecommendationCache(Base):
    __tablename__ = "recommendation_cache"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # key: NULL customer means a shared cache (similar / trending)
    customer_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    recommendation_type: Mapped[RecommendationType] = mapped_column(
        _str_enum(RecommendationType), nullable=False, index=True
    )
    source_book_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    # content
    recommended_books: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    algorithm: Mapped[Algorithm] = mapped_column(_str_enum(Algorithm), nullable=False)

    # validity window
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    # engagement
    view_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    click_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    conversion_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    __table_args__ = (
        CheckConstraint("view_count >= 0", name="ck_recommendation_cache_views"),
        CheckConstraint("click_count >= 0", name="ck_recommendation_cache_clicks"),
        CheckConstraint("conversion_count >= 0", name="ck_recommendation_cache_conversions"),
        Index(
            "idx_recommendation_cache_lookup", "customer_id", "recommendation_type", "expires_at"
        ),
        Index("idx_recommendation_cache_customer_source", "customer_id", "source_book_id"),
    )

    def conversion_rate(self) -> float:
        """Conversions per click, as a percentage."""
        if not self.click_count:
            return 0.0
        return (self.conversion_count / self.click_count) * 100
