"""create catalog, order, wishlist and recommendation cache tables

Revision ID: 3c9a1e7b52d4
Revises:
Create Date: 2026-10-19 09:12:31.402118

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3c9a1e7b52d4"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

RECOMMENDATION_TYPES = (
    "personalized",
    "similar",
    "trending",
    "frequently_bought_together",
    "combo_suggestion",
)
ALGORITHMS = ("content_based", "hybrid", "popularity")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "categories",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "authors",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "books",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category_id", sa.String(length=36), nullable=True),
        sa.Column("author_id", sa.String(length=36), nullable=True),
        sa.Column("average_rating", sa.Float(), nullable=False),
        sa.Column("view_count", sa.Integer(), nullable=False),
        sa.Column("purchase_count", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("average_rating BETWEEN 0 AND 5", name="ck_books_average_rating_0_5"),
        sa.CheckConstraint("view_count >= 0", name="ck_books_view_count_non_negative"),
        sa.CheckConstraint("purchase_count >= 0", name="ck_books_purchase_count_non_negative"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["author_id"], ["authors.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_books_category_id"), "books", ["category_id"], unique=False)
    op.create_index(op.f("ix_books_author_id"), "books", ["author_id"], unique=False)
    op.create_index(
        "idx_books_popularity", "books", ["purchase_count", "average_rating"], unique=False
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=64), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'preparing', 'shipping', 'delivered', "
            "'cancelled', 'returned')",
            name="ck_orders_status",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_orders_customer_id"), "orders", ["customer_id"], unique=False)

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("order_id", sa.String(length=36), nullable=False),
        sa.Column("item_type", sa.Text(), nullable=False),
        sa.Column("book_id", sa.String(length=36), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.CheckConstraint("item_type IN ('book', 'combo')", name="ck_order_items_type"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_order_items_order_id"), "order_items", ["order_id"], unique=False)

    op.create_table(
        "wishlist_items",
        sa.Column("customer_id", sa.String(length=64), nullable=False),
        sa.Column("book_id", sa.String(length=36), nullable=False),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("customer_id", "book_id"),
    )

    op.create_table(
        "recommendation_cache",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("customer_id", sa.String(length=64), nullable=True),
        sa.Column(
            "recommendation_type",
            sa.Enum(
                *RECOMMENDATION_TYPES,
                name="recommendationtype",
                native_enum=False,
                create_constraint=True,
                length=32,
            ),
            nullable=False,
        ),
        sa.Column("source_book_id", sa.String(length=36), nullable=True),
        sa.Column("recommended_books", sa.JSON(), nullable=False),
        sa.Column(
            "algorithm",
            sa.Enum(
                *ALGORITHMS,
                name="algorithm",
                native_enum=False,
                create_constraint=True,
                length=32,
            ),
            nullable=False,
        ),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("view_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("click_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("conversion_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.CheckConstraint("view_count >= 0", name="ck_recommendation_cache_views"),
        sa.CheckConstraint("click_count >= 0", name="ck_recommendation_cache_clicks"),
        sa.CheckConstraint("conversion_count >= 0", name="ck_recommendation_cache_conversions"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_recommendation_cache_customer_id"),
        "recommendation_cache",
        ["customer_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_recommendation_cache_recommendation_type"),
        "recommendation_cache",
        ["recommendation_type"],
        unique=False,
    )
    op.create_index(
        op.f("ix_recommendation_cache_source_book_id"),
        "recommendation_cache",
        ["source_book_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_recommendation_cache_generated_at"),
        "recommendation_cache",
        ["generated_at"],
        unique=False,
    )
    op.create_index(
        op.f("ix_recommendation_cache_expires_at"),
        "recommendation_cache",
        ["expires_at"],
        unique=False,
    )
    op.create_index(
        "idx_recommendation_cache_lookup",
        "recommendation_cache",
        ["customer_id", "recommendation_type", "expires_at"],
        unique=False,
    )
    op.create_index(
        "idx_recommendation_cache_customer_source",
        "recommendation_cache",
        ["customer_id", "source_book_id"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_recommendation_cache_customer_source", table_name="recommendation_cache")
    op.drop_index("idx_recommendation_cache_lookup", table_name="recommendation_cache")
    op.drop_index(op.f("ix_recommendation_cache_expires_at"), table_name="recommendation_cache")
    op.drop_index(op.f("ix_recommendation_cache_generated_at"), table_name="recommendation_cache")
    op.drop_index(
        op.f("ix_recommendation_cache_source_book_id"), table_name="recommendation_cache"
    )
    op.drop_index(
        op.f("ix_recommendation_cache_recommendation_type"), table_name="recommendation_cache"
    )
    op.drop_index(op.f("ix_recommendation_cache_customer_id"), table_name="recommendation_cache")
    op.drop_table("recommendation_cache")
    op.drop_table("wishlist_items")
    op.drop_index(op.f("ix_order_items_order_id"), table_name="order_items")
    op.drop_table("order_items")
    op.drop_index(op.f("ix_orders_customer_id"), table_name="orders")
    op.drop_table("orders")
    op.drop_index("idx_books_popularity", table_name="books")
    op.drop_index(op.f("ix_books_author_id"), table_name="books")
    op.drop_index(op.f("ix_books_category_id"), table_name="books")
    op.drop_table("books")
    op.drop_table("authors")
    op.drop_table("categories")
