"""catalogue baseline

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-18

Authors, publishers and books. Books reference authors and publishers
with ON DELETE RESTRICT, so a referenced row cannot be removed.
"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_baseline"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "authors",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("bio", sa.String(250), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_authors_last_name", "authors", ["last_name"])

    op.create_table(
        "publishers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("country", sa.String(60), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_publishers_name"),
    )

    op.create_table(
        "books",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(150), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("isbn", sa.String(20), nullable=False),
        sa.Column("summary", sa.String(500), nullable=True),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("author_id", sa.Integer(), nullable=True),
        sa.Column("publisher_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("isbn", name="uq_books_isbn"),
        sa.ForeignKeyConstraint(
            ["author_id"], ["authors.id"], ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["publisher_id"], ["publishers.id"], ondelete="RESTRICT"
        ),
    )
    op.create_index("ix_books_author_id", "books", ["author_id"])
    op.create_index("ix_books_publisher_id", "books", ["publisher_id"])


def downgrade() -> None:
    op.drop_index("ix_books_publisher_id", table_name="books")
    op.drop_index("ix_books_author_id", table_name="books")
    op.drop_table("books")
    op.drop_table("publishers")
    op.drop_index("ix_authors_last_name", table_name="authors")
    op.drop_table("authors")
