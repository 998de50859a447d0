"""Initial schema: users, books, loans, security_events

Revision ID: 4f2a9c1d7e10
Revises:
Create Date: 2026-10-19 10:12:41.118204

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4f2a9c1d7e10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("users") as batch:
        batch.create_index("ix_users_email", ["email"], unique=True)

    op.create_table(
        "books",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("author", sa.String(length=255), nullable=False),
        sa.Column("publisher", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("total_quantity", sa.Integer(), nullable=False),
        sa.Column("available_quantity", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("total_quantity >= 0", name="ck_books_total_non_negative"),
        sa.CheckConstraint("available_quantity >= 0", name="ck_books_available_non_negative"),
        sa.CheckConstraint("available_quantity <= total_quantity", name="ck_books_available_le_total"),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("books") as batch:
        batch.create_index("ix_books_title", ["title"])
        batch.create_index("ix_books_author", ["author"])
        batch.create_index("ix_books_category", ["category"])

    op.create_table(
        "loans",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("book_id", sa.Integer(), nullable=True),
        sa.Column("student_name", sa.String(length=255), nullable=False),
        sa.Column("student_class", sa.String(length=50), nullable=False),
        sa.Column("loan_date", sa.Date(), nullable=False),
        sa.Column("expected_return_date", sa.Date(), nullable=False),
        sa.Column("actual_return_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("loans") as batch:
        batch.create_index("ix_loans_book_id", ["book_id"])
        batch.create_index("ix_loans_student_name", ["student_name"])
        batch.create_index("ix_loans_loan_date", ["loan_date"])
        batch.create_index("ix_loans_expected_return_date", ["expected_return_date"])
        batch.create_index("ix_loans_created_by", ["created_by"])

    op.create_table(
        "security_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("event_type", sa.String(length=32), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=False),
        sa.Column("endpoint", sa.String(length=128), nullable=True),
        sa.Column("blueprint", sa.String(length=64), nullable=True),
        sa.Column("method", sa.String(length=10), nullable=True),
        sa.Column("path", sa.String(length=255), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=True),
        sa.Column("ip", sa.String(length=64), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("security_events") as batch:
        for col in ("created_at", "event_type", "status_code", "endpoint",
                    "blueprint", "user_id", "role", "ip"):
            batch.create_index(f"ix_security_events_{col}", [col])


def downgrade():
    op.drop_table("security_events")
    op.drop_table("loans")
    op.drop_table("books")
    op.drop_table("users")
