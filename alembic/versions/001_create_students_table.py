"""Create students table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates the `students` table holding records and their picture filenames.
How:   Portable column types (Uuid, DateTime with timezone) so the same
       migration runs on PostgreSQL and SQLite.

Rollback: downgrade() drops the table. Uploaded files are not touched.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "students",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("gender", sa.String(20), nullable=True),
        # Filename inside the upload directory, NULL when no picture
        sa.Column("profile_pic", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # Listing pages are ordered by creation time
    op.create_index("idx_students_created_at", "students", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_students_created_at", table_name="students")
    op.drop_table("students")
