"""create schools table

Revision ID: 3b7c9d1e2f40
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration creates the schools directory table with:
1. Unique constraints on email and contact (the authoritative duplicate guard)
2. Indexes on city, state, name and created_at for listing and filtering
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3b7c9d1e2f40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the schools table."""
    op.create_table(
        "schools",
        # Primary key and timestamps (from BaseModel)
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        # School details
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("city", sa.String(length=50), nullable=False),
        sa.Column("state", sa.String(length=100), nullable=False),
        # Contact
        sa.Column("contact", sa.String(length=10), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        # Image URL
        sa.Column("image", sa.String(length=500), nullable=True),
        # Constraints
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_schools_email"),
        sa.UniqueConstraint("contact", name="uq_schools_contact"),
    )

    op.create_index("ix_schools_city", "schools", ["city"], unique=False)
    op.create_index("ix_schools_state", "schools", ["state"], unique=False)
    op.create_index("ix_schools_name", "schools", ["name"], unique=False)
    op.create_index("ix_schools_created_at", "schools", ["created_at"], unique=False)


def downgrade() -> None:
    """Drop the schools table."""
    op.drop_index("ix_schools_created_at", table_name="schools")
    op.drop_index("ix_schools_name", table_name="schools")
    op.drop_index("ix_schools_state", table_name="schools")
    op.drop_index("ix_schools_city", table_name="schools")
    op.drop_table("schools")
