"""Create users and travel_stories tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Initial schema: accounts and their travel stories.
How:   Mirrors travelstory/models/user.py and travelstory/models/travel_story.py.

Rollback: downgrade() drops both tables (destructive — all data lost).
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
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column(
            "email",
            sa.String(320),
            nullable=False,
            comment="Login identifier; unique across accounts",
        ),
        sa.Column("password_hash", sa.String(128), nullable=False),
        sa.Column("created_on", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        # Closes the check-then-insert race on registration
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "travel_stories",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("story", sa.Text(), nullable=False),
        sa.Column(
            "visible_location",
            sa.JSON(),
            nullable=False,
            comment="Ordered list of place names",
        ),
        sa.Column("is_favorite", sa.Boolean(), nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            nullable=False,
            comment="Owning user; immutable",
        ),
        sa.Column("created_on", sa.DateTime(timezone=True), nullable=False),
        sa.Column("image_url", sa.String(1024), nullable=False),
        sa.Column("visited_date", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    # Every story query filters on the owner
    op.create_index("idx_travel_stories_user_id", "travel_stories", ["user_id"])


def downgrade() -> None:
    op.drop_index("idx_travel_stories_user_id", table_name="travel_stories")
    op.drop_table("travel_stories")
    op.drop_table("users")
