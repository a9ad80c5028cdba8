"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for Chapterhouse:
users, chapters, artists, bookings, booking_dates, requests.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enum columns store member names, matching SQLAlchemy's Enum default
role_enum = sa.Enum("admin", "musician", "audience", "chapter_director", name="role")
image_preference_enum = sa.Enum("custom", "google", name="imagepreference")
artist_status_enum = sa.Enum("pending", "approved", name="artiststatus")
booking_status_enum = sa.Enum("pending", "approved", name="bookingstatus")
request_type_enum = sa.Enum(
    "role_change", "user_edit", "artist_edit", "artist_add", "booking_inquiry", "booking_edit",
    name="requesttype",
)
request_status_enum = sa.Enum("pending", "approved", "rejected", name="requeststatus")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(150), nullable=True),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("image", sa.String(500), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("chapters", sa.JSON, nullable=True),
        sa.Column("director_chapters", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- chapters ---
    op.create_table(
        "chapters",
        sa.Column("chapter_id", sa.String(36), primary_key=True),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("image", sa.String(500), nullable=True),
    )

    # --- artists ---
    op.create_table(
        "artists",
        sa.Column("artist_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("image", sa.String(500), nullable=True),
        sa.Column("image_preference", image_preference_enum, nullable=False),
        sa.Column("owner_id", sa.String(36), nullable=False),
        sa.Column("members", sa.JSON, nullable=False),
        sa.Column("status", artist_status_enum, nullable=False),
        sa.Column("chapters", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_artists_owner_id", "artists", ["owner_id"])

    # --- bookings ---
    op.create_table(
        "bookings",
        sa.Column("booking_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("questions", sa.Text, nullable=True),
        sa.Column("image", sa.String(500), nullable=True),
        sa.Column("image_preference", image_preference_enum, nullable=False),
        sa.Column("created_by", sa.String(36), nullable=False),
        sa.Column("status", booking_status_enum, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_bookings_created_by", "bookings", ["created_by"])

    # --- booking_dates ---
    op.create_table(
        "booking_dates",
        sa.Column("date_id", sa.String(36), primary_key=True),
        sa.Column(
            "booking_id", sa.String(36),
            sa.ForeignKey("bookings.booking_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("date", sa.String(20), nullable=False),
        sa.Column("time", sa.String(20), nullable=True),
        sa.Column("duration", sa.String(50), nullable=True),
        sa.Column("event_type", sa.String(100), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("budget", sa.String(100), nullable=True),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default="0"),
    )
    op.create_index("ix_booking_dates_booking_id", "booking_dates", ["booking_id"])

    # --- requests ---
    op.create_table(
        "requests",
        sa.Column("request_id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("request_type", request_type_enum, nullable=False),
        sa.Column("target_id", sa.String(36), nullable=True),
        sa.Column("data", sa.Text, nullable=True),
        sa.Column("status", request_status_enum, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_requests_user_id", "requests", ["user_id"])
    op.create_index("ix_requests_target_id", "requests", ["target_id"])
    op.create_index("ix_requests_status", "requests", ["status"])


def downgrade() -> None:
    op.drop_table("requests")
    op.drop_table("booking_dates")
    op.drop_table("bookings")
    op.drop_table("artists")
    op.drop_table("chapters")
    op.drop_table("users")
