# alembic/versions/001_podcast_scheduling.py
"""Podcast room scheduling schema

Revision ID: 001_podcast_scheduling
Revises:
Create Date: 2025-01-15 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_podcast_scheduling"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

RESERVATION_STATUSES = ("pending", "confirmed", "completed", "cancelled", "rejected")


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def _catalog_columns() -> list:
    return [
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    ]


def upgrade() -> None:
    """Create catalog, reservation, configuration and audit tables."""
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"

    # Reference catalog
    op.create_table(
        "podcast_decors",
        *_catalog_columns(),
        sa.Column("image_url", sa.String(1024), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "podcast_themes",
        *_catalog_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "podcast_pack_offers",
        *_catalog_columns(),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("duration_min", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("base_price >= 0", name="ck_podcast_pack_offers_price_non_negative"),
        sa.CheckConstraint("duration_min > 0", name="ck_podcast_pack_offers_duration_positive"),
    )
    op.create_table(
        "podcast_supplements",
        *_catalog_columns(),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("price >= 0", name="ck_podcast_supplements_price_non_negative"),
    )

    # Reservations
    status_values = ", ".join(f"'{value}'" for value in RESERVATION_STATUSES)
    op.create_table(
        "podcast_reservations",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("confirmation_id", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_hours", sa.Integer(), nullable=False),
        sa.Column("timezone", sa.String(100), nullable=False),
        sa.Column("decor_id", sa.String(26), nullable=True),
        sa.Column("pack_offer_id", sa.String(26), nullable=True),
        sa.Column("theme_id", sa.String(26), nullable=True),
        sa.Column("custom_theme", sa.String(255), nullable=True),
        sa.Column("podcast_description", sa.Text(), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_email", sa.String(255), nullable=False),
        sa.Column("customer_phone", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("assigned_admin_id", sa.String(26), nullable=True),
        sa.Column("confirmed_by_admin_id", sa.String(26), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["decor_id"], ["podcast_decors.id"]),
        sa.ForeignKeyConstraint(["pack_offer_id"], ["podcast_pack_offers.id"]),
        sa.ForeignKeyConstraint(["theme_id"], ["podcast_themes.id"]),
        sa.UniqueConstraint("confirmation_id"),
        sa.CheckConstraint(f"status IN ({status_values})", name="ck_podcast_reservations_status"),
        sa.CheckConstraint("duration_hours >= 1", name="ck_podcast_reservations_duration_positive"),
        sa.CheckConstraint("end_at > start_at", name="ck_podcast_reservations_time_order"),
        sa.CheckConstraint("total_price >= 0", name="ck_podcast_reservations_price_non_negative"),
    )
    op.create_index("ix_podcast_reservations_status", "podcast_reservations", ["status"])
    op.create_index(
        "ix_podcast_reservations_status_start", "podcast_reservations", ["status", "start_at"]
    )

    if is_postgres:
        # Single room: no two confirmed reservations may share any instant.
        op.execute(
            """
            ALTER TABLE podcast_reservations
              ADD CONSTRAINT podcast_reservations_no_overlap
              EXCLUDE USING gist (
                tstzrange(start_at, end_at, '[)') WITH &&
              )
              WHERE (status = 'confirmed')
            """
        )

    op.create_table(
        "podcast_reservation_supplements",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("reservation_id", sa.String(26), nullable=False),
        sa.Column("supplement_id", sa.String(26), nullable=False),
        sa.Column("price_at_booking", sa.Numeric(10, 2), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["reservation_id"], ["podcast_reservations.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["supplement_id"], ["podcast_supplements.id"]),
        sa.CheckConstraint(
            "price_at_booking >= 0", name="ck_podcast_reservation_supplements_price_non_negative"
        ),
    )
    op.create_index(
        "ix_podcast_reservation_supplements_reservation_id",
        "podcast_reservation_supplements",
        ["reservation_id"],
    )

    op.create_table(
        "reservation_status_history",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("reservation_id", sa.String(26), nullable=False),
        sa.Column("old_status", sa.String(20), nullable=True),
        sa.Column("new_status", sa.String(20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("changed_by", sa.String(26), nullable=True),
        sa.Column(
            "changed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["reservation_id"], ["podcast_reservations.id"], ondelete="CASCADE"
        ),
    )
    op.create_index(
        "ix_reservation_status_history_reservation_id",
        "reservation_status_history",
        ["reservation_id"],
    )

    # Configuration and counters
    op.create_table(
        "confirmation_sequences",
        sa.Column("year", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("last_value", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("year"),
        sa.CheckConstraint("last_value >= 0", name="ck_confirmation_sequences_non_negative"),
    )
    op.create_table(
        "availability_settings",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("slot_duration_min", sa.Integer(), nullable=False),
        sa.Column("opening_hours", sa.JSON(), nullable=False),
        sa.Column("updated_by_admin_id", sa.String(26), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("slot_duration_min > 0", name="ck_availability_settings_slot_positive"),
    )


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_table("availability_settings")
    op.drop_table("confirmation_sequences")
    op.drop_index(
        "ix_reservation_status_history_reservation_id", table_name="reservation_status_history"
    )
    op.drop_table("reservation_status_history")
    op.drop_index(
        "ix_podcast_reservation_supplements_reservation_id",
        table_name="podcast_reservation_supplements",
    )
    op.drop_table("podcast_reservation_supplements")
    op.drop_index("ix_podcast_reservations_status_start", table_name="podcast_reservations")
    op.drop_index("ix_podcast_reservations_status", table_name="podcast_reservations")
    op.drop_table("podcast_reservations")
    op.drop_table("podcast_supplements")
    op.drop_table("podcast_pack_offers")
    op.drop_table("podcast_themes")
    op.drop_table("podcast_decors")
