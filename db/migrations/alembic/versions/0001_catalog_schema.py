"""catalog schema

Revision ID: 0001_catalog_schema
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001_catalog_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "accommodations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("room_number", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("images", postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column("album_url", sa.Text(), nullable=True),
        sa.Column("is_blocked", sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column("block_reason", sa.Text(), nullable=True),
        sa.Column("block_note", sa.Text(), nullable=True),
        sa.Column("block_period", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("capacity >= 1", name="ck_accommodations_capacity"),
        sa.CheckConstraint(
            "category IN ('Standard', 'Luxo', 'Super Luxo', 'De Luxe')", name="ck_accommodations_category"
        ),
    )

    op.create_table(
        "price_periods",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("is_holiday", sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column("minimum_stay", sa.Integer(), nullable=True, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("end_date >= start_date", name="ck_price_periods_range"),
        sa.CheckConstraint("minimum_stay IS NULL OR minimum_stay >= 1", name="ck_price_periods_minimum_stay"),
    )

    op.create_table(
        "prices_by_category_and_people",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("number_of_people", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.Text(), nullable=False),
        sa.Column(
            "period_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("price_periods.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("price_per_night", sa.Numeric(10, 2), nullable=False),
        sa.Column("min_nights", sa.Integer(), nullable=True, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("number_of_people >= 1", name="ck_category_prices_people"),
        sa.CheckConstraint("price_per_night >= 0", name="ck_category_prices_price"),
        sa.CheckConstraint("payment_method IN ('pix', 'credit_card')", name="ck_category_prices_payment_method"),
    )

    op.create_table(
        "areas",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("area_type", sa.Text(), nullable=True),
        sa.Column("accommodation_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("accommodations.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "maintenance_orders",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("order_number", sa.Text(), nullable=False),
        sa.Column("area_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("areas.id"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("priority", sa.Text(), nullable=False, server_default="medium"),
        sa.Column("status", sa.Text(), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('pending', 'in_progress', 'completed', 'cancelled')", name="ck_maintenance_orders_status"
        ),
    )

    op.create_index("idx_accommodations_capacity", "accommodations", ["capacity"])
    op.create_index("idx_price_periods_range", "price_periods", ["start_date", "end_date"])
    op.create_index("idx_category_prices_period_category", "prices_by_category_and_people", ["period_id", "category"])
    op.create_index("idx_areas_accommodation", "areas", ["accommodation_id"])
    op.create_index("idx_maintenance_orders_area_status", "maintenance_orders", ["area_id", "status"])


def downgrade() -> None:
    op.drop_index("idx_maintenance_orders_area_status", table_name="maintenance_orders")
    op.drop_index("idx_areas_accommodation", table_name="areas")
    op.drop_index("idx_category_prices_period_category", table_name="prices_by_category_and_people")
    op.drop_index("idx_price_periods_range", table_name="price_periods")
    op.drop_index("idx_accommodations_capacity", table_name="accommodations")

    op.drop_table("maintenance_orders")
    op.drop_table("areas")
    op.drop_table("prices_by_category_and_people")
    op.drop_table("price_periods")
    op.drop_table("accommodations")
