"""Initial schema - all core tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates:
- units
- category_types
- categories
- bottles
- ingredients
- cocktails
- cocktail_ingredients
- cocktail_preferred_bottles
- cocktail_instructions
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # === UNITS ===
    op.create_table(
        "units",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("abbreviation", sa.String(20), nullable=False, unique=True),
        sa.Column("conversion_factor_to_ml", sa.Numeric(10, 4)),
        sa.Column("created_at", sa.TIMESTAMP, server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP, server_default=sa.func.now()),
    )

    # === CATEGORIES ===
    op.create_table(
        "category_types",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
        sa.Column("color", sa.String(20), nullable=False, server_default="gray"),
        sa.Column("created_at", sa.TIMESTAMP, server_default=sa.func.now()),
    )

    op.create_table(
        "categories",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(50), nullable=False, server_default="SPIRIT"),
        sa.Column("desired_stock", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.TIMESTAMP, server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP, server_default=sa.func.now()),
    )

    # === BOTTLES ===
    op.create_table(
        "bottles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("category_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("categories.id"), nullable=False),
        sa.Column("capacity_ml", sa.Integer, nullable=False, server_default="700"),
        sa.Column("remaining_percent", sa.Integer, nullable=False, server_default="100"),
        sa.Column("opened_at", sa.TIMESTAMP),
        sa.Column("alcohol_percentage", sa.Numeric(4, 1)),
        sa.Column("purchase_price", sa.Numeric(10, 2)),
        sa.Column("location", sa.String(100)),
        sa.Column("is_apero", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_digestif", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_at", sa.TIMESTAMP, server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP, server_default=sa.func.now()),
    )
    op.create_index("idx_bottles_category", "bottles", ["category_id"])

    # === INGREDIENTS ===
    op.create_table(
        "ingredients",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("icon", sa.String(50)),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("created_at", sa.TIMESTAMP, server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP, server_default=sa.func.now()),
    )

    # === COCKTAILS ===
    op.create_table(
        "cocktails",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("notes", sa.Text),
        sa.Column("tags", sa.Text, nullable=False, server_default=""),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("created_at", sa.TIMESTAMP, server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP, server_default=sa.func.now()),
    )

    op.create_table(
        "cocktail_ingredients",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "cocktail_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("cocktails.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("quantity", sa.Numeric(10, 3), nullable=False),
        sa.Column("unit_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("units.id"), nullable=False),
        sa.Column("source_type", sa.String(20), nullable=False),
        sa.Column("bottle_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bottles.id")),
        sa.Column("category_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("categories.id")),
        sa.Column("ingredient_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("ingredients.id")),
        sa.CheckConstraint(
            "(source_type = 'BOTTLE' AND bottle_id IS NOT NULL"
            " AND category_id IS NULL AND ingredient_id IS NULL)"
            " OR (source_type = 'CATEGORY' AND category_id IS NOT NULL"
            " AND bottle_id IS NULL AND ingredient_id IS NULL)"
            " OR (source_type = 'INGREDIENT' AND ingredient_id IS NOT NULL"
            " AND bottle_id IS NULL AND category_id IS NULL)",
            name="ck_cocktail_ingredients_source",
        ),
    )
    op.create_index("idx_cocktail_ingredients_cocktail", "cocktail_ingredients", ["cocktail_id"])

    op.create_table(
        "cocktail_preferred_bottles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "cocktail_ingredient_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("cocktail_ingredients.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "bottle_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("bottles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.UniqueConstraint("cocktail_ingredient_id", "bottle_id", name="uq_cocktail_preferred_bottles"),
    )

    op.create_table(
        "cocktail_instructions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "cocktail_id", postgresql.UUID(as_uuid=True),
            sa.ForeignKey("cocktails.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("step_number", sa.Integer, nullable=False),
        sa.Column("text", sa.Text, nullable=False),
    )


def downgrade() -> None:
    op.drop_table("cocktail_instructions")
    op.drop_table("cocktail_preferred_bottles")
    op.drop_table("cocktail_ingredients")
    op.drop_table("cocktails")
    op.drop_table("ingredients")
    op.drop_table("bottles")
    op.drop_table("categories")
    op.drop_table("category_types")
    op.drop_table("units")
