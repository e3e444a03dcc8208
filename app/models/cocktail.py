"""Cocktail, CocktailIngredient, CocktailPreferredBottle, and CocktailInstruction models."""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Column, String, Integer, Boolean, Text, TIMESTAMP,
    ForeignKey, Numeric, UniqueConstraint, Index, CheckConstraint
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from . import Base


class SourceType(str, Enum):
    """Where a cocktail line draws its liquid from."""
    BOTTLE = "BOTTLE"
    CATEGORY = "CATEGORY"
    INGREDIENT = "INGREDIENT"


class Cocktail(Base):
    """Cocktail recipe."""

    __tablename__ = "cocktails"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(150), nullable=False)
    description = Column(Text)
    notes = Column(Text)
    tags = Column(Text, nullable=False, default="")  # Comma-separated
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    ingredients = relationship(
        "CocktailIngredient",
        back_populates="cocktail",
        cascade="all, delete-orphan",
        order_by="CocktailIngredient.position",
    )
    instructions = relationship(
        "CocktailInstruction",
        back_populates="cocktail",
        cascade="all, delete-orphan",
        order_by="CocktailInstruction.step_number",
    )

    @property
    def tag_list(self) -> list[str]:
        return [t for t in (self.tags or "").split(",") if t]

    def __repr__(self):
        return f"<Cocktail(name='{self.name}')>"


class CocktailIngredient(Base):
    """One recipe line. Exactly one of bottle_id/category_id/ingredient_id is set,
    matching source_type.
    """

    __tablename__ = "cocktail_ingredients"
    __table_args__ = (
        CheckConstraint(
            "(source_type = 'BOTTLE' AND bottle_id IS NOT NULL"
            " AND category_id IS NULL AND ingredient_id IS NULL)"
            " OR (source_type = 'CATEGORY' AND category_id IS NOT NULL"
            " AND bottle_id IS NULL AND ingredient_id IS NULL)"
            " OR (source_type = 'INGREDIENT' AND ingredient_id IS NOT NULL"
            " AND bottle_id IS NULL AND category_id IS NULL)",
            name="ck_cocktail_ingredients_source",
        ),
        Index("idx_cocktail_ingredients_cocktail", "cocktail_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cocktail_id = Column(UUID(as_uuid=True), ForeignKey("cocktails.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    quantity = Column(Numeric(10, 3), nullable=False)
    unit_id = Column(UUID(as_uuid=True), ForeignKey("units.id"), nullable=False)
    source_type = Column(String(20), nullable=False)
    bottle_id = Column(UUID(as_uuid=True), ForeignKey("bottles.id"))
    category_id = Column(UUID(as_uuid=True), ForeignKey("categories.id"))
    ingredient_id = Column(UUID(as_uuid=True), ForeignKey("ingredients.id"))

    # Relationships
    cocktail = relationship("Cocktail", back_populates="ingredients")
    unit = relationship("Unit", back_populates="cocktail_ingredients")
    bottle = relationship("Bottle")
    category = relationship("Category", back_populates="cocktail_ingredients")
    ingredient = relationship("Ingredient", back_populates="cocktail_ingredients")
    preferred_bottles = relationship(
        "CocktailPreferredBottle",
        back_populates="cocktail_ingredient",
        cascade="all, delete-orphan",
    )

    @property
    def source_name(self) -> str:
        source = self.bottle or self.category or self.ingredient
        return source.name if source else "Unknown"

    def __repr__(self):
        return f"<CocktailIngredient(cocktail_id={self.cocktail_id}, source_type='{self.source_type}')>"


class CocktailPreferredBottle(Base):
    """Bottle to consume first for a CATEGORY-sourced line."""

    __tablename__ = "cocktail_preferred_bottles"
    __table_args__ = (
        UniqueConstraint("cocktail_ingredient_id", "bottle_id", name="uq_cocktail_preferred_bottles"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cocktail_ingredient_id = Column(
        UUID(as_uuid=True), ForeignKey("cocktail_ingredients.id", ondelete="CASCADE"), nullable=False
    )
    bottle_id = Column(UUID(as_uuid=True), ForeignKey("bottles.id", ondelete="CASCADE"), nullable=False)

    # Relationships
    cocktail_ingredient = relationship("CocktailIngredient", back_populates="preferred_bottles")
    bottle = relationship("Bottle")

    def __repr__(self):
        return f"<CocktailPreferredBottle(bottle_id={self.bottle_id})>"


class CocktailInstruction(Base):
    """Numbered preparation step."""

    __tablename__ = "cocktail_instructions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cocktail_id = Column(UUID(as_uuid=True), ForeignKey("cocktails.id", ondelete="CASCADE"), nullable=False)
    step_number = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)

    # Relationships
    cocktail = relationship("Cocktail", back_populates="instructions")

    def __repr__(self):
        return f"<CocktailInstruction(step={self.step_number})>"
