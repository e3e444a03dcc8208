"""Ingredient model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Boolean, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from . import Base


class Ingredient(Base):
    """Free-form consumable (mint leaf, lime, sugar) tracked only as available or not."""

    __tablename__ = "ingredients"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    icon = Column(String(50))
    is_available = Column(Boolean, nullable=False, default=True)  # Toggled by hand, not stock-derived
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    cocktail_ingredients = relationship("CocktailIngredient", back_populates="ingredient")

    def __repr__(self):
        return f"<Ingredient(name='{self.name}', available={self.is_available})>"
