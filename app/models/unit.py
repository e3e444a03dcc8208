"""Unit model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, TIMESTAMP, Numeric
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from . import Base


class Unit(Base):
    """Measurement unit used by cocktail lines.

    conversion_factor_to_ml reads as "1 unit = factor ml". NULL marks a
    countable unit (piece, leaf, zest) that never converts.
    """

    __tablename__ = "units"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    abbreviation = Column(String(20), nullable=False, unique=True)
    conversion_factor_to_ml = Column(Numeric(10, 4))
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    cocktail_ingredients = relationship("CocktailIngredient", back_populates="unit")

    def __repr__(self):
        return f"<Unit(abbreviation='{self.abbreviation}', factor={self.conversion_factor_to_ml})>"
