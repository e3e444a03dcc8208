"""Category and CategoryType models."""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from . import Base


class CategoryType(Base):
    """Top-level grouping for categories ('SPIRIT', 'SYRUP', 'LIQUEUR', ...)."""

    __tablename__ = "category_types"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False, unique=True)
    color = Column(String(20), nullable=False, default="gray")
    created_at = Column(TIMESTAMP, default=datetime.utcnow)

    def __repr__(self):
        return f"<CategoryType(name='{self.name}')>"


class Category(Base):
    """Groups bottles by spirit/syrup type with a sealed-stock target."""

    __tablename__ = "categories"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    type = Column(String(50), nullable=False, default="SPIRIT")  # CategoryType.name
    desired_stock = Column(Integer, nullable=False, default=1)  # Sealed bottles wanted on hand
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    bottles = relationship("Bottle", back_populates="category", order_by="Bottle.name")
    cocktail_ingredients = relationship("CocktailIngredient", back_populates="category")

    def __repr__(self):
        return f"<Category(name='{self.name}', type='{self.type}')>"
