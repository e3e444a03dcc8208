"""Bottle model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, Boolean, TIMESTAMP, ForeignKey, Numeric, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from . import Base


class Bottle(Base):
    """A physical bottle on the shelf with its fill level."""

    __tablename__ = "bottles"
    __table_args__ = (
        Index("idx_bottles_category", "category_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(150), nullable=False)
    category_id = Column(UUID(as_uuid=True), ForeignKey("categories.id"), nullable=False)
    capacity_ml = Column(Integer, nullable=False, default=700)
    remaining_percent = Column(Integer, nullable=False, default=100)  # 0 = emptied, kept for history
    opened_at = Column(TIMESTAMP)
    alcohol_percentage = Column(Numeric(4, 1))
    purchase_price = Column(Numeric(10, 2))
    location = Column(String(100))
    is_apero = Column(Boolean, nullable=False, default=False)
    is_digestif = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    category = relationship("Category", back_populates="bottles")

    @property
    def remaining_ml(self) -> float:
        """Volume left in the bottle."""
        return self.capacity_ml * self.remaining_percent / 100

    @property
    def is_emptied(self) -> bool:
        return self.remaining_percent <= 0

    @property
    def is_sealed(self) -> bool:
        """Never opened and not emptied."""
        return self.opened_at is None and not self.is_emptied

    def __repr__(self):
        return f"<Bottle(name='{self.name}', remaining={self.remaining_percent}%)>"
