"""Lookups shared by the catalog routers and the recipe importer."""
import logging
from typing import Optional, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import InstrumentedAttribute

from app.models.category import CategoryType

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class CocktailNotFoundError(ValueError):
    """Raised when a cocktail id does not exist."""


def find_by_name(
    db: Session,
    model: type[ModelT],
    column: InstrumentedAttribute,
    value: str,
) -> Optional[ModelT]:
    """Case-insensitive lookup on a name-like column.

    When several rows collide ("Rum" vs "RUM"), an exact-case match wins,
    otherwise the oldest row.

    Args:
        db: Database session
        model: Mapped class to query
        column: Column to compare, e.g. Unit.abbreviation
        value: Value to look for

    Returns:
        Matching row or None
    """
    if not value:
        return None
    rows = (
        db.query(model)
        .filter(func.lower(column) == value.lower())
        .order_by(model.created_at, model.id)
        .all()
    )
    for row in rows:
        if getattr(row, column.key) == value:
            return row
    return rows[0] if rows else None


def ensure_category_type(db: Session, name: str) -> CategoryType:
    """Return the category type with this name, creating it if needed."""
    category_type = db.query(CategoryType).filter(CategoryType.name == name).first()
    if category_type is None:
        logger.info(f"Creating category type {name}")
        category_type = CategoryType(name=name, color="gray")
        db.add(category_type)
        db.flush()
    return category_type


def name_taken(db: Session, model, column: InstrumentedAttribute, value: str, exclude_id=None) -> bool:
    """True if another row already uses `value` (case-insensitive)."""
    query = db.query(model.id).filter(func.lower(column) == value.lower())
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    return query.first() is not None
