"""Stock shortage detection.

A category is short when it holds fewer sealed (never opened, non-empty)
bottles than its desired_stock target.
"""
from sqlalchemy.orm import Session, selectinload

from app.models.category import Category
from app.schemas.category import CategoryResponse, Shortage


def compute_shortage(category: Category) -> Shortage:
    """Sealed/usable counts and deficit for one category."""
    sealed_count = sum(1 for b in category.bottles if b.is_sealed)
    total_usable = sum(1 for b in category.bottles if not b.is_emptied)
    return Shortage(
        category=CategoryResponse(
            id=category.id,
            name=category.name,
            type=category.type,
            desired_stock=category.desired_stock,
            bottle_count=total_usable,
            created_at=category.created_at,
            updated_at=category.updated_at,
        ),
        sealed_count=sealed_count,
        total_usable=total_usable,
        deficit=max(0, category.desired_stock - sealed_count),
        is_shortage=sealed_count < category.desired_stock,
    )


def list_shortages(db: Session) -> list[Shortage]:
    """Categories below their sealed-stock target, by name."""
    categories = (
        db.query(Category)
        .options(selectinload(Category.bottles))
        .order_by(Category.name)
        .all()
    )
    shortages = [compute_shortage(c) for c in categories]
    return [s for s in shortages if s.is_shortage]
