"""Category and category type endpoints."""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.bottle import Bottle
from app.models.category import Category, CategoryType
from app.schemas.category import (
    CategoryCreate,
    CategoryList,
    CategoryResponse,
    CategoryTypeCreate,
    CategoryTypeResponse,
    CategoryUpdate,
)
from app.services.catalog import ensure_category_type, name_taken

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])
types_router = APIRouter(prefix="/category-types", tags=["categories"])


def category_to_response(category: Category, bottle_count: Optional[int] = None) -> CategoryResponse:
    """Build a category response; bottle_count counts non-emptied bottles."""
    if bottle_count is None:
        bottle_count = sum(1 for b in category.bottles if not b.is_emptied)
    return CategoryResponse(
        id=category.id,
        name=category.name,
        type=category.type,
        desired_stock=category.desired_stock,
        bottle_count=bottle_count,
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


def _get_category(db: Session, category_id: UUID) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


# ============================================================================
# Category Endpoints
# ============================================================================


@router.get("", response_model=CategoryList)
def list_categories(
    type: Optional[str] = Query(None, description="Filter by category type"),
    db: Session = Depends(get_db),
):
    """List categories with their active bottle counts."""
    query = db.query(Category)
    if type:
        query = query.filter(Category.type == type)
    categories = query.order_by(Category.name).all()

    bottle_counts = dict(
        db.query(Bottle.category_id, func.count(Bottle.id))
        .filter(Bottle.remaining_percent > 0)
        .group_by(Bottle.category_id)
        .all()
    )

    return CategoryList(
        categories=[category_to_response(c, bottle_counts.get(c.id, 0)) for c in categories],
        count=len(categories),
    )


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(category_id: UUID, db: Session = Depends(get_db)):
    """Get a category by ID."""
    return category_to_response(_get_category(db, category_id))


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(data: CategoryCreate, db: Session = Depends(get_db)):
    """Create a category. An unknown type is registered on the fly."""
    if name_taken(db, Category, Category.name, data.name):
        raise HTTPException(
            status_code=400,
            detail=f"Category with name '{data.name}' already exists",
        )

    ensure_category_type(db, data.type)
    category = Category(**data.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info(f"Created category {category.name} ({category.type})")
    return category_to_response(category, 0)


@router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(category_id: UUID, data: CategoryUpdate, db: Session = Depends(get_db)):
    """Update a category."""
    category = _get_category(db, category_id)
    update_data = data.model_dump(exclude_unset=True)

    if "name" in update_data and name_taken(
        db, Category, Category.name, update_data["name"], exclude_id=category_id
    ):
        raise HTTPException(
            status_code=400,
            detail=f"Category with name '{update_data['name']}' already exists",
        )

    if update_data.get("type"):
        ensure_category_type(db, update_data["type"])

    for field, value in update_data.items():
        setattr(category, field, value)

    db.commit()
    db.refresh(category)
    return category_to_response(category)


@router.delete("/{category_id}", status_code=204)
def delete_category(category_id: UUID, db: Session = Depends(get_db)):
    """Delete a category.

    Note: This will fail if the category still has bottles (emptied ones
    included) or is used by a cocktail line.
    """
    category = _get_category(db, category_id)

    if category.bottles:
        raise HTTPException(
            status_code=400,
            detail="Cannot delete category that still has bottles. Move or delete them first.",
        )

    if category.cocktail_ingredients:
        raise HTTPException(
            status_code=400,
            detail="Cannot delete category that is used in cocktails. Remove from cocktails first.",
        )

    db.delete(category)
    db.commit()


# ============================================================================
# Category Type Endpoints
# ============================================================================


@types_router.get("", response_model=list[CategoryTypeResponse])
def list_category_types(db: Session = Depends(get_db)):
    """List category types with the number of categories using each."""
    counts = dict(
        db.query(Category.type, func.count(Category.id)).group_by(Category.type).all()
    )
    types = db.query(CategoryType).order_by(CategoryType.name).all()
    return [
        CategoryTypeResponse(id=t.id, name=t.name, color=t.color, category_count=counts.get(t.name, 0))
        for t in types
    ]


@types_router.post("", response_model=CategoryTypeResponse, status_code=201)
def create_category_type(data: CategoryTypeCreate, db: Session = Depends(get_db)):
    """Create a category type."""
    if db.query(CategoryType).filter(CategoryType.name == data.name).first():
        raise HTTPException(
            status_code=400,
            detail=f"Category type '{data.name}' already exists",
        )

    category_type = CategoryType(**data.model_dump())
    db.add(category_type)
    db.commit()
    db.refresh(category_type)
    return CategoryTypeResponse(id=category_type.id, name=category_type.name, color=category_type.color)


@types_router.delete("/{type_id}", status_code=204)
def delete_category_type(type_id: UUID, db: Session = Depends(get_db)):
    """Delete a category type.

    Note: This will fail while any category uses the type.
    """
    category_type = db.query(CategoryType).filter(CategoryType.id == type_id).first()
    if not category_type:
        raise HTTPException(status_code=404, detail="Category type not found")

    in_use = db.query(Category).filter(Category.type == category_type.name).count()
    if in_use:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete category type used by {in_use} categories",
        )

    db.delete(category_type)
    db.commit()
