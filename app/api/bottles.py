"""Bottle CRUD endpoints."""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload

from app.database import get_db
from app.models.bottle import Bottle
from app.models.category import Category
from app.models.cocktail import CocktailIngredient, CocktailPreferredBottle
from app.schemas.bottle import BottleCreate, BottleList, BottleResponse, BottleUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bottles", tags=["bottles"])


def bottle_to_response(bottle: Bottle) -> BottleResponse:
    return BottleResponse(
        id=bottle.id,
        name=bottle.name,
        category_id=bottle.category_id,
        category_name=bottle.category.name if bottle.category else None,
        capacity_ml=bottle.capacity_ml,
        remaining_percent=bottle.remaining_percent,
        remaining_ml=bottle.remaining_ml,
        opened_at=bottle.opened_at,
        alcohol_percentage=bottle.alcohol_percentage,
        purchase_price=bottle.purchase_price,
        location=bottle.location,
        is_apero=bottle.is_apero,
        is_digestif=bottle.is_digestif,
        created_at=bottle.created_at,
        updated_at=bottle.updated_at,
    )


def _get_bottle(db: Session, bottle_id: UUID) -> Bottle:
    bottle = (
        db.query(Bottle)
        .options(joinedload(Bottle.category))
        .filter(Bottle.id == bottle_id)
        .first()
    )
    if not bottle:
        raise HTTPException(status_code=404, detail="Bottle not found")
    return bottle


def _check_category(db: Session, category_id: UUID) -> None:
    if not db.query(Category).filter(Category.id == category_id).first():
        raise HTTPException(status_code=400, detail="Category not found")


@router.get("", response_model=BottleList)
def list_bottles(
    category_id: Optional[UUID] = Query(None, description="Filter by category"),
    include_emptied: bool = Query(False, description="Include bottles at 0%"),
    search: Optional[str] = Query(None, description="Search by name"),
    db: Session = Depends(get_db),
):
    """List bottles. Emptied bottles are hidden unless asked for."""
    query = db.query(Bottle).options(joinedload(Bottle.category))

    if category_id:
        query = query.filter(Bottle.category_id == category_id)

    if not include_emptied:
        query = query.filter(Bottle.remaining_percent > 0)

    if search:
        query = query.filter(Bottle.name.ilike(f"%{search}%"))

    bottles = query.order_by(Bottle.name).all()
    return BottleList(bottles=[bottle_to_response(b) for b in bottles], count=len(bottles))


@router.get("/{bottle_id}", response_model=BottleResponse)
def get_bottle(bottle_id: UUID, db: Session = Depends(get_db)):
    """Get a bottle by ID."""
    return bottle_to_response(_get_bottle(db, bottle_id))


@router.post("", response_model=BottleResponse, status_code=201)
def create_bottle(data: BottleCreate, db: Session = Depends(get_db)):
    """Add a bottle to the shelf."""
    _check_category(db, data.category_id)

    bottle = Bottle(**data.model_dump())
    db.add(bottle)
    db.commit()
    logger.info(f"Created bottle {bottle.name}")
    return bottle_to_response(_get_bottle(db, bottle.id))


@router.patch("/{bottle_id}", response_model=BottleResponse)
def update_bottle(bottle_id: UUID, data: BottleUpdate, db: Session = Depends(get_db)):
    """Update a bottle. Setting remaining_percent to 0 marks it emptied."""
    bottle = _get_bottle(db, bottle_id)
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("category_id"):
        _check_category(db, update_data["category_id"])

    for field, value in update_data.items():
        setattr(bottle, field, value)

    db.commit()
    db.expire(bottle)
    return bottle_to_response(_get_bottle(db, bottle_id))


@router.delete("/{bottle_id}", status_code=204)
def delete_bottle(bottle_id: UUID, db: Session = Depends(get_db)):
    """Delete a bottle.

    Note: This will fail if a cocktail line draws from this bottle.
    Preferred-bottle links are removed with it.
    """
    bottle = _get_bottle(db, bottle_id)

    used = db.query(CocktailIngredient).filter(CocktailIngredient.bottle_id == bottle_id).count()
    if used:
        raise HTTPException(
            status_code=400,
            detail="Cannot delete bottle that is used in cocktails. Remove from cocktails first.",
        )

    db.query(CocktailPreferredBottle).filter(CocktailPreferredBottle.bottle_id == bottle_id).delete()
    db.delete(bottle)
    db.commit()
