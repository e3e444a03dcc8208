"""Ingredient CRUD endpoints."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.ingredient import Ingredient
from app.schemas.ingredient import (
    IngredientCreate,
    IngredientList,
    IngredientResponse,
    IngredientUpdate,
)
from app.services.catalog import name_taken

router = APIRouter(prefix="/ingredients", tags=["ingredients"])


def _get_ingredient(db: Session, ingredient_id: UUID) -> Ingredient:
    ingredient = db.query(Ingredient).filter(Ingredient.id == ingredient_id).first()
    if not ingredient:
        raise HTTPException(status_code=404, detail="Ingredient not found")
    return ingredient


@router.get("", response_model=IngredientList)
def list_ingredients(
    search: Optional[str] = Query(None, description="Search by name"),
    available_only: bool = False,
    db: Session = Depends(get_db),
):
    """List ingredients."""
    query = db.query(Ingredient)

    if search:
        query = query.filter(Ingredient.name.ilike(f"%{search}%"))

    if available_only:
        query = query.filter(Ingredient.is_available == True)

    ingredients = query.order_by(Ingredient.name).all()
    return IngredientList(
        ingredients=[IngredientResponse.model_validate(i) for i in ingredients],
        count=len(ingredients),
    )


@router.get("/{ingredient_id}", response_model=IngredientResponse)
def get_ingredient(ingredient_id: UUID, db: Session = Depends(get_db)):
    """Get an ingredient by ID."""
    return _get_ingredient(db, ingredient_id)


@router.post("", response_model=IngredientResponse, status_code=201)
def create_ingredient(data: IngredientCreate, db: Session = Depends(get_db)):
    """Create an ingredient."""
    if name_taken(db, Ingredient, Ingredient.name, data.name):
        raise HTTPException(
            status_code=400,
            detail=f"Ingredient with name '{data.name}' already exists",
        )

    ingredient = Ingredient(**data.model_dump())
    db.add(ingredient)
    db.commit()
    db.refresh(ingredient)
    return ingredient


@router.patch("/{ingredient_id}", response_model=IngredientResponse)
def update_ingredient(
    ingredient_id: UUID,
    data: IngredientUpdate,
    db: Session = Depends(get_db),
):
    """Update an ingredient (including its manual availability flag)."""
    ingredient = _get_ingredient(db, ingredient_id)
    update_data = data.model_dump(exclude_unset=True)

    if "name" in update_data and name_taken(
        db, Ingredient, Ingredient.name, update_data["name"], exclude_id=ingredient_id
    ):
        raise HTTPException(
            status_code=400,
            detail=f"Ingredient with name '{update_data['name']}' already exists",
        )

    for field, value in update_data.items():
        setattr(ingredient, field, value)

    db.commit()
    db.refresh(ingredient)
    return ingredient


@router.delete("/{ingredient_id}", status_code=204)
def delete_ingredient(ingredient_id: UUID, db: Session = Depends(get_db)):
    """Delete an ingredient.

    Note: This will fail if the ingredient is used in cocktails.
    """
    ingredient = _get_ingredient(db, ingredient_id)

    if ingredient.cocktail_ingredients:
        raise HTTPException(
            status_code=400,
            detail="Cannot delete ingredient that is used in cocktails. Remove from cocktails first.",
        )

    db.delete(ingredient)
    db.commit()
