"""Cocktail availability endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.cocktail import CocktailAvailability
from app.services.availability import calculate_all_cocktails_availability, calculate_cocktail_availability
from app.services.catalog import CocktailNotFoundError

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/cocktails", response_model=dict[UUID, CocktailAvailability])
def get_all_availability(db: Session = Depends(get_db)):
    """Availability of every cocktail from current stock, keyed by cocktail id."""
    return calculate_all_cocktails_availability(db)


@router.get("/cocktails/{cocktail_id}", response_model=CocktailAvailability)
def get_cocktail_availability(cocktail_id: UUID, db: Session = Depends(get_db)):
    """Availability of one cocktail: max servings, missing lines, low-stock warnings."""
    try:
        return calculate_cocktail_availability(db, cocktail_id)
    except CocktailNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
