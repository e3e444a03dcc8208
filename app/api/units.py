"""Unit CRUD and conversion endpoints."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.unit import Unit
from app.schemas.unit import (
    ConversionEntry,
    UnitConversions,
    UnitCreate,
    UnitList,
    UnitResponse,
    UnitUpdate,
)
from app.services.catalog import name_taken
from app.services.units import format_quantity, get_all_conversions, is_convertible

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/units", tags=["units"])


def _get_unit(db: Session, unit_id: UUID) -> Unit:
    unit = db.query(Unit).filter(Unit.id == unit_id).first()
    if not unit:
        raise HTTPException(status_code=404, detail="Unit not found")
    return unit


@router.get("", response_model=UnitList)
def list_units(db: Session = Depends(get_db)):
    """List all units."""
    units = db.query(Unit).order_by(Unit.name).all()
    return UnitList(units=[UnitResponse.model_validate(u) for u in units], count=len(units))


@router.get("/{unit_id}", response_model=UnitResponse)
def get_unit(unit_id: UUID, db: Session = Depends(get_db)):
    """Get a unit by ID."""
    return _get_unit(db, unit_id)


@router.get("/{unit_id}/conversions", response_model=UnitConversions)
def get_unit_conversions(
    unit_id: UUID,
    quantity: float = Query(1.0, gt=0, description="Amount expressed in this unit"),
    db: Session = Depends(get_db),
):
    """Express a quantity of this unit in every other convertible unit.

    Non-convertible units (piece, leaf) return an empty conversion list.
    """
    unit = _get_unit(db, unit_id)
    all_units = db.query(Unit).order_by(Unit.name).all()

    conversions = [
        ConversionEntry(
            unit=UnitResponse.model_validate(c.unit),
            quantity=c.quantity,
            formatted=c.formatted,
        )
        for c in get_all_conversions(quantity, unit, all_units)
    ]

    return UnitConversions(
        unit=UnitResponse.model_validate(unit),
        quantity=quantity,
        formatted=format_quantity(quantity, unit),
        convertible=is_convertible(unit),
        conversions=conversions,
    )


@router.post("", response_model=UnitResponse, status_code=201)
def create_unit(data: UnitCreate, db: Session = Depends(get_db)):
    """Create a unit. Abbreviations are unique regardless of case."""
    if name_taken(db, Unit, Unit.abbreviation, data.abbreviation):
        raise HTTPException(
            status_code=400,
            detail=f"Unit with abbreviation '{data.abbreviation}' already exists",
        )

    unit = Unit(**data.model_dump())
    db.add(unit)
    db.commit()
    db.refresh(unit)
    logger.info(f"Created unit {unit.abbreviation}")
    return unit


@router.patch("/{unit_id}", response_model=UnitResponse)
def update_unit(unit_id: UUID, data: UnitUpdate, db: Session = Depends(get_db)):
    """Update a unit."""
    unit = _get_unit(db, unit_id)
    update_data = data.model_dump(exclude_unset=True)

    if "abbreviation" in update_data and name_taken(
        db, Unit, Unit.abbreviation, update_data["abbreviation"], exclude_id=unit_id
    ):
        raise HTTPException(
            status_code=400,
            detail=f"Unit with abbreviation '{update_data['abbreviation']}' already exists",
        )

    for field, value in update_data.items():
        setattr(unit, field, value)

    db.commit()
    db.refresh(unit)
    return unit


@router.delete("/{unit_id}", status_code=204)
def delete_unit(unit_id: UUID, db: Session = Depends(get_db)):
    """Delete a unit.

    Note: This will fail if any cocktail line still uses the unit.
    """
    unit = _get_unit(db, unit_id)

    if unit.cocktail_ingredients:
        raise HTTPException(
            status_code=400,
            detail="Cannot delete unit that is used in cocktails. Change those lines first.",
        )

    db.delete(unit)
    db.commit()
