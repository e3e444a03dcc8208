"""Pydantic schemas for Unit."""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UnitBase(BaseModel):
    """Base unit fields."""

    name: str = Field(..., min_length=1, max_length=100)
    abbreviation: str = Field(..., min_length=1, max_length=20)
    conversion_factor_to_ml: Optional[Decimal] = Field(
        None, gt=0, description="1 unit = factor ml; null for countable units (piece, leaf)"
    )


class UnitCreate(UnitBase):
    """Schema for creating a unit."""

    pass


class UnitUpdate(BaseModel):
    """Schema for updating a unit. All fields optional."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    abbreviation: Optional[str] = Field(None, min_length=1, max_length=20)
    conversion_factor_to_ml: Optional[Decimal] = Field(None, gt=0)


class UnitResponse(UnitBase):
    """Schema for unit response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime


class UnitList(BaseModel):
    """Schema for list of units."""

    units: list[UnitResponse]
    count: int


class ConversionEntry(BaseModel):
    """Quantity expressed in another unit."""

    unit: UnitResponse
    quantity: float
    formatted: str


class UnitConversions(BaseModel):
    """Every conversion of a quantity from one unit."""

    unit: UnitResponse
    quantity: float
    formatted: str
    convertible: bool
    conversions: list[ConversionEntry]
