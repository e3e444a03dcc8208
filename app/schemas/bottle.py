"""Pydantic schemas for Bottle."""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BottleBase(BaseModel):
    """Base bottle fields."""

    name: str = Field(..., min_length=1, max_length=150)
    category_id: UUID
    capacity_ml: int = Field(..., gt=0)
    remaining_percent: int = Field(default=100, ge=0, le=100)
    opened_at: Optional[datetime] = None
    alcohol_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    location: Optional[str] = Field(None, max_length=100)
    is_apero: bool = False
    is_digestif: bool = False


class BottleCreate(BottleBase):
    """Schema for creating a bottle."""

    pass


class BottleUpdate(BaseModel):
    """Schema for updating a bottle. All fields optional."""

    name: Optional[str] = Field(None, min_length=1, max_length=150)
    category_id: Optional[UUID] = None
    capacity_ml: Optional[int] = Field(None, gt=0)
    remaining_percent: Optional[int] = Field(None, ge=0, le=100)
    opened_at: Optional[datetime] = None
    alcohol_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    location: Optional[str] = Field(None, max_length=100)
    is_apero: Optional[bool] = None
    is_digestif: Optional[bool] = None


class BottleResponse(BottleBase):
    """Schema for bottle response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    category_name: Optional[str] = None
    remaining_ml: float
    created_at: datetime
    updated_at: datetime


class BottleList(BaseModel):
    """Schema for list of bottles."""

    bottles: list[BottleResponse]
    count: int
