"""Pydantic schemas for Ingredient."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class IngredientBase(BaseModel):
    """Base ingredient fields."""

    name: str = Field(..., min_length=1, max_length=100)
    icon: Optional[str] = Field(None, max_length=50)
    is_available: bool = True


class IngredientCreate(IngredientBase):
    """Schema for creating an ingredient."""

    pass


class IngredientUpdate(BaseModel):
    """Schema for updating an ingredient. All fields optional."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    icon: Optional[str] = Field(None, max_length=50)
    is_available: Optional[bool] = None


class IngredientResponse(IngredientBase):
    """Schema for ingredient response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime


class IngredientList(BaseModel):
    """Schema for list of ingredients."""

    ingredients: list[IngredientResponse]
    count: int
