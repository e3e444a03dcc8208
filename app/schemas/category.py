"""Pydantic schemas for Category and CategoryType."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_CATEGORY_TYPE = "SPIRIT"


class CategoryTypeCreate(BaseModel):
    """Schema for creating a category type."""

    name: str = Field(..., min_length=1, max_length=50)
    color: str = Field(default="gray", max_length=20)


class CategoryTypeResponse(CategoryTypeCreate):
    """Schema for category type response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    category_count: int = 0


class CategoryBase(BaseModel):
    """Base category fields."""

    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(default=DEFAULT_CATEGORY_TYPE, min_length=1, max_length=50)
    desired_stock: int = Field(default=1, ge=0, description="Sealed bottles wanted on hand")


class CategoryCreate(CategoryBase):
    """Schema for creating a category."""

    pass


class CategoryUpdate(BaseModel):
    """Schema for updating a category. All fields optional."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[str] = Field(None, min_length=1, max_length=50)
    desired_stock: Optional[int] = Field(None, ge=0)


class CategoryResponse(CategoryBase):
    """Schema for category response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    bottle_count: int = 0
    created_at: datetime
    updated_at: datetime


class CategoryList(BaseModel):
    """Schema for list of categories."""

    categories: list[CategoryResponse]
    count: int


class Shortage(BaseModel):
    """A category short of sealed bottles."""

    category: CategoryResponse
    sealed_count: int
    total_usable: int
    deficit: int
    is_shortage: bool
