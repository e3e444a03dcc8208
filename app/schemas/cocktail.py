"""Pydantic schemas for Cocktail and its lines."""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


# ============================================================================
# Cocktail line input (tagged by source_type)
# ============================================================================


class CocktailLineBase(BaseModel):
    """Fields shared by every recipe line."""

    model_config = ConfigDict(extra="forbid")

    quantity: Decimal = Field(..., gt=0)
    unit_id: UUID


class BottleLine(CocktailLineBase):
    """Line drawn from one specific bottle."""

    source_type: Literal["BOTTLE"]
    bottle_id: UUID


class CategoryLine(CocktailLineBase):
    """Line drawn from any bottle of a category, preferred bottles first."""

    source_type: Literal["CATEGORY"]
    category_id: UUID
    preferred_bottle_ids: list[UUID] = []


class IngredientLine(CocktailLineBase):
    """Line using a free-form ingredient."""

    source_type: Literal["INGREDIENT"]
    ingredient_id: UUID


CocktailLineInput = Annotated[
    Union[BottleLine, CategoryLine, IngredientLine],
    Field(discriminator="source_type"),
]


class InstructionInput(BaseModel):
    """One preparation step; step numbers follow list order."""

    text: str = Field(..., min_length=1)


def clean_tags(tags: list[str]) -> list[str]:
    """Strip whitespace, split on commas, drop empties and duplicates."""
    cleaned = []
    for tag in tags:
        for part in tag.split(","):
            part = part.strip()
            if part and part not in cleaned:
                cleaned.append(part)
    return cleaned


Tags = Annotated[list[str], AfterValidator(clean_tags)]


# ============================================================================
# Cocktail schemas
# ============================================================================


class CocktailCreate(BaseModel):
    """Schema for creating a cocktail with its lines and steps."""

    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    notes: Optional[str] = None
    tags: Tags = []
    is_available: bool = True
    ingredients: list[CocktailLineInput] = []
    instructions: list[InstructionInput] = []


class CocktailUpdate(BaseModel):
    """Schema for updating a cocktail. Lines and steps are replaced when given."""

    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    notes: Optional[str] = None
    tags: Optional[Tags] = None
    is_available: Optional[bool] = None
    ingredients: Optional[list[CocktailLineInput]] = None
    instructions: Optional[list[InstructionInput]] = None


class CocktailIngredientResponse(BaseModel):
    """Recipe line with source and unit details."""

    id: UUID
    position: int
    quantity: Decimal
    unit_id: UUID
    unit_abbreviation: Optional[str] = None
    source_type: str
    bottle_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    ingredient_id: Optional[UUID] = None
    source_name: str
    preferred_bottle_ids: list[UUID] = []


class CocktailInstructionResponse(BaseModel):
    """Preparation step."""

    model_config = ConfigDict(from_attributes=True)

    step_number: int
    text: str


class CocktailResponse(BaseModel):
    """Cocktail with ordered lines and steps."""

    id: UUID
    name: str
    description: Optional[str] = None
    notes: Optional[str] = None
    tags: list[str] = []
    is_available: bool
    created_at: datetime
    updated_at: datetime
    ingredients: list[CocktailIngredientResponse] = []
    instructions: list[CocktailInstructionResponse] = []


class CocktailList(BaseModel):
    """Schema for list of cocktails."""

    cocktails: list[CocktailResponse]
    count: int


# ============================================================================
# Availability
# ============================================================================


class IngredientAvailability(BaseModel):
    """Whether one recipe line can be served, and how many times."""

    cocktail_ingredient_id: UUID
    source_type: str
    name: str
    icon: Optional[str] = None
    quantity: float
    unit: str
    is_available: bool
    available_count: Optional[int] = Field(None, description="Servings this line allows; null = unlimited")
    reason: Optional[str] = None


class CocktailAvailability(BaseModel):
    """Computed availability of a cocktail from current stock."""

    cocktail_id: UUID
    is_available: bool
    max_servings: int = Field(..., description="999 or more reads as unlimited")
    ingredients: list[IngredientAvailability] = []
    missing_ingredients: list[str] = []
    low_stock_warnings: list[str] = []
