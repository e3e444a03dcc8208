"""Pydantic schemas for cocktail export documents and the import flow.

The export document is a portable file format and keeps camelCase keys
(populated by alias); everything on the API side is snake_case.
"""
from datetime import datetime
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


EXPORT_VERSION = 1

ENTITY_TYPES = ("units", "categories", "bottles", "ingredients")


# ============================================================================
# Export document (version 1)
# ============================================================================


class ExportModel(BaseModel):
    """Base for document models: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(populate_by_name=True)


class ExportUnit(ExportModel):
    name: str
    abbreviation: Optional[str] = None
    conversion_factor_to_ml: Optional[float] = Field(None, alias="conversionFactorToMl")


class ExportPreferredBottle(ExportModel):
    name: str
    category_name: Optional[str] = Field(None, alias="categoryName")


class ExportIngredient(ExportModel):
    source_type: Literal["BOTTLE", "CATEGORY", "INGREDIENT"] = Field(..., alias="sourceType")
    source_name: str = Field(..., min_length=1, alias="sourceName")
    source_detail: dict[str, Any] = Field(default_factory=dict, alias="sourceDetail")
    quantity: float
    unit: Optional[ExportUnit] = None
    position: int = 0
    preferred_bottles: list[ExportPreferredBottle] = Field(default_factory=list, alias="preferredBottles")


class ExportInstruction(ExportModel):
    step_number: Optional[int] = Field(None, alias="stepNumber")
    text: str


class ExportCocktail(ExportModel):
    name: str
    description: Optional[str] = None
    notes: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    ingredients: list[ExportIngredient] = Field(default_factory=list)
    instructions: list[ExportInstruction] = Field(default_factory=list)


class CocktailExport(ExportModel):
    """A single cocktail recipe plus the names of everything it references."""

    version: int
    exported_at: Optional[datetime] = Field(None, alias="exportedAt")
    cocktail: ExportCocktail


# ============================================================================
# Preview
# ============================================================================


class EntityRef(BaseModel):
    """Export-side description of a referenced unit/category/bottle/ingredient."""

    name: str
    abbreviation: Optional[str] = None
    type: Optional[str] = None
    category_name: Optional[str] = None
    icon: Optional[str] = None
    conversion_factor_to_ml: Optional[float] = None
    desired_stock: Optional[int] = None


class ExistingMatch(BaseModel):
    """Live row an export reference matched."""

    id: UUID
    name: str
    abbreviation: Optional[str] = None
    category_name: Optional[str] = None


class EntityResolution(BaseModel):
    """Match status of one referenced entity."""

    ref: EntityRef
    status: Literal["matched", "missing"]
    existing_match: Optional[ExistingMatch] = None


class ImportPreviewCocktail(BaseModel):
    name: str
    description: Optional[str] = None
    tags: list[str] = []
    already_exists: bool = False


class ImportPreview(BaseModel):
    """Server-computed match status of every referenced entity, grouped by type."""

    cocktail: ImportPreviewCocktail
    units: list[EntityResolution] = []
    categories: list[EntityResolution] = []
    bottles: list[EntityResolution] = []
    ingredients: list[EntityResolution] = []


# ============================================================================
# Confirm
# ============================================================================


class ResolutionAction(BaseModel):
    """Operator decision for one referenced entity."""

    action: Literal["use_existing", "create", "skip"]
    existing_id: Optional[UUID] = None
    data: Optional[dict[str, Any]] = None


Resolutions = dict[str, dict[str, ResolutionAction]]


class ImportConfirmRequest(BaseModel):
    """Recipe document plus resolutions keyed by entity type then entity key."""

    recipe: dict[str, Any]
    resolutions: Resolutions = {}


class ImportBottleData(BaseModel):
    """Create payload for a bottle during import. Always starts full."""

    name: str = Field(..., min_length=1, max_length=150)
    category_name: str = ""
    capacity_ml: int = Field(default=700, gt=0)
    remaining_percent: int = Field(default=100, ge=0, le=100)
