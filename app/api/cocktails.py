"""Cocktail CRUD, export and import endpoints."""
import logging
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, joinedload

from app.database import get_db
from app.models.bottle import Bottle
from app.models.category import Category
from app.models.cocktail import (
    Cocktail,
    CocktailIngredient,
    CocktailInstruction,
    CocktailPreferredBottle,
    SourceType,
)
from app.models.ingredient import Ingredient
from app.models.unit import Unit
from app.schemas.cocktail import (
    CocktailCreate,
    CocktailIngredientResponse,
    CocktailInstructionResponse,
    CocktailLineInput,
    CocktailList,
    CocktailResponse,
    CocktailUpdate,
    InstructionInput,
)
from app.schemas.cocktail_import import ImportConfirmRequest, ImportPreview
from app.services.catalog import CocktailNotFoundError
from app.services.recipe_exporter import build_export, export_filename, load_cocktail_for_export
from app.services.recipe_importer import RecipeImporter, RecipeImportError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cocktails", tags=["cocktails"])


# ============================================================================
# Helpers
# ============================================================================


def cocktail_to_response(cocktail: Cocktail) -> CocktailResponse:
    """Build the API response for a cocktail with its lines and steps."""
    return CocktailResponse(
        id=cocktail.id,
        name=cocktail.name,
        description=cocktail.description,
        notes=cocktail.notes,
        tags=cocktail.tag_list,
        is_available=cocktail.is_available,
        created_at=cocktail.created_at,
        updated_at=cocktail.updated_at,
        ingredients=[
            CocktailIngredientResponse(
                id=line.id,
                position=line.position,
                quantity=line.quantity,
                unit_id=line.unit_id,
                unit_abbreviation=line.unit.abbreviation if line.unit else None,
                source_type=line.source_type,
                bottle_id=line.bottle_id,
                category_id=line.category_id,
                ingredient_id=line.ingredient_id,
                source_name=line.source_name,
                preferred_bottle_ids=[pb.bottle_id for pb in line.preferred_bottles],
            )
            for line in cocktail.ingredients
        ],
        instructions=[CocktailInstructionResponse.model_validate(step) for step in cocktail.instructions],
    )


def _get_cocktail(db: Session, cocktail_id: UUID) -> Cocktail:
    cocktail = (
        db.query(Cocktail)
        .options(
            joinedload(Cocktail.ingredients).joinedload(CocktailIngredient.unit),
            joinedload(Cocktail.ingredients).joinedload(CocktailIngredient.preferred_bottles),
            joinedload(Cocktail.instructions),
        )
        .filter(Cocktail.id == cocktail_id)
        .first()
    )
    if not cocktail:
        raise HTTPException(status_code=404, detail="Cocktail not found")
    return cocktail


def _require(db: Session, model, row_id: UUID, label: str):
    row = db.get(model, row_id)
    if row is None:
        raise HTTPException(status_code=400, detail=f"{label} {row_id} not found")
    return row


def _build_line(db: Session, line: CocktailLineInput, position: int) -> CocktailIngredient:
    """Validate a line's references and build its row."""
    _require(db, Unit, line.unit_id, "Unit")
    row = CocktailIngredient(
        position=position,
        quantity=line.quantity,
        unit_id=line.unit_id,
        source_type=line.source_type,
    )

    if line.source_type == SourceType.BOTTLE.value:
        _require(db, Bottle, line.bottle_id, "Bottle")
        row.bottle_id = line.bottle_id
    elif line.source_type == SourceType.CATEGORY.value:
        _require(db, Category, line.category_id, "Category")
        row.category_id = line.category_id
        seen: list[UUID] = []
        for bottle_id in line.preferred_bottle_ids:
            bottle = _require(db, Bottle, bottle_id, "Bottle")
            if bottle.category_id != line.category_id:
                raise HTTPException(
                    status_code=400,
                    detail=f"Preferred bottle '{bottle.name}' is not in the line's category",
                )
            if bottle_id not in seen:
                seen.append(bottle_id)
        row.preferred_bottles = [CocktailPreferredBottle(bottle_id=b) for b in seen]
    else:
        _require(db, Ingredient, line.ingredient_id, "Ingredient")
        row.ingredient_id = line.ingredient_id

    return row


def _set_lines(db: Session, cocktail: Cocktail, lines: list[CocktailLineInput]) -> None:
    cocktail.ingredients = [_build_line(db, line, position) for position, line in enumerate(lines)]


def _set_instructions(cocktail: Cocktail, steps: list[InstructionInput]) -> None:
    cocktail.instructions = [
        CocktailInstruction(step_number=number, text=step.text.strip())
        for number, step in enumerate(steps, start=1)
    ]


# ============================================================================
# CRUD
# ============================================================================


@router.get("", response_model=CocktailList)
def list_cocktails(
    search: Optional[str] = Query(None, description="Search by name"),
    tag: Optional[str] = Query(None, description="Filter by tag"),
    db: Session = Depends(get_db),
):
    """List cocktails with their lines and steps."""
    query = db.query(Cocktail).options(
        joinedload(Cocktail.ingredients).joinedload(CocktailIngredient.unit),
        joinedload(Cocktail.instructions),
    )
    if search:
        query = query.filter(Cocktail.name.ilike(f"%{search}%"))

    cocktails = query.order_by(Cocktail.name).all()
    if tag:
        cocktails = [c for c in cocktails if tag.lower() in (t.lower() for t in c.tag_list)]

    return CocktailList(cocktails=[cocktail_to_response(c) for c in cocktails], count=len(cocktails))


@router.get("/{cocktail_id}", response_model=CocktailResponse)
def get_cocktail(cocktail_id: UUID, db: Session = Depends(get_db)):
    """Get a cocktail by ID."""
    return cocktail_to_response(_get_cocktail(db, cocktail_id))


@router.post("", response_model=CocktailResponse, status_code=201)
def create_cocktail(data: CocktailCreate, db: Session = Depends(get_db)):
    """Create a cocktail with its lines (in list order) and steps."""
    cocktail = Cocktail(
        name=data.name.strip(),
        description=data.description,
        notes=data.notes,
        tags=",".join(data.tags),
        is_available=data.is_available,
    )
    _set_lines(db, cocktail, data.ingredients)
    _set_instructions(cocktail, data.instructions)

    db.add(cocktail)
    db.commit()
    logger.info(f"Created cocktail {cocktail.name}")
    return cocktail_to_response(_get_cocktail(db, cocktail.id))


@router.patch("/{cocktail_id}", response_model=CocktailResponse)
def update_cocktail(cocktail_id: UUID, data: CocktailUpdate, db: Session = Depends(get_db)):
    """Update a cocktail. Lines and steps, when given, replace the current ones."""
    cocktail = _get_cocktail(db, cocktail_id)
    update_data = data.model_dump(exclude_unset=True, exclude={"ingredients", "instructions", "tags"})

    for field, value in update_data.items():
        if field == "name" and value is not None:
            value = value.strip()
        setattr(cocktail, field, value)

    if data.tags is not None:
        cocktail.tags = ",".join(data.tags)
    if data.ingredients is not None:
        _set_lines(db, cocktail, data.ingredients)
    if data.instructions is not None:
        _set_instructions(cocktail, data.instructions)

    db.commit()
    db.expire_all()
    return cocktail_to_response(_get_cocktail(db, cocktail_id))


@router.delete("/{cocktail_id}", status_code=204)
def delete_cocktail(cocktail_id: UUID, db: Session = Depends(get_db)):
    """Delete a cocktail with its lines and steps."""
    cocktail = _get_cocktail(db, cocktail_id)
    db.delete(cocktail)
    db.commit()


# ============================================================================
# Export / Import
# ============================================================================


@router.get("/{cocktail_id}/export")
def export_cocktail(cocktail_id: UUID, db: Session = Depends(get_db)):
    """Download one cocktail as a portable version-1 JSON document."""
    try:
        cocktail = load_cocktail_for_export(db, cocktail_id)
    except CocktailNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    document = build_export(cocktail)
    return JSONResponse(
        content=document.model_dump(mode="json", by_alias=True),
        headers={"Content-Disposition": f'attachment; filename="{export_filename(cocktail)}"'},
    )


@router.post("/import/preview", response_model=ImportPreview)
def preview_import(recipe: dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    """Match every entity an exported recipe references against this database."""
    try:
        return RecipeImporter(db).preview(recipe)
    except RecipeImportError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/import/confirm", response_model=CocktailResponse, status_code=201)
def confirm_import(request: ImportConfirmRequest, db: Session = Depends(get_db)):
    """Apply resolutions and create the cocktail. All or nothing."""
    try:
        cocktail = RecipeImporter(db).confirm(request.recipe, request.resolutions)
    except RecipeImportError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return cocktail_to_response(_get_cocktail(db, cocktail.id))
