"""Cocktail export - serializes recipes into portable version-1 documents.

One recipe is one JSON document; several can be packed into a zip of
cocktail-<slug>.json files.

The document carries names, not ids, so it can be imported into another
installation. Inventory state (capacity, fill level, prices) is never
exported.
"""
import io
import json
import re
import zipfile
from datetime import date, datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from app.models.bottle import Bottle
from app.models.cocktail import Cocktail, CocktailIngredient, CocktailPreferredBottle, SourceType
from app.schemas.cocktail_import import (
    EXPORT_VERSION,
    CocktailExport,
    ExportCocktail,
    ExportIngredient,
    ExportInstruction,
    ExportPreferredBottle,
    ExportUnit,
)
from app.services.catalog import CocktailNotFoundError


def slugify(name: str) -> str:
    """'Old Fashioned #2' -> 'old-fashioned-2'."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "cocktail"


def export_filename(cocktail: Cocktail) -> str:
    return f"cocktail-{slugify(cocktail.name)}.json"


def zip_filename(day: Optional[date] = None) -> str:
    return f"cocktails-export-{(day or date.today()).isoformat()}.zip"


def build_export_zip(documents: list[dict]) -> bytes:
    """Pack export documents into one zip, one cocktail-<slug>.json per recipe.

    Cocktails whose names slugify identically get -2, -3 ... suffixes.
    """
    buffer = io.BytesIO()
    used: dict[str, int] = {}
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for document in documents:
            slug = slugify(document["cocktail"]["name"])
            used[slug] = used.get(slug, 0) + 1
            if used[slug] > 1:
                slug = f"{slug}-{used[slug]}"
            archive.writestr(f"cocktail-{slug}.json", json.dumps(document, indent=2, ensure_ascii=False))
    return buffer.getvalue()


def _source_detail(line: CocktailIngredient) -> dict:
    if line.source_type == SourceType.BOTTLE.value and line.bottle:
        category = line.bottle.category
        return {
            "categoryName": category.name if category else None,
            "categoryType": category.type if category else None,
        }
    if line.source_type == SourceType.CATEGORY.value and line.category:
        return {"type": line.category.type, "desiredStock": line.category.desired_stock}
    if line.source_type == SourceType.INGREDIENT.value and line.ingredient:
        return {"icon": line.ingredient.icon}
    return {}


def _export_line(line: CocktailIngredient) -> ExportIngredient:
    unit = None
    if line.unit:
        factor = line.unit.conversion_factor_to_ml
        unit = ExportUnit(
            name=line.unit.name,
            abbreviation=line.unit.abbreviation,
            conversion_factor_to_ml=float(factor) if factor is not None else None,
        )

    preferred = [
        ExportPreferredBottle(
            name=pb.bottle.name,
            category_name=pb.bottle.category.name if pb.bottle.category else None,
        )
        for pb in line.preferred_bottles
        if pb.bottle
    ]

    return ExportIngredient(
        source_type=line.source_type,
        source_name=line.source_name,
        source_detail=_source_detail(line),
        quantity=float(line.quantity),
        unit=unit,
        position=line.position,
        preferred_bottles=preferred,
    )


def build_export(cocktail: Cocktail, exported_at: Optional[datetime] = None) -> CocktailExport:
    """Build the export document for a loaded cocktail."""
    return CocktailExport(
        version=EXPORT_VERSION,
        exported_at=exported_at or datetime.now(timezone.utc),
        cocktail=ExportCocktail(
            name=cocktail.name,
            description=cocktail.description,
            notes=cocktail.notes,
            tags=cocktail.tag_list,
            ingredients=[_export_line(line) for line in cocktail.ingredients],
            instructions=[
                ExportInstruction(step_number=step.step_number, text=step.text)
                for step in cocktail.instructions
            ],
        ),
    )


def load_cocktail_for_export(db: Session, cocktail_id: UUID) -> Cocktail:
    """Load a cocktail with everything its export needs.

    Raises:
        CocktailNotFoundError: If the cocktail does not exist
    """
    cocktail = (
        db.query(Cocktail)
        .options(
            joinedload(Cocktail.ingredients).joinedload(CocktailIngredient.unit),
            joinedload(Cocktail.ingredients).joinedload(CocktailIngredient.bottle).joinedload(Bottle.category),
            joinedload(Cocktail.ingredients).joinedload(CocktailIngredient.category),
            joinedload(Cocktail.ingredients).joinedload(CocktailIngredient.ingredient),
            joinedload(Cocktail.ingredients)
            .joinedload(CocktailIngredient.preferred_bottles)
            .joinedload(CocktailPreferredBottle.bottle),
            joinedload(Cocktail.instructions),
        )
        .filter(Cocktail.id == cocktail_id)
        .first()
    )
    if not cocktail:
        raise CocktailNotFoundError(f"Cocktail {cocktail_id} not found")
    return cocktail
