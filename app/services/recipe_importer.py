"""Recipe importer service - merges an exported cocktail into this database.

Two passes over a version-1 export document:

1. preview: list every unit/category/bottle/ingredient the recipe references
   and whether a live row already matches it (case-insensitive name, or
   abbreviation for units).
2. confirm: apply the operator's resolution for each reference (use an
   existing row, create a new one, or - bottles only - skip the lines that
   use it), then create the cocktail. One transaction: any failure rolls
   everything back.

Entity keys index both the preview and the resolution map and must stay
identical on both sides: units use the lower-cased abbreviation (falling
back to the name), everything else the lower-cased name.
"""
import io
import json
import logging
import uuid
import zipfile
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

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
from app.schemas.category import DEFAULT_CATEGORY_TYPE, CategoryCreate
from app.schemas.cocktail import clean_tags
from app.schemas.cocktail_import import (
    ENTITY_TYPES,
    EXPORT_VERSION,
    CocktailExport,
    EntityRef,
    EntityResolution,
    ExistingMatch,
    ExportCocktail,
    ExportIngredient,
    ExportUnit,
    ImportBottleData,
    ImportPreview,
    ImportPreviewCocktail,
    ResolutionAction,
)
from app.schemas.ingredient import IngredientCreate
from app.schemas.unit import UnitCreate
from app.services.catalog import ensure_category_type, find_by_name

logger = logging.getLogger(__name__)

# Capacity and fill level are not part of an export: imported bottles start full
IMPORTED_BOTTLE_CAPACITY_ML = 700
IMPORTED_BOTTLE_REMAINING_PERCENT = 100

ENTITY_LABELS = {
    "units": "unit",
    "categories": "category",
    "bottles": "bottle",
    "ingredients": "ingredient",
}


class RecipeImportError(ValueError):
    """Raised when an export document or its resolutions cannot be applied."""


def parse_export(data: Any) -> CocktailExport:
    """Validate a raw export document.

    Args:
        data: Decoded JSON (dict) or an already parsed CocktailExport

    Returns:
        Parsed document

    Raises:
        RecipeImportError: Wrong shape, version other than 1, no cocktail name,
            or a unit with neither name nor abbreviation
    """
    if isinstance(data, CocktailExport):
        doc = data
    else:
        if not isinstance(data, dict):
            raise RecipeImportError("Recipe must be a JSON object")
        if data.get("version") != EXPORT_VERSION:
            raise RecipeImportError(f"Unsupported export version: {data.get('version')!r}")
        cocktail = data.get("cocktail")
        if not isinstance(cocktail, dict) or not cocktail.get("name"):
            raise RecipeImportError("Recipe has no cocktail name")
        try:
            doc = CocktailExport.model_validate(data)
        except ValidationError as e:
            raise RecipeImportError(f"Invalid recipe: {e.errors()[0]['msg']}") from e

    if doc.version != EXPORT_VERSION or not doc.cocktail.name.strip():
        raise RecipeImportError("Recipe must be version 1 with a cocktail name")
    for line in doc.cocktail.ingredients:
        if line.unit is not None and not entity_key("units", _unit_ref(line.unit)):
            raise RecipeImportError(f"Ingredient '{line.source_name}' has a unit with no name or abbreviation")
    return doc


def read_export_zip(content: bytes) -> list[dict]:
    """Valid export documents inside a zip archive, in archive order.

    Entries that are not .json files or not valid version-1 exports are
    skipped with a warning.

    Raises:
        RecipeImportError: Unreadable archive, or no valid recipe in it
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(content))
    except zipfile.BadZipFile as e:
        raise RecipeImportError("Could not read zip file") from e

    documents = []
    with archive:
        names = [
            info.filename
            for info in archive.infolist()
            if not info.is_dir() and info.filename.lower().endswith(".json")
        ]
        if not names:
            raise RecipeImportError("No recipes found in zip file")
        for name in names:
            try:
                data = json.loads(archive.read(name))
                parse_export(data)
            except ValueError as e:
                logger.warning(f"Skipping {name} in zip: {e}")
                continue
            documents.append(data)

    if not documents:
        raise RecipeImportError("No valid recipes in zip file")
    return documents


def _ref_value(ref: Union[EntityRef, dict], field: str) -> Any:
    if isinstance(ref, dict):
        return ref.get(field)
    return getattr(ref, field, None)


def entity_key(entity_type: str, ref: Union[EntityRef, dict]) -> str:
    """Resolution-map key for a reference.

    Units: lower-cased abbreviation, else lower-cased name.
    Categories, bottles, ingredients: lower-cased name.
    """
    name = (_ref_value(ref, "name") or "").lower()
    if entity_type == "units":
        abbreviation = _ref_value(ref, "abbreviation")
        return abbreviation.lower() if abbreviation else name
    return name


def default_create_data(entity_type: str, ref: Union[EntityRef, dict]) -> dict:
    """Prefilled create payload for a missing reference."""
    if entity_type == "units":
        return {
            "name": _ref_value(ref, "name"),
            "abbreviation": _ref_value(ref, "abbreviation"),
            "conversion_factor_to_ml": _ref_value(ref, "conversion_factor_to_ml"),
        }
    if entity_type == "categories":
        return {
            "name": _ref_value(ref, "name"),
            "type": _ref_value(ref, "type") or DEFAULT_CATEGORY_TYPE,
            "desired_stock": _ref_value(ref, "desired_stock") or 1,
        }
    if entity_type == "bottles":
        return {
            "name": _ref_value(ref, "name"),
            "category_name": _ref_value(ref, "category_name") or "",
            "capacity_ml": IMPORTED_BOTTLE_CAPACITY_ML,
            "remaining_percent": IMPORTED_BOTTLE_REMAINING_PERCENT,
        }
    if entity_type == "ingredients":
        return {
            "name": _ref_value(ref, "name"),
            "icon": _ref_value(ref, "icon") or None,
        }
    raise ValueError(f"Unknown entity type: {entity_type}")


def _unit_ref(unit: ExportUnit) -> EntityRef:
    return EntityRef(
        name=unit.name,
        abbreviation=unit.abbreviation,
        conversion_factor_to_ml=unit.conversion_factor_to_ml,
    )


def extract_references(cocktail: ExportCocktail) -> dict[str, list[EntityRef]]:
    """Collect every entity the recipe references, de-duplicated by key.

    Bottles and preferred bottles also contribute their category, so a
    bottle created during import always has a category to land in.
    """
    refs: dict[str, dict[str, EntityRef]] = {t: {} for t in ENTITY_TYPES}

    def add(entity_type: str, ref: EntityRef):
        key = entity_key(entity_type, ref)
        if key and key not in refs[entity_type]:
            refs[entity_type][key] = ref

    for line in cocktail.ingredients:
        detail = line.source_detail or {}
        if line.unit:
            add("units", _unit_ref(line.unit))

        if line.source_type == SourceType.BOTTLE.value:
            category_name = detail.get("categoryName")
            if category_name:
                add("categories", EntityRef(name=category_name, type=detail.get("categoryType")))
            add("bottles", EntityRef(name=line.source_name, category_name=category_name))
        elif line.source_type == SourceType.CATEGORY.value:
            add("categories", EntityRef(
                name=line.source_name,
                type=detail.get("type"),
                desired_stock=detail.get("desiredStock"),
            ))
        elif line.source_type == SourceType.INGREDIENT.value:
            add("ingredients", EntityRef(name=line.source_name, icon=detail.get("icon")))

        for preferred in line.preferred_bottles:
            if preferred.category_name:
                add("categories", EntityRef(name=preferred.category_name))
            add("bottles", EntityRef(name=preferred.name, category_name=preferred.category_name))

    return {t: list(refs[t].values()) for t in ENTITY_TYPES}


class RecipeImporter:
    """Service for previewing and applying cocktail imports."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def find_match(self, entity_type: str, ref: EntityRef):
        """Live row matching a reference, or None."""
        if entity_type == "units":
            if ref.abbreviation:
                return find_by_name(self.db, Unit, Unit.abbreviation, ref.abbreviation)
            return find_by_name(self.db, Unit, Unit.name, ref.name)
        if entity_type == "categories":
            return find_by_name(self.db, Category, Category.name, ref.name)
        if entity_type == "bottles":
            return find_by_name(self.db, Bottle, Bottle.name, ref.name)
        if entity_type == "ingredients":
            return find_by_name(self.db, Ingredient, Ingredient.name, ref.name)
        raise ValueError(f"Unknown entity type: {entity_type}")

    @staticmethod
    def _existing_match(entity_type: str, row) -> ExistingMatch:
        if entity_type == "units":
            return ExistingMatch(id=row.id, name=row.name, abbreviation=row.abbreviation)
        if entity_type == "bottles":
            return ExistingMatch(
                id=row.id,
                name=row.name,
                category_name=row.category.name if row.category else None,
            )
        return ExistingMatch(id=row.id, name=row.name)

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def preview(self, data: Any) -> ImportPreview:
        """Match status of every entity the recipe references.

        Raises:
            RecipeImportError: If the document is invalid
        """
        doc = parse_export(data)
        refs = extract_references(doc.cocktail)

        groups: dict[str, list[EntityResolution]] = {}
        for entity_type in ENTITY_TYPES:
            groups[entity_type] = []
            for ref in refs[entity_type]:
                match = self.find_match(entity_type, ref)
                groups[entity_type].append(EntityResolution(
                    ref=ref,
                    status="matched" if match else "missing",
                    existing_match=self._existing_match(entity_type, match) if match else None,
                ))

        already_exists = find_by_name(self.db, Cocktail, Cocktail.name, doc.cocktail.name) is not None
        missing = sum(1 for g in groups.values() for e in g if e.status == "missing")
        logger.info(f"Import preview for '{doc.cocktail.name}': {missing} missing references")

        return ImportPreview(
            cocktail=ImportPreviewCocktail(
                name=doc.cocktail.name,
                description=doc.cocktail.description,
                tags=clean_tags(doc.cocktail.tags),
                already_exists=already_exists,
            ),
            **groups,
        )

    # ------------------------------------------------------------------
    # Confirm
    # ------------------------------------------------------------------

    def confirm(self, data: Any, resolutions: dict[str, dict[str, ResolutionAction]]) -> Cocktail:
        """Apply resolutions and create the cocktail in one transaction.

        Args:
            data: Export document
            resolutions: {entity_type: {entity_key: ResolutionAction}}

        Returns:
            The created cocktail

        Raises:
            RecipeImportError: Invalid document or resolution; nothing is persisted
        """
        doc = parse_export(data)
        refs = extract_references(doc.cocktail)
        resolved: dict[str, dict[str, Optional[uuid.UUID]]] = {t: {} for t in ENTITY_TYPES}

        try:
            # Order matters: bottles look up the categories resolved before them
            for entity_type in ENTITY_TYPES:
                for ref in refs[entity_type]:
                    key = entity_key(entity_type, ref)
                    action = (resolutions.get(entity_type) or {}).get(key)
                    resolved[entity_type][key] = self._resolve(entity_type, ref, action, resolved)

            cocktail = self._create_cocktail(doc.cocktail, resolved)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.warning(f"Import of '{doc.cocktail.name}' rolled back")
            raise

        self.db.refresh(cocktail)
        logger.info(f"Imported cocktail '{cocktail.name}' ({cocktail.id})")
        return cocktail

    def _resolve(
        self,
        entity_type: str,
        ref: EntityRef,
        action: Optional[ResolutionAction],
        resolved: dict[str, dict[str, Optional[uuid.UUID]]],
    ) -> Optional[uuid.UUID]:
        """Turn one reference into a row id (None = skipped bottle)."""
        label = ENTITY_LABELS[entity_type]

        if action is None:
            match = self.find_match(entity_type, ref)
            if match is None:
                raise RecipeImportError(f"No resolution for missing {label} '{ref.name}'")
            return match.id

        if action.action == "skip":
            if entity_type != "bottles":
                raise RecipeImportError(f"Cannot skip {label} '{ref.name}': only bottles can be skipped")
            return None

        if action.action == "use_existing":
            model = {"units": Unit, "categories": Category, "bottles": Bottle, "ingredients": Ingredient}[entity_type]
            row = self.db.get(model, action.existing_id) if action.existing_id else None
            if row is None:
                raise RecipeImportError(f"Existing {label} for '{ref.name}' not found")
            return row.id

        data = action.data or default_create_data(entity_type, ref)
        try:
            return self._create_entity(entity_type, data, resolved)
        except ValidationError as e:
            raise RecipeImportError(f"Invalid {label} data for '{ref.name}': {e.errors()[0]['msg']}") from e

    def _create_entity(
        self,
        entity_type: str,
        data: dict,
        resolved: dict[str, dict[str, Optional[uuid.UUID]]],
    ) -> uuid.UUID:
        if entity_type == "units":
            payload = UnitCreate.model_validate(data)
            if find_by_name(self.db, Unit, Unit.abbreviation, payload.abbreviation):
                raise RecipeImportError(f"Unit '{payload.abbreviation}' already exists")
            row = Unit(id=uuid.uuid4(), **payload.model_dump())

        elif entity_type == "categories":
            payload = CategoryCreate.model_validate(data)
            if find_by_name(self.db, Category, Category.name, payload.name):
                raise RecipeImportError(f"Category '{payload.name}' already exists")
            ensure_category_type(self.db, payload.type)
            row = Category(id=uuid.uuid4(), **payload.model_dump())

        elif entity_type == "bottles":
            payload = ImportBottleData.model_validate(data)
            category_key = payload.category_name.lower()
            category_id = resolved["categories"].get(category_key)
            if category_id is None and payload.category_name:
                category = find_by_name(self.db, Category, Category.name, payload.category_name)
                category_id = category.id if category else None
            if category_id is None:
                raise RecipeImportError(
                    f"Bottle '{payload.name}' needs a category, '{payload.category_name}' not found"
                )
            row = Bottle(
                id=uuid.uuid4(),
                name=payload.name,
                category_id=category_id,
                capacity_ml=payload.capacity_ml,
                remaining_percent=payload.remaining_percent,
            )

        elif entity_type == "ingredients":
            payload = IngredientCreate.model_validate(data)
            if find_by_name(self.db, Ingredient, Ingredient.name, payload.name):
                raise RecipeImportError(f"Ingredient '{payload.name}' already exists")
            row = Ingredient(id=uuid.uuid4(), **payload.model_dump())

        else:
            raise ValueError(f"Unknown entity type: {entity_type}")

        self.db.add(row)
        self.db.flush()
        logger.info(f"Created {ENTITY_LABELS[entity_type]} '{row.name}' during import")
        return row.id

    @staticmethod
    def _resolved_id(
        resolved: dict[str, dict[str, Optional[uuid.UUID]]],
        entity_type: str,
        key: str,
        line_name: str,
    ) -> Optional[uuid.UUID]:
        if key not in resolved[entity_type]:
            raise RecipeImportError(f"Ingredient '{line_name}' references an unresolved {ENTITY_LABELS[entity_type]}")
        return resolved[entity_type][key]

    def _preferred_bottle_ids(
        self,
        line: ExportIngredient,
        category_id: uuid.UUID,
        resolved: dict[str, dict[str, Optional[uuid.UUID]]],
    ) -> list[uuid.UUID]:
        """Resolved preferred bottles of a category line, limited to that category."""
        bottle_ids: list[uuid.UUID] = []
        for preferred in line.preferred_bottles:
            bottle_id = resolved["bottles"].get(preferred.name.lower())
            if bottle_id is None or bottle_id in bottle_ids:
                continue
            bottle = self.db.get(Bottle, bottle_id)
            if bottle is None or bottle.category_id != category_id:
                logger.warning(
                    f"Dropping preferred bottle '{preferred.name}' of '{line.source_name}': not in that category"
                )
                continue
            bottle_ids.append(bottle_id)
        return bottle_ids

    def _create_cocktail(
        self,
        cocktail_data: ExportCocktail,
        resolved: dict[str, dict[str, Optional[uuid.UUID]]],
    ) -> Cocktail:
        cocktail = Cocktail(
            id=uuid.uuid4(),
            name=cocktail_data.name.strip(),
            description=cocktail_data.description,
            notes=cocktail_data.notes,
            tags=",".join(clean_tags(cocktail_data.tags)),
            is_available=True,
        )
        self.db.add(cocktail)

        position = 0
        for line in sorted(cocktail_data.ingredients, key=lambda l: l.position):
            if line.unit is None:
                raise RecipeImportError(f"Ingredient '{line.source_name}' has no unit")
            if line.quantity <= 0:
                raise RecipeImportError(f"Ingredient '{line.source_name}' has no quantity")
            unit_id = self._resolved_id(resolved, "units", entity_key("units", _unit_ref(line.unit)), line.source_name)
            name_key = line.source_name.lower()

            row = CocktailIngredient(
                id=uuid.uuid4(),
                position=position,
                quantity=Decimal(str(line.quantity)),
                unit_id=unit_id,
                source_type=line.source_type,
            )
            if line.source_type == SourceType.BOTTLE.value:
                row.bottle_id = self._resolved_id(resolved, "bottles", name_key, line.source_name)
                if row.bottle_id is None:
                    logger.info(f"Skipping line '{line.source_name}': bottle skipped")
                    continue
            elif line.source_type == SourceType.CATEGORY.value:
                row.category_id = self._resolved_id(resolved, "categories", name_key, line.source_name)
                row.preferred_bottles = [
                    CocktailPreferredBottle(id=uuid.uuid4(), bottle_id=bottle_id)
                    for bottle_id in self._preferred_bottle_ids(line, row.category_id, resolved)
                ]
            else:
                row.ingredient_id = self._resolved_id(resolved, "ingredients", name_key, line.source_name)

            cocktail.ingredients.append(row)
            position += 1

        steps = sorted(
            enumerate(cocktail_data.instructions),
            key=lambda item: (item[1].step_number if item[1].step_number is not None else item[0], item[0]),
        )
        step_number = 1
        for _, step in steps:
            text = step.text.strip()
            if not text:
                continue
            cocktail.instructions.append(CocktailInstruction(id=uuid.uuid4(), step_number=step_number, text=text))
            step_number += 1

        self.db.flush()
        return cocktail
