"""Cocktail availability from current stock.

For each recipe line, works out whether it can be served and how many times:

- INGREDIENT: manual is_available flag, unlimited when available
- BOTTLE: remaining ml of that bottle / ml per serving
- CATEGORY: remaining ml across every non-empty bottle of the category

A cocktail's max servings is the smallest count over its limited lines.
Lines whose unit has no ml factor (pieces, leaves) only need the source to
exist and be non-empty, and do not cap servings.
"""
import logging
import math
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from app.config import get_settings
from app.models.bottle import Bottle
from app.models.category import Category
from app.models.cocktail import Cocktail, CocktailIngredient, SourceType
from app.models.ingredient import Ingredient
from app.schemas.cocktail import CocktailAvailability, IngredientAvailability
from app.services.catalog import CocktailNotFoundError
from app.services.units import is_convertible, to_milliliters

logger = logging.getLogger(__name__)

# Sentinel for "no line caps servings"; clients display it as infinity
UNLIMITED_SERVINGS = 999


def _servings(available_ml: float, required_ml: float) -> int:
    if required_ml <= 0:
        return 0
    return math.floor(available_ml / required_ml)


def calculate_ingredient_availability(db: Session, line: CocktailIngredient) -> IngredientAvailability:
    """Availability of a single recipe line."""
    unit = line.unit
    base = dict(
        cocktail_ingredient_id=line.id,
        source_type=line.source_type,
        quantity=float(line.quantity),
        unit=unit.abbreviation if unit else "",
        is_available=False,
        available_count=None,
    )
    measurable = unit is not None and is_convertible(unit)

    if line.source_type == SourceType.INGREDIENT.value:
        ingredient = db.get(Ingredient, line.ingredient_id) if line.ingredient_id else None
        if not ingredient:
            return IngredientAvailability(**base, name="Unknown", reason="Ingredient not found")
        if ingredient.is_available:
            return IngredientAvailability(**{**base, "is_available": True}, name=ingredient.name, icon=ingredient.icon)
        return IngredientAvailability(
            **{**base, "available_count": 0},
            name=ingredient.name,
            icon=ingredient.icon,
            reason="Ingredient marked as unavailable",
        )

    if line.source_type == SourceType.BOTTLE.value:
        bottle = db.get(Bottle, line.bottle_id) if line.bottle_id else None
        if not bottle:
            return IngredientAvailability(**base, name="Unknown", reason="Bottle not found")
        if bottle.is_emptied:
            return IngredientAvailability(
                **{**base, "available_count": 0}, name=bottle.name, reason="Bottle is empty"
            )
        if not measurable:
            return IngredientAvailability(**{**base, "is_available": True}, name=bottle.name)

        servings = _servings(bottle.remaining_ml, to_milliliters(line.quantity, unit))
        return IngredientAvailability(
            **{**base, "is_available": servings > 0, "available_count": servings},
            name=bottle.name,
            reason=None if servings > 0 else "Bottle has insufficient quantity",
        )

    if line.source_type == SourceType.CATEGORY.value:
        category = db.get(Category, line.category_id) if line.category_id else None
        if not category:
            return IngredientAvailability(**base, name="Unknown", reason="Category not found")
        usable = [b for b in category.bottles if not b.is_emptied]
        if not measurable:
            if usable:
                return IngredientAvailability(**{**base, "is_available": True}, name=category.name)
            return IngredientAvailability(
                **{**base, "available_count": 0},
                name=category.name,
                reason=f"No {category.name} bottles available",
            )

        total_ml = sum(b.remaining_ml for b in usable)
        servings = _servings(total_ml, to_milliliters(line.quantity, unit))
        return IngredientAvailability(
            **{**base, "is_available": servings > 0, "available_count": servings},
            name=category.name,
            reason=None if servings > 0 else f"Insufficient {category.name} in stock",
        )

    return IngredientAvailability(**base, name="Unknown", reason="Invalid ingredient configuration")


def summarize_availability(
    cocktail_id: UUID,
    lines: list[IngredientAvailability],
    low_stock_threshold: Optional[int] = None,
) -> CocktailAvailability:
    """Fold per-line results into the cocktail-level answer."""
    if low_stock_threshold is None:
        low_stock_threshold = get_settings().LOW_STOCK_THRESHOLD

    missing: list[str] = []
    warnings: list[str] = []
    max_servings: Optional[int] = None

    for line in lines:
        if not line.is_available:
            missing.append(line.name)
            continue
        if line.available_count is None:
            continue
        max_servings = line.available_count if max_servings is None else min(max_servings, line.available_count)
        if 0 < line.available_count <= low_stock_threshold:
            warnings.append(f"{line.name}: only {line.available_count} servings left")

    is_available = not missing
    if not is_available:
        max_servings = 0
    elif max_servings is None:
        max_servings = UNLIMITED_SERVINGS

    return CocktailAvailability(
        cocktail_id=cocktail_id,
        is_available=is_available,
        max_servings=max_servings,
        ingredients=lines,
        missing_ingredients=missing,
        low_stock_warnings=warnings,
    )


def calculate_cocktail_availability(db: Session, cocktail_id: UUID) -> CocktailAvailability:
    """Availability of one cocktail.

    Raises:
        CocktailNotFoundError: If the cocktail does not exist
    """
    cocktail = (
        db.query(Cocktail)
        .options(joinedload(Cocktail.ingredients).joinedload(CocktailIngredient.unit))
        .filter(Cocktail.id == cocktail_id)
        .first()
    )
    if not cocktail:
        raise CocktailNotFoundError(f"Cocktail {cocktail_id} not found")

    lines = [calculate_ingredient_availability(db, line) for line in cocktail.ingredients]
    return summarize_availability(cocktail.id, lines)


def calculate_all_cocktails_availability(db: Session) -> dict[UUID, CocktailAvailability]:
    """Availability of every cocktail, keyed by cocktail id.

    A failure on one cocktail is logged and reported as unavailable so the
    rest of the list still renders.
    """
    results: dict[UUID, CocktailAvailability] = {}
    for (cocktail_id,) in db.query(Cocktail.id).order_by(Cocktail.name).all():
        try:
            results[cocktail_id] = calculate_cocktail_availability(db, cocktail_id)
        except Exception:
            logger.exception(f"Error calculating availability for cocktail {cocktail_id}")
            results[cocktail_id] = CocktailAvailability(
                cocktail_id=cocktail_id,
                is_available=False,
                max_servings=0,
                missing_ingredients=["Calculation error"],
            )
    return results
