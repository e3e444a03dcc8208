"""Unit conversion engine for cocktail quantities.

Every convertible unit declares how many milliliters one of it holds
(conversion_factor_to_ml). Conversions go through milliliters:

    quantity (from) -> ml -> quantity (to)

Units without a factor (piece, leaf, zest) are never convertible. The
functions here never raise: a non-convertible unit passes the quantity
through unchanged and logs a warning, so callers must tolerate that.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)


# Stock units for a fresh database: (name, abbreviation, ml per unit)
DEFAULT_UNITS: list[tuple[str, str, Optional[Decimal]]] = [
    ("Millilitre", "ml", Decimal("1")),
    ("Centilitre", "cl", Decimal("10")),
    ("Ounce", "oz", Decimal("29.5735")),  # US fluid ounce
    ("Cuillère à café", "cc", Decimal("5")),
    ("Cuillère à soupe", "cs", Decimal("15")),
    ("Dash", "dash", Decimal("0.6")),
    ("Trait", "trait", Decimal("0.6")),
    ("Pièce", "pce", None),
    ("Feuille", "feuille", None),
    ("Tranche", "tranche", None),
    ("Zeste", "zeste", None),
]


@dataclass
class Conversion:
    """One row of a conversion table."""

    unit: Any
    quantity: float
    formatted: str


def _get(unit: Any, field: str) -> Any:
    if isinstance(unit, dict):
        return unit.get(field)
    return getattr(unit, field, None)


def get_conversion_factor(unit: Any) -> Optional[float]:
    """Return the unit's ml factor as a float, or None if it has none.

    Args:
        unit: ORM Unit, pydantic schema, or mapping with conversion_factor_to_ml

    Returns:
        Milliliters per unit, or None for countable units
    """
    factor = _get(unit, "conversion_factor_to_ml")
    if factor is None:
        return None
    return float(factor)


def _label(unit: Any) -> str:
    return _get(unit, "abbreviation") or _get(unit, "name") or "?"


def is_convertible(unit: Any) -> bool:
    """True iff the unit declares a conversion factor to milliliters."""
    return get_conversion_factor(unit) is not None


def to_milliliters(quantity: float, unit: Any) -> float:
    """Convert a quantity expressed in `unit` to milliliters.

    Non-convertible units return the quantity unchanged.
    """
    factor = get_conversion_factor(unit)
    if factor is None:
        logger.warning(f"Unit '{_label(unit)}' has no ml factor, cannot convert")
        return float(quantity)
    return float(quantity) * factor


def from_milliliters(ml: float, unit: Any) -> float:
    """Convert milliliters to a quantity expressed in `unit`.

    Non-convertible units return the ml value unchanged.
    """
    factor = get_conversion_factor(unit)
    if factor is None:
        logger.warning(f"Unit '{_label(unit)}' has no ml factor, cannot convert")
        return float(ml)
    return float(ml) / factor


def convert_unit(quantity: float, from_unit: Any, to_unit: Any) -> float:
    """Convert between two units through milliliters.

    The ml factor is the only compatibility check: any two units that
    declare one can be converted into each other.
    """
    return from_milliliters(to_milliliters(quantity, from_unit), to_unit)


def _trim(value: float, decimals: int) -> str:
    """Round to `decimals` places and drop trailing zeros ("2.50" -> "2.5", "2.00" -> "2")."""
    rounded = float(f"{value:.{decimals}f}")
    if rounded.is_integer():
        return str(int(rounded))
    return str(rounded)


def format_quantity(quantity: float, unit: Any) -> str:
    """Format a quantity for display with precision keyed to the unit's factor.

    - factor < 1 (dash, trait): always one decimal ("3.5", "2.0")
    - factor == 1 (ml): integer when exact, else one decimal
    - factor > 1 (cl, oz, spoons): up to two decimals, trailing zeros trimmed
    - no factor: same as factor > 1

    Display only; never feed the result back into arithmetic.
    """
    quantity = float(quantity)
    factor = get_conversion_factor(unit)

    if factor is not None and factor < 1:
        return f"{quantity:.1f}"

    if factor == 1:
        if quantity.is_integer():
            return str(int(quantity))
        return f"{quantity:.1f}"

    return _trim(quantity, 2)


def get_all_conversions(quantity: float, from_unit: Any, all_units: Iterable[Any]) -> list[Conversion]:
    """Convert a quantity into every other convertible unit.

    Args:
        quantity: Amount in from_unit
        from_unit: Source unit
        all_units: Candidate target units, in display order

    Returns:
        One Conversion per convertible unit other than from_unit, in input
        order. Empty if from_unit itself is not convertible.
    """
    if not is_convertible(from_unit):
        return []

    source_id = _get(from_unit, "id")
    ml = to_milliliters(quantity, from_unit)

    conversions = []
    for unit in all_units:
        if not is_convertible(unit):
            continue
        if source_id is not None and _get(unit, "id") == source_id:
            continue
        if source_id is None and unit is from_unit:
            continue
        converted = from_milliliters(ml, unit)
        conversions.append(Conversion(unit=unit, quantity=converted, formatted=format_quantity(converted, unit)))

    return conversions
