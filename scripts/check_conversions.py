#!/usr/bin/env python3
"""Print conversion tables for the stock units.

Usage:
    python scripts/check_conversions.py [QUANTITY UNIT]

Examples:
    python scripts/check_conversions.py          # every unit, quantity 1
    python scripts/check_conversions.py 4 cl
"""

import sys

from app.services.units import DEFAULT_UNITS, format_quantity, get_all_conversions, is_convertible


def stock_units() -> list[dict]:
    return [
        {"id": abbreviation, "name": name, "abbreviation": abbreviation, "conversion_factor_to_ml": factor}
        for name, abbreviation, factor in DEFAULT_UNITS
    ]


def print_table(quantity: float, unit: dict, units: list[dict]) -> None:
    print(f"\n=== {format_quantity(quantity, unit)} {unit['abbreviation']} ({unit['name']}) ===")
    if not is_convertible(unit):
        print("  (not convertible)")
        return
    for conversion in get_all_conversions(quantity, unit, units):
        print(f"  = {conversion.formatted} {conversion.unit['abbreviation']}")


def main():
    units = stock_units()
    by_abbreviation = {u["abbreviation"]: u for u in units}

    if len(sys.argv) == 3:
        quantity = float(sys.argv[1])
        unit = by_abbreviation.get(sys.argv[2].lower())
        if unit is None:
            print(f"Unknown unit: {sys.argv[2]} (known: {', '.join(by_abbreviation)})")
            sys.exit(1)
        print_table(quantity, unit, units)
        return

    for unit in units:
        print_table(1, unit, units)


if __name__ == "__main__":
    main()
