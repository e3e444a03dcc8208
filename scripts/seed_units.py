#!/usr/bin/env python3
"""Seed the stock units into the configured database.

Usage:
    python scripts/seed_units.py

Existing abbreviations (any case) are left untouched, so the script can be
run again safely.
"""

import logging

from app.database import get_session
from app.models.unit import Unit
from app.services.catalog import name_taken
from app.services.units import DEFAULT_UNITS

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger("seed_units")


def seed_units() -> int:
    """Insert missing stock units. Returns how many were created."""
    db = get_session()
    created = 0
    try:
        for name, abbreviation, factor in DEFAULT_UNITS:
            if name_taken(db, Unit, Unit.abbreviation, abbreviation):
                logger.info(f"  - {abbreviation} already present")
                continue
            db.add(Unit(name=name, abbreviation=abbreviation, conversion_factor_to_ml=factor))
            created += 1
            logger.info(f"  + {abbreviation} ({name})")
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    return created


if __name__ == "__main__":
    count = seed_units()
    logger.info(f"Seeded {count} units")
