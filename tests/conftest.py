"""Test fixtures and configuration."""
import uuid
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base
from app.models.bottle import Bottle
from app.models.category import Category, CategoryType
from app.models.cocktail import (
    Cocktail,
    CocktailIngredient,
    CocktailInstruction,
    CocktailPreferredBottle,
    SourceType,
)
from app.models.ingredient import Ingredient
from app.models.unit import Unit


@pytest.fixture(scope="function")
def engine():
    """Create an in-memory SQLite engine for testing."""
    # Use check_same_thread=False for compatibility with FastAPI TestClient
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=OFF")
        cursor.close()

    # Create all tables
    Base.metadata.create_all(engine)

    yield engine

    # Clean up
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    """Create a test database session."""
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.rollback()
    session.close()


# ---------------------------------------------------------------------------
# Factory helpers
# ---------------------------------------------------------------------------

def make_uuid():
    return uuid.uuid4()


@pytest.fixture
def unit_factory(db):
    """Factory to create test units. factor=None makes a countable unit."""
    def _create(name="Centilitre", abbreviation="cl", factor=Decimal("10"), **kwargs):
        unit = Unit(
            id=kwargs.pop("id", make_uuid()),
            name=name,
            abbreviation=abbreviation,
            conversion_factor_to_ml=factor,
            **kwargs,
        )
        db.add(unit)
        db.flush()
        return unit
    return _create


@pytest.fixture
def category_factory(db):
    """Factory to create test categories."""
    def _create(name="Rhum blanc", type="SPIRIT", desired_stock=1, **kwargs):
        category = Category(
            id=kwargs.pop("id", make_uuid()),
            name=name,
            type=type,
            desired_stock=desired_stock,
            **kwargs,
        )
        db.add(category)
        db.flush()
        return category
    return _create


@pytest.fixture
def category_type_factory(db):
    """Factory to create test category types."""
    def _create(name="SPIRIT", color="gray"):
        category_type = CategoryType(id=make_uuid(), name=name, color=color)
        db.add(category_type)
        db.flush()
        return category_type
    return _create


@pytest.fixture
def bottle_factory(db):
    """Factory to create test bottles."""
    def _create(category, name="Havana Club 3", capacity_ml=700, remaining_percent=100, **kwargs):
        bottle = Bottle(
            id=kwargs.pop("id", make_uuid()),
            name=name,
            category=category,
            capacity_ml=capacity_ml,
            remaining_percent=remaining_percent,
            **kwargs,
        )
        db.add(bottle)
        db.flush()
        return bottle
    return _create


@pytest.fixture
def ingredient_factory(db):
    """Factory to create test ingredients."""
    def _create(name="Menthe", icon=None, is_available=True, **kwargs):
        ingredient = Ingredient(
            id=kwargs.pop("id", make_uuid()),
            name=name,
            icon=icon,
            is_available=is_available,
            **kwargs,
        )
        db.add(ingredient)
        db.flush()
        return ingredient
    return _create


@pytest.fixture
def cocktail_factory(db):
    """Factory to create test cocktails."""
    def _create(name="Mojito", tags="", **kwargs):
        cocktail = Cocktail(
            id=kwargs.pop("id", make_uuid()),
            name=name,
            tags=tags,
            is_available=kwargs.pop("is_available", True),
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow(),
            **kwargs,
        )
        db.add(cocktail)
        db.flush()
        return cocktail
    return _create


@pytest.fixture
def cocktail_line_factory(db):
    """Factory to add a line to a cocktail.

    Pass exactly one of bottle, category or ingredient; the source type follows.
    """
    def _create(cocktail, unit, quantity=Decimal("5"), bottle=None, category=None, ingredient=None,
                preferred=(), position=None):
        if bottle is not None:
            source_type = SourceType.BOTTLE.value
        elif category is not None:
            source_type = SourceType.CATEGORY.value
        else:
            source_type = SourceType.INGREDIENT.value

        line = CocktailIngredient(
            id=make_uuid(),
            cocktail_id=cocktail.id,
            position=position if position is not None else len(cocktail.ingredients),
            quantity=quantity,
            unit=unit,
            source_type=source_type,
            bottle=bottle,
            category=category,
            ingredient=ingredient,
        )
        line.preferred_bottles = [CocktailPreferredBottle(id=make_uuid(), bottle_id=b.id) for b in preferred]
        cocktail.ingredients.append(line)
        db.flush()
        return line
    return _create


@pytest.fixture
def instruction_factory(db):
    """Factory to add a preparation step to a cocktail."""
    def _create(cocktail, text="Stir", step_number=None):
        step = CocktailInstruction(
            id=make_uuid(),
            cocktail_id=cocktail.id,
            step_number=step_number or len(cocktail.instructions) + 1,
            text=text,
        )
        cocktail.instructions.append(step)
        db.flush()
        return step
    return _create
