"""SQLAlchemy models for carta-cocktail."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import all models to register them with Base.metadata
from .unit import Unit
from .category import Category, CategoryType
from .bottle import Bottle
from .ingredient import Ingredient
from .cocktail import Cocktail, CocktailIngredient, CocktailPreferredBottle, CocktailInstruction

__all__ = [
    "Base",
    "Unit",
    "Category",
    "CategoryType",
    "Bottle",
    "Ingredient",
    "Cocktail",
    "CocktailIngredient",
    "CocktailPreferredBottle",
    "CocktailInstruction",
]
