"""Tests for app/services/recipe_importer.py and recipe_exporter.py."""
import io
import json
import uuid
import zipfile
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from app.models.bottle import Bottle
from app.models.category import Category, CategoryType
from app.models.cocktail import Cocktail
from app.models.ingredient import Ingredient
from app.models.unit import Unit
from app.schemas.cocktail_import import EntityRef, ResolutionAction
from app.services.catalog import find_by_name
from app.services.recipe_exporter import build_export, build_export_zip, export_filename, slugify, zip_filename
from app.services.recipe_importer import (
    RecipeImporter,
    RecipeImportError,
    default_create_data,
    entity_key,
    extract_references,
    parse_export,
    read_export_zip,
)


def line(source_type, source_name, quantity=5, unit=None, position=0, detail=None, preferred=None):
    return {
        "sourceType": source_type,
        "sourceName": source_name,
        "sourceDetail": detail or {},
        "quantity": quantity,
        "unit": unit,
        "position": position,
        "preferredBottles": preferred or [],
    }


CL = {"name": "Centilitre", "abbreviation": "cl", "conversionFactorToMl": 10}
LEAF = {"name": "Feuille", "abbreviation": "feuille", "conversionFactorToMl": None}


def document(ingredients, name="Mojito", **cocktail):
    return {
        "version": 1,
        "exportedAt": "2026-01-01T12:00:00Z",
        "cocktail": {
            "name": name,
            "description": cocktail.get("description", "Classic"),
            "notes": None,
            "tags": cocktail.get("tags", ["rum", "fresh"]),
            "ingredients": ingredients,
            "instructions": cocktail.get("instructions", [
                {"stepNumber": 2, "text": "Top with soda"},
                {"stepNumber": 1, "text": "Muddle the mint"},
            ]),
        },
    }


def resolutions(**by_type):
    return {
        entity_type: {key: ResolutionAction(**action) for key, action in entries.items()}
        for entity_type, entries in by_type.items()
    }


# ============================================================================
# Document parsing and keys
# ============================================================================


class TestParseExport:
    def test_valid(self):
        doc = parse_export(document([line("INGREDIENT", "mint", unit=LEAF)]))
        assert doc.cocktail.name == "Mojito"
        assert doc.cocktail.ingredients[0].unit.abbreviation == "feuille"

    @pytest.mark.parametrize("version", [None, 0, 2, "1"])
    def test_wrong_version(self, version):
        data = document([])
        data["version"] = version
        with pytest.raises(RecipeImportError):
            parse_export(data)

    @pytest.mark.parametrize("name", ["", None])
    def test_missing_name(self, name):
        data = document([])
        data["cocktail"]["name"] = name
        with pytest.raises(RecipeImportError):
            parse_export(data)

    def test_not_an_object(self):
        with pytest.raises(RecipeImportError):
            parse_export(["version", 1])

    def test_bad_source_type(self):
        with pytest.raises(RecipeImportError):
            parse_export(document([line("GARNISH", "lime", unit=CL)]))

    def test_unit_without_name_or_abbreviation(self):
        with pytest.raises(RecipeImportError, match="no name or abbreviation"):
            parse_export(document([line("INGREDIENT", "mint", unit={"name": "", "abbreviation": None})]))


class TestEntityKey:
    def test_unit_uses_abbreviation(self):
        assert entity_key("units", {"name": "Centilitre", "abbreviation": "CL"}) == "cl"

    def test_unit_falls_back_to_name(self):
        assert entity_key("units", EntityRef(name="Pinch")) == "pinch"

    @pytest.mark.parametrize("entity_type", ["categories", "bottles", "ingredients"])
    def test_other_types_use_name(self, entity_type):
        assert entity_key(entity_type, {"name": "Havana Club 3", "abbreviation": "x"}) == "havana club 3"


class TestDefaultCreateData:
    def test_unit(self):
        assert default_create_data("units", EntityRef(name="Centilitre", abbreviation="cl")) == {
            "name": "Centilitre",
            "abbreviation": "cl",
            "conversion_factor_to_ml": None,
        }

    def test_category_defaults(self):
        assert default_create_data("categories", EntityRef(name="Rhum")) == {
            "name": "Rhum",
            "type": "SPIRIT",
            "desired_stock": 1,
        }

    def test_bottle_always_full(self):
        data = default_create_data("bottles", {"name": "Havana", "category_name": "Rhum", "capacity_ml": 1000})
        assert data == {"name": "Havana", "category_name": "Rhum", "capacity_ml": 700, "remaining_percent": 100}

    def test_ingredient(self):
        assert default_create_data("ingredients", EntityRef(name="mint", icon="")) == {"name": "mint", "icon": None}


class TestExtractReferences:
    def test_dedupes_and_collects_categories(self):
        doc = parse_export(document([
            line("BOTTLE", "Havana Club 3", unit=CL,
                 detail={"categoryName": "Rhum blanc", "categoryType": "SPIRIT"}),
            line("CATEGORY", "rhum blanc", unit={"name": "Centi", "abbreviation": "CL"},
                 detail={"type": "SPIRIT", "desiredStock": 2},
                 preferred=[{"name": "Bacardi", "categoryName": "Rhum blanc"}]),
            line("INGREDIENT", "mint", unit=LEAF, detail={"icon": "leaf"}),
            line("INGREDIENT", "Mint", unit=LEAF),
        ]))

        refs = extract_references(doc.cocktail)

        assert [u.abbreviation for u in refs["units"]] == ["cl", "feuille"]
        assert [c.name for c in refs["categories"]] == ["Rhum blanc"]
        assert refs["categories"][0].type == "SPIRIT"
        assert [b.name for b in refs["bottles"]] == ["Havana Club 3", "Bacardi"]
        assert refs["bottles"][0].category_name == "Rhum blanc"
        assert [i.name for i in refs["ingredients"]] == ["mint"]
        assert refs["ingredients"][0].icon == "leaf"


# ============================================================================
# Matching
# ============================================================================


class TestFindByName:
    def test_case_insensitive(self, db, category_factory):
        rum = category_factory(name="Rum")
        assert find_by_name(db, Category, Category.name, "rUM").id == rum.id

    def test_exact_case_wins(self, db, category_factory):
        category_factory(name="Rum", created_at=datetime(2024, 1, 1))
        exact = category_factory(name="RUM", created_at=datetime(2025, 1, 1))
        assert find_by_name(db, Category, Category.name, "RUM").id == exact.id

    def test_oldest_when_no_exact_case(self, db, category_factory):
        oldest = category_factory(name="Rum", created_at=datetime(2024, 1, 1))
        category_factory(name="RUM", created_at=datetime(2024, 1, 1) + timedelta(days=1))
        assert find_by_name(db, Category, Category.name, "rum").id == oldest.id

    def test_no_match(self, db):
        assert find_by_name(db, Category, Category.name, "Gin") is None


# ============================================================================
# Preview
# ============================================================================


class TestPreview:
    def test_matched_and_missing(self, db, unit_factory, ingredient_factory):
        cl = unit_factory(abbreviation="CL")
        doc = document([
            line("CATEGORY", "Rhum blanc", unit=CL),
            line("INGREDIENT", "mint", unit=CL),
        ])

        preview = RecipeImporter(db).preview(doc)

        assert preview.cocktail.name == "Mojito"
        assert preview.cocktail.tags == ["rum", "fresh"]
        assert preview.cocktail.already_exists is False
        assert preview.units[0].status == "matched"
        assert preview.units[0].existing_match.id == cl.id
        assert preview.categories[0].status == "missing"
        assert preview.categories[0].existing_match is None
        assert preview.ingredients[0].status == "missing"

    def test_already_exists(self, db, cocktail_factory):
        cocktail_factory(name="MOJITO")
        preview = RecipeImporter(db).preview(document([]))
        assert preview.cocktail.already_exists is True

    def test_bottle_match_reports_category(self, db, category_factory, bottle_factory):
        bottle_factory(category_factory(name="Rhum blanc"), name="Havana Club 3")
        preview = RecipeImporter(db).preview(document([line("BOTTLE", "havana club 3", unit=CL)]))
        assert preview.bottles[0].existing_match.category_name == "Rhum blanc"

    def test_invalid_document(self, db):
        with pytest.raises(RecipeImportError):
            RecipeImporter(db).preview({"version": 2})


# ============================================================================
# Confirm
# ============================================================================


class TestConfirm:
    def test_all_existing_without_resolutions(self, db, unit_factory, category_factory, ingredient_factory):
        unit_factory()
        category_factory(name="Rhum blanc")
        ingredient_factory(name="Mint")
        db.commit()

        cocktail = RecipeImporter(db).confirm(document([
            line("CATEGORY", "rhum blanc", quantity=5, unit=CL, position=1),
            line("INGREDIENT", "mint", quantity=8, unit=CL, position=0),
        ]), {})

        assert cocktail.name == "Mojito"
        assert cocktail.tags == "rum,fresh"
        assert [l.source_name for l in cocktail.ingredients] == ["Mint", "Rhum blanc"]
        assert [l.position for l in cocktail.ingredients] == [0, 1]
        assert [(s.step_number, s.text) for s in cocktail.instructions] == [
            (1, "Muddle the mint"),
            (2, "Top with soda"),
        ]

    def test_creates_missing_entities(self, db):
        doc = document([
            line("BOTTLE", "Havana Club 3", unit=CL, detail={"categoryName": "Rhum blanc", "categoryType": "RHUM"}),
            line("INGREDIENT", "mint", quantity=8, unit=LEAF, detail={"icon": "leaf"}),
        ])
        refs = {t: {entity_key(t, r): r for r in rs} for t, rs in extract_references(parse_export(doc).cocktail).items()}
        actions = {
            t: {k: {"action": "create", "data": default_create_data(t, r)} for k, r in entries.items()}
            for t, entries in refs.items()
        }

        cocktail = RecipeImporter(db).confirm(doc, resolutions(**actions))

        bottle = db.query(Bottle).filter(Bottle.name == "Havana Club 3").one()
        assert bottle.capacity_ml == 700
        assert bottle.remaining_percent == 100
        assert bottle.category.name == "Rhum blanc"
        assert bottle.category.type == "RHUM"
        assert db.query(CategoryType).filter(CategoryType.name == "RHUM").count() == 1
        assert db.query(Unit).filter(Unit.abbreviation == "feuille").one().conversion_factor_to_ml is None
        assert db.query(Ingredient).filter(Ingredient.name == "mint").one().icon == "leaf"
        assert len(cocktail.ingredients) == 2

    def test_use_existing(self, db, unit_factory, ingredient_factory):
        unit_factory()
        basil = ingredient_factory(name="Basilic")
        db.commit()

        cocktail = RecipeImporter(db).confirm(
            document([line("INGREDIENT", "mint", unit=CL)]),
            resolutions(ingredients={"mint": {"action": "use_existing", "existing_id": str(basil.id)}}),
        )

        assert cocktail.ingredients[0].ingredient_id == basil.id
        assert db.query(Ingredient).count() == 1

    def test_skip_bottle_drops_line_and_preferred(self, db, unit_factory, category_factory, bottle_factory):
        unit_factory()
        rum = category_factory(name="Rhum blanc")
        bacardi = bottle_factory(rum, name="Bacardi")
        db.commit()

        cocktail = RecipeImporter(db).confirm(
            document([
                line("BOTTLE", "Havana Club 3", unit=CL, position=0),
                line("CATEGORY", "Rhum blanc", unit=CL, position=1, preferred=[
                    {"name": "Havana Club 3", "categoryName": "Rhum blanc"},
                    {"name": "Bacardi", "categoryName": "Rhum blanc"},
                ]),
            ]),
            resolutions(bottles={"havana club 3": {"action": "skip"}}),
        )

        assert len(cocktail.ingredients) == 1
        remaining = cocktail.ingredients[0]
        assert remaining.position == 0
        assert [pb.bottle_id for pb in remaining.preferred_bottles] == [bacardi.id]

    def test_preferred_bottle_outside_category_dropped(self, db, unit_factory, category_factory, bottle_factory):
        unit_factory()
        rum = category_factory(name="Rhum blanc")
        bacardi = bottle_factory(rum, name="Bacardi")
        tanqueray = bottle_factory(category_factory(name="Gin"), name="Tanqueray")
        db.commit()

        cocktail = RecipeImporter(db).confirm(
            document([
                line("CATEGORY", "Rhum blanc", unit=CL, preferred=[
                    {"name": "Havana", "categoryName": "Rhum blanc"},
                    {"name": "Bacardi", "categoryName": "Rhum blanc"},
                ]),
            ]),
            resolutions(bottles={"havana": {"action": "use_existing", "existing_id": str(tanqueray.id)}}),
        )

        assert [pb.bottle_id for pb in cocktail.ingredients[0].preferred_bottles] == [bacardi.id]

    def test_skip_non_bottle_rejected(self, db, unit_factory):
        unit_factory()
        db.commit()
        with pytest.raises(RecipeImportError, match="only bottles"):
            RecipeImporter(db).confirm(
                document([line("INGREDIENT", "mint", unit=CL)]),
                resolutions(ingredients={"mint": {"action": "skip"}}),
            )

    def test_missing_without_resolution_rolls_back(self, db, unit_factory):
        unit_factory()
        db.commit()
        doc = document([
            line("INGREDIENT", "sugar", unit=CL),
            line("INGREDIENT", "mint", unit=CL),
        ])

        with pytest.raises(RecipeImportError, match="mint"):
            RecipeImporter(db).confirm(doc, resolutions(
                ingredients={"sugar": {"action": "create", "data": {"name": "sugar"}}},
            ))

        assert db.query(Ingredient).count() == 0
        assert db.query(Cocktail).count() == 0

    def test_unknown_existing_id(self, db, unit_factory):
        unit_factory()
        db.commit()
        with pytest.raises(RecipeImportError, match="not found"):
            RecipeImporter(db).confirm(
                document([line("INGREDIENT", "mint", unit=CL)]),
                resolutions(ingredients={"mint": {"action": "use_existing", "existing_id": str(uuid.uuid4())}}),
            )

    def test_line_without_unit(self, db, ingredient_factory):
        ingredient_factory(name="mint")
        db.commit()
        with pytest.raises(RecipeImportError, match="no unit"):
            RecipeImporter(db).confirm(document([line("INGREDIENT", "mint", unit=None)]), {})

    def test_bottle_without_category(self, db, unit_factory):
        unit_factory()
        db.commit()
        with pytest.raises(RecipeImportError, match="needs a category"):
            RecipeImporter(db).confirm(
                document([line("BOTTLE", "Mystery", unit=CL)]),
                resolutions(bottles={"mystery": {"action": "create", "data": {"name": "Mystery"}}}),
            )

    def test_create_colliding_unit(self, db, unit_factory):
        unit_factory(abbreviation="CL")
        db.commit()
        with pytest.raises(RecipeImportError, match="already exists"):
            RecipeImporter(db).confirm(
                document([line("INGREDIENT", "mint", unit=CL)]),
                resolutions(units={"cl": {"action": "create", "data": {"name": "Centi", "abbreviation": "cl"}}}),
            )


# ============================================================================
# Export
# ============================================================================


class TestExport:
    def test_slugify(self):
        assert slugify("Old Fashioned #2") == "old-fashioned-2"
        assert slugify("!!!") == "cocktail"

    def test_round_trip_through_preview(self, db, unit_factory, category_factory, bottle_factory,
                                        ingredient_factory, cocktail_factory, cocktail_line_factory,
                                        instruction_factory):
        cl = unit_factory()
        rum = category_factory(name="Rhum blanc", desired_stock=2)
        havana = bottle_factory(rum, name="Havana Club 3", purchase_price=Decimal("19.90"))
        mojito = cocktail_factory(name="Mojito", tags="rum,fresh")
        cocktail_line_factory(mojito, cl, quantity=Decimal("5"), category=rum, preferred=[havana])
        cocktail_line_factory(mojito, cl, quantity=Decimal("2"), ingredient=ingredient_factory(name="Citron vert"))
        instruction_factory(mojito, "Build over ice")

        data = build_export(mojito).model_dump(mode="json", by_alias=True)

        assert export_filename(mojito) == "cocktail-mojito.json"
        assert data["version"] == 1
        first = data["cocktail"]["ingredients"][0]
        assert first["sourceType"] == "CATEGORY"
        assert first["sourceDetail"] == {"type": "SPIRIT", "desiredStock": 2}
        assert first["unit"] == {"name": "Centilitre", "abbreviation": "cl", "conversionFactorToMl": 10.0}
        assert first["preferredBottles"] == [{"name": "Havana Club 3", "categoryName": "Rhum blanc"}]
        assert "19.90" not in str(data)

        preview = RecipeImporter(db).preview(data)
        assert preview.cocktail.already_exists is True
        for group in (preview.units, preview.categories, preview.bottles, preview.ingredients):
            assert all(entry.status == "matched" for entry in group)


# ============================================================================
# Zip archives
# ============================================================================


class TestExportZip:
    def test_zip_filename(self):
        assert zip_filename(date(2026, 3, 1)) == "cocktails-export-2026-03-01.zip"

    def test_entries_named_by_slug(self):
        content = build_export_zip([
            document([], name="Mojito"),
            document([], name="Old Fashioned"),
            document([], name="mojito"),
        ])

        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            assert archive.namelist() == [
                "cocktail-mojito.json",
                "cocktail-old-fashioned.json",
                "cocktail-mojito-2.json",
            ]

    def test_read_skips_invalid_entries(self):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("recipes/cocktail-mojito.json", json.dumps(document([line("INGREDIENT", "mint", unit=CL)])))
            archive.writestr("recipes/broken.json", "{not json")
            archive.writestr("recipes/future.json", json.dumps({"version": 2, "cocktail": {"name": "Future"}}))
            archive.writestr("README.txt", "hello")

        documents = read_export_zip(buffer.getvalue())

        assert [d["cocktail"]["name"] for d in documents] == ["Mojito"]

    def test_read_round_trip(self):
        content = build_export_zip([document([], name="Mojito"), document([], name="Daiquiri")])
        assert [d["cocktail"]["name"] for d in read_export_zip(content)] == ["Mojito", "Daiquiri"]

    def test_read_without_json_entries(self):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("README.txt", "hello")

        with pytest.raises(RecipeImportError, match="No recipes found"):
            read_export_zip(buffer.getvalue())

    def test_read_not_a_zip(self):
        with pytest.raises(RecipeImportError, match="Could not read"):
            read_export_zip(b"plain bytes")
