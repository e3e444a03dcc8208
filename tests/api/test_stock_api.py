"""Tests for availability and shortages endpoints."""
import uuid
from datetime import datetime
from decimal import Decimal


class TestAvailability:
    def test_all_cocktails(self, client, unit_factory, category_factory, bottle_factory, ingredient_factory,
                           cocktail_factory, cocktail_line_factory):
        cl = unit_factory()
        rum = category_factory(name="Rhum blanc")
        bottle_factory(rum, remaining_percent=10)  # 70 ml
        mojito = cocktail_factory(name="Mojito")
        cocktail_line_factory(mojito, cl, quantity=Decimal("5"), category=rum)
        cocktail_line_factory(mojito, cl, quantity=Decimal("1"), ingredient=ingredient_factory(name="Menthe"))
        tonic = cocktail_factory(name="Tonic")
        cocktail_line_factory(tonic, cl, ingredient=ingredient_factory(name="Tonic water"))

        response = client.get("/api/v1/availability/cocktails")

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {str(mojito.id), str(tonic.id)}
        assert data[str(mojito.id)]["max_servings"] == 1
        assert data[str(mojito.id)]["low_stock_warnings"] == ["Rhum blanc: only 1 servings left"]
        assert data[str(tonic.id)]["max_servings"] == 999

    def test_single_cocktail(self, client, unit_factory, category_factory, bottle_factory, cocktail_factory,
                             cocktail_line_factory):
        cl = unit_factory()
        bottle = bottle_factory(category_factory(), name="Havana Club 3", remaining_percent=0)
        daiquiri = cocktail_factory(name="Daiquiri")
        cocktail_line_factory(daiquiri, cl, bottle=bottle)

        data = client.get(f"/api/v1/availability/cocktails/{daiquiri.id}").json()

        assert data["is_available"] is False
        assert data["max_servings"] == 0
        assert data["missing_ingredients"] == ["Havana Club 3"]
        assert data["ingredients"][0]["reason"] == "Bottle is empty"

    def test_unknown_cocktail(self, client):
        response = client.get(f"/api/v1/availability/cocktails/{uuid.uuid4()}")
        assert response.status_code == 404


class TestShortages:
    def test_shortages(self, client, category_factory, bottle_factory):
        rum = category_factory(name="Rhum blanc", desired_stock=2)
        bottle_factory(rum, name="Sealed")
        bottle_factory(rum, name="Opened", opened_at=datetime(2026, 1, 1), remaining_percent=60)
        bottle_factory(rum, name="Empty", remaining_percent=0)
        gin = category_factory(name="Gin", desired_stock=1)
        bottle_factory(gin, name="Tanqueray")
        category_factory(name="Absinthe", desired_stock=1)
        category_factory(name="Cognac", desired_stock=0)

        data = client.get("/api/v1/shortages").json()

        assert [s["category"]["name"] for s in data] == ["Absinthe", "Rhum blanc"]
        rum_shortage = data[1]
        assert rum_shortage["sealed_count"] == 1
        assert rum_shortage["total_usable"] == 2
        assert rum_shortage["deficit"] == 1
        assert rum_shortage["is_shortage"] is True
