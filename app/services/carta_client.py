"""HTTP client for the Carta Cocktail API.

Thin wrapper used by the import wizard and scripts. Every call returns
decoded JSON; any non-2xx answer becomes an ApiError carrying the server's
message.

Usage:
    client = CartaClient("http://localhost:8000")
    preview = client.import_preview(document)
    cocktail = client.import_confirm(document, resolutions)
"""
import logging
from typing import Any, Optional
from uuid import UUID

import httpx

from app.config import get_settings
from app.services.recipe_exporter import build_export_zip

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class ApiError(Exception):
    """Failed API call: non-2xx status, transport failure (status 0) or unreadable body."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CartaClient:
    """Synchronous API client with optional bearer token."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """Initialize client.

        Args:
            base_url: Server root, e.g. http://localhost:8000 (defaults to API_BASE_URL)
            token: Bearer token sent with every request
            http_client: Pre-built client (tests pass a TestClient here)
        """
        if base_url is None:
            base_url = get_settings().API_BASE_URL
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._http_client = http_client

    def get_http_client(self) -> httpx.Client:
        """Get or create the underlying HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.Client(base_url=self.base_url, timeout=30.0, follow_redirects=True)
        return self._http_client

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("detail") or body.get("error")
            if isinstance(detail, str) and detail:
                return detail
            if detail:
                return str(detail)
        return f"HTTP {response.status_code}"

    def request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request under /api/v1 and decode the JSON answer.

        Raises:
            ApiError: On any non-2xx status, a transport failure (status 0),
                or an undecodable body. 401 also drops the stored token.
        """
        headers = kwargs.pop("headers", {}) or {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self.get_http_client().request(method, f"{API_PREFIX}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise ApiError(f"Network error: {e}", 0) from e

        if response.status_code == 401:
            logger.warning("API rejected credentials, clearing token")
            self.token = None
            raise ApiError("Unauthorized", 401)
        if not response.is_success:
            message = self._error_message(response)
            logger.warning(f"{method} {path} failed: {response.status_code} - {message}")
            raise ApiError(message, response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"{method} {path} returned a non-JSON body")
            raise ApiError("Invalid response from server", response.status_code) from e

    # Catalog CRUD: units, categories, bottles, ingredients, cocktails

    def _list(self, path: str, key: str, params: Optional[dict] = None) -> list[dict]:
        return self.request("GET", path, params=params)[key]

    def list_units(self) -> list[dict]:
        return self._list("/units", "units")

    def get_unit(self, unit_id: UUID) -> dict:
        return self.request("GET", f"/units/{unit_id}")

    def create_unit(self, data: dict) -> dict:
        return self.request("POST", "/units", json=data)

    def update_unit(self, unit_id: UUID, data: dict) -> dict:
        return self.request("PATCH", f"/units/{unit_id}", json=data)

    def delete_unit(self, unit_id: UUID) -> None:
        self.request("DELETE", f"/units/{unit_id}")

    def unit_conversions(self, unit_id: UUID, quantity: float) -> dict:
        return self.request("GET", f"/units/{unit_id}/conversions", params={"quantity": quantity})

    def list_categories(self) -> list[dict]:
        return self._list("/categories", "categories")

    def get_category(self, category_id: UUID) -> dict:
        return self.request("GET", f"/categories/{category_id}")

    def create_category(self, data: dict) -> dict:
        return self.request("POST", "/categories", json=data)

    def update_category(self, category_id: UUID, data: dict) -> dict:
        return self.request("PATCH", f"/categories/{category_id}", json=data)

    def delete_category(self, category_id: UUID) -> None:
        self.request("DELETE", f"/categories/{category_id}")

    def list_bottles(self, category_id: Optional[UUID] = None, include_emptied: bool = False) -> list[dict]:
        params = {"include_emptied": include_emptied}
        if category_id:
            params["category_id"] = str(category_id)
        return self._list("/bottles", "bottles", params=params)

    def get_bottle(self, bottle_id: UUID) -> dict:
        return self.request("GET", f"/bottles/{bottle_id}")

    def create_bottle(self, data: dict) -> dict:
        return self.request("POST", "/bottles", json=data)

    def update_bottle(self, bottle_id: UUID, data: dict) -> dict:
        return self.request("PATCH", f"/bottles/{bottle_id}", json=data)

    def delete_bottle(self, bottle_id: UUID) -> None:
        self.request("DELETE", f"/bottles/{bottle_id}")

    def list_ingredients(self) -> list[dict]:
        return self._list("/ingredients", "ingredients")

    def get_ingredient(self, ingredient_id: UUID) -> dict:
        return self.request("GET", f"/ingredients/{ingredient_id}")

    def create_ingredient(self, data: dict) -> dict:
        return self.request("POST", "/ingredients", json=data)

    def update_ingredient(self, ingredient_id: UUID, data: dict) -> dict:
        return self.request("PATCH", f"/ingredients/{ingredient_id}", json=data)

    def delete_ingredient(self, ingredient_id: UUID) -> None:
        self.request("DELETE", f"/ingredients/{ingredient_id}")

    def list_cocktails(self) -> list[dict]:
        return self._list("/cocktails", "cocktails")

    def get_cocktail(self, cocktail_id: UUID) -> dict:
        return self.request("GET", f"/cocktails/{cocktail_id}")

    def create_cocktail(self, data: dict) -> dict:
        return self.request("POST", "/cocktails", json=data)

    def update_cocktail(self, cocktail_id: UUID, data: dict) -> dict:
        return self.request("PATCH", f"/cocktails/{cocktail_id}", json=data)

    def delete_cocktail(self, cocktail_id: UUID) -> None:
        self.request("DELETE", f"/cocktails/{cocktail_id}")

    # Import / export

    def export_cocktail(self, cocktail_id: UUID) -> dict:
        return self.request("GET", f"/cocktails/{cocktail_id}/export")

    def export_cocktails_zip(self, cocktail_ids: list[UUID]) -> bytes:
        """Fetch each export and pack them into one zip archive."""
        return build_export_zip([self.export_cocktail(cocktail_id) for cocktail_id in cocktail_ids])

    def import_preview(self, recipe: dict) -> dict:
        return self.request("POST", "/cocktails/import/preview", json=recipe)

    def import_confirm(self, recipe: dict, resolutions: dict) -> dict:
        return self.request(
            "POST",
            "/cocktails/import/confirm",
            json={"recipe": recipe, "resolutions": resolutions},
        )

    # Stock

    def cocktail_availability(self, cocktail_id: Optional[UUID] = None) -> Any:
        """Availability of one cocktail, or of all when no id is given."""
        if cocktail_id:
            return self.request("GET", f"/availability/cocktails/{cocktail_id}")
        return self.request("GET", "/availability/cocktails")

    def shortages(self) -> list[dict]:
        return self.request("GET", "/shortages")
