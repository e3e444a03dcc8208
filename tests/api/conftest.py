"""Test fixtures for API tests."""
import pytest
from fastapi.testclient import TestClient

from app.database import get_db
from app.main import app
from app.services.carta_client import CartaClient


@pytest.fixture
def client(engine, db):
    """Create a TestClient with overridden database dependency.

    Requires both engine (to ensure tables are created) and db (the session).
    """

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    # Clean up
    app.dependency_overrides.clear()


@pytest.fixture
def api(client):
    """CartaClient talking to the app through the TestClient."""
    return CartaClient(http_client=client)
