import pytest
from fastapi.testclient import TestClient

from fakes import FakeCollection
from libs.settings import settings
from main import app
from routes.product import get_catalog_service
from services.catalog_service import CatalogService
from services.defaults import ListingDefaults


@pytest.fixture
def make_payload():
    def _make(**overrides):
        payload = {
            "name": "Smartphone X",
            "description": "A phone with a very good camera.",
            "price": "499.999",
            "category": "electronics",
            "stock": "10",
            "thumbnailImage": "https://cdn.example.com/phone.jpg",
            "images": ["https://cdn.example.com/phone.jpg"],
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def service(collection) -> CatalogService:
    return CatalogService(collection, ListingDefaults())


@pytest.fixture
def client(service):
    app.dependency_overrides[get_catalog_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {settings.principal_header: "user-1"}
