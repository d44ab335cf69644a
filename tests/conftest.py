# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from catalog_api.config import Settings
from catalog_api.main import create_app


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file and upload directory."""
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}",
        UPLOAD_DIR=str(tmp_path / "uploads"),
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def make_product(client):
    """Create a product through the API and return its JSON."""
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        payload = {
            "name": f"Product {counter['n']}",
            "slug": f"product-{counter['n']}",
            "price": "9.99",
            "category": "general",
        }
        payload.update(fields)
        r = client.post("/api/products", data=payload)
        assert r.status_code == 201, r.text
        return r.json()

    return _make


@pytest.fixture
def broken_client(tmp_path):
    """App whose SQLite file lives in a directory that does not exist."""
    settings = Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'catalog.db'}",
        UPLOAD_DIR=str(tmp_path / "uploads"),
    )
    with TestClient(create_app(settings)) as c:
        yield c
