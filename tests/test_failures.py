# tests/test_failures.py
import os

import pytest
from fastapi.testclient import TestClient

import catalog_api.uploads
from catalog_api.database import Database
from catalog_api.main import create_app

FIELDS = {"name": "Poster", "slug": "poster", "price": "15", "category": "art"}
PNG = {"image": ("a.png", b"png bytes", "image/png")}
HUGE_ID = "9" * 25


def test_pool_is_bounded():
    # building the engine does not open a connection
    db = Database("mysql+aiomysql://u:p@h/db", pool_size=3, pool_timeout=2)
    pool = db.engine.pool
    assert pool.size() == 3
    assert pool._max_overflow == 0
    assert pool._timeout == 2


@pytest.mark.parametrize("method, path, kwargs, message", [
    ("post", "/api/products", {"data": FIELDS}, "Failed to create product"),
    ("get", "/api/products/1", {}, "Failed to fetch product"),
    ("put", "/api/products/1", {"data": {"name": "x"}}, "Failed to update product"),
    ("delete", "/api/products/1", {}, "Failed to delete product"),
    ("get", "/api/products", {}, "Failed to fetch products"),
])
def test_storage_errors_per_operation(broken_client, method, path, kwargs, message):
    r = getattr(broken_client, method)(path, **kwargs)
    assert r.status_code == 500
    assert r.json() == {"error": message}


def _failing_open(*args, **kwargs):
    raise OSError(28, "No space left on device")


def test_image_write_error_on_create(client, settings, monkeypatch):
    monkeypatch.setattr(catalog_api.uploads.aiofiles, "open", _failing_open)
    r = client.post("/api/products", data=FIELDS, files=PNG)
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to create product"}
    assert client.get("/api/products").json()["pagination"]["total"] == 0


def test_image_write_error_on_update(client, make_product, monkeypatch):
    p = make_product()
    monkeypatch.setattr(catalog_api.uploads.aiofiles, "open", _failing_open)
    r = client.put(f"/api/products/{p['id']}", data={"name": "changed"}, files=PNG)
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to update product"}
    assert client.get(f"/api/products/{p['id']}").json()["name"] == p["name"]


def test_out_of_range_id_is_not_found(client):
    assert client.get(f"/api/products/{HUGE_ID}").status_code == 404
    assert client.put(f"/api/products/{HUGE_ID}", data={"name": "x"}).status_code == 404
    assert client.delete(f"/api/products/{HUGE_ID}").status_code == 404


def test_huge_page_is_clamped(client, make_product):
    make_product()
    r = client.get("/api/products", params={"page": "9" * 30})
    assert r.status_code == 200
    body = r.json()
    assert body["data"] == []
    assert body["pagination"]["page"] == 10**9


def test_huge_stock_rejected(client):
    r = client.post("/api/products", data={**FIELDS, "stock": "9" * 30})
    assert r.status_code == 400
    assert r.json()["error"] == "stock is out of range"


def test_unexpected_error_is_json(settings, monkeypatch):
    app = create_app(settings)
    with TestClient(app, raise_server_exceptions=False) as c:
        async def boom(product_id):
            raise RuntimeError("driver blew up")

        monkeypatch.setattr(app.state.catalog, "get_product", boom)
        r = c.get("/api/products/1")
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}


def test_update_checks_existence_before_fields(client):
    r = client.put("/api/products/4242", data={"price": "abc"})
    assert r.status_code == 404


def test_conflicting_create_discards_its_image(client, settings, make_product):
    make_product(slug="poster")
    r = client.post("/api/products", data=FIELDS, files=PNG)
    assert r.status_code == 400
    assert os.listdir(settings.UPLOAD_DIR) == []


def test_conflicting_update_discards_new_image(client, settings, make_product):
    make_product(slug="taken")
    r = client.post("/api/products", data=FIELDS, files=PNG)
    kept = os.path.basename(r.json()["imageUrl"])

    r = client.put(f"/api/products/{r.json()['id']}", data={"slug": "taken"},
                   files={"image": ("b.png", b"other", "image/png")})
    assert r.status_code == 400
    assert os.listdir(settings.UPLOAD_DIR) == [kept]
