# tests/test_uploads.py
import os

MB = 1024 * 1024
FIELDS = {"name": "Poster", "slug": "poster", "price": "15", "category": "art"}


def _uploaded_files(settings):
    return os.listdir(settings.UPLOAD_DIR)


def test_text_file_rejected(client, settings):
    r = client.post("/api/products", data=FIELDS,
                    files={"image": ("notes.txt", b"hello", "text/plain")})
    assert r.status_code == 400
    assert r.json()["error"] == "Only image files are allowed!"
    assert _uploaded_files(settings) == []
    assert client.get("/api/products").json()["pagination"]["total"] == 0


def test_extension_and_content_type_must_both_match(client):
    # image extension, wrong declared type
    r = client.post("/api/products", data=FIELDS,
                    files={"image": ("photo.png", b"\x89PNG", "application/octet-stream")})
    assert r.status_code == 400
    # image type, wrong extension
    r = client.post("/api/products", data=FIELDS,
                    files={"image": ("photo.exe", b"\x89PNG", "image/png")})
    assert r.status_code == 400


def test_oversized_png_rejected(client, settings):
    r = client.post("/api/products", data=FIELDS,
                    files={"image": ("big.png", b"\0" * (6 * MB), "image/png")})
    assert r.status_code == 413
    assert r.json()["error"] == "File too large"
    # partial file cleaned up
    assert _uploaded_files(settings) == []


def test_jpg_accepted_and_served(client, settings):
    payload = os.urandom(2 * MB)
    r = client.post("/api/products", data=FIELDS,
                    files={"image": ("Photo.JPG", payload, "image/jpeg")})
    assert r.status_code == 201
    image_url = r.json()["imageUrl"]
    assert image_url.startswith("/uploads/")
    assert image_url.endswith(".jpg")

    served = client.get(image_url)
    assert served.status_code == 200
    assert served.content == payload


def test_empty_image_part_is_ignored(client):
    r = client.post("/api/products", data=FIELDS,
                    files={"image": ("", b"", "application/octet-stream")})
    assert r.status_code == 201
    assert r.json()["imageUrl"] is None


def test_update_replaces_or_keeps_image(client):
    r = client.post("/api/products", data=FIELDS,
                    files={"image": ("a.png", b"first", "image/png")})
    product = r.json()
    first_url = product["imageUrl"]

    # no upload: image kept
    r = client.put(f"/api/products/{product['id']}", data={"name": "Poster v2"})
    assert r.json()["imageUrl"] == first_url

    # new upload: image replaced
    r = client.put(f"/api/products/{product['id']}", data={},
                   files={"image": ("b.webp", b"second", "image/webp")})
    assert r.status_code == 200
    second_url = r.json()["imageUrl"]
    assert second_url != first_url
    assert second_url.endswith(".webp")
    assert client.get(second_url).content == b"second"


def test_update_missing_product_stores_nothing(client, settings):
    r = client.put("/api/products/77", data={},
                   files={"image": ("c.gif", b"GIF89a", "image/gif")})
    assert r.status_code == 404
    assert _uploaded_files(settings) == []
