# tests/test_concurrency.py
import asyncio

import httpx

from catalog_api.main import create_app


async def _create(ac: httpx.AsyncClient, slug: str, who: str):
    return await ac.post("/api/products", data={
        "name": f"Sneaker for {who}", "slug": slug, "price": "120", "category": "shoes",
    })


async def test_concurrent_creates_same_slug(settings):
    app = create_app(settings)
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            results = await asyncio.gather(*(_create(ac, "last-pair", f"u{i}") for i in range(5)))
            listing = (await ac.get("/api/products")).json()

    statuses = [r.status_code for r in results]
    # exactly one wins, the rest hit the unique slug
    assert statuses.count(201) == 1
    assert statuses.count(400) == 4
    assert listing["pagination"]["total"] == 1


async def test_concurrent_uploads_get_distinct_files(settings):
    app = create_app(settings)
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            results = await asyncio.gather(*(
                ac.post("/api/products",
                        data={"name": f"P{i}", "slug": f"p-{i}", "price": "1", "category": "x"},
                        files={"image": (f"p{i}.png", f"image {i}".encode(), "image/png")})
                for i in range(8)
            ))

    assert all(r.status_code == 201 for r in results)
    urls = {r.json()["imageUrl"] for r in results}
    assert len(urls) == 8
