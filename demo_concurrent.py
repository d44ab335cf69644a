import asyncio
import uuid

import httpx

BASE_URL = "http://127.0.0.1:4000"


async def create(client: httpx.AsyncClient, who: str, slug: str):
    r = await client.post("/api/products", data={
        "name": f"Limited sneaker ({who})", "slug": slug, "price": "120", "category": "shoes",
    })
    if r.status_code == 201:
        print(f"✅ {who} created product #{r.json()['id']} with slug {slug}")
    elif r.status_code == 400:
        print(f"❌ {who} rejected: {r.json().get('error')}")
    else:
        print(f"⚠️  {who} unexpected response {r.status_code}: {r.text}")
    return r


async def main():
    slug = f"limited-sneaker-{uuid.uuid4().hex[:6]}"

    async with httpx.AsyncClient(base_url=BASE_URL, timeout=10) as client:
        print("\n⚡ Two clients racing for the same slug...")
        results = await asyncio.gather(
            create(client, "alice", slug),
            create(client, "bob", slug),
        )

        winner = next((r.json() for r in results if r.status_code == 201), None)
        if winner:
            print("\n📦 Stored product:", (await client.get(f"/api/products/{winner['id']}")).json())
            await client.delete(f"/api/products/{winner['id']}")


if __name__ == "__main__":
    asyncio.run(main())
