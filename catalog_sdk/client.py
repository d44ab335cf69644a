# catalog_sdk/client.py
import mimetypes
import os
from typing import Any, Dict, Optional

import httpx
import requests


class CatalogClient:
    def __init__(self, base_url: str = "http://localhost:4000", timeout: int = 10, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # anything with the requests.Session call surface works (tests pass a TestClient)
        self.session = session if session is not None else requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    # Health
    def health(self):
        r = self.session.get(self._url("/health"), timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Products
    def list_products(self, page: int = 1, limit: int = 10, category: Optional[str] = None, search: Optional[str] = None):
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if category:
            params["category"] = category
        if search:
            params["search"] = search
        r = self.session.get(self._url("/api/products"), params=params, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def get_product(self, product_id: int):
        r = self.session.get(self._url(f"/api/products/{product_id}"), timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def create_product(
        self,
        name: str,
        slug: str,
        price: float,
        category: str,
        description: Optional[str] = None,
        stock: Optional[int] = None,
        image_path: Optional[str] = None,
    ):
        fields = {"name": name, "slug": slug, "price": price, "category": category,
                  "description": description, "stock": stock}
        r = self._send("POST", "/api/products", fields, image_path)
        r.raise_for_status()
        return r.json()

    def update_product(self, product_id: int, image_path: Optional[str] = None, **fields):
        """Only the keyword fields given are sent; the server keeps the rest."""
        r = self._send("PUT", f"/api/products/{product_id}", fields, image_path)
        r.raise_for_status()
        return r.json()

    def delete_product(self, product_id: int):
        r = self.session.delete(self._url(f"/api/products/{product_id}"), timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def _send(self, method: str, path: str, fields: Dict[str, Any], image_path: Optional[str]):
        data = {k: str(v) for k, v in fields.items() if v is not None}
        if not image_path:
            return self.session.request(method, self._url(path), data=data, timeout=self.timeout)

        content_type = mimetypes.guess_type(image_path)[0] or "application/octet-stream"
        with open(image_path, "rb") as fh:
            files = {"image": (os.path.basename(image_path), fh, content_type)}
            return self.session.request(method, self._url(path), data=data, files=files, timeout=self.timeout)

    # Async listing (example)
    async def list_products_async(self, page: int = 1, limit: int = 10, category: Optional[str] = None, search: Optional[str] = None):
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if category:
            params["category"] = category
        if search:
            params["search"] = search
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.get(self._url("/api/products"), params=params)
            r.raise_for_status()
            return r.json()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Catalog API client")
    parser.add_argument("--base-url", default="http://127.0.0.1:4000")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("health", help="Check service and database health")

    lp = subparsers.add_parser("list", help="List products")
    lp.add_argument("--page", type=int, default=1)
    lp.add_argument("--limit", type=int, default=10)
    lp.add_argument("--category", help="Exact category filter")
    lp.add_argument("--search", help="Substring of name or description")

    gp = subparsers.add_parser("get", help="Get a product by id")
    gp.add_argument("--id", type=int, required=True)

    cp = subparsers.add_parser("create", help="Create a product")
    cp.add_argument("--name", required=True)
    cp.add_argument("--slug", required=True)
    cp.add_argument("--price", type=float, required=True)
    cp.add_argument("--category", required=True)
    cp.add_argument("--description")
    cp.add_argument("--stock", type=int)
    cp.add_argument("--image", help="Path to an image file")

    up = subparsers.add_parser("update", help="Update some fields of a product")
    up.add_argument("--id", type=int, required=True)
    up.add_argument("--name")
    up.add_argument("--slug")
    up.add_argument("--price", type=float)
    up.add_argument("--category")
    up.add_argument("--description")
    up.add_argument("--stock", type=int)
    up.add_argument("--image", help="Path to a replacement image")

    dp = subparsers.add_parser("delete", help="Delete a product")
    dp.add_argument("--id", type=int, required=True)

    args = parser.parse_args()
    c = CatalogClient(base_url=args.base_url)

    if args.command == "health":
        print(c.health())
    elif args.command == "list":
        print(c.list_products(args.page, args.limit, args.category, args.search))
    elif args.command == "get":
        print(c.get_product(args.id))
    elif args.command == "create":
        print(c.create_product(args.name, args.slug, args.price, args.category,
                               args.description, args.stock, args.image))
    elif args.command == "update":
        changes = {k: getattr(args, k) for k in ("name", "slug", "price", "category", "description", "stock")
                   if getattr(args, k) is not None}
        print(c.update_product(args.id, image_path=args.image, **changes))
    elif args.command == "delete":
        print(c.delete_product(args.id))
