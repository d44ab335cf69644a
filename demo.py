#!/usr/bin/env python
import uuid

from catalog_sdk.client import CatalogClient


def main():
    c = CatalogClient(base_url="http://127.0.0.1:4000")
    tag = uuid.uuid4().hex[:6]

    # -----------------------------
    # Health
    # -----------------------------
    print("Checking health...")
    print(c.health())

    # -----------------------------
    # Create products
    # -----------------------------
    print("\nCreating products...")
    laptop = c.create_product("Laptop", f"laptop-{tag}", 1499.99, "electronics",
                              description="14 inch, 16 GB RAM", stock=3)
    mouse = c.create_product("Mouse", f"mouse-{tag}", 19.5, "electronics")
    print(laptop)
    print(mouse)

    # -----------------------------
    # List, filter, search
    # -----------------------------
    print("\nFirst page of electronics...")
    print(c.list_products(page=1, limit=5, category="electronics"))

    print("\nSearching for 'RAM'...")
    print(c.list_products(search="RAM"))

    # -----------------------------
    # Partial update
    # -----------------------------
    print("\nRestocking the mouse...")
    print(c.update_product(mouse["id"], stock=40))

    # -----------------------------
    # Delete
    # -----------------------------
    print("\nDeleting both products...")
    print(c.delete_product(laptop["id"]))
    print(c.delete_product(mouse["id"]))


if __name__ == "__main__":
    main()
