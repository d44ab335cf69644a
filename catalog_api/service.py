# catalog_api/service.py
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from loguru import logger
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection
from starlette.datastructures import UploadFile

from .core import MAX_ROW_ID, PageRequest, ProductFilter, ProductForm
from .database import Database, products
from .errors import CatalogError, ProductNotFound, SlugConflict, StorageFailure, is_duplicate_key
from .models import DeleteResult, Pagination, Product, ProductPage
from .uploads import ImageStore

# This file contains the core logic behind every catalog endpoint.


@contextmanager
def _storage_errors(label: str, message: str):
    """Turn driver errors into catalog errors; everything unexpected is logged."""
    try:
        yield
    except IntegrityError as exc:
        if is_duplicate_key(exc):
            logger.warning("{} error: duplicate slug", label)
            raise SlugConflict() from exc
        logger.exception("{} error", label)
        raise StorageFailure(message) from exc
    except (SQLAlchemyError, OSError) as exc:
        logger.exception("{} error", label)
        raise StorageFailure(message) from exc


def _require_id(product_id: int) -> None:
    # ids outside BIGINT can never match a row
    if not 0 < product_id <= MAX_ROW_ID:
        raise ProductNotFound()


class ProductService:
    def __init__(self, db: Database, images: ImageStore, max_page_limit: int = 100):
        self.db = db
        self.images = images
        self.max_page_limit = max_page_limit

    async def _fetch(self, conn: AsyncConnection, product_id: int) -> Optional[Product]:
        result = await conn.execute(select(products).where(products.c.id == product_id))
        row = result.mappings().first()
        return Product.model_validate(dict(row)) if row is not None else None

    # Health
    async def health(self) -> Tuple[bool, Dict[str, Any]]:
        """Round-trip to storage. Never raises; the flag says whether it worked."""
        try:
            ok = await self.db.ping()
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Health check error")
            return False, {"status": "error", "message": str(exc)}
        return True, {
            "status": "ok",
            "db": ok,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # Read
    async def list_products(
        self,
        page: int = 1,
        limit: int = 10,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> ProductPage:
        req = PageRequest.clamped(page, limit, self.max_page_limit)
        flt = ProductFilter(category=category or None, search=search or None)

        with _storage_errors("Get products", "Failed to fetch products"):
            async with self.db.connect() as conn:
                rows = (await conn.execute(flt.page_query(req.limit, req.offset))).mappings().all()
                total = (await conn.execute(flt.count_query())).scalar_one()

        return ProductPage(
            data=[Product.model_validate(dict(r)) for r in rows],
            pagination=Pagination(
                total=total,
                page=req.page,
                limit=req.limit,
                totalPages=req.total_pages(total),
            ),
        )

    async def get_product(self, product_id: int) -> Product:
        _require_id(product_id)
        with _storage_errors("Get product", "Failed to fetch product"):
            async with self.db.connect() as conn:
                product = await self._fetch(conn, product_id)
        if product is None:
            raise ProductNotFound()
        return product

    # Write
    async def _store_image(self, image: Optional[UploadFile], label: str, message: str) -> Optional[str]:
        if image is None:
            return None
        with _storage_errors(label, message):
            return await self.images.save(image)

    async def create_product(self, form: ProductForm, image: Optional[UploadFile] = None) -> Product:
        values = form.create_values()
        values["imageUrl"] = await self._store_image(image, "Create product", "Failed to create product")

        try:
            with _storage_errors("Create product", "Failed to create product"):
                async with self.db.begin() as conn:
                    result = await conn.execute(insert(products).values(**values))
                    created = await self._fetch(conn, result.inserted_primary_key[0])
        except CatalogError:
            self.images.discard(values["imageUrl"])
            raise

        logger.info("Created product {} ({})", created.id, created.slug)
        return created

    async def update_product(
        self, product_id: int, form: ProductForm, image: Optional[UploadFile] = None
    ) -> Product:
        """
        Partial update: only the fields present in `form` are written.
        A new image replaces imageUrl, otherwise the stored one stays.
        The target must exist before the fields are looked at.
        """
        _require_id(product_id)
        with _storage_errors("Update product", "Failed to update product"):
            async with self.db.connect() as conn:
                existing = await self._fetch(conn, product_id)
        if existing is None:
            raise ProductNotFound()

        values = form.update_values()
        new_image = await self._store_image(image, "Update product", "Failed to update product")
        if new_image is not None:
            values["imageUrl"] = new_image

        try:
            with _storage_errors("Update product", "Failed to update product"):
                async with self.db.begin() as conn:
                    if values:
                        await conn.execute(
                            update(products).where(products.c.id == product_id).values(**values)
                        )
                    updated = await self._fetch(conn, product_id)
            # deleted between the existence check and the write
            if updated is None:
                raise ProductNotFound()
        except CatalogError:
            self.images.discard(new_image)
            raise
        return updated

    async def delete_product(self, product_id: int) -> DeleteResult:
        _require_id(product_id)
        with _storage_errors("Delete product", "Failed to delete product"):
            async with self.db.begin() as conn:
                result = await conn.execute(delete(products).where(products.c.id == product_id))
                affected = result.rowcount
        if affected == 0:
            raise ProductNotFound()

        logger.info("Deleted product {}", product_id)
        return DeleteResult(message="Product deleted successfully", id=product_id)
