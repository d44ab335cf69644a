# catalog_api/main.py
from contextlib import asynccontextmanager
from typing import Optional, Tuple

import uvicorn
from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.datastructures import UploadFile

from .config import Settings
from .core import ProductForm
from .database import Database
from .errors import CatalogError, ValidationFailed
from .logs import configure_logging
from .models import DeleteResult, Product, ProductPage
from .service import ProductService
from .uploads import PUBLIC_PREFIX, ImageStore


# ---------------------------
# Request helpers
# ---------------------------
def get_service(request: Request) -> ProductService:
    return request.app.state.catalog


async def read_product_body(request: Request) -> Tuple[ProductForm, Optional[UploadFile]]:
    """
    Accepts multipart/urlencoded forms (with an optional `image` file) or a
    JSON object, and turns either into a ProductForm.
    """
    content_type = request.headers.get("content-type", "")
    image = None

    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            raise ValidationFailed("Malformed JSON body")
        if not isinstance(data, dict):
            raise ValidationFailed("Request body must be a JSON object")
    elif content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        data = {k: v for k, v in form.items() if isinstance(v, str)}
        candidate = form.get("image")
        # browsers send an empty file part when nothing was picked
        if isinstance(candidate, UploadFile) and candidate.filename:
            image = candidate
    else:
        data = {}

    try:
        return ProductForm.model_validate(data), image
    except ValidationError as exc:
        field = exc.errors()[0]["loc"][0]
        raise ValidationFailed(f"Invalid value for field: {field}")


# ---------------------------
# App factory
# ---------------------------
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    images = ImageStore(settings.UPLOAD_DIR, settings.MAX_UPLOAD_BYTES)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(
            settings.database_url,
            pool_size=settings.DB_POOL_SIZE,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
        if settings.CREATE_SCHEMA:
            try:
                await db.create_schema()
            except (SQLAlchemyError, OSError):
                # keep serving; /health reports the storage problem
                logger.exception("Could not create the products table")
        app.state.catalog = ProductService(db, images, settings.MAX_PAGE_LIMIT)
        logger.info("Catalog service ready (pool size {})", settings.DB_POOL_SIZE)
        yield
        await db.dispose()
        logger.info("Catalog service stopped")

    app = FastAPI(title="catalog-api", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.mount(PUBLIC_PREFIX, StaticFiles(directory=images.directory), name="uploads")

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # ---------------------------
    # Health
    # ---------------------------
    @app.get("/health")
    async def health(svc: ProductService = Depends(get_service)):
        ok, payload = await svc.health()
        return JSONResponse(status_code=200 if ok else 500, content=payload)

    # ---------------------------
    # Product endpoints
    # ---------------------------
    @app.get("/api/products", response_model=ProductPage)
    async def list_products(
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1),
        category: Optional[str] = None,
        search: Optional[str] = None,
        svc: ProductService = Depends(get_service),
    ):
        return await svc.list_products(page=page, limit=limit, category=category, search=search)

    @app.get("/api/products/{product_id}", response_model=Product)
    async def get_product(product_id: int, svc: ProductService = Depends(get_service)):
        return await svc.get_product(product_id)

    @app.post("/api/products", response_model=Product, status_code=201)
    async def create_product(
        body: Tuple[ProductForm, Optional[UploadFile]] = Depends(read_product_body),
        svc: ProductService = Depends(get_service),
    ):
        form, image = body
        return await svc.create_product(form, image)

    @app.put("/api/products/{product_id}", response_model=Product)
    async def update_product(
        product_id: int,
        body: Tuple[ProductForm, Optional[UploadFile]] = Depends(read_product_body),
        svc: ProductService = Depends(get_service),
    ):
        form, image = body
        return await svc.update_product(product_id, form, image)

    @app.delete("/api/products/{product_id}", response_model=DeleteResult)
    async def delete_product(product_id: int, svc: ProductService = Depends(get_service)):
        return await svc.delete_product(product_id)

    return app


def main() -> None:
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    logger.info("API server listening on http://localhost:{}", settings.PORT)
    logger.info("Health check: http://localhost:{}/health", settings.PORT)
    logger.info("Products API: http://localhost:{}/api/products", settings.PORT)
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
