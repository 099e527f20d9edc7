"""FastAPI facade exposing the reconciled catalog to the explorer tree."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from storecatalog.ingest.client import ApiError
from storecatalog.logic.manager import CatalogManager, create_manager_from_env

logger = logging.getLogger(__name__)

_manager: CatalogManager | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if _manager is not None:
        await _manager.close()


app = FastAPI(title="Store Catalog Explorer API", lifespan=lifespan)


class BrandCreate(BaseModel):
    name: str
    nameAr: str | None = None
    code: str | None = None
    logo: str | None = None
    parentCategoryId: str | None = None


class CategoryCreate(BaseModel):
    name: str
    nameAr: str | None = None
    description: str | None = None
    parentId: str | None = None
    image: str | None = None
    upsert: bool = False


class ProductCreate(BaseModel):
    name: str
    nameAr: str | None = None
    description: str | None = None
    price: float | None = None
    cost: float | None = None
    stock: int | None = None
    sku: str | None = None
    barcode: str | None = None
    categoryId: str | None = None
    brandId: str | None = None
    upsert: bool = False


class CatalogResponse(BaseModel):
    loading: bool
    brands: list[dict[str, Any]]
    categories: list[dict[str, Any]]
    products: list[dict[str, Any]]


class ReloadResponse(BaseModel):
    status: str


def get_manager() -> CatalogManager:
    global _manager
    if _manager is None:
        load_dotenv()
        _manager = create_manager_from_env()
    return _manager


def _bad_gateway(exc: ApiError) -> HTTPException:
    logger.warning("Core API call failed: %s", exc)
    return HTTPException(status_code=502, detail=exc.message)


@app.get("/catalog", response_model=CatalogResponse)
async def catalog(manager: CatalogManager = Depends(get_manager)) -> CatalogResponse:
    return CatalogResponse(
        loading=manager.loading,
        brands=[asdict(brand) for brand in manager.brands],
        categories=[asdict(category) for category in manager.categories],
        products=[asdict(product) for product in manager.products],
    )


@app.post("/catalog/reload", response_model=ReloadResponse)
async def reload_catalog(manager: CatalogManager = Depends(get_manager)) -> ReloadResponse:
    if await manager.load_all():
        return ReloadResponse(status="ok")
    if manager.last_error is not None:
        raise HTTPException(status_code=502, detail="Catalog reload failed")
    return ReloadResponse(status="skipped")


@app.get("/catalog/categories/{category_id}/products")
async def category_products(category_id: str, manager: CatalogManager = Depends(get_manager)) -> list[dict[str, Any]]:
    try:
        products = await manager.load_products_by_category(category_id)
    except ApiError as exc:
        raise _bad_gateway(exc) from exc
    return [asdict(product) for product in products]


@app.get("/catalog/brands/{brand_id}/products")
async def brand_products(brand_id: str, manager: CatalogManager = Depends(get_manager)) -> list[dict[str, Any]]:
    try:
        products = await manager.load_products_by_brand(brand_id)
    except ApiError as exc:
        raise _bad_gateway(exc) from exc
    return [asdict(product) for product in products]


@app.post("/catalog/brands", status_code=201)
async def create_brand(payload: BrandCreate, manager: CatalogManager = Depends(get_manager)) -> dict[str, Any]:
    try:
        brand = await manager.on_create_brand(payload.model_dump(exclude_none=True))
    except ApiError as exc:
        raise _bad_gateway(exc) from exc
    return asdict(brand)


@app.post("/catalog/categories", status_code=201)
async def create_category(payload: CategoryCreate, manager: CatalogManager = Depends(get_manager)) -> dict[str, Any]:
    data = payload.model_dump(exclude_none=True, exclude={"upsert"})
    try:
        category = await manager.on_create_category(data, {"upsert": payload.upsert})
    except ApiError as exc:
        raise _bad_gateway(exc) from exc
    return asdict(category)


@app.post("/catalog/products", status_code=201)
async def create_product(payload: ProductCreate, manager: CatalogManager = Depends(get_manager)) -> dict[str, Any]:
    data = payload.model_dump(exclude_none=True, exclude={"upsert"})
    try:
        product = await manager.on_create_product(data, {"upsert": payload.upsert})
    except ApiError as exc:
        raise _bad_gateway(exc) from exc
    return asdict(product)


@app.post("/catalog/imports/{kind}", status_code=202, response_model=ReloadResponse)
async def import_finished(kind: str, manager: CatalogManager = Depends(get_manager)) -> ReloadResponse:
    handlers = {
        "brands": manager.on_brands_update,
        "categories": manager.on_categories_update,
        "products": manager.on_products_update,
    }
    handler = handlers.get(kind)
    if handler is None:
        raise HTTPException(status_code=404, detail="Unknown collection")
    handler()
    return ReloadResponse(status="scheduled")
