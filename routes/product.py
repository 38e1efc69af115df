from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from starlette.responses import JSONResponse

from libs.auth import Principal, require_principal
from libs.database import Database, DatabaseConnectionError
from libs.errors import StorageError, ValidationError
from libs.logger import get_logger
from libs.settings import settings
from models.products_model import Product
from services.catalog_service import CatalogService
from services.defaults import ListingDefaults

router = APIRouter()
logger = get_logger(__name__)


async def get_catalog_service() -> CatalogService:
    try:
        collection = await Database.get_collection(settings.products_collection)
    except DatabaseConnectionError as e:
        raise StorageError("Database unavailable") from e
    return CatalogService(collection, ListingDefaults.from_settings(settings))


async def read_json(request: Request):
    try:
        return await request.json()
    except ValueError as e:
        raise ValidationError({"body": "Request body must be valid JSON"}) from e


def product_response(product: Product, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=product.model_dump(mode="json", by_alias=True)
    )


@router.get("")
async def list_products(
    page: Optional[str] = Query(default=None, description="Page number, starting at 1"),
    limit: Optional[str] = Query(default=None, description="Products per page"),
    search: Optional[str] = Query(default=None, description="Search in name, description and tags"),
    category: Optional[str] = Query(default=None, description="Category, or 'all'"),
    sort: Optional[str] = Query(
        default=None, description="featured, price-low, price-high, newest or rating"
    ),
    service: CatalogService = Depends(get_catalog_service),
):
    """
    List the catalog one window at a time.

    Example: /products?search=phone&category=electronics&sort=price-low&page=2
    """
    result = await service.list_products(
        search=search, category=category, sort=sort, page=page, limit=limit
    )
    return JSONResponse(content=result.model_dump(mode="json", by_alias=True))


@router.post("", status_code=201)
async def create_product(
    request: Request,
    principal: Principal = Depends(require_principal),
    service: CatalogService = Depends(get_catalog_service),
):
    payload = await read_json(request)
    product = await service.create_product(payload)
    logger.info(f"Product {product.id} created by {principal.id}")
    return product_response(product, status_code=201)


@router.get("/{product_id}")
async def get_product(product_id: str, service: CatalogService = Depends(get_catalog_service)):
    product = await service.get_product(product_id)
    return product_response(product)


@router.post("/{product_id}/reviews", status_code=201)
async def add_review(
    product_id: str,
    request: Request,
    principal: Principal = Depends(require_principal),
    service: CatalogService = Depends(get_catalog_service),
):
    payload = await read_json(request)
    product = await service.add_review(product_id, payload)
    logger.info(f"Review added to {product_id} by {principal.id}")
    return product_response(product, status_code=201)


@router.delete("/{product_id}/reviews/{review_id}")
async def remove_review(
    product_id: str,
    review_id: str,
    principal: Principal = Depends(require_principal),
    service: CatalogService = Depends(get_catalog_service),
):
    product = await service.remove_review(product_id, review_id)
    logger.info(f"Review {review_id} removed from {product_id} by {principal.id}")
    return product_response(product)
