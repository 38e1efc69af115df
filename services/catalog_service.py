import re
from typing import Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError as SchemaValidationError
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError
from pymongo.errors import PyMongoError, WriteError

from libs.errors import (
    ConflictError,
    DuplicateKeyError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from libs.logger import get_logger
from models.products_model import Product, ProductPage, Rating, Review, utc_now
from services.defaults import ListingDefaults
from services.pagination import paginate, resolve_page
from services.query_builder import build_query
from services.rating import recompute_rating
from services.validation import validate_product, validate_review

logger = get_logger(__name__)

# MongoDB rejected the document against the collection's $jsonSchema validator
DOCUMENT_VALIDATION_FAILURE = 121

_INDEX_NAME = re.compile(r"index:\s+(\w+?)_-?1\b")


def duplicate_key_field(error: MongoDuplicateKeyError) -> str:
    """Name the field behind a duplicate-key failure."""
    details = error.details or {}
    for key in ("keyPattern", "keyValue"):
        if details.get(key):
            return next(iter(details[key]))
    match = _INDEX_NAME.search(str(error))
    return match.group(1) if match else "unknown"


def _object_id(product_id: str) -> ObjectId:
    if not ObjectId.is_valid(product_id):
        raise NotFoundError()
    return ObjectId(product_id)


class CatalogService:
    """
    List, fetch and create products, and maintain their reviews.

    Stateless between calls; the only shared resource is the collection.
    """

    def __init__(self, collection: AsyncIOMotorCollection, defaults: ListingDefaults):
        self.collection = collection
        self.defaults = defaults

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("category", ASCENDING), ("featured", DESCENDING)])
        await self.collection.create_index([("rating.average", DESCENDING)])
        await self.collection.create_index([("price", ASCENDING)])
        await self.collection.create_index([("createdAt", DESCENDING)])
        # Unique only among non-empty skus; products without one store ""
        await self.collection.create_index(
            [("sku", ASCENDING)],
            name="sku_1",
            unique=True,
            partialFilterExpression={"sku": {"$type": "string", "$gt": ""}},
        )
        logger.info("Product indexes ensured.")

    async def list_products(
        self,
        *,
        search: str | None = None,
        category: str | None = None,
        sort: str | None = None,
        page: Any = None,
        limit: Any = None,
    ) -> ProductPage:
        query = build_query(search, category, sort, self.defaults)
        request = resolve_page(page, limit, self.defaults)

        try:
            total_count = await self.collection.count_documents(query.filter)
            info = paginate(request, total_count)

            documents: list[dict] = []
            if not info.out_of_range:
                cursor = (
                    self.collection.find(query.filter)
                    .sort(query.sort)
                    .skip(info.skip)
                    .limit(info.limit)
                )
                documents = await cursor.to_list(length=info.limit)

            products = [Product.from_document(document) for document in documents]
        except (PyMongoError, SchemaValidationError) as e:
            logger.error(f"Error fetching products: {e}", exc_info=True)
            raise StorageError("Failed to fetch products") from e

        return ProductPage(
            products=products,
            has_more=info.has_more,
            total_count=total_count,
            current_page=info.current_page,
            total_pages=info.total_pages,
        )

    async def get_product(self, product_id: str) -> Product:
        oid = _object_id(product_id)
        try:
            document = await self.collection.find_one({"_id": oid})
        except PyMongoError as e:
            logger.error(f"Error fetching product {product_id}: {e}", exc_info=True)
            raise StorageError("Failed to fetch product") from e

        if document is None:
            raise NotFoundError()
        return Product.from_document(document)

    async def create_product(self, payload: Any) -> Product:
        """
        Validate and insert a product.

        Rating, reviews, id and timestamps are always assigned here; any
        client-supplied values for them are dropped by validation.
        """
        result = validate_product(payload)
        if not result.ok:
            logger.info(f"Rejected product payload: {result.errors}")
            raise ValidationError(result.errors)

        now = utc_now()
        document = {
            **result.value.model_dump(by_alias=True, exclude_none=True),
            "rating": Rating().model_dump(),
            "reviews": [],
            "createdAt": now,
            "updatedAt": now,
            "version": 0,
        }

        try:
            inserted = await self.collection.insert_one(document)
        except MongoDuplicateKeyError as e:
            field = duplicate_key_field(e)
            logger.warning(f"Duplicate key on {field}: {e.details}")
            raise DuplicateKeyError(field) from e
        except WriteError as e:
            if e.code == DOCUMENT_VALIDATION_FAILURE:
                logger.warning(f"Document validation failed: {e.details}")
                message = (e.details or {}).get("errmsg") or str(e)
                raise ValidationError([message], message="Validation failed") from e
            logger.error(f"Error creating product: {e}", exc_info=True)
            raise StorageError("Failed to create product") from e
        except PyMongoError as e:
            logger.error(f"Error creating product: {e}", exc_info=True)
            raise StorageError("Failed to create product") from e

        document["_id"] = inserted.inserted_id
        product = Product.from_document(document)
        logger.info(f"Created product {product.id} ({product.name})")
        return product

    async def add_review(self, product_id: str, payload: Any) -> Product:
        result = validate_review(payload)
        if not result.ok:
            raise ValidationError(result.errors, message="Invalid review")

        product = await self.get_product(product_id)
        review = Review(**result.value.model_dump())
        return await self._write_reviews(product, [*product.reviews, review])

    async def remove_review(self, product_id: str, review_id: str) -> Product:
        product = await self.get_product(product_id)
        reviews = [review for review in product.reviews if review.id != review_id]
        if len(reviews) == len(product.reviews):
            raise NotFoundError("Review not found")
        return await self._write_reviews(product, reviews)

    async def _write_reviews(self, product: Product, reviews: list[Review]) -> Product:
        """
        Store a new review list together with its recomputed rating.

        One update on one document, so readers never see the two disagree. The
        filter pins the version we read and the update bumps it, so a
        concurrent writer makes it miss.
        """
        rating = recompute_rating(reviews)
        now = utc_now()
        update = {
            "$set": {
                "reviews": [review.model_dump(by_alias=True) for review in reviews],
                "rating": rating.model_dump(),
                "updatedAt": now,
            },
            "$inc": {"version": 1},
        }

        try:
            result = await self.collection.update_one(
                {"_id": ObjectId(product.id), "version": product.version}, update
            )
        except PyMongoError as e:
            logger.error(f"Error updating reviews of {product.id}: {e}", exc_info=True)
            raise StorageError("Failed to update reviews") from e

        if result.matched_count == 0:
            logger.warning(f"Review write on {product.id} lost a concurrent update")
            raise ConflictError()

        return product.model_copy(
            update={
                "reviews": reviews,
                "rating": rating,
                "updated_at": now,
                "version": product.version + 1,
            }
        )
