from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError
from pymongo.errors import ServerSelectionTimeoutError, WriteError

from libs.errors import (
    ConflictError,
    DuplicateKeyError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from services.catalog_service import duplicate_key_field


async def _seed(service, make_payload, count: int, **overrides):
    products = []
    for i in range(count):
        products.append(
            await service.create_product(make_payload(name=f"Product {i}", price=i + 1, **overrides))
        )
    return products


async def test_create_assigns_server_fields(service, collection, make_payload):
    product = await service.create_product(
        make_payload(rating={"average": 4.9, "count": 300}, reviews=[{"name": "x"}])
    )

    assert ObjectId.is_valid(product.id)
    assert product.rating.average == 0
    assert product.rating.count == 0
    assert product.reviews == []
    assert product.created_at == product.updated_at
    assert product.created_at.tzinfo is not None

    stored = collection.documents[0]
    assert stored["rating"] == {"average": 0, "count": 0}
    assert stored["reviews"] == []
    assert stored["version"] == 0
    assert stored["thumbnailImage"] == "https://cdn.example.com/phone.jpg"
    assert stored["price"] == 500.0
    assert "weight" not in stored


async def test_create_rejects_invalid_payload_without_writing(service, collection, make_payload):
    payload = make_payload()
    del payload["thumbnailImage"]

    with pytest.raises(ValidationError) as exc_info:
        await service.create_product(payload)

    assert exc_info.value.details == {"thumbnailImage": "Thumbnail image is required"}
    assert collection.documents == []


async def test_duplicate_sku_names_the_field(service, make_payload):
    await service.create_product(make_payload(sku="SKU-1"))

    with pytest.raises(DuplicateKeyError) as exc_info:
        await service.create_product(make_payload(sku="SKU-1"))

    assert exc_info.value.field == "sku"
    assert exc_info.value.to_response() == {
        "error": "Duplicate field value: sku already exists",
        "field": "sku",
    }
    assert (await service.create_product(make_payload(sku="SKU-2"))).sku == "SKU-2"


async def test_products_without_sku_do_not_collide(service, make_payload):
    first = await service.create_product(make_payload())
    second = await service.create_product(make_payload())

    assert first.sku == second.sku == ""


async def test_document_validation_failure_is_a_message_list(service, collection, make_payload):
    collection.fail_with = WriteError(
        "Document failed validation", 121, {"errmsg": "Document failed validation", "code": 121}
    )

    with pytest.raises(ValidationError) as exc_info:
        await service.create_product(make_payload())

    assert exc_info.value.message == "Validation failed"
    assert exc_info.value.details == ["Document failed validation"]


async def test_unclassified_storage_failure_on_create(service, collection, make_payload):
    collection.fail_with = ServerSelectionTimeoutError("mongo-0:27017 timed out")

    with pytest.raises(StorageError) as exc_info:
        await service.create_product(make_payload())

    assert exc_info.value.to_response() == {"error": "Failed to create product"}


def test_duplicate_key_field_from_message():
    error = MongoDuplicateKeyError(
        "E11000 duplicate key error collection: shop.products index: sku_1 dup key: { sku: \"A\" }",
        11000,
    )

    assert duplicate_key_field(error) == "sku"
    assert duplicate_key_field(MongoDuplicateKeyError("E11000", 11000)) == "unknown"


async def test_list_first_page(service, make_payload):
    await _seed(service, make_payload, 10)

    page = await service.list_products()

    assert len(page.products) == 6
    assert page.has_more is True
    assert page.total_count == 10
    assert page.current_page == 1
    assert page.total_pages == 2


async def test_list_last_and_out_of_range_pages(service, make_payload):
    await _seed(service, make_payload, 10)

    last = await service.list_products(page="2")
    beyond = await service.list_products(page="3")

    assert len(last.products) == 4
    assert last.has_more is False
    assert beyond.products == []
    assert beyond.has_more is False
    assert beyond.total_count == 10


async def test_list_sorted_by_price(service, make_payload):
    await _seed(service, make_payload, 4)

    low = await service.list_products(sort="price-low")
    high = await service.list_products(sort="price-high")

    assert [p.price for p in low.products] == [1, 2, 3, 4]
    assert [p.price for p in high.products] == [4, 3, 2, 1]


async def test_list_featured_first(service, make_payload):
    await _seed(service, make_payload, 3)
    featured = await service.create_product(make_payload(name="Star", featured=True))

    page = await service.list_products(sort="no-such-sort")

    assert page.products[0].id == featured.id


async def test_list_search_and_category(service, make_payload):
    await service.create_product(make_payload(name="Trail Shoes", category="sports", tags=["running"]))
    await service.create_product(make_payload(name="Desk Lamp", category="home", description="Warm light"))
    await service.create_product(make_payload(name="Headphones", tags=["Running", "audio"]))

    running = await service.list_products(search="RUNNING")
    running_sports = await service.list_products(search="running", category="sports")
    lamps = await service.list_products(search="warm")

    assert running.total_count == 2
    assert [p.name for p in running_sports.products] == ["Trail Shoes"]
    assert [p.name for p in lamps.products] == ["Desk Lamp"]


async def test_list_storage_failure_is_generic(service, collection):
    collection.fail_with = ServerSelectionTimeoutError("mongo-0:27017 timed out")

    with pytest.raises(StorageError) as exc_info:
        await service.list_products()

    assert exc_info.value.message == "Failed to fetch products"
    assert "mongo-0" not in str(exc_info.value.to_response())


async def test_get_product(service, make_payload):
    created = await service.create_product(make_payload())

    assert (await service.get_product(created.id)).name == created.name


@pytest.mark.parametrize("product_id", [str(ObjectId()), "not-an-object-id"])
async def test_get_unknown_product(service, product_id):
    with pytest.raises(NotFoundError):
        await service.get_product(product_id)


async def test_reviews_keep_rating_consistent(service, collection, make_payload):
    product = await service.create_product(make_payload())

    for rating in (5, 2, 4):
        product = await service.add_review(
            product.id, {"name": "Ana", "rating": rating, "comment": "ok"}
        )
        stored = collection.documents[0]
        ratings = [review["rating"] for review in stored["reviews"]]
        assert stored["rating"]["count"] == len(ratings)
        assert stored["rating"]["average"] == sum(ratings) / len(ratings)

    assert product.rating.count == 3
    assert product.rating.average == 11 / 3

    for review in list(product.reviews):
        product = await service.remove_review(product.id, review.id)

    assert product.reviews == []
    assert product.rating.average == 0
    assert product.rating.count == 0
    assert collection.documents[0]["rating"] == {"average": 0, "count": 0}


async def test_invalid_review_is_rejected(service, collection, make_payload):
    product = await service.create_product(make_payload())

    with pytest.raises(ValidationError) as exc_info:
        await service.add_review(product.id, {"name": "Ana", "rating": 9, "comment": "ok"})

    assert exc_info.value.details == {"rating": "Rating cannot exceed 5"}
    assert collection.documents[0]["reviews"] == []


async def test_remove_unknown_review(service, make_payload):
    product = await service.create_product(make_payload())

    with pytest.raises(NotFoundError) as exc_info:
        await service.remove_review(product.id, "missing")

    assert exc_info.value.message == "Review not found"


async def test_concurrent_review_write_is_detected(service, collection, make_payload, monkeypatch):
    product = await service.create_product(make_payload())
    stale = await service.get_product(product.id)
    collection.documents[0]["version"] = stale.version + 1
    monkeypatch.setattr(service, "get_product", AsyncMock(return_value=stale))

    with pytest.raises(ConflictError):
        await service.add_review(product.id, {"name": "Ana", "rating": 5, "comment": "ok"})

    assert collection.documents[0]["reviews"] == []


async def test_racing_reviewers_within_one_timestamp(service, collection, make_payload, monkeypatch):
    product = await service.create_product(make_payload())
    snapshot = await service.get_product(product.id)
    # both writes land on the timestamp the reviewers read
    monkeypatch.setattr("services.catalog_service.utc_now", lambda: snapshot.updated_at)
    monkeypatch.setattr(service, "get_product", AsyncMock(return_value=snapshot))

    first = await service.add_review(product.id, {"name": "A", "rating": 1, "comment": "meh"})
    with pytest.raises(ConflictError):
        await service.add_review(product.id, {"name": "B", "rating": 5, "comment": "great"})

    stored = collection.documents[0]
    assert [review["name"] for review in stored["reviews"]] == ["A"]
    assert stored["rating"] == {"average": 1.0, "count": 1}
    assert stored["version"] == first.version == 1


async def test_expired_discount_is_kept_but_ignored(service, make_payload):
    past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    future = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()

    expired = await service.create_product(
        make_payload(price=100, discount={"percentage": 25, "validUntil": past})
    )
    active = await service.create_product(
        make_payload(price=100, discount={"percentage": 25, "validUntil": future})
    )

    assert expired.discount.percentage == 25
    assert expired.effective_price == 100
    assert active.effective_price == 75


async def test_ensure_indexes_makes_sku_unique_when_present(service, collection):
    await service.ensure_indexes()

    sku_index = [kwargs for keys, kwargs in collection.indexes if kwargs.get("name") == "sku_1"]
    assert sku_index[0]["unique"] is True
    assert sku_index[0]["partialFilterExpression"] == {"sku": {"$type": "string", "$gt": ""}}
    assert all(direction != "text" for keys, _ in collection.indexes for _, direction in keys)
