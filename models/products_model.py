from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current UTC time truncated to the millisecond precision MongoDB stores."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# MongoDB hands back naive datetimes unless the client is tz_aware
UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class Category(str, Enum):
    """The closed set of storefront categories."""

    ELECTRONICS = "electronics"
    CLOTHING = "clothing"
    HOME = "home"
    BEAUTY = "beauty"
    SPORTS = "sports"
    BOOKS = "books"


class CamelModel(BaseModel):
    """Stored documents and API payloads both use camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Rating(CamelModel):
    """Derived from the review list, never written by clients."""

    average: float = 0
    count: int = 0


class Review(CamelModel):
    """A customer review for the product."""

    id: str = Field(default_factory=lambda: str(ObjectId()))
    name: str
    rating: int
    date: UtcDatetime = Field(default_factory=utc_now)
    comment: str
    verified: bool = False


class Dimensions(CamelModel):
    length: float | None = None
    width: float | None = None
    height: float | None = None


class Discount(CamelModel):
    percentage: float
    valid_until: UtcDatetime | None = None

    def is_active(self, now: datetime | None = None) -> bool:
        """An expired discount stays on the record but no longer applies."""
        if self.valid_until is None:
            return True
        return self.valid_until > (now or datetime.now(timezone.utc))


class Product(CamelModel):
    """A catalog product as stored and returned by the API."""

    id: str
    name: str
    description: str
    price: float
    category: str
    stock: int = 0
    featured: bool = False
    thumbnail_image: str
    images: list[str]
    tags: list[str] = []
    sku: str = ""
    brand: str = ""
    weight: float | None = None
    dimensions: Dimensions | None = None
    discount: Discount | None = None

    rating: Rating = Field(default_factory=Rating)
    reviews: list[Review] = []

    created_at: UtcDatetime
    updated_at: UtcDatetime
    # bumped by every review write; guards read-modify-write
    version: int = 0

    @computed_field(alias="url")
    @property
    def url(self) -> str:
        return f"/products/{self.id}"

    @computed_field(alias="formattedPrice")
    @property
    def formatted_price(self) -> str:
        return f"${self.price:.2f}"

    @computed_field(alias="isInStock")
    @property
    def is_in_stock(self) -> bool:
        return self.stock > 0

    @computed_field(alias="effectivePrice")
    @property
    def effective_price(self) -> float:
        return self.price_at()

    def price_at(self, now: datetime | None = None) -> float:
        """Price after the discount, if one is active at `now`."""
        if self.discount is None or not self.discount.is_active(now):
            return self.price
        return round(self.price * (1 - self.discount.percentage / 100), 2)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Product":
        data = dict(document)
        data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)


class ProductPage(CamelModel):
    """One window of a catalog listing."""

    products: list[Product]
    has_more: bool
    total_count: int
    current_page: int
    total_pages: int
