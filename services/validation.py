"""
Payload validation for catalog writes.

Each validator returns a ValidationResult holding either the normalized
payload or one message per offending field. Nothing here touches storage.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError as SchemaValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from models.products_model import Category, UtcDatetime

T = TypeVar("T", bound=BaseModel)

URL_PATTERN = re.compile(
    r"^(https?://)?([\da-z.-]+)\.([a-z.]{2,6})(:\d+)?[/\w .~%+-]*(\?\S*)?$", re.IGNORECASE
)


@dataclass
class ValidationResult(Generic[T]):
    value: T | None = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


class PayloadModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=True,
        extra="ignore",
    )


def _coerce_number(value: Any) -> Any:
    """Turn numeric-looking form strings into numbers; blanks become None."""
    # bool subclasses int, and pydantic's lax mode would read True as 1
    if isinstance(value, bool):
        raise PydanticCustomError("number_type", "Input should be a valid number")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return value
        if math.isfinite(number) and number.is_integer() and "." not in text:
            return int(number)
        return number
    return value


def _check_url(value: str, message: str) -> str:
    if not URL_PATTERN.match(value):
        raise ValueError(message)
    return value


class DimensionsPayload(PayloadModel):
    length: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    width: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    height: float | None = Field(default=None, ge=0, allow_inf_nan=False)

    @field_validator("length", "width", "height", mode="before")
    @classmethod
    def coerce_numbers(cls, value: Any) -> Any:
        return _coerce_number(value)


class DiscountPayload(PayloadModel):
    percentage: float = Field(ge=1, le=90, allow_inf_nan=False)
    valid_until: UtcDatetime | None = None

    @field_validator("percentage", mode="before")
    @classmethod
    def coerce_percentage(cls, value: Any) -> Any:
        return _coerce_number(value)


class ProductPayload(PayloadModel):
    """What a client may set when creating a product."""

    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    price: float = Field(ge=0, le=10000, allow_inf_nan=False)
    category: Category
    stock: int = Field(ge=0)
    featured: bool = False
    thumbnail_image: str = Field(min_length=1)
    images: list[str] = Field(min_length=1)
    tags: list[str] = Field(default_factory=list)
    sku: str = ""
    brand: str = ""
    weight: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    dimensions: DimensionsPayload | None = None
    discount: DiscountPayload | None = None

    @field_validator("dimensions", "discount", mode="before")
    @classmethod
    def blank_groups(cls, value: Any) -> Any:
        return None if value == "" else value

    @field_validator("price", "stock", "weight", mode="before")
    @classmethod
    def coerce_numbers(cls, value: Any) -> Any:
        return _coerce_number(value)

    @field_validator("price")
    @classmethod
    def round_price(cls, value: float) -> float:
        return round(value, 2)

    @field_validator("featured", mode="before")
    @classmethod
    def default_featured(cls, value: Any) -> Any:
        return False if value is None or value == "" else value

    @field_validator("sku", "brand", mode="before")
    @classmethod
    def blank_optional_strings(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("thumbnail_image")
    @classmethod
    def thumbnail_is_url(cls, value: str) -> str:
        return _check_url(value, "Please enter a valid URL for thumbnail image")

    @field_validator("images")
    @classmethod
    def images_are_urls(cls, value: list[str]) -> list[str]:
        images = [image for image in value if image]
        if not images:
            raise ValueError("At least one product image is required")
        return [_check_url(image, "Please enter a valid URL") for image in images]

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return value.split(",")
        return value

    @field_validator("tags")
    @classmethod
    def unique_tags(cls, value: list[str]) -> list[str]:
        # dict keeps first-seen order
        return list(dict.fromkeys(tag.strip() for tag in value if tag.strip()))


class ReviewPayload(PayloadModel):
    name: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1, max_length=500)
    verified: bool = False

    @field_validator("rating", mode="before")
    @classmethod
    def coerce_rating(cls, value: Any) -> Any:
        return _coerce_number(value)


# Messages keyed by field, then by pydantic error type. "required" covers
# missing and blank input; "default" covers every other type.
PRODUCT_MESSAGES: dict[str, dict[str, str]] = {
    "name": {
        "required": "Product name is required",
        "string_too_long": "Product name cannot exceed 100 characters",
    },
    "description": {
        "required": "Description is required",
        "string_too_long": "Product description cannot exceed 1000 characters",
    },
    "price": {
        "required": "Price must be a valid number",
        "greater_than_equal": "Price must be a positive number",
        "less_than_equal": "Price cannot exceed $10,000",
        "default": "Price must be a valid number",
    },
    "category": {
        "required": "Category is required",
        "default": "Please select a valid category",
    },
    "stock": {
        "required": "Stock must be a valid number",
        "greater_than_equal": "Stock cannot be negative",
        "default": "Stock must be a valid number",
    },
    "thumbnailImage": {"required": "Thumbnail image is required"},
    "images": {
        "required": "At least one product image is required",
        "too_short": "At least one product image is required",
    },
    "weight": {
        "greater_than_equal": "Weight must be a positive number",
        "default": "Weight must be a valid number",
    },
    "dimensions.length": {"greater_than_equal": "Length must be a positive number"},
    "dimensions.width": {"greater_than_equal": "Width must be a positive number"},
    "dimensions.height": {"greater_than_equal": "Height must be a positive number"},
    "discount.percentage": {
        "required": "Discount percentage is required",
        "greater_than_equal": "Discount must be at least 1%",
        "less_than_equal": "Discount cannot exceed 90%",
        "default": "Discount must be a valid number",
    },
    "discount.validUntil": {"default": "Discount end date must be a valid date"},
}

REVIEW_MESSAGES: dict[str, dict[str, str]] = {
    "name": {"required": "Reviewer name is required"},
    "rating": {
        "required": "Rating is required",
        "greater_than_equal": "Rating must be at least 1",
        "less_than_equal": "Rating cannot exceed 5",
        "default": "Rating must be a whole number between 1 and 5",
    },
    "comment": {
        "required": "Review comment is required",
        "string_too_long": "Review comment cannot exceed 500 characters",
    },
}

_BLANK_ERRORS = {"missing", "string_too_short"}


def _field_key(loc: tuple) -> str:
    parts = [to_camel(part) if "_" in part else part for part in loc if isinstance(part, str)]
    return ".".join(parts) or "body"


def _message_for(error: dict, messages: dict[str, str]) -> str:
    kind = error["type"]
    blank = kind in _BLANK_ERRORS or error.get("input") in (None, "", [])
    if blank and "required" in messages:
        return messages["required"]
    if kind in messages:
        return messages[kind]
    if kind == "value_error":
        return str(error["ctx"]["error"])
    return messages.get("default", error["msg"])


def collect_errors(
    exc: SchemaValidationError, messages: dict[str, dict[str, str]]
) -> dict[str, str]:
    """One message per field, first error wins."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        key = _field_key(error["loc"])
        if key not in errors:
            errors[key] = _message_for(error, messages.get(key, {}))
    return errors


def _validate(
    model: type[T], payload: Any, messages: dict[str, dict[str, str]]
) -> ValidationResult[T]:
    if not isinstance(payload, dict):
        return ValidationResult(errors={"body": "Request body must be a JSON object"})
    try:
        return ValidationResult(value=model.model_validate(payload))
    except SchemaValidationError as e:
        return ValidationResult(errors=collect_errors(e, messages))


def validate_product(payload: Any) -> ValidationResult[ProductPayload]:
    return _validate(ProductPayload, payload, PRODUCT_MESSAGES)


def validate_review(payload: Any) -> ValidationResult[ReviewPayload]:
    return _validate(ReviewPayload, payload, REVIEW_MESSAGES)
