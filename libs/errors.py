from typing import Any

from fastapi import Request
from starlette.responses import JSONResponse

from libs.logger import get_logger

logger = get_logger(__name__)


class CatalogError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict[str, Any]:
        return {"error": self.message}


class ValidationError(CatalogError):
    """Client-correctable payload problems, collected rather than fail-fast."""

    status_code = 400

    def __init__(
        self,
        details: dict[str, str] | list[str],
        message: str = "Missing or invalid required fields",
    ):
        super().__init__(message)
        self.details = details

    def to_response(self) -> dict[str, Any]:
        return {"error": self.message, "details": self.details}


class DuplicateKeyError(CatalogError):
    status_code = 400

    def __init__(self, field: str):
        super().__init__(f"Duplicate field value: {field} already exists")
        self.field = field

    def to_response(self) -> dict[str, Any]:
        return {"error": self.message, "field": self.field}


class AuthenticationError(CatalogError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class NotFoundError(CatalogError):
    status_code = 404

    def __init__(self, message: str = "Product not found"):
        super().__init__(message)


class ConflictError(CatalogError):
    """The document changed between read and write of a review mutation."""

    status_code = 409

    def __init__(self, message: str = "Product was modified concurrently, please retry"):
        super().__init__(message)


class StorageError(CatalogError):
    """Server-side storage failure. The message never carries driver detail."""

    status_code = 500


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())
