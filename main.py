from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from libs.database import Database
from libs.errors import CatalogError, StorageError, catalog_error_handler
from libs.logger import get_logger
from libs.settings import settings
from routes.product import get_catalog_service, router as product_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Connecting to database...")
    await Database.connect()
    logger.info("Database connected.")
    service = await get_catalog_service()
    await service.ensure_indexes()
    yield
    logger.info("Disconnecting from database...")
    await Database.disconnect()
    logger.info("Database disconnected.")


app = FastAPI(title="Storefront Catalog", debug=settings.debug, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(CatalogError, catalog_error_handler)


@app.get("/")
async def read_root():
    logger.info("Root endpoint accessed.")
    return JSONResponse(content={"message": "Server is running"})


@app.get("/seed-database")
async def seed_db():
    from seeds.seed_database import seed_database

    try:
        count = await seed_database()
    except Exception as e:
        logger.error(f"Error seeding database: {e}", exc_info=True)
        raise StorageError("Failed to seed database") from e
    logger.info("Database seeded successfully.")
    return JSONResponse(content={"message": "Database seeded successfully", "products": count})


app.include_router(product_router, prefix="/products", tags=["products"])


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
