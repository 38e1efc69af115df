from libs.database import Database
from libs.logger import get_logger
from libs.settings import settings
from services.catalog_service import CatalogService
from services.defaults import ListingDefaults

logger = get_logger(__name__)

CDN = "https://images.unsplash.com"

SAMPLE_PRODUCTS: list[dict] = [
    {
        "name": "Wireless Noise-Cancelling Headphones",
        "description": "Over-ear headphones with active noise cancelling and 30 hours of battery life.",
        "price": "249.99",
        "category": "electronics",
        "stock": "35",
        "featured": True,
        "thumbnailImage": f"{CDN}/photo-1505740420928-5e560c06d30e",
        "images": [f"{CDN}/photo-1505740420928-5e560c06d30e"],
        "tags": ["audio", "wireless", "headphones"],
        "sku": "EL-HP-001",
        "brand": "Sonora",
        "weight": "0.25",
        "discount": {"percentage": 15, "validUntil": "2030-01-01T00:00:00Z"},
    },
    {
        "name": "Smartphone 128GB",
        "description": "6.1 inch OLED display, dual camera and all-day battery.",
        "price": 699,
        "category": "electronics",
        "stock": 12,
        "thumbnailImage": f"{CDN}/photo-1511707171634-5f897ff02aa9",
        "images": [
            f"{CDN}/photo-1511707171634-5f897ff02aa9",
            f"{CDN}/photo-1512941937669-90a1b58e7e9c",
        ],
        "tags": ["phone", "mobile"],
        "sku": "EL-PH-128",
        "brand": "Nimbus",
        "dimensions": {"length": 14.7, "width": 7.1, "height": 0.8},
    },
    {
        "name": "Organic Cotton T-Shirt",
        "description": "Relaxed fit crew neck tee made from certified organic cotton.",
        "price": 24.5,
        "category": "clothing",
        "stock": 120,
        "thumbnailImage": f"{CDN}/photo-1521572163474-6864f9cf17ab",
        "images": [f"{CDN}/photo-1521572163474-6864f9cf17ab"],
        "tags": "cotton, basics, tshirt",
        "brand": "Fieldline",
    },
    {
        "name": "Ceramic Pour-Over Coffee Set",
        "description": "Hand-glazed dripper with matching carafe and two cups.",
        "price": "58",
        "category": "home",
        "stock": 0,
        "thumbnailImage": f"{CDN}/photo-1495474472287-4d71bcdd2085",
        "images": [f"{CDN}/photo-1495474472287-4d71bcdd2085"],
        "tags": ["coffee", "kitchen"],
        "sku": "HM-CF-010",
        "discount": {"percentage": 20, "validUntil": "2020-06-30T00:00:00Z"},
    },
    {
        "name": "Hydrating Face Serum",
        "description": "Lightweight hyaluronic acid serum for daily hydration.",
        "price": 32,
        "category": "beauty",
        "stock": 64,
        "featured": True,
        "thumbnailImage": f"{CDN}/photo-1620916566398-39f1143ab7be",
        "images": [f"{CDN}/photo-1620916566398-39f1143ab7be"],
        "tags": ["skincare", "serum"],
    },
    {
        "name": "Yoga Mat Pro",
        "description": "6mm non-slip mat with alignment lines and carrying strap.",
        "price": 45,
        "category": "sports",
        "stock": 40,
        "thumbnailImage": f"{CDN}/photo-1592432678016-e910b452f9a2",
        "images": [f"{CDN}/photo-1592432678016-e910b452f9a2"],
        "tags": ["yoga", "fitness"],
        "weight": 1.2,
    },
    {
        "name": "The Pragmatic Gardener",
        "description": "A practical guide to growing vegetables in small spaces.",
        "price": 18.99,
        "category": "books",
        "stock": 25,
        "thumbnailImage": f"{CDN}/photo-1544947950-fa07a98d237f",
        "images": [f"{CDN}/photo-1544947950-fa07a98d237f"],
        "tags": ["gardening", "guide"],
        "sku": "BK-GD-042",
    },
]

SAMPLE_REVIEWS: dict[str, list[dict]] = {
    "EL-HP-001": [
        {"name": "Alex", "rating": 5, "comment": "Great sound and the ANC works on flights.", "verified": True},
        {"name": "Sam", "rating": 4, "comment": "Comfortable, a little heavy after a few hours."},
    ],
    "EL-PH-128": [
        {"name": "Jordan", "rating": 4, "comment": "Fast and the camera is solid."},
    ],
    "BK-GD-042": [
        {"name": "Robin", "rating": 5, "comment": "Finally grew tomatoes on my balcony.", "verified": True},
        {"name": "Casey", "rating": 3, "comment": "Useful but light on pest control."},
    ],
}


async def seed_database() -> int:
    """Replace the products collection with the sample catalog."""
    logger.info("Seeding database...")
    try:
        collection = await Database.get_collection(settings.products_collection)
        service = CatalogService(collection, ListingDefaults.from_settings(settings))

        await collection.delete_many({})
        await service.ensure_indexes()

        for payload in SAMPLE_PRODUCTS:
            product = await service.create_product(payload)
            for review in SAMPLE_REVIEWS.get(product.sku, []):
                await service.add_review(product.id, review)

        logger.info(f"Seeded {len(SAMPLE_PRODUCTS)} products.")
        return len(SAMPLE_PRODUCTS)
    except Exception as e:
        logger.error(f"Error seeding database: {e}")
        raise e
