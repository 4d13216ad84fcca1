from decimal import Decimal, InvalidOperation
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import transaction
from shared.config.settings import PAGE_SIZE
from shared.errors import NotFoundError
from shared.schemas import ActionResult, active_filter, page_offset, total_pages

from .models import Product
from .repository import ProductRepository
from .schemas import CategoryCount, ProductCreate, ProductPage, ProductResponse, ProductUpdate

logger = structlog.get_logger(__name__)

LATEST_PRODUCTS_LIMIT = 4


def parse_price_range(price: Optional[str]) -> Optional[tuple[Decimal, Decimal]]:
    """'50-100' -> (50, 100). Raises ValueError on anything else."""
    price = active_filter(price)
    if price is None:
        return None
    try:
        low, high = (Decimal(part) for part in price.split("-", 1))
    except (ValueError, InvalidOperation):
        raise ValueError(f"Invalid price range '{price}', expected 'min-max'")
    return low, high


def parse_rating(rating: Optional[str]) -> Optional[Decimal]:
    rating = active_filter(rating)
    if rating is None:
        return None
    try:
        return Decimal(rating)
    except InvalidOperation:
        raise ValueError(f"Invalid rating '{rating}'")


class ProductService:

    @staticmethod
    async def create_product(db: AsyncSession, data: ProductCreate) -> ActionResult:
        if await ProductRepository.get_product_by_slug(db, data.slug):
            return ActionResult.fail("Slug already in use")
        async with transaction(db):
            product = await ProductRepository.create_product(db, Product(**data.model_dump()))
        logger.info("product_created", product_id=product.id, slug=product.slug)
        return ActionResult.ok("Product created successfully", data={"id": product.id})

    @staticmethod
    async def update_product(db: AsyncSession, product_id: str, data: ProductUpdate) -> ActionResult:
        product = await ProductRepository.get_product_by_id(db, product_id)
        if not product:
            return ActionResult.fail("Product not found")
        async with transaction(db):
            for field, value in data.model_dump().items():
                setattr(product, field, value)
        return ActionResult.ok("Product updated successfully")

    @staticmethod
    async def delete_product(db: AsyncSession, product_id: str) -> ActionResult:
        async with transaction(db):
            deleted = await ProductRepository.delete_product(db, product_id)
        if not deleted:
            return ActionResult.fail("Product not found")
        logger.info("product_deleted", product_id=product_id)
        return ActionResult.ok("Product deleted successfully")

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: str) -> Product:
        product = await ProductRepository.get_product_by_id(db, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    @staticmethod
    async def get_product_by_slug(db: AsyncSession, slug: str) -> Optional[Product]:
        return await ProductRepository.get_product_by_slug(db, slug)

    @staticmethod
    async def get_latest_products(db: AsyncSession, limit: int = LATEST_PRODUCTS_LIMIT):
        return await ProductRepository.get_latest(db, limit)

    @staticmethod
    async def get_featured_products(db: AsyncSession, limit: int = LATEST_PRODUCTS_LIMIT):
        return await ProductRepository.get_featured(db, limit)

    @staticmethod
    async def get_all_categories(db: AsyncSession) -> list[CategoryCount]:
        rows = await ProductRepository.categories(db)
        return [CategoryCount(category=category, count=count) for category, count in rows]

    @staticmethod
    async def get_all_products(
        db: AsyncSession,
        query: Optional[str] = None,
        category: Optional[str] = None,
        price: Optional[str] = None,
        rating: Optional[str] = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = PAGE_SIZE,
    ) -> ProductPage:
        filters = dict(
            query=active_filter(query),
            category=active_filter(category),
            price_range=parse_price_range(price),
            min_rating=parse_rating(rating),
        )
        products = await ProductRepository.search(
            db, sort=sort, offset=page_offset(page, limit), limit=limit, **filters
        )
        count = await ProductRepository.count(db, **filters)
        return ProductPage(
            data=[ProductResponse.model_validate(p) for p in products],
            total_pages=total_pages(count, limit),
        )
