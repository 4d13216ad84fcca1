from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import transaction
from shared.errors import NotFoundError, StorefrontError, format_error
from shared.schemas import ActionResult

from services.product_service.repository import ProductRepository

from .models import Review
from .repository import ReviewRepository
from .schemas import ReviewCreate, ReviewList, ReviewResponse

logger = structlog.get_logger(__name__)


class ReviewService:

    @staticmethod
    async def create_update_review(db: AsyncSession, user_id: str, data: ReviewCreate) -> ActionResult:
        """Upsert the user's review of a product, then refresh the product's rating.

        The aggregate is recomputed from every review row inside the same
        transaction, so product.rating and product.num_reviews never drift.
        """
        try:
            product = await ProductRepository.get_product_by_id(db, data.product_id)
            if not product:
                raise NotFoundError("Product not found")

            existing = await ReviewRepository.get_by_product_and_user(db, data.product_id, user_id)
            async with transaction(db):
                if existing:
                    existing.rating = data.rating
                    existing.title = data.title
                    existing.description = data.description
                    await db.flush()
                else:
                    await ReviewRepository.create(db, Review(user_id=user_id, **data.model_dump()))

                average, count = await ReviewRepository.aggregate(db, data.product_id)
                rating = Decimal(str(average or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
                await ProductRepository.update_rating(db, data.product_id, rating, count)
        except StorefrontError as e:
            return ActionResult.fail(format_error(e))
        except IntegrityError:
            # Another request saved this user's review first
            logger.warning("review_conflict", product_id=data.product_id, user_id=user_id)
            return ActionResult.fail("Review was saved by another request, please try again")

        logger.info("review_saved", product_id=data.product_id, user_id=user_id, updated=bool(existing))
        return ActionResult.ok("Review updated successfully" if existing else "Review created successfully")

    @staticmethod
    async def get_reviews(db: AsyncSession, product_id: str) -> ReviewList:
        reviews = await ReviewRepository.list_for_product(db, product_id)
        return ReviewList(data=[ReviewResponse.model_validate(r) for r in reviews])

    @staticmethod
    async def get_review_by_product_id(db: AsyncSession, product_id: str, user_id: str) -> Optional[Review]:
        return await ReviewRepository.get_by_product_and_user(db, product_id, user_id)
