from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.schemas import ActionResult
from shared.security.dependencies import get_current_user

from .schemas import ReviewCreate, ReviewList, ReviewResponse
from .service import ReviewService

router = APIRouter()
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "review", "status": "running"}


@router.post("/", response_model=ActionResult)
async def create_update_review(
    payload: ReviewCreate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ReviewService.create_update_review(db, user_id, payload)


@router.get("/product/{product_id}", response_model=ReviewList)
async def list_reviews(product_id: str, db: AsyncSession = Depends(get_db)):
    return await ReviewService.get_reviews(db, product_id)


@router.get("/product/{product_id}/mine", response_model=Optional[ReviewResponse])
async def my_review(
    product_id: str,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ReviewService.get_review_by_product_id(db, product_id, user_id)
