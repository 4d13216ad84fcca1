from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import PAGE_SIZE
from shared.errors import NotFoundError
from shared.schemas import ActionResult
from shared.security.dependencies import require_admin

from .schemas import CategoryCount, ProductCreate, ProductPage, ProductResponse, ProductUpdate
from .service import ProductService

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health")
async def health_check():
    return {"service": "product", "status": "running"}


@router.get("/", response_model=ProductPage)
async def list_products(
    q: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    price: Optional[str] = Query(default=None),
    rating: Optional[str] = Query(default=None),
    sort: str = Query(default="newest"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=PAGE_SIZE, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await ProductService.get_all_products(
            db, query=q, category=category, price=price, rating=rating,
            sort=sort, page=page, limit=limit,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/latest", response_model=list[ProductResponse])
async def latest_products(db: AsyncSession = Depends(get_db)):
    return await ProductService.get_latest_products(db)


@router.get("/featured", response_model=list[ProductResponse])
async def featured_products(db: AsyncSession = Depends(get_db)):
    return await ProductService.get_featured_products(db)


@router.get("/categories", response_model=list[CategoryCount])
async def categories(db: AsyncSession = Depends(get_db)):
    return await ProductService.get_all_categories(db)


@router.get("/slug/{slug}", response_model=ProductResponse)
async def get_product_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    product = await ProductService.get_product_by_slug(db, slug)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return await ProductService.get_product_by_id(db, product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@admin_router.post("/", response_model=ActionResult)
async def create_product(product: ProductCreate, db: AsyncSession = Depends(get_db)):
    return await ProductService.create_product(db, product)


@admin_router.put("/{product_id}", response_model=ActionResult)
async def update_product(product_id: str, product: ProductUpdate, db: AsyncSession = Depends(get_db)):
    return await ProductService.update_product(db, product_id, product)


@admin_router.delete("/{product_id}", response_model=ActionResult)
async def delete_product(product_id: str, db: AsyncSession = Depends(get_db)):
    return await ProductService.delete_product(db, product_id)
