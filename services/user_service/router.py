from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import PAGE_SIZE
from shared.errors import NotFoundError
from shared.schemas import ActionResult
from shared.security import SIGN_IN_LIMIT, SIGN_UP_LIMIT, limiter
from shared.security.dependencies import SESSION_CART_COOKIE, get_current_user, require_admin

from .schemas import (
    PaymentMethodOptions,
    PaymentMethodUpdate,
    ProfileUpdate,
    ShippingAddress,
    SignInRequest,
    SignUpRequest,
    UserPage,
    UserResponse,
    UserUpdate,
)
from .service import UserService

router = APIRouter(tags=["Users"])
admin_router = APIRouter(tags=["Admin"], dependencies=[Depends(require_admin)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "user", "status": "running"}


@router.post("/sign-up", response_model=ActionResult, summary="Register a new user account")
@limiter.limit(SIGN_UP_LIMIT)
async def sign_up(request: Request, payload: SignUpRequest, db: AsyncSession = Depends(get_db)):
    return await UserService.sign_up(db, payload)


@router.post("/sign-in", response_model=ActionResult, summary="Authenticate and receive a JWT access token")
@limiter.limit(SIGN_IN_LIMIT)
async def sign_in(request: Request, payload: SignInRequest, db: AsyncSession = Depends(get_db)):
    # A guest cart follows the visitor into their account
    return await UserService.sign_in(db, payload, request.cookies.get(SESSION_CART_COOKIE))


@router.get("/me", response_model=UserResponse, summary="Get the current authenticated user's profile")
async def get_me(user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    try:
        return await UserService.get_user_by_id(db, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.put("/me/address", response_model=ActionResult)
async def update_address(
    payload: ShippingAddress,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.update_user_address(db, user_id, payload)


@router.get("/me/payment-method", response_model=PaymentMethodOptions)
async def get_payment_method(user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    try:
        return await UserService.get_payment_method_options(db, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.put("/me/payment-method", response_model=ActionResult)
async def update_payment_method(
    payload: PaymentMethodUpdate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.update_user_payment_method(db, user_id, payload)


@router.put("/me/profile", response_model=ActionResult)
async def update_profile(
    payload: ProfileUpdate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.update_profile(db, user_id, payload)


# --- Admin console ---

@admin_router.get("/", response_model=UserPage)
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=PAGE_SIZE, ge=1, le=100),
    query: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.get_all_users(db, page=page, limit=limit, query=query)


@admin_router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return await UserService.get_user_by_id(db, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@admin_router.put("/{user_id}", response_model=ActionResult)
async def update_user(user_id: str, payload: UserUpdate, db: AsyncSession = Depends(get_db)):
    return await UserService.update_user(db, user_id, payload)


@admin_router.delete("/{user_id}", response_model=ActionResult)
async def delete_user(user_id: str, db: AsyncSession = Depends(get_db)):
    return await UserService.delete_user(db, user_id)
