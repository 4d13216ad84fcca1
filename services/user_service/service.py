from typing import Optional

import structlog
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import transaction
from shared.config.settings import DEFAULT_PAYMENT_METHOD, PAGE_SIZE, PAYMENT_METHODS
from shared.errors import NotFoundError, StorefrontError, format_error
from shared.schemas import ActionResult, active_filter, page_offset, total_pages
from shared.security.jwt_handler import create_access_token

from services.cart_service.service import CartService

from .models import User
from .repository import UserRepository
from .schemas import (
    PaymentMethodOptions,
    PaymentMethodUpdate,
    ProfileUpdate,
    ShippingAddress,
    SignInRequest,
    SignUpRequest,
    TokenResponse,
    UserPage,
    UserResponse,
    UserUpdate,
)

logger = structlog.get_logger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class UserService:

    @staticmethod
    def _hash_password(password: str) -> str:
        return _pwd_context.hash(password)

    @staticmethod
    def _verify_password(plain: str, hashed: str) -> bool:
        return _pwd_context.verify(plain, hashed)

    @staticmethod
    def _issue_token(user: User) -> TokenResponse:
        token = create_access_token(user.id, user.role)
        return TokenResponse(access_token=token)

    @staticmethod
    async def sign_up(db: AsyncSession, data: SignUpRequest) -> ActionResult:
        existing = await UserRepository.get_by_email(db, data.email)
        if existing:
            return ActionResult.fail("Email already registered")

        try:
            async with transaction(db):
                user = await UserRepository.create(
                    db,
                    User(
                        name=data.name,
                        email=data.email,
                        hashed_password=UserService._hash_password(data.password),
                    ),
                )
        except IntegrityError:
            # Lost a race with a concurrent sign-up for the same email
            return ActionResult.fail("Email already registered")

        logger.info("user_signed_up", user_id=user.id)
        return ActionResult.ok(
            "Signed up successfully", data=UserService._issue_token(user).model_dump()
        )

    @staticmethod
    async def sign_in(
        db: AsyncSession, data: SignInRequest, session_cart_id: Optional[str] = None
    ) -> ActionResult:
        user = await UserRepository.get_by_email(db, data.email)
        if (
            not user
            or not user.hashed_password
            or not UserService._verify_password(data.password, user.hashed_password)
        ):
            return ActionResult.fail("Invalid email or password")

        if session_cart_id:
            await CartService.assign_session_cart(db, session_cart_id, user.id)

        logger.info("user_signed_in", user_id=user.id)
        return ActionResult.ok(
            "Signed in successfully", data=UserService._issue_token(user).model_dump()
        )

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: str) -> User:
        user = await UserRepository.get_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    async def update_user_address(
        db: AsyncSession, user_id: str, address: ShippingAddress
    ) -> ActionResult:
        try:
            async with transaction(db):
                user = await UserService.get_user_by_id(db, user_id)
                user.address = address.model_dump(exclude_none=True)
        except StorefrontError as e:
            return ActionResult.fail(format_error(e))
        return ActionResult.ok("Address updated successfully")

    @staticmethod
    async def get_payment_method_options(db: AsyncSession, user_id: str) -> PaymentMethodOptions:
        user = await UserService.get_user_by_id(db, user_id)
        return PaymentMethodOptions(
            type=user.payment_method or DEFAULT_PAYMENT_METHOD, methods=PAYMENT_METHODS
        )

    @staticmethod
    async def update_user_payment_method(
        db: AsyncSession, user_id: str, data: PaymentMethodUpdate
    ) -> ActionResult:
        try:
            async with transaction(db):
                user = await UserService.get_user_by_id(db, user_id)
                user.payment_method = data.type
        except StorefrontError as e:
            return ActionResult.fail(format_error(e))
        return ActionResult.ok("Payment method updated successfully")

    @staticmethod
    async def update_profile(db: AsyncSession, user_id: str, data: ProfileUpdate) -> ActionResult:
        try:
            async with transaction(db):
                user = await UserService.get_user_by_id(db, user_id)
                user.name = data.name
        except StorefrontError as e:
            return ActionResult.fail(format_error(e))
        return ActionResult.ok("Profile updated successfully")

    # --- Admin console ---

    @staticmethod
    async def get_all_users(
        db: AsyncSession, page: int = 1, limit: int = PAGE_SIZE, query: Optional[str] = None
    ) -> UserPage:
        query = active_filter(query)
        users = await UserRepository.list_users(db, query, page_offset(page, limit), limit)
        count = await UserRepository.count(db, query)
        return UserPage(
            data=[UserResponse.model_validate(u) for u in users],
            total_pages=total_pages(count, limit),
        )

    @staticmethod
    async def delete_user(db: AsyncSession, user_id: str) -> ActionResult:
        async with transaction(db):
            deleted = await UserRepository.delete(db, user_id)
        if not deleted:
            return ActionResult.fail("User not found")
        logger.info("user_deleted", user_id=user_id)
        return ActionResult.ok("User deleted successfully")

    @staticmethod
    async def update_user(db: AsyncSession, user_id: str, data: UserUpdate) -> ActionResult:
        try:
            async with transaction(db):
                user = await UserService.get_user_by_id(db, user_id)
                user.name = data.name
                user.role = data.role
        except StorefrontError as e:
            return ActionResult.fail(format_error(e))
        return ActionResult.ok("User updated successfully")
