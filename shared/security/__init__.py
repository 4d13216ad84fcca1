from .jwt_handler import create_access_token, verify_access_token
from .dependencies import (
    SESSION_CART_COOKIE,
    get_current_user,
    get_optional_user,
    get_session_cart_id,
    require_admin,
)
from .rate_limiter import SIGN_IN_LIMIT, SIGN_UP_LIMIT, limiter, user_id_or_ip

__all__ = [
    "create_access_token",
    "verify_access_token",
    "get_current_user",
    "get_optional_user",
    "require_admin",
    "get_session_cart_id",
    "SESSION_CART_COOKIE",
    "limiter",
    "user_id_or_ip",
    "SIGN_IN_LIMIT",
    "SIGN_UP_LIMIT",
]
