from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from shared.config.settings import RATE_LIMIT_ENABLED, RATE_LIMIT_STORAGE_URI

from .jwt_handler import verify_access_token

# Credential endpoints only; browsing stays unthrottled
SIGN_IN_LIMIT = "10/minute"
SIGN_UP_LIMIT = "5/minute"


def user_id_or_ip(request: Request) -> str:
    """Signed-in callers are throttled per account, anonymous ones per client address."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token:
        payload = verify_access_token(token)
        if payload:
            return f"user:{payload['sub']}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=user_id_or_ip, enabled=RATE_LIMIT_ENABLED, storage_uri=RATE_LIMIT_STORAGE_URI)
