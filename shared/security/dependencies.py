import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer

from .jwt_handler import verify_access_token

SESSION_CART_COOKIE = "sessionCartId"

# Defines the expected header format (Bearer <token>); anonymous shoppers are allowed through
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="users/sign-in", auto_error=False)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _identify(request: Request, token: Optional[str]) -> Optional[str]:
    payload = verify_access_token(token) if token else None
    if payload is None:
        return None
    # Read downstream by ownership checks and the admin guard
    request.state.user_id = payload["sub"]
    request.state.role = payload["role"]
    return payload["sub"]


async def get_current_user(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> str:
    """Dependency to validate JWT and return the user ID (sub)."""
    user_id = _identify(request, token)
    if user_id is None:
        raise _credentials_exception()
    return user_id


async def get_optional_user(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> Optional[str]:
    """Same as get_current_user, but guests browsing with a session cart get None."""
    return _identify(request, token)


async def require_admin(request: Request, user_id: str = Depends(get_current_user)) -> str:
    """Dependency for the admin console: the token role must be 'admin'."""
    if request.state.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user_id


async def get_session_cart_id(request: Request, response: Response) -> str:
    """Guest cart identity. Issues the cookie on first visit."""
    session_cart_id = request.cookies.get(SESSION_CART_COOKIE)
    if not session_cart_id:
        session_cart_id = str(uuid.uuid4())
        response.set_cookie(SESSION_CART_COOKIE, session_cart_id, httponly=True, samesite="lax")
    return session_cart_id
