from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.security import limiter

from .models import User  # noqa: F401, registers model with SQLAlchemy Base
from .router import router, admin_router, public_router

user_app = FastAPI(
    title="User Service",
    version="2.0.0",
    description="Accounts, profiles, shipping addresses and the admin user console.",
)

# --- SECURITY SETUP ---
user_app.state.limiter = limiter
user_app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

user_app.include_router(public_router)
user_app.include_router(router)
user_app.include_router(admin_router)
