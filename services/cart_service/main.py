from fastapi import FastAPI

from .models import Cart  # noqa: F401, registers model with SQLAlchemy Base
from .router import router, public_router

cart_app = FastAPI(title="Cart Service", version="2.0.0")

cart_app.include_router(public_router)
cart_app.include_router(router)
