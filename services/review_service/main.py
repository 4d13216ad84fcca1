from fastapi import FastAPI

from .models import Review  # noqa: F401, registers model with SQLAlchemy Base
from .router import router, public_router

review_app = FastAPI(title="Review Service", version="1.0.0")

review_app.include_router(public_router)
review_app.include_router(router)
