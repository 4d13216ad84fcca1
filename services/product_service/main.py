from fastapi import FastAPI
from .router import router, admin_router, public_router
from .models import Product  # noqa: F401, registers model with SQLAlchemy Base

product_app = FastAPI(
    title="Product Service",
    version="2.0.0"
)

product_app.include_router(public_router)
product_app.include_router(router)
product_app.include_router(admin_router)
