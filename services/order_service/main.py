from fastapi import FastAPI
from .router import router, admin_router, public_router
from .models import Order, OrderItem  # noqa: F401, registers models with SQLAlchemy Base

order_app = FastAPI(title="Order Service", version="2.0.0")

order_app.include_router(public_router)
order_app.include_router(admin_router)
order_app.include_router(router)
