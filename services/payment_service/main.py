from fastapi import FastAPI

from .router import router, public_router

payment_app = FastAPI(title="Payment Service", version="2.0.0")

payment_app.include_router(public_router)
payment_app.include_router(router)
