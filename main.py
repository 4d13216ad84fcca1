from fastapi import FastAPI
from shared.config.database import engine, Base
from shared.observability import setup_observability

# IMPORTANT: import models so they register with Base
from services.user_service import models as user_models
from services.product_service import models as product_models
from services.cart_service import models as cart_models
from services.order_service import models as order_models
from services.review_service import models as review_models

from services.user_service.main import user_app
from services.product_service.main import product_app
from services.cart_service.main import cart_app
from services.order_service.main import order_app
from services.payment_service.main import payment_app
from services.review_service.main import review_app

SERVICE_APPS = {
    "/users": user_app,
    "/products": product_app,
    "/cart": cart_app,
    "/orders": order_app,
    "/payments": payment_app,
    "/reviews": review_app,
}

app = FastAPI(title="Storefront")

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(app, "storefront")

@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

@app.get("/health")
async def health_check():
    return {"service": "storefront", "status": "running"}

for prefix, service_app in SERVICE_APPS.items():
    app.mount(prefix, service_app)
