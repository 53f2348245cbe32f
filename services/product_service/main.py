from fastapi import FastAPI

from shared.config.database import create_all_tables
from shared.config.settings import APP_NAME
from shared.exceptions import register_exception_handlers
from shared.observability import setup_observability

from .models import Product  # noqa: F401 -- registers model with Base
from .router import router, public_router

product_app = FastAPI(
    title=f"{APP_NAME} Product Service",
    version="1.0.0"
)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(product_app, "product_service")
register_exception_handlers(product_app)

product_app.include_router(public_router)
product_app.include_router(router)

@product_app.on_event("startup")
async def startup_event():
    await create_all_tables()
