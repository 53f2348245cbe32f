from fastapi import FastAPI

from shared.config.database import create_all_tables
from shared.config.settings import APP_NAME
from shared.exceptions import register_exception_handlers
from shared.observability import setup_observability

from .models import ProductAttribute  # noqa: F401 -- registers model with Base
from .router import router, public_router

attribute_app = FastAPI(title=f"{APP_NAME} Attribute Service", version="1.0.0")

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(attribute_app, "attribute_service")
register_exception_handlers(attribute_app)

attribute_app.include_router(public_router)
attribute_app.include_router(router)

@attribute_app.on_event("startup")
async def startup_event():
    await create_all_tables()
