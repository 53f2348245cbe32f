from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.config.database import create_all_tables
from shared.config.settings import APP_NAME
from shared.exceptions import register_exception_handlers
from shared.observability.setup import setup_observability
from shared.security import limiter

from .models import User  # noqa: F401 -- registers model with SQLAlchemy Base
from .router import admin_router, connect_router, internal_router, public_router, router
from .service import OAuthError

identity_app = FastAPI(
    title=f"{APP_NAME} Identity Service",
    version="2.0.0",
    description="OAuth2 token issuance, client/scope seeding and back-office users.",
)

setup_observability(identity_app, "identity_service")
register_exception_handlers(identity_app)

# --- SECURITY SETUP ---
identity_app.state.limiter = limiter
identity_app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@identity_app.exception_handler(OAuthError)
async def oauth_error_handler(request: Request, exc: OAuthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "error_description": exc.description},
        headers={"Cache-Control": "no-store", "Pragma": "no-cache"},
    )


identity_app.include_router(router)
identity_app.include_router(connect_router)
identity_app.include_router(admin_router)
identity_app.include_router(internal_router)
identity_app.include_router(public_router)

@identity_app.on_event("startup")
async def startup_event() -> None:
    await create_all_tables()
