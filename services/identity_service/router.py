from fastapi import APIRouter, Depends, Form, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import TOKEN_RATE_LIMIT
from shared.security import limiter
from shared.security.dependencies import get_current_user, verify_internal_api_key

from .repository import ApplicationRepository, ScopeRepository
from .schemas import (
    ApplicationResponse,
    ScopeResponse,
    SeedResultResponse,
    TokenResponse,
    UserCreate,
    UserResponse,
)
from .seed import run_data_seeders
from .service import AuthService, TokenService

router = APIRouter(prefix="/auth", tags=["Authentication"])
connect_router = APIRouter(prefix="/connect", tags=["OAuth"])
admin_router = APIRouter(tags=["OAuth administration"], dependencies=[Depends(get_current_user)])
internal_router = APIRouter(tags=["Operations"], dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "identity", "status": "running"}


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_user)],
    summary="Register a new back-office user",
)
async def register(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    return await AuthService.register(db, payload)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get the current authenticated user's profile",
)
async def get_me(
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AuthService.get_user_by_id(db, user_id)


@connect_router.post("/token", response_model=TokenResponse, response_model_exclude_none=True)
@limiter.limit(TOKEN_RATE_LIMIT)
async def token(
    request: Request,                          # REQUIRED: slowapi needs this to check IP/Headers
    grant_type: str = Form(...),
    client_id: str = Form(...),
    client_secret: str | None = Form(default=None),
    scope: str | None = Form(default=None),
    username: str | None = Form(default=None),
    password: str | None = Form(default=None),
    refresh_token: str | None = Form(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await TokenService.exchange(
        db, grant_type, client_id, client_secret, scope, username, password, refresh_token
    )


@admin_router.get("/applications", response_model=list[ApplicationResponse])
async def list_applications(db: AsyncSession = Depends(get_db)):
    return await ApplicationRepository.list_all(db)


@admin_router.get("/scopes", response_model=list[ScopeResponse])
async def list_scopes(db: AsyncSession = Depends(get_db)):
    return await ScopeRepository.list_all(db)


@internal_router.post("/seed", response_model=list[SeedResultResponse])
async def seed(db: AsyncSession = Depends(get_db)):
    """Reconciles the configured OAuth scopes/clients and the admin account."""
    return await run_data_seeders(db)
