from .jwt_handler import (
    create_access_token,
    create_refresh_token,
    verify_access_token,
    verify_refresh_token,
)
from .api_key import verify_api_key
from .dependencies import get_current_user, verify_internal_api_key
from .passwords import hash_secret, verify_secret
from .rate_limiter import limiter, user_id_or_ip

__all__ = [
    "create_access_token",
    "create_refresh_token",
    "verify_access_token",
    "verify_refresh_token",
    "verify_api_key",
    "get_current_user",
    "verify_internal_api_key",
    "hash_secret",
    "verify_secret",
    "limiter",
    "user_id_or_ip"
]
