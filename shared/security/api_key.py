"""
Shared key for operational endpoints (data seeding) that are called by
deployment tooling rather than back-office users.

INTERNAL_API_KEY may hold several comma separated keys; any of them is
accepted while a key is being rotated.
"""
import os
import secrets

import structlog

logger = structlog.get_logger(__name__)

_INSECURE_DEFAULT = "insecure-default-change-me"


def _configured_keys() -> list[str]:
    raw = os.getenv("INTERNAL_API_KEY", "")
    keys = [key.strip() for key in raw.split(",") if key.strip()]
    if not keys:
        logger.warning("internal_api_key_missing", detail="INTERNAL_API_KEY is not set, using an insecure default")
        keys = [_INSECURE_DEFAULT]
    return keys


INTERNAL_API_KEYS: list[str] = _configured_keys()


def verify_api_key(provided_key: str | None) -> bool:
    if not provided_key:
        return False
    # Check every key so the timing does not reveal which one matched
    matches = [secrets.compare_digest(provided_key, key) for key in INTERNAL_API_KEYS]
    return any(matches)
