import copy
import json
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

APP_NAME = os.getenv("APP_NAME", "Eshop")

# Shared by every table so the contexts can live in one database
DB_TABLE_PREFIX = "app_"

APPSETTINGS_PATH = os.getenv(
    "APPSETTINGS_PATH", str(Path(__file__).resolve().parents[2] / "appsettings.json")
)


def _env_flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


TRACING_ENABLED = _env_flag("TRACING_ENABLED")
RATE_LIMIT_ENABLED = _env_flag("RATE_LIMIT_ENABLED")
TOKEN_RATE_LIMIT = os.getenv("TOKEN_RATE_LIMIT", "10/minute")


def load_section(path: str, source: str | None = None) -> dict:
    """
    Reads a colon separated section (e.g. "OpenIddict:Applications") from
    appsettings.json and overlays environment variables that use the
    double-underscore form (OpenIddict__Applications__Eshop_Admin__ClientId).
    Missing file or section yields an empty dict.
    """
    source = source or APPSETTINGS_PATH
    data: dict = {}
    if os.path.exists(source):
        with open(source, encoding="utf-8") as fh:
            data = json.load(fh)

    keys = path.split(":")
    section = data
    for key in keys:
        section = section.get(key, {}) if isinstance(section, dict) else {}
    section = copy.deepcopy(section) if isinstance(section, dict) else {}

    prefix = "__".join(keys) + "__"
    for name, value in os.environ.items():
        if not name.startswith(prefix):
            continue
        parts = name[len(prefix):].split("__")
        node = section
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value

    return section
