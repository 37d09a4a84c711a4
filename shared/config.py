"""Environment-driven settings for the dashboard API."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv


logger = logging.getLogger(__name__)


_LOCAL_ENVS = frozenset({"dev", "local"})
_LOCAL_UI_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]
_DEFAULT_SEED_PATH = "data/transactions.json"
_DEFAULT_JWT_ALGORITHM = "HS256"
_DEFAULT_TRANSACTIONS_TABLE = "transactions"


def _is_local(env_name: str) -> bool:
    return env_name.strip().lower() in _LOCAL_ENVS


# .env files are only honoured on developer machines.
if _is_local(os.getenv("APP_ENV", "dev")):
    load_dotenv()


def get_env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _env_text(name: str, default: str = "") -> str:
    """Stripped value of ``name``; blank values fall back to ``default``."""
    return (get_env(name) or "").strip() or default


def app_env() -> str:
    return _env_text("APP_ENV", "dev")


def cors_allow_origins() -> list[str]:
    """Origins from CORS_ALLOW_ORIGINS, else the local UI in dev, else UI_ORIGIN."""
    configured = [origin.strip() for origin in _env_text("CORS_ALLOW_ORIGINS").split(",") if origin.strip()]
    if configured:
        return configured

    if _is_local(app_env()):
        return list(_LOCAL_UI_ORIGINS)

    ui_origin = _env_text("UI_ORIGIN")
    if ui_origin:
        return [ui_origin]

    logger.warning(
        "cors_allow_origins_empty_in_prod app_env=%s; define CORS_ALLOW_ORIGINS or UI_ORIGIN",
        app_env(),
    )
    return []


def jwt_secret() -> str | None:
    return _env_text("JWT_SECRET") or None


def jwt_algorithm() -> str:
    return _env_text("JWT_ALGORITHM", _DEFAULT_JWT_ALGORITHM)


def transactions_seed_path() -> str:
    """JSON file bulk-loaded into the in-memory store at start-up."""
    return _env_text("TRANSACTIONS_SEED_PATH", _DEFAULT_SEED_PATH)


def supabase_url() -> str | None:
    return get_env("SUPABASE_URL")


def supabase_service_role_key() -> str | None:
    return get_env("SUPABASE_SERVICE_ROLE_KEY")


def supabase_transactions_table() -> str:
    return _env_text("SUPABASE_TRANSACTIONS_TABLE", _DEFAULT_TRANSACTIONS_TABLE)
