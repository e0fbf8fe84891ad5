import os
from typing import List

# Accessors read the environment on every call so a changed .env or a test
# monkeypatch takes effect without re-importing modules.

FREE_TIER_WARN_SOFT_1 = 60
FREE_TIER_WARN_SOFT_2 = 70
EMBED_DIM = 1536


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def database_url() -> str:
    return os.getenv("DATABASE_URL", "").strip()


def openai_enabled() -> bool:
    return bool(os.getenv("OPENAI_API_KEY"))


def chat_model() -> str:
    return os.getenv("CHAT_MODEL", "gpt-4o")


def embedding_model() -> str:
    return os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")


def free_tier_limit() -> int:
    return _int_env("FREE_TIER_QUERY_LIMIT", 75)


def supabase_url() -> str:
    return os.getenv("SUPABASE_URL", "").rstrip("/")


def supabase_anon_key() -> str:
    return os.getenv("SUPABASE_ANON_KEY", "")


def service_role_key() -> str:
    return os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")


def stripe_secret_key() -> str:
    return os.getenv("STRIPE_SECRET_KEY", "")


def stripe_webhook_secret() -> str:
    return os.getenv("STRIPE_WEBHOOK_SECRET", "")


def stripe_price_monthly() -> str:
    return os.getenv("STRIPE_PRICE_MONTHLY", "")


def stripe_price_annual() -> str:
    return os.getenv("STRIPE_PRICE_ANNUAL", "")


def app_url() -> str:
    return os.getenv("APP_URL", "http://localhost:3000").rstrip("/")


def allowed_origins() -> List[str]:
    raw = os.getenv("ALLOW_ORIGINS", "http://localhost:3000")
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
