import json
import os
from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from contafricax.utils.currency import rate_table

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "on"}


def _parse_rates(raw: str) -> dict[str, float]:
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"EXCHANGE_RATES is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("EXCHANGE_RATES must be a JSON object of currency -> rate")
    out: dict[str, float] = {}
    for k, v in data.items():
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError(f"EXCHANGE_RATES[{k}] must be a number, got {v!r}")
        out[str(k).upper()] = float(v)
    return out


def _read_secret_file(var: str) -> str | None:
    path = os.getenv(var)
    if path and os.path.isfile(path):
        with open(path, "r", encoding="utf-8") as f:
            return f.read().strip() or None
    return None


"""CORS allowlist (dev defaults cover the SPA dev server on 5173).
Read from env and split on commas; strip whitespace and any stray quotes per item.
"""
_cors_env = os.getenv(
    "CORS_ALLOW_ORIGINS",
    "http://127.0.0.1:5173,http://localhost:5173,http://localhost:3000",
)
ALLOW_ORIGINS = [
    o.strip().strip('"').strip("'")
    for o in (_cors_env.split(",") if _cors_env else [])
    if o and o.strip().strip('"').strip("'")
]


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./data/contafricax.db"
    APP_ENV: str = os.getenv("APP_ENV", os.getenv("ENV", "dev"))  # dev | prod | test

    # --- Auth ---
    JWT_SECRET: str = _read_secret_file("JWT_SECRET_FILE") or "dev-secret-change-me"
    JWT_ISSUER: str = "contafricax"
    JWT_AUDIENCE: str = "contafricax-app"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60
    ALLOW_REGISTRATION: bool = True
    DEFAULT_USER_ROLE: str = "user"

    # --- Money ---
    DEFAULT_CURRENCY: str = "XOF"
    # JSON object of units per 1 EUR, e.g. {"NGN": 1650.0}; merged over built-in rates
    EXCHANGE_RATES: str = ""

    # --- Payments ---
    # provider checkout pages are "{base}/{provider}/checkout?ref=..."
    PAYMENT_CHECKOUT_BASE_URL: str = "https://payment.example.com"

    # --- Attachments ---
    ATTACHMENTS_DIR: str = "./data/attachments"
    MAX_ATTACHMENT_MB: int = 10

    # --- Runtime ---
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = _env_bool("LOG_JSON", False)
    AUTO_CREATE_TABLES: bool = True

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("EXCHANGE_RATES")
    @classmethod
    def _check_exchange_rates(cls, v: str) -> str:
        # checked once, when settings load
        rate_table(_parse_rates(v))
        return v

    def exchange_rate_overrides(self) -> dict[str, float]:
        return _parse_rates(self.EXCHANGE_RATES)


settings = Settings()

if settings.APP_ENV == "prod" and settings.JWT_SECRET == "dev-secret-change-me":
    raise SystemExit("[config] JWT_SECRET must be set in prod")
