"""Early environment fixups applied before the engine is built.

- ``DATABASE_URL_FILE``: read the URL from a mounted secret when
  ``DATABASE_URL`` itself is unset.
- Refuse SQLite when ``APP_ENV=prod``.
"""

import logging
import os
import sys

log = logging.getLogger(__name__)


def _load_db_url_from_file() -> str | None:
    path = os.getenv("DATABASE_URL_FILE")
    if path and not os.getenv("DATABASE_URL"):
        try:
            with open(path, "r", encoding="utf-8") as f:
                val = f.read().strip()
        except OSError as e:
            print(
                f"[env] warn: failed to read DATABASE_URL_FILE={path}: {e}",
                file=sys.stderr,
            )
            return None
        if val:
            os.environ["DATABASE_URL"] = val
            scheme = val.split(":", 1)[0] if ":" in val else "unknown"
            log.info("DATABASE_URL set from %s (scheme=%s)", path, scheme)
            return val
    return os.getenv("DATABASE_URL")


loaded = _load_db_url_from_file()

if loaded:
    from contafricax import config as _cfg_mod

    if _cfg_mod.settings.DATABASE_URL != loaded:
        _cfg_mod.settings.DATABASE_URL = loaded

# Production guard: refuse sqlite in prod very early.
if os.getenv("APP_ENV", os.getenv("ENV", "")).lower() == "prod":
    from contafricax.config import settings as _settings

    if _settings.DATABASE_URL.startswith("sqlite"):
        print(
            "[env] ERROR: sqlite DATABASE_URL in prod; refusing to start.",
            file=sys.stderr,
        )
        raise SystemExit(2)
