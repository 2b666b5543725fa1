"""Minimal, fast-fail DB startup guard.

Exit code 78 is used for configuration errors.
Skipped entirely in test environments.
"""

from __future__ import annotations
import logging
import sys
from sqlalchemy import create_engine, text

from contafricax.config import settings
from contafricax.utils.env import is_test

CONFIG_ERROR_RC = 78

log = logging.getLogger(__name__)


def require_db_or_exit() -> None:
    if is_test():
        log.info("TESTING mode: skipping DB check")
        return
    url = settings.DATABASE_URL
    if not url or "://" not in url:
        print("[FATAL] DATABASE_URL missing/invalid", file=sys.stderr)
        sys.exit(CONFIG_ERROR_RC)
    try:
        engine = create_engine(url, pool_pre_ping=True, future=True)
        with engine.connect() as conn:
            conn.execute(text("select 1"))
        engine.dispose()
        log.info("DB connectivity OK")
    except Exception as e:
        print(f"[FATAL] DB check failed: {e}", file=sys.stderr)
        sys.exit(CONFIG_ERROR_RC)


__all__ = ["require_db_or_exit"]
