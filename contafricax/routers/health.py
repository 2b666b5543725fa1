import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contafricax import version as app_version
from contafricax.db import get_db

router = APIRouter(tags=["health"])
log = logging.getLogger(__name__)


def _db_ping(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        log.warning("db ping failed: %s", e)
        return False


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/ready")
def ready(db: Session = Depends(get_db)):
    """Readiness check: 503 until the database answers."""
    if not _db_ping(db):
        return JSONResponse(status_code=503, content={"status": "unavailable", "db": False})
    return {"status": "ready", "db": True}


@router.get("/version")
def version():
    return {
        "version": app_version.APP_VERSION,
        "commit": app_version.GIT_COMMIT,
        "built_at": app_version.BUILD_TIME,
    }
