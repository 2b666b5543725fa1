"""Receipt/invoice files attached to transactions.

Files live on disk under ``ATTACHMENTS_DIR/<transaction id>/``; the
``attachments`` table keeps the metadata and the relative storage path.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import uuid
from pathlib import Path

from sqlalchemy.orm import Session

from contafricax.config import settings
from contafricax.orm_models import Attachment, Transaction

log = logging.getLogger(__name__)

ALLOWED_TYPES = {
    "application/pdf",
    "text/csv",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
_SAFE_RE = re.compile(r"[^A-Za-z0-9._-]+")


class AttachmentTooLarge(ValueError):
    pass


class UnsupportedMediaType(ValueError):
    pass


def max_bytes() -> int:
    return settings.MAX_ATTACHMENT_MB * 1024 * 1024


def is_allowed_type(content_type: str | None) -> bool:
    ct = (content_type or "").split(";", 1)[0].strip().lower()
    return ct.startswith("image/") or ct in ALLOWED_TYPES


def safe_name(name: str | None) -> str:
    base = os.path.basename(name or "").strip()
    cleaned = _SAFE_RE.sub("_", base).strip("._")
    return cleaned[:120] or "file"


def _root() -> Path:
    return Path(settings.ATTACHMENTS_DIR)


def absolute_path(att: Attachment) -> Path:
    return _root() / att.storage_path


def save_attachment(
    db: Session,
    txn: Transaction,
    file_name: str | None,
    content_type: str | None,
    data: bytes,
) -> Attachment:
    if not is_allowed_type(content_type):
        raise UnsupportedMediaType(f"Unsupported file type: {content_type}")
    if len(data) > max_bytes():
        raise AttachmentTooLarge(
            f"File exceeds the {settings.MAX_ATTACHMENT_MB} MB limit"
        )
    if not data:
        raise ValueError("Empty file")

    display = os.path.basename(file_name or "") or "file"
    rel = Path(str(txn.id)) / f"{uuid.uuid4().hex}_{safe_name(display)}"
    dest = _root() / rel
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_bytes(data)

    att = Attachment(
        transaction_id=txn.id,
        file_name=display[:255],
        file_type=(content_type or "application/octet-stream").split(";", 1)[0],
        file_size=len(data),
        storage_path=rel.as_posix(),
    )
    db.add(att)
    try:
        db.commit()
    except Exception:
        db.rollback()
        dest.unlink(missing_ok=True)
        raise
    db.refresh(att)
    log.info("attachment stored txn=%s id=%s size=%d", txn.id, att.id, att.file_size)
    return att


def delete_attachment(db: Session, att: Attachment) -> None:
    path = absolute_path(att)
    db.delete(att)
    db.commit()
    path.unlink(missing_ok=True)


def remove_transaction_files(txn_id: int) -> None:
    """Drop the on-disk folder of a deleted transaction."""
    shutil.rmtree(_root() / str(txn_id), ignore_errors=True)
