from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from contafricax.db import get_db
from contafricax.orm_models import User
from contafricax.routers.deps import payload
from contafricax.schemas.settings import SettingsOut, SettingsUpdate
from contafricax.services.bootstrap import get_app_settings
from contafricax.utils.auth import get_current_user, require_permission

router = APIRouter(prefix="/settings", tags=["settings"])

_NOT_NULL = ("company_name", "language", "date_format", "primary_currency",
             "secondary_currencies", "show_currency_symbol", "share_capital", "vat_rate")


@router.get("", response_model=SettingsOut)
def read_settings(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    row = get_app_settings(db)
    db.commit()
    return row


@router.put("", response_model=SettingsOut)
def update_settings(
    body: SettingsUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("manage_settings")),
):
    data = payload(body, exclude_unset=True)
    nulls = [k for k in _NOT_NULL if k in data and data[k] is None]
    if nulls:
        raise HTTPException(status_code=400, detail=f"{nulls[0]} cannot be null")
    row = get_app_settings(db)
    for k, v in data.items():
        setattr(row, k, v)
    db.commit()
    db.refresh(row)
    return row
