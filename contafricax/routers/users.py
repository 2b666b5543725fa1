from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from contafricax.db import get_db
from contafricax.orm_models import User
from contafricax.routers.auth import user_out
from contafricax.schemas.auth import UserOut, UserPatch
from contafricax.utils.auth import assign_role, require_permission, user_role
from contafricax.utils.permissions import is_valid_role

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserOut])
def list_users(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("manage_users")),
):
    return [user_out(u) for u in db.query(User).order_by(User.id).all()]


@router.patch("/{user_id}", response_model=UserOut)
def patch_user(
    user_id: int,
    body: UserPatch,
    db: Session = Depends(get_db),
    me: User = Depends(require_permission("manage_users")),
):
    u = db.get(User, user_id)
    if u is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if body.role is not None and not is_valid_role(body.role):
        raise HTTPException(status_code=400, detail=f"Unknown role: {body.role}")
    if u.id == me.id:
        if body.is_active is False:
            raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
        if body.role is not None and body.role != user_role(me):
            raise HTTPException(status_code=400, detail="You cannot change your own role")

    if body.role is not None:
        assign_role(db, u, body.role)
    if body.is_active is not None:
        u.is_active = body.is_active
    if body.name is not None:
        u.name = body.name.strip() or None
    db.commit()
    db.refresh(u)
    return user_out(u)
