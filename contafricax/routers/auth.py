import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from contafricax.config import settings
from contafricax.db import get_db
from contafricax.metrics import auth_events
from contafricax.orm_models import User
from contafricax.schemas.auth import (
    AuthResponse,
    ChangePasswordBody,
    LoginBody,
    MeOut,
    RegisterBody,
    UserOut,
)
from contafricax.services.bootstrap import ensure_defaults
from contafricax.utils.auth import (
    assign_role,
    bearer_scheme,
    bearer_token,
    create_token,
    decode_token,
    get_current_user,
    hash_password,
    user_role,
    verify_password,
)
from contafricax.utils.permissions import is_valid_role, permissions_for

router = APIRouter(prefix="/auth", tags=["auth"])
log = logging.getLogger(__name__)


def user_out(u: User) -> UserOut:
    return UserOut(
        id=u.id,
        email=u.email,
        name=u.name,
        role=user_role(u),
        is_active=u.is_active,
        created_at=u.created_at,
    )


def _auth_response(u: User) -> AuthResponse:
    tok = create_token(u, user_role(u))
    return AuthResponse(
        user=user_out(u), token=tok.token, token_type=tok.token_type, expires_in=tok.expires_in
    )


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
def register(body: RegisterBody, db: Session = Depends(get_db)):
    if not settings.ALLOW_REGISTRATION:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Registration is currently disabled. Please contact an administrator.",
        )
    if db.query(User).filter(User.email == body.email).first():
        auth_events.labels(event="register", outcome="fail").inc()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Email already registered"
        )

    # first account on a fresh instance administers it
    first = db.query(User.id).first() is None
    role = "admin" if first else settings.DEFAULT_USER_ROLE
    if not is_valid_role(role):
        log.warning("DEFAULT_USER_ROLE=%r is not a known role; using 'user'", role)
        role = "user"

    u = User(email=body.email, password_hash=hash_password(body.password), name=body.name)
    db.add(u)
    try:
        db.flush()
        assign_role(db, u, role)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Email already registered"
        ) from e
    db.refresh(u)

    if first:
        ensure_defaults(db)
    auth_events.labels(event="register", outcome="ok").inc()
    log.info("user registered id=%s role=%s", u.id, role)
    return _auth_response(u)


@router.post("/login", response_model=AuthResponse)
def login(body: LoginBody, db: Session = Depends(get_db)):
    try:
        u = db.query(User).filter(User.email == body.email).first()
    except OperationalError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        ) from e
    if not u or not verify_password(body.password, u.password_hash):
        auth_events.labels(event="login", outcome="fail").inc()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if not u.is_active:
        auth_events.labels(event="login", outcome="fail").inc()
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")
    auth_events.labels(event="login", outcome="ok").inc()
    return _auth_response(u)


@router.get("/verify")
def verify(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)):
    """Check a bearer token; 401 ``{"valid": false}`` when missing, expired or forged."""
    try:
        decoded = decode_token(bearer_token(creds))
    except HTTPException as e:
        auth_events.labels(event="verify", outcome="fail").inc()
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"valid": False, "detail": e.detail},
            headers={"WWW-Authenticate": "Bearer"},
        )
    auth_events.labels(event="verify", outcome="ok").inc()
    return {"valid": True, "decoded": decoded}


@router.get("/me", response_model=MeOut)
def me(user: User = Depends(get_current_user)):
    role = user_role(user)
    return MeOut(**user_out(user).model_dump(), permissions=permissions_for(role))


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    body: ChangePasswordBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not verify_password(body.current_password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect",
        )
    user.password_hash = hash_password(body.new_password)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
