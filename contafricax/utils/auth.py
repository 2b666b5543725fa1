import base64
import binascii
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from contafricax.config import settings
from contafricax.db import get_db
from contafricax.orm_models import Role, User, UserRole
from contafricax.utils.permissions import (
    effective_role,
    validate_multiple_permissions,
)

logger = logging.getLogger(__name__)


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode(data: str) -> bytes:
    pad = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + pad)


def _json(data: dict) -> bytes:
    return json.dumps(data, separators=(",", ":"), sort_keys=True).encode("utf-8")


def _now_ts() -> int:
    return int(time.time())


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class Token(BaseModel):
    token_type: str = "bearer"
    token: str
    expires_in: int


def _sign_jwt(payload: dict, secret: str, alg: str = "HS256") -> str:
    if alg != "HS256":
        raise ValueError("Unsupported alg; only HS256 is supported")
    header = {"alg": alg, "typ": "JWT"}
    h = _b64url_encode(_json(header))
    p = _b64url_encode(_json(payload))
    msg = f"{h}.{p}".encode("ascii")
    sig = hmac.new(secret.encode("utf-8"), msg, hashlib.sha256).digest()
    s = _b64url_encode(sig)
    return f"{h}.{p}.{s}"


def _verify_jwt(token: str, secret: str) -> dict:
    try:
        h, p, s = token.split(".")
        msg = f"{h}.{p}".encode("ascii")
        sig = _b64url_decode(s)
        header = json.loads(_b64url_decode(h).decode("utf-8"))
    except (ValueError, UnicodeError, binascii.Error):
        raise _unauthorized("Malformed token")
    if header.get("alg") != "HS256":
        raise _unauthorized("Unsupported token algorithm")
    good = hmac.new(secret.encode("utf-8"), msg, hashlib.sha256).digest()
    if not hmac.compare_digest(sig, good):
        raise _unauthorized("Bad signature")
    try:
        payload = json.loads(_b64url_decode(p).decode("utf-8"))
    except (ValueError, UnicodeError, binascii.Error):
        raise _unauthorized("Malformed token")
    # exp, iss, aud checks
    exp = int(payload.get("exp", 0))
    if not exp or _now_ts() >= exp:
        raise _unauthorized("Token expired")
    if payload.get("iss") != settings.JWT_ISSUER:
        raise _unauthorized("Bad issuer")
    if payload.get("aud") != settings.JWT_AUDIENCE:
        raise _unauthorized("Bad audience")
    return payload


def create_token(user: User, role: str | None) -> Token:
    minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    now = _now_ts()
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": role,
        "type": "access",
        "iat": now,
        "exp": now + minutes * 60,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
    }
    return Token(token=_sign_jwt(payload, settings.JWT_SECRET), expires_in=minutes * 60)


def decode_token(token: str) -> dict:
    return _verify_jwt(token, settings.JWT_SECRET)


def _pbkdf2(password: str, salt: bytes, iterations: int = 200_000) -> bytes:
    return hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt, iterations, dklen=32
    )


def hash_password(password: str) -> str:
    salt = os.urandom(16)
    iters = 200_000
    dk = _pbkdf2(password, salt, iters)
    return f"pbkdf2_sha256${iters}${base64.b64encode(salt).decode()}${dk.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algo, iters_str, salt_b64, hexhash = stored.split("$")
        iters = int(iters_str)
        salt = base64.b64decode(salt_b64)
    except (ValueError, binascii.Error):
        return False
    if algo != "pbkdf2_sha256":
        return False
    dk = _pbkdf2(password, salt, iters)
    return hmac.compare_digest(dk.hex(), hexhash)


bearer_scheme = HTTPBearer(auto_error=False)


def bearer_token(creds: Optional[HTTPAuthorizationCredentials]) -> str:
    if creds and creds.scheme and creds.scheme.lower() == "bearer" and creds.credentials:
        return creds.credentials
    raise _unauthorized("Missing credentials")


def user_role(user: User) -> str | None:
    return effective_role(ur.role.name for ur in (user.roles or []))


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    payload = decode_token(bearer_token(creds))
    if payload.get("type") != "access":
        raise _unauthorized("Invalid token type")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token payload")
    u = db.get(User, user_id)
    if not u or not u.is_active:
        raise _unauthorized("User not found or disabled")
    return u


def require_permission(*perms: str) -> Callable[[User], User]:
    def _dep(user: User = Depends(get_current_user)) -> User:
        role = user_role(user)
        if validate_multiple_permissions(role, perms):
            return user
        logger.info(
            "permission denied user=%s role=%s needed=%s", user.id, role, ",".join(perms)
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions"
        )

    return _dep


def assign_role(db: Session, user: User, role: str) -> None:
    """Make ``role`` the only role mapped to ``user`` (creating the Role row if needed)."""
    r = db.query(Role).filter(Role.name == role).first()
    if r is None:
        r = Role(name=role)
        db.add(r)
        db.flush()
    for ur in list(user.roles):
        if ur.role_id != r.id:
            user.roles.remove(ur)
    if not any(ur.role_id == r.id for ur in user.roles):
        user.roles.append(UserRole(role=r))
    db.flush()
