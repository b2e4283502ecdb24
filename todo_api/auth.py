# todo_api/auth.py
# PURPOSE: password hashing, JWT issuance and the request identity resolver.
# The resolver only reads claims; every store operation receives the resulting
# ids explicitly and decides itself what a missing organization means.

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
import bcrypt

from .config import settings
from .db_models import UserDB

# OAuth2 password flow
# Point tokenUrl to versioned endpoint for accurate OpenAPI examples
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


# --- Password helpers (bcrypt, no passlib) ---

def hash_password(password: str) -> str:
    """Return a bcrypt hash for the given plain password."""
    if not isinstance(password, str):
        raise TypeError("password must be a string")
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )
    except ValueError:
        # malformed hash in the row
        return False


# --- JWT helpers ---

def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def get_access_token_ttl_minutes() -> int:
    """
    Return access token TTL in minutes, parsed safely from settings.
    Falls back to 60 if env contains invalid value (e.g., '60m').
    """
    try:
        return int(settings.JWT_EXPIRE_MIN)
    except (TypeError, ValueError):
        return 60


def create_access_token(subject: str | Dict[str, Any]) -> str:
    """
    Create a signed JWT.
    - `subject` can be an email (str) or a claims dict; we always include `sub`.
    - Expiration controlled by settings.JWT_EXPIRE_MIN (safely parsed).
    """
    if isinstance(subject, str):
        payload: Dict[str, Any] = {"sub": subject}
    else:
        payload = {**subject}
        payload.setdefault("sub", subject.get("email") or subject.get("sub"))

    minutes = get_access_token_ttl_minutes()
    expire = _now_utc() + timedelta(minutes=minutes)
    payload.update({"exp": expire})
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_user_token(user: UserDB) -> str:
    """Token carrying the identity claims the resolver reads back (uid, org, role)."""
    return create_access_token(
        {
            "sub": user.email,
            "uid": str(user.id),
            "org": str(user.organization_id),
            "role": user.role.name if user.role is not None else None,
        }
    )


# --- User context resolver ---


@dataclass(frozen=True)
class UserContext:
    """Identity of the caller as claimed by the bearer token; any part may be absent."""

    user_id: int | None = None
    organization_id: int | None = None
    role: str | None = None
    email: str | None = None

    @property
    def is_viewer(self) -> bool:
        return self.role == "Viewer"


def _parse_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def context_from_claims(payload: Dict[str, Any]) -> UserContext:
    role = payload.get("role")
    return UserContext(
        user_id=_parse_int(payload.get("uid")),
        organization_id=_parse_int(payload.get("org")),
        role=role if isinstance(role, str) else None,
        email=payload.get("sub"),
    )


def get_user_context(token: str = Depends(oauth2_scheme)) -> UserContext:
    """Decode the bearer token into a UserContext; bad or expired tokens are 401."""
    cred_error = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise cred_error
    if payload.get("sub") is None:
        raise cred_error
    return context_from_claims(payload)
