"""Staff authentication: Argon2 admin password and a JWT session cookie.

The token carries the staff member's display name so that every audited
change can be attributed without a user table.
"""
import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional
import argon2
import jwt
from fastapi import HTTPException, Request

from rollcall.core import config
from rollcall.core.constants import ADMIN_COOKIE_NAME, DEFAULT_ACTOR_NAME

ph = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=65536,
    parallelism=1,
    hash_len=32,
    salt_len=16
)


def get_password_hash(password: str) -> str:
    """Hash a password using Argon2."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return ph.verify(password_hash, password)
    except argon2.exceptions.VerifyMismatchError:
        return False


def verify_admin_password(password: str) -> bool:
    """Check a login attempt against ADMIN_PASSWORD.

    ADMIN_PASSWORD may be an Argon2 hash (``$argon2...``) or, in
    development, the plaintext itself.
    """
    stored = config.settings.ADMIN_PASSWORD
    if stored.startswith("$argon2"):
        return verify_password(password, stored)
    return hmac.compare_digest(password.encode(), stored.encode())


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT with an ``exp`` claim."""
    lifetime = expires_delta or timedelta(minutes=config.settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {**data, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, config.settings.SECRET_KEY, algorithm=config.settings.ALGORITHM)


def create_admin_token(name: Optional[str] = None) -> str:
    """Token for a staff session; ``name`` becomes the audit actor."""
    return create_access_token({"is_admin": True, "name": name or DEFAULT_ACTOR_NAME})


def decode_admin_token(token: str) -> dict:
    """
    Decode and authorize a staff token.

    Raises:
        HTTPException: 401 for a missing, expired or forged token, 403 when
            the token is valid but carries no admin claim
    """
    try:
        payload = jwt.decode(token, config.settings.SECRET_KEY, algorithms=[config.settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    if not payload.get("is_admin"):
        raise HTTPException(status_code=403, detail="Not authorized")
    return payload


def verify_admin_token(request: Request) -> dict:
    """FastAPI dependency: the decoded staff token from the session cookie."""
    token = request.cookies.get(ADMIN_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return decode_admin_token(token)


def actor_name(payload: dict) -> str:
    """Name recorded in audit entries for the staff member behind a token."""
    return payload.get("name") or DEFAULT_ACTOR_NAME
