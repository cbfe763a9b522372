"""Password hashing, JWT issuance and one-time token helpers."""

import hashlib
import secrets
import uuid
from datetime import timedelta
from functools import lru_cache
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@lru_cache
def get_pwd_context() -> CryptContext:
    settings = get_settings()
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=settings.PASSWORD_HASH_ROUNDS,
    )


def hash_password(password: str) -> str:
    return get_pwd_context().hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return get_pwd_context().verify(plain_password, hashed_password)


def create_access_token(user_id: uuid.UUID, email: str, role: str) -> str:
    settings = get_settings()
    now = utc_now()
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(user_id: uuid.UUID) -> str:
    settings = get_settings()
    now = utc_now()
    payload = {
        "sub": str(user_id),
        "type": REFRESH_TOKEN_TYPE,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    }
    return jwt.encode(
        payload, settings.JWT_REFRESH_SECRET, algorithm=settings.JWT_ALGORITHM
    )


def _decode(token: str, secret: str, expected_type: str) -> Optional[dict[str, Any]]:
    settings = get_settings()
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != expected_type or not payload.get("sub"):
        return None
    return payload


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Return the claims of a valid access token, or None."""
    return _decode(token, get_settings().JWT_SECRET, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> Optional[dict[str, Any]]:
    """Return the claims of a valid refresh token, or None."""
    return _decode(token, get_settings().JWT_REFRESH_SECRET, REFRESH_TOKEN_TYPE)


def hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_token() -> tuple[str, str]:
    """Create a random one-time token; returns (raw, sha256 hash)."""
    raw = secrets.token_hex(32)
    return raw, hash_token(raw)
