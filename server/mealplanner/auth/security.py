from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Any

import pyotp
from jose import jwt
from passlib.context import CryptContext

from mealplanner.core.config import settings
from mealplanner.core.time import now_utc

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(password, hashed_password)
    except ValueError:
        # Unrecognized hash format
        return False


def create_access_token(*, subject: str, email: str, role: str, expires_minutes: int | None = None) -> str:
    expire = now_utc() + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims: dict[str, Any] = {"sub": subject, "email": email, "role": role, "exp": expire}
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_access_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])


def generate_refresh_token() -> tuple[str, datetime]:
    """Return a random refresh token and its expiry."""

    token = secrets.token_urlsafe(48)
    return token, now_utc() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_totp_secret() -> str:
    return pyotp.random_base32()


def totp_provisioning_uri(secret: str, email: str) -> str:
    return pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=settings.TOTP_ISSUER)


def verify_totp(secret: str, code: str) -> bool:
    # Two steps either side of the current one
    return pyotp.TOTP(secret).verify(code, valid_window=2)
