from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session

from mealplanner.auth.security import generate_refresh_token, hash_token
from mealplanner.core.time import now_utc
from mealplanner.models.user import RefreshToken, User


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def ensure_unique_email(db: Session, email: str, exclude_user_id: int | None = None) -> str:
    normalized = normalize_email(email)
    query = db.query(User.id).filter(func.lower(User.email) == normalized)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first() is not None:
        raise ValueError("A user with this email already exists")
    return normalized


def issue_refresh_token(db: Session, user: User) -> str:
    """Persist the hash of a fresh refresh token and return the raw value."""

    token, expires_at = generate_refresh_token()
    db.add(RefreshToken(user_id=user.id, token_hash=hash_token(token), expires_at=expires_at))
    return token


def find_refresh_token(db: Session, token: str) -> RefreshToken | None:
    return db.query(RefreshToken).filter(RefreshToken.token_hash == hash_token(token)).first()


def purge_expired_refresh_tokens(db: Session, user: User) -> int:
    return (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user.id, RefreshToken.expires_at < now_utc())
        .delete(synchronize_session=False)
    )
