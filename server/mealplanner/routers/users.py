from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from mealplanner.auth.deps import get_current_user, require_access
from mealplanner.auth.security import hash_password
from mealplanner.core.db import get_db
from mealplanner.models.user import User
from mealplanner.policies.rbac import ADMIN
from mealplanner.schemas.user import UserCreate, UserListResponse, UserOut, UserUpdate
from mealplanner.services.audit import record_data_change, record_denied_access
from mealplanner.services.user_accounts import ensure_unique_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

SELF_EDITABLE_FIELDS = {"name", "password"}


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _ensure_self_or_admin(db: Session, request: Request, current_user: User, user_id: int, operation: str) -> None:
    if current_user.role == ADMIN or current_user.id == user_id:
        return
    record_denied_access(db, current_user, "users", operation, resource_id=user_id, request=request)
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


@router.get("", response_model=UserListResponse)
def list_users(
    *,
    role: str | None = Query(default=None),
    is_active: bool | None = Query(default=None, alias="isActive"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    _: User = Depends(require_access("users", "read")),
) -> UserListResponse:
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if is_active is not None:
        query = query.filter(User.is_active.is_(is_active))
    total = query.count()
    items = query.order_by(User.email.asc()).offset(offset).limit(limit).all()
    return UserListResponse(
        items=[UserOut.from_orm(user) for user in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    *,
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_access("users", "create")),
) -> UserOut:
    try:
        email = ensure_unique_email(db, payload.email)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    user = User(
        email=email,
        name=payload.name.strip(),
        role=payload.role,
        hashed_password=hash_password(payload.password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    record_data_change(db, "data_create", current_user, "users", user.id, {"email": user.email, "role": user.role})
    logger.info("user_created", extra={"user_id": user.id, "role": user.role, "created_by": current_user.id})
    return UserOut.from_orm(user)


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserOut:
    _ensure_self_or_admin(db, request, current_user, user_id, "read")
    return UserOut.from_orm(_get_user_or_404(db, user_id))


@router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    payload: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserOut:
    _ensure_self_or_admin(db, request, current_user, user_id, "update")
    user = _get_user_or_404(db, user_id)

    changes = payload.dict(exclude_unset=True)
    if current_user.role != ADMIN:
        forbidden = set(changes) - SELF_EDITABLE_FIELDS
        if forbidden:
            record_denied_access(db, current_user, "users", "update", resource_id=user_id, request=request)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"You may not change: {', '.join(sorted(forbidden))}",
            )
    if user.id == current_user.id and changes.get("is_active") is False:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate your own account")

    if "name" in changes and changes["name"] is not None:
        user.name = changes["name"].strip()
    if changes.get("password"):
        user.hashed_password = hash_password(changes["password"])
    if changes.get("role") is not None:
        user.role = changes["role"]
    if changes.get("is_active") is not None:
        user.is_active = changes["is_active"]

    db.commit()
    db.refresh(user)

    record_data_change(db, "data_update", current_user, "users", user.id, {"fields": sorted(changes)})
    return UserOut.from_orm(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_access("users", "delete")),
) -> Response:
    user = _get_user_or_404(db, user_id)
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    email = user.email
    db.delete(user)
    db.commit()
    record_data_change(db, "data_delete", current_user, "users", user_id, {"email": email})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
