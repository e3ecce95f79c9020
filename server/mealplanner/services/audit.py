from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mealplanner.models.audit_log import AuditLog
from mealplanner.models.user import User

logger = logging.getLogger(__name__)


def client_ip(request: Request | None) -> str:
    if request is None:
        return "unknown"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


def user_agent(request: Request | None) -> str:
    if request is None:
        return "unknown"
    return request.headers.get("user-agent") or "unknown"


def record_audit_event(
    db: Session,
    *,
    action: str,
    status: str,
    user: User | None = None,
    email: str | None = None,
    resource: str | None = None,
    resource_id: Any = None,
    details: dict[str, Any] | None = None,
    error_message: str | None = None,
    request: Request | None = None,
) -> AuditLog | None:
    """Append an audit entry.

    Failures are logged and swallowed so that the calling operation is never
    blocked by the audit trail.
    """

    entry = AuditLog(
        action=action,
        status=status,
        user_id=str(user.id) if user is not None else None,
        email=email or (user.email if user is not None else None),
        ip_address=client_ip(request) if request is not None else None,
        user_agent=user_agent(request) if request is not None else None,
        resource=resource,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details,
        error_message=error_message,
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("audit_log_write_failed", extra={"action": action, "resource": resource})
        return None
    return entry


def record_denied_access(
    db: Session,
    user: User,
    resource: str,
    operation: str,
    *,
    resource_id: Any = None,
    request: Request | None = None,
) -> None:
    logger.warning(
        "access_denied",
        extra={"user_id": user.id, "role": user.role, "resource": resource, "operation": operation},
    )
    record_audit_event(
        db,
        action="unauthorized_access",
        status="denied",
        user=user,
        resource=resource,
        resource_id=resource_id,
        details={"operation": operation, "role": user.role},
        error_message=f"Access denied for {operation} operation on {resource}",
        request=request,
    )


def record_data_change(
    db: Session,
    action: str,
    user: User,
    resource: str,
    resource_id: Any,
    details: dict[str, Any] | None = None,
) -> None:
    record_audit_event(
        db,
        action=action,
        status="success",
        user=user,
        resource=resource,
        resource_id=resource_id,
        details=details,
    )
