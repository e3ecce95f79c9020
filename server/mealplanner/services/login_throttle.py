"""Per-IP login throttling backed by the audit trail.

Failed logins are already written to the audit log, so counting recent
``login_failure`` entries for an address is enough; nothing is kept in
process memory and the limit holds across workers.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from mealplanner.core.config import settings
from mealplanner.core.time import now_utc
from mealplanner.models.audit_log import AuditLog


def recent_login_failures(db: Session, ip_address: str, now: datetime | None = None) -> int:
    since = (now or now_utc()) - timedelta(minutes=settings.LOGIN_LOCKOUT_MINUTES)
    return (
        db.query(AuditLog.id)
        .filter(
            AuditLog.action == "login_failure",
            AuditLog.ip_address == ip_address,
            AuditLog.created_at >= since,
        )
        .count()
    )


def is_login_throttled(db: Session, ip_address: str, now: datetime | None = None) -> bool:
    return recent_login_failures(db, ip_address, now) >= settings.LOGIN_MAX_FAILED_ATTEMPTS
