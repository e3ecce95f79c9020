from __future__ import annotations

from sqlalchemy import Column, DateTime, Enum, Integer, JSON, String

from mealplanner.core.db import Base
from mealplanner.core.time import now_utc

AUDIT_ACTIONS = (
    "login_attempt",
    "login_success",
    "login_failure",
    "logout",
    "token_refresh",
    "2fa_enable",
    "2fa_verify",
    "unauthorized_access",
    "data_create",
    "data_update",
    "data_delete",
    "data_read",
)
AUDIT_STATUSES = ("success", "failure", "denied")

AuditAction = Enum(*AUDIT_ACTIONS, name="audit_action")
AuditStatus = Enum(*AUDIT_STATUSES, name="audit_status")


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    action = Column(AuditAction, nullable=False, index=True)
    status = Column(AuditStatus, nullable=False, index=True)
    user_id = Column(String(64), nullable=True, index=True)
    email = Column(String(255), nullable=True, index=True)
    ip_address = Column(String(64), nullable=True, index=True)
    user_agent = Column(String(500), nullable=True)
    resource = Column(String(120), nullable=True)
    resource_id = Column(String(64), nullable=True)
    details = Column(JSON, nullable=True)
    error_message = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False, index=True)
