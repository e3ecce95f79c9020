from __future__ import annotations

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import relationship

from mealplanner.core.db import Base
from mealplanner.core.time import now_utc

CHANGE_TYPES = ("create", "update", "delete")

ChangeType = Enum(*CHANGE_TYPES, name="version_change_type")


class VersionedRecord(Base):
    """Immutable history entry for one change to a tracked document."""

    __tablename__ = "versioned_records"
    __table_args__ = (
        UniqueConstraint("collection_name", "document_id", "version", name="uq_versioned_records_document_version"),
        Index("ix_versioned_records_document", "collection_name", "document_id"),
    )

    id = Column(Integer, primary_key=True)
    collection_name = Column(String(120), nullable=False)
    document_id = Column(String(64), nullable=False)
    version = Column(Integer, nullable=False)
    # State after a create, state before an update or delete
    snapshot = Column(JSON, nullable=False)
    change_type = Column(ChangeType, nullable=False)
    changed_fields = Column(JSON, nullable=False, default=list)
    changed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False, index=True)

    changed_by = relationship("User")
