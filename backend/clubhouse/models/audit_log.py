"""AuditLog ORM model — append-only record of privileged actions.

Rows are never updated or deleted.
"""
import uuid
from sqlalchemy import Column, String, DateTime, JSON
from clubhouse.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    entry_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    action = Column(String(100), nullable=False, index=True)
    performed_by = Column(String(36), nullable=False)
    target_id = Column(String(36), nullable=True, index=True)
    changes = Column(JSON, nullable=True)
    # Set by the caller so it matches the primary write's timestamp
    timestamp = Column(DateTime(timezone=True), nullable=False)
