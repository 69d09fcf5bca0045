"""Audit log writer — stages an append-only entry next to the primary write."""
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from clubhouse.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def record(
    db: Session,
    action: str,
    performed_by: str,
    target_id: Optional[str],
    changes: Optional[dict[str, Any]],
    timestamp: datetime,
) -> AuditLog:
    """Stage an audit entry; committed together with the caller's primary write."""
    entry = AuditLog(
        action=action,
        performed_by=performed_by,
        target_id=target_id,
        changes=changes,
        timestamp=timestamp,
    )
    db.add(entry)
    logger.info("Audit: %s by %s on %s", action, performed_by, target_id)
    return entry


def list_entries(db: Session, target_id: Optional[str] = None, limit: int = 200) -> list[AuditLog]:
    query = db.query(AuditLog)
    if target_id:
        query = query.filter(AuditLog.target_id == target_id)
    return query.order_by(AuditLog.timestamp.desc()).limit(limit).all()
