"""EventRsvp ORM model — one registration per (event, principal)."""
import enum
from sqlalchemy import Column, String, DateTime, Enum as SAEnum
from sqlalchemy.sql import func
from clubhouse.database import Base


class RSVPStatus(str, enum.Enum):
    going = "going"
    interested = "interested"


class EventRsvp(Base):
    __tablename__ = "event_rsvps"

    # No foreign key: orphaned RSVPs must not block event deletion
    event_id = Column(String(36), primary_key=True)
    principal_id = Column(String(36), primary_key=True, index=True)
    status = Column(SAEnum(RSVPStatus), nullable=False, default=RSVPStatus.going)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
