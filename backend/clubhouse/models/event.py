"""Event ORM model — capacity-limited club events."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Integer, JSON, Enum as SAEnum
from sqlalchemy.sql import func
from clubhouse.database import Base


class EventStatus(str, enum.Enum):
    upcoming = "upcoming"
    ongoing = "ongoing"
    completed = "completed"
    cancelled = "cancelled"


class EventCategory(str, enum.Enum):
    tournament = "tournament"
    training = "training"
    social = "social"
    workshop = "workshop"


class Event(Base):
    __tablename__ = "events"

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    date_time = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(500), nullable=False, default="")
    description = Column(String(4000), nullable=True)
    category = Column(SAEnum(EventCategory), nullable=False, default=EventCategory.training)
    banner_image = Column(String(1000), nullable=True)
    status = Column(SAEnum(EventStatus), nullable=False, default=EventStatus.upcoming)

    # 0 or NULL means unlimited
    max_participants = Column(Integer, nullable=True)
    # NULL on legacy rows; fall back to len(registered_users)
    registration_count = Column(Integer, nullable=True, default=0)
    registered_users = Column(JSON, nullable=False, default=list)

    created_by = Column(String(36), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def effective_count(self) -> int:
        if self.registration_count is not None:
            return self.registration_count
        return len(self.registered_users or [])

    @property
    def is_limited(self) -> bool:
        return bool(self.max_participants) and self.max_participants > 0
