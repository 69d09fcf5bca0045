"""Profile ORM model — one row per principal."""
import enum
from sqlalchemy import Column, String, Boolean, DateTime, Integer, JSON, Enum as SAEnum
from sqlalchemy.sql import func
from clubhouse.database import Base


class ProfileRole(str, enum.Enum):
    member = "member"
    admin = "admin"


class ProfileStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


STAT_FIELDS = ("posts", "likes", "events", "connections")


class Profile(Base):
    __tablename__ = "profiles"

    # Not a foreign key: profiles outlive deleted principals
    principal_id = Column(String(36), primary_key=True)
    role = Column(SAEnum(ProfileRole), nullable=False, default=ProfileRole.member)
    status = Column(SAEnum(ProfileStatus), nullable=False, default=ProfileStatus.pending)
    suspended = Column(Boolean, nullable=False, default=False)

    name = Column(String(200), nullable=False, default="")
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=False, default="")
    country_code = Column(String(8), nullable=True)
    phone_number = Column(String(20), nullable=True)
    avatar_url = Column(String(1000), nullable=True)
    bio = Column(String(500), nullable=True)
    location = Column(String(200), nullable=True)
    goals = Column(String(1000), nullable=True)
    sports_interests = Column(JSON, nullable=True, default=list)
    join_as = Column(String(50), nullable=True)
    events = Column(JSON, nullable=False, default=list)

    posts_count = Column(Integer, nullable=False, default=0)
    likes_count = Column(Integer, nullable=False, default=0)
    events_count = Column(Integer, nullable=False, default=0)
    connections_count = Column(Integer, nullable=False, default=0)

    requested_at = Column(DateTime(timezone=True), server_default=func.now())
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def stats(self) -> dict[str, int]:
        return {name: getattr(self, f"{name}_count") or 0 for name in STAT_FIELDS}

    @property
    def full_phone_number(self) -> str | None:
        if self.country_code and self.phone_number:
            return f"{self.country_code}{self.phone_number}"
        return None
