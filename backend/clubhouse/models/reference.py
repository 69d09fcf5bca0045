"""Admin-managed reference data — useful links and partners."""
import uuid
import enum
from sqlalchemy import Column, String, Boolean, DateTime, Enum as SAEnum
from sqlalchemy.sql import func
from clubhouse.database import Base


class PartnerTier(str, enum.Enum):
    platinum = "platinum"
    gold = "gold"
    silver = "silver"
    bronze = "bronze"
    community = "community"


TIER_ORDER = [t for t in PartnerTier]


class PartnerType(str, enum.Enum):
    corporate = "corporate"
    nonprofit = "nonprofit"
    individual = "individual"
    media = "media"


class Link(Base):
    __tablename__ = "links"

    link_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(200), nullable=False)
    url = Column(String(1000), nullable=False)
    created_by = Column(String(36), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Partner(Base):
    __tablename__ = "partners"

    partner_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    description = Column(String(2000), nullable=False, default="")
    logo_url = Column(String(1000), nullable=True)
    website_url = Column(String(1000), nullable=True)
    tier = Column(SAEnum(PartnerTier), nullable=False, default=PartnerTier.community)
    type = Column(SAEnum(PartnerType), nullable=False, default=PartnerType.corporate)
    featured = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(36), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
