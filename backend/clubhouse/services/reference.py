"""Admin-managed links and partners."""
import logging
from typing import Any, Optional

from sqlalchemy import case
from sqlalchemy.orm import Session

from clubhouse import clock
from clubhouse.errors import InvalidArgument, NotFound
from clubhouse.models.reference import TIER_ORDER, Link, Partner, PartnerTier, PartnerType
from clubhouse.services import audit

logger = logging.getLogger(__name__)

_PARTNER_FIELDS = ("name", "description", "logo_url", "website_url", "tier", "type", "featured")


def _require_url(url: Optional[str], field: str = "url") -> str:
    url = (url or "").strip()
    if not url.startswith(("http://", "https://")):
        raise InvalidArgument(f"{field} must be an http(s) URL")
    return url


def list_links(db: Session) -> list[Link]:
    return db.query(Link).order_by(Link.title.asc()).all()


def create_link(db: Session, actor_id: str, title: str, url: str) -> Link:
    title = (title or "").strip()
    if not title:
        raise InvalidArgument("title is required")
    now = clock.utcnow()
    link = Link(title=title, url=_require_url(url), created_by=actor_id, created_at=now)
    db.add(link)
    db.flush()
    audit.record(db, "create_link", actor_id, link.link_id, {"title": title, "url": link.url}, now)
    db.commit()
    db.refresh(link)
    logger.info("Principal %s added link %s", actor_id, link.link_id)
    return link


def delete_link(db: Session, actor_id: str, link_id: str) -> None:
    link = db.query(Link).filter(Link.link_id == link_id).first()
    if not link:
        raise NotFound("Link not found")
    audit.record(db, "delete_link", actor_id, link_id, {"title": link.title, "url": link.url}, clock.utcnow())
    db.delete(link)
    db.commit()
    logger.info("Principal %s deleted link %s", actor_id, link_id)


def list_partners(db: Session, featured: Optional[bool] = None) -> list[Partner]:
    """Partners by tier rank (platinum first), then by name."""
    tier_rank = case({tier: rank for rank, tier in enumerate(TIER_ORDER)}, value=Partner.tier)
    query = db.query(Partner)
    if featured is not None:
        query = query.filter(Partner.featured == featured)
    return query.order_by(tier_rank, Partner.name.asc()).all()


def _coerce_partner_fields(data: dict[str, Any]) -> dict[str, Any]:
    out = {}
    for field, value in data.items():
        if field not in _PARTNER_FIELDS:
            raise InvalidArgument(f"Field not editable: {field}")
        if field == "name":
            value = (value or "").strip()
            if not value:
                raise InvalidArgument("name is required")
        elif field in ("logo_url", "website_url") and value:
            value = _require_url(value, field)
        elif field == "tier":
            try:
                value = PartnerTier(value)
            except ValueError as exc:
                raise InvalidArgument(f"Invalid tier: {value}") from exc
        elif field == "type":
            try:
                value = PartnerType(value)
            except ValueError as exc:
                raise InvalidArgument(f"Invalid partner type: {value}") from exc
        out[field] = value
    return out


def create_partner(db: Session, actor_id: str, data: dict[str, Any]) -> Partner:
    fields = _coerce_partner_fields(data)
    if "name" not in fields:
        raise InvalidArgument("name is required")
    now = clock.utcnow()
    partner = Partner(created_by=actor_id, created_at=now, **fields)
    db.add(partner)
    db.flush()
    audit.record(db, "create_partner", actor_id, partner.partner_id, {"name": partner.name}, now)
    db.commit()
    db.refresh(partner)
    logger.info("Principal %s added partner %s", actor_id, partner.partner_id)
    return partner


def update_partner(db: Session, actor_id: str, partner_id: str, data: dict[str, Any]) -> Partner:
    partner = db.query(Partner).filter(Partner.partner_id == partner_id).first()
    if not partner:
        raise NotFound("Partner not found")
    fields = _coerce_partner_fields(data)
    for field, value in fields.items():
        setattr(partner, field, value)
    now = clock.utcnow()
    partner.updated_at = now
    changes = {k: (v.value if hasattr(v, "value") else v) for k, v in fields.items()}
    audit.record(db, "update_partner", actor_id, partner_id, changes, now)
    db.commit()
    db.refresh(partner)
    logger.info("Principal %s updated partner %s", actor_id, partner_id)
    return partner


def delete_partner(db: Session, actor_id: str, partner_id: str) -> None:
    partner = db.query(Partner).filter(Partner.partner_id == partner_id).first()
    if not partner:
        raise NotFound("Partner not found")
    audit.record(db, "delete_partner", actor_id, partner_id, {"name": partner.name}, clock.utcnow())
    db.delete(partner)
    db.commit()
    logger.info("Principal %s deleted partner %s", actor_id, partner_id)
