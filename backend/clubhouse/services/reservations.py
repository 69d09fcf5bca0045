"""Event reservation engine — capacity-limited RSVPs.

Responsibilities:
- Admin create / update / delete of events, each with an audit entry
- register / unregister / RSVP status upsert for one (event, principal)
- Capacity guard: ``registration_count`` never knowingly exceeds
  ``max_participants`` and always equals the number of RSVP rows
- Best-effort RSVP cascade before event deletion

Two capacity modes (``settings.STRICT_CAPACITY``):
- strict: the count bump is one conditional UPDATE keyed on the event row, so
  concurrent registrations near the limit cannot overshoot
- baseline: read the count, compare, then write; racy under concurrency
"""
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from clubhouse import clock
from clubhouse.config import settings
from clubhouse.errors import CapacityExceeded, InvalidArgument, NotFound
from clubhouse.models.event import Event, EventCategory, EventStatus
from clubhouse.models.profile import Profile
from clubhouse.models.rsvp import EventRsvp, RSVPStatus
from clubhouse.services import audit
from clubhouse.services.cascade import CascadeReport, run_cascade
from clubhouse.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = (
    "title", "date_time", "location", "description", "category",
    "banner_image", "max_participants", "status",
)
_REQUIRED_FIELDS = ("title", "date_time", "location", "category", "status")


def _event_snapshot(event: Event) -> dict[str, Any]:
    """Serialize an event to a JSON-safe dict for the audit log."""
    return {
        "event_id": event.event_id,
        "title": event.title,
        "date_time": event.date_time.isoformat() if event.date_time else None,
        "max_participants": event.max_participants,
        "registration_count": event.registration_count,
        "status": event.status.value if event.status else None,
    }


def get_event(db: Session, event_id: str) -> Event:
    event = db.query(Event).filter(Event.event_id == event_id).first()
    if not event:
        raise NotFound("Event not found")
    return event


def _validate_capacity(max_participants: Optional[int]) -> None:
    if max_participants is not None and max_participants < 0:
        raise InvalidArgument("max_participants must be 0 (unlimited) or a positive number")


def list_events(db: Session, include_cancelled: bool = True, limit: int = 200) -> list[Event]:
    """Events ordered by date, earliest first."""
    query = db.query(Event)
    if not include_cancelled:
        query = query.filter(Event.status != EventStatus.cancelled)
    return query.order_by(Event.date_time.asc()).limit(limit).all()


def create_event(
    db: Session,
    actor_id: str,
    title: str,
    date_time: datetime,
    location: str = "",
    description: Optional[str] = None,
    category: str = "training",
    banner_image: Optional[str] = None,
    max_participants: Optional[int] = None,
    status: str = "upcoming",
) -> Event:
    title = (title or "").strip()
    if not title:
        raise InvalidArgument("title is required")
    _validate_capacity(max_participants)
    try:
        event_category = EventCategory(category)
        event_status = EventStatus(status)
    except ValueError as exc:
        raise InvalidArgument(str(exc)) from exc

    now = clock.utcnow()
    event = Event(
        title=title,
        date_time=date_time,
        location=location or "",
        description=description,
        category=event_category,
        banner_image=banner_image,
        max_participants=max_participants,
        status=event_status,
        registration_count=0,
        registered_users=[],
        created_by=actor_id,
        created_at=now,
    )
    db.add(event)
    db.flush()
    audit.record(db, "create_event", actor_id, event.event_id, _event_snapshot(event), now)
    db.commit()
    db.refresh(event)
    logger.info("Created event '%s' (%s) by %s", title, event.event_id, actor_id)
    return event


def update_event(db: Session, actor_id: str, event_id: str, updates: dict[str, Any]) -> Event:
    event = get_event(db, event_id)
    before = _event_snapshot(event)

    for field, value in updates.items():
        if field not in _EDITABLE_FIELDS:
            raise InvalidArgument(f"Field not editable: {field}")
        if value is None and field in _REQUIRED_FIELDS:
            raise InvalidArgument(f"{field} cannot be empty")
        if field == "max_participants":
            _validate_capacity(value)
            if value and value < event.effective_count:
                raise InvalidArgument(
                    f"max_participants ({value}) is below the current registration count ({event.effective_count})"
                )
        try:
            if field == "category" and value is not None:
                value = EventCategory(value)
            elif field == "status" and value is not None:
                value = EventStatus(value)
        except ValueError as exc:
            raise InvalidArgument(str(exc)) from exc
        if field == "title" and not (value or "").strip():
            raise InvalidArgument("title is required")
        setattr(event, field, value)

    now = clock.utcnow()
    event.updated_at = now
    audit.record(db, "update_event", actor_id, event_id, {"before": before, "after": _event_snapshot(event)}, now)
    db.commit()
    db.refresh(event)
    logger.info("Updated event %s", event_id)
    return event


def is_registered(db: Session, event_id: str, principal_id: str) -> bool:
    return db.get(EventRsvp, (event_id, principal_id)) is not None


def _backfill_count(db: Session, event: Event) -> None:
    """Legacy rows without a stored count get one derived from registered_users."""
    if event.registration_count is None:
        event.registration_count = len(event.registered_users or [])
        db.flush()


def _reserve_seat_strict(db: Session, event: Event) -> None:
    result = db.execute(
        update(Event)
        .where(
            Event.event_id == event.event_id,
            or_(
                Event.max_participants.is_(None),
                Event.max_participants <= 0,
                Event.registration_count < Event.max_participants,
            ),
        )
        .values(registration_count=Event.registration_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise CapacityExceeded("Event is full")


def _reserve_seat_baseline(event: Event) -> None:
    count = event.effective_count
    if event.is_limited and count >= event.max_participants:
        raise CapacityExceeded("Event is full")
    event.registration_count = count + 1


def register(
    db: Session,
    event_id: str,
    principal_id: str,
    rsvp_status: RSVPStatus = RSVPStatus.going,
    strict: Optional[bool] = None,
) -> Event:
    """Reserve a seat for ``principal_id``; re-registering is a no-op."""
    strict = settings.STRICT_CAPACITY if strict is None else strict
    event = get_event(db, event_id)
    if is_registered(db, event_id, principal_id):
        return event

    try:
        _backfill_count(db, event)
        if strict:
            _reserve_seat_strict(db, event)
        else:
            _reserve_seat_baseline(event)
    except CapacityExceeded:
        db.rollback()
        logger.info("Event %s is full; rejected %s", event_id, principal_id)
        raise

    now = clock.utcnow()
    db.add(EventRsvp(event_id=event_id, principal_id=principal_id, status=rsvp_status, updated_at=now))
    users = list(event.registered_users or [])
    if principal_id not in users:
        event.registered_users = users + [principal_id]
    ProfileStore(db).add_event(principal_id, event_id)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent registration by the same principal won the insert
        db.rollback()
        logger.info("Principal %s already registered for %s", principal_id, event_id)
        return get_event(db, event_id)

    db.refresh(event)
    logger.info(
        "Principal %s registered for event %s (%s/%s)",
        principal_id, event_id, event.registration_count, event.max_participants or "unlimited",
    )
    return event


def _remove_registration(db: Session, event: Optional[Event], event_id: str, principal_id: str) -> bool:
    """Stage removal of one RSVP plus its denormalized counters. No commit."""
    rsvp = db.get(EventRsvp, (event_id, principal_id))
    if rsvp is None:
        return False
    db.delete(rsvp)
    if event is not None:
        _backfill_count(db, event)
        db.execute(
            update(Event)
            .where(Event.event_id == event_id, Event.registration_count > 0)
            .values(registration_count=Event.registration_count - 1)
            .execution_options(synchronize_session=False)
        )
        event.registered_users = [u for u in (event.registered_users or []) if u != principal_id]
    ProfileStore(db).remove_event(principal_id, event_id)
    return True


def unregister(db: Session, event_id: str, principal_id: str) -> bool:
    """Release the seat; returns False when there was nothing to remove."""
    event = db.query(Event).filter(Event.event_id == event_id).first()
    removed = _remove_registration(db, event, event_id, principal_id)
    if not removed:
        return False
    db.commit()
    logger.info("Principal %s unregistered from event %s", principal_id, event_id)
    return True


def set_rsvp_status(db: Session, event_id: str, principal_id: str, rsvp_status: str) -> EventRsvp:
    """Upsert the RSVP. Creating it goes through the capacity guard."""
    try:
        status_value = RSVPStatus(rsvp_status)
    except ValueError as exc:
        raise InvalidArgument(f"Invalid RSVP status: {rsvp_status}") from exc

    rsvp = db.get(EventRsvp, (event_id, principal_id))
    if rsvp is None:
        register(db, event_id, principal_id, rsvp_status=status_value)
        return db.get(EventRsvp, (event_id, principal_id))

    rsvp.status = status_value
    rsvp.updated_at = clock.utcnow()
    db.commit()
    db.refresh(rsvp)
    logger.info("Principal %s RSVP'd '%s' to event %s", principal_id, status_value.value, event_id)
    return rsvp


def list_registrations(db: Session, event_id: str) -> list[dict[str, Any]]:
    get_event(db, event_id)
    rows = (
        db.query(EventRsvp, Profile)
        .outerjoin(Profile, Profile.principal_id == EventRsvp.principal_id)
        .filter(EventRsvp.event_id == event_id)
        .order_by(EventRsvp.updated_at.desc())
        .all()
    )
    return [
        {
            "principal_id": rsvp.principal_id,
            "event_id": event_id,
            "status": rsvp.status.value,
            "name": profile.name if profile else "Member",
            "email": profile.email if profile else "",
            "registered_at": rsvp.updated_at,
        }
        for rsvp, profile in rows
    ]


def list_principal_event_ids(db: Session, principal_id: str) -> list[str]:
    """Cross-event scan of every RSVP row filtered by principal."""
    rows = db.query(EventRsvp.event_id).filter(EventRsvp.principal_id == principal_id).all()
    return sorted({event_id for (event_id,) in rows})


def delete_event(db: Session, actor_id: str, event_id: str) -> CascadeReport:
    """Unregister everyone best-effort, then delete the event regardless."""
    get_event(db, event_id)
    try:
        principal_ids = [
            pid for (pid,) in db.query(EventRsvp.principal_id).filter(EventRsvp.event_id == event_id).all()
        ]
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Could not enumerate RSVPs for event %s: %s", event_id, exc)
        principal_ids = []

    def _remove(principal_id: str) -> None:
        event = db.query(Event).filter(Event.event_id == event_id).first()
        _remove_registration(db, event, event_id, principal_id)

    report = run_cascade(db, f"event {event_id} RSVPs", principal_ids, _remove)

    event = get_event(db, event_id)
    now = clock.utcnow()
    audit.record(db, "delete_event", actor_id, event_id, {"before": _event_snapshot(event), "cascade": report.as_dict()}, now)
    db.delete(event)
    db.commit()
    logger.info("Deleted event %s (%d RSVPs removed, %d orphaned)", event_id, len(report.removed), len(report.failed))
    return report


def reconcile_registration_counts(db: Session) -> dict[str, dict[str, int]]:
    """Recompute counters from RSVP rows; returns the events that drifted."""
    counts = dict(
        db.query(EventRsvp.event_id, func.count()).group_by(EventRsvp.event_id).all()
    )
    fixed: dict[str, dict[str, int]] = {}
    for event in db.query(Event).all():
        members = sorted(
            pid for (pid,) in db.query(EventRsvp.principal_id).filter(EventRsvp.event_id == event.event_id).all()
        )
        actual = counts.get(event.event_id, 0)
        if event.registration_count != actual or sorted(event.registered_users or []) != members:
            fixed[event.event_id] = {"before": event.effective_count, "after": actual}
            event.registration_count = actual
            event.registered_users = members
    if fixed:
        db.commit()
        logger.warning("Reconciled registration counts for %d events", len(fixed))
    return fixed
