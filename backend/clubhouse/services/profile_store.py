"""Profile store adapter — reads and writes one profile row per principal.

Methods stage changes on the session; the calling service commits.
Read failures surface as ``Unavailable`` so access control can fail closed.
"""
import logging
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clubhouse.clock import as_utc, utcnow
from clubhouse.errors import InvalidArgument, NotFound, Unavailable
from clubhouse.models.profile import Profile, ProfileRole, ProfileStatus, STAT_FIELDS

logger = logging.getLogger(__name__)

# Fields the subject may edit on their own profile
SUBJECT_FIELDS = frozenset({
    "name", "first_name", "last_name", "country_code", "phone_number", "avatar_url",
    "bio", "location", "goals", "sports_interests", "join_as",
})


class ProfileStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, principal_id: str) -> Optional[Profile]:
        try:
            return self.db.query(Profile).filter(Profile.principal_id == principal_id).first()
        except SQLAlchemyError as exc:
            logger.error("Profile read failed for %s: %s", principal_id, exc)
            raise Unavailable("Profile store is unavailable.") from exc

    def require(self, principal_id: str) -> Profile:
        profile = self.get(principal_id)
        if not profile:
            raise NotFound("Profile not found")
        return profile

    def list(self, status: Optional[ProfileStatus] = None) -> list[Profile]:
        query = self.db.query(Profile)
        if status:
            query = query.filter(Profile.status == status)
        return query.order_by(Profile.requested_at.desc()).all()

    def ensure(self, principal_id: str, email: str, **fields: Any) -> Profile:
        """Create a pending member profile, or merge fields into an existing one.

        An existing profile keeps its role, status, suspension and stats.
        """
        fields = {k: v for k, v in fields.items() if v is not None and k in SUBJECT_FIELDS}
        profile = self.get(principal_id)
        if profile is None:
            profile = Profile(
                principal_id=principal_id,
                email=email,
                role=ProfileRole.member,
                status=ProfileStatus.pending,
                suspended=False,
                requested_at=utcnow(),
                **fields,
            )
            profile.name = fields.get("name") or email or "New Member"
            self.db.add(profile)
            return profile

        for key, value in fields.items():
            setattr(profile, key, value)
        if not profile.email:
            profile.email = email
        if not profile.name:
            profile.name = email or "Member"
        return profile

    def update_fields(self, principal_id: str, patch: dict[str, Any]) -> Profile:
        forbidden = set(patch) - SUBJECT_FIELDS
        if forbidden:
            raise InvalidArgument(f"Fields not editable: {', '.join(sorted(forbidden))}")
        profile = self.require(principal_id)
        for key, value in patch.items():
            if value is not None:
                setattr(profile, key, value)
        profile.updated_at = utcnow()
        return profile

    def set_role(self, principal_id: str, role: ProfileRole) -> Profile:
        """Merge-write of the role; creates a bare pending profile if absent."""
        profile = self.get(principal_id)
        if profile is None:
            profile = Profile(principal_id=principal_id, email="", name="", status=ProfileStatus.pending)
            self.db.add(profile)
        profile.role = role
        profile.updated_at = utcnow()
        return profile

    def set_status(self, principal_id: str, status: ProfileStatus) -> Profile:
        profile = self.require(principal_id)
        profile.status = status
        profile.updated_at = utcnow()
        return profile

    def set_suspended(self, principal_id: str, suspended: bool) -> Profile:
        profile = self.require(principal_id)
        profile.suspended = suspended
        profile.updated_at = utcnow()
        return profile

    def touch_last_login(self, principal_id: str, min_interval: timedelta) -> bool:
        profile = self.get(principal_id)
        if profile is None:
            return False
        now = utcnow()
        last = as_utc(profile.last_login_at)
        if last is not None and now - last < min_interval:
            return False
        profile.last_login_at = now
        return True

    def increment_stat(self, principal_id: str, stat: str, delta: int) -> None:
        if stat not in STAT_FIELDS:
            raise ValueError(f"Unknown stat {stat!r}")
        column = getattr(Profile, f"{stat}_count")
        self.db.execute(
            update(Profile)
            .where(Profile.principal_id == principal_id)
            .values({column: column + delta})
            .execution_options(synchronize_session=False)
        )

    def add_event(self, principal_id: str, event_id: str) -> None:
        profile = self.get(principal_id)
        if profile is None:
            return
        events = list(profile.events or [])
        if event_id not in events:
            profile.events = events + [event_id]
        self.increment_stat(principal_id, "events", 1)

    def remove_event(self, principal_id: str, event_id: str) -> None:
        profile = self.get(principal_id)
        if profile is None:
            return
        profile.events = [e for e in (profile.events or []) if e != event_id]
        if profile.events_count > 0:
            self.increment_stat(principal_id, "events", -1)
