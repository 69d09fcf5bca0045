"""Membership lifecycle — signup, sign-in gating, one-shot notices, admin review.

Approval and suspension live on the profile. Sign-in applies the same
classification the access control engine uses, so a suspended or rejected
member never walks away from ``login`` holding a live session.
"""
import logging
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy.orm import Session

from clubhouse import clock
from clubhouse.config import settings
from clubhouse.errors import InvalidArgument, PermissionDenied
from clubhouse.identity.provider import IdentityProvider
from clubhouse.models.principal import AuthNotice
from clubhouse.models.profile import Profile, ProfileStatus
from clubhouse.services import audit
from clubhouse.services.access_control import AccessState, classify
from clubhouse.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)


def store_notice(db: Session, client_id: Optional[str], message: str) -> None:
    """Persist a notice for the client's next unauthenticated view."""
    if not client_id:
        return
    notice = db.get(AuthNotice, client_id)
    if notice is None:
        db.add(AuthNotice(client_id=client_id, message=message, created_at=clock.utcnow()))
    else:
        notice.message = message
        notice.created_at = clock.utcnow()
    db.commit()


def pop_notice(db: Session, client_id: Optional[str]) -> Optional[str]:
    """Return the pending notice once, then forget it."""
    if not client_id:
        return None
    notice = db.get(AuthNotice, client_id)
    if notice is None:
        return None
    message = notice.message
    db.delete(notice)
    db.commit()
    return message


def signup(
    db: Session,
    identity: IdentityProvider,
    email: str,
    password: str,
    profile_fields: dict[str, Any],
) -> Profile:
    principal_id = identity.create_principal(email, password)
    fields = dict(profile_fields)
    if not fields.get("name"):
        full_name = " ".join(p for p in (fields.get("first_name"), fields.get("last_name")) if p)
        fields["name"] = full_name or None
    profile = ProfileStore(db).ensure(principal_id, email.strip().lower(), **fields)
    db.commit()
    db.refresh(profile)
    logger.info("Principal %s signed up; profile pending approval", principal_id)
    return profile


def login(
    db: Session,
    identity: IdentityProvider,
    email: str,
    password: str,
    client_id: Optional[str] = None,
) -> tuple[str, Optional[Profile]]:
    """Sign in and gate the new session on the member's profile."""
    token = identity.sign_in(email, password)
    principal = identity.resolve(token)
    store = ProfileStore(db)
    profile = store.get(principal.principal_id)
    state = classify(profile)

    if state is AccessState.suspended:
        logger.warning("Suspended principal %s tried to sign in", principal.principal_id)
        identity.sign_out(token)
        store_notice(db, client_id, settings.SUSPENDED_MESSAGE)
        raise PermissionDenied(settings.SUSPENDED_MESSAGE)
    if state is AccessState.rejected:
        logger.warning("Rejected principal %s tried to sign in", principal.principal_id)
        identity.sign_out(token)
        store_notice(db, client_id, settings.DEACTIVATED_MESSAGE)
        raise PermissionDenied(settings.DEACTIVATED_MESSAGE)

    if store.touch_last_login(principal.principal_id, timedelta(hours=settings.LAST_LOGIN_TOUCH_HOURS)):
        db.commit()
    return token, profile


def update_own_profile(db: Session, principal_id: str, patch: dict[str, Any]) -> Profile:
    profile = ProfileStore(db).update_fields(principal_id, patch)
    db.commit()
    db.refresh(profile)
    logger.info("Principal %s updated own profile (%s)", principal_id, ", ".join(sorted(patch)))
    return profile


def set_status(db: Session, actor_id: str, target_id: str, status: str) -> Profile:
    try:
        status_value = ProfileStatus(status)
    except ValueError as exc:
        raise InvalidArgument("status must be approved|rejected|pending") from exc

    store = ProfileStore(db)
    before = store.require(target_id).status
    profile = store.set_status(target_id, status_value)
    audit.record(
        db, "set_profile_status", actor_id, target_id,
        {"status": {"before": before.value, "after": status_value.value}}, profile.updated_at,
    )
    db.commit()
    db.refresh(profile)
    logger.info("Principal %s set status of %s to %s", actor_id, target_id, status_value.value)
    return profile


def set_suspended(db: Session, actor_id: str, target_id: str, suspended: bool) -> Profile:
    """Suspend or reinstate a member. Reinstated members sign in again."""
    if actor_id == target_id and suspended:
        raise InvalidArgument("Admins cannot suspend themselves")
    profile = ProfileStore(db).set_suspended(target_id, suspended)
    audit.record(db, "set_suspended", actor_id, target_id, {"suspended": suspended}, profile.updated_at)
    db.commit()
    db.refresh(profile)
    logger.info("Principal %s %s %s", actor_id, "suspended" if suspended else "reinstated", target_id)
    return profile
