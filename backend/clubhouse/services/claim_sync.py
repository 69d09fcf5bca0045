"""Claim synchronization — keeps the identity ``admin`` claim aligned with profile role.

Profile ``role`` is the source of truth; the claim is a copy the identity
provider attests to on every request. The two are written separately, so a
failed claim write after a committed role write leaves them disagreeing until
a retry or ``reconcile_role_claims`` fixes it.

Every entry point re-verifies the caller server-side, in order:
(a) a principal is present, (b) the principal's *claim* is admin. Bootstrap is
the one exception and checks the caller's own profile role instead.
"""
import logging
import time
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from clubhouse import clock
from clubhouse.config import settings
from clubhouse.errors import InvalidArgument, NotFound, PermissionDenied, Unauthenticated, Unavailable
from clubhouse.identity.provider import IdentityProvider, SessionPrincipal
from clubhouse.models.profile import Profile, ProfileRole
from clubhouse.services import audit
from clubhouse.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)

VALID_ROLES = ("admin", "member")


def require_principal(caller: Optional[SessionPrincipal]) -> str:
    if caller is None:
        raise Unauthenticated("Login required.")
    return caller.principal_id


def require_admin_claim(caller: Optional[SessionPrincipal]) -> str:
    principal_id = require_principal(caller)
    if not caller.claim_admin:
        logger.warning("Principal %s called a privileged operation without the admin claim", principal_id)
        raise PermissionDenied("Admin privileges required.")
    return principal_id


def _require_target(target_id: Optional[str]) -> str:
    target_id = (target_id or "").strip()
    if not target_id:
        raise InvalidArgument("uid is required")
    return target_id


def claim_is_admin(identity: IdentityProvider, principal_id: str) -> bool:
    """Claim view — authoritative for privileged server-side checks."""
    return identity.get_claims(principal_id).get("admin") is True


def profile_is_admin(db: Session, principal_id: str) -> bool:
    """Profile view — used for UI-level gating only."""
    profile = ProfileStore(db).get(principal_id)
    return profile is not None and profile.role == ProfileRole.admin


def _with_retry(operation: Callable[[], Any], label: str, attempts: int, backoff: float) -> Any:
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except Unavailable:
            if attempt >= attempts:
                logger.error("%s failed after %d attempts", label, attempts)
                raise
            logger.warning("%s failed (attempt %d/%d), retrying", label, attempt, attempts)
            time.sleep(backoff * (2 ** (attempt - 1)))


def _write_admin_claim(identity: IdentityProvider, principal_id: str, is_admin: bool) -> None:
    claims = identity.get_claims(principal_id)
    claims["admin"] = is_admin
    identity.set_claims(principal_id, claims)


def bootstrap_admin_claim(
    db: Session,
    identity: IdentityProvider,
    caller: Optional[SessionPrincipal],
) -> dict:
    """Propagate an out-of-band ``role=admin`` into the caller's own claim.

    Never writes ``profile.role``.
    """
    principal_id = require_principal(caller)
    profile = ProfileStore(db).get(principal_id)
    if profile is None or profile.role != ProfileRole.admin:
        logger.warning("Principal %s tried to bootstrap admin without role=admin", principal_id)
        raise PermissionDenied('Not allowed to bootstrap admin. Set your profile role to "admin" first.')

    now = clock.utcnow()
    _write_admin_claim(identity, principal_id, True)
    audit.record(db, "bootstrap_admin_claim", principal_id, principal_id, {"claims": {"admin": True}}, now)
    db.commit()
    logger.info("Principal %s bootstrapped the admin claim", principal_id)
    return {"ok": True}


def set_user_role(
    db: Session,
    identity: IdentityProvider,
    caller: Optional[SessionPrincipal],
    target_id: Optional[str],
    role: Optional[str],
    attempts: Optional[int] = None,
    backoff: Optional[float] = None,
) -> dict:
    """Set profile role (merge) then the matching claim, retrying the claim write."""
    actor_id = require_admin_claim(caller)
    target_id = _require_target(target_id)
    role = (role or "").strip()
    if role not in VALID_ROLES:
        raise InvalidArgument("role must be admin|member")

    # Target must exist in the identity provider before anything is written
    identity.get_claims(target_id)

    now = clock.utcnow()
    ProfileStore(db).set_role(target_id, ProfileRole(role))
    audit.record(db, "set_user_role", actor_id, target_id, {"role": role, "claims": {"admin": role == "admin"}}, now)
    db.commit()

    _with_retry(
        lambda: _write_admin_claim(identity, target_id, role == "admin"),
        label=f"claim sync for {target_id}",
        attempts=attempts or settings.CLAIM_SYNC_MAX_ATTEMPTS,
        backoff=settings.CLAIM_SYNC_BACKOFF_SECONDS if backoff is None else backoff,
    )
    logger.info("Principal %s set role of %s to %s", actor_id, target_id, role)
    return {"ok": True}


def delete_principal(
    db: Session,
    identity: IdentityProvider,
    caller: Optional[SessionPrincipal],
    target_id: Optional[str],
) -> dict:
    """Delete the identity. Profile and authored content are left in place."""
    actor_id = require_admin_claim(caller)
    target_id = _require_target(target_id)

    now = clock.utcnow()
    identity.delete_principal(target_id)
    audit.record(db, "delete_principal", actor_id, target_id, None, now)
    db.commit()
    logger.info("Principal %s deleted principal %s", actor_id, target_id)
    return {"ok": True}


def reconcile_role_claims(
    db: Session,
    identity: IdentityProvider,
    caller: Optional[SessionPrincipal],
) -> list[str]:
    """One-directional, idempotent sync: profile role -> identity claim."""
    actor_id = require_admin_claim(caller)
    fixed: list[str] = []
    for profile in db.query(Profile).order_by(Profile.principal_id).all():
        want_admin = profile.role == ProfileRole.admin
        try:
            has_admin = claim_is_admin(identity, profile.principal_id)
        except NotFound:
            # Orphaned profile: the identity was deleted
            logger.info("Skipping orphaned profile %s during claim reconcile", profile.principal_id)
            continue
        if has_admin != want_admin:
            _write_admin_claim(identity, profile.principal_id, want_admin)
            fixed.append(profile.principal_id)

    if fixed:
        audit.record(db, "reconcile_role_claims", actor_id, None, {"fixed": fixed}, clock.utcnow())
        db.commit()
    logger.info("Claim reconcile by %s fixed %d principals", actor_id, len(fixed))
    return fixed
