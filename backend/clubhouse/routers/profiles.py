"""Profile API routes — own profile plus admin approval and suspension."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clubhouse.database import get_db
from clubhouse.dependencies import require_admin, require_approved, require_signed_in
from clubhouse.errors import InvalidArgument
from clubhouse.models.profile import ProfileStatus
from clubhouse.schemas.profile import ApprovalRequest, ProfileOut, ProfileUpdate, SuspensionRequest
from clubhouse.services import membership
from clubhouse.services.access_control import AccessDecision
from clubhouse.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/me", response_model=ProfileOut)
def get_own_profile(decision: AccessDecision = Depends(require_signed_in), db: Session = Depends(get_db)):
    return ProfileStore(db).require(decision.principal_id)


@router.patch("/me", response_model=ProfileOut)
def update_own_profile(
    payload: ProfileUpdate,
    decision: AccessDecision = Depends(require_signed_in),
    db: Session = Depends(get_db),
):
    return membership.update_own_profile(db, decision.principal_id, payload.model_dump(exclude_unset=True))


@router.get("/", response_model=list[ProfileOut])
def list_profiles(
    status: Optional[str] = Query(None),
    decision: AccessDecision = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        status_filter = ProfileStatus(status) if status else None
    except ValueError as exc:
        raise InvalidArgument(f"Invalid status: {status}") from exc
    return ProfileStore(db).list(status_filter)


@router.get("/{principal_id}", response_model=ProfileOut)
def get_profile(
    principal_id: str,
    decision: AccessDecision = Depends(require_approved),
    db: Session = Depends(get_db),
):
    return ProfileStore(db).require(principal_id)


@router.post("/{principal_id}/approval", response_model=ProfileOut)
def set_approval(
    principal_id: str,
    payload: ApprovalRequest,
    decision: AccessDecision = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return membership.set_status(db, decision.principal_id, principal_id, payload.status)


@router.post("/{principal_id}/suspension", response_model=ProfileOut)
def set_suspension(
    principal_id: str,
    payload: SuspensionRequest,
    decision: AccessDecision = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Suspend or reinstate; a reinstated member signs in again."""
    return membership.set_suspended(db, decision.principal_id, principal_id, payload.suspended)
