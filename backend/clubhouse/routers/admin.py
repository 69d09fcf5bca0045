"""Privileged operations. The caller's claim is re-checked in the service layer."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clubhouse.database import get_db
from clubhouse.dependencies import get_identity, get_principal, require_admin_claim
from clubhouse.identity.provider import IdentityProvider, SessionPrincipal
from clubhouse.schemas.admin import AuditLogOut, OkOut, ReconcileOut, SetRoleRequest
from clubhouse.services import audit, claim_sync

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/bootstrap-claim", response_model=OkOut)
def bootstrap_admin_claim(
    caller: Optional[SessionPrincipal] = Depends(get_principal),
    identity: IdentityProvider = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return claim_sync.bootstrap_admin_claim(db, identity, caller)


@router.post("/users/{target_id}/role", response_model=OkOut)
def set_user_role(
    target_id: str,
    payload: SetRoleRequest,
    caller: Optional[SessionPrincipal] = Depends(get_principal),
    identity: IdentityProvider = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return claim_sync.set_user_role(db, identity, caller, target_id, payload.role)


@router.delete("/users/{target_id}", response_model=OkOut)
def delete_principal(
    target_id: str,
    caller: Optional[SessionPrincipal] = Depends(get_principal),
    identity: IdentityProvider = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return claim_sync.delete_principal(db, identity, caller, target_id)


@router.post("/claims/reconcile", response_model=ReconcileOut)
def reconcile_role_claims(
    caller: Optional[SessionPrincipal] = Depends(get_principal),
    identity: IdentityProvider = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return ReconcileOut(fixed=claim_sync.reconcile_role_claims(db, identity, caller))


@router.get("/audit-logs", response_model=list[AuditLogOut])
def list_audit_logs(
    target_id: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    caller: SessionPrincipal = Depends(require_admin_claim),
    db: Session = Depends(get_db),
):
    return audit.list_entries(db, target_id=target_id, limit=limit)
