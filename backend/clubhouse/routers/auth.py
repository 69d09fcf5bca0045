"""Auth API routes — sign-up, sign-in, sign-out and the access decision."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from clubhouse.database import get_db
from clubhouse.dependencies import current_decision, get_client_id, get_identity, get_token
from clubhouse.identity.provider import IdentityProvider
from clubhouse.schemas.auth import (
    AccessOut,
    LoginRequest,
    LoginResponse,
    NoticeOut,
    PasswordResetRequestIn,
    SignupRequest,
)
from clubhouse.schemas.profile import ProfileOut
from clubhouse.services import membership
from clubhouse.services.access_control import AccessDecision

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/signup", response_model=ProfileOut, status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignupRequest,
    db: Session = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
):
    """Create an account; the profile waits for admin approval."""
    fields = payload.model_dump(exclude={"email", "password"}, exclude_none=True)
    return membership.signup(db, identity, payload.email, payload.password, fields)


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
    client_id: Optional[str] = Depends(get_client_id),
):
    token, profile = membership.login(db, identity, payload.email, payload.password, client_id)
    principal = identity.resolve(token)
    return LoginResponse(
        access_token=token,
        principal_id=principal.principal_id,
        status=profile.status.value if profile else None,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    token: Optional[str] = Depends(get_token),
    identity: IdentityProvider = Depends(get_identity),
):
    if token:
        identity.sign_out(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED)
def password_reset(payload: PasswordResetRequestIn, identity: IdentityProvider = Depends(get_identity)):
    """Always accepted, whether or not the email is known."""
    identity.send_password_reset(payload.email)
    return {"ok": True}


@router.get("/me", response_model=AccessOut)
def me(decision: AccessDecision = Depends(current_decision)):
    """Claim view and profile view side by side."""
    profile = decision.profile
    return AccessOut(
        state=decision.effective_state.value,
        principal_id=decision.principal_id,
        email=decision.principal.email if decision.principal else None,
        profile_role=profile.role.value if profile else None,
        claim_admin=decision.claim_admin,
        can_interact=decision.can_interact,
    )


@router.get("/notice", response_model=NoticeOut)
def notice(db: Session = Depends(get_db), client_id: Optional[str] = Depends(get_client_id)):
    """One-shot notice for this client (e.g. after a suspension sign-out)."""
    return NoticeOut(message=membership.pop_notice(db, client_id))
