"""Request-scoped wiring: identity provider, access control engine, route guards.

Every request gets its own ``AccessControlEngine`` (init -> active -> torn
down). The engine is started against the session adapter, the bearer token is
announced once, and the engine is torn down when the request finishes, so no
profile read outlives its request.
"""
import logging
from typing import Optional

from fastapi import Depends, Header
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from clubhouse.config import settings
from clubhouse.database import get_db
from clubhouse.errors import Unauthenticated
from clubhouse.identity.provider import IdentityProvider, LocalIdentityProvider, SessionPrincipal
from clubhouse.identity.session import IdentitySessionAdapter
from clubhouse.services import claim_sync, membership
from clubhouse.services.access_control import AccessControlEngine, AccessDecision, AccessState
from clubhouse.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def get_identity(db: Session = Depends(get_db)) -> IdentityProvider:
    return LocalIdentityProvider(db)


def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> Optional[str]:
    return credentials.credentials if credentials else None


def get_client_id(x_client_id: Optional[str] = Header(None)) -> Optional[str]:
    """Browser-scoped id used to key one-shot notices."""
    return x_client_id


async def get_access(
    token: Optional[str] = Depends(get_token),
    client_id: Optional[str] = Depends(get_client_id),
    identity: IdentityProvider = Depends(get_identity),
    db: Session = Depends(get_db),
):
    store = ProfileStore(db)

    async def load_profile(principal_id: str):
        return await run_in_threadpool(store.get, principal_id)

    async def terminate_session(principal: SessionPrincipal) -> None:
        await run_in_threadpool(identity.sign_out, principal.session_token)

    async def persist_notice(message: str) -> None:
        await run_in_threadpool(membership.store_notice, db, client_id, message)

    adapter = IdentitySessionAdapter(identity)
    engine = AccessControlEngine(
        load_profile,
        terminate_session,
        persist_notice=persist_notice,
        suspended_message=settings.SUSPENDED_MESSAGE,
    ).start(adapter)
    await adapter.announce(token)
    try:
        yield engine
    finally:
        engine.teardown()


async def current_decision(engine: AccessControlEngine = Depends(get_access)) -> AccessDecision:
    """Resolved decision without gating (guests included)."""
    return await engine.wait_resolved()


async def require_signed_in(engine: AccessControlEngine = Depends(get_access)) -> AccessDecision:
    return await engine.require_signed_in()


async def require_approved(engine: AccessControlEngine = Depends(get_access)) -> AccessDecision:
    return await engine.require_approved()


async def require_admin(engine: AccessControlEngine = Depends(get_access)) -> AccessDecision:
    return await engine.require_admin()


async def get_principal(engine: AccessControlEngine = Depends(get_access)) -> Optional[SessionPrincipal]:
    """Caller for the privileged surface, after the suspension check.

    Services still verify presence and claims on what this returns. A session
    that collapsed to guest because of a suspension is refused here, once the
    engine has signed it out and stored the notice.
    """
    decision = await engine.wait_resolved()
    if decision.state is AccessState.guest:
        if decision.notice:
            raise Unauthenticated(decision.notice)
        return None
    return decision.principal


def require_admin_claim(caller: Optional[SessionPrincipal] = Depends(get_principal)) -> SessionPrincipal:
    """Claim-gated access for sensitive admin reads."""
    claim_sync.require_admin_claim(caller)
    return caller
