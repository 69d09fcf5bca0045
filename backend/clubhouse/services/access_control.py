"""Access control engine — one authorization decision per active session.

Lifecycle: ``start(source)`` subscribes to principal-changed events, every
event bumps a sequence number and schedules one profile read, and only the
read carrying the latest sequence number may publish a decision. After
``teardown()`` nothing is written back and guards refuse to evaluate.

Suspension is a kill switch: the engine persists a notice, terminates the
external session (once per session token) and collapses to ``guest``.

The admin sub-classification comes from ``profile.role``. It gates
non-sensitive admin pages only; privileged operations re-check the identity
claim server-side (``services.claim_sync``).
"""
import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from clubhouse.errors import ClubhouseError, PermissionDenied, Unauthenticated
from clubhouse.identity.provider import SessionPrincipal
from clubhouse.models.profile import Profile, ProfileRole, ProfileStatus

logger = logging.getLogger(__name__)

ProfileLoader = Callable[[str], Awaitable[Optional[Profile]]]
SessionTerminator = Callable[[SessionPrincipal], Awaitable[None]]
NoticeSink = Callable[[str], Awaitable[None]]

DEFAULT_SUSPENDED_MESSAGE = "Your account is suspended. Please contact an administrator."


class AccessState(str, enum.Enum):
    unresolved = "unresolved"
    guest = "guest"
    profile_missing = "profile_missing"
    pending = "pending"
    rejected = "rejected"
    approved = "approved"
    suspended = "suspended"
    admin = "admin"


@dataclass(frozen=True)
class AccessDecision:
    state: AccessState
    principal: Optional[SessionPrincipal] = None
    profile: Optional[Profile] = None
    notice: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return (
            self.state is AccessState.approved
            and self.profile is not None
            and self.profile.role == ProfileRole.admin
        )

    @property
    def effective_state(self) -> AccessState:
        return AccessState.admin if self.is_admin else self.state

    @property
    def can_interact(self) -> bool:
        return self.state is AccessState.approved

    @property
    def claim_admin(self) -> bool:
        return self.principal is not None and self.principal.claim_admin

    @property
    def principal_id(self) -> Optional[str]:
        return self.principal.principal_id if self.principal else None


def classify(profile: Optional[Profile]) -> AccessState:
    if profile is None:
        return AccessState.profile_missing
    if profile.suspended:
        return AccessState.suspended
    if profile.status == ProfileStatus.approved:
        return AccessState.approved
    if profile.status == ProfileStatus.rejected:
        return AccessState.rejected
    return AccessState.pending


class AccessControlEngine:
    def __init__(
        self,
        load_profile: ProfileLoader,
        terminate_session: SessionTerminator,
        persist_notice: Optional[NoticeSink] = None,
        suspended_message: str = DEFAULT_SUSPENDED_MESSAGE,
    ):
        self._load_profile = load_profile
        self._terminate_session = terminate_session
        self._persist_notice = persist_notice
        self.suspended_message = suspended_message

        self._seq = 0
        self._decision = AccessDecision(AccessState.unresolved)
        self._resolved = asyncio.Event()
        self._tasks: set[asyncio.Task] = set()
        self._terminated_tokens: set[str] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._torn_down = False

    @property
    def decision(self) -> AccessDecision:
        return self._decision

    @property
    def lifecycle(self) -> str:
        if self._torn_down:
            return "torn_down"
        return "active" if self._unsubscribe else "init"

    def start(self, source) -> "AccessControlEngine":
        if self._torn_down or self._unsubscribe is not None:
            raise RuntimeError("AccessControlEngine can only be started once")
        self._unsubscribe = source.subscribe(self.on_session_change)
        return self

    def teardown(self) -> None:
        if self._torn_down:
            return
        self._torn_down = True
        if self._unsubscribe:
            self._unsubscribe()
        for task in list(self._tasks):
            task.cancel()
        self._decision = AccessDecision(AccessState.unresolved)
        # Wake guards so they observe the teardown
        self._resolved.set()

    def on_session_change(self, principal: Optional[SessionPrincipal]) -> None:
        if self._torn_down:
            return
        self._seq += 1
        seq = self._seq
        self._resolved.clear()
        if principal is None:
            self._apply(seq, AccessDecision(AccessState.guest))
            return
        task = asyncio.get_running_loop().create_task(self._evaluate(seq, principal))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _is_stale(self, seq: int) -> bool:
        return self._torn_down or seq != self._seq

    def _apply(self, seq: int, decision: AccessDecision) -> None:
        if self._is_stale(seq):
            return
        self._decision = decision
        self._resolved.set()
        logger.debug("Access decision #%d: %s", seq, decision.effective_state.value)

    async def _evaluate(self, seq: int, principal: SessionPrincipal) -> None:
        try:
            profile = await self._load_profile(principal.principal_id)
        except (ClubhouseError, SQLAlchemyError) as exc:
            logger.warning("Profile read failed for %s, denying access: %s", principal.principal_id, exc)
            profile = None

        if self._is_stale(seq):
            logger.debug("Discarding stale profile read #%d for %s", seq, principal.principal_id)
            return

        state = classify(profile)
        if state is AccessState.suspended:
            await self._terminate(principal)
            self._apply(seq, AccessDecision(AccessState.guest, notice=self.suspended_message))
            return
        self._apply(seq, AccessDecision(state, principal=principal, profile=profile))

    async def _terminate(self, principal: SessionPrincipal) -> None:
        token = principal.session_token
        if token in self._terminated_tokens:
            return
        self._terminated_tokens.add(token)
        logger.warning("Principal %s is suspended; terminating session", principal.principal_id)

        if self._persist_notice is not None:
            try:
                await self._persist_notice(self.suspended_message)
            except (ClubhouseError, SQLAlchemyError) as exc:
                logger.warning("Could not persist suspension notice for %s: %s", principal.principal_id, exc)
        try:
            await self._terminate_session(principal)
        except (ClubhouseError, SQLAlchemyError) as exc:
            logger.error("Failed to terminate session for %s: %s", principal.principal_id, exc)

    async def wait_resolved(self) -> AccessDecision:
        if self._torn_down:
            raise Unauthenticated("Session closed.")
        await self._resolved.wait()
        if self._torn_down:
            raise Unauthenticated("Session closed.")
        return self._decision

    async def require_signed_in(self) -> AccessDecision:
        decision = await self.wait_resolved()
        if decision.state is AccessState.guest:
            raise Unauthenticated(decision.notice or "Please log in.")
        return decision

    async def require_approved(self) -> AccessDecision:
        decision = await self.require_signed_in()
        if decision.state is AccessState.profile_missing:
            raise PermissionDenied("Your profile is missing. Please re-register.")
        if decision.state is AccessState.pending:
            raise PermissionDenied("Your account is pending admin approval.")
        if decision.state is AccessState.rejected:
            raise PermissionDenied("Your account has been deactivated. Contact admin.")
        return decision

    async def require_admin(self) -> AccessDecision:
        decision = await self.require_approved()
        if not decision.is_admin:
            logger.warning("Principal %s denied admin page", decision.principal_id)
            raise PermissionDenied("Admins only.")
        return decision
