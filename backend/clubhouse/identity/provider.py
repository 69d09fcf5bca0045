"""Identity provider contract and the database-backed implementation.

The provider owns credentials, opaque session tokens and claims. Claims are
read at resolution time, so a claim change is visible on the caller's next
request without re-authenticating.

``set_claims`` and ``delete_principal`` are administrative: only the
privileged operations in ``services.claim_sync`` may call them.
"""
import hashlib
import hmac
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from clubhouse.clock import utcnow
from clubhouse.config import settings
from clubhouse.errors import InvalidArgument, NotFound, Unauthenticated, Unavailable
from clubhouse.models.principal import AuthSession, PasswordResetRequest, Principal

logger = logging.getLogger(__name__)

_HASH_ALGORITHM = "sha256"
_HASH_ITERATIONS = 120_000


@dataclass(frozen=True)
class SessionPrincipal:
    """The authenticated identity behind one session token."""

    principal_id: str
    email: str
    session_token: str
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def claim_admin(self) -> bool:
        return self.claims.get("admin") is True


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(_HASH_ALGORITHM, password.encode(), bytes.fromhex(salt), _HASH_ITERATIONS)
    return f"pbkdf2_{_HASH_ALGORITHM}${_HASH_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        scheme, iterations, salt, expected = encoded.split("$")
    except ValueError:
        return False
    algorithm = scheme.removeprefix("pbkdf2_")
    digest = hashlib.pbkdf2_hmac(algorithm, password.encode(), bytes.fromhex(salt), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


class IdentityProvider(ABC):
    """What the rest of the system consumes from the identity provider."""

    @abstractmethod
    def create_principal(self, email: str, password: str) -> str: ...

    @abstractmethod
    def sign_in(self, email: str, password: str) -> str: ...

    @abstractmethod
    def sign_out(self, token: str) -> None: ...

    @abstractmethod
    def resolve(self, token: str) -> Optional[SessionPrincipal]: ...

    @abstractmethod
    def send_password_reset(self, email: str) -> None: ...

    @abstractmethod
    def get_claims(self, principal_id: str) -> dict[str, Any]: ...

    @abstractmethod
    def set_claims(self, principal_id: str, claims: dict[str, Any]) -> None: ...

    @abstractmethod
    def delete_principal(self, principal_id: str) -> None: ...


class LocalIdentityProvider(IdentityProvider):
    """Identity provider backed by the application database.

    Every write commits on its own: the provider is a separate system from the
    profile store and its writes are durable independently of the caller's.
    """

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, what: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Identity provider write failed (%s): %s", what, exc)
            raise Unavailable("Identity provider is unavailable. Try again.") from exc

    def _get(self, principal_id: str) -> Principal:
        principal = self.db.query(Principal).filter(Principal.principal_id == principal_id).first()
        if not principal:
            raise NotFound("Principal not found")
        return principal

    def create_principal(self, email: str, password: str) -> str:
        email = normalize_email(email)
        if not email or "@" not in email:
            raise InvalidArgument("A valid email is required")
        if not password or len(password) < 5:
            raise InvalidArgument("Password must be at least 5 characters")
        if self.db.query(Principal).filter(Principal.email == email).first():
            raise InvalidArgument("An account with this email already exists")

        principal = Principal(email=email, password_hash=hash_password(password), claims={})
        self.db.add(principal)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise InvalidArgument("An account with this email already exists") from exc
        logger.info("Created principal %s", principal.principal_id)
        return principal.principal_id

    def sign_in(self, email: str, password: str) -> str:
        principal = self.db.query(Principal).filter(Principal.email == normalize_email(email)).first()
        if not principal or not verify_password(password or "", principal.password_hash):
            raise Unauthenticated("Invalid email or password")

        now = utcnow()
        token = secrets.token_urlsafe(32)
        self.db.add(AuthSession(
            token=token,
            principal_id=principal.principal_id,
            created_at=now,
            expires_at=now + timedelta(hours=settings.SESSION_TTL_HOURS),
        ))
        self._commit("sign_in")
        logger.info("Principal %s signed in", principal.principal_id)
        return token

    def sign_out(self, token: str) -> None:
        session = self.db.query(AuthSession).filter(AuthSession.token == token).first()
        if not session or session.revoked_at is not None:
            return
        session.revoked_at = utcnow()
        self._commit("sign_out")
        logger.info("Session for principal %s signed out", session.principal_id)

    def resolve(self, token: str) -> Optional[SessionPrincipal]:
        if not token:
            return None
        row = (
            self.db.query(AuthSession, Principal)
            .join(Principal, Principal.principal_id == AuthSession.principal_id)
            .filter(
                AuthSession.token == token,
                AuthSession.revoked_at.is_(None),
                AuthSession.expires_at > utcnow(),
            )
            .first()
        )
        if not row:
            return None
        _, principal = row
        return SessionPrincipal(
            principal_id=principal.principal_id,
            email=principal.email,
            session_token=token,
            claims=dict(principal.claims or {}),
        )

    def send_password_reset(self, email: str) -> None:
        email = normalize_email(email)
        principal = self.db.query(Principal).filter(Principal.email == email).first()
        if not principal:
            # Same response either way; no account enumeration
            logger.info("Password reset requested for unknown email")
            return
        self.db.add(PasswordResetRequest(
            token=secrets.token_urlsafe(32),
            email=email,
            expires_at=utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TTL_MINUTES),
        ))
        self._commit("send_password_reset")
        logger.info("Queued password reset for principal %s", principal.principal_id)

    def get_claims(self, principal_id: str) -> dict[str, Any]:
        return dict(self._get(principal_id).claims or {})

    def set_claims(self, principal_id: str, claims: dict[str, Any]) -> None:
        principal = self._get(principal_id)
        principal.claims = dict(claims)
        self._commit("set_claims")
        logger.info("Set claims for principal %s: %s", principal_id, sorted(k for k, v in claims.items() if v))

    def delete_principal(self, principal_id: str) -> None:
        principal = self._get(principal_id)
        self.db.query(AuthSession).filter(AuthSession.principal_id == principal_id).delete(synchronize_session=False)
        self.db.delete(principal)
        self._commit("delete_principal")
        logger.info("Deleted principal %s", principal_id)
