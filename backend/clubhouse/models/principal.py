"""Identity provider records — principals, sessions, password resets."""
import uuid
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func
from clubhouse.database import Base


class Principal(Base):
    __tablename__ = "principals"

    principal_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    claims = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    token = Column(String(64), primary_key=True)
    principal_id = Column(String(36), ForeignKey("principals.principal_id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)


class PasswordResetRequest(Base):
    """Outbox row picked up by the mailer."""

    __tablename__ = "password_reset_requests"

    token = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AuthNotice(Base):
    """One-shot message shown on the next unauthenticated view of a client."""

    __tablename__ = "auth_notices"

    client_id = Column(String(64), primary_key=True)
    message = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
