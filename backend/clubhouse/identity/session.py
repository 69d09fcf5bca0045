"""Identity session adapter — emits "current principal changed" events.

Listeners are called synchronously, in publish order. A listener that needs
I/O schedules its own work; see ``AccessControlEngine.on_session_change``.
"""
import logging
from typing import Callable, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError

from clubhouse.errors import ClubhouseError
from clubhouse.identity.provider import IdentityProvider, SessionPrincipal

logger = logging.getLogger(__name__)

Listener = Callable[[Optional[SessionPrincipal]], None]


class SessionChannel:
    """Ordered fan-out of principal-changed events to subscribers."""

    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, principal: Optional[SessionPrincipal]) -> None:
        for listener in list(self._listeners):
            listener(principal)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


class IdentitySessionAdapter:
    """Turns a presented session token into a principal-changed event."""

    def __init__(self, identity: IdentityProvider, channel: Optional[SessionChannel] = None):
        self.identity = identity
        self.channel = channel or SessionChannel()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.channel.subscribe(listener)

    async def announce(self, token: Optional[str]) -> Optional[SessionPrincipal]:
        """Resolve ``token`` and publish the result; failures publish ``None``."""
        principal = None
        if token:
            try:
                principal = await run_in_threadpool(self.identity.resolve, token)
            except (ClubhouseError, SQLAlchemyError) as exc:
                logger.warning("Session resolution failed, treating caller as guest: %s", exc)
                principal = None
        self.channel.publish(principal)
        return principal
