"""Session store interface."""

from typing import Awaitable, Callable, Optional, Protocol

from taskmanager.domain.sessions.models import Session
from taskmanager.interfaces.subscriptions import Subscription

SessionListener = Callable[[Optional[Session]], Awaitable[None]]


class SessionStore(Protocol):
    """
    Port for the auth provider.

    Holds the single current session of one tab and tells listeners about
    sign-in, token refresh and sign-out.
    """

    async def get_current_session(self) -> Optional[Session]:
        """
        Return the presently known session.

        The first call may perform a one-time asynchronous check with the
        provider (e.g. refreshing an expired token).

        Returns:
            Session if signed in, None otherwise
        """
        ...

    def subscribe(self, on_change: SessionListener) -> Subscription:
        """
        Register a listener for session changes.

        Args:
            on_change: Awaited with the new session, or None on sign-out

        Returns:
            Subscription whose unsubscribe() stops delivery
        """
        ...

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """Sign in and notify listeners. Raises AuthenticationError on rejection."""
        ...

    async def sign_up(self, email: str, password: str) -> Optional[Session]:
        """Register a user; returns a session when the provider signs them in directly."""
        ...

    async def refresh_session(self) -> Optional[Session]:
        """Exchange the refresh token for a new session and notify listeners."""
        ...

    async def sign_out(self) -> None:
        """End the session; listeners are always notified with None."""
        ...
