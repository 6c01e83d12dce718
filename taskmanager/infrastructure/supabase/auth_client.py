"""GoTrue-backed session store.

Talks to the Supabase auth API (``/auth/v1``) with httpx:
1. Password sign-in and sign-up
2. Refresh-token grant when the access token expires
3. Logout (token revocation)

The session lives only in memory, one store per browser tab.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from taskmanager.core.log_sanitizer import sanitize_for_logging
from taskmanager.domain.errors import AuthenticationError
from taskmanager.domain.sessions.models import Session
from taskmanager.interfaces.sessions import SessionListener
from taskmanager.interfaces.subscriptions import ListenerSet, Subscription

logger = logging.getLogger(__name__)


def error_message_from_response(response: httpx.Response) -> str:
    """Pull a human readable message out of a Supabase error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {response.status_code}"


class GoTrueSessionStore:
    """
    Session store for one tab, backed by the GoTrue auth API.

    Listeners are awaited in registration order on every change. A failing
    listener is logged and does not stop delivery to the others.
    """

    def __init__(
        self,
        supabase_url: str,
        anon_key: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        session: Optional[Session] = None,
    ):
        self._auth_url = f"{supabase_url.rstrip('/')}/auth/v1"
        self._anon_key = anon_key
        self._timeout = timeout
        self._transport = transport
        self._session = session
        self._listeners = ListenerSet("Session listener")
        self._refreshing: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # SessionStore protocol
    # ------------------------------------------------------------------
    async def get_current_session(self) -> Optional[Session]:
        """Return the session, refreshing it first when the access token expired."""
        if self._session is not None and self._session.is_expired():
            logger.info("Access token expired for %s, refreshing", sanitize_for_logging(self._session.user_email))
            return await self.refresh_session()
        return self._session

    def subscribe(self, on_change: SessionListener) -> Subscription:
        return self._listeners.add(on_change)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        data = await self._post(
            "/token",
            params={"grant_type": "password"},
            payload={"email": email, "password": password},
            failure_code="INVALID_CREDENTIALS",
        )
        session = Session.from_auth_response(data)
        logger.info("Signed in %s", sanitize_for_logging(session.user_email))
        await self._set_session(session)
        return session

    async def sign_up(self, email: str, password: str) -> Optional[Session]:
        data = await self._post(
            "/signup",
            payload={"email": email, "password": password},
            failure_code="SIGN_UP_REJECTED",
        )
        if not data.get("access_token"):
            # Email confirmation is enabled on the project
            logger.info("Sign-up for %s awaits email confirmation", sanitize_for_logging(email))
            return None
        session = Session.from_auth_response(data)
        await self._set_session(session)
        return session

    async def refresh_session(self) -> Optional[Session]:
        """
        Exchange the refresh token for a new session.

        Concurrent callers share one in-flight grant; a refresh token is
        single-use on projects with reuse detection enabled.
        """
        if self._refreshing is None:
            self._refreshing = asyncio.create_task(self._refresh())
            self._refreshing.add_done_callback(self._refresh_done)
        return await asyncio.shield(self._refreshing)

    def _refresh_done(self, task: asyncio.Task) -> None:
        if self._refreshing is task:
            self._refreshing = None

    async def _refresh(self) -> Optional[Session]:
        current = self._session
        if current is None:
            return None
        try:
            data = await self._post(
                "/token",
                params={"grant_type": "refresh_token"},
                payload={"refresh_token": current.refresh_token},
                failure_code="REFRESH_FAILED",
            )
            session = Session.from_auth_response(data)
        except AuthenticationError as e:
            logger.warning("Session refresh failed, signing out locally: %s", sanitize_for_logging(e.message))
            await self._set_session(None)
            return None
        await self._set_session(session)
        return session

    async def sign_out(self) -> None:
        current = self._session
        if current is not None:
            try:
                await self._post(
                    "/logout",
                    access_token=current.access_token,
                    failure_code="SIGN_OUT_FAILED",
                )
            except AuthenticationError as e:
                # The local session is cleared either way
                logger.warning("Provider sign-out failed: %s", sanitize_for_logging(e.message))
            logger.info("Signed out %s", sanitize_for_logging(current.user_email))
        await self._set_session(None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _set_session(self, session: Optional[Session]) -> None:
        self._session = session
        await self._listeners.notify(session)

    async def _post(
        self,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        payload: Optional[Dict[str, Any]] = None,
        access_token: Optional[str] = None,
        failure_code: str,
    ) -> Dict[str, Any]:
        headers = {"apikey": self._anon_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self._auth_url}{path}", params=params, json=payload, headers=headers
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise AuthenticationError(error_message_from_response(e.response), code=failure_code) from e
        except httpx.RequestError as e:
            logger.error(f"Auth request to {path} failed: {e}")
            raise AuthenticationError("Could not reach the auth provider", code="AUTH_UNAVAILABLE") from e

        if response.status_code == 204 or not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise AuthenticationError("Auth provider returned invalid JSON", code=failure_code) from e
        return data if isinstance(data, dict) else {}
