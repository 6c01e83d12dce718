"""Tests for the GoTrue session store, against httpx.MockTransport."""

import asyncio
import json
import time

import httpx
import pytest

from taskmanager.domain.errors import AuthenticationError
from taskmanager.domain.sessions.models import Session
from taskmanager.infrastructure.supabase.auth_client import GoTrueSessionStore, error_message_from_response

SUPABASE_URL = "https://abcd.supabase.co"


def _token_response(access="access-1", refresh="refresh-1", user_id="u1", email="a@example.com"):
    return {
        "access_token": access,
        "refresh_token": refresh,
        "token_type": "bearer",
        "expires_in": 3600,
        "expires_at": int(time.time()) + 3600,
        "user": {"id": user_id, "email": email},
    }


class Recorder:
    """Records requests and answers from a queue of (status, body) pairs."""

    def __init__(self, *responses):
        self.requests = []
        self._responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self._responses.pop(0)
        if isinstance(body, Exception):
            raise body
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)


def _store(recorder, session=None):
    return GoTrueSessionStore(
        SUPABASE_URL, "anon-key", transport=httpx.MockTransport(recorder), session=session
    )


class TestSignIn:
    @pytest.mark.asyncio
    async def test_password_grant_sets_session_and_notifies(self):
        recorder = Recorder((200, _token_response()))
        store = _store(recorder)
        seen = []

        async def listener(session):
            seen.append(session)

        store.subscribe(listener)
        session = await store.sign_in_with_password("a@example.com", "pw")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/auth/v1/token"
        assert request.url.params["grant_type"] == "password"
        assert request.headers["apikey"] == "anon-key"
        assert json.loads(request.content) == {"email": "a@example.com", "password": "pw"}
        assert session.user_email == "a@example.com"
        assert await store.get_current_session() is session
        assert seen == [session]

    @pytest.mark.asyncio
    async def test_rejected_credentials_raise_with_provider_message(self):
        recorder = Recorder((400, {"error": "invalid_grant", "error_description": "Invalid login credentials"}))
        store = _store(recorder)

        with pytest.raises(AuthenticationError) as exc:
            await store.sign_in_with_password("a@example.com", "wrong")

        assert exc.value.message == "Invalid login credentials"
        assert exc.value.code == "INVALID_CREDENTIALS"
        assert await store.get_current_session() is None

    @pytest.mark.asyncio
    async def test_unreachable_provider(self):
        recorder = Recorder((0, httpx.ConnectError("refused")))
        store = _store(recorder)

        with pytest.raises(AuthenticationError) as exc:
            await store.sign_in_with_password("a@example.com", "pw")

        assert exc.value.code == "AUTH_UNAVAILABLE"


class TestSignUp:
    @pytest.mark.asyncio
    async def test_sign_up_with_immediate_session(self):
        recorder = Recorder((200, _token_response()))
        store = _store(recorder)

        session = await store.sign_up("a@example.com", "secret1")

        assert recorder.requests[0].url.path == "/auth/v1/signup"
        assert session is not None
        assert await store.get_current_session() is session

    @pytest.mark.asyncio
    async def test_sign_up_awaiting_confirmation_returns_none(self):
        recorder = Recorder((200, {"id": "u1", "email": "a@example.com"}))
        store = _store(recorder)

        assert await store.sign_up("a@example.com", "secret1") is None
        assert await store.get_current_session() is None

    @pytest.mark.asyncio
    async def test_sign_up_rejected(self):
        recorder = Recorder((422, {"msg": "User already registered"}))
        store = _store(recorder)

        with pytest.raises(AuthenticationError) as exc:
            await store.sign_up("a@example.com", "secret1")

        assert exc.value.message == "User already registered"
        assert exc.value.code == "SIGN_UP_REJECTED"


class TestRefreshAndSignOut:
    def _expired(self):
        return Session(access_token="old", refresh_token="refresh-0", expires_at=time.time() - 60, user_id="u1")

    @pytest.mark.asyncio
    async def test_expired_session_is_refreshed_on_read(self):
        recorder = Recorder((200, _token_response(access="access-2", refresh="refresh-2")))
        store = _store(recorder, session=self._expired())

        session = await store.get_current_session()

        request = recorder.requests[0]
        assert request.url.params["grant_type"] == "refresh_token"
        assert json.loads(request.content) == {"refresh_token": "refresh-0"}
        assert session.access_token == "access-2"

    @pytest.mark.asyncio
    async def test_concurrent_reads_share_one_refresh_grant(self):
        requests = []

        async def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            for _ in range(3):
                await asyncio.sleep(0)
            return httpx.Response(200, json=_token_response(access="access-2", refresh="refresh-2"))

        store = GoTrueSessionStore(
            SUPABASE_URL, "anon-key", transport=httpx.MockTransport(handler), session=self._expired()
        )

        sessions = await asyncio.gather(*(store.get_current_session() for _ in range(3)))

        assert len(requests) == 1
        assert {session.access_token for session in sessions} == {"access-2"}
        assert sessions[0] is sessions[1] is sessions[2]

    @pytest.mark.asyncio
    async def test_refresh_after_completed_grant_starts_a_new_one(self):
        recorder = Recorder(
            (200, _token_response(access="access-2", refresh="refresh-2")),
            (200, _token_response(access="access-3", refresh="refresh-3")),
        )
        store = _store(recorder, session=self._expired())

        await store.refresh_session()
        session = await store.refresh_session()

        assert len(recorder.requests) == 2
        assert json.loads(recorder.requests[1].content) == {"refresh_token": "refresh-2"}
        assert session.access_token == "access-3"

    @pytest.mark.asyncio
    async def test_failed_refresh_drops_session_and_notifies_absent(self):
        recorder = Recorder((400, {"error_description": "Invalid Refresh Token"}))
        store = _store(recorder, session=self._expired())
        seen = []

        async def listener(session):
            seen.append(session)

        store.subscribe(listener)

        assert await store.get_current_session() is None
        assert seen == [None]

    @pytest.mark.asyncio
    async def test_sign_out_revokes_and_clears(self):
        recorder = Recorder((204, None))
        session = Session(access_token="tok", refresh_token="r", expires_at=time.time() + 600, user_id="u1")
        store = _store(recorder, session=session)
        seen = []

        async def listener(value):
            seen.append(value)

        store.subscribe(listener)
        await store.sign_out()

        request = recorder.requests[0]
        assert request.url.path == "/auth/v1/logout"
        assert request.headers["Authorization"] == "Bearer tok"
        assert await store.get_current_session() is None
        assert seen == [None]

    @pytest.mark.asyncio
    async def test_sign_out_clears_locally_when_provider_fails(self):
        recorder = Recorder((500, {"message": "down"}))
        session = Session(access_token="tok", refresh_token="r", expires_at=time.time() + 600, user_id="u1")
        store = _store(recorder, session=session)

        await store.sign_out()

        assert await store.get_current_session() is None


class TestErrorMessageFromResponse:
    def test_prefers_error_description(self):
        response = httpx.Response(400, json={"error": "invalid_grant", "error_description": "Bad"})
        assert error_message_from_response(response) == "Bad"

    def test_falls_back_to_text_and_status(self):
        assert error_message_from_response(httpx.Response(502, text="Bad gateway")) == "Bad gateway"
        assert error_message_from_response(httpx.Response(500, json=[1, 2])) == "HTTP 500"
