"""Tests for the session manager: single client, event handling, sending."""

import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from wadispatch import (
    FakeSessionClient,
    MediaMessage,
    PairingCancelledError,
    RequiresPairing,
    SendResult,
    SessionConfig,
    SessionManager,
    SessionState,
    TextMessage,
)


def _paired(manager: SessionManager, client: FakeSessionClient) -> SessionManager:
    manager.initialize()
    client.emit("authenticated")
    client.emit("ready")
    return manager


class TestInitialize:
    def test_first_call_creates_client(self, session_manager, fake_client, wait_for):
        assert session_manager.state is SessionState.UNINITIALIZED
        assert session_manager.initialize()
        assert session_manager.state is SessionState.INITIALIZING
        wait_for(lambda: fake_client.initialized)

    def test_second_call_is_noop(self, session_manager):
        assert session_manager.initialize()
        assert not session_manager.initialize()

    def test_concurrent_calls_construct_one_client(self):
        constructed = []
        lock = threading.Lock()

        def factory():
            time.sleep(0.05)  # widen the race window
            with lock:
                constructed.append(FakeSessionClient())
                return constructed[-1]

        manager = SessionManager(SessionConfig(client_factory=factory))
        barrier = threading.Barrier(8)

        def call():
            barrier.wait()
            return manager.initialize()

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: call(), range(8)))

        assert len(constructed) == 1
        assert results.count(True) == 1

    def test_connect_failure_marks_auth_failed(self, wait_for):
        client = FakeSessionClient(initialize_error=RuntimeError("browser crashed"))
        manager = SessionManager(SessionConfig(client_factory=lambda: client))
        manager.initialize()
        wait_for(lambda: manager.state is SessionState.AUTH_FAILED)

    def test_requires_factory(self):
        with pytest.raises(ValueError, match="client_factory is required"):
            SessionManager(SessionConfig(client_factory=None))  # type: ignore[arg-type]


class TestEvents:
    def test_qr_event_caches_artifact(self, session_manager, fake_client):
        session_manager.initialize()
        fake_client.emit("qr", "2@abc")

        status = session_manager.status()
        assert status.state is SessionState.AWAITING_PAIRING
        assert status.artifact.raw_payload == "2@abc"
        assert status.artifact.image == b"png:2@abc"

    def test_new_qr_replaces_old(self, session_manager, fake_client):
        session_manager.initialize()
        fake_client.emit("qr", "2@first")
        fake_client.emit("qr", "2@second")
        assert session_manager.status().artifact.raw_payload == "2@second"

    def test_authenticated_clears_artifact(self, session_manager, fake_client):
        session_manager.initialize()
        fake_client.emit("qr", "2@abc")
        fake_client.emit("authenticated")

        status = session_manager.status()
        assert status.authenticated
        assert status.artifact is None
        assert session_manager.broker.current() is None

    def test_ready_alone_authenticates(self, session_manager, fake_client):
        session_manager.initialize()
        fake_client.emit("ready")
        assert session_manager.status().authenticated

    def test_auth_failure_clears_artifact(self, session_manager, fake_client):
        session_manager.initialize()
        fake_client.emit("qr", "2@abc")
        fake_client.emit("auth_failure", "session revoked")

        status = session_manager.status()
        assert status.state is SessionState.AUTH_FAILED
        assert not status.authenticated
        assert status.artifact is None

    def test_qr_after_auth_failure_is_ignored(self, session_manager, fake_client):
        session_manager.initialize()
        fake_client.emit("auth_failure", "bad")
        fake_client.emit("qr", "2@late")

        assert session_manager.state is SessionState.AUTH_FAILED
        assert session_manager.broker.current() is None

    def test_qr_event_wakes_waiters(self, session_manager, fake_client):
        session_manager.initialize()
        timer = threading.Timer(0.05, fake_client.emit, args=("qr", "2@abc"))
        timer.start()
        artifact = session_manager.broker.await_artifact(5_000)
        assert artifact.raw_payload == "2@abc"

    @pytest.mark.parametrize("event", ["authenticated", "ready", "auth_failure"])
    def test_leaving_pairing_releases_waiters(self, event, session_manager, fake_client, wait_for):
        session_manager.initialize()
        with ThreadPoolExecutor(max_workers=1) as pool:
            waiting = pool.submit(session_manager.broker.await_artifact, 60_000)
            wait_for(lambda: session_manager.broker.pending_waiters == 1)

            fake_client.emit(event)

            with pytest.raises(PairingCancelledError):
                waiting.result(timeout=2)

    def test_status_not_blocked_while_code_renders(self, fake_client, wait_for):
        rendering = threading.Event()
        release = threading.Event()

        def slow_render(payload):
            rendering.set()
            release.wait(5)
            return payload.encode()

        manager = SessionManager(SessionConfig(client_factory=lambda: fake_client, renderer=slow_render))
        manager.initialize()
        emitter = threading.Thread(target=fake_client.emit, args=("qr", "2@slow"))
        emitter.start()
        wait_for(rendering.is_set)

        checker = threading.Thread(target=manager.status)
        checker.start()
        checker.join(timeout=1)
        blocked = checker.is_alive()

        release.set()
        emitter.join(timeout=2)
        assert not blocked
        assert manager.status().artifact.raw_payload == "2@slow"


class TestSendViaSession:
    def test_requires_pairing_before_initialize(self, session_manager, fake_client):
        outcome = session_manager.send_via_session(TextMessage(to="919812345678", body="hi"))
        assert outcome == RequiresPairing(artifact=None)
        assert fake_client.sent == []

    def test_requires_pairing_with_cached_artifact(self, session_manager, fake_client):
        session_manager.initialize()
        fake_client.emit("qr", "2@abc")

        outcome = session_manager.send_via_session(TextMessage(to="919812345678", body="hi"))

        assert isinstance(outcome, RequiresPairing)
        assert outcome.artifact.raw_payload == "2@abc"
        assert fake_client.sent == []

    def test_sends_text_when_authenticated(self, session_manager, fake_client):
        _paired(session_manager, fake_client)
        outcome = session_manager.send_via_session(TextMessage(to="919812345678", body="hi"))

        assert outcome == SendResult.ok()
        assert fake_client.sent == [("919812345678@c.us", "hi", {"media_url": None, "filename": None})]

    def test_sends_media_options(self, session_manager, fake_client):
        _paired(session_manager, fake_client)
        msg = MediaMessage(to="919812345678", body="invoice", media_url="https://example.com/i.pdf", filename="i.pdf")
        outcome = session_manager.send_via_session(msg)

        assert outcome.succeeded
        assert fake_client.sent[0][2] == {"media_url": "https://example.com/i.pdf", "filename": "i.pdf"}

    def test_send_error_becomes_failed_result(self, session_manager, fake_client):
        _paired(session_manager, fake_client)
        fake_client.send_error = RuntimeError("Evaluation failed")

        outcome = session_manager.send_via_session(TextMessage(to="919812345678", body="hi"))

        assert isinstance(outcome, SendResult)
        assert not outcome.success
        assert outcome.detail == "Failed to send message."
        assert outcome.error_code == "session"
        # Client is kept, not reinitialized
        assert session_manager.state is SessionState.AUTHENTICATED
        assert not session_manager.initialize()

    def test_send_async(self, session_manager, fake_client):
        _paired(session_manager, fake_client)
        outcome = asyncio.run(session_manager.send_via_session_async(TextMessage(to="919812345678", body="hi")))
        assert outcome.succeeded
