"""Shared test fixtures for the dispatch gateway."""

import time

import pytest

from wadispatch import ApiKeyConfig, FakeSessionClient, MockTransport, SessionConfig, SessionManager


def fake_render(payload: str) -> bytes:
    """Stand-in QR renderer so session tests don't depend on image output."""
    return f"png:{payload}".encode()


def _wait_for(predicate, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail("condition not met in time")
        time.sleep(0.005)


@pytest.fixture
def wait_for():
    """Poll a predicate until it is true, failing the test after a timeout."""
    return _wait_for


@pytest.fixture
def api_key_config() -> ApiKeyConfig:
    return ApiKeyConfig(
        instance_id="TESTINSTANCE01",
        access_token="test_token_456",
        endpoint="https://wa.example.com/api/send",
    )


@pytest.fixture
def mock_transport() -> MockTransport:
    return MockTransport()


@pytest.fixture
def fake_client() -> FakeSessionClient:
    return FakeSessionClient()


@pytest.fixture
def session_manager(fake_client: FakeSessionClient) -> SessionManager:
    return SessionManager(
        SessionConfig(client_factory=lambda: fake_client, renderer=fake_render, pairing_timeout_ms=2_000)
    )
