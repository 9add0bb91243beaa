"""Tests for the pairing broker's broadcast and timeout behaviour."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from wadispatch import PairingArtifact, PairingBroker, PairingCancelledError, PairingTimeoutError, SessionError


def _artifact(raw: str = "2@pairing") -> PairingArtifact:
    return PairingArtifact(raw_payload=raw, image=raw.encode())


class TestCachedArtifact:
    def test_returns_cached_immediately(self):
        broker = PairingBroker()
        artifact = _artifact()
        broker.publish(artifact)
        assert broker.await_artifact(60_000) is artifact

    def test_returns_cached_with_zero_deadline(self):
        broker = PairingBroker()
        artifact = _artifact()
        broker.publish(artifact)
        assert broker.await_artifact(0) is artifact
        assert broker.pending_waiters == 0

    def test_clear_drops_cache(self):
        broker = PairingBroker()
        broker.publish(_artifact())
        broker.clear()
        assert broker.current() is None


class TestBroadcast:
    def test_one_publish_resolves_all_waiters(self, wait_for):
        broker = PairingBroker()
        with ThreadPoolExecutor(max_workers=3) as pool:
            futures = [pool.submit(broker.await_artifact, 5_000) for _ in range(3)]
            wait_for(lambda: broker.pending_waiters == 3)

            artifact = _artifact()
            woken = broker.publish(artifact)
            results = [f.result(timeout=2) for f in futures]

        assert woken == 3
        assert all(r is artifact for r in results)
        assert broker.pending_waiters == 0

    def test_waiter_resolves_on_event_not_deadline(self):
        broker = PairingBroker()
        artifact = _artifact()
        timer = threading.Timer(0.1, broker.publish, args=(artifact,))

        start = time.monotonic()
        timer.start()
        result = broker.await_artifact(10_000)
        elapsed = time.monotonic() - start

        assert result is artifact
        assert elapsed < 5


class TestTimeout:
    def test_times_out_without_event(self):
        broker = PairingBroker()
        with pytest.raises(PairingTimeoutError) as exc_info:
            broker.await_artifact(50)
        assert exc_info.value.timeout_ms == 50
        assert isinstance(exc_info.value, SessionError)

    def test_zero_deadline_without_cache_times_out(self):
        broker = PairingBroker()
        with pytest.raises(PairingTimeoutError):
            broker.await_artifact(0)

    def test_timed_out_waiter_is_removed(self):
        broker = PairingBroker()
        with pytest.raises(PairingTimeoutError):
            broker.await_artifact(20)

        assert broker.pending_waiters == 0
        # A later event finds nobody to wake
        assert broker.publish(_artifact()) == 0

    def test_independent_deadlines(self, wait_for):
        broker = PairingBroker()
        with ThreadPoolExecutor(max_workers=2) as pool:
            short = pool.submit(broker.await_artifact, 30)
            long = pool.submit(broker.await_artifact, 5_000)

            with pytest.raises(PairingTimeoutError):
                short.result(timeout=2)
            wait_for(lambda: broker.pending_waiters == 1)

            artifact = _artifact()
            broker.publish(artifact)
            assert long.result(timeout=2) is artifact


class TestCancel:
    def test_cancel_releases_all_waiters(self, wait_for):
        broker = PairingBroker()
        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [pool.submit(broker.await_artifact, 60_000) for _ in range(2)]
            wait_for(lambda: broker.pending_waiters == 2)

            start = time.monotonic()
            assert broker.cancel_waiters() == 2

            for future in futures:
                with pytest.raises(PairingCancelledError):
                    future.result(timeout=2)
            assert time.monotonic() - start < 2

        assert broker.pending_waiters == 0

    def test_waiting_after_cancel_fails_immediately(self):
        broker = PairingBroker()
        broker.cancel_waiters()

        with pytest.raises(PairingCancelledError) as exc_info:
            broker.await_artifact(60_000)
        assert isinstance(exc_info.value, SessionError)

    def test_publish_reopens_after_cancel(self):
        broker = PairingBroker()
        broker.cancel_waiters()
        artifact = _artifact()
        broker.publish(artifact)

        assert broker.await_artifact(0) is artifact
