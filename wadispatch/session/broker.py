"""Fan-out of pairing artifacts to every caller waiting for one.

Pairing is paced by a human scanning a code, so many status checks may be
waiting at once. Each registers a waiter with its own deadline; the next
published artifact resolves all of them together. A waiter that times out
is removed before its caller returns, so a later artifact can never
complete it. When pairing ends without another code (the device paired, or
authentication failed) the waiters are released early instead of sitting
out their deadlines.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field

from wadispatch.errors import PairingCancelledError, PairingTimeoutError
from wadispatch.types import DEFAULT_PAIRING_TIMEOUT_MS, PairingArtifact

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class _Waiter:
    """A caller blocked until the next artifact or its deadline."""

    deadline: float
    done: threading.Event = field(default_factory=threading.Event)
    artifact: PairingArtifact | None = None
    cancelled: bool = False

    def resolve(self, artifact: PairingArtifact) -> None:
        self.artifact = artifact
        self.done.set()

    def cancel(self) -> None:
        self.cancelled = True
        self.done.set()


class PairingBroker:
    """Caches the latest pairing artifact and wakes waiters when one arrives."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._artifact: PairingArtifact | None = None
        self._waiters: set[_Waiter] = set()
        self._ended = False

    def current(self) -> PairingArtifact | None:
        """Return the cached artifact, if any."""
        with self._lock:
            return self._artifact

    @property
    def pending_waiters(self) -> int:
        with self._lock:
            return len(self._waiters)

    def publish(self, artifact: PairingArtifact) -> int:
        """Cache ``artifact`` and resolve every registered waiter with it.

        Returns the number of waiters woken.
        """
        with self._lock:
            self._artifact = artifact
            self._ended = False
            waiters, self._waiters = self._waiters, set()
            for waiter in waiters:
                waiter.resolve(artifact)
        if waiters:
            logger.info("Pairing code delivered to %d waiting caller(s)", len(waiters))
        return len(waiters)

    def clear(self) -> None:
        """Drop the cached artifact. Registered waiters keep waiting."""
        with self._lock:
            self._artifact = None

    def cancel_waiters(self) -> int:
        """Wake every registered waiter without an artifact.

        Their callers get :class:`PairingCancelledError`, and so does every
        later :meth:`await_artifact` call until the next :meth:`publish`.
        Returns the number of waiters woken.
        """
        with self._lock:
            self._ended = True
            waiters, self._waiters = self._waiters, set()
            for waiter in waiters:
                waiter.cancel()
        if waiters:
            logger.info("Pairing ended; released %d waiting caller(s)", len(waiters))
        return len(waiters)

    def await_artifact(self, timeout_ms: int = DEFAULT_PAIRING_TIMEOUT_MS) -> PairingArtifact:
        """Return the cached artifact, or block until the next one is published.

        Raises:
            PairingTimeoutError: if nothing is published within ``timeout_ms``.
            PairingCancelledError: if pairing ended before a code was published.
        """
        with self._lock:
            if self._artifact is not None:
                return self._artifact
            if self._ended:
                raise PairingCancelledError("Pairing ended before a code was issued")
            waiter = _Waiter(deadline=time.monotonic() + max(timeout_ms, 0) / 1000)
            self._waiters.add(waiter)

        waiter.done.wait(max(waiter.deadline - time.monotonic(), 0))

        with self._lock:
            self._waiters.discard(waiter)
            # publish() may have won the race against the deadline.
            if waiter.artifact is not None:
                return waiter.artifact
            if waiter.cancelled:
                raise PairingCancelledError("Pairing ended before a code was issued")

        logger.warning("Timed out after %d ms waiting for a pairing code", timeout_ms)
        raise PairingTimeoutError(timeout_ms)
