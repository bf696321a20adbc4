"""One-shot, cross-thread completion signal."""
from __future__ import annotations

import logging
import threading
from types import TracebackType

logger = logging.getLogger(__name__)


class CompletionGate:
    """A flag that goes from armed to signaled exactly once.

    Parameters
    ----------
    name:
        A human-readable name used in log and error messages.

    Example
    -------
    ::

        with CompletionGate("assembly") as gate:
            worker = threading.Thread(target=run_tests, args=(gate,))
            worker.start()
            if not gate.wait(timeout=30):
                raise TimeoutError("tests did not finish")
    """

    def __init__(self, name: str = "completion") -> None:
        self._name = name
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_signaled(self) -> bool:
        return self._event.is_set()

    @property
    def is_closed(self) -> bool:
        return self._closed

    def signal(self) -> bool:
        """Signal the gate.

        Returns
        -------
        bool
            ``True`` if this call performed the transition; ``False`` if the
            gate was already signaled or has been closed.
        """
        with self._lock:
            if self._closed or self._event.is_set():
                return False
            self._event.set()
        logger.debug("Completion gate %r signaled", self._name)
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the gate is signaled or ``timeout`` seconds elapse.

        Returns
        -------
        bool
            ``True`` if the gate was signaled before the timeout.

        Raises
        ------
        RuntimeError
            If the gate has been closed.
        """
        if self._closed:
            raise RuntimeError(f"Completion gate {self._name!r} is closed")
        return self._event.wait(timeout)

    def close(self) -> None:
        """Release the gate.  Threads already waiting are not woken."""
        with self._lock:
            self._closed = True

    def __enter__(self) -> "CompletionGate":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "signaled" if self.is_signaled else "armed"
        return f"CompletionGate(name={self._name!r}, state={state})"
