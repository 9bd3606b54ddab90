"""
Expiration Sweeper - background removal of expired sessions.

The sweeper owns one daemon thread. Every ``interval`` seconds it calls
the store's delete-expired function. Failures are handed to an
ErrorChannel, a single-slot rendezvous: the sweeper blocks until the
owner receives the error, so an undrained channel stalls sweeping.
"""

from enum import Enum
from typing import Callable, Iterator, Optional
import logging
import threading

logger = logging.getLogger(__name__)


class SweeperState(Enum):
    """Sweeper lifecycle states."""
    RUNNING = "running"
    STOPPED = "stopped"


class ErrorChannel:
    """
    Unbuffered channel carrying sweep failures to the store owner.

    Example:
        for error in store.cleanup_errors():
            logger.warning(f"session sweep failed: {error}")
    """

    def __init__(self):
        self._cond = threading.Condition()
        self._pending: Optional[BaseException] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, error: BaseException) -> bool:
        """
        Hand an error to a receiver, blocking until it is taken.

        Returns:
            True if received, False if the channel was closed first
        """
        with self._cond:
            self._cond.wait_for(lambda: self._pending is None or self._closed)
            if self._closed:
                return False

            self._pending = error
            self._cond.notify_all()
            self._cond.wait_for(lambda: self._pending is not error or self._closed)
            if self._pending is error:
                # closed before anyone picked it up
                self._pending = None
                return False
            return True

    def receive(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        """
        Take the pending error.

        Args:
            timeout: Seconds to wait, None to wait until an error or close

        Returns:
            The error, or None on timeout or when the channel is closed
        """
        with self._cond:
            self._cond.wait_for(
                lambda: self._pending is not None or self._closed,
                timeout,
            )
            error, self._pending = self._pending, None
            if error is not None:
                self._cond.notify_all()
            return error

    def close(self):
        """Close the channel, releasing blocked senders and receivers."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[BaseException]:
        while True:
            error = self.receive()
            if error is None:
                return
            yield error


class ExpirationSweeper:
    """
    Runs a delete-expired function on a fixed interval until stopped.

    Stopping is terminal. Create a new sweeper to resume.
    """

    def __init__(
        self,
        delete_expired: Callable[[], int],
        interval: float,
        errors: ErrorChannel,
        name: str = "session-sweeper",
    ):
        """
        Initialize sweeper.

        Args:
            delete_expired: Removes expired sessions, returns rows deleted
            interval: Seconds between sweeps, must be positive
            errors: Channel receiving sweep failures
            name: Thread name
        """
        if interval <= 0:
            raise ValueError("Sweep interval must be positive")

        self._delete_expired = delete_expired
        self._interval = interval
        self._errors = errors
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._state = SweeperState.STOPPED

    @property
    def state(self) -> SweeperState:
        return self._state

    @property
    def interval(self) -> float:
        return self._interval

    def start(self):
        """Launch the background thread."""
        if self._stop.is_set():
            raise RuntimeError("Sweeper was stopped and cannot be restarted")
        if self._state is SweeperState.RUNNING:
            return

        self._state = SweeperState.RUNNING
        self._thread.start()
        logger.info(f"Session sweeper started (interval={self._interval}s)")

    def stop(self):
        """Stop sweeping and wait for the thread to exit."""
        if self._stop.is_set():
            return

        self._stop.set()
        self._errors.close()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join()
        self._state = SweeperState.STOPPED
        logger.info("Session sweeper stopped")

    def _run(self):
        # wait() returns True once stop is requested
        while not self._stop.wait(self._interval):
            try:
                deleted = self._delete_expired()
            except Exception as e:
                logger.error(f"Session sweep failed: {e}")
                self._errors.send(e)
                continue

            if deleted:
                logger.debug(f"Session sweep removed {deleted} expired sessions")
