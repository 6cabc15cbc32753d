"""
Change notification for the preset store.

Every mutation emits a payload-free invalidation signal. Listeners never
get a delta: on signal they re-read from the store.

Two channels:
- In-process: callbacks registered with subscribe()
- Cross-context: a signal file holding a random token, rewritten on every
  notify(). Other open instances pointed at the same storage call poll()
  (or run start_polling()) and fire their own listeners when the token
  moves.

No locking and no merge. Concurrent writers resolve by last write wins;
the signal only tells other contexts to re-read.
"""

import logging
import threading
import uuid
from pathlib import Path
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

Listener = Callable[[], None]

# Default cross-context poll interval
POLL_INTERVAL_SECONDS = 2.0


class ChangeNotifier:
    """
    Payload-free pub-sub channel for preset invalidation.

    Listener exceptions are logged and do not stop other listeners or
    the mutation that triggered them.
    """

    def __init__(self, signal_path: Optional[Path] = None):
        """
        Initialize notifier.

        Args:
            signal_path: Signal file shared with other contexts (None: in-process only)
        """
        self.signal_path = Path(signal_path) if signal_path else None
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()
        self._last_token: Optional[str] = self._read_token()
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    # In-process channel

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            Callable that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _dispatch(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener()
            except Exception as e:
                logger.error(f"Preset change listener {listener!r} failed: {e}")

    def notify(self) -> None:
        """Signal a change to local listeners and to other contexts."""
        self._write_token()
        self._dispatch()

    # Cross-context channel

    def _read_token(self) -> Optional[str]:
        if self.signal_path is None or not self.signal_path.exists():
            return None
        try:
            return self.signal_path.read_text(encoding="utf-8").strip() or None
        except OSError as e:
            logger.warning(f"Failed to read change signal {self.signal_path}: {e}")
            return None

    def _write_token(self) -> None:
        if self.signal_path is None:
            return
        token = uuid.uuid4().hex
        try:
            self.signal_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = self.signal_path.with_suffix(".signal.tmp")
            temp_path.write_text(token, encoding="utf-8")
            temp_path.replace(self.signal_path)
            self._last_token = token
        except OSError as e:
            # The write itself already succeeded; other contexts just miss this signal
            logger.warning(f"Failed to write change signal {self.signal_path}: {e}")

    def poll(self) -> bool:
        """
        Check for changes made by other contexts.

        Returns:
            True if another context changed the store since the last check
        """
        if self.signal_path is None:
            return False
        token = self._read_token()
        if token is None or token == self._last_token:
            return False
        self._last_token = token
        logger.debug("Preset store changed in another context")
        self._dispatch()
        return True

    def _poll_loop(self, interval: float) -> None:
        while not self._stop_event.wait(interval):
            self.poll()

    def start_polling(self, interval: float = POLL_INTERVAL_SECONDS) -> None:
        """Run poll() periodically on a daemon thread."""
        if self._running or self.signal_path is None:
            return
        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            args=(interval,),
            daemon=True,
            name="preset-change-poller",
        )
        self._thread.start()
        logger.info(f"Polling {self.signal_path} for preset changes every {interval}s")

    def stop_polling(self) -> None:
        """Stop the polling thread."""
        self._running = False
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None
