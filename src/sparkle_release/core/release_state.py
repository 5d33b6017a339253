import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from sparkle_release.core.errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class ReleaseState(Enum):
    IDLE = "idle"
    APP_LOADED = "appLoaded"
    PROCESSING = "processing"
    GENERATED = "generated"


ALLOWED_TRANSITIONS: dict[ReleaseState, set[ReleaseState]] = {
    ReleaseState.IDLE: {ReleaseState.APP_LOADED},
    ReleaseState.APP_LOADED: {ReleaseState.APP_LOADED, ReleaseState.PROCESSING},
    ReleaseState.PROCESSING: {ReleaseState.GENERATED, ReleaseState.APP_LOADED},
    ReleaseState.GENERATED: {ReleaseState.GENERATED, ReleaseState.APP_LOADED, ReleaseState.PROCESSING},
}


@dataclass(frozen=True)
class StatusSnapshot:
    state: ReleaseState
    message: str
    error: Exception | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


Subscriber = Callable[[StatusSnapshot], None]


class ReleaseStateMachine:
    """
    Current pipeline state plus a human-readable status line.

    Observers register with ``subscribe`` and receive a ``StatusSnapshot`` after every change,
    on whichever thread made it. GUI observers must marshal to their own thread.
    """

    def __init__(self, message: str = ""):
        self._lock = threading.RLock()
        self._state = ReleaseState.IDLE
        self._message = message
        self._error: Exception | None = None
        self._subscribers: list[Subscriber] = []

    @property
    def state(self) -> ReleaseState:
        return self._state

    @property
    def status_message(self) -> str:
        return self._message

    @property
    def last_error(self) -> Exception | None:
        return self._error

    def snapshot(self) -> StatusSnapshot:
        with self._lock:
            return StatusSnapshot(self._state, self._message, self._error)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def can_transition(self, new_state: ReleaseState) -> bool:
        return new_state is ReleaseState.IDLE or new_state in ALLOWED_TRANSITIONS[self._state]

    def transition(self, new_state: ReleaseState, message: str, error: Exception | None = None) -> StatusSnapshot:
        with self._lock:
            if not self.can_transition(new_state):
                raise InvalidTransitionError(f"Cannot go from {self._state.value} to {new_state.value}")
            old = self._state
            self._state, self._message, self._error = new_state, message, error
            snap = StatusSnapshot(new_state, message, error)
        if old is not new_state:
            logger.info("State %s → %s: %s", old.value, new_state.value, message)
        self._publish(snap)
        return snap

    def notify(self, message: str, error: Exception | None = None) -> StatusSnapshot:
        """Change the status line without changing state."""
        with self._lock:
            self._message, self._error = message, error
            snap = StatusSnapshot(self._state, message, error)
        self._publish(snap)
        return snap

    def _publish(self, snap: StatusSnapshot) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(snap)
            except Exception:
                logger.exception("State subscriber %r failed", callback)
