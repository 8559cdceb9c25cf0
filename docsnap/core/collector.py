"""Auto-consensus collector.

Collects up to N perceptually distinct frames within a time budget.
A candidate is accepted only if its dHash is at least
`diversity_threshold` bits away from every frame already collected.
The session ends exactly once: on reaching the target, on the deadline
(partial result, not an error), or silently on abort.
"""

from enum import Enum, auto
from typing import Callable, Optional

from .constants import DIVERSITY_THRESHOLD_BITS
from .model import CaptureFrame, ConsensusResult
from .phash import is_distinct
from .timers import Clock, TimerHandle


class OfferOutcome(Enum):
    """What happened to a frame offered to the collector."""

    ACCEPTED = auto()
    REJECTED = auto()
    INACTIVE = auto()


class ConsensusCollector:
    """One auto-capture session at a time.

    Callbacks:
        on_complete(result): session finished (target reached or deadline)
        on_accept(accepted, target): a frame was added
    """

    def __init__(
        self,
        clock: Clock,
        on_complete: Callable[[ConsensusResult], None],
        on_accept: Optional[Callable[[int, int], None]] = None,
        diversity_threshold: int = DIVERSITY_THRESHOLD_BITS,
    ) -> None:
        self._clock = clock
        self._on_complete = on_complete
        self._on_accept = on_accept
        self._diversity_threshold = diversity_threshold

        self._active = False
        self._session_id = 0
        self._target_count = 0
        self._frames: list[CaptureFrame] = []
        self._deadline_at: Optional[float] = None
        self._last_attempt_at: Optional[float] = None
        self._deadline_timer: Optional[TimerHandle] = None

    @property
    def active(self) -> bool:
        """True while a session is collecting."""
        return self._active

    @property
    def session_id(self) -> int:
        """Identifier of the current (or last) session."""
        return self._session_id

    @property
    def target_count(self) -> int:
        """Frames requested by the current session."""
        return self._target_count

    @property
    def accepted_count(self) -> int:
        """Frames accepted so far."""
        return len(self._frames)

    @property
    def frames(self) -> list[CaptureFrame]:
        """Copy of the accepted frames, in acceptance order."""
        return list(self._frames)

    @property
    def deadline_at(self) -> Optional[float]:
        """Clock time at which the session times out."""
        return self._deadline_at

    @property
    def last_attempt_at(self) -> Optional[float]:
        """Clock time of the last capture attempt, accepted or not."""
        return self._last_attempt_at

    def start(self, target_count: int, timeout_ms: int) -> None:
        """Begin a new session, discarding any previous one.

        Args:
            target_count: Number of distinct frames wanted (> 0)
            timeout_ms: Time budget (> 0)
        """
        if target_count <= 0:
            raise ValueError(f"Target count must be positive: {target_count}")

        self._cancel_deadline()
        self._session_id += 1
        self._frames = []
        self._target_count = target_count
        self._last_attempt_at = None
        self._deadline_at = self._clock.now() + timeout_ms
        self._active = True
        self._deadline_timer = self._clock.call_later(timeout_ms, self._on_deadline)

    def cooling_down(self, now: float, cooldown_ms: float) -> bool:
        """Check whether the last attempt was less than cooldown_ms ago."""
        if self._last_attempt_at is None:
            return False
        return now - self._last_attempt_at < cooldown_ms

    def note_attempt(self, now: float) -> None:
        """Record a capture attempt for the cooldown."""
        self._last_attempt_at = now

    def offer(self, frame: CaptureFrame) -> OfferOutcome:
        """Offer a captured frame to the session.

        Returns:
            ACCEPTED if added, REJECTED if too similar to a collected
            frame, INACTIVE if no session is running
        """
        if not self._active:
            return OfferOutcome.INACTIVE

        known = [f.hash for f in self._frames]
        if not is_distinct(frame.hash, known, self._diversity_threshold):
            return OfferOutcome.REJECTED

        self._frames.append(frame)
        if self._on_accept is not None:
            self._on_accept(len(self._frames), self._target_count)

        if len(self._frames) >= self._target_count:
            self._finalize(timed_out=False)

        return OfferOutcome.ACCEPTED

    def abort(self) -> None:
        """Drop the session without delivering anything."""
        self._cancel_deadline()
        self._active = False
        self._frames = []
        self._deadline_at = None
        self._last_attempt_at = None

    def _on_deadline(self) -> None:
        self._deadline_timer = None
        if self._active:
            self._finalize(timed_out=True)

    def _finalize(self, timed_out: bool) -> None:
        self._cancel_deadline()
        self._active = False
        result = ConsensusResult(
            frames=list(self._frames),
            target_count=self._target_count,
            timed_out=timed_out,
        )
        self._frames = []
        self._deadline_at = None
        self._on_complete(result)

    def _cancel_deadline(self) -> None:
        if self._deadline_timer is not None:
            self._deadline_timer.cancel()
            self._deadline_timer = None
