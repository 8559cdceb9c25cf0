"""Frame-quality state machine.

Samples the live source on a fixed tick, classifies each sample into a
quality tier, debounces the tier into a stable "ready" signal and fires
the capture pipeline:

    normalize -> preprocess -> dHash -> encode

In single-shot mode the result goes to the capture callback. While an
auto-consensus session is active it goes through the collector instead.

States: Idle -> Monitoring (start) -> Stopped (stop, terminal).
"""

from typing import Callable, Optional

import numpy as np

from .codec import EncodeError, encode_image
from .collector import ConsensusCollector, OfferOutcome
from .constants import CONSENSUS_TARGET_DEFAULT, CONSENSUS_TIMEOUT_MS_DEFAULT
from .logging import Logger, get_logger
from .model import (
    CaptureConfig,
    CaptureFrame,
    ConsensusResult,
    OrientationSample,
    QualitySample,
    QualityTier,
    State,
)
from .normalize import normalize_frame
from .phash import dhash
from .preprocess import preprocess
from .quality import StabilityCounter, classify, measure_quality
from .source import LiveSource, SourceError
from .timers import Clock, TimerHandle
from .validation import validate_capture_config, validate_consensus_request

# tier (None keeps the current visual class), text
StatusSink = Callable[[Optional[QualityTier], str], None]
ProgressSink = Callable[[int, int], None]
EncodeDone = Callable[[Optional[bytes]], None]
# buffer, format, quality, done(blob or None on failure)
Encoder = Callable[[np.ndarray, str, float, EncodeDone], None]

TIER_TEXT = {
    QualityTier.GOOD: "Ready to capture",
    QualityTier.MID: "Almost ready, adjust slightly",
    QualityTier.BAD: "Too blurry or glare",
}


def encode_sync(image: np.ndarray, fmt: str, quality: float, done: EncodeDone) -> None:
    """Encoder that finishes before returning."""
    done(encode_image(image, fmt, quality))


class CaptureMonitor:
    """Quality/debounce state machine driving capture.

    Single-threaded: every method runs on the thread owning the clock.
    """

    def __init__(
        self,
        source: LiveSource,
        clock: Clock,
        config: Optional[CaptureConfig] = None,
        encoder: Optional[Encoder] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            source: Live image source
            clock: Time source and scheduler
            config: Tunables (defaults if None)
            encoder: Blob encoder (synchronous Qt encoder if None)
            logger: Logger instance (uses global if None)
        """
        self._source = source
        self._clock = clock
        self._config = config or CaptureConfig()
        self._encoder = encoder or encode_sync
        self._logger = logger or get_logger()

        self._state = State.Idle
        self._ticker: Optional[TimerHandle] = None
        self._debounce = StabilityCounter(self._config.single_stability)
        self._collector = ConsensusCollector(
            clock,
            on_complete=self._on_consensus_complete,
            on_accept=self._on_frame_accepted,
            diversity_threshold=self._config.diversity_threshold,
        )

        self._generation = 0
        self._capture_in_flight = False
        self._orientation: Optional[OrientationSample] = None
        self._last_sample: Optional[QualitySample] = None
        self._last_tier: Optional[QualityTier] = None

        # Collaborators (set by the owner)
        self.on_status: Optional[StatusSink] = None
        self.on_progress: Optional[ProgressSink] = None
        self.on_capture: Optional[Callable[[CaptureFrame], None]] = None
        self.on_batch: Optional[Callable[[ConsensusResult], None]] = None
        self.on_state: Optional[Callable[[State], None]] = None

    # Properties

    @property
    def state(self) -> State:
        """Current state."""
        return self._state

    @property
    def config(self) -> CaptureConfig:
        """Active configuration."""
        return self._config

    @property
    def source(self) -> LiveSource:
        """The live source being monitored."""
        return self._source

    @property
    def good_count(self) -> int:
        """Consecutive GOOD ticks."""
        return self._debounce.count

    @property
    def last_sample(self) -> Optional[QualitySample]:
        """Metrics of the most recent scored tick."""
        return self._last_sample

    @property
    def last_tier(self) -> Optional[QualityTier]:
        """Tier of the most recent scored tick."""
        return self._last_tier

    @property
    def consensus_active(self) -> bool:
        """True while an auto-consensus session is collecting."""
        return self._collector.active

    @property
    def collector(self) -> ConsensusCollector:
        """The auto-consensus collector."""
        return self._collector

    @property
    def capture_in_flight(self) -> bool:
        """True while an encode is pending."""
        return self._capture_in_flight

    # Lifecycle

    def start(self) -> bool:
        """Acquire the source and begin ticking.

        Returns:
            True if monitoring started, False otherwise
        """
        if self._state is State.Stopped:
            self._logger.warning("Monitor already stopped, create a new one")
            return False

        if self._state is State.Monitoring:
            self._logger.warning("Monitor already running")
            return False

        validation = validate_capture_config(self._config)
        if not validation.valid:
            error_msg = "; ".join(validation.errors)
            self._logger.error(f"Invalid configuration: {error_msg}")
            self._emit_status(QualityTier.BAD, "Invalid configuration")
            return False

        try:
            self._source.open()
        except SourceError as e:
            self._logger.error(f"Source unavailable: {e}")
            self._emit_status(QualityTier.BAD, "Could not access the camera")
            return False

        self._debounce.reset()
        self._set_state(State.Monitoring)
        self._emit_status(None, "Camera started")
        self._ticker = self._clock.call_every(self._config.tick_interval_ms, self.tick)
        return True

    def stop(self) -> None:
        """Halt ticking, abort any session and release the source.

        Encodes still in flight are dropped when they complete.
        """
        if self._state is not State.Monitoring:
            return

        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

        if self._collector.active:
            self._logger.info("Auto-capture aborted")
        self._collector.abort()
        self._logger.clear_progress()

        self._generation += 1
        self._capture_in_flight = False
        self._debounce.reset()

        self._source.close()
        self._set_state(State.Stopped)
        self._emit_status(QualityTier.BAD, "Camera stopped")

    # Tick

    def tick(self) -> None:
        """Run one sampling step (called by the periodic timer)."""
        if self._state is not State.Monitoring:
            return

        try:
            frame = self._source.frame()
        except SourceError as e:
            self._logger.warning(f"Frame read failed: {e}")
            return

        sample = measure_quality(frame)
        if sample is None:
            return  # Not ready yet

        tier = classify(sample, self._config.thresholds)
        count = self._debounce.update(tier)
        self._last_sample = sample
        self._last_tier = tier

        self._logger.sampling(tier.value, sample.sharpness, sample.brightness, count)
        self._emit_status(tier, TIER_TEXT[tier])

        if self._collector.active:
            self._batch_step(frame)  # type: ignore[arg-type]
        else:
            self._single_step(frame)  # type: ignore[arg-type]

    def _single_step(self, frame: np.ndarray) -> None:
        if not self._debounce.is_stable(self._config.single_stability):
            return
        if self._capture_in_flight:
            return

        self._debounce.reset()
        self._capture(frame, session_id=None)

    def _batch_step(self, frame: np.ndarray) -> None:
        if not self._debounce.is_stable(self._config.batch_stability):
            return

        now = self._clock.now()
        # Counter is kept: a later tick retries once the cooldown is over
        if self._collector.cooling_down(now, self._config.cooldown_ms):
            return
        if self._capture_in_flight:
            return

        self._debounce.reset()
        self._collector.note_attempt(now)
        self._capture(frame, session_id=self._collector.session_id)

    # Capture pipeline

    def manual_capture(self) -> bool:
        """Capture the current frame now, whatever its tier.

        Returns:
            True if a capture was started
        """
        if self._state is not State.Monitoring:
            return False

        if self._capture_in_flight:
            self._logger.info("Capture already in progress")
            return False

        try:
            frame = self._source.frame()
        except SourceError as e:
            self._logger.warning(f"Frame read failed: {e}")
            return False

        self._emit_status(None, "Manual capture requested")
        return self._capture(frame, session_id=None)

    def _capture(self, frame: Optional[np.ndarray], session_id: Optional[int]) -> bool:
        """Normalize, preprocess, hash and hand off to the encoder."""
        buffer = normalize_frame(frame, self._config.output_size)
        if buffer is None:
            self._logger.debug("No frame available for capture")
            return False

        preprocess(buffer, self._config.smoothing)
        hash_bits = dhash(buffer, self._config.hash_size)

        generation = self._generation
        orientation = self._orientation
        self._capture_in_flight = True

        def done(blob: Optional[bytes]) -> None:
            if generation != self._generation:
                self._logger.debug("Dropping capture finished after stop")
                return

            self._capture_in_flight = False
            if blob is None:
                self._logger.error("Image encoding failed")
                return

            self._deliver(CaptureFrame(blob, hash_bits, orientation), session_id)

        try:
            self._encoder(buffer, self._config.image_format, self._config.image_quality, done)
        except EncodeError as e:
            self._capture_in_flight = False
            self._logger.error(f"Image encoding failed: {e}")
            return False

        return True

    def _deliver(self, frame: CaptureFrame, session_id: Optional[int]) -> None:
        self._logger.capture_result(frame.hash, len(frame.encoded_image))

        if session_id is None:
            self._emit_status(None, "Image captured")
            if self.on_capture is not None:
                self.on_capture(frame)
            return

        if not self._collector.active or self._collector.session_id != session_id:
            self._logger.debug("Dropping capture of a finished session")
            return

        outcome = self._collector.offer(frame)
        if outcome is OfferOutcome.REJECTED:
            self._logger.info("Frame discarded: too similar")
            self._emit_status(None, "Frame discarded: too similar")

    # Auto-consensus

    def start_auto_consensus(
        self,
        target_count: int = CONSENSUS_TARGET_DEFAULT,
        timeout_ms: int = CONSENSUS_TIMEOUT_MS_DEFAULT,
    ) -> bool:
        """Begin collecting target_count distinct frames.

        Any previous session is discarded without delivery.

        Returns:
            True if the session started
        """
        if self._state is not State.Monitoring:
            self._logger.warning("Auto-capture needs a running camera")
            return False

        validation = validate_consensus_request(target_count, timeout_ms)
        if not validation.valid:
            self._logger.error("; ".join(validation.errors))
            return False

        self._collector.start(target_count, timeout_ms)
        self._logger.set_progress(0, target_count)
        self._logger.info(f"Auto-capture started: {target_count} frames, {timeout_ms} ms")
        self._emit_progress(0, target_count)
        self._emit_status(None, f"Auto-capture: collecting {target_count} frames")
        return True

    def cancel_auto_consensus(self) -> None:
        """Drop the running session without delivering it."""
        if not self._collector.active:
            return

        self._collector.abort()
        self._logger.info("Auto-capture cancelled")
        self._logger.clear_progress()
        self._emit_status(None, "Auto-capture cancelled")

    def _on_frame_accepted(self, accepted: int, target: int) -> None:
        self._logger.set_progress(accepted, target)
        self._emit_progress(accepted, target)
        self._emit_status(None, f"Frame {accepted}/{target} accepted")

    def _on_consensus_complete(self, result: ConsensusResult) -> None:
        collected = len(result.frames)
        self._logger.consensus_result(collected, result.target_count, result.timed_out)
        self._logger.clear_progress()

        if result.timed_out:
            self._emit_status(
                None,
                f"Auto-capture timed out: {collected}/{result.target_count} frames",
            )
        else:
            self._emit_status(None, "Auto-capture complete")

        if self.on_batch is not None:
            self.on_batch(result)

    # Optional capabilities

    def toggle_torch(self) -> bool:
        """Flip the source light.

        Returns:
            True if the light was switched
        """
        if self._state is not State.Monitoring:
            return False

        torch = self._source.torch
        if torch is None or not torch.is_supported():
            self._logger.warning("Light not supported by this source")
            self._emit_status(None, "Light unavailable")
            return False

        torch.set_enabled(not torch.enabled)
        text = "Light on" if torch.enabled else "Light off"
        self._logger.info(text)
        self._emit_status(None, text)
        return True

    def update_orientation(self, sample: OrientationSample) -> None:
        """Record the latest device orientation (stamped on captures)."""
        self._orientation = sample

    # Helpers

    def _set_state(self, new_state: State) -> None:
        old_state = self._state
        self._state = new_state
        self._logger.state_change(old_state.name, new_state.name)
        if self.on_state is not None:
            self.on_state(new_state)

    def _emit_status(self, tier: Optional[QualityTier], text: str) -> None:
        if self.on_status is not None:
            self.on_status(tier, text)

    def _emit_progress(self, accepted: int, target: int) -> None:
        if self.on_progress is not None:
            self.on_progress(accepted, target)
