"""Tests for the auto-consensus collector.

Verifies that:
- A session finalizes exactly once, on target or on deadline
- Near-duplicate frames are rejected
- Abort discards silently
- Accepted frames stay pairwise distinct and never exceed the target
"""

import random

import pytest

from docsnap.core.collector import ConsensusCollector, OfferOutcome
from docsnap.core.model import CaptureFrame, ConsensusResult
from docsnap.core.phash import hamming


def _block_hash(index: int, width: int = 10) -> str:
    """64-bit hash with bits [index*width, (index+1)*width) set.

    Two different block hashes are 2*width bits apart.
    """
    bits = ["0"] * 64
    for i in range(index * width, (index + 1) * width):
        bits[i] = "1"
    return "".join(bits)


def _frame(hash_bits: str, tag: bytes = b"img") -> CaptureFrame:
    return CaptureFrame(encoded_image=tag, hash=hash_bits)


@pytest.fixture
def results() -> list[ConsensusResult]:
    return []


@pytest.fixture
def collector(clock, results) -> ConsensusCollector:
    return ConsensusCollector(clock, on_complete=results.append)


class TestSessionLifecycle:
    """Tests for start, completion and timeout."""

    def test_inactive_until_started(self, collector: ConsensusCollector) -> None:
        assert not collector.active
        assert collector.offer(_frame(_block_hash(0))) is OfferOutcome.INACTIVE

    def test_start_sets_deadline(self, clock, collector: ConsensusCollector) -> None:
        clock.advance(1000)
        collector.start(5, 15000)
        assert collector.active
        assert collector.target_count == 5
        assert collector.deadline_at == 16000

    def test_non_positive_target_raises(self, collector: ConsensusCollector) -> None:
        with pytest.raises(ValueError):
            collector.start(0, 1000)

    def test_success_path_delivers_in_order(
        self, clock, collector: ConsensusCollector, results: list[ConsensusResult]
    ) -> None:
        """Five hashes 20 bits apart finish the session before the deadline."""
        collector.start(5, 15000)

        for i in range(5):
            clock.advance(900)
            assert collector.offer(_frame(_block_hash(i), bytes([i]))) is OfferOutcome.ACCEPTED

        assert len(results) == 1
        result = results[0]
        assert not result.timed_out
        assert result.complete
        assert [f.hash for f in result.frames] == [_block_hash(i) for i in range(5)]
        assert [f.encoded_image for f in result.frames] == [bytes([i]) for i in range(5)]
        assert not collector.active

    def test_deadline_after_completion_does_nothing(
        self, clock, collector: ConsensusCollector, results: list[ConsensusResult]
    ) -> None:
        """The deadline is cancelled once the target is reached."""
        collector.start(1, 5000)
        collector.offer(_frame(_block_hash(0)))
        clock.advance(10000)
        assert len(results) == 1
        assert clock.pending == 0

    def test_timeout_path_delivers_partial(
        self, clock, collector: ConsensusCollector, results: list[ConsensusResult]
    ) -> None:
        """Two accepted frames, then the deadline fires."""
        collector.start(5, 15000)
        collector.offer(_frame(_block_hash(0)))
        collector.offer(_frame(_block_hash(1)))

        clock.advance(14999)
        assert results == []

        clock.advance(1)
        assert len(results) == 1
        assert results[0].timed_out
        assert results[0].target_count == 5
        assert len(results[0].frames) == 2
        assert not results[0].complete

    def test_timeout_with_nothing_collected(
        self, clock, collector: ConsensusCollector, results: list[ConsensusResult]
    ) -> None:
        """An empty timeout is a result, not an error."""
        collector.start(3, 2000)
        clock.advance(2000)
        assert len(results) == 1
        assert results[0].frames == []
        assert results[0].timed_out

    def test_offer_after_finalize_is_inactive(
        self, clock, collector: ConsensusCollector, results: list[ConsensusResult]
    ) -> None:
        collector.start(5, 1000)
        clock.advance(1000)
        assert collector.offer(_frame(_block_hash(0))) is OfferOutcome.INACTIVE
        assert len(results) == 1


class TestDiversity:
    """Tests for near-duplicate rejection."""

    def test_close_hash_is_rejected(self, collector: ConsensusCollector) -> None:
        """A hash 5 bits from a collected one is discarded."""
        base = _block_hash(0)
        near = base[:50] + "1" * 5 + base[55:]
        assert hamming(base, near) == 5

        collector.start(5, 15000)
        assert collector.offer(_frame(base)) is OfferOutcome.ACCEPTED
        assert collector.offer(_frame(near)) is OfferOutcome.REJECTED
        assert collector.accepted_count == 1

    def test_threshold_distance_is_accepted(self, collector: ConsensusCollector) -> None:
        """Exactly 12 bits apart is distinct enough."""
        base = "0" * 64
        collector.start(5, 15000)
        collector.offer(_frame(base))
        assert collector.offer(_frame("1" * 12 + "0" * 52)) is OfferOutcome.ACCEPTED

    def test_custom_threshold(self, clock, results: list[ConsensusResult]) -> None:
        collector = ConsensusCollector(clock, results.append, diversity_threshold=30)
        collector.start(5, 15000)
        collector.offer(_frame(_block_hash(0)))
        assert collector.offer(_frame(_block_hash(1))) is OfferOutcome.REJECTED

    def test_random_offers_keep_invariants(self, clock, results: list[ConsensusResult]) -> None:
        """Whatever is offered, accepted frames are pairwise distinct and bounded."""
        rng = random.Random(1234)
        collector = ConsensusCollector(clock, results.append)
        collector.start(6, 60000)

        for _ in range(300):
            if not collector.active:
                break
            bits = "".join(rng.choice("01") for _ in range(64))
            collector.offer(_frame(bits))
            frames = collector.frames
            assert len(frames) <= 6
            for i, a in enumerate(frames):
                for b in frames[i + 1:]:
                    assert hamming(a.hash, b.hash) >= 12

        assert len(results) == 1
        assert len(results[0].frames) <= 6


class TestAbortAndRestart:
    """Tests for abort and session replacement."""

    def test_abort_discards_without_callback(
        self, clock, collector: ConsensusCollector, results: list[ConsensusResult]
    ) -> None:
        collector.start(5, 1000)
        collector.offer(_frame(_block_hash(0)))
        collector.abort()

        clock.advance(5000)

        assert results == []
        assert not collector.active
        assert collector.frames == []
        assert clock.pending == 0

    def test_restart_discards_previous_session(
        self, clock, collector: ConsensusCollector, results: list[ConsensusResult]
    ) -> None:
        """A new start drops the old frames and the old deadline."""
        collector.start(5, 1000)
        first_id = collector.session_id
        collector.offer(_frame(_block_hash(0)))

        collector.start(5, 3000)
        assert collector.session_id != first_id
        assert collector.accepted_count == 0

        clock.advance(1000)
        assert results == []
        clock.advance(2000)
        assert len(results) == 1

    def test_accept_callback_reports_progress(self, clock) -> None:
        progress: list[tuple[int, int]] = []
        collector = ConsensusCollector(
            clock,
            on_complete=lambda r: None,
            on_accept=lambda n, t: progress.append((n, t)),
        )
        collector.start(2, 1000)
        collector.offer(_frame(_block_hash(0)))
        collector.offer(_frame(_block_hash(0)))
        collector.offer(_frame(_block_hash(1)))
        assert progress == [(1, 2), (2, 2)]


class TestCooldown:
    """Tests for attempt bookkeeping."""

    def test_no_cooldown_before_first_attempt(self, collector: ConsensusCollector) -> None:
        collector.start(5, 15000)
        assert not collector.cooling_down(0, 800)

    def test_cooldown_window(self, collector: ConsensusCollector) -> None:
        collector.start(5, 15000)
        collector.note_attempt(600)
        assert collector.last_attempt_at == 600
        assert collector.cooling_down(1200, 800)
        assert not collector.cooling_down(1400, 800)
