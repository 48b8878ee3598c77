"""
Framing Module Tests

Tests for block count, block offsets and block iteration.
Ensures every block fits inside the input.
"""

import numpy as np
import pytest

from pcp_signals import framing


class TestHopSize:
    """Tests for compute_hop_size."""

    def test_half_window(self):
        assert framing.compute_hop_size(1024) == 512

    def test_custom_divisor(self):
        assert framing.compute_hop_size(1024, 4) == 256

    def test_minimum_one(self):
        assert framing.compute_hop_size(2, 4) == 1

    def test_invalid_divisor(self):
        with pytest.raises(ValueError):
            framing.compute_hop_size(1024, 0)


class TestBlockCount:
    """Tests for compute_block_count."""

    def test_basic_calculation(self):
        """1024 samples, 256 window, 128 hop -> 7 blocks."""
        assert framing.compute_block_count(1024, 256, 128) == 7

    def test_exact_single_block(self):
        assert framing.compute_block_count(64, 64, 32) == 1

    def test_too_short(self):
        assert framing.compute_block_count(63, 64, 32) == 0

    def test_partial_hop_is_dropped(self):
        """A trailing partial block is not counted."""
        assert framing.compute_block_count(64 + 31, 64, 32) == 1
        assert framing.compute_block_count(64 + 32, 64, 32) == 2

    def test_last_block_within_input(self):
        """Final block ends at or before the last sample."""
        for sample_count in range(64, 1000, 37):
            n = framing.compute_block_count(sample_count, 64, 32)
            assert (n - 1) * 32 + 64 <= sample_count

    def test_monotonic_in_sample_count(self):
        """More samples never give fewer blocks."""
        counts = [framing.compute_block_count(s, 128, 64) for s in range(0, 2000, 13)]
        assert all(b >= a for a, b in zip(counts, counts[1:]))

    def test_zero_window(self):
        assert framing.compute_block_count(1000, 0, 1) == 0

    def test_zero_hop(self):
        assert framing.compute_block_count(1000, 64, 0) == 0


class TestBlockIteration:
    """Tests for block_starts and iter_blocks."""

    def test_block_starts(self):
        starts = framing.block_starts(256, 64, 32)
        np.testing.assert_array_equal(starts, [0, 32, 64, 96, 128, 160, 192])

    def test_empty_when_too_short(self):
        assert len(framing.block_starts(10, 64, 32)) == 0
        assert list(framing.iter_blocks(np.zeros(10), 10, 64, 32)) == []

    def test_block_contents(self):
        samples = np.arange(128, dtype=np.float32)
        blocks = list(framing.iter_blocks(samples, 128, 64, 32))

        assert len(blocks) == 3
        np.testing.assert_array_equal(blocks[1], np.arange(32, 96))

    def test_blocks_are_copies(self):
        """Modifying a block does not touch the input."""
        samples = np.ones(128, dtype=np.float32)
        for block in framing.iter_blocks(samples, 128, 64, 32):
            block *= 0.0

        np.testing.assert_array_equal(samples, np.ones(128))

    def test_sample_count_limits_blocks(self):
        """Samples past sample_count are ignored."""
        samples = np.zeros(1024, dtype=np.float32)
        blocks = list(framing.iter_blocks(samples, 128, 64, 32))
        assert len(blocks) == 3

    def test_blocks_are_float32(self):
        samples = np.arange(64, dtype=np.float64)
        block = next(framing.iter_blocks(samples, 64, 64, 32))
        assert block.dtype == np.float32
