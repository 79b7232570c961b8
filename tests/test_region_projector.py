#!/usr/bin/env python3
"""
Unit tests for region_projector module
"""

import pytest

from promoter_finder.modules.region_projector import (
    RegionProjector,
    RegionMode,
    PromoterWindow,
    raw_window,
    clamp_window,
    project_window,
    MIN_WINDOW_LENGTH,
)


class TestRegionMode:
    """Tests for RegionMode parsing"""

    @pytest.mark.parametrize("text, mode", [
        ("D", RegionMode.DOWNSTREAM),
        ("u", RegionMode.UPSTREAM),
        ("B", RegionMode.BOTH),
        ("downstream", RegionMode.DOWNSTREAM),
        (" Both ", RegionMode.BOTH),
    ])
    def test_from_string(self, text, mode):
        assert RegionMode.from_string(text) is mode

    def test_invalid_mode(self):
        with pytest.raises(ValueError):
            RegionMode.from_string("X")


class TestRawWindow:
    """Tests for unclamped window projection"""

    def test_forward_downstream(self):
        assert raw_window(500, 600, 1, RegionMode.DOWNSTREAM, 100) == (399, 499)

    def test_forward_upstream(self):
        assert raw_window(500, 600, 1, RegionMode.UPSTREAM, 100) == (601, 701)

    def test_forward_both(self):
        assert raw_window(500, 600, 1, RegionMode.BOTH, 100) == (399, 701)

    def test_reverse_downstream(self):
        assert raw_window(500, 600, -1, RegionMode.DOWNSTREAM, 100) == (601, 701)

    def test_reverse_upstream(self):
        assert raw_window(500, 600, -1, RegionMode.UPSTREAM, 100) == (399, 499)

    def test_reverse_both_matches_forward_both(self):
        assert (raw_window(500, 600, -1, RegionMode.BOTH, 100)
                == raw_window(500, 600, 1, RegionMode.BOTH, 100))

    def test_strand_symmetry(self):
        for length in (1, 50, 2000):
            reverse_up = project_window(500, 600, -1, RegionMode.UPSTREAM, length, 10000)
            forward_down = project_window(500, 600, 1, RegionMode.DOWNSTREAM, length, 10000)
            assert (reverse_up.start, reverse_up.end) == (forward_down.start, forward_down.end)

    def test_invalid_strand(self):
        with pytest.raises(ValueError):
            raw_window(500, 600, 0, RegionMode.DOWNSTREAM, 100)


class TestClamping:
    """Tests for clamping and the minimum window size"""

    def test_clamp_start(self):
        assert clamp_window(-1001, 999, 10000) == (1, 999)

    def test_clamp_end_to_sequence_length(self):
        assert clamp_window(9000, 12000, 10000) == (9000, 10000)
        assert clamp_window(9000, 10000, 10000) == (9000, 10000)

    def test_clamp_end_below_one(self):
        assert clamp_window(-50, -3, 10000) == (1, 1)

    def test_window_near_contig_start_accepted(self):
        window = project_window(1000, 1000, 1, RegionMode.DOWNSTREAM, 2000, 10000)
        assert (window.start, window.end) == (1, 999)
        assert window.length == 998
        assert window.accepted

    def test_tiny_window_rejected(self):
        window = project_window(5, 5, 1, RegionMode.DOWNSTREAM, 2000, 10000)
        assert (window.start, window.end) == (1, 4)
        assert window.length == 3
        assert not window.accepted

    def test_minimum_length_boundary(self):
        # [1, 5] has length 4, which is still rejected
        assert not project_window(6, 6, 1, RegionMode.DOWNSTREAM, 2000, 10000).accepted
        assert project_window(7, 7, 1, RegionMode.DOWNSTREAM, 2000, 10000).length == MIN_WINDOW_LENGTH + 1
        assert project_window(7, 7, 1, RegionMode.DOWNSTREAM, 2000, 10000).accepted

    def test_window_past_contig_end_rejected(self):
        window = project_window(900, 1000, 1, RegionMode.UPSTREAM, 500, 1000)
        assert (window.start, window.end) == (1001, 1000)
        assert not window.accepted

    def test_start_after_end_rejected(self):
        with pytest.raises(ValueError):
            project_window(600, 500, 1, RegionMode.DOWNSTREAM, 100, 1000)


class TestRegionProjector:
    """Tests for the RegionProjector wrapper"""

    def test_project(self):
        projector = RegionProjector(RegionMode.UPSTREAM, 100)
        window = projector.project(500, 600, -1, 10000)
        assert window == PromoterWindow(399, 499, -1, RegionMode.UPSTREAM, 100)

    def test_project_feature(self):
        class Feature:
            start, end, strand = 500, 600, 1

        window = RegionProjector(RegionMode.BOTH, 50).project_feature(Feature(), 650)
        assert (window.start, window.end) == (449, 650)

    def test_non_positive_length(self):
        with pytest.raises(ValueError):
            RegionProjector(RegionMode.DOWNSTREAM, 0)
