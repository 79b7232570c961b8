#!/usr/bin/env python3
"""
Region Projector Module

Computes the promoter window flanking a feature. Coordinates are 1-based and
inclusive; the window is clamped to the contig and rejected when it is too
short to be a usable promoter.

Region modes are strand-relative:
    forward strand: Downstream = before start, Upstream = after end
    reverse strand: Downstream = after end,   Upstream = before start
    Both covers the feature plus both flanks on either strand.

Typical usage:
    projector = RegionProjector(RegionMode.DOWNSTREAM, 2000)
    window = projector.project(start=1000, end=2000, strand=1, seq_length=50000)
    if window.accepted:
        ...
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

# Windows this short or shorter are never extracted
MIN_WINDOW_LENGTH = 4

DEFAULT_WINDOW_LENGTH = 2000


class RegionMode(Enum):
    """Which flank(s) of a feature to extract"""
    DOWNSTREAM = 'D'
    UPSTREAM = 'U'
    BOTH = 'B'

    @classmethod
    def from_string(cls, value: str) -> "RegionMode":
        """Accept 'D'/'U'/'B' or the full mode name, case-insensitively."""
        text = value.strip().upper()
        for mode in cls:
            if text in (mode.value, mode.name):
                return mode
        raise ValueError(f"Invalid region mode: '{value}'. Must be one of D, U, B")


@dataclass(frozen=True)
class PromoterWindow:
    """A clamped promoter window on one contig"""
    start: int
    end: int
    strand: int
    mode: RegionMode
    requested_length: int

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def accepted(self) -> bool:
        return self.length > MIN_WINDOW_LENGTH


def raw_window(start: int, end: int, strand: int, mode: RegionMode, length: int) -> Tuple[int, int]:
    """Unclamped window coordinates for a feature at [start, end]."""
    before = (start - length - 1, start - 1)
    after = (end + 1, end + 1 + length)

    if mode is RegionMode.BOTH:
        return before[0], after[1]

    if strand == 1:
        return before if mode is RegionMode.DOWNSTREAM else after
    elif strand == -1:
        return after if mode is RegionMode.DOWNSTREAM else before
    raise ValueError(f"Invalid strand value: {strand}. Must be 1 or -1")


def clamp_window(start: int, end: int, seq_length: int) -> Tuple[int, int]:
    """Clamp window coordinates to [1, seq_length]."""
    if start <= 0:
        start = 1
    if end >= seq_length:
        end = seq_length
    elif end < 1:
        end = 1
    return start, end


def project_window(start: int, end: int, strand: int, mode: RegionMode,
                   length: int, seq_length: int) -> PromoterWindow:
    """
    Project and clamp the promoter window of a feature.

    Args:
        start: Feature start (1-based, inclusive)
        end: Feature end (1-based, inclusive), start <= end
        strand: 1 for forward, -1 for reverse
        mode: RegionMode
        length: Requested window length
        seq_length: Length of the containing contig

    Returns:
        PromoterWindow; check `accepted` before extracting
    """
    if start > end:
        raise ValueError(f"Invalid coordinates: start={start} > end={end}")

    window_start, window_end = clamp_window(
        *raw_window(start, end, strand, mode, length), seq_length
    )
    return PromoterWindow(
        start=window_start,
        end=window_end,
        strand=strand,
        mode=mode,
        requested_length=length,
    )


class RegionProjector:
    """Projects promoter windows for one region mode and window length."""

    def __init__(self, mode: RegionMode = RegionMode.DOWNSTREAM,
                 length: int = DEFAULT_WINDOW_LENGTH):
        if length <= 0:
            raise ValueError(f"Window length must be positive, got {length}")
        self.mode = mode
        self.length = length

    def project(self, start: int, end: int, strand: int, seq_length: int) -> PromoterWindow:
        return project_window(start, end, strand, self.mode, self.length, seq_length)

    def project_feature(self, feature, seq_length: int) -> PromoterWindow:
        """Project the window of anything with start, end and strand attributes."""
        return self.project(feature.start, feature.end, feature.strand, seq_length)
