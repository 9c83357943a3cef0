"""Proportional mapping between a pane's scroll offset and a 0..1 position."""

import math

from panesync.models.pane import Axis, Pane


def clamp_position(position: float) -> float:
    try:
        position = float(position)
    except (TypeError, ValueError):
        return 0.0
    if position != position:  # NaN
        return 0.0
    return max(0.0, min(1.0, position))


def scroll_range(pane: Pane, axis: Axis) -> int:
    """Largest offset the pane can scroll to (0 when content fits)."""
    return max(0, int(pane.content_extent(axis)) - int(pane.visible_extent(axis)))


def to_normalized(pane: Pane, axis: Axis) -> float:
    """Scroll progress of `pane` in [0, 1]; panes without overflow report 0."""
    offset = max(0, int(pane.scroll_offset(axis)))
    denominator = max(1, int(pane.content_extent(axis)) - int(pane.visible_extent(axis)))
    return clamp_position(offset / denominator)


def to_absolute_offset(target: Pane, axis: Axis, position: float) -> int:
    """Offset on `target` for `position`, clamped to the target's own range."""
    max_offset = scroll_range(target, axis)
    # Half-up rounding, so ties land on the same side for every pane.
    offset = math.floor(clamp_position(position) * max_offset + 0.5)
    return max(0, min(max_offset, int(offset)))


def position_from_pointer(coordinate: float, track_length: float) -> float:
    """Project a pointer coordinate along a track of `track_length` onto [0, 1]."""
    if track_length <= 0:
        return 0.0
    return clamp_position(float(coordinate) / float(track_length))


def to_percent(position: float) -> float:
    return clamp_position(position) * 100.0


def from_percent(percent: float) -> float:
    try:
        return clamp_position(float(percent) / 100.0)
    except (TypeError, ValueError):
        return 0.0
