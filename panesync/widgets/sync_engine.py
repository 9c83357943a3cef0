"""
Bidirectional proportional scroll synchronization between two panes.

Design:
  1. One scroll listener per pane. A scroll on either side reads the source
     pane's normalized position on every axis, then writes the matching
     offset to the other pane.
  2. Writing to the target makes the host fire a scroll event on the target.
     The engine stays suspended for a short settle window after each write so
     that echo is ignored instead of bouncing back onto the source.
  3. Events landing while suspended are dropped, not queued. When the
     window ends and the last source has moved since the write, the target
     is brought up to date once more.

A generation counter guards the settle callback: once the binding changes or
is torn down, a late settle callback does nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial

from PySide6.QtCore import QObject, QTimer, Signal

from panesync.models.pane import (BOTH_AXES, Axis, MeasurementError,
                                  MutationError, Pane, ScrollListener)
from panesync.utils.flow_log import log_flow
from panesync.utils.scroll_metrics import to_absolute_offset, to_normalized
from panesync.utils.settings import get_settle_ms


@dataclass
class SyncState:
    enabled: bool = True
    suspended: bool = False


@dataclass
class PaneBinding:
    pane_a: Pane
    pane_b: Pane
    listener_a: ScrollListener
    listener_b: ScrollListener


class ScrollSyncEngine(QObject):
    """Keeps two panes at the same relative scroll position."""

    enabled_changed = Signal(bool)
    propagated = Signal(str)  # Source pane name
    sync_failed = Signal(str, str)  # Pane name, message

    def __init__(self, parent=None, *, settle_ms: int | None = None,
                 axes: tuple[Axis, ...] = BOTH_AXES):
        super().__init__(parent)
        self._settle_ms = get_settle_ms() if settle_ms is None else max(0, int(settle_ms))
        self._axes = tuple(axes)
        self._state = SyncState()
        self._binding: PaneBinding | None = None
        self._generation = 0
        # Source and its offsets as of the last write, checked when the window ends.
        self._last_source: tuple[Pane, Pane, dict[Axis, int]] | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> SyncState:
        return SyncState(self._state.enabled, self._state.suspended)

    @property
    def enabled(self) -> bool:
        return self._state.enabled

    @property
    def binding(self) -> PaneBinding | None:
        return self._binding

    @property
    def is_bound(self) -> bool:
        return self._binding is not None

    @property
    def axes(self) -> tuple[Axis, ...]:
        return self._axes

    @property
    def settle_ms(self) -> int:
        return self._settle_ms

    def bind(self, pane_a: Pane, pane_b: Pane):
        """Attach one scroll listener per pane, replacing any previous binding."""
        self.unbind()
        listener_a = partial(self._on_pane_scrolled, pane_a, pane_b)
        listener_b = partial(self._on_pane_scrolled, pane_b, pane_a)
        pane_a.add_scroll_listener(listener_a)
        pane_b.add_scroll_listener(listener_b)
        self._binding = PaneBinding(pane_a, pane_b, listener_a, listener_b)
        log_flow("SYNC", f"Scroll synchronization bound: {pane_a.name} <-> {pane_b.name}")

    def unbind(self):
        """Remove both listeners. Safe to call when nothing is bound."""
        binding = self._binding
        self._binding = None
        self._generation += 1
        self._state.suspended = False
        self._last_source = None
        if binding is None:
            return
        for pane, listener in ((binding.pane_a, binding.listener_a),
                               (binding.pane_b, binding.listener_b)):
            try:
                pane.remove_scroll_listener(listener)
            except RuntimeError as e:
                self._report(pane, f"Listener removal failed: {e}")
        log_flow("SYNC", "Scroll synchronization unbound")

    def set_enabled(self, enabled: bool):
        enabled = bool(enabled)
        if enabled == self._state.enabled:
            return
        self._state.enabled = enabled
        log_flow("SYNC", "Scroll sync enabled" if enabled else "Scroll sync disabled")
        self.enabled_changed.emit(enabled)

    def toggle(self) -> bool:
        self.set_enabled(not self._state.enabled)
        return self._state.enabled

    # ------------------------------------------------------------------
    # Propagation
    # ------------------------------------------------------------------

    def _on_pane_scrolled(self, source: Pane, target: Pane):
        if self._binding is None or not self._state.enabled or self._state.suspended:
            return
        self._state.suspended = True
        wrote = self._propagate(source, target)
        if not wrote:
            self._state.suspended = False
            self._last_source = None
            return
        self._last_source = (source, target, self._offsets(source))
        QTimer.singleShot(self._settle_ms, partial(self._on_settled, self._generation))

    def _propagate(self, source: Pane, target: Pane) -> bool:
        """Run one propagation pass; returns whether anything was written."""
        try:
            positions = {axis: to_normalized(source, axis) for axis in self._axes}
        except MeasurementError as e:
            self._report(source, f"Error during scroll sync: {e}")
            return False

        wrote = False
        for axis, position in positions.items():
            try:
                offset = to_absolute_offset(target, axis, position)
                if offset == target.scroll_offset(axis):
                    continue
                target.set_scroll_offset(axis, offset)
                wrote = True
            except (MeasurementError, MutationError) as e:
                self._report(target, f"Error during scroll sync: {e}")
                break
        if wrote:
            summary = ", ".join(f"{axis.value}={position:.3f}" for axis, position in positions.items())
            log_flow("SYNC", f"{source.name} -> {target.name} ({summary})",
                     level="DEBUG", throttle_key="sync_propagate", every_s=0.25)
            self.propagated.emit(source.name)
        return wrote

    def _offsets(self, pane: Pane) -> dict[Axis, int]:
        try:
            return {axis: pane.scroll_offset(axis) for axis in self._axes}
        except MeasurementError:
            return {}

    def _on_settled(self, generation: int):
        if generation != self._generation or self._binding is None:
            return
        self._state.suspended = False
        last, self._last_source = self._last_source, None
        if last is None:
            return
        source, target, offsets = last
        # The source kept moving while its events were dropped (e.g. a smooth
        # scroll animation), so bring the target up to where it stopped.
        if self._offsets(source) != offsets:
            self._on_pane_scrolled(source, target)

    def _report(self, pane: Pane, message: str):
        name = getattr(pane, 'name', repr(pane))
        log_flow("SYNC", message, level="ERROR")
        self.sync_failed.emit(name, message)
