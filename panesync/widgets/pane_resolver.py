"""Locate the two panes to synchronize, either by selectors or by guessing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from PySide6.QtWidgets import QAbstractScrollArea, QWidget

from panesync.models.pane import (BOTH_AXES, Axis, LeftNotFound,
                                  MeasurementError, NoAutoDetectionMatch, PaneCandidate,
                                  PaneDocument, ResolutionError, RightNotFound)
from panesync.utils.flow_log import log_flow
from panesync.utils.selectors import SelectorError, SelectorList, parse_selector
from panesync.utils.strategy_loader import DetectionConfig, load_detection_config
from panesync.widgets.scroll_area_pane import ScrollAreaPane

EXPLICIT_STRATEGY = 'explicit'
FALLBACK_STRATEGY = 'fallback'


@dataclass(frozen=True)
class PaneResolution:
    left: PaneCandidate | None = None
    right: PaneCandidate | None = None
    error: ResolutionError | None = None
    strategy: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.left is not None and self.right is not None

    @property
    def reason(self) -> str | None:
        return self.error.reason if self.error is not None else None


class WidgetPaneDocument:
    """Every scroll area under `root` (root included), in creation order."""

    def __init__(self, root: QWidget):
        self._root = root

    def candidates(self) -> Iterable[PaneCandidate]:
        if isinstance(self._root, QAbstractScrollArea):
            yield ScrollAreaPane(self._root)
        for widget in self._root.findChildren(QAbstractScrollArea):
            yield ScrollAreaPane(widget)


def is_scrollable(candidate: PaneCandidate, *, min_height: int, min_width: int = 0,
                  require_policy: bool = True, axes=BOTH_AXES) -> bool:
    """Whether `candidate` overflows on one of `axes` and is large enough to be a pane.

    With `require_policy`, scrolling must not be switched off on either axis.
    """
    try:
        has_overflow = any(candidate.content_extent(axis) > candidate.visible_extent(axis)
                           for axis in axes)
        if not has_overflow:
            return False
        if require_policy and not all(candidate.overflow_enabled(axis) for axis in BOTH_AXES):
            return False
        width, height = candidate.rendered_size()
    except MeasurementError as e:
        log_flow("RESOLVER", f"Skipping {getattr(candidate, 'name', candidate)}: {e}",
                 level="DEBUG")
        return False
    return height > min_height and width > min_width


def select_all(document: PaneDocument, selector: SelectorList) -> list[PaneCandidate]:
    return [candidate for candidate in document.candidates() if selector.matches(candidate)]


def select_first(document: PaneDocument, locator: str) -> PaneCandidate | None:
    try:
        selector = parse_selector(locator)
    except SelectorError as e:
        log_flow("RESOLVER", str(e), level="WARNING")
        return None
    for candidate in document.candidates():
        if selector.matches(candidate):
            return candidate
    return None


def _resolve_explicit(document: PaneDocument, left: str, right: str) -> PaneResolution:
    left_pane = select_first(document, left)
    if left_pane is None:
        return PaneResolution(
            error=LeftNotFound(f"Left pane not found with selector: {left}"))
    right_pane = select_first(document, right)
    if right_pane is None:
        return PaneResolution(
            error=RightNotFound(f"Right pane not found with selector: {right}"))
    return PaneResolution(left_pane, right_pane, strategy=EXPLICIT_STRATEGY)


def _resolve_auto(document: PaneDocument, detection: DetectionConfig) -> PaneResolution:
    log_flow("RESOLVER", "Auto-detecting scrollable panes...")
    for strategy in detection.strategies:
        matches = select_all(document, strategy.selector)
        if len(matches) < 2:
            continue
        scrollable = [candidate for candidate in matches
                      if is_scrollable(candidate, min_height=strategy.min_height)]
        if len(scrollable) >= 2:
            log_flow("RESOLVER", f"Found scrollable panes with selector: {strategy.selector}")
            return PaneResolution(scrollable[0], scrollable[1], strategy=strategy.name)

    fallback = detection.fallback
    if fallback is not None:
        # Stricter size bar, vertical overflow only, no scrollbar policy check.
        large = [candidate for candidate in select_all(document, fallback.selector)
                 if is_scrollable(candidate, min_height=fallback.min_height,
                                  min_width=fallback.min_width, require_policy=False,
                                  axes=(Axis.VERTICAL,))]
        if len(large) >= 2:
            log_flow("RESOLVER", "Found scrollable panes using fallback method")
            return PaneResolution(large[0], large[1], strategy=FALLBACK_STRATEGY)

    return PaneResolution(error=NoAutoDetectionMatch(
        f"No strategy out of {len(detection.strategies)} found two scrollable panes"))


def resolve(document: PaneDocument, detection: DetectionConfig | None = None, *,
            left: str | None = None, right: str | None = None) -> PaneResolution:
    """Resolve the pane pair.

    Explicit mode needs both `left` and `right` locators; otherwise the
    detection strategies are tried in order and the first strategy with two
    qualifying panes wins.
    """
    if left is not None or right is not None:
        return _resolve_explicit(document, left or '', right or '')
    if detection is None:
        detection = load_detection_config()
    return _resolve_auto(document, detection)
