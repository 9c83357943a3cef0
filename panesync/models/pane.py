"""Pane capabilities shared by the resolver, sync engine and middle bar."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable, Protocol


class Axis(str, Enum):
    VERTICAL = 'vertical'
    HORIZONTAL = 'horizontal'


BOTH_AXES = (Axis.VERTICAL, Axis.HORIZONTAL)

ScrollListener = Callable[[], None]


class Pane(Protocol):
    """A scrollable region whose offset and extents can be read and written.

    Offsets and extents are expressed in the pane's own scroll units. Hosts
    clamp offsets to `0 <= offset <= content - visible`.
    """

    name: str

    def scroll_offset(self, axis: Axis) -> int: ...

    def visible_extent(self, axis: Axis) -> int: ...

    def content_extent(self, axis: Axis) -> int: ...

    def set_scroll_offset(self, axis: Axis, value: int, *, smooth: bool = False) -> None: ...

    def add_scroll_listener(self, callback: ScrollListener) -> None: ...

    def remove_scroll_listener(self, callback: ScrollListener) -> None: ...


class PaneCandidate(Pane, Protocol):
    """A pane that can also be matched by selectors during discovery."""

    object_name: str
    style_classes: tuple[str, ...]

    def type_names(self) -> tuple[str, ...]: ...

    def attribute(self, name: str) -> str | None: ...

    def rendered_size(self) -> tuple[int, int]: ...

    def overflow_enabled(self, axis: Axis) -> bool: ...


class PaneDocument(Protocol):
    def candidates(self) -> Iterable[PaneCandidate]:
        """Yield every discoverable pane in document order."""
        ...


class PaneSyncError(Exception):
    pass


class ResolutionError(PaneSyncError):
    reason = 'resolution-failed'

    def __init__(self, detail: str = ''):
        super().__init__(detail or self.reason)
        self.detail = detail


class NoAutoDetectionMatch(ResolutionError):
    reason = 'auto-detect-failed'


class LeftNotFound(ResolutionError):
    reason = 'left-not-found'


class RightNotFound(ResolutionError):
    reason = 'right-not-found'


class MeasurementError(PaneSyncError):
    """Reading scroll metrics from a pane that is gone from the document."""

    def __init__(self, pane_name: str, message: str = ''):
        super().__init__(f"{pane_name}: {message or 'measurement failed'}")
        self.pane_name = pane_name


class MutationError(PaneSyncError):
    """Writing a scroll offset to a pane that is gone from the document."""

    def __init__(self, pane_name: str, message: str = ''):
        super().__init__(f"{pane_name}: {message or 'mutation failed'}")
        self.pane_name = pane_name
