"""Qt adapter that exposes a QAbstractScrollArea as a pane."""

from __future__ import annotations

import shiboken6
from PySide6.QtCore import QEasingCurve, QPropertyAnimation, Qt, QUrl
from PySide6.QtWidgets import QAbstractScrollArea, QScrollBar, QWidget

from panesync.models.pane import (Axis, MeasurementError, MutationError,
                                  ScrollListener)
from panesync.utils.settings import get_smooth_duration_ms


def describe_widget(widget: QWidget) -> str:
    """Short human-readable label such as `QTextBrowser#left-document.document-pane`."""
    try:
        label = type(widget).__name__
        if widget.objectName():
            label += f"#{widget.objectName()}"
        classes = str(widget.property('class') or '').split()
        if classes:
            label += ''.join(f'.{name}' for name in classes)
        return label
    except RuntimeError:
        return '<deleted widget>'


class ScrollAreaPane:
    """Pane/PaneCandidate over a scroll area's scrollbars.

    Offsets and extents are in scrollbar units: the visible extent is the
    page step and the content extent is the scrollbar range plus one page.
    """

    def __init__(self, widget: QAbstractScrollArea):
        self._widget = widget
        self.name = describe_widget(widget)
        self._slots: dict[ScrollListener, object] = {}
        self._animations: dict[Axis, QPropertyAnimation] = {}

    @property
    def widget(self) -> QAbstractScrollArea:
        return self._widget

    def __eq__(self, other):
        return isinstance(other, ScrollAreaPane) and other._widget is self._widget

    def __hash__(self):
        return id(self._widget)

    def __repr__(self):
        return f"ScrollAreaPane({self.name})"

    def is_alive(self) -> bool:
        return shiboken6.isValid(self._widget)

    def _scroll_bar(self, axis: Axis) -> QScrollBar:
        if axis == Axis.VERTICAL:
            return self._widget.verticalScrollBar()
        return self._widget.horizontalScrollBar()

    def _measure(self, axis: Axis, reader) -> int:
        if not self.is_alive():
            raise MeasurementError(self.name, 'widget was deleted')
        try:
            return int(reader(self._scroll_bar(axis)))
        except RuntimeError as e:
            raise MeasurementError(self.name, str(e)) from e

    # ------------------------------------------------------------------
    # Pane
    # ------------------------------------------------------------------

    def scroll_offset(self, axis: Axis) -> int:
        return self._measure(axis, lambda bar: bar.value() - bar.minimum())

    def visible_extent(self, axis: Axis) -> int:
        return self._measure(axis, lambda bar: bar.pageStep())

    def content_extent(self, axis: Axis) -> int:
        return self._measure(
            axis, lambda bar: (bar.maximum() - bar.minimum()) + bar.pageStep())

    def set_scroll_offset(self, axis: Axis, value: int, *, smooth: bool = False):
        if not self.is_alive():
            raise MutationError(self.name, 'widget was deleted')
        try:
            bar = self._scroll_bar(axis)
            target = bar.minimum() + int(value)
            running = self._animations.get(axis)
            if (running is not None and shiboken6.isValid(running)
                    and running.state() == QPropertyAnimation.State.Running):
                if running.endValue() == target and smooth:
                    return
                running.stop()
            duration = get_smooth_duration_ms() if smooth else 0
            if duration <= 0 or bar.value() == target:
                bar.setValue(target)
                return
            animation = QPropertyAnimation(bar, b'value', self._widget)
            animation.setDuration(duration)
            animation.setEasingCurve(QEasingCurve.Type.OutCubic)
            animation.setStartValue(bar.value())
            animation.setEndValue(target)
            animation.start(QPropertyAnimation.DeletionPolicy.DeleteWhenStopped)
            self._animations[axis] = animation
        except RuntimeError as e:
            raise MutationError(self.name, str(e)) from e

    def add_scroll_listener(self, callback: ScrollListener):
        if callback in self._slots or not self.is_alive():
            return

        def _on_value_changed(_value):
            callback()

        self._slots[callback] = _on_value_changed
        self._widget.verticalScrollBar().valueChanged.connect(_on_value_changed)
        self._widget.horizontalScrollBar().valueChanged.connect(_on_value_changed)

    def remove_scroll_listener(self, callback: ScrollListener):
        slot = self._slots.pop(callback, None)
        if slot is None or not self.is_alive():
            return
        for bar in (self._widget.verticalScrollBar(), self._widget.horizontalScrollBar()):
            try:
                bar.valueChanged.disconnect(slot)
            except (RuntimeError, TypeError):
                # Already disconnected by Qt when the scrollbar was replaced.
                pass

    # ------------------------------------------------------------------
    # PaneCandidate
    # ------------------------------------------------------------------

    @property
    def object_name(self) -> str:
        return self._widget.objectName() if self.is_alive() else ''

    @property
    def style_classes(self) -> tuple[str, ...]:
        if not self.is_alive():
            return ()
        return tuple(str(self._widget.property('class') or '').split())

    def type_names(self) -> tuple[str, ...]:
        names = []
        meta = self._widget.metaObject() if self.is_alive() else None
        while meta is not None:
            names.append(meta.className())
            meta = meta.superClass()
        return tuple(names)

    def attribute(self, name: str) -> str | None:
        if not self.is_alive():
            return None
        value = self._widget.property(name)
        if value is None:
            return None
        if isinstance(value, QUrl):
            return value.toString()
        return str(value)

    def rendered_size(self) -> tuple[int, int]:
        if not self.is_alive() or self._widget.isHidden():
            return 0, 0
        return self._widget.width(), self._widget.height()

    def overflow_enabled(self, axis: Axis) -> bool:
        if axis == Axis.VERTICAL:
            policy = self._widget.verticalScrollBarPolicy()
        else:
            policy = self._widget.horizontalScrollBarPolicy()
        return policy != Qt.ScrollBarPolicy.ScrollBarAlwaysOff
