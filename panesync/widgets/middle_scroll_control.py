"""Middle scroll bar that drives both panes from one normalized position."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from PySide6.QtCore import QEvent, QObject, QPoint, QRectF, Qt, Signal, Slot
from PySide6.QtGui import QColor, QLinearGradient, QMouseEvent, QPainter, QPen
from PySide6.QtWidgets import (QApplication, QFrame, QHBoxLayout, QLabel,
                               QStyle, QToolButton, QVBoxLayout, QWidget)

from panesync.models.pane import Axis, MeasurementError, MutationError, Pane
from panesync.utils.flow_log import log_flow
from panesync.utils.scroll_metrics import (clamp_position, from_percent,
                                           position_from_pointer, to_absolute_offset,
                                           to_normalized, to_percent)
from panesync.utils.settings import get_smooth_scroll, get_step_percent


@dataclass
class DragState:
    active: bool = False
    last_position: float = 0.0


class PointerScope(Protocol):
    """Process-wide pointer listeners installed for the duration of a drag."""

    def install(self, on_move: Callable[[float], None], on_release: Callable[[], None]) -> None: ...

    def remove(self) -> None: ...


class MiddleScrollController(QObject):
    """Holds the shared position and pushes it into both panes.

    The displayed position mirrors the reference (left) pane. It is updated
    optimistically by `set_position` and re-read whenever the reference pane
    scrolls, whoever caused the scroll.
    """

    position_changed = Signal(float)  # Percent, 0-100
    drag_state_changed = Signal(bool)
    sync_failed = Signal(str, str)  # Pane name, message

    def __init__(self, parent=None, *, axis: Axis = Axis.VERTICAL,
                 step_percent: float | None = None, smooth: bool | None = None,
                 pointer_scope: PointerScope | None = None):
        super().__init__(parent)
        self._axis = axis
        self._step_percent = get_step_percent() if step_percent is None else float(step_percent)
        self._smooth = get_smooth_scroll() if smooth is None else bool(smooth)
        self._pointer_scope = pointer_scope
        self._left: Pane | None = None
        self._right: Pane | None = None
        self._position = 0.0
        self._drag = DragState()

    # ------------------------------------------------------------------
    # Panes
    # ------------------------------------------------------------------

    def set_pointer_scope(self, pointer_scope: PointerScope | None):
        if self._pointer_scope is not None and self._drag.active:
            self._pointer_scope.remove()
        self._pointer_scope = pointer_scope

    def attach(self, left: Pane, right: Pane):
        """Drive `left` and `right`; the left pane is the displayed reference."""
        self.detach()
        self._left = left
        self._right = right
        left.add_scroll_listener(self.refresh_from_reference)
        self.refresh_from_reference()

    def detach(self):
        if self._left is not None:
            try:
                self._left.remove_scroll_listener(self.refresh_from_reference)
            except RuntimeError as e:
                log_flow("MIDDLE", f"Listener removal failed: {e}", level="WARNING")
        self._left = None
        self._right = None

    def teardown(self):
        """End any drag and drop both panes, whatever state the drag is in."""
        self._end_drag()
        self.detach()

    @property
    def panes(self) -> tuple[Pane | None, Pane | None]:
        return self._left, self._right

    # ------------------------------------------------------------------
    # Position
    # ------------------------------------------------------------------

    @property
    def position(self) -> float:
        return self._position

    @property
    def percent(self) -> float:
        return to_percent(self._position)

    @property
    def drag_state(self) -> DragState:
        return DragState(self._drag.active, self._drag.last_position)

    def set_position(self, position: float):
        """Scroll both panes to `position` and show it right away."""
        position = clamp_position(position)
        for pane in (self._left, self._right):
            if pane is None:
                continue
            try:
                offset = to_absolute_offset(pane, self._axis, position)
                if offset != pane.scroll_offset(self._axis):
                    pane.set_scroll_offset(self._axis, offset, smooth=self._smooth)
            except (MeasurementError, MutationError) as e:
                message = f"Error while scrolling to {to_percent(position):.0f}%: {e}"
                log_flow("MIDDLE", message, level="ERROR")
                self.sync_failed.emit(getattr(pane, 'name', repr(pane)), message)
        self._drag.last_position = position
        self._display(position)

    def refresh_from_reference(self):
        if self._left is None:
            return
        try:
            position = to_normalized(self._left, self._axis)
        except MeasurementError as e:
            log_flow("MIDDLE", f"Could not read reference pane: {e}", level="ERROR")
            self.sync_failed.emit(self._left.name, str(e))
            return
        self._display(position)

    def _display(self, position: float):
        if position == self._position:
            return
        self._position = position
        self.position_changed.emit(to_percent(position))

    # ------------------------------------------------------------------
    # Pointer interaction
    # ------------------------------------------------------------------

    def pointer_down(self, position: float):
        if not self._drag.active:
            self._drag.active = True
            if self._pointer_scope is not None:
                self._pointer_scope.install(self.pointer_move, self.pointer_up)
            self.drag_state_changed.emit(True)
        self.set_position(position)

    def pointer_move(self, position: float):
        if not self._drag.active:
            return
        self.set_position(position)

    def pointer_up(self):
        self._end_drag()

    def click(self, position: float):
        self.pointer_down(position)
        self.pointer_up()

    def _end_drag(self):
        if not self._drag.active:
            return
        self._drag.active = False
        if self._pointer_scope is not None:
            self._pointer_scope.remove()
        self.drag_state_changed.emit(False)

    # ------------------------------------------------------------------
    # Buttons
    # ------------------------------------------------------------------

    def step_up(self):
        self.set_position(from_percent(max(0.0, self.percent - self._step_percent)))

    def step_down(self):
        self.set_position(from_percent(min(100.0, self.percent + self._step_percent)))

    def reset(self):
        self.set_position(0.0)


class ApplicationPointerScope(QObject):
    """Application-wide event filter that follows a drag off the track."""

    def __init__(self, track: MiddleScrollTrack):
        super().__init__(track)
        self._track = track
        self._on_move: Callable[[float], None] | None = None
        self._on_release: Callable[[], None] | None = None
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self, on_move, on_release):
        self.remove()
        app = QApplication.instance()
        if app is None:
            return
        self._on_move = on_move
        self._on_release = on_release
        app.installEventFilter(self)
        self._installed = True

    def remove(self):
        if self._installed:
            app = QApplication.instance()
            if app is not None:
                app.removeEventFilter(self)
        self._installed = False
        self._on_move = None
        self._on_release = None

    def eventFilter(self, watched, event):
        event_type = event.type()
        if event_type == QEvent.Type.MouseMove and isinstance(event, QMouseEvent):
            if self._on_move is not None:
                self._on_move(self._track.position_at_global(event.globalPosition().toPoint()))
        elif event_type == QEvent.Type.MouseButtonRelease:
            if self._on_release is not None:
                self._on_release()
        elif event_type == QEvent.Type.ApplicationDeactivate:
            # The release may happen outside every window and never reach us.
            if self._on_release is not None:
                self._on_release()
        return False


class MiddleScrollTrack(QWidget):
    """Vertical track: click or drag to scroll both documents."""

    def __init__(self, controller: MiddleScrollController, parent=None):
        super().__init__(parent)
        self._controller = controller
        self._pointer_scope = ApplicationPointerScope(self)
        controller.set_pointer_scope(self._pointer_scope)
        controller.position_changed.connect(lambda _percent: self.update())
        self._indicator_height = 20
        self.setMinimumSize(40, 120)
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.setToolTip('Click or drag to scroll both documents')

    @property
    def pointer_scope(self) -> ApplicationPointerScope:
        return self._pointer_scope

    def position_at_global(self, global_pos: QPoint) -> float:
        local = self.mapFromGlobal(global_pos)
        return position_from_pointer(local.y(), self.height())

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            y = event.position().y()
            self._controller.pointer_down(position_from_pointer(y, self.height()))
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self._controller.pointer_up()
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def hideEvent(self, event):
        self._controller.pointer_up()
        super().hideEvent(event)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        rect = QRectF(self.rect()).adjusted(1, 1, -1, -1)

        gradient = QLinearGradient(rect.topLeft(), rect.bottomLeft())
        gradient.setColorAt(0.0, QColor(243, 244, 246))
        gradient.setColorAt(1.0, QColor(229, 231, 235))
        painter.setBrush(gradient)
        painter.setPen(QPen(QColor(209, 213, 219), 2))
        painter.drawRoundedRect(rect, 8, 8)

        # Grid line every 10%.
        painter.setPen(QPen(QColor(156, 163, 175, 80), 1))
        for step in range(1, 10):
            y = rect.top() + rect.height() * step / 10
            painter.drawLine(int(rect.left()), int(y), int(rect.right()), int(y))

        painter.setPen(QColor(107, 114, 128))
        font = painter.font()
        font.setPointSize(max(6, font.pointSize() - 2))
        painter.setFont(font)
        painter.drawText(rect.adjusted(3, 2, 0, 0), Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop, '0%')
        painter.drawText(rect.adjusted(3, 0, 0, 0), Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter, '50%')
        painter.drawText(rect.adjusted(3, 0, 0, -2), Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignBottom, '100%')

        # Indicator centered on the current position.
        center_y = rect.top() + rect.height() * self._controller.position
        indicator = QRectF(rect.left() + 4, center_y - self._indicator_height / 2,
                           rect.width() - 8, self._indicator_height)
        painter.setPen(QPen(QColor(37, 99, 235), 1))
        painter.setBrush(QColor(59, 130, 246))
        painter.drawRoundedRect(indicator, 3, 3)


class MiddleScrollBar(QWidget):
    """Panel between the two documents: header, step buttons, track and hints."""

    def __init__(self, parent=None, *, controller: MiddleScrollController | None = None):
        super().__init__(parent)
        self.controller = controller if controller is not None else MiddleScrollController(self)
        self.setObjectName('middle-scroll-bar')
        self.setFixedWidth(96)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(6)

        header = QHBoxLayout()
        title = QLabel('Common Scroll')
        title.setStyleSheet('font-size: 11px; font-weight: bold; color: #4B5563;')
        header.addWidget(title)
        self.preview_button = QToolButton()
        self.preview_button.setCheckable(True)
        self.preview_button.setText('👁')
        self.preview_button.setToolTip('Show preview')
        self.preview_button.toggled.connect(self.set_preview_visible)
        header.addWidget(self.preview_button)
        layout.addLayout(header)

        style = self.style()
        self.up_button = QToolButton()
        self.up_button.setIcon(style.standardIcon(QStyle.StandardPixmap.SP_ArrowUp))
        self.up_button.setToolTip('Scroll up')
        self.up_button.clicked.connect(self.controller.step_up)
        self.percent_label = QLabel('0%')
        self.percent_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.percent_label.setStyleSheet('font-size: 11px; color: #6B7280;')
        self.down_button = QToolButton()
        self.down_button.setIcon(style.standardIcon(QStyle.StandardPixmap.SP_ArrowDown))
        self.down_button.setToolTip('Scroll down')
        self.down_button.clicked.connect(self.controller.step_down)
        self.reset_button = QToolButton()
        self.reset_button.setIcon(style.standardIcon(QStyle.StandardPixmap.SP_BrowserReload))
        self.reset_button.setToolTip('Reset to top')
        self.reset_button.clicked.connect(self.controller.reset)
        for widget in (self.up_button, self.percent_label, self.down_button, self.reset_button):
            layout.addWidget(widget, 0, Qt.AlignmentFlag.AlignHCenter)

        self.track = MiddleScrollTrack(self.controller, self)
        layout.addWidget(self.track, 1)

        self.preview_panel = QFrame()
        self.preview_panel.setFrameShape(QFrame.Shape.StyledPanel)
        preview_layout = QVBoxLayout(self.preview_panel)
        preview_layout.setContentsMargins(4, 4, 4, 4)
        preview_layout.addWidget(QLabel('Document Preview'))
        documents = QHBoxLayout()
        self.left_preview_label = QLabel('Left Doc')
        self.left_preview_label.setStyleSheet('background: #EFF6FF; border: 1px solid #BFDBFE; font-size: 10px;')
        self.right_preview_label = QLabel('Right Doc')
        self.right_preview_label.setStyleSheet('background: #F0FDF4; border: 1px solid #BBF7D0; font-size: 10px;')
        documents.addWidget(self.left_preview_label)
        documents.addWidget(self.right_preview_label)
        preview_layout.addLayout(documents)
        self.preview_panel.hide()
        layout.addWidget(self.preview_panel)

        hints = QLabel('• Click or drag to scroll\n• Use arrows for fine control\n• Reset button returns to top')
        hints.setWordWrap(True)
        hints.setStyleSheet('font-size: 10px; color: #6B7280;')
        layout.addWidget(hints)

        self.controller.position_changed.connect(self._on_position_changed)

    def attach(self, left: Pane, right: Pane):
        self.controller.attach(left, right)
        self.left_preview_label.setToolTip(left.name)
        self.right_preview_label.setToolTip(right.name)

    def teardown(self):
        self.controller.teardown()

    @Slot(bool)
    def set_preview_visible(self, visible: bool):
        self.preview_panel.setVisible(visible)
        self.preview_button.setToolTip('Hide preview' if visible else 'Show preview')
        if self.preview_button.isChecked() != visible:
            self.preview_button.setChecked(visible)

    @Slot(float)
    def _on_position_changed(self, percent: float):
        self.percent_label.setText(f'{round(percent)}%')
