"""Control surface for scroll synchronization on one window."""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal

from panesync.models.pane import PaneCandidate, PaneDocument
from panesync.utils.flow_log import log_flow
from panesync.utils.strategy_loader import DetectionConfig, load_detection_config
from panesync.widgets.pane_resolver import PaneResolution, resolve
from panesync.widgets.sync_engine import ScrollSyncEngine


class ScrollSync(QObject):
    """init / set_panes / toggle / enable / disable / status / destroy.

    `set_panes` resolves and remembers explicit locators, and only re-binds
    when the engine is already bound. `init` binds the engine, using those
    locators when present and auto-detection otherwise. Calling `init` again
    re-resolves and re-binds.
    """

    panes_changed = Signal(object, object)  # Left pane, right pane
    resolution_failed = Signal(str, str)  # Reason, detail

    def __init__(self, document: PaneDocument, parent=None, *,
                 detection: DetectionConfig | None = None,
                 engine: ScrollSyncEngine | None = None):
        super().__init__(parent)
        self._document = document
        self._detection = detection
        self.engine = engine if engine is not None else ScrollSyncEngine(self)
        self._locators: tuple[str, str] | None = None
        self._left: PaneCandidate | None = None
        self._right: PaneCandidate | None = None
        self._strategy: str | None = None

    @property
    def detection(self) -> DetectionConfig:
        if self._detection is None:
            self._detection = load_detection_config()
        return self._detection

    @property
    def locators(self) -> tuple[str, str] | None:
        return self._locators

    def _resolve(self) -> PaneResolution:
        if self._locators is not None:
            left, right = self._locators
            return resolve(self._document, left=left, right=right)
        return resolve(self._document, self.detection)

    def _fail(self, resolution: PaneResolution):
        self._left = None
        self._right = None
        self._strategy = None
        log_flow("SCROLL SYNC", f"{resolution.reason}: {resolution.error.detail}", level="ERROR")
        self.resolution_failed.emit(resolution.reason, resolution.error.detail)

    def init(self) -> bool:
        log_flow("SCROLL SYNC", "Initializing scroll synchronization...")
        resolution = self._resolve()
        if not resolution.ok:
            self.engine.unbind()
            self._fail(resolution)
            if self._locators is None:
                log_flow("SCROLL SYNC", "Could not auto-detect panes. Use manual setup: "
                         "set_panes('.left-selector', '.right-selector') then init() again")
            return False

        self._left = resolution.left
        self._right = resolution.right
        self._strategy = resolution.strategy
        self.engine.bind(self._left, self._right)
        log_flow("SCROLL SYNC", f"Scroll synchronization is now active ({self._strategy})")
        self.panes_changed.emit(self._left, self._right)
        return True

    def set_panes(self, left: str, right: str) -> bool:
        """Remember explicit locators; returns whether both panes were found."""
        self._locators = (left, right)
        resolution = self._resolve()
        if not resolution.ok:
            self._locators = None
            self.engine.unbind()
            self._fail(resolution)
            return False
        self._left = resolution.left
        self._right = resolution.right
        self._strategy = resolution.strategy
        log_flow("SCROLL SYNC", f"Panes set manually: {self._left.name}, {self._right.name}")
        if self.engine.is_bound:
            # Already running: move the binding over instead of waiting for init().
            self.engine.bind(self._left, self._right)
            self.panes_changed.emit(self._left, self._right)
        return True

    def clear_panes(self):
        """Forget explicit locators so the next `init` auto-detects again."""
        self._locators = None

    def toggle(self) -> bool:
        return self.engine.toggle()

    def enable(self):
        self.engine.set_enabled(True)

    def disable(self):
        self.engine.set_enabled(False)

    def status(self) -> dict:
        status = {
            'enabled': self.engine.enabled,
            'left_pane': self._left.name if self._left is not None else None,
            'right_pane': self._right.name if self._right is not None else None,
            'strategy': self._strategy,
            'bound': self.engine.is_bound,
        }
        log_flow("SCROLL SYNC", f"Status: {'Enabled' if status['enabled'] else 'Disabled'}, "
                 f"left={status['left_pane']}, right={status['right_pane']}")
        return status

    def destroy(self):
        self.engine.unbind()
        self._left = None
        self._right = None
        self._strategy = None
        self._locators = None
        log_flow("SCROLL SYNC", "Scroll sync destroyed")
