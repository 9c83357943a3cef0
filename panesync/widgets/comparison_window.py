from pathlib import Path

from PySide6.QtCore import Slot
from PySide6.QtGui import QAction, QCloseEvent, QIcon, QKeySequence
from PySide6.QtWidgets import (QApplication, QFileDialog, QHBoxLayout,
                               QMainWindow, QTextBrowser, QToolBar, QWidget)

from panesync.utils.settings import DEFAULT_SETTINGS, settings
from panesync.widgets.middle_scroll_control import MiddleScrollBar
from panesync.widgets.pane_resolver import WidgetPaneDocument
from panesync.widgets.scroll_sync import ScrollSync

STATUS_TIMEOUT_MS = 8000

RESOLUTION_FAILURE_MESSAGES = {
    'left-not-found': 'Left pane not found.',
    'right-not-found': 'Right pane not found.',
    'auto-detect-failed': 'Could not auto-detect two scrollable panes.',
}


def read_text(path: Path) -> str:
    for encoding in ('utf-8', 'utf-8-sig', 'latin-1'):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
    return path.read_bytes().decode('utf-8', errors='replace')


class DocumentPane(QTextBrowser):
    """Read-only document view tagged so pane auto-detection can find it."""

    def __init__(self, object_name: str, parent=None):
        super().__init__(parent)
        self.setObjectName(object_name)
        self.setProperty('class', 'document-pane')
        self.setOpenExternalLinks(True)
        self.setLineWrapMode(QTextBrowser.LineWrapMode.NoWrap)
        self.document_path: Path | None = None

    def load(self, path: Path):
        self.document_path = path
        if path.suffix.lower() in ('.md', '.markdown'):
            self.setMarkdown(read_text(path))
        elif path.suffix.lower() in ('.html', '.htm'):
            self.setHtml(read_text(path))
        else:
            self.setPlainText(read_text(path))


class ComparisonWindow(QMainWindow):
    def __init__(self, app: QApplication, paths: list[Path] | None = None):
        super().__init__()
        self.app = app
        self.setWindowTitle('PaneSync')
        self.resize(1280, 800)

        self.left_document = DocumentPane('left-document')
        self.right_document = DocumentPane('right-document')
        self.middle_bar = MiddleScrollBar(self)

        central_widget = QWidget()
        layout = QHBoxLayout(central_widget)
        layout.setContentsMargins(6, 6, 6, 6)
        layout.addWidget(self.left_document, 1)
        layout.addWidget(self.middle_bar)
        layout.addWidget(self.right_document, 1)
        self.setCentralWidget(central_widget)

        self.scroll_sync = ScrollSync(WidgetPaneDocument(central_widget), self)
        self.scroll_sync.panes_changed.connect(self.middle_bar.attach)
        self.scroll_sync.resolution_failed.connect(self.show_resolution_failure)
        self.scroll_sync.engine.sync_failed.connect(self.show_sync_failure)
        self.middle_bar.controller.sync_failed.connect(self.show_sync_failure)

        self.create_toolbar()
        for document, path in zip((self.left_document, self.right_document), paths or []):
            self.load_document(document, Path(path))

    def create_toolbar(self):
        toolbar = QToolBar('Scroll Sync', self)
        toolbar.setObjectName('scroll_sync_toolbar')
        self.addToolBar(toolbar)

        self.sync_action = QAction(QIcon.fromTheme('view-refresh'), 'Sync Scroll', self)
        self.sync_action.setCheckable(True)
        self.sync_action.setChecked(self.scroll_sync.engine.enabled)
        self.sync_action.setShortcut(QKeySequence('Ctrl+L'))
        self.sync_action.toggled.connect(self.scroll_sync.engine.set_enabled)
        self.scroll_sync.engine.enabled_changed.connect(self.sync_action.setChecked)
        toolbar.addAction(self.sync_action)

        redetect_action = QAction('Re-detect Panes', self)
        redetect_action.triggered.connect(self.init_scroll_sync)
        toolbar.addAction(redetect_action)
        toolbar.addSeparator()

        open_left_action = QAction(QIcon.fromTheme('document-open'), 'Open Left...', self)
        open_left_action.triggered.connect(lambda: self.select_and_load(self.left_document))
        toolbar.addAction(open_left_action)
        open_right_action = QAction(QIcon.fromTheme('document-open'), 'Open Right...', self)
        open_right_action.triggered.connect(lambda: self.select_and_load(self.right_document))
        toolbar.addAction(open_right_action)

    def showEvent(self, event):
        super().showEvent(event)
        # Panes only report their real size once laid out.
        if not self.scroll_sync.engine.is_bound:
            self.init_scroll_sync()

    def init_scroll_sync(self) -> bool:
        self.scroll_sync.clear_panes()
        if self.scroll_sync.init():
            return True
        # Auto-detection needs overflowing content; our own panes are known by name.
        if (self.scroll_sync.set_panes('#left-document', '#right-document')
                and self.scroll_sync.init()):
            # Drop the auto-detection failure shown a moment ago.
            self.statusBar().clearMessage()
            return True
        return False

    def select_and_load(self, document: DocumentPane):
        start_directory = settings.value(
            'last_document_directory',
            defaultValue=DEFAULT_SETTINGS['last_document_directory'], type=str)
        path, _ = QFileDialog.getOpenFileName(self, 'Open Document', start_directory)
        if not path:
            return
        settings.setValue('last_document_directory', str(Path(path).parent))
        self.load_document(document, Path(path))

    def load_document(self, document: DocumentPane, path: Path):
        try:
            document.load(path)
        except OSError as exception:
            self.statusBar().showMessage(f'Could not open {path}: {exception}',
                                         STATUS_TIMEOUT_MS)
            return
        self.statusBar().showMessage(f'Loaded {path.name}', STATUS_TIMEOUT_MS)
        if self.isVisible():
            # Content changed, so overflow may have appeared or gone away.
            self.init_scroll_sync()

    @Slot(str, str)
    def show_resolution_failure(self, reason: str, detail: str):
        self.middle_bar.teardown()
        message = RESOLUTION_FAILURE_MESSAGES.get(reason, reason)
        self.statusBar().showMessage(f'{message} {detail}', STATUS_TIMEOUT_MS)

    @Slot(str, str)
    def show_sync_failure(self, pane_name: str, message: str):
        self.statusBar().showMessage(f'{pane_name}: {message}', STATUS_TIMEOUT_MS)

    def closeEvent(self, event: QCloseEvent):
        self.middle_bar.teardown()
        self.scroll_sync.destroy()
        super().closeEvent(event)
