import logging
import os
import sys
import threading
import traceback
import warnings
from datetime import datetime
from pathlib import Path

from PySide6.QtCore import qInstallMessageHandler
from PySide6.QtWidgets import QApplication, QMessageBox

from panesync.utils.flow_log import log_flow
from panesync.widgets.comparison_window import ComparisonWindow


# Install a message handler to suppress QPainter warnings at Qt level
def qt_message_handler(msg_type, msg_context, msg_string):
    """Drop QPainter noise; everything else is a trace line."""
    if "QPainter" in msg_string or "Paint device returned engine" in msg_string:
        return
    log_flow("QT", msg_string, level="DEBUG")

qInstallMessageHandler(qt_message_handler)

CRASH_LOG_PATH = os.path.abspath('panesync_crash.log')


def _append_crash_log(title: str, exc_info=None):
    """Append a timestamped crash entry to the crash log."""
    ts = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    try:
        with open(CRASH_LOG_PATH, 'a', encoding='utf-8') as f:
            f.write("\n" + "=" * 80 + "\n")
            f.write(f"{ts} | {title}\n")
            f.write("=" * 80 + "\n")
            if exc_info is None:
                f.write(traceback.format_exc())
            else:
                f.writelines(traceback.format_exception(*exc_info))
            f.write("\n")
    except Exception as log_error:
        print(f"[CRASH] Failed to write crash log: {log_error}")
    print(f"[CRASH] Details written to: {CRASH_LOG_PATH}")


def install_crash_handlers():
    """Log unhandled exceptions from the UI thread and worker threads."""

    def _unhandled_exception(exc_type, exc_value, exc_traceback):
        _append_crash_log("UNHANDLED EXCEPTION", (exc_type, exc_value, exc_traceback))
        sys.__excepthook__(exc_type, exc_value, exc_traceback)

    def _thread_exception(args):
        thread_name = getattr(args.thread, 'name', 'unknown')
        _append_crash_log(
            f"THREAD EXCEPTION ({thread_name})",
            (args.exc_type, args.exc_value, args.exc_traceback),
        )

    sys.excepthook = _unhandled_exception
    threading.excepthook = _thread_exception


def suppress_warnings():
    """Suppress all warnings when not in a development environment."""
    environment = os.getenv('PANESYNC_ENVIRONMENT')
    if environment == 'development':
        print('Running in development environment.')
        return
    logging.basicConfig(level=logging.ERROR)
    warnings.simplefilter('ignore')


def run_gui(paths: list[Path] | None = None) -> int:
    app = QApplication([])
    # The application name is shown in the taskbar.
    app.setApplicationName('PaneSync')
    # The application display name is shown in the title bar.
    app.setApplicationDisplayName('PaneSync')
    app.setStyle('Fusion')

    window = ComparisonWindow(app, paths)
    window.show()
    return int(app.exec())


def main(argv: list[str] | None = None) -> int:
    """Open up to two documents side by side with synchronized scrolling."""
    argv = sys.argv[1:] if argv is None else argv
    suppress_warnings()
    install_crash_handlers()
    paths = [Path(arg) for arg in argv[:2]]
    try:
        return run_gui(paths)
    except Exception as exception:
        _append_crash_log("TOP-LEVEL EXCEPTION", sys.exc_info())
        error_message_box = QMessageBox()
        error_message_box.setWindowTitle('Error')
        error_message_box.setIcon(QMessageBox.Icon.Critical)
        error_message_box.setText(str(exception))
        error_message_box.setDetailedText(traceback.format_exc())
        error_message_box.exec()
        return 1


if __name__ == '__main__':
    sys.exit(main())
