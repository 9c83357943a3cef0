from PySide6.QtCore import QSettings, Signal

# Defaults for settings that are accessed from multiple places.
DEFAULT_SETTINGS = {
    # Window after a propagated scroll during which the echo event is ignored.
    'scroll_sync_settle_ms': 50,
    # Percentage points moved by the middle bar up/down buttons.
    'middle_scroll_step_percent': 10,
    'middle_scroll_smooth': True,
    'smooth_scroll_duration_ms': 160,
    'pane_detection_strategies_path': '',  # Empty = bundled strategies.yaml
    'trace_logs': False,
    'last_document_directory': '',
}


class Settings(QSettings):
    # Signal that shows that the setting with the given string was changes
    change = Signal(str, object, name='settingsChanged')

    def __init__(self):
        super().__init__('panesync', 'panesync')

    def setValue(self, key, value):
        super().setValue(key, value)
        self.change.emit(key, value)

# Common shared instance to ensure the Signal is also shared
settings = Settings()


def get_settle_ms() -> int:
    return max(0, settings.value(
        'scroll_sync_settle_ms',
        defaultValue=DEFAULT_SETTINGS['scroll_sync_settle_ms'], type=int))


def get_step_percent() -> float:
    return max(0.0, settings.value(
        'middle_scroll_step_percent',
        defaultValue=DEFAULT_SETTINGS['middle_scroll_step_percent'], type=float))


def get_smooth_scroll() -> bool:
    return settings.value(
        'middle_scroll_smooth',
        defaultValue=DEFAULT_SETTINGS['middle_scroll_smooth'], type=bool)


def get_smooth_duration_ms() -> int:
    return max(0, settings.value(
        'smooth_scroll_duration_ms',
        defaultValue=DEFAULT_SETTINGS['smooth_scroll_duration_ms'], type=int))
