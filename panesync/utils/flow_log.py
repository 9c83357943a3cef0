"""Timestamped, optionally throttled console diagnostics."""

import time

from panesync.utils.settings import DEFAULT_SETTINGS, settings

_last_emitted: dict[str, float] = {}


def trace_enabled() -> bool:
    return bool(settings.value('trace_logs',
                               defaultValue=DEFAULT_SETTINGS['trace_logs'], type=bool))


def log_flow(component: str, message: str, *, level: str = "INFO",
             throttle_key: str | None = None, every_s: float | None = None):
    """Print one diagnostic line; DEBUG lines need the `trace_logs` setting."""
    if level == "DEBUG" and not trace_enabled():
        return

    now = time.time()
    if throttle_key and every_s is not None:
        last = _last_emitted.get(throttle_key, 0.0)
        if (now - last) < every_s:
            return
        _last_emitted[throttle_key] = now
    ts = time.strftime("%H:%M:%S", time.localtime(now)) + f".{int((now % 1) * 1000):03d}"
    print(f"[{ts}][{component}][{level}] {message}")
