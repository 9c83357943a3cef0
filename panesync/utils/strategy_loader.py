"""Strategy loader - reads and validates pane auto-detection strategies."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from panesync.utils.selectors import SelectorError, SelectorList, parse_selector
from panesync.utils.settings import DEFAULT_SETTINGS, settings

BUNDLED_STRATEGIES_PATH = Path(__file__).resolve().parent.parent / 'config' / 'strategies.yaml'

GENERIC_MIN_HEIGHT = 100
FALLBACK_MIN_HEIGHT = 200
FALLBACK_MIN_WIDTH = 200


class StrategyConfigError(Exception):
    pass


@dataclass(frozen=True)
class DetectionStrategy:
    """One ranked selector query used to guess the two panes."""

    name: str
    selector: SelectorList
    min_height: int = GENERIC_MIN_HEIGHT


@dataclass(frozen=True)
class FallbackStrategy:
    selector: SelectorList
    min_height: int = FALLBACK_MIN_HEIGHT
    min_width: int = FALLBACK_MIN_WIDTH


@dataclass(frozen=True)
class DetectionConfig:
    strategies: tuple[DetectionStrategy, ...] = ()
    fallback: FallbackStrategy | None = None
    source: str = ''


def _is_int(value: Any) -> bool:
    # YAML true/false load as bool, which is an int subclass.
    return isinstance(value, int) and not isinstance(value, bool)


def validate_structure(data: Any) -> tuple[bool, str]:
    """Validate raw strategy data.

    Returns:
        (valid, error_message) tuple
    """
    if not isinstance(data, dict):
        return False, "Top level must be a mapping"

    strategies = data.get('strategies')
    if not isinstance(strategies, list) or not strategies:
        return False, "Missing required field: strategies (non-empty list)"

    for index, entry in enumerate(strategies):
        if not isinstance(entry, dict):
            return False, f"strategies[{index}] must be a mapping"
        if not isinstance(entry.get('selector'), str) or not entry['selector'].strip():
            return False, f"strategies[{index}].selector must be a non-empty string"
        if 'min_height' in entry and not _is_int(entry['min_height']):
            return False, f"strategies[{index}].min_height must be an integer"

    generic = data.get('generic', {})
    if not isinstance(generic, dict):
        return False, "generic must be a mapping"
    if 'min_height' in generic and not _is_int(generic['min_height']):
        return False, "generic.min_height must be an integer"

    if 'fallback' in data and data['fallback'] is not None:
        fallback = data['fallback']
        if not isinstance(fallback, dict):
            return False, "fallback must be a mapping"
        if not isinstance(fallback.get('selector'), str):
            return False, "fallback.selector must be a string"
        for key in ('min_height', 'min_width'):
            if key in fallback and not _is_int(fallback[key]):
                return False, f"fallback.{key} must be an integer"

    return True, ""


def build_detection_config(data: Dict[str, Any], *, source: str = '') -> DetectionConfig:
    """Turn validated strategy data into a `DetectionConfig`."""
    valid, error = validate_structure(data)
    if not valid:
        raise StrategyConfigError(f"Invalid strategies {source or '<data>'}: {error}")

    generic_min_height = data.get('generic', {}).get('min_height', GENERIC_MIN_HEIGHT)
    try:
        strategies = tuple(
            DetectionStrategy(
                name=str(entry.get('name') or entry['selector']),
                selector=parse_selector(entry['selector']),
                min_height=entry.get('min_height', generic_min_height),
            )
            for entry in data['strategies']
        )
        fallback = None
        if data.get('fallback'):
            raw = data['fallback']
            fallback = FallbackStrategy(
                selector=parse_selector(raw['selector']),
                min_height=raw.get('min_height', FALLBACK_MIN_HEIGHT),
                min_width=raw.get('min_width', FALLBACK_MIN_WIDTH),
            )
    except SelectorError as e:
        raise StrategyConfigError(f"Invalid strategies {source or '<data>'}: {e}") from e

    return DetectionConfig(strategies, fallback, source)


def load_detection_config(path: Path | str | None = None) -> DetectionConfig:
    """Load strategies from `path`, the configured path, or the bundled file."""
    if path is None:
        configured = settings.value(
            'pane_detection_strategies_path',
            defaultValue=DEFAULT_SETTINGS['pane_detection_strategies_path'], type=str)
        path = configured or BUNDLED_STRATEGIES_PATH
    path = Path(path)

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise StrategyConfigError(f"YAML parse error in {path.name}: {e}") from e
    except OSError as e:
        raise StrategyConfigError(f"Strategy file not readable: {path}: {e}") from e

    if not data:
        raise StrategyConfigError(f"Empty strategy file: {path}")
    return build_detection_config(data, source=str(path))
