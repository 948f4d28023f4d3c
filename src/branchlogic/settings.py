"""
Runtime settings loaded from YAML.

Usage:
    from branchlogic.settings import load_settings

    settings = load_settings("branchlogic.yaml")
    settings.redirect_delay

File layout (every key optional):

    runtime:
      redirect_delay: 2.0
      persist_debounce: 0.3
      persist_values: true
      clear_cache_on_complete: true
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

DEFAULTS: Dict[str, Any] = {
    "runtime": {
        "redirect_delay": 2.0,
        "persist_debounce": 0.3,
        "persist_values": True,
        "clear_cache_on_complete": True,
    },
}


class SettingsError(ValueError):
    """Raised when a settings file cannot be used."""
    pass


@dataclass(frozen=True)
class RuntimeSettings:
    """
    Knobs for NavigationController.

    Properties:
        redirect_delay: minimum seconds between leaving a redirect page and navigating away
        persist_debounce: window (seconds) over which value-cache writes are coalesced
        persist_values: False disables the value cache entirely (preview mode)
        clear_cache_on_complete: drop cached values once the session ends
    """

    redirect_delay: float = 2.0
    persist_debounce: float = 0.3
    persist_values: bool = True
    clear_cache_on_complete: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuntimeSettings":
        runtime = _deep_merge(DEFAULTS, data or {})["runtime"]
        return cls(
            redirect_delay=float(runtime["redirect_delay"]),
            persist_debounce=float(runtime["persist_debounce"]),
            persist_values=bool(runtime["persist_values"]),
            clear_cache_on_complete=bool(runtime["clear_cache_on_complete"]),
        )


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into a copy of base, recursing into nested dicts."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(filepath: Optional[Union[str, Path]] = None) -> RuntimeSettings:
    """
    Load settings from a YAML file, falling back to DEFAULTS.

    Raises:
        SettingsError: the file is unreadable or does not hold a mapping
    """
    if filepath is None:
        return RuntimeSettings.from_dict({})

    path = Path(filepath)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as e:
        raise SettingsError(f"Cannot read settings from {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("runtime", {}), dict):
        raise SettingsError(f"Settings file {path} must contain a mapping")

    return RuntimeSettings.from_dict(data)
