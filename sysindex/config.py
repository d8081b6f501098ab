"""User settings for sysindex: refresh interval and dashboard thresholds.

A file named with --config must exist and parse, otherwise the command exits
with status 1. Without --config, ~/.config/sysindex/config.toml is read when
present; a broken file there is logged and ignored so the tool still starts.
Values are laid over DEFAULT_CONFIG one table deep and the interval is then
coerced to a float no smaller than MIN_INTERVAL.
"""

from __future__ import annotations

import logging
import sys
import tomllib
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MIN_INTERVAL = 0.1

DEFAULT_CONFIG: dict[str, Any] = {
    "interval": 2.0,
    "thresholds": {
        "memory_percent": {"warning": 85.0, "critical": 95.0},
        "swap_percent": {"warning": 50.0, "critical": 80.0},
        "disk_percent": {"warning": 85.0, "critical": 95.0},
    },
}

_DEFAULT_PATH = Path.home() / ".config" / "sysindex" / "config.toml"


def _overlay(defaults: dict[str, Any], user: dict[str, Any]) -> dict[str, Any]:
    """Lay *user* over *defaults*; tables present in both are combined key by key."""
    result = dict(defaults)
    for key, value in user.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = current | value
        result[key] = value
    return result


def _coerce_interval(config: dict[str, Any]) -> dict[str, Any]:
    raw = config.get("interval", DEFAULT_CONFIG["interval"])
    try:
        seconds = float(raw)
    except (TypeError, ValueError):
        logger.warning("interval %r is not a number, using %s", raw, DEFAULT_CONFIG["interval"])
        seconds = DEFAULT_CONFIG["interval"]
    if seconds < MIN_INTERVAL:
        logger.debug("interval %s raised to %s", seconds, MIN_INTERVAL)
    config["interval"] = max(MIN_INTERVAL, seconds)
    return config


def _read_user_file(path: Path | None) -> dict[str, Any]:
    """Return the parsed user settings, or {} when there are none to apply."""
    if path is not None:
        if not path.is_file():
            print(f"sysindex: config file not found: {path}", file=sys.stderr)
            raise SystemExit(1)
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            print(f"sysindex: invalid TOML in {path}: {e}", file=sys.stderr)
            raise SystemExit(1) from e
        logger.debug("loaded config from %s", path)
        return data

    if not _DEFAULT_PATH.is_file():
        return {}
    try:
        data = tomllib.loads(_DEFAULT_PATH.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        logger.warning("ignoring %s: %s", _DEFAULT_PATH, e)
        return {}
    logger.debug("loaded config from %s", _DEFAULT_PATH)
    return data


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Return the effective settings.

    Raises:
        SystemExit: *path* was given but is missing or not valid TOML.
    """
    return _coerce_interval(_overlay(DEFAULT_CONFIG, _read_user_file(path)))


def dump_default_config() -> str:
    """Render DEFAULT_CONFIG as a commented TOML file for --dump-config."""
    out = [
        "# sysindex configuration",
        "# Place this file at ~/.config/sysindex/config.toml",
        "",
        f"interval = {DEFAULT_CONFIG['interval']}",
    ]
    for metric, levels in DEFAULT_CONFIG["thresholds"].items():
        out += [
            "",
            f"[thresholds.{metric}]",
            f"warning = {levels['warning']}",
            f"critical = {levels['critical']}",
        ]
    return "\n".join(out) + "\n"
