"""
Configuration Loader (``shift_config.loader``).

Responsibility
--------------
Reads YAML settings files and parses them into the frozen dataclasses of
``shift_config.schema``, then applies ``SHIFT_KERNEL_*`` environment
overrides.  Runtime callers use ``shift_config.get_active_config()``
instead of calling this module directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown backend, log level or timezone  -> ``ValueError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from shift_config.schema import (
    LOG_LEVELS,
    STORAGE_BACKENDS,
    ClockSettings,
    KernelSettings,
    LoggingSettings,
    StorageSettings,
)

ENV_CONFIG_PATH = "SHIFT_KERNEL_CONFIG"
ENV_DATABASE_URL = "SHIFT_KERNEL_DATABASE_URL"
ENV_TIMEZONE = "SHIFT_KERNEL_TIMEZONE"
ENV_LOG_LEVEL = "SHIFT_KERNEL_LOG_LEVEL"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def resolve_timezone(name: str) -> tzinfo | None:
    """
    Map a configured timezone name to a tzinfo.

    ``"local"`` maps to None, which the kernel reads as the system zone.

    Raises:
        ValueError: unknown zone name.
    """
    if name == "local":
        return None
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name!r}") from exc


def parse_storage(data: dict[str, Any]) -> StorageSettings:
    defaults = StorageSettings()
    backend = data.get("backend", defaults.backend)
    if backend not in STORAGE_BACKENDS:
        raise ValueError(
            f"Unknown storage backend {backend!r}; expected one of {STORAGE_BACKENDS}"
        )
    return StorageSettings(
        backend=backend,
        database_url=str(data.get("database_url", defaults.database_url)),
        echo=bool(data.get("echo", defaults.echo)),
    )


def parse_clock(data: dict[str, Any]) -> ClockSettings:
    name = str(data.get("timezone", ClockSettings().timezone))
    resolve_timezone(name)
    return ClockSettings(timezone=name)


def parse_logging(data: dict[str, Any]) -> LoggingSettings:
    level = str(data.get("level", LoggingSettings().level)).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {level!r}; expected one of {LOG_LEVELS}")
    return LoggingSettings(level=level)


def parse_settings(data: dict[str, Any]) -> KernelSettings:
    """
    Parse a settings document.

    Sections that are absent fall back to schema defaults.
    """
    return KernelSettings(
        config_id=str(data.get("config_id", "default")),
        version=int(data.get("version", 1)),
        storage=parse_storage(data.get("storage") or {}),
        clock=parse_clock(data.get("clock") or {}),
        logging=parse_logging(data.get("logging") or {}),
    )


def apply_env_overrides(
    settings: KernelSettings,
    env: Mapping[str, str],
) -> KernelSettings:
    """Apply SHIFT_KERNEL_* overrides on top of parsed settings."""
    if env.get(ENV_DATABASE_URL):
        settings = replace(
            settings,
            storage=replace(settings.storage, database_url=env[ENV_DATABASE_URL]),
        )
    if env.get(ENV_TIMEZONE):
        settings = replace(settings, clock=parse_clock({"timezone": env[ENV_TIMEZONE]}))
    if env.get(ENV_LOG_LEVEL):
        settings = replace(settings, logging=parse_logging({"level": env[ENV_LOG_LEVEL]}))
    return settings
