"""
Kernel settings schema.

YAML documents are parsed by the loader into these frozen dataclasses; the
bridges turn them into wired kernel objects.  Nothing here imports the
kernel.
"""

from __future__ import annotations

from dataclasses import dataclass, field

STORAGE_BACKENDS = ("sql", "memory")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class StorageSettings:
    """Where shifts and the active punch are persisted."""

    backend: str = "sql"
    database_url: str = "sqlite:///shifts.db"
    echo: bool = False


@dataclass(frozen=True)
class ClockSettings:
    """Local timezone used for calendar days and overnight detection."""

    timezone: str = "local"


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class KernelSettings:
    """The complete, validated runtime configuration."""

    config_id: str = "default"
    version: int = 1
    storage: StorageSettings = field(default_factory=StorageSettings)
    clock: ClockSettings = field(default_factory=ClockSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
