"""
shift_config -- single public entrypoint for kernel configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads settings files or
    SHIFT_KERNEL_* environment variables directly.

Architecture position:
    Configuration sits above ``shift_kernel``.  The kernel MUST NEVER
    import from ``shift_config``; ``shift_config.bridges`` translates
    settings into kernel objects.

Failure modes:
    - ``FileNotFoundError`` -- the requested settings file does not exist.
    - ``ValueError`` -- unknown backend, timezone or log level.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from shift_config.loader import (
    ENV_CONFIG_PATH,
    apply_env_overrides,
    load_yaml_file,
    parse_settings,
)
from shift_config.schema import (
    ClockSettings,
    KernelSettings,
    LoggingSettings,
    StorageSettings,
)

_logger = logging.getLogger("shift_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(
    config_path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> KernelSettings:
    """The ONLY public configuration entrypoint.

    Resolution order: ``config_path`` argument, then ``SHIFT_KERNEL_CONFIG``,
    then the packaged ``sets/default.yaml``.  Environment overrides are
    applied last.

    Args:
        config_path: Settings file to load.
        env: Environment mapping; defaults to ``os.environ``.

    Raises:
        FileNotFoundError: the settings file does not exist.
        ValueError: a setting has an unknown value.
    """
    env = os.environ if env is None else env
    path = Path(config_path or env.get(ENV_CONFIG_PATH) or DEFAULT_CONFIG_PATH)

    settings = apply_env_overrides(parse_settings(load_yaml_file(path)), env)

    _logger.info(
        "SHIFT_CONFIG_TRACE",
        extra={
            "config_id": settings.config_id,
            "config_version": settings.version,
            "config_path": str(path),
            "storage_backend": settings.storage.backend,
            "timezone": settings.clock.timezone,
        },
    )
    return settings


__all__ = [
    "ClockSettings",
    "KernelSettings",
    "LoggingSettings",
    "StorageSettings",
    "get_active_config",
]
