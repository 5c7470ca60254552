"""
Config -> Kernel Bridges.

Turns KernelSettings into a wired set of kernel objects.  Lives in
shift_config because the kernel must NEVER import shift_config.

Usage:
    from shift_config import get_active_config
    from shift_config.bridges import build_kernel

    kernel = build_kernel(get_active_config())
    kernel.lifecycle.check_auto_close()
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo

from shift_config.loader import resolve_timezone
from shift_config.schema import KernelSettings
from shift_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from shift_kernel.domain.clock import Clock, SystemClock
from shift_kernel.logging_config import configure_logging
from shift_kernel.selectors.shift_selector import ShiftSelector
from shift_kernel.services.catalog_service import CatalogService
from shift_kernel.services.maintenance import MaintenanceService
from shift_kernel.services.punch_lifecycle import PunchLifecycle
from shift_kernel.services.shift_service import ShiftService
from shift_kernel.stores.json_store import JsonActivePunchStore, JsonShiftStore
from shift_kernel.stores.kv import KeyValueBackend, MemoryKeyValueBackend, SqlKeyValueBackend


@dataclass(frozen=True)
class ShiftKernel:
    """Everything a UI needs, wired over one backend and one clock."""

    settings: KernelSettings
    tz: tzinfo | None
    clock: Clock
    backend: KeyValueBackend
    shift_store: JsonShiftStore
    active_punch_store: JsonActivePunchStore
    lifecycle: PunchLifecycle
    shifts: ShiftService
    catalog: CatalogService
    selector: ShiftSelector
    maintenance: MaintenanceService


def build_backend(settings: KernelSettings, clock: Clock) -> KeyValueBackend:
    """Create the configured key-value backend (creating tables for SQL)."""
    if settings.storage.backend == "memory":
        return MemoryKeyValueBackend()
    engine = init_engine_from_url(settings.storage.database_url, echo=settings.storage.echo)
    create_tables(engine)
    return SqlKeyValueBackend(get_session_factory(), clock=clock)


def build_kernel(
    settings: KernelSettings,
    clock: Clock | None = None,
    configure_logs: bool = True,
) -> ShiftKernel:
    """
    Wire the kernel from settings.

    Args:
        settings: From get_active_config().
        clock: Override the system clock (tests).
        configure_logs: Install the structured log handler at the
            configured level.
    """
    if configure_logs:
        configure_logging(level=settings.logging.level)

    tz = resolve_timezone(settings.clock.timezone)
    clock = clock or SystemClock(tz)
    backend = build_backend(settings, clock)

    shift_store = JsonShiftStore(backend)
    active_store = JsonActivePunchStore(backend)
    return ShiftKernel(
        settings=settings,
        tz=tz,
        clock=clock,
        backend=backend,
        shift_store=shift_store,
        active_punch_store=active_store,
        lifecycle=PunchLifecycle(active_store, shift_store, clock=clock, tz=tz),
        shifts=ShiftService(shift_store, clock=clock, tz=tz),
        catalog=CatalogService(backend, clock=clock),
        selector=ShiftSelector(shift_store),
        maintenance=MaintenanceService(backend, active_store, clock=clock),
    )
