"""ORM models for the shift kernel."""

from shift_kernel.models.kv_entry import KeyValueEntry


def import_all_models() -> None:
    """Ensure every model module is imported so Base.metadata is complete."""
    import shift_kernel.models.kv_entry  # noqa: F401


__all__ = ["KeyValueEntry", "import_all_models"]
