"""Hook event definitions and categories.

This module defines all hook events that tablerewind triggers. Observers
subscribe to these through the HookRegistry.

IMPORTANT: Adding new events is allowed (non-breaking), but
           removing or renaming events is a breaking change.
"""


class HookCategory:
    """Categories for organizing hooks."""

    CONNECTION_TYPES = "connection_types"
    RECORDING = "recording"


class HookEvent:
    """Hook event names.

    Data passed to callbacks:
    - ON_CONNECTION_TYPE_DEFINED: {"connection_type": type}
    - ON_CONNECTION_TYPE_INSTALLED: {"connection_type": type, "entry_points": list[str]}
    - ON_TABLE_RECORDED: {"connection": object, "connection_type": str, "table": str}
    - ON_RECORDER_CLEARED: {"connection": object | None, "tables": frozenset[str]}
    """

    # Connection type lifecycle
    ON_CONNECTION_TYPE_DEFINED = "on_connection_type_defined"
    ON_CONNECTION_TYPE_INSTALLED = "on_connection_type_installed"

    # Recording
    ON_TABLE_RECORDED = "on_table_recorded"
    ON_RECORDER_CLEARED = "on_recorder_cleared"


# Mapping of events to their categories
EVENT_CATEGORIES: dict[str, str] = {
    HookEvent.ON_CONNECTION_TYPE_DEFINED: HookCategory.CONNECTION_TYPES,
    HookEvent.ON_CONNECTION_TYPE_INSTALLED: HookCategory.CONNECTION_TYPES,
    HookEvent.ON_TABLE_RECORDED: HookCategory.RECORDING,
    HookEvent.ON_RECORDER_CLEARED: HookCategory.RECORDING,
}


def get_all_events() -> list[str]:
    """Get all available hook event names."""
    return [
        value
        for name, value in vars(HookEvent).items()
        if not name.startswith("_") and isinstance(value, str)
    ]
