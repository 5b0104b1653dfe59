"""Hook system core module.

Observers subscribe to connection type and recording events here.
The process-wide registry returned by get_hook_registry() is the one
RecordedConnection subclasses and the SQLAlchemy listeners trigger.

Example usage:
    from tablerewind.core.hooks import HookDecorator, get_hook_registry

    hook = HookDecorator(get_hook_registry())

    @hook.on_table_recorded()
    def log_table(event, data):
        print(data["table"])
"""

from functools import lru_cache

from tablerewind.core.hooks.hook_decorator import HookDecorator
from tablerewind.core.hooks.hook_events import (
    EVENT_CATEGORIES,
    HookCategory,
    HookEvent,
    get_all_events,
)
from tablerewind.core.hooks.hook_registry import HookRegistry, RegisteredHook


@lru_cache
def get_hook_registry() -> HookRegistry:
    """Get the process-wide hook registry."""
    return HookRegistry()


__all__ = [
    # Registry
    "HookRegistry",
    "RegisteredHook",
    "get_hook_registry",
    # Decorator
    "HookDecorator",
    # Events
    "HookCategory",
    "HookEvent",
    "EVENT_CATEGORIES",
    "get_all_events",
]
