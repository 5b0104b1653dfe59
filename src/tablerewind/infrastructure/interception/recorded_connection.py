"""Construction-time hook for connection types.

Connection classes deriving from RecordedConnection announce themselves
through the ON_CONNECTION_TYPE_DEFINED hook the moment they are defined,
so a watching AdapterRegistry installs interception before the type's
first write call.
"""

from typing import ClassVar, Optional

from tablerewind.core.hooks import get_hook_registry
from tablerewind.core.hooks.hook_events import HookEvent
from tablerewind.core.hooks.hook_registry import HookRegistry
from tablerewind.domain.entities.hook_result import HookResult

DEFAULT_ENTRY_POINTS = ("execute", "exec_query", "raw_execute")


def connection_type_defined(
    connection_type: type,
    hooks: Optional[HookRegistry] = None,
) -> HookResult:
    """Announce a newly available connection type to watching registries.

    Drivers that cannot derive from RecordedConnection call this directly
    after defining (or first loading) a connection class.

    Args:
        connection_type: The newly defined class.
        hooks: Hook registry to notify. Defaults to the process-wide one.
    """
    registry = hooks if hooks is not None else get_hook_registry()
    return registry.trigger(
        HookEvent.ON_CONNECTION_TYPE_DEFINED,
        {"connection_type": connection_type},
    )


class RecordedConnection:
    """Mixin for connection classes whose insertions should be recorded.

    Attributes:
        recorded_entry_points: Default entry points a tracking registry
            wraps for this hierarchy.
        hook_registry: Hook registry subclasses are announced to
            (None means the process-wide registry).

    Example:
        class Connection(RecordedConnection):
            def execute(self, sql, params=()):
                ...

        rewinder.track(Connection)

        class PostgresConnection(Connection):  # installed on definition
            def execute(self, sql, params=(), *, timeout=None):
                ...
    """

    recorded_entry_points: ClassVar[tuple[str, ...]] = DEFAULT_ENTRY_POINTS
    hook_registry: ClassVar[Optional[HookRegistry]] = None

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        connection_type_defined(cls, cls.hook_registry)
