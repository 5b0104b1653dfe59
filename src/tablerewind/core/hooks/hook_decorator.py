"""Decorator API over the hook registry.

Enables the ``@rewinder.hook.on_table_recorded()`` syntax.
"""

from typing import Any, Callable, Optional, TypeVar

from tablerewind.core.hooks.hook_events import HookEvent
from tablerewind.core.hooks.hook_registry import HookRegistry

F = TypeVar("F", bound=Callable[..., Any])


class HookDecorator:
    """Registers decorated functions as hooks.

    Decorated functions are returned unchanged.

    Example:
        hook = HookDecorator(registry)

        @hook.on_table_recorded(connection_type="SQLiteDialect_pysqlite")
        def remember(event, data):
            seen.append(data["table"])
    """

    def __init__(self, registry: HookRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> HookRegistry:
        return self._registry

    def on_connection_type_defined(
        self,
        priority: int = 0,
        stop_on_error: bool = False,
    ) -> Callable[[F], F]:
        """Subscribe to connection types announcing themselves."""
        return self._subscribe(HookEvent.ON_CONNECTION_TYPE_DEFINED, None, priority, stop_on_error)

    def on_connection_type_installed(
        self,
        connection_type: Optional[str] = None,
        priority: int = 0,
        stop_on_error: bool = False,
    ) -> Callable[[F], F]:
        """Subscribe to interception being installed on a connection type.

        Args:
            connection_type: Only this class name (``__name__``) when given.
        """
        return self._subscribe(
            HookEvent.ON_CONNECTION_TYPE_INSTALLED, connection_type, priority, stop_on_error
        )

    def on_table_recorded(
        self,
        connection_type: Optional[str] = None,
        priority: int = 0,
        stop_on_error: bool = False,
    ) -> Callable[[F], F]:
        """Subscribe to tables entering a recording window.

        Fires once per table per window, not once per insertion.

        Args:
            connection_type: Only connections of this class name when given.
        """
        return self._subscribe(HookEvent.ON_TABLE_RECORDED, connection_type, priority, stop_on_error)

    def on_recorder_cleared(
        self,
        priority: int = 0,
        stop_on_error: bool = False,
    ) -> Callable[[F], F]:
        """Subscribe to recording windows being cleared or drained."""
        return self._subscribe(HookEvent.ON_RECORDER_CLEARED, None, priority, stop_on_error)

    def _subscribe(
        self,
        event: str,
        connection_type: Optional[str],
        priority: int,
        stop_on_error: bool,
    ) -> Callable[[F], F]:
        filters = {"connection_type": connection_type} if connection_type else None

        def decorator(func: F) -> F:
            self._registry.register(
                event,
                func,
                filters=filters,
                priority=priority,
                stop_on_error=stop_on_error,
            )
            return func

        return decorator
