"""SQLAlchemy integration.

SQLAlchemy routes every statement it sends to a driver through the engine
dialect's ``do_execute``, ``do_executemany`` and ``do_execute_no_params``
methods, whether it came from Core, the ORM, or an async engine. This
module points an AdapterRegistry at ``DefaultDialect`` so those methods are
wrapped on every dialect class, and registers a global ``engine_connect``
listener that announces dialect classes first seen at engine creation (e.g.
third-party dialects loaded through entry points) before their first
statement runs.

The recorded "connection" is the engine's dialect instance: one per Engine,
shared by its pooled DBAPI connections and by AsyncEngine wrappers.
"""

from typing import Any, Callable

from sqlalchemy import event
from sqlalchemy.engine import Connection, Dialect, Engine
from sqlalchemy.engine.default import DefaultDialect

from tablerewind.core.config import Settings
from tablerewind.core.hooks.hook_events import HookEvent
from tablerewind.core.hooks.hook_registry import HookRegistry
from tablerewind.core.logging import get_logger
from tablerewind.infrastructure.interception.adapter_registry import AdapterRegistry
from tablerewind.infrastructure.interception.signature_adapter import (
    EntryPoint,
    SignatureAdapter,
)

logger = get_logger(__name__)


def dialect_entry_points(settings: Settings) -> list[EntryPoint]:
    """Entry points to wrap on dialect classes."""
    return [EntryPoint(name, settings.statement_param) for name in settings.dialect_entry_points]


def create_dialect_registry(
    adapter: SignatureAdapter,
    hooks: HookRegistry,
    settings: Settings,
) -> AdapterRegistry:
    """Create the AdapterRegistry covering every SQLAlchemy dialect class."""
    return AdapterRegistry(
        base=DefaultDialect,
        entry_points=dialect_entry_points(settings),
        adapter=adapter,
        hooks=hooks,
    )


def resolve_dialect(bind: Any) -> Any:
    """Map an Engine, Connection, AsyncEngine or AsyncConnection to its dialect.

    Dialects (and anything without a ``dialect`` attribute) are returned as-is.
    """
    if isinstance(bind, Dialect):
        return bind
    dialect = getattr(bind, "dialect", None)
    return dialect if dialect is not None else bind


def register_sqlalchemy_listeners(
    dialects: AdapterRegistry,
    hooks: HookRegistry,
) -> Callable[[Connection], None]:
    """Register the global engine_connect listener.

    Args:
        dialects: The registry covering dialect classes.
        hooks: The hook registry dialect types are announced on.

    Returns:
        The registered listener (for remove_sqlalchemy_listeners()).
    """
    listener = _make_listener(dialects, hooks)
    event.listen(Engine, "engine_connect", listener)
    logger.info("Registered SQLAlchemy engine_connect listener")
    return listener


def remove_sqlalchemy_listeners(listener: Callable[[Connection], None]) -> None:
    """Remove a listener registered by register_sqlalchemy_listeners()."""
    if event.contains(Engine, "engine_connect", listener):
        event.remove(Engine, "engine_connect", listener)


def _make_listener(dialects: AdapterRegistry, hooks: HookRegistry) -> Callable[[Connection], None]:
    """Factory to create the engine_connect listener."""

    def listener(connection: Connection) -> None:
        dialect_type = type(connection.dialect)
        if dialects.is_installed(dialect_type):
            return
        logger.debug("New dialect type seen", connection_type=dialect_type.__qualname__)
        hooks.trigger(
            HookEvent.ON_CONNECTION_TYPE_DEFINED,
            {"connection_type": dialect_type},
        )

    return listener
