"""Adapter registry.

Installs interception wrappers on every connection type of one class
hierarchy: the types already loaded when install_all() runs, and, through
the ON_CONNECTION_TYPE_DEFINED hook, every type defined afterwards.

Only entry points a type declares itself are wrapped; inherited ones are
already covered by the ancestor's wrapper. A type is installed at most once
and a function that already is a wrapper is never wrapped again. Entry points
already wrapped for a different interceptor are refused with
InstallationError: they would record into the other interceptor's registry.
"""

import inspect
import threading
import weakref
from typing import Any, Iterator, Optional, Sequence, Union

from tablerewind.core.exceptions import InstallationError
from tablerewind.core.hooks import get_hook_registry
from tablerewind.core.hooks.hook_events import HookEvent
from tablerewind.core.hooks.hook_registry import HookRegistry
from tablerewind.core.logging import get_logger
from tablerewind.infrastructure.interception.signature_adapter import (
    EntryPoint,
    SignatureAdapter,
    is_wrapped,
    wrapper_interceptor,
)

logger = get_logger(__name__)


class AdapterRegistry:
    """Installs interception on a connection type hierarchy.

    Example:
        registry = AdapterRegistry(
            base=DefaultDialect,
            entry_points=[EntryPoint("do_execute", "statement")],
            adapter=SignatureAdapter(interceptor),
        )
        registry.watch()        # types defined from now on
        registry.install_all()  # loaded types
    """

    def __init__(
        self,
        base: type,
        entry_points: Sequence[Union[EntryPoint, str]],
        adapter: SignatureAdapter,
        hooks: Optional[HookRegistry] = None,
    ) -> None:
        """Initialize the registry.

        Args:
            base: Root connection type. It and all of its descendants are covered.
            entry_points: Entry points to wrap (names or EntryPoint descriptors).
            adapter: Builds the wrappers.
            hooks: Hook registry to watch and notify. Defaults to the
                process-wide registry.

        Raises:
            InstallationError: If base is not a class.
        """
        if not isinstance(base, type):
            raise InstallationError(f"Connection base must be a class, got {base!r}")

        self._base = base
        self._entry_points = tuple(
            EntryPoint(entry) if isinstance(entry, str) else entry for entry in entry_points
        )
        self._adapter = adapter
        self._hooks = hooks if hooks is not None else get_hook_registry()
        self._installed: "weakref.WeakSet[type]" = weakref.WeakSet()
        self._lock = threading.RLock()
        self._watch_hook_id: Optional[str] = None

    @property
    def base(self) -> type:
        """Root connection type."""
        return self._base

    @property
    def entry_points(self) -> tuple[EntryPoint, ...]:
        """Entry points this registry wraps."""
        return self._entry_points

    @property
    def installed_types(self) -> list[type]:
        """Connection types interception has been installed on."""
        return list(self._installed)

    @property
    def watching(self) -> bool:
        """Whether types defined later are installed automatically."""
        return self._watch_hook_id is not None

    def is_installed(self, connection_type: type) -> bool:
        """Check whether interception is installed on connection_type."""
        return connection_type in self._installed

    def install_all(self) -> int:
        """Install on the base and every currently loaded descendant.

        Returns:
            Number of connection types newly installed.
        """
        with self._lock:
            pending = [t for t in self._hierarchy() if t not in self._installed]
            for connection_type in pending:
                self._check_owner(connection_type)
            for connection_type in pending:
                self.install(connection_type)

        logger.info(
            "Interception installed",
            base=self._base.__name__,
            connection_types=len(pending),
            entry_points=[entry.name for entry in self._entry_points],
        )
        return len(pending)

    def install(self, connection_type: type) -> list[str]:
        """Install interception on one connection type.

        Args:
            connection_type: A class in the base's hierarchy.

        Returns:
            Names of the entry points wrapped on this type (empty when the
            type declares none of them or was already installed).

        Raises:
            InstallationError: If connection_type is outside the hierarchy,
                its entry points are already intercepted by a different
                interceptor, or its attributes cannot be replaced.
        """
        self._check(connection_type)
        if connection_type in self._installed:
            return []

        with self._lock:
            if connection_type in self._installed:
                return []

            self._check_owner(connection_type)
            wrapped = []
            for entry in self._entry_points:
                func = connection_type.__dict__.get(entry.name)
                if not inspect.isfunction(func) or is_wrapped(func):
                    continue
                wrapper = self._adapter.adapt(func, entry)
                try:
                    setattr(connection_type, entry.name, wrapper)
                except (TypeError, AttributeError) as e:
                    raise InstallationError(
                        f"Cannot install on {connection_type.__qualname__}.{entry.name}: {e}",
                        connection_type=connection_type,
                        entry_point=entry.name,
                    ) from e
                wrapped.append(entry.name)

            self._installed.add(connection_type)

        logger.debug(
            "Connection type installed",
            connection_type=connection_type.__qualname__,
            entry_points=wrapped,
        )
        self._hooks.trigger(
            HookEvent.ON_CONNECTION_TYPE_INSTALLED,
            {"connection_type": connection_type, "entry_points": wrapped},
            filters={"connection_type": connection_type.__name__},
        )
        return wrapped

    def ensure_installed(self, connection_type: type) -> bool:
        """Install on connection_type and any of its uninstalled ancestors.

        Returns:
            True if anything was newly installed.
        """
        self._check(connection_type)
        if connection_type in self._installed:
            return False

        with self._lock:
            pending = [
                cls
                for cls in reversed(connection_type.__mro__)
                if issubclass(cls, self._base) and cls not in self._installed
            ]
            for cls in pending:
                self.install(cls)
        return bool(pending)

    def watch(self) -> None:
        """Install on connection types as they are defined from now on."""
        with self._lock:
            if self._watch_hook_id is not None:
                return
            self._watch_hook_id = self._hooks.register(
                event=HookEvent.ON_CONNECTION_TYPE_DEFINED,
                callback=self._on_connection_type_defined,
                priority=100,
            )
        logger.debug("Watching for new connection types", base=self._base.__name__)

    def unwatch(self) -> None:
        """Stop installing on newly defined types. Installed types stay installed."""
        with self._lock:
            if self._watch_hook_id is None:
                return
            self._hooks.unregister(self._watch_hook_id)
            self._watch_hook_id = None

    def _on_connection_type_defined(self, event: str, data: Optional[dict[str, Any]]) -> None:
        connection_type = (data or {}).get("connection_type")
        if isinstance(connection_type, type) and issubclass(connection_type, self._base):
            self.ensure_installed(connection_type)

    def _check(self, connection_type: Any) -> None:
        if not isinstance(connection_type, type) or not issubclass(connection_type, self._base):
            raise InstallationError(
                f"{connection_type!r} is not a {self._base.__qualname__} type",
                connection_type=connection_type if isinstance(connection_type, type) else None,
            )

    def _check_owner(self, connection_type: type) -> None:
        # Own or inherited: an inherited wrapper is what this type's instances call.
        for entry in self._entry_points:
            func = inspect.getattr_static(connection_type, entry.name, None)
            owner = wrapper_interceptor(func)
            if owner is not None and owner is not self._adapter.interceptor:
                raise InstallationError(
                    f"{connection_type.__qualname__}.{entry.name} is already intercepted "
                    "by another recorder",
                    connection_type=connection_type,
                    entry_point=entry.name,
                )

    def _hierarchy(self) -> Iterator[type]:
        """The base and all loaded descendants, parents before children."""
        seen: set[type] = set()
        queue = [self._base]
        while queue:
            cls = queue.pop(0)
            if cls in seen:
                continue
            seen.add(cls)
            yield cls
            queue.extend(cls.__subclasses__())
