"""Process-wide wiring of interception and recording.

install() builds the single Rewinder for the process: the recording
registry, the interceptor, the SQLAlchemy dialect registry and its
engine_connect listener. Reset collaborators read and clear recordings
through the Rewinder.

Example:
    import tablerewind

    rewinder = tablerewind.install()
    ...
    tables = rewinder.drain(engine)  # truncate these, window starts over
"""

import threading
from typing import Any, Optional, Sequence, Union

from tablerewind.core.config import Settings, get_settings
from tablerewind.core.exceptions import InstallationError
from tablerewind.core.hooks import HookDecorator, get_hook_registry
from tablerewind.core.hooks.hook_registry import HookRegistry
from tablerewind.core.logging import configure_logging, get_logger
from tablerewind.domain.services.statement_classifier import StatementClassifier
from tablerewind.domain.services.table_recorder import RecordingRegistry
from tablerewind.infrastructure.interception.adapter_registry import AdapterRegistry
from tablerewind.infrastructure.interception.interceptor import InsertInterceptor
from tablerewind.infrastructure.interception.recorded_connection import DEFAULT_ENTRY_POINTS
from tablerewind.infrastructure.interception.signature_adapter import (
    EntryPoint,
    SignatureAdapter,
)
from tablerewind.infrastructure.persistence.event_listeners import (
    create_dialect_registry,
    register_sqlalchemy_listeners,
    resolve_dialect,
)

logger = get_logger(__name__)


class Rewinder:
    """Recording facade for reset collaborators.

    Connections are identified by object identity. Anything with a
    ``dialect`` attribute (Engine, Connection, AsyncEngine, AsyncConnection)
    resolves to its dialect, the object SQLAlchemy recordings are kept under.
    """

    def __init__(
        self,
        settings: Settings,
        hooks: HookRegistry,
        recordings: Optional[RecordingRegistry] = None,
    ) -> None:
        """Initialize the rewinder. Nothing is installed until install_sqlalchemy() or track().

        Args:
            settings: Recording settings.
            hooks: Hook registry for observers and construction-time hooks.
            recordings: Recording registry (created when not given).
        """
        self.settings = settings
        self.hooks = hooks
        self.recordings = recordings if recordings is not None else RecordingRegistry(hooks)
        self.interceptor = InsertInterceptor(
            self.recordings,
            StatementClassifier(
                split_statements=settings.split_statements,
                backslash_escapes=settings.backslash_escapes,
            ),
            record_schema=settings.record_schema,
        )
        self.adapter = SignatureAdapter(self.interceptor)
        self.dialects: Optional[AdapterRegistry] = None
        self.tracked: list[AdapterRegistry] = []
        self._listener: Any = None
        self._lock = threading.RLock()

    @property
    def hook(self) -> HookDecorator:
        """Decorator API over the hook registry."""
        return HookDecorator(self.hooks)

    def install_sqlalchemy(self) -> AdapterRegistry:
        """Install interception on every SQLAlchemy dialect class (idempotent).

        Raises:
            InstallationError: If another Rewinder already intercepts the dialects.
        """
        with self._lock:
            if self.dialects is None:
                dialects = create_dialect_registry(self.adapter, self.hooks, self.settings)
                self._activate(dialects)
                if self.settings.listen_for_new_engines:
                    self._listener = register_sqlalchemy_listeners(dialects, self.hooks)
                self.dialects = dialects
            return self.dialects

    def track(
        self,
        base: type,
        entry_points: Optional[Sequence[Union[EntryPoint, str]]] = None,
    ) -> AdapterRegistry:
        """Install interception on a non-SQLAlchemy connection hierarchy.

        Every loaded descendant of base is installed now; descendants
        defined later are installed when they announce themselves (see
        RecordedConnection and connection_type_defined()).

        Args:
            base: Root connection class.
            entry_points: Entry points to wrap. Defaults to the base's
                ``recorded_entry_points`` or execute/exec_query/raw_execute.

        Returns:
            The AdapterRegistry for this hierarchy.

        Raises:
            InstallationError: If the hierarchy is already intercepted by
                another Rewinder.
        """
        if entry_points is None:
            entry_points = getattr(base, "recorded_entry_points", DEFAULT_ENTRY_POINTS)

        with self._lock:
            for registry in self.tracked:
                if registry.base is base:
                    return registry
            registry = AdapterRegistry(base, entry_points, self.adapter, self.hooks)
            self._activate(registry)
            self.tracked.append(registry)
        return registry

    def _activate(self, registry: AdapterRegistry) -> None:
        # Watch first so types defined while install_all() runs are not missed.
        registry.watch()
        try:
            registry.install_all()
        except InstallationError:
            registry.unwatch()
            raise

    def snapshot(self, bind: Any) -> frozenset[str]:
        """Tables bind inserted into during the current recording window."""
        return self.recordings.snapshot(resolve_dialect(bind))

    def clear(self, bind: Any) -> None:
        """End bind's recording window."""
        self.recordings.clear(resolve_dialect(bind))

    def drain(self, bind: Any) -> frozenset[str]:
        """Snapshot bind's tables and clear them in one step."""
        return self.recordings.drain(resolve_dialect(bind))

    def clear_all(self) -> None:
        """End every connection's recording window."""
        self.recordings.clear_all()


_rewinder: Optional[Rewinder] = None
_lock = threading.Lock()


def install(settings: Optional[Settings] = None) -> Rewinder:
    """Install recording for the process.

    Idempotent: later calls return the Rewinder built by the first one and
    ignore their settings argument. Installation is one-way; there is no
    uninstall.

    Args:
        settings: Optional settings instance. If not provided, will load from environment.

    Returns:
        The process-wide Rewinder.
    """
    global _rewinder
    with _lock:
        if _rewinder is not None:
            return _rewinder

        if settings is None:
            settings = get_settings()
        if settings.configure_logging:
            configure_logging(settings)

        rewinder = Rewinder(settings, get_hook_registry())
        if settings.enabled:
            rewinder.install_sqlalchemy()
        else:
            logger.info("Recording disabled by configuration")
        _rewinder = rewinder
        return rewinder


def get_rewinder() -> Rewinder:
    """Get the process-wide Rewinder.

    Raises:
        RuntimeError: If install() has not been called.
    """
    if _rewinder is None:
        raise RuntimeError("tablerewind is not installed. Call tablerewind.install() first.")
    return _rewinder


def inserted_tables(bind: Any) -> frozenset[str]:
    """Tables bind inserted into during the current recording window."""
    return get_rewinder().snapshot(bind)


def clear_inserted_tables(bind: Any) -> None:
    """End bind's recording window."""
    get_rewinder().clear(bind)
