"""Table recording services.

Keeps, per connection, the set of tables that received insertions during
the current recording window. The registry is process-wide and keyed by
connection identity; it is safe for concurrent use from independent
connections. A single connection executes its statements serially, so the
per-connection set itself is not locked.
"""

import threading
import weakref
from typing import Any, Optional

from tablerewind.core.hooks.hook_events import HookEvent
from tablerewind.core.hooks.hook_registry import HookRegistry
from tablerewind.core.logging import get_logger

logger = get_logger(__name__)


class TableRecorder:
    """Append-only set of dirtied table names for one connection."""

    __slots__ = ("connection_type", "_tables", "_anchor", "_finalizer")

    def __init__(self, connection_type: str) -> None:
        self.connection_type = connection_type
        self._tables: set[str] = set()
        # Strong reference for connections that cannot be weakly referenced,
        # so their id() cannot be reused while the entry exists.
        self._anchor: Any = None
        self._finalizer: Optional[weakref.finalize] = None

    def add(self, table: str) -> bool:
        """Add a table name.

        Returns:
            True if the table was not recorded yet in this window.
        """
        if table in self._tables:
            return False
        self._tables.add(table)
        return True

    def snapshot(self) -> frozenset[str]:
        """Read-only copy of the recorded tables."""
        return frozenset(self._tables)

    def __contains__(self, table: object) -> bool:
        return table in self._tables

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        return f"TableRecorder({self.connection_type}, tables={sorted(self._tables)!r})"


class RecordingRegistry:
    """Process-wide mapping from connection identity to its TableRecorder.

    Entries are created lazily on the first recorded insertion. They live
    until cleared, or until the connection object is garbage collected when
    it supports weak references.

    Example:
        registry = RecordingRegistry()
        registry.record(connection, "users")
        registry.snapshot(connection)  # frozenset({"users"})
        registry.clear(connection)
    """

    def __init__(self, hooks: Optional[HookRegistry] = None) -> None:
        """Initialize the registry.

        Args:
            hooks: Optional hook registry notified about recorded tables
                and cleared windows.
        """
        self._recorders: dict[int, TableRecorder] = {}
        # Reentrant: a garbage collection triggered while the lock is held
        # runs _discard() on the same thread.
        self._lock = threading.RLock()
        self._hooks = hooks

    def recorder_for(self, connection: Any) -> TableRecorder:
        """Get the connection's recorder, creating it on first use."""
        key = id(connection)
        recorder = self._recorders.get(key)
        if recorder is not None:
            return recorder

        with self._lock:
            recorder = self._recorders.get(key)
            if recorder is None:
                recorder = TableRecorder(type(connection).__name__)
                try:
                    recorder._finalizer = weakref.finalize(connection, self._discard, key, recorder)
                except TypeError:
                    recorder._anchor = connection
                self._recorders[key] = recorder
        return recorder

    def record(self, connection: Any, table: str) -> None:
        """Record that connection inserted into table.

        Idempotent: recording the same table again within a window is a no-op.
        """
        recorder = self.recorder_for(connection)
        if not recorder.add(table):
            return

        logger.debug(
            "Table recorded",
            table=table,
            connection_type=recorder.connection_type,
        )
        if self._hooks is not None:
            self._hooks.trigger(
                HookEvent.ON_TABLE_RECORDED,
                {"connection": connection, "connection_type": recorder.connection_type, "table": table},
                filters={"connection_type": recorder.connection_type},
            )

    def snapshot(self, connection: Any) -> frozenset[str]:
        """Tables recorded for connection in the current window."""
        recorder = self._recorders.get(id(connection))
        if recorder is None:
            return frozenset()
        return recorder.snapshot()

    def clear(self, connection: Any) -> None:
        """End the connection's recording window."""
        self.drain(connection)

    def drain(self, connection: Any) -> frozenset[str]:
        """Snapshot the connection's tables and clear them in one step.

        Returns:
            The tables recorded before clearing.
        """
        with self._lock:
            recorder = self._recorders.pop(id(connection), None)
        if recorder is None:
            return frozenset()

        self._release(recorder)
        tables = recorder.snapshot()
        self._notify_cleared(connection, tables)
        return tables

    def clear_all(self) -> None:
        """End the recording window of every connection."""
        with self._lock:
            recorders, self._recorders = self._recorders, {}

        tables: set[str] = set()
        for recorder in recorders.values():
            self._release(recorder)
            tables.update(recorder.snapshot())
        self._notify_cleared(None, frozenset(tables))

    def __contains__(self, connection: object) -> bool:
        return id(connection) in self._recorders

    def __len__(self) -> int:
        return len(self._recorders)

    def _discard(self, key: int, recorder: TableRecorder) -> None:
        # Runs when the connection is garbage collected.
        with self._lock:
            if self._recorders.get(key) is recorder:
                del self._recorders[key]

    @staticmethod
    def _release(recorder: TableRecorder) -> None:
        if recorder._finalizer is not None:
            recorder._finalizer.detach()
        recorder._anchor = None

    def _notify_cleared(self, connection: Any, tables: frozenset[str]) -> None:
        logger.debug("Recording window cleared", table_count=len(tables))
        if self._hooks is not None:
            self._hooks.trigger(
                HookEvent.ON_RECORDER_CLEARED,
                {"connection": connection, "tables": tables},
            )
