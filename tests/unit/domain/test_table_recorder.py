"""Unit tests for TableRecorder and RecordingRegistry."""

import gc
import threading

from tablerewind.core.hooks.hook_events import HookEvent
from tablerewind.core.hooks.hook_registry import HookRegistry
from tablerewind.domain.services.table_recorder import RecordingRegistry, TableRecorder


class FakeConnection:
    """Stand-in connection object."""


class SlottedConnection:
    """A connection that cannot be weakly referenced."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name


class TestTableRecorder:
    """Tests for the per-connection set."""

    def test_add_reports_new_tables(self) -> None:
        recorder = TableRecorder("FakeConnection")
        assert recorder.add("users") is True
        assert recorder.add("users") is False
        assert recorder.add("orders") is True
        assert len(recorder) == 2
        assert "users" in recorder

    def test_snapshot_is_a_copy(self) -> None:
        """Test that a snapshot does not change with later additions."""
        recorder = TableRecorder("FakeConnection")
        recorder.add("users")
        snapshot = recorder.snapshot()
        recorder.add("orders")

        assert snapshot == frozenset({"users"})
        assert recorder.snapshot() == frozenset({"users", "orders"})

    def test_repr(self) -> None:
        recorder = TableRecorder("FakeConnection")
        recorder.add("b")
        recorder.add("a")
        assert repr(recorder) == "TableRecorder(FakeConnection, tables=['a', 'b'])"


class TestRecordingRegistry:
    """Tests for recording, snapshots and clearing."""

    def test_record_and_snapshot(self, recordings: RecordingRegistry) -> None:
        """Test that recorded tables appear in the connection's snapshot."""
        conn = FakeConnection()
        recordings.record(conn, "users")
        recordings.record(conn, "orders")

        assert recordings.snapshot(conn) == frozenset({"users", "orders"})

    def test_record_is_idempotent(self, recordings: RecordingRegistry) -> None:
        """Test that recording the same table twice keeps one entry."""
        conn = FakeConnection()
        recordings.record(conn, "users")
        recordings.record(conn, "users")

        assert recordings.snapshot(conn) == frozenset({"users"})

    def test_unknown_connection_has_empty_snapshot(self, recordings: RecordingRegistry) -> None:
        """Test that a connection without recordings yields an empty set."""
        conn = FakeConnection()
        assert recordings.snapshot(conn) == frozenset()
        assert conn not in recordings

    def test_snapshot_is_immutable(self, recordings: RecordingRegistry) -> None:
        conn = FakeConnection()
        recordings.record(conn, "users")
        assert isinstance(recordings.snapshot(conn), frozenset)

    def test_connections_are_independent(self, recordings: RecordingRegistry) -> None:
        """Test that each connection has its own recording window."""
        first, second = FakeConnection(), FakeConnection()
        recordings.record(first, "users")
        recordings.record(second, "orders")

        assert recordings.snapshot(first) == frozenset({"users"})
        assert recordings.snapshot(second) == frozenset({"orders"})

    def test_clear(self, recordings: RecordingRegistry) -> None:
        """Test that clear() starts a new window for that connection only."""
        first, second = FakeConnection(), FakeConnection()
        recordings.record(first, "users")
        recordings.record(second, "orders")

        recordings.clear(first)

        assert recordings.snapshot(first) == frozenset()
        assert first not in recordings
        assert recordings.snapshot(second) == frozenset({"orders"})

    def test_clear_unknown_connection(self, recordings: RecordingRegistry) -> None:
        """Test that clearing a connection with no recordings is a no-op."""
        recordings.clear(FakeConnection())
        assert len(recordings) == 0

    def test_record_after_clear(self, recordings: RecordingRegistry) -> None:
        conn = FakeConnection()
        recordings.record(conn, "users")
        recordings.clear(conn)
        recordings.record(conn, "orders")

        assert recordings.snapshot(conn) == frozenset({"orders"})

    def test_drain(self, recordings: RecordingRegistry) -> None:
        """Test that drain() returns the window's tables and clears it."""
        conn = FakeConnection()
        recordings.record(conn, "users")
        recordings.record(conn, "orders")

        assert recordings.drain(conn) == frozenset({"users", "orders"})
        assert recordings.snapshot(conn) == frozenset()
        assert recordings.drain(conn) == frozenset()

    def test_clear_all(self, recordings: RecordingRegistry) -> None:
        connections = [FakeConnection() for _ in range(3)]
        for i, conn in enumerate(connections):
            recordings.record(conn, f"table_{i}")

        recordings.clear_all()

        assert len(recordings) == 0
        assert all(recordings.snapshot(conn) == frozenset() for conn in connections)

    def test_collected_connection_is_discarded(self, recordings: RecordingRegistry) -> None:
        """Test that an entry goes away with its garbage collected connection."""
        conn = FakeConnection()
        recordings.record(conn, "users")
        assert len(recordings) == 1

        del conn
        gc.collect()

        assert len(recordings) == 0

    def test_non_weakrefable_connection(self, recordings: RecordingRegistry) -> None:
        """Test that connections without weakref support are held until cleared."""
        conn = SlottedConnection("primary")
        recordings.record(conn, "users")

        assert recordings.snapshot(conn) == frozenset({"users"})
        assert recordings.recorder_for(conn)._anchor is conn

        recordings.clear(conn)
        assert len(recordings) == 0

    def test_recorder_for_reuses_recorder(self, recordings: RecordingRegistry) -> None:
        conn = FakeConnection()
        recorder = recordings.recorder_for(conn)
        assert recordings.recorder_for(conn) is recorder
        assert recorder.connection_type == "FakeConnection"


class TestRecordingHooks:
    """Tests for recording notifications."""

    def test_table_recorded_fires_once_per_window(
        self, hooks: HookRegistry, recordings: RecordingRegistry
    ) -> None:
        """Test that ON_TABLE_RECORDED fires on the first insertion only."""
        seen = []
        hooks.register(HookEvent.ON_TABLE_RECORDED, lambda event, data: seen.append(data["table"]))

        conn = FakeConnection()
        recordings.record(conn, "users")
        recordings.record(conn, "users")
        recordings.record(conn, "orders")
        recordings.clear(conn)
        recordings.record(conn, "users")

        assert seen == ["users", "orders", "users"]

    def test_table_recorded_filtered_by_connection_type(
        self, hooks: HookRegistry, recordings: RecordingRegistry
    ) -> None:
        """Test that hooks filtered on connection_type only see that type."""
        seen = []
        hooks.register(
            HookEvent.ON_TABLE_RECORDED,
            lambda event, data: seen.append(data["table"]),
            filters={"connection_type": "SlottedConnection"},
        )

        recordings.record(FakeConnection(), "users")
        slotted = SlottedConnection("replica")
        recordings.record(slotted, "orders")

        assert seen == ["orders"]
        recordings.clear(slotted)

    def test_recorder_cleared_carries_tables(
        self, hooks: HookRegistry, recordings: RecordingRegistry
    ) -> None:
        cleared = []
        hooks.register(HookEvent.ON_RECORDER_CLEARED, lambda event, data: cleared.append(data))

        conn = FakeConnection()
        recordings.record(conn, "users")
        recordings.drain(conn)

        assert cleared == [{"connection": conn, "tables": frozenset({"users"})}]

    def test_failing_hook_does_not_break_recording(
        self, hooks: HookRegistry, recordings: RecordingRegistry
    ) -> None:
        def broken(event, data):
            raise RuntimeError("observer failed")

        hooks.register(HookEvent.ON_TABLE_RECORDED, broken)

        conn = FakeConnection()
        recordings.record(conn, "users")
        assert recordings.snapshot(conn) == frozenset({"users"})

    def test_registry_without_hooks(self) -> None:
        registry = RecordingRegistry()
        conn = FakeConnection()
        registry.record(conn, "users")
        assert registry.drain(conn) == frozenset({"users"})


class TestRecordingConcurrency:
    """Recording from many threads at once."""

    def test_independent_connections(self, recordings: RecordingRegistry) -> None:
        """Test that concurrent connections never see each other's tables."""
        connections = [FakeConnection() for _ in range(8)]
        barrier = threading.Barrier(len(connections))

        def work(index: int, conn: FakeConnection) -> None:
            barrier.wait()
            for n in range(200):
                recordings.record(conn, f"t{index}_{n % 20}")

        threads = [
            threading.Thread(target=work, args=(i, conn)) for i, conn in enumerate(connections)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for i, conn in enumerate(connections):
            assert recordings.snapshot(conn) == frozenset(f"t{i}_{n}" for n in range(20))

    def test_first_use_from_many_threads_creates_one_recorder(
        self, recordings: RecordingRegistry
    ) -> None:
        """Test that racing first insertions on one connection share a recorder."""
        conn = FakeConnection()
        barrier = threading.Barrier(8)
        recorders = []

        def work() -> None:
            barrier.wait()
            recorders.append(recordings.recorder_for(conn))

        threads = [threading.Thread(target=work) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({id(recorder) for recorder in recorders}) == 1
        assert len(recordings) == 1

    def test_collection_while_locked_does_not_deadlock(
        self, recordings: RecordingRegistry
    ) -> None:
        """Test that a connection collected inside the locked section is discarded."""

        class CollectingLock:
            """Runs one garbage collection right after acquiring the lock."""

            def __init__(self, lock) -> None:
                self._lock = lock
                self._collected = False

            def __enter__(self):
                self._lock.acquire()
                if not self._collected:
                    self._collected = True
                    gc.collect()
                return self

            def __exit__(self, *exc_info) -> None:
                self._lock.release()

        gc.disable()
        try:
            doomed = FakeConnection()
            doomed.self_reference = doomed
            recordings.record(doomed, "users")
            del doomed

            recordings._lock = CollectingLock(recordings._lock)
            conn = FakeConnection()
            thread = threading.Thread(target=recordings.record, args=(conn, "orders"), daemon=True)
            thread.start()
            thread.join(timeout=5)
        finally:
            gc.enable()

        assert not thread.is_alive()
        assert len(recordings) == 1
        assert recordings.snapshot(conn) == frozenset({"orders"})

    def test_clear_all_with_pending_collection(self, recordings: RecordingRegistry) -> None:
        """Test that clear_all() tolerates a connection collected mid-clear."""
        gc.disable()
        try:
            doomed = FakeConnection()
            doomed.self_reference = doomed
            recordings.record(doomed, "users")
            del doomed
            kept = FakeConnection()
            recordings.record(kept, "orders")

            recordings.clear_all()
            gc.collect()
        finally:
            gc.enable()

        assert len(recordings) == 0
