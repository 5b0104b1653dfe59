"""Hook registry.

Observers of connection type installation and table recording subscribe
here. Hooks run synchronously, inline with the driver call or class
definition that triggered them, and a failing observer never fails the
triggering operation unless it asked to stop the chain.

Triggering happens on the recording path (once per newly recorded table),
so each event's hooks are kept in execution order as they are registered
and a trigger only filters.
"""

import bisect
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from tablerewind.core.logging import get_logger
from tablerewind.domain.entities.hook_result import HookResult

logger = get_logger(__name__)


@dataclass
class RegisteredHook:
    """A hook subscribed to one event.

    Attributes:
        id: Handle returned by register().
        event: Subscribed event name.
        callback: Called as callback(event, data).
        filters: Tags a trigger must carry for the hook to run, e.g.
            {"connection_type": "SQLiteDialect_pysqlite"}.
        priority: Higher runs earlier.
        stop_on_error: A failure ends the chain.
        registration_order: Tie breaker between equal priorities.
    """

    id: str
    event: str
    callback: Callable
    filters: dict[str, Any] = field(default_factory=dict)
    priority: int = 0
    stop_on_error: bool = False
    registration_order: int = 0

    @property
    def sort_key(self) -> tuple[int, int]:
        return (-self.priority, self.registration_order)

    def matches(self, filters: Optional[dict[str, Any]]) -> bool:
        """Whether a trigger carrying these filters reaches this hook.

        Unfiltered hooks see every trigger. Filtered hooks only see triggers
        that carry an equal value for each of their keys.
        """
        if not self.filters:
            return True
        if not filters:
            return False
        return all(
            filters.get(key) is not None and filters[key] == value
            for key, value in self.filters.items()
        )


class HookRegistry:
    """Subscriptions per event, kept in execution order.

    Example:
        registry = HookRegistry()

        hook_id = registry.register(
            HookEvent.ON_TABLE_RECORDED,
            lambda event, data: print(data["table"]),
            filters={"connection_type": "SQLiteDialect_pysqlite"},
        )
        registry.trigger(
            HookEvent.ON_TABLE_RECORDED,
            {"table": "users"},
            filters={"connection_type": "SQLiteDialect_pysqlite"},
        )
        registry.unregister(hook_id)
    """

    def __init__(self) -> None:
        self._hooks: dict[str, list[RegisteredHook]] = {}
        self._by_id: dict[str, RegisteredHook] = {}
        self._counter = 0
        self._lock = threading.RLock()

    def register(
        self,
        event: str,
        callback: Callable,
        filters: Optional[dict[str, Any]] = None,
        priority: int = 0,
        stop_on_error: bool = False,
    ) -> str:
        """Subscribe callback to event.

        Args:
            event: Event name (see HookEvent).
            callback: Called as callback(event, data). Returning a dict
                replaces the data seen by later hooks.
            filters: Tags a trigger must carry for the hook to run.
            priority: Higher priority hooks run first; equal priorities run
                in registration order.
            stop_on_error: If True, a failure in this hook ends the chain.

        Returns:
            The hook id, for unregister().
        """
        with self._lock:
            self._counter += 1
            hook = RegisteredHook(
                id=f"hook_{uuid.uuid4().hex[:12]}",
                event=event,
                callback=callback,
                filters=dict(filters or {}),
                priority=priority,
                stop_on_error=stop_on_error,
                registration_order=self._counter,
            )
            bisect.insort(self._hooks.setdefault(event, []), hook, key=lambda h: h.sort_key)
            self._by_id[hook.id] = hook

        logger.debug(
            "Hook registered",
            hook_id=hook.id,
            hook_event=event,
            priority=priority,
            filters=hook.filters or None,
        )
        return hook.id

    def unregister(self, hook_id: str) -> bool:
        """Remove a hook.

        Returns:
            False if the id is unknown.
        """
        with self._lock:
            hook = self._by_id.get(hook_id)
            if hook is None:
                logger.warning("Unknown hook id", hook_id=hook_id)
                return False
            self._remove(hook)

        logger.debug("Hook unregistered", hook_id=hook_id, hook_event=hook.event)
        return True

    def trigger(
        self,
        event: str,
        data: Optional[dict[str, Any]] = None,
        filters: Optional[dict[str, Any]] = None,
    ) -> HookResult:
        """Run the event's matching hooks in order.

        Args:
            event: Event name.
            data: Passed to the first hook.
            filters: Tags describing this trigger (see RegisteredHook.matches()).

        Returns:
            HookResult. success is False if any hook raised; errors holds
            one message per failure and data the last replacement dict.
        """
        result = HookResult(success=True, data=data)
        with self._lock:
            hooks = [hook for hook in self._hooks.get(event, ()) if hook.matches(filters)]

        for hook in hooks:
            try:
                returned = hook.callback(event, result.data)
            except Exception as e:
                logger.error(
                    "Hook failed",
                    hook_id=hook.id,
                    hook_event=event,
                    error=str(e),
                    stop_on_error=hook.stop_on_error,
                )
                result.errors.append(f"Hook {hook.id} failed: {e}")
                result.success = False
                if hook.stop_on_error:
                    break
                continue

            if isinstance(returned, dict):
                result.data = returned

        return result

    def get_hooks_for_event(self, event: str) -> list[RegisteredHook]:
        """Hooks subscribed to event, in execution order."""
        with self._lock:
            return list(self._hooks.get(event, ()))

    def get_all_hooks(self) -> dict[str, list[RegisteredHook]]:
        """Hooks by event, in execution order."""
        with self._lock:
            return {event: list(hooks) for event, hooks in self._hooks.items()}

    def get_hook_by_id(self, hook_id: str) -> Optional[RegisteredHook]:
        return self._by_id.get(hook_id)

    def clear(self) -> int:
        """Remove every hook.

        Returns:
            Number of hooks removed.
        """
        with self._lock:
            doomed = list(self._by_id.values())
            for hook in doomed:
                self._remove(hook)

        logger.debug("Hooks cleared", count=len(doomed))
        return len(doomed)

    def _remove(self, hook: RegisteredHook) -> None:
        remaining = [h for h in self._hooks.get(hook.event, ()) if h.id != hook.id]
        if remaining:
            self._hooks[hook.event] = remaining
        else:
            self._hooks.pop(hook.event, None)
        del self._by_id[hook.id]
