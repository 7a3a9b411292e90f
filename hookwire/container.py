"""Per-hook callback container."""

from __future__ import annotations

import logging
from typing import Any

from hookwire.locking import RWLock
from hookwire.models import ExecutionOrder, HookCallback, HookSnapshot

logger = logging.getLogger(__name__)


class HookContainer:
    """Callbacks registered for a single hook id.

    Callback ids are handed in by the registry, which never reuses them.
    Insertion order is the dict order of ``_entries``; removal keeps the
    relative order of the remaining callbacks.

    ``execute`` holds the write side of the container lock for the whole run,
    so two executions of the same hook never overlap and ``add``/``remove``
    wait for a running execution to finish. The write side is re-entrant, so a
    callback may still mutate its own hook: removed callbacks are skipped for
    the rest of the run, added ones run from the next ``execute``.

    ``detached`` is set by the registry, under its own write lock, when the
    container is dropped from the mapping. ``add`` and ``suspend`` refuse to
    touch a detached container and return ``False`` so the caller can look the
    hook up again.
    """

    def __init__(
        self,
        hook_id: int,
        order: ExecutionOrder = ExecutionOrder.LIFO,
        *,
        suspended: bool = False,
    ) -> None:
        self.hook_id = hook_id
        self.order = order
        self.detached = False
        self._lock = RWLock()
        self._entries: dict[int, HookCallback] = {}
        self._suspended = suspended

    def add(self, callback_id: int, callback: HookCallback) -> bool:
        with self._lock.write():
            if self.detached:
                return False
            self._entries[callback_id] = callback
        logger.debug("Registered callback %s on hook %s", callback_id, self.hook_id)
        return True

    def remove(self, callback_id: int) -> bool:
        with self._lock.write():
            removed = self._entries.pop(callback_id, None) is not None
        if removed:
            logger.debug("Removed callback %s from hook %s", callback_id, self.hook_id)
        return removed

    def clear(self) -> int:
        with self._lock.write():
            dropped = len(self._entries)
            self._entries.clear()
        return dropped

    def execute(self, args: tuple[Any, ...] = (), kwargs: dict[str, Any] | None = None) -> int:
        """Invoke the callbacks in container order and return how many ran.

        Callback return values are ignored and exceptions propagate unchanged,
        stopping the run. Suspending the hook from inside a callback stops the
        remaining callbacks of the current run.
        """
        kwargs = kwargs or {}
        with self._lock.write():
            if self._suspended or not self._entries:
                return 0
            callback_ids = self._ordered_ids()
            invoked = 0
            for callback_id in callback_ids:
                if self._suspended:
                    break
                callback = self._entries.get(callback_id)
                if callback is None:
                    continue
                callback(*args, **kwargs)
                invoked += 1
        return invoked

    def suspend(self) -> bool:
        with self._lock.write():
            if self.detached:
                return False
            self._suspended = True
        return True

    def unsuspend(self) -> None:
        with self._lock.write():
            self._suspended = False

    @property
    def suspended(self) -> bool:
        with self._lock.read():
            return self._suspended

    def active(self) -> bool:
        with self._lock.read():
            return not self.detached and not self._suspended and bool(self._entries)

    def idle(self) -> bool:
        """True when the container is indistinguishable from an absent hook."""
        with self._lock.read():
            return self.detached or (not self._entries and not self._suspended)

    def count(self) -> int:
        with self._lock.read():
            return len(self._entries)

    def callback_ids(self) -> list[int]:
        """Callback ids in the order ``execute`` would run them."""
        with self._lock.read():
            return self._ordered_ids()

    def snapshot(self) -> HookSnapshot:
        with self._lock.read():
            return HookSnapshot(
                hook_id=self.hook_id,
                order=self.order,
                callback_ids=self._ordered_ids(),
                suspended=self._suspended,
            )

    def _ordered_ids(self) -> list[int]:
        ids = list(self._entries)
        if self.order == ExecutionOrder.LIFO:
            ids.reverse()
        return ids
