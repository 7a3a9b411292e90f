"""Thread-safe hook registry."""

from __future__ import annotations

import itertools
import logging
import threading
from pathlib import Path
from typing import Any

from hookwire.config import RegistryConfig, load_effective_config
from hookwire.container import HookContainer
from hookwire.locking import RWLock
from hookwire.models import HookCallback, HookSnapshot

logger = logging.getLogger(__name__)


class HookRegistry:
    """Maps integer hook ids to containers of callbacks.

    The registry lock only guards which containers exist. Each container has
    its own lock for its callbacks and suspension flag, and that lock is never
    taken while the registry lock is held, so a slow callback on one hook does
    not block registration on another.

    Callbacks must not cross-register between hooks that can run at the same
    time on different threads: a callback on hook 1 calling ``add(2)`` while a
    callback on hook 2 calls ``add(1)`` deadlocks, because ``execute`` holds
    its hook's lock for the whole run.

    Callback ids come from one registry-wide counter and are never reused,
    not even after ``remove_all``. Unknown hook or callback ids are never an
    error: ``remove``, ``execute`` and friends quietly do nothing.
    """

    def __init__(self, config: RegistryConfig | None = None) -> None:
        self.config = config or RegistryConfig()
        self._lock = RWLock()
        self._hooks: dict[int, HookContainer] = {}
        self._ids = itertools.count(1)
        self._ids_lock = threading.Lock()
        for hook_id in self.config.suspended_hooks:
            self.suspend(hook_id)

    @classmethod
    def from_path(
        cls,
        path: str | Path,
        system_defaults: dict[str, Any] | None = None,
        runtime_override: dict[str, Any] | None = None,
    ) -> HookRegistry:
        config = load_effective_config(
            path,
            system_defaults=system_defaults,
            runtime_override=runtime_override,
        )
        return cls(config=config)

    def add(self, hook_id: int, callback: HookCallback) -> int:
        """Register ``callback`` on ``hook_id`` and return its callback id."""
        with self._ids_lock:
            callback_id = next(self._ids)
        while True:
            if self._container_for_update(hook_id).add(callback_id, callback):
                return callback_id

    def execute(self, hook_id: int, *args: Any, **kwargs: Any) -> None:
        """Run every callback of ``hook_id`` with the given arguments.

        Missing and suspended hooks are a no-op. Callback results are
        discarded; a callback that raises aborts the run and the exception
        reaches the caller.
        """
        container = self._get(hook_id)
        if container is None:
            return
        invoked = container.execute(args, kwargs)
        logger.debug("Executed hook %s (%s callbacks)", hook_id, invoked)

    def remove(self, hook_id: int, callback_id: int) -> None:
        container = self._get(hook_id)
        if container is not None:
            container.remove(callback_id)

    def remove_all(self, hook_id: int) -> None:
        with self._lock.write():
            container = self._hooks.pop(hook_id, None)
            if container is None:
                return
            container.detached = True
        dropped = container.clear()
        logger.info("Removed hook %s (%s callbacks dropped)", hook_id, dropped)

    def active(self, hook_id: int) -> bool:
        """Whether ``execute(hook_id)`` would currently run anything.

        Useful as a cheap check before building expensive arguments.
        """
        container = self._get(hook_id)
        return container is not None and container.active()

    def suspend(self, hook_id: int) -> None:
        """Make ``execute`` a no-op for ``hook_id`` while keeping its callbacks.

        Suspending a hook nobody registered on yet creates an empty, suspended
        container, so later registrations stay suspended too.
        """
        while True:
            if self._container_for_update(hook_id).suspend():
                logger.info("Suspended hook %s", hook_id)
                return

    def unsuspend(self, hook_id: int) -> None:
        container = self._get(hook_id)
        if container is None:
            return
        container.unsuspend()
        logger.info("Unsuspended hook %s", hook_id)

    def is_suspended(self, hook_id: int) -> bool:
        container = self._get(hook_id)
        return container is not None and container.suspended

    def count(self, hook_id: int) -> int:
        container = self._get(hook_id)
        return 0 if container is None else container.count()

    def hook_ids(self) -> list[int]:
        """Sorted ids of hooks with callbacks or a pending suspension."""
        with self._lock.read():
            containers = list(self._hooks.items())
        return sorted(hook_id for hook_id, container in containers if not container.idle())

    def snapshot(self, hook_id: int) -> HookSnapshot | None:
        container = self._get(hook_id)
        if container is None:
            return None
        snapshot = container.snapshot()
        if not snapshot.callback_ids and not snapshot.suspended:
            return None
        return snapshot

    def __len__(self) -> int:
        return len(self.hook_ids())

    def __contains__(self, hook_id: object) -> bool:
        with self._lock.read():
            container = self._hooks.get(hook_id)
        return container is not None and not container.idle()

    def _get(self, hook_id: int) -> HookContainer | None:
        with self._lock.read():
            return self._hooks.get(hook_id)

    def _container_for_update(self, hook_id: int) -> HookContainer:
        container = self._get(hook_id)
        if container is not None:
            return container
        with self._lock.write():
            container = self._hooks.get(hook_id)
            if container is None:
                container = HookContainer(hook_id, self.config.order)
                self._hooks[hook_id] = container
                logger.debug("Created container for hook %s", hook_id)
            return container
