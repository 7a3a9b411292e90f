"""Core types shared by the hook registry."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class HookOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class ExecutionOrder(str, Enum):
    LIFO = "lifo"
    FIFO = "fifo"


# Callbacks may report an outcome, but the registry never aggregates it.
HookCallback = Callable[..., HookOutcome | None]


class HookSnapshot(BaseModel):
    """Point-in-time view of one hook's container."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    hook_id: int
    order: ExecutionOrder = ExecutionOrder.LIFO
    callback_ids: list[int] = Field(default_factory=list)
    suspended: bool = False

    @property
    def active(self) -> bool:
        return bool(self.callback_ids) and not self.suspended
