from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import StrEnum
from functools import partial
from typing import AsyncIterator, Callable, Generic, TypeVar

from whatshub.data import Group
from whatshub.utils import get_logger


logger = get_logger(__name__)

PayloadT = TypeVar("PayloadT")


class EventHook(Generic[PayloadT]):
    """Ordered callbacks notified with one payload type.

    A failing subscriber is logged and skipped; it never reaches the directory
    operation that published the event.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._callbacks: list[Callable[[PayloadT], None]] = []

    def subscribe(self, callback: Callable[[PayloadT], None]) -> Callable[[], None]:
        self._callbacks.append(callback)
        return partial(self._discard, callback)

    def emit(self, payload: PayloadT) -> None:
        for callback in tuple(self._callbacks):
            try:
                callback(payload)
            except Exception:
                logger.exception("Event subscriber failed", hook=self.name)

    def _discard(self, callback: Callable[[PayloadT], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def __len__(self) -> int:
        return len(self._callbacks)


class MutationStatus(StrEnum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class GroupMutationEvent:
    """Progress of one write against the group table."""

    operation: str
    group_id: str | None
    status: MutationStatus
    error: Exception | None = None


@dataclass(frozen=True, slots=True)
class RefreshEvent:
    groups: tuple[Group, ...]
    generation: int


@dataclass(frozen=True, slots=True)
class ServiceErrorEvent:
    operation: str
    error: Exception
    group_id: str | None = None


@asynccontextmanager
async def tracked_mutation(
    hook: EventHook[GroupMutationEvent],
    operation: str,
    group_id: str | None = None,
) -> AsyncIterator[None]:
    """Publish pending, then succeeded or failed, around a group write."""

    hook.emit(GroupMutationEvent(operation, group_id, MutationStatus.PENDING))
    try:
        yield
    except Exception as exc:
        hook.emit(GroupMutationEvent(operation, group_id, MutationStatus.FAILED, exc))
        raise
    hook.emit(GroupMutationEvent(operation, group_id, MutationStatus.SUCCEEDED))


__all__ = [
    "EventHook",
    "GroupMutationEvent",
    "MutationStatus",
    "RefreshEvent",
    "ServiceErrorEvent",
    "tracked_mutation",
]
