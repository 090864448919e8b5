from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Awaitable, Callable, ClassVar, Mapping, TypeVar

from whatshub.data import Group, GroupDraft
from whatshub.services.events import (
    EventHook,
    GroupMutationEvent,
    RefreshEvent,
    ServiceErrorEvent,
    tracked_mutation,
)
from whatshub.store import ConfigurationError, ConnectivityError, GroupGateway, StoreError
from whatshub.utils import get_logger


logger = get_logger(__name__)

ReturnT = TypeVar("ReturnT")


class DirectoryState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class DirectoryStatus:
    state: DirectoryState
    reason: str | None = None
    error: Exception | None = None

    @classmethod
    def failed(cls, error: Exception) -> DirectoryStatus:
        reason = str(error) or type(error).__name__
        return cls(DirectoryState.FAILED, reason=reason, error=error)

    @property
    def is_loading(self) -> bool:
        return self.state is DirectoryState.LOADING

    @property
    def is_ready(self) -> bool:
        return self.state is DirectoryState.READY

    @property
    def is_failed(self) -> bool:
        return self.state is DirectoryState.FAILED

    @property
    def is_configuration_error(self) -> bool:
        return isinstance(self.error, ConfigurationError)


class ReconcileStrategy(StrEnum):
    """How the local list catches up after a successful write.

    ``FULL_REFRESH`` replaces the list with a fresh fetch so server-assigned
    values (ids, timestamps, ordering) are picked up. ``OPTIMISTIC_PATCH``
    applies the change locally because the store derives nothing from it.
    """

    FULL_REFRESH = "full_refresh"
    OPTIMISTIC_PATCH = "optimistic_patch"


class DirectoryService:
    """Own the local group list and keep it consistent with the store.

    Every operation that reads from or writes to the store runs behind a single
    FIFO lock, so a refresh queued after a delete can never resurrect the
    deleted row, and no two reconciliations interleave.
    """

    RECONCILIATION: ClassVar[Mapping[str, ReconcileStrategy]] = MappingProxyType(
        {
            "create": ReconcileStrategy.FULL_REFRESH,
            "edit_save": ReconcileStrategy.FULL_REFRESH,
            "remove": ReconcileStrategy.OPTIMISTIC_PATCH,
            "set_verified": ReconcileStrategy.OPTIMISTIC_PATCH,
        }
    )

    def __init__(
        self,
        gateway: GroupGateway,
        *,
        request_timeout: float | None = 15.0,
    ) -> None:
        self._gateway = gateway
        self._request_timeout = request_timeout
        self._groups: tuple[Group, ...] = ()
        self._status = DirectoryStatus(DirectoryState.IDLE)
        self._generation = 0
        self._lock = asyncio.Lock()

        self.refreshed: EventHook[RefreshEvent] = EventHook("directory.refreshed")
        self.errors: EventHook[ServiceErrorEvent] = EventHook("directory.errors")
        self.status_changed: EventHook[DirectoryStatus] = EventHook("directory.status")
        self.mutations: EventHook[GroupMutationEvent] = EventHook("directory.mutations")

    # ---------------------------------------------------------------- Queries

    @property
    def groups(self) -> tuple[Group, ...]:
        return self._groups

    @property
    def status(self) -> DirectoryStatus:
        return self._status

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def gateway(self) -> GroupGateway:
        return self._gateway

    def get(self, group_id: str) -> Group | None:
        for group in self._groups:
            if group.id == group_id:
                return group
        return None

    # ---------------------------------------------------------------- Actions

    async def start(self) -> DirectoryStatus:
        """Initial load; store failures end up in ``status`` instead of raising."""

        try:
            await self.refresh()
        except ConfigurationError as exc:
            logger.error("Group database is not configured", missing=list(exc.missing))
        except StoreError:
            logger.warning("Initial group load failed", reason=self._status.reason)
        except Exception:
            # _refresh_locked already recorded FAILED and reported the error
            logger.error("Initial group load crashed", reason=self._status.reason)
        return self._status

    async def refresh(self) -> tuple[Group, ...]:
        async with self._lock:
            return await self._refresh_locked()

    async def create(self, draft: GroupDraft) -> Group:
        async with self._lock:
            created = await self._mutate(
                "create",
                None,
                lambda: self._gateway.insert(draft),
            )
            logger.info("Created group", group_id=created.id, name=created.name)
            await self._refresh_after_write("create")
            return created

    async def edit_save(self, group_id: str, draft: GroupDraft) -> None:
        async with self._lock:
            await self._mutate(
                "edit_save",
                group_id,
                lambda: self._gateway.update(group_id, draft.to_row()),
            )
            logger.info("Saved group edits", group_id=group_id)
            await self._refresh_after_write("edit_save")

    async def remove(self, group_id: str) -> None:
        async with self._lock:
            await self._mutate(
                "remove",
                group_id,
                lambda: self._gateway.delete(group_id),
            )
            remaining = tuple(group for group in self._groups if group.id != group_id)
            self._replace(remaining)
            logger.info("Removed group", group_id=group_id, generation=self._generation)

    async def set_verified(self, group_id: str, value: bool) -> None:
        async with self._lock:
            await self._mutate(
                "set_verified",
                group_id,
                lambda: self._gateway.update(group_id, {"isVerified": value}),
            )
            patched = tuple(
                group.with_verified(value) if group.id == group_id else group
                for group in self._groups
            )
            self._replace(patched)
            logger.info(
                "Updated verification flag",
                group_id=group_id,
                verified=value,
                generation=self._generation,
            )

    # ------------------------------------------------------------- Internals

    async def _refresh_locked(self) -> tuple[Group, ...]:
        previous = self._status
        self._set_status(DirectoryStatus(DirectoryState.LOADING))
        try:
            fetched = await self._bounded(self._gateway.fetch_all())
        except asyncio.CancelledError:
            self._set_status(previous)
            raise
        except Exception as exc:
            self._set_status(DirectoryStatus.failed(exc))
            self._report("refresh", None, exc)
            raise
        self._replace(tuple(fetched))
        self._set_status(DirectoryStatus(DirectoryState.READY))
        self.refreshed.emit(RefreshEvent(groups=self._groups, generation=self._generation))
        logger.debug("Group list refreshed", count=len(self._groups))
        return self._groups

    async def _refresh_after_write(self, operation: str) -> None:
        # The write already landed; a failed reload is surfaced via status only.
        try:
            await self._refresh_locked()
        except StoreError:
            logger.warning("Reload after write failed", operation=operation)

    async def _mutate(
        self,
        operation: str,
        group_id: str | None,
        call: Callable[[], Awaitable[ReturnT]],
    ) -> ReturnT:
        try:
            async with tracked_mutation(self.mutations, operation, group_id):
                return await self._bounded(call())
        except Exception as exc:
            self._report(operation, group_id, exc)
            raise

    async def _bounded(self, awaitable: Awaitable[ReturnT]) -> ReturnT:
        try:
            async with asyncio.timeout(self._request_timeout):
                return await awaitable
        except TimeoutError as exc:
            raise ConnectivityError(
                f"The group database did not answer within {self._request_timeout} seconds",
                inner_error=exc,
            ) from exc

    def _replace(self, groups: tuple[Group, ...]) -> None:
        seen: set[str] = set()
        unique: list[Group] = []
        for group in groups:
            if group.id in seen:
                logger.warning("Dropping duplicate group id", group_id=group.id)
                continue
            seen.add(group.id)
            unique.append(group)
        self._groups = tuple(unique)
        self._generation += 1

    def _set_status(self, status: DirectoryStatus) -> None:
        self._status = status
        self.status_changed.emit(status)

    def _report(self, operation: str, group_id: str | None, error: Exception) -> None:
        if isinstance(error, StoreError):
            logger.warning(
                "Group operation failed",
                operation=operation,
                group_id=group_id,
                error=str(error),
            )
        else:
            logger.exception("Group operation failed", operation=operation, group_id=group_id)
        self.errors.emit(ServiceErrorEvent(operation=operation, error=error, group_id=group_id))


__all__ = [
    "DirectoryService",
    "DirectoryState",
    "DirectoryStatus",
    "ReconcileStrategy",
]
