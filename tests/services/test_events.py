from __future__ import annotations

import pytest

from whatshub.services import (
    DirectoryService,
    EventHook,
    GroupMutationEvent,
    MutationStatus,
    RefreshEvent,
    tracked_mutation,
)
from whatshub.store import RecordNotFoundError
from tests.stubs import ScriptedGroupGateway


@pytest.mark.asyncio
async def test_tracked_mutation_reports_group_and_outcome() -> None:
    hook: EventHook[GroupMutationEvent] = EventHook("test.mutations")
    events: list[GroupMutationEvent] = []
    hook.subscribe(events.append)

    async with tracked_mutation(hook, "set_verified", "a"):
        pass
    with pytest.raises(RecordNotFoundError):
        async with tracked_mutation(hook, "remove", "ghost"):
            raise RecordNotFoundError("ghost")

    assert [(event.operation, event.group_id, event.status) for event in events] == [
        ("set_verified", "a", MutationStatus.PENDING),
        ("set_verified", "a", MutationStatus.SUCCEEDED),
        ("remove", "ghost", MutationStatus.PENDING),
        ("remove", "ghost", MutationStatus.FAILED),
    ]
    assert isinstance(events[-1].error, RecordNotFoundError)


@pytest.mark.asyncio
async def test_refreshed_event_carries_list_and_generation(
    service: DirectoryService, gateway: ScriptedGroupGateway
) -> None:
    events: list[RefreshEvent] = []
    service.refreshed.subscribe(events.append)

    await service.refresh()
    await service.remove("b")
    await service.refresh()

    assert [event.generation for event in events] == [1, 3]
    assert [group.id for group in events[-1].groups] == ["a", "c"]
    assert events[-1].groups is service.groups


@pytest.mark.asyncio
async def test_broken_subscriber_does_not_break_refresh(service: DirectoryService) -> None:
    received: list[RefreshEvent] = []

    def broken(_: RefreshEvent) -> None:
        raise ValueError("view bug")

    service.refreshed.subscribe(broken)
    service.refreshed.subscribe(received.append)

    groups = await service.refresh()

    assert len(groups) == 3
    assert service.status.is_ready
    assert len(received) == 1


@pytest.mark.asyncio
async def test_unsubscribe_stops_status_updates(service: DirectoryService) -> None:
    states: list[str] = []
    unsubscribe = service.status_changed.subscribe(lambda status: states.append(status.state))
    assert len(service.status_changed) == 1

    await service.refresh()
    unsubscribe()
    unsubscribe()
    await service.refresh()

    assert states == ["loading", "ready"]
    assert len(service.status_changed) == 0
