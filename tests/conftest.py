from __future__ import annotations

from typing import Iterator

import pytest

from whatshub.data import Category
from whatshub.services import DirectoryService
from whatshub.utils import LoggingOptions, configure_logging
from tests.factories import BASE_TIMESTAMP, make_group
from tests.stubs import ScriptedGroupGateway


@pytest.fixture(scope="session", autouse=True)
def _quiet_logging() -> Iterator[None]:
    """Keep test runs off the user's log directory."""

    configure_logging(LoggingOptions(level="ERROR", file_sink=False))
    yield


@pytest.fixture
def seeded_groups():
    return [
        make_group(group_id="a", name="React Devs", category=Category.TECH, created_at=BASE_TIMESTAMP + 3),
        make_group(group_id="b", name="Memes", category=Category.FUN, created_at=BASE_TIMESTAMP + 2),
        make_group(group_id="c", name="Rust Club", category=Category.TECH, created_at=BASE_TIMESTAMP + 1),
    ]


@pytest.fixture
def gateway(seeded_groups) -> ScriptedGroupGateway:
    return ScriptedGroupGateway(seeded_groups)


@pytest.fixture
def service(gateway: ScriptedGroupGateway) -> DirectoryService:
    return DirectoryService(gateway, request_timeout=1.0)
