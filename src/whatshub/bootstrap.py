from __future__ import annotations

from dataclasses import dataclass

from whatshub.auth import AuthorizationGate
from whatshub.config import Settings, SettingsManager
from whatshub.services import AdminControls, DirectoryService, DirectoryView, GroupEditor
from whatshub.store import (
    SAMPLE_GROUPS,
    GroupGateway,
    InMemoryGroupGateway,
    StoreClientConfig,
    StoreClientFactory,
    SupabaseGroupGateway,
    UnconfiguredGroupGateway,
)
from whatshub.utils import get_logger


logger = get_logger(__name__)


@dataclass(slots=True)
class DirectoryApp:
    """Everything a front-end needs, wired once per process."""

    settings: Settings
    gateway: GroupGateway
    service: DirectoryService
    view: DirectoryView
    gate: AuthorizationGate
    editor: GroupEditor
    admin: AdminControls

    async def aclose(self) -> None:
        close = getattr(self.gateway, "close", None)
        if close is not None:
            await close()


def build_gateway(settings: Settings, *, demo: bool = False) -> GroupGateway:
    """Pick the gateway for the given settings.

    Missing connection settings do not raise here: the returned gateway fails
    every call with a ``ConfigurationError`` so the UI can show a banner.
    """

    if demo:
        logger.info("Using in-memory demo gateway", groups=len(SAMPLE_GROUPS))
        return InMemoryGroupGateway(SAMPLE_GROUPS)
    missing = settings.missing_settings()
    if missing:
        logger.warning("Group database settings missing", missing=missing)
        return UnconfiguredGroupGateway(missing)
    client_factory = StoreClientFactory(StoreClientConfig.from_settings(settings))
    return SupabaseGroupGateway(client_factory, table=settings.table)


def build_directory(
    settings: Settings | None = None,
    *,
    demo: bool = False,
    gateway: GroupGateway | None = None,
) -> DirectoryApp:
    """Initialise the directory service, its view and the admin gate."""

    resolved = settings or SettingsManager().load()
    store = gateway or build_gateway(resolved, demo=demo)
    service = DirectoryService(store, request_timeout=resolved.request_timeout)
    gate = AuthorizationGate(resolved.admin_secret)
    editor = GroupEditor(service, gate)
    logger.debug("Directory services initialised", demo=demo)
    return DirectoryApp(
        settings=resolved,
        gateway=store,
        service=service,
        view=DirectoryView(service),
        gate=gate,
        editor=editor,
        admin=AdminControls(service, gate, editor),
    )


__all__ = ["DirectoryApp", "build_directory", "build_gateway"]
