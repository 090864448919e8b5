"""Remote store access: HTTP client, gateways and the error taxonomy."""

from .client import StoreClientConfig, StoreClientFactory, StoreTelemetryEvent
from .errors import (
    ConfigurationError,
    ConnectivityError,
    DataIntegrityError,
    RecordNotFoundError,
    StoreError,
    StoreErrorCategory,
    ValidationError,
)
from .gateway import (
    SAMPLE_GROUPS,
    GroupGateway,
    InMemoryGroupGateway,
    SupabaseGroupGateway,
    UnconfiguredGroupGateway,
)
from .rows import (
    GroupRowValidator,
    RejectedRow,
    column_payload,
    group_from_row,
    normalise_row,
)

__all__ = [
    "ConfigurationError",
    "ConnectivityError",
    "DataIntegrityError",
    "GroupGateway",
    "GroupRowValidator",
    "InMemoryGroupGateway",
    "RecordNotFoundError",
    "RejectedRow",
    "SAMPLE_GROUPS",
    "StoreClientConfig",
    "StoreClientFactory",
    "StoreError",
    "StoreErrorCategory",
    "StoreTelemetryEvent",
    "SupabaseGroupGateway",
    "UnconfiguredGroupGateway",
    "ValidationError",
    "column_payload",
    "group_from_row",
    "normalise_row",
]
