"""Directory state, view filtering and form services."""

from .directory import DirectoryService, DirectoryState, DirectoryStatus, ReconcileStrategy
from .events import (
    EventHook,
    GroupMutationEvent,
    MutationStatus,
    RefreshEvent,
    ServiceErrorEvent,
    tracked_mutation,
)
from .filters import (
    CategoryFilter,
    DirectorySummary,
    DirectoryView,
    filter_groups,
    resolve_category,
    summarize,
)
from .forms import AdminControls, AdminLockedError, FormMode, GroupEditor

__all__ = [
    "AdminControls",
    "AdminLockedError",
    "CategoryFilter",
    "DirectoryService",
    "DirectoryState",
    "DirectoryStatus",
    "DirectorySummary",
    "DirectoryView",
    "EventHook",
    "FormMode",
    "GroupEditor",
    "GroupMutationEvent",
    "MutationStatus",
    "ReconcileStrategy",
    "RefreshEvent",
    "ServiceErrorEvent",
    "filter_groups",
    "resolve_category",
    "summarize",
    "tracked_mutation",
]
