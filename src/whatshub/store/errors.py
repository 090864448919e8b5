from __future__ import annotations

from enum import Enum
from typing import Sequence

from whatshub.config.settings import REQUIRED_SETTINGS


class StoreErrorCategory(str, Enum):
    CONFIGURATION = "configuration"
    CONNECTIVITY = "connectivity"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INTEGRITY = "integrity"


class StoreError(Exception):
    """Base class for failures raised by the remote store gateway."""

    category: StoreErrorCategory = StoreErrorCategory.CONNECTIVITY

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        inner_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.inner_error = inner_error

    def __str__(self) -> str:
        return self.message

    @property
    def is_retriable(self) -> bool:
        return False

    @property
    def recovery_suggestion(self) -> str | None:
        return None


class ConnectivityError(StoreError):
    """The store could not be reached or did not answer in time."""

    category = StoreErrorCategory.CONNECTIVITY

    @property
    def is_retriable(self) -> bool:
        return True

    @property
    def recovery_suggestion(self) -> str | None:
        return "Check your internet connection and refresh the list."


class ConfigurationError(ConnectivityError):
    """Required connection settings are missing or were rejected."""

    category = StoreErrorCategory.CONFIGURATION

    def __init__(
        self,
        message: str | None = None,
        *,
        missing: Sequence[str] = REQUIRED_SETTINGS,
        status_code: int | None = None,
        code: str | None = None,
        inner_error: Exception | None = None,
    ) -> None:
        self.missing = tuple(missing)
        if message is None:
            names = " and ".join(REQUIRED_SETTINGS)
            message = f"The database connection is not configured. Set {names}."
        super().__init__(
            message,
            status_code=status_code,
            code=code,
            inner_error=inner_error,
        )

    @property
    def is_retriable(self) -> bool:
        return False

    @property
    def recovery_suggestion(self) -> str | None:
        names = " and ".join(REQUIRED_SETTINGS)
        return f"Make sure {names} are set in the environment or settings file."


class ValidationError(StoreError):
    """The store rejected a write because of its constraints or policies."""

    category = StoreErrorCategory.VALIDATION

    @property
    def recovery_suggestion(self) -> str | None:
        return "Review the submitted fields and try again."


class RecordNotFoundError(StoreError):
    """An update or delete targeted an id the store does not hold."""

    category = StoreErrorCategory.NOT_FOUND

    def __init__(self, record_id: str, **kwargs) -> None:
        self.record_id = record_id
        super().__init__(f"No group with id {record_id!r} exists.", **kwargs)

    @property
    def recovery_suggestion(self) -> str | None:
        return "The group may have been removed elsewhere. Refresh the list."


class DataIntegrityError(StoreError):
    """Fetched rows do not satisfy the entity model."""

    category = StoreErrorCategory.INTEGRITY

    def __init__(self, message: str, *, identifiers: Sequence[str | None] = ()) -> None:
        super().__init__(message)
        self.identifiers = tuple(identifiers)


__all__ = [
    "ConfigurationError",
    "ConnectivityError",
    "DataIntegrityError",
    "RecordNotFoundError",
    "StoreError",
    "StoreErrorCategory",
    "ValidationError",
]
