from __future__ import annotations

import asyncio
import errno
import socket
from dataclasses import dataclass
from enum import Enum

import httpx

from whatshub.store.errors import StoreError, StoreErrorCategory


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True)
class ErrorDescriptor:
    headline: str
    detail: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    transient: bool = False
    suggestion: str | None = None


_NETWORK_ERRNOS = {
    getattr(socket, "EAI_AGAIN", None),
    getattr(socket, "EAI_NONAME", None),
    errno.EHOSTUNREACH,
    errno.ENETUNREACH,
    errno.ECONNREFUSED,
    errno.ECONNRESET,
    errno.ETIMEDOUT,
}
_NETWORK_ERRNOS.discard(None)


def describe_exception(error: BaseException) -> ErrorDescriptor:
    """Turn any failure into a banner-friendly description."""

    descriptor = ErrorDescriptor(
        headline="Operation failed.",
        detail=f"{type(error).__name__}: {error}",
    )

    store_error = _locate_store_error(error)
    if store_error is not None:
        descriptor.detail = _format_store_detail(store_error)
        descriptor.suggestion = store_error.recovery_suggestion
        descriptor.transient = store_error.is_retriable
        if store_error.is_retriable:
            descriptor.severity = ErrorSeverity.WARNING
        descriptor.headline = _store_headline(store_error)
        return descriptor

    root = _unwrap_error(error)

    if isinstance(root, httpx.TimeoutException):
        descriptor.headline = "Timed out contacting the group database."
        descriptor.severity = ErrorSeverity.WARNING
        descriptor.transient = True
        descriptor.suggestion = "Check your network connection and retry shortly."
        return descriptor

    if isinstance(root, (asyncio.TimeoutError, TimeoutError)):
        descriptor.headline = "Operation timed out before the group database responded."
        descriptor.detail = "TimeoutError: operation timed out"
        descriptor.severity = ErrorSeverity.WARNING
        descriptor.transient = True
        descriptor.suggestion = "Retry the request after verifying connectivity."
        return descriptor

    if isinstance(root, OSError) and getattr(root, "errno", None) in _NETWORK_ERRNOS:
        descriptor.headline = "Network connection issue encountered."
        descriptor.detail = f"OSError[{root.errno}]: {root.strerror}"
        descriptor.severity = ErrorSeverity.WARNING
        descriptor.transient = True
        descriptor.suggestion = "Retry once your connection is stable."
        return descriptor

    return descriptor


def _locate_store_error(error: BaseException) -> StoreError | None:
    current: BaseException | None = error
    visited: set[int] = set()
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        if isinstance(current, StoreError):
            return current
        current = current.__cause__ or current.__context__
    return None


def _unwrap_error(error: BaseException) -> BaseException:
    current = error
    visited: set[int] = set()
    while True:
        visited.add(id(current))
        inner = current.__cause__ or current.__context__
        if inner is None or id(inner) in visited:
            return current
        current = inner


def _store_headline(error: StoreError) -> str:
    match error.category:
        case StoreErrorCategory.CONFIGURATION:
            return "Configuration required."
        case StoreErrorCategory.CONNECTIVITY:
            return "Unable to load groups. Check your connection."
        case StoreErrorCategory.VALIDATION:
            return "The group database rejected the change."
        case StoreErrorCategory.NOT_FOUND:
            return "That group no longer exists."
        case StoreErrorCategory.INTEGRITY:
            return "The group database returned invalid records."
        case _:
            return "Group database request failed."


def _format_store_detail(error: StoreError) -> str:
    if error.code:
        return f"{error.code}: {error}"
    return str(error)


__all__ = [
    "ErrorDescriptor",
    "ErrorSeverity",
    "describe_exception",
]
