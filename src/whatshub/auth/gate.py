from __future__ import annotations

import hmac
from enum import StrEnum
from typing import Callable

from whatshub.config.settings import DEFAULT_ADMIN_SECRET
from whatshub.services.events import EventHook
from whatshub.utils import get_logger


logger = get_logger(__name__)

CredentialPrompt = Callable[[], str | None]


class GateState(StrEnum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class AuthorizationMismatch(Exception):
    """A non-empty credential did not match the shared secret."""

    def __init__(self, message: str = "Incorrect credential") -> None:
        super().__init__(message)


class AuthorizationGate:
    """Two-state switch that reveals the admin controls.

    This only decides what the client shows. It does not protect data: anyone
    holding the store's access key can write to it directly.
    """

    def __init__(self, secret: str = DEFAULT_ADMIN_SECRET) -> None:
        if not secret:
            raise ValueError("The admin secret cannot be empty")
        self._secret = secret
        self._state = GateState.LOCKED
        self.changed: EventHook[GateState] = EventHook("gate.changed")

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def is_unlocked(self) -> bool:
        return self._state is GateState.UNLOCKED

    def enter(
        self,
        credential: str | None = None,
        *,
        prompt: CredentialPrompt | None = None,
    ) -> bool:
        """Try to unlock; returns the resulting unlocked flag.

        Without an explicit credential the prompt is asked for one. An empty
        answer or a cancelled prompt leaves the gate locked silently.
        """

        if self.is_unlocked:
            return True
        if credential is None and prompt is not None:
            credential = prompt()
        if not credential:
            return False
        if not hmac.compare_digest(credential.encode("utf-8"), self._secret.encode("utf-8")):
            logger.warning("Rejected admin credential")
            raise AuthorizationMismatch()
        self._transition(GateState.UNLOCKED)
        return True

    def exit(self) -> None:
        if self._state is GateState.LOCKED:
            return
        self._transition(GateState.LOCKED)

    def toggle(self, prompt: CredentialPrompt) -> bool:
        if self.is_unlocked:
            self.exit()
            return False
        return self.enter(prompt=prompt)

    def _transition(self, state: GateState) -> None:
        self._state = state
        logger.info("Admin mode changed", state=state.value)
        self.changed.emit(state)


__all__ = [
    "AuthorizationGate",
    "AuthorizationMismatch",
    "CredentialPrompt",
    "GateState",
]
