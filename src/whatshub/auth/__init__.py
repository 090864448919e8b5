"""Admin-mode authorization gate."""

from .gate import AuthorizationGate, AuthorizationMismatch, CredentialPrompt, GateState

__all__ = [
    "AuthorizationGate",
    "AuthorizationMismatch",
    "CredentialPrompt",
    "GateState",
]
