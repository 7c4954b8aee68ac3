"""
Domain exceptions for the reputation service.

The API server maps these to HTTP status codes; batch jobs log and continue.
"""

from __future__ import annotations


class GhostSpeakError(Exception):
    """Base error carrying a stable machine-readable code."""

    code = "ghostspeak_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class InvalidWalletAddress(GhostSpeakError, ValueError):
    code = "invalid_wallet"


class AgentNotFound(GhostSpeakError):
    code = "agent_not_found"


class AgentAlreadyClaimed(GhostSpeakError):
    code = "agent_already_claimed"


class UserNotFound(GhostSpeakError):
    code = "user_not_found"


class RpcUnavailable(GhostSpeakError):
    code = "rpc_unavailable"
