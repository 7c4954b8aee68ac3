"""
Core utilities: domain exceptions and wallet address validation.
"""

from ghostspeak_reputation.core.exceptions import (
    AgentAlreadyClaimed,
    AgentNotFound,
    GhostSpeakError,
    InvalidWalletAddress,
    RpcUnavailable,
    UserNotFound,
)
from ghostspeak_reputation.core.validation import validate_wallet

__all__ = [
    "AgentAlreadyClaimed",
    "AgentNotFound",
    "GhostSpeakError",
    "InvalidWalletAddress",
    "RpcUnavailable",
    "UserNotFound",
    "validate_wallet",
]
