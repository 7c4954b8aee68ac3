"""
Solana address validation.
"""

from __future__ import annotations

from solders.pubkey import Pubkey

from ghostspeak_reputation.core.exceptions import InvalidWalletAddress


def validate_wallet(wallet: str | None) -> str:
    """Validate a Solana address with solders Pubkey. Returns the stripped address."""
    wallet = (wallet or "").strip()
    if not wallet:
        raise InvalidWalletAddress("wallet must be non-empty")
    try:
        Pubkey.from_string(wallet)
    except Exception as e:
        raise InvalidWalletAddress(f"Invalid Solana wallet: {e}") from e
    return wallet
