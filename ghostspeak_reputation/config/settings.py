"""
Application settings.

Typed, immutable snapshot of the environment (see config.env) used by the API
server, scheduler and wallet history ingestion.
"""

from __future__ import annotations

from dataclasses import dataclass

from ghostspeak_reputation.config import env


@dataclass(frozen=True)
class Settings:
    solana_network: str
    solana_rpc_url: str
    helius_api_key: str | None
    database_url: str
    recompute_interval_min: int
    recompute_on_startup: bool
    api_host: str
    api_port: int


def get_settings() -> Settings:
    """
    Return the current application settings.

    Read fresh from the environment on every call so tests can monkeypatch env.
    """
    return Settings(
        solana_network=env.get_solana_network(),
        solana_rpc_url=env.get_solana_rpc_url(),
        helius_api_key=env.get_helius_api_key(),
        database_url=env.get_database_url(),
        recompute_interval_min=env.get_recompute_interval_min(),
        recompute_on_startup=env.recompute_on_startup(),
        api_host=env.get_api_host(),
        api_port=env.get_api_port(),
    )
