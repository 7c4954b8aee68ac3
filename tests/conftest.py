"""
Pytest fixtures for GhostSpeak reputation tests. Uses a temporary SQLite DB per test.
"""

from __future__ import annotations

import pytest

# Valid Solana pubkeys (base58, 32 bytes)
AGENT_1 = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
AGENT_2 = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
USER_1 = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
USER_2 = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"

NOW = 1_760_000_000  # fixed clock (Unix seconds)
DAY = 86_400


@pytest.fixture
def reputation_db(tmp_path, monkeypatch):
    """
    Point the store at a temporary SQLite DB and create tables.
    Resets the engine cache so each test gets a fresh DB; clears URL and RPC env.
    """
    for name in ("GHOSTSPEAK_DB_URL", "DATABASE_URL", "HELIUS_API_KEY", "SOLANA_RPC_URL", "SOLANA_NETWORK", "SOLANA_CLUSTER"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "ghostspeak.db"))
    monkeypatch.setenv("RECOMPUTE_ON_STARTUP", "0")

    from ghostspeak_reputation.database import connection

    connection.reset_engine_for_test()
    connection.init_db()
    yield connection
    connection.reset_engine_for_test()


@pytest.fixture
def client(reputation_db):
    """FastAPI TestClient. Depends on reputation_db so the temp DB is set before the app runs."""
    from fastapi.testclient import TestClient

    from ghostspeak_reputation.api_server.server import app

    return TestClient(app)
