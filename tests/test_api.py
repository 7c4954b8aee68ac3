"""
Tests for the reputation API (FastAPI TestClient over a temporary SQLite DB).
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

AGENT_1 = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
AGENT_2 = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
USER_1 = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
USER_2 = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_discover_created_then_existing(client):
    r = client.post("/agents/discover", json={"address": AGENT_1, "slot": 7})
    assert r.status_code == 201
    body = r.json()
    assert body["created"] is True
    assert body["agent"]["ghost_address"] == AGENT_1

    r2 = client.post("/agents/discover", json={"address": AGENT_1})
    assert r2.status_code == 200
    assert r2.json()["created"] is False


def test_discover_invalid_address(client):
    r = client.post("/agents/discover", json={"address": "not-a-real-wallet"})
    assert r.status_code == 400
    assert "Invalid Solana wallet" in r.json()["detail"]


def test_discover_rejects_short_address(client):
    r = client.post("/agents/discover", json={"address": "abc"})
    assert r.status_code == 422


def test_claim_flow(client):
    client.post("/agents/discover", json={"address": AGENT_1})
    r = client.post(f"/agents/{AGENT_1}/claim", json={"claimed_by": USER_1})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["claimed_by"] == USER_1
    assert body["credential_id"].startswith("agent_identity_")

    conflict = client.post(f"/agents/{AGENT_1}/claim", json={"claimed_by": USER_2})
    assert conflict.status_code == 409

    missing = client.post(f"/agents/{AGENT_2}/claim", json={"claimed_by": USER_1})
    assert missing.status_code == 404

    stats = client.get("/agents/discovery/stats").json()
    assert stats["claimed"] == 1
    assert stats["total"] == 1


def test_ghost_score_computed_then_cached(client):
    r = client.get(f"/agents/{AGENT_1}/ghost-score")
    assert r.status_code == 200
    body = r.json()
    assert body["cached"] is False
    assert body["score"] == 5000
    assert body["tier"] == "SILVER"
    assert set(body["confidence"]) == {"lower", "upper"}

    cached = client.get(f"/agents/{AGENT_1}/ghost-score").json()
    assert cached["cached"] is True
    assert cached["score"] == 5000

    refreshed = client.get(f"/agents/{AGENT_1}/ghost-score", params={"refresh": "true"}).json()
    assert refreshed["cached"] is False


def test_ghost_score_invalid_address(client):
    assert client.get("/agents/not-a-real-wallet/ghost-score").status_code == 400


def test_user_endpoints(client):
    assert client.get(f"/users/{USER_1}/reputation").status_code == 404
    assert client.get(f"/users/{USER_1}/percentile").status_code == 404

    r = client.post(f"/users/{USER_1}/activity")
    assert r.status_code == 200
    assert r.json()["current_streak"] == 1

    rep = client.get(f"/users/{USER_1}/reputation")
    assert rep.status_code == 200
    body = rep.json()
    assert body["wallet_address"] == USER_1
    assert body["roles"] == {"is_agent_developer": False, "is_customer": False}
    assert body["gamification"]["streak"]["is_active"] is True

    pct = client.get(f"/users/{USER_1}/percentile")
    assert pct.status_code == 200
    assert pct.json() == {"percentile": 100, "top_percentage": 1, "total_users": 1, "user_score": 0}


def test_analyze_history(client):
    resp = MagicMock()
    resp.status_code = 200
    resp.json.return_value = {"result": [{"signature": "s", "blockTime": None}]}
    with patch("ghostspeak_reputation.ingestion.wallet_history.requests.post", return_value=resp):
        r = client.post(f"/users/{USER_1}/analyze-history")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["transaction_count"] == 1
    assert body["history_score"] == 6


def test_admin_recompute(client):
    client.post("/agents/discover", json={"address": AGENT_1})
    client.post(f"/users/{USER_1}/activity")
    r = client.post("/admin/recompute")
    assert r.status_code == 200
    body = r.json()
    assert body["agents"] == {"computed": 1, "failed": 0, "total_agents": 1}
    assert body["users"]["total_users"] == 1


def test_admin_recompute_failure(client):
    with patch("ghostspeak_reputation.api_server.server.run_recompute_pass", side_effect=RuntimeError("boom")):
        r = client.post("/admin/recompute")
    assert r.status_code == 500
    assert r.json() == {"detail": "Recompute failed"}
