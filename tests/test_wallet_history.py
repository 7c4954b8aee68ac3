"""
Tests for wallet history analysis with the HTTP layer mocked.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

AGENT_1 = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
USER_1 = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
FACILITATOR = "2wKupLR9q6wXYppw8Gr2NvWxKBUqm4PPJKkQfoxHDBg4"
NOW = 1_760_000_000
DAY = 86_400

MODULE = "ghostspeak_reputation.ingestion.wallet_history"


def _response(payload, status_code=200):
    r = MagicMock()
    r.status_code = status_code
    r.json.return_value = payload
    r.raise_for_status.return_value = None
    return r


def test_rpc_history_scores_age_and_count(reputation_db):
    from ghostspeak_reputation.database import repositories as repo
    from ghostspeak_reputation.ingestion.wallet_history import analyze_wallet_history

    sigs = [{"signature": f"s{i}", "blockTime": NOW - i * DAY} for i in range(50)]
    sigs[-1]["blockTime"] = NOW - 100 * DAY
    with patch(f"{MODULE}.requests.post", return_value=_response({"jsonrpc": "2.0", "result": sigs})) as post:
        out = analyze_wallet_history(USER_1, now=NOW)

    assert post.call_args.kwargs["json"]["method"] == "getSignaturesForAddress"
    assert out["success"] is True
    assert out["wallet_age_days"] == 100
    assert out["transaction_count"] == 50
    # 100/365 * 400 + 50/100 * 600
    assert out["history_score"] == 410
    assert out["x402_payments"] == 0
    assert out["ghosthunter_boost"] == 0

    with reputation_db.session_scope() as session:
        user = repo.get_user(session, USER_1)
        assert user.wallet_history_score == 410
        assert user.history_analyzed_at == NOW
        assert user.ghosthunter_score is None


def test_rpc_rate_limit_then_success(reputation_db):
    from ghostspeak_reputation.ingestion.wallet_history import analyze_wallet_history

    responses = [_response({}, status_code=429), _response({"result": []})]
    with patch(f"{MODULE}.requests.post", side_effect=responses), patch(f"{MODULE}.time.sleep") as sleep:
        out = analyze_wallet_history(USER_1, now=NOW)
    assert sleep.call_count == 1
    assert out["success"] is True
    assert out["history_score"] == 0


def test_rpc_failure_degrades_to_zero(reputation_db):
    from ghostspeak_reputation.ingestion.wallet_history import MAX_RETRIES, analyze_wallet_history

    with patch(f"{MODULE}.requests.post", side_effect=requests.ConnectionError("down")) as post, patch(
        f"{MODULE}.time.sleep"
    ):
        out = analyze_wallet_history(USER_1, now=NOW)
    assert post.call_count == MAX_RETRIES
    assert out["success"] is False
    assert out["transaction_count"] == 0
    assert out["wallet_age_days"] == 0
    assert out["history_score"] == 0


def test_helius_history_counts_x402_and_discovers_agents(reputation_db, monkeypatch):
    from ghostspeak_reputation.database import repositories as repo
    from ghostspeak_reputation.discovery import get_discovery_stats
    from ghostspeak_reputation.ingestion.wallet_history import analyze_wallet_history

    monkeypatch.setenv("HELIUS_API_KEY", "test-key")
    txs = [
        {
            "signature": "paid",
            "timestamp": NOW,
            "accountData": [{"account": FACILITATOR}],
            "tokenTransfers": [
                {"fromUserAccount": USER_1, "toUserAccount": AGENT_1, "tokenAmount": 0.05},
            ],
        },
        {
            # before the x402 launch: not a payment
            "signature": "early",
            "timestamp": 1_700_000_000,
            "accountData": [{"account": FACILITATOR}],
        },
        {"signature": "first", "timestamp": NOW - 365 * DAY},
    ]
    with patch(f"{MODULE}.requests.get", return_value=_response(txs)) as get:
        out = analyze_wallet_history(USER_1, now=NOW)

    assert "api-key=test-key" in get.call_args.args[0]
    assert out["success"] is True
    assert out["transaction_count"] == 3
    assert out["wallet_age_days"] == 365
    assert out["history_score"] == 400 + 18
    assert out["x402_payments"] == 1
    assert out["ghosthunter_boost"] == 150
    assert out["agents_discovered"] == 1
    assert get_discovery_stats()["discovered"] == 1

    with reputation_db.session_scope() as session:
        user = repo.get_user(session, USER_1)
        assert user.ghosthunter_score == 150
        assert user.ghosthunter_tier == "ROOKIE"
        assert user.is_customer is True
        agent = repo.get_discovered_agent(session, AGENT_1)
        assert agent.discovery_source == "x402_payment"
        assert agent.first_tx_signature == "paid"


def test_scan_skips_facilitator_recipient_and_duplicates():
    from ghostspeak_reputation.ingestion.wallet_history import scan_x402_payments

    txs = [
        {
            "signature": "a",
            "timestamp": NOW,
            "tokenTransfers": [
                {"fromUserAccount": USER_1, "toUserAccount": FACILITATOR, "tokenAmount": 1},
                {"fromUserAccount": USER_1, "toUserAccount": AGENT_1, "tokenAmount": 1},
            ],
        },
        {
            "signature": "b",
            "timestamp": NOW - 1,
            "accountData": [{"account": FACILITATOR}],
            "nativeTransfers": [{"fromUserAccount": USER_1, "toUserAccount": AGENT_1, "amount": 5000}],
        },
        {"signature": "c", "timestamp": NOW - 2, "nativeTransfers": [{"fromUserAccount": USER_1, "toUserAccount": AGENT_1}]},
    ]
    count, interactions = scan_x402_payments(USER_1, txs)
    assert count == 2
    assert interactions == [{"agent_address": AGENT_1, "signature": "a", "amount": "1", "block_time": NOW}]


def test_rpc_error_payload_is_unavailable():
    from ghostspeak_reputation.core.exceptions import RpcUnavailable
    from ghostspeak_reputation.ingestion.wallet_history import fetch_signatures

    payload = {"jsonrpc": "2.0", "error": {"code": -32005, "message": "node is behind"}}
    with patch(f"{MODULE}.requests.post", return_value=_response(payload)):
        with pytest.raises(RpcUnavailable):
            fetch_signatures("https://rpc.example", USER_1)


def test_failed_analysis_keeps_previous_history(reputation_db):
    from ghostspeak_reputation.database import repositories as repo
    from ghostspeak_reputation.ingestion.wallet_history import analyze_wallet_history
    from ghostspeak_reputation.scoring.sources import calculate_on_chain_activity

    sigs = [{"signature": f"s{i}", "blockTime": NOW - i * DAY} for i in range(100)]
    with patch(f"{MODULE}.requests.post", return_value=_response({"jsonrpc": "2.0", "result": sigs})):
        first = analyze_wallet_history(USER_1, now=NOW)
    # 99/365 * 400 + 600
    assert first["history_score"] == 708

    with patch(f"{MODULE}.requests.post", side_effect=requests.ConnectionError("down")), patch(
        f"{MODULE}.time.sleep"
    ):
        second = analyze_wallet_history(USER_1, now=NOW + DAY)
    assert second["success"] is False
    assert second["history_score"] == 0

    with reputation_db.session_scope() as session:
        history = repo.wallet_history_for(session, USER_1)
    assert history.transaction_count == 100
    assert history.history_score == 708
    assert history.analyzed_at == NOW

    source = calculate_on_chain_activity(history, now=NOW + DAY)
    assert source.raw_score == 7080
    assert source.confidence == 1.0


def test_failed_first_analysis_leaves_wallet_unanalysed(reputation_db):
    from ghostspeak_reputation.database import repositories as repo
    from ghostspeak_reputation.ingestion.wallet_history import analyze_wallet_history
    from ghostspeak_reputation.scoring.sources import calculate_on_chain_activity

    with patch(f"{MODULE}.requests.post", side_effect=requests.ConnectionError("down")), patch(
        f"{MODULE}.time.sleep"
    ):
        out = analyze_wallet_history(USER_1, now=NOW)
    assert out["success"] is False

    with reputation_db.session_scope() as session:
        assert repo.get_user(session, USER_1) is not None
        history = repo.wallet_history_for(session, USER_1)
    assert history is None

    source = calculate_on_chain_activity(history, now=NOW)
    assert source.raw_score == 5000
    assert source.confidence == 0.5
