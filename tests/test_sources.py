"""
Tests for the per-source calculators (scoring.sources).
"""

from __future__ import annotations

import pytest

from ghostspeak_reputation.scoring.models import (
    AgentScoreInputs,
    ApiUsageRecord,
    CredentialRecord,
    EndorsementRecord,
    EndpointTestRecord,
    GovernanceRecord,
    PaymentEvent,
    ReviewRecord,
    StakeRecord,
    WalletHistory,
)
from ghostspeak_reputation.scoring.numeric import sigmoid
from ghostspeak_reputation.scoring.sources import (
    build_sources,
    calculate_api_quality,
    calculate_credential_verifications,
    calculate_endorsement_graph,
    calculate_governance_participation,
    calculate_on_chain_activity,
    calculate_payment_activity,
    calculate_staking_commitment,
    calculate_user_reviews,
)

NOW = 1_760_000_000
DAY = 86_400
AGENT = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"


# --- payment activity ---


def test_payment_no_events_is_empty():
    s = calculate_payment_activity([], now=NOW)
    assert s.raw_score == 0
    assert s.confidence == 0
    assert s.data_points == 0
    assert s.weight == pytest.approx(0.30)


def test_payment_all_success_fast_capped():
    events = [PaymentEvent(True, NOW - i, 300) for i in range(30)]
    s = calculate_payment_activity(events, now=NOW)
    assert s.raw_score == 10000
    assert s.confidence == pytest.approx(sigmoid(0.5))
    assert s.data_points == 30
    assert s.time_decay_factor == 1.0


def test_payment_mixed_without_response_times():
    events = [PaymentEvent(i % 2 == 0, NOW - i) for i in range(10)]
    s = calculate_payment_activity(events, now=NOW)
    # 50% success, no latency bonus, longest run 1 -> +10
    assert s.raw_score == pytest.approx(5010)


def test_payment_window_is_latest_hundred():
    old_failures = [PaymentEvent(False, NOW - 10 * DAY - i) for i in range(50)]
    recent = [PaymentEvent(True, NOW - i, 1000) for i in range(100)]
    s = calculate_payment_activity(old_failures + recent, now=NOW)
    assert s.data_points == 100
    # 10000 + 250 + 100 before clamping
    assert s.raw_score == 10000


def test_payment_decay_from_newest_event():
    events = [PaymentEvent(True, NOW - 30 * DAY, 100)]
    s = calculate_payment_activity(events, now=NOW)
    assert s.time_decay_factor == pytest.approx(0.5)
    assert s.last_updated == NOW - 30 * DAY


# --- staking ---


def test_staking_max_stake():
    s = calculate_staking_commitment([StakeRecord(999_999, NOW)], now=NOW)
    assert s.raw_score == pytest.approx(10000)
    assert s.confidence == 1.0


def test_staking_small_long_stake():
    s = calculate_staking_commitment([StakeRecord(99, NOW - 100 * DAY)], now=NOW)
    assert s.raw_score == pytest.approx(3833.333, rel=1e-4)
    assert s.confidence == pytest.approx(0.0099)
    assert s.data_points == 1


def test_staking_inactive_ignored():
    s = calculate_staking_commitment([StakeRecord(50_000, NOW, is_active=False)], now=NOW)
    assert s.raw_score == 0
    assert s.data_points == 0


# --- credentials / reviews ---


def test_credentials_weighted_sum_and_diversity():
    creds = [
        CredentialRecord("AGENT_IDENTITY", NOW),
        CredentialRecord("REPUTATION_TIER", NOW),
        CredentialRecord("SOMETHING_ELSE", NOW),
    ]
    s = calculate_credential_verifications(creds, now=NOW)
    assert s.raw_score == 3000
    assert s.confidence == pytest.approx(0.6)


def test_credentials_capped():
    creds = [CredentialRecord("REPUTATION_TIER", NOW) for _ in range(10)]
    s = calculate_credential_verifications(creds, now=NOW)
    assert s.raw_score == 10000
    assert s.confidence == pytest.approx(0.2)


def test_reviews_mean_rating():
    s = calculate_user_reviews([ReviewRecord(5, NOW), ReviewRecord(4, NOW)], now=NOW)
    assert s.raw_score == pytest.approx(9000)
    assert s.confidence == pytest.approx(sigmoid(-1.6))


# --- on-chain / governance ---


def test_on_chain_neutral_without_history():
    s = calculate_on_chain_activity(None, now=NOW)
    assert s.raw_score == 5000
    assert s.confidence == 0.5
    assert s.data_points == 1


def test_on_chain_from_history():
    history = WalletHistory(AGENT, wallet_age_days=200, transaction_count=50, history_score=700, analyzed_at=NOW)
    s = calculate_on_chain_activity(history, now=NOW)
    assert s.raw_score == 7000
    assert s.confidence == pytest.approx(0.5)
    assert s.data_points == 50


def test_governance_votes_and_proposals():
    records = [
        GovernanceRecord("vote", NOW),
        GovernanceRecord("vote", NOW),
        GovernanceRecord("proposal", NOW),
    ]
    s = calculate_governance_participation(records, now=NOW)
    assert s.raw_score == 1500
    assert s.confidence == pytest.approx(0.15)


# --- API quality ---


def test_api_quality_from_endpoint_tests():
    tests = [EndpointTestRecord(True, NOW - i, 500, 80, True) for i in range(10)]
    s = calculate_api_quality(tests, [], now=NOW)
    assert s.raw_score == pytest.approx(9800)
    assert s.confidence == pytest.approx(sigmoid(-1.5))


def test_api_quality_usage_fallback():
    usage = [
        ApiUsageRecord(200, NOW, 600),
        ApiUsageRecord(200, NOW, 600),
        ApiUsageRecord(200, NOW, 600),
        ApiUsageRecord(500, NOW, 600),
    ]
    s = calculate_api_quality([], usage, now=NOW)
    assert s.raw_score == pytest.approx(7250)
    assert s.confidence == pytest.approx(0.08)


def test_api_quality_empty():
    assert calculate_api_quality([], [], now=NOW).data_points == 0


# --- endorsements ---


def test_endorsements_latest_per_endorser_and_no_self():
    endorsements = [
        EndorsementRecord("E1", 2000, NOW - 10 * DAY),
        EndorsementRecord("E1", 4000, NOW - DAY),
        EndorsementRecord("E2", 6000, NOW - 2 * DAY),
        EndorsementRecord(AGENT, 10000, NOW),
    ]
    s = calculate_endorsement_graph(AGENT, endorsements, now=NOW)
    assert s.raw_score == pytest.approx(5000)
    assert s.confidence == pytest.approx(0.2)
    assert s.data_points == 2


def test_endorsements_only_self_is_empty():
    s = calculate_endorsement_graph(AGENT, [EndorsementRecord(AGENT, 9000, NOW)], now=NOW)
    assert s.data_points == 0


def test_build_sources_has_all_eight():
    sources = build_sources(AgentScoreInputs(agent_address=AGENT), now=NOW)
    assert set(sources) == {
        "payment_activity",
        "staking_commitment",
        "credential_verifications",
        "user_reviews",
        "on_chain_activity",
        "governance_participation",
        "api_quality_metrics",
        "endorsement_graph",
    }
    assert sum(s.weight for s in sources.values()) == pytest.approx(1.0)
