"""
Per-source sub-score calculators.

Each calculator takes plain records (scoring.models) and returns a SourceScore
carrying its source weight and a decay factor computed from the newest record.
No data means raw 0, confidence 0, zero data points and no decay.
"""

from __future__ import annotations

import math
import time
from typing import Iterable

from ghostspeak_reputation.scoring.ghost_score import (
    API_QUALITY_METRICS,
    CREDENTIAL_VERIFICATIONS,
    DECAY_HALF_LIVES,
    ENDORSEMENT_GRAPH,
    GOVERNANCE_PARTICIPATION,
    ON_CHAIN_ACTIVITY,
    PAYMENT_ACTIVITY,
    SOURCE_WEIGHTS,
    STAKING_COMMITMENT,
    USER_REVIEWS,
    calculate_time_decay_factor,
)
from ghostspeak_reputation.scoring.models import (
    AgentScoreInputs,
    ApiUsageRecord,
    CredentialRecord,
    EndorsementRecord,
    EndpointTestRecord,
    GovernanceRecord,
    PaymentEvent,
    ReviewRecord,
    SourceScore,
    StakeRecord,
    WalletHistory,
)
from ghostspeak_reputation.scoring.numeric import MAX_SCORE, clamp, days_between, sigmoid

PAYMENT_WINDOW = 100
API_QUALITY_WINDOW = 100
MAX_STAKE = 1_000_000
STAKE_CONFIDENCE_AMOUNT = 10_000
MAX_DURATION_BONUS = 2000
CREDENTIAL_DIVERSITY_TARGET = 5
DEFAULT_CREDENTIAL_WEIGHT = 500
CREDENTIAL_WEIGHTS: dict[str, int] = {
    "AGENT_IDENTITY": 1000,
    "REPUTATION_TIER": 1500,
    "PAYMENT_MILESTONE": 1200,
    "VERIFIED_STAKER": 800,
    "VERIFIED_HIRE": 1000,
    "ELIZAOS_AGENT": 1100,
}
NEUTRAL_ON_CHAIN_SCORE = 5000
NEUTRAL_ON_CHAIN_CONFIDENCE = 0.5
GOVERNANCE_VOTE_POINTS = 250
GOVERNANCE_PROPOSAL_POINTS = 1000
GOVERNANCE_CONFIDENCE_COUNT = 20
ENDORSEMENT_CONFIDENCE_COUNT = 10
API_USAGE_CONFIDENCE_COUNT = 50
DEFAULT_QUALITY_SCORE = 50


def _empty(source: str, now: float) -> SourceScore:
    return SourceScore(
        raw_score=0.0,
        weight=SOURCE_WEIGHTS[source],
        confidence=0.0,
        data_points=0,
        time_decay_factor=1.0,
        last_updated=int(now),
    )


def _scored(source: str, raw: float, confidence: float, data_points: int, last_updated: int, now: float) -> SourceScore:
    return SourceScore(
        raw_score=clamp(raw),
        weight=SOURCE_WEIGHTS[source],
        confidence=confidence,
        data_points=data_points,
        time_decay_factor=calculate_time_decay_factor(last_updated, DECAY_HALF_LIVES[source], now),
        last_updated=int(last_updated),
    )


def _mean(values: Iterable[float]) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0


def calculate_payment_activity(events: list[PaymentEvent], now: float | None = None) -> SourceScore:
    """Success rate over the latest x402 events plus response-time and streak bonuses."""
    if now is None:
        now = time.time()
    window = sorted(events, key=lambda e: e.timestamp, reverse=True)[:PAYMENT_WINDOW]
    if not window:
        return _empty(PAYMENT_ACTIVITY, now)

    successes = sum(1 for e in window if e.success)
    raw = successes / len(window) * MAX_SCORE

    timed = [e.response_time_ms for e in window if e.response_time_ms is not None]
    if timed:
        avg_ms = _mean(timed)
        if avg_ms < 500:
            raw += 500
        elif avg_ms < 2000:
            raw += 250

    run = best_run = 0
    for e in window:
        run = run + 1 if e.success else 0
        best_run = max(best_run, run)
    raw += min(100, best_run * 10)

    confidence = sigmoid((len(window) - 25) / 10)
    return _scored(PAYMENT_ACTIVITY, raw, confidence, len(window), window[0].timestamp, now)


def calculate_staking_commitment(stakes: list[StakeRecord], now: float | None = None) -> SourceScore:
    """Log-scaled stake size plus a duration bonus. Only active stakes count."""
    if now is None:
        now = time.time()
    active = [s for s in stakes if s.is_active]
    if not active:
        return _empty(STAKING_COMMITMENT, now)

    total = sum(max(0.0, s.amount) for s in active)
    raw = MAX_SCORE * math.log10(total + 1) / math.log10(MAX_STAKE)
    mean_days = _mean(max(0.0, days_between(s.staked_at, now)) for s in active)
    raw += min(MAX_DURATION_BONUS, mean_days * 5)

    confidence = min(1.0, total / STAKE_CONFIDENCE_AMOUNT)
    last = max(s.staked_at for s in active)
    return _scored(STAKING_COMMITMENT, raw, confidence, len(active), last, now)


def calculate_credential_verifications(credentials: list[CredentialRecord], now: float | None = None) -> SourceScore:
    if now is None:
        now = time.time()
    if not credentials:
        return _empty(CREDENTIAL_VERIFICATIONS, now)

    raw = sum(CREDENTIAL_WEIGHTS.get(c.credential_type, DEFAULT_CREDENTIAL_WEIGHT) for c in credentials)
    distinct = len({c.credential_type for c in credentials})
    confidence = min(1.0, distinct / CREDENTIAL_DIVERSITY_TARGET)
    last = max(c.issued_at for c in credentials)
    return _scored(CREDENTIAL_VERIFICATIONS, min(MAX_SCORE, raw), confidence, len(credentials), last, now)


def calculate_user_reviews(reviews: list[ReviewRecord], now: float | None = None) -> SourceScore:
    """Mean 1-5 star rating mapped onto 0-10,000."""
    if now is None:
        now = time.time()
    if not reviews:
        return _empty(USER_REVIEWS, now)

    raw = _mean(r.rating for r in reviews) / 5 * MAX_SCORE
    confidence = sigmoid((len(reviews) - 10) / 5)
    last = max(r.created_at for r in reviews)
    return _scored(USER_REVIEWS, raw, confidence, len(reviews), last, now)


def calculate_on_chain_activity(history: WalletHistory | None, now: float | None = None) -> SourceScore:
    """
    Wallet age and transaction count from the latest history analysis.

    Unanalysed wallets get a neutral 5000 at half confidence.
    """
    if now is None:
        now = time.time()
    if history is None:
        return SourceScore(
            raw_score=float(NEUTRAL_ON_CHAIN_SCORE),
            weight=SOURCE_WEIGHTS[ON_CHAIN_ACTIVITY],
            confidence=NEUTRAL_ON_CHAIN_CONFIDENCE,
            data_points=1,
            time_decay_factor=1.0,
            last_updated=int(now),
        )
    raw = history.history_score * 10
    confidence = min(1.0, history.transaction_count / 100)
    analyzed_at = history.analyzed_at or int(now)
    return _scored(ON_CHAIN_ACTIVITY, raw, confidence, history.transaction_count, analyzed_at, now)


def calculate_governance_participation(records: list[GovernanceRecord], now: float | None = None) -> SourceScore:
    if now is None:
        now = time.time()
    if not records:
        return _empty(GOVERNANCE_PARTICIPATION, now)

    raw = sum(
        GOVERNANCE_PROPOSAL_POINTS if r.kind == "proposal" else GOVERNANCE_VOTE_POINTS
        for r in records
    )
    confidence = min(1.0, len(records) / GOVERNANCE_CONFIDENCE_COUNT)
    last = max(r.timestamp for r in records)
    return _scored(GOVERNANCE_PARTICIPATION, raw, confidence, len(records), last, now)


def calculate_api_quality(
    tests: list[EndpointTestRecord],
    usage: list[ApiUsageRecord],
    now: float | None = None,
) -> SourceScore:
    """
    Endpoint observation tests when present, else legacy API usage rows.

    Test composite: 40% success, 20% latency, 30% capability, 10% quality.
    """
    if now is None:
        now = time.time()
    recent_tests = sorted(tests, key=lambda t: t.tested_at, reverse=True)[:API_QUALITY_WINDOW]
    if recent_tests:
        n = len(recent_tests)
        success_rate = sum(1 for t in recent_tests if t.success) / n
        avg_ms = _mean(t.response_time_ms or 0 for t in recent_tests)
        avg_quality = _mean(
            DEFAULT_QUALITY_SCORE if t.quality_score is None else t.quality_score for t in recent_tests
        )
        verified_rate = sum(1 for t in recent_tests if t.capability_verified) / n

        raw = success_rate * 4000
        raw += max(0.0, 1 - (avg_ms - 500) / 4500) * 2000
        raw += verified_rate * 3000
        raw += avg_quality / 100 * 1000
        confidence = sigmoid((n - 25) / 10)
        return _scored(API_QUALITY_METRICS, raw, confidence, n, recent_tests[0].tested_at, now)

    recent_usage = sorted(usage, key=lambda u: u.timestamp, reverse=True)[:API_QUALITY_WINDOW]
    if not recent_usage:
        return _empty(API_QUALITY_METRICS, now)

    n = len(recent_usage)
    errors = sum(1 for u in recent_usage if u.status_code >= 400)
    raw = (1 - errors / n) * MAX_SCORE
    avg_ms = _mean(u.response_time_ms or 0 for u in recent_usage)
    if avg_ms > 1000:
        raw -= 500
    elif avg_ms > 500:
        raw -= 250
    confidence = min(1.0, n / API_USAGE_CONFIDENCE_COUNT)
    return _scored(API_QUALITY_METRICS, raw, confidence, n, recent_usage[0].timestamp, now)


def calculate_endorsement_graph(
    agent_address: str,
    endorsements: list[EndorsementRecord],
    now: float | None = None,
) -> SourceScore:
    """Mean Ghost Score of distinct endorsers, latest endorsement per endorser."""
    if now is None:
        now = time.time()
    latest: dict[str, EndorsementRecord] = {}
    for e in endorsements:
        if e.endorser == agent_address:
            continue
        prev = latest.get(e.endorser)
        if prev is None or e.created_at > prev.created_at:
            latest[e.endorser] = e
    if not latest:
        return _empty(ENDORSEMENT_GRAPH, now)

    raw = _mean(e.endorser_score for e in latest.values())
    confidence = min(1.0, len(latest) / ENDORSEMENT_CONFIDENCE_COUNT)
    last = max(e.created_at for e in latest.values())
    return _scored(ENDORSEMENT_GRAPH, raw, confidence, len(latest), last, now)


def build_sources(inputs: AgentScoreInputs, now: float | None = None) -> dict[str, SourceScore]:
    """All eight sources for one agent, keyed by source name."""
    if now is None:
        now = time.time()
    return {
        PAYMENT_ACTIVITY: calculate_payment_activity(inputs.payments, now),
        STAKING_COMMITMENT: calculate_staking_commitment(inputs.stakes, now),
        CREDENTIAL_VERIFICATIONS: calculate_credential_verifications(inputs.credentials, now),
        USER_REVIEWS: calculate_user_reviews(inputs.reviews, now),
        ON_CHAIN_ACTIVITY: calculate_on_chain_activity(inputs.wallet_history, now),
        GOVERNANCE_PARTICIPATION: calculate_governance_participation(inputs.governance, now),
        API_QUALITY_METRICS: calculate_api_quality(inputs.endpoint_tests, inputs.api_usage, now),
        ENDORSEMENT_GRAPH: calculate_endorsement_graph(inputs.agent_address, inputs.endorsements, now),
    }
