"""
Ghost Score: multi-source reputation aggregation for AI agents.

Responsibilities:
- Exponential time decay per source (source-specific half-lives).
- Outlier trimming by modified z-score (median absolute deviation).
- Confidence-weighted mean on a 0-10,000 scale.
- Bayesian 95% interval around the score.
- Tier and badge assignment.

Pure functions; no I/O. Inputs are SourceScore records built by scoring.sources.
"""

from __future__ import annotations

import math
import time
from typing import Mapping

from ghostspeak_reputation.ghost_logging import get_logger
from ghostspeak_reputation.scoring.models import GhostScoreResult, SourceScore
from ghostspeak_reputation.scoring.numeric import (
    MAX_SCORE,
    MIN_SCORE,
    clamp,
    days_between,
    round_half_up,
)

logger = get_logger(__name__)

PAYMENT_ACTIVITY = "payment_activity"
STAKING_COMMITMENT = "staking_commitment"
CREDENTIAL_VERIFICATIONS = "credential_verifications"
USER_REVIEWS = "user_reviews"
ON_CHAIN_ACTIVITY = "on_chain_activity"
GOVERNANCE_PARTICIPATION = "governance_participation"
API_QUALITY_METRICS = "api_quality_metrics"
ENDORSEMENT_GRAPH = "endorsement_graph"

# Sum to 1.0
SOURCE_WEIGHTS: dict[str, float] = {
    PAYMENT_ACTIVITY: 0.30,
    STAKING_COMMITMENT: 0.20,
    CREDENTIAL_VERIFICATIONS: 0.15,
    USER_REVIEWS: 0.15,
    ON_CHAIN_ACTIVITY: 0.10,
    GOVERNANCE_PARTICIPATION: 0.05,
    API_QUALITY_METRICS: 0.03,
    ENDORSEMENT_GRAPH: 0.02,
}

# Half-life in days
DECAY_HALF_LIVES: dict[str, float] = {
    PAYMENT_ACTIVITY: 30,
    STAKING_COMMITMENT: 90,
    CREDENTIAL_VERIFICATIONS: 365,
    USER_REVIEWS: 60,
    ON_CHAIN_ACTIVITY: 45,
    GOVERNANCE_PARTICIPATION: 30,
    API_QUALITY_METRICS: 14,
    ENDORSEMENT_GRAPH: 180,
}

# Ascending; a score belongs to the highest threshold it reaches
TIER_THRESHOLDS: list[tuple[str, int]] = [
    ("NEWCOMER", 0),
    ("BRONZE", 2000),
    ("SILVER", 5000),
    ("GOLD", 7500),
    ("PLATINUM", 9000),
    ("DIAMOND", 9500),
]

MIN_DECAY_FACTOR = 0.1
MAX_SOURCE_VARIANCE = 2500.0
OUTLIER_MIN_SOURCES = 3
MAD_CONSTANT = 1.4826
OUTLIER_Z_THRESHOLD = 2.5
CREDIBILITY_Z = 1.96
VERIFIED_AGENT_CONFIDENCE = 0.9
PERFECT_PERFORMER_RAW = 9900

PAYMENT_BADGES = [(1000, "THOUSAND_JOBS"), (100, "HUNDRED_JOBS"), (10, "TEN_JOBS")]
STAKING_BADGES = [(8000, "WHALE_STAKER"), (5000, "MAJOR_STAKER"), (2000, "COMMITTED_STAKER")]


def calculate_time_decay_factor(
    last_updated: float,
    half_life_days: float,
    now: float | None = None,
) -> float:
    """
    exp(-ln2 / half_life * age_days), floored at MIN_DECAY_FACTOR.

    Returns 1.0 for timestamps at or after now.
    """
    if now is None:
        now = time.time()
    age_days = days_between(last_updated, now)
    if age_days <= 0:
        return 1.0
    factor = math.exp(-math.log(2) / half_life_days * age_days)
    return max(MIN_DECAY_FACTOR, factor)


def calculate_tier(score: float) -> str:
    tier = TIER_THRESHOLDS[0][0]
    for name, threshold in TIER_THRESHOLDS:
        if score >= threshold:
            tier = name
    return tier


def _upper_median(values: list[float]) -> float:
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


def _trim_outliers(entries: list[dict[str, float]]) -> list[dict[str, float]]:
    """
    Drop entries whose modified z-score exceeds the threshold. MAD == 0 keeps everything.

    Judged on pre-decay raw scores, so staleness alone never moves a source in or out.
    """
    if len(entries) < OUTLIER_MIN_SOURCES:
        return entries
    scores = [e["raw"] for e in entries]
    median = _upper_median(scores)
    mad = _upper_median([abs(s - median) for s in scores])
    if mad == 0:
        return entries
    kept = [e for e in entries if abs(e["raw"] - median) / (mad * MAD_CONSTANT) <= OUTLIER_Z_THRESHOLD]
    if len(kept) < len(entries):
        logger.debug("ghost_score_outliers_trimmed", trimmed=len(entries) - len(kept), kept=len(kept))
    return kept


def _bayesian_interval(entries: list[dict[str, float]]) -> tuple[int, int]:
    mean = sum(e["score"] * e["weight"] for e in entries)
    weighted_variance = sum(e["weight"] * e["weight"] * e["variance"] for e in entries)
    effective_n = sum(math.sqrt(e["data_points"]) for e in entries)
    standard_error = math.sqrt(weighted_variance / max(1.0, effective_n))
    margin = CREDIBILITY_Z * standard_error
    lower = int(clamp(round_half_up(mean - margin)))
    upper = int(clamp(round_half_up(mean + margin)))
    return lower, upper


def calculate_ghost_score(sources: Mapping[str, SourceScore]) -> tuple[int, tuple[int, int]]:
    """
    Aggregate sources into (score, (lower, upper)).

    Each source contributes raw * decay, weighted by weight * confidence.
    With three or more weighted sources, modified z-score outliers (> 2.5) are
    dropped first, judged on raw scores. No usable weight yields (0, (0, 0)).
    """
    entries = [
        {
            "raw": s.raw_score,
            "score": s.raw_score * s.time_decay_factor,
            "weight": s.weight * s.confidence,
            "variance": MAX_SOURCE_VARIANCE / math.sqrt(max(1, s.data_points)),
            "data_points": float(max(0, s.data_points)),
        }
        for s in sources.values()
    ]
    # Sources without data or confidence carry no weight and take no part in trimming
    entries = _trim_outliers([e for e in entries if e["weight"] > 0])

    total_weight = sum(e["weight"] for e in entries)
    if total_weight <= 0:
        return 0, (0, 0)

    for e in entries:
        e["weight"] = e["weight"] / total_weight

    weighted_mean = sum(e["score"] * e["weight"] for e in entries)
    score = round_half_up(clamp(weighted_mean, MIN_SCORE, MAX_SCORE))
    return score, _bayesian_interval(entries)


def _highest(value: float, ladder: list[tuple[int, str]]) -> str | None:
    for threshold, badge in ladder:
        if value >= threshold:
            return badge
    return None


def calculate_badges(score: int, sources: Mapping[str, SourceScore], tier: str) -> list[str]:
    """Badges earned from tier, payment volume, stake size, performance and confidence."""
    badges: list[str] = []
    if tier != TIER_THRESHOLDS[0][0]:
        badges.append(f"{tier}_TIER")

    payment = sources.get(PAYMENT_ACTIVITY)
    if payment is not None:
        badge = _highest(payment.data_points, PAYMENT_BADGES)
        if badge:
            badges.append(badge)

    staking = sources.get(STAKING_COMMITMENT)
    if staking is not None:
        badge = _highest(staking.raw_score, STAKING_BADGES)
        if badge:
            badges.append(badge)

    if payment is not None and payment.raw_score >= PERFECT_PERFORMER_RAW:
        badges.append("PERFECT_PERFORMER")

    if sources:
        mean_confidence = sum(s.confidence for s in sources.values()) / len(sources)
        if mean_confidence >= VERIFIED_AGENT_CONFIDENCE:
            badges.append("VERIFIED_AGENT")
    return badges


def build_ghost_score_result(
    sources: Mapping[str, SourceScore],
    now: float | None = None,
) -> GhostScoreResult:
    """Score, tier, interval and badges for one agent."""
    if now is None:
        now = time.time()
    score, interval = calculate_ghost_score(sources)
    tier = calculate_tier(score)
    return GhostScoreResult(
        score=score,
        tier=tier,
        confidence=interval,
        sources=dict(sources),
        last_updated=int(now),
        badges=calculate_badges(score, sources, tier),
    )
