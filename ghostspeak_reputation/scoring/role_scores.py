"""
Role scores for people: Ghosthunter (customers) and Ecto (agent developers).

Each score is a sum of independently capped category sub-scores, clamped to
0-10,000. Also the wallet-history onboarding score and the Ghosthunter boost
granted for prior x402 payments.
"""

from __future__ import annotations

from ghostspeak_reputation.scoring.numeric import SECONDS_PER_DAY, clamp, round_half_up

GHOSTHUNTER_TIERS: list[tuple[str, int]] = [
    ("ROOKIE", 0),
    ("TRACKER", 2500),
    ("VETERAN", 5000),
    ("ELITE", 7500),
    ("LEGENDARY", 9000),
]

ECTO_TIERS: list[tuple[str, int]] = [
    ("NOVICE", 0),
    ("APPRENTICE", 2500),
    ("ARTISAN", 5000),
    ("MASTER", 7500),
    ("LEGEND", 9000),
]

MAX_GHOSTHUNTER_BOOST = 3500
WALLET_AGE_CAP_DAYS = 365
WALLET_TX_CAP = 100


def _tier_for(score: float, tiers: list[tuple[str, int]]) -> str:
    tier = tiers[0][0]
    for name, threshold in tiers:
        if score >= threshold:
            tier = name
    return tier


def _age_days(account_age_seconds: float) -> float:
    return max(0.0, account_age_seconds) / SECONDS_PER_DAY


def calculate_ghosthunter_score(
    total_verifications: int,
    total_payments: int,
    reviews_written: int,
    account_age_seconds: float,
    boost: int = 0,
) -> int:
    """Verifications, completed payments, reviews and account age; boost added before the clamp."""
    score = (
        min(total_verifications * 150, 3500)
        + min(total_payments * 100, 2500)
        + min(reviews_written * 200, 2500)
        + min(_age_days(account_age_seconds) * 10, 1500)
        + boost
    )
    return int(clamp(round_half_up(score)))


def calculate_ecto_score(
    agents_registered: int,
    total_agent_ghost_score: float,
    total_agent_jobs: int,
    account_age_seconds: float,
) -> int:
    avg_agent_score = total_agent_ghost_score / agents_registered if agents_registered > 0 else 0
    score = (
        min(agents_registered * 500, 2000)
        + min(avg_agent_score / 10000 * 4000, 4000)
        + min(total_agent_jobs * 25, 2500)
        + min(_age_days(account_age_seconds) * 10, 1500)
    )
    return int(clamp(round_half_up(score)))


def get_ghosthunter_tier(score: float) -> str:
    return _tier_for(score, GHOSTHUNTER_TIERS)


def get_ecto_tier(score: float) -> str:
    return _tier_for(score, ECTO_TIERS)


def calculate_wallet_history_score(wallet_age_days: float, transaction_count: int) -> int:
    """0-1000 onboarding score: 400 for a year of age, 600 for 100 transactions."""
    age_part = min(max(0.0, wallet_age_days), WALLET_AGE_CAP_DAYS) / WALLET_AGE_CAP_DAYS * 400
    tx_part = min(max(0, transaction_count), WALLET_TX_CAP) / WALLET_TX_CAP * 600
    return round_half_up(age_part + tx_part)


def calculate_ghosthunter_boost(x402_payments: int) -> int:
    return min(max(0, x402_payments) * 150, MAX_GHOSTHUNTER_BOOST)
