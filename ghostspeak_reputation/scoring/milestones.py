"""
Milestone credential eligibility and credential ID generation.

Tables map a metric to the highest milestone it qualifies for. The discovery
package persists the resulting credentials.
"""

from __future__ import annotations

from typing import Any

REPUTATION_TIERS: list[dict[str, Any]] = [
    {"milestone": 2000, "tier": "Bronze"},
    {"milestone": 5000, "tier": "Silver"},
    {"milestone": 7500, "tier": "Gold"},
    {"milestone": 9000, "tier": "Platinum"},
]

PAYMENT_MILESTONES: list[dict[str, Any]] = [
    {"count": 10, "tier": "Bronze"},
    {"count": 100, "tier": "Silver"},
    {"count": 1000, "tier": "Gold"},
]

STAKING_TIERS: list[dict[str, Any]] = [
    {"min_stake": 1000, "tier": "Basic", "staking_tier": 1},
    {"min_stake": 10000, "tier": "Premium", "staking_tier": 2},
    {"min_stake": 100000, "tier": "Elite", "staking_tier": 3},
]

# Descending: first match wins
UPTIME_TIERS: list[dict[str, Any]] = [
    {"min_uptime": 99.9, "tier": "gold"},
    {"min_uptime": 99.0, "tier": "silver"},
    {"min_uptime": 95.0, "tier": "bronze"},
]

MIN_UPTIME_OBSERVATION_DAYS = 7

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _highest(rows: list[dict[str, Any]], key: str, value: float) -> dict[str, Any] | None:
    qualified = [r for r in rows if value >= r[key]]
    return qualified[-1] if qualified else None


def reputation_tier_for(ghost_score: float) -> dict[str, Any] | None:
    return _highest(REPUTATION_TIERS, "milestone", ghost_score)


def payment_milestone_for(payment_count: int) -> dict[str, Any] | None:
    return _highest(PAYMENT_MILESTONES, "count", payment_count)


def staking_tier_for(amount_staked: float) -> dict[str, Any] | None:
    return _highest(STAKING_TIERS, "min_stake", amount_staked)


def uptime_tier_for(uptime_percentage: float) -> dict[str, Any] | None:
    for row in UPTIME_TIERS:
        if uptime_percentage >= row["min_uptime"]:
            return row
    return None


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return sign + "".join(reversed(digits))


def djb2_int32(data: str) -> int:
    """djb2 hash wrapped to a signed 32-bit integer."""
    h = 5381
    for ch in data:
        h = ((h << 5) + h + ord(ch)) & 0xFFFFFFFF
    return h - 0x100000000 if h >= 0x80000000 else h


def generate_credential_id(credential_type: str, agent_address: str, timestamp: int) -> str:
    """Deterministic id: <type>_<hash36>_<timestamp36>."""
    h = djb2_int32(f"{credential_type}-{agent_address}-{timestamp}")
    return f"{credential_type.lower()}_{to_base36(abs(h))}_{to_base36(int(timestamp))}"
