"""
Percentile rank over precomputed Ghosthunter scores.

Callers pass the cached score column; nothing here re-aggregates activity.
"""

from __future__ import annotations

from typing import Iterable

from ghostspeak_reputation.scoring.numeric import round_half_up


def calculate_percentile(user_score: float, all_scores: Iterable[float | None]) -> dict[str, float]:
    """
    Rank user_score against customers (score > 0), counting strictly lower scores.

    Returns percentile, top_percentage (at least 1), total_users and user_score.
    """
    customers = [s for s in all_scores if s is not None and s > 0]
    if not customers:
        return {"percentile": 100, "top_percentage": 1, "total_users": 1, "user_score": user_score}

    below = sum(1 for s in customers if s < user_score)
    percentile = round_half_up(below / len(customers) * 100)
    return {
        "percentile": percentile,
        "top_percentage": max(1, 100 - percentile),
        "total_users": len(customers),
        "user_score": user_score,
    }
