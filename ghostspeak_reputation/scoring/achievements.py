"""
Achievements and daily activity streaks for the user dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any


@dataclass(frozen=True)
class AchievementRule:
    id: str
    name: str
    description: str
    category: str  # general | developer | customer
    metric: str | None  # None = always unlocked
    threshold: int = 0


ACHIEVEMENT_RULES: list[AchievementRule] = [
    AchievementRule("early_adopter", "Early Adopter", "Joined the GhostSpeak platform", "general", None),
    AchievementRule("ecto_creator", "Ecto Creator", "Registered your first AI agent", "developer", "agents_registered", 1),
    AchievementRule("ecto_artisan", "Ecto Artisan", "Registered 5+ AI agents", "developer", "agents_registered", 5),
    AchievementRule("ecto_master", "Ecto Master", "Registered 10+ AI agents", "developer", "agents_registered", 10),
    AchievementRule("first_hunt", "First Hunt", "Completed your first agent verification", "customer", "total_verifications", 1),
    AchievementRule("tracker", "Tracker", "Verified 10+ agents", "customer", "total_verifications", 10),
    AchievementRule("veteran_hunter", "Veteran Hunter", "Verified 50+ agents", "customer", "total_verifications", 50),
    AchievementRule("legendary_hunter", "Legendary Hunter", "Verified 100+ agents", "customer", "total_verifications", 100),
]


def calculate_achievements(
    created_at: int,
    total_verifications: int,
    agents_registered: int,
) -> list[dict[str, Any]]:
    """Every achievement with its unlocked flag; unlocked ones carry unlocked_at = account creation."""
    metrics = {"total_verifications": total_verifications, "agents_registered": agents_registered}
    out: list[dict[str, Any]] = []
    for rule in ACHIEVEMENT_RULES:
        unlocked = rule.metric is None or metrics[rule.metric] >= rule.threshold
        out.append({
            "id": rule.id,
            "name": rule.name,
            "description": rule.description,
            "category": rule.category,
            "unlocked": unlocked,
            "unlocked_at": created_at if unlocked else None,
        })
    return out


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _as_date(value: date | str | None) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def calculate_streak(
    last_activity_date: date | str | None,
    current_streak: int | None,
    today: date | None = None,
) -> dict[str, Any]:
    """Streak shown on the dashboard: active when the last activity was today or yesterday."""
    last = _as_date(last_activity_date)
    if last is None or not current_streak:
        return {"days": 0, "is_active": False}
    today = today or utc_today()
    is_active = (today - last).days <= 1
    return {"days": current_streak if is_active else 0, "is_active": is_active}


def advance_streak(
    last_activity_date: date | str | None,
    current_streak: int | None,
    longest_streak: int | None,
    today: date | None = None,
) -> dict[str, Any]:
    """
    Record activity for today.

    Same day keeps the streak, the next day extends it, any longer gap restarts at 1.
    """
    today = today or utc_today()
    last = _as_date(last_activity_date)
    new_streak = 1
    if last is not None:
        gap = (today - last).days
        if gap == 1:
            new_streak = (current_streak or 0) + 1
        elif gap == 0:
            new_streak = current_streak or 1
    return {
        "current_streak": new_streak,
        "longest_streak": max(longest_streak or 0, new_streak),
        "last_activity_date": today.isoformat(),
    }
