"""
Tests for achievements and activity streaks.
"""

from __future__ import annotations

from datetime import date

from ghostspeak_reputation.scoring.achievements import (
    ACHIEVEMENT_RULES,
    advance_streak,
    calculate_achievements,
    calculate_streak,
)

CREATED = 1_750_000_000


def _unlocked(achievements):
    return {a["id"] for a in achievements if a["unlocked"]}


def test_new_user_only_early_adopter():
    achievements = calculate_achievements(CREATED, total_verifications=0, agents_registered=0)
    assert len(achievements) == len(ACHIEVEMENT_RULES)
    assert _unlocked(achievements) == {"early_adopter"}
    locked = [a for a in achievements if not a["unlocked"]]
    assert all(a["unlocked_at"] is None for a in locked)


def test_thresholds_unlock():
    achievements = calculate_achievements(CREATED, total_verifications=50, agents_registered=5)
    assert _unlocked(achievements) == {
        "early_adopter",
        "ecto_creator",
        "ecto_artisan",
        "first_hunt",
        "tracker",
        "veteran_hunter",
    }
    first_hunt = next(a for a in achievements if a["id"] == "first_hunt")
    assert first_hunt["unlocked_at"] == CREATED
    assert first_hunt["category"] == "customer"


def test_streak_active_today_or_yesterday():
    today = date(2025, 6, 10)
    assert calculate_streak("2025-06-10", 4, today) == {"days": 4, "is_active": True}
    assert calculate_streak(date(2025, 6, 9), 4, today) == {"days": 4, "is_active": True}


def test_streak_broken_after_gap():
    today = date(2025, 6, 10)
    assert calculate_streak("2025-06-08", 4, today) == {"days": 0, "is_active": False}


def test_streak_without_activity():
    assert calculate_streak(None, 0) == {"days": 0, "is_active": False}
    assert calculate_streak("2025-06-10", 0, date(2025, 6, 10)) == {"days": 0, "is_active": False}


def test_advance_streak_sequence():
    first = advance_streak(None, 0, 0, date(2025, 6, 1))
    assert first == {"current_streak": 1, "longest_streak": 1, "last_activity_date": "2025-06-01"}

    same_day = advance_streak(first["last_activity_date"], 1, 1, date(2025, 6, 1))
    assert same_day["current_streak"] == 1

    next_day = advance_streak("2025-06-01", 1, 1, date(2025, 6, 2))
    assert next_day["current_streak"] == 2
    assert next_day["longest_streak"] == 2

    after_gap = advance_streak("2025-06-02", 2, 2, date(2025, 6, 5))
    assert after_gap["current_streak"] == 1
    assert after_gap["longest_streak"] == 2
