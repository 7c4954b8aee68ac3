"""
Reputation scoring: Ghost Score for agents, Ghosthunter and Ecto scores for people.

Calculators are pure; scoring.pipeline wires them to the database.
"""

from ghostspeak_reputation.scoring.ghost_score import (
    SOURCE_WEIGHTS,
    build_ghost_score_result,
    calculate_badges,
    calculate_ghost_score,
    calculate_tier,
    calculate_time_decay_factor,
)
from ghostspeak_reputation.scoring.models import GhostScoreResult, SourceScore
from ghostspeak_reputation.scoring.percentile import calculate_percentile
from ghostspeak_reputation.scoring.role_scores import (
    calculate_ecto_score,
    calculate_ghosthunter_score,
)

__all__ = [
    "SOURCE_WEIGHTS",
    "GhostScoreResult",
    "SourceScore",
    "build_ghost_score_result",
    "calculate_badges",
    "calculate_ecto_score",
    "calculate_ghost_score",
    "calculate_ghosthunter_score",
    "calculate_percentile",
    "calculate_tier",
    "calculate_time_decay_factor",
]
