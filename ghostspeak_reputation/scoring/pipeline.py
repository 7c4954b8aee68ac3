"""
Scoring pipeline: load inputs, compute, cache.

- compute_agent_score: eight sources -> Ghost Score, cached, milestone credentials issued.
- recompute_agent_scores / recompute_ghosthunter_scores: batch passes for the scheduler.
- get_user_reputation / get_user_percentile: dashboard reads over cached scores.
"""

from __future__ import annotations

import time
from datetime import date, datetime, timezone
from typing import Any

from ghostspeak_reputation.core.exceptions import UserNotFound
from ghostspeak_reputation.core.validation import validate_wallet
from ghostspeak_reputation.database import repositories as repo
from ghostspeak_reputation.database.connection import session_scope
from ghostspeak_reputation.database.models import User
from ghostspeak_reputation.discovery import credentials as creds
from ghostspeak_reputation.ghost_logging import bind_agent, get_logger
from ghostspeak_reputation.ghost_logging.logger import short_address
from ghostspeak_reputation.scoring.achievements import advance_streak, calculate_achievements, calculate_streak
from ghostspeak_reputation.scoring.ghost_score import build_ghost_score_result
from ghostspeak_reputation.scoring.models import AgentScoreInputs, GhostScoreResult
from ghostspeak_reputation.scoring.percentile import calculate_percentile
from ghostspeak_reputation.scoring.role_scores import (
    calculate_ecto_score,
    calculate_ghosthunter_score,
    get_ecto_tier,
    get_ghosthunter_tier,
)
from ghostspeak_reputation.scoring.sources import build_sources

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Agents
# -----------------------------------------------------------------------------


def _issue_milestones(session, inputs: AgentScoreInputs, result: GhostScoreResult, payment_count: int, now: int) -> None:
    creds.issue_reputation_credential(session, inputs.agent_address, result.score, now)
    creds.issue_payment_milestone_credential(session, inputs.agent_address, payment_count, now)
    staked = sum(s.amount for s in inputs.stakes if s.is_active)
    if staked > 0:
        creds.issue_staking_credential(session, inputs.agent_address, staked, now)
    if inputs.endpoint_tests:
        tests = inputs.endpoint_tests
        timed = [t.response_time_ms for t in tests if t.response_time_ms is not None]
        creds.issue_uptime_credential(
            session,
            inputs.agent_address,
            total_tests=len(tests),
            successful_responses=sum(1 for t in tests if t.success),
            avg_response_time_ms=sum(timed) / len(timed) if timed else 0.0,
            period_start=min(t.tested_at for t in tests),
            period_end=max(t.tested_at for t in tests),
            now=now,
        )


def compute_agent_score(address: str, now: float | None = None, persist: bool = True) -> GhostScoreResult:
    """
    Compute an agent's Ghost Score from stored activity.

    With persist, upserts agent_reputation_cache and issues any newly earned
    reputation, payment, staking and uptime credentials.
    """
    address = validate_wallet(address)
    if now is None:
        now = time.time()
    log = bind_agent(address)
    try:
        with session_scope() as session:
            inputs = repo.load_agent_inputs(session, address)
            result = build_ghost_score_result(build_sources(inputs, now), now)
            if persist:
                payment_count = repo.count_successful_payments(session, address)
                repo.upsert_cached_score(session, address, result, total_jobs=payment_count)
                _issue_milestones(session, inputs, result, payment_count, int(now))
    except Exception as e:
        log.exception("ghost_score_compute_failed", error=str(e))
        raise
    log.info(
        "ghost_score_computed",
        score=result.score,
        tier=result.tier,
        confidence_lower=result.confidence[0],
        confidence_upper=result.confidence[1],
        badges=len(result.badges),
        persisted=persist,
    )
    return result


def get_agent_score(address: str, refresh: bool = False, now: float | None = None) -> dict[str, Any]:
    """Cached score when present (and not refresh); computed and cached otherwise."""
    address = validate_wallet(address)
    if not refresh:
        with session_scope() as session:
            cached = repo.get_cached_score(session, address)
            if cached is not None:
                out = cached.to_dict()
                out["cached"] = True
                return out
    result = compute_agent_score(address, now=now, persist=True)
    out = result.to_dict()
    out["agent_address"] = address
    out["cached"] = False
    return out


def recompute_agent_scores(now: float | None = None) -> dict[str, int]:
    """Recompute every discovered agent. Failures are logged and counted, not raised."""
    if now is None:
        now = time.time()
    with session_scope() as session:
        addresses = repo.list_agent_addresses(session)
    computed = failed = 0
    for address in addresses:
        try:
            compute_agent_score(address, now=now, persist=True)
            computed += 1
        except Exception as e:
            failed += 1
            logger.warning("agent_recompute_failed", agent_address=short_address(address), error=str(e))
    logger.info("agent_scores_recomputed", computed=computed, failed=failed, total_agents=len(addresses))
    return {"computed": computed, "failed": failed, "total_agents": len(addresses)}


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------


def recompute_ghosthunter_scores(now: float | None = None) -> dict[str, int]:
    """
    Recompute every user's Ghosthunter score from grouped activity counts.

    No boost is carried over. Rows are written only when score or tier changed.
    """
    if now is None:
        now = time.time()
    now_i = int(now)
    updated = 0
    with session_scope() as session:
        users = repo.list_users(session)
        counts = repo.load_user_activity_counts(session)
        for user in users:
            c = counts.get(user.id, {"verifications": 0, "payments": 0, "reviews": 0})
            score = calculate_ghosthunter_score(
                total_verifications=c["verifications"],
                total_payments=c["payments"],
                reviews_written=c["reviews"],
                account_age_seconds=now_i - user.created_at,
                boost=0,
            )
            tier = get_ghosthunter_tier(score)
            if user.ghosthunter_score == score and user.ghosthunter_tier == tier:
                continue
            user.ghosthunter_score = score
            user.ghosthunter_tier = tier
            user.ghosthunter_score_last_updated = now_i
            user.is_customer = c["verifications"] > 0 or c["payments"] > 0
            updated += 1
        total = len(users)
    logger.info("ghosthunter_scores_recomputed", updated_count=updated, total_users=total)
    return {"updated_count": updated, "total_users": total}


def _utc_date(ts: float) -> date:
    return datetime.fromtimestamp(ts, tz=timezone.utc).date()


def _require_user(session, wallet: str) -> User:
    user = repo.get_user(session, wallet)
    if user is None:
        raise UserNotFound(f"User {wallet} not found")
    return user


def get_user_reputation(wallet: str, now: float | None = None) -> dict[str, Any]:
    """
    Dashboard reputation block: roles, Ecto and Ghosthunter scores, achievements, streak.

    Ghosthunter uses the cached score when present. Ecto is derived from the
    cached Ghost Scores of the user's claimed agents.
    """
    wallet = validate_wallet(wallet)
    if now is None:
        now = time.time()
    with session_scope() as session:
        user = _require_user(session, wallet)
        activity = repo.load_user_activity(session, user.id)
        claimed = repo.list_claimed_agent_addresses(session, wallet)
        account_age = int(now) - user.created_at

        is_developer = len(claimed) > 0
        is_customer = activity["verifications"] > 0 or activity["payments"] > 0

        ecto = None
        if is_developer:
            cached = repo.cached_scores_for(session, claimed)
            ecto_score = calculate_ecto_score(
                agents_registered=len(claimed),
                total_agent_ghost_score=sum(c.ghost_score for c in cached.values()),
                total_agent_jobs=sum(c.total_jobs for c in cached.values()),
                account_age_seconds=account_age,
            )
            ecto = {"score": ecto_score, "tier": get_ecto_tier(ecto_score), "agents_registered": len(claimed)}

        ghosthunter = None
        if is_customer:
            if user.ghosthunter_score is not None and user.ghosthunter_tier:
                gh_score = user.ghosthunter_score
            else:
                gh_score = calculate_ghosthunter_score(
                    total_verifications=activity["verifications"],
                    total_payments=activity["payments"],
                    reviews_written=activity["reviews"],
                    account_age_seconds=account_age,
                    boost=user.ghosthunter_boost or 0,
                )
            ghosthunter = {"score": gh_score, "tier": get_ghosthunter_tier(gh_score)}

        out = {
            "wallet_address": wallet,
            "roles": {"is_agent_developer": is_developer, "is_customer": is_customer},
            "reputation": {"ecto": ecto, "ghosthunter": ghosthunter},
            "stats": {
                "total_verifications": activity["verifications"],
                "total_payments": activity["payments"],
                "reviews_written": activity["reviews"],
            },
            "gamification": {
                "streak": calculate_streak(user.last_activity_date, user.current_streak, _utc_date(now)),
                "longest_streak": user.longest_streak or 0,
                "achievements": calculate_achievements(
                    created_at=user.created_at,
                    total_verifications=activity["verifications"],
                    agents_registered=len(claimed),
                ),
            },
        }
    logger.debug("user_reputation_loaded", wallet=short_address(wallet), developer=is_developer, customer=is_customer)
    return out


def get_user_percentile(wallet: str) -> dict[str, Any] | None:
    """Percentile of the user's cached Ghosthunter score among customers. None for unknown users."""
    wallet = validate_wallet(wallet)
    with session_scope() as session:
        user = repo.get_user(session, wallet)
        if user is None:
            return None
        user_score = user.ghosthunter_score or 0
        scores = repo.all_cached_ghosthunter_scores(session)
    result = calculate_percentile(user_score, scores)
    logger.info(
        "percentile_computed",
        wallet=short_address(wallet),
        percentile=result["percentile"],
        total_users=result["total_users"],
    )
    return result


def record_user_activity(wallet: str, now: float | None = None) -> dict[str, Any]:
    """Advance the user's daily streak; creates the user on first activity."""
    wallet = validate_wallet(wallet)
    if now is None:
        now = time.time()
    today = _utc_date(now)
    with session_scope() as session:
        user, created = repo.get_or_create_user(session, wallet, int(now))
        streak = advance_streak(user.last_activity_date, user.current_streak, user.longest_streak, today)
        user.current_streak = streak["current_streak"]
        user.longest_streak = streak["longest_streak"]
        user.last_activity_date = streak["last_activity_date"]
        user.last_active_at = int(now)
    logger.info("user_activity_recorded", wallet=short_address(wallet), created=created, current_streak=streak["current_streak"])
    return streak
