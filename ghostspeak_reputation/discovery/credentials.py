"""
Milestone credential issuance.

Each issue_* helper inserts at most one credential per milestone per agent and
returns {"success": bool, "reason"?: str, "credential_id"?: str, ...}.
Credentials feed back into the credential_verifications score source.
"""

from __future__ import annotations

import json
import time
from typing import Any

from sqlalchemy.orm import Session

from ghostspeak_reputation.config.env import get_solana_network
from ghostspeak_reputation.database import repositories as repo
from ghostspeak_reputation.database.models import Credential
from ghostspeak_reputation.ghost_logging import get_logger
from ghostspeak_reputation.ghost_logging.logger import short_address
from ghostspeak_reputation.scoring.milestones import (
    MIN_UPTIME_OBSERVATION_DAYS,
    UPTIME_TIERS,
    generate_credential_id,
    payment_milestone_for,
    reputation_tier_for,
    staking_tier_for,
    uptime_tier_for,
)
from ghostspeak_reputation.scoring.numeric import SECONDS_PER_DAY, round_half_up

logger = get_logger(__name__)

AGENT_IDENTITY = "AGENT_IDENTITY"
REPUTATION_TIER = "REPUTATION_TIER"
PAYMENT_MILESTONE = "PAYMENT_MILESTONE"
VERIFIED_STAKER = "VERIFIED_STAKER"
UPTIME_ATTESTATION = "UPTIME_ATTESTATION"


def _insert(
    session: Session,
    subject: str,
    credential_type: str,
    id_prefix: str,
    now: int,
    *,
    tier: str | None = None,
    milestone: int | None = None,
    did: str | None = None,
    data: dict[str, Any] | None = None,
) -> Credential:
    row = Credential(
        subject=subject,
        credential_type=credential_type,
        credential_id=generate_credential_id(id_prefix, subject, now),
        tier=tier,
        milestone=milestone,
        did=did,
        data=json.dumps(data) if data else None,
        issued_at=now,
    )
    session.add(row)
    session.flush()
    logger.info(
        "credential_issued",
        agent_address=short_address(subject),
        credential_type=credential_type,
        tier=tier,
        credential_id=row.credential_id,
    )
    return row


def issue_agent_identity_credential(
    session: Session,
    address: str,
    did: str | None = None,
    now: int | None = None,
) -> dict[str, Any]:
    existing = repo.list_credentials(session, address, AGENT_IDENTITY)
    if existing:
        return {"success": False, "reason": "already_issued", "credential_id": existing[0].credential_id}
    now = int(now if now is not None else time.time())
    did = did or f"did:sol:{get_solana_network()}:{address}"
    row = _insert(session, address, AGENT_IDENTITY, AGENT_IDENTITY, now, did=did)
    return {"success": True, "credential_id": row.credential_id, "did": did}


def issue_reputation_credential(
    session: Session,
    address: str,
    ghost_score: int,
    now: int | None = None,
) -> dict[str, Any]:
    qualified = reputation_tier_for(ghost_score)
    if qualified is None:
        return {"success": False, "reason": "score_too_low", "ghost_score": ghost_score}
    existing = repo.list_credentials(session, address, REPUTATION_TIER)
    if any(c.tier == qualified["tier"] for c in existing):
        return {"success": False, "reason": "tier_already_issued", "tier": qualified["tier"]}
    now = int(now if now is not None else time.time())
    row = _insert(
        session, address, REPUTATION_TIER, f"REPUTATION_{qualified['tier']}", now,
        tier=qualified["tier"], milestone=qualified["milestone"], data={"ghost_score": ghost_score},
    )
    return {"success": True, "credential_id": row.credential_id, "tier": qualified["tier"], "milestone": qualified["milestone"]}


def issue_payment_milestone_credential(
    session: Session,
    address: str,
    payment_count: int,
    now: int | None = None,
) -> dict[str, Any]:
    qualified = payment_milestone_for(payment_count)
    if qualified is None:
        return {"success": False, "reason": "not_enough_payments", "payment_count": payment_count}
    existing = repo.list_credentials(session, address, PAYMENT_MILESTONE)
    if any(c.milestone == qualified["count"] for c in existing):
        return {"success": False, "reason": "milestone_already_issued", "milestone": qualified["count"]}
    now = int(now if now is not None else time.time())
    row = _insert(
        session, address, PAYMENT_MILESTONE, f"PAYMENT_{qualified['count']}", now,
        tier=qualified["tier"], milestone=qualified["count"],
    )
    return {"success": True, "credential_id": row.credential_id, "milestone": qualified["count"], "tier": qualified["tier"]}


def issue_staking_credential(
    session: Session,
    address: str,
    amount_staked: float,
    now: int | None = None,
) -> dict[str, Any]:
    qualified = staking_tier_for(amount_staked)
    if qualified is None:
        return {"success": False, "reason": "stake_too_low", "amount_staked": amount_staked}
    existing = repo.list_credentials(session, address, VERIFIED_STAKER)
    if any(c.milestone == qualified["staking_tier"] for c in existing):
        return {"success": False, "reason": "tier_already_issued", "tier": qualified["tier"]}
    now = int(now if now is not None else time.time())
    row = _insert(
        session, address, VERIFIED_STAKER, f"STAKING_{qualified['tier']}", now,
        tier=qualified["tier"], milestone=qualified["staking_tier"], data={"amount_staked": amount_staked},
    )
    return {"success": True, "credential_id": row.credential_id, "tier": qualified["tier"], "staking_tier": qualified["staking_tier"]}


def _uptime_rank(tier: str | None) -> int:
    for i, row in enumerate(UPTIME_TIERS):
        if row["tier"] == tier:
            return i
    return len(UPTIME_TIERS)


def issue_uptime_credential(
    session: Session,
    address: str,
    total_tests: int,
    successful_responses: int,
    avg_response_time_ms: float,
    period_start: int,
    period_end: int,
    now: int | None = None,
) -> dict[str, Any]:
    """
    Rolling uptime attestation over an observation period of at least 7 days.

    Same or lower tier refreshes the latest credential in place; a better tier
    issues a new one.
    """
    uptime = successful_responses / total_tests * 100 if total_tests > 0 else 0.0
    qualified = uptime_tier_for(uptime)
    if qualified is None:
        return {"success": False, "reason": "uptime_too_low", "uptime_percentage": uptime}
    period_days = round_half_up((period_end - period_start) / SECONDS_PER_DAY)
    if period_days < MIN_UPTIME_OBSERVATION_DAYS:
        return {"success": False, "reason": "observation_period_too_short", "period_days": period_days}

    now = int(now if now is not None else time.time())
    data = {
        "uptime_percentage": uptime,
        "observation_period_days": period_days,
        "total_tests": total_tests,
        "successful_responses": successful_responses,
        "avg_response_time_ms": avg_response_time_ms,
        "period_start": period_start,
        "period_end": period_end,
    }
    existing = repo.list_credentials(session, address, UPTIME_ATTESTATION)
    if existing and _uptime_rank(qualified["tier"]) >= _uptime_rank(existing[0].tier):
        latest = existing[0]
        latest.tier = qualified["tier"]
        latest.data = json.dumps(data)
        latest.issued_at = now
        return {"success": True, "credential_id": latest.credential_id, "tier": qualified["tier"], "updated": True}

    row = _insert(
        session, address, UPTIME_ATTESTATION, f"UPTIME_{qualified['tier'].upper()}", now,
        tier=qualified["tier"], data=data,
    )
    return {"success": True, "credential_id": row.credential_id, "tier": qualified["tier"], "updated": False}
