"""
Repository functions over the ORM models.

Every function takes an open Session (see connection.session_scope) so callers
control the transaction. Per-user activity is loaded with grouped queries so
batch jobs issue a fixed number of statements regardless of user count.
"""

from __future__ import annotations

import json
import time
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from ghostspeak_reputation.database.models import (
    AGENT_STATUS_CLAIMED,
    AGENT_STATUSES,
    AgentReputationCache,
    ApiUsage,
    Credential,
    DiscoveredAgent,
    DiscoveryEvent,
    Endorsement,
    EndpointTest,
    GovernanceVote,
    PaymentEventRow,
    Review,
    StakingAccount,
    User,
    UserPayment,
    Verification,
)
from ghostspeak_reputation.scoring.models import (
    AgentScoreInputs,
    ApiUsageRecord,
    CredentialRecord,
    EndorsementRecord,
    EndpointTestRecord,
    GhostScoreResult,
    GovernanceRecord,
    PaymentEvent,
    ReviewRecord,
    StakeRecord,
    WalletHistory,
)

# Latest-N windows; the calculators cut to the same size
PAYMENT_QUERY_LIMIT = 100
API_QUERY_LIMIT = 100


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------


def get_user(session: Session, wallet: str) -> User | None:
    return session.query(User).filter(User.wallet_address == wallet).first()


def get_or_create_user(session: Session, wallet: str, now: int | None = None) -> tuple[User, bool]:
    """Return (user, created)."""
    user = get_user(session, wallet)
    if user is not None:
        return user, False
    now = int(now if now is not None else time.time())
    user = User(wallet_address=wallet, created_at=now, current_streak=0, longest_streak=0, is_customer=False)
    session.add(user)
    session.flush()
    return user, True


def list_users(session: Session) -> list[User]:
    return session.query(User).order_by(User.id).all()


def _grouped_counts(session: Session, column, *filters) -> dict[int, int]:
    q = session.query(column, func.count()).group_by(column)
    for f in filters:
        q = q.filter(f)
    return {row[0]: row[1] for row in q.all() if row[0] is not None}


def load_user_activity_counts(session: Session) -> dict[int, dict[str, int]]:
    """
    Verifications, completed payments and reviews written for every user.

    Three grouped queries total; users with no activity are absent.
    """
    verifications = _grouped_counts(session, Verification.user_id)
    payments = _grouped_counts(session, UserPayment.user_id, UserPayment.status == "completed")
    reviews = _grouped_counts(session, Review.user_id)
    out: dict[int, dict[str, int]] = {}
    for user_id in set(verifications) | set(payments) | set(reviews):
        out[user_id] = {
            "verifications": verifications.get(user_id, 0),
            "payments": payments.get(user_id, 0),
            "reviews": reviews.get(user_id, 0),
        }
    return out


def load_user_activity(session: Session, user_id: int) -> dict[str, int]:
    return {
        "verifications": session.query(func.count(Verification.id)).filter(Verification.user_id == user_id).scalar() or 0,
        "payments": (
            session.query(func.count(UserPayment.id))
            .filter(UserPayment.user_id == user_id, UserPayment.status == "completed")
            .scalar()
            or 0
        ),
        "reviews": session.query(func.count(Review.id)).filter(Review.user_id == user_id).scalar() or 0,
    }


def all_cached_ghosthunter_scores(session: Session) -> list[int]:
    """Cached Ghosthunter score column for every user that has one."""
    rows = session.query(User.ghosthunter_score).filter(User.ghosthunter_score.isnot(None)).all()
    return [r[0] for r in rows]


def save_wallet_history(session: Session, user: User, history: WalletHistory) -> None:
    user.wallet_age_days = history.wallet_age_days
    user.wallet_tx_count = history.transaction_count
    user.wallet_history_score = history.history_score
    user.x402_payments = history.x402_payments
    user.ghosthunter_boost = history.ghosthunter_boost
    user.history_analyzed_at = history.analyzed_at


def wallet_history_for(session: Session, address: str) -> WalletHistory | None:
    """Latest stored wallet history for an address, or None if never analysed."""
    user = get_user(session, address)
    if user is None or user.history_analyzed_at is None:
        return None
    return WalletHistory(
        wallet=address,
        wallet_age_days=user.wallet_age_days or 0,
        transaction_count=user.wallet_tx_count or 0,
        history_score=user.wallet_history_score or 0,
        x402_payments=user.x402_payments or 0,
        ghosthunter_boost=user.ghosthunter_boost or 0,
        analyzed_at=user.history_analyzed_at,
    )


# -----------------------------------------------------------------------------
# Discovered agents
# -----------------------------------------------------------------------------


def get_discovered_agent(session: Session, address: str) -> DiscoveredAgent | None:
    return session.query(DiscoveredAgent).filter(DiscoveredAgent.ghost_address == address).first()


def list_agent_addresses(session: Session) -> list[str]:
    rows = session.query(DiscoveredAgent.ghost_address).order_by(DiscoveredAgent.id).all()
    return [r[0] for r in rows]


def list_claimed_agent_addresses(session: Session, claimed_by: str) -> list[str]:
    rows = (
        session.query(DiscoveredAgent.ghost_address)
        .filter(DiscoveredAgent.claimed_by == claimed_by)
        .order_by(DiscoveredAgent.id)
        .all()
    )
    return [r[0] for r in rows]


def claim_agent_atomic(
    session: Session,
    address: str,
    claimed_by: str,
    claimed_at: int,
    signature: str | None = None,
) -> bool:
    """
    Mark an agent claimed in a single conditional UPDATE.

    Returns True when this call performed the claim; False if the row is missing
    or was already claimed (including by a concurrent request).
    """
    updated = (
        session.query(DiscoveredAgent)
        .filter(
            DiscoveredAgent.ghost_address == address,
            DiscoveredAgent.status != AGENT_STATUS_CLAIMED,
        )
        .update(
            {
                "status": AGENT_STATUS_CLAIMED,
                "claimed_by": claimed_by,
                "claimed_at": claimed_at,
                "claim_signature": signature,
            },
            synchronize_session=False,
        )
    )
    return updated == 1


def count_agents_by_status(session: Session) -> dict[str, int]:
    rows = session.query(DiscoveredAgent.status, func.count()).group_by(DiscoveredAgent.status).all()
    counts = {status: 0 for status in AGENT_STATUSES}
    for status, n in rows:
        counts[status] = n
    return counts


def add_discovery_event(
    session: Session,
    event_type: str,
    address: str,
    timestamp: int,
    data: dict[str, Any] | None = None,
) -> None:
    session.add(
        DiscoveryEvent(
            event_type=event_type,
            ghost_address=address,
            data=json.dumps(data) if data else None,
            timestamp=timestamp,
        )
    )


# -----------------------------------------------------------------------------
# Credentials
# -----------------------------------------------------------------------------


def list_credentials(session: Session, subject: str, credential_type: str | None = None) -> list[Credential]:
    q = session.query(Credential).filter(Credential.subject == subject)
    if credential_type:
        q = q.filter(Credential.credential_type == credential_type)
    return q.order_by(Credential.issued_at.desc(), Credential.id.desc()).all()


# -----------------------------------------------------------------------------
# Agent score inputs and cache
# -----------------------------------------------------------------------------


def count_successful_payments(session: Session, address: str) -> int:
    return (
        session.query(func.count(PaymentEventRow.id))
        .filter(PaymentEventRow.merchant_address == address, PaymentEventRow.success.is_(True))
        .scalar()
        or 0
    )


def load_agent_inputs(session: Session, address: str) -> AgentScoreInputs:
    """Load every score input for one agent as plain records."""
    payments = (
        session.query(PaymentEventRow)
        .filter(PaymentEventRow.merchant_address == address)
        .order_by(PaymentEventRow.timestamp.desc())
        .limit(PAYMENT_QUERY_LIMIT)
        .all()
    )
    stakes = session.query(StakingAccount).filter(StakingAccount.agent_address == address).all()
    credentials = session.query(Credential).filter(Credential.subject == address).all()
    reviews = session.query(Review).filter(Review.agent_address == address).all()
    tests = (
        session.query(EndpointTest)
        .filter(EndpointTest.agent_address == address)
        .order_by(EndpointTest.tested_at.desc())
        .limit(API_QUERY_LIMIT)
        .all()
    )
    usage = (
        session.query(ApiUsage)
        .filter(ApiUsage.agent_address == address)
        .order_by(ApiUsage.timestamp.desc())
        .limit(API_QUERY_LIMIT)
        .all()
    )
    votes = session.query(GovernanceVote).filter(GovernanceVote.agent_address == address).all()
    endorsements = (
        session.query(Endorsement, AgentReputationCache.ghost_score)
        .outerjoin(AgentReputationCache, AgentReputationCache.agent_address == Endorsement.endorser_address)
        .filter(Endorsement.endorsed_address == address)
        .all()
    )

    return AgentScoreInputs(
        agent_address=address,
        payments=[PaymentEvent(p.success, p.timestamp, p.response_time_ms) for p in payments],
        stakes=[StakeRecord(s.amount, s.staked_at, s.is_active) for s in stakes],
        credentials=[CredentialRecord(c.credential_type, c.issued_at) for c in credentials],
        reviews=[ReviewRecord(r.rating, r.created_at) for r in reviews],
        endpoint_tests=[
            EndpointTestRecord(t.success, t.tested_at, t.response_time_ms, t.quality_score, t.capability_verified)
            for t in tests
        ],
        api_usage=[ApiUsageRecord(u.status_code, u.timestamp, u.response_time_ms) for u in usage],
        governance=[GovernanceRecord(v.kind, v.timestamp) for v in votes],
        endorsements=[
            EndorsementRecord(e.endorser_address, float(score or 0), e.created_at) for e, score in endorsements
        ],
        wallet_history=wallet_history_for(session, address),
    )


def get_cached_score(session: Session, address: str) -> AgentReputationCache | None:
    return session.query(AgentReputationCache).filter(AgentReputationCache.agent_address == address).first()


def cached_scores_for(session: Session, addresses: list[str]) -> dict[str, AgentReputationCache]:
    if not addresses:
        return {}
    rows = session.query(AgentReputationCache).filter(AgentReputationCache.agent_address.in_(addresses)).all()
    return {r.agent_address: r for r in rows}


def upsert_cached_score(
    session: Session,
    address: str,
    result: GhostScoreResult,
    total_jobs: int,
) -> AgentReputationCache:
    row = get_cached_score(session, address)
    if row is None:
        row = AgentReputationCache(agent_address=address)
        session.add(row)
    row.ghost_score = result.score
    row.tier = result.tier
    row.confidence_lower = result.confidence[0]
    row.confidence_upper = result.confidence[1]
    row.total_jobs = total_jobs
    row.badges = json.dumps(result.badges)
    row.sources = json.dumps({name: s.to_dict() for name, s in result.sources.items()})
    row.last_updated = result.last_updated
    session.flush()
    return row
