"""
SQLAlchemy models for users, discovered agents, agent activity and cached scores.

All timestamps are Unix seconds. JSON payloads are stored as text.
"""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

AGENT_STATUS_DISCOVERED = "discovered"
AGENT_STATUS_CLAIMED = "claimed"
AGENT_STATUS_VERIFIED = "verified"
AGENT_STATUSES = (AGENT_STATUS_DISCOVERED, AGENT_STATUS_CLAIMED, AGENT_STATUS_VERIFIED)


def _loads(raw: str | None, default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except ValueError:
        return default


# -----------------------------------------------------------------------------
# People
# -----------------------------------------------------------------------------


class User(Base):
    """
    One row per wallet. Carries cached role scores, streak state and the
    latest wallet history analysis.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    wallet_address = Column(String(64), unique=True, nullable=False, index=True)
    username = Column(String(128), nullable=True)
    created_at = Column(Integer, nullable=False)
    last_login_at = Column(Integer, nullable=True)

    ghosthunter_score = Column(Integer, nullable=True, index=True)
    ghosthunter_tier = Column(String(32), nullable=True)
    ghosthunter_score_last_updated = Column(Integer, nullable=True)
    is_customer = Column(Boolean, nullable=False, default=False)

    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    last_activity_date = Column(String(10), nullable=True)  # YYYY-MM-DD (UTC)
    last_active_at = Column(Integer, nullable=True)

    wallet_age_days = Column(Integer, nullable=True)
    wallet_tx_count = Column(Integer, nullable=True)
    wallet_history_score = Column(Integer, nullable=True)
    x402_payments = Column(Integer, nullable=True)
    ghosthunter_boost = Column(Integer, nullable=True)
    history_analyzed_at = Column(Integer, nullable=True)


class Verification(Base):
    __tablename__ = "verifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    agent_address = Column(String(64), nullable=False, index=True)
    timestamp = Column(Integer, nullable=False)


class UserPayment(Base):
    """Payment made by a user for a resource; only status=completed counts toward scores."""

    __tablename__ = "user_payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False, default=0.0)
    status = Column(String(16), nullable=False, default="completed")
    created_at = Column(Integer, nullable=False)


# -----------------------------------------------------------------------------
# Ghost Discovery
# -----------------------------------------------------------------------------


class DiscoveredAgent(Base):
    __tablename__ = "discovered_agents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ghost_address = Column(String(64), unique=True, nullable=False, index=True)
    status = Column(String(16), nullable=False, default=AGENT_STATUS_DISCOVERED, index=True)
    discovery_source = Column(String(64), nullable=True)
    first_seen_at = Column(Integer, nullable=False)
    first_tx_signature = Column(String(128), nullable=True)
    slot = Column(Integer, nullable=True)
    claimed_by = Column(String(64), nullable=True, index=True)
    claimed_at = Column(Integer, nullable=True)
    claim_signature = Column(String(128), nullable=True)
    created_at = Column(Integer, nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ghost_address": self.ghost_address,
            "status": self.status,
            "discovery_source": self.discovery_source,
            "first_seen_at": self.first_seen_at,
            "first_tx_signature": self.first_tx_signature,
            "slot": self.slot,
            "claimed_by": self.claimed_by,
            "claimed_at": self.claimed_at,
        }


class DiscoveryEvent(Base):
    """Append-only audit log of discovery and claim events."""

    __tablename__ = "discovery_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String(32), nullable=False, index=True)
    ghost_address = Column(String(64), nullable=False, index=True)
    data = Column(Text, nullable=True)
    timestamp = Column(Integer, nullable=False)


class AgentReputationCache(Base):
    """Latest Ghost Score per agent; read by dashboards and the endorsement graph."""

    __tablename__ = "agent_reputation_cache"

    id = Column(Integer, primary_key=True, autoincrement=True)
    agent_address = Column(String(64), unique=True, nullable=False, index=True)
    ghost_score = Column(Integer, nullable=False)
    tier = Column(String(16), nullable=False)
    confidence_lower = Column(Integer, nullable=False)
    confidence_upper = Column(Integer, nullable=False)
    total_jobs = Column(Integer, nullable=False, default=0)
    badges = Column(Text, nullable=True)  # JSON list
    sources = Column(Text, nullable=True)  # JSON object
    last_updated = Column(Integer, nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_address": self.agent_address,
            "score": self.ghost_score,
            "tier": self.tier,
            "confidence": {"lower": self.confidence_lower, "upper": self.confidence_upper},
            "total_jobs": self.total_jobs,
            "badges": _loads(self.badges, []),
            "sources": _loads(self.sources, {}),
            "last_updated": self.last_updated,
        }


# -----------------------------------------------------------------------------
# Agent activity (score inputs)
# -----------------------------------------------------------------------------


class PaymentEventRow(Base):
    """x402 payment where the agent is the merchant."""

    __tablename__ = "payment_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    merchant_address = Column(String(64), nullable=False, index=True)
    payer_address = Column(String(64), nullable=True)
    success = Column(Boolean, nullable=False, default=True)
    response_time_ms = Column(Float, nullable=True)
    amount = Column(Float, nullable=True)
    signature = Column(String(128), nullable=True)
    timestamp = Column(Integer, nullable=False, index=True)


class StakingAccount(Base):
    __tablename__ = "staking_accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    agent_address = Column(String(64), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    staked_at = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class Credential(Base):
    __tablename__ = "credentials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject = Column(String(64), nullable=False, index=True)
    credential_type = Column(String(32), nullable=False, index=True)
    credential_id = Column(String(128), unique=True, nullable=False)
    tier = Column(String(32), nullable=True)
    milestone = Column(Integer, nullable=True)
    did = Column(String(128), nullable=True)
    data = Column(Text, nullable=True)
    issued_at = Column(Integer, nullable=False)


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    agent_address = Column(String(64), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    rating = Column(Float, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(Integer, nullable=False)


class EndpointTest(Base):
    __tablename__ = "endpoint_tests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    agent_address = Column(String(64), nullable=False, index=True)
    success = Column(Boolean, nullable=False)
    response_time_ms = Column(Float, nullable=True)
    quality_score = Column(Float, nullable=True)
    capability_verified = Column(Boolean, nullable=False, default=False)
    tested_at = Column(Integer, nullable=False, index=True)


class ApiUsage(Base):
    __tablename__ = "api_usage"

    id = Column(Integer, primary_key=True, autoincrement=True)
    agent_address = Column(String(64), nullable=False, index=True)
    status_code = Column(Integer, nullable=False)
    response_time_ms = Column(Float, nullable=True)
    timestamp = Column(Integer, nullable=False, index=True)


class GovernanceVote(Base):
    """Vote or proposal (kind) by an agent."""

    __tablename__ = "governance_votes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    agent_address = Column(String(64), nullable=False, index=True)
    kind = Column(String(16), nullable=False, default="vote")
    proposal_id = Column(String(64), nullable=True)
    timestamp = Column(Integer, nullable=False)


class Endorsement(Base):
    __tablename__ = "endorsements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    endorser_address = Column(String(64), nullable=False, index=True)
    endorsed_address = Column(String(64), nullable=False, index=True)
    created_at = Column(Integer, nullable=False)
