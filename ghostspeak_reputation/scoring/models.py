"""
Plain records consumed by the score calculators.

Repositories convert ORM rows into these so scoring stays free of any database
coupling and can be tested with literal values. All timestamps are Unix
seconds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class SourceScore:
    """One reputation source's contribution before aggregation."""

    raw_score: float
    weight: float
    confidence: float
    data_points: int
    time_decay_factor: float = 1.0
    last_updated: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "raw_score": self.raw_score,
            "weight": self.weight,
            "confidence": self.confidence,
            "data_points": self.data_points,
            "time_decay_factor": self.time_decay_factor,
            "last_updated": self.last_updated,
        }


@dataclass
class GhostScoreResult:
    score: int
    tier: str
    confidence: tuple[int, int]
    sources: dict[str, SourceScore]
    last_updated: int
    badges: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "tier": self.tier,
            "confidence": {"lower": self.confidence[0], "upper": self.confidence[1]},
            "sources": {name: s.to_dict() for name, s in self.sources.items()},
            "last_updated": self.last_updated,
            "badges": list(self.badges),
        }


@dataclass
class PaymentEvent:
    """x402 payment event where the agent is the merchant."""

    success: bool
    timestamp: int
    response_time_ms: float | None = None


@dataclass
class StakeRecord:
    amount: float
    staked_at: int
    is_active: bool = True


@dataclass
class CredentialRecord:
    credential_type: str
    issued_at: int


@dataclass
class ReviewRecord:
    rating: float
    created_at: int


@dataclass
class EndpointTestRecord:
    """Result of one observation test against an agent's endpoint."""

    success: bool
    tested_at: int
    response_time_ms: float | None = None
    quality_score: float | None = None
    capability_verified: bool = False


@dataclass
class ApiUsageRecord:
    status_code: int
    timestamp: int
    response_time_ms: float | None = None


@dataclass
class GovernanceRecord:
    """A DAO vote or a submitted proposal."""

    kind: str  # "vote" | "proposal"
    timestamp: int


@dataclass
class EndorsementRecord:
    endorser: str
    endorser_score: float
    created_at: int


@dataclass
class WalletHistory:
    """Result of wallet history analysis."""

    wallet: str
    wallet_age_days: int
    transaction_count: int
    history_score: int
    x402_payments: int = 0
    ghosthunter_boost: int = 0
    analyzed_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet": self.wallet,
            "wallet_age_days": self.wallet_age_days,
            "transaction_count": self.transaction_count,
            "history_score": self.history_score,
            "x402_payments": self.x402_payments,
            "ghosthunter_boost": self.ghosthunter_boost,
            "analyzed_at": self.analyzed_at,
        }


@dataclass
class AgentScoreInputs:
    """Everything the eight source calculators need for one agent."""

    agent_address: str
    payments: list[PaymentEvent] = field(default_factory=list)
    stakes: list[StakeRecord] = field(default_factory=list)
    credentials: list[CredentialRecord] = field(default_factory=list)
    reviews: list[ReviewRecord] = field(default_factory=list)
    endpoint_tests: list[EndpointTestRecord] = field(default_factory=list)
    api_usage: list[ApiUsageRecord] = field(default_factory=list)
    governance: list[GovernanceRecord] = field(default_factory=list)
    endorsements: list[EndorsementRecord] = field(default_factory=list)
    wallet_history: WalletHistory | None = None
