"""
FastAPI server: reputation API over the database.

Agents: Ghost Score (cached, optional refresh), discovery and claims.
Users: reputation block, percentile, activity streak, wallet history analysis.
Admin: trigger a recompute pass.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ghostspeak_reputation import __version__
from ghostspeak_reputation.config.settings import get_settings
from ghostspeak_reputation.core.exceptions import (
    AgentAlreadyClaimed,
    AgentNotFound,
    GhostSpeakError,
    InvalidWalletAddress,
    UserNotFound,
)
from ghostspeak_reputation.database.connection import init_db
from ghostspeak_reputation.discovery import claim_agent, get_discovery_stats, record_discovered_agent
from ghostspeak_reputation.ghost_logging import get_logger
from ghostspeak_reputation.ingestion.wallet_history import analyze_wallet_history
from ghostspeak_reputation.scheduler.engine import build_scheduler, run_recompute_pass
from ghostspeak_reputation.scoring import pipeline

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Request / response models
# -----------------------------------------------------------------------------


class DiscoverAgentRequest(BaseModel):
    """POST /agents/discover body."""

    address: str = Field(..., min_length=8, max_length=64, description="Agent wallet (base58)")
    discovery_source: str = Field("x402_facilitator", max_length=64)
    first_tx_signature: str | None = Field(None, max_length=128)
    slot: int | None = Field(None, ge=0)
    first_seen_at: int | None = Field(None, ge=0, description="Unix seconds")


class DiscoverAgentResponse(BaseModel):
    agent: dict[str, Any]
    created: bool = Field(..., description="True if newly recorded, False if already known")


class ClaimAgentRequest(BaseModel):
    """POST /agents/{address}/claim body."""

    claimed_by: str = Field(..., min_length=8, max_length=64, description="Claimer wallet (base58)")
    signature: str | None = Field(None, max_length=128, description="Optional ownership proof signature")


class ClaimAgentResponse(BaseModel):
    success: bool
    agent_address: str
    claimed_by: str
    claimed_at: int
    credential_id: str | None = None
    did: str | None = None


class PercentileResponse(BaseModel):
    percentile: int = Field(..., ge=0, le=100)
    top_percentage: int = Field(..., ge=1, le=100)
    total_users: int = Field(..., ge=1)
    user_score: int


class StreakResponse(BaseModel):
    current_streak: int
    longest_streak: int
    last_activity_date: str


# -----------------------------------------------------------------------------
# Lifespan: tables + background recompute scheduler
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and start the recompute scheduler unless RECOMPUTE_ON_STARTUP=0."""
    init_db()
    scheduler = None
    if get_settings().recompute_on_startup:
        scheduler = build_scheduler(background=True)
        scheduler.start()
        logger.info("api_recompute_scheduler_started")

    yield

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        logger.info("api_recompute_scheduler_stopped")


# -----------------------------------------------------------------------------
# App and routes
# -----------------------------------------------------------------------------

app = FastAPI(
    title="GhostSpeak Reputation API",
    description="Ghost Score for AI agents; Ghosthunter and Ecto scores for people.",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}


@app.get("/agents/discovery/stats")
def discovery_stats() -> dict[str, int]:
    return get_discovery_stats()


@app.post("/agents/discover", response_model=DiscoverAgentResponse)
def discover_agent(body: DiscoverAgentRequest) -> JSONResponse:
    """
    Record a discovered agent. Returns 201 when newly recorded, 200 when already known.
    """
    agent, created = record_discovered_agent(
        body.address,
        discovery_source=body.discovery_source,
        first_tx_signature=body.first_tx_signature,
        slot=body.slot,
        first_seen_at=body.first_seen_at,
    )
    return JSONResponse(
        status_code=201 if created else 200,
        content=DiscoverAgentResponse(agent=agent, created=created).model_dump(),
    )


@app.post("/agents/{address}/claim", response_model=ClaimAgentResponse)
def claim(address: str, body: ClaimAgentRequest) -> ClaimAgentResponse:
    """Claim a discovered agent. 404 if unknown, 409 if already claimed."""
    return ClaimAgentResponse(**claim_agent(address, body.claimed_by, body.signature))


@app.get("/agents/{address}/ghost-score")
def ghost_score(address: str, refresh: bool = Query(False, description="Recompute instead of reading the cache")) -> dict[str, Any]:
    """
    Return the agent's Ghost Score, tier, confidence interval and badges.

    Reads agent_reputation_cache; computes and caches on a miss or with refresh=true.
    """
    return pipeline.get_agent_score(address, refresh=refresh)


@app.get("/users/{wallet}/reputation")
def user_reputation(wallet: str) -> dict[str, Any]:
    return pipeline.get_user_reputation(wallet)


@app.get("/users/{wallet}/percentile", response_model=PercentileResponse)
def user_percentile(wallet: str) -> PercentileResponse:
    """Percentile of the user's cached Ghosthunter score among customers."""
    result = pipeline.get_user_percentile(wallet)
    if result is None:
        raise HTTPException(status_code=404, detail=f"User {wallet[:8]}... not found")
    return PercentileResponse(**result)


@app.post("/users/{wallet}/activity", response_model=StreakResponse)
def user_activity(wallet: str) -> StreakResponse:
    """Record today's activity and return the updated streak."""
    return StreakResponse(**pipeline.record_user_activity(wallet))


@app.post("/users/{wallet}/analyze-history")
def user_analyze_history(wallet: str) -> dict[str, Any]:
    """Analyse on-chain history (age, tx count, x402 payments) and store it on the user."""
    return analyze_wallet_history(wallet)


@app.post("/admin/recompute")
def admin_recompute() -> dict[str, Any]:
    """Run one recompute pass synchronously."""
    try:
        return run_recompute_pass()
    except Exception as e:
        logger.exception("admin_recompute_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Recompute failed") from e


# -----------------------------------------------------------------------------
# Error handlers
# -----------------------------------------------------------------------------

_STATUS_BY_ERROR: list[tuple[type[GhostSpeakError], int]] = [
    (InvalidWalletAddress, 400),
    (AgentNotFound, 404),
    (UserNotFound, 404),
    (AgentAlreadyClaimed, 409),
]


@app.exception_handler(GhostSpeakError)
def ghostspeak_error_handler(request: Any, exc: GhostSpeakError) -> JSONResponse:
    """Map domain errors to HTTP status codes."""
    status = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status = code
            break
    if status == 500:
        logger.error("api_unhandled_domain_error", code=exc.code, error=exc.message)
    else:
        logger.info("api_domain_error", code=exc.code, status=status, path=request.url.path)
    return JSONResponse(status_code=status, content={"detail": exc.message})


@app.exception_handler(HTTPException)
def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )
