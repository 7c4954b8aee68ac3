"""
Ghost Discovery: agents seen on-chain (e.g. via x402 facilitators) and their claims.

- record_discovered_agent: idempotent by address.
- claim_agent: single conditional UPDATE so concurrent claims cannot both win.
- get_discovery_stats: counts per status.
"""

from __future__ import annotations

import time
from typing import Any

from sqlalchemy.exc import IntegrityError

from ghostspeak_reputation.core.exceptions import AgentAlreadyClaimed, AgentNotFound
from ghostspeak_reputation.core.validation import validate_wallet
from ghostspeak_reputation.database import repositories as repo
from ghostspeak_reputation.database.connection import session_scope
from ghostspeak_reputation.database.models import AGENT_STATUS_DISCOVERED, DiscoveredAgent
from ghostspeak_reputation.discovery.credentials import issue_agent_identity_credential
from ghostspeak_reputation.ghost_logging import get_logger
from ghostspeak_reputation.ghost_logging.logger import short_address

logger = get_logger(__name__)

DEFAULT_DISCOVERY_SOURCE = "x402_facilitator"


def record_discovered_agent(
    address: str,
    discovery_source: str = DEFAULT_DISCOVERY_SOURCE,
    first_tx_signature: str | None = None,
    slot: int | None = None,
    first_seen_at: int | None = None,
) -> tuple[dict[str, Any], bool]:
    """
    Insert a discovered agent unless it already exists.

    Returns (agent, created). Existing rows are returned unchanged.
    """
    address = validate_wallet(address)
    now = int(time.time())
    try:
        with session_scope() as session:
            existing = repo.get_discovered_agent(session, address)
            if existing is not None:
                return existing.to_dict(), False
            agent = DiscoveredAgent(
                ghost_address=address,
                status=AGENT_STATUS_DISCOVERED,
                discovery_source=discovery_source,
                first_seen_at=int(first_seen_at if first_seen_at is not None else now),
                first_tx_signature=first_tx_signature,
                slot=slot,
                created_at=now,
            )
            session.add(agent)
            session.flush()
            repo.add_discovery_event(
                session,
                "agent_discovered",
                address,
                now,
                {"source": discovery_source, "signature": first_tx_signature, "slot": slot},
            )
            result = agent.to_dict()
        logger.info("agent_discovered", agent_address=short_address(address), source=discovery_source)
        return result, True
    except IntegrityError:
        # Lost an insert race; the other writer's row is the record
        with session_scope() as session:
            existing = repo.get_discovered_agent(session, address)
            if existing is None:
                raise
            return existing.to_dict(), False


def claim_agent(address: str, claimed_by: str, signature: str | None = None) -> dict[str, Any]:
    """
    Claim a discovered agent for a wallet and issue its identity credential.

    Raises AgentNotFound or AgentAlreadyClaimed.
    """
    address = validate_wallet(address)
    claimed_by = validate_wallet(claimed_by)
    now = int(time.time())
    try:
        with session_scope() as session:
            if not repo.claim_agent_atomic(session, address, claimed_by, now, signature):
                if repo.get_discovered_agent(session, address) is None:
                    raise AgentNotFound(f"Agent {address} not found in discovery database")
                raise AgentAlreadyClaimed(f"Agent {address} has already been claimed")
            repo.get_or_create_user(session, claimed_by, now)
            repo.add_discovery_event(session, "agent_claimed", address, now, {"claimed_by": claimed_by})
            credential = issue_agent_identity_credential(session, address, now=now)
    except (AgentNotFound, AgentAlreadyClaimed) as e:
        logger.info("agent_claim_rejected", agent_address=short_address(address), reason=e.code)
        raise
    except Exception as e:
        logger.exception("agent_claim_failed", agent_address=short_address(address), error=str(e))
        raise
    logger.info(
        "agent_claimed",
        agent_address=short_address(address),
        claimed_by=short_address(claimed_by),
        credential_id=credential.get("credential_id"),
    )
    return {
        "success": True,
        "agent_address": address,
        "claimed_by": claimed_by,
        "claimed_at": now,
        "credential_id": credential.get("credential_id"),
        "did": credential.get("did"),
    }


def get_discovery_stats() -> dict[str, int]:
    with session_scope() as session:
        counts = repo.count_agents_by_status(session)
    counts["total"] = sum(counts.values())
    return counts
