"""
Wallet history analysis for onboarding and the on-chain activity source.

Fetches up to 100 recent transactions for a wallet, derives wallet age from the
oldest one and scores age + activity on a 0-1000 scale. With HELIUS_API_KEY set,
uses the Helius enhanced transactions API and also counts x402 payments (txs
after the x402 launch that touch a known facilitator); recipients of those
payments are recorded as discovered agents. Without Helius, falls back to
getSignaturesForAddress over plain JSON-RPC.

RPC failures return an all-zero result with success=False and never raise to
the caller; the history stored by the last successful analysis is left as is.
"""

from __future__ import annotations

import time
from typing import Any

import requests

from ghostspeak_reputation.config.env import HELIUS_TRANSACTIONS_URL_TEMPLATE, mask_rpc_url
from ghostspeak_reputation.config.settings import get_settings
from ghostspeak_reputation.core.exceptions import GhostSpeakError, RpcUnavailable
from ghostspeak_reputation.core.validation import validate_wallet
from ghostspeak_reputation.database import repositories as repo
from ghostspeak_reputation.database.connection import session_scope
from ghostspeak_reputation.ghost_logging import get_logger
from ghostspeak_reputation.ghost_logging.logger import short_address
from ghostspeak_reputation.scoring.models import WalletHistory
from ghostspeak_reputation.scoring.numeric import SECONDS_PER_DAY
from ghostspeak_reputation.scoring.role_scores import (
    calculate_ghosthunter_boost,
    calculate_wallet_history_score,
    get_ghosthunter_tier,
)

logger = get_logger(__name__)

HISTORY_TX_LIMIT = 100
RETRY_DELAY_SEC = 2.0
MAX_RETRIES = 3
REQUEST_TIMEOUT = 30

X402_FACILITATORS = frozenset({
    "2wKupLR9q6wXYppw8Gr2NvWxKBUqm4PPJKkQfoxHDBg4",  # PayAI
})
# 2024-10-01 00:00:00 UTC; no x402 traffic exists on Solana before this
X402_LAUNCH_TIMESTAMP = 1727740800


# -----------------------------------------------------------------------------
# HTTP helpers
# -----------------------------------------------------------------------------


def _rpc_post(url: str, method: str, params: list[Any]) -> dict[str, Any]:
    """JSON-RPC POST with retry on 429 and request errors. Raises RpcUnavailable when retries run out."""
    payload = {"jsonrpc": "2.0", "id": "ghostspeak-wallet-history", "method": method, "params": params}
    for attempt in range(MAX_RETRIES):
        try:
            r = requests.post(url, json=payload, timeout=REQUEST_TIMEOUT)
            if r.status_code == 429:
                logger.warning("rpc_rate_limited", method=method, attempt=attempt + 1, wait_sec=RETRY_DELAY_SEC)
                time.sleep(RETRY_DELAY_SEC)
                continue
            r.raise_for_status()
            data = r.json()
        except requests.RequestException as e:
            logger.warning("rpc_request_error", method=method, url=mask_rpc_url(url), error=str(e))
            if attempt < MAX_RETRIES - 1:
                time.sleep(RETRY_DELAY_SEC)
            continue
        err = data.get("error")
        if err:
            raise RpcUnavailable(f"{method} returned error: {err}")
        return data
    raise RpcUnavailable(f"{method} failed after {MAX_RETRIES} attempts")


def _http_get_json(url: str) -> Any:
    for attempt in range(MAX_RETRIES):
        try:
            r = requests.get(url, timeout=REQUEST_TIMEOUT)
            if r.status_code == 429:
                logger.warning("helius_rate_limited", attempt=attempt + 1, wait_sec=RETRY_DELAY_SEC)
                time.sleep(RETRY_DELAY_SEC)
                continue
            r.raise_for_status()
            return r.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("helius_request_error", url=mask_rpc_url(url), error=str(e))
            if attempt < MAX_RETRIES - 1:
                time.sleep(RETRY_DELAY_SEC)
    raise RpcUnavailable(f"Helius request failed after {MAX_RETRIES} attempts")


def fetch_signatures(rpc_url: str, wallet: str, limit: int = HISTORY_TX_LIMIT) -> list[dict[str, Any]]:
    """Newest-first signature infos for a wallet. Raises RpcUnavailable."""
    result = _rpc_post(rpc_url, "getSignaturesForAddress", [wallet, {"limit": limit}]).get("result")
    return result if isinstance(result, list) else []


def fetch_enhanced_transactions(api_key: str, wallet: str, limit: int = HISTORY_TX_LIMIT) -> list[dict[str, Any]]:
    """Newest-first Helius enhanced transactions. Raises RpcUnavailable."""
    url = HELIUS_TRANSACTIONS_URL_TEMPLATE.format(address=wallet, key=api_key, limit=limit)
    data = _http_get_json(url)
    return data if isinstance(data, list) else []


# -----------------------------------------------------------------------------
# Analysis
# -----------------------------------------------------------------------------


def _age_days(oldest_ts: int | None, now: float) -> int:
    if not oldest_ts:
        return 0
    return max(0, int((now - oldest_ts) // SECONDS_PER_DAY))


def _involves_facilitator(tx: dict[str, Any]) -> bool:
    for acc in tx.get("accountData") or []:
        if acc.get("account") in X402_FACILITATORS:
            return True
    for t in tx.get("tokenTransfers") or []:
        if t.get("fromUserAccount") in X402_FACILITATORS or t.get("toUserAccount") in X402_FACILITATORS:
            return True
    return False


def scan_x402_payments(wallet: str, transactions: list[dict[str, Any]]) -> tuple[int, list[dict[str, Any]]]:
    """
    Count x402 payments made by wallet and collect paid agents.

    Returns (payment_count, interactions) where each interaction has
    agent_address, signature, amount, block_time.
    """
    count = 0
    interactions: list[dict[str, Any]] = []
    seen: set[str] = set()
    for tx in transactions:
        ts = tx.get("timestamp") or 0
        if ts < X402_LAUNCH_TIMESTAMP or not _involves_facilitator(tx):
            continue
        count += 1
        transfers = (tx.get("tokenTransfers") or []) + (tx.get("nativeTransfers") or [])
        for t in transfers:
            recipient = t.get("toUserAccount")
            if t.get("fromUserAccount") != wallet or not recipient:
                continue
            if recipient in X402_FACILITATORS or recipient in seen:
                continue
            seen.add(recipient)
            amount = t.get("tokenAmount", t.get("amount"))
            interactions.append({
                "agent_address": recipient,
                "signature": tx.get("signature"),
                "amount": None if amount is None else str(amount),
                "block_time": ts,
            })
    return count, interactions


def _record_paid_agents(interactions: list[dict[str, Any]]) -> int:
    from ghostspeak_reputation.discovery.agents import record_discovered_agent

    discovered = 0
    for i in interactions:
        try:
            _, created = record_discovered_agent(
                i["agent_address"],
                discovery_source="x402_payment",
                first_tx_signature=i["signature"],
                first_seen_at=i["block_time"],
            )
        except GhostSpeakError as e:
            logger.debug("wallet_history_agent_skip", agent_address=short_address(i["agent_address"]), error=str(e))
            continue
        if created:
            discovered += 1
    return discovered


def analyze_wallet_history(wallet: str, now: float | None = None) -> dict[str, Any]:
    """
    Analyse a wallet's on-chain history and persist the result to its user row.
    Nothing is persisted beyond the user row itself when the fetch fails.

    Returns the WalletHistory fields plus success and agents_discovered.
    """
    wallet = validate_wallet(wallet)
    if now is None:
        now = time.time()
    settings = get_settings()

    tx_count = 0
    oldest_ts: int | None = None
    x402_payments = 0
    agents_discovered = 0
    success = True

    try:
        if settings.helius_api_key:
            txs = fetch_enhanced_transactions(settings.helius_api_key, wallet)
            tx_count = len(txs)
            if txs:
                oldest_ts = txs[-1].get("timestamp")
            x402_payments, interactions = scan_x402_payments(wallet, txs)
            agents_discovered = _record_paid_agents(interactions)
        else:
            sigs = fetch_signatures(settings.solana_rpc_url, wallet)
            tx_count = len(sigs)
            if sigs:
                oldest_ts = sigs[-1].get("blockTime")
    except RpcUnavailable as e:
        logger.warning("wallet_history_rpc_unavailable", wallet=short_address(wallet), error=e.message)
        success = False

    age_days = _age_days(oldest_ts, now)
    history = WalletHistory(
        wallet=wallet,
        wallet_age_days=age_days,
        transaction_count=tx_count,
        history_score=calculate_wallet_history_score(age_days, tx_count),
        x402_payments=x402_payments,
        ghosthunter_boost=calculate_ghosthunter_boost(x402_payments),
        analyzed_at=int(now),
    )

    try:
        with session_scope() as session:
            user, _ = repo.get_or_create_user(session, wallet, int(now))
            if success:
                repo.save_wallet_history(session, user, history)
                if history.ghosthunter_boost > 0:
                    # Initial score for customers with prior x402 payments
                    user.ghosthunter_score = history.ghosthunter_boost
                    user.ghosthunter_tier = get_ghosthunter_tier(history.ghosthunter_boost)
                    user.ghosthunter_score_last_updated = int(now)
                    user.is_customer = True
            else:
                # Keep whatever history the last successful analysis stored
                logger.info("wallet_history_kept", wallet=short_address(wallet), analyzed_at=user.history_analyzed_at)
    except Exception as e:
        logger.exception("wallet_history_save_failed", wallet=short_address(wallet), error=str(e))
        raise

    logger.info(
        "wallet_history_analyzed",
        wallet=short_address(wallet),
        success=success,
        age_days=age_days,
        tx_count=tx_count,
        history_score=history.history_score,
        x402_payments=x402_payments,
    )
    out = history.to_dict()
    out["success"] = success
    out["agents_discovered"] = agents_discovered
    return out
