"""
Environment variable loading and validation for GhostSpeak reputation.

- SOLANA_NETWORK: devnet | mainnet (default: devnet)
- SOLANA_RPC_URL: RPC endpoint (read from .env)
- HELIUS_API_KEY: Helius API key (enhanced tx API + fallback RPC URL)
- GHOSTSPEAK_DB_URL / DATABASE_URL: SQLAlchemy URL; SQLite file otherwise
- RECOMPUTE_INTERVAL_MIN: minutes between score recompute passes
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is ghostspeak_reputation/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEVNET_RPC_URL = "https://api.devnet.solana.com"
MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
HELIUS_MAINNET_URL_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={key}"
HELIUS_DEVNET_URL_TEMPLATE = "https://devnet.helius-rpc.com/?api-key={key}"
HELIUS_TRANSACTIONS_URL_TEMPLATE = (
    "https://api.helius.xyz/v0/addresses/{address}/transactions?api-key={key}&limit={limit}"
)

DEFAULT_SQLITE_PATH = "ghostspeak.db"
DEFAULT_RECOMPUTE_INTERVAL_MIN = 60
DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 8000


def load_ghostspeak_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    load_dotenv(_ENV_PATH, override=False)


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_solana_network() -> str:
    """
    Return SOLANA_NETWORK from env: devnet | mainnet.
    Default: devnet.
    """
    load_ghostspeak_env()
    raw = (os.getenv("SOLANA_NETWORK") or os.getenv("SOLANA_CLUSTER") or "devnet").strip().lower()
    if raw in ("mainnet", "mainnet-beta"):
        return "mainnet"
    return "devnet"


def get_helius_api_key() -> str | None:
    load_ghostspeak_env()
    key = (os.getenv("HELIUS_API_KEY") or "").strip()
    return key or None


def get_solana_rpc_url() -> str:
    """
    Resolve Solana RPC URL from env.
    Order: SOLANA_RPC_URL > HELIUS_API_KEY (network-specific) > devnet/mainnet default.
    """
    load_ghostspeak_env()
    url = (os.getenv("SOLANA_RPC_URL") or "").strip()
    if url:
        return url
    key = get_helius_api_key()
    network = get_solana_network()
    if key:
        if network == "devnet":
            return HELIUS_DEVNET_URL_TEMPLATE.format(key=key)
        return HELIUS_MAINNET_URL_TEMPLATE.format(key=key)
    return DEVNET_RPC_URL if network == "devnet" else MAINNET_RPC_URL


def get_database_url() -> str:
    """Return GHOSTSPEAK_DB_URL or DATABASE_URL if set; else SQLite from DATABASE_PATH or default."""
    load_ghostspeak_env()
    url = (os.getenv("GHOSTSPEAK_DB_URL") or os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url
    path = (os.getenv("DATABASE_PATH") or "").strip() or DEFAULT_SQLITE_PATH
    return f"sqlite:///{path}"


def get_recompute_interval_min() -> int:
    load_ghostspeak_env()
    return max(1, _int_env("RECOMPUTE_INTERVAL_MIN", DEFAULT_RECOMPUTE_INTERVAL_MIN))


def recompute_on_startup() -> bool:
    """Return False when RECOMPUTE_ON_STARTUP=0 (tests, read-only replicas)."""
    load_ghostspeak_env()
    raw = (os.getenv("RECOMPUTE_ON_STARTUP") or "1").strip().lower()
    return raw not in ("0", "false", "no", "off")


def get_api_host() -> str:
    load_ghostspeak_env()
    return (os.getenv("API_HOST") or DEFAULT_API_HOST).strip()


def get_api_port() -> int:
    load_ghostspeak_env()
    return _int_env("API_PORT", DEFAULT_API_PORT)


def mask_rpc_url(url: str) -> str:
    """Hide API key in RPC URL for logging."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
