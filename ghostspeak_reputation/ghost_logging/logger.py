"""
structlog configuration for the reputation service.

Every record carries event_type, level, logger name and a UTC ISO timestamp.
Address-valued fields (agent_address, wallet, claimed_by) are shortened to
16 characters so logs never carry full wallet keys.

LOG_LEVEL picks the threshold; LOG_FORMAT=json (default) or console.
Imports nothing from ghostspeak_reputation so any module can log at import time.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

ADDRESS_LOG_LENGTH = 16
ADDRESS_FIELDS = ("agent_address", "wallet", "claimed_by")


def short_address(address: str | None) -> str:
    """First 16 characters plus '...'; shorter values are returned unchanged."""
    address = address or ""
    if len(address) <= ADDRESS_LOG_LENGTH:
        return address
    return address[:ADDRESS_LOG_LENGTH] + "..."


def _shorten_addresses(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in ADDRESS_FIELDS:
        value = event_dict.get(key)
        if isinstance(value, str):
            event_dict[key] = short_address(value)
    return event_dict


def _event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog's 'event' becomes event_type; message mirrors it unless given."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    event_dict.setdefault("message", str(event_dict.get("event_type", "")))
    return event_dict


def _renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_structlog() -> None:
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    log_format = os.getenv("LOG_FORMAT", "json").strip().lower()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            _shorten_addresses,
            _event_type,
            _renderer(log_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Logger bound with logger=name.

        logger = get_logger(__name__)
        logger.info("ghost_score_computed", agent_address=addr, score=8200, tier="GOLD")
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_agent(agent_address: str) -> structlog.BoundLogger:
    """Logger with agent_address bound for every call, e.g. across one score computation."""
    return get_logger("ghostspeak_reputation.agent").bind(agent_address=short_address(agent_address))
