"""
Structured logging for GhostSpeak reputation.

JSON logs with timestamp, event_type and agent/wallet fields.
Use get_logger() in all modules for aggregation-friendly output.
"""

from ghostspeak_reputation.ghost_logging.logger import bind_agent, get_logger

__all__ = ["bind_agent", "get_logger"]
