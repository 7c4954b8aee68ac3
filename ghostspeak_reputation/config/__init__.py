"""
Configuration management for the GhostSpeak reputation service.

Loads settings from environment variables and an optional .env file.
Exposes a single source of truth for all service configuration.
"""

from ghostspeak_reputation.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
