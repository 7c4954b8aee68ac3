"""
Ghost Discovery and credential issuance.
"""

from ghostspeak_reputation.discovery.agents import (
    claim_agent,
    get_discovery_stats,
    record_discovered_agent,
)

__all__ = ["claim_agent", "get_discovery_stats", "record_discovered_agent"]
