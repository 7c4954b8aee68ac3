"""
GhostSpeak Reputation: Ghost Score and Ghosthunter Score backend.

Aggregates x402 payments, staking, credentials, reviews and on-chain history
into bounded 0-10,000 reputation scores for AI agents and the people who
build and hire them. Scores are cached so dashboards and percentile queries
never re-aggregate raw activity per request.
"""

__version__ = "0.1.0"
