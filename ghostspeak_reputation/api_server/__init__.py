"""
HTTP API server for GhostSpeak reputation.

Exposes Ghost Score, discovery, and user reputation endpoints over the database.
"""
