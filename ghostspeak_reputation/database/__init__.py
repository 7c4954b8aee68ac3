"""
Persistence layer: SQLAlchemy engine/session management, models and repositories.
"""

from ghostspeak_reputation.database.connection import (
    get_engine,
    init_db,
    reset_engine_for_test,
    session_scope,
)

__all__ = ["get_engine", "init_db", "reset_engine_for_test", "session_scope"]
