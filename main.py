"""
Main entrypoint: FastAPI server with the score recompute scheduler in-process.

The lifespan hook creates tables and starts a BackgroundScheduler that refreshes
cached Ghost and Ghosthunter scores every RECOMPUTE_INTERVAL_MIN minutes
(disable with RECOMPUTE_ON_STARTUP=0 and run
`python -m ghostspeak_reputation.scheduler.engine` separately).

Env: GHOSTSPEAK_DB_URL / DATABASE_URL / DATABASE_PATH, SOLANA_RPC_URL, HELIUS_API_KEY,
API_HOST, API_PORT, LOG_LEVEL, LOG_FORMAT.
"""

import os

# Configure structured JSON logging before other imports that may log
from ghostspeak_reputation.ghost_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Run the FastAPI server in the main thread."""
    from ghostspeak_reputation.config import get_settings

    settings = get_settings()

    from ghostspeak_reputation.api_server.app import app
    import uvicorn

    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        network=settings.solana_network,
        recompute_interval_min=settings.recompute_interval_min,
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
