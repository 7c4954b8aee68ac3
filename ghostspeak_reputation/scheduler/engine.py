"""
Score recompute scheduler: keeps the cached Ghost and Ghosthunter scores current via APScheduler.

Usage:
  python -m ghostspeak_reputation.scheduler.engine            # run every RECOMPUTE_INTERVAL_MIN minutes
  python -m ghostspeak_reputation.scheduler.engine --run-now  # run one pass, then exit

The API server starts a BackgroundScheduler with the same job in its lifespan.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from pytz import utc

from ghostspeak_reputation.config.settings import get_settings
from ghostspeak_reputation.database.connection import init_db
from ghostspeak_reputation.ghost_logging import get_logger

logger = get_logger(__name__)

JOB_ID = "ghostspeak_score_recompute"


def run_recompute_pass() -> dict[str, Any]:
    """Recompute agent Ghost Scores first, then user Ghosthunter scores (percentiles read the latter)."""
    from ghostspeak_reputation.scoring.pipeline import recompute_agent_scores, recompute_ghosthunter_scores

    agents = recompute_agent_scores()
    users = recompute_ghosthunter_scores()
    logger.info(
        "recompute_pass_complete",
        agents_computed=agents["computed"],
        agents_failed=agents["failed"],
        users_updated=users["updated_count"],
        total_users=users["total_users"],
    )
    return {"agents": agents, "users": users}


def job_recompute() -> None:
    """Scheduled job: log start, run pass, log end. Errors are logged; the scheduler keeps running."""
    logger.info("recompute_job_start")
    try:
        run_recompute_pass()
        logger.info("recompute_job_end", success=True)
    except Exception as e:
        logger.exception("recompute_job_error", error=str(e))


def build_scheduler(background: bool = True, interval_min: int | None = None):
    """Scheduler with the recompute job registered (not started)."""
    if interval_min is None:
        interval_min = get_settings().recompute_interval_min
    scheduler_cls = BackgroundScheduler if background else BlockingScheduler
    scheduler = scheduler_cls(timezone=utc)
    scheduler.add_job(
        job_recompute,
        "interval",
        minutes=interval_min,
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    logger.info("recompute_scheduler_built", interval_min=interval_min, background=background)
    return scheduler


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Recompute GhostSpeak reputation scores on an interval.")
    parser.add_argument(
        "--run-now",
        action="store_true",
        help="Run one recompute pass immediately, then exit.",
    )
    parser.add_argument(
        "--interval-min",
        type=int,
        default=None,
        help="Minutes between passes (default: RECOMPUTE_INTERVAL_MIN).",
    )
    args = parser.parse_args(argv)

    init_db()
    if args.run_now:
        logger.info("recompute_manual_run_start")
        try:
            run_recompute_pass()
        except Exception as e:
            logger.exception("recompute_manual_run_failed", error=str(e))
            return 1
        logger.info("recompute_manual_run_end")
        return 0

    scheduler = build_scheduler(background=False, interval_min=args.interval_min)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("recompute_scheduler_stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
