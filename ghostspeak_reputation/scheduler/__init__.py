"""
Scheduler: periodic score recomputation.

See scheduler.engine for the job and CLI.
"""

from ghostspeak_reputation.scheduler.engine import build_scheduler, run_recompute_pass

__all__ = ["build_scheduler", "run_recompute_pass"]
