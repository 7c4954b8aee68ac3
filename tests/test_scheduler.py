"""
Tests for the recompute scheduler.
"""

from __future__ import annotations

from unittest.mock import patch

AGENT_1 = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"


def test_build_scheduler_registers_job(reputation_db):
    from ghostspeak_reputation.scheduler.engine import JOB_ID, build_scheduler

    scheduler = build_scheduler(background=True, interval_min=15)
    job = scheduler.get_job(JOB_ID)
    assert job is not None
    assert job.trigger.interval.total_seconds() == 15 * 60
    assert scheduler.running is False


def test_run_recompute_pass(reputation_db):
    from ghostspeak_reputation.discovery import record_discovered_agent
    from ghostspeak_reputation.scheduler.engine import run_recompute_pass

    record_discovered_agent(AGENT_1)
    result = run_recompute_pass()
    assert result["agents"]["computed"] == 1
    assert result["users"] == {"updated_count": 0, "total_users": 0}


def test_main_run_now(reputation_db):
    from ghostspeak_reputation.scheduler.engine import main

    assert main(["--run-now"]) == 0


def test_main_run_now_failure_returns_one(reputation_db):
    from ghostspeak_reputation.scheduler.engine import main

    with patch("ghostspeak_reputation.scheduler.engine.run_recompute_pass", side_effect=RuntimeError("boom")):
        assert main(["--run-now"]) == 1


def test_job_recompute_swallows_errors(reputation_db):
    from ghostspeak_reputation.scheduler.engine import job_recompute

    with patch("ghostspeak_reputation.scheduler.engine.run_recompute_pass", side_effect=RuntimeError("boom")) as run:
        job_recompute()
    assert run.call_count == 1
