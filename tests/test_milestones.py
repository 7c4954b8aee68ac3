"""
Tests for milestone tables and credential id generation.
"""

from __future__ import annotations

import re

from ghostspeak_reputation.scoring.milestones import (
    djb2_int32,
    generate_credential_id,
    payment_milestone_for,
    reputation_tier_for,
    staking_tier_for,
    to_base36,
    uptime_tier_for,
)

AGENT = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"


def test_reputation_tier_highest_reached():
    assert reputation_tier_for(1999) is None
    assert reputation_tier_for(2000)["tier"] == "Bronze"
    assert reputation_tier_for(8000)["tier"] == "Gold"
    assert reputation_tier_for(10000)["tier"] == "Platinum"


def test_payment_milestones():
    assert payment_milestone_for(9) is None
    assert payment_milestone_for(10)["tier"] == "Bronze"
    assert payment_milestone_for(999)["tier"] == "Silver"
    assert payment_milestone_for(1000)["count"] == 1000


def test_staking_tiers():
    assert staking_tier_for(999) is None
    row = staking_tier_for(10_000)
    assert row["tier"] == "Premium"
    assert row["staking_tier"] == 2
    assert staking_tier_for(500_000)["tier"] == "Elite"


def test_uptime_tiers():
    assert uptime_tier_for(94.9) is None
    assert uptime_tier_for(95.0)["tier"] == "bronze"
    assert uptime_tier_for(99.5)["tier"] == "silver"
    assert uptime_tier_for(100)["tier"] == "gold"


def test_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"
    assert to_base36(-36) == "-10"


def test_djb2_known_values():
    assert djb2_int32("") == 5381
    assert djb2_int32("a") == 177670
    # long inputs wrap into signed 32-bit range
    h = djb2_int32("x" * 200)
    assert -(2**31) <= h < 2**31


def test_credential_id_format_and_determinism():
    cid = generate_credential_id("REPUTATION_TIER", AGENT, 1_760_000_000)
    assert cid == generate_credential_id("REPUTATION_TIER", AGENT, 1_760_000_000)
    assert re.fullmatch(r"reputation_tier_[0-9a-z]+_[0-9a-z]+", cid)
    assert cid.endswith("_" + to_base36(1_760_000_000))
    assert cid != generate_credential_id("REPUTATION_TIER", AGENT, 1_760_000_001)
