#!/usr/bin/env python3
"""
Tests for rule-based job verification and the completeness risk tier.
"""

import asyncio
import os
import sys
import time

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from safejobs.config import VerificationConfig
from safejobs.database import Coordinate, SafetyTier
from safejobs.verifier import (
    JobSubmission,
    VerificationFailure,
    calculate_safety_tier,
    check_pay,
    check_prohibited_content,
    run_rules,
    verify_job_listing,
)

NO_DELAY = VerificationConfig(delay_ms=0)


def submission(**overrides) -> JobSubmission:
    fields = dict(
        title="Farm Helper",
        company="Acme",
        location="Springfield",
        description="legit work",
        pay="$15/hr",
    )
    fields.update(overrides)
    return JobSubmission(**fields)


# (overrides, expected failure or None for pass)
rule_cases = [
    (dict(title=""), VerificationFailure.MISSING_REQUIRED_FIELDS),
    (dict(title="", company="A", location="X"), VerificationFailure.MISSING_REQUIRED_FIELDS),
    (dict(company=""), VerificationFailure.MISSING_REQUIRED_FIELDS),
    (dict(location=""), VerificationFailure.MISSING_REQUIRED_FIELDS),
    (dict(title="AB", company="ABC", location="Somewhere"), VerificationFailure.TITLE_TOO_SHORT),
    (dict(company="A"), VerificationFailure.COMPANY_TOO_SHORT),
    (dict(description="This is a SCAM, honestly"), VerificationFailure.INAPPROPRIATE_CONTENT),
    (dict(title="Fake Farm Job"), VerificationFailure.INAPPROPRIATE_CONTENT),
    (dict(pay="unlimited income potential"), VerificationFailure.UNREALISTIC_PAY_CLAIM),
    (dict(pay="Get Rich in weeks"), VerificationFailure.UNREALISTIC_PAY_CLAIM),
    (dict(pay="$15/hr, up to $2000000 bonus"), VerificationFailure.UNREALISTIC_PAY_AMOUNT),
    (dict(location="NY"), VerificationFailure.LOCATION_TOO_VAGUE),
    (dict(), None),
    (dict(pay="$15-20/hr"), None),
    (dict(pay=""), None),
    (dict(pay="negotiable"), None),
    (dict(pay="$1000000 per year"), None),
    (dict(description="Scampi chef at a seafood restaurant"), None),
]


@pytest.mark.parametrize("overrides,expected", rule_cases)
def test_rules(overrides, expected):
    result = run_rules(submission(**overrides), NO_DELAY)
    if expected is None:
        assert result.passed
        assert result.failure is None
        assert result.failure_reason is None
    else:
        assert not result.passed
        assert result.failure is expected
        assert result.failure_reason == expected.value


def test_failure_messages():
    assert VerificationFailure.MISSING_REQUIRED_FIELDS.value == "Missing required fields"
    assert VerificationFailure.TITLE_TOO_SHORT.value == "Job title is too short"
    assert VerificationFailure.COMPANY_TOO_SHORT.value == "Company name is too short"
    assert VerificationFailure.INAPPROPRIATE_CONTENT.value == "Job listing contains inappropriate content"
    assert VerificationFailure.UNREALISTIC_PAY_CLAIM.value == "Pay information appears unrealistic"
    assert VerificationFailure.UNREALISTIC_PAY_AMOUNT.value == "Pay amount appears unrealistic"
    assert VerificationFailure.LOCATION_TOO_VAGUE.value == "Location information is too vague"


def test_first_failing_rule_wins():
    # Short title and blocked word and bad pay: title length is checked first
    job = submission(title="xx", description="fraud", pay="get rich")
    assert run_rules(job, NO_DELAY).failure is VerificationFailure.TITLE_TOO_SHORT

    # Blocked word is checked before pay
    job = submission(description="illegal", pay="get rich")
    assert run_rules(job, NO_DELAY).failure is VerificationFailure.INAPPROPRIATE_CONTENT

    # Pay claim is checked before location detail
    job = submission(pay="millionaire", location="NY")
    assert run_rules(job, NO_DELAY).failure is VerificationFailure.UNREALISTIC_PAY_CLAIM


def test_prohibited_content_is_whole_word():
    config = VerificationConfig()
    assert check_prohibited_content(submission(description="fakery is not flagged"), config) is None
    assert check_prohibited_content(submission(description="xxx"), config) is VerificationFailure.INAPPROPRIATE_CONTENT


def test_blocked_words_are_configurable():
    config = VerificationConfig(blocked_words=["pyramid"])
    assert check_prohibited_content(submission(description="Join our pyramid"), config) is not None
    assert check_prohibited_content(submission(description="a scam"), config) is None


def test_pay_ceiling_is_configurable():
    config = VerificationConfig(max_pay_amount=500)
    assert check_pay(submission(pay="$600 weekly"), config) is VerificationFailure.UNREALISTIC_PAY_AMOUNT
    assert check_pay(submission(pay="$400 weekly"), config) is None


def test_verify_passes_without_delay():
    result = asyncio.run(verify_job_listing(submission(), NO_DELAY))
    assert result.passed


def test_verify_delay_override():
    config = VerificationConfig(delay_ms=10_000)
    start = time.monotonic()
    result = asyncio.run(verify_job_listing(submission(), config, delay_ms=0))
    assert result.passed
    assert time.monotonic() - start < 1


def test_verify_waits_before_passing():
    config = VerificationConfig(delay_ms=50)
    start = time.monotonic()
    asyncio.run(verify_job_listing(submission(), config))
    assert time.monotonic() - start >= 0.04


def test_verify_failure_does_not_wait():
    config = VerificationConfig(delay_ms=10_000)
    start = time.monotonic()
    result = asyncio.run(verify_job_listing(submission(title=""), config))
    assert not result.passed
    assert time.monotonic() - start < 1


def test_tier_complete_submission_is_low_risk():
    job = submission(
        title="Farm Helper",
        company="Green Acres Co",
        location="Springfield, IL",
        pay="$15/hr",
        description="Help with harvest, 8 hours a day, lunch provided.",
    )
    assert calculate_safety_tier(job, Coordinate(39.78, -89.65)) is SafetyTier.LOW_RISK


def test_tier_without_coordinates_and_short_details_is_high_risk():
    job = submission(title="Helper", company="Acme Ltd", location="Town", pay="", description="short")
    # title +1, company +1, nothing else
    assert calculate_safety_tier(job, None) is SafetyTier.HIGH_RISK


def test_tier_medium_risk():
    job = submission(
        title="Farm Helper",
        company="Green Acres Co",
        location="Springfield, IL",
        pay="$15/hr",
        description="",
    )
    # 4 points, no coordinates
    assert calculate_safety_tier(job, None) is SafetyTier.MEDIUM_RISK


def test_tier_coordinates_worth_two_points():
    job = submission(title="Helper", company="Acme Ltd", location="Town", pay="", description="short")
    # 2 points + 2 for coordinates
    assert calculate_safety_tier(job, Coordinate(0, 0)) is SafetyTier.MEDIUM_RISK


def test_submission_from_dict_handles_missing_fields():
    job = JobSubmission.from_dict({"title": "Cook", "pay": None})
    assert job.title == "Cook"
    assert job.pay == ""
    assert job.company == ""


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
