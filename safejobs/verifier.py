"""
Job posting verification for Safe Jobs.

Runs a submitted job through an ordered list of named rules and stops at the
first failure, so a given submission always produces the same message.
Also derives the completeness-based risk tier stored with each posting.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .config import VerificationConfig
from .database import Coordinate, SafetyTier
from .pay_parser import extract_pay_numbers, find_unrealistic_phrase

logger = logging.getLogger(__name__)


class VerificationFailure(Enum):
    """Reason a submission was rejected, valued by its user-facing message."""
    MISSING_REQUIRED_FIELDS = "Missing required fields"
    TITLE_TOO_SHORT = "Job title is too short"
    COMPANY_TOO_SHORT = "Company name is too short"
    INAPPROPRIATE_CONTENT = "Job listing contains inappropriate content"
    UNREALISTIC_PAY_CLAIM = "Pay information appears unrealistic"
    UNREALISTIC_PAY_AMOUNT = "Pay amount appears unrealistic"
    LOCATION_TOO_VAGUE = "Location information is too vague"


@dataclass
class JobSubmission:
    """A job posting form as entered by an employer."""
    title: str = ""
    company: str = ""
    location: str = ""
    pay: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "JobSubmission":
        return cls(
            title=str(data.get("title") or ""),
            company=str(data.get("company") or ""),
            location=str(data.get("location") or ""),
            pay=str(data.get("pay") or ""),
            description=str(data.get("description") or ""),
        )


@dataclass
class VerificationResult:
    """Outcome of verifying a submission."""
    passed: bool
    failure: Optional[VerificationFailure] = None

    @property
    def failure_reason(self) -> Optional[str]:
        return self.failure.value if self.failure else None


Rule = Callable[[JobSubmission, VerificationConfig], Optional[VerificationFailure]]


def check_required_fields(job: JobSubmission, config: VerificationConfig) -> Optional[VerificationFailure]:
    if not job.title or not job.company or not job.location:
        return VerificationFailure.MISSING_REQUIRED_FIELDS
    return None


def check_title_length(job: JobSubmission, config: VerificationConfig) -> Optional[VerificationFailure]:
    if len(job.title) < 3:
        return VerificationFailure.TITLE_TOO_SHORT
    return None


def check_company_length(job: JobSubmission, config: VerificationConfig) -> Optional[VerificationFailure]:
    if len(job.company) < 2:
        return VerificationFailure.COMPANY_TOO_SHORT
    return None


def check_prohibited_content(job: JobSubmission, config: VerificationConfig) -> Optional[VerificationFailure]:
    """Whole-word scan of title and description against the block-list."""
    content = f"{job.title} {job.description}"
    for word in config.blocked_words:
        if re.search(rf'\b{re.escape(word)}\b', content, re.IGNORECASE):
            # The matched word is for moderators, not the poster
            logger.info(f"Verification failed: contains blocked word '{word}'")
            return VerificationFailure.INAPPROPRIATE_CONTENT
    return None


def check_pay(job: JobSubmission, config: VerificationConfig) -> Optional[VerificationFailure]:
    """Reject get-rich-quick wording and implausibly large amounts."""
    if not job.pay:
        return None

    phrase = find_unrealistic_phrase(job.pay, config.unrealistic_pay_phrases)
    if phrase:
        logger.info(f"Verification failed: unrealistic pay claim '{phrase}'")
        return VerificationFailure.UNREALISTIC_PAY_CLAIM

    numbers = extract_pay_numbers(job.pay)
    if numbers and max(numbers) > config.max_pay_amount:
        logger.info(f"Verification failed: pay amount {max(numbers)} exceeds {config.max_pay_amount}")
        return VerificationFailure.UNREALISTIC_PAY_AMOUNT

    return None


def check_location_detail(job: JobSubmission, config: VerificationConfig) -> Optional[VerificationFailure]:
    if job.location and len(job.location) < 3:
        return VerificationFailure.LOCATION_TOO_VAGUE
    return None


# Order matters: the first failing rule determines the message
RULES: list[tuple[str, Rule]] = [
    ("required_fields", check_required_fields),
    ("title_length", check_title_length),
    ("company_length", check_company_length),
    ("prohibited_content", check_prohibited_content),
    ("pay", check_pay),
    ("location_detail", check_location_detail),
]


def run_rules(job: JobSubmission, config: Optional[VerificationConfig] = None) -> VerificationResult:
    """
    Evaluate the rules in order without any delay.

    Args:
        job: The submission to check.
        config: Verification settings; defaults apply when omitted.

    Returns:
        VerificationResult for the first failing rule, or a pass.
    """
    config = config or VerificationConfig()

    for name, rule in RULES:
        failure = rule(job, config)
        if failure is not None:
            logger.info(f"Verification of '{job.title}' failed at rule '{name}': {failure.value}")
            return VerificationResult(passed=False, failure=failure)

    return VerificationResult(passed=True)


async def verify_job_listing(
    job: JobSubmission,
    config: Optional[VerificationConfig] = None,
    delay_ms: Optional[int] = None,
) -> VerificationResult:
    """
    Verify a job submission.

    A passing result is returned only after the perceived-latency delay so
    the check reads as thorough to the poster. Failures return immediately.

    Args:
        job: The submission to check.
        config: Verification settings.
        delay_ms: Override for config.delay_ms (0 disables the pause).

    Returns:
        VerificationResult.
    """
    config = config or VerificationConfig()
    result = run_rules(job, config)

    if not result.passed:
        return result

    delay = config.delay_ms if delay_ms is None else delay_ms
    if delay > 0:
        await asyncio.sleep(delay / 1000)

    logger.info(f"Job verification passed for '{job.title}'")
    return result


def calculate_safety_tier(job: JobSubmission, coordinates: Optional[Coordinate]) -> SafetyTier:
    """
    Derive the risk tier from how complete a submission is.

    One point each for a descriptive title, company, location, any pay and a
    real description; two more when the location resolved to coordinates.
    """
    score = 0

    if len(job.title) > 5:
        score += 1
    if len(job.company) > 3:
        score += 1
    if len(job.location) > 5:
        score += 1
    if job.pay:
        score += 1
    if len(job.description) > 20:
        score += 1

    if coordinates is not None:
        score += 2

    if score >= 6:
        return SafetyTier.LOW_RISK
    if score >= 4:
        return SafetyTier.MEDIUM_RISK
    return SafetyTier.HIGH_RISK
