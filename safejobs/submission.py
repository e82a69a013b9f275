"""
Job posting and reporting for Safe Jobs.

Gates new postings behind the rule-based verifier, stamps them with a
completeness risk tier and stores them as verified. Also records reports
filed against listings.
"""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .config import VerificationConfig
from .database import Coordinate, JobRecord, JobStore, SafetyTier
from .verifier import JobSubmission, calculate_safety_tier, verify_job_listing

logger = logging.getLogger(__name__)

INCOMPLETE_FORM_MESSAGE = "Please fill all required fields"
POSTED_MESSAGE = "Job posted successfully!"
POST_FAILED_MESSAGE = "Failed to post job. Please try again."


@dataclass
class SubmissionResult:
    """Outcome of posting a job, with the message to show the poster."""
    success: bool
    message: str
    job_id: Optional[str] = None
    safety_tier: Optional[SafetyTier] = None


class JobPostingService:
    """Posts verified jobs and files reports."""

    def __init__(self, store: JobStore, config: Optional[VerificationConfig] = None):
        """
        Initialize the posting service.

        Args:
            store: Job store to write to.
            config: Verification settings.
        """
        self.store = store
        self.config = config or VerificationConfig()

    async def submit(
        self,
        submission: JobSubmission,
        coordinates: Optional[Coordinate] = None,
    ) -> SubmissionResult:
        """
        Verify and post a job.

        Args:
            submission: The form contents.
            coordinates: Resolved coordinates of the job location, if any.

        Returns:
            SubmissionResult describing what happened.
        """
        if not (submission.title and submission.company and submission.location and submission.pay):
            return SubmissionResult(success=False, message=INCOMPLETE_FORM_MESSAGE)

        verification = await verify_job_listing(submission, self.config)
        if not verification.passed:
            return SubmissionResult(success=False, message=verification.failure_reason)

        if coordinates is None:
            logger.warning(
                f"Posting '{submission.title}' without coordinates; "
                "it won't appear in proximity searches"
            )

        tier = calculate_safety_tier(submission, coordinates)

        job = JobRecord(
            id=None,
            title=submission.title,
            company=submission.company,
            location=submission.location,
            pay=submission.pay,
            description=submission.description,
            coordinates=coordinates,
            safety_score=tier,
            verified=True,
            created_at=datetime.now(),
        )

        try:
            job_id = self.store.add_job(job)
        except sqlite3.Error as e:
            logger.error(f"Error posting job '{submission.title}': {e}")
            return SubmissionResult(success=False, message=POST_FAILED_MESSAGE)

        logger.info(f"Posted job '{submission.title}' ({job_id}) as {tier.value}")
        return SubmissionResult(
            success=True,
            message=POSTED_MESSAGE,
            job_id=job_id,
            safety_tier=tier,
        )

    def report_job(self, job_id: str, reason: str = "Suspicious job posting") -> Optional[str]:
        """
        File a report against a job.

        Returns:
            The report id, or None if it could not be stored.
        """
        try:
            return self.store.add_report(job_id, reason)
        except sqlite3.Error as e:
            logger.error(f"Error reporting job {job_id}: {e}")
            return None
