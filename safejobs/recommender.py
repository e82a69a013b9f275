"""
Job recommendations for Safe Jobs.

LLM-assisted matching of jobs to a user's skills and picks of the most
suitable listings, each with a deterministic fallback.
"""

import json
import logging
from dataclasses import dataclass, field

from .database import JobRecord
from .llm_utils import LLMClient, parse_json_payload
from .scorer import clamp_score

logger = logging.getLogger(__name__)

CATEGORY_PHRASES = {
    "safety": "safe and trusted",
    "local": "locally relevant",
    "popular": "popular and suitable",
}

RECOMMENDATION_COUNT = 3


@dataclass
class MatchResult:
    """How well a job fits a user."""
    match_score: int
    reasons: list[str] = field(default_factory=list)

    @classmethod
    def default(cls) -> "MatchResult":
        return cls(match_score=5, reasons=["Could not analyze job match"])


def _job_summary(job: JobRecord) -> dict:
    return {
        "id": job.id,
        "title": job.title,
        "description": job.description,
        "location": job.location,
        "pay": job.pay,
        "safetyScore": job.safety_score.value if job.safety_score else None,
    }


class JobRecommender:
    """Recommends jobs using the LLM client."""

    def __init__(self, llm_client: LLMClient):
        self.llm_client = llm_client

    async def match_job_to_user(
        self,
        description: str,
        skills: list[str],
        preferences: dict,
    ) -> MatchResult:
        """
        Rate how well a job matches a user's skills and preferences.

        Args:
            description: Job description.
            skills: The user's skills.
            preferences: Free-form preferences (pay, hours, distance...).

        Returns:
            MatchResult; the default on any failure.
        """
        prompt = f"""Analyze how well the following job matches this user's skills and preferences.
Rate the match on a scale of 1-10 (10 being perfect match).
Provide 3 specific reasons for your rating.
Respond ONLY with JSON with fields: matchScore (number) and reasons (array of strings).

Job Description:
{description[:4000]}

User Skills:
{', '.join(skills)}

User Preferences:
{json.dumps(preferences, default=str)}"""

        response = await self.llm_client.generate(prompt)
        if not response.success:
            logger.warning(f"Job match unavailable: {response.error}")
            return MatchResult.default()

        data = parse_json_payload(response.response_text, expected=dict)
        score = clamp_score(data.get("matchScore")) if data else None
        if score is None:
            logger.warning("Could not parse job match response")
            return MatchResult.default()

        reasons = data.get("reasons")
        if not isinstance(reasons, list):
            reasons = []
        return MatchResult(match_score=score, reasons=[str(r) for r in reasons][:3])

    async def recommend_for_user(self, profile: dict, jobs: list[JobRecord]) -> list[str]:
        """
        Ask the model for the ids of the 3 jobs best suited to a user profile.

        Returns:
            Job ids that exist in the given list; empty on failure.
        """
        if not jobs:
            return []

        prompt = f"""Given this user profile and available jobs, recommend the top {RECOMMENDATION_COUNT} most suitable jobs.
Respond ONLY with a JSON array of job IDs.

User Profile:
{json.dumps(profile, default=str)}

Available Jobs:
{json.dumps([_job_summary(job) for job in jobs])}"""

        response = await self.llm_client.generate(prompt)
        if not response.success:
            logger.warning(f"Recommendations unavailable: {response.error}")
            return []

        ids = parse_json_payload(response.response_text, expected=list)
        if ids is None:
            logger.warning("Could not parse recommendation response")
            return []

        known = {job.id for job in jobs}
        return [str(job_id) for job_id in ids if str(job_id) in known][:RECOMMENDATION_COUNT]

    async def general_recommendations(
        self,
        jobs: list[JobRecord],
        category: str = "popular",
    ) -> list[JobRecord]:
        """
        Pick the most suitable jobs for a category without a user profile.

        Args:
            jobs: All candidate jobs.
            category: "popular", "safety" or "local".

        Returns:
            Recommended jobs in their original order. All jobs when there are
            3 or fewer; the first 3 when the model gives no usable answer.
        """
        if not jobs:
            return []
        if len(jobs) <= RECOMMENDATION_COUNT:
            return list(jobs)

        fallback = list(jobs[:RECOMMENDATION_COUNT])
        phrase = CATEGORY_PHRASES.get(category, CATEGORY_PHRASES["popular"])

        prompt = f"""You are a job recommendation system. Given this list of jobs, return the IDs of the {RECOMMENDATION_COUNT} most
{phrase} jobs.

Jobs: {json.dumps([_job_summary(job) for job in jobs])}

Return only a JSON array of job IDs, nothing else."""

        response = await self.llm_client.generate(prompt)
        if not response.success:
            logger.warning(f"General recommendations unavailable: {response.error}")
            return fallback

        ids = parse_json_payload(response.response_text, expected=list)
        if ids is None:
            logger.warning("Could not parse general recommendation response, using first jobs")
            return fallback

        # The model's first 3 known ids, returned in input order
        known = {job.id for job in jobs}
        ranked = list(dict.fromkeys(str(job_id) for job_id in ids if str(job_id) in known))
        wanted = set(ranked[:RECOMMENDATION_COUNT])
        picked = [job for job in jobs if job.id in wanted]
        return picked or fallback
