"""
Job search for Safe Jobs.

Turns a natural-language (possibly voice-transcribed) query into keywords and
filters with the LLM, matches them against the job store, and merges the
matches with proximity results around the user.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .database import Coordinate, JobRecord, JobStore
from .geofence import ProximityFilter, ScoredJobRecord
from .llm_utils import LLMClient, parse_json_payload
from .pay_parser import highest_pay_number, parse_amount

logger = logging.getLogger(__name__)


@dataclass
class ProcessedQuery:
    """Keywords and structured filters extracted from a search query."""
    keywords: list[str]
    filters: dict = field(default_factory=dict)


def _job_matches_filters(job: JobRecord, filters: dict) -> bool:
    location = filters.get("location")
    if location and job.location and str(location).lower() not in job.location.lower():
        return False

    min_salary = parse_amount(filters.get("min_salary"))
    if min_salary is not None:
        # Jobs that state no number are kept
        pay_amount = highest_pay_number(job.pay)
        if pay_amount is not None and pay_amount < min_salary:
            return False

    job_type = filters.get("job_type")
    if job_type:
        text = f"{job.title} {job.description}".lower()
        if str(job_type).lower() not in text:
            return False

    return True


def match_keywords(
    jobs: list[JobRecord],
    keywords: list[str],
    filters: Optional[dict] = None,
) -> list[JobRecord]:
    """
    Filter jobs by keywords and structured filters.

    A job matches when any keyword appears (case-insensitive) in its title,
    description or location, and it passes every recognised filter.
    No keywords means every job passes the keyword step.

    Args:
        jobs: Candidate jobs.
        keywords: Search terms.
        filters: Optional location, min_salary and job_type filters.

    Returns:
        Matching jobs in input order.
    """
    filters = filters or {}
    terms = [str(k).lower() for k in keywords if str(k).strip()]

    unknown = set(filters) - {"location", "min_salary", "job_type"}
    if unknown:
        logger.debug(f"Ignoring unsupported search filters: {sorted(unknown)}")

    matches = []
    for job in jobs:
        if terms:
            text = f"{job.title} {job.description} {job.location}".lower()
            if not any(term in text for term in terms):
                continue
        if not _job_matches_filters(job, filters):
            continue
        matches.append(job)

    return matches


def merge_results(
    keyword_results: list[JobRecord],
    proximity_results: list[ScoredJobRecord],
) -> list[ScoredJobRecord]:
    """
    Merge keyword matches with proximity hits.

    Proximity hits come first, nearest first; keyword matches that were not
    near follow in their original order without a distance. Each job id
    appears once.
    """
    merged: list[ScoredJobRecord] = []
    seen: set = set()

    for scored in proximity_results:
        key = scored.id if scored.id is not None else id(scored)
        if key in seen:
            continue
        seen.add(key)
        merged.append(scored)

    for job in keyword_results:
        key = job.id if job.id is not None else id(job)
        if key in seen:
            continue
        seen.add(key)
        merged.append(ScoredJobRecord.from_job(job, None))

    return merged


def _normalize_filters(raw: dict) -> dict:
    """Map the model's filter keys onto the ones match_keywords understands."""
    aliases = {
        "minSalary": "min_salary",
        "salary": "min_salary",
        "jobType": "job_type",
        "type": "job_type",
    }
    filters = {}
    for key, value in raw.items():
        if value in (None, "", [], {}):
            continue
        filters[aliases.get(key, key)] = value
    return filters


class JobSearch:
    """
    Search flow over the job store.
    """

    def __init__(
        self,
        store: JobStore,
        llm_client: Optional[LLMClient] = None,
        proximity: Optional[ProximityFilter] = None,
    ):
        """
        Initialize the search service.

        Args:
            store: Job store to read from.
            llm_client: Client for query understanding; plain keyword
                search is used when omitted.
            proximity: Proximity filter; defaults to the standard radius.
        """
        self.store = store
        self.llm_client = llm_client
        self.proximity = proximity or ProximityFilter()

    async def process_search_query(self, query: str) -> ProcessedQuery:
        """
        Extract keywords and filters from a natural-language query.

        Args:
            query: The user's query.

        Returns:
            ProcessedQuery; the whole query as a single keyword on failure.
        """
        fallback = ProcessedQuery(keywords=[query], filters={})

        if self.llm_client is None or not query.strip():
            return fallback

        prompt = f"""Extract search keywords and filters from this job search query.
Respond ONLY with JSON with:
- keywords: array of important search terms
- filters: object with optional properties location, minSalary, jobType

Query: "{query}"
"""

        response = await self.llm_client.generate(prompt)
        if not response.success:
            logger.warning(f"Query processing unavailable: {response.error}")
            return fallback

        data = parse_json_payload(response.response_text, expected=dict)
        if data is None:
            logger.warning("Could not parse search query response")
            return fallback

        keywords = data.get("keywords")
        if not isinstance(keywords, list) or not keywords:
            keywords = [query]
        filters = data.get("filters")
        if not isinstance(filters, dict):
            filters = {}

        processed = ProcessedQuery(
            keywords=[str(k) for k in keywords],
            filters=_normalize_filters(filters),
        )
        logger.info(f"Query '{query}' -> keywords={processed.keywords}, filters={processed.filters}")
        return processed

    async def enhance_voice_search(self, transcribed_text: str) -> str:
        """
        Clean up a voice transcript into a job search query.

        Args:
            transcribed_text: Raw speech-to-text output.

        Returns:
            The improved query, or the original text on failure.
        """
        if self.llm_client is None or not transcribed_text.strip():
            return transcribed_text

        prompt = f"""This text was transcribed from voice search.
Clean it up and make it a proper job search query.
Fix any transcription errors.

Transcribed Text: "{transcribed_text}"

Return only the improved search query text, no additional explanation."""

        response = await self.llm_client.generate(prompt)
        enhanced = response.response_text.strip().strip('"') if response.success else ""
        if not enhanced:
            return transcribed_text

        logger.debug(f"Voice query '{transcribed_text}' enhanced to '{enhanced}'")
        return enhanced

    def search_by_title(self, prefix: str) -> list[JobRecord]:
        """Jobs whose title starts with the prefix."""
        return self.store.get_jobs_by_title_prefix(prefix)

    async def search(
        self,
        query: str,
        reference: Optional[Coordinate] = None,
        radius_km: Optional[float] = None,
        nearby_only: bool = False,
    ) -> list[ScoredJobRecord]:
        """
        Run a full search.

        Args:
            query: Natural-language query. Blank lists every job.
            reference: The user's coordinate, if known.
            radius_km: Proximity radius override.
            nearby_only: Drop matches outside the radius.

        Returns:
            Matching jobs, nearby ones first with their distance.
        """
        jobs = self.store.get_all_jobs()

        if query.strip():
            processed = await self.process_search_query(query)
            matches = match_keywords(jobs, processed.keywords, processed.filters)
        else:
            matches = list(jobs)

        logger.info(f"Keyword search: {len(matches)}/{len(jobs)} jobs matched")

        if reference is None:
            return merge_results(matches, [])

        nearby = self.proximity.nearby(matches, reference, radius_km)
        if nearby_only:
            return nearby
        return merge_results(matches, nearby)

    async def voice_search(
        self,
        transcribed_text: str,
        reference: Optional[Coordinate] = None,
        radius_km: Optional[float] = None,
    ) -> tuple[str, list[ScoredJobRecord]]:
        """
        Enhance a transcript and search with it.

        Returns:
            The query actually used and the results.
        """
        query = await self.enhance_voice_search(transcribed_text)
        results = await self.search(query, reference=reference, radius_km=radius_km)
        return query, results
