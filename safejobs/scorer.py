"""
Safety scorer module for Safe Jobs.

Asks the generative model to rate a job description for worker safety on a
1-10 scale with short notes. Best effort only: anything short of a usable
answer produces the default analysis, never an error.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .llm_utils import LLMClient, parse_json_payload

logger = logging.getLogger(__name__)

DEFAULT_SAFETY_SCORE = 5
DEFAULT_SAFETY_NOTE = "Could not analyze job safety"
MAX_SAFETY_NOTES = 3


@dataclass
class SafetyAnalysis:
    """AI-derived safety rating for a job description."""
    safety_score: int
    safety_notes: list[str] = field(default_factory=list)

    @classmethod
    def default(cls) -> "SafetyAnalysis":
        return cls(safety_score=DEFAULT_SAFETY_SCORE, safety_notes=[DEFAULT_SAFETY_NOTE])

    def to_dict(self) -> dict:
        return {"safetyScore": self.safety_score, "safetyNotes": list(self.safety_notes)}


def clamp_score(value) -> Optional[int]:
    """Round a model-supplied score into 1-10, or None if it isn't a number."""
    if isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if score != score:  # NaN
        return None
    return int(max(1, min(10, round(score))))


class SafetyScorer:
    """
    Rates job descriptions for safety using the LLM client.
    """

    def __init__(self, llm_client: LLMClient):
        """
        Initialize the scorer.

        Args:
            llm_client: Client used for generation.
        """
        self.llm_client = llm_client

    def _build_safety_prompt(self, description: str) -> str:
        """
        Build the prompt for rating a job description.

        Args:
            description: The job description.

        Returns:
            Formatted prompt string.
        """
        return f"""Analyze the following job description for potential safety concerns for the worker.
Rate the overall safety on a scale of 1-10 (10 being safest).
Provide exactly 3 specific safety notes or concerns.

Respond ONLY with a JSON object in this exact format:
{{
    "safetyScore": <number between 1 and 10>,
    "safetyNotes": ["<note 1>", "<note 2>", "<note 3>"]
}}

Job Description:
{description[:4000]}"""

    async def analyze_job_safety(self, description: str) -> SafetyAnalysis:
        """
        Analyze a job description for safety concerns.

        Args:
            description: The job description text.

        Returns:
            SafetyAnalysis; the default analysis on any failure.
        """
        if not description or not description.strip():
            return SafetyAnalysis.default()

        response = await self.llm_client.generate(self._build_safety_prompt(description))

        if not response.success:
            logger.warning(f"Safety analysis unavailable: {response.error}")
            return SafetyAnalysis.default()

        return self._parse_safety_response(response.response_text)

    def _parse_safety_response(self, response: str) -> SafetyAnalysis:
        """
        Parse the LLM's response into a SafetyAnalysis.

        Args:
            response: Raw response from the LLM.

        Returns:
            Parsed SafetyAnalysis, or the default if unusable.
        """
        data = parse_json_payload(response, expected=dict)
        if data is None:
            logger.warning(f"Could not parse safety analysis: {response[:200]!r}")
            return SafetyAnalysis.default()

        score = clamp_score(data.get("safetyScore"))
        if score is None:
            logger.warning(f"Safety analysis missing a numeric safetyScore: {data}")
            return SafetyAnalysis.default()

        raw_notes = data.get("safetyNotes")
        if isinstance(raw_notes, str):
            raw_notes = [raw_notes]
        if not isinstance(raw_notes, list):
            raw_notes = []

        notes = [str(note).strip() for note in raw_notes if str(note).strip()]
        if len(notes) != MAX_SAFETY_NOTES:
            logger.debug(f"Model returned {len(notes)} safety notes, expected {MAX_SAFETY_NOTES}")

        return SafetyAnalysis(safety_score=score, safety_notes=notes[:MAX_SAFETY_NOTES])
