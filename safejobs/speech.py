"""
Speech-to-text for Safe Jobs.

Sends recorded audio to Google Cloud Speech-to-Text and returns the
transcript. Recognition itself happens in the cloud; an empty string means
nothing usable came back.
"""

import base64
import logging
from typing import Optional

import httpx

from .config import GoogleConfig

logger = logging.getLogger(__name__)

SPEECH_URL = "https://speech.googleapis.com/v1/speech:recognize"

SPEECH_LANGUAGE_CODES = {
    "tamil": "ta-IN",
    "swahili": "sw",
    "telugu": "te-IN",
    "malayalam": "ml-IN",
}


def get_speech_language_code(language: str) -> str:
    """Map a UI language name to a Speech-to-Text language code."""
    return SPEECH_LANGUAGE_CODES.get((language or "").lower(), "en-US")


class SpeechClient:
    """Google Cloud Speech-to-Text client."""

    def __init__(self, config: GoogleConfig, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the speech client.

        Args:
            config: Google services configuration.
            client: Optional preconfigured HTTP client (used by tests).
        """
        self.config = config
        self.api_key = config.cloud_api_key
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout, connect=10.0)
        )

    def _build_request(self, audio_base64: str, language_code: str, sample_rate: int) -> dict:
        return {
            "config": {
                "encoding": self.config.speech_encoding,
                "sampleRateHertz": sample_rate,
                "languageCode": language_code,
                "enableAutomaticPunctuation": True,
                "useEnhanced": True,
            },
            "audio": {"content": audio_base64},
        }

    async def transcribe(
        self,
        audio: bytes,
        language: Optional[str] = None,
        sample_rate: Optional[int] = None,
    ) -> str:
        """
        Transcribe recorded audio.

        Args:
            audio: Raw audio bytes in the configured encoding.
            language: UI language name; defaults to the configured one.
            sample_rate: Override for the configured sample rate.

        Returns:
            The first transcript, or "" when there is none or the call fails.
        """
        if not self.api_key:
            logger.error("Google Cloud API key not configured, cannot transcribe")
            return ""

        if not audio:
            return ""

        language_code = get_speech_language_code(language or self.config.language)
        body = self._build_request(
            base64.b64encode(audio).decode("ascii"),
            language_code,
            sample_rate or self.config.speech_sample_rate,
        )

        try:
            response = await self.client.post(
                SPEECH_URL, params={"key": self.api_key}, json=body
            )
            if response.status_code != 200:
                logger.error(f"Speech API error: {response.status_code}")
                return ""
            data = response.json()
        except Exception as e:
            logger.error(f"Error processing speech: {e}")
            return ""

        results = data.get("results") or []
        if not results:
            logger.info("No speech detected")
            return ""

        alternatives = results[0].get("alternatives") or []
        if not alternatives:
            return ""

        transcript = (alternatives[0].get("transcript") or "").strip()
        logger.debug(f"Transcribed ({language_code}): {transcript}")
        return transcript

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
