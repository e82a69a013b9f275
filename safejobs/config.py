"""
Configuration management for Safe Jobs.

Handles loading and validating configuration from YAML files, with API keys
optionally supplied through environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class LLMConfig:
    """Configuration for the Gemini generative language API."""
    model: str = "gemini-1.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com"
    api_key: Optional[str] = None
    timeout: int = 30
    temperature: float = 0.4
    max_tokens: int = 1024  # maxOutputTokens


@dataclass
class GoogleConfig:
    """Google Maps Platform and Cloud Speech settings."""
    maps_api_key: Optional[str] = None  # Places + Geocoding
    cloud_api_key: Optional[str] = None  # Speech-to-Text
    language: str = "english"
    speech_encoding: str = "WEBM_OPUS"
    speech_sample_rate: int = 48000
    timeout: int = 15


@dataclass
class ProximityConfig:
    """Proximity search settings."""
    default_radius_km: float = 50.0


@dataclass
class VerificationConfig:
    """Rule-based job posting verification settings."""
    delay_ms: int = 1500  # Perceived-latency pause before a pass is returned
    blocked_words: list[str] = field(default_factory=lambda: [
        "scam",
        "fraud",
        "fake",
        "illegal",
        "xxx",
    ])
    unrealistic_pay_phrases: list[str] = field(default_factory=lambda: [
        "unlimited",
        "millionaire",
        "get rich",
    ])
    max_pay_amount: int = 1_000_000


@dataclass
class DatabaseConfig:
    """Database configuration."""
    db_path: str = "jobs.db"


@dataclass
class Config:
    """Main configuration container."""
    llm: LLMConfig = field(default_factory=LLMConfig)
    google: GoogleConfig = field(default_factory=GoogleConfig)
    proximity: ProximityConfig = field(default_factory=ProximityConfig)
    verification: VerificationConfig = field(default_factory=VerificationConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    def validate(self) -> list[str]:
        """
        Validate the configuration and return a list of errors.

        Returns:
            List of validation error messages. Empty if valid.
        """
        errors = []

        if not self.llm.model:
            errors.append("LLM model must be specified")

        if self.llm.timeout <= 0:
            errors.append(f"llm.timeout must be positive, got {self.llm.timeout}")

        if self.proximity.default_radius_km <= 0:
            errors.append(
                f"proximity.default_radius_km must be positive, "
                f"got {self.proximity.default_radius_km}"
            )

        if self.verification.delay_ms < 0:
            errors.append(
                f"verification.delay_ms cannot be negative, got {self.verification.delay_ms}"
            )

        if self.verification.max_pay_amount <= 0:
            errors.append(
                f"verification.max_pay_amount must be positive, "
                f"got {self.verification.max_pay_amount}"
            )

        if self.google.speech_sample_rate <= 0:
            errors.append(
                f"google.speech_sample_rate must be positive, "
                f"got {self.google.speech_sample_rate}"
            )

        # Missing API keys are not errors: the affected adapters degrade to defaults

        return errors


def _apply_env_keys(config: Config) -> None:
    """Fill unset API keys from the environment."""
    if not config.llm.api_key:
        config.llm.api_key = os.environ.get("GEMINI_API_KEY") or None
    if not config.google.maps_api_key:
        config.google.maps_api_key = os.environ.get("GOOGLE_MAPS_API_KEY") or None
    if not config.google.cloud_api_key:
        config.google.cloud_api_key = os.environ.get("GOOGLE_CLOUD_API_KEY") or None


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.
                    Defaults to 'config.yaml' in the current directory.

    Returns:
        Validated Config object.

    Raises:
        FileNotFoundError: If the configuration file doesn't exist.
        ValueError: If the configuration is invalid.
    """
    if config_path is None:
        config_path = os.environ.get("SAFEJOBS_CONFIG", "config.yaml")

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}. "
            "Please create a config.yaml file or set SAFEJOBS_CONFIG environment variable."
        )

    with open(path, "r") as f:
        raw_config = yaml.safe_load(f) or {}

    config = Config()

    # Load LLM config
    if "llm" in raw_config:
        llm_data = raw_config["llm"] or {}
        config.llm = LLMConfig(
            model=llm_data.get("model", config.llm.model),
            base_url=llm_data.get("base_url", config.llm.base_url),
            api_key=llm_data.get("api_key", config.llm.api_key),
            timeout=llm_data.get("timeout", config.llm.timeout),
            temperature=llm_data.get("temperature", config.llm.temperature),
            max_tokens=llm_data.get("max_tokens", config.llm.max_tokens),
        )

    # Load Google services config
    if "google" in raw_config:
        google_data = raw_config["google"] or {}
        config.google = GoogleConfig(
            maps_api_key=google_data.get("maps_api_key", config.google.maps_api_key),
            cloud_api_key=google_data.get("cloud_api_key", config.google.cloud_api_key),
            language=google_data.get("language", config.google.language),
            speech_encoding=google_data.get("speech_encoding", config.google.speech_encoding),
            speech_sample_rate=google_data.get(
                "speech_sample_rate", config.google.speech_sample_rate
            ),
            timeout=google_data.get("timeout", config.google.timeout),
        )

    # Load proximity config
    if "proximity" in raw_config:
        prox_data = raw_config["proximity"] or {}
        config.proximity = ProximityConfig(
            default_radius_km=float(
                prox_data.get("default_radius_km", config.proximity.default_radius_km)
            ),
        )

    # Load verification config
    if "verification" in raw_config:
        verify_data = raw_config["verification"] or {}
        config.verification = VerificationConfig(
            delay_ms=verify_data.get("delay_ms", config.verification.delay_ms),
            blocked_words=verify_data.get("blocked_words", config.verification.blocked_words),
            unrealistic_pay_phrases=verify_data.get(
                "unrealistic_pay_phrases", config.verification.unrealistic_pay_phrases
            ),
            max_pay_amount=verify_data.get(
                "max_pay_amount", config.verification.max_pay_amount
            ),
        )

    # Load database config
    if "database" in raw_config:
        db_data = raw_config["database"] or {}
        config.database = DatabaseConfig(
            db_path=db_data.get("db_path", config.database.db_path),
        )

    _apply_env_keys(config)

    # Validate configuration
    errors = config.validate()
    if errors:
        raise ValueError(
            "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        )

    return config


def generate_example_config(output_path: str = "config.example.yaml") -> None:
    """
    Generate an example configuration file with all available options.

    Args:
        output_path: Path where the example config will be written.
    """
    example_config = """# Safe Jobs Configuration
# Copy this file to config.yaml and customize for your needs.
# API keys may be left out here and supplied via GEMINI_API_KEY,
# GOOGLE_MAPS_API_KEY and GOOGLE_CLOUD_API_KEY instead.

# Generative AI (Gemini)
llm:
  model: "gemini-1.5-flash"
  base_url: "https://generativelanguage.googleapis.com"
  # api_key: "..."
  timeout: 30  # seconds
  temperature: 0.4
  max_tokens: 1024

# Google Maps Platform / Cloud Speech
google:
  # maps_api_key: "..."
  # cloud_api_key: "..."
  language: "english"  # english, tamil, swahili, telugu, malayalam
  speech_encoding: "WEBM_OPUS"
  speech_sample_rate: 48000

# Proximity search
proximity:
  default_radius_km: 50.0

# Job posting verification
verification:
  delay_ms: 1500  # Pause before a successful verification is reported
  blocked_words: ["scam", "fraud", "fake", "illegal", "xxx"]
  unrealistic_pay_phrases: ["unlimited", "millionaire", "get rich"]
  max_pay_amount: 1000000

# Database Settings
database:
  db_path: "jobs.db"
"""

    with open(output_path, "w") as f:
        f.write(example_config)

    print(f"Example configuration written to: {output_path}")
