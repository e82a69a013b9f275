#!/usr/bin/env python3
"""
Tests for YAML configuration loading.
"""

import os
import sys

import pytest
import yaml

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from safejobs.config import Config, generate_example_config, load_config

ENV_KEYS = ["GEMINI_API_KEY", "GOOGLE_MAPS_API_KEY", "GOOGLE_CLOUD_API_KEY", "SAFEJOBS_CONFIG"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def write_config(tmp_path, data) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


def test_defaults_for_empty_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    config = load_config(str(path))

    assert config.proximity.default_radius_km == 50.0
    assert config.verification.delay_ms == 1500
    assert config.verification.max_pay_amount == 1_000_000
    assert "scam" in config.verification.blocked_words
    assert config.llm.api_key is None


def test_sections_override_defaults(tmp_path):
    config = load_config(write_config(tmp_path, {
        "llm": {"model": "gemini-pro", "api_key": "from-file"},
        "proximity": {"default_radius_km": 25},
        "verification": {"delay_ms": 0, "blocked_words": ["pyramid"]},
        "database": {"db_path": "other.db"},
    }))

    assert config.llm.model == "gemini-pro"
    assert config.llm.api_key == "from-file"
    assert config.llm.timeout == 30
    assert config.proximity.default_radius_km == 25.0
    assert config.verification.delay_ms == 0
    assert config.verification.blocked_words == ["pyramid"]
    assert config.verification.unrealistic_pay_phrases == ["unlimited", "millionaire", "get rich"]
    assert config.database.db_path == "other.db"


def test_api_keys_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "env-gemini")
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "env-maps")
    monkeypatch.setenv("GOOGLE_CLOUD_API_KEY", "env-cloud")

    config = load_config(write_config(tmp_path, {"llm": {"api_key": "file-key"}}))

    assert config.llm.api_key == "file-key"
    assert config.google.maps_api_key == "env-maps"
    assert config.google.cloud_api_key == "env-cloud"


def test_config_path_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("SAFEJOBS_CONFIG", write_config(tmp_path, {"proximity": {"default_radius_km": 5}}))
    assert load_config().proximity.default_radius_km == 5.0


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))


@pytest.mark.parametrize("data", [
    {"proximity": {"default_radius_km": 0}},
    {"verification": {"delay_ms": -1}},
    {"verification": {"max_pay_amount": 0}},
    {"llm": {"timeout": 0}},
])
def test_invalid_values_raise(tmp_path, data):
    with pytest.raises(ValueError):
        load_config(write_config(tmp_path, data))


def test_default_config_is_valid():
    assert Config().validate() == []


def test_example_config_loads(tmp_path):
    path = tmp_path / "example.yaml"
    generate_example_config(str(path))
    config = load_config(str(path))
    assert config.llm.model == "gemini-1.5-flash"
    assert config.google.speech_sample_rate == 48000


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
