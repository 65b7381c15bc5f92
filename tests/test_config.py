"""Tests for pipeline configuration."""

import pytest

from chat_catalog.config import PipelineConfig


def test_defaults():
    config = PipelineConfig()

    assert config.confidence_threshold == 0.75
    assert config.model == "gemini-2.5-flash"
    assert config.database_url is None


@pytest.mark.parametrize("threshold", [-0.01, 1.01])
def test_threshold_out_of_range_raises(threshold):
    with pytest.raises(ValueError):
        PipelineConfig(confidence_threshold=threshold)


def test_from_env(monkeypatch):
    monkeypatch.setenv("CONFIDENCE_THRESHOLD", "0.6")
    monkeypatch.setenv("GEMINI_MODEL", " gemini-2.5-pro ")
    monkeypatch.setenv("GEMINI_API_KEY", "key")
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/catalog")

    config = PipelineConfig.from_env()

    assert config.confidence_threshold == 0.6
    assert config.model == "gemini-2.5-pro"
    assert config.api_key == "key"
    assert config.database_url == "postgresql://localhost/catalog"


@pytest.mark.parametrize(
    "raw, expected",
    [("not-a-number", 0.75), ("nan", 0.75), ("2", 1.0), ("-1", 0.0)],
)
def test_from_env_threshold_fallbacks(monkeypatch, raw, expected):
    monkeypatch.setenv("CONFIDENCE_THRESHOLD", raw)

    assert PipelineConfig.from_env().confidence_threshold == expected


def test_with_threshold_returns_copy():
    config = PipelineConfig(confidence_threshold=0.5)

    assert config.with_threshold(None) is config
    assert config.with_threshold(0.9).confidence_threshold == 0.9
    assert config.confidence_threshold == 0.5
