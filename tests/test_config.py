"""
Tests for startup configuration checks.
"""

import pytest

from app.core import config
from app.core.errors import ConfigurationError


def test_missing_gemini_key_fails_fast(monkeypatch) -> None:
    monkeypatch.setattr(config, "GEMINI_API_KEY", "")
    with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
        config.validate_config()


def test_unknown_search_mode_fails(monkeypatch) -> None:
    monkeypatch.setattr(config, "GEMINI_API_KEY", "key")
    monkeypatch.setattr(config, "WEB_SEARCH_MODE", "bing")
    with pytest.raises(ConfigurationError, match="WEB_SEARCH_MODE"):
        config.validate_config()


@pytest.mark.parametrize("mode", ["mock", "live"])
def test_valid_config(monkeypatch, mode: str) -> None:
    monkeypatch.setattr(config, "GEMINI_API_KEY", "key")
    monkeypatch.setattr(config, "WEB_SEARCH_MODE", mode)
    config.validate_config()


def test_search_key_is_optional() -> None:
    assert isinstance(config.SEARCH_API_KEY, str)
