from __future__ import annotations

import pytest

from pykappa.config import KappaConfig
from pykappa.exceptions import KappaConfigError


def test_defaults() -> None:
    config = KappaConfig()
    assert config.refresh_threshold_ms == 300_000
    assert config.autosave_delay == 1.0
    assert config.default_role == "CONSUMER"
    assert config.draft_cache_dir is None
    assert config.cognito_url == "https://cognito-idp.us-east-1.amazonaws.com/"


def test_cognito_endpoint_override() -> None:
    config = KappaConfig(cognito_region="eu-west-1")
    assert config.cognito_url == "https://cognito-idp.eu-west-1.amazonaws.com/"
    assert KappaConfig(cognito_endpoint="http://localhost:9229/").cognito_url == "http://localhost:9229/"


def test_from_env_reads_kappa_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KAPPA_API_URL", "https://api.example.com")
    monkeypatch.setenv("KAPPA_COGNITO_CLIENT_ID", "client-1")
    monkeypatch.setenv("KAPPA_COGNITO_CLIENT_SECRET", "shh")
    monkeypatch.setenv("KAPPA_REFRESH_THRESHOLD_MS", "60000")
    monkeypatch.setenv("KAPPA_AUTOSAVE_DELAY", "0.5")
    monkeypatch.setenv("KAPPA_DRAFT_CACHE_DIR", "/tmp/drafts")

    config = KappaConfig.from_env()

    assert config.api_url == "https://api.example.com"
    assert config.cognito_client_id == "client-1"
    assert config.cognito_client_secret == "shh"
    assert config.refresh_threshold_ms == 60_000
    assert config.autosave_delay == 0.5
    assert config.draft_cache_dir == "/tmp/drafts"


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KAPPA_DEFAULT_ROLE", "GUEST")
    monkeypatch.setenv("KAPPA_REQUEST_TIMEOUT", "not-a-number")

    config = KappaConfig.from_env(default_role="MEMBER", request_timeout=5.0)

    assert config.default_role == "MEMBER"
    assert config.request_timeout == 5.0


def test_from_env_rejects_bad_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KAPPA_REFRESH_THRESHOLD_MS", "five minutes")
    with pytest.raises(KappaConfigError, match="KAPPA_REFRESH_THRESHOLD_MS"):
        KappaConfig.from_env()
