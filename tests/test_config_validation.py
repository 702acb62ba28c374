import pytest

from cpf_tracker.scraper import config
from cpf_tracker.scraper.config_validation import validate_runtime_config


def test_defaults_are_valid_for_every_entrypoint() -> None:
    for entrypoint in ("api", "cli", "tests"):
        validate_runtime_config(entrypoint)


@pytest.mark.parametrize("url", ["browser:9222", "ftp://browser:9222"])
def test_browser_url_requires_known_scheme(monkeypatch: pytest.MonkeyPatch, url: str) -> None:
    monkeypatch.setattr(config, "BROWSER_URL", url)
    with pytest.raises(ValueError):
        validate_runtime_config("cli")


def test_connect_attempts_must_be_positive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "BROWSER_CONNECT_ATTEMPTS", 0)
    with pytest.raises(ValueError):
        validate_runtime_config("cli")


def test_invalid_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "PAGE_TIMEOUT_SECONDS", 0)
    with pytest.raises(ValueError):
        validate_runtime_config("cli")


def test_negative_delay(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "RESULTS_WAIT_SECONDS", -1)
    with pytest.raises(ValueError):
        validate_runtime_config("tests")


def test_api_requires_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "API_KEYS", [])
    with pytest.raises(ValueError):
        validate_runtime_config("api")
    validate_runtime_config("cli")


def test_concurrency_knob_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "MAX_CONCURRENCY", 0)

    validate_runtime_config("tests")

    assert config.MAX_CONCURRENCY == config.DEFAULT_MAX_CONCURRENCY
