from __future__ import annotations

from typing import Literal

from . import config
from .logging_utils import _scraper_event
from .utils import log_line

Entrypoint = Literal["api", "cli", "tests"]

_BROWSER_URL_SCHEMES = ("ws://", "wss://", "http://", "https://")


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _scraper_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(message)


def validate_runtime_config(entrypoint: Entrypoint) -> None:
    """Validate runtime configuration for the given entrypoint.

    Raises ``ValueError`` when a blocking misconfiguration is detected.
    Non-fatal adjustments (e.g., clamping the concurrency knob) are logged but
    do not raise.
    """

    if config.MAX_CONCURRENCY < 1:
        adjusted = config.DEFAULT_MAX_CONCURRENCY
        _scraper_event(
            "state",
            phase="config",
            context="runtime_validation",
            kind="config_adjustment",
            field="MAX_CONCURRENCY",
            value=config.MAX_CONCURRENCY,
            adjusted=adjusted,
            entrypoint=entrypoint,
        )
        log_line(f"[CONFIG] MAX_CONCURRENCY < 1; using default of {adjusted}.")
        config.MAX_CONCURRENCY = adjusted

    if config.BROWSER_URL and not config.BROWSER_URL.startswith(_BROWSER_URL_SCHEMES):
        _raise_config_error(
            "BROWSER_URL must start with ws://, wss://, http:// or https://.",
            entrypoint=entrypoint,
            error="browser_url_invalid",
        )

    if config.BROWSER_CONNECT_ATTEMPTS < 1:
        _raise_config_error(
            "BROWSER_CONNECT_ATTEMPTS must be at least 1.",
            entrypoint=entrypoint,
            error="connect_attempts_invalid",
        )

    timeout_fields = [
        ("PAGE_TIMEOUT_SECONDS", config.PAGE_TIMEOUT_SECONDS),
        ("BROWSER_VERSION_TIMEOUT_SECONDS", config.BROWSER_VERSION_TIMEOUT_SECONDS),
    ]
    for field_name, value in timeout_fields:
        if value <= 0:
            _raise_config_error(
                f"{field_name} must be greater than zero.",
                entrypoint=entrypoint,
                error="invalid_timeout",
            )

    delay_fields = [
        ("BROWSER_CONNECT_RETRY_SECONDS", config.BROWSER_CONNECT_RETRY_SECONDS),
        ("PAGE_SETTLE_SECONDS", config.PAGE_SETTLE_SECONDS),
        ("INPUT_SETTLE_SECONDS", config.INPUT_SETTLE_SECONDS),
        ("RESULTS_WAIT_SECONDS", config.RESULTS_WAIT_SECONDS),
    ]
    for field_name, value in delay_fields:
        if value < 0:
            _raise_config_error(
                f"{field_name} must be non-negative.",
                entrypoint=entrypoint,
                error="invalid_delay",
            )

    if entrypoint == "api" and not config.API_KEYS:
        _raise_config_error(
            "API_KEYS must contain at least one key.",
            entrypoint=entrypoint,
            error="api_keys_missing",
        )


__all__ = ["validate_runtime_config", "Entrypoint"]
