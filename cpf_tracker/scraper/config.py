"""Configuration constants for the CPF tracking service."""
from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Values already in the environment win over the file.
ENV_FILE: Path = Path(os.getenv("CPF_TRACKER_ENV_FILE", ".env"))
load_dotenv(dotenv_path=ENV_FILE, override=False)

DATA_DIR: Path = Path(os.getenv("CPF_TRACKER_DATA_DIR", "/app/data"))
LOG_DIR: Path = DATA_DIR / "logs"
LOG_FILE: Path = LOG_DIR / "latest.log"

TRACKING_URL: str = os.getenv(
    "TRACKING_URL", "https://www.haga7digital.com.br/?page=rastreio"
)

USER_AGENT: str = os.getenv(
    "TRACKER_USER_AGENT",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)

# Empty means "launch a local headless browser".
BROWSER_URL: str = os.getenv("BROWSER_URL", "").strip()
BROWSER_EXECUTABLE_PATH: str = os.getenv("BROWSER_EXECUTABLE_PATH", "").strip()
FALLBACK_BROWSER_PATH: str = "/usr/bin/chromium"
BROWSER_CANDIDATES: tuple[str, ...] = (
    "chromium",
    "chromium-browser",
    "google-chrome",
    "google-chrome-stable",
    "chrome",
)

DEFAULT_MAX_CONCURRENCY: int = 3


def _parse_positive_int(env_var: str, default: int) -> int:
    """Parse a positive integer from the environment, falling back to ``default``."""

    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return value if value > 0 else default


def _parse_timeout_seconds(env_var: str, default: int, *, minimum: int = 1) -> int:
    """Parse a timeout value in seconds from the environment with bounds."""

    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


def _parse_delay_seconds(env_var: str, default: float) -> float:
    """Parse a non-negative delay in (fractional) seconds."""

    try:
        value = float(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(0.0, value)


MAX_CONCURRENCY: int = _parse_positive_int("MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY)

# Remote control-address resolution budget. Deployments that start the browser
# container alongside the API need a longer budget (e.g. 30 attempts).
BROWSER_CONNECT_ATTEMPTS: int = _parse_positive_int("BROWSER_CONNECT_ATTEMPTS", 10)
BROWSER_CONNECT_RETRY_SECONDS: float = _parse_delay_seconds(
    "BROWSER_CONNECT_RETRY_SECONDS", 2.0
)
BROWSER_VERSION_TIMEOUT_SECONDS: int = _parse_timeout_seconds(
    "BROWSER_VERSION_TIMEOUT_SECONDS", 5
)

# Hard timeout applied to every page operation after the page is opened.
PAGE_TIMEOUT_SECONDS: int = _parse_timeout_seconds("PAGE_TIMEOUT_SECONDS", 60)

# Fixed waits tied to how the tracking site renders.
PAGE_SETTLE_SECONDS: float = _parse_delay_seconds("PAGE_SETTLE_SECONDS", 3.0)
INPUT_SETTLE_SECONDS: float = _parse_delay_seconds("INPUT_SETTLE_SECONDS", 0.5)
RESULTS_WAIT_SECONDS: float = _parse_delay_seconds("RESULTS_WAIT_SECONDS", 8.0)

CPF_INPUT_SELECTOR: str = "input"
SUBMIT_SELECTOR: str = "button"

# HTTP layer
PORT: int = _parse_positive_int("PORT", 8087)
API_KEYS: list[str] = [
    key.strip()
    for key in os.getenv("API_KEYS", "dev-key-123").split(",")
    if key.strip()
]
RATE_LIMIT_REQUESTS: int = _parse_positive_int("RATE_LIMIT_REQUESTS", 100)
RATE_LIMIT_WINDOW_SECONDS: int = _parse_timeout_seconds("RATE_LIMIT_WINDOW_SECONDS", 60)


def is_remote_mode() -> bool:
    """Return ``True`` when a remote browser control address is configured."""

    return bool(BROWSER_URL)


def discover_browser_path() -> str:
    """Return the local browser binary to launch.

    An explicit ``BROWSER_EXECUTABLE_PATH`` wins; otherwise the first known
    Chromium/Chrome binary on ``PATH`` is used, falling back to
    ``/usr/bin/chromium``.
    """

    if BROWSER_EXECUTABLE_PATH:
        return BROWSER_EXECUTABLE_PATH
    for candidate in BROWSER_CANDIDATES:
        found = shutil.which(candidate)
        if found:
            return found
    return FALLBACK_BROWSER_PATH


@dataclass(frozen=True)
class ScraperSettings:
    """Everything the scraping core needs, detached from the environment."""

    browser_url: str = ""
    executable_path: Optional[str] = None
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    connect_attempts: int = 10
    connect_retry_seconds: float = 2.0
    version_timeout_seconds: float = 5.0
    tracking_url: str = "https://www.haga7digital.com.br/?page=rastreio"
    user_agent: str = USER_AGENT
    page_timeout_seconds: float = 60.0
    page_settle_seconds: float = 3.0
    input_settle_seconds: float = 0.5
    results_wait_seconds: float = 8.0
    cpf_input_selector: str = "input"
    submit_selector: str = "button"

    @property
    def is_remote(self) -> bool:
        return bool(self.browser_url)


def load_scraper_settings() -> ScraperSettings:
    """Build :class:`ScraperSettings` from the current module values."""

    return ScraperSettings(
        browser_url=BROWSER_URL,
        executable_path=None if BROWSER_URL else discover_browser_path(),
        max_concurrency=MAX_CONCURRENCY if MAX_CONCURRENCY > 0 else DEFAULT_MAX_CONCURRENCY,
        connect_attempts=BROWSER_CONNECT_ATTEMPTS,
        connect_retry_seconds=BROWSER_CONNECT_RETRY_SECONDS,
        version_timeout_seconds=BROWSER_VERSION_TIMEOUT_SECONDS,
        tracking_url=TRACKING_URL,
        user_agent=USER_AGENT,
        page_timeout_seconds=PAGE_TIMEOUT_SECONDS,
        page_settle_seconds=PAGE_SETTLE_SECONDS,
        input_settle_seconds=INPUT_SETTLE_SECONDS,
        results_wait_seconds=RESULTS_WAIT_SECONDS,
        cpf_input_selector=CPF_INPUT_SELECTOR,
        submit_selector=SUBMIT_SELECTOR,
    )
