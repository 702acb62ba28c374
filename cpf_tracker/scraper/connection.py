"""Ownership of the shared browser handle: launch/attach, reconnect, shutdown."""
from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

import requests
from playwright.async_api import Browser, Error as PWError, Playwright, async_playwright

from .config import ScraperSettings
from .errors import ConnectionFailed
from .logging_utils import _scraper_event
from .retry_policy import RetryBudget, compute_backoff_seconds, decide_retry
from .utils import log_line

LOCAL_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]

_CLOSED_MARKERS = (
    "Target closed",
    "Target crashed",
    "has been closed",
    "Browser closed",
    "Connection closed",
    "not connected",
    "Execution context was destroyed",
    # Target lookups that fail because the page or browser went away.
    "No target with given id",
    "Target not found",
    "Target page not found",
    "No such target",
)


def is_connection_closed_error(exc: BaseException) -> bool:
    """Return ``True`` if *exc* says the browser or its target is closed or not found."""

    message = str(exc)
    return any(marker in message for marker in _CLOSED_MARKERS)


def version_endpoint(base_url: str) -> str:
    """Return the ``/json/version`` URL for a ws(s):// or http(s):// address."""

    url = base_url.strip().rstrip("/")
    if url.startswith("ws://"):
        url = "http://" + url[len("ws://"):]
    elif url.startswith("wss://"):
        url = "https://" + url[len("wss://"):]
    return f"{url}/json/version"


def resolve_ws_url(
    base_url: str,
    *,
    timeout: float,
    http_get: Callable[..., Any] = requests.get,
) -> str:
    """Ask the remote browser for its DevTools websocket address.

    Raises ``requests.RequestException`` on transport/HTTP errors and
    ``ValueError`` when the payload has no ``webSocketDebuggerUrl``.
    """

    resp = http_get(version_endpoint(base_url), timeout=timeout)
    resp.raise_for_status()
    payload = resp.json()
    ws_url = payload.get("webSocketDebuggerUrl") if isinstance(payload, dict) else None
    if not ws_url:
        raise ValueError("webSocketDebuggerUrl not found in response")
    return str(ws_url)


class ConnectionManager:
    """
    Holds at most one live browser connection for all scrape sessions.

    Creation and replacement of the handle are serialised by an asyncio lock;
    every coroutine that touches it must run on the same event loop.
    """

    def __init__(
        self,
        settings: ScraperSettings,
        *,
        http_get: Callable[..., Any] = requests.get,
    ) -> None:
        self._settings = settings
        self._budget = RetryBudget(
            attempts=settings.connect_attempts,
            delay_seconds=settings.connect_retry_seconds,
        )
        self._http_get = http_get
        self._lock = asyncio.Lock()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self.connect_count: int = 0
        self.reconnect_count: int = 0

    @property
    def mode(self) -> str:
        return "remote" if self._settings.is_remote else "local"

    @property
    def has_handle(self) -> bool:
        return self._browser is not None

    def _target(self) -> str:
        if self._settings.is_remote:
            return self._settings.browser_url
        return self._settings.executable_path or ""

    async def ensure(self) -> Browser:
        """Return the live handle, establishing one if there is none."""

        async with self._lock:
            if self._browser is not None:
                if self._browser.is_connected():
                    return self._browser
                _scraper_event("state", phase="connection", kind="stale_handle", mode=self.mode)
                await self._discard_browser()
            self._browser = await self._connect()
            return self._browser

    async def reconnect(self) -> Browser:
        """Close and discard the current handle, then establish a new one."""

        async with self._lock:
            await self._discard_browser()
            log_line("Reconnecting to browser...")
            self._browser = await self._connect()
            self.reconnect_count += 1
            log_line("Browser reconnected successfully")
            return self._browser

    async def shutdown(self) -> None:
        async with self._lock:
            await self._discard_browser()
            playwright, self._playwright = self._playwright, None
            if playwright is not None:
                try:
                    await playwright.stop()
                except PWError as exc:
                    _scraper_event(
                        "error", phase="connection", kind="playwright_stop_failed", error=str(exc)
                    )
            _scraper_event("state", phase="connection", kind="shutdown", mode=self.mode)

    async def _discard_browser(self) -> None:
        browser, self._browser = self._browser, None
        if browser is None:
            return
        try:
            await browser.close()
        except PWError as exc:
            _scraper_event("error", phase="connection", kind="close_failed", error=str(exc))

    async def _connect(self) -> Browser:
        _scraper_event(
            "state", phase="connection", kind="connecting", mode=self.mode, target=self._target()
        )
        try:
            browser = await self._open_browser()
        except ConnectionFailed as exc:
            _scraper_event(
                "error", phase="connection", kind="connect_failed", mode=self.mode, error=str(exc)
            )
            raise
        except PWError as exc:
            _scraper_event(
                "error", phase="connection", kind="connect_failed", mode=self.mode, error=str(exc)
            )
            raise ConnectionFailed(f"failed to connect to browser: {exc}") from exc
        self.connect_count += 1
        _scraper_event(
            "state", phase="connection", kind="connected", mode=self.mode, target=self._target()
        )
        return browser

    async def _ensure_playwright(self) -> Playwright:
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return self._playwright

    async def _open_browser(self) -> Browser:
        """Launch a local headless browser or attach to the remote one."""

        playwright = await self._ensure_playwright()
        if self._settings.is_remote:
            ws_url = await self._resolve_control_url()
            return await playwright.chromium.connect_over_cdp(ws_url)

        log_line(f"Launching local browser at: {self._settings.executable_path}")
        return await playwright.chromium.launch(
            executable_path=self._settings.executable_path or None,
            headless=True,
            chromium_sandbox=False,
            args=LOCAL_LAUNCH_ARGS,
        )

    async def _resolve_control_url(self) -> str:
        base_url = self._settings.browser_url
        attempt = 0
        while True:
            attempt += 1
            try:
                ws_url = await asyncio.to_thread(
                    resolve_ws_url,
                    base_url,
                    timeout=self._settings.version_timeout_seconds,
                    http_get=self._http_get,
                )
            except (requests.RequestException, ValueError) as exc:
                _scraper_event(
                    "error",
                    phase="connection",
                    kind="resolve_failed",
                    url=version_endpoint(base_url),
                    attempt=attempt,
                    max_attempts=self._budget.attempts,
                    error=str(exc),
                )
                if not decide_retry(attempt, self._budget, exc, context="resolve_control_url"):
                    raise ConnectionFailed(
                        f"failed to get WebSocket URL after {attempt} attempts: {exc}"
                    ) from exc
                await asyncio.sleep(compute_backoff_seconds(attempt, self._budget))
                continue

            _scraper_event(
                "state", phase="connection", kind="resolved", attempt=attempt, ws_url=ws_url
            )
            return ws_url


__all__ = [
    "ConnectionManager",
    "is_connection_closed_error",
    "resolve_ws_url",
    "version_endpoint",
]
