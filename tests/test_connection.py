from __future__ import annotations

import asyncio
from typing import Any

import pytest
import requests
from playwright.async_api import Error as PWError

from cpf_tracker.scraper import connection, retry_policy
from cpf_tracker.scraper.config import ScraperSettings
from cpf_tracker.scraper.connection import ConnectionManager
from cpf_tracker.scraper.errors import ConnectionFailed

WS_URL = "ws://browser:9222/devtools/browser/abc"


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self) -> Any:
        return self._payload


class FakeBrowser:
    def __init__(self, name: str = "browser") -> None:
        self.name = name
        self.connected = True
        self.close_calls = 0

    def is_connected(self) -> bool:
        return self.connected

    async def close(self) -> None:
        self.close_calls += 1
        self.connected = False


class FakeChromium:
    def __init__(self) -> None:
        self.launch_kwargs: list[dict[str, Any]] = []
        self.cdp_urls: list[str] = []
        self.launch_error: Exception | None = None

    async def launch(self, **kwargs: Any) -> FakeBrowser:
        self.launch_kwargs.append(kwargs)
        if self.launch_error is not None:
            raise self.launch_error
        return FakeBrowser("local")

    async def connect_over_cdp(self, url: str) -> FakeBrowser:
        self.cdp_urls.append(url)
        return FakeBrowser("remote")


class FakePlaywright:
    def __init__(self) -> None:
        self.chromium = FakeChromium()
        self.stopped = 0

    async def stop(self) -> None:
        self.stopped += 1


def _remote_settings(**overrides: Any) -> ScraperSettings:
    values: dict[str, Any] = {
        "browser_url": "ws://browser:9222",
        "connect_attempts": 3,
        "connect_retry_seconds": 0,
    }
    values.update(overrides)
    return ScraperSettings(**values)


def _install_playwright(manager: ConnectionManager, monkeypatch: pytest.MonkeyPatch) -> FakePlaywright:
    playwright = FakePlaywright()

    async def _fake_start() -> FakePlaywright:
        manager._playwright = playwright  # type: ignore[assignment]
        return playwright

    monkeypatch.setattr(manager, "_ensure_playwright", _fake_start)
    return playwright


def _install_opener(manager: ConnectionManager, monkeypatch: pytest.MonkeyPatch) -> list[FakeBrowser]:
    opened: list[FakeBrowser] = []

    async def _open() -> FakeBrowser:
        await asyncio.sleep(0)
        browser = FakeBrowser(f"browser-{len(opened)}")
        opened.append(browser)
        return browser

    monkeypatch.setattr(manager, "_open_browser", _open)
    return opened


@pytest.mark.parametrize(
    "base_url, expected",
    [
        ("ws://browser:9222", "http://browser:9222/json/version"),
        ("wss://browser.example/", "https://browser.example/json/version"),
        ("http://127.0.0.1:9222", "http://127.0.0.1:9222/json/version"),
    ],
)
def test_version_endpoint(base_url: str, expected: str) -> None:
    assert connection.version_endpoint(base_url) == expected


def test_resolve_ws_url_reads_debugger_url() -> None:
    calls: list[tuple[str, float]] = []

    def _get(url: str, timeout: float) -> FakeResponse:
        calls.append((url, timeout))
        return FakeResponse({"Browser": "Chrome/120", "webSocketDebuggerUrl": WS_URL})

    assert connection.resolve_ws_url("ws://browser:9222", timeout=5, http_get=_get) == WS_URL
    assert calls == [("http://browser:9222/json/version", 5)]


def test_resolve_ws_url_rejects_payload_without_url() -> None:
    with pytest.raises(ValueError):
        connection.resolve_ws_url(
            "ws://browser:9222", timeout=5, http_get=lambda url, timeout: FakeResponse({})
        )


def test_remote_resolution_exhausts_retry_budget(monkeypatch: pytest.MonkeyPatch) -> None:
    decisions: list[dict] = []
    monkeypatch.setattr(
        retry_policy, "_scraper_event", lambda *args, **kwargs: decisions.append(kwargs)
    )
    attempts: list[str] = []

    def _get(url: str, timeout: float) -> FakeResponse:
        attempts.append(url)
        raise requests.ConnectionError("connection refused")

    manager = ConnectionManager(_remote_settings(), http_get=_get)
    playwright = _install_playwright(manager, monkeypatch)

    with pytest.raises(ConnectionFailed):
        asyncio.run(manager.ensure())

    assert len(attempts) == 3
    assert playwright.chromium.cdp_urls == []
    assert [d["will_retry"] for d in decisions] == [True, True, False]
    assert manager.has_handle is False


def test_remote_resolution_recovers_within_budget(monkeypatch: pytest.MonkeyPatch) -> None:
    responses: list[Any] = [
        requests.ConnectionError("not yet"),
        FakeResponse({}, status_code=503),
        FakeResponse({"webSocketDebuggerUrl": WS_URL}),
    ]

    def _get(url: str, timeout: float) -> FakeResponse:
        item = responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    manager = ConnectionManager(_remote_settings(), http_get=_get)
    playwright = _install_playwright(manager, monkeypatch)

    browser = asyncio.run(manager.ensure())

    assert browser.name == "remote"
    assert playwright.chromium.cdp_urls == [WS_URL]
    assert manager.connect_count == 1


def test_local_launch_is_headless_without_sandbox(monkeypatch: pytest.MonkeyPatch) -> None:
    manager = ConnectionManager(ScraperSettings(executable_path="/usr/bin/chromium"))
    playwright = _install_playwright(manager, monkeypatch)

    browser = asyncio.run(manager.ensure())

    assert browser.name == "local"
    (kwargs,) = playwright.chromium.launch_kwargs
    assert kwargs["executable_path"] == "/usr/bin/chromium"
    assert kwargs["headless"] is True
    assert "--no-sandbox" in kwargs["args"]
    assert manager.mode == "local"


def test_local_launch_failure_is_connection_failed(monkeypatch: pytest.MonkeyPatch) -> None:
    manager = ConnectionManager(ScraperSettings(executable_path="/missing/chromium"))
    playwright = _install_playwright(manager, monkeypatch)
    playwright.chromium.launch_error = PWError("Executable doesn't exist at /missing/chromium")

    with pytest.raises(ConnectionFailed) as excinfo:
        asyncio.run(manager.ensure())

    assert isinstance(excinfo.value.__cause__, PWError)


def test_concurrent_ensure_connects_once(monkeypatch: pytest.MonkeyPatch) -> None:
    manager = ConnectionManager(ScraperSettings())
    opened = _install_opener(manager, monkeypatch)

    async def _scenario() -> list[Any]:
        return await asyncio.gather(*(manager.ensure() for _ in range(5)))

    browsers = asyncio.run(_scenario())

    assert len(opened) == 1
    assert all(browser is opened[0] for browser in browsers)


def test_stale_handle_is_replaced(monkeypatch: pytest.MonkeyPatch) -> None:
    manager = ConnectionManager(ScraperSettings())
    opened = _install_opener(manager, monkeypatch)

    async def _scenario() -> tuple[Any, Any]:
        first = await manager.ensure()
        first.connected = False
        second = await manager.ensure()
        return first, second

    first, second = asyncio.run(_scenario())

    assert first is not second
    assert len(opened) == 2


def test_reconnect_closes_previous_handle(monkeypatch: pytest.MonkeyPatch) -> None:
    manager = ConnectionManager(ScraperSettings())
    opened = _install_opener(manager, monkeypatch)

    async def _scenario() -> tuple[Any, Any]:
        first = await manager.ensure()
        second = await manager.reconnect()
        return first, second

    first, second = asyncio.run(_scenario())

    assert first.close_calls == 1
    assert second is opened[1]
    assert manager.reconnect_count == 1


def test_shutdown_is_idempotent(monkeypatch: pytest.MonkeyPatch) -> None:
    manager = ConnectionManager(ScraperSettings(executable_path="/usr/bin/chromium"))
    playwright = _install_playwright(manager, monkeypatch)

    async def _scenario() -> Any:
        browser = await manager.ensure()
        await manager.shutdown()
        await manager.shutdown()
        return browser

    browser = asyncio.run(_scenario())

    assert browser.close_calls == 1
    assert playwright.stopped == 1
    assert manager.has_handle is False


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Target page, context or browser has been closed", True),
        ("Browser closed.", True),
        ("Connection closed: remote end hung up", True),
        ("Protocol error (Target.createTarget): No target with given id found", True),
        ("Target page not found", True),
        ("Timeout 60000ms exceeded.", False),
    ],
)
def test_is_connection_closed_error(message: str, expected: bool) -> None:
    assert connection.is_connection_closed_error(PWError(message)) is expected
