"""One CPF lookup driven end to end through the tracking site's form."""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Tuple

from playwright.async_api import (
    Browser,
    BrowserContext,
    ElementHandle,
    Error as PWError,
    Page,
)

from .classifier import classify_status
from .config import ScraperSettings
from .connection import ConnectionManager, is_connection_closed_error
from .errors import (
    ConnectionFailed,
    ElementNotFound,
    ExtractionFailed,
    NavigationFailed,
    SessionUnavailable,
)
from .logging_utils import _scraper_event
from .models import TrackingResult, TrackingStatus
from .parser import is_not_found, parse_page_text
from .utils import log_line, mask_cpf

PAGE_TEXT_SCRIPT = "() => document.body.innerText"


class ScrapeSession:
    """Runs the navigate, fill, submit, wait, extract flow on its own page."""

    def __init__(self, settings: ScraperSettings, connection: ConnectionManager) -> None:
        self._settings = settings
        self._connection = connection

    async def run(self, cpf: str) -> TrackingResult:
        masked = mask_cpf(cpf)
        log_line(f"Starting tracking for CPF: {masked}")

        browser = await self._connection.ensure()
        context, page = await self._open_page(browser)
        try:
            text = await self._drive(page, cpf)
        finally:
            await self._close(context, page)

        result = self._build_result(cpf, text)
        _scraper_event(
            "state",
            phase="session",
            kind="complete",
            cpf=masked,
            status=result.status.value,
            events=len(result.events),
        )
        return result

    async def _new_page(self, browser: Browser) -> Tuple[BrowserContext, Page]:
        context = await browser.new_context(user_agent=self._settings.user_agent, locale="pt-BR")
        try:
            page = await context.new_page()
        except PWError:
            await self._close_context(context)
            raise
        timeout_ms = self._settings.page_timeout_seconds * 1000
        page.set_default_timeout(timeout_ms)
        page.set_default_navigation_timeout(timeout_ms)
        return context, page

    async def _open_page(self, browser: Browser) -> Tuple[BrowserContext, Page]:
        try:
            return await self._new_page(browser)
        except PWError as exc:
            if not is_connection_closed_error(exc):
                _scraper_event("error", phase="session", kind="page_open_failed", error=str(exc))
                raise SessionUnavailable(f"failed to open page: {exc}") from exc
            log_line(f"Failed to get page, attempting reconnect: {exc}")

        browser = await self._connection.reconnect()
        try:
            return await self._new_page(browser)
        except PWError as exc:
            _scraper_event(
                "error", phase="session", kind="page_open_failed_after_reconnect", error=str(exc)
            )
            raise SessionUnavailable(f"failed to get page after reconnect: {exc}") from exc

    async def _drive(self, page: Page, cpf: str) -> str:
        settings = self._settings
        url = settings.tracking_url

        _scraper_event("nav", step="goto", url=url)
        try:
            await page.goto(url)
        except PWError as exc:
            _scraper_event("error", phase="nav", step="goto_error", url=url, error=str(exc))
            if is_connection_closed_error(exc):
                log_line("Connection closed during navigate, triggering reconnect")
                await self._reconnect_for_next_call()
            raise NavigationFailed(f"failed to navigate: {exc}") from exc

        try:
            await page.wait_for_load_state("load")
        except PWError as exc:
            raise NavigationFailed(f"failed to wait for load: {exc}") from exc
        await asyncio.sleep(settings.page_settle_seconds)

        cpf_input = await self._first_element(page, settings.cpf_input_selector, "CPF input")
        try:
            await cpf_input.fill(cpf)
        except PWError as exc:
            raise ElementNotFound(f"CPF input not fillable: {exc}") from exc
        await asyncio.sleep(settings.input_settle_seconds)

        submit = await self._first_element(page, settings.submit_selector, "submit button")
        try:
            await submit.click()
        except PWError as exc:
            raise ElementNotFound(f"submit button not clickable: {exc}") from exc

        # No readiness signal on the results panel; wait a fixed time.
        await asyncio.sleep(settings.results_wait_seconds)

        try:
            await page.wait_for_load_state("load")
        except PWError as exc:
            log_line(f"Warning: wait for load after submit failed: {exc}")

        try:
            text = await page.evaluate(PAGE_TEXT_SCRIPT)
        except PWError as exc:
            _scraper_event("error", phase="extract", error=str(exc))
            raise ExtractionFailed(f"failed to get page text: {exc}") from exc
        if not isinstance(text, str):
            raise ExtractionFailed(f"page text has unexpected type {type(text).__name__}")
        log_line(f"Got page text length: {len(text)}")
        return text

    async def _first_element(self, page: Page, selector: str, label: str) -> ElementHandle:
        log_line(f"Looking for {label}...")
        try:
            handle = await page.wait_for_selector(selector, state="attached")
        except PWError as exc:
            _scraper_event("error", phase="element", element=label, selector=selector, error=str(exc))
            raise ElementNotFound(f"failed to find {label} ({selector!r}): {exc}") from exc
        if handle is None:
            raise ElementNotFound(f"failed to find {label} ({selector!r})")
        return handle

    async def _reconnect_for_next_call(self) -> None:
        try:
            await self._connection.reconnect()
        except ConnectionFailed as exc:
            _scraper_event("error", phase="connection", kind="reconnect_failed", error=str(exc))

    async def _close(self, context: BrowserContext, page: Page) -> None:
        try:
            await page.close()
        except PWError as exc:
            log_line(f"Error closing page: {exc}")
        await self._close_context(context)

    async def _close_context(self, context: BrowserContext) -> None:
        try:
            await context.close()
        except PWError as exc:
            log_line(f"Error closing browser context: {exc}")

    def _build_result(self, cpf: str, text: str) -> TrackingResult:
        if is_not_found(text):
            return TrackingResult(
                cpf=cpf,
                status=TrackingStatus.NOT_FOUND,
                scraped_at=datetime.now(timezone.utc),
            )

        parsed = parse_page_text(text)
        return TrackingResult(
            cpf=cpf,
            status=classify_status(parsed.events),
            events=parsed.events,
            tracking_code=parsed.tracking_code,
            expected_date=parsed.expected_date,
            scraped_at=datetime.now(timezone.utc),
        )


__all__ = ["ScrapeSession", "PAGE_TEXT_SCRIPT"]
