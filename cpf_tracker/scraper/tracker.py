"""Blocking ``track()`` / ``shutdown()`` facade over the async scraping core."""
from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from typing import Any, Awaitable, Callable, Dict, Optional, Set, TypeVar

from . import config
from .config import ScraperSettings
from .connection import ConnectionManager
from .errors import ConnectionFailed
from .logging_utils import _scraper_event
from .models import TrackingResult
from .session import ScrapeSession
from .throttle import Throttle

T = TypeVar("T")

SHUTDOWN_TIMEOUT_SECONDS = 30


class Tracker:
    """
    Entry point used by the HTTP layer and the CLI.

    Browser work runs on a private event loop thread because Playwright objects
    are bound to the loop that created them. ``track`` may be called from any
    number of threads; the throttle admits each call in the caller's thread
    before its session is scheduled on the loop.
    """

    def __init__(
        self,
        settings: ScraperSettings,
        *,
        connection: Optional[ConnectionManager] = None,
        throttle: Optional[Throttle] = None,
    ) -> None:
        self.settings = settings
        self.connection = connection or ConnectionManager(settings)
        self.session = ScrapeSession(settings, self.connection)
        self.throttle = throttle or Throttle(settings.max_concurrency)
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._closed = False
        self._pending: Set[concurrent.futures.Future] = set()

    @classmethod
    def from_config(cls) -> "Tracker":
        settings = config.load_scraper_settings()
        _scraper_event(
            "state",
            phase="tracker",
            kind="configured",
            mode="remote" if settings.is_remote else "local",
            target=settings.browser_url or settings.executable_path,
            max_concurrency=settings.max_concurrency,
        )
        return cls(settings)

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        # Caller holds self._lock.
        if self._closed:
            raise ConnectionFailed("tracker has been shut down")
        if self._loop is None:
            loop = asyncio.new_event_loop()
            thread = threading.Thread(
                target=loop.run_forever, name="cpf-tracker-browser", daemon=True
            )
            thread.start()
            self._loop, self._thread = loop, thread
        return self._loop

    def _call(self, fn: Callable[..., Awaitable[T]], *args: Any) -> T:
        with self._lock:
            loop = self._ensure_loop()
            future = asyncio.run_coroutine_threadsafe(fn(*args), loop)
            self._pending.add(future)
        future.add_done_callback(self._forget)
        try:
            return future.result()
        except concurrent.futures.CancelledError as exc:
            raise ConnectionFailed("tracker was shut down during the lookup") from exc

    def _forget(self, future: concurrent.futures.Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def track(self, cpf: str) -> TrackingResult:
        """Scrape the tracking site for ``cpf``; raises ``TrackingError`` subclasses."""

        with self.throttle.slot():
            return self._call(self.session.run, cpf)

    async def _teardown(self) -> None:
        current = asyncio.current_task()
        tasks = [task for task in asyncio.all_tasks() if task is not current]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self.connection.shutdown()

    def shutdown(self) -> None:
        """
        Release the shared browser handle and stop the loop thread. Idempotent.

        Lookups still in progress are cancelled; their callers get
        ``ConnectionFailed`` and give back their throttle slots.
        """

        with self._lock:
            self._closed = True
            loop, thread = self._loop, self._thread
            self._loop, self._thread = None, None
            pending = list(self._pending)
        if loop is None or thread is None:
            return

        _scraper_event("state", phase="tracker", kind="shutdown", cancelled=len(pending))
        for future in pending:
            future.cancel()
        try:
            asyncio.run_coroutine_threadsafe(self._teardown(), loop).result(
                timeout=SHUTDOWN_TIMEOUT_SECONDS
            )
        finally:
            loop.call_soon_threadsafe(loop.stop)
            thread.join(timeout=5)
            if not thread.is_alive():
                loop.close()

    def status(self) -> Dict[str, Any]:
        return {
            "mode": self.connection.mode,
            "connected": self.connection.has_handle,
            "reconnects": self.connection.reconnect_count,
            "in_flight": self.throttle.in_flight,
            "peak_in_flight": self.throttle.peak_in_flight,
            "max_concurrency": self.throttle.max_concurrency,
            "closed": self._closed,
        }


__all__ = ["Tracker"]
