from __future__ import annotations

from contextlib import contextmanager
from threading import Condition
from typing import Iterator

from .config import DEFAULT_MAX_CONCURRENCY
from .logging_utils import _scraper_event


class ThrottleToken:
    """Proof of occupancy of one throttle slot. Release it exactly once."""

    __slots__ = ("ticket", "_owner", "released")

    def __init__(self, ticket: int, owner: "Throttle") -> None:
        self.ticket = ticket
        self._owner = owner
        self.released = False

    def __repr__(self) -> str:
        return f"ThrottleToken(ticket={self.ticket}, released={self.released})"


class Throttle:
    """
    Counting admission gate for browser sessions.

    - ``admit()`` blocks until fewer than ``max_concurrency`` tokens are out.
    - Waiters are admitted in arrival order (ticket numbers).
    - Knows nothing about what it guards.
    """

    def __init__(self, max_concurrency: int) -> None:
        if max_concurrency is None or max_concurrency < 1:
            max_concurrency = DEFAULT_MAX_CONCURRENCY
        self._max_concurrency = max_concurrency
        self._cond = Condition()
        self._next_ticket: int = 0
        self._now_serving: int = 0
        self._in_flight: int = 0
        self._peak_in_flight: int = 0

    def admit(self) -> ThrottleToken:
        with self._cond:
            ticket = self._next_ticket
            self._next_ticket += 1
            if ticket != self._now_serving or self._in_flight >= self._max_concurrency:
                _scraper_event(
                    "state",
                    phase="throttle",
                    kind="queued",
                    ticket=ticket,
                    in_flight=self._in_flight,
                    max_concurrency=self._max_concurrency,
                )
            self._cond.wait_for(
                lambda: ticket == self._now_serving
                and self._in_flight < self._max_concurrency
            )
            self._now_serving += 1
            self._in_flight += 1
            self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
            # The next ticket may also fit.
            self._cond.notify_all()
            return ThrottleToken(ticket, self)

    def release(self, token: ThrottleToken) -> None:
        if token._owner is not self:
            raise ValueError("token was issued by a different throttle")
        with self._cond:
            if token.released:
                raise ValueError(f"throttle token {token.ticket} released twice")
            token.released = True
            self._in_flight -= 1
            self._cond.notify_all()

    @contextmanager
    def slot(self) -> Iterator[ThrottleToken]:
        """Hold one slot for the duration of the ``with`` block."""

        token = self.admit()
        try:
            yield token
        finally:
            self.release(token)

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @property
    def in_flight(self) -> int:
        with self._cond:
            return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        with self._cond:
            return self._peak_in_flight


__all__ = ["Throttle", "ThrottleToken"]
