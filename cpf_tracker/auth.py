from __future__ import annotations

import hmac
from typing import Iterable


class ApiKeyValidator:
    """Accepts a request when its ``X-API-Key`` is one of the configured keys."""

    def __init__(self, keys: Iterable[str]) -> None:
        self._keys = frozenset(key for key in keys if key)

    def is_valid(self, key: str | None) -> bool:
        if not key:
            return False
        return any(hmac.compare_digest(key, candidate) for candidate in self._keys)


__all__ = ["ApiKeyValidator"]
