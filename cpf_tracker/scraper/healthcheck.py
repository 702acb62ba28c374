from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .config_validation import Entrypoint, validate_runtime_config
from .logging_utils import _scraper_event
from .tracker import Tracker


@dataclass
class HealthResult:
    ok: bool
    checks: dict[str, dict[str, Any]]


def run_health_checks(tracker: Optional[Tracker], entrypoint: Entrypoint = "api") -> HealthResult:
    """Report configuration validity and the browser/throttle state.

    A missing browser handle is not a failure: the handle is created lazily on
    the first lookup.
    """

    checks: dict[str, dict[str, Any]] = {}

    try:
        validate_runtime_config(entrypoint)
        checks["config"] = {"ok": True}
    except ValueError as exc:
        checks["config"] = {"ok": False, "error": str(exc)}

    if tracker is None:
        checks["browser"] = {"ok": False, "error": "tracker_not_initialised"}
    else:
        state = tracker.status()
        checks["browser"] = {"ok": not state["closed"], **state}

    overall_ok = all(check.get("ok", False) for check in checks.values())

    _scraper_event(
        "state" if overall_ok else "error",
        phase="health",
        context="healthcheck",
        ok=overall_ok,
        checks=checks,
    )

    return HealthResult(ok=overall_ok, checks=checks)


__all__ = ["HealthResult", "run_health_checks"]
