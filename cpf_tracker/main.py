from __future__ import annotations

import atexit
from functools import wraps
from typing import Any, Callable, Optional

from flask import Flask, Response, jsonify, request

from cpf_tracker.auth import ApiKeyValidator
from cpf_tracker.rate_limit import RateLimiter
from cpf_tracker.scraper import config
from cpf_tracker.scraper.config_validation import validate_runtime_config
from cpf_tracker.scraper.errors import TrackingError
from cpf_tracker.scraper.healthcheck import run_health_checks
from cpf_tracker.scraper.logging_utils import _scraper_event
from cpf_tracker.scraper.tracker import Tracker
from cpf_tracker.scraper.utils import mask_cpf

SCRAPING_METHOD = "browser_automation"

app = Flask(__name__)

validate_runtime_config("api")

# The browser handle is created lazily on the first lookup.
tracker: Optional[Tracker] = Tracker.from_config()
validator = ApiKeyValidator(config.API_KEYS)
limiter = RateLimiter(config.RATE_LIMIT_REQUESTS, config.RATE_LIMIT_WINDOW_SECONDS)


def _shutdown_tracker() -> None:
    if tracker is not None:
        tracker.shutdown()


atexit.register(_shutdown_tracker)


def require_api_key(view: Callable[..., Any]) -> Callable[..., Any]:
    """Reject requests without a valid ``X-API-Key`` or over the per-key limit."""

    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        api_key = request.headers.get("X-API-Key", "")
        if not api_key:
            return jsonify({"error": "API key required"}), 401
        if not validator.is_valid(api_key):
            _scraper_event(
                "error",
                phase="api",
                context="auth",
                error="invalid_api_key",
                remote_addr=request.remote_addr,
            )
            return jsonify({"error": "Invalid API key"}), 401
        if not limiter.allow(api_key):
            _scraper_event(
                "error",
                phase="api",
                context="rate_limit",
                error="rate_limited",
                remote_addr=request.remote_addr,
            )
            return jsonify({"error": "Rate limit exceeded"}), 429
        return view(*args, **kwargs)

    return wrapper


@app.get("/health")
def health() -> Response:
    """Return a JSON health summary for configuration and the browser."""

    result = run_health_checks(tracker, entrypoint="api")
    status = 200 if result.ok else 503
    return (
        jsonify({"status": "ok" if result.ok else "degraded", "ok": result.ok, "checks": result.checks}),
        status,
    )


@app.post("/api/v1/tracker/cpf")
@require_api_key
def track_cpf() -> Response:
    """Scrape the tracking site for the CPF in the JSON body."""

    payload = request.get_json(silent=True)
    cpf = payload.get("cpf") if isinstance(payload, dict) else None
    if not isinstance(cpf, str) or not cpf.strip():
        return (
            jsonify(
                {
                    "success": False,
                    "error": "Invalid request: field 'cpf' is required",
                    "scraping_method": SCRAPING_METHOD,
                }
            ),
            400,
        )

    cpf = cpf.strip()
    try:
        result = tracker.track(cpf)
    except TrackingError as exc:
        _scraper_event(
            "error",
            phase="api",
            context="track",
            cpf=mask_cpf(cpf),
            error_code=exc.error_code,
            message=str(exc),
        )
        return (
            jsonify(
                {
                    "success": False,
                    "error": f"Scraping failed: {exc}",
                    "error_code": exc.error_code,
                    "scraping_method": SCRAPING_METHOD,
                }
            ),
            500,
        )

    return jsonify(
        {
            "success": True,
            "data": result.to_dict(),
            "scraping_method": SCRAPING_METHOD,
        }
    )


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=config.PORT, threaded=True)
