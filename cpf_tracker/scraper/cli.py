from __future__ import annotations

"""CLI helper for running a single CPF lookup."""

import argparse
import json
import sys
from dataclasses import replace
from typing import Sequence

from .config import discover_browser_path, load_scraper_settings
from .config_validation import validate_runtime_config
from .errors import TrackingError
from .tracker import Tracker


def _build_parser() -> argparse.ArgumentParser:
    """Return an argument parser for the tracking CLI."""

    parser = argparse.ArgumentParser(
        description="Track a shipment by CPF and print the result as JSON.",
    )
    parser.add_argument("cpf", help="CPF to look up.")
    parser.add_argument(
        "--browser-url",
        default=None,
        help="Remote browser control address (overrides BROWSER_URL; empty launches locally).",
    )
    return parser


def _build_tracker(browser_url: str | None) -> Tracker:
    validate_runtime_config("cli")
    settings = load_scraper_settings()
    if browser_url is not None:
        browser_url = browser_url.strip()
        settings = replace(
            settings,
            browser_url=browser_url,
            executable_path=None if browser_url else discover_browser_path(),
        )
    return Tracker(settings)


def main(argv: Sequence[str] | None = None, *, tracker: Tracker | None = None) -> int:
    """Entry point for the tracking CLI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if tracker is None:
        tracker = _build_tracker(args.browser_url)

    try:
        result = tracker.track(args.cpf)
    except TrackingError as exc:
        print(f"{exc.error_code}: {exc}", file=sys.stderr)
        return 1
    finally:
        tracker.shutdown()

    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
