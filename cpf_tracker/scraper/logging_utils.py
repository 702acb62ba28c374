from __future__ import annotations

import logging
from typing import Any

from .utils import log_line, mask_cpf

# Labels not listed here are logged at INFO.
_LABEL_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
}

# Event fields that may carry a raw CPF.
_CPF_FIELDS = ("cpf",)


def _scraper_event(label: str = "", *, phase: str | None = None, **fields: Any) -> None:
    """Emit a structured scraper log line.

    ``phase`` may be used as a keyword alias for the label. When both ``label``
    and ``phase`` are provided, ``phase`` is emitted as part of the payload.
    CPF fields are masked before they reach the log, and ``error`` events are
    logged at ``ERROR`` level.
    """

    try:
        phase_label = label or (phase or "")
        if phase and label:
            fields.setdefault("phase", phase)
        for name in _CPF_FIELDS:
            if isinstance(fields.get(name), str):
                fields[name] = mask_cpf(fields[name])
        payload = ", ".join(f"{k}={repr(v)}" for k, v in sorted(fields.items()))
        level = _LABEL_LEVELS.get(phase_label.lower(), logging.INFO)
        log_line(f"[SCRAPER][{phase_label.upper()}] {payload}", level)
    except Exception:
        # Never let logging break the scraper.
        return


__all__ = ["_scraper_event"]
