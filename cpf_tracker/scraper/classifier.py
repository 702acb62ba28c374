from __future__ import annotations

from typing import Sequence

from .models import TrackingEvent, TrackingStatus
from .vocabulary import EMPTY_STATUS, FALLBACK_STATUS, STATUS_RULES


def classify_status(events: Sequence[TrackingEvent]) -> TrackingStatus:
    """Map the most recent event to a canonical status.

    The site lists events newest first, so only ``events[0]`` is inspected.
    """

    if not events:
        return EMPTY_STATUS

    description = events[0].description.casefold()
    for keywords, status in STATUS_RULES:
        if any(keyword in description for keyword in keywords):
            return status
    return FALLBACK_STATUS


__all__ = ["classify_status"]
