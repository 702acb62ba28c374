"""Turn the tracking page's visible text into structured events."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .models import TrackingEvent
from .vocabulary import (
    ANCHOR_PHRASES,
    BRAND_TOKENS,
    LOCATION_TYPE_PREFIXES,
    NOT_FOUND_MARKERS,
)

TRACKING_CODE_PATTERN = re.compile(r"([A-Z]{2}\d{9}[A-Z]{2})(?:[ \t]*-[ \t]*([A-Za-z0-9]+))?")
EXPECTED_DATE_PATTERN = re.compile(r"Data prevista:\s*(\d{2}/\d{2}/\d{4})", re.IGNORECASE)
DATE_TIME_PATTERN = re.compile(r"\d{2}/\d{2}/\d{4}\s+\d{2}:\d{2}:\d{2}")
# Upper-case city (accents allowed) followed by a two-letter state code.
CITY_STATE_PATTERN = re.compile(r"^[A-ZÀ-ÖØ-Þ][A-ZÀ-ÖØ-Þ\s'.-]*,\s?[A-Z]{2}$")


@dataclass(frozen=True)
class ParsedPage:
    tracking_code: Optional[str]
    expected_date: Optional[str]
    events: Tuple[TrackingEvent, ...]


@dataclass
class _EventDraft:
    description: str = ""
    date: Optional[str] = None
    location: Optional[str] = None
    location_type: Optional[str] = None

    def freeze(self) -> TrackingEvent:
        return TrackingEvent(
            description=self.description,
            date=self.date,
            location=self.location,
            location_type=self.location_type,
        )


def is_not_found(text: str) -> bool:
    """Return ``True`` when the page says the CPF has no shipment."""

    folded = (text or "").casefold()
    return any(marker in folded for marker in NOT_FOUND_MARKERS)


def extract_tracking_code(text: str) -> Optional[str]:
    match = TRACKING_CODE_PATTERN.search(text or "")
    if not match:
        return None
    code, suffix = match.group(1), match.group(2)
    return f"{code} - {suffix}" if suffix else code


def extract_expected_date(text: str) -> Optional[str]:
    match = EXPECTED_DATE_PATTERN.search(text or "")
    return match.group(1) if match else None


def is_anchor_line(line: str) -> bool:
    return any(phrase in line for phrase in ANCHOR_PHRASES)


def is_location_type_line(line: str) -> bool:
    return line.startswith(LOCATION_TYPE_PREFIXES)


def _is_labelled_location(line: str) -> bool:
    return len(line) > 2 and "," in line and not any(token in line for token in BRAND_TOKENS)


def _clean_lines(text: str) -> Iterable[str]:
    for raw in (text or "").splitlines():
        line = raw.strip()
        if line:
            yield line


def extract_events(text: str) -> Tuple[TrackingEvent, ...]:
    """Segment ``text`` into events in a single top-to-bottom pass.

    An anchor line closes the event being built and opens a new one. Date,
    location-type and location lines fill in the open event; anything else
    is page noise.
    """

    events: List[TrackingEvent] = []
    draft = _EventDraft()
    previous_was_label = False

    for line in _clean_lines(text):
        is_label = False
        date_match = DATE_TIME_PATTERN.search(line)
        if is_anchor_line(line):
            if draft.description:
                events.append(draft.freeze())
            draft = _EventDraft(description=line)
        elif is_location_type_line(line):
            draft.location_type = line
            is_label = True
        elif date_match:
            draft.date = date_match.group(0)
        elif previous_was_label and _is_labelled_location(line):
            draft.location = line
        elif CITY_STATE_PATTERN.match(line):
            draft.location = line
        previous_was_label = is_label

    if draft.description:
        events.append(draft.freeze())
    return tuple(events)


def parse_page_text(text: str) -> ParsedPage:
    """Parse the full visible text of a results page."""

    return ParsedPage(
        tracking_code=extract_tracking_code(text),
        expected_date=extract_expected_date(text),
        events=extract_events(text),
    )


__all__ = [
    "ParsedPage",
    "parse_page_text",
    "extract_events",
    "extract_tracking_code",
    "extract_expected_date",
    "is_not_found",
]
