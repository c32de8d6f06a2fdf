"""
Normalization (free text -> canonical keys)
===========================================

The EVTYPE column is typed by hand across decades of reports, so the same kind
of event shows up as "HAIL", "Hail", " hail " and so on. This module maps each
raw string to a canonical key: trimmed and upper-cased. Nothing more.

Known limitation: semantic duplicates ("TSTM WIND" vs "THUNDERSTORM WIND")
are NOT merged. This is a first pass.

The unit-exponent columns (PROPDMGEXP / CROPDMGEXP) get the same cleaning,
then `unit_multiplier` turns a code into the factor applied to the magnitude.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Iterable, List

# Fixed lookup table: unit code -> multiplier.
UNIT_MULTIPLIERS = {
    "H": 100,
    "K": 1_000,
    "M": 1_000_000,
    "B": 1_000_000_000,
}

# Anything not in the table (empty, digits, "+", "?", ...) scales by 1.
DEFAULT_MULTIPLIER = 1


def normalize_text(s: str) -> str:
    """Trim surrounding whitespace and upper-case. Idempotent."""
    return s.strip().upper()


def normalize_values(values: Iterable[str]) -> List[str]:
    """Normalize a whole column; output has the same length and order."""
    return [normalize_text(v) for v in values]


def unit_multiplier(code: str) -> int:
    """Resolve a normalized unit code to its multiplier.

    Unknown codes resolve to 1, not 0: the magnitude is kept as-is rather
    than being treated as "no damage".
    """
    return UNIT_MULTIPLIERS.get(code, DEFAULT_MULTIPLIER)


def is_known_unit(code: str) -> bool:
    return code in UNIT_MULTIPLIERS


def normalize_events(events):
    """Return new events with event type and both unit codes normalized."""
    return [
        replace(
            e,
            event_type=normalize_text(e.event_type),
            property_damage_unit=normalize_text(e.property_damage_unit),
            crop_damage_unit=normalize_text(e.crop_damage_unit),
        )
        for e in events
    ]
