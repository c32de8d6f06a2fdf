"""
Grouped reductions per event type
=================================

Three independent folds over the (normalized) events, all keyed by event type:

- counts      -> every record
- casualties  -> records with fatalities > 0 or injuries > 0
- damages     -> records with property or crop magnitude > 0

Each fold is a single pass over the events into a dict of key -> accumulator.
Sums are commutative, so the input order does not matter. Output rows are
sorted by key so two runs over the same data print the same tables.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .models import CasualtyTotal, DamageTotal, EventCount, StormEvent
from .normalize import is_known_unit


@dataclass
class _CasualtyAcc:
    fatalities: float = 0.0
    injuries: float = 0.0


@dataclass
class _DamageAcc:
    property_damage: float = 0.0
    crop_damage: float = 0.0


@dataclass(frozen=True)
class Aggregates:
    """The three summary tables of one report run."""
    counts: List[EventCount]
    casualties: List[CasualtyTotal]
    damages: List[DamageTotal]


def count_by_type(events: Iterable[StormEvent]) -> List[EventCount]:
    acc: Dict[str, int] = {}
    for e in events:
        acc[e.event_type] = acc.get(e.event_type, 0) + 1
    return [EventCount(event_type=k, events=acc[k]) for k in sorted(acc)]


def casualties_by_type(events: Iterable[StormEvent]) -> List[CasualtyTotal]:
    """Sum fatalities and injuries per event type (harmful records only)."""
    acc: Dict[str, _CasualtyAcc] = {}
    for e in events:
        if not (e.fatalities > 0 or e.injuries > 0):
            continue
        a = acc.setdefault(e.event_type, _CasualtyAcc())
        a.fatalities += e.fatalities
        a.injuries += e.injuries
    return [
        CasualtyTotal(
            event_type=k,
            fatalities=acc[k].fatalities,
            injuries=acc[k].injuries,
            total=acc[k].fatalities + acc[k].injuries,
        )
        for k in sorted(acc)
    ]


def damage_by_type(events: Iterable[StormEvent]) -> List[DamageTotal]:
    """Sum exponent-adjusted property + crop damage (US$) per event type."""
    acc: Dict[str, _DamageAcc] = {}
    for e in events:
        if not (e.property_damage_magnitude > 0 or e.crop_damage_magnitude > 0):
            continue
        a = acc.setdefault(e.event_type, _DamageAcc())
        a.property_damage += e.property_damage_usd
        a.crop_damage += e.crop_damage_usd
    return [
        DamageTotal(
            event_type=k,
            property_damage=acc[k].property_damage,
            crop_damage=acc[k].crop_damage,
            total=acc[k].property_damage + acc[k].crop_damage,
        )
        for k in sorted(acc)
    ]


def aggregate_all(events: List[StormEvent]) -> Aggregates:
    return Aggregates(
        counts=count_by_type(events),
        casualties=casualties_by_type(events),
        damages=damage_by_type(events),
    )


def unit_code_counts(events: Iterable[StormEvent], which: str = "property") -> List[Tuple[str, int, bool]]:
    """Frequency of each unit code as (code, count, known), most frequent first.

    `known` is False for codes that silently fall back to multiplier 1.
    """
    if which == "property":
        get = lambda e: e.property_damage_unit
    elif which == "crop":
        get = lambda e: e.crop_damage_unit
    else:
        raise ValueError("which must be: property | crop")
    acc: Dict[str, int] = {}
    for e in events:
        code = get(e)
        acc[code] = acc.get(code, 0) + 1
    rows = [(code, n, is_known_unit(code)) for code, n in acc.items()]
    rows.sort(key=lambda r: (-r[1], r[0]))
    return rows
