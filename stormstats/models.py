"""
Data model
==========

Each row of the storm dataset is converted into a `StormEvent` object, and the
grouped reductions produce one aggregate row per event type.

Everything here is immutable (`frozen=True`): records are read once, cleaned
once and aggregated once. Cleaning produces *new* events instead of editing the
loaded ones.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .normalize import unit_multiplier


@dataclass(frozen=True)
class StormEvent:
    """One observed weather event (one row of the dataset)."""
    event_id: int
    event_type: str
    fatalities: float
    injuries: float
    property_damage_magnitude: float
    property_damage_unit: str
    crop_damage_magnitude: float
    crop_damage_unit: str

    @property
    def casualties(self) -> float:
        return self.fatalities + self.injuries

    @property
    def property_damage_usd(self) -> float:
        return self.property_damage_magnitude * unit_multiplier(self.property_damage_unit)

    @property
    def crop_damage_usd(self) -> float:
        return self.crop_damage_magnitude * unit_multiplier(self.crop_damage_unit)

    @property
    def damage_usd(self) -> float:
        """Property + crop damage, each scaled by its own unit code."""
        return self.property_damage_usd + self.crop_damage_usd


@dataclass
class StormDataset:
    """Loader result: the events plus what we noticed while reading them."""
    events: List[StormEvent]
    source_path: Optional[str] = None
    # column -> number of NA cells seen in the raw file
    missing: Dict[str, int] = field(default_factory=dict)


# -----------------------------
# Aggregate rows (one per normalized event type)
# -----------------------------

@dataclass(frozen=True)
class EventCount:
    event_type: str
    events: int


@dataclass(frozen=True)
class CasualtyTotal:
    event_type: str
    fatalities: float
    injuries: float
    total: float


@dataclass(frozen=True)
class DamageTotal:
    """Summed damage in US$ (already multiplied out)."""
    event_type: str
    property_damage: float
    crop_damage: float
    total: float
