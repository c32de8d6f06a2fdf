"""
Dataset loader (CSV / Excel -> StormEvent list)
===============================================

This module reads the NOAA Storm Database export and converts each row into a
`StormEvent` object.

Key ideas:
- Any pandas-readable table works. `.csv.bz2` is decompressed on the fly
  (compression="infer"), `.xlsx` goes through openpyxl.
- Column names are matched loosely ("EVTYPE", "evtype", "Ev Type") because
  re-exports of the dataset do not always keep the original header.
- Missing values in numeric columns are an explicit choice: fail (default) or
  treat as zero. Text columns just become "".
- The loader never writes to the input file.
"""

from __future__ import annotations
from typing import Dict, List
import os
import re

import pandas as pd

from .models import StormDataset, StormEvent


class LoadError(ValueError):
    """The dataset could not be read into StormEvent records."""


# field name on StormEvent -> column in the source file
REQUIRED_COLUMNS = {
    "event_type": "EVTYPE",
    "fatalities": "FATALITIES",
    "injuries": "INJURIES",
    "property_damage_magnitude": "PROPDMG",
    "property_damage_unit": "PROPDMGEXP",
    "crop_damage_magnitude": "CROPDMG",
    "crop_damage_unit": "CROPDMGEXP",
}

NUMERIC_FIELDS = ("fatalities", "injuries", "property_damage_magnitude", "crop_damage_magnitude")
TEXT_FIELDS = ("event_type", "property_damage_unit", "crop_damage_unit")

NA_POLICIES = ("fail", "zero")

_EXCEL_SUFFIXES = (".xlsx",)


def _to_str(x) -> str:
    if pd.isna(x): return ""
    if isinstance(x, float) and x.is_integer():
        # a unit column read as numbers ("0", "5") comes back as 0.0 / 5.0
        return str(int(x))
    return str(x)


def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())


def _col(df: pd.DataFrame, name: str) -> str:
    """Find `name` among the columns, exact match first, then loosely."""
    cols = list(df.columns)
    if name in cols:
        return name
    norm_map = {_norm(c): c for c in cols}
    nn = _norm(name)
    if nn in norm_map:
        return norm_map[nn]
    raise LoadError(f"Missing required column {name!r}. Available={cols}")


def _read_table(path: str) -> pd.DataFrame:
    if not os.path.exists(path):
        raise LoadError(f"Dataset file not found: {path}")
    try:
        if path.lower().endswith(_EXCEL_SUFFIXES):
            df = pd.read_excel(path, engine="openpyxl")
        else:
            # text columns stay text: PROPDMGEXP mixes letters and digits
            df = pd.read_csv(path, compression="infer", low_memory=False)
    except Exception as e:
        raise LoadError(f"Could not parse {path}: {e}") from e
    df.rename(columns={c: str(c).strip() for c in df.columns}, inplace=True)
    return df


def load_storm_data(path: str, *, na_policy: str = "fail") -> StormDataset:
    """
    Load the storm table at `path` into a StormDataset.

    na_policy:
        "fail" -> raise LoadError if any numeric column has missing values
        "zero" -> missing numeric values count as 0
    """
    if na_policy not in NA_POLICIES:
        raise ValueError(f"na_policy must be one of {NA_POLICIES}, got {na_policy!r}")

    df = _read_table(path)
    cols = {f: _col(df, c) for f, c in REQUIRED_COLUMNS.items()}

    missing: Dict[str, int] = {}
    numeric: Dict[str, pd.Series] = {}
    for f in NUMERIC_FIELDS:
        # non-numeric junk is treated like a blank cell
        values = pd.to_numeric(df[cols[f]], errors="coerce")
        missing[REQUIRED_COLUMNS[f]] = int(values.isna().sum())
        numeric[f] = values
    for f in TEXT_FIELDS:
        missing[REQUIRED_COLUMNS[f]] = int(df[cols[f]].isna().sum())

    bad = {REQUIRED_COLUMNS[f]: missing[REQUIRED_COLUMNS[f]] for f in NUMERIC_FIELDS if missing[REQUIRED_COLUMNS[f]]}
    if bad and na_policy == "fail":
        raise LoadError(
            f"Missing values in numeric columns {bad}. "
            "Re-run with na_policy='zero' to count them as 0."
        )

    for f in NUMERIC_FIELDS:
        values = numeric[f].fillna(0.0).astype(float)
        if (values < 0).any():
            raise LoadError(f"Negative values in column {REQUIRED_COLUMNS[f]!r}")
        numeric[f] = values

    events: List[StormEvent] = []
    rows = zip(
        df[cols["event_type"]],
        numeric["fatalities"],
        numeric["injuries"],
        numeric["property_damage_magnitude"],
        df[cols["property_damage_unit"]],
        numeric["crop_damage_magnitude"],
        df[cols["crop_damage_unit"]],
    )
    for i, (evtype, fat, inj, prop, prop_exp, crop, crop_exp) in enumerate(rows):
        events.append(StormEvent(
            event_id=i,
            event_type=_to_str(evtype),
            fatalities=float(fat),
            injuries=float(inj),
            property_damage_magnitude=float(prop),
            property_damage_unit=_to_str(prop_exp),
            crop_damage_magnitude=float(crop),
            crop_damage_unit=_to_str(crop_exp),
        ))

    return StormDataset(events=events, source_path=path, missing=missing)
