"""
Pipeline (StormReport)
======================

Wires the stages together:

1) Load dataset        -> StormDataset (list of immutable StormEvent records)
2) Normalize           -> new events with canonical event type / unit codes
3) Aggregate           -> counts, casualties, damages per event type
4) Rank / chart / export / DOCX on demand

Normalization and aggregation run once, the first time they are needed, and
are then reused by every output.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field, fields, replace
from typing import List, Optional
import heapq
import os

from .aggregate import Aggregates, aggregate_all
from .loader import load_storm_data
from .models import CasualtyTotal, DamageTotal, EventCount, StormDataset, StormEvent
from .normalize import normalize_events
from .report import (
    ReportConfig, TABLE_MEASURES, generate_docx_report, measure_value,
    rank_above_mean, render_table_charts,
)

# header of the exported tables, even when nothing is above the mean
TABLE_ROW_TYPES = {
    "counts": EventCount,
    "casualties": CasualtyTotal,
    "damages": DamageTotal,
}


@dataclass
class StormReport:
    """One report run over one dataset."""
    dataset: StormDataset
    _events: Optional[List[StormEvent]] = field(default=None, init=False, repr=False)
    _aggregates: Optional[Aggregates] = field(default=None, init=False, repr=False)

    @classmethod
    def from_path(cls, path: str, *, na_policy: str = "fail") -> "StormReport":
        return cls(dataset=load_storm_data(path, na_policy=na_policy))

    @property
    def events(self) -> List[StormEvent]:
        """Normalized events."""
        if self._events is None:
            self._events = normalize_events(self.dataset.events)
        return self._events

    @property
    def aggregates(self) -> Aggregates:
        if self._aggregates is None:
            self._aggregates = aggregate_all(self.events)
        return self._aggregates

    # ---------------- Tables ----------------
    def table(self, name: str) -> list:
        """Full (unranked) summary table: counts | casualties | damages."""
        if name not in TABLE_MEASURES:
            raise ValueError("table must be: counts, casualties, damages")
        return getattr(self.aggregates, name)

    def ranked(self, name: str) -> list:
        """Above-mean rows of a table, largest first."""
        rows = self.table(name)
        return rank_above_mean(rows, TABLE_MEASURES[name][0])

    def top_k(self, name: str, k: int) -> list:
        """k largest rows of a table by its measure (ignores the mean filter)."""
        rows = self.table(name)
        measure, _ = TABLE_MEASURES[name]
        if k <= 0:
            return []
        heap: List[tuple] = []
        for i, r in enumerate(rows):
            v = measure_value(r, measure)
            # -i: on equal values the earlier (alphabetical) row wins
            item = (v, -i)
            if len(heap) < k:
                heapq.heappush(heap, item)
            elif item > heap[0]:
                heapq.heapreplace(heap, item)
        heap.sort(reverse=True)
        return [rows[-i] for _, i in heap]

    # ---------------- Output operations ----------------
    def export_csv(self, name: str, path: str) -> None:
        """Write the ranked table to CSV (pandas)."""
        import pandas as pd
        rows = self.ranked(name)
        columns = [f.name for f in fields(TABLE_ROW_TYPES[name])]
        df = pd.DataFrame([asdict(r) for r in rows], columns=columns)
        df.to_csv(path, index=False)

    def export_json(self, name: str, path: str) -> None:
        """Export the ranked table to a JSON file (list of objects)."""
        import json
        payload = [asdict(r) for r in self.ranked(name)]
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)

    def write_exports(self, out_dir: str, fmt: str = "csv") -> List[str]:
        if fmt not in ("csv", "json"):
            raise ValueError("export format must be: csv | json")
        os.makedirs(out_dir, exist_ok=True)
        paths: List[str] = []
        for name in TABLE_MEASURES:
            path = os.path.join(out_dir, f"{name}.{fmt}")
            if fmt == "csv":
                self.export_csv(name, path)
            else:
                self.export_json(name, path)
            paths.append(path)
        return paths

    def write_charts(self, out_dir: str) -> List[str]:
        return [path for _, path in render_table_charts(self.aggregates, out_dir)]

    def write_report(self, path: str, *, config: Optional[ReportConfig] = None) -> str:
        config = config or ReportConfig()
        if config.citation.file_name is None and self.dataset.source_path:
            # the caller's config stays untouched
            citation = replace(config.citation, file_name=os.path.basename(self.dataset.source_path))
            config = replace(config, citation=citation)
        return generate_docx_report(
            self.events, self.aggregates, path,
            config=config, missing=self.dataset.missing,
        )
