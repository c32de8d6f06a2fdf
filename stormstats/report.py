from __future__ import annotations

"""
stormstats report generator
---------------------------
Turns the three summary tables into something a reader can use:

- ranking: keep the event types at or above the table's mean, largest first
- one horizontal bar chart per table (matplotlib)
- a few narrative sentences about the top categories
- an optional DOCX document bundling all of the above (python-docx)

Plotting and DOCX libraries are imported lazily so the pipeline itself (load,
normalize, aggregate) runs without them.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import io
import math
import os
import tempfile

from .aggregate import Aggregates, unit_code_counts
from .models import StormEvent


# -----------------------------
# Table metadata
# -----------------------------

# table name -> (ranking measure, label for the value axis)
TABLE_MEASURES: Dict[str, Tuple[str, str]] = {
    "counts": ("events", "Number of events"),
    "casualties": ("total", "Fatalities + injuries"),
    "damages": ("total", "Property + crop damage (US$)"),
}

TABLE_TITLES = {
    "counts": "Most frequent event types",
    "casualties": "Event types most harmful to population health",
    "damages": "Event types with the greatest economic consequences",
}


# -----------------------------
# Configuration / citation types
# -----------------------------

@dataclass
class DatasetCitation:
    """Minimal dataset citation metadata for the DOCX report."""
    database_name: str = "Storm Events Database"
    institutional_author: str = "U.S. National Oceanic and Atmospheric Administration (NOAA)"
    website: str = "https://www.ncdc.noaa.gov/stormevents/"
    file_name: Optional[str] = None
    file_note: Optional[str] = "Historical storm records, 1950 onwards. Early years record fewer event types."


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Storm Event Impact Report"
    subtitle: str = "Population health and economic consequences by event type"
    citation: DatasetCitation = field(default_factory=DatasetCitation)

    # How many ranked rows to show per table
    top_n: int = 10


# -----------------------------
# Ranking
# -----------------------------

def measure_value(row, measure: str) -> float:
    try:
        return float(getattr(row, measure))
    except AttributeError as e:
        raise ValueError(f"{type(row).__name__} has no measure {measure!r}") from e


def rank_above_mean(rows: Sequence, measure: str) -> list:
    """Rows whose `measure` is >= the mean over all rows, largest first.

    Ties keep their input order.
    """
    if not rows:
        return []
    import numpy as np

    values = [measure_value(r, measure) for r in rows]
    mean = float(np.mean(values))
    kept = [r for r, v in zip(rows, values) if v >= mean or math.isclose(v, mean)]
    return sorted(kept, key=lambda r: measure_value(r, measure), reverse=True)


# -----------------------------
# Formatting helpers
# -----------------------------

def fmt_number(v: float) -> str:
    return f"{int(round(v)):,}"


def fmt_usd(v: float) -> str:
    """Short US$ string: $1.23B, $45.6M, $7.8K, $12."""
    for scale, suffix in ((1e9, "B"), (1e6, "M"), (1e3, "K")):
        if abs(v) >= scale:
            return f"${v / scale:.2f}{suffix}"
    return f"${v:,.0f}"


def _share(part: float, whole: float) -> str:
    if whole <= 0:
        return "0.0%"
    return f"{100.0 * part / whole:.1f}%"


# -----------------------------
# Narrative
# -----------------------------

def summarize(aggregates: Aggregates, top: int = 3) -> List[str]:
    """A few plain sentences about the top categories of each table."""
    lines: List[str] = []

    total_events = sum(r.events for r in aggregates.counts)
    ranked = rank_above_mean(aggregates.counts, "events")
    if ranked:
        lead = ranked[0]
        lines.append(
            f"{total_events:,} events were recorded across {len(aggregates.counts):,} distinct event types; "
            f"{lead.event_type} is the most frequent with {lead.events:,} events "
            f"({_share(lead.events, total_events)} of all records)."
        )

    total_cas = sum(r.total for r in aggregates.casualties)
    ranked = rank_above_mean(aggregates.casualties, "total")
    if ranked:
        lead = ranked[0]
        names = ", ".join(r.event_type for r in ranked[:top])
        lines.append(
            f"{lead.event_type} is the most harmful to population health with "
            f"{fmt_number(lead.fatalities)} fatalities and {fmt_number(lead.injuries)} injuries "
            f"({_share(lead.total, total_cas)} of all casualties). Top {min(top, len(ranked))}: {names}."
        )
    else:
        lines.append("No fatalities or injuries were recorded.")

    total_dmg = sum(r.total for r in aggregates.damages)
    ranked = rank_above_mean(aggregates.damages, "total")
    if ranked:
        lead = ranked[0]
        names = ", ".join(r.event_type for r in ranked[:top])
        lines.append(
            f"{lead.event_type} has the greatest economic consequences with {fmt_usd(lead.total)} "
            f"in property and crop damage ({_share(lead.total, total_dmg)} of {fmt_usd(total_dmg)}). "
            f"Top {min(top, len(ranked))}: {names}."
        )
    else:
        lines.append("No property or crop damage was recorded.")

    return lines


# -----------------------------
# Charts
# -----------------------------

def _pyplot():
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib.\n"
            "Install it with: python -m pip install matplotlib"
        ) from e
    return plt


def render_bar_chart(
    rows: Sequence,
    measure: str,
    title: str,
    out_path: str,
    *,
    xlabel: str = "",
) -> str:
    """Horizontal bar chart: event type on the y axis, measure on the x axis.

    `rows` should already be ranked; the first row ends up at the top.
    """
    plt = _pyplot()
    import numpy as np

    labels = [r.event_type for r in rows]
    values = [measure_value(r, measure) for r in rows]
    pos = np.arange(len(rows))

    fig, ax = plt.subplots(figsize=(8, max(2.5, 0.4 * len(rows) + 1.5)))
    ax.barh(pos, values, color="C0", edgecolor="black", linewidth=0.6)
    ax.set_yticks(pos)
    ax.set_yticklabels(labels)
    ax.invert_yaxis()
    ax.set_title(title)
    ax.set_xlabel(xlabel)
    fig.tight_layout()

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    return out_path


def render_table_charts(aggregates: Aggregates, out_dir: str) -> List[Tuple[str, str]]:
    """One chart per table, above-mean rows only. Returns (table, path) pairs.

    Tables with nothing to rank are skipped.
    """
    out: List[Tuple[str, str]] = []
    for table, (measure, label) in TABLE_MEASURES.items():
        ranked = rank_above_mean(getattr(aggregates, table), measure)
        if not ranked:
            continue
        path = os.path.join(out_dir, f"{table}.png")
        render_bar_chart(ranked, measure, TABLE_TITLES[table], path, xlabel=label)
        out.append((table, path))
    return out


# -----------------------------
# DOCX report
# -----------------------------

def generate_docx_report(
    events: Sequence[StormEvent],
    aggregates: Aggregates,
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
    missing: Optional[Dict[str, int]] = None,
) -> str:
    """
    Generate a DOCX report + charts for the (normalized) events and their
    summary tables. Returns `out_path`.
    """
    config = config or ReportConfig()

    # Lazy imports: only required when a DOCX is asked for.
    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    if not events:
        raise ValueError("No events to report on (dataset is empty).")

    # charts are read back into memory so the temporary PNGs can go right away
    charts: Dict[str, io.BytesIO] = {}
    with tempfile.TemporaryDirectory(prefix="stormstats_report_") as tmpdir:
        for table, path in render_table_charts(aggregates, tmpdir):
            with open(path, "rb") as f:
                charts[table] = io.BytesIO(f.read())

    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    def _table(header: List[str], rows: List[List[str]]) -> None:
        t = doc.add_table(rows=1, cols=len(header))
        t.style = "Table Grid"
        for cell, text in zip(t.rows[0].cells, header):
            cell.text = text
        for values in rows:
            for cell, text in zip(t.add_row().cells, values):
                cell.text = text

    _center_title(config.title, 22, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_paragraph("")
    _kv("Records", f"{len(events):,}")
    _kv("Distinct event types (after normalization)", f"{len(aggregates.counts):,}")
    if config.citation.file_name:
        _kv("Data file", config.citation.file_name)

    # Synopsis first, details after
    doc.add_heading("Synopsis", level=1)
    for line in summarize(aggregates):
        doc.add_paragraph(line)

    doc.add_heading("Dataset citation", level=1)
    cit = config.citation
    if cit.file_note:
        doc.add_paragraph(cit.file_note)
    doc.add_paragraph(f"{cit.institutional_author}. {cit.database_name}. {cit.website}.")

    doc.add_heading("Columns used (data dictionary)", level=1)
    _table(["Column", "Meaning"], [
        ["EVTYPE", "Free-text event type (normalized: trimmed, upper-cased)"],
        ["FATALITIES", "Deaths attributed to the event"],
        ["INJURIES", "Injuries attributed to the event"],
        ["PROPDMG", "Property damage magnitude"],
        ["PROPDMGEXP", "Property damage unit code (H, K, M, B; anything else = 1)"],
        ["CROPDMG", "Crop damage magnitude"],
        ["CROPDMGEXP", "Crop damage unit code (H, K, M, B; anything else = 1)"],
    ])

    if missing is not None:
        doc.add_heading("Data completeness", level=1)
        doc.add_paragraph("Missing cells per column in the raw file:")
        _table(["Column", "Available", "Missing"], [
            [col, f"{len(events) - n:,}", f"{n:,}"] for col, n in missing.items()
        ])

    doc.add_heading("Unit codes (data quality)", level=1)
    doc.add_paragraph(
        "Codes outside H/K/M/B are kept with a multiplier of 1; they are listed "
        "here so their weight in the totals can be judged."
    )
    for which in ("property", "crop"):
        doc.add_paragraph(f"{which.capitalize()} damage unit codes:")
        _table(["Code", "Records", "Known"], [
            [code or "(empty)", f"{n:,}", "yes" if known else "no (x1)"]
            for code, n, known in unit_code_counts(events, which)
        ])

    doc.add_heading("Results", level=1)
    for table, (measure, label) in TABLE_MEASURES.items():
        rows = getattr(aggregates, table)
        ranked = rank_above_mean(rows, measure)
        doc.add_heading(TABLE_TITLES[table], level=2)
        if not ranked:
            doc.add_paragraph("Nothing to rank.")
            continue
        doc.add_paragraph(
            f"{len(ranked)} of {len(rows)} event types are at or above the mean "
            f"({label.lower()}). Top {min(config.top_n, len(ranked))}:"
        )
        shown = ranked[:config.top_n]
        if table == "counts":
            _table(["Event type", "Events"], [[r.event_type, f"{r.events:,}"] for r in shown])
        elif table == "casualties":
            _table(["Event type", "Fatalities", "Injuries", "Total"], [
                [r.event_type, fmt_number(r.fatalities), fmt_number(r.injuries), fmt_number(r.total)]
                for r in shown
            ])
        else:
            _table(["Event type", "Property", "Crop", "Total"], [
                [r.event_type, fmt_usd(r.property_damage), fmt_usd(r.crop_damage), fmt_usd(r.total)]
                for r in shown
            ])
        if table in charts:
            doc.add_paragraph("")
            doc.add_picture(charts[table], width=Inches(6.0))

    doc.add_heading("Known limitations", level=1)
    for note in [
        "Event types are only trimmed and upper-cased; spelling variants of the same "
        "phenomenon (e.g. TSTM WIND / THUNDERSTORM WIND) are counted separately.",
        "Damage amounts are nominal US$, not adjusted for inflation.",
        "Unknown unit codes are treated as a multiplier of 1.",
    ]:
        doc.add_paragraph(note, style="List Bullet")

    # -----------------------------
    # Reproducibility footer
    # -----------------------------
    from . import __version__ as stormstats_version
    from datetime import datetime as _dt

    doc.add_heading("Reproducibility footer", level=1)
    doc.add_paragraph(f"stormstats version: {stormstats_version}")
    doc.add_paragraph(f"Report generated at: {_dt.now().isoformat(timespec='seconds')}")
    doc.add_paragraph(f"Records: {len(events):,}")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    return out_path
