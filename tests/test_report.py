import os
import tempfile

import pytest

from stormstats.aggregate import aggregate_all
from stormstats.models import EventCount
from stormstats.normalize import normalize_events
from stormstats.report import (
    ReportConfig, fmt_usd, generate_docx_report, rank_above_mean,
    render_bar_chart, render_table_charts, summarize,
)


def _counts(*values):
    return [EventCount(event_type=f"T{i}", events=v) for i, v in enumerate(values)]


def test_mean_filter_keeps_only_large_rows():
    rows = _counts(1, 2, 3, 100)
    ranked = rank_above_mean(rows, "events")
    assert [r.events for r in ranked] == [100]


def test_rows_equal_to_mean_are_kept():
    ranked = rank_above_mean(_counts(1, 3, 2), "events")
    assert [r.events for r in ranked] == [3, 2]


def test_ranking_is_descending_and_stable():
    rows = [EventCount("A", 5), EventCount("B", 9), EventCount("C", 5), EventCount("D", 1)]
    ranked = rank_above_mean(rows, "events")
    assert [r.event_type for r in ranked] == ["B", "A", "C"]


def test_all_equal_rows_are_all_kept():
    assert len(rank_above_mean(_counts(0.1, 0.1, 0.1), "events")) == 3


def test_empty_table():
    assert rank_above_mean([], "events") == []


def test_unknown_measure():
    with pytest.raises(ValueError):
        rank_above_mean(_counts(1), "total")


def test_fmt_usd():
    assert fmt_usd(1.5e9) == "$1.50B"
    assert fmt_usd(25_000) == "$25.00K"
    assert fmt_usd(12) == "$12"


def test_summary_names_top_categories(sample_events):
    lines = summarize(aggregate_all(normalize_events(sample_events)))
    assert len(lines) == 3
    assert "6 events" in lines[0]
    assert "TORNADO is the most harmful" in lines[1]
    assert "TORNADO has the greatest economic consequences" in lines[2]


def test_summary_without_harm():
    from conftest import make_event
    lines = summarize(aggregate_all([make_event("WIND")]))
    assert lines[1] == "No fatalities or injuries were recorded."
    assert lines[2] == "No property or crop damage was recorded."


def test_bar_chart_written(tmp_path):
    out = tmp_path / "charts" / "counts.png"
    path = render_bar_chart(_counts(4, 9), "events", "Counts", str(out), xlabel="Events")
    assert os.path.getsize(path) > 0


def test_one_chart_per_non_empty_table(tmp_path, sample_events):
    agg = aggregate_all(normalize_events(sample_events))
    charts = render_table_charts(agg, str(tmp_path))
    assert [t for t, _ in charts] == ["counts", "casualties", "damages"]
    assert all(os.path.exists(p) for _, p in charts)


def test_docx_report(tmp_path, sample_events):
    docx = pytest.importorskip("docx")
    events = normalize_events(sample_events)
    out = tmp_path / "report.docx"
    generate_docx_report(events, aggregate_all(events), str(out),
                         config=ReportConfig(top_n=2), missing={"FATALITIES": 0})
    doc = docx.Document(str(out))
    text = "\n".join(p.text for p in doc.paragraphs)
    assert "Storm Event Impact Report" in text
    assert "Known limitations" in text
    assert len(doc.inline_shapes) == 3


def test_docx_report_needs_events(tmp_path):
    with pytest.raises(ValueError):
        generate_docx_report([], aggregate_all([]), str(tmp_path / "r.docx"))


def test_docx_report_cleans_up_chart_files(tmp_path, monkeypatch, sample_events):
    pytest.importorskip("docx")
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    events = normalize_events(sample_events)
    generate_docx_report(events, aggregate_all(events), str(tmp_path / "report.docx"))
    assert list(scratch.iterdir()) == []
