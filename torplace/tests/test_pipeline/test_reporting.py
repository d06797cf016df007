"""Tests for pipeline summary formatting."""

import json

from torplace.models.reporting import PipelineStats
from torplace.reporting.formatters import format_stats_json, format_stats_text


def _stats() -> PipelineStats:
    return PipelineStats(
        start="2022-05-01",
        end="2022-05-02",
        days_requested=2,
        days_empty=1,
        products_seen=7,
        filtered=1,
        malformed=1,
        out_of_range=1,
        rendered=4,
        category_counts={"Observed": 2, "PDS": 2},
        unrecognized_tags={"damage_threat:considerable": 1},
        duration_seconds=1.25,
    )


def test_text_summary():
    text = format_stats_text(_stats())
    assert "2022-05-01..2022-05-02" in text
    assert "2 days read, 1 empty, 7 products" in text
    assert "1 filtered, 1 malformed, 1 out of range, 0 degenerate" in text
    assert "Rendered: 4 warnings" in text
    assert "Observed=2, PDS=2" in text
    assert "damage_threat:considerable=1" in text
    assert "Error" not in text


def test_text_summary_error():
    s = _stats()
    s.error = "upstream timeout"
    assert "Error: upstream timeout" in format_stats_text(s)


def test_json_summary():
    data = json.loads(format_stats_json(_stats()))
    assert data["rendered"] == 4
    assert data["category_counts"] == {"Observed": 2, "PDS": 2}
    assert data["error"] is None
