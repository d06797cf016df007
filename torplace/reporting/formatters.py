"""Output formatters for pipeline summaries."""

import json

from torplace.models.reporting import PipelineStats


def format_stats_text(s: PipelineStats) -> str:
    """Plain text summary for logging."""
    lines = [
        f"=== Placefile {s.start}..{s.end} ===",
        f"Archive: {s.days_requested} days read, {s.days_empty} empty, "
        f"{s.products_seen} products",
        f"Skipped: {s.filtered} filtered, {s.malformed} malformed, "
        f"{s.out_of_range} out of range, {s.degenerate} degenerate",
        f"Rendered: {s.rendered} warnings",
    ]
    if s.category_counts:
        lines.append(
            "Categories: "
            + ", ".join(f"{k}={v}" for k, v in sorted(s.category_counts.items()))
        )
    if s.unrecognized_tags:
        lines.append(
            "Unrecognized tags: "
            + ", ".join(f"{k}={v}" for k, v in sorted(s.unrecognized_tags.items()))
        )
    if s.error:
        lines.append(f"Error: {s.error}")
    lines.append(f"Duration: {s.duration_seconds:.1f}s")
    return "\n".join(lines)


def format_stats_json(s: PipelineStats) -> str:
    """JSON summary for programmatic consumption."""
    data = {
        "start": s.start,
        "end": s.end,
        "days_requested": s.days_requested,
        "days_empty": s.days_empty,
        "products_seen": s.products_seen,
        "filtered": s.filtered,
        "malformed": s.malformed,
        "out_of_range": s.out_of_range,
        "degenerate": s.degenerate,
        "rendered": s.rendered,
        "category_counts": s.category_counts,
        "unrecognized_tags": s.unrecognized_tags,
        "duration_seconds": s.duration_seconds,
        "error": s.error,
    }
    return json.dumps(data, indent=2)
