"""Per-request pipeline counters."""

from dataclasses import dataclass, field


@dataclass
class PipelineStats:
    start: str
    end: str
    days_requested: int = 0
    days_empty: int = 0
    products_seen: int = 0
    filtered: int = 0
    malformed: int = 0
    out_of_range: int = 0
    degenerate: int = 0
    rendered: int = 0
    category_counts: dict[str, int] = field(default_factory=dict)
    unrecognized_tags: dict[str, int] = field(default_factory=dict)
    duration_seconds: float = 0.0
    error: str | None = None
