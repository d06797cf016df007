"""Warning data models: date intervals, raw archive records, categories."""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from enum import Enum

LatLon = tuple[float, float]


@dataclass(frozen=True)
class DateInterval:
    """Inclusive range of whole UTC calendar days."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"start {self.start} is after end {self.end}")

    @property
    def window_start(self) -> datetime:
        return datetime.combine(self.start, time.min, tzinfo=UTC)

    @property
    def window_end(self) -> datetime:
        return datetime.combine(self.end, time(23, 59, 59), tzinfo=UTC)

    def contains(self, ts: datetime) -> bool:
        return self.window_start <= ts <= self.window_end

    def days(self) -> Iterator[date]:
        for i in range((self.end - self.start).days + 1):
            yield self.start + timedelta(days=i)


@dataclass(frozen=True)
class RawWarning:
    issued_at: datetime
    expires_at: datetime
    polygon: tuple[LatLon, ...]
    tags: frozenset[str] = frozenset()
    office: str | None = None
    event_id: int | None = None


class Category(Enum):
    """Display category: (label, RGB color, outline width)."""

    RADAR_INDICATED = ("Radar Indicated", (255, 0, 0), 3.0)
    OBSERVED = ("Observed", (150, 0, 0), 3.5)
    PDS = ("PDS", (255, 0, 255), 4.0)
    TORNADO_EMERGENCY = ("Tornado Emergency", (0, 0, 0), 5.0)

    def __init__(self, label: str, color: tuple[int, int, int], width: float):
        self.label = label
        self.color = color
        self.width = width


@dataclass(frozen=True)
class ClassifiedWarning:
    warning: RawWarning
    category: Category
