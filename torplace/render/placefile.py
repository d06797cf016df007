"""Render classified warnings as GRLevelX placefile text.

Output grammar::

    Title: Past TORs
    Refresh: 9999

    Color: 150 0 0
    Line: 3.5, 0, "Observed\\nIssued: ...\\nExpires: ..."
    35.1, -97.5
    ...
    End:

Blocks are written in ascending issuance order. With no reorder window
every warning is held until the input ends. A source that promises its
records trail the newest one seen by at most ``reorder_window`` lets
blocks older than that bound out early, since nothing older can follow.
"""

import heapq
import logging
from collections.abc import AsyncIterable, AsyncIterator
from datetime import datetime, timedelta

from torplace.models.common import format_utc
from torplace.models.reporting import PipelineStats
from torplace.models.warning import ClassifiedWarning

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Past TORs"
DEFAULT_REFRESH_MINUTES = 9999
MIN_VERTICES = 3


def escape_text(text: str) -> str:
    """Escape text for a quoted placefile string."""
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def warning_label(cw: ClassifiedWarning) -> str:
    w = cw.warning
    parts = [cw.category.label]
    if w.office and w.event_id is not None:
        parts.append(f"{w.office} TO.W.{w.event_id:04d}")
    parts.append(f"Issued: {format_utc(w.issued_at)}")
    parts.append(f"Expires: {format_utc(w.expires_at)}")
    # Placefile hover text uses a literal \n between lines
    return "\\n".join(escape_text(p) for p in parts)


def render_block(cw: ClassifiedWarning) -> str:
    r, g, b = cw.category.color
    lines = [
        f"Color: {r} {g} {b}",
        f'Line: {cw.category.width:g}, 0, "{warning_label(cw)}"',
    ]
    lines.extend(f"{lat}, {lon}" for lat, lon in cw.warning.polygon)
    lines.append("End:")
    return "\n".join(lines) + "\n\n"


class PlacefileRenderer:
    def __init__(
        self,
        title: str = DEFAULT_TITLE,
        refresh_minutes: int = DEFAULT_REFRESH_MINUTES,
        reorder_window: timedelta | None = None,
    ):
        self.title = title
        self.refresh_minutes = refresh_minutes
        self.reorder_window = reorder_window

    def header(self) -> str:
        return f"Title: {escape_text(self.title)}\nRefresh: {self.refresh_minutes}\n\n"

    async def render(
        self,
        classified: AsyncIterable[ClassifiedWarning],
        stats: PipelineStats | None = None,
    ) -> AsyncIterator[str]:
        """Yield the header, then one block per warning in issuance order.

        The header is produced once the first warning (or end of input)
        arrives. Warnings with fewer than three vertices are skipped.
        """
        if stats is None:
            stats = PipelineStats(start="", end="")

        pending: list[tuple[datetime, int, int, ClassifiedWarning]] = []
        newest: datetime | None = None
        last_emitted: datetime | None = None
        header_sent = False
        seq = 0

        async for cw in classified:
            if not header_sent:
                header_sent = True
                yield self.header()

            w = cw.warning
            if len(w.polygon) < MIN_VERTICES:
                stats.degenerate += 1
                logger.debug(
                    "Skipping warning issued %s with %d vertices",
                    w.issued_at, len(w.polygon),
                )
                continue

            if last_emitted is not None and w.issued_at < last_emitted:
                # Source broke its ordering promise; the block can only go out late
                logger.warning(
                    "Warning issued %s arrived after %s was written",
                    w.issued_at, last_emitted,
                )
            heapq.heappush(pending, (w.issued_at, len(w.polygon), seq, cw))
            seq += 1
            if newest is None or w.issued_at > newest:
                newest = w.issued_at

            if self.reorder_window is None:
                continue
            while pending and pending[0][0] < newest - self.reorder_window:
                issued_at, _, _, ready = heapq.heappop(pending)
                last_emitted = issued_at
                stats.rendered += 1
                yield render_block(ready)

        if not header_sent:
            yield self.header()
        while pending:
            *_, ready = heapq.heappop(pending)
            stats.rendered += 1
            yield render_block(ready)
