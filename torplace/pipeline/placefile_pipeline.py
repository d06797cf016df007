"""Placefile pipeline: one request's archive read, classification and render."""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import aclosing

from torplace.config.schema import ServiceConfig
from torplace.ingest.archive_client import ArchiveClient, UpstreamError, WarningSource
from torplace.models.reporting import PipelineStats
from torplace.models.warning import ClassifiedWarning, DateInterval, RawWarning
from torplace.render.classifier import classify_warning, unrecognized_tags
from torplace.render.placefile import PlacefileRenderer
from torplace.reporting.formatters import format_stats_text

logger = logging.getLogger(__name__)


def build_archive_client(config: ServiceConfig) -> ArchiveClient:
    return ArchiveClient(
        base_url=config.archive.base_url,
        user_agent=config.archive.user_agent,
        timeout=config.archive.timeout,
        retry_delay=config.archive.retry_delay,
        max_concurrency=config.archive.max_concurrency,
    )


class PlacefilePipeline:
    """Builds a fresh stream per call; holds no state between requests."""

    def __init__(self, config: ServiceConfig, source: WarningSource | None = None):
        self.config = config
        self.source = source or build_archive_client(config)
        self.renderer = PlacefileRenderer(
            title=config.placefile.title,
            refresh_minutes=config.placefile.refresh_minutes,
            reorder_window=self.source.max_disorder,
        )

    async def run(
        self, interval: DateInterval, stats: PipelineStats | None = None
    ) -> AsyncIterator[str]:
        """Yield placefile text chunks for the interval.

        Raises UpstreamError if the archive fails; chunks already yielded
        stay valid placefile text.
        """
        if stats is None:
            stats = PipelineStats(start=str(interval.start), end=str(interval.end))
        start_time = time.monotonic()
        try:
            async with aclosing(self.source.fetch(interval, stats)) as warnings:
                chunks = self.renderer.render(self._classify(warnings, stats), stats)
                async with aclosing(chunks):
                    async for chunk in chunks:
                        yield chunk
        except UpstreamError as e:
            stats.error = f"upstream {e.reason}"
            raise
        finally:
            stats.duration_seconds = time.monotonic() - start_time
            logger.info("\n%s", format_stats_text(stats))

    async def open(self, interval: DateInterval) -> AsyncIterator[str]:
        """Start the stream and wait for its first chunk.

        Upstream failures before any output propagate as UpstreamError so
        the caller can still choose an error status. Later failures end
        the stream with a placefile comment.
        """
        stream = self.run(interval)
        try:
            first = await anext(stream)
        except BaseException:
            await stream.aclose()
            raise
        return _continue_stream(first, stream)

    async def _classify(
        self, warnings: AsyncIterator[RawWarning], stats: PipelineStats
    ) -> AsyncIterator[ClassifiedWarning]:
        async for warning in warnings:
            cw = classify_warning(warning)
            label = cw.category.label
            stats.category_counts[label] = stats.category_counts.get(label, 0) + 1
            for tag in sorted(unrecognized_tags(warning)):
                logger.debug("Ignoring unrecognized tag %r on %s", tag, warning.issued_at)
                stats.unrecognized_tags[tag] = stats.unrecognized_tags.get(tag, 0) + 1
            yield cw


async def _continue_stream(first: str, stream: AsyncIterator[str]) -> AsyncIterator[str]:
    async with aclosing(stream):
        yield first
        try:
            async for chunk in stream:
                yield chunk
        except UpstreamError as e:
            logger.error("Upstream failed mid-stream, truncating output: %s", e)
            yield f"; upstream error: {e.reason}, output truncated\n"
