"""IEM NOAAPort archive client: streams tornado warnings for a date range."""

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator, Iterator
from datetime import date, timedelta
from enum import StrEnum
from itertools import islice
from typing import Protocol

import httpx

from torplace.ingest.noaaport import (
    FilteredProductError,
    MalformedRecordError,
    NoaaportTextDecoder,
    WarningDecoder,
)
from torplace.models.common import TorplaceError
from torplace.models.reporting import PipelineStats
from torplace.models.warning import DateInterval, RawWarning

logger = logging.getLogger(__name__)

IEM_BASE_URL = "https://mesonet.agron.iastate.edu"
DEFAULT_USER_AGENT = "torplace/0.1.0"
DEFAULT_MAX_CONCURRENCY = 8
MAX_RETRIES = 1
RETRY_STATUS_CODES = (429, 500, 502, 503, 504)

# Day files are grouped by receipt date and each is yielded sorted, so a
# record can only trail the newest one already yielded by less than a day.
ARCHIVE_MAX_DISORDER = timedelta(days=1)


class UpstreamReason(StrEnum):
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    STATUS = "status"
    PAYLOAD = "payload"


class UpstreamError(TorplaceError):
    """Raised when the archive cannot be read. ``reason`` is safe to show users."""

    def __init__(self, reason: UpstreamReason, message: str):
        super().__init__(message)
        self.reason = reason


class WarningSource(Protocol):
    """Anything that yields RawWarning records for a DateInterval.

    ``max_disorder`` bounds how far a record's issuance may trail the
    newest one yielded before it. ``None`` promises no order at all.
    """

    max_disorder: timedelta | None

    def fetch(
        self, interval: DateInterval, stats: PipelineStats | None = None
    ) -> AsyncIterator[RawWarning]: ...


def archive_days(interval: DateInterval) -> Iterator[date]:
    """Day files to read for the interval.

    Includes the day after ``end``: a warning issued late on the last day
    may be received after midnight UTC.
    """
    yield from interval.days()
    if interval.end < date.max:
        yield interval.end + timedelta(days=1)


class ArchiveClient:
    max_disorder = ARCHIVE_MAX_DISORDER

    def __init__(
        self,
        base_url: str = IEM_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
        retry_delay: float = 1.0,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        decoder: WarningDecoder | None = None,
    ):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self.retry_delay = retry_delay
        self.max_concurrency = max_concurrency
        self.decoder = decoder or NoaaportTextDecoder()

    def day_url(self, day: date) -> str:
        return (
            f"{self.base_url}/archive/data/{day:%Y/%m/%d}"
            f"/text/noaaport/TOR_{day:%Y%m%d}.txt"
        )

    async def fetch(
        self, interval: DateInterval, stats: PipelineStats | None = None
    ) -> AsyncIterator[RawWarning]:
        """Yield warnings issued within the interval, one archive day at a time.

        Up to ``max_concurrency`` day files are in flight at once; days are
        still yielded in order, each sorted by issuance. Malformed and test
        products are skipped and counted in ``stats``. Raises UpstreamError
        if a day file cannot be retrieved.
        """
        if stats is None:
            stats = PipelineStats(start=str(interval.start), end=str(interval.end))

        async with httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
            follow_redirects=True,
        ) as client:
            days = archive_days(interval)
            pending: deque[tuple[date, asyncio.Task]] = deque()

            def schedule(count: int) -> None:
                for day in islice(days, count):
                    pending.append((day, asyncio.create_task(self._get_day(client, day))))

            schedule(self.max_concurrency)
            try:
                while pending:
                    day, task = pending.popleft()
                    payload = await task
                    stats.days_requested += 1
                    if payload is None:
                        stats.days_empty += 1
                        logger.debug("No TOR archive for %s", day)
                    else:
                        for warning in self._decode_day(payload, day, interval, stats):
                            yield warning
                    schedule(1)
            finally:
                for _, task in pending:
                    task.cancel()
                await asyncio.gather(*(task for _, task in pending), return_exceptions=True)

    def _decode_day(
        self, payload: str, day: date, interval: DateInterval, stats: PipelineStats
    ) -> list[RawWarning]:
        warnings = []
        for item in self.decoder.decode(payload):
            stats.products_seen += 1
            if isinstance(item, FilteredProductError):
                stats.filtered += 1
                continue
            if isinstance(item, MalformedRecordError):
                stats.malformed += 1
                logger.debug("Skipping malformed product in %s: %s", day, item)
                continue
            if not interval.contains(item.issued_at):
                stats.out_of_range += 1
                continue
            warnings.append(item)
        warnings.sort(key=lambda w: w.issued_at)
        return warnings

    async def _get_day(self, client: httpx.AsyncClient, day: date) -> str | None:
        """Fetch one day file. Returns None when the archive has no file.

        Retries once on transport errors and 429/5xx.
        """
        url = self.day_url(day)
        for attempt in range(MAX_RETRIES + 1):
            can_retry = attempt < MAX_RETRIES
            try:
                resp = await client.get(url)
            except httpx.RequestError as e:
                if not can_retry:
                    reason = (
                        UpstreamReason.TIMEOUT
                        if isinstance(e, httpx.TimeoutException)
                        else UpstreamReason.TRANSPORT
                    )
                    logger.error("Archive request failed for %s: %s", url, e)
                    raise UpstreamError(reason, f"archive request failed for {day}") from e
                logger.warning(
                    "Archive request error, retrying in %.1fs: %s", self.retry_delay, e
                )
            else:
                if resp.status_code not in RETRY_STATUS_CODES or not can_retry:
                    return _read_body(resp, day)
                logger.warning(
                    "Archive %s returned %d, retrying in %.1fs",
                    url, resp.status_code, self.retry_delay,
                )
            await asyncio.sleep(self.retry_delay)
        return None


def _read_body(resp: httpx.Response, day: date) -> str | None:
    if resp.status_code == 404:
        return None
    if not resp.is_success:
        logger.error("Archive returned HTTP %d for %s", resp.status_code, day)
        raise UpstreamError(
            UpstreamReason.STATUS, f"archive returned HTTP {resp.status_code} for {day}"
        )
    try:
        return resp.content.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.error("Archive payload for %s is not UTF-8: %s", day, e)
        raise UpstreamError(UpstreamReason.PAYLOAD, f"undecodable payload for {day}") from e
