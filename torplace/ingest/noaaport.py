"""Decode IEM NOAAPort TOR archive text into RawWarning records.

An archive day file is a concatenation of raw warning products separated
by ``$$``. Each product carries a VTEC string with issue and expiration
times and a ``LAT...LON`` block with the warning polygon in hundredths of
a degree (longitude west-positive).
"""

import re
from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Protocol

from torplace.models.common import TorplaceError, WarningTag
from torplace.models.warning import LatLon, RawWarning

PRODUCT_SEPARATOR = "$$"
MIN_PRODUCT_LENGTH = 50
VTEC_TIME_FORMAT = "%y%m%dT%H%MZ"

_LATLON_RE = re.compile(r"LAT\.\.\.LON((?:\s+\d{4,5})+)")
_VTEC_RE = re.compile(
    r"/O\.[A-Z]{3}\.([A-Z]{4})\.TO\.W\.(\d{4})\.(\d{6}T\d{4}Z)-(\d{6}T\d{4}Z)/"
)
_DAMAGE_THREAT_RE = re.compile(r"TORNADO DAMAGE THREAT\.\.\.([A-Z]+)", re.IGNORECASE)
_TEST_RE = re.compile(r"\bTEST\b")
_ERROR_PAGE_RE = re.compile(r"404 Not Found", re.IGNORECASE)

# All matching tags are attached; precedence is decided by the classifier
TAG_PATTERNS = [
    (WarningTag.TORNADO_EMERGENCY, re.compile(r"TORNADO\s+EMERGENCY", re.IGNORECASE)),
    (WarningTag.PDS, re.compile(r"PARTICULARLY\s+DANGEROUS\s+SITUATION", re.IGNORECASE)),
    (WarningTag.OBSERVED, re.compile(r"\b(?:OBSERVED|REPORTED)\b", re.IGNORECASE)),
]


class MalformedRecordError(TorplaceError):
    """Raised for a single product that cannot be turned into a RawWarning."""


class FilteredProductError(MalformedRecordError):
    """A test product or placeholder body, dropped without parsing."""


class WarningDecoder(Protocol):
    """Anything that turns one archive payload into warning records.

    ``decode`` yields either a RawWarning or a MalformedRecordError per
    product, so the caller can count failures without stopping.
    """

    def decode(self, payload: str) -> Iterator[RawWarning | MalformedRecordError]: ...


def is_valid_product(text: str) -> bool:
    """Reject test products and placeholder/error bodies."""
    if len(text.strip()) < MIN_PRODUCT_LENGTH:
        return False
    return not (_TEST_RE.search(text) or _ERROR_PAGE_RE.search(text))


def split_products(payload: str) -> Iterator[str]:
    for chunk in payload.split(PRODUCT_SEPARATOR):
        if chunk.strip():
            yield chunk


def parse_polygon(text: str) -> tuple[LatLon, ...]:
    """Extract the LAT...LON polygon and close its ring."""
    m = _LATLON_RE.search(text)
    if m is None:
        raise MalformedRecordError("no LAT...LON geometry")
    values = [int(v) for v in m.group(1).split()]
    if len(values) % 2:
        raise MalformedRecordError(f"odd coordinate count {len(values)}")

    points = [(lat / 100, -lon / 100) for lat, lon in zip(values[::2], values[1::2])]
    if len(set(points)) < 3:
        raise MalformedRecordError(f"degenerate polygon with {len(points)} vertices")
    if points[0] != points[-1]:
        points.append(points[0])
    return tuple(points)


def _parse_vtec_time(value: str) -> datetime:
    try:
        return datetime.strptime(value, VTEC_TIME_FORMAT).replace(tzinfo=UTC)
    except ValueError as e:
        raise MalformedRecordError(f"bad VTEC time {value!r}") from e


def parse_tags(text: str) -> frozenset[str]:
    tags: set[str] = {tag.value for tag, pattern in TAG_PATTERNS if pattern.search(text)}
    for level in _DAMAGE_THREAT_RE.findall(text):
        tags.add(f"damage_threat:{level.lower()}")
    return frozenset(tags)


def parse_product(text: str) -> RawWarning:
    """Parse one TOR product. Raises MalformedRecordError on bad shape."""
    vtec = _VTEC_RE.search(text)
    if vtec is None:
        raise MalformedRecordError("no tornado warning VTEC string")
    office, event_id, issued_raw, expires_raw = vtec.groups()

    # 000000T0000Z placeholders fail here as well
    issued_at = _parse_vtec_time(issued_raw)
    expires_at = _parse_vtec_time(expires_raw)
    if expires_at < issued_at:
        raise MalformedRecordError(
            f"expiration {expires_raw} precedes issuance {issued_raw}"
        )

    return RawWarning(
        issued_at=issued_at,
        expires_at=expires_at,
        polygon=parse_polygon(text),
        tags=parse_tags(text),
        office=office,
        event_id=int(event_id),
    )


class NoaaportTextDecoder:
    """Default decoder for the IEM ``TOR_YYYYMMDD.txt`` day files."""

    def decode(self, payload: str) -> Iterator[RawWarning | MalformedRecordError]:
        for product in split_products(payload):
            if not is_valid_product(product):
                yield FilteredProductError("test or placeholder product")
                continue
            try:
                yield parse_product(product)
            except MalformedRecordError as e:
                yield e
