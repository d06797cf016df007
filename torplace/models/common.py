"""Common types and helpers shared across models."""

from datetime import UTC, datetime
from enum import StrEnum


class WarningTag(StrEnum):
    OBSERVED = "observed"
    PDS = "pds"
    TORNADO_EMERGENCY = "tornado_emergency"


KNOWN_TAGS: frozenset[str] = frozenset(WarningTag)


class TorplaceError(Exception):
    """Base class for errors surfaced by the placefile pipeline."""


def format_utc(ts: datetime) -> str:
    return ts.astimezone(UTC).strftime("%Y-%m-%d %H:%M UTC")
