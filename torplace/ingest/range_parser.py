"""Parse start/end request parameters into an inclusive DateInterval."""

import re
from collections.abc import Mapping
from datetime import date, datetime
from enum import StrEnum
from urllib.parse import parse_qsl

from torplace.models.common import TorplaceError
from torplace.models.warning import DateInterval

_DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


class RangeErrorReason(StrEnum):
    MISSING_PARAMETER = "MissingParameter"
    MALFORMED_DATE = "MalformedDate"
    INVERTED_RANGE = "InvertedRange"


class InvalidRangeError(TorplaceError):
    """Raised when the requested date range cannot be used."""

    def __init__(self, reason: RangeErrorReason, detail: str):
        super().__init__(f"{reason}: {detail}")
        self.reason = reason
        self.detail = detail


def _as_mapping(query_params: str | Mapping[str, str]) -> Mapping[str, str]:
    if isinstance(query_params, str):
        # Later duplicates win, matching dict() semantics
        return dict(parse_qsl(query_params.lstrip("?")))
    return query_params


def _parse_date(name: str, value: str) -> date:
    if not _DATE_RE.match(value):
        raise InvalidRangeError(
            RangeErrorReason.MALFORMED_DATE,
            f"{name}={value!r} is not a YYYY-MM-DD date",
        )
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise InvalidRangeError(
            RangeErrorReason.MALFORMED_DATE, f"{name}={value!r} is not a calendar date"
        ) from e


def parse(query_params: str | Mapping[str, str]) -> DateInterval:
    """Build a DateInterval from ``start`` and ``end`` query parameters.

    Accepts either a raw query string (with or without the leading ``?``)
    or an already-decoded mapping. Both bounds are whole UTC days and
    ``end`` is inclusive.
    """
    params = _as_mapping(query_params)
    values: dict[str, str] = {}
    for name in ("start", "end"):
        raw = params.get(name)
        if raw is None or not raw.strip():
            raise InvalidRangeError(
                RangeErrorReason.MISSING_PARAMETER, f"'{name}' is required"
            )
        values[name] = raw.strip()

    start = _parse_date("start", values["start"])
    end = _parse_date("end", values["end"])
    if start > end:
        raise InvalidRangeError(
            RangeErrorReason.INVERTED_RANGE, f"start {start} is after end {end}"
        )
    return DateInterval(start=start, end=end)
