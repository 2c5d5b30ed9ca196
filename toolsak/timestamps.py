"""Parse JSON-encoded timestamps: Unix epoch numbers and zone-less ISO strings."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any, Union

RawJSON = Union[str, bytes, bytearray]

_NOTZ_PATTERN = re.compile(
    r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"T(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:[.,](?P<fraction>\d+))?"
)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid character {name!r} looking for beginning of value")


def _decode(raw: RawJSON) -> Any:
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON: {exc.msg}") from exc


def _json_kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def parse_epoch_time(raw: RawJSON) -> datetime:
    """Decode a JSON number of seconds since the Unix epoch.

    Fractional seconds are dropped. A JSON null counts as zero. The result is
    an aware UTC datetime. Raises ValueError for negative numbers, for values
    that are not numbers and for malformed JSON.
    """
    value = _decode(raw)
    if value is None:
        value = 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"cannot unmarshal {_json_kind(value)} into an epoch time")

    if value < 0:
        raise ValueError("invalid epoch time")

    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"epoch time out of range: {value}") from exc


def parse_notz_time(raw: RawJSON) -> datetime:
    """Decode a JSON string of the form YYYY-MM-DDTHH:MM:SS without a zone.

    Fractional seconds after the seconds field are accepted. The time is taken
    as UTC and returned as an aware datetime. Raises ValueError for an empty
    string, for values that are not strings, for malformed JSON and for text
    that is not a valid time in that form.
    """
    value = _decode(raw)
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ValueError(f"cannot unmarshal {_json_kind(value)} into a timestamp")

    if value == "":
        raise ValueError("invalid timestamp")

    match = _NOTZ_PATTERN.fullmatch(value)
    if match is None:
        raise ValueError(f'parsing time "{value}": expected YYYY-MM-DDTHH:MM:SS')

    fraction = match["fraction"] or ""
    microsecond = int(fraction[:6].ljust(6, "0")) if fraction else 0
    try:
        return datetime(
            int(match["year"]),
            int(match["month"]),
            int(match["day"]),
            int(match["hour"]),
            int(match["minute"]),
            int(match["second"]),
            microsecond,
            tzinfo=timezone.utc,
        )
    except ValueError as exc:
        raise ValueError(f'parsing time "{value}": {exc}') from exc