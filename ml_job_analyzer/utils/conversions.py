"""Data conversion utilities for the ML Job Analyzer.

This module provides conversion functions between different data formats:
- Elasticsearch byte-size strings to bytes and back
- Datetime strings to epoch milliseconds
- Aggregation-safe names for field names
"""
import math
import re
from datetime import datetime
from datetime import timezone
from typing import Dict
from typing import Iterable
from typing import Union

# Limits are compared in decimal multiples, the same way the ML UI reads them.
BYTE_UNITS = {
    "B": 1,
    "KB": 1000,
    "MB": 1000**2,
    "GB": 1000**3,
    "TB": 1000**4,
    "PB": 1000**5,
}

_BYTE_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmgtp]?b)?\s*$", re.IGNORECASE)


def parse_byte_size(value: Union[str, int, float]) -> int:
    """Convert a byte-size value such as '12mb' or '1.5GB' to a number of bytes.

    Bare numbers are taken as bytes.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid byte size: {value!r}")
    if isinstance(value, (int, float)):
        if value < 0:
            raise ValueError(f"Invalid byte size: {value!r}")
        return int(value)

    match = _BYTE_SIZE_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Invalid byte size: {value!r}")
    number, unit = match.groups()
    return int(float(number) * BYTE_UNITS[(unit or "b").upper()])


def format_megabytes(num_bytes: int) -> str:
    """Format a byte count as whole megabytes, rounding down, e.g. '2048MB'."""
    return f"{math.floor(num_bytes / BYTE_UNITS['MB'])}MB"


def convert_dt_to_ms(ts: str) -> int:
    """Convert datetime string to milliseconds since epoch.

    Accepts ISO 8601 strings ('2023-10-03T22:34:40.240Z', '2023-10-03') and
    plain epoch milliseconds. Naive datetimes are read as UTC.
    """
    ts = ts.strip()
    if ts.isdigit():
        return int(ts)
    dt = datetime.fromisoformat(ts.replace("Z", "+00:00").replace("GMT", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def safe_aggregation_name(field_name: str) -> str:
    """Replace characters Elasticsearch rejects in aggregation names."""
    return re.sub(r"[^a-zA-Z0-9_]", "_", field_name)


def aggregation_names(field_names: Iterable[str]) -> Dict[str, str]:
    """Map each field to a distinct aggregation name.

    Fields keep their safe name unless another field already took it, in
    which case they fall back to ``field_<index>``.
    """
    names: Dict[str, str] = {}
    used = set()
    for index, field_name in enumerate(dict.fromkeys(field_names)):
        name = safe_aggregation_name(field_name)
        if name in used:
            name = f"field_{index}"
            while name in used:
                name = f"{name}_"
        used.add(name)
        names[field_name] = name
    return names
