"""
structmatch.values — The canonical value model
==============================================

Every comparison in structmatch runs on one small, closed set of shapes:
the tree that ``json.loads`` produces, plus an optional point-in-time
value.

    Null      → None
    Boolean   → bool
    Number    → float        (every int / Decimal / Fraction is widened)
    String    → str
    Object    → dict         (str keys, order irrelevant)
    Array     → list         (ordered, but compared as a multiset)
    Time      → datetime     (only when time handling is requested)

Widening all numbers to float makes ``5`` and ``5.0`` from differently
typed sources compare equal.  It is lossy for integers beyond 2**53;
that limitation is inherent to the single-number-kind model.

Python's bool is a subclass of int, so every classifier below checks
bool BEFORE numbers.  ``True == 1.0`` is true in Python but the two are
different kinds here.

Time values carry microsecond resolution (the ``datetime`` limit).
Timestamp text with nanosecond fractions parses, with the extra digits
truncated.
"""

import numbers
import re
from collections.abc import Mapping, Sequence, Set
from dataclasses import fields, is_dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum, auto
from typing import Any, Optional


# ═══════════════════════════════════════════════════════════════════
#  KINDS
# ═══════════════════════════════════════════════════════════════════

class Kind(Enum):
    """The cases of the canonical value model."""
    NULL = auto()
    BOOLEAN = auto()
    NUMBER = auto()
    STRING = auto()
    OBJECT = auto()
    ARRAY = auto()
    TIME = auto()
    OTHER = auto()      # anything not (yet) normalized


def kind_of(value: Any) -> Kind:
    """Classify a value.  Only dict and list count as containers."""
    if value is None:
        return Kind.NULL
    if isinstance(value, bool):
        return Kind.BOOLEAN
    if isinstance(value, (int, float)):
        return Kind.NUMBER
    if isinstance(value, str):
        return Kind.STRING
    if isinstance(value, datetime):
        return Kind.TIME
    if isinstance(value, dict):
        return Kind.OBJECT
    if isinstance(value, list):
        return Kind.ARRAY
    return Kind.OTHER


def deep_equal(a: Any, b: Any) -> bool:
    """
    Structural equality on canonical values.

    Unlike ``==`` this never equates values of different kinds, so
    ``[True]`` and ``[1.0]`` are not equal.  Times must agree on the
    instant and on the UTC offset.
    """
    kind = kind_of(a)
    if kind is not kind_of(b):
        return False
    if a is b and kind in (Kind.OBJECT, Kind.ARRAY):
        return True
    if kind is Kind.OBJECT:
        if a.keys() != b.keys():
            return False
        return all(deep_equal(v, b[k]) for k, v in a.items())
    if kind is Kind.ARRAY:
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))
    if kind is Kind.TIME:
        a, b = aware(a), aware(b)
        return a == b and a.utcoffset() == b.utcoffset()
    return a == b


# ═══════════════════════════════════════════════════════════════════
#  TIME VALUES
# ═══════════════════════════════════════════════════════════════════

# The zero time: 0001-01-01T00:00:00Z
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d{1,9}))?"
    r"([Zz]|[+-]\d{2}:\d{2})"
)


def aware(dt: datetime) -> datetime:
    """Return dt with naive values read as UTC."""
    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def format_time(dt: datetime) -> str:
    """
    Format a datetime as RFC 3339 text.

    UTC is written as ``Z`` and trailing zeros of the fraction are
    dropped, so the shortest exact text is produced:

        1990-11-23T05:02:02.000002Z
        1990-11-23T02:02:02.000002-03:00
    """
    dt = aware(dt)
    text = (f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"
            f"T{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}")
    if dt.microsecond:
        text += "." + f"{dt.microsecond:06d}".rstrip("0")
    offset = dt.utcoffset()
    if not offset:
        return text + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    minutes = abs(minutes)
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def parse_time(text: str) -> Optional[datetime]:
    """
    Parse strict RFC 3339 text into an aware datetime.

    Returns None when the text is not a timestamp.  Looser ISO 8601
    forms ("2020", "2020-01-01", missing offset) are rejected, so
    ordinary strings are never mistaken for times.
    """
    m = _RFC3339.fullmatch(text)
    if m is None:
        return None
    year, month, day, hour, minute, second, fraction, zone = m.groups()
    micro = int((fraction or "").ljust(6, "0")[:6])
    if zone in ("Z", "z"):
        tz = timezone.utc
    else:
        offset = timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
        try:
            tz = timezone(-offset if zone[0] == "-" else offset)
        except ValueError:
            return None
    try:
        return datetime(int(year), int(month), int(day),
                        int(hour), int(minute), int(second), micro, tzinfo=tz)
    except ValueError:
        return None


# ═══════════════════════════════════════════════════════════════════
#  ZERO / EMPTY VALUES
# ═══════════════════════════════════════════════════════════════════

def is_zero(value: Any) -> bool:
    """
    True if value is the zero value of its scalar kind.

    "" for strings, 0 for numbers, False for booleans, the zero time for
    times.  None counts as zero.  Containers have no zero value.
    """
    kind = kind_of(value)
    if kind is Kind.NULL:
        return True
    if kind is Kind.STRING:
        return value == ""
    if kind is Kind.NUMBER:
        return value == 0
    if kind is Kind.BOOLEAN:
        return value is False
    if kind is Kind.TIME:
        return aware(value) == ZERO_TIME
    return False


def empty(value: Any) -> bool:
    """
    True if value carries no information.

    Empty values: None, blank or whitespace-only strings, False, numeric
    zero, the zero time, empty mappings / sequences / sets, and dataclass
    instances whose fields are all empty.

        empty({})               → True
        empty("  ")             → True
        empty(Widget())         → True   (all fields at their defaults)
        empty({"color": ""})    → False
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, bool):
        return not value
    if isinstance(value, numbers.Number):
        return value == 0
    if isinstance(value, datetime):
        return aware(value) == ZERO_TIME
    if isinstance(value, (Mapping, Sequence, Set)):
        return len(value) == 0
    if is_dataclass(value) and not isinstance(value, type):
        return all(empty(getattr(value, f.name)) for f in fields(value))
    return False


def keys(mapping: Mapping) -> list[str]:
    """Return a list of the mapping's keys."""
    return list(mapping)
