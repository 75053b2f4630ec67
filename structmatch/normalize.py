"""
structmatch.normalize — Convert arbitrary Python values into the
canonical model.

    normalize(5)                         → 5.0
    normalize((1, "a"))                  → [1.0, "a"]
    normalize({"w": Widget(size=5)})     → {"w": {"size": 5.0}}
    normalize(b'{"color": "blue"}')      → {"color": "blue"}

Values that are already dicts, lists and primitives are walked directly.
Anything else goes through a JSON round trip (the "marshal" fallback),
which is what makes a dataclass, a plain object and a parsed JSON
document interchangeable.

Supported conversions:
    • None, bool, str, float   → as-is
    • int, Decimal, Fraction   → float
    • Mapping with str keys    → dict
    • Sequence (not str/bytes) → list
    • datetime                 → RFC 3339 string, or kept with normalize_time
    • bytes / bytearray        → decoded as JSON text
    • obj.to_json()            → decoded as JSON text
    • dataclass, Enum, set, plain object, ... → JSON round trip
"""

import json
import logging
import numbers
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields, is_dataclass, replace
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from .errors import NormalizationError
from .values import format_time, parse_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NormalizeOptions:
    """
    Switches for normalize().

    copy:            copy every dict/list instead of reusing the caller's.
                     With copy=False the result may alias (and the walk may
                     write into) the caller's containers.
    deep:            normalize nested values too, not just the top level.
    marshal:         coerce unrecognized values through a JSON round trip.
                     When off, such values are returned unchanged.
    normalize_time:  keep datetimes as datetimes instead of flattening them
                     to strings, and promote timestamp strings produced by
                     the JSON fallback back into datetimes.
    """
    copy: bool = True
    deep: bool = True
    marshal: bool = True
    normalize_time: bool = False


DEFAULT_OPTIONS = NormalizeOptions()

_BYTES_TYPES = (bytes, bytearray, memoryview)


# ═══════════════════════════════════════════════════════════════════
#  NORMALIZE
# ═══════════════════════════════════════════════════════════════════

def normalize(value: Any, options: Optional[NormalizeOptions] = None,
              **overrides: bool) -> Any:
    """
    Convert value into a tree of dicts, lists and primitives.

    Keyword overrides are applied on top of ``options``:

        normalize(v, copy=False)            # borrow the caller's containers
        normalize(v, marshal=False)         # best effort, never raises

    Raises NormalizationError when the JSON fallback rejects a value.
    Normalizing an already normalized value returns an equal value.
    """
    opts = options or DEFAULT_OPTIONS
    if overrides:
        opts = replace(opts, **overrides)
    return _normalize(value, opts)


def _normalize(value: Any, opts: NormalizeOptions, active: Optional[set] = None) -> Any:
    # Canonical scalars.  bool is an int subclass, so it is matched here
    # before the numeric widening below.
    if value is None or isinstance(value, (bool, str, float)):
        return value

    if isinstance(value, (numbers.Real, Decimal)):
        return _widen(value)

    if isinstance(value, datetime):
        if opts.normalize_time or not opts.marshal:
            return value
        return format_time(value)

    # Nothing to copy and nothing to descend into
    if not opts.copy and not opts.deep:
        if isinstance(value, list) or (isinstance(value, dict) and _str_keyed(value)):
            return value

    if opts.marshal and _self_serializing(value):
        return _marshal(value, opts)

    container, fresh = _adapt(value)
    if container is None:
        if opts.marshal:
            return _marshal(value, opts)
        logger.debug("leaving %s value unconverted", type(value).__name__)
        return value

    recurse = opts.deep or (opts.copy and not fresh)
    if opts.copy and not fresh:
        container = dict(container) if isinstance(container, dict) else list(container)
    if recurse:
        active = _enter(value, active)
        try:
            _normalize_children(container, opts, active)
        finally:
            active.discard(id(value))
    return container


def _widen(value: Any) -> float:
    try:
        return float(value)
    except OverflowError as exc:
        raise NormalizationError(
            f"cannot normalize {type(value).__name__}: {exc}", value
        ) from exc


def _enter(value: Any, active: Optional[set]) -> set:
    """Mark a container as being walked.  Re-entering one is a cycle."""
    if active is None:
        active = set()
    elif id(value) in active:
        raise NormalizationError(
            f"cannot normalize {type(value).__name__}: reference cycle", value
        )
    active.add(id(value))
    return active


def _adapt(value: Any) -> tuple[Any, bool]:
    """
    Map a mapping or sequence onto dict / list.

    Returns (container, fresh) where fresh is True if a new container was
    allocated, or (None, False) if value is neither shape.  Children are
    copied raw, not normalized.
    """
    if isinstance(value, Mapping):
        if not _str_keyed(value):
            return None, False
        if isinstance(value, dict):
            return value, False
        return dict(value), True
    if isinstance(value, Sequence) and not isinstance(value, (str,) + _BYTES_TYPES):
        if isinstance(value, list):
            return value, False
        return list(value), True
    return None, False


def _normalize_children(container: Any, opts: NormalizeOptions, active: set) -> None:
    """Normalize each child in place.  Unchanged children are not rewritten."""
    if isinstance(container, dict):
        for key, child in container.items():
            new = _normalize(child, opts, active)
            if new is not child:
                container[key] = new
    else:
        for i, child in enumerate(container):
            new = _normalize(child, opts, active)
            if new is not child:
                container[i] = new


def _normalize_shared(value: Any, active: Optional[set] = None) -> Any:
    """
    Normalize without writing into the caller's containers.

    A dict or list whose children are already canonical is returned as
    is; one with a child that changes is replaced by a new container.
    Everything else is normalized with the default (copying) options.
    """
    if isinstance(value, list) or (isinstance(value, dict) and _str_keyed(value)):
        active = _enter(value, active)
        try:
            changed = None
            items = value.items() if isinstance(value, dict) else enumerate(value)
            for key, child in items:
                new = _normalize_shared(child, active)
                if new is not child:
                    if changed is None:
                        changed = dict(value) if isinstance(value, dict) else list(value)
                    changed[key] = new
        finally:
            active.discard(id(value))
        return value if changed is None else changed
    return _normalize(value, DEFAULT_OPTIONS)


def _str_keyed(mapping: Mapping) -> bool:
    return all(isinstance(k, str) for k in mapping)


def _self_serializing(value: Any) -> bool:
    return isinstance(value, _BYTES_TYPES) or callable(getattr(value, "to_json", None))


# ═══════════════════════════════════════════════════════════════════
#  JSON FALLBACK
# ═══════════════════════════════════════════════════════════════════

def _marshal(value: Any, opts: NormalizeOptions) -> Any:
    """Round-trip value through JSON text.  Always returns a new tree."""
    logger.debug("normalizing %s through the JSON fallback", type(value).__name__)
    try:
        if isinstance(value, _BYTES_TYPES):
            text = bytes(value)
        elif callable(getattr(value, "to_json", None)):
            text = value.to_json()
        else:
            text = json.dumps(value, default=_encode)
        decoded = json.loads(text, parse_int=float)
    except (TypeError, ValueError) as exc:
        raise NormalizationError(
            f"cannot normalize {type(value).__name__}: {exc}", value
        ) from exc

    if opts.normalize_time:
        decoded = _promote_times(decoded)
    return decoded


def _encode(o: Any) -> Any:
    """``default`` hook for json.dumps: reduce o to JSON-native values."""
    if callable(getattr(o, "to_json", None)):
        return json.loads(o.to_json())
    if isinstance(o, _BYTES_TYPES):
        return json.loads(bytes(o))
    if isinstance(o, datetime):
        return format_time(o)
    if isinstance(o, (date, time)):
        return o.isoformat()
    if isinstance(o, Enum):
        return o.value
    if isinstance(o, Decimal):
        return float(o)
    if isinstance(o, (set, frozenset)):
        return list(o)
    if isinstance(o, Mapping):
        return dict(o)
    if isinstance(o, Sequence):
        return list(o)
    if is_dataclass(o) and not isinstance(o, type):
        return {f.name: getattr(o, f.name) for f in fields(o)}
    if callable(getattr(o, "to_dict", None)):
        return o.to_dict()
    # Plain objects serialize their public attributes.  Functions and
    # classes also have a __dict__, but are not data.
    if not callable(o) and hasattr(o, "__dict__"):
        return {k: v for k, v in vars(o).items() if not k.startswith("_")}
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def _promote_times(value: Any) -> Any:
    """Turn timestamp strings anywhere in a decoded tree into datetimes."""
    if isinstance(value, str):
        parsed = parse_time(value)
        return value if parsed is None else parsed
    if isinstance(value, dict):
        for key, child in value.items():
            value[key] = _promote_times(child)
    elif isinstance(value, list):
        for i, child in enumerate(value):
            value[i] = _promote_times(child)
    return value


# ═══════════════════════════════════════════════════════════════════
#  JSON TEXT ↔ CANONICAL VALUES
# ═══════════════════════════════════════════════════════════════════

def from_json(text: str | bytes) -> Any:
    """Parse JSON text straight into the canonical model (ints as floats)."""
    return json.loads(text, parse_int=float)


def to_json(value: Any, **kwargs) -> str:
    """Encode any normalizable value as JSON text."""
    return json.dumps(value, default=_encode, **kwargs)
