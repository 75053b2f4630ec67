"""
structmatch.merge — Deep merge, conflict detection and tree transforms.

MERGE:
    merge(v1, v2) normalizes both values and folds v2 into a copy of v1:

    • Objects merge key-by-key, recursing where both sides hold objects
    • Arrays merge as a union: elements of v2 not already present are
      appended, in v2's order
    • Anything else (scalars, kind mismatches): v2 wins

        merge({"tags": ["a", "b"]}, {"tags": ["b", "c"]})
            → {"tags": ["a", "b", "c"]}
        merge([5, 6, 7], [5, 5, 5, 4])  → [5.0, 6.0, 7.0, 4.0]

CONFLICTS:
    conflicts(v1, v2) is True when merging v2 into v1 would overwrite
    something v1 says, i.e. when merge(v1, v2) no longer contains v1.

TRANSFORM:
    transform(v, fn) rewrites every node of the normalized tree,
    containers before their children.
"""

import logging
from typing import Any, Callable, Optional

from .core import contains
from .errors import NormalizationError, StopTransform
from .normalize import _normalize_shared, normalize
from .values import deep_equal

logger = logging.getLogger(__name__)


def merge(v1: Any, v2: Any, *, copy: bool = True) -> Any:
    """
    Deep-merge v2 into v1.  Values in v2 win.

    Neither input is modified.  With copy=True (the default) the result
    shares no containers with the inputs; copy=False skips that copy, so
    subtrees that are already canonical and untouched by the merge may be
    the callers' own objects.

    A value that cannot be normalized is merged as given (and logged);
    merge() never raises NormalizationError.
    """
    return _merge_values(_normalize_or_keep(v1, copy), _normalize_or_keep(v2, copy))


def _normalize_or_keep(value: Any, copy: bool = True) -> Any:
    try:
        return normalize(value) if copy else _normalize_shared(value)
    except NormalizationError as exc:
        logger.warning("merging %s value without normalizing it: %s",
                       type(value).__name__, exc)
        return value


def _merge_values(v1: Any, v2: Any, active: Optional[set] = None) -> Any:
    """Merge two canonical values.  Builds new containers, never mutates."""
    if isinstance(v1, dict) and isinstance(v2, dict):
        # only an operand kept unnormalized can loop back on itself
        active = set() if active is None else active
        if id(v1) in active:
            return v2
        active.add(id(v1))
        merged = dict(v1)
        for key, value in v2.items():
            merged[key] = _merge_values(merged[key], value, active) if key in merged else value
        active.discard(id(v1))
        return merged

    if isinstance(v1, list) and isinstance(v2, list):
        merged = list(v1)
        for item in v2:
            # compared against the growing result, so duplicates within
            # v2 collapse too
            if not any(deep_equal(item, existing) for existing in merged):
                merged.append(item)
        return merged

    return v2


def conflicts(v1: Any, v2: Any) -> bool:
    """
    True if v1 and v2 assign different values to a shared key path.

        conflicts({"color": "red"}, {"temp": "hot"})     → False
        conflicts({"color": "red"}, {"color": "blue"})   → True
        conflicts({"tags": ["a"]}, {"tags": ["b"]})      → False (union)
    """
    pristine = _normalize_or_keep(v1)
    merged = _merge_values(pristine, _normalize_or_keep(v2))
    return not contains(merged, pristine)


# ═══════════════════════════════════════════════════════════════════
#  TRANSFORM
# ═══════════════════════════════════════════════════════════════════

def transform(value: Any, fn: Callable[[Any], Any]) -> Any:
    """
    Replace every node of the normalized value with fn(node).

    The walk is pre-order: fn sees a dict or list before its children,
    and the walk continues into whatever fn returned, so fn may add or
    drop children:

        def drop_labels(node):
            if isinstance(node, dict):
                node.pop("labels", None)
            return node

    fn may raise StopTransform to end the walk; the tree as transformed
    so far is returned.  Any other exception propagates.  The input is
    copied first and never modified.

    Raises NormalizationError if value cannot be normalized.
    """
    tree = normalize(value)
    result = tree
    try:
        result = fn(tree)
        _transform_children(result, fn)
    except StopTransform:
        logger.debug("transform stopped early")
    return result


def _transform_children(node: Any, fn: Callable[[Any], Any]) -> None:
    if isinstance(node, dict):
        for key in list(node):
            node[key] = child = fn(node[key])
            _transform_children(child, fn)
    elif isinstance(node, list):
        for i, item in enumerate(node):
            node[i] = child = fn(item)
            _transform_children(child, fn)
