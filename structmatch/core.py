"""
structmatch.core — Structural containment and equivalence
==========================================================

§1  CONTAINMENT
───────────────

contains(v1, v2) asks: "is v2 a subset of v1?"  Both sides are
normalized to the canonical model, then walked in lock-step by one
recursive relation matches(a, b), dispatching on the kind of a:

    Null / Boolean / Number   a == b, kinds must agree (True is not 1.0)
    String                    a == b, or b in a with string_contains
    Time                      equal instants, see §3
    Object                    every key of b is in a, values match
    Array                     every element of b matches SOME element of a

Array containment is existential, not positional:

    contains(["red", "green"], ["green"])       → True
    contains(["red", "green"], "red")           → True   (scalar b)
    contains([{"a": 1, "b": 2}], [{"a": 1}, {"b": 2}])  → True

The last line is the known quirk: a matched element of a is not removed
from the candidates, so one element may satisfy several elements of b.


§2  EQUIVALENCE
───────────────

equivalent(v1, v2) is containment run with an equivalence flag instead
of two independent contains() calls:

    • Objects:  a may not have keys b lacks
    • Arrays:   lengths must agree, a scalar b never matches an array,
                and every element of a must match some element of b

One-directional options keep v1 as the subject and v2 as the pattern on
both legs, so with string_contains

    equivalent({"c": "bigred"}, {"c": "big"})   → True

The array legs share the quirk from §1:

    equivalent(["x", "x", "y"], ["x", "y", "y"])    → True


§3  OPTIONS
───────────

    string_contains          strings match when b is a substring of a
    empty_values_match_any   None, or the zero value of a's kind ("", 0,
                             False, the zero time), in b matches anything
    parse_times              compare RFC 3339 strings as times
    time_delta               allowed distance between two times
    truncate_times           truncate both times to a multiple first
    round_times              round both times (truncation wins if both set)
    ignore_time_zones        equal instants in different zones match

Any time option switches on time handling.  Times then match when they
are identical, or when after truncation/rounding they lie within
time_delta AND (unless ignore_time_zones) share the UTC offset.


§4  TRACE
─────────

On failure the first mismatch is reported as a Match:

    values are not equal
    v1.labels.region -> 'east'
    v2.labels.region -> 'west'

A value that cannot be normalized fails the comparison with its own
"err normalizing v1/v2" message and Match.error set, so "these values
differ" stays distinguishable from "this value could not be read".
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Union

from .errors import NormalizationError
from .normalize import NormalizeOptions, _normalize
from .values import ZERO_TIME, Kind, aware, is_zero, kind_of, parse_time


@dataclass(frozen=True, slots=True)
class ContainsOptions:
    """
    Matching policies for contains() and equivalent().  See §3.

    Durations in trace messages are written the way str(timedelta) does:
    ``delta of 0:01:00 exceeds 0:00:30``.  Truncation and rounding that
    would leave the datetime range are skipped for that pair.
    """
    string_contains: bool = False
    empty_values_match_any: bool = False
    parse_times: bool = False
    time_delta: timedelta = timedelta(0)
    truncate_times: Optional[timedelta] = None
    round_times: Optional[timedelta] = None
    ignore_time_zones: bool = False

    @property
    def handles_times(self) -> bool:
        return bool(self.parse_times or self.time_delta or self.truncate_times
                    or self.round_times or self.ignore_time_zones)


DEFAULT_OPTIONS = ContainsOptions()


@dataclass
class Match:
    """
    Outcome of a containment or equivalence check.

    On a mismatch, ``path`` locates the offending pair (``labels.tags``),
    ``v1``/``v2`` hold the values found there and ``message`` explains the
    failure.  ``error`` is set when a value could not be normalized.  A
    Match is truthy iff it matched.
    """
    matches: bool
    message: str = ""
    path: str = ""
    v1: Any = None
    v2: Any = None
    error: Optional[NormalizationError] = None

    def __bool__(self) -> bool:
        return self.matches

    def __repr__(self) -> str:
        if self.matches:
            return "Match(matches)"
        reason = self.message.partition("\n")[0]
        return f"Match(mismatch at {self.path or '(root)'}: {reason!r})"


# ═══════════════════════════════════════════════════════════════════
#  PUBLIC API
# ═══════════════════════════════════════════════════════════════════

def contains(v1: Any, v2: Any, options: Optional[ContainsOptions] = None, *,
             trace: Optional[Callable[[str], None]] = None, **overrides: Any) -> bool:
    """
    True if v1 contains v2.

    Options can be passed as a ContainsOptions, as keywords, or both:

        contains(doc, {"story": "quick"}, string_contains=True)

    If ``trace`` is given it is called with the mismatch explanation when
    the result is False:

        messages = []
        contains(v1, v2, trace=messages.append)
    """
    return _check(v1, v2, options, overrides, trace, equivalence=False)


def equivalent(v1: Any, v2: Any, options: Optional[ContainsOptions] = None, *,
               trace: Optional[Callable[[str], None]] = None, **overrides: Any) -> bool:
    """True if v1 and v2 contain each other.  See §2."""
    return _check(v1, v2, options, overrides, trace, equivalence=True)


def contains_match(v1: Any, v2: Any, options: Optional[ContainsOptions] = None,
                   **overrides: Any) -> Match:
    """Like contains(), but return the full Match."""
    return _Comparison(_resolve(options, overrides), equivalence=False).run(v1, v2)


def equivalent_match(v1: Any, v2: Any, options: Optional[ContainsOptions] = None,
                     **overrides: Any) -> Match:
    """Like equivalent(), but return the full Match."""
    return _Comparison(_resolve(options, overrides), equivalence=True).run(v1, v2)


def _check(v1, v2, options, overrides, trace, equivalence: bool) -> bool:
    comparison = _Comparison(_resolve(options, overrides), equivalence,
                             explain=trace is not None)
    match = comparison.run(v1, v2)
    if not match and trace is not None:
        trace(match.message)
    return match.matches


def _resolve(options: Optional[ContainsOptions], overrides: dict) -> ContainsOptions:
    opts = options or DEFAULT_OPTIONS
    if overrides:
        opts = replace(opts, **overrides)
    return opts


# ═══════════════════════════════════════════════════════════════════
#  THE RECURSION
# ═══════════════════════════════════════════════════════════════════

class _Comparison:
    """
    State for one top-level check: options, the current path and the
    first recorded mismatch.

    Operands are normalized one level at a time as the walk descends
    (no copy, no deep walk), so the caller's data is never modified and
    a normalization failure knows where it happened.

    While searching an array for a matching element, failures are
    expected and must not be reported; ``quiet`` counts nested searches.
    """
    __slots__ = ("opts", "equivalence", "explain", "norm", "path", "quiet", "mismatch",
                 "active_a", "active_b")

    def __init__(self, opts: ContainsOptions, equivalence: bool, explain: bool = True):
        self.opts = opts
        self.equivalence = equivalence
        self.explain = explain
        self.norm = NormalizeOptions(copy=False, deep=False, marshal=True,
                                     normalize_time=opts.handles_times)
        self.path: list[Union[str, int]] = []
        self.quiet = 0
        self.mismatch: Optional[Match] = None
        # ids of the containers on the current path, per side
        self.active_a: set[int] = set()
        self.active_b: set[int] = set()

    def run(self, v1: Any, v2: Any) -> Match:
        matched = self.matches(v1, v2)
        # an error recorded during a search fails the check even if a
        # later candidate matched
        if matched and self.mismatch is None:
            return Match(True)
        return self.mismatch

    def matches(self, a: Any, b: Any) -> bool:
        try:
            a = _normalize(a, self.norm)
        except NormalizationError as exc:
            return self.fail(f"err normalizing v1: {exc}", a, b, error=exc)
        try:
            b = _normalize(b, self.norm)
        except NormalizationError as exc:
            return self.fail(f"err normalizing v2: {exc}", a, b, error=exc)

        opts = self.opts
        if opts.handles_times:
            a, b = _coerce_times(a, b)

        if opts.empty_values_match_any and (b is None or (kind_of(b) is kind_of(a) and is_zero(b))):
            return True

        kind = kind_of(a)
        if kind is Kind.OBJECT or kind is Kind.ARRAY:
            return self._match_container(kind, a, b)
        if kind is Kind.TIME:
            return self._match_time(a, b)
        if kind is Kind.STRING and opts.string_contains:
            if isinstance(b, str) and b in a:
                return True
            return self.fail("v1 does not contain v2", a, b)
        if kind is Kind.OTHER:
            # only reachable for values normalize() let through unchanged
            equal = a == b
        else:
            equal = kind_of(b) is kind and a == b
        return equal or self.fail("values are not equal", a, b)

    def _match_container(self, kind: Kind, a: Any, b: Any) -> bool:
        """Walk into a dict or list, failing if either side loops back."""
        for side, value, active in (("v1", a, self.active_a), ("v2", b, self.active_b)):
            if id(value) in active:
                exc = NormalizationError(
                    f"cannot normalize {type(value).__name__}: reference cycle", value)
                return self.fail(f"err normalizing {side}: {exc}", a, b, error=exc)

        self.active_a.add(id(a))
        if isinstance(b, (dict, list)):
            self.active_b.add(id(b))
        try:
            if kind is Kind.OBJECT:
                return self._match_object(a, b)
            return self._match_array(a, b)
        finally:
            self.active_a.discard(id(a))
            self.active_b.discard(id(b))

    def _match_object(self, a: dict, b: Any) -> bool:
        if not isinstance(b, dict):
            return self.fail("values are not equal", a, b)

        extra = sorted(k for k in b if k not in a)
        if extra:
            return self.fail(f"v2 contains extra keys: {extra}", a, b)
        if self.equivalence:
            extra = sorted(k for k in a if k not in b)
            if extra:
                return self.fail(f"v1 contains extra keys: {extra}", a, b)

        for key, value in b.items():
            self.path.append(key)
            ok = self.matches(a[key], value)
            self.path.pop()
            if not ok:
                return False
        return True

    def _match_array(self, a: list, b: Any) -> bool:
        if not isinstance(b, list):
            if self.equivalence:
                return self.fail("values are not equal", a, b)
            if self._search(a, b):
                return True
            return self.fail("v1 does not contain v2", a, b)

        if self.equivalence and len(a) != len(b):
            return self.fail(f"lengths differ: {len(a)} != {len(b)}", a, b)

        for i, item in enumerate(b):
            self.path.append(i)
            found = self._search(a, item)
            self.path.pop()
            if not found:
                return self.fail(f"v1 does not contain v2[{i}]: {item!r}", a, b)

        if self.equivalence:
            for i, item in enumerate(a):
                self.path.append(i)
                found = self._search(b, item, reverse=True)
                self.path.pop()
                if not found:
                    return self.fail(f"v2 does not contain v1[{i}]: {item!r}", a, b)
        return True

    def _search(self, candidates: list, item: Any, reverse: bool = False) -> bool:
        """
        True if item matches any candidate.  With reverse, item is the
        subject (v1 side) and the candidates are patterns.
        """
        self.quiet += 1
        try:
            if reverse:
                return any(self.matches(item, c) for c in candidates)
            return any(self.matches(c, item) for c in candidates)
        finally:
            self.quiet -= 1

    def _match_time(self, a: datetime, b: Any) -> bool:
        if not isinstance(b, datetime):
            return self.fail("values are not equal", a, b)

        t1, t2 = aware(a), aware(b)
        if t1 == t2 and t1.utcoffset() == t2.utcoffset():
            return True

        opts = self.opts
        try:
            if opts.truncate_times:
                t1, t2 = _truncate(t1, opts.truncate_times), _truncate(t2, opts.truncate_times)
            elif opts.round_times:
                t1, t2 = _round(t1, opts.round_times), _round(t2, opts.round_times)
        except OverflowError:
            # the nearest multiple lies outside the datetime range
            t1, t2 = aware(a), aware(b)

        delta = abs(t1 - t2)
        if delta > opts.time_delta:
            if opts.time_delta:
                return self.fail(f"delta of {delta} exceeds {opts.time_delta}", a, b)
            return self.fail("values are not equal", a, b)
        if not opts.ignore_time_zones and t1.utcoffset() != t2.utcoffset():
            return self.fail("time zone offsets don't match", a, b)
        return True

    def fail(self, reason: str, a: Any, b: Any, error: Optional[NormalizationError] = None) -> bool:
        """Record the first reportable mismatch and return False."""
        if self.mismatch is None and (error is not None or not self.quiet):
            if self.explain:
                path = format_path(self.path)
                self.mismatch = Match(False, _message(reason, path, a, b), path, a, b, error)
            else:
                self.mismatch = Match(False, error=error)
        return False


# ═══════════════════════════════════════════════════════════════════
#  HELPERS
# ═══════════════════════════════════════════════════════════════════

_MICROSECOND = timedelta(microseconds=1)


def _coerce_times(a: Any, b: Any) -> tuple[Any, Any]:
    """Parse timestamp strings if both sides then hold times."""
    ta = parse_time(a) if isinstance(a, str) else a
    tb = parse_time(b) if isinstance(b, str) else b
    if isinstance(ta, datetime) and isinstance(tb, datetime):
        return ta, tb
    return a, b


def _truncate(t: datetime, step: timedelta) -> datetime:
    """Round t down to a multiple of step since the zero time."""
    n = step // _MICROSECOND
    if n <= 0:
        return t
    offset = ((t - ZERO_TIME) // _MICROSECOND) % n
    return t - timedelta(microseconds=offset)


def _round(t: datetime, step: timedelta) -> datetime:
    """Round t to the nearest multiple of step, halfway values up."""
    n = step // _MICROSECOND
    if n <= 0:
        return t
    offset = ((t - ZERO_TIME) // _MICROSECOND) % n
    if offset + offset < n:
        return t - timedelta(microseconds=offset)
    return t + timedelta(microseconds=n - offset)


def format_path(tokens: list[Union[str, int]]) -> str:
    """
    Render path tokens as ``labels.tags[2].name``.

    Tokens are map keys (str) or array indexes (int); anything else is a
    broken invariant.
    """
    parts = []
    for token in tokens:
        if isinstance(token, bool) or not isinstance(token, (str, int)):
            raise TypeError(f"path token must be str or int, not {type(token).__name__}")
        if isinstance(token, int):
            parts.append(f"[{token}]")
        elif parts:
            parts.append("." + token)
        else:
            parts.append(token)
    return "".join(parts)


def _label(name: str, path: str) -> str:
    if not path:
        return name
    if path.startswith("["):
        return name + path
    return f"{name}.{path}"


def _message(reason: str, path: str, a: Any, b: Any) -> str:
    return f"{reason}\n{_label('v1', path)} -> {a!r}\n{_label('v2', path)} -> {b!r}"
