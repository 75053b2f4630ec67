"""
structmatch.testing — Assertions for test suites.

    from structmatch.testing import assert_contains

    def test_create_widget(client):
        resp = client.post("/widgets", json={"color": "red"})
        assert_contains(resp.json(), {"color": "red", "id": ""})

The assertions are lenient by default: empty_values_match_any,
ignore_time_zones and parse_times are switched on, so ``"id": ""``
above only checks that an id string is present.  Pass strict=True to
turn the defaults off.  Any other ContainsOptions field may be passed
as a keyword.

Failures raise AssertionError with the mismatch trace and a diff of the
normalized values.
"""

from difflib import unified_diff
from pprint import pformat
from typing import Any, Optional

from .core import Match, contains_match, equivalent_match
from .errors import NormalizationError
from .normalize import normalize

LENIENT_DEFAULTS = {
    "empty_values_match_any": True,
    "ignore_time_zones": True,
    "parse_times": True,
}


def assert_contains(v1: Any, v2: Any, msg: Optional[str] = None, *,
                    strict: bool = False, **options: Any) -> None:
    """Fail unless v1 contains v2."""
    __tracebackhide__ = True
    match = contains_match(v1, v2, **_options(strict, options))
    _fail_on_error(match, msg)
    if not match:
        _fail(f"v1 does not contain v2:\n{match.message}{_diff(v1, v2)}", msg)


def assert_not_contains(v1: Any, v2: Any, msg: Optional[str] = None, *,
                        strict: bool = False, **options: Any) -> None:
    """Fail if v1 contains v2."""
    __tracebackhide__ = True
    match = contains_match(v1, v2, **_options(strict, options))
    _fail_on_error(match, msg)
    if match:
        _fail(f"v1 should not contain v2:\nv1: {v1!r}\nv2: {v2!r}", msg)


def assert_equivalent(v1: Any, v2: Any, msg: Optional[str] = None, *,
                      strict: bool = False, **options: Any) -> None:
    """Fail unless v1 and v2 are equivalent."""
    __tracebackhide__ = True
    match = equivalent_match(v1, v2, **_options(strict, options))
    _fail_on_error(match, msg)
    if not match:
        _fail(f"v1 is not equivalent to v2:\n{match.message}{_diff(v1, v2)}", msg)


def assert_not_equivalent(v1: Any, v2: Any, msg: Optional[str] = None, *,
                          strict: bool = False, **options: Any) -> None:
    """Fail if v1 and v2 are equivalent."""
    __tracebackhide__ = True
    match = equivalent_match(v1, v2, **_options(strict, options))
    _fail_on_error(match, msg)
    if match:
        _fail(f"v1 should not be equivalent to v2:\nv1: {v1!r}\nv2: {v2!r}", msg)


def _options(strict: bool, options: dict) -> dict:
    if strict:
        return options
    return {**LENIENT_DEFAULTS, **options}


def _fail_on_error(match: Match, msg: Optional[str]) -> None:
    __tracebackhide__ = True
    if match.error is not None:
        _fail(match.message, msg)


def _fail(text: str, msg: Optional[str]) -> None:
    __tracebackhide__ = True
    if msg:
        text = f"{text}\n{msg}"
    raise AssertionError(text)


def _diff(v1: Any, v2: Any) -> str:
    """Unified diff of the pretty-printed normalized values."""
    lines = []
    for value in (v1, v2):
        # parts of a value the comparison never visited may still fail
        try:
            shown = normalize(value)
        except NormalizationError:
            shown = value
        lines.append((pformat(shown) + "\n").splitlines(keepends=True))
    diff = "".join(unified_diff(lines[0], lines[1], fromfile="v1", tofile="v2", n=1))
    return "\n\nDiff:\n" + diff
