"""
structmatch
===========

Structural comparison of loosely typed data trees.

    contains({"color": "red", "flavor": "beef"}, {"color": "red"})   → True
    equivalent(["red", "green"], ["green", "red"])                   → True
    merge({"tags": ["a", "b"]}, {"tags": ["b", "c"]})  → {"tags": ["a", "b", "c"]}
    conflicts({"color": "red"}, {"color": "blue"})                   → True

Dataclasses, plain objects, mappings, sequences and parsed JSON are all
normalized into one canonical model (dicts, lists, str, float, bool,
None) before they are compared, so a native object and a decoded API
response can be checked against each other directly:

    contains(resp.json(), Widget(size=1, color="red"))

Matching can be loosened per call: substring matching for strings,
empty values as wildcards, and tolerant comparison of timestamps.
"""

from structmatch.core import (
    ContainsOptions,
    Match,
    contains,
    contains_match,
    equivalent,
    equivalent_match,
)
from structmatch.errors import NormalizationError, StopTransform, StructMatchError
from structmatch.merge import conflicts, merge, transform
from structmatch.normalize import NormalizeOptions, from_json, normalize, to_json
from structmatch.values import Kind, deep_equal, empty, keys, kind_of

__version__ = "0.1.0"
__all__ = [
    "contains", "equivalent", "contains_match", "equivalent_match",
    "ContainsOptions", "Match",
    "merge", "conflicts", "transform",
    "normalize", "NormalizeOptions", "from_json", "to_json",
    "Kind", "kind_of", "deep_equal", "empty", "keys",
    "StructMatchError", "NormalizationError", "StopTransform",
]
