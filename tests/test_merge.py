"""
Test suite for structmatch.merge — merge, conflicts and transform.

    §1  Merge
    §2  Conflicts
    §3  Transform
"""

import copy
import logging

import pytest

from structmatch.core import contains
from structmatch.errors import NormalizationError, StopTransform
from structmatch.merge import conflicts, merge, transform


# ═══════════════════════════════════════════════════════════════════
#  §1  MERGE
# ═══════════════════════════════════════════════════════════════════

class TestMerge:

    @pytest.mark.parametrize("v1,v2,expected", [
        ({"hard": "lemonade"}, {"hot": "weather"}, {"hot": "weather", "hard": "lemonade"}),
        ({"hot": "roof"}, {"hot": "weather"}, {"hot": "weather"}),
        ({"hot": "roof"}, {"colors": {"color": "orange"}},
         {"hot": "roof", "colors": {"color": "orange"}}),
        ({"hot": "roof", "colors": {"warm": "red", "cool": "blue"}, "flavors": {"sweet": "chocolate"}},
         {"colors": {"warm": "orange"}, "numbers": {"odd": 3, "even": 4}},
         {"hot": "roof",
          "colors": {"warm": "orange", "cool": "blue"},
          "flavors": {"sweet": "chocolate"},
          "numbers": {"odd": 3.0, "even": 4.0}}),
        ({"tags": ["east", "loud", "big"]}, {"tags": ["east", "blue"]},
         {"tags": ["east", "loud", "big", "blue"]}),
        ({"tags": ("red", "green")}, {"tags": ["green", "blue"]},
         {"tags": ["red", "green", "blue"]}),
        ([5, 6, 7], [5, 5, 5, 4], [5.0, 6.0, 7.0, 4.0]),
        ([{"a": 1}], [{"a": 1}, {"b": 2}], [{"a": 1.0}, {"b": 2.0}]),
        (1, 2, 2.0),
        ({"a": 1}, "x", "x"),
        ("x", {"a": 1}, {"a": 1.0}),
        ({"a": [1]}, {"a": {"b": 1}}, {"a": {"b": 1.0}}),
        (None, None, None),
    ])
    def test_merge(self, v1, v2, expected):
        assert merge(v1, v2) == expected

    def test_bools_not_deduplicated_against_numbers(self):
        out = merge([1], [True])
        assert len(out) == 2
        assert out[1] is True

    def test_inputs_unchanged(self):
        v1 = {"color": "blue", "labels": {"region": "east"}, "tags": ["a"]}
        v2 = {"color": "red", "labels": {"level": "high"}, "tags": ["b"]}
        before = copy.deepcopy((v1, v2))
        out = merge(v1, v2)
        assert out == {
            "color": "red",
            "labels": {"region": "east", "level": "high"},
            "tags": ["a", "b"],
        }
        assert (v1, v2) == before

    def test_result_independent_of_inputs(self):
        v1 = {"labels": {"region": "east"}, "tags": ["a"]}
        out = merge(v1, {"color": "red"})
        assert out["labels"] is not v1["labels"]
        out["labels"]["region"] = "west"
        assert v1["labels"]["region"] == "east"

    def test_no_copy_shares_untouched_subtrees(self):
        v1 = {"labels": {"region": "east"}, "size": 1.0}
        out = merge(v1, {"color": "red"}, copy=False)
        assert out is not v1
        assert out["labels"] is v1["labels"]
        assert "color" not in v1

    def test_no_copy_leaves_inputs_alone(self):
        v1 = {"size": 1, "tags": (1, 2), "labels": {"region": "east"}}
        before = copy.deepcopy(v1)
        out = merge(v1, {"color": "red"}, copy=False)
        assert out == {"size": 1.0, "tags": [1.0, 2.0], "labels": {"region": "east"}, "color": "red"}
        assert v1 == before
        assert type(v1["size"]) is int
        assert isinstance(v1["tags"], tuple)
        assert out["labels"] is v1["labels"]

    def test_no_copy_leaves_nested_inputs_alone(self):
        v1 = {"labels": {"n": 1}}
        v2 = [{"n": 2}]
        assert merge(v1, {"labels": {"m": 2}}, copy=False) == {"labels": {"n": 1.0, "m": 2.0}}
        assert type(v1["labels"]["n"]) is int
        assert merge([], v2, copy=False) == [{"n": 2.0}]
        assert type(v2[0]["n"]) is int

    @pytest.mark.parametrize("no_copy", [False, True])
    def test_int_too_large_for_a_float_kept(self, caplog, no_copy):
        with caplog.at_level(logging.WARNING, logger="structmatch.merge"):
            out = merge({"a": 10**400}, {"b": 1}, copy=not no_copy)
        assert out == {"a": 10**400, "b": 1.0}
        assert "without normalizing" in caplog.text

    def test_self_referencing_operand_kept(self, caplog):
        v = {"a": 1}
        v["self"] = v
        with caplog.at_level(logging.WARNING, logger="structmatch.merge"):
            out = merge(v, {"b": 2})
        assert out["b"] == 2.0
        assert out["self"] is v
        assert "reference cycle" in caplog.text

        out = merge(v, v)
        assert out["a"] == 1
        assert out["self"] is v

    def test_unnormalizable_value_kept(self, caplog):
        fn = lambda: 0  # noqa: E731
        with caplog.at_level(logging.WARNING, logger="structmatch.merge"):
            out = merge({"a": 1}, {"f": fn})
        assert out["a"] == 1.0
        assert out["f"] is fn
        assert "without normalizing" in caplog.text

    def test_merged_contains_both_sides(self):
        v1 = {"colors": {"warm": "red"}, "tags": ["a", "b"]}
        v2 = {"colors": {"cool": "blue"}, "tags": ["c"]}
        out = merge(v1, v2)
        assert contains(out, v1)
        assert contains(out, v2)


# ═══════════════════════════════════════════════════════════════════
#  §2  CONFLICTS
# ═══════════════════════════════════════════════════════════════════

CONFLICT_CASES = [
    ({"color": "red"}, {"temp": "hot"}, False),
    ({"color": "red"}, {"color": "blue"}, True),
    ({"color": "red"}, {"color": "red"}, False),
    ({"labels": {"region": "east"}}, {"labels": {"level": "high"}}, False),
    ({"labels": {"region": "east"}}, {"labels": {"region": "west"}}, True),
    ({"tags": ["red", "green"]}, {"tags": ["blue"]}, False),
    ({"labels": {"region": "east"}}, {"labels": "east"}, True),
    ({"size": 1}, {"size": True}, True),
    ({}, {"color": "red"}, False),
    ({"a": 1}, {"a": 1.0}, False),
]


class TestConflicts:

    @pytest.mark.parametrize("v1,v2,expected", CONFLICT_CASES)
    def test_conflicts(self, v1, v2, expected):
        assert conflicts(v1, v2) is expected

    @pytest.mark.parametrize("v1,v2,expected", CONFLICT_CASES)
    def test_symmetric(self, v1, v2, expected):
        assert conflicts(v2, v1) is expected

    @pytest.mark.parametrize("v1,v2,_", CONFLICT_CASES)
    def test_defined_by_merge(self, v1, v2, _):
        assert conflicts(v1, v2) is (not contains(merge(v1, v2), v1))

    def test_inputs_unchanged(self):
        v1 = {"labels": {"region": "east"}}
        v2 = {"labels": {"region": "west"}}
        before = copy.deepcopy((v1, v2))
        conflicts(v1, v2)
        assert (v1, v2) == before


# ═══════════════════════════════════════════════════════════════════
#  §3  TRANSFORM
# ═══════════════════════════════════════════════════════════════════

def _pluralize(node):
    if isinstance(node, str):
        return node + "s"
    return node


class TestTransform:

    def test_rewrite_strings(self):
        value = {"color": "red", "size": 5, "tags": ["blue", False, None], "labels": {"region": "east"}}
        out = transform(value, _pluralize)
        assert out == {
            "color": "reds",
            "size": 5.0,
            "tags": ["blues", False, None],
            "labels": {"region": "easts"},
        }
        assert value["color"] == "red"
        assert value["tags"][0] == "blue"

    def test_containers_before_children(self):
        def fn(node):
            if isinstance(node, dict):
                node.pop("labels", None)
            elif isinstance(node, list):
                node = node + ["dog"]
            return _pluralize(node)

        value = {"color": "red", "size": 5, "tags": ["blue", False, None], "labels": {"region": "east"}}
        assert transform(value, fn) == {
            "color": "reds",
            "size": 5.0,
            "tags": ["blues", False, None, "dogs"],
        }

    def test_visits_every_node(self):
        seen = []

        def fn(node):
            seen.append(node if not isinstance(node, (dict, list)) else type(node).__name__)
            return node

        transform({"a": [1, "x"], "b": None}, fn)
        assert seen == ["dict", "list", 1.0, "x", None]

    def test_stop_returns_partial_result(self):
        def fn(node):
            if node == "halt":
                raise StopTransform
            return node.upper() if isinstance(node, str) else node

        assert transform({"a": "x", "b": "halt", "c": "y"}, fn) == {"a": "X", "b": "halt", "c": "y"}

    def test_stop_at_root(self):
        def fn(node):
            raise StopTransform

        assert transform({"a": 1}, fn) == {"a": 1.0}

    def test_errors_propagate(self):
        def fn(node):
            if node is None:
                raise ValueError("stop")
            return node

        with pytest.raises(ValueError, match="stop"):
            transform({"a": [1, None]}, fn)

    def test_unnormalizable_input(self):
        with pytest.raises(NormalizationError):
            transform(lambda: 0, _pluralize)
