"""Tests for the key canonicalizer."""

import pytest

from suspensecache import CanonicalizationError, canonicalize, compact, same_key


class TestCanonicalize:
    def test_order_independent(self):
        assert canonicalize({"a": 1, "b": 2}) == canonicalize({"b": 2, "a": 1})

    def test_none_means_not_provided(self):
        assert canonicalize({"a": None}) == canonicalize({})

    def test_no_arguments(self):
        assert canonicalize(None) == canonicalize({})

    def test_nested_mappings(self):
        a = {"filter": {"tag": "x", "limit": 10, "after": None}}
        b = {"filter": {"limit": 10, "tag": "x"}}
        assert canonicalize(a) == canonicalize(b)

    def test_different_values_differ(self):
        assert canonicalize({"id": 1}) != canonicalize({"id": 2})
        assert canonicalize({"id": 1}) != canonicalize({"id": "1"})
        assert canonicalize({"id": True}) != canonicalize({"id": 1})

    def test_list_and_tuple_are_equivalent(self):
        assert canonicalize({"ids": [1, 2]}) == canonicalize({"ids": (1, 2)})

    def test_sequence_order_matters(self):
        assert canonicalize({"ids": [1, 2]}) != canonicalize({"ids": [2, 1]})

    def test_sets_are_order_independent(self):
        assert canonicalize({"tags": {"b", "a"}}) == canonicalize({"tags": frozenset(["a", "b"])})

    def test_integral_float_matches_int(self):
        assert canonicalize({"n": 1.0}) == canonicalize({"n": 1})
        assert canonicalize({"n": 1.5}) != canonicalize({"n": 1})

    def test_deterministic(self):
        args = {"x": [{"b": 1, "a": 2}], "y": "z"}
        assert canonicalize(args) == canonicalize(dict(args))

    def test_rejects_objects(self):
        with pytest.raises(CanonicalizationError, match="object"):
            canonicalize({"when": object()})

    def test_rejects_non_string_keys(self):
        with pytest.raises(CanonicalizationError):
            canonicalize({"nested": {1: "a"}})

    def test_rejects_non_mapping(self):
        with pytest.raises(TypeError):
            canonicalize([("a", 1)])


class TestSameKey:
    def test_matches_canonical_equality(self):
        pairs = [
            ({"a": 1, "b": 2}, {"b": 2, "a": 1}),
            ({"a": None}, {}),
            ({"a": 1}, {"a": 2}),
            ({"a": [1]}, {"a": [1, None]}),
        ]
        for a, b in pairs:
            assert same_key(a, b) == (canonicalize(a) == canonicalize(b))


class TestCompact:
    def test_drops_none(self):
        assert compact({"a": 1, "b": None}) == {"a": 1}

    def test_recursive(self):
        assert compact({"a": {"b": None, "c": 2}}) == {"a": {"c": 2}}

    def test_empty(self):
        assert compact(None) == {}
