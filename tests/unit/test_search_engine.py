"""Tests for literal substring search over snapshots."""

from gistdb_server.search.engine import json_contains, matches_query, search_snapshot


SNAPSHOT = {
    "a": {"title": "buy milk", "tags": ["errand"]},
    "b": {"title": "walk dog", "notes": {"when": "after milk run"}},
    "c": {"title": 42, "nested": [[{"deep": "Milk"}]]},
    "d": "milkshake",
    "e": None,
}


class TestJsonContains:
    def test_strings(self):
        assert json_contains("buy milk", "milk")
        assert not json_contains("buy milk", "Milk")

    def test_descends_into_lists_and_dict_values(self):
        assert json_contains({"a": [{"b": ["needle"]}]}, "needle")

    def test_ignores_dict_keys(self):
        assert not json_contains({"needle": 1}, "needle")

    def test_non_string_leaves_never_match(self):
        assert not json_contains(42, "4")
        assert not json_contains(True, "True")
        assert not json_contains(None, "")


class TestMatchesQuery:
    def test_field_requires_string_value(self):
        assert matches_query({"title": "buy milk"}, "milk", "title")
        assert not matches_query({"title": 42}, "42", "title")
        assert not matches_query({"other": "milk"}, "milk", "title")

    def test_field_on_non_object_value(self):
        assert not matches_query("milk", "milk", "title")


class TestSearchSnapshot:
    def test_anywhere_search(self):
        assert search_snapshot(SNAPSHOT, "milk") == ["a", "b", "d"]

    def test_results_are_in_ascending_id_order(self):
        snapshot = {"c-id": {"t": "milk"}, "b-id": {"t": "milk"}, "x": {"t": "tea"}, "a-id": {"t": "milk"}}

        assert search_snapshot(snapshot, "milk") == ["a-id", "b-id", "c-id"]
        assert search_snapshot(snapshot, "milk", "t") == ["a-id", "b-id", "c-id"]
        assert search_snapshot(snapshot, "") == ["a-id", "b-id", "c-id", "x"]

    def test_case_sensitive(self):
        assert search_snapshot(SNAPSHOT, "Milk") == ["c"]

    def test_field_search(self):
        assert search_snapshot(SNAPSHOT, "milk", "title") == ["a"]

    def test_empty_query_matches_everything(self):
        assert search_snapshot(SNAPSHOT, "") == ["a", "b", "c", "d", "e"]

    def test_empty_query_with_field_matches_string_fields(self):
        assert search_snapshot(SNAPSHOT, "", "title") == ["a", "b"]

    def test_non_object_snapshot_returns_empty(self):
        assert search_snapshot(["milk"], "milk") == []
        assert search_snapshot("milk", "milk") == []

    def test_repeated_searches_are_identical(self):
        first = search_snapshot(SNAPSHOT, "milk")

        assert all(search_snapshot(SNAPSHOT, "milk") == first for _ in range(5))
