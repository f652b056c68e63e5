"""Literal substring search over a decoded collection snapshot."""

from typing import Any


def json_contains(value: Any, query: str) -> bool:
    """True if ``query`` occurs in any string reachable through lists and dict values."""
    if isinstance(value, str):
        return query in value
    if isinstance(value, list):
        return any(json_contains(item, query) for item in value)
    if isinstance(value, dict):
        return any(json_contains(item, query) for item in value.values())
    return False


def matches_query(value: Any, query: str, field: str | None = None) -> bool:
    if field is None:
        return json_contains(value, query)
    if not isinstance(value, dict):
        return False
    field_value = value.get(field)
    return isinstance(field_value, str) and query in field_value


def search_snapshot(snapshot: Any, query: str, field: str | None = None) -> list[str]:
    """Return the ids of matching objects in ascending ObjectID order.

    Matching is case-sensitive with no normalization. An empty query without a
    field selects every object.
    """
    if not isinstance(snapshot, dict):
        return []
    if not query and field is None:
        return sorted(snapshot)
    return sorted(object_id for object_id, value in snapshot.items() if matches_query(value, query, field))
