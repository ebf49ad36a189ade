"""
Boolean query params: the string "false" must not be truthy.
- ensure_bool_query: "false" -> False, "true" -> True.
- optional_bool_query: missing/blank -> None (no filter).
"""
from app.utils.query_params import ensure_bool_query, optional_bool_query


def test_ensure_bool_query_false_strings() -> None:
    """evergreen=false (string) must be False."""
    assert ensure_bool_query("false") is False
    assert ensure_bool_query("False") is False
    assert ensure_bool_query("FALSE") is False
    assert ensure_bool_query("0") is False
    assert ensure_bool_query("no") is False
    assert ensure_bool_query("") is False
    assert ensure_bool_query(None) is False


def test_ensure_bool_query_true_strings() -> None:
    assert ensure_bool_query("true") is True
    assert ensure_bool_query("True") is True
    assert ensure_bool_query("1") is True
    assert ensure_bool_query("yes") is True


def test_ensure_bool_query_native_bool() -> None:
    """Native bool unchanged."""
    assert ensure_bool_query(True) is True
    assert ensure_bool_query(False) is False


def test_optional_bool_query_keeps_absence() -> None:
    assert optional_bool_query(None) is None
    assert optional_bool_query("  ") is None
    assert optional_bool_query("false") is False
    assert optional_bool_query("TRUE") is True
