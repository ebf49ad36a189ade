"""
Normalize boolean query params: the string "false" must not be treated as truthy.
FastAPI may hand over ?evergreen=false as the str "false"; `if evergreen:` would then be True.
"""
from typing import Optional


def ensure_bool_query(value: bool | str | None) -> bool:
    """
    Convert a query value (bool or str) to a real bool.
    True only for True or the strings "true"/"1"/"yes" (case-insensitive).
    "false", "0", "no", "", None => False.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    return s in ("true", "1", "yes")


def optional_bool_query(value: bool | str | None) -> Optional[bool]:
    """Like ensure_bool_query, but an absent/blank value stays None (no filter)."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return ensure_bool_query(value)
