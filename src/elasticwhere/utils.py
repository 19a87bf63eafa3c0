"""Utility functions for elasticwhere.

Shared helpers used by the compilers and the request builders.
"""

from typing import Any, Dict, Mapping, Optional, Tuple

from .constants import META_OPTION, WILDCARD_COLUMNS

# ===========================================================================
# Query-string escaping
# ===========================================================================

# Characters with a meaning in the query_string syntax. `<` and `>` cannot be
# escaped by the engine and are removed instead.
QUERY_STRING_RESERVED_CHARS = '\\+-=&|!(){}[]^"~*?:/ '
QUERY_STRING_REMOVED_CHARS = "<>"

_ESCAPE_TABLE = {ord(ch): f"\\{ch}" for ch in QUERY_STRING_RESERVED_CHARS}
_ESCAPE_TABLE.update({ord(ch): None for ch in QUERY_STRING_REMOVED_CHARS})


def escape(text: Any) -> str:
    """Escape a free-text operand for use inside a query_string pattern.

    Non-string operands are converted with `str()` first.

    Examples:
        >>> escape("a*b")
        'a\\\\*b'
    """
    return str(text).translate(_ESCAPE_TABLE)


# ===========================================================================
# Field paths
# ===========================================================================


def qualify_field(field: str, parent_path: Optional[str]) -> str:
    """Prefix `field` with `parent_path` unless it is already qualified."""
    if not parent_path:
        return field
    if field.startswith(parent_path + "."):
        return field
    return f"{parent_path}.{field}"


# ===========================================================================
# Request helpers
# ===========================================================================


def is_wildcard_columns(columns: Any) -> bool:
    """Return True when `columns` selects every source field."""
    if not columns:
        return True
    if isinstance(columns, list):
        return columns == ["*"]
    return columns in WILDCARD_COLUMNS


def merge_params(params: Dict[str, Any], fragment: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge an options fragment into request params.

    Mapping values that already exist in `params` are shallow-merged, the
    fragment winning on conflicting keys; everything else is assigned.
    """
    for key, value in fragment.items():
        current = params.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            params[key] = {**current, **value}
        else:
            params[key] = value
    return params


def split_meta(options: Optional[Mapping[str, Any]]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Separate the caller `_meta` entry from an options map.

    Returns:
        (options without `_meta`, the stashed meta mapping)
    """
    if not options:
        return {}, {}
    remaining = dict(options)
    meta = remaining.pop(META_OPTION, None) or {}
    return remaining, dict(meta)
