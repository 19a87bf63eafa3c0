"""Compiler utility functions.

Provides helpers for normalizing compiler inputs and building the standard
query envelopes.
"""

from typing import Any, Dict, Mapping

from ...exceptions import MalformedConditionError
from ...types import QueryFragment


def normalize_where_input(where: Any) -> Any:
    """Normalize a where-tree input before parsing.

    Args:
        where: Typed where node, mapping, or None

    Returns:
        The input unchanged, or None when it is empty (`{}`, `[]`, ...)

    Raises:
        MalformedConditionError: If input is neither a where node nor a mapping
    """
    if hasattr(where, "model_dump") and callable(where.model_dump):
        # Typed node - parsed downstream as-is
        return where
    if not where:
        return None
    elif isinstance(where, Mapping):
        return where
    else:
        raise MalformedConditionError(
            "where parameter must be a where node or mapping", received=type(where).__name__
        )


def normalize_options_input(options: Any) -> Dict[str, Any]:
    """Normalize an options input to a plain dict (None becomes empty).

    Typed option models are dumped by alias so they re-validate cleanly.
    """
    if options is None:
        return {}
    if hasattr(options, "model_dump") and callable(options.model_dump):
        return options.model_dump(by_alias=True, exclude_none=True)
    if isinstance(options, Mapping):
        return dict(options)
    return options


def match_all() -> QueryFragment:
    return {"match_all": {}}


def query(fragment: QueryFragment) -> Dict[str, QueryFragment]:
    """Wrap a compiled fragment in the standard `{"query": ...}` envelope."""
    return {"query": fragment}


def must_not(fragment: Any) -> QueryFragment:
    return {"bool": {"must_not": fragment}}
