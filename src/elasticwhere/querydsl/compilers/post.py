"""Post-processing passes.

Each pass consumes one accumulator of the compile context and rewraps
`body.query`. The filter wrap runs before the function-score wrap, so a
scored query always includes the geo filters.
"""

from typing import Any, Dict

from ..context import CompileContext
from .utils import match_all

__all__ = (
    "apply_filter_wrap",
    "apply_function_score_wrap",
    "apply_post_processing",
)


def _current_query(params: Dict[str, Any]) -> Dict[str, Any]:
    body = params.setdefault("body", {})
    return body.get("query") or match_all()


def apply_filter_wrap(params: Dict[str, Any], context: CompileContext) -> Dict[str, Any]:
    """Wrap `body.query` in a `bool` with the registered filter clauses.

    A single clause is emitted as-is; several clauses are emitted as a list.
    """
    filters = context.pop_filters()
    if not filters:
        return params
    current = _current_query(params)
    params["body"]["query"] = {
        "bool": {
            "must": [current],
            "filter": filters[0] if len(filters) == 1 else filters,
        }
    }
    return params


def apply_function_score_wrap(params: Dict[str, Any], context: CompileContext) -> Dict[str, Any]:
    """Wrap `body.query` in a `function_score` carrying the registered function."""
    function = context.pop_function_score()
    if not function:
        return params
    current = _current_query(params)
    params["body"]["query"] = {"function_score": {"query": current, **function}}
    return params


def apply_post_processing(params: Dict[str, Any], context: CompileContext) -> Dict[str, Any]:
    params = apply_filter_wrap(params, context)
    return apply_function_score_wrap(params, context)
