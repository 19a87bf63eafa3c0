"""Nested terms aggregations for distinct/group-by requests."""

from typing import Any, Dict, Mapping, Optional, Sequence

from ...exceptions import InvalidOptionError
from ...settings import settings

__all__ = ("create_nested_aggs",)


def _direction(value: Any) -> str:
    return "asc" if value == "asc" else "desc"


def create_nested_aggs(
    columns: Sequence[str],
    sort: Optional[Mapping[str, Any]] = None,
    bucket_size: Optional[int] = None,
) -> Dict[str, Any]:
    """Build one `terms` aggregation per column, each nested in the previous.

    Buckets are named `by_<column>`. `sort` may order buckets by document
    count (`{"_count": "asc"}`) and/or by key (`{column: "desc"}`).

    Examples:
        >>> create_nested_aggs(["country"], bucket_size=10)
        {'by_country': {'terms': {'field': 'country', 'size': 10}}}
    """
    if not columns or isinstance(columns, str):
        raise InvalidOptionError("Aggregation needs a list of columns", option="columns", received=columns)
    sort = sort or {}
    column = columns[0]
    terms: Dict[str, Any] = {"field": column, "size": bucket_size or settings.AGGS_BUCKET_SIZE}

    order = []
    if "_count" in sort:
        order.append({"_count": _direction(sort["_count"])})
    if column in sort:
        order.append({"_key": _direction(sort[column])})
    if order:
        terms["order"] = order

    agg: Dict[str, Any] = {"terms": terms}
    if len(columns) > 1:
        agg["aggs"] = create_nested_aggs(columns[1:], sort, bucket_size)
    return {f"by_{column}": agg}
