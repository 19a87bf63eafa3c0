"""Query DSL module.

Exports the typed where-tree nodes, the per-call `CompileContext`, and the
parsing helpers. Compilation into query documents is handled by the
`compilers` subpackage.
"""

from .context import CompileContext
from .nodes import (
    Condition,
    FieldCondition,
    GroupCondition,
    InnerNestedCondition,
    LogicalAnd,
    LogicalOr,
    MatchCondition,
    MultiMatchCondition,
    NestedCondition,
    SingleCondition,
    WhereTree,
    parse_condition,
    parse_where,
)

__all__ = (
    "CompileContext",
    "Condition",
    "WhereTree",
    "MatchCondition",
    "FieldCondition",
    "GroupCondition",
    "NestedCondition",
    "InnerNestedCondition",
    "MultiMatchCondition",
    "LogicalAnd",
    "LogicalOr",
    "SingleCondition",
    "parse_condition",
    "parse_where",
)
