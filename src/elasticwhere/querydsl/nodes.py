"""Typed where-tree nodes.

Raw where-trees are nested mappings:

- `{"and": [cond, ...]}` conjoins conditions
- `{"or": [{"and": [cond, ...]}, ...]}` disjoins branches of conjoined conditions
- `{field: operand}` is a single implicit condition

`parse_where` turns such a mapping into one of the tree variants below
(`LogicalAnd`, `LogicalOr`, `SingleCondition`), and `parse_condition` turns a
one-entry `{field: operand}` mapping into a condition variant. Field
conditions, boolean groups, nested scopes and multi-match searches are
distinct types, so the compiler never has to guess what a mapping key means.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import (
    BOOL_CLAUSES,
    MULTI_MATCH_FIELD,
    STRUCTURED_OPERATORS,
    Connective,
    Operator,
)
from ..exceptions import MalformedConditionError, UnsupportedOperatorError
from ..logger import get_logger
from ..schema import (
    GroupPayload,
    InnerNestedPayload,
    MultiMatchPayload,
    NestedPayload,
    QueryOptions,
    parse_options,
    parse_payload,
)

__all__ = (
    "MatchCondition",
    "FieldCondition",
    "GroupCondition",
    "NestedCondition",
    "InnerNestedCondition",
    "MultiMatchCondition",
    "LogicalAnd",
    "LogicalOr",
    "SingleCondition",
    "Condition",
    "WhereTree",
    "parse_condition",
    "parse_where",
)

logger = get_logger("querydsl.nodes")


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


# -------------------
# Conditions
# -------------------


class MatchCondition(_Node):
    """`{field: scalar}`: full-text match on a single value."""

    field: str
    value: Any


class FieldCondition(_Node):
    """`{field: {operator: operand}}` for every value operator."""

    field: str
    operator: Operator
    operand: Any = None

    @field_validator("operator")
    @classmethod
    def _value_operator(cls, operator: Operator) -> Operator:
        if operator in STRUCTURED_OPERATORS:
            raise ValueError(f"operator {operator.value!r} has its own condition type")
        return operator


class GroupCondition(_Node):
    """A parenthesised sub-tree placed under one bool clause (`must`, `should`, ...)."""

    connective: str
    wheres: Optional["WhereTree"] = None

    @field_validator("connective")
    @classmethod
    def _bool_clause(cls, connective: str) -> str:
        if connective not in BOOL_CLAUSES:
            raise ValueError(f"connective must be one of {sorted(BOOL_CLAUSES)}")
        return connective


class NestedCondition(_Node):
    """Query over a nested-document path; `negated` wraps it in `must_not`."""

    path: str
    wheres: Optional["WhereTree"] = None
    score_mode: str
    negated: bool = False


class InnerNestedCondition(_Node):
    """Nested query that also returns the matching inner hits."""

    path: str
    wheres: Optional["WhereTree"] = None
    options: QueryOptions = Field(default_factory=QueryOptions)
    score_mode: str
    ignore_unmapped: bool = False


class MultiMatchCondition(_Node):
    query: Any
    type: str
    fields: List[str]
    options: dict = Field(default_factory=dict)


Condition = Union[
    MatchCondition,
    FieldCondition,
    GroupCondition,
    NestedCondition,
    InnerNestedCondition,
    MultiMatchCondition,
]

_CONDITION_TYPES = (
    MatchCondition,
    FieldCondition,
    GroupCondition,
    NestedCondition,
    InnerNestedCondition,
    MultiMatchCondition,
)


# -------------------
# Trees
# -------------------


class LogicalAnd(_Node):
    conditions: List[Condition] = Field(default_factory=list)


class LogicalOr(_Node):
    """Disjunction of branches; the conditions inside one branch are conjoined."""

    branches: List[List[Condition]] = Field(default_factory=list)


class SingleCondition(_Node):
    condition: Condition


WhereTree = Union[LogicalAnd, LogicalOr, SingleCondition]

_TREE_TYPES = (LogicalAnd, LogicalOr, SingleCondition)

for _model in (GroupCondition, NestedCondition, InnerNestedCondition, LogicalAnd, LogicalOr, SingleCondition):
    _model.model_rebuild()


# -------------------
# Parsing
# -------------------


def parse_condition(raw: Any) -> Condition:
    """Parse a one-entry `{field: operand}` mapping into a condition variant.

    Raises:
        MalformedConditionError: If the mapping is not a single condition
        UnsupportedOperatorError: If the operator is not supported
    """
    if isinstance(raw, _CONDITION_TYPES):
        return raw
    if not isinstance(raw, Mapping) or len(raw) != 1:
        raise MalformedConditionError(
            "A condition must be a single {field: operand} mapping",
            received=raw if not isinstance(raw, Mapping) else sorted(raw),
        )
    field, operand = next(iter(raw.items()))

    if field == MULTI_MATCH_FIELD:
        payload = parse_payload(operand, MultiMatchPayload, field=field, operator=MULTI_MATCH_FIELD)
        return MultiMatchCondition(
            query=payload.query, type=payload.type, fields=payload.fields, options=payload.options or {}
        )

    if not isinstance(operand, Mapping):
        if isinstance(operand, (list, tuple, set)):
            raise MalformedConditionError("Sequence operands need an operator such as 'in'", field=field)
        return MatchCondition(field=field, value=operand)

    if len(operand) != 1:
        raise MalformedConditionError(
            "An operator condition must be a single {operator: operand} mapping",
            field=field,
            operators=list(operand),
        )
    op_name, value = next(iter(operand.items()))
    try:
        operator = Operator(op_name)
    except ValueError:
        raise UnsupportedOperatorError("Invalid operator provided for condition", operator=op_name, field=field)

    if operator is Operator.GROUP:
        group = parse_payload(value, GroupPayload, field=field, operator=op_name)
        if field not in BOOL_CLAUSES:
            raise MalformedConditionError(
                "Group connective must be a bool clause", field=field, expected=sorted(BOOL_CLAUSES)
            )
        return GroupCondition(connective=field, wheres=parse_where(group.wheres))
    if operator in (Operator.NESTED, Operator.NOT_NESTED):
        nested = parse_payload(value, NestedPayload, field=field, operator=op_name)
        return NestedCondition(
            path=field,
            wheres=parse_where(nested.wheres),
            score_mode=nested.score_mode,
            negated=operator is Operator.NOT_NESTED,
        )
    if operator is Operator.INNER_NESTED:
        inner = parse_payload(value, InnerNestedPayload, field=field, operator=op_name)
        return InnerNestedCondition(
            path=field,
            wheres=parse_where(inner.wheres),
            options=parse_options(inner.options),
            score_mode=inner.score_mode,
            ignore_unmapped=inner.ignore_unmapped,
        )
    return FieldCondition(field=field, operator=operator, operand=value)


def _parse_conditions(raw: Any, connective: str) -> List[Condition]:
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        raise MalformedConditionError(f"'{connective}' expects a list of conditions", received=type(raw).__name__)
    return [parse_condition(item) for item in raw]


def _parse_branch(raw: Any) -> List[Condition]:
    # A branch is usually {"and": [...]}; every value holds conjoined conditions.
    if isinstance(raw, Mapping):
        conditions: List[Condition] = []
        for key, sub_conditions in raw.items():
            conditions.extend(_parse_conditions(sub_conditions, key))
        return conditions
    return _parse_conditions(raw, Connective.OR)


def parse_where(raw: Any) -> Optional[WhereTree]:
    """Parse a raw where-tree (or pass a typed one through).

    Returns None for an empty or absent tree (`None`, `{}`, `[]`). When both
    `and` and `or` keys are present, the first one in mapping order is
    honored and the other is ignored with a warning.

    Raises:
        MalformedConditionError: If `raw` is neither a mapping nor a where
            node, or the tree structure is invalid
    """
    if isinstance(raw, _TREE_TYPES):
        return raw
    if isinstance(raw, _CONDITION_TYPES):
        return SingleCondition(condition=raw)
    if not raw:
        return None
    if not isinstance(raw, Mapping):
        raise MalformedConditionError("where must be a mapping or a where node", received=type(raw).__name__)

    connectives = [key for key in raw if key in (Connective.AND, Connective.OR)]
    if not connectives:
        return SingleCondition(condition=parse_condition(raw))

    extra = [key for key in raw if key not in (Connective.AND, Connective.OR)]
    if extra:
        raise MalformedConditionError("Where-tree mixes connectives with conditions", keys=list(raw))

    key = connectives[0]
    if len(connectives) > 1:
        logger.warning("Where-tree has both 'and' and 'or'; honoring '%s' and ignoring '%s'", key, connectives[1])

    if key == Connective.AND:
        return LogicalAnd(conditions=_parse_conditions(raw[key], key))
    branches = raw[key]
    if not isinstance(branches, Sequence) or isinstance(branches, (str, bytes)):
        raise MalformedConditionError("'or' expects a list of branches", received=type(branches).__name__)
    return LogicalOr(branches=[_parse_branch(branch) for branch in branches])
