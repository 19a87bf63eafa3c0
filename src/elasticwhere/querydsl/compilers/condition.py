"""Condition compiler.

Turns one condition of a where-tree into one query-document fragment. Value
operators are dispatched through `ConditionCompiler._HANDLERS`, which covers
every non-structured `Operator` member; groups, nested scopes and multi-match
searches have their own condition types and compile through the where-tree
compiler recursively.
"""

from collections.abc import Mapping as MappingABC
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from ...constants import MULTI_MATCH_FIELD, Operator
from ...exceptions import MalformedConditionError, MissingKeywordFieldError, UnsupportedOperatorError
from ...types import QueryFragment
from ...utils import escape, qualify_field
from ..context import CompileContext
from ..nodes import (
    FieldCondition,
    GroupCondition,
    InnerNestedCondition,
    MatchCondition,
    MultiMatchCondition,
    NestedCondition,
    parse_condition,
)
from .base import BaseCompiler
from .utils import match_all, must_not

if TYPE_CHECKING:
    from .options import OptionsCompiler
    from .where import WhereCompiler

__all__ = ("ConditionCompiler",)


class ConditionCompiler(BaseCompiler):
    """Compile a single condition into a query fragment.

    Inside a nested scope (`parent_path` set) field names are qualified with
    the parent path before anything else happens, unless they already carry it.

    Keyword resolution for `in`, `nin` and `exact`:
    - bypass flag on: the field is used verbatim
    - otherwise the context's keyword resolver is consulted; `in`/`nin` fall
      back to the raw field, `exact` fails with `MissingKeywordFieldError`
    """

    def __init__(self, where_compiler: "WhereCompiler", options_compiler: "OptionsCompiler") -> None:
        super().__init__()
        self.where_compiler = where_compiler
        self.options_compiler = options_compiler

    def compile(self, condition: Any, context: CompileContext, parent_path: Optional[str] = None) -> QueryFragment:
        """Compile a raw `{field: operand}` mapping or a typed condition.

        Raises:
            UnsupportedOperatorError: If the operator is not supported
            MalformedConditionError: If the operand has the wrong shape
            MissingKeywordFieldError: If `exact` targets a non-keyword field
        """
        node = parse_condition(condition)

        if isinstance(node, MatchCondition):
            return {"match": {qualify_field(node.field, parent_path): node.value}}
        if isinstance(node, FieldCondition):
            field = qualify_field(node.field, parent_path)
            handler = self._HANDLERS[node.operator]
            return handler(self, field, node.operator, node.operand, context)
        if isinstance(node, MultiMatchCondition):
            return self._compile_multi_match(node, parent_path)
        if isinstance(node, GroupCondition):
            # The connective names a bool clause, never a field
            return {"bool": {node.connective: self.where_compiler.compile(node.wheres, context, parent_path)}}
        if isinstance(node, NestedCondition):
            return self._compile_nested(node, context, parent_path)
        if isinstance(node, InnerNestedCondition):
            return self._compile_inner_nested(node, context, parent_path)
        raise MalformedConditionError("Unknown condition type", received=type(node).__name__)

    # -------------------
    # Structured conditions
    # -------------------

    def _compile_multi_match(self, node: MultiMatchCondition, parent_path: Optional[str]) -> QueryFragment:
        if parent_path:
            # Qualified, the key no longer names the multi-field search
            raise UnsupportedOperatorError(
                "Invalid operator provided for condition",
                operator=MULTI_MATCH_FIELD,
                field=qualify_field(MULTI_MATCH_FIELD, parent_path),
            )
        fragment: Dict[str, Any] = {"query": node.query, "type": node.type, "fields": list(node.fields)}
        if node.options:
            fragment.update(node.options)
        return {"multi_match": fragment}

    def _compile_nested(
        self, node: NestedCondition, context: CompileContext, parent_path: Optional[str]
    ) -> QueryFragment:
        path = qualify_field(node.path, parent_path)
        if node.negated:
            # Sub-tree fields are not qualified with the path here
            nested = {
                "path": path,
                "query": self.where_compiler.compile(node.wheres, context),
                "score_mode": node.score_mode,
            }
            return must_not([{"nested": nested}])
        return {
            "nested": {
                "path": path,
                "query": self.where_compiler.compile(node.wheres, context, path),
                "score_mode": node.score_mode,
            }
        }

    def _compile_inner_nested(
        self, node: InnerNestedCondition, context: CompileContext, parent_path: Optional[str]
    ) -> QueryFragment:
        path = qualify_field(node.path, parent_path)
        inner_hits = self.options_compiler.compile_nested(node.options, path, context)
        if not inner_hits:
            inner_hits = {"size": context.inner_hits_default_size}
        query = match_all()
        if node.wheres is not None:
            query = self.where_compiler.compile(node.wheres, context, path)
        return {
            "nested": {
                "path": path,
                "query": query,
                "inner_hits": inner_hits,
                "score_mode": node.score_mode,
                "ignore_unmapped": node.ignore_unmapped,
            }
        }

    # -------------------
    # Keyword resolution
    # -------------------

    def _keyword_field(self, field: str, operator: Operator, context: CompileContext) -> str:
        if context.bypass_map_validation:
            return field
        keyword_field = context.resolve_keyword_field(field)
        if keyword_field:
            return keyword_field
        if operator is Operator.EXACT:
            raise MissingKeywordFieldError(
                "Field is not a keyword field which is required for the exact operator",
                field=field,
                operator=operator.value,
            )
        return field

    # -------------------
    # Value operators
    # -------------------

    def _range(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        return {"range": {field: {operator.value: operand}}}

    def _between_bounds(self, field: str, operator: Operator, operand: Any) -> Dict[str, Any]:
        if isinstance(operand, (str, bytes, MappingABC)) or not hasattr(operand, "__len__") or len(operand) != 2:
            raise MalformedConditionError(
                "between requires exactly two values", field=field, operator=operator.value, operand=operand
            )
        low, high = list(operand)
        return {"range": {field: {"gte": low, "lte": high}}}

    def _between(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        return self._between_bounds(field, operator, operand)

    def _not_between(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        return must_not(self._between_bounds(field, operator, operand))

    def _search(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        if not isinstance(operand, MappingABC):
            raise MalformedConditionError(
                "search requires a query_string mapping", field=field, operator=operator.value
            )
        return {"query_string": dict(operand)}

    def _like(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        return {"query_string": {"query": f"{field}:*{escape(operand)}*"}}

    def _not_like(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        return {"query_string": {"query": f"(NOT {field}:*{escape(operand)}*)"}}

    def _regex(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        return {"regexp": {field: {"value": operand}}}

    def _exists(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        return {"exists": {"field": field}}

    def _not_exists(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        return must_not([{"exists": {"field": field}}])

    def _ne(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        return must_not([{"match": {field: operand}}])

    def _terms(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        if isinstance(operand, (str, bytes, MappingABC)) or not isinstance(operand, (list, tuple, set, frozenset)):
            raise MalformedConditionError(
                f"{operator.value} requires a list of values", field=field, operator=operator.value
            )
        terms = {"terms": {self._keyword_field(field, operator, context): list(operand)}}
        if operator is Operator.NIN:
            return must_not(terms)
        return terms

    def _exact(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        return {"term": {self._keyword_field(field, operator, context): operand}}

    def _phrase(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        return {"match_phrase": {field: operand}}

    def _phrase_prefix(self, field: str, operator: Operator, operand: Any, context: CompileContext) -> QueryFragment:
        return {"match_phrase_prefix": {field: {"query": operand}}}

    _HANDLERS: Dict[Operator, Callable[..., QueryFragment]] = {
        Operator.LT: _range,
        Operator.LTE: _range,
        Operator.GT: _range,
        Operator.GTE: _range,
        Operator.BETWEEN: _between,
        Operator.NOT_BETWEEN: _not_between,
        Operator.SEARCH: _search,
        Operator.LIKE: _like,
        Operator.NOT_LIKE: _not_like,
        Operator.REGEX: _regex,
        Operator.EXISTS: _exists,
        Operator.NOT_EXISTS: _not_exists,
        Operator.NE: _ne,
        Operator.IN: _terms,
        Operator.NIN: _terms,
        Operator.EXACT: _exact,
        Operator.PHRASE: _phrase,
        Operator.PHRASE_PREFIX: _phrase_prefix,
    }
