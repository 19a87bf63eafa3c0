"""Where-tree compiler.

Walks `and` / `or` trees and assembles the compiled conditions into a
boolean query document.
"""

from typing import Any, Dict, List, Optional

from ...types import QueryFragment
from ..context import CompileContext
from ..nodes import Condition, LogicalAnd, LogicalOr, SingleCondition, parse_where
from .base import BaseCompiler
from .condition import ConditionCompiler
from .options import OptionsCompiler
from .options import options_compiler as default_options_compiler
from .utils import match_all, normalize_where_input, query

__all__ = (
    "WhereCompiler",
    "where_compiler",
)


class WhereCompiler(BaseCompiler):
    """Compile where-trees into query fragments.

    - empty tree: `{"match_all": {}}`
    - `and`: `{"bool": {"must": [...]}}`
    - `or`: `{"bool": {"should": [{"bool": {"must": [...]}}, ...]}}`
    - single condition: the condition's fragment, unwrapped

    Empty fragments are never inserted, and an `or` branch with nothing left
    in it is dropped entirely.
    """

    def __init__(self, options_compiler: Optional[OptionsCompiler] = None) -> None:
        super().__init__()
        self.options_compiler = options_compiler or default_options_compiler
        self.condition_compiler = ConditionCompiler(self, self.options_compiler)

    def compile(self, where: Any, context: CompileContext, parent_path: Optional[str] = None) -> QueryFragment:
        """Convert a raw or typed where-tree into a query fragment.

        Args:
            where: Where-tree mapping, typed where node, or None
            context: Per-call compile context
            parent_path: Nested scope used to qualify field names

        Returns:
            The compiled fragment (not wrapped in `{"query": ...}`)
        """
        tree = parse_where(normalize_where_input(where))
        if tree is None:
            return match_all()

        if isinstance(tree, LogicalAnd):
            return {"bool": {"must": self._compile_conditions(tree.conditions, context, parent_path)}}
        if isinstance(tree, LogicalOr):
            should: List[Dict[str, Any]] = []
            for branch in tree.branches:
                must = self._compile_conditions(branch, context, parent_path)
                if must:
                    should.append({"bool": {"must": must}})
            return {"bool": {"should": should}}
        if isinstance(tree, SingleCondition):
            return self.condition_compiler.compile(tree.condition, context, parent_path)
        raise TypeError(f"Unknown where node: {type(tree).__name__}")

    def _compile_conditions(
        self, conditions: List[Condition], context: CompileContext, parent_path: Optional[str]
    ) -> List[QueryFragment]:
        compiled = []
        for condition in conditions:
            fragment = self.condition_compiler.compile(condition, context, parent_path)
            if fragment:
                compiled.append(fragment)
        return compiled

    def build_query(self, where: Any, context: Optional[CompileContext] = None) -> Dict[str, QueryFragment]:
        """Compile a where-tree into the `{"query": ...}` envelope."""
        if context is None:
            context = CompileContext()
        return query(self.compile(where, context))


where_compiler = WhereCompiler(default_options_compiler)
