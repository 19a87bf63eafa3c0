"""Per-call compilation context.

A `CompileContext` is created for every top-level request compile and threaded
through the recursive where-tree and options compilers. It carries the
capability flags and keyword resolver for that call, and it is the only place
where side effects discovered mid-compile (geo filters, the random-score
function, request metadata) are accumulated until the post-processing passes
consume them.
"""

from typing import Any, Dict, List, Optional

from ..mapping import KeywordResolver
from ..settings import settings
from ..types import QueryFragment

__all__ = ("CompileContext",)


class CompileContext:
    """Mutable state scoped to a single compile invocation."""

    def __init__(
        self,
        keyword_resolver: Optional[KeywordResolver] = None,
        bypass_map_validation: Optional[bool] = None,
        allow_id_sort: Optional[bool] = None,
        inner_hits_default_size: Optional[int] = None,
    ) -> None:
        self.keyword_resolver = keyword_resolver
        self.bypass_map_validation = (
            settings.BYPASS_MAP_VALIDATION if bypass_map_validation is None else bypass_map_validation
        )
        self.allow_id_sort = settings.ALLOW_ID_SORT if allow_id_sort is None else allow_id_sort
        self.inner_hits_default_size = (
            settings.INNER_HITS_DEFAULT_SIZE if inner_hits_default_size is None else inner_hits_default_size
        )
        self._filters: List[QueryFragment] = []
        self._function_score: Dict[str, Any] = {}
        self.meta: Dict[str, Any] = {}

    def __repr__(self) -> str:
        return (
            f"<CompileContext: bypass_map_validation={self.bypass_map_validation} "
            f"allow_id_sort={self.allow_id_sort} filters={len(self._filters)} "
            f"function_score={bool(self._function_score)}>"
        )

    # -------------------
    # Keyword resolution
    # -------------------

    def resolve_keyword_field(self, field: str) -> Optional[str]:
        if self.keyword_resolver is None:
            return None
        return self.keyword_resolver.resolve_keyword_field(field)

    # -------------------
    # Side channels
    # -------------------

    @property
    def has_filters(self) -> bool:
        return bool(self._filters)

    @property
    def has_function_score(self) -> bool:
        return bool(self._function_score)

    def add_filter(self, clause: QueryFragment) -> None:
        self._filters.append(clause)

    def set_function_score(self, function: Dict[str, Any]) -> None:
        # Last registration wins
        self._function_score = dict(function)

    def pop_filters(self) -> List[QueryFragment]:
        """Return the accumulated filter clauses and clear them."""
        filters, self._filters = self._filters, []
        return filters

    def pop_function_score(self) -> Dict[str, Any]:
        """Return the accumulated scoring function and clear it."""
        function, self._function_score = self._function_score, {}
        return function

    def stash_meta(self, **values: Any) -> None:
        self.meta.update(values)
