"""
Request builders for search, fetch and delete requests.

This module provides the `RequestBuilder`, the top-level entry point that
runs the where-tree compiler, the options compiler and the post-processing
passes in order and assembles the final request document. Every call gets a
fresh `CompileContext`, so a builder can be shared freely.
"""

from collections.abc import Mapping as MappingABC
from typing import Any, Dict, List, Optional, Tuple

from .constants import SEARCH_CLAUSE_FIELD, Operator
from .exceptions import InvalidOptionError
from .logger import Logger
from .mapping import KeywordResolver
from .querydsl.compilers.options import OptionsCompiler
from .querydsl.compilers.options import options_compiler as default_options_compiler
from .querydsl.compilers.post import apply_post_processing
from .querydsl.compilers.utils import normalize_options_input, normalize_where_input
from .querydsl.compilers.where import WhereCompiler
from .querydsl.context import CompileContext
from .querydsl.nodes import FieldCondition, LogicalAnd, LogicalOr, SingleCondition, WhereTree, parse_where
from .schema import CompiledRequest, WriteOptions, parse_options
from .types import Columns, QueryFragment, SearchFields
from .utils import is_wildcard_columns, merge_params, split_meta

__all__ = (
    "RequestBuilder",
    "request_builder",
    "build_params",
    "build_search_params",
    "build_delete_params",
)

DEFAULT_DELETE_REFRESH = "wait_for"


class RequestBuilder:
    """Assemble request documents from where-trees and options.

    Attributes:
        keyword_resolver: Resolver consulted by `in`, `nin` and `exact`
        bypass_map_validation: Use fields verbatim for keyword operators
            (None reads the value from settings)
        allow_id_sort: Keep `_id` sort entries (None reads from settings)
    """

    def __init__(
        self,
        keyword_resolver: Optional[KeywordResolver] = None,
        bypass_map_validation: Optional[bool] = None,
        allow_id_sort: Optional[bool] = None,
        where_compiler: Optional[WhereCompiler] = None,
        options_compiler: Optional[OptionsCompiler] = None,
    ) -> None:
        self.keyword_resolver = keyword_resolver
        self.bypass_map_validation = bypass_map_validation
        self.allow_id_sort = allow_id_sort
        self.options_compiler = options_compiler or default_options_compiler
        self.where_compiler = where_compiler or WhereCompiler(self.options_compiler)
        self.logger = Logger(self.__class__.__name__)

    def __repr__(self) -> str:
        return (
            f"<RequestBuilder: resolver={type(self.keyword_resolver).__name__} "
            f"bypass_map_validation={self.bypass_map_validation} allow_id_sort={self.allow_id_sort}>"
        )

    def new_context(self) -> CompileContext:
        """Create the per-call context for one compile."""
        return CompileContext(
            keyword_resolver=self.keyword_resolver,
            bypass_map_validation=self.bypass_map_validation,
            allow_id_sort=self.allow_id_sort,
        )

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def build_query(self, wheres: Any, context: Optional[CompileContext] = None) -> Dict[str, QueryFragment]:
        """Compile a where-tree into `{"query": ...}`."""
        return self.where_compiler.build_query(wheres, context or self.new_context())

    def add_search_to_wheres(self, wheres: Any, query_string: Dict[str, Any]) -> WhereTree:
        """Splice a free-text `query_string` clause into a where-tree.

        - no tree: the clause becomes the whole tree
        - `and`: the clause is appended as the last conjunct
        - `or`: the clause is appended to every branch
        - single condition: conjoined with the clause
        """
        clause = FieldCondition(field=SEARCH_CLAUSE_FIELD, operator=Operator.SEARCH, operand=query_string)
        tree = parse_where(normalize_where_input(wheres))
        if tree is None:
            return SingleCondition(condition=clause)
        if isinstance(tree, LogicalAnd):
            return LogicalAnd(conditions=[*tree.conditions, clause])
        if isinstance(tree, LogicalOr):
            if not tree.branches:
                return SingleCondition(condition=clause)
            return LogicalOr(branches=[[*branch, clause] for branch in tree.branches])
        return LogicalAnd(conditions=[tree.condition, clause])

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def compile_params(
        self,
        index: Optional[str],
        wheres: Any,
        options: Any = None,
        columns: Columns = None,
        id: Optional[Any] = None,
        allow_refresh: bool = False,
    ) -> CompiledRequest:
        """Compile a filtered fetch request.

        Args:
            index: Target index name (omitted from the document when empty)
            wheres: Where-tree mapping or typed where node
            options: Options mapping or `QueryOptions`
            columns: `_source` projection; wildcard selects everything
            id: Document id for single-document requests
            allow_refresh: Accept the `refresh` option (delete/write path)

        Returns:
            CompiledRequest with the request document and stashed metadata
        """
        context = self.new_context()
        options = self._prepare_options(options, context)

        params: Dict[str, Any] = {}
        if index:
            params["index"] = index
        if id is not None:
            params["id"] = id
        params["body"] = self.where_compiler.build_query(wheres, context)
        self._apply_source(params, columns)
        self._apply_options(params, options, context, allow_refresh)
        apply_post_processing(params, context)

        self.logger.message("Compiled request for index %s", index)
        return CompiledRequest(params=params, meta=dict(context.meta))

    def build_params(
        self,
        index: Optional[str],
        wheres: Any,
        options: Any = None,
        columns: Columns = None,
        id: Optional[Any] = None,
    ) -> Dict[str, Any]:
        return self.compile_params(index, wheres, options=options, columns=columns, id=id).params

    def compile_search_params(
        self,
        index: Optional[str],
        search_query: str,
        search_options: Optional[Dict[str, Any]] = None,
        wheres: Any = None,
        options: Any = None,
        fields: SearchFields = None,
        columns: Columns = None,
    ) -> CompiledRequest:
        """Compile a free-text search request.

        Args:
            index: Target index name
            search_query: Query-string text
            search_options: Extra `query_string` parameters; `highlight` is
                lifted into the request body instead
            wheres: Where-tree the search clause is spliced into
            options: Options mapping or `QueryOptions`
            fields: Search fields, either `{field: boost}` or a list of names
            columns: `_source` projection
        """
        context = self.new_context()
        search_options = self._prepare_options(search_options, context)
        if not isinstance(search_options, MappingABC):
            raise InvalidOptionError("Search options must be a mapping", received=type(search_options).__name__)
        search_options = dict(search_options)
        options = self._prepare_options(options, context)

        params: Dict[str, Any] = {}
        if index:
            params["index"] = index
        body: Dict[str, Any] = {}

        query_string: Dict[str, Any] = {"query": search_query}
        if fields:
            query_string["fields"] = self._boosted_fields(fields)
            if len(query_string["fields"]) > 1:
                query_string["type"] = "cross_fields"
        highlight = search_options.pop("highlight", None)
        if highlight:
            body["highlight"] = highlight
        query_string.update(search_options)

        tree = self.add_search_to_wheres(wheres, query_string)
        body["query"] = self.where_compiler.compile(tree, context)
        params["body"] = body
        self._apply_source(params, columns)
        self._apply_options(params, options, context, False)
        apply_post_processing(params, context)

        self.logger.message("Compiled search request for index %s", index)
        return CompiledRequest(params=params, meta=dict(context.meta))

    def build_search_params(
        self,
        index: Optional[str],
        search_query: str,
        search_options: Optional[Dict[str, Any]] = None,
        wheres: Any = None,
        options: Any = None,
        fields: SearchFields = None,
        columns: Columns = None,
    ) -> Dict[str, Any]:
        return self.compile_search_params(
            index,
            search_query,
            search_options=search_options,
            wheres=wheres,
            options=options,
            fields=fields,
            columns=columns,
        ).params

    def compile_delete_params(
        self,
        index: Optional[str],
        wheres: Any = None,
        options: Any = None,
        id: Optional[Any] = None,
    ) -> CompiledRequest:
        """Compile a delete request.

        With an `id`, the document is `{"index", "id", "refresh"}` and refresh
        defaults to `"wait_for"`. Otherwise a delete-by-query document is
        compiled that also accepts the `refresh` option.
        """
        if id is None:
            return self.compile_params(index, wheres, options=options, allow_refresh=True)

        context = self.new_context()
        options = self._prepare_options(options, context)
        write = parse_options(options, WriteOptions)
        refresh = DEFAULT_DELETE_REFRESH if write.refresh is None else write.refresh
        self.logger.message("Compiled delete request for %s/%s", index, id)
        return CompiledRequest(params={"index": index, "id": id, "refresh": refresh}, meta=dict(context.meta))

    def build_delete_params(
        self,
        index: Optional[str],
        wheres: Any = None,
        options: Any = None,
        id: Optional[Any] = None,
    ) -> Dict[str, Any]:
        return self.compile_delete_params(index, wheres, options=options, id=id).params

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _prepare_options(options: Any, context: CompileContext) -> Any:
        # `_meta` is caller metadata: stash it and compile the rest
        raw = normalize_options_input(options)
        if not isinstance(raw, MappingABC):
            return raw
        raw, meta = split_meta(raw)
        if meta:
            context.stash_meta(**meta)
        return raw

    @staticmethod
    def _boosted_fields(fields: SearchFields) -> List[str]:
        if isinstance(fields, str):
            pairs: List[Tuple[str, Any]] = [(fields, 1)]
        elif isinstance(fields, MappingABC):
            pairs = list(fields.items())
        else:
            pairs = [(field, 1) for field in fields]
        return [
            f"{field}^{boost}" if RequestBuilder._boost_value(field, boost) > 1 else field for field, boost in pairs
        ]

    @staticmethod
    def _boost_value(field: str, boost: Any) -> float:
        # Numeric strings ("2", "1.5") are accepted as boosts
        if isinstance(boost, (int, float)) and not isinstance(boost, bool):
            return boost
        try:
            return float(boost)
        except (TypeError, ValueError):
            raise InvalidOptionError("Search field boost must be numeric", option="fields", field=field, boost=boost)

    @staticmethod
    def _apply_source(params: Dict[str, Any], columns: Columns) -> None:
        if is_wildcard_columns(columns):
            return
        params["body"]["_source"] = columns if isinstance(columns, str) else list(columns)

    def _apply_options(
        self, params: Dict[str, Any], options: Any, context: CompileContext, allow_refresh: bool
    ) -> None:
        compiled = self.options_compiler.compile(options, context, allow_refresh=allow_refresh)
        merge_params(params, compiled.to_params())


request_builder = RequestBuilder()


def build_params(
    index: Optional[str], wheres: Any, options: Any = None, columns: Columns = None, id: Optional[Any] = None
) -> Dict[str, Any]:
    """Build a fetch request with the default builder."""
    return request_builder.build_params(index, wheres, options=options, columns=columns, id=id)


def build_search_params(
    index: Optional[str],
    search_query: str,
    search_options: Optional[Dict[str, Any]] = None,
    wheres: Any = None,
    options: Any = None,
    fields: SearchFields = None,
    columns: Columns = None,
) -> Dict[str, Any]:
    """Build a free-text search request with the default builder."""
    return request_builder.build_search_params(
        index,
        search_query,
        search_options=search_options,
        wheres=wheres,
        options=options,
        fields=fields,
        columns=columns,
    )


def build_delete_params(
    index: Optional[str], wheres: Any = None, options: Any = None, id: Optional[Any] = None
) -> Dict[str, Any]:
    """Build a delete request with the default builder."""
    return request_builder.build_delete_params(index, wheres, options=options, id=id)
