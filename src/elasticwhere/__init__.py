"""
This __init__.py file makes the elasticwhere directory a Python package
and exposes the request builders, the compile context and the keyword
resolvers for easy access.
"""

from .builder import RequestBuilder, build_delete_params, build_params, build_search_params, request_builder
from .mapping import KeywordResolver, MappingKeywordResolver
from .querydsl.compilers.aggs import create_nested_aggs
from .querydsl.context import CompileContext
from .schema import CompiledRequest, QueryOptions, WriteOptions
from .utils import escape

__version__ = "0.1.0"

__all__ = [
    "RequestBuilder",
    "request_builder",
    "build_params",
    "build_search_params",
    "build_delete_params",
    "create_nested_aggs",
    "CompileContext",
    "CompiledRequest",
    "QueryOptions",
    "WriteOptions",
    "KeywordResolver",
    "MappingKeywordResolver",
    "escape",
]
