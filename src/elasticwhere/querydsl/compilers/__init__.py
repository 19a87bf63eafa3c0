from .aggs import create_nested_aggs
from .base import BaseCompiler
from .condition import ConditionCompiler
from .options import OptionsCompiler, field_sort, normalize_nested_options, options_compiler
from .post import apply_filter_wrap, apply_function_score_wrap, apply_post_processing
from .where import WhereCompiler, where_compiler

__all__ = (
    "BaseCompiler",
    "ConditionCompiler",
    "WhereCompiler",
    "where_compiler",
    "OptionsCompiler",
    "options_compiler",
    "field_sort",
    "normalize_nested_options",
    "apply_filter_wrap",
    "apply_function_score_wrap",
    "apply_post_processing",
    "create_nested_aggs",
)
