"""
Tests for the condition compiler: one condition in, one query fragment out.
"""

import pytest

from elasticwhere.constants import STRUCTURED_OPERATORS, Operator
from elasticwhere.exceptions import (
    MalformedConditionError,
    MissingKeywordFieldError,
    UnrecognizedOptionError,
    UnsupportedOperatorError,
)
from elasticwhere.querydsl.compilers.condition import ConditionCompiler
from elasticwhere.querydsl.context import CompileContext
from elasticwhere.querydsl.nodes import FieldCondition, GroupCondition, LogicalAnd, MatchCondition


@pytest.fixture
def compile_condition(compiler, context):
    def _compile(condition, parent_path=None, ctx=None):
        return compiler.condition_compiler.compile(condition, ctx or context, parent_path)

    return _compile


class TestOperatorTable:
    """The dispatch table covers every value operator."""

    def test_handlers_cover_every_value_operator(self):
        expected = set(Operator) - set(STRUCTURED_OPERATORS)
        assert set(ConditionCompiler._HANDLERS) == expected

    def test_structured_operators_have_no_handler(self):
        for operator in STRUCTURED_OPERATORS:
            assert operator not in ConditionCompiler._HANDLERS


class TestScalarConditions:
    """Scalar operands compile to match queries."""

    def test_scalar_match(self, compile_condition):
        assert compile_condition({"title": "dune"}) == {"match": {"title": "dune"}}

    def test_numeric_scalar_match(self, compile_condition):
        assert compile_condition({"year": 1965}) == {"match": {"year": 1965}}

    def test_typed_match_condition(self, compile_condition):
        assert compile_condition(MatchCondition(field="title", value="dune")) == {"match": {"title": "dune"}}

    def test_list_without_operator_rejected(self, compile_condition):
        with pytest.raises(MalformedConditionError):
            compile_condition({"tags": ["a", "b"]})


class TestRangeOperators:
    """lt/lte/gt/gte and between."""

    @pytest.mark.parametrize("op", ["lt", "lte", "gt", "gte"])
    def test_range(self, compile_condition, op):
        assert compile_condition({"year": {op: 2000}}) == {"range": {"year": {op: 2000}}}

    def test_between(self, compile_condition):
        assert compile_condition({"year": {"between": [1990, 2000]}}) == {
            "range": {"year": {"gte": 1990, "lte": 2000}}
        }

    def test_between_accepts_tuple(self, compile_condition):
        assert compile_condition({"year": {"between": (1, 2)}}) == {"range": {"year": {"gte": 1, "lte": 2}}}

    def test_not_between(self, compile_condition):
        assert compile_condition({"year": {"not_between": [1990, 2000]}}) == {
            "bool": {"must_not": {"range": {"year": {"gte": 1990, "lte": 2000}}}}
        }

    @pytest.mark.parametrize("operand", [[1], [1, 2, 3], "ab", 5, {"a": 1, "b": 2}])
    def test_between_requires_two_values(self, compile_condition, operand):
        with pytest.raises(MalformedConditionError):
            compile_condition({"year": {"between": operand}})


class TestTextOperators:
    """search, like, not_like, regex, phrase, phrase_prefix."""

    def test_search(self, compile_condition):
        spec = {"query": "dune", "fields": ["title"]}
        assert compile_condition({"_": {"search": spec}}) == {"query_string": spec}

    def test_search_requires_mapping(self, compile_condition):
        with pytest.raises(MalformedConditionError):
            compile_condition({"_": {"search": "dune"}})

    def test_like_escapes_operand(self, compile_condition):
        assert compile_condition({"title": {"like": "a*b"}}) == {"query_string": {"query": "title:*a\\*b*"}}

    def test_like_escapes_spaces(self, compile_condition):
        assert compile_condition({"title": {"like": "foo bar"}}) == {"query_string": {"query": "title:*foo\\ bar*"}}

    def test_not_like(self, compile_condition):
        assert compile_condition({"title": {"not_like": "dune"}}) == {
            "query_string": {"query": "(NOT title:*dune*)"}
        }

    def test_regex(self, compile_condition):
        assert compile_condition({"title": {"regex": "du.*"}}) == {"regexp": {"title": {"value": "du.*"}}}

    def test_phrase(self, compile_condition):
        assert compile_condition({"summary": {"phrase": "desert planet"}}) == {
            "match_phrase": {"summary": "desert planet"}
        }

    def test_phrase_prefix(self, compile_condition):
        assert compile_condition({"summary": {"phrase_prefix": "desert pl"}}) == {
            "match_phrase_prefix": {"summary": {"query": "desert pl"}}
        }


class TestNegations:
    """ne, exists, not_exists."""

    def test_exists(self, compile_condition):
        assert compile_condition({"summary": {"exists": True}}) == {"exists": {"field": "summary"}}

    def test_not_exists(self, compile_condition):
        assert compile_condition({"summary": {"not_exists": True}}) == {
            "bool": {"must_not": [{"exists": {"field": "summary"}}]}
        }

    def test_ne(self, compile_condition):
        assert compile_condition({"status": {"ne": "draft"}}) == {
            "bool": {"must_not": [{"match": {"status": "draft"}}]}
        }


class TestKeywordOperators:
    """in, nin and exact resolve keyword fields."""

    def test_in_uses_keyword_subfield(self, compile_condition):
        assert compile_condition({"title": {"in": ["a", "b"]}}) == {"terms": {"title.keyword": ["a", "b"]}}

    def test_in_keyword_field_verbatim(self, compile_condition):
        assert compile_condition({"status": {"in": ["live"]}}) == {"terms": {"status": ["live"]}}

    def test_in_falls_back_to_raw_field(self, compile_condition):
        assert compile_condition({"summary": {"in": ["x"]}}) == {"terms": {"summary": ["x"]}}

    def test_in_requires_list(self, compile_condition):
        with pytest.raises(MalformedConditionError):
            compile_condition({"status": {"in": "live"}})

    def test_nin(self, compile_condition):
        assert compile_condition({"title": {"nin": ["a"]}}) == {
            "bool": {"must_not": {"terms": {"title.keyword": ["a"]}}}
        }

    def test_exact(self, compile_condition):
        assert compile_condition({"title": {"exact": "Dune"}}) == {"term": {"title.keyword": "Dune"}}

    def test_exact_without_keyword_field_fails(self, compile_condition):
        with pytest.raises(MissingKeywordFieldError) as exc_info:
            compile_condition({"summary": {"exact": "x"}})
        assert exc_info.value.details["field"] == "summary"

    def test_exact_without_resolver_fails(self, compile_condition):
        with pytest.raises(MissingKeywordFieldError):
            compile_condition({"summary": {"exact": "x"}}, ctx=CompileContext(bypass_map_validation=False))

    def test_exact_with_bypass_uses_raw_field(self, compile_condition, bypass_context):
        assert compile_condition({"summary": {"exact": "x"}}, ctx=bypass_context) == {"term": {"summary": "x"}}

    def test_in_with_bypass_uses_raw_field(self, compile_condition, bypass_context):
        assert compile_condition({"title": {"in": ["a"]}}, ctx=bypass_context) == {"terms": {"title": ["a"]}}

    def test_resolver_without_keywords_falls_back(self, compile_condition, no_keyword_resolver):
        ctx = CompileContext(keyword_resolver=no_keyword_resolver, bypass_map_validation=False)
        assert compile_condition({"title": {"in": ["a"]}}, ctx=ctx) == {"terms": {"title": ["a"]}}


class TestUnsupportedOperators:
    """Operators outside the closed set fail loudly."""

    def test_unknown_operator(self, compile_condition):
        with pytest.raises(UnsupportedOperatorError) as exc_info:
            compile_condition({"year": {"eq": 1}})
        assert exc_info.value.details["operator"] == "eq"

    def test_operator_mapping_with_two_entries(self, compile_condition):
        with pytest.raises(MalformedConditionError):
            compile_condition({"year": {"gt": 1, "lt": 5}})

    def test_field_condition_rejects_structured_operator(self):
        with pytest.raises(ValueError):
            FieldCondition(field="comments", operator=Operator.NESTED, operand={})


class TestFieldQualification:
    """Fields inside a nested scope are prefixed with the parent path."""

    def test_field_prefixed(self, compile_condition):
        assert compile_condition({"author": "ann"}, parent_path="comments") == {"match": {"comments.author": "ann"}}

    def test_field_not_double_prefixed(self, compile_condition):
        assert compile_condition({"comments.author": "ann"}, parent_path="comments") == {
            "match": {"comments.author": "ann"}
        }

    def test_prefix_applies_before_keyword_resolution(self, compile_condition):
        assert compile_condition({"author": {"in": ["ann"]}}, parent_path="comments") == {
            "terms": {"comments.author.keyword": ["ann"]}
        }

    def test_similar_prefix_is_not_parent(self, compile_condition):
        assert compile_condition({"commentsCount": {"gt": 1}}, parent_path="comments") == {
            "range": {"comments.commentsCount": {"gt": 1}}
        }


class TestMultiMatch:
    """The reserved multi_match key."""

    def test_multi_match(self, compile_condition):
        condition = {"multi_match": {"query": "dune", "type": "best_fields", "fields": ["title", "summary"]}}
        assert compile_condition(condition) == {
            "multi_match": {"query": "dune", "type": "best_fields", "fields": ["title", "summary"]}
        }

    def test_multi_match_options_merged(self, compile_condition):
        condition = {
            "multi_match": {
                "query": "dune",
                "type": "phrase",
                "fields": ["title"],
                "options": {"slop": 2, "operator": "and"},
            }
        }
        assert compile_condition(condition) == {
            "multi_match": {"query": "dune", "type": "phrase", "fields": ["title"], "slop": 2, "operator": "and"}
        }

    def test_multi_match_missing_keys(self, compile_condition):
        with pytest.raises(MalformedConditionError):
            compile_condition({"multi_match": {"query": "dune"}})

    def test_multi_match_inside_nested_scope_fails(self, compile_condition):
        condition = {"multi_match": {"query": "dune", "type": "best_fields", "fields": ["title"]}}
        with pytest.raises(UnsupportedOperatorError):
            compile_condition(condition, parent_path="comments")


class TestGroup:
    """group conditions select a bool clause."""

    def test_group_must(self, compile_condition):
        condition = {"should": {"group": {"wheres": {"and": [{"status": "live"}, {"year": {"gt": 2000}}]}}}}
        assert compile_condition(condition) == {
            "bool": {
                "should": {
                    "bool": {"must": [{"match": {"status": "live"}}, {"range": {"year": {"gt": 2000}}}]}
                }
            }
        }

    def test_group_connective_not_prefixed(self, compile_condition):
        condition = {"must_not": {"group": {"wheres": {"author": "bob"}}}}
        assert compile_condition(condition, parent_path="comments") == {
            "bool": {"must_not": {"match": {"comments.author": "bob"}}}
        }

    def test_group_requires_bool_clause(self, compile_condition):
        with pytest.raises(MalformedConditionError):
            compile_condition({"title": {"group": {"wheres": {"a": 1}}}})

    def test_group_requires_wheres(self, compile_condition):
        with pytest.raises(MalformedConditionError):
            compile_condition({"must": {"group": {}}})

    def test_typed_group(self, compile_condition):
        group = GroupCondition(connective="filter", wheres=LogicalAnd(conditions=[MatchCondition(field="a", value=1)]))
        assert compile_condition(group) == {"bool": {"filter": {"bool": {"must": [{"match": {"a": 1}}]}}}}


class TestNested:
    """nested, not_nested and innerNested."""

    def test_nested(self, compile_condition):
        condition = {"comments": {"nested": {"wheres": {"and": [{"likes": {"gte": 5}}]}, "score_mode": "avg"}}}
        assert compile_condition(condition) == {
            "nested": {
                "path": "comments",
                "query": {"bool": {"must": [{"range": {"comments.likes": {"gte": 5}}}]}},
                "score_mode": "avg",
            }
        }

    def test_nested_requires_score_mode(self, compile_condition):
        with pytest.raises(MalformedConditionError):
            compile_condition({"comments": {"nested": {"wheres": {"likes": 1}}}})

    def test_nested_requires_wheres(self, compile_condition):
        with pytest.raises(MalformedConditionError):
            compile_condition({"comments": {"nested": {"score_mode": "avg"}}})

    def test_not_nested_does_not_prefix_sub_tree(self, compile_condition):
        condition = {"comments": {"not_nested": {"wheres": {"likes": 5}, "score_mode": "max"}}}
        assert compile_condition(condition) == {
            "bool": {
                "must_not": [
                    {"nested": {"path": "comments", "query": {"match": {"likes": 5}}, "score_mode": "max"}}
                ]
            }
        }

    def test_nested_inside_nested_scope(self, compile_condition):
        condition = {"replies": {"nested": {"wheres": {"text": "hi"}, "score_mode": "avg"}}}
        assert compile_condition(condition, parent_path="comments") == {
            "nested": {
                "path": "comments.replies",
                "query": {"match": {"comments.replies.text": "hi"}},
                "score_mode": "avg",
            }
        }

    def test_inner_nested_defaults(self, compile_condition):
        condition = {"comments": {"innerNested": {"score_mode": "avg"}}}
        assert compile_condition(condition) == {
            "nested": {
                "path": "comments",
                "query": {"match_all": {}},
                "inner_hits": {"size": 100},
                "score_mode": "avg",
                "ignore_unmapped": False,
            }
        }

    def test_inner_nested_empty_list_wheres(self, compile_condition):
        condition = {"comments": {"innerNested": {"wheres": [], "score_mode": "avg"}}}
        assert compile_condition(condition)["nested"]["query"] == {"match_all": {}}

    def test_inner_nested_non_mapping_wheres(self, compile_condition):
        condition = {"comments": {"innerNested": {"wheres": ["likes"], "score_mode": "avg"}}}
        with pytest.raises(MalformedConditionError):
            compile_condition(condition)

    def test_inner_nested_default_size_from_context(self, compile_condition, resolver):
        ctx = CompileContext(keyword_resolver=resolver, inner_hits_default_size=5)
        fragment = compile_condition({"comments": {"innerNested": {"score_mode": "avg"}}}, ctx=ctx)
        assert fragment["nested"]["inner_hits"] == {"size": 5}

    def test_inner_nested_with_wheres_and_options(self, compile_condition):
        condition = {
            "comments": {
                "innerNested": {
                    "wheres": {"and": [{"likes": {"gt": 1}}]},
                    "options": {"limit": 3, "sort": {"likes": "desc", "comments.author": "asc"}},
                    "score_mode": "none",
                    "ignore_unmapped": True,
                }
            }
        }
        assert compile_condition(condition) == {
            "nested": {
                "path": "comments",
                "query": {"bool": {"must": [{"range": {"comments.likes": {"gt": 1}}}]}},
                "inner_hits": {"size": 3, "sort": [{"comments.likes": "desc"}, {"comments.author": "asc"}]},
                "score_mode": "none",
                "ignore_unmapped": True,
            }
        }

    def test_inner_nested_rejects_unknown_option(self, compile_condition):
        condition = {"comments": {"innerNested": {"options": {"offset": 3}, "score_mode": "avg"}}}
        with pytest.raises(UnrecognizedOptionError):
            compile_condition(condition)
