"""
Operator and protocol constants shared by the compilers.
"""

from enum import Enum


class Operator(str, Enum):
    """Closed set of condition operators understood by the condition compiler."""

    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    BETWEEN = "between"
    NOT_BETWEEN = "not_between"
    SEARCH = "search"
    LIKE = "like"
    NOT_LIKE = "not_like"
    REGEX = "regex"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"
    NE = "ne"
    IN = "in"
    NIN = "nin"
    EXACT = "exact"
    PHRASE = "phrase"
    PHRASE_PREFIX = "phrase_prefix"
    GROUP = "group"
    NESTED = "nested"
    NOT_NESTED = "not_nested"
    INNER_NESTED = "innerNested"


# Operators whose operand is a structured payload rather than a value
STRUCTURED_OPERATORS = frozenset({Operator.GROUP, Operator.NESTED, Operator.NOT_NESTED, Operator.INNER_NESTED})


class Connective:
    AND = "and"
    OR = "or"


class BoolClause:
    MUST = "must"
    SHOULD = "should"
    MUST_NOT = "must_not"
    FILTER = "filter"


BOOL_CLAUSES = frozenset({BoolClause.MUST, BoolClause.SHOULD, BoolClause.MUST_NOT, BoolClause.FILTER})

# Field key reserved for the multi-field search escape hatch
MULTI_MATCH_FIELD = "multi_match"

# Field key used for the synthetic free-text clause spliced in by search requests
SEARCH_CLAUSE_FIELD = "_"

# Options key holding caller metadata, stripped before compilation
META_OPTION = "_meta"

WILDCARD_COLUMNS = ("*", ["*"], ("*",))
