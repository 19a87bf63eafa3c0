"""Pytest configuration and fixtures for query compiler tests."""

from typing import Optional

import pytest
from dotenv import load_dotenv

from elasticwhere.builder import RequestBuilder
from elasticwhere.mapping import KeywordResolver, MappingKeywordResolver
from elasticwhere.querydsl.compilers.where import WhereCompiler
from elasticwhere.querydsl.context import CompileContext

# Load environment variables
load_dotenv()


@pytest.fixture(scope="session")
def books_mapping():
    """Index mapping document for a `books` index."""
    return {
        "books": {
            "mappings": {
                "properties": {
                    "title": {"type": "text", "fields": {"keyword": {"type": "keyword", "ignore_above": 256}}},
                    "status": {"type": "keyword"},
                    "tags": {"type": "keyword"},
                    "summary": {"type": "text"},
                    "year": {"type": "integer"},
                    "location": {"type": "geo_point"},
                    "comments": {
                        "type": "nested",
                        "properties": {
                            "author": {"type": "text", "fields": {"keyword": {"type": "keyword"}}},
                            "likes": {"type": "integer"},
                        },
                    },
                }
            }
        }
    }


@pytest.fixture(scope="session")
def resolver(books_mapping):
    return MappingKeywordResolver.from_index_mapping(books_mapping, index="books")


# Resolver that never finds a keyword field
class NoKeywordResolver(KeywordResolver):
    def resolve_keyword_field(self, field: str) -> Optional[str]:
        return None


@pytest.fixture
def no_keyword_resolver():
    return NoKeywordResolver()


@pytest.fixture
def context(resolver):
    """Fresh compile context with mapping validation enabled."""
    return CompileContext(keyword_resolver=resolver, bypass_map_validation=False, allow_id_sort=False)


@pytest.fixture
def bypass_context():
    return CompileContext(bypass_map_validation=True)


@pytest.fixture(scope="session")
def compiler():
    return WhereCompiler()


@pytest.fixture
def builder(resolver):
    return RequestBuilder(keyword_resolver=resolver, bypass_map_validation=False, allow_id_sort=False)
