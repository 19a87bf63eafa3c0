"""Type aliases for the elasticwhere package.

This module provides reusable type definitions to keep compiler signatures
readable.
"""

from typing import Any, Dict, List, Mapping, Sequence, Union

# A piece of the search engine's query document, e.g. {"range": {...}}
QueryFragment = Dict[str, Any]

# Column projection for `_source`
Columns = Union[str, Sequence[str], None]

# Free-text search fields with boost levels: {"title": 2, "body": 1}
SearchFields = Union[Mapping[str, Union[int, float]], Sequence[str], None]

SortEntries = List[Dict[str, Any]]
