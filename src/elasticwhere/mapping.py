"""Keyword-field resolution.

The condition compiler asks a `KeywordResolver` which field name to use for
exact-match operators (`in`, `nin`, `exact`). Fetching the index mapping is
the caller's business; `MappingKeywordResolver` only interprets a mapping that
has already been retrieved.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, Mapping, Optional

from .exceptions import InvalidConfigError
from .settings import settings

__all__ = (
    "KeywordResolver",
    "MappingKeywordResolver",
    "flatten_properties",
)

KEYWORD_TYPE = "keyword"


class KeywordResolver(ABC):
    """Abstract resolver returning the exact-match field for a field name."""

    @abstractmethod
    def resolve_keyword_field(self, field: str) -> Optional[str]:
        """Return `field`, a keyword sub-field of it, or None if neither is a keyword."""
        raise NotImplementedError


def flatten_properties(properties: Mapping[str, Any], prefix: str = "") -> Dict[str, str]:
    """Flatten mapping `properties` into `{dotted.path: type}`.

    Object fields without an explicit type are reported as "object"; multi-field
    definitions (`fields`) are emitted as `path.subfield`.
    """
    flat: Dict[str, str] = {}
    for name, spec in properties.items():
        path = f"{prefix}{name}"
        if not isinstance(spec, Mapping):
            continue
        flat[path] = spec.get("type", "object")
        for sub_name, sub_spec in (spec.get("fields") or {}).items():
            if isinstance(sub_spec, Mapping):
                flat[f"{path}.{sub_name}"] = sub_spec.get("type", "object")
        if "properties" in spec:
            flat.update(flatten_properties(spec["properties"], prefix=f"{path}."))
    return flat


def _locate_properties(mapping: Mapping[str, Any], index: Optional[str]) -> Mapping[str, Any]:
    if "properties" in mapping:
        return mapping["properties"]
    if "mappings" in mapping:
        return _locate_properties(mapping["mappings"], index)
    # GET /<index>/_mapping responses are keyed by index name
    if index is not None and index in mapping:
        return _locate_properties(mapping[index], None)
    if len(mapping) == 1:
        only = next(iter(mapping.values()))
        if isinstance(only, Mapping):
            return _locate_properties(only, None)
    raise InvalidConfigError("Index mapping has no properties", index=index, keys=sorted(mapping))


class MappingKeywordResolver(KeywordResolver):
    """Resolve keyword fields from a flattened `{field_path: type}` mapping.

    The set of keyword fields is computed once and cached on the instance, so
    one resolver should be kept per index and reused across requests.

    Examples:
        >>> resolver = MappingKeywordResolver({"title": "text", "title.keyword": "keyword"})
        >>> resolver.resolve_keyword_field("title")
        'title.keyword'
    """

    def __init__(self, field_types: Mapping[str, str], keyword_suffix: Optional[str] = None) -> None:
        self._field_types: Dict[str, str] = dict(field_types)
        self.keyword_suffix = keyword_suffix or settings.KEYWORD_SUFFIX
        self._keyword_fields: Optional[FrozenSet[str]] = None

    @classmethod
    def from_index_mapping(
        cls, mapping: Mapping[str, Any], index: Optional[str] = None, keyword_suffix: Optional[str] = None
    ) -> "MappingKeywordResolver":
        """Build a resolver from an index mapping document or a GET mapping response."""
        if not isinstance(mapping, Mapping):
            raise InvalidConfigError("Index mapping must be a mapping", received=type(mapping).__name__)
        return cls(flatten_properties(_locate_properties(mapping, index)), keyword_suffix=keyword_suffix)

    @property
    def field_types(self) -> Dict[str, str]:
        return dict(self._field_types)

    @property
    def keyword_fields(self) -> FrozenSet[str]:
        if self._keyword_fields is None:
            self._keyword_fields = frozenset(
                path for path, field_type in self._field_types.items() if field_type == KEYWORD_TYPE
            )
        return self._keyword_fields

    def resolve_keyword_field(self, field: str) -> Optional[str]:
        keyword_fields = self.keyword_fields
        if not keyword_fields:
            return None
        if field in keyword_fields:
            return field
        candidate = f"{field}.{self.keyword_suffix}"
        if candidate in keyword_fields:
            return candidate
        return None
