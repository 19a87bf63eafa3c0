"""Pydantic schemas for compiler inputs and outputs.

Options maps and the structured operands of `group` / `nested` /
`innerNested` / `multi_match` conditions are validated through these models,
so unknown keys and missing required keys fail before any query fragment is
produced.
"""

from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import InvalidOptionError, MalformedConditionError, UnrecognizedOptionError

ModelT = TypeVar("ModelT", bound=BaseModel)


# ===========================================================================
# Options
# ===========================================================================


class _OptionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class GeoBoxFilter(_OptionModel):
    field: str
    top_left: Any = Field(alias="topLeft")
    bottom_right: Any = Field(alias="bottomRight")


class GeoPointFilter(_OptionModel):
    field: str
    distance: Union[str, int, float]
    geo_point: Tuple[float, float] = Field(alias="geoPoint", description="(lat, lon) pair.")


class FilterOptions(_OptionModel):
    geo_box: Optional[GeoBoxFilter] = Field(None, alias="filterGeoBox")
    geo_point: Optional[GeoPointFilter] = Field(None, alias="filterGeoPoint")


class RandomScore(_OptionModel):
    column: str
    seed: Union[int, str]


class QueryOptions(_OptionModel):
    """Closed set of request options accepted by the options compiler."""

    limit: Optional[int] = Field(None, ge=0, description="Envelope `size`.")
    skip: Optional[int] = Field(None, ge=0, description="Envelope `from`.")
    sort: Optional[Dict[str, Any]] = Field(None, description="Ordered field -> sort spec pairs.")
    search_after: Optional[List[Any]] = None
    prev_search_after: Optional[Any] = Field(None, description="Stashed as request metadata.")
    min_score: Optional[float] = Field(None, alias="minScore")
    filters: Optional[FilterOptions] = None
    highlights: Optional[Dict[str, Any]] = None
    random_score: Optional[RandomScore] = None
    # Reserved for callers, ignored by the compiler
    multiple: Optional[Any] = None
    search_options: Optional[Any] = Field(None, alias="searchOptions")


class WriteOptions(QueryOptions):
    """Options accepted on the delete/write path, which also carries `refresh`."""

    refresh: Optional[Union[bool, Literal["true", "false", "wait_for"]]] = None


# ===========================================================================
# Structured condition operands
# ===========================================================================


class _PayloadModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, arbitrary_types_allowed=True)


class GroupPayload(_PayloadModel):
    wheres: Any


class NestedPayload(_PayloadModel):
    wheres: Any
    score_mode: str


class InnerNestedPayload(_PayloadModel):
    wheres: Optional[Any] = None
    options: Optional[Any] = None
    score_mode: str
    ignore_unmapped: bool = False


class MultiMatchPayload(_PayloadModel):
    query: Any
    type: str
    fields: List[str]
    options: Optional[Dict[str, Any]] = None


# ===========================================================================
# Compiled outputs
# ===========================================================================


class CompiledOptions(BaseModel):
    """Envelope-level and body-level fragments produced from an options map."""

    envelope: Dict[str, Any] = Field(default_factory=dict)
    body: Dict[str, Any] = Field(default_factory=dict)

    def to_params(self) -> Dict[str, Any]:
        params = dict(self.envelope)
        if self.body:
            params["body"] = dict(self.body)
        return params

    def flatten(self) -> Dict[str, Any]:
        return {**self.envelope, **self.body}


class CompiledRequest(BaseModel):
    """A request document plus the metadata stashed while compiling it."""

    params: Dict[str, Any]
    meta: Dict[str, Any] = Field(default_factory=dict)


# ===========================================================================
# Validation helpers
# ===========================================================================


def _error_location(error: Mapping[str, Any]) -> str:
    return ".".join(str(part) for part in error.get("loc", ()))


def parse_options(raw: Any, model: Type[ModelT] = QueryOptions) -> ModelT:
    """Validate a raw options map into `model`.

    Raises:
        UnrecognizedOptionError: If a key is outside the supported set
        InvalidOptionError: If a supported key carries an invalid value
    """
    if type(raw) is model:
        return raw
    if isinstance(raw, QueryOptions):
        raw = raw.model_dump(by_alias=True, exclude_none=True)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise InvalidOptionError("Options must be a mapping", received=type(raw).__name__)
    try:
        return model.model_validate(dict(raw))
    except ValidationError as exc:
        errors = exc.errors()
        for error in errors:
            if error["type"] == "extra_forbidden":
                raise UnrecognizedOptionError("Unexpected option", option=_error_location(error)) from exc
        first = errors[0]
        raise InvalidOptionError(
            "Invalid option value", option=_error_location(first), reason=first["msg"]
        ) from exc


def parse_payload(raw: Any, model: Type[ModelT], *, field: str, operator: str) -> ModelT:
    """Validate the structured operand of a condition.

    Raises:
        MalformedConditionError: If required keys are missing or mistyped
    """
    if not isinstance(raw, Mapping):
        raise MalformedConditionError(
            "Structured operand must be a mapping", field=field, operator=operator, received=type(raw).__name__
        )
    try:
        return model.model_validate(dict(raw))
    except ValidationError as exc:
        first = exc.errors()[0]
        raise MalformedConditionError(
            "Malformed condition payload",
            field=field,
            operator=operator,
            key=_error_location(first),
            reason=first["msg"],
        ) from exc
