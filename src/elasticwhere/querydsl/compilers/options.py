"""Options compiler.

Compiles a request options map into envelope-level keys (`size`, `from`,
`refresh`) and body-level keys (`sort`, `search_after`, `min_score`,
`highlight`). The `filters` and `random_score` options do not produce output
directly: they register geo-filter clauses and the scoring function on the
compile context, where the post-processing passes pick them up.
"""

from collections.abc import Mapping as MappingABC
from typing import Any, Dict, Optional

from ...exceptions import InvalidOptionError
from ...schema import CompiledOptions, FilterOptions, QueryOptions, WriteOptions, parse_options
from ...types import SortEntries
from ..context import CompileContext
from .base import BaseCompiler

__all__ = (
    "OptionsCompiler",
    "options_compiler",
    "field_sort",
    "normalize_nested_options",
)

ID_FIELD = "_id"


def field_sort(field: str, payload: Any, allow_id_sort: bool = False) -> Optional[Dict[str, Any]]:
    """Build one sort entry, or None when the entry must be dropped.

    Payload forms:
    - `"desc"` -> `{field: "desc"}`
    - `{"order": "desc", "mode": "avg", "missing": "_last"}` -> `{field: {...}}`
    - `{"is_geo": True, "pin": [lat, lon], "unit": "km"}` -> `{"_geo_distance": {...}}`
    - `{"is_nested": True, "path": "comments"}` adds the `nested` path, which
      defaults to the first segment of the field

    Sorting on `_id` is dropped unless `allow_id_sort` is set.

    Raises:
        InvalidOptionError: If the payload is neither a string nor a mapping,
            or a geo sort has no pin
    """
    if field == ID_FIELD and not allow_id_sort:
        return None
    if isinstance(payload, str):
        return {field: payload}
    if not isinstance(payload, MappingABC):
        raise InvalidOptionError("Sort payload must be a direction or a mapping", option="sort", field=field)

    order = payload.get("order") or "asc"
    if payload.get("is_geo"):
        pin = payload.get("pin")
        if pin is None:
            raise InvalidOptionError("Geo distance sort requires a pin", option="sort", field=field)
        geo: Dict[str, Any] = {field: pin, "order": order}
        for key in ("unit", "mode", "distance_type"):
            if payload.get(key) is not None:
                geo[key] = payload[key]
        return {"_geo_distance": geo}

    spec: Dict[str, Any] = {"order": order}
    for key in ("mode", "missing", "unmapped_type"):
        if payload.get(key) is not None:
            spec[key] = payload[key]
    if payload.get("is_nested"):
        spec["nested"] = {"path": payload.get("path") or field.split(".")[0]}
    return {field: spec}


class OptionsCompiler(BaseCompiler):
    """Compile options maps into `CompiledOptions` fragments."""

    def compile(self, options: Any, context: CompileContext, allow_refresh: bool = False) -> CompiledOptions:
        """Validate and compile an options map.

        Args:
            options: Raw options mapping, typed options model, or None
            context: Per-call compile context receiving side-channel state
            allow_refresh: Accept `refresh` (delete/write requests only)

        Raises:
            UnrecognizedOptionError: If an option key is not supported
            InvalidOptionError: If a supported option has an invalid value
        """
        opts = parse_options(options, WriteOptions if allow_refresh else QueryOptions)
        envelope: Dict[str, Any] = {}
        body: Dict[str, Any] = {}

        if opts.limit is not None:
            envelope["size"] = opts.limit
        if opts.skip is not None:
            envelope["from"] = opts.skip
        if isinstance(opts, WriteOptions) and opts.refresh is not None:
            envelope["refresh"] = opts.refresh

        if opts.sort is not None:
            body["sort"] = self.compile_sort(opts.sort, context)
        if opts.search_after is not None:
            body["search_after"] = opts.search_after
        if opts.min_score is not None:
            body["min_score"] = opts.min_score
        if opts.highlights is not None:
            body["highlight"] = opts.highlights

        if opts.prev_search_after is not None:
            context.stash_meta(prev_search_after=opts.prev_search_after)
        if opts.filters is not None:
            self._register_filters(opts.filters, context)
        if opts.random_score is not None:
            self.logger.debug("Registering random_score on %s", opts.random_score.column)
            context.set_function_score(
                {"random_score": {"field": opts.random_score.column, "seed": opts.random_score.seed}}
            )

        return CompiledOptions(envelope=envelope, body=body)

    def compile_sort(self, sort: Dict[str, Any], context: CompileContext) -> SortEntries:
        """Compile `{field: payload}` sort pairs in order, dropping invalid entries."""
        entries = []
        for field, payload in sort.items():
            entry = field_sort(field, payload, context.allow_id_sort)
            if entry:
                entries.append(entry)
            else:
                self.logger.debug("Dropping sort entry for %s", field)
        return entries

    def compile_nested(self, options: Any, nested_path: str, context: CompileContext) -> Dict[str, Any]:
        """Compile options for an `inner_hits` clause.

        Body keys are flattened to the top level, and sort fields are
        qualified with `nested_path` so they stay relative to the root
        document. Every sort key is qualified unless it already starts with
        the path, engine keys such as `_score` included.
        """
        flat = self.compile(options, context).flatten()
        if flat.get("sort"):
            prefix = f"{nested_path}."
            sorts = []
            for entry in flat["sort"]:
                for sort_field, sort_payload in entry.items():
                    if not sort_field.startswith(prefix):
                        sort_field = prefix + sort_field
                    sorts.append({sort_field: sort_payload})
            flat["sort"] = sorts
        return flat

    def _register_filters(self, filters: FilterOptions, context: CompileContext) -> None:
        if filters.geo_box is not None:
            box = filters.geo_box
            context.add_filter(
                {"geo_bounding_box": {box.field: {"top_left": box.top_left, "bottom_right": box.bottom_right}}}
            )
            self.logger.debug("Registered geo_bounding_box filter on %s", box.field)
        if filters.geo_point is not None:
            point = filters.geo_point
            lat, lon = point.geo_point
            context.add_filter({"geo_distance": {"distance": point.distance, point.field: {"lat": lat, "lon": lon}}})
            self.logger.debug("Registered geo_distance filter on %s", point.field)


options_compiler = OptionsCompiler()


def normalize_nested_options(options: Any, nested_path: str, context: CompileContext) -> Dict[str, Any]:
    """Compile options for use inside a nested `inner_hits` clause."""
    return options_compiler.compile_nested(options, nested_path, context)
