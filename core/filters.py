"""
Resource filters: keep or drop resources by walking their refreshed state.

A filter names a service (empty for all), a dotted attribute path and the
values it accepts. Without accepted values the filter only checks that the
path resolves to something non-empty. Lists met along the path are walked
element by element and their results flattened.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

from glom import Coalesce, Flatten, Path, glom

from .exceptions import ConversionError, FilterParseError
from .resource import Resource, contains_resource
from .value import to_python

logger = logging.getLogger("tfimport.filters")

ID_FIELD = "id"


@dataclass(frozen=True)
class ResourceFilter:
    """Inclusion predicate over a resource"""
    service_name: str = ""
    field_path: str = ID_FIELD
    acceptable_values: Optional[Sequence[str]] = None   # None means existence-only

    def is_applicable(self, service_name: str) -> bool:
        return self.service_name == "" or self.service_name == service_name

    def is_initial(self) -> bool:
        """Id filters only need seed data and can run before refresh"""
        return self.field_path == ID_FIELD

    def filter(self, resource: Resource) -> bool:
        """Return True if the resource should be kept"""
        if not self.is_applicable(resource.service_name()):
            return True

        if self.field_path == ID_FIELD:
            candidates = [resource.import_id]
        else:
            if resource.instance_state is None:
                logger.warning(f"Dropping {resource.address}: no refreshed state to filter on")
                return False
            try:
                tree = to_python(resource.instance_state)
            except ConversionError as e:
                logger.error(f"Dropping {resource.address}: cannot inspect state: {e}")
                return False

            if self.acceptable_values is None:
                return walk_and_check_field(self.field_path, tree)
            candidates = walk_and_get(self.field_path, tree)

        accepted = set(self.acceptable_values or ())
        for candidate in candidates:
            text = _scalar_to_string(candidate)
            if text is not None and text in accepted:
                return True
        return False


def walk_and_get(path: str, data: Any) -> List[Any]:
    """Collect every non-empty leaf reachable along `path`"""
    return glom(data, _path_spec(_split_path(path)))


def walk_and_check_field(path: str, data: Any) -> bool:
    """True if `path` resolves to at least one non-empty leaf"""
    return bool(walk_and_get(path, data))


def _split_path(path: str) -> Tuple[str, ...]:
    return tuple(path.split(".")) if path else ()


def _path_spec(segments: Tuple[str, ...]) -> Callable[[Any], List[Any]]:
    """Build a glom spec collecting the non-empty leaves under `segments`.

    Lists met along the way are fanned out: the remaining path is applied to
    every element and the per-element results are flattened.
    """
    if segments:
        key, rest = Path(segments[0]), _path_spec(segments[1:])

        def step(target):
            # only mappings have fields; anything else ends the branch
            if not isinstance(target, dict):
                return []
            child = glom(target, Coalesce(key, default=None))
            return [] if child is None else glom(child, rest)
    else:
        def step(target):
            return [] if _is_empty(target) else [target]

    def spec(target):
        if isinstance(target, list):
            return glom(target, ([spec], Flatten()))
        return step(target)

    return spec


def _is_empty(data: Any) -> bool:
    if data is None:
        return True
    if isinstance(data, (str, list, dict)):
        return len(data) == 0
    return False


def _scalar_to_string(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return None


def parse_filter(expression: str) -> ResourceFilter:
    """Parse a filter expression.

    Two forms are accepted:
      Type=<service>;Name=<field.path>;Value=<v1>:<v2>
      <service>=<id1>:<id2>
    `Type` and `Value` are optional in the first form, `Name` defaults to id.
    """
    expression = expression.strip()
    if not expression:
        raise FilterParseError("empty filter expression")

    if expression.startswith(("Type=", "Name=", "Value=")):
        parts = {}
        for segment in expression.split(";"):
            key, sep, value = segment.partition("=")
            if not sep or key not in ("Type", "Name", "Value"):
                raise FilterParseError(f"invalid filter segment {segment!r} in {expression!r}")
            if key in parts:
                raise FilterParseError(f"duplicate filter key {key!r} in {expression!r}")
            parts[key] = value
        field_path = parts.get("Name") or ID_FIELD
        values = parts["Value"].split(":") if "Value" in parts else None
        return ResourceFilter(service_name=parts.get("Type", ""), field_path=field_path, acceptable_values=values)

    service_name, sep, ids = expression.partition("=")
    if not sep or not service_name or not ids:
        raise FilterParseError(f"invalid filter expression {expression!r}")
    return ResourceFilter(service_name=service_name, field_path=ID_FIELD, acceptable_values=ids.split(":"))


def filter_cleanup(resources: List[Resource], filters: Sequence[ResourceFilter], is_initial: bool) -> List[Resource]:
    """Keep resources passing every filter of one phase, dropping duplicates"""
    phase_filters = [f for f in filters if f.is_initial() == is_initial]
    if not phase_filters:
        return list(resources)

    kept: List[Resource] = []
    for resource in resources:
        if all(f.filter(resource) for f in phase_filters) and not contains_resource(kept, resource):
            kept.append(resource)

    dropped = len(resources) - len(kept)
    if dropped:
        phase = "initial" if is_initial else "post-refresh"
        logger.info(f"Filtered out {dropped} of {len(resources)} resources ({phase})")
    return kept
