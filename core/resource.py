"""
Resource entity and attribute path accessors for refreshed state.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pyvider.cty import CtyList, CtyMap, CtyObject, CtyValue
from pyvider.cty.types.structural.dynamic import unwrap_dynamic

from .exceptions import RefreshError
from .value import (
    as_string,
    as_value_map,
    as_value_slice,
    list_to_value,
    object_val,
    string_val,
    value_to_string,
)


_UNSAFE_NAME_CHARS = re.compile(r"[^0-9A-Za-z_\-]")


def sanitize_name(name: str) -> str:
    """Turn an arbitrary provider name into a valid local resource name"""
    name = _UNSAFE_NAME_CHARS.sub("-", name)
    if name[:1].isdigit():
        name = "tfer--" + name
    return name


@dataclass(frozen=True)
class Address:
    """Stable (type, name) pair identifying a resource"""
    type: str
    name: str
    mode: str = "managed"

    def __str__(self) -> str:
        if self.mode == "data":
            return f"data.{self.type}.{self.name}"
        return f"{self.type}.{self.name}"


@dataclass
class Resource:
    """A single discovered resource: seed attributes plus refreshed state"""
    address: Address
    import_id: str                            # provider-facing identifier used to refresh
    provider: str                             # owning provider, prefix of address.type
    prior_state: Dict[str, str] = None        # flat seed attributes used when refreshing
    instance_state: Optional[CtyValue] = None   # None until a refresh succeeds
    ignore_keys: List[str] = None
    allow_empty_values: List[str] = None
    additional_fields: Dict[str, Any] = None
    slow_query_required: bool = False

    def __post_init__(self):
        """Fill defaults and make sure the seed carries the identifier"""
        if self.prior_state is None:
            self.prior_state = {}
        if self.ignore_keys is None:
            self.ignore_keys = []
        if self.allow_empty_values is None:
            self.allow_empty_values = []
        if self.additional_fields is None:
            self.additional_fields = {}

        self.prior_state.setdefault("id", self.import_id)

        if not self.address.type.startswith(self.provider + "_"):
            raise ValueError(
                f"Resource type {self.address.type} does not belong to provider {self.provider}"
            )

    @classmethod
    def new(cls, resource_id: str, resource_name: str, resource_type: str, provider: str,
            attributes: Optional[Dict[str, str]] = None,
            allow_empty_values: Optional[List[str]] = None,
            additional_fields: Optional[Dict[str, Any]] = None) -> "Resource":
        """Create a resource from listing output"""
        if attributes is None:
            attributes = {}
        # refresh relies on the id being part of the seed
        attributes["id"] = resource_id
        return cls(
            address=Address(type=resource_type, name=sanitize_name(resource_name)),
            import_id=resource_id,
            provider=provider,
            prior_state=attributes,
            allow_empty_values=list(allow_empty_values or []),
            additional_fields=dict(additional_fields or {}),
        )

    @classmethod
    def new_simple(cls, resource_id: str, resource_name: str, resource_type: str, provider: str,
                   allow_empty_values: Optional[List[str]] = None) -> "Resource":
        return cls.new(resource_id, resource_name, resource_type, provider, {}, allow_empty_values, {})

    def service_name(self) -> str:
        """Resource type without the provider prefix"""
        prefix = self.provider + "_"
        if self.address.type.startswith(prefix):
            return self.address.type[len(prefix):]
        return self.address.type

    def id_key(self) -> str:
        """Most specific stable identifier key the seed exposes"""
        if "self_link" in self.prior_state:
            return "self_link"
        return "id"

    def is_refreshed(self) -> bool:
        state = self.instance_state
        return state is not None and not state.is_unknown and not state.is_null

    def _require_state(self) -> CtyValue:
        if self.instance_state is None:
            raise RefreshError(f"{self.address} has no refreshed state")
        return self.instance_state

    # Single-level accessors

    def has_state_attr(self, attr: str) -> bool:
        if not self.is_refreshed():
            return False
        return has_value_attr(self.instance_state, attr)

    def get_state_attr(self, attr: str) -> str:
        if not self.has_state_attr(attr):
            return ""
        return value_to_string(get_value_attr(self.instance_state, attr))

    def get_state_attr_value(self, attr: str) -> Optional[CtyValue]:
        if not self.has_state_attr(attr):
            return None
        return get_value_attr(self.instance_state, attr)

    def get_state_attr_slice(self, attr: str) -> List[CtyValue]:
        if not self.has_state_attr(attr):
            return []
        return as_value_slice(get_value_attr(self.instance_state, attr))

    def get_state_attr_map(self, attr: str) -> Dict[str, CtyValue]:
        if not self.has_state_attr(attr):
            return {}
        return as_value_map(get_value_attr(self.instance_state, attr))

    def set_state_attr(self, attr: str, value: CtyValue):
        state_map = as_value_map(self._require_state())
        state_map[attr] = value
        self.instance_state = object_val(state_map)

    def delete_state_attr(self, attr: str):
        state_map = as_value_map(self._require_state())
        state_map.pop(attr, None)
        self.instance_state = object_val(state_map)

    def sort_state_attr_string_slice(self, attr: str):
        """Sort a list of strings in place; absent attributes are left alone"""
        if not self.has_state_attr(attr):
            return
        items = self.get_state_attr_slice(attr)
        if not items:
            return
        sorted_strings = sorted(as_string(item) for item in items)
        self.set_state_attr(attr, list_to_value([string_val(s) for s in sorted_strings]))

    # Accessors for a singleton list of objects, e.g. `versioning[0].enabled`

    def has_state_attr_first_attr(self, first_attr: str, second_attr: str) -> bool:
        if not self.has_state_attr(first_attr):
            return False
        items = self.get_state_attr_slice(first_attr)
        if not items:
            return False
        return has_value_attr(items[0], second_attr)

    def get_state_attr_first_attr(self, first_attr: str, second_attr: str) -> str:
        if not self.has_state_attr_first_attr(first_attr, second_attr):
            return ""
        first = self.get_state_attr_slice(first_attr)[0]
        return value_to_string(get_value_attr(first, second_attr))

    def get_state_attr_first_attr_map(self, first_attr: str, second_attr: str) -> Dict[str, CtyValue]:
        if not self.has_state_attr_first_attr(first_attr, second_attr):
            return {}
        first = self.get_state_attr_slice(first_attr)[0]
        return as_value_map(get_value_attr(first, second_attr))

    def set_state_attr_first_attr(self, first_attr: str, second_attr: str, value: CtyValue):
        state_map = as_value_map(self._require_state())
        first_map = as_value_map(as_value_slice(state_map[first_attr])[0])
        first_map[second_attr] = value
        state_map[first_attr] = list_to_value([object_val(first_map)])
        self.instance_state = object_val(state_map)

    def delete_state_attr_first_attr(self, first_attr: str, second_attr: str):
        state_map = as_value_map(self._require_state())
        first_map = as_value_map(as_value_slice(state_map[first_attr])[0])
        first_map.pop(second_attr, None)
        state_map[first_attr] = list_to_value([object_val(first_map)])
        self.instance_state = object_val(state_map)

    def sort_state_attr_each_attr_string_slice(self, first_attr: str, second_attr: str):
        """Sort the string list `second_attr` inside every element of `first_attr`"""
        if not self.has_state_attr(first_attr):
            return
        items = self.get_state_attr_slice(first_attr)
        if not items:
            return
        for position, item in enumerate(items):
            if not has_value_attr(item, second_attr):
                continue
            strings = [as_string(s) for s in as_value_slice(get_value_attr(item, second_attr))]
            if not strings:
                continue
            value_map = as_value_map(item)
            value_map[second_attr] = list_to_value([string_val(s) for s in sorted(strings)])
            items[position] = object_val(value_map)
        self.set_state_attr(first_attr, list_to_value(items))


def has_value_attr(value: CtyValue, attr: str) -> bool:
    """True if an object attribute, map key or list index exists and is not null"""
    value = unwrap_dynamic(value)
    if value.is_unknown or value.is_null:
        return False
    if isinstance(value.type, CtyObject):
        return value.type.has_attribute(attr) and not value[attr].is_null
    if isinstance(value.type, CtyMap):
        return attr in value.value and not value.value[attr].is_null
    if isinstance(value.type, CtyList):
        return attr.isdigit() and int(attr) < len(value.value) and not value.value[int(attr)].is_null
    return False


def get_value_attr(value: CtyValue, attr: str) -> CtyValue:
    value = unwrap_dynamic(value)
    if isinstance(value.type, CtyObject):
        return value[attr]
    if isinstance(value.type, CtyMap):
        return value.value[attr]
    if isinstance(value.type, CtyList):
        return value.value[int(attr)]
    raise TypeError(f"cannot read {attr!r} from a value of type {value.type}")


def contains_resource(resources: List[Resource], resource: Resource) -> bool:
    return any(
        existing.address == resource.address and existing.import_id == resource.import_id
        for existing in resources
    )
