"""
Helpers for refreshed resource state built on pyvider.cty.

State trees are `CtyValue`s. This module adds what the import core needs on
top of the type system: building values from plain Python, constructing lists
whose object elements omit optional attributes, and rendering primitives as
strings.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from pyvider.cty import (
    CtyBool,
    CtyConversionError,
    CtyDynamic,
    CtyList,
    CtyMap,
    CtyNumber,
    CtyObject,
    CtyString,
    CtyType,
    CtyValidationError,
    CtyValue,
    convert,
    deep_values,
    unify,
)
from pyvider.cty.conversion import cty_to_native
from pyvider.cty.types.structural.dynamic import unwrap_dynamic

from .exceptions import ConversionError, ListUnificationError


EMPTY_OBJECT = CtyObject(attribute_types={})


# Constructors

def string_val(value: str) -> CtyValue:
    return CtyString().validate(value)


def number_val(value: Any) -> CtyValue:
    if isinstance(value, bool):
        raise TypeError("booleans are not numbers")
    if isinstance(value, float):
        value = Decimal(repr(value))
    return CtyNumber().validate(value)


def bool_val(value: bool) -> CtyValue:
    return CtyBool().validate(bool(value))


def null_val(value_type: CtyType) -> CtyValue:
    return CtyValue.null(value_type)


def unknown_val(value_type: CtyType) -> CtyValue:
    return CtyValue.unknown(value_type)


def object_val(attributes: Dict[str, CtyValue]) -> CtyValue:
    attribute_types = {name: value.type for name, value in attributes.items()}
    return CtyObject(attribute_types=attribute_types).validate(dict(attributes))


def list_val(items: Sequence[CtyValue]) -> CtyValue:
    """Build a homogeneous, non-empty list"""
    if not items:
        raise ValueError("list_val requires at least one element; use list_empty")
    element_type = items[0].type
    for position, item in enumerate(items):
        if not item.type.equal(element_type):
            raise ValueError(
                f"inconsistent list element types: [0] is {element_type}, [{position}] is {item.type}"
            )
    return CtyList(element_type=element_type).validate(list(items))


def list_empty(element_type: CtyType) -> CtyValue:
    return CtyList(element_type=element_type).validate([])


def map_val(items: Dict[str, CtyValue]) -> CtyValue:
    """Build a homogeneous, non-empty map"""
    if not items:
        raise ValueError("map_val requires at least one element")
    element_type = next(iter(items.values())).type
    for key, item in items.items():
        if not item.type.equal(element_type):
            raise ValueError(f"inconsistent map element types at key {key!r}: {item.type} != {element_type}")
    return CtyMap(element_type=element_type).validate(dict(items))


# Accessors

def is_object(value: CtyValue) -> bool:
    return isinstance(unwrap_dynamic(value).type, CtyObject)


def as_value_map(value: CtyValue) -> Dict[str, CtyValue]:
    """Attributes of an object or entries of a map, as a fresh dict"""
    value = unwrap_dynamic(value)
    if not isinstance(value.type, (CtyObject, CtyMap)):
        raise TypeError(f"as_value_map on type {value.type}")
    if value.is_null or value.is_unknown:
        return {}
    return dict(value.value)


def as_value_slice(value: CtyValue) -> List[CtyValue]:
    value = unwrap_dynamic(value)
    if not isinstance(value.type, CtyList):
        raise TypeError(f"as_value_slice on type {value.type}")
    if value.is_null or value.is_unknown:
        return []
    return list(value.value)


def as_string(value: CtyValue) -> str:
    value = unwrap_dynamic(value)
    if not isinstance(value.type, CtyString):
        raise TypeError(f"as_string on type {value.type}")
    if value.is_null or value.is_unknown:
        raise ValueError(f"as_string on null or unknown value of type {value.type}")
    return value.value


# Unification

def unify_types(types: Sequence[CtyType]) -> Optional[CtyType]:
    """Return the type every one of `types` converts to, or None.

    Objects unify to the union of their attributes. An attribute missing from
    some of the objects is optional in the result, so converting those objects
    fills it with null. Dynamic types (untyped nulls) join anything. Everything
    else is left to pyvider's `unify`.
    """
    concrete = [t for t in types if not isinstance(t, CtyDynamic)]
    if not concrete:
        return CtyDynamic() if types else None

    if all(isinstance(t, CtyObject) for t in concrete):
        names = sorted({name for t in concrete for name in t.attribute_types})
        attributes = {}
        for name in names:
            attribute_type = unify_types([t.attribute_types[name] for t in concrete if t.has_attribute(name)])
            if attribute_type is None:
                return None
            attributes[name] = attribute_type
        optional = [name for name in names if not all(t.has_attribute(name) for t in concrete)]
        return CtyObject(attribute_types=attributes, optional_attributes=optional)

    if all(isinstance(t, CtyList) for t in concrete):
        element = unify_types([t.element_type for t in concrete])
        return CtyList(element_type=element) if element is not None else None

    return unify(concrete)


def _convert_list(items: Sequence[CtyValue], element_type: CtyType) -> CtyValue:
    converted = [convert(item, element_type) for item in items]
    # converted values carry the concrete type, without optional markers
    concrete = next((item.type for item in converted if not item.is_null), converted[0].type)
    return CtyList(element_type=concrete).validate(converted)


def list_to_value(items: Sequence[CtyValue]) -> CtyValue:
    """Build a list value from items that are meant to share one schema.

    An empty input yields an explicitly empty list. Object and map items are
    unified first so elements missing optional attributes still fit; items that
    cannot be unified raise ListUnificationError.
    """
    if not items:
        return list_empty(EMPTY_OBJECT)

    first_type = unwrap_dynamic(items[0]).type
    if not isinstance(first_type, (CtyObject, CtyMap)):
        return list_val(items)

    unified = unify_types([item.type for item in items])
    if unified is None:
        shapes = ", ".join(sorted({str(item.type) for item in items}))
        raise ListUnificationError(f"list elements have no common type: {shapes}")

    try:
        return _convert_list(items, unified)
    except (CtyConversionError, CtyValidationError) as e:
        raise ListUnificationError(f"list element cannot be converted to {unified}: {e}") from e


# Bridging to plain Python

def from_python(obj: Any) -> CtyValue:
    """Build a value from a JSON-like Python tree.

    None becomes an untyped null and lists are unified like `list_to_value`
    does, so provider output with ragged list elements is accepted.
    """
    if isinstance(obj, CtyValue):
        return obj
    if obj is None:
        return null_val(CtyDynamic())
    if isinstance(obj, bool):
        return bool_val(obj)
    if isinstance(obj, (int, float, Decimal)):
        return number_val(obj)
    if isinstance(obj, str):
        return string_val(obj)
    if isinstance(obj, dict):
        return object_val({str(key): from_python(item) for key, item in obj.items()})
    if isinstance(obj, (list, tuple)):
        items = [from_python(item) for item in obj]
        if not items:
            return list_empty(CtyDynamic())
        element_type = unify_types([item.type for item in items])
        if element_type is None:
            raise ConversionError(f"list elements have no common type: {obj!r}")
        try:
            return _convert_list(items, element_type)
        except (CtyConversionError, CtyValidationError) as e:
            raise ConversionError(f"list elements cannot be converted to {element_type}: {e}") from e
    raise ConversionError(f"unsupported Python type {type(obj).__name__}")


def to_python(value: CtyValue) -> Any:
    """Convert a value to a generic tree of dict, list, str, int, float, bool and None.

    Unknown values and non-finite numbers have no plain representation and
    raise ConversionError.
    """
    for path, node in deep_values(value):
        if node.is_unknown:
            raise ConversionError("value is not known", str(path))
        node = unwrap_dynamic(node)
        if isinstance(node.type, CtyNumber) and not node.is_null and not node.value.is_finite():
            raise ConversionError(f"number {node.value} is not finite", str(path))
    return cty_to_native(value)


def value_to_string(value: CtyValue) -> str:
    """Render a primitive value as a string.

    Integral numbers render without a fractional part, other numbers with six
    decimals.
    """
    value = unwrap_dynamic(value)
    if value.is_null or value.is_unknown:
        return repr(value)
    if isinstance(value.type, CtyString):
        return value.value
    if isinstance(value.type, CtyBool):
        return "true" if value.value else "false"
    if isinstance(value.type, CtyNumber):
        number = value.value
        if number.is_finite() and number == number.to_integral_value():
            return str(int(number))
        return f"{number:.6f}"
    return repr(value)
