"""Value Coercion Engine

Converts untyped configuration values (strings, numbers, nested lists as
decoded from YAML/JSON) into the concrete type named by a type descriptor.

Descriptors:
- Scalars: ``string``, ``int``, ``float64``, ``bool``, ``map`` (alias ``map[string]any``),
  ``bytes`` (alias ``[]byte``) and ``any`` (value passed through unchanged)
- Lists: ``[]T``, ``list of T`` or ``list[T]`` where T is any descriptor

A descriptor is parsed into a TypeDescriptor before the value is looked at,
so an unsupported descriptor fails the same way for every input.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Any, Callable, Dict, Optional

from ..errors import CoercionError, UnsupportedTypeError

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")

_TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_LIST_PREFIXES = ("[]", "list of ")


@dataclass(frozen=True)
class TypeDescriptor:
    """Parsed type descriptor: a scalar tag, or a list of an element descriptor."""

    tag: str
    element: Optional["TypeDescriptor"] = None

    @property
    def is_list(self) -> bool:
        return self.element is not None

    def __str__(self) -> str:
        if self.element is not None:
            return f"[]{self.element}"
        return self.tag


def _coerce_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8")
    raise TypeError(f"unsupported source type {type(value).__name__}")


def _coerce_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("bool is not an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        if not math.isfinite(value):
            raise ValueError(f"non-finite number {value}")
        return int(value)  # truncates toward zero
    if isinstance(value, str):
        if not _INT_PATTERN.fullmatch(value):
            raise ValueError(f"invalid literal for base-10 int: {value!r}")
        return int(value, 10)
    raise TypeError(f"unsupported source type {type(value).__name__}")


def _coerce_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("bool is not a number")
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        if not value or value != value.strip() or "_" in value:
            raise ValueError(f"invalid literal for float: {value!r}")
        return float(value)
    raise TypeError(f"unsupported source type {type(value).__name__}")


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value in _TRUE_LITERALS:
            return True
        if value in _FALSE_LITERALS:
            return False
        raise ValueError(f"invalid boolean literal: {value!r}")
    raise TypeError(f"unsupported source type {type(value).__name__}")


def _coerce_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError(f"unsupported source type {type(value).__name__}")


def _coerce_map(value: Any) -> Dict[str, Any]:
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, (str, bytes)):
        decoded = json.loads(value)
        if not isinstance(decoded, dict):
            raise ValueError("JSON value is not an object")
        return decoded
    raise TypeError(f"unsupported source type {type(value).__name__}")


_SCALAR_COERCERS: Dict[str, Callable[[Any], Any]] = {
    "string": _coerce_string,
    "int": _coerce_int,
    "float64": _coerce_float,
    "bool": _coerce_bool,
    "map": _coerce_map,
    "bytes": _coerce_bytes,
    "any": lambda value: value,
}

_TAG_ALIASES = {
    "map[string]any": "map",
    "[]byte": "bytes",
}


@lru_cache(maxsize=256)
def parse_descriptor(type_descriptor: str) -> TypeDescriptor:
    """Parse a descriptor string into a TypeDescriptor.

    Raises:
        UnsupportedTypeError: If the descriptor (or a list's element) has no coercion rule
    """
    text = type_descriptor.strip() if isinstance(type_descriptor, str) else ""
    if text in _TAG_ALIASES:
        return TypeDescriptor(tag=_TAG_ALIASES[text])

    for prefix in _LIST_PREFIXES:
        if text.startswith(prefix):
            return TypeDescriptor(tag="list", element=_parse_element(text[len(prefix):], type_descriptor))
    if text.startswith("list[") and text.endswith("]"):
        return TypeDescriptor(tag="list", element=_parse_element(text[5:-1], type_descriptor))

    tag = _TAG_ALIASES.get(text, text)
    if tag not in _SCALAR_COERCERS:
        raise UnsupportedTypeError(str(type_descriptor))
    return TypeDescriptor(tag=tag)


def _parse_element(text: str, original: str) -> TypeDescriptor:
    try:
        return parse_descriptor(text)
    except UnsupportedTypeError:
        raise UnsupportedTypeError(original) from None


def is_supported(type_descriptor: str) -> bool:
    """Check whether a descriptor has a coercion rule."""
    try:
        parse_descriptor(type_descriptor)
    except UnsupportedTypeError:
        return False
    return True


def coerce_value(descriptor: TypeDescriptor, value: Any) -> Any:
    """Coerce value against an already parsed descriptor."""
    if descriptor.element is not None:
        items = list(value) if isinstance(value, (list, tuple)) else [value]
        result = []
        for index, item in enumerate(items):
            try:
                result.append(coerce_value(descriptor.element, item))
            except CoercionError as exc:
                raise CoercionError(str(descriptor), value, cause=exc, index=index) from exc
        return result

    if descriptor.tag == "any":
        return value
    if value is None:
        raise CoercionError(descriptor.tag, value, reason="null value")
    try:
        return _SCALAR_COERCERS[descriptor.tag](value)
    except (TypeError, ValueError, ArithmeticError, UnicodeDecodeError) as exc:
        raise CoercionError(descriptor.tag, value, cause=exc) from exc


def coerce(type_descriptor: str, value: Any) -> Any:
    """Convert an untyped value into the type named by type_descriptor.

    Args:
        type_descriptor: Scalar tag or list descriptor (e.g. "int", "[]float64", "list of bool")
        value: Untyped input value

    Returns:
        The coerced value (a list for list descriptors)

    Raises:
        UnsupportedTypeError: If the descriptor has no coercion rule
        CoercionError: If the value cannot be converted; for lists, carries the failing index

    Example:
        coerce("int", "42")               # 42
        coerce("list of int", [1, "2"])   # [1, 2]
        coerce("[]string", "solo")        # ["solo"]
    """
    return coerce_value(parse_descriptor(type_descriptor), value)
