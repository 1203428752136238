"""Lexical adapters: attribute text to typed values and back.

Every adapter is a pure function of its input text. Absent attributes are the
caller's concern: the declared default literal is passed through the same
adapter as a present value would be (see :func:`resolve_attribute`), so a bad
default is caught by the same checks.
"""
from __future__ import annotations

import math
import re
from enum import Enum
from typing import Callable, Mapping, Optional, Tuple, Type, TypeVar

from ..utils.constants import BOOLEAN_FALSE_TOKENS, BOOLEAN_TRUE_TOKENS
from ..utils.errors import (
    CodecError,
    MalformedNumberError,
    MissingAttributeError,
    UnknownTokenError,
)
from .predicates import (
    ANY,
    FRACTION,
    NON_NEGATIVE,
    POSITIVE,
    POSITIVE_INCLUSIVE,
    Predicate,
)
from .units import Dimension, Quantity, unit_for

T = TypeVar("T")
E = TypeVar("E", bound=Enum)

_NUMBER = r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?"
_DOUBLE_RE = re.compile(rf"^(?:{_NUMBER}|[+-]?INF|NaN)$")
_QUANTITY_RE = re.compile(rf"^(?P<num>{_NUMBER}|[+-]?INF|NaN)\s*(?P<unit>[A-Za-z/]\S*)$")
_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_CLASS_NAME_RE = re.compile(r"^[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*$")


def parse_quantity(text: str, dimension: Dimension, predicate: Predicate = ANY) -> Quantity:
    """Parse ``"<magnitude> <unit>"`` into a :class:`Quantity` of ``dimension``."""
    m = _QUANTITY_RE.match(text.strip())
    if not m:
        raise MalformedNumberError(f"expected '<number> <unit>' for {dimension.value}, got {text!r}")
    unit = unit_for(dimension, m.group("unit"))
    magnitude = predicate.check(float(m.group("num")))
    return Quantity(magnitude, unit)


def format_quantity(quantity: Quantity) -> str:
    return f"{format_double(quantity.magnitude)} {quantity.unit.suffix}"


def parse_double(text: str, predicate: Predicate = ANY) -> float:
    token = text.strip()
    if not _DOUBLE_RE.match(token):
        raise MalformedNumberError(f"not a number: {text!r}")
    return predicate.check(float(token))


def format_double(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "INF" if value > 0 else "-INF"
    return repr(float(value))


def parse_double_positive(text: str) -> float:
    return parse_double(text, POSITIVE)


def parse_double_positive_inclusive(text: str) -> float:
    return parse_double(text, POSITIVE_INCLUSIVE)


def parse_double_non_negative(text: str) -> float:
    return parse_double(text, NON_NEGATIVE)


def parse_fraction(text: str) -> float:
    return parse_double(text, FRACTION)


def parse_integer(text: str, predicate: Predicate = ANY) -> int:
    token = text.strip()
    if not _INTEGER_RE.match(token):
        raise MalformedNumberError(f"not an integer: {text!r}")
    value = int(token)
    predicate.check(value)
    return value


def parse_positive_integer(text: str) -> int:
    return parse_integer(text, POSITIVE)


def parse_boolean(text: str) -> bool:
    token = text.strip()
    if token in BOOLEAN_TRUE_TOKENS:
        return True
    if token in BOOLEAN_FALSE_TOKENS:
        return False
    raise UnknownTokenError(f"not a boolean: {text!r}")


def format_boolean(value: bool) -> str:
    return "true" if value else "false"


def parse_string(text: str) -> str:
    return text


def parse_class_name(text: str) -> str:
    """Validate a dotted identifier; loading the class is left to the engine."""
    token = text.strip()
    if not _CLASS_NAME_RE.match(token):
        raise CodecError(f"not a class name: {text!r}")
    return token


def parse_enum(text: str, enum_type: Type[E]) -> E:
    token = text.strip()
    try:
        return enum_type(token)
    except ValueError:
        allowed = ", ".join(str(member.value) for member in enum_type)
        raise UnknownTokenError(
            f"unknown {enum_type.__name__} token {text!r} (expected one of: {allowed})"
        ) from None


def parse_coordinate(text: str) -> Tuple[float, ...]:
    """Parse ``"(x, y)"`` or ``"(x, y, z)"``."""
    token = text.strip()
    if not (token.startswith("(") and token.endswith(")")):
        raise MalformedNumberError(f"coordinate must be '(x, y[, z])', got {text!r}")
    parts = token[1:-1].split(",")
    if len(parts) not in (2, 3):
        raise MalformedNumberError(f"coordinate needs 2 or 3 components, got {text!r}")
    return tuple(parse_double(p) for p in parts)


def format_coordinate(coordinate: Tuple[float, ...]) -> str:
    return "(" + ", ".join(format_double(c) for c in coordinate) + ")"


def quantity_parser(dimension: Dimension, predicate: Predicate = ANY) -> Callable[[str], Quantity]:
    def _parse(text: str) -> Quantity:
        return parse_quantity(text, dimension, predicate)

    return _parse


def enum_parser(enum_type: Type[E]) -> Callable[[str], E]:
    def _parse(text: str) -> E:
        return parse_enum(text, enum_type)

    return _parse


def resolve_attribute(
    attributes: Mapping[str, str],
    name: str,
    parser: Callable[[str], T],
    *,
    default: Optional[str] = None,
    required: bool = False,
    owner: str = "",
) -> Optional[T]:
    """Parse ``attributes[name]``, falling back to the declared ``default`` literal."""
    raw = attributes.get(name)
    if raw is None:
        raw = default
    if raw is None:
        if required:
            where = f" on {owner}" if owner else ""
            raise MissingAttributeError(f"required attribute {name}{where} is missing")
        return None
    return parser(raw)
