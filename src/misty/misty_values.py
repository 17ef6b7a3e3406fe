"""
Runtime values for the Misty interpreter.

Every value the interpreter manipulates is one of the variants below, each
tagged with a `kind` string that operator and member-access logic dispatches on:

    number    NumberValue   (64-bit float)
    string    StringValue
    boolean   BooleanValue
    null      NullValue     (singleton NULL)
    function  FunctionValue (user procedure: parameters, body, captured scope)
              BuiltinFunction (host-provided callable, e.g. System.out.console)
    array     ArrayValue    (mutable list, shared by reference)
    object    ObjectValue   (mutable str-keyed dict, shared by reference)

Scalars are immutable and copied by value. Arrays and objects are plain Python
objects whose identity is the shared handle: every binding, parameter, or loop
variable that holds one refers to the same underlying list or dict, so a
mutation through one holder is visible through all of them.

Helpers:
    to_display_string(value): string conversion used by `+` and System.out.console.
    is_truthy(value): Misty truthiness (strings are always true).
    values_equal(a, b): structural equality behind `==` and `!=`.
    type_name(value): the kind name used in runtime error messages.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, ClassVar, Union

if TYPE_CHECKING:
    from misty.misty_ast import Statement
    from misty.misty_environment import Environment


@dataclass(frozen=True)
class NumberValue:
    kind: ClassVar[str] = "number"
    value: float


@dataclass(frozen=True)
class StringValue:
    kind: ClassVar[str] = "string"
    value: str


@dataclass(frozen=True)
class BooleanValue:
    kind: ClassVar[str] = "boolean"
    value: bool


@dataclass(frozen=True)
class NullValue:
    kind: ClassVar[str] = "null"


@dataclass(eq=False)
class FunctionValue:
    """A closure: the procedure's parameters and body plus the scope it was declared in."""

    kind: ClassVar[str] = "function"
    name: str
    parameters: tuple[str, ...]
    body: tuple[Statement, ...]
    closure: Environment = field(repr=False)


@dataclass(eq=False)
class BuiltinFunction:
    """A host callable. `arity` of None accepts any argument count."""

    kind: ClassVar[str] = "function"
    name: str
    arity: int | None
    handler: Callable[[list["Value"]], "Value"] = field(repr=False)


@dataclass(eq=False)
class ArrayValue:
    kind: ClassVar[str] = "array"
    elements: list[Value] = field(default_factory=list)


@dataclass(eq=False)
class ObjectValue:
    kind: ClassVar[str] = "object"
    properties: dict[str, Value] = field(default_factory=dict)


Value = Union[
    NumberValue,
    StringValue,
    BooleanValue,
    NullValue,
    FunctionValue,
    BuiltinFunction,
    ArrayValue,
    ObjectValue,
]

NULL = NullValue()
TRUE = BooleanValue(True)
FALSE = BooleanValue(False)
ZERO = NumberValue(0.0)


def boolean(flag: bool) -> BooleanValue:
    return TRUE if flag else FALSE


def type_name(value: Value) -> str:
    return value.kind


def format_number(number: float) -> str:
    """Renders a number in its shortest round-trip form.

    Integral values print without a fraction. Exponents between -7 and 21 are
    expanded to plain digits, so `1.2345678901234568e+20` prints as
    `123456789012345680000` rather than the exact binary value.

    Args:
        number (float): The value to render.

    Returns:
        str: `NaN`, `Infinity`, `-Infinity`, or the decimal/exponent form.
    """
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if number == 0:
        return "0"
    text = repr(number)
    if "e" in text:
        mantissa, exponent = text.split("e")
        if -7 < int(exponent) < 21:
            return format(Decimal(text), "f")
        return f"{mantissa}e{int(exponent):+d}"
    if text.endswith(".0"):
        return text[:-2]
    return text


def to_display_string(value: Value, _active: set[int] | None = None) -> str:
    """String form used by `+` concatenation and System.out.console.

    An array that contains itself renders the inner reference as an empty
    string, the same way it renders a null element.
    """
    if isinstance(value, StringValue):
        return value.value
    if isinstance(value, NumberValue):
        return format_number(value.value)
    if isinstance(value, BooleanValue):
        return "true" if value.value else "false"
    if isinstance(value, NullValue):
        return "null"
    if isinstance(value, ArrayValue):
        active = set() if _active is None else _active
        if id(value) in active:
            return ""
        active.add(id(value))
        try:
            return ",".join(
                "" if isinstance(e, NullValue) else to_display_string(e, active)
                for e in value.elements
            )
        finally:
            active.discard(id(value))
    if isinstance(value, ObjectValue):
        return "[object Object]"
    if isinstance(value, FunctionValue):
        return f"<procedure {value.name}>"
    return f"<builtin {value.name}>"


def is_truthy(value: Value) -> bool:
    if isinstance(value, BooleanValue):
        return value.value
    if isinstance(value, NumberValue):
        return not (value.value == 0 or math.isnan(value.value))
    if isinstance(value, NullValue):
        return False
    # strings (even empty), arrays, objects and functions
    return True


def values_equal(
    left: Value, right: Value, _active: set[tuple[int, int]] | None = None
) -> bool:
    """Structural equality behind `==` and `!=`.

    Args:
        left (Value): Left operand.
        right (Value): Right operand.

    Returns:
        bool: True when both values have the same kind and contents. NaN is
        never equal; functions compare by identity. A pair of containers
        already being compared further up (a cycle) counts as equal.
    """
    if left is right:
        return not (isinstance(left, NumberValue) and math.isnan(left.value))
    if left.kind != right.kind:
        return False
    if isinstance(left, (NumberValue, StringValue, BooleanValue)):
        return left.value == right.value  # type: ignore[union-attr]
    if isinstance(left, NullValue):
        return True
    if not isinstance(left, (ArrayValue, ObjectValue)):
        # functions compare by identity, handled above
        return False

    active = set() if _active is None else _active
    pair = (id(left), id(right))
    if pair in active:
        return True
    active.add(pair)
    try:
        if isinstance(left, ArrayValue) and isinstance(right, ArrayValue):
            return len(left.elements) == len(right.elements) and all(
                values_equal(a, b, active)
                for a, b in zip(left.elements, right.elements)
            )
        if isinstance(left, ObjectValue) and isinstance(right, ObjectValue):
            return left.properties.keys() == right.properties.keys() and all(
                values_equal(v, right.properties[k], active)
                for k, v in left.properties.items()
            )
        return False
    finally:
        active.discard(pair)


def property_key(value: Value) -> str:
    """Computed keys are looked up by their string form."""
    return to_display_string(value)


def array_index(key: str) -> int | None:
    """Returns the index a key names, or None if it is not a canonical non-negative integer."""
    if key.isascii() and key.isdigit() and str(int(key)) == key:
        return int(key)
    return None


__all__ = [
    "FALSE",
    "NULL",
    "TRUE",
    "ZERO",
    "ArrayValue",
    "BooleanValue",
    "BuiltinFunction",
    "FunctionValue",
    "NullValue",
    "NumberValue",
    "ObjectValue",
    "StringValue",
    "Value",
    "array_index",
    "boolean",
    "format_number",
    "is_truthy",
    "property_key",
    "to_display_string",
    "type_name",
    "values_equal",
]
