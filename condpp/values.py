# Copyright (C) 2019-2024 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
"""
Contains the value model shared by the evaluator and the substitution
engine: the `undefined` singleton, the host scripting language's coercion
rules, and the rendering of values as source literals.

Numbers follow double-precision semantics, including NaN and Infinity
propagation. Arithmetic goes through numpy float64 so that division by zero
yields Infinity/NaN instead of raising.
"""
from __future__ import annotations

import json
import math
from typing import Any

import numpy as np

from condpp.errors import ExpressionRuntimeError


class Undefined:
    """
    Represents the `undefined` value. There is exactly one instance.
    """

    _instance: Undefined | None = None

    def __new__(cls) -> Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


UNDEFINED = Undefined()

_NUMBER_CHARS = set("0123456789+-.eE")


def is_number(value: Any) -> bool:
    """
    Return True if `value` is a number (bools are not numbers).
    """
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def type_of(value: Any) -> str:
    """
    Return the type tag of `value`: one of "undefined", "null", "boolean",
    "number", "string" or "object".
    """
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    return "object"


def is_supported(value: Any) -> bool:
    """
    Return True if `value` can be stored in a Variable Environment.
    """
    if value is UNDEFINED or value is None:
        return True
    if isinstance(value, (bool, int, float, str)):
        return True
    if isinstance(value, (list, tuple)):
        return all(is_supported(v) for v in value)
    if isinstance(value, dict):
        return all(
            isinstance(k, str) and is_supported(v) for k, v in value.items()
        )
    return False


def truthy(value: Any) -> bool:
    """
    Convert a value to a boolean using standard truthiness.
    """
    if value is UNDEFINED or value is None:
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return not (value == 0 or math.isnan(value))
    if isinstance(value, str):
        return len(value) > 0
    return True


def _parse_number(text: str) -> float:
    text = text.strip()
    if not text:
        return 0.0
    if text in ["Infinity", "+Infinity"]:
        return math.inf
    if text == "-Infinity":
        return -math.inf

    bases = {"0x": 16, "0X": 16, "0o": 8, "0O": 8, "0b": 2, "0B": 2}
    if text[0:2] in bases:
        try:
            return float(int(text[2:], bases[text[0:2]]))
        except ValueError:
            return math.nan

    # float() also accepts "inf", "nan" and "1_0", which are not numbers
    if not set(text) <= _NUMBER_CHARS:
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan


def to_number(value: Any) -> float:
    """
    Convert a value to a number.
    """
    if value is UNDEFINED:
        return math.nan
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if is_number(value):
        return float(value)
    if isinstance(value, str):
        return _parse_number(value)
    if isinstance(value, (list, tuple)):
        return _parse_number(to_string(value))
    return math.nan


def to_int32(value: Any) -> int:
    """
    Convert a value to a signed 32-bit integer, as bitwise operators do.
    """
    number = to_number(value)
    if not math.isfinite(number):
        return 0
    n = int(number) & 0xFFFFFFFF
    return n - 0x100000000 if n & 0x80000000 else n


def to_uint32(value: Any) -> int:
    """
    Convert a value to an unsigned 32-bit integer.
    """
    number = to_number(value)
    if not math.isfinite(number):
        return 0
    return int(number) & 0xFFFFFFFF


def number_to_string(number: float) -> str:
    """
    Return the shortest round-tripping spelling of a number, as the host
    language prints it (e.g. 1 rather than 1.0, 1e+21, 0.00001).
    """
    number = float(number)
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if number == 0:
        return "0"
    if 1e-6 <= abs(number) < 1e21:
        return np.format_float_positional(number, trim="-")

    # Outside that range repr() always uses an exponent
    mantissa, exponent = repr(number).split("e")
    exp = int(exponent)
    sign = "+" if exp > 0 else "-"
    return f"{mantissa}e{sign}{abs(exp)}"


def to_string(value: Any) -> str:
    """
    Convert a value to a string.
    """
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return number_to_string(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ",".join(
            "" if v is None or v is UNDEFINED else to_string(v) for v in value
        )
    return "[object Object]"


def to_literal(value: Any) -> str:
    """
    Render a value as a source literal that evaluates back to it.
    """
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(to_literal(v) for v in value) + "]"
    if isinstance(value, dict):
        items = [
            f"{json.dumps(str(k), ensure_ascii=False)}:{to_literal(v)}"
            for k, v in value.items()
        ]
        return "{" + ",".join(items) + "}"
    return to_string(value)


def _to_primitive(value: Any) -> Any:
    if type_of(value) == "object":
        return to_string(value)
    return value


def strict_equals(lhs: Any, rhs: Any) -> bool:
    """
    Compare two values without coercion (===).
    """
    kind = type_of(lhs)
    if kind != type_of(rhs):
        return False
    if kind == "number":
        return float(lhs) == float(rhs)
    if kind == "object":
        return lhs is rhs
    return lhs == rhs


def loose_equals(lhs: Any, rhs: Any) -> bool:
    """
    Compare two values with coercion (==).
    """
    lkind = type_of(lhs)
    rkind = type_of(rhs)
    if lkind == rkind:
        return strict_equals(lhs, rhs)

    nullish = ["undefined", "null"]
    if lkind in nullish or rkind in nullish:
        return lkind in nullish and rkind in nullish
    if lkind == "boolean":
        return loose_equals(to_number(lhs), rhs)
    if rkind == "boolean":
        return loose_equals(lhs, to_number(rhs))
    if lkind == "object":
        return loose_equals(to_string(lhs), rhs)
    if rkind == "object":
        return loose_equals(lhs, to_string(rhs))

    # One number and one string
    return to_number(lhs) == to_number(rhs)


def compare(op: str, lhs: Any, rhs: Any) -> bool:
    """
    Apply a relational operator (<, <=, >, >=).
    Strings compare lexicographically; everything else numerically, and
    any comparison involving NaN is false.
    """
    lhs = _to_primitive(lhs)
    rhs = _to_primitive(rhs)
    if not (isinstance(lhs, str) and isinstance(rhs, str)):
        lhs = to_number(lhs)
        rhs = to_number(rhs)

    if op == "<":
        return lhs < rhs
    elif op == "<=":
        return lhs <= rhs
    elif op == ">":
        return lhs > rhs
    elif op == ">=":
        return lhs >= rhs
    else:
        raise ValueError("Not a relational operator.")


def arithmetic(op: str, lhs: Any, rhs: Any) -> Any:
    """
    Apply an arithmetic operator (+, -, *, /, %).
    `+` concatenates when either operand is a string.
    """
    lhs = _to_primitive(lhs)
    rhs = _to_primitive(rhs)
    if op == "+" and (isinstance(lhs, str) or isinstance(rhs, str)):
        return to_string(lhs) + to_string(rhs)

    x = np.float64(to_number(lhs))
    y = np.float64(to_number(rhs))
    with np.errstate(all="ignore"):
        if op == "+":
            result = x + y
        elif op == "-":
            result = x - y
        elif op == "*":
            result = x * y
        elif op == "/":
            result = x / y
        elif op == "%":
            result = np.fmod(x, y)
        else:
            raise ValueError("Not an arithmetic operator.")
    return float(result)


def bitwise(op: str, lhs: Any, rhs: Any) -> float:
    """
    Apply a bitwise or shift operator on 32-bit integers.
    """
    shift = to_uint32(rhs) & 31
    if op == "&":
        result = to_int32(lhs) & to_int32(rhs)
    elif op == "|":
        result = to_int32(lhs) | to_int32(rhs)
    elif op == "^":
        result = to_int32(lhs) ^ to_int32(rhs)
    elif op == "<<":
        result = to_int32(to_int32(lhs) << shift)
    elif op == ">>":
        result = to_int32(lhs) >> shift
    elif op == ">>>":
        result = to_uint32(lhs) >> shift
    else:
        raise ValueError("Not a bitwise operator.")
    return float(result)


def get_member(value: Any, key: Any) -> Any:
    """
    Return `value[key]`, or `undefined` if there is no such property.
    Raise ExpressionRuntimeError when `value` is null or undefined.
    """
    if value is UNDEFINED or value is None:
        raise ExpressionRuntimeError(
            f"Cannot read properties of {to_string(value)} "
            + f"(reading {to_literal(to_string(key))})",
        )

    name = to_string(key)
    if isinstance(value, (str, list, tuple)):
        if name == "length":
            return float(len(value))
        if name.isdigit() and int(name) < len(value):
            return value[int(name)]
        return UNDEFINED
    if isinstance(value, dict):
        return value.get(name, UNDEFINED)
    return UNDEFINED
