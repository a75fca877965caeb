"""
Runtime values and operations for the interpreter backend.

Body values are plain Python objects: `double` is `float`, the narrower
integral kinds are `int`, `boolean` is `bool`, strings are `str` and `null` is
`None`. `long`, `float` and `char` values carry their kind in a subclass
(`JavaLong`, `JavaFloat`, `JavaChar`). Integer arithmetic wraps to 32 bits, or
to 64 when a `long` takes part.
"""

from __future__ import annotations

import math
import numbers
import random
import re
import struct
import sys
from collections import abc
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Sequence

from ..errors import EvaluationError

INTEGRAL_BITS: Mapping[str, int] = MappingProxyType({"long": 64, "int": 32, "short": 16, "byte": 8})
FLOAT32_MAX = 3.4028234663852886e38
FLOAT32_MIN = 1.401298464324817e-45

_MISSING = object()
_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")


def wrap_integral(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def to_float32(value: float) -> float:
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def float_to_integral(value: float, bits: int) -> int:
    """Narrow like a Java cast: NaN is 0, long/int saturate, short/byte wrap the int result."""
    if math.isnan(value):
        return 0
    target = 64 if bits == 64 else 32
    low, high = -(1 << (target - 1)), (1 << (target - 1)) - 1
    if math.isinf(value):
        result = high if value > 0 else low
    else:
        result = max(low, min(high, int(value)))
    return wrap_integral(result, bits) if bits < 32 else result


class JavaChar(str):
    """A `char` value: a one-character str that takes part in arithmetic as its code point."""

    __slots__ = ()


class JavaLong(int):
    """A `long` value: integer arithmetic involving one is carried out in 64 bits."""

    __slots__ = ()


class JavaFloat(float):
    """A `float` value: already rounded to single precision, and kept there by float-only arithmetic."""

    __slots__ = ()


def _is_long(value: int) -> bool:
    return isinstance(value, JavaLong) or not -(1 << 31) <= value < (1 << 31)


def _is_double(value: object) -> bool:
    return isinstance(value, float) and not isinstance(value, JavaFloat)


def _integral(value: int, wide: bool) -> int:
    if wide:
        return JavaLong(wrap_integral(value, 64))
    return wrap_integral(value, 32)


def _floating(value: float, single: bool) -> float:
    return JavaFloat(to_float32(value)) if single else value


def type_name(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "Boolean"
    if isinstance(value, JavaLong):
        return "Long"
    if isinstance(value, JavaFloat):
        return "Float"
    if isinstance(value, int):
        return "Integer"
    if isinstance(value, float):
        return "Double"
    if isinstance(value, JavaChar):
        return "Character"
    if isinstance(value, str):
        return "String"
    return type(value).__name__


def is_numeric(value: object) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, str):
        return isinstance(value, JavaChar)
    return isinstance(value, numbers.Real)


def numeric_value(value: object) -> int | float:
    if value is None:
        raise EvaluationError("NullPointerException: cannot unbox null value")
    if isinstance(value, bool):
        raise EvaluationError("incompatible types: boolean cannot be converted to a number")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, JavaChar):
        return ord(value)
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return float(value)
    raise EvaluationError(f"incompatible types: {type_name(value)} cannot be converted to a number")


def require_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        raise EvaluationError("NullPointerException: cannot unbox null value")
    raise EvaluationError(f"incompatible types: {type_name(value)} cannot be converted to boolean")


def format_double(value: float) -> str:
    """Double.toString: plain decimals in [1e-3, 1e7), computerized scientific notation elsewhere."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0 or 1e-3 <= abs(value) < 1e7:
        return repr(value)
    sign, digits, exponent = Decimal(repr(value)).normalize().as_tuple()
    mantissa = "".join(str(digit) for digit in digits)
    text = f"{mantissa[0]}.{mantissa[1:] or '0'}E{len(digits) - 1 + exponent}"
    return "-" + text if sign else text


def format_float(value: float) -> str:
    """Float.toString: the fewest digits that read back as the same single-precision value."""
    if not math.isfinite(value):
        return format_double(value)
    for digits in range(1, 10):
        shortest = float(f"{value:.{digits}g}")
        if to_float32(shortest) == value:
            return format_double(shortest)
    return format_double(value)


def java_str(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, JavaFloat):
        return format_float(value)
    if isinstance(value, float):
        return format_double(value)
    if isinstance(value, str):
        return str(value)
    to_string = getattr(value, "toString", None)
    if callable(to_string):
        return str(to_string())
    return str(value)


# Operators


def java_equals(left: object, right: object) -> bool:
    """`==`: numbers, booleans and strings by value, everything else by identity."""
    if left is None or right is None:
        return left is right
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_numeric(left) and is_numeric(right):
        return numeric_value(left) == numeric_value(right)
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return left is right


def value_equals(left: object, right: object) -> bool:
    """`equals()`: value equality that keeps booleans apart from numbers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return left == right


def _int_div(left: int, right: int) -> int:
    if right == 0:
        raise EvaluationError("ArithmeticException: / by zero")
    quotient = abs(left) // abs(right)
    return quotient if (left >= 0) == (right >= 0) else -quotient


def _int_mod(left: int, right: int) -> int:
    if right == 0:
        raise EvaluationError("ArithmeticException: / by zero")
    remainder = abs(left) % abs(right)
    return remainder if left >= 0 else -remainder


def _float_div(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _float_mod(left: float, right: float) -> float:
    try:
        return math.fmod(left, right)
    except ValueError:
        return math.nan


def _shift(op: str, left: int, right: int) -> int:
    # the count is masked to the width of the promoted left operand
    wide = _is_long(left)
    width = 64 if wide else 32
    count = right & (width - 1)
    if op == "<<":
        result = left << count
    elif op == ">>":
        result = left >> count
    else:
        result = (left & ((1 << width) - 1)) >> count
    return _integral(result, wide)


def _is_string(value: object) -> bool:
    return isinstance(value, str) and not isinstance(value, JavaChar)


def binary_op(op: str, left: object, right: object) -> object:
    if op == "+" and (_is_string(left) or _is_string(right)):
        return java_str(left) + java_str(right)
    if op == "==":
        return java_equals(left, right)
    if op == "!=":
        return not java_equals(left, right)
    if op in ("&", "|", "^") and isinstance(left, bool) and isinstance(right, bool):
        if op == "&":
            return left and right
        if op == "|":
            return left or right
        return left != right
    if left is None or right is None:
        raise EvaluationError(f"NullPointerException: null operand for binary operator '{op}'")
    if not is_numeric(left) or not is_numeric(right):
        raise EvaluationError(
            f"bad operand types for binary operator '{op}': {type_name(left)} and {type_name(right)}"
        )
    a = numeric_value(left)
    b = numeric_value(right)
    if op == "<":
        return a < b
    if op == ">":
        return a > b
    if op == "<=":
        return a <= b
    if op == ">=":
        return a >= b
    if op in ("&", "|", "^", "<<", ">>", ">>>"):
        if isinstance(a, float) or isinstance(b, float):
            raise EvaluationError(f"bad operand types for binary operator '{op}'")
        if op in ("<<", ">>", ">>>"):
            return _shift(op, a, b)
        wide = _is_long(a) or _is_long(b)
        if op == "&":
            return _integral(a & b, wide)
        if op == "|":
            return _integral(a | b, wide)
        return _integral(a ^ b, wide)
    if isinstance(a, float) or isinstance(b, float):
        single = not (_is_double(a) or _is_double(b))
        a = float(a)
        b = float(b)
        if op == "+":
            return _floating(a + b, single)
        if op == "-":
            return _floating(a - b, single)
        if op == "*":
            return _floating(a * b, single)
        if op == "/":
            return _floating(_float_div(a, b), single)
        if op == "%":
            return _floating(_float_mod(a, b), single)
    else:
        wide = _is_long(a) or _is_long(b)
        if op == "+":
            return _integral(a + b, wide)
        if op == "-":
            return _integral(a - b, wide)
        if op == "*":
            return _integral(a * b, wide)
        if op == "/":
            return _integral(_int_div(a, b), wide)
        if op == "%":
            return _integral(_int_mod(a, b), wide)
    raise EvaluationError(f"Unsupported operator {op}")


def unary_op(op: str, value: object) -> object:
    if op == "!":
        return not require_bool(value)
    number = numeric_value(value)
    if op == "-":
        if isinstance(number, float):
            return _floating(-number, isinstance(number, JavaFloat))
        # -2147483648 is an int literal even though its magnitude is not
        negated = -number
        return _integral(negated, isinstance(number, JavaLong) or (_is_long(number) and _is_long(negated)))
    if op == "+":
        return number
    if op == "~":
        if isinstance(number, float):
            raise EvaluationError("bad operand type for unary operator '~'")
        return _integral(~number, _is_long(number))
    raise EvaluationError(f"Unknown unary operator {op}")


# Runtime types


class RuntimeType:
    """A type a body can name: in declarations, casts, `instanceof`, `new` and as a static receiver."""

    name: str

    def is_instance(self, value: object) -> bool:
        raise EvaluationError(f"unexpected type: {self.name} cannot be tested with instanceof")

    def cast(self, value: object) -> object:
        if value is None or self.is_instance(value):
            return value
        raise EvaluationError(f"ClassCastException: {type_name(value)} cannot be cast to {self.name}")

    def convert(self, value: object) -> object:
        # reference-typed locals are not checked on assignment
        return value

    def get_static(self, name: str) -> object:
        raise EvaluationError(f"cannot find symbol: {self.name}.{name}")

    def call_static(self, name: str, args: Sequence[object]) -> object:
        raise EvaluationError(f"cannot find symbol: method {self.name}.{name}")

    def instantiate(self, args: Sequence[object]) -> object:
        raise EvaluationError(f"{self.name} cannot be instantiated")

    def invoke(self, args: Sequence[object]) -> object:
        raise EvaluationError(f"{self.name} is not callable")

    def as_value(self) -> object:
        return self


@dataclass(frozen=True)
class PrimitiveType(RuntimeType):
    name: str

    @property
    def is_integral(self) -> bool:
        return self.name in INTEGRAL_BITS

    @property
    def is_floating(self) -> bool:
        return self.name in ("double", "float")

    def is_instance(self, value: object) -> bool:
        raise EvaluationError(f"unexpected type: required reference, found {self.name}")

    def cast(self, value: object) -> object:
        if self.name == "boolean":
            return require_bool(value)
        if self.name == "char" and isinstance(value, str) and len(value) == 1:
            return JavaChar(value)
        number = numeric_value(value)
        if self.name == "double":
            return float(number)
        if self.name == "float":
            return JavaFloat(to_float32(float(number)))
        if self.name == "char":
            code = number if isinstance(number, int) else float_to_integral(number, 32)
            return JavaChar(chr(code & 0xFFFF))
        bits = INTEGRAL_BITS[self.name]
        if isinstance(number, int):
            result = wrap_integral(number, bits)
        else:
            result = float_to_integral(number, bits)
        return JavaLong(result) if bits == 64 else result

    def convert(self, value: object) -> object:
        if self.is_integral or self.name == "char":
            if isinstance(value, float):
                source = "float" if isinstance(value, JavaFloat) else "double"
                raise EvaluationError(f"incompatible types: possible lossy conversion from {source} to {self.name}")
            if isinstance(value, JavaLong) and self.name != "long":
                raise EvaluationError(f"incompatible types: possible lossy conversion from long to {self.name}")
        return self.cast(value)


PRIMITIVES: Mapping[str, PrimitiveType] = MappingProxyType(
    {name: PrimitiveType(name) for name in ("double", "float", "long", "int", "short", "byte", "char", "boolean")}
)


@dataclass(frozen=True)
class BoxedType(RuntimeType):
    name: str
    primitive: PrimitiveType
    constants: Mapping[str, object] = field(default_factory=dict, compare=False)

    def is_instance(self, value: object) -> bool:
        kind = self.primitive.name
        if kind == "boolean":
            return isinstance(value, bool)
        if kind == "char":
            return isinstance(value, str) and len(value) == 1
        if isinstance(value, bool):
            return False
        if isinstance(value, JavaLong):
            return kind == "long"
        if isinstance(value, JavaFloat):
            return kind == "float"
        if self.primitive.is_floating:
            return isinstance(value, numbers.Real)
        return isinstance(value, numbers.Integral)

    def cast(self, value: object) -> object:
        value = super().cast(value)
        return None if value is None else self.primitive.cast(value)

    def convert(self, value: object) -> object:
        return None if value is None else self.primitive.convert(value)

    def parse(self, text: object) -> object:
        if not isinstance(text, str):
            raise EvaluationError(f"incompatible types: {type_name(text)} cannot be converted to String")
        kind = self.primitive.name
        if kind == "boolean":
            return text.lower() == "true"
        if kind == "char":
            raise EvaluationError("cannot find symbol: method Character.parse")
        try:
            if self.primitive.is_floating:
                return self.primitive.cast(float(text.strip()))
            if not _INTEGER_TEXT.fullmatch(text):
                raise ValueError(text)
            value = int(text)
        except ValueError as exc:
            raise EvaluationError(f'NumberFormatException: For input string: "{text}"') from exc
        if wrap_integral(value, INTEGRAL_BITS[kind]) != value:
            raise EvaluationError(f'NumberFormatException: Value out of range. Value:"{text}"')
        return self.primitive.cast(value)

    def get_static(self, name: str) -> object:
        if name in self.constants:
            return self.constants[name]
        return super().get_static(name)

    def call_static(self, name: str, args: Sequence[object]) -> object:
        kind = self.primitive.name
        if name == "valueOf" and len(args) == 1:
            if isinstance(args[0], str) and kind != "char":
                return self.parse(args[0])
            return self.primitive.convert(args[0])
        if name == "parse" + self.name.replace("Integer", "Int") and len(args) == 1:
            return self.parse(args[0])
        if name == "toString" and len(args) == 1:
            return java_str(self.primitive.convert(args[0]))
        if name == "compare" and len(args) == 2:
            left, right = (numeric_value(self.primitive.convert(arg)) for arg in args) if kind != "boolean" else args
            return (left > right) - (left < right)
        if name in ("isNaN", "isInfinite", "isFinite") and self.primitive.is_floating and len(args) == 1:
            number = float(numeric_value(args[0]))
            return {"isNaN": math.isnan, "isInfinite": math.isinf, "isFinite": math.isfinite}[name](number)
        if name in ("max", "min", "sum") and kind not in ("boolean", "char") and len(args) == 2:
            left, right = (self.primitive.convert(arg) for arg in args)
            if name == "sum":
                return self.primitive.cast(binary_op("+", left, right))
            return JavaMath.max(left, right) if name == "max" else JavaMath.min(left, right)
        return super().call_static(name, args)

    def instantiate(self, args: Sequence[object]) -> object:
        if len(args) != 1:
            return super().instantiate(args)
        return self.call_static("valueOf", args)


def _integral_limits(kind: str) -> Dict[str, object]:
    bits = INTEGRAL_BITS[kind]
    limits = {"MAX_VALUE": (1 << (bits - 1)) - 1, "MIN_VALUE": -(1 << (bits - 1))}
    if kind == "long":
        limits = {name: JavaLong(limit) for name, limit in limits.items()}
    return {**limits, "SIZE": bits}


def _floating_constants(single: bool) -> Dict[str, object]:
    return {
        "POSITIVE_INFINITY": _floating(math.inf, single),
        "NEGATIVE_INFINITY": _floating(-math.inf, single),
        "NaN": _floating(math.nan, single),
    }

BOXED: Mapping[str, BoxedType] = MappingProxyType(
    {
        "Double": BoxedType(
            "Double",
            PRIMITIVES["double"],
            {"MAX_VALUE": sys.float_info.max, "MIN_VALUE": 5e-324, "SIZE": 64, **_floating_constants(False)},
        ),
        "Float": BoxedType(
            "Float",
            PRIMITIVES["float"],
            {
                "MAX_VALUE": JavaFloat(FLOAT32_MAX),
                "MIN_VALUE": JavaFloat(FLOAT32_MIN),
                "SIZE": 32,
                **_floating_constants(True),
            },
        ),
        "Long": BoxedType("Long", PRIMITIVES["long"], _integral_limits("long")),
        "Integer": BoxedType("Integer", PRIMITIVES["int"], _integral_limits("int")),
        "Short": BoxedType("Short", PRIMITIVES["short"], _integral_limits("short")),
        "Byte": BoxedType("Byte", PRIMITIVES["byte"], _integral_limits("byte")),
        "Character": BoxedType(
            "Character",
            PRIMITIVES["char"],
            {"MAX_VALUE": JavaChar("\uffff"), "MIN_VALUE": JavaChar("\x00")},
        ),
        "Boolean": BoxedType("Boolean", PRIMITIVES["boolean"], {"TRUE": True, "FALSE": False}),
    }
)


class ObjectType(RuntimeType):
    name = "Object"

    def is_instance(self, value: object) -> bool:
        return value is not None

    def instantiate(self, args: Sequence[object]) -> object:
        if args:
            return super().instantiate(args)
        return object()


class StringType(RuntimeType):
    name = "String"

    def is_instance(self, value: object) -> bool:
        return _is_string(value)

    def call_static(self, name: str, args: Sequence[object]) -> object:
        if name == "valueOf" and len(args) == 1:
            return java_str(args[0])
        if name == "join" and args:
            items = args[1] if len(args) == 2 and not isinstance(args[1], str) else args[1:]
            return java_str(args[0]).join(java_str(item) for item in items)
        if name == "format" and args:
            pattern = java_str(args[0]).replace("%n", "\n")
            return pattern % tuple(args[1:])
        return super().call_static(name, args)

    def instantiate(self, args: Sequence[object]) -> object:
        if not args:
            return ""
        if len(args) == 1:
            return java_str(args[0])
        return super().instantiate(args)


@dataclass(frozen=True)
class HostType(RuntimeType):
    """A Python object named by a body: a class, a module, a function or any helper object."""

    name: str
    target: object
    abstract: bool = False

    def is_instance(self, value: object) -> bool:
        if not isinstance(self.target, type):
            raise EvaluationError(f"unexpected type: {self.name} is not a class")
        return isinstance(value, self.target)

    def get_static(self, name: str) -> object:
        value = getattr(self.target, name, _MISSING)
        if value is _MISSING:
            return super().get_static(name)
        return value

    def call_static(self, name: str, args: Sequence[object]) -> object:
        member = self.get_static(name)
        if not callable(member):
            raise EvaluationError(f"{self.name}.{name} is not a method")
        return member(*args)

    def instantiate(self, args: Sequence[object]) -> object:
        if self.abstract or not callable(self.target):
            return super().instantiate(args)
        return self.target(*args)

    def invoke(self, args: Sequence[object]) -> object:
        if not callable(self.target):
            return super().invoke(args)
        return self.target(*args)

    def as_value(self) -> object:
        return self.target


class NumberType(HostType):
    def is_instance(self, value: object) -> bool:
        return isinstance(value, numbers.Number) and not isinstance(value, bool)


def _ieee(fn: Callable[..., float]) -> Callable[..., float]:
    """Run a math function on doubles, answering NaN/Infinity where Python raises."""

    def wrapper(*args: object) -> float:
        values = [float(numeric_value(arg)) for arg in args]
        try:
            return fn(*values)
        except ValueError:
            return math.nan
        except OverflowError:
            return math.inf

    wrapper.__name__ = fn.__name__
    return wrapper


def _whole(fn: Callable[[float], int]) -> Callable[[float], float]:
    def wrapper(value: float) -> float:
        return float(fn(value)) if math.isfinite(value) else value

    return wrapper


def _extremum(left: object, right: object, larger: bool) -> int | float:
    a, b = numeric_value(left), numeric_value(right)
    if isinstance(a, float) or isinstance(b, float):
        single = not (_is_double(a) or _is_double(b))
        a, b = float(a), float(b)
        if math.isnan(a) or math.isnan(b):
            return _floating(math.nan, single)
        return _floating(max(a, b) if larger else min(a, b), single)
    return _integral(max(a, b) if larger else min(a, b), _is_long(a) or _is_long(b))


class JavaMath:
    PI = math.pi
    E = math.e

    sqrt = staticmethod(_ieee(math.sqrt))
    cbrt = staticmethod(_ieee(lambda value: math.copysign(abs(value) ** (1.0 / 3.0), value)))
    exp = staticmethod(_ieee(math.exp))
    log = staticmethod(_ieee(lambda value: -math.inf if value == 0 else math.log(value)))
    log10 = staticmethod(_ieee(lambda value: -math.inf if value == 0 else math.log10(value)))
    sin = staticmethod(_ieee(math.sin))
    cos = staticmethod(_ieee(math.cos))
    tan = staticmethod(_ieee(math.tan))
    asin = staticmethod(_ieee(math.asin))
    acos = staticmethod(_ieee(math.acos))
    atan = staticmethod(_ieee(math.atan))
    atan2 = staticmethod(_ieee(math.atan2))
    hypot = staticmethod(_ieee(math.hypot))
    floor = staticmethod(_ieee(_whole(math.floor)))
    ceil = staticmethod(_ieee(_whole(math.ceil)))
    rint = staticmethod(_ieee(_whole(round)))
    toRadians = staticmethod(_ieee(math.radians))
    toDegrees = staticmethod(_ieee(math.degrees))

    @staticmethod
    def pow(base: object, exponent: object) -> float:
        a = float(numeric_value(base))
        b = float(numeric_value(exponent))
        try:
            return math.pow(a, b)
        except ValueError:
            return math.nan
        except OverflowError:
            negative = a < 0 and b.is_integer() and b % 2 == 1
            return -math.inf if negative else math.inf

    @staticmethod
    def abs(value: object) -> int | float:
        number = numeric_value(value)
        if isinstance(number, float):
            return _floating(abs(number), isinstance(number, JavaFloat))
        return _integral(abs(number), _is_long(number))

    @staticmethod
    def max(left: object, right: object) -> int | float:
        return _extremum(left, right, larger=True)

    @staticmethod
    def min(left: object, right: object) -> int | float:
        return _extremum(left, right, larger=False)

    @staticmethod
    def round(value: object) -> int:
        """A float rounds to an int and a double to a long."""
        number = numeric_value(value)
        if isinstance(number, int):
            return number
        bits = 32 if isinstance(number, JavaFloat) else 64
        if math.isfinite(number):
            number = float(math.floor(number + 0.5))
        return _integral(float_to_integral(number, bits), bits == 64)

    @staticmethod
    def signum(value: object) -> float:
        number = float(numeric_value(value))
        if number == 0 or math.isnan(number):
            return number
        return math.copysign(1.0, number)

    @staticmethod
    def floorDiv(left: object, right: object) -> int:
        a, b = numeric_value(left), numeric_value(right)
        if b == 0:
            raise EvaluationError("ArithmeticException: / by zero")
        return _integral(a // b, _is_long(a) or _is_long(b))

    @staticmethod
    def floorMod(left: object, right: object) -> int:
        a, b = numeric_value(left), numeric_value(right)
        if b == 0:
            raise EvaluationError("ArithmeticException: / by zero")
        return _integral(a % b, _is_long(a) or _is_long(b))

    @staticmethod
    def random() -> float:
        return random.random()


OBJECT = ObjectType()
STRING = StringType()

_JAVA_LANG: Dict[str, RuntimeType] = {
    "Object": OBJECT,
    "String": STRING,
    "Number": NumberType("Number", numbers.Number, abstract=True),
    "Math": HostType("Math", JavaMath, abstract=True),
    "Iterable": HostType("Iterable", abc.Iterable, abstract=True),
    **BOXED,
}

_JAVA_UTIL: Dict[str, RuntimeType] = {
    "Collection": HostType("Collection", abc.Collection, abstract=True),
    "List": HostType("List", abc.Sequence, abstract=True),
    "ArrayList": HostType("ArrayList", list),
    "Iterator": HostType("Iterator", abc.Iterator, abstract=True),
    "Map": HostType("Map", abc.Mapping, abstract=True),
    "HashMap": HostType("HashMap", dict),
    "Set": HostType("Set", abc.Set, abstract=True),
    "HashSet": HostType("HashSet", set),
}

BUILTIN_TYPES: Mapping[str, RuntimeType] = MappingProxyType(
    {
        **_JAVA_LANG,
        **_JAVA_UTIL,
        **{f"java.lang.{name}": value for name, value in _JAVA_LANG.items()},
        **{f"java.util.{name}": value for name, value in _JAVA_UTIL.items()},
    }
)


# Member access on values


class JavaIterator:
    """`iterator()` result: hasNext()/next() over any Python iterable."""

    def __init__(self, iterable: abc.Iterable) -> None:
        self._it = iter(iterable)
        self._peeked = _MISSING

    def hasNext(self) -> bool:
        if self._peeked is _MISSING:
            self._peeked = next(self._it, _MISSING)
        return self._peeked is not _MISSING

    def next(self) -> object:
        if not self.hasNext():
            raise EvaluationError("NoSuchElementException")
        value, self._peeked = self._peeked, _MISSING
        return value

    def __iter__(self) -> JavaIterator:
        return self

    def __next__(self) -> object:
        if not self.hasNext():
            raise StopIteration
        return self.next()


_METHOD_SHIMS: Dict[str, Dict[int, Callable[..., object]]] = {}


def _shim(name: str, arity: int = 0):
    def register(fn):
        _METHOD_SHIMS.setdefault(name, {})[arity] = fn
        return fn

    return register


def _primitive_value(kind: str) -> Callable[[object], object]:
    def value_of(receiver: object) -> object:
        if kind == "boolean":
            return require_bool(receiver)
        if not is_numeric(receiver):
            raise EvaluationError(f"cannot find symbol: method {kind}Value() in {type_name(receiver)}")
        return PRIMITIVES[kind].cast(receiver)

    return value_of


for _kind in PRIMITIVES:
    _shim(f"{_kind}Value")(_primitive_value(_kind))


def _sized(receiver: object, method: str) -> abc.Sized:
    if not isinstance(receiver, abc.Sized):
        raise EvaluationError(f"cannot find symbol: method {method}() in {type_name(receiver)}")
    return receiver


def _string(receiver: object, method: str) -> str:
    if not isinstance(receiver, str):
        raise EvaluationError(f"cannot find symbol: method {method} in {type_name(receiver)}")
    return receiver


def _checked_index(receiver: abc.Sized, index: object) -> int:
    if isinstance(index, bool) or not isinstance(index, numbers.Integral):
        raise EvaluationError(f"incompatible types: {type_name(index)} cannot be converted to int")
    if not 0 <= index < len(receiver):
        raise EvaluationError(f"IndexOutOfBoundsException: Index {index} out of bounds for length {len(receiver)}")
    return int(index)


@_shim("equals", 1)
def _equals(receiver, other):
    return value_equals(receiver, other)


@_shim("hashCode")
def _hash_code(receiver):
    return hash(receiver)


@_shim("toString")
def _to_string(receiver):
    return java_str(receiver)


@_shim("compareTo", 1)
def _compare_to(receiver, other):
    if isinstance(receiver, str) and isinstance(other, str):
        return (receiver > other) - (receiver < other)
    left, right = numeric_value(receiver), numeric_value(other)
    return (left > right) - (left < right)


@_shim("isNaN")
def _is_nan(receiver):
    return math.isnan(float(numeric_value(receiver)))


@_shim("isInfinite")
def _is_infinite(receiver):
    return math.isinf(float(numeric_value(receiver)))


@_shim("length")
def _length(receiver):
    return len(_string(receiver, "length()"))


@_shim("charAt", 1)
def _char_at(receiver, index):
    text = _string(receiver, "charAt(int)")
    return JavaChar(text[_checked_index(text, index)])


@_shim("substring", 1)
def _substring_from(receiver, begin):
    text = _string(receiver, "substring(int)")
    if not 0 <= begin <= len(text):
        raise EvaluationError(f"StringIndexOutOfBoundsException: begin {begin}, length {len(text)}")
    return text[begin:]


@_shim("substring", 2)
def _substring(receiver, begin, end):
    text = _string(receiver, "substring(int,int)")
    if not 0 <= begin <= end <= len(text):
        raise EvaluationError(f"StringIndexOutOfBoundsException: begin {begin}, end {end}, length {len(text)}")
    return text[begin:end]


@_shim("startsWith", 1)
def _starts_with(receiver, prefix):
    return _string(receiver, "startsWith(String)").startswith(prefix)


@_shim("endsWith", 1)
def _ends_with(receiver, suffix):
    return _string(receiver, "endsWith(String)").endswith(suffix)


@_shim("toUpperCase")
def _to_upper(receiver):
    return _string(receiver, "toUpperCase()").upper()


@_shim("toLowerCase")
def _to_lower(receiver):
    return _string(receiver, "toLowerCase()").lower()


@_shim("trim")
def _trim(receiver):
    return _string(receiver, "trim()").strip(" \t\n\x0b\f\r")


@_shim("concat", 1)
def _concat(receiver, other):
    return _string(receiver, "concat(String)") + _string(other, "concat(String)")


@_shim("equalsIgnoreCase", 1)
def _equals_ignore_case(receiver, other):
    return isinstance(other, str) and _string(receiver, "equalsIgnoreCase(String)").lower() == other.lower()


@_shim("indexOf", 1)
def _index_of(receiver, item):
    if isinstance(receiver, str):
        return receiver.find(java_str(item))
    if isinstance(receiver, abc.Sequence):
        for position, candidate in enumerate(receiver):
            if value_equals(candidate, item):
                return position
        return -1
    raise EvaluationError(f"cannot find symbol: method indexOf in {type_name(receiver)}")


@_shim("size")
def _size(receiver):
    return len(_sized(receiver, "size"))


@_shim("isEmpty")
def _is_empty(receiver):
    return len(_sized(receiver, "isEmpty")) == 0


@_shim("contains", 1)
def _contains(receiver, item):
    if isinstance(receiver, str):
        return java_str(item) in receiver
    if isinstance(receiver, abc.Container):
        return item in receiver
    raise EvaluationError(f"cannot find symbol: method contains in {type_name(receiver)}")


@_shim("get", 1)
def _get(receiver, index):
    if isinstance(receiver, abc.Sequence):
        return receiver[_checked_index(receiver, index)]
    raise EvaluationError(f"cannot find symbol: method get in {type_name(receiver)}")


@_shim("set", 2)
def _set(receiver, index, value):
    if isinstance(receiver, abc.MutableSequence):
        position = _checked_index(receiver, index)
        previous = receiver[position]
        receiver[position] = value
        return previous
    raise EvaluationError(f"cannot find symbol: method set in {type_name(receiver)}")


@_shim("add", 1)
def _add(receiver, value):
    if isinstance(receiver, abc.MutableSequence):
        receiver.append(value)
        return True
    raise EvaluationError(f"cannot find symbol: method add in {type_name(receiver)}")


@_shim("iterator")
def _iterator(receiver):
    if not isinstance(receiver, abc.Iterable):
        raise EvaluationError(f"cannot find symbol: method iterator() in {type_name(receiver)}")
    return JavaIterator(receiver)


@_shim("containsKey", 1)
def _contains_key(receiver, key):
    if isinstance(receiver, abc.Mapping):
        return key in receiver
    raise EvaluationError(f"cannot find symbol: method containsKey in {type_name(receiver)}")


@_shim("put", 2)
def _put(receiver, key, value):
    if isinstance(receiver, abc.MutableMapping):
        previous = receiver.get(key)
        receiver[key] = value
        return previous
    raise EvaluationError(f"cannot find symbol: method put in {type_name(receiver)}")


@_shim("getOrDefault", 2)
def _get_or_default(receiver, key, default):
    if isinstance(receiver, abc.Mapping):
        return receiver.get(key, default)
    raise EvaluationError(f"cannot find symbol: method getOrDefault in {type_name(receiver)}")


@_shim("keySet")
def _key_set(receiver):
    if isinstance(receiver, abc.Mapping):
        return receiver.keys()
    raise EvaluationError(f"cannot find symbol: method keySet() in {type_name(receiver)}")


def invoke_member(receiver: object, name: str, args: Sequence[object]) -> object:
    """Call a method on a value: the Python attribute when there is one, otherwise a shim."""
    if receiver is None:
        raise EvaluationError(f"NullPointerException: cannot invoke '{name}()' on null")
    method = getattr(receiver, name, None)
    if callable(method):
        return method(*args)
    shim = _METHOD_SHIMS.get(name, {}).get(len(args))
    if shim is None:
        raise EvaluationError(f"cannot find symbol: method {name}({len(args)} args) in {type_name(receiver)}")
    return shim(receiver, *args)


def get_field(receiver: object, name: str) -> object:
    if receiver is None:
        raise EvaluationError(f"NullPointerException: cannot read field '{name}' of null")
    if name == "length" and isinstance(receiver, (list, tuple)):
        return len(receiver)
    value = getattr(receiver, name, _MISSING)
    if value is _MISSING:
        raise EvaluationError(f"cannot find symbol: field {name} in {type_name(receiver)}")
    return value


def set_field(receiver: object, name: str, value: object) -> None:
    if receiver is None:
        raise EvaluationError(f"NullPointerException: cannot assign field '{name}' of null")
    try:
        setattr(receiver, name, value)
    except AttributeError as exc:
        raise EvaluationError(f"cannot assign a value to field {name} of {type_name(receiver)}") from exc


def index_value(container: object, index: object) -> object:
    if container is None:
        raise EvaluationError("NullPointerException: cannot load from null array")
    if not isinstance(container, abc.Sequence):
        raise EvaluationError(f"array required, but {type_name(container)} found")
    if isinstance(index, bool) or not isinstance(index, numbers.Integral):
        raise EvaluationError(f"incompatible types: {type_name(index)} cannot be converted to int")
    if not 0 <= index < len(container):
        raise EvaluationError(
            f"ArrayIndexOutOfBoundsException: Index {index} out of bounds for length {len(container)}"
        )
    return container[int(index)]


def store_index(container: object, index: object, value: object) -> None:
    index_value(container, index)
    if not isinstance(container, abc.MutableSequence):
        raise EvaluationError(f"cannot assign into {type_name(container)}")
    container[int(index)] = value
