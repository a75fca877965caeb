import math

import pytest

from funcparser.backend.runtime import (
    BOXED,
    PRIMITIVES,
    STRING,
    JavaChar,
    JavaFloat,
    JavaIterator,
    JavaLong,
    JavaMath,
    binary_op,
    float_to_integral,
    format_double,
    format_float,
    invoke_member,
    java_equals,
    java_str,
    to_float32,
    unary_op,
    wrap_integral,
)
from funcparser.errors import EvaluationError


@pytest.mark.parametrize(
    "value, expected",
    [
        (1.0, "1.0"),
        (100.0, "100.0"),
        (-0.0, "-0.0"),
        (0.001, "0.001"),
        (9999999.0, "9999999.0"),
        (1e7, "1.0E7"),
        (123456789.0, "1.23456789E8"),
        (1e21, "1.0E21"),
        (1.0e-5, "1.0E-5"),
        (-0.0001, "-1.0E-4"),
        (math.nan, "NaN"),
        (math.inf, "Infinity"),
        (-math.inf, "-Infinity"),
    ],
)
def test_format_double(value, expected):
    assert format_double(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (to_float32(0.1), "0.1"),
        (to_float32(1.1), "1.1"),
        (1.0, "1.0"),
        (-0.0, "-0.0"),
        (to_float32(1e10), "1.0E10"),
        (to_float32(1e-5), "1.0E-5"),
        (math.inf, "Infinity"),
    ],
)
def test_format_float(value, expected):
    assert format_float(value) == expected


def test_java_str():
    assert java_str(None) == "null"
    assert java_str(True) == "true"
    assert java_str(2) == "2"
    assert java_str(2.0) == "2.0"
    text = java_str(JavaChar("a"))
    assert text == "a" and type(text) is str
    assert java_str(JavaFloat(to_float32(0.1))) == "0.1"
    assert java_str(to_float32(0.1)) == "0.10000000149011612"
    assert java_str(JavaLong(5)) == "5"


def test_wrap_integral():
    assert wrap_integral(2**31, 32) == -(2**31)
    assert wrap_integral(200, 8) == -56
    assert wrap_integral(-1, 64) == -1
    assert wrap_integral(65535, 16) == -1


def test_float_to_integral():
    assert float_to_integral(3.9, 32) == 3
    assert float_to_integral(-3.9, 32) == -3
    assert float_to_integral(math.nan, 32) == 0
    assert float_to_integral(1e30, 64) == 2**63 - 1
    assert float_to_integral(-math.inf, 32) == -(2**31)
    # short and byte narrow the saturated int result
    assert float_to_integral(1e10, 16) == -1


def test_to_float32():
    assert to_float32(1.5) == 1.5
    assert to_float32(0.1) != 0.1
    assert to_float32(1e300) == math.inf


def test_java_equals():
    assert java_equals(None, None)
    assert not java_equals(None, 0)
    assert java_equals(1, 1.0)
    assert not java_equals(1, True)
    assert java_equals("ab", "a" + "b")
    assert java_equals(JavaChar("a"), 97)
    items = []
    assert java_equals(items, items)
    assert not java_equals(items, [])


@pytest.mark.parametrize(
    "op, left, right, expected",
    [
        ("/", -7, 2, -3),
        ("%", -7, 2, -1),
        ("%", 7, -2, 1),
        ("/", 7.0, 2, 3.5),
        ("%", 5.5, 2, 1.5),
        ("+", JavaChar("a"), 1, 98),
        ("+", JavaChar("a"), JavaChar("b"), 195),
        ("+", "a", JavaChar("b"), "ab"),
        ("+", "n=", None, "n=null"),
        ("+", 1.0, "x", "1.0x"),
        ("&", True, False, False),
        ("^", True, False, True),
        ("&", 6, 3, 2),
        (">>", -8, 1, -4),
        (">>>", -1, 28, 15),
        (">>>", -1, 0, -1),
        (">>>", JavaLong(-2), 1, JavaLong(2**63 - 1)),
        ("<<", 1, 33, 2),
        ("<<", JavaLong(1), 33, JavaLong(2**33)),
        (">>", -16, 34, -4),
        ("+", 2**31 - 1, 1, -(2**31)),
        ("*", 65536, 65536, 0),
        ("/", -(2**31), -1, -(2**31)),
        ("+", JavaLong(2**31 - 1), 1, JavaLong(2**31)),
        ("*", JavaLong(2**62), 4, JavaLong(0)),
        ("|", JavaLong(1), 2, JavaLong(3)),
        ("+", JavaFloat(0.5), 1, JavaFloat(1.5)),
        ("/", JavaFloat(1.0), 3, JavaFloat(to_float32(1 / 3))),
        ("+", JavaFloat(0.5), 1.0, 1.5),
        ("<", 1, 1.5, True),
        ("==", "a", "a", True),
        ("!=", 1, 2, True),
    ],
)
def test_binary_op(op, left, right, expected):
    result = binary_op(op, left, right)
    assert result == expected
    assert type(result) is type(expected)


def test_float_division_by_zero():
    assert binary_op("/", 1.0, 0) == math.inf
    assert binary_op("/", -1.0, 0) == -math.inf
    assert math.isnan(binary_op("/", 0.0, 0))
    assert math.isnan(binary_op("%", 1.0, 0))


@pytest.mark.parametrize("op", ["/", "%"])
def test_integer_division_by_zero(op):
    with pytest.raises(EvaluationError, match="/ by zero"):
        binary_op(op, 1, 0)


def test_binary_op_errors():
    with pytest.raises(EvaluationError, match="NullPointerException"):
        binary_op("+", None, 1)
    with pytest.raises(EvaluationError, match="bad operand types"):
        binary_op("-", "a", 1)
    with pytest.raises(EvaluationError, match="bad operand types"):
        binary_op("&", 1.5, 1)
    with pytest.raises(EvaluationError, match="bad operand types"):
        binary_op("*", "a", 2)


def test_unary_op():
    assert unary_op("-", 2) == -2
    assert unary_op("~", 5) == -6
    assert unary_op("!", False) is True
    assert unary_op("-", JavaChar("a")) == -97
    assert unary_op("-", -(2**31)) == -(2**31)
    assert type(unary_op("-", 2**31)) is int
    negated = unary_op("-", JavaLong(5))
    assert negated == -5 and isinstance(negated, JavaLong)
    assert isinstance(unary_op("-", JavaFloat(1.5)), JavaFloat)
    assert unary_op("~", JavaLong(0)) == JavaLong(-1)
    with pytest.raises(EvaluationError, match="String cannot be converted to a number"):
        unary_op("-", "a")
    with pytest.raises(EvaluationError, match="cannot be converted to boolean"):
        unary_op("!", 1)
    with pytest.raises(EvaluationError):
        unary_op("~", 1.5)


def test_primitive_casts():
    assert PRIMITIVES["int"].cast(3000000000) == -1294967296
    assert PRIMITIVES["byte"].cast(200) == -56
    assert PRIMITIVES["double"].cast(3) == 3.0
    assert PRIMITIVES["float"].cast(1.1) == to_float32(1.1)
    assert isinstance(PRIMITIVES["float"].cast(1.1), JavaFloat)
    assert isinstance(PRIMITIVES["long"].cast(5), JavaLong)
    assert type(PRIMITIVES["int"].cast(JavaLong(5))) is int
    assert PRIMITIVES["char"].cast("x") == JavaChar("x")
    with pytest.raises(EvaluationError, match="String cannot be converted to a number"):
        PRIMITIVES["int"].cast("x")
    char = PRIMITIVES["char"].cast(65)
    assert char == "A" and isinstance(char, JavaChar)
    assert PRIMITIVES["int"].cast(JavaChar("a")) == 97
    with pytest.raises(EvaluationError, match="NullPointerException"):
        PRIMITIVES["int"].cast(None)


def test_primitive_conversion_rejects_lossy_values():
    assert PRIMITIVES["long"].convert(5) == 5
    assert PRIMITIVES["double"].convert(5) == 5.0
    with pytest.raises(EvaluationError, match="possible lossy conversion from double to int"):
        PRIMITIVES["int"].convert(1.5)
    with pytest.raises(EvaluationError, match="possible lossy conversion from float to long"):
        PRIMITIVES["long"].convert(JavaFloat(1.5))
    with pytest.raises(EvaluationError, match="possible lossy conversion from long to int"):
        PRIMITIVES["int"].convert(JavaLong(1))


def test_boxed_casts():
    assert BOXED["Double"].cast(3) == 3.0
    assert BOXED["Integer"].cast(None) is None
    assert BOXED["Character"].cast("x") == JavaChar("x")
    with pytest.raises(EvaluationError, match="ClassCastException: Double cannot be cast to Integer"):
        BOXED["Integer"].cast(1.5)
    with pytest.raises(EvaluationError, match="ClassCastException"):
        BOXED["Boolean"].cast(1)
    with pytest.raises(EvaluationError, match="ClassCastException: Long cannot be cast to Integer"):
        BOXED["Integer"].cast(JavaLong(1))
    assert isinstance(BOXED["Long"].cast(1), JavaLong)
    assert STRING.cast(None) is None
    with pytest.raises(EvaluationError, match="ClassCastException: Integer cannot be cast to String"):
        STRING.cast(1)


def test_boxed_statics():
    integer = BOXED["Integer"]
    assert integer.get_static("MAX_VALUE") == 2**31 - 1
    assert BOXED["Long"].get_static("MIN_VALUE") == -(2**63)
    assert integer.call_static("parseInt", ["42"]) == 42
    assert integer.call_static("valueOf", ["-5"]) == -5
    assert integer.call_static("compare", [3, 5]) == -1
    assert integer.call_static("sum", [2**31 - 1, 1]) == -(2**31)
    assert BOXED["Double"].call_static("valueOf", ["1.5"]) == 1.5
    assert BOXED["Double"].call_static("isNaN", [math.nan])
    assert BOXED["Boolean"].call_static("parseBoolean", ["TRUE"]) is True
    assert BOXED["Character"].call_static("valueOf", ["c"]) == "c"
    assert isinstance(BOXED["Character"].call_static("valueOf", ["c"]), JavaChar)
    assert isinstance(BOXED["Long"].call_static("parseLong", ["5"]), JavaLong)
    assert isinstance(BOXED["Long"].get_static("MAX_VALUE"), JavaLong)
    assert isinstance(BOXED["Float"].get_static("MAX_VALUE"), JavaFloat)
    assert BOXED["Short"].instantiate([7]) == 7


@pytest.mark.parametrize("text", ["4x", "", "1.5", "3000000000"])
def test_parse_int_rejects_bad_input(text):
    with pytest.raises(EvaluationError, match="NumberFormatException"):
        BOXED["Integer"].call_static("parseInt", [text])


def test_unknown_statics():
    with pytest.raises(EvaluationError, match="cannot find symbol: Integer.NOPE"):
        BOXED["Integer"].get_static("NOPE")
    with pytest.raises(EvaluationError, match="cannot find symbol: method Integer.nope"):
        BOXED["Integer"].call_static("nope", [])


def test_string_statics():
    assert STRING.call_static("valueOf", [1.0]) == "1.0"
    assert STRING.call_static("join", ["-", "a", "b"]) == "a-b"
    assert STRING.call_static("join", [",", ["x", 1]]) == "x,1"
    assert STRING.call_static("format", ["%d items%n", 3]) == "3 items\n"
    assert STRING.instantiate([]) == ""


def test_java_math():
    assert JavaMath.sqrt(16) == 4.0
    assert math.isnan(JavaMath.sqrt(-1))
    assert JavaMath.log(0) == -math.inf
    assert JavaMath.abs(-2) == 2
    assert JavaMath.max(1, 2.5) == 2.5
    assert math.isnan(JavaMath.min(1.0, math.nan))
    assert JavaMath.round(2.5) == 3
    assert JavaMath.round(-2.5) == -2
    assert JavaMath.floor(-1.5) == -2.0
    assert JavaMath.ceil(math.inf) == math.inf
    assert JavaMath.pow(2, 10) == 1024.0
    assert JavaMath.pow(-10.0, 309) == -math.inf
    assert JavaMath.signum(-3) == -1.0
    assert JavaMath.floorMod(-7, 3) == 2
    assert JavaMath.floorDiv(-7, 2) == -4
    assert JavaMath.abs(-(2**31)) == -(2**31)
    assert isinstance(JavaMath.abs(JavaLong(-3)), JavaLong)
    assert isinstance(JavaMath.max(JavaFloat(1.5), 2), JavaFloat)
    assert isinstance(JavaMath.round(2.5), JavaLong)
    rounded = JavaMath.round(JavaFloat(2.5))
    assert rounded == 3 and type(rounded) is int
    assert 0.0 <= JavaMath.random() < 1.0
    with pytest.raises(EvaluationError, match="/ by zero"):
        JavaMath.floorMod(1, 0)


def test_one_character_strings_are_not_numbers():
    with pytest.raises(EvaluationError, match="String cannot be converted to a number"):
        JavaMath.max(1, "a")
    with pytest.raises(EvaluationError, match="String cannot be converted to a number"):
        JavaMath.abs("a")
    assert JavaMath.max(1, JavaChar("a")) == 97


def test_java_iterator():
    iterator = JavaIterator([1, 2])
    assert iterator.hasNext()
    assert iterator.next() == 1
    assert list(iterator) == [2]
    assert not iterator.hasNext()
    with pytest.raises(EvaluationError, match="NoSuchElementException"):
        iterator.next()


def test_member_calls_prefer_python_attributes():
    mapping = {"a": 1}
    assert invoke_member(mapping, "get", ["a"]) == 1
    assert invoke_member("a-b", "replace", ["-", "+"]) == "a+b"


@pytest.mark.parametrize(
    "receiver, name, args, expected",
    [
        (2.5, "doubleValue", [], 2.5),
        (2.5, "intValue", [], 2),
        (7, "doubleValue", [], 7.0),
        (True, "booleanValue", [], True),
        ("hello", "length", [], 5),
        ("hello", "charAt", [1], "e"),
        ("hello", "substring", [1, 3], "el"),
        ("hello", "substring", [3], "lo"),
        ("hello", "indexOf", ["l"], 2),
        ("hello", "contains", ["ell"], True),
        ("hello", "equals", ["hello"], True),
        ("Hello", "equalsIgnoreCase", ["hELLO"], True),
        ("  hi ", "trim", [], "hi"),
        ("b", "compareTo", ["a"], 1),
        ([1, 2, 3], "size", [], 3),
        ([1, 2, 3], "get", [1], 2),
        ([1, 2, 3], "indexOf", [3], 2),
        ([], "isEmpty", [], True),
        ({"k": 1}, "containsKey", ["k"], True),
        ({"k": 1}, "getOrDefault", ["z", 0], 0),
        (1, "equals", [True], False),
    ],
)
def test_member_shims(receiver, name, args, expected):
    assert invoke_member(receiver, name, args) == expected


def test_mutating_shims():
    items = [1, 2]
    assert invoke_member(items, "add", [3]) is True
    assert invoke_member(items, "set", [0, 9]) == 1
    assert items == [9, 2, 3]
    mapping = {}
    assert invoke_member(mapping, "put", ["k", 1]) is None
    assert mapping == {"k": 1}


def test_member_errors():
    with pytest.raises(EvaluationError, match="NullPointerException"):
        invoke_member(None, "toString", [])
    with pytest.raises(EvaluationError, match="IndexOutOfBoundsException"):
        invoke_member([1], "get", [3])
    with pytest.raises(EvaluationError, match="StringIndexOutOfBoundsException"):
        invoke_member("abc", "substring", [2, 1])
    with pytest.raises(EvaluationError, match="cannot find symbol: method frobnicate"):
        invoke_member("abc", "frobnicate", [])
    with pytest.raises(EvaluationError, match="cannot find symbol: method doubleValue"):
        invoke_member("abc", "doubleValue", [])
