import fractions

import pytest

from funcparser.backend import ast
from funcparser.backend.checker import CheckError, Checker
from funcparser.backend.parser import parse_body
from funcparser.backend.resolver import TypeResolver
from funcparser.backend.runtime import BOXED, PRIMITIVES, HostType


class Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y


def _check(source: str, return_type: str = "double", namespace=None):
    checker = Checker(TypeResolver(namespace))
    return checker.check(parse_body(source), "args", return_type)


def test_types_are_resolved_in_place():
    checked = _check("double d = 1; Double boxed = null; return d;")
    decl, boxed = checked.body.statements[:2]
    assert decl.type_expr.resolved is PRIMITIVES["double"]
    assert boxed.type_expr.resolved is BOXED["Double"]
    assert checked.return_type is PRIMITIVES["double"]


def test_resolver_lookup_order():
    resolver = TypeResolver({"Point": Point, "Double": Point})
    assert resolver.resolve("int") is PRIMITIVES["int"]
    assert resolver.resolve("Point") == HostType("Point", Point)
    # the namespace shadows built-in names
    assert resolver.resolve("Double").target is Point
    assert resolver.resolve("java.lang.Math").name == "Math"
    assert resolver.resolve("fractions.Fraction").target is fractions.Fraction
    assert resolver.resolve("Nowhere") is None
    assert resolver.resolve("no_such_module.Thing") is None
    assert resolver.resolve("fractions.NoSuchThing") is None


def test_static_chains_become_type_names():
    checked = _check("return java.lang.Math.PI + Integer.MAX_VALUE;")
    value = checked.body.statements[0].value
    left, right = value.left, value.right
    assert isinstance(left, ast.FieldAccess) and left.attr == "PI"
    assert isinstance(left.value, ast.TypeName)
    assert left.value.type_expr.name == "java.lang.Math"
    assert isinstance(right.value, ast.TypeName)
    assert right.value.type_expr.resolved is BOXED["Integer"]


def test_locals_shadow_type_names():
    checked = _check("double Math = 2; return Math;")
    value = checked.body.statements[1].value
    assert isinstance(value, ast.Name)


def test_method_receivers_are_resolved():
    checked = _check("return Math.abs(-2);")
    call = checked.body.statements[0].value
    assert isinstance(call.receiver, ast.TypeName)


def test_function_calls_resolve_through_the_namespace():
    checked = _check("return square(3);", namespace={"square": lambda v: v * v})
    call = checked.body.statements[0].value
    assert call.callee.resolved is not None
    with pytest.raises(CheckError, match="cannot find symbol: method cube"):
        _check("return cube(3);")


@pytest.mark.parametrize(
    "source, message",
    [
        ("return missing;", "cannot find symbol: variable missing"),
        ("Foo f = null; return 1;", "cannot find symbol: class Foo"),
        ("return (Foo) null;", "cannot find symbol: class Foo"),
        ("return new Foo();", "cannot find symbol: class Foo"),
        ("double a = 1; { double a = 2; } return a;", "variable 'a' is already defined"),
        ("double a = 1; for (double a : args) { } return a;", "variable 'a' is already defined"),
        ("double args = 1; return args;", "variable 'args' is already defined"),
        ("break; return 1;", "break outside switch or loop"),
        ("if (true) continue; return 1;", "continue outside of loop"),
        ("1 = 2; return 1;", "required variable"),
        ("return (1 = 2);", "required variable"),
        ("return Math++;", "required variable"),
        ("return;", "missing return value"),
        ("double x = 1;", "missing return statement"),
        ("if (flag) return 1;", "cannot find symbol: variable flag"),
        ("boolean flag = true; if (flag) return 1;", "missing return statement"),
        ("boolean go = true; while (go) { return 1; }", "missing return statement"),
        ("while (true) { break; } ", "missing return statement"),
        ("x + 1; return 1;", "not a statement"),
        ("if (true) int x = 1; return 1;", "variable declaration not allowed here"),
        ("int class = 1; return class;", "reserved keyword"),
    ],
)
def test_check_errors(source, message):
    with pytest.raises(CheckError, match=message):
        _check(source)


def test_errors_carry_positions():
    with pytest.raises(CheckError) as excinfo:
        _check("double a = 1;\n  return b;")
    assert str(excinfo.value).startswith("2:10: ")


@pytest.mark.parametrize(
    "source",
    [
        "return 1;",
        "if (args == null) return 1; else return 2;",
        "while (true) { }",
        "for (;;) { if (args == null) return 1; }",
        "do { return 1; } while (args == null);",
        "do { } while (true);",
        "{ { return 1; } }",
        "double x = 0; while (true) { x++; if (x > 3) return x; }",
    ],
)
def test_bodies_that_always_return_or_never_finish(source):
    _check(source)


def test_break_inside_an_infinite_loop_lets_it_complete():
    with pytest.raises(CheckError, match="missing return statement"):
        _check("for (;;) { if (args == null) break; }")
    with pytest.raises(CheckError, match="missing return statement"):
        _check("do { if (args == null) break; } while (true);")


def test_break_in_a_nested_loop_does_not_leave_the_outer_one():
    _check("while (true) { while (true) { break; } }")


def test_unknown_return_type():
    with pytest.raises(CheckError, match="cannot find symbol: class Nowhere"):
        _check("return 1;", return_type="Nowhere")
