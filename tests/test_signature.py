import logging

import pytest

from funcparser.errors import MalformedSignature, MissingType, SignatureError, TooManyTokens
from funcparser.signature import (
    ParameterDeclaration,
    bind_variables,
    resolve_parameters,
    split_signature,
)


def test_split_simple_signature():
    raw = split_signature("double (Double x,y,z,f)->(x + y + z + f)")
    assert raw.return_type == "double"
    assert raw.param_tokens == ("Double x", "y", "z", "f")
    assert raw.body == "(x + y + z + f)"


def test_split_trims_random_spaces():
    raw = split_signature("  double (     Double   x,   y ,z  ,f, Boolean    a     )   ->       a ? x * y : z * f")
    assert raw.return_type == "double"
    assert raw.param_tokens == ("Double   x", "y", "z", "f", "Boolean    a")
    assert raw.body == "       a ? x * y : z * f"


def test_empty_return_type_defaults_to_object():
    assert split_signature("(Double x)->x").return_type == "Object"
    assert split_signature("   (Double x)->x").return_type == "Object"


def test_dotted_return_type_is_kept():
    raw = split_signature("java.awt.Point(java.awt.Point a,b)->return a;")
    assert raw.return_type == "java.awt.Point"
    assert raw.param_tokens == ("java.awt.Point a", "b")


def test_body_keeps_later_arrows():
    raw = split_signature("boolean(Integer a, b)->a -> b")
    assert raw.body == "a -> b"


@pytest.mark.parametrize("text", ["double()->1.0", "double(  )->1.0"])
def test_empty_parameter_list_has_no_type(text):
    raw = split_signature(text)
    assert raw.param_tokens == ("",)
    with pytest.raises(MissingType) as excinfo:
        resolve_parameters(raw.param_tokens)
    assert excinfo.value.token == ""


def test_text_before_the_arrow_is_ignored(caplog):
    with caplog.at_level(logging.WARNING, logger="funcparser.signature"):
        raw = split_signature("double(Double x) extra -> x")
    assert raw.param_tokens == ("Double x",)
    assert raw.body == " x"
    assert "ignoring 'extra'" in caplog.text


@pytest.mark.parametrize(
    "text",
    [
        "double Double x -> x",
        "double(Double x -> x",
        "double(Double x) x",
        "double(Double (x))->x",
        "double(Double x,,y)->x",
        "double(Double x,)->x",
    ],
)
def test_malformed_signatures(text):
    with pytest.raises(MalformedSignature):
        split_signature(text)


def test_signature_errors_are_value_errors():
    with pytest.raises(ValueError):
        split_signature("no parens here")
    assert issubclass(MissingType, SignatureError)


def test_bare_names_inherit_the_last_explicit_type():
    declarations = resolve_parameters(["Double x", "y", "Boolean a", "b"])
    assert declarations == [
        ParameterDeclaration(index=0, name="x", type_name="Double"),
        ParameterDeclaration(index=1, name="y", type_name="Double"),
        ParameterDeclaration(index=2, name="a", type_name="Boolean"),
        ParameterDeclaration(index=3, name="b", type_name="Boolean"),
    ]


def test_whitespace_inside_a_token_is_collapsed():
    [decl] = resolve_parameters(["Double \t x"])
    assert (decl.type_name, decl.name) == ("Double", "x")


def test_first_parameter_needs_a_type():
    with pytest.raises(MissingType) as excinfo:
        resolve_parameters(["x", "Double y"])
    assert excinfo.value.token == "x"
    assert "No parameter type found in 'x'" in str(excinfo.value)


def test_three_words_is_too_many():
    with pytest.raises(TooManyTokens) as excinfo:
        resolve_parameters(["Double x y"])
    assert excinfo.value.token == "Double x y"


def test_bindings_keep_declaration_order():
    bindings = bind_variables(resolve_parameters(["Double x", "y", "z", "f"]))
    assert list(bindings) == ["x", "y", "z", "f"]
    assert bindings["z"].index == 2
    assert bindings["z"].type_name == "Double"


def test_duplicate_names_keep_the_first_binding(caplog):
    declarations = resolve_parameters(["Double x", "Integer x", "y"])
    with caplog.at_level(logging.WARNING, logger="funcparser.signature"):
        bindings = bind_variables(declarations)
    assert list(bindings) == ["x", "y"]
    assert bindings["x"].index == 0
    assert bindings["x"].type_name == "Double"
    # indices follow raw token order, repeats included
    assert bindings["y"].index == 2
    assert "declared again" in caplog.text
