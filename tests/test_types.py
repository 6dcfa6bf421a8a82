import pytest

from cmmc.types import (
    Category,
    Diagnostic,
    ExpType,
    Kind,
    Symbol,
    Type,
    error_message,
    types_equal,
)


def _struct(*member_kinds):
    members = [Symbol(f"m{i}", Type(k), True) for i, k in enumerate(member_kinds)]
    definition = Symbol("S", Type(Kind.STRUCT_TYPE, members=members), True)
    return Type(Kind.STRUCT, struct=definition)


def test_basic_types():
    assert types_equal(Type(Kind.INT), Type(Kind.INT))
    assert types_equal(Type(Kind.FLOAT), Type(Kind.FLOAT))
    assert not types_equal(Type(Kind.INT), Type(Kind.FLOAT))


def test_none_is_never_equal():
    assert not types_equal(None, Type(Kind.INT))
    assert not types_equal(Type(Kind.INT), None)


def test_arrays_ignore_size():
    a = Type(Kind.ARRAY, elem=Type(Kind.INT), size=5)
    b = Type(Kind.ARRAY, elem=Type(Kind.INT), size=9)
    c = Type(Kind.ARRAY, elem=Type(Kind.FLOAT), size=5)
    assert types_equal(a, b)
    assert not types_equal(a, c)


def test_structs_are_structural():
    assert types_equal(_struct(Kind.INT, Kind.FLOAT), _struct(Kind.INT, Kind.FLOAT))
    assert not types_equal(_struct(Kind.INT, Kind.FLOAT), _struct(Kind.FLOAT, Kind.INT))
    assert not types_equal(_struct(Kind.INT), _struct(Kind.INT, Kind.INT))


def test_struct_without_definition():
    assert not types_equal(Type(Kind.STRUCT), _struct(Kind.INT))


def test_exptype_is_error():
    assert ExpType(Category.ERROR).is_error()
    assert not ExpType(Category.LVALUE, Type(Kind.INT)).is_error()


def test_error_messages_from_table():
    assert error_message(1) == "Variable used before definition."
    assert error_message(17) == "Using an undefined struct to define a variable."


@pytest.mark.parametrize("code", [0, 18, -1])
def test_unknown_error_code(code):
    with pytest.raises(ValueError):
        error_message(code)


def test_diagnostic_text():
    text = str(Diagnostic(4, 12))
    assert text == "Error type 4 at Line 12:  Function redefined."