"""Types, symbol-table entries and diagnostics of the semantic checker."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class Kind(enum.Enum):
    """The kind of a type."""

    INT = 0
    FLOAT = 1
    STRUCT = 2
    ARRAY = 3
    STRUCT_TYPE = 4


@dataclass
class Type:
    """A type.

    ``STRUCT`` values point at the symbol naming their structure definition in
    ``struct``; ``ARRAY`` types carry ``elem`` and ``size``; a ``STRUCT_TYPE``
    (the structure definition itself) carries its fields in ``members``.
    """

    kind: Kind
    elem: Type | None = None
    size: int = 0
    struct: Symbol | None = None
    members: list[Symbol] = field(default_factory=list)


@dataclass(eq=False)
class Symbol:
    """A variable, field or structure name."""

    name: str
    type: Type | None = None
    defined: bool = False


@dataclass(eq=False)
class Function:
    """A function entry."""

    name: str
    return_type: Type | None = None
    params: list[Symbol] = field(default_factory=list)
    defined: bool = False


class Category(enum.Enum):
    """Value category of an expression."""

    ERROR = 0
    LVALUE = 1
    RVALUE = 2


@dataclass
class ExpType:
    """The checked type of an expression and its value category."""

    category: Category
    type: Type | None = None

    def is_error(self) -> bool:
        return self.category is Category.ERROR


_MESSAGES = {
    1: "Variable used before definition.",
    2: "Function called before definition.",
    3: "Variable redefined or conflicts with struct.",
    4: "Function redefined.",
    5: 'Type mismatch on either side of "=".',
    6: 'RValue on the left side of "=".',
    7: "Operand or operator type mismatch.",
    8: "Return type mismatch.",
    9: "Function arguments mismatch.",
    10: '"[]" used on non-array variable.',
    11: '"()" used on non-function variable.',
    12: 'Non-integer used in "[]".',
    13: 'Dot "." used on non-struct variable.',
    14: "Accessing an undefined field in a struct.",
    15: "Duplicate or initialized field name in a struct.",
    16: "Struct name conflicts.",
    17: "Using an undefined struct to define a variable.",
}


def error_message(code: int) -> str:
    """Return the description of a semantic error code (1 to 17)."""
    try:
        return _MESSAGES[code]
    except KeyError:
        raise ValueError(f"unknown semantic error code {code}") from None


@dataclass(frozen=True)
class Diagnostic:
    """A semantic error found at a source line."""

    code: int
    line: int

    def __str__(self) -> str:
        return f"Error type {self.code} at Line {self.line}:  {error_message(self.code)}"


def types_equal(one: Type | None, other: Type | None) -> bool:
    """Structural type equivalence; array sizes are not compared."""
    if one is None or other is None or one.kind is not other.kind:
        return False
    if one.kind in (Kind.INT, Kind.FLOAT):
        return True
    if one.kind is Kind.STRUCT:
        if one.struct is None or other.struct is None:
            return False
        return types_equal(one.struct.type, other.struct.type)
    if one.kind is Kind.ARRAY:
        return types_equal(one.elem, other.elem)
    if len(one.members) != len(other.members):
        return False
    return all(types_equal(a.type, b.type) for a, b in zip(one.members, other.members))