"""Three-address intermediate code: operands, instructions and their text form."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, replace

from cmmc.types import Kind, Type


class OperandKind(enum.Enum):
    """What an operand names."""

    UNDEF = 0
    VAR = 1
    TEMP = 2
    CONST_INT = 3
    CONST_FLO = 4
    FUNC = 5
    LABEL = 6


class State(enum.Enum):
    """Whether a variable holds a value or an address."""

    VALUE = 0
    ADDR = 1


class Prefix(enum.Enum):
    """Address-of or dereference applied when an operand is used."""

    NOTHING = ""
    GET_ADDR = "&"
    GET_VAL = "*"


@dataclass(frozen=True)
class Operand:
    """An operand of an instruction.

    ``value`` is the number of a variable, temporary or label, the value of a
    constant, or the name of a function.
    """

    kind: OperandKind
    value: int | float | str = 0
    state: State = State.VALUE
    prefix: Prefix = Prefix.NOTHING

    def __str__(self) -> str:
        if self.kind is OperandKind.VAR:
            return f"{self.prefix.value}v{self.value}"
        if self.kind is OperandKind.TEMP:
            return f"{self.prefix.value}t{self.value}"
        if self.kind is OperandKind.LABEL:
            return f"label{self.value}"
        if self.kind is OperandKind.CONST_INT:
            return f"#{int(self.value)}"
        if self.kind is OperandKind.CONST_FLO:
            return f"#{float(self.value):.6f}"
        if self.kind is OperandKind.FUNC:
            return str(self.value)
        return "`Undef`"

    def with_prefix(self, prefix: Prefix) -> Operand:
        """Return a copy of this operand carrying ``prefix``."""
        return replace(self, prefix=prefix)


UNDEF = Operand(OperandKind.UNDEF)


class ArithOp(enum.Enum):
    """Binary arithmetic operators."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"


@dataclass
class Label:
    """``LABEL x :``"""

    label: Operand

    def __str__(self) -> str:
        return f"LABEL {self.label} :"


@dataclass
class FunctionHeader:
    """``FUNCTION f :``"""

    func: Operand

    def __str__(self) -> str:
        return f"FUNCTION {self.func} :"


@dataclass
class Assign:
    """``x := y`` or, with an operator, ``x := y op z``."""

    target: Operand
    left: Operand
    op: ArithOp | None = None
    right: Operand | None = None

    def __str__(self) -> str:
        if self.op is None or self.right is None:
            return f"{self.target} := {self.left}"
        return f"{self.target} := {self.left} {self.op.value} {self.right}"


@dataclass
class Call:
    """``x := CALL f``"""

    target: Operand
    func: Operand

    def __str__(self) -> str:
        return f"{self.target} := CALL {self.func}"


@dataclass
class Goto:
    """``GOTO x``"""

    label: Operand

    def __str__(self) -> str:
        return f"GOTO {self.label}"


@dataclass
class CondGoto:
    """``IF x relop y GOTO z``"""

    left: Operand
    relop: str
    right: Operand
    label: Operand

    def __str__(self) -> str:
        return f"IF {self.left} {self.relop} {self.right} GOTO {self.label}"


@dataclass
class Return:
    """``RETURN x``"""

    value: Operand

    def __str__(self) -> str:
        return f"RETURN {self.value}"


@dataclass
class Dec:
    """``DEC x size``"""

    var: Operand
    size: int

    def __str__(self) -> str:
        return f"DEC {self.var} {self.size}"


@dataclass
class Arg:
    """``ARG x``"""

    value: Operand

    def __str__(self) -> str:
        return f"ARG {self.value}"


@dataclass
class Param:
    """``PARAM x``"""

    var: Operand

    def __str__(self) -> str:
        return f"PARAM {self.var}"


@dataclass
class Read:
    """``READ x``"""

    target: Operand

    def __str__(self) -> str:
        return f"READ {self.target}"


@dataclass
class Write:
    """``WRITE x``"""

    value: Operand

    def __str__(self) -> str:
        return f"WRITE {self.value}"


Instruction = (
    Label | FunctionHeader | Assign | Call | Goto | CondGoto | Return | Dec | Arg | Param | Read | Write
)


def size_of(typ: Type | None) -> int:
    """Bytes taken by a value of ``typ``: 4 per int or float."""
    if typ is None:
        return 0
    if typ.kind in (Kind.INT, Kind.FLOAT):
        return 4
    if typ.kind is Kind.ARRAY:
        return size_of(typ.elem) * typ.size
    if typ.kind is Kind.STRUCT:
        return size_of(typ.struct.type) if typ.struct is not None else 0
    if typ.kind is Kind.STRUCT_TYPE:
        return sum(size_of(member.type) for member in typ.members)
    return 0


def format_program(instructions: Iterable[Instruction]) -> str:
    """Render instructions one per line, each line ending in a newline."""
    return "".join(f"{instruction}\n" for instruction in instructions)