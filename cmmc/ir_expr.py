"""Translation of expressions and conditions into intermediate code."""

from __future__ import annotations

import itertools
import re
from dataclasses import replace

from cmmc.ir import (
    UNDEF,
    Arg,
    ArithOp,
    Assign,
    Call,
    CondGoto,
    Goto,
    Instruction,
    Label,
    Operand,
    OperandKind,
    Prefix,
    Read,
    State,
    Write,
    size_of,
)
from cmmc.semantic import SemanticAnalyzer
from cmmc.semantic_expr import ExpressionChecker
from cmmc.tree import Node, get_id
from cmmc.types import Kind, Type

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

_ARITHMETIC = {
    "PLUS": ArithOp.ADD,
    "MINUS": ArithOp.SUB,
    "STAR": ArithOp.MUL,
    "DIV": ArithOp.DIV,
}

# Target telling a translation that its result is about to be assigned to.
_AS_LVALUE = Operand(OperandKind.TEMP, -1)


class TranslationError(Exception):
    """Raised for constructs the intermediate code cannot express."""


def _int_literal(token: Node) -> int:
    match = _LEADING_INT.match(token.msg[5:])
    return int(match.group(1)) if match else 0


def _float_literal(token: Node) -> float:
    match = _LEADING_FLOAT.match(token.msg[7:])
    return float(match.group(1)) if match else 0.0


def _const(value: int) -> Operand:
    return Operand(OperandKind.CONST_INT, value)


def _is_undef(operand: Operand) -> bool:
    return operand.kind is OperandKind.UNDEF


def _is_fresh_temp(operand: Operand) -> bool:
    return operand.kind is OperandKind.TEMP and isinstance(operand.value, int) and operand.value > 0


def _is_lvalue_mark(operand: Operand) -> bool:
    return operand.kind is OperandKind.TEMP and isinstance(operand.value, int) and operand.value < 0


class ExpressionTranslator:
    """Turns ``Exp`` subtrees of a checked program into instructions.

    ``translate_exp`` receives the operand the value should end up in: a fresh
    temporary (the caller will use whatever operand comes back), a variable or
    dereferenced temporary (the value is stored there), or ``UNDEF`` when the
    value is not needed at all.
    """

    def __init__(self, analyzer: SemanticAnalyzer):
        self.symbols = analyzer.symbols
        self.functions = analyzer.functions
        self._types = ExpressionChecker(self.symbols, self.functions)
        self.instructions: list[Instruction] = []
        self.params: set[int] = set()
        self._temps = itertools.count(1)
        self._labels = itertools.count(1)
        self._vars: dict[str, int] = {}
        self._var_names: dict[int, str] = {}

    # ---- allocation ---------------------------------------------------

    def emit(self, instruction: Instruction) -> Instruction:
        """Append an instruction and return it."""
        self.instructions.append(instruction)
        return instruction

    def new_temp(self) -> Operand:
        return Operand(OperandKind.TEMP, next(self._temps))

    def new_label(self) -> Operand:
        return Operand(OperandKind.LABEL, next(self._labels))

    def var_for(self, name: str) -> Operand:
        """The variable operand of a source name, numbered on first use.

        Structure parameters hold an address rather than a value.
        """
        number = self._vars.get(name)
        if number is None:
            number = len(self._vars) + 1
            self._vars[name] = number
            self._var_names[number] = name
        state = State.VALUE
        if number in self.params:
            symbol = self.symbols.lookup(name)
            if symbol is not None and symbol.type is not None and symbol.type.kind is Kind.STRUCT:
                state = State.ADDR
        return Operand(OperandKind.VAR, number, state)

    def _type_of(self, node: Node) -> Type | None:
        return self._types.check_exp(node).type

    # ---- arguments and conditions -------------------------------------

    def translate_args(self, node: Node, is_write: bool) -> Operand:
        """Translate ``Args`` last to first, emitting ``ARG`` for each.

        For ``write`` nothing is emitted; the operand of the first argument
        is returned either way.
        """
        exps = []
        current: Node | None = node
        while current is not None:
            exps.append(current.children[0])
            current = current.children[2] if len(current.children) > 2 else None
        first = UNDEF
        for exp in reversed(exps):
            arg = self.translate_exp(exp, self.new_temp())
            arg_type = self._type_of(exp)
            if arg_type is not None and arg_type.kind is Kind.STRUCT and arg.state is State.VALUE:
                arg = arg.with_prefix(Prefix.GET_ADDR)
            if not is_write:
                self.emit(Arg(arg))
            first = arg
        return first

    def translate_cond(self, node: Node, label_true: Operand, label_false: Operand) -> None:
        """Emit jumps to ``label_true`` when the condition holds, else ``label_false``."""
        first = node.children[0]
        if first.msg == "LP":
            self.translate_cond(node.children[1], label_true, label_false)
            return
        if first.msg == "NOT":
            self.translate_cond(node.children[1], label_false, label_true)
            return
        operator = node.children[1].msg if len(node.children) > 1 else ""
        if operator.startswith("RELOP"):
            left = self.translate_exp(node.children[0], self.new_temp())
            right = self.translate_exp(node.children[2], self.new_temp())
            self.emit(CondGoto(left, operator[7:], right, label_true))
            self.emit(Goto(label_false))
        elif operator == "AND":
            middle = self.new_label()
            self.translate_cond(node.children[0], middle, label_false)
            self.emit(Label(middle))
            self.translate_cond(node.children[2], label_true, label_false)
        elif operator == "OR":
            middle = self.new_label()
            self.translate_cond(node.children[0], label_true, middle)
            self.emit(Label(middle))
            self.translate_cond(node.children[2], label_true, label_false)
        else:
            value = self.translate_exp(node, self.new_temp())
            self.emit(CondGoto(value, "!=", _const(0), label_true))
            self.emit(Goto(label_false))

    # ---- expressions --------------------------------------------------

    def translate_exp(self, node: Node, target: Operand) -> Operand:
        """Translate an ``Exp`` node and return the operand holding its value."""
        first = node.children[0]
        if first.msg == "LP":
            return self.translate_exp(node.children[1], target)
        if len(node.children) == 1:
            if first.msg.startswith("ID"):
                return self._identifier(node, target)
            return self._literal(first, target)
        if first.msg == "MINUS":
            return self._negation(node.children[1], target)
        if first.msg == "NOT":
            return self._boolean(node, target)
        if first.msg.startswith("ID"):
            return self._call(node, target)

        operator = node.children[1].msg
        if operator == "ASSIGNOP":
            return self._assign(node.children[0], node.children[2], target)
        if operator in ("AND", "OR") or operator.startswith("RELOP"):
            return self._boolean(node, target)
        if operator in _ARITHMETIC:
            return self._arithmetic(node, _ARITHMETIC[operator], target)
        if operator == "LB":
            return self._index(node.children[0], node.children[2], target)
        if operator == "DOT":
            return self._field(node.children[0], node.children[2], target)
        raise TranslationError(f"unexpected expression operator {operator!r} at line {node.line}")

    def _stores_into(self, target: Operand) -> bool:
        return target.kind is not OperandKind.TEMP or target.prefix is not Prefix.NOTHING

    def _identifier(self, node: Node, target: Operand) -> Operand:
        if _is_undef(target):
            return target
        name = get_id(node)
        value = self.var_for(name)
        if self._stores_into(target):
            symbol = self.symbols.lookup(name)
            if symbol is not None and symbol.type is not None and symbol.type.kind is Kind.ARRAY:
                self._copy_array(target, value, symbol.type)
            else:
                self.emit(Assign(target, value))
        return value

    def _copy_array(self, target: Operand, source: Operand, source_type: Type) -> None:
        """Copy an array word by word; the target array's size bounds the copy."""
        count = source_type.size
        if target.kind is OperandKind.VAR:
            name = self._var_names.get(int(target.value))
            symbol = self.symbols.lookup(name) if name is not None else None
            if symbol is not None and symbol.type is not None and symbol.type.kind is Kind.ARRAY:
                count = symbol.type.size
        limit = _const(count * 4)
        offset = self.new_temp()
        self.emit(Assign(offset, _const(0)))
        loop, body, done = self.new_label(), self.new_label(), self.new_label()
        to_cell, from_cell = self.new_temp(), self.new_temp()
        self.emit(Label(loop))
        self.emit(CondGoto(offset, "<", limit, body))
        self.emit(Goto(done))
        self.emit(Label(body))
        self.emit(Assign(to_cell, target.with_prefix(Prefix.GET_ADDR), ArithOp.ADD, offset))
        self.emit(Assign(from_cell, source.with_prefix(Prefix.GET_ADDR), ArithOp.ADD, offset))
        self.emit(Assign(to_cell.with_prefix(Prefix.GET_VAL), from_cell.with_prefix(Prefix.GET_VAL)))
        self.emit(Assign(offset, offset, ArithOp.ADD, _const(4)))
        self.emit(Goto(loop))
        self.emit(Label(done))

    def _literal(self, token: Node, target: Operand) -> Operand:
        if _is_undef(target):
            return target
        if token.msg.startswith("INT"):
            value = _const(_int_literal(token))
        else:
            value = Operand(OperandKind.CONST_FLO, _float_literal(token))
        if self._stores_into(target):
            self.emit(Assign(target, value))
            return target
        return value

    def _negation(self, operand: Node, target: Operand) -> Operand:
        if _is_undef(target):
            return target
        value = self.translate_exp(operand, self.new_temp())
        if value.kind in (OperandKind.CONST_INT, OperandKind.CONST_FLO):
            return replace(value, value=-value.value)
        self.emit(Assign(target, _const(0), ArithOp.SUB, value))
        return target

    def _boolean(self, node: Node, target: Operand) -> Operand:
        if _is_undef(target):
            target = self.new_temp()
        label_true, label_false = self.new_label(), self.new_label()
        self.emit(Assign(target, _const(0)))
        self.translate_cond(node, label_true, label_false)
        self.emit(Label(label_true))
        self.emit(Assign(target, _const(1)))
        self.emit(Label(label_false))
        return target

    def _assign(self, left: Node, right: Node, target: Operand) -> Operand:
        destination = self.translate_exp(left, _AS_LVALUE)
        if destination.prefix is Prefix.GET_VAL:
            value = self.translate_exp(right, self.new_temp())
            self.emit(Assign(destination, value))
        else:
            value = self.translate_exp(right, destination)
        if not _is_undef(target):
            self.emit(Assign(target, destination))
        return value

    def _arithmetic(self, node: Node, op: ArithOp, target: Operand) -> Operand:
        if _is_undef(target):
            return target
        left = self.translate_exp(node.children[0], self.new_temp())
        right = self.translate_exp(node.children[2], self.new_temp())
        self.emit(Assign(target, left, op, right))
        return target

    def _address_of(self, base: Operand) -> Operand:
        """The operand holding the address of what ``base`` names."""
        if base.state is State.ADDR:
            return base.with_prefix(Prefix.NOTHING)
        return base.with_prefix(Prefix.GET_ADDR)

    def _deliver(self, cell: Operand, target: Operand) -> Operand:
        if _is_fresh_temp(target):
            self.emit(Assign(target, cell))
            return target
        if not _is_lvalue_mark(target):
            self.emit(Assign(target, cell))
        return cell

    def _index(self, left: Node, right: Node, target: Operand) -> Operand:
        if _is_undef(target):
            return target
        base = self.translate_exp(left, _AS_LVALUE)
        index = self.translate_exp(right, self.new_temp())
        array_type = self._type_of(left)
        elem = array_type.elem if array_type is not None else None
        if elem is not None and elem.kind is Kind.ARRAY:
            raise TranslationError("Cannot translate: Variables of multi-dimensional array type.")
        width = size_of(elem)
        start = self._address_of(base)
        if index.kind is OperandKind.CONST_INT and index.value == 0:
            address = self.new_temp()
            self.emit(Assign(address, start))
        else:
            if index.kind is OperandKind.CONST_INT:
                offset = _const(int(index.value) * width)
            else:
                offset = self.new_temp()
                self.emit(Assign(offset, index, ArithOp.MUL, _const(width)))
            address = self.new_temp()
            self.emit(Assign(address, start, ArithOp.ADD, offset))
        cell = replace(address, state=State.ADDR, prefix=Prefix.GET_VAL)
        return self._deliver(cell, target)

    def _field(self, left: Node, name_token: Node, target: Operand) -> Operand:
        if _is_undef(target):
            return target
        base = self.translate_exp(left, _AS_LVALUE)
        field_name = get_id(name_token)
        struct_type = self._type_of(left)
        members = []
        if struct_type is not None and struct_type.struct is not None and struct_type.struct.type is not None:
            members = struct_type.struct.type.members
        offset = 0
        for member in members:
            if member.name == field_name:
                break
            offset += size_of(member.type)
        address = self.new_temp()
        start = self._address_of(base)
        if offset:
            self.emit(Assign(address, start, ArithOp.ADD, _const(offset)))
        else:
            self.emit(Assign(address, start))
        cell = replace(address, state=State.ADDR, prefix=Prefix.GET_VAL)
        return self._deliver(cell, target)

    def _call(self, node: Node, target: Operand) -> Operand:
        name = get_id(node.children[0])
        args_node = node.children[2]
        arg = self.translate_args(args_node, name == "write") if args_node.msg == "Args" else None
        if name == "read":
            if _is_undef(target):
                target = self.new_temp()
            self.emit(Read(target))
        elif name == "write":
            if arg is None:
                raise TranslationError(f"write called without an argument at line {node.line}")
            self.emit(Write(arg))
            if not _is_undef(target):
                self.emit(Assign(target, _const(0)))
        else:
            if _is_undef(target):
                target = self.new_temp()
            self.emit(Call(target, Operand(OperandKind.FUNC, name)))
        return target