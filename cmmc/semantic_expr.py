"""Type checking of expressions against the symbol and function tables."""

from __future__ import annotations

from cmmc.tables import Table
from cmmc.tree import Node, get_id
from cmmc.types import (
    Category,
    Diagnostic,
    ExpType,
    Function,
    Kind,
    Symbol,
    Type,
    types_equal,
)

_ERROR = Category.ERROR
_ARITHMETIC = frozenset({"PLUS", "MINUS", "STAR", "DIV"})
_NUMERIC = (Kind.INT, Kind.FLOAT)


def _kind(exp: ExpType) -> Kind | None:
    return exp.type.kind if exp.type is not None else None


def _error() -> ExpType:
    return ExpType(_ERROR)


class ExpressionChecker:
    """Checks ``Exp`` subtrees and records the semantic errors found."""

    def __init__(self, symbols: Table[Symbol], functions: Table[Function]):
        self.symbols = symbols
        self.functions = functions
        self.diagnostics: list[Diagnostic] = []

    def report(self, code: int, line: int) -> Diagnostic:
        """Record a semantic error and return it."""
        diagnostic = Diagnostic(code, line)
        self.diagnostics.append(diagnostic)
        return diagnostic

    def check_args(self, node: Node) -> list[ExpType]:
        """Check every expression of ``Args -> Exp , Args | Exp`` in order."""
        results = []
        current: Node | None = node
        while current is not None:
            exp = current.children[0]
            results.append(self.check_exp(exp))
            current = current.children[2] if len(current.children) > 2 else None
        return results

    def check_exp(self, node: Node) -> ExpType:
        """Return the type and value category of an ``Exp`` node."""
        first = node.children[0]
        if first.msg == "LP":
            return self.check_exp(node.children[1])
        if len(node.children) == 1:
            if first.msg.startswith("ID"):
                return self._identifier(node)
            return self._literal(first)
        if first.msg == "MINUS":
            return self._negation(node.children[1])
        if first.msg == "NOT":
            return self._logical_not(node.children[1])
        if first.msg.startswith("ID"):
            return self._call(node)

        operator = node.children[1].msg
        left, right = node.children[0], node.children[2]
        if operator == "ASSIGNOP":
            return self._assign(left, right)
        if operator in ("AND", "OR"):
            return self._logic(left, right)
        if operator.startswith("RELOP"):
            return self._comparison(left, right)
        if operator in _ARITHMETIC:
            return self._arithmetic(left, right)
        if operator == "LB":
            return self._index(left, right)
        if operator == "DOT":
            return self._field(left, right)
        raise ValueError(f"unexpected expression operator {operator!r} at line {node.line}")

    def _identifier(self, node: Node) -> ExpType:
        symbol = self.symbols.lookup(get_id(node))
        if symbol is None:
            self.report(1, node.line)
            return _error()
        return ExpType(Category.LVALUE, symbol.type)

    @staticmethod
    def _literal(token: Node) -> ExpType:
        kind = Kind.INT if token.msg.startswith("INT") else Kind.FLOAT
        return ExpType(Category.RVALUE, Type(kind))

    def _negation(self, operand: Node) -> ExpType:
        result = self.check_exp(operand)
        if result.is_error():
            return _error()
        if _kind(result) not in _NUMERIC:
            self.report(7, operand.line)
            return _error()
        return ExpType(Category.RVALUE, result.type)

    def _logical_not(self, operand: Node) -> ExpType:
        result = self.check_exp(operand)
        if result.is_error():
            return _error()
        if _kind(result) is not Kind.INT:
            self.report(7, operand.line)
            return _error()
        return ExpType(Category.RVALUE, result.type)

    def _call(self, node: Node) -> ExpType:
        name = get_id(node)
        func = self.functions.lookup(name)
        if func is None:
            self.report(11 if self.symbols.lookup(name) is not None else 2, node.line)
            return _error()
        args_node = node.children[2]
        args = self.check_args(args_node) if args_node.msg == "Args" else []
        matches = len(args) == len(func.params) and all(
            types_equal(param.type, arg.type) for param, arg in zip(func.params, args)
        )
        if not matches:
            self.report(9, node.line)
            return _error()
        return ExpType(Category.RVALUE, func.return_type)

    def _assign(self, left: Node, right: Node) -> ExpType:
        target = self.check_exp(left)
        value = self.check_exp(right)
        if target.is_error() or value.is_error():
            return _error()
        if target.category is not Category.LVALUE:
            self.report(6, left.line)
            return _error()
        if not types_equal(target.type, value.type):
            self.report(5, left.line)
            return _error()
        return ExpType(Category.RVALUE, target.type)

    def _logic(self, left: Node, right: Node) -> ExpType:
        one = self.check_exp(left)
        two = self.check_exp(right)
        if one.is_error() or two.is_error():
            return _error()
        if _kind(one) is not Kind.INT or _kind(two) is not Kind.INT:
            self.report(7, left.line)
            return _error()
        return ExpType(Category.RVALUE, Type(Kind.INT))

    def _same_numeric(self, left: Node, right: Node) -> tuple[ExpType, ExpType] | None:
        one = self.check_exp(left)
        two = self.check_exp(right)
        if one.is_error() or two.is_error():
            return None
        kind = _kind(one)
        if kind not in _NUMERIC or kind is not _kind(two):
            self.report(7, left.line)
            return None
        return one, two

    def _comparison(self, left: Node, right: Node) -> ExpType:
        if self._same_numeric(left, right) is None:
            return _error()
        return ExpType(Category.RVALUE, Type(Kind.INT))

    def _arithmetic(self, left: Node, right: Node) -> ExpType:
        operands = self._same_numeric(left, right)
        if operands is None:
            return _error()
        return ExpType(Category.RVALUE, operands[0].type)

    def _index(self, left: Node, right: Node) -> ExpType:
        array = self.check_exp(left)
        index = self.check_exp(right)
        if array.is_error() or index.is_error():
            return _error()
        if _kind(array) is not Kind.ARRAY:
            self.report(10, left.line)
            return _error()
        if _kind(index) is not Kind.INT:
            self.report(12, left.line)
            return _error()
        return ExpType(Category.LVALUE, array.type.elem)

    def _field(self, left: Node, name_token: Node) -> ExpType:
        base = self.check_exp(left)
        if base.is_error():
            return _error()
        if _kind(base) is not Kind.STRUCT or base.type.struct is None:
            self.report(13, left.line)
            return _error()
        definition = base.type.struct.type
        members = definition.members if definition is not None else []
        field_name = name_token.msg[4:]
        for member in members:
            if member.name == field_name:
                return ExpType(Category.LVALUE, member.type)
        self.report(14, left.line)
        return _error()