"""Semantic analysis of a whole program: definitions, scopes and statements."""

from __future__ import annotations

import re
from collections.abc import Iterator

from cmmc.semantic_expr import ExpressionChecker
from cmmc.tables import Table
from cmmc.tree import Node, get_id, get_int, is_empty
from cmmc.types import Diagnostic, Function, Kind, Symbol, Type, types_equal

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    """Read the leading decimal integer of ``text``; 0 when there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _chain(node: Node | None, rest_index: int) -> Iterator[Node]:
    """Yield the items of a right-recursive list such as ``X -> Item , X``."""
    while not is_empty(node):
        yield node.children[0]
        node = node.children[rest_index] if len(node.children) > rest_index else None


class SemanticAnalyzer:
    """Two-pass checker: collect every name, then check definitions and uses.

    With ``builtins`` the functions ``int read()`` and ``int write(int)`` are
    known without being defined in the program.
    """

    def __init__(self, builtins: bool = True):
        self.builtins = builtins
        self._reset()

    def _reset(self) -> None:
        self.symbols: Table[Symbol] = Table(Symbol)
        self.functions: Table[Function] = Table(Function)
        self.checker = ExpressionChecker(self.symbols, self.functions)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        """Errors found so far, in the order they were found."""
        return self.checker.diagnostics

    def collect(self, root: Node) -> None:
        """First pass: enter every variable, structure and function name."""
        self._reset()
        stack = [root]
        while stack:
            current = stack.pop()
            if current.msg == "VarDec" and current.children and current.children[0].msg != "VarDec":
                self.symbols.declare(get_id(current))
            elif current.msg == "OptTag" and not is_empty(current):
                self.symbols.declare(get_id(current))
            elif current.msg == "FunDec":
                self.functions.declare(get_id(current))
            stack.extend(reversed(current.children))
        if self.builtins:
            self._add_builtins()

    def _add_builtins(self) -> None:
        self.functions.add(Function("read", Type(Kind.INT), [], defined=True))
        param = Symbol("", Type(Kind.INT), defined=True)
        self.functions.add(Function("write", Type(Kind.INT), [param], defined=True))

    def analyze(self, root: Node) -> list[Diagnostic]:
        """Check a ``Program`` tree and return the errors found."""
        self.collect(root)
        ext_def_list = root.children[0] if root.children else None
        for ext_def in _chain(ext_def_list, 1):
            self._ext_def(ext_def)
        return self.diagnostics

    # ---- definitions -------------------------------------------------

    def _ext_def(self, ext_def: Node) -> None:
        specifier = ext_def.children[0]
        dtype = self._specifier(specifier)
        second = ext_def.children[1]
        if second.msg == "ExtDecList":
            for var_dec in _chain(second, 2):
                self._var_dec(var_dec, dtype, False)
        elif second.msg == "FunDec":
            self._fun_dec(second, dtype)
            self._comp_st(ext_def.children[2], dtype)

    def _specifier(self, specifier: Node) -> Type | None:
        first = specifier.children[0]
        if first.msg.startswith("TYPE"):
            name = first.msg[6:]
            return Type(Kind.FLOAT if name == "float" else Kind.INT)
        struct = self._struct_specifier(first)
        if struct is None:
            return None
        return Type(Kind.STRUCT, struct=struct)

    def _struct_specifier(self, spec: Node) -> Symbol | None:
        tag = spec.children[1]
        if tag.msg == "Tag":
            symbol = self.symbols.lookup(get_id(tag))
            if symbol is None or not symbol.defined:
                self.checker.report(17, spec.line)
            return symbol
        def_list = spec.children[3]
        if is_empty(tag):
            definition = Type(Kind.STRUCT_TYPE)
            symbol = Symbol("", definition, defined=True)
            definition.members = self._def_list(def_list, True)
            return symbol
        symbol = self.symbols.lookup(get_id(tag))
        if symbol is None:
            symbol = self.symbols.declare(get_id(tag))
        if symbol.defined:
            self.checker.report(16, spec.line)
            return symbol
        definition = Type(Kind.STRUCT_TYPE)
        symbol.defined = True
        symbol.type = definition
        definition.members = self._def_list(def_list, True)
        return symbol

    def _var_dec(self, var_dec: Node, dtype: Type | None, in_struct: bool) -> Symbol | None:
        if dtype is None:
            return None
        while var_dec.children[0].msg == "VarDec":
            dtype = Type(Kind.ARRAY, elem=dtype, size=_atoi(get_int(var_dec)))
            var_dec = var_dec.children[0]
        symbol = self.symbols.declare(get_id(var_dec))
        if symbol.defined:
            self.checker.report(15 if in_struct else 3, var_dec.line)
            return None
        symbol.defined = True
        symbol.type = dtype
        return symbol

    def _dec(self, dec: Node, dtype: Type | None, in_struct: bool) -> Symbol | None:
        var_dec = dec.children[0]
        initialised = len(dec.children) > 1
        if in_struct and initialised:
            self.checker.report(15, dec.line)
        elif initialised:
            value = self.checker.check_exp(dec.children[2])
            if dtype is not None and not value.is_error() and not types_equal(dtype, value.type):
                self.checker.report(5, dec.line)
        return self._var_dec(var_dec, dtype, in_struct)

    def _def(self, definition: Node, in_struct: bool) -> list[Symbol]:
        dtype = self._specifier(definition.children[0])
        declared = (self._dec(dec, dtype, in_struct) for dec in _chain(definition.children[1], 2))
        return [symbol for symbol in declared if symbol is not None]

    def _def_list(self, def_list: Node | None, in_struct: bool) -> list[Symbol]:
        symbols: list[Symbol] = []
        for definition in _chain(def_list, 1):
            symbols.extend(self._def(definition, in_struct))
        return symbols

    def _param_dec(self, param_dec: Node) -> Symbol | None:
        dtype = self._specifier(param_dec.children[0])
        return self._var_dec(param_dec.children[1], dtype, False)

    def _fun_dec(self, fun_dec: Node, dtype: Type | None) -> None:
        func = self.functions.declare(get_id(fun_dec))
        if func.defined:
            self.checker.report(4, fun_dec.line)
        else:
            func.defined = True
            if dtype is not None:
                func.return_type = dtype
        var_list = fun_dec.children[2]
        if var_list.msg == "RP":
            func.params = []
        else:
            params = (self._param_dec(param) for param in _chain(var_list, 2))
            func.params = [symbol for symbol in params if symbol is not None]

    # ---- statements --------------------------------------------------

    def _comp_st(self, comp_st: Node, rtype: Type | None) -> None:
        self._def_list(comp_st.children[1], False)
        for stmt in _chain(comp_st.children[2], 1):
            self._stmt(stmt, rtype)

    def _check_condition(self, exp: Node) -> None:
        result = self.checker.check_exp(exp)
        kind = result.type.kind if result.type is not None else None
        if not result.is_error() and kind is not Kind.INT:
            self.checker.report(7, exp.line)

    def _stmt(self, stmt: Node, rtype: Type | None) -> None:
        first = stmt.children[0]
        if first.msg == "Exp":
            self.checker.check_exp(first)
        elif first.msg == "CompSt":
            self._comp_st(first, rtype)
        elif first.msg == "RETURN":
            if rtype is None:
                return
            exp = stmt.children[1]
            result = self.checker.check_exp(exp)
            if not result.is_error() and not types_equal(rtype, result.type):
                self.checker.report(8, exp.line)
        elif first.msg == "IF":
            self._check_condition(stmt.children[2])
            self._stmt(stmt.children[4], rtype)
            if len(stmt.children) > 6:
                self._stmt(stmt.children[6], rtype)
        elif first.msg == "WHILE":
            self._check_condition(stmt.children[2])
            self._stmt(stmt.children[4], rtype)


def analyze(root: Node, builtins: bool = True) -> list[Diagnostic]:
    """Check a ``Program`` tree and return the semantic errors found."""
    return SemanticAnalyzer(builtins).analyze(root)