"""Translation of statements, definitions and whole programs into intermediate code."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import replace

from cmmc.ir import (
    UNDEF,
    Dec,
    FunctionHeader,
    Goto,
    Instruction,
    Label,
    Operand,
    OperandKind,
    Param,
    Return,
    State,
    format_program,
    size_of,
)
from cmmc.ir_expr import ExpressionTranslator, TranslationError
from cmmc.semantic import SemanticAnalyzer
from cmmc.tree import Node, get_id, is_empty
from cmmc.types import Kind


def _items(node: Node | None, rest_index: int) -> Iterator[Node]:
    """Yield the items of a right-recursive list such as ``X -> Item , X``."""
    while not is_empty(node):
        yield node.children[0]
        node = node.children[rest_index] if len(node.children) > rest_index else None


class Translator(ExpressionTranslator):
    """Turns a semantically checked ``Program`` tree into instructions."""

    def _last_label(self) -> Operand | None:
        if self.instructions and isinstance(self.instructions[-1], Label):
            return self.instructions[-1].label
        return None

    def translate_stmt(self, node: Node) -> None:
        """Translate one ``Stmt`` node."""
        first = node.children[0]
        if first.msg == "Exp":
            self.translate_exp(first, UNDEF)
        elif first.msg == "CompSt":
            self.translate_comp_st(first)
        elif first.msg == "RETURN":
            value = self.translate_exp(node.children[1], self.new_temp())
            self.emit(Return(value))
        elif first.msg == "IF":
            self._if(node)
        elif first.msg == "WHILE":
            self._while(node)

    def _if(self, node: Node) -> None:
        condition, body = node.children[2], node.children[4]
        label_true, label_false = self.new_label(), self.new_label()
        if len(node.children) <= 5:
            self.translate_cond(condition, label_true, label_false)
            self.emit(Label(label_true))
            self.translate_stmt(body)
            self.emit(Label(label_false))
            return
        label_exit = self.new_label()
        self.translate_cond(condition, label_true, label_false)
        self.emit(Label(label_true))
        self.translate_stmt(body)
        goto_exit = self.emit(Goto(label_exit))
        self.emit(Label(label_false))
        self.translate_stmt(node.children[6])
        trailing = self._last_label()
        if trailing is not None:
            goto_exit.label = trailing
        else:
            self.emit(Label(label_exit))

    def _while(self, node: Node) -> None:
        condition, body = node.children[2], node.children[4]
        loop = self._last_label()
        if loop is None:
            loop = self.new_label()
            self.emit(Label(loop))
        label_true, label_false = self.new_label(), self.new_label()
        self.translate_cond(condition, label_true, label_false)
        self.emit(Label(label_true))
        self.translate_stmt(body)
        self.emit(Goto(loop))
        self.emit(Label(label_false))

    def translate_var_dec(self, node: Node, is_param: bool) -> Operand:
        """Allocate the variable of a ``VarDec``; parameters get ``PARAM``, aggregates ``DEC``."""
        while node.children[0].msg == "VarDec":
            node = node.children[0]
        name = get_id(node)
        operand = self.var_for(name)
        symbol = self.symbols.lookup(name)
        kind = symbol.type.kind if symbol is not None and symbol.type is not None else None
        if is_param:
            if kind is Kind.ARRAY:
                raise TranslationError("Cannot translate: Parameters of array type.")
            if kind is Kind.STRUCT:
                operand = replace(operand, state=State.ADDR)
            self.emit(Param(operand))
            self.params.add(int(operand.value))
        elif kind is not None and kind not in (Kind.INT, Kind.FLOAT):
            self.emit(Dec(operand, size_of(symbol.type)))
        return operand

    def _dec(self, dec: Node) -> None:
        var_dec = dec.children[0]
        initialised = len(dec.children) > 1
        symbol = self.symbols.lookup(get_id(var_dec))
        kind = symbol.type.kind if symbol is not None and symbol.type is not None else None
        if initialised or kind not in (Kind.INT, Kind.FLOAT):
            target = self.translate_var_dec(var_dec, False)
            if initialised:
                self.translate_exp(dec.children[2], target)

    def translate_comp_st(self, node: Node) -> None:
        """Translate ``CompSt -> { DefList StmtList }``."""
        def_list, stmt_list = node.children[1], node.children[2]
        for definition in _items(def_list, 1):
            for dec in _items(definition.children[1], 2):
                self._dec(dec)
        for stmt in _items(stmt_list, 1):
            self.translate_stmt(stmt)

    def _fun_dec(self, fun_dec: Node) -> None:
        self.emit(FunctionHeader(Operand(OperandKind.FUNC, get_id(fun_dec))))
        if len(fun_dec.children) > 3:
            for param_dec in _items(fun_dec.children[2], 2):
                self.translate_var_dec(param_dec.children[1], True)

    def translate(self, root: Node) -> list[Instruction]:
        """Translate every function of a ``Program`` tree and return the instructions."""
        ext_def_list = root.children[0] if root.children else None
        for ext_def in _items(ext_def_list, 1):
            if len(ext_def.children) > 2 and ext_def.children[1].msg == "FunDec":
                self._fun_dec(ext_def.children[1])
                self.translate_comp_st(ext_def.children[2])
        return self.instructions


def compile_tree(root: Node) -> str:
    """Check a ``Program`` tree and return its intermediate code as text.

    Raises ValueError listing the semantic errors when the program has any,
    and TranslationError for constructs the code cannot express.
    """
    analyzer = SemanticAnalyzer(builtins=True)
    diagnostics = analyzer.analyze(root)
    if diagnostics:
        raise ValueError("\n".join(str(diagnostic) for diagnostic in diagnostics))
    return format_program(Translator(analyzer).translate(root))