import pytest

from cmmc.semantic_expr import ExpressionChecker
from cmmc.tables import Table
from cmmc.tree import node
from cmmc.types import Category, Diagnostic, Function, Kind, Symbol, Type


def id_exp(name, line=1):
    return node("Exp", line, node(f"ID: {name}", line))


def int_exp(value, line=1):
    return node("Exp", line, node(f"INT: {value}", line))


def float_exp(value, line=1):
    return node("Exp", line, node(f"FLOAT: {value}", line))


def binop(left, op, right, line=1):
    return node("Exp", line, left, node(op, line), right)


def call(name, *args, line=1):
    id_tok = node(f"ID: {name}", line)
    if not args:
        return node("Exp", line, id_tok, node("LP", line), node("RP", line))
    args_node = node("Args", line, args[-1])
    for arg in reversed(args[:-1]):
        args_node = node("Args", line, arg, node("COMMA", line), args_node)
    return node("Exp", line, id_tok, node("LP", line), args_node, node("RP", line))


def define(table, name, typ):
    symbol = table.declare(name)
    symbol.type = typ
    symbol.defined = True
    return symbol


@pytest.fixture
def checker():
    symbols = Table(Symbol)
    functions = Table(Function)
    define(symbols, "i", Type(Kind.INT))
    define(symbols, "f", Type(Kind.FLOAT))
    define(symbols, "arr", Type(Kind.ARRAY, elem=Type(Kind.INT), size=10))
    point = define(
        symbols,
        "Point",
        Type(Kind.STRUCT_TYPE, members=[Symbol("x", Type(Kind.INT), True), Symbol("y", Type(Kind.FLOAT), True)]),
    )
    define(symbols, "p", Type(Kind.STRUCT, struct=point))
    add = functions.declare("add")
    add.defined = True
    add.return_type = Type(Kind.INT)
    add.params = [Symbol("a", Type(Kind.INT), True), Symbol("b", Type(Kind.INT), True)]
    nop = functions.declare("nop")
    nop.defined = True
    nop.return_type = Type(Kind.FLOAT)
    return ExpressionChecker(symbols, functions)


def codes(checker):
    return [d.code for d in checker.diagnostics]


def test_literals_are_rvalues(checker):
    assert checker.check_exp(int_exp(3)).category is Category.RVALUE
    assert checker.check_exp(int_exp(3)).type.kind is Kind.INT
    assert checker.check_exp(float_exp(1.5)).type.kind is Kind.FLOAT
    assert checker.diagnostics == []


def test_variable_is_lvalue(checker):
    result = checker.check_exp(id_exp("f"))
    assert result.category is Category.LVALUE
    assert result.type.kind is Kind.FLOAT


def test_undeclared_variable(checker):
    result = checker.check_exp(id_exp("nowhere", line=4))
    assert result.is_error()
    assert checker.diagnostics == [Diagnostic(1, 4)]


def test_error_propagates_without_new_reports(checker):
    result = checker.check_exp(binop(id_exp("nowhere"), "PLUS", int_exp(1)))
    assert result.is_error()
    assert codes(checker) == [1]


def test_parentheses_pass_through(checker):
    inner = id_exp("i")
    exp = node("Exp", 1, node("LP", 1), inner, node("RP", 1))
    assert checker.check_exp(exp).category is Category.LVALUE


def test_assignment(checker):
    ok = checker.check_exp(binop(id_exp("i"), "ASSIGNOP", int_exp(2)))
    assert ok.category is Category.RVALUE and ok.type.kind is Kind.INT
    assert checker.diagnostics == []


def test_assignment_to_rvalue(checker):
    result = checker.check_exp(binop(int_exp(1, line=2), "ASSIGNOP", int_exp(2)))
    assert result.is_error()
    assert checker.diagnostics == [Diagnostic(6, 2)]


def test_assignment_type_mismatch(checker):
    checker.check_exp(binop(id_exp("i", line=5), "ASSIGNOP", float_exp(1.0)))
    assert checker.diagnostics == [Diagnostic(5, 5)]


def test_arithmetic(checker):
    ok = checker.check_exp(binop(id_exp("f"), "STAR", float_exp(2.0)))
    assert ok.category is Category.RVALUE and ok.type.kind is Kind.FLOAT
    bad = checker.check_exp(binop(id_exp("i"), "PLUS", float_exp(2.0)))
    assert bad.is_error()
    assert codes(checker) == [7]


def test_comparison_yields_int(checker):
    result = checker.check_exp(binop(id_exp("f"), "RELOP: <", float_exp(0.5)))
    assert result.type.kind is Kind.INT and result.category is Category.RVALUE
    checker.check_exp(binop(id_exp("f"), "RELOP: ==", int_exp(1)))
    assert codes(checker) == [7]


def test_logic_requires_int(checker):
    ok = checker.check_exp(binop(id_exp("i"), "AND", int_exp(1)))
    assert ok.type.kind is Kind.INT
    checker.check_exp(binop(id_exp("f"), "OR", int_exp(1)))
    assert codes(checker) == [7]


def test_unary_operators(checker):
    neg = checker.check_exp(node("Exp", 1, node("MINUS", 1), id_exp("f")))
    assert neg.category is Category.RVALUE and neg.type.kind is Kind.FLOAT
    bad = checker.check_exp(node("Exp", 1, node("NOT", 1), id_exp("f", line=3)))
    assert bad.is_error()
    assert checker.diagnostics == [Diagnostic(7, 3)]


def test_array_index(checker):
    lb, rb = node("LB", 1), node("RB", 1)
    ok = checker.check_exp(node("Exp", 1, id_exp("arr"), lb, int_exp(0), rb))
    assert ok.category is Category.LVALUE and ok.type.kind is Kind.INT
    checker.check_exp(node("Exp", 1, id_exp("arr"), lb, float_exp(1.0), rb))
    checker.check_exp(node("Exp", 1, id_exp("i"), lb, int_exp(0), rb))
    assert codes(checker) == [12, 10]


def test_struct_fields(checker):
    dot = node("DOT", 1)
    ok = checker.check_exp(node("Exp", 1, id_exp("p"), dot, node("ID: y", 1)))
    assert ok.category is Category.LVALUE and ok.type.kind is Kind.FLOAT
    checker.check_exp(node("Exp", 1, id_exp("p"), dot, node("ID: z", 1)))
    checker.check_exp(node("Exp", 1, id_exp("i"), dot, node("ID: x", 1)))
    assert codes(checker) == [14, 13]


def test_call_matching_arguments(checker):
    result = checker.check_exp(call("add", int_exp(1), id_exp("i")))
    assert result.category is Category.RVALUE and result.type.kind is Kind.INT
    no_args = checker.check_exp(call("nop"))
    assert no_args.type.kind is Kind.FLOAT
    assert checker.diagnostics == []


def test_call_argument_mismatch(checker):
    checker.check_exp(call("add", int_exp(1)))
    checker.check_exp(call("add", int_exp(1), float_exp(2.0)))
    checker.check_exp(call("add"))
    checker.check_exp(call("nop", int_exp(1)))
    assert codes(checker) == [9, 9, 9, 9]


def test_call_undefined_and_non_function(checker):
    checker.check_exp(call("missing", line=7))
    checker.check_exp(call("i", line=8))
    assert checker.diagnostics == [Diagnostic(2, 7), Diagnostic(11, 8)]


def test_check_args_in_order(checker):
    args = node("Args", 1, id_exp("f"), node("COMMA", 1), node("Args", 1, int_exp(1)))
    results = checker.check_args(args)
    assert [r.type.kind for r in results] == [Kind.FLOAT, Kind.INT]
    assert [r.category for r in results] == [Category.LVALUE, Category.RVALUE]


def test_report_records_diagnostic(checker):
    diagnostic = checker.report(7, 3)
    assert checker.diagnostics == [diagnostic]
    assert str(diagnostic) == "Error type 7 at Line 3:  Operand or operator type mismatch."


def test_unknown_operator_raises(checker):
    with pytest.raises(ValueError):
        checker.check_exp(binop(int_exp(1), "COMMA", int_exp(2)))