# cmmc

`cmmc` is the middle part of a compiler for C--, a small C-like teaching
language with `int` and `float` values, arrays, structures and functions. It
works on a syntax tree that has already been built and does two jobs:

* **Semantic analysis.** It checks definitions, statements and expressions and
  reports numbered diagnostics such as "Variable used before definition."
  (type 1) or "Function arguments mismatch." (type 9), each with its line.
* **Intermediate code generation.** For a program that passes the checks it
  produces three-address code: `FUNCTION`, `PARAM`, `DEC`, `LABEL`, `GOTO`,
  `IF x relop y GOTO z`, `ARG`, `CALL`, `RETURN`, `READ` and `WRITE`
  instructions, with the built-ins `int read()` and `int write(int)`.

The package has no dependencies outside the standard library.

## The syntax tree

Trees are built from `cmmc.tree.Node` objects, most simply with
`cmmc.tree.node(msg, line, *children)`; `Node.add(*children)` appends more.
Inner nodes carry the name of their grammar symbol (`Program`, `ExtDefList`,
`ExtDef`, `Specifier`, `StructSpecifier`, `OptTag`, `Tag`, `FunDec`, `VarList`,
`ParamDec`, `CompSt`, `DefList`, `Def`, `DecList`, `Dec`, `VarDec`,
`StmtList`, `Stmt`, `Exp`, `Args`). Leaves carry the token, with its value
after a colon where the token has one:

```
ID: count
INT: 42
FLOAT: 1.5
TYPE: int
RELOP: <=
```

An empty production is a node whose message is `EMPTY`; `cmmc.tree.is_empty`
tests for it. `get_id` returns the identifier of the leftmost leaf below a node
and `get_int` the size text of `VarDec -> VarDec [ INT ]`.

## Checking a program

```python
from cmmc.semantic import analyze

diagnostics = analyze(root)            # builtins=True by default
for diagnostic in diagnostics:
    print(diagnostic)
```

`analyze` returns a list of `cmmc.types.Diagnostic`, in the order the errors
were found; an empty list means the program is correct. The string form of a
diagnostic is

```
Error type 1 at Line 4:  Variable used before definition.
```

and `cmmc.types.error_message(code)` gives the text for codes 1 to 17.

`cmmc.semantic.SemanticAnalyzer(builtins)` does the same in steps:
`collect(root)` enters every variable, structure and function name into its
`symbols` and `functions` tables (`cmmc.tables.Table`, kept in name order), and
`analyze(root)` runs the checks and returns the diagnostics, which also stay
available as the `diagnostics` attribute. All names share one table, so a name
defined twice anywhere in the program is reported as a redefinition.

`cmmc.tables.dump_tables(analyzer.symbols, analyzer.functions)` renders the
filled tables as indented text, which helps when following what the checker
has inferred. Types are compared structurally with `cmmc.types.types_equal`;
array sizes are not compared.

## Generating intermediate code

```python
from cmmc.ir_translate import compile_tree

print(compile_tree(root), end="")
```

`compile_tree` checks the program first and raises `ValueError`, whose message
lists the diagnostics, if there are any. For the program

```c
int main() {
    int n;
    n = read();
    if (n > 0) write(n);
    return 0;
}
```

it returns

```
FUNCTION main :
READ v1
IF v1 > #0 GOTO label1
GOTO label2
LABEL label1 :
WRITE v1
LABEL label2 :
RETURN #0
```

For finer control, build a `cmmc.ir_translate.Translator` from an analyzer that
has already run, call `translate(root)` to get the list of instructions, and
render them with `cmmc.ir.format_program`. The instructions are the classes in
`cmmc.ir` (`Label`, `FunctionHeader`, `Assign`, `Call`, `Goto`, `CondGoto`,
`Return`, `Dec`, `Arg`, `Param`, `Read`, `Write`), and `cmmc.ir.size_of` gives
the size of a type at 4 bytes per `int` or `float`.

Multi-dimensional arrays and array-typed parameters cannot be expressed and
raise `cmmc.ir_expr.TranslationError`. Global variable definitions are checked
but produce no code.

## What the package does not do

There is no lexer or parser: the syntax tree has to be built by the caller.
There is no command-line program either; the package is used from Python.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.