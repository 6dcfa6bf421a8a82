"""Name-ordered symbol and function tables and their debug dump."""

from __future__ import annotations

from bisect import bisect_left, insort
from collections.abc import Callable, Iterable, Iterator
from typing import Generic, Protocol, TypeVar

from cmmc.types import Function, Kind, Symbol, Type


class _Named(Protocol):
    name: str


T = TypeVar("T", bound=_Named)


class Table(Generic[T]):
    """Entries kept unique and ordered by name."""

    def __init__(self, factory: Callable[[str], T]):
        self._factory = factory
        self._entries: dict[str, T] = {}
        self._names: list[str] = []

    def declare(self, name: str) -> T:
        """Return the entry for ``name``, creating it when absent."""
        existing = self._entries.get(name)
        if existing is not None:
            return existing
        return self.add(self._factory(name))

    def add(self, entry: T) -> T:
        """Insert an entry unless its name is taken; return the stored entry."""
        existing = self._entries.get(entry.name)
        if existing is not None:
            return existing
        self._entries[entry.name] = entry
        insort(self._names, entry.name)
        return entry

    def lookup(self, name: str) -> T | None:
        return self._entries.get(name)

    def index_of(self, name: str) -> int:
        """Position of ``name`` in name order; KeyError if absent."""
        i = bisect_left(self._names, name)
        if i < len(self._names) and self._names[i] == name:
            return i
        raise KeyError(name)

    def names(self) -> list[str]:
        return list(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[T]:
        return (self._entries[name] for name in self._names)


def _line(level: int, msg: str) -> str:
    return "\t" * level + msg + "\n"


def format_type(typ: Type | None, level: int) -> str:
    """Render a type as indented debug text."""
    if typ is None:
        return ""
    if typ.kind is Kind.INT:
        return _line(level, "INT")
    if typ.kind is Kind.FLOAT:
        return _line(level, "FLOAT")
    if typ.kind is Kind.STRUCT:
        body = format_symbol(typ.struct, level + 1) if typ.struct is not None else ""
        return _line(level, "STRUCT") + body
    if typ.kind is Kind.ARRAY:
        return (
            _line(level, "ARRAY")
            + _line(level, f"size = {typ.size}")
            + _line(level, "Type:")
            + format_type(typ.elem, level + 1)
        )
    return _line(level, "STRUCT_TYPE") + _line(level, "Params:") + _format_chain(typ.members, level + 1)


def _format_chain(symbols: list[Symbol], level: int) -> str:
    parts = []
    for position, symbol in enumerate(symbols):
        following = symbols[position + 1] if position + 1 < len(symbols) else None
        depth = level + position
        parts.append(_line(depth, "SymbNode:"))
        parts.append(_line(depth, f"name = {symbol.name}"))
        parts.append(_line(depth, f"def = {int(symbol.defined)}"))
        parts.append(_line(depth, "Type:"))
        parts.append(format_type(symbol.type, depth + 1))
        parts.append(_line(depth, f"Next: {following.name}" if following else "Next: null\n"))
    return "".join(parts)


def format_symbol(symbol: Symbol, level: int) -> str:
    """Render one symbol as indented debug text."""
    return _format_chain([symbol], level)


def format_function(func: Function, level: int) -> str:
    """Render one function entry as indented debug text."""
    return (
        _line(level, f"name = {func.name}")
        + _line(level, f"def = {int(func.defined)}")
        + _line(level, "Type:")
        + format_type(func.return_type, level + 1)
        + _line(level, "Params:")
        + _format_chain(func.params, level + 1)
        + "\n"
    )


def dump_tables(symbols: Iterable[Symbol], functions: Iterable[Function]) -> str:
    """Render both tables the way the checker's debug output shows them."""
    parts = ["---------- SymbTable: ----------\n"]
    parts.extend(format_symbol(symbol, 0) for symbol in symbols)
    parts.append("---------- FuncTable: ----------\n")
    parts.extend(format_function(func, 0) for func in functions)
    parts.append("\n")
    return "".join(parts)