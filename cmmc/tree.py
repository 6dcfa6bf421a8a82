"""Syntax tree nodes produced by the parser and helpers for reading them."""

from __future__ import annotations

from dataclasses import dataclass, field

EMPTY = "EMPTY"


@dataclass
class Node:
    """A syntax tree node.

    ``msg`` is the grammar symbol (``"Exp"``, ``"VarDec"``) or, for tokens,
    the token with its lexeme (``"ID: name"``, ``"INT: 3"``, ``"TYPE: int"``).
    """

    msg: str
    line: int = 0
    children: list[Node] = field(default_factory=list)

    def add(self, *args: Node) -> Node:
        """Append children in order and return this node."""
        self.children.extend(args)
        return self


def node(msg: str, line: int, *args: Node) -> Node:
    """Build a node with the given children."""
    return Node(msg, line, list(args))


def is_empty(node: Node | None) -> bool:
    """Tell whether a node is missing or is the ``EMPTY`` production."""
    return node is None or node.msg == EMPTY


def get_id(node: Node) -> str:
    """Return the identifier held by the leftmost leaf below ``node``.

    Works on ``ID`` tokens themselves and on ``VarDec``, ``Tag``, ``OptTag``,
    ``FunDec`` and ``Exp`` nodes whose first leaf is an ``ID``.
    """
    while node.children:
        node = node.children[0]
    return node.msg[4:]


def get_int(node: Node) -> str:
    """Return the size text of ``VarDec -> VarDec [ INT ]``."""
    return node.children[2].msg[5:]