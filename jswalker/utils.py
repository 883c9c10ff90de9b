"""
Small helpers shared by the walker and the scope tracker.

Node classification lives here so every component agrees on what counts as a
child node and what is plain data.
"""

from typing import Any, Iterator, Tuple

from .types import Node


SCOPE_KEY_SEPARATOR = "-"

ScopePath = Tuple[int, ...]


def is_node(value: Any) -> bool:
    """Return True if value is a traversable AST node (a dict with a string ``type``)."""
    return isinstance(value, dict) and isinstance(value.get("type"), str)


def iter_fields(node: Node) -> Iterator[Tuple[str, Any]]:
    """
    Yield the ``(key, value)`` pairs of a node in insertion order.

    Keys are snapshotted up front, so callbacks may add or delete keys on the
    node while it is being iterated. Deleted keys are skipped.
    """
    for key in list(node.keys()):
        if key not in node:
            continue
        yield key, node[key]


def format_scope_key(path: ScopePath) -> str:
    """Render an integer scope path as a key string, e.g. ``(0, 1)`` -> ``"0-1"``."""
    return SCOPE_KEY_SEPARATOR.join(str(part) for part in path)


def parse_scope_key(key: str) -> ScopePath:
    """Parse a scope key string back into its integer path. The root key ``""`` is ``()``."""
    if not key:
        return ()
    return tuple(int(part) for part in key.split(SCOPE_KEY_SEPARATOR))


def is_child_scope(a: str, b: str) -> bool:
    """
    Check whether scope ``a`` is nested under scope ``b``.

    Ancestry is a strict prefix relation on the integer path, so ``"0-1"`` is
    under ``"0"`` but ``"10"`` is not under ``"1"`` and no scope is under itself.

    Args:
        a: The candidate child scope key
        b: The candidate parent scope key

    Returns:
        True if a is a strict descendant of b
    """
    child = parse_scope_key(a)
    parent = parse_scope_key(b)
    return len(child) > len(parent) and child[:len(parent)] == parent
