"""
Core types for the jswalker traversal engine.

This module provides the node alias, the callback contexts handed to enter and
leave callbacks, the directive values a callback may return, and the result
types produced by the parser collaborator.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Union


# Type aliases for clarity
Node = Dict[str, Any]  # ESTree-shaped dict with a string "type" entry
Lang = Literal["js", "jsx", "ts", "tsx"]
SourceType = Literal["module", "script"]
FieldKey = Optional[str]
FieldIndex = Optional[int]


@dataclass(frozen=True)
class Skip:
    """Directive: do not visit the children of the current node."""


@dataclass(frozen=True)
class Remove:
    """Directive: remove the current node from its parent."""


@dataclass(frozen=True, eq=False)
class Replace:
    """Directive: put ``node`` in place of the current node."""
    node: Node


SKIP = Skip()
REMOVE = Remove()

Directive = Union[Skip, Remove, Replace]


class WalkerCallbackContext:
    """
    Context passed to a leave callback.

    Attributes:
        key: The field of the parent that holds the current node, e.g. ``"declarations"``
            for a ``VariableDeclarator`` inside a ``VariableDeclaration``.
            ``None`` for the root node.
        index: Position of the current node within ``parent[key]`` when that field is a
            list, ``None`` when the field holds a single node or for the root.
        ast: The root node the traversal was started from.

    A fresh context is created for every callback invocation; the directive it
    collects belongs to that invocation only.
    """

    def __init__(self, key: FieldKey, index: FieldIndex, ast: Node):
        self.key = key
        self.index = index
        self.ast = ast
        self._remove = False
        self._replacement: Optional[Node] = None

    def remove(self) -> None:
        """
        Remove the current node from the AST.

        Takes precedence over any ``replace`` issued in the same callback.
        """
        self._remove = True

    def replace(self, node: Node) -> None:
        """
        Replace the current node with another node.

        Calling this several times keeps only the last node. When the current node
        was removed during its enter phase, a replace issued on leave puts the new
        node back into the slot the old one occupied.
        """
        self._replacement = node

    def _accept(self, directive: Optional[Directive]) -> None:
        """Fold a directive returned by the callback into this context."""
        if isinstance(directive, Remove):
            self.remove()
        elif isinstance(directive, Replace):
            self.replace(directive.node)

    @property
    def removed(self) -> bool:
        return self._remove

    @property
    def replacement(self) -> Optional[Node]:
        return self._replacement


class WalkerEnterContext(WalkerCallbackContext):
    """Context passed to an enter callback; adds ``skip``."""

    def __init__(self, key: FieldKey, index: FieldIndex, ast: Node):
        super().__init__(key, index, ast)
        self._skip = False

    def skip(self) -> None:
        """
        Skip traversing the child nodes of the current node.

        The leave callback still fires for the current node. Combine with
        ``replace`` to swap a node in without walking the new node's children.
        """
        self._skip = True

    def _accept(self, directive: Optional[Directive]) -> None:
        if isinstance(directive, Skip):
            self.skip()
        else:
            super()._accept(directive)

    @property
    def skipped(self) -> bool:
        return self._skip


WalkerEnter = Callable[[Node, Optional[Node], WalkerEnterContext], Optional[Directive]]
WalkerLeave = Callable[[Node, Optional[Node], WalkerCallbackContext], Optional[Directive]]


@dataclass(frozen=True)
class ParseDiagnostic:
    """A syntax problem reported by the parser."""
    message: str
    start: int
    end: int
    severity: Literal["error", "warning"] = "error"


@dataclass
class ParseResult:
    """
    Result of parsing a source file.

    Attributes:
        program: The ESTree ``Program`` node
        comments: ``Line`` and ``Block`` comment records with byte offsets
        errors: Syntax diagnostics; an empty list means the source parsed cleanly
        lang: The language variant the source was parsed as
        source_type: ``"module"`` or ``"script"``
        source: The original source text
    """
    program: Node
    comments: List[Node] = field(default_factory=list)
    errors: List[ParseDiagnostic] = field(default_factory=list)
    lang: Lang = "js"
    source_type: SourceType = "module"
    source: str = ""

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
