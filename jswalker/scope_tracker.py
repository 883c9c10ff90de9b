"""
Scope tracking for ESTree ASTs.

The ScopeTracker follows the walker's enter/leave stream and maintains a stack
of scopes, each a mapping from identifier names to their declarations, so that
"is this name declared here?" can be answered while the walk is in progress.

A new scope is created when entering blocks, function parameters, loop
variables, catch clauses and class expressions. This representation may split
a single JavaScript lexical scope into several internal scopes; it does not
mirror JavaScript scoping 1:1.

Scope keys are hierarchical strings built from sibling ordinals:

- the root scope is ``""``
- the first child scope is ``"0"``, its later siblings ``"1"``, ``"2"``, ...
- the first scope nested under ``"0"`` is ``"0-0"``, then ``"0-1"``, ...

Each segment is the zero-based index of the scope at that depth, in traversal
order. Internally scopes are keyed by the integer path itself.

The tracker can be frozen to run a second pass over the same tree: frozen
trackers ignore declarations but keep following the scope structure, so the
keys of the second pass line up with the first.

Example:
    tracker = ScopeTracker()
    walk(program, scope_tracker=tracker, enter=lambda node, parent, ctx: ...)
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Literal, Optional

from .types import Node
from .utils import ScopePath, format_scope_key, is_child_scope, is_node, parse_scope_key
from .walker import WalkerSync

if TYPE_CHECKING:
    from .config import WalkerConfig


DeclarationType = Literal["FunctionParam", "Function", "Variable", "Identifier", "Import", "CatchParam"]

# Node kinds that open at least one scope on enter and close it on leave
SCOPE_NODE_TYPES = frozenset({
    "Program", "BlockStatement", "StaticBlock",
    "FunctionDeclaration", "FunctionExpression", "ArrowFunctionExpression",
    "ClassExpression", "CatchClause",
    "ForStatement", "ForOfStatement", "ForInStatement",
})

_FUNCTION_TYPES = ("FunctionDeclaration", "FunctionExpression", "ArrowFunctionExpression")


@dataclass(frozen=True, eq=False)
class ScopeTrackerNode:
    """
    A declaration recorded by the ScopeTracker.

    Attributes:
        type: Kind of binding
        node: The declaring node (identifier, function or import specifier)
        scope: Key of the scope the declaration was made in
        owner: The enclosing construct whose range is reported by ``start``/``end``
            (the function for parameters, the ``VariableDeclaration`` for variables,
            the ``ImportDeclaration`` for imports, the ``CatchClause`` for catch
            parameters). None for ``Function`` and ``Identifier`` declarations.
    """
    type: DeclarationType
    node: Node
    scope: str
    owner: Optional[Node] = None

    def _position_node(self) -> Node:
        if self.type == "FunctionParam":
            return self.owner
        elif self.type == "Function":
            return self.node
        elif self.type == "Variable":
            return self.owner
        elif self.type == "Identifier":
            return self.node
        elif self.type == "Import":
            return self.owner
        elif self.type == "CatchParam":
            return self.owner
        raise ValueError(f"Unknown declaration type: {self.type}")

    @property
    def start(self) -> int:
        """
        Start of the construct relevant for code transformation.

        For a variable this is the start of the whole ``VariableDeclaration``,
        not of the identifier.
        """
        return self._position_node().get("start", 0)

    @property
    def end(self) -> int:
        """End of the construct relevant for code transformation."""
        return self._position_node().get("end", 0)

    @property
    def fn_node(self) -> Optional[Node]:
        return self.owner if self.type == "FunctionParam" else None

    @property
    def variable_node(self) -> Optional[Node]:
        return self.owner if self.type == "Variable" else None

    @property
    def import_node(self) -> Optional[Node]:
        return self.owner if self.type == "Import" else None

    @property
    def catch_node(self) -> Optional[Node]:
        return self.owner if self.type == "CatchParam" else None

    def is_under_scope(self, scope: str) -> bool:
        """Check if the declaration was made in a scope nested under ``scope``."""
        return is_child_scope(self.scope, scope)


def _name_of(node: Optional[Node]) -> Optional[str]:
    if is_node(node):
        name = node.get("name")
        if isinstance(name, str) and name:
            return name
    return None


class ScopeTracker:
    """Tracks scopes and identifier declarations during a walk."""

    def __init__(self, preserve_exited_scopes: bool = False):
        """
        Args:
            preserve_exited_scopes: Keep the declarations of scopes after leaving
                them. Needed for a pre-pass that collects every declaration before
                a second, frozen walk.
        """
        self.preserve_exited_scopes = preserve_exited_scopes
        self._scope_index_stack: List[int] = []
        self._scope_path: ScopePath = ()
        self._scopes: Dict[ScopePath, Dict[str, ScopeTrackerNode]] = {}
        self._frozen = False

    @classmethod
    def from_config(cls, config: "WalkerConfig") -> "ScopeTracker":
        """Create a tracker using the defaults of a WalkerConfig."""
        return cls(preserve_exited_scopes=config.preserve_exited_scopes)

    # Scope stack

    def _update_scope_path(self) -> None:
        self._scope_path = tuple(self._scope_index_stack[:-1])

    def _push_scope(self) -> None:
        self._scope_index_stack.append(0)
        self._update_scope_path()

    def _pop_scope(self) -> None:
        if not self._scope_index_stack:
            return
        self._scope_index_stack.pop()
        if self._scope_index_stack:
            self._scope_index_stack[-1] += 1

        # the path still points at the scope being exited
        if not self.preserve_exited_scopes:
            self._scopes.pop(self._scope_path, None)

        self._update_scope_path()

    # Declarations

    def _declare_identifier(self, name: str, data: ScopeTrackerNode) -> None:
        if self._frozen:
            return
        self._scopes.setdefault(self._scope_path, {})[name] = data

    def _declare_function_parameter(self, param: Node, fn: Node) -> None:
        if self._frozen:
            return
        key = self.get_current_scope()
        for identifier in get_pattern_identifiers(param):
            self._declare_identifier(identifier["name"], ScopeTrackerNode("FunctionParam", identifier, key, fn))

    def _declare_pattern(self, pattern: Optional[Node], parent: Node) -> None:
        if self._frozen:
            return
        key = self.get_current_scope()
        parent_type = parent.get("type")
        for identifier in get_pattern_identifiers(pattern):
            if parent_type == "VariableDeclaration":
                data = ScopeTrackerNode("Variable", identifier, key, parent)
            elif parent_type == "CatchClause":
                data = ScopeTrackerNode("CatchParam", identifier, key, parent)
            else:
                data = ScopeTrackerNode("FunctionParam", identifier, key, parent)
            self._declare_identifier(identifier["name"], data)

    def _declare_params(self, fn: Node) -> None:
        for param in fn.get("params") or []:
            if is_node(param):
                self._declare_function_parameter(param, fn)

    def _declare_declarators(self, declaration: Node) -> None:
        for declarator in declaration.get("declarations") or []:
            if is_node(declarator):
                self._declare_pattern(declarator.get("id"), declaration)

    # Walker hooks

    def is_scope_node(self, node: Node) -> bool:
        """Check if entering node opens a scope."""
        return node.get("type") in SCOPE_NODE_TYPES

    def process_node_enter(self, node: Node) -> None:
        """Update scopes and declarations when the walker enters node."""
        node_type = node.get("type")

        if node_type in ("Program", "BlockStatement", "StaticBlock"):
            self._push_scope()

        elif node_type == "FunctionDeclaration":
            # anonymous for `export default function () {}`
            name = _name_of(node.get("id"))
            if name:
                self._declare_identifier(name, ScopeTrackerNode("Function", node, self.get_current_scope()))
            self._push_scope()
            self._declare_params(node)

        elif node_type == "FunctionExpression":
            # the name of a function expression is only visible inside the function,
            # so it gets a scope of its own around the parameter scope
            self._push_scope()
            name = _name_of(node.get("id"))
            if name:
                self._declare_identifier(name, ScopeTrackerNode("Function", node, self.get_current_scope()))
            self._push_scope()
            self._declare_params(node)

        elif node_type == "ArrowFunctionExpression":
            self._push_scope()
            self._declare_params(node)

        elif node_type == "VariableDeclaration":
            self._declare_declarators(node)

        elif node_type == "ClassDeclaration":
            # anonymous for `export default class {}`
            class_id = node.get("id")
            name = _name_of(class_id)
            if name:
                self._declare_identifier(name, ScopeTrackerNode("Identifier", class_id, self.get_current_scope()))

        elif node_type == "ClassExpression":
            # const A = class B {}: B is only visible inside the class body
            self._push_scope()
            class_id = node.get("id")
            name = _name_of(class_id)
            if name:
                self._declare_identifier(name, ScopeTrackerNode("Identifier", class_id, self.get_current_scope()))

        elif node_type == "ImportDeclaration":
            key = self.get_current_scope()
            for specifier in node.get("specifiers") or []:
                if not is_node(specifier):
                    continue
                name = _name_of(specifier.get("local"))
                if name:
                    self._declare_identifier(name, ScopeTrackerNode("Import", specifier, key, node))

        elif node_type == "CatchClause":
            self._push_scope()
            if is_node(node.get("param")):
                self._declare_pattern(node["param"], node)

        elif node_type in ("ForStatement", "ForOfStatement", "ForInStatement"):
            # for (let i = 0; ...) {}: i is only visible within the loop
            self._push_scope()
            head = node.get("init") if node_type == "ForStatement" else node.get("left")
            if is_node(head) and head.get("type") == "VariableDeclaration":
                self._declare_declarators(head)

    def process_node_leave(self, node: Node) -> None:
        """Close the scopes opened by process_node_enter for node."""
        node_type = node.get("type")
        if node_type == "FunctionExpression":
            self._pop_scope()
            self._pop_scope()
        elif node_type in SCOPE_NODE_TYPES:
            self._pop_scope()

    # Queries

    def is_declared(self, name: str) -> bool:
        """
        Check if an identifier is declared in the current scope or any parent scope.

        Args:
            name: The identifier name to check
        """
        return self.get_declaration(name) is not None

    def get_declaration(self, name: str) -> Optional[ScopeTrackerNode]:
        """
        Get the nearest visible declaration of an identifier.

        Args:
            name: The identifier name to look up

        Returns:
            The declaration, or None if the name is not declared
        """
        path = self._scope_path
        for depth in range(len(path), -1, -1):
            scope = self._scopes.get(path[:depth])
            if scope is not None and name in scope:
                return scope[name]
        return None

    def get_current_scope(self) -> str:
        """Get the current scope key."""
        return format_scope_key(self._scope_path)

    def is_current_scope_under(self, scope: str) -> bool:
        """
        Check if the current scope is nested under a specific scope.

        With the current scope ``"0-1"``, ``is_current_scope_under("0")`` is True
        and ``is_current_scope_under("0-1")`` is False.
        """
        return is_child_scope(self.get_current_scope(), scope)

    def get_scope_declarations(self, scope: str) -> Dict[str, ScopeTrackerNode]:
        """Get a copy of the declarations made directly in a scope."""
        return dict(self._scopes.get(parse_scope_key(scope), {}))

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """
        Stop recording declarations and rewind to the root scope.

        The collected declarations are kept, which is useful for a second pass
        over the same tree. Only scopes that were preserved on exit survive.
        """
        self._frozen = True
        self._scope_index_stack = []
        self._update_scope_path()


def get_pattern_identifiers(pattern: Optional[Node]) -> List[Node]:
    """Collect the Identifier nodes bound by a (possibly destructuring) pattern."""
    identifiers: List[Node] = []

    def collect(pattern: Optional[Node]) -> None:
        if not is_node(pattern):
            return
        pattern_type = pattern["type"]
        if pattern_type == "Identifier":
            if _name_of(pattern):
                identifiers.append(pattern)
        elif pattern_type == "AssignmentPattern":
            collect(pattern.get("left"))
        elif pattern_type == "RestElement":
            collect(pattern.get("argument"))
        elif pattern_type == "ArrayPattern":
            for element in pattern.get("elements") or []:
                if is_node(element):
                    collect(element.get("argument") if element["type"] == "RestElement" else element)
        elif pattern_type == "ObjectPattern":
            for prop in pattern.get("properties") or []:
                if is_node(prop):
                    collect(prop.get("argument") if prop["type"] == "RestElement" else prop.get("value"))

    collect(pattern)
    return identifiers


def _contains(identifiers: List[Node], node: Node) -> bool:
    return any(identifier is node for identifier in identifiers)


def is_binding_identifier(node: Node, parent: Optional[Node]) -> bool:
    """
    Check if an Identifier introduces a name rather than referencing one.

    The decision is purely structural: it looks at the kind of the parent and
    the field holding the identifier, never at any scope information.

    Args:
        node: The node to check
        parent: Its parent node

    Returns:
        True for declaration sites (function and class names, parameters,
        declarator patterns, catch parameters, non-shorthand property keys,
        member expression properties), False otherwise
    """
    if parent is None or node.get("type") != "Identifier":
        return False

    parent_type = parent.get("type")

    if parent_type in _FUNCTION_TYPES:
        # function name or parameters
        if parent_type != "ArrowFunctionExpression" and parent.get("id") is node:
            return True
        for param in parent.get("params") or []:
            if _contains(get_pattern_identifiers(param), node):
                return True
        return False

    if parent_type in ("ClassDeclaration", "ClassExpression"):
        return parent.get("id") is node

    if parent_type in ("MethodDefinition", "PropertyDefinition"):
        return parent.get("key") is node

    if parent_type == "VariableDeclarator":
        return _contains(get_pattern_identifiers(parent.get("id")), node)

    if parent_type == "CatchClause":
        if not is_node(parent.get("param")):
            return False
        return _contains(get_pattern_identifiers(parent["param"]), node)

    if parent_type == "Property":
        # the key, unless the property is a shorthand
        return parent.get("key") is node and parent.get("value") is not node

    if parent_type == "MemberExpression":
        return parent.get("property") is node

    return False


def get_undeclared_identifiers_in_function(node: Node) -> List[str]:
    """
    Find the names a function reads without declaring them.

    A first walk collects every declaration, including ones made after their
    first use; the tracker is then frozen and a second walk reports identifier
    references that do not resolve.

    Args:
        node: A FunctionDeclaration, FunctionExpression or ArrowFunctionExpression

    Returns:
        Undeclared names in order of first occurrence, without duplicates
    """
    scope_tracker = ScopeTracker(preserve_exited_scopes=True)
    undeclared: Dict[str, None] = {}

    # first pass collects all declarations so they are hoisted
    WalkerSync(scope_tracker=scope_tracker).traverse(node)

    scope_tracker.freeze()

    def enter(child: Node, parent: Optional[Node], ctx) -> None:
        if child.get("type") != "Identifier":
            return
        name = child.get("name")
        if not isinstance(name, str):
            return
        if not is_binding_identifier(child, parent) and not scope_tracker.is_declared(name):
            undeclared[name] = None

    WalkerSync(enter=enter, scope_tracker=scope_tracker).traverse(node)

    return list(undeclared)
