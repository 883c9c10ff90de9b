"""
Lowering of tree-sitter JavaScript/TypeScript syntax trees to ESTree dicts.

Tree-sitter produces a concrete syntax tree whose node kinds follow the grammar
(``lexical_declaration``, ``member_expression``, ...). The walker and the scope
tracker work on ESTree-shaped nodes (``VariableDeclaration``, ``MemberExpression``,
...), so the parser lowers every tree into plain dicts:

- every node is a dict with ``type``, ``start`` and ``end`` (byte offsets)
- keys are inserted in source order, so walking a node's fields visits its
  children in the order they appear in the source
- kinds with a dedicated handler below become their ESTree counterpart; all
  other named kinds (mostly TypeScript type syntax) are lowered generically
"""

import re
from typing import Any, List, Optional, Tuple

from .types import Node, ParseDiagnostic, SourceType


COMMENT_TYPES = frozenset({"comment", "html_comment"})

LOGICAL_OPERATORS = frozenset({"&&", "||", "??"})

FUNCTION_EXPRESSION_TYPES = frozenset({"function_expression", "function", "generator_function"})

CLASS_EXPRESSION_TYPES = frozenset({"class"})

# Kinds lowered generically that belong to the TypeScript type level
TS_KINDS = frozenset({
    "interface_declaration", "type_alias_declaration", "enum_declaration", "enum_body",
    "enum_assignment", "module", "internal_module", "ambient_declaration",
    "abstract_method_signature", "method_signature", "property_signature",
    "index_signature", "call_signature", "construct_signature", "type_predicate",
    "type_predicate_annotation", "asserts", "asserts_annotation", "type_query",
    "implements_clause", "extends_type_clause", "accessibility_modifier",
    "override_modifier", "mapped_type_clause", "omitting_type_annotation",
    "opting_type_annotation", "adding_type_annotation", "type_assertion",
    "import_require_clause", "instantiation_expression", "lookup_type",
    "literal_type", "template_literal_type", "infer_type", "constraint",
    "default_type", "existential_type", "this_type", "readonly_type",
})

PREDEFINED_TYPES = {
    "any": "TSAnyKeyword",
    "number": "TSNumberKeyword",
    "boolean": "TSBooleanKeyword",
    "string": "TSStringKeyword",
    "symbol": "TSSymbolKeyword",
    "void": "TSVoidKeyword",
    "unknown": "TSUnknownKeyword",
    "never": "TSNeverKeyword",
    "object": "TSObjectKeyword",
    "bigint": "TSBigIntKeyword",
    "undefined": "TSUndefinedKeyword",
    "null": "TSNullKeyword",
}

_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0",
}

_ESCAPE_RE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])"
)


def _unescape_match(match) -> str:
    escape = match.group(1)
    if escape.startswith("u{"):
        return chr(int(escape[2:-1], 16))
    if escape[0] in ("u", "x") and len(escape) > 1:
        return chr(int(escape[1:], 16))
    if escape in ("\n", "\r", "\r\n", "\u2028", "\u2029"):
        # line continuation
        return ""
    return _SIMPLE_ESCAPES.get(escape, escape)


def unescape_string(raw: str) -> str:
    """Decode the escape sequences of a string or template literal body."""
    return _ESCAPE_RE.sub(_unescape_match, raw)


def number_value(raw: str) -> Any:
    """Return the numeric value of a number literal, or None if it can't be represented."""
    text = raw.replace("_", "")
    lowered = text.lower()
    if lowered.endswith("n"):
        text = text[:-1]
        lowered = lowered[:-1]
    try:
        if lowered.startswith(("0x", "0o", "0b")):
            return int(text, 0)
        if lowered.isdigit():
            if len(lowered) > 1 and lowered.startswith("0") and set(lowered) <= set("01234567"):
                # legacy octal
                return int(text, 8)
            return int(text, 10)
        return float(text)
    except ValueError:
        return None


def _camel_case(kind: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in kind.split("_") if part)


class ESTreeBuilder:
    """
    Lowers a tree-sitter tree into ESTree dicts.

    One builder is used per parsed file; it holds the source bytes so node text
    can be sliced out by byte offsets.
    """

    def __init__(self, source: bytes, source_type: SourceType = "module"):
        self.source = source
        self.source_type = source_type

    # Helpers

    def text(self, ts_node) -> str:
        """Extract the source text of a tree-sitter node."""
        return self.source[ts_node.start_byte:ts_node.end_byte].decode("utf-8", errors="ignore")

    def _make(self, node_type: str, ts_node, **fields: Any) -> Node:
        node: Node = {"type": node_type, "start": ts_node.start_byte, "end": ts_node.end_byte}
        node.update(fields)
        return node

    def _span(self, node_type: str, start: int, end: int, **fields: Any) -> Node:
        node: Node = {"type": node_type, "start": start, "end": end}
        node.update(fields)
        return node

    @staticmethod
    def _skippable(ts_node) -> bool:
        return ts_node.type in COMMENT_TYPES or ts_node.type == "ERROR"

    def _named(self, ts_node) -> List[Any]:
        """Named children, without comments and error subtrees."""
        return [child for child in ts_node.named_children if not self._skippable(child)]

    def _field(self, ts_node, name: str):
        """
        First named child stored under a field.

        Punctuation may share a field name with the node it follows (the ``;``
        of a for-statement condition), so anonymous children are ignored.
        """
        for child in ts_node.children_by_field_name(name):
            if child.is_named and not self._skippable(child):
                return child
        return None

    def _fields(self, ts_node, name: str) -> List[Any]:
        return [
            child for child in ts_node.children_by_field_name(name)
            if child.is_named and not self._skippable(child)
        ]

    def _has_token(self, ts_node, token: str) -> bool:
        return any(not child.is_named and child.type == token for child in ts_node.children)

    def _token_before(self, ts_node, token: str, boundary) -> bool:
        """Check for an anonymous token that precedes boundary (e.g. ``static`` before a method name)."""
        limit = boundary.start_byte if boundary is not None else ts_node.end_byte
        return any(
            not child.is_named and child.type == token and child.start_byte < limit
            for child in ts_node.children
        )

    def lower(self, ts_node) -> Optional[Node]:
        """Lower a single tree-sitter node; error subtrees and comments lower to None."""
        if ts_node is None or self._skippable(ts_node):
            return None
        handler = getattr(self, f"_lower_{ts_node.type}", None)
        if handler is not None:
            return handler(ts_node)
        return self._lower_generic(ts_node)

    def lower_all(self, ts_nodes) -> List[Node]:
        lowered = []
        for ts_node in ts_nodes:
            node = self.lower(ts_node)
            if node is not None:
                lowered.append(node)
        return lowered

    def _lower_elements(self, ts_node) -> List[Optional[Node]]:
        """Lower array elements, keeping holes (``[a, , b]``) as None."""
        elements: List[Optional[Node]] = []
        pending = False
        for child in ts_node.children:
            if child.type == ",":
                if not pending:
                    elements.append(None)
                pending = False
            elif child.is_named and not self._skippable(child):
                elements.append(self.lower(child))
                pending = True
        return elements

    def _lower_generic(self, ts_node) -> Node:
        """
        Lower a kind without an ESTree counterpart.

        Field-named children keep their field names (``type`` becomes
        ``typeAnnotation`` so it can't clash with the node kind), other named
        children go to ``children`` and leaves carry their ``raw`` text.
        """
        kind = ts_node.type
        if kind in TS_KINDS or kind.endswith("_type"):
            node_type = "TS" + _camel_case(kind)
        else:
            node_type = _camel_case(kind)
        node = self._make(node_type, ts_node)

        named = [child for child in ts_node.named_children if not self._skippable(child)]
        if not named:
            node["raw"] = self.text(ts_node)
            return node

        children: List[Node] = []
        cursor = ts_node.walk()
        if cursor.goto_first_child():
            while True:
                child = cursor.node
                field_name = cursor.field_name
                if child.is_named and not self._skippable(child):
                    lowered = self.lower(child)
                    if lowered is not None:
                        if field_name is None:
                            children.append(lowered)
                        else:
                            key = "typeAnnotation" if field_name in ("type", "start", "end") else field_name
                            if key not in node:
                                node[key] = lowered
                            elif isinstance(node[key], list):
                                node[key].append(lowered)
                            else:
                                node[key] = [node[key], lowered]
                if not cursor.goto_next_sibling():
                    break
        if children:
            node["children"] = children
        return node

    # Program and statements

    def build(self, root) -> Node:
        """Lower the tree-sitter ``program`` node into an ESTree ``Program``."""
        hashbang = None
        body: List[Node] = []
        for child in self._named(root):
            if child.type == "hash_bang_line":
                hashbang = self._make("Hashbang", child, value=self.text(child)[2:])
                continue
            lowered = self.lower(child)
            if lowered is not None:
                body.append(lowered)
        return self._span(
            "Program", 0, len(self.source),
            sourceType=self.source_type, hashbang=hashbang, body=body,
        )

    def _lower_expression_statement(self, ts_node) -> Node:
        named = self._named(ts_node)
        if len(named) > 1:
            expression = self._sequence(ts_node, named)
        else:
            expression = self.lower(named[0]) if named else None
        return self._make("ExpressionStatement", ts_node, expression=expression)

    def _lower_variable_declaration(self, ts_node) -> Node:
        return self._make(
            "VariableDeclaration", ts_node,
            kind="var",
            declarations=self.lower_all(n for n in self._named(ts_node) if n.type == "variable_declarator"),
        )

    def _lower_lexical_declaration(self, ts_node) -> Node:
        kind_node = ts_node.child_by_field_name("kind")
        kind = self.text(kind_node) if kind_node is not None else ts_node.children[0].type
        return self._make(
            "VariableDeclaration", ts_node,
            kind=kind,
            declarations=self.lower_all(n for n in self._named(ts_node) if n.type == "variable_declarator"),
        )

    def _lower_variable_declarator(self, ts_node) -> Node:
        binding = self.lower(self._field(ts_node, "name"))
        type_node = self._field(ts_node, "type")
        if binding is not None and type_node is not None:
            binding["typeAnnotation"] = self.lower(type_node)
            binding["end"] = type_node.end_byte
        return self._make(
            "VariableDeclarator", ts_node,
            id=binding,
            init=self.lower(self._field(ts_node, "value")),
        )

    def _lower_statement_block(self, ts_node) -> Node:
        return self._make("BlockStatement", ts_node, body=self.lower_all(self._named(ts_node)))

    def _lower_if_statement(self, ts_node) -> Node:
        alternate = None
        else_clause = self._field(ts_node, "alternative")
        if else_clause is not None:
            named = self._named(else_clause)
            alternate = self.lower(named[0]) if named else None
        return self._make(
            "IfStatement", ts_node,
            test=self.lower(self._field(ts_node, "condition")),
            consequent=self.lower(self._field(ts_node, "consequence")),
            alternate=alternate,
        )

    def _lower_while_statement(self, ts_node) -> Node:
        return self._make(
            "WhileStatement", ts_node,
            test=self.lower(self._field(ts_node, "condition")),
            body=self.lower(self._field(ts_node, "body")),
        )

    def _lower_do_statement(self, ts_node) -> Node:
        return self._make(
            "DoWhileStatement", ts_node,
            body=self.lower(self._field(ts_node, "body")),
            test=self.lower(self._field(ts_node, "condition")),
        )

    def _for_clause(self, ts_node) -> Optional[Node]:
        # older grammars wrap the init and test clauses in statements
        if ts_node is None or ts_node.type == "empty_statement":
            return None
        if ts_node.type == "expression_statement":
            return self._lower_expression_statement(ts_node)["expression"]
        return self.lower(ts_node)

    def _lower_for_statement(self, ts_node) -> Node:
        return self._make(
            "ForStatement", ts_node,
            init=self._for_clause(self._field(ts_node, "initializer")),
            test=self._for_clause(self._field(ts_node, "condition")),
            update=self._for_clause(self._field(ts_node, "increment")),
            body=self.lower(self._field(ts_node, "body")),
        )

    def _lower_for_in_statement(self, ts_node) -> Node:
        left_node = self._field(ts_node, "left")
        left = self.lower(left_node)
        kind_node = ts_node.child_by_field_name("kind")
        if kind_node is not None and left is not None:
            declarator = self._span("VariableDeclarator", left["start"], left["end"], id=left, init=None)
            left = self._span(
                "VariableDeclaration", kind_node.start_byte, left_node.end_byte,
                kind=self.text(kind_node), declarations=[declarator],
            )

        operator_node = ts_node.child_by_field_name("operator")
        operator = self.text(operator_node) if operator_node is not None else "in"
        right = self.lower(self._field(ts_node, "right"))
        body = self.lower(self._field(ts_node, "body"))

        if operator == "of":
            return self._make(
                "ForOfStatement", ts_node,
                **{"await": self._has_token(ts_node, "await")},
                left=left, right=right, body=body,
            )
        return self._make("ForInStatement", ts_node, left=left, right=right, body=body)

    def _lower_return_statement(self, ts_node) -> Node:
        named = self._named(ts_node)
        return self._make("ReturnStatement", ts_node, argument=self._sequence(ts_node, named) if named else None)

    def _lower_throw_statement(self, ts_node) -> Node:
        named = self._named(ts_node)
        return self._make("ThrowStatement", ts_node, argument=self._sequence(ts_node, named) if named else None)

    def _lower_break_statement(self, ts_node) -> Node:
        return self._make("BreakStatement", ts_node, label=self.lower(self._field(ts_node, "label")))

    def _lower_continue_statement(self, ts_node) -> Node:
        return self._make("ContinueStatement", ts_node, label=self.lower(self._field(ts_node, "label")))

    def _lower_labeled_statement(self, ts_node) -> Node:
        return self._make(
            "LabeledStatement", ts_node,
            label=self.lower(self._field(ts_node, "label")),
            body=self.lower(self._field(ts_node, "body")),
        )

    def _lower_empty_statement(self, ts_node) -> Node:
        return self._make("EmptyStatement", ts_node)

    def _lower_debugger_statement(self, ts_node) -> Node:
        return self._make("DebuggerStatement", ts_node)

    def _lower_with_statement(self, ts_node) -> Node:
        return self._make(
            "WithStatement", ts_node,
            object=self.lower(self._field(ts_node, "object")),
            body=self.lower(self._field(ts_node, "body")),
        )

    def _lower_try_statement(self, ts_node) -> Node:
        finalizer = None
        finally_clause = self._field(ts_node, "finalizer")
        if finally_clause is not None:
            finalizer = self.lower(self._field(finally_clause, "body"))
        return self._make(
            "TryStatement", ts_node,
            block=self.lower(self._field(ts_node, "body")),
            handler=self.lower(self._field(ts_node, "handler")),
            finalizer=finalizer,
        )

    def _lower_catch_clause(self, ts_node) -> Node:
        param = self.lower(self._field(ts_node, "parameter"))
        type_node = self._field(ts_node, "type")
        if param is not None and type_node is not None:
            param["typeAnnotation"] = self.lower(type_node)
        return self._make(
            "CatchClause", ts_node,
            param=param,
            body=self.lower(self._field(ts_node, "body")),
        )

    def _lower_switch_statement(self, ts_node) -> Node:
        cases: List[Node] = []
        switch_body = self._field(ts_node, "body")
        if switch_body is not None:
            cases = self.lower_all(self._named(switch_body))
        return self._make(
            "SwitchStatement", ts_node,
            discriminant=self.lower(self._field(ts_node, "value")),
            cases=cases,
        )

    def _lower_switch_case(self, ts_node) -> Node:
        return self._make(
            "SwitchCase", ts_node,
            test=self.lower(self._field(ts_node, "value")),
            consequent=self.lower_all(self._fields(ts_node, "body")),
        )

    def _lower_switch_default(self, ts_node) -> Node:
        return self._make(
            "SwitchCase", ts_node,
            test=None,
            consequent=self.lower_all(self._fields(ts_node, "body")),
        )

    # Functions

    def _lower_params(self, ts_node) -> List[Node]:
        if ts_node is None:
            return []
        if ts_node.type != "formal_parameters":
            # single arrow parameter without parentheses
            lowered = self.lower(ts_node)
            return [lowered] if lowered is not None else []
        return self.lower_all(self._named(ts_node))

    def _lower_function_like(self, node_type: str, ts_node) -> Node:
        node = self._make(node_type, ts_node)
        node["id"] = self.lower(self._field(ts_node, "name"))
        node["async"] = self._has_token(ts_node, "async")
        node["generator"] = self._has_token(ts_node, "*")
        type_parameters = self._field(ts_node, "type_parameters")
        if type_parameters is not None:
            node["typeParameters"] = self.lower(type_parameters)
        node["params"] = self._lower_params(self._field(ts_node, "parameters"))
        return_type = self._field(ts_node, "return_type")
        if return_type is not None:
            node["returnType"] = self.lower(return_type)
        node["body"] = self.lower(self._field(ts_node, "body"))
        node["expression"] = False
        return node

    def _lower_function_declaration(self, ts_node) -> Node:
        return self._lower_function_like("FunctionDeclaration", ts_node)

    def _lower_generator_function_declaration(self, ts_node) -> Node:
        return self._lower_function_like("FunctionDeclaration", ts_node)

    def _lower_function_signature(self, ts_node) -> Node:
        # TypeScript overload without a body
        node = self._lower_function_like("TSDeclareFunction", ts_node)
        node.pop("body", None)
        return node

    def _lower_function_expression(self, ts_node) -> Node:
        return self._lower_function_like("FunctionExpression", ts_node)

    # tree-sitter-javascript < 0.21 calls function expressions "function"
    _lower_function = _lower_function_expression
    _lower_generator_function = _lower_function_expression

    def _lower_arrow_function(self, ts_node) -> Node:
        node = self._make("ArrowFunctionExpression", ts_node)
        node["id"] = None
        node["async"] = self._has_token(ts_node, "async")
        node["generator"] = False
        type_parameters = self._field(ts_node, "type_parameters")
        if type_parameters is not None:
            node["typeParameters"] = self.lower(type_parameters)
        params = self._field(ts_node, "parameters")
        if params is None:
            params = self._field(ts_node, "parameter")
        node["params"] = self._lower_params(params)
        return_type = self._field(ts_node, "return_type")
        if return_type is not None:
            node["returnType"] = self.lower(return_type)
        body_node = self._field(ts_node, "body")
        node["body"] = self.lower(body_node)
        node["expression"] = body_node is not None and body_node.type != "statement_block"
        return node

    def _lower_typed_parameter(self, ts_node, optional: bool) -> Optional[Node]:
        pattern_node = self._field(ts_node, "pattern")
        pattern = self.lower(pattern_node)
        if pattern is None:
            return None
        if optional:
            pattern["optional"] = True
        type_node = self._field(ts_node, "type")
        if type_node is not None:
            pattern["typeAnnotation"] = self.lower(type_node)
            pattern["end"] = type_node.end_byte
        for child in self._named(ts_node):
            if child.type == "accessibility_modifier":
                pattern["accessibility"] = self.text(child)
        value = self.lower(self._field(ts_node, "value"))
        if value is not None:
            return self._make("AssignmentPattern", ts_node, left=pattern, right=value)
        return pattern

    def _lower_required_parameter(self, ts_node) -> Optional[Node]:
        return self._lower_typed_parameter(ts_node, optional=False)

    def _lower_optional_parameter(self, ts_node) -> Optional[Node]:
        return self._lower_typed_parameter(ts_node, optional=True)

    # Patterns

    def _lower_assignment_pattern(self, ts_node) -> Node:
        return self._make(
            "AssignmentPattern", ts_node,
            left=self.lower(self._field(ts_node, "left")),
            right=self.lower(self._field(ts_node, "right")),
        )

    def _lower_rest_pattern(self, ts_node) -> Node:
        named = self._named(ts_node)
        return self._make("RestElement", ts_node, argument=self.lower(named[0]) if named else None)

    def _lower_array_pattern(self, ts_node) -> Node:
        return self._make("ArrayPattern", ts_node, elements=self._lower_elements(ts_node))

    def _lower_object_pattern(self, ts_node) -> Node:
        return self._make("ObjectPattern", ts_node, properties=self.lower_all(self._named(ts_node)))

    def _lower_pair_pattern(self, ts_node) -> Node:
        key_node = self._field(ts_node, "key")
        return self._make(
            "Property", ts_node,
            kind="init",
            method=False,
            shorthand=False,
            computed=key_node is not None and key_node.type == "computed_property_name",
            key=self._property_key(key_node),
            value=self.lower(self._field(ts_node, "value")),
        )

    def _shorthand(self, ts_node, value: Optional[Node] = None) -> Node:
        # key and value are separate dicts so mutating one never aliases the other
        key = self._make("Identifier", ts_node, name=self.text(ts_node))
        if value is None:
            value = self._make("Identifier", ts_node, name=self.text(ts_node))
        return self._make(
            "Property", ts_node,
            kind="init", method=False, shorthand=True, computed=False,
            key=key, value=value,
        )

    def _lower_shorthand_property_identifier_pattern(self, ts_node) -> Node:
        return self._shorthand(ts_node)

    def _lower_object_assignment_pattern(self, ts_node) -> Node:
        left_node = self._field(ts_node, "left")
        right = self.lower(self._field(ts_node, "right"))
        if left_node is not None and left_node.type == "shorthand_property_identifier_pattern":
            name = self.text(left_node)
            assignment = self._make(
                "AssignmentPattern", ts_node,
                left=self._make("Identifier", left_node, name=name),
                right=right,
            )
            prop = self._make(
                "Property", ts_node,
                kind="init", method=False, shorthand=True, computed=False,
                key=self._make("Identifier", left_node, name=name),
                value=assignment,
            )
            return prop
        return self._make("AssignmentPattern", ts_node, left=self.lower(left_node), right=right)

    # Expressions

    def _lower_identifier(self, ts_node) -> Node:
        return self._make("Identifier", ts_node, name=self.text(ts_node))

    _lower_property_identifier = _lower_identifier
    _lower_statement_identifier = _lower_identifier
    _lower_type_identifier = _lower_identifier
    _lower_shorthand_property_identifier = _lower_identifier
    _lower_undefined = _lower_identifier

    def _lower_private_property_identifier(self, ts_node) -> Node:
        return self._make("PrivateIdentifier", ts_node, name=self.text(ts_node).lstrip("#"))

    def _lower_this(self, ts_node) -> Node:
        return self._make("ThisExpression", ts_node)

    def _lower_super(self, ts_node) -> Node:
        return self._make("Super", ts_node)

    def _lower_number(self, ts_node) -> Node:
        raw = self.text(ts_node)
        node = self._make("Literal", ts_node, value=number_value(raw), raw=raw)
        if raw.endswith("n"):
            node["bigint"] = raw[:-1].replace("_", "")
        return node

    def _lower_string(self, ts_node) -> Node:
        raw = self.text(ts_node)
        return self._make("Literal", ts_node, value=unescape_string(raw[1:-1]), raw=raw)

    def _lower_true(self, ts_node) -> Node:
        return self._make("Literal", ts_node, value=True, raw="true")

    def _lower_false(self, ts_node) -> Node:
        return self._make("Literal", ts_node, value=False, raw="false")

    def _lower_null(self, ts_node) -> Node:
        return self._make("Literal", ts_node, value=None, raw="null")

    def _lower_regex(self, ts_node) -> Node:
        pattern_node = self._field(ts_node, "pattern")
        flags_node = self._field(ts_node, "flags")
        return self._make(
            "Literal", ts_node,
            value=None,
            raw=self.text(ts_node),
            regex={
                "pattern": self.text(pattern_node) if pattern_node is not None else "",
                "flags": self.text(flags_node) if flags_node is not None else "",
            },
        )

    def _template_element(self, start: int, end: int, tail: bool) -> Node:
        raw = self.source[start:end].decode("utf-8", errors="ignore")
        return self._span("TemplateElement", start, end, value={"raw": raw, "cooked": unescape_string(raw)}, tail=tail)

    def _lower_template_string(self, ts_node) -> Node:
        quasis: List[Node] = []
        expressions: List[Node] = []
        quasi_start = ts_node.start_byte + 1
        for child in ts_node.children:
            if child.type == "template_substitution":
                quasis.append(self._template_element(quasi_start, child.start_byte, tail=False))
                named = self._named(child)
                expression = self._sequence(child, named) if named else None
                if expression is not None:
                    expressions.append(expression)
                quasi_start = child.end_byte
        quasis.append(self._template_element(quasi_start, max(quasi_start, ts_node.end_byte - 1), tail=True))
        return self._make("TemplateLiteral", ts_node, quasis=quasis, expressions=expressions)

    def _lower_parenthesized_expression(self, ts_node) -> Optional[Node]:
        named = self._named(ts_node)
        if not named:
            return None
        return self._sequence(ts_node, named)

    def _sequence(self, ts_node, named: List[Any]) -> Optional[Node]:
        """Lower one expression, or several comma-separated ones into a SequenceExpression."""
        if len(named) == 1:
            return self.lower(named[0])
        return self._make("SequenceExpression", ts_node, expressions=self.lower_all(named))

    def _lower_sequence_expression(self, ts_node) -> Node:
        # older grammars nest sequences through left/right fields
        flattened: List[Any] = []

        def collect(node) -> None:
            for child in self._named(node):
                if child.type == "sequence_expression":
                    collect(child)
                else:
                    flattened.append(child)

        collect(ts_node)
        return self._make("SequenceExpression", ts_node, expressions=self.lower_all(flattened))

    def _lower_assignment_expression(self, ts_node) -> Node:
        return self._make(
            "AssignmentExpression", ts_node,
            operator="=",
            left=self.lower(self._field(ts_node, "left")),
            right=self.lower(self._field(ts_node, "right")),
        )

    def _operator(self, ts_node, default: str = "") -> str:
        operator_node = ts_node.child_by_field_name("operator")
        return self.text(operator_node) if operator_node is not None else default

    def _lower_augmented_assignment_expression(self, ts_node) -> Node:
        return self._make(
            "AssignmentExpression", ts_node,
            operator=self._operator(ts_node),
            left=self.lower(self._field(ts_node, "left")),
            right=self.lower(self._field(ts_node, "right")),
        )

    def _lower_binary_expression(self, ts_node) -> Node:
        operator = self._operator(ts_node)
        return self._make(
            "LogicalExpression" if operator in LOGICAL_OPERATORS else "BinaryExpression", ts_node,
            operator=operator,
            left=self.lower(self._field(ts_node, "left")),
            right=self.lower(self._field(ts_node, "right")),
        )

    def _lower_unary_expression(self, ts_node) -> Node:
        return self._make(
            "UnaryExpression", ts_node,
            operator=self._operator(ts_node),
            prefix=True,
            argument=self.lower(self._field(ts_node, "argument")),
        )

    def _lower_update_expression(self, ts_node) -> Node:
        operator_node = ts_node.child_by_field_name("operator")
        argument_node = self._field(ts_node, "argument")
        prefix = (
            operator_node is not None and argument_node is not None
            and operator_node.start_byte < argument_node.start_byte
        )
        return self._make(
            "UpdateExpression", ts_node,
            operator=self.text(operator_node) if operator_node is not None else "",
            prefix=prefix,
            argument=self.lower(argument_node),
        )

    def _lower_ternary_expression(self, ts_node) -> Node:
        return self._make(
            "ConditionalExpression", ts_node,
            test=self.lower(self._field(ts_node, "condition")),
            consequent=self.lower(self._field(ts_node, "consequence")),
            alternate=self.lower(self._field(ts_node, "alternative")),
        )

    def _lower_await_expression(self, ts_node) -> Node:
        named = self._named(ts_node)
        return self._make("AwaitExpression", ts_node, argument=self.lower(named[0]) if named else None)

    def _lower_yield_expression(self, ts_node) -> Node:
        named = self._named(ts_node)
        return self._make(
            "YieldExpression", ts_node,
            delegate=self._has_token(ts_node, "*"),
            argument=self.lower(named[0]) if named else None,
        )

    def _lower_spread_element(self, ts_node) -> Node:
        named = self._named(ts_node)
        return self._make("SpreadElement", ts_node, argument=self.lower(named[0]) if named else None)

    def _lower_arguments(self, ts_node) -> List[Node]:
        return self.lower_all(self._named(ts_node))

    def _chain_object(self, ts_node) -> Tuple[Optional[Node], bool]:
        """Lower the object or callee of a chain element without wrapping it."""
        if ts_node is not None and ts_node.type in ("member_expression", "subscript_expression", "call_expression"):
            return self._chain_element(ts_node)
        return self.lower(ts_node), False

    def _chain_element(self, ts_node) -> Tuple[Optional[Node], bool]:
        """
        Lower a member access or call that may be part of an optional chain.

        Returns the node and whether any link of the chain is optional.
        """
        optional = ts_node.child_by_field_name("optional_chain") is not None

        if ts_node.type == "call_expression":
            callee_node = self._field(ts_node, "function")
            arguments_node = self._field(ts_node, "arguments")

            if arguments_node is not None and arguments_node.type == "template_string":
                return self._make(
                    "TaggedTemplateExpression", ts_node,
                    tag=self.lower(callee_node),
                    quasi=self.lower(arguments_node),
                ), False

            if callee_node is not None and callee_node.type == "import":
                arguments = self._lower_arguments(arguments_node) if arguments_node is not None else []
                return self._make(
                    "ImportExpression", ts_node,
                    source=arguments[0] if arguments else None,
                    options=arguments[1] if len(arguments) > 1 else None,
                ), False

            callee, in_chain = self._chain_object(callee_node)
            node = self._make("CallExpression", ts_node, callee=callee)
            type_arguments = self._field(ts_node, "type_arguments")
            if type_arguments is not None:
                node["typeArguments"] = self.lower(type_arguments)
            node["arguments"] = self._lower_arguments(arguments_node) if arguments_node is not None else []
            node["optional"] = optional
            return node, optional or in_chain

        obj, in_chain = self._chain_object(self._field(ts_node, "object"))
        if ts_node.type == "subscript_expression":
            index = self._field(ts_node, "index")
            prop = self.lower(index)
            computed = True
        else:
            prop = self.lower(self._field(ts_node, "property"))
            computed = False
        node = self._make(
            "MemberExpression", ts_node,
            object=obj,
            property=prop,
            computed=computed,
            optional=optional,
        )
        return node, optional or in_chain

    def _lower_chain(self, ts_node) -> Node:
        node, in_chain = self._chain_element(ts_node)
        if in_chain:
            return self._make("ChainExpression", ts_node, expression=node)
        return node

    _lower_call_expression = _lower_chain
    _lower_member_expression = _lower_chain
    _lower_subscript_expression = _lower_chain

    def _lower_new_expression(self, ts_node) -> Node:
        arguments_node = self._field(ts_node, "arguments")
        node = self._make("NewExpression", ts_node, callee=self.lower(self._field(ts_node, "constructor")))
        type_arguments = self._field(ts_node, "type_arguments")
        if type_arguments is not None:
            node["typeArguments"] = self.lower(type_arguments)
        node["arguments"] = self._lower_arguments(arguments_node) if arguments_node is not None else []
        return node

    def _lower_meta_property(self, ts_node) -> Node:
        text = self.text(ts_node)
        meta_name, _, property_name = text.partition(".")
        meta_name = meta_name.strip()
        property_name = property_name.strip()
        start = ts_node.start_byte
        end = ts_node.end_byte
        return self._make(
            "MetaProperty", ts_node,
            meta=self._span("Identifier", start, start + len(meta_name), name=meta_name),
            property=self._span("Identifier", end - len(property_name), end, name=property_name),
        )

    def _lower_array(self, ts_node) -> Node:
        return self._make("ArrayExpression", ts_node, elements=self._lower_elements(ts_node))

    def _property_key(self, key_node) -> Optional[Node]:
        if key_node is not None and key_node.type == "computed_property_name":
            named = self._named(key_node)
            return self._sequence(key_node, named) if named else None
        return self.lower(key_node)

    def _lower_object(self, ts_node) -> Node:
        properties: List[Node] = []
        for child in self._named(ts_node):
            if child.type == "shorthand_property_identifier":
                properties.append(self._shorthand(child))
            else:
                lowered = self.lower(child)
                if lowered is not None:
                    properties.append(lowered)
        return self._make("ObjectExpression", ts_node, properties=properties)

    def _lower_pair(self, ts_node) -> Node:
        key_node = self._field(ts_node, "key")
        return self._make(
            "Property", ts_node,
            kind="init",
            method=False,
            shorthand=False,
            computed=key_node is not None and key_node.type == "computed_property_name",
            key=self._property_key(key_node),
            value=self.lower(self._field(ts_node, "value")),
        )

    def _method_value(self, ts_node) -> Node:
        """The FunctionExpression of a method, spanning from its parameters to its body."""
        params_node = self._field(ts_node, "parameters")
        start = params_node.start_byte if params_node is not None else ts_node.start_byte
        value = self._span("FunctionExpression", start, ts_node.end_byte)
        value["id"] = None
        value["async"] = self._has_token(ts_node, "async")
        value["generator"] = self._has_token(ts_node, "*")
        type_parameters = self._field(ts_node, "type_parameters")
        if type_parameters is not None:
            value["typeParameters"] = self.lower(type_parameters)
            value["start"] = min(value["start"], type_parameters.start_byte)
        value["params"] = self._lower_params(params_node)
        return_type = self._field(ts_node, "return_type")
        if return_type is not None:
            value["returnType"] = self.lower(return_type)
        value["body"] = self.lower(self._field(ts_node, "body"))
        value["expression"] = False
        return value

    def _method_kind(self, ts_node, name_node) -> str:
        if self._token_before(ts_node, "get", name_node):
            return "get"
        if self._token_before(ts_node, "set", name_node):
            return "set"
        return "method"

    def _decorators(self, ts_node) -> List[Node]:
        decorators = self._fields(ts_node, "decorator")
        if not decorators:
            decorators = [child for child in self._named(ts_node) if child.type == "decorator"]
        return self.lower_all(decorators)

    def _lower_method_definition(self, ts_node) -> Node:
        parent = ts_node.parent
        name_node = self._field(ts_node, "name")
        computed = name_node is not None and name_node.type == "computed_property_name"
        key = self._property_key(name_node)
        kind = self._method_kind(ts_node, name_node)

        if parent is not None and parent.type == "object":
            return self._make(
                "Property", ts_node,
                kind="init" if kind == "method" else kind,
                method=kind == "method",
                shorthand=False,
                computed=computed,
                key=key,
                value=self._method_value(ts_node),
            )

        is_static = self._token_before(ts_node, "static", name_node)
        if kind == "method" and not is_static and not computed and key is not None and key.get("name") == "constructor":
            kind = "constructor"
        node = self._make("MethodDefinition", ts_node)
        node["decorators"] = self._decorators(ts_node)
        node["static"] = is_static
        node["computed"] = computed
        node["kind"] = kind
        node["key"] = key
        node["value"] = self._method_value(ts_node)
        return node

    def _property_definition(self, ts_node, name_node) -> Node:
        node = self._make("PropertyDefinition", ts_node)
        node["decorators"] = self._decorators(ts_node)
        node["static"] = self._token_before(ts_node, "static", name_node)
        node["computed"] = name_node is not None and name_node.type == "computed_property_name"
        node["key"] = self._property_key(name_node)
        type_node = self._field(ts_node, "type")
        if type_node is not None:
            node["typeAnnotation"] = self.lower(type_node)
        node["value"] = self.lower(self._field(ts_node, "value"))
        return node

    def _lower_field_definition(self, ts_node) -> Node:
        return self._property_definition(ts_node, self._field(ts_node, "property"))

    def _lower_public_field_definition(self, ts_node) -> Node:
        return self._property_definition(ts_node, self._field(ts_node, "name"))

    def _lower_class_static_block(self, ts_node) -> Node:
        block = self._field(ts_node, "body")
        return self._make(
            "StaticBlock", ts_node,
            body=self.lower_all(self._named(block)) if block is not None else [],
        )

    def _lower_class_body(self, ts_node) -> Node:
        return self._make("ClassBody", ts_node, body=self.lower_all(self._named(ts_node)))

    def _lower_decorator(self, ts_node) -> Node:
        named = self._named(ts_node)
        return self._make("Decorator", ts_node, expression=self.lower(named[0]) if named else None)

    def _lower_class_like(self, node_type: str, ts_node) -> Node:
        node = self._make(node_type, ts_node)
        node["decorators"] = self._decorators(ts_node)
        node["id"] = self.lower(self._field(ts_node, "name"))
        type_parameters = self._field(ts_node, "type_parameters")
        if type_parameters is not None:
            node["typeParameters"] = self.lower(type_parameters)

        super_class = None
        implements: List[Node] = []
        heritage = None
        for child in self._named(ts_node):
            if child.type == "class_heritage":
                heritage = child
        if heritage is not None:
            for clause in self._named(heritage):
                if clause.type == "extends_clause":
                    value = self._field(clause, "value")
                    if value is None:
                        named = self._named(clause)
                        value = named[0] if named else None
                    super_class = self.lower(value)
                elif clause.type == "implements_clause":
                    implements.extend(self.lower_all(self._named(clause)))
                elif super_class is None:
                    super_class = self.lower(clause)
        node["superClass"] = super_class
        if implements:
            node["implements"] = implements
        node["body"] = self.lower(self._field(ts_node, "body"))
        return node

    def _lower_class_declaration(self, ts_node) -> Node:
        return self._lower_class_like("ClassDeclaration", ts_node)

    def _lower_abstract_class_declaration(self, ts_node) -> Node:
        node = self._lower_class_like("ClassDeclaration", ts_node)
        node["abstract"] = True
        return node

    def _lower_class(self, ts_node) -> Node:
        return self._lower_class_like("ClassExpression", ts_node)

    # Modules

    def _module_name(self, ts_node) -> Optional[Node]:
        # `export { a as "string name" }` allows string literals as names
        return self.lower(ts_node)

    def _lower_import_statement(self, ts_node) -> Node:
        specifiers: List[Node] = []
        for child in self._named(ts_node):
            if child.type == "import_clause":
                for clause in self._named(child):
                    specifiers.extend(self._import_specifiers(clause))
        node = self._make("ImportDeclaration", ts_node)
        node["importKind"] = "type" if self._has_token(ts_node, "type") else "value"
        node["specifiers"] = specifiers
        node["source"] = self.lower(self._field(ts_node, "source"))
        return node

    def _import_specifiers(self, clause) -> List[Node]:
        if clause.type == "identifier":
            return [self._make("ImportDefaultSpecifier", clause, local=self.lower(clause))]
        if clause.type == "namespace_import":
            named = self._named(clause)
            return [self._make("ImportNamespaceSpecifier", clause, local=self.lower(named[0]) if named else None)]
        if clause.type == "named_imports":
            specifiers = []
            for specifier in self._named(clause):
                if specifier.type != "import_specifier":
                    continue
                name_node = self._field(specifier, "name")
                alias_node = self._field(specifier, "alias")
                imported = self._module_name(name_node)
                # local is always a fresh dict, never an alias of imported
                local = self.lower(alias_node if alias_node is not None else name_node)
                specifiers.append(self._make("ImportSpecifier", specifier, imported=imported, local=local))
            return specifiers
        return []

    def _lower_export_statement(self, ts_node) -> Node:
        declaration_node = self._field(ts_node, "declaration")
        value_node = self._field(ts_node, "value")
        source = self.lower(self._field(ts_node, "source"))

        if self._has_token(ts_node, "default"):
            target = declaration_node if declaration_node is not None else value_node
            declaration = self.lower(target)
            if declaration is not None and target is not None:
                # `export default function () {}` declares, even when anonymous
                if target.type in FUNCTION_EXPRESSION_TYPES:
                    declaration["type"] = "FunctionDeclaration"
                elif target.type in CLASS_EXPRESSION_TYPES:
                    declaration["type"] = "ClassDeclaration"
            return self._make("ExportDefaultDeclaration", ts_node, declaration=declaration)

        if declaration_node is not None:
            return self._make(
                "ExportNamedDeclaration", ts_node,
                declaration=self.lower(declaration_node),
                specifiers=[],
                source=None,
            )

        for child in self._named(ts_node):
            if child.type == "namespace_export":
                named = self._named(child)
                return self._make(
                    "ExportAllDeclaration", ts_node,
                    exported=self._module_name(named[0]) if named else None,
                    source=source,
                )
            if child.type == "export_clause":
                specifiers = []
                for specifier in self._named(child):
                    if specifier.type != "export_specifier":
                        continue
                    name_node = self._field(specifier, "name")
                    alias_node = self._field(specifier, "alias")
                    local = self._module_name(name_node)
                    exported = self._module_name(alias_node if alias_node is not None else name_node)
                    specifiers.append(self._make("ExportSpecifier", specifier, local=local, exported=exported))
                return self._make(
                    "ExportNamedDeclaration", ts_node,
                    declaration=None,
                    specifiers=specifiers,
                    source=source,
                )

        if self._has_token(ts_node, "*"):
            return self._make("ExportAllDeclaration", ts_node, exported=None, source=source)

        return self._lower_generic(ts_node)

    # JSX

    def _jsx_name(self, ts_node) -> Optional[Node]:
        if ts_node is None:
            return None
        if ts_node.type in ("identifier", "property_identifier", "jsx_identifier"):
            return self._make("JSXIdentifier", ts_node, name=self.text(ts_node))
        if ts_node.type == "jsx_namespace_name":
            named = self._named(ts_node)
            return self._make(
                "JSXNamespacedName", ts_node,
                namespace=self._jsx_name(named[0]) if named else None,
                name=self._jsx_name(named[-1]) if len(named) > 1 else None,
            )
        if ts_node.type in ("member_expression", "nested_identifier"):
            obj = self._field(ts_node, "object")
            prop = self._field(ts_node, "property")
            if obj is None or prop is None:
                named = self._named(ts_node)
                obj, prop = (named[0], named[-1]) if len(named) > 1 else (None, None)
            return self._make(
                "JSXMemberExpression", ts_node,
                object=self._jsx_name(obj),
                property=self._jsx_name(prop),
            )
        return self.lower(ts_node)

    def _jsx_attributes(self, ts_node) -> List[Node]:
        attributes = self._fields(ts_node, "attribute")
        if not attributes:
            attributes = [
                child for child in self._named(ts_node)
                if child.type in ("jsx_attribute", "jsx_expression")
            ]
        return self.lower_all(attributes)

    def _jsx_opening(self, ts_node, self_closing: bool) -> Node:
        name_node = self._field(ts_node, "name")
        node = self._make("JSXOpeningElement", ts_node, name=self._jsx_name(name_node))
        type_arguments = self._field(ts_node, "type_arguments")
        if type_arguments is not None:
            node["typeArguments"] = self.lower(type_arguments)
        node["attributes"] = self._jsx_attributes(ts_node)
        node["selfClosing"] = self_closing
        return node

    def _jsx_children(self, ts_node, open_tag, close_tag) -> List[Node]:
        children = []
        for child in ts_node.named_children:
            if child == open_tag or child == close_tag or self._skippable(child):
                continue
            lowered = self._jsx_child(child)
            if lowered is not None:
                children.append(lowered)
        return children

    def _jsx_child(self, ts_node) -> Optional[Node]:
        if ts_node.type in ("jsx_text", "html_character_reference"):
            raw = self.text(ts_node)
            return self._make("JSXText", ts_node, value=raw, raw=raw)
        if ts_node.type == "jsx_expression":
            named = self._named(ts_node)
            if named and named[0].type == "spread_element":
                inner = self._named(named[0])
                return self._make("JSXSpreadChild", ts_node, expression=self.lower(inner[0]) if inner else None)
            return self._lower_jsx_expression(ts_node)
        return self.lower(ts_node)

    def _lower_jsx_element(self, ts_node) -> Node:
        open_tag = self._field(ts_node, "open_tag")
        close_tag = self._field(ts_node, "close_tag")
        if open_tag is None:
            named = self._named(ts_node)
            open_tag = named[0] if named and named[0].type == "jsx_opening_element" else None
        if close_tag is None:
            named = self._named(ts_node)
            close_tag = named[-1] if named and named[-1].type == "jsx_closing_element" else None

        children = self._jsx_children(ts_node, open_tag, close_tag)

        if open_tag is not None and self._field(open_tag, "name") is None:
            return self._make(
                "JSXFragment", ts_node,
                openingFragment=self._make("JSXOpeningFragment", open_tag),
                children=children,
                closingFragment=self._make("JSXClosingFragment", close_tag) if close_tag is not None else None,
            )

        return self._make(
            "JSXElement", ts_node,
            openingElement=self._jsx_opening(open_tag, self_closing=False) if open_tag is not None else None,
            children=children,
            closingElement=self.lower(close_tag),
        )

    def _lower_jsx_self_closing_element(self, ts_node) -> Node:
        return self._make(
            "JSXElement", ts_node,
            openingElement=self._jsx_opening(ts_node, self_closing=True),
            children=[],
            closingElement=None,
        )

    def _lower_jsx_opening_element(self, ts_node) -> Node:
        return self._jsx_opening(ts_node, self_closing=False)

    def _lower_jsx_closing_element(self, ts_node) -> Node:
        return self._make("JSXClosingElement", ts_node, name=self._jsx_name(self._field(ts_node, "name")))

    def _lower_jsx_attribute(self, ts_node) -> Node:
        named = self._named(ts_node)
        name = self._jsx_name(named[0]) if named else None
        value = None
        if len(named) > 1:
            value_node = named[-1]
            if value_node.type == "jsx_expression":
                value = self._lower_jsx_expression(value_node)
            else:
                value = self.lower(value_node)
        return self._make("JSXAttribute", ts_node, name=name, value=value)

    def _lower_jsx_expression(self, ts_node) -> Node:
        named = self._named(ts_node)
        parent = ts_node.parent
        if named and named[0].type == "spread_element" and parent is not None and parent.type in (
            "jsx_opening_element", "jsx_self_closing_element",
        ):
            inner = self._named(named[0])
            return self._make("JSXSpreadAttribute", ts_node, argument=self.lower(inner[0]) if inner else None)
        if not named:
            empty = self._span("JSXEmptyExpression", ts_node.start_byte + 1, max(ts_node.start_byte + 1, ts_node.end_byte - 1))
            return self._make("JSXExpressionContainer", ts_node, expression=empty)
        return self._make("JSXExpressionContainer", ts_node, expression=self._sequence(ts_node, named))

    def _lower_jsx_text(self, ts_node) -> Node:
        return self._jsx_child(ts_node)

    # TypeScript

    def _lower_type_annotation(self, ts_node) -> Node:
        named = self._named(ts_node)
        return self._make("TSTypeAnnotation", ts_node, typeAnnotation=self._type(named[0]) if named else None)

    def _type(self, ts_node) -> Optional[Node]:
        if ts_node is not None and ts_node.type == "type_identifier":
            return self._make("TSTypeReference", ts_node, typeName=self._lower_identifier(ts_node))
        return self.lower(ts_node)

    def _lower_predefined_type(self, ts_node) -> Node:
        return self._make(PREDEFINED_TYPES.get(self.text(ts_node), "TSTypeReference"), ts_node)

    def _lower_generic_type(self, ts_node) -> Node:
        node = self._make("TSTypeReference", ts_node, typeName=self.lower(self._field(ts_node, "name")))
        type_arguments = self._field(ts_node, "type_arguments")
        if type_arguments is not None:
            node["typeArguments"] = self.lower(type_arguments)
        return node

    def _lower_type_arguments(self, ts_node) -> Node:
        return self._make(
            "TSTypeParameterInstantiation", ts_node,
            params=[self._type(child) for child in self._named(ts_node)],
        )

    def _lower_type_parameters(self, ts_node) -> Node:
        return self._make("TSTypeParameterDeclaration", ts_node, params=self.lower_all(self._named(ts_node)))

    def _lower_type_parameter(self, ts_node) -> Node:
        constraint = self._field(ts_node, "constraint")
        default = self._field(ts_node, "value")
        return self._make(
            "TSTypeParameter", ts_node,
            name=self.lower(self._field(ts_node, "name")),
            constraint=self._type(self._named(constraint)[0]) if constraint is not None and self._named(constraint) else None,
            default=self._type(self._named(default)[0]) if default is not None and self._named(default) else None,
        )

    def _lower_as_expression(self, ts_node) -> Node:
        named = self._named(ts_node)
        return self._make(
            "TSAsExpression", ts_node,
            expression=self.lower(named[0]) if named else None,
            typeAnnotation=self._type(named[1]) if len(named) > 1 else None,
        )

    def _lower_satisfies_expression(self, ts_node) -> Node:
        named = self._named(ts_node)
        return self._make(
            "TSSatisfiesExpression", ts_node,
            expression=self.lower(named[0]) if named else None,
            typeAnnotation=self._type(named[1]) if len(named) > 1 else None,
        )

    def _lower_non_null_expression(self, ts_node) -> Node:
        named = self._named(ts_node)
        return self._make("TSNonNullExpression", ts_node, expression=self.lower(named[0]) if named else None)


def collect_comments_and_errors(root, source: bytes) -> Tuple[List[Node], List[ParseDiagnostic]]:
    """
    Collect comment records and syntax diagnostics from a tree-sitter tree.

    Comments become ``Line``/``Block`` records with the text between the
    delimiters as ``value``. ``ERROR`` nodes are reported once per subtree and
    ``MISSING`` nodes as the token that was expected.
    """
    comments: List[Node] = []
    errors: List[ParseDiagnostic] = []

    def visit(ts_node, in_error: bool) -> None:
        if ts_node.type in COMMENT_TYPES:
            text = source[ts_node.start_byte:ts_node.end_byte].decode("utf-8", errors="ignore")
            if text.startswith("/*"):
                comment_type, value = "Block", text[2:-2]
            elif text.startswith("<!--"):
                comment_type, value = "Line", text[4:]
            else:
                comment_type, value = "Line", text[2:]
            comments.append({"type": comment_type, "value": value, "start": ts_node.start_byte, "end": ts_node.end_byte})
            return

        if ts_node.is_missing:
            errors.append(ParseDiagnostic(f"Expected {ts_node.type!r}", ts_node.start_byte, ts_node.end_byte))
        elif ts_node.type == "ERROR" and not in_error:
            snippet = source[ts_node.start_byte:ts_node.end_byte].decode("utf-8", errors="ignore")
            if len(snippet) > 20:
                snippet = snippet[:20] + "..."
            errors.append(ParseDiagnostic(f"Unexpected token {snippet!r}", ts_node.start_byte, ts_node.end_byte))
            in_error = True

        for child in ts_node.children:
            visit(child, in_error)

    visit(root, False)
    return comments, errors
