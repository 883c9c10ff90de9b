"""
Tests for scope tracking and the undeclared identifier analysis.
"""

from jswalker.config import WalkerConfig
from jswalker.parser import parse_sync
from jswalker.scope_tracker import (
    ScopeTracker, ScopeTrackerNode, get_pattern_identifiers, is_binding_identifier,
    get_undeclared_identifiers_in_function,
)
from jswalker.walk import walk


def ident(name):
    return {"type": "Identifier", "name": name, "start": 0, "end": len(name)}


def first_statement(code, filename="test.js"):
    return parse_sync(filename, code).program["body"][0]


class TestScopeKeys:
    """Test scope keys and declaration lookups during a walk."""

    def setup_method(self):
        """Set up a tracker."""
        self.tracker = ScopeTracker()

    def test_console_log_scenario(self):
        """Test visibility of loop, block and parameter bindings."""
        code = (
            "function foo(arg){ const [a,b]=[1,2]; console.log(arg); "
            "for(let i=0;i<10;i++){ console.log(i); } return arg; } foo(1)"
        )
        calls = {}

        def enter(node, parent, ctx):
            if node["type"] != "CallExpression":
                return
            callee = node["callee"]
            if callee["type"] == "MemberExpression":
                argument = node["arguments"][0]["name"]
                calls[argument] = {
                    "scope": self.tracker.get_current_scope(),
                    "i": self.tracker.is_declared("i"),
                    "a": self.tracker.is_declared("a"),
                    "b": self.tracker.is_declared("b"),
                    "arg": self.tracker.is_declared("arg"),
                    "foo": self.tracker.is_declared("foo"),
                }
            else:
                calls["foo"] = {
                    "scope": self.tracker.get_current_scope(),
                    "foo": self.tracker.is_declared("foo"),
                    "arg": self.tracker.is_declared("arg"),
                }

        walk(parse_sync("test.js", code).program, enter=enter, scope_tracker=self.tracker)

        assert calls["arg"] == {"scope": "0-0", "i": False, "a": True, "b": True, "arg": True, "foo": True}
        assert calls["i"] == {"scope": "0-0-0-0", "i": True, "a": True, "b": True, "arg": True, "foo": True}
        assert calls["foo"] == {"scope": "", "foo": True, "arg": False}

    def test_sibling_scopes(self):
        """Test that sibling blocks get increasing ordinals."""
        code = "{ let a; } { let b; } { { let c; } }"
        keys = {}

        def enter(node, parent, ctx):
            if node["type"] == "Identifier":
                keys[node["name"]] = self.tracker.get_current_scope()

        walk(parse_sync("test.js", code).program, enter=enter, scope_tracker=self.tracker)

        assert keys == {"a": "0", "b": "1", "c": "2-0"}

    def test_is_current_scope_under(self):
        """Test strict ancestry of the current scope."""
        code = "{ { x; } }"
        results = []

        def enter(node, parent, ctx):
            if node["type"] == "Identifier":
                results.append((
                    self.tracker.get_current_scope(),
                    self.tracker.is_current_scope_under("0"),
                    self.tracker.is_current_scope_under("0-0"),
                    self.tracker.is_current_scope_under(""),
                ))

        walk(parse_sync("test.js", code).program, enter=enter, scope_tracker=self.tracker)
        assert results == [("0-0", True, False, True)]

    def test_named_function_expression_pushes_two_scopes(self):
        """Test that a function expression's name lives in its own scope outside the parameters."""
        tracker = ScopeTracker(preserve_exited_scopes=True)
        code = "const f = function g(a) { return g; }; { let q; }"
        walk(parse_sync("test.js", code).program, scope_tracker=tracker)

        outer = tracker.get_scope_declarations("0")
        params = tracker.get_scope_declarations("0-0")
        assert set(outer) == {"g"}
        assert outer["g"].type == "Function"
        assert set(params) == {"a"}
        assert params["a"].type == "FunctionParam"
        assert set(tracker.get_scope_declarations("1")) == {"q"}
        assert set(tracker.get_scope_declarations("")) == {"f"}

    def test_class_expression_name_is_scoped(self):
        """Test that a class expression's name is only visible inside the class."""
        tracker = ScopeTracker(preserve_exited_scopes=True)
        code = "const A = class B {}; class C {}"
        walk(parse_sync("test.js", code).program, scope_tracker=tracker)

        assert set(tracker.get_scope_declarations("")) == {"A", "C"}
        assert set(tracker.get_scope_declarations("0")) == {"B"}

    def test_catch_and_loop_bindings(self):
        """Test catch parameters and for-of bindings."""
        tracker = ScopeTracker(preserve_exited_scopes=True)
        code = "try {} catch ({ message }) {} for (const [k, v] of entries) {}"
        walk(parse_sync("test.js", code).program, scope_tracker=tracker)

        catch_scope = tracker.get_scope_declarations("1")
        loop_scope = tracker.get_scope_declarations("2")
        assert set(catch_scope) == {"message"}
        assert catch_scope["message"].type == "CatchParam"
        assert set(loop_scope) == {"k", "v"}
        assert loop_scope["k"].type == "Variable"

    def test_static_block_for_in_and_arrow_scopes(self):
        """Test the scopes of static blocks, for-in loops and arrow functions."""
        tracker = ScopeTracker(preserve_exited_scopes=True)
        code = "class A { static { let s; } } for (var k in o) { let z; } x => x"
        walk(parse_sync("test.js", code).program, scope_tracker=tracker)

        scopes = {key: sorted(tracker.get_scope_declarations(key)) for key in ("", "0", "1", "1-0", "2")}
        assert scopes == {"": ["A"], "0": ["s"], "1": ["k"], "1-0": ["z"], "2": ["x"]}
        assert tracker.get_scope_declarations("2")["x"].type == "FunctionParam"

    def test_for_statement_binding_ends_with_loop(self):
        """Test that a for-loop binding is visible in the body and not after the loop."""
        code = "for (let i = 0; i < 1; i++) { i; } i;"
        seen = []

        def enter(node, parent, ctx):
            if node["type"] == "Identifier" and parent["type"] == "ExpressionStatement":
                seen.append((self.tracker.get_current_scope(), self.tracker.is_declared("i")))

        walk(parse_sync("test.js", code).program, enter=enter, scope_tracker=self.tracker)

        assert seen == [("0-0", True), ("", False)]

    def test_exited_scopes_are_dropped(self):
        """Test that scopes are forgotten on exit unless preserved."""
        code = "{ let a; }"
        walk(parse_sync("test.js", code).program, scope_tracker=self.tracker)
        assert self.tracker.get_scope_declarations("0") == {}

        preserving = ScopeTracker(preserve_exited_scopes=True)
        walk(parse_sync("test.js", code).program, scope_tracker=preserving)
        assert set(preserving.get_scope_declarations("0")) == {"a"}

    def test_redeclaration_overwrites(self):
        """Test that the last declaration of a name in a scope wins."""
        tracker = ScopeTracker(preserve_exited_scopes=True)
        walk(parse_sync("test.js", "var x = 1; function x() {}").program, scope_tracker=tracker)
        assert tracker.get_scope_declarations("")["x"].type == "Function"

    def test_from_config(self):
        """Test creating a tracker from configuration."""
        tracker = ScopeTracker.from_config(WalkerConfig(preserve_exited_scopes=True))
        assert tracker.preserve_exited_scopes is True


class TestFreeze:
    """Test the freeze and re-walk idiom."""

    def test_freeze_stops_declarations_and_resets_position(self):
        """Test that a frozen tracker keeps its declarations and ignores new ones."""
        tracker = ScopeTracker(preserve_exited_scopes=True)
        program = parse_sync("test.js", "let a; { let b; }").program
        walk(program, scope_tracker=tracker)

        tracker.freeze()
        assert tracker.is_frozen
        assert tracker.get_current_scope() == ""

        tracker.process_node_enter({"type": "Program", "body": []})
        tracker.process_node_enter(first_statement("let late;"))
        assert not tracker.is_declared("late")
        assert tracker.is_declared("a")

    def test_second_pass_keys_match_first(self):
        """Test that the replayed walk produces the same scope keys."""
        tracker = ScopeTracker(preserve_exited_scopes=True)
        program = parse_sync("test.js", "{ x; } function f() { y; }").program

        def record(keys):
            def enter(node, parent, ctx):
                if node["type"] == "Identifier":
                    keys.append((node["name"], tracker.get_current_scope()))
            return enter

        first, second = [], []
        walk(program, enter=record(first), scope_tracker=tracker)
        tracker.freeze()
        walk(program, enter=record(second), scope_tracker=tracker)

        assert first == second
        assert ("f", "1") in second
        assert ("y", "1-0") in second

    def test_second_pass_sees_later_declarations(self):
        """Test that declarations made after a use are visible in the frozen pass."""
        tracker = ScopeTracker(preserve_exited_scopes=True)
        program = parse_sync("test.js", "{ use(later); let later = 1; }").program
        walk(program, scope_tracker=tracker)
        tracker.freeze()

        seen = []

        def enter(node, parent, ctx):
            if node["type"] == "Identifier" and node["name"] == "later":
                seen.append(tracker.is_declared("later"))

        walk(program, enter=enter, scope_tracker=tracker)
        assert seen == [True, True]


class TestDeclarationRecords:
    """Test declaration kinds and the ranges they report."""

    def setup_method(self):
        """Parse a file declaring one binding of each kind."""
        self.code = (
            'import d from "m";\n'
            "const x = 1;\n"
            "function f(p) { return p; }\n"
            "class C {}\n"
            "try { } catch (e) { }\n"
        )
        self.tracker = ScopeTracker(preserve_exited_scopes=True)
        walk(parse_sync("test.js", self.code).program, scope_tracker=self.tracker)
        self.root = self.tracker.get_scope_declarations("")

    def span_of(self, text):
        start = self.code.index(text)
        return start, start + len(text)

    def test_import(self):
        """Test that imports report the whole import statement."""
        record = self.root["d"]
        assert record.type == "Import"
        assert (record.start, record.end) == self.span_of('import d from "m";')
        assert record.import_node["type"] == "ImportDeclaration"
        assert record.node["type"] == "ImportDefaultSpecifier"

    def test_variable(self):
        """Test that variables report the whole declaration."""
        record = self.root["x"]
        assert record.type == "Variable"
        assert (record.start, record.end) == self.span_of("const x = 1;")
        assert record.variable_node["type"] == "VariableDeclaration"
        assert record.node["name"] == "x"
        assert record.fn_node is None

    def test_function(self):
        """Test that function names report the function."""
        record = self.root["f"]
        assert record.type == "Function"
        assert (record.start, record.end) == self.span_of("function f(p) { return p; }")
        assert record.node["type"] == "FunctionDeclaration"

    def test_function_param(self):
        """Test that parameters report the enclosing function."""
        record = self.tracker.get_scope_declarations("0")["p"]
        assert record.type == "FunctionParam"
        assert (record.start, record.end) == self.span_of("function f(p) { return p; }")
        assert record.fn_node["type"] == "FunctionDeclaration"
        assert record.scope == "0"
        assert record.is_under_scope("")

    def test_class(self):
        """Test that class names report the identifier."""
        record = self.root["C"]
        assert record.type == "Identifier"
        start = self.code.index("class C") + len("class ")
        assert (record.start, record.end) == (start, start + 1)

    def test_catch_param(self):
        """Test that catch parameters report the catch clause."""
        record = self.tracker.get_scope_declarations("2")["e"]
        assert record.type == "CatchParam"
        assert (record.start, record.end) == self.span_of("catch (e) { }")
        assert record.catch_node["type"] == "CatchClause"

    def test_get_declaration_finds_nearest(self):
        """Test lookups from a nested scope."""
        tracker = ScopeTracker()
        found = []

        def enter(node, parent, ctx):
            if node["type"] == "ReturnStatement":
                found.append(tracker.get_declaration("v"))

        walk(parse_sync("test.js", "let v = 1; function g() { let v = 2; return v; }").program,
             enter=enter, scope_tracker=tracker)

        assert len(found) == 1
        assert found[0].scope == "0-0"
        assert tracker.get_declaration("missing") is None


class TestPatternIdentifiers:
    """Test binding extraction from patterns."""

    def test_nested_patterns(self):
        """Test identifiers from nested array, object, default and rest patterns."""
        pattern = {
            "type": "ObjectPattern",
            "properties": [
                {"type": "Property", "key": ident("a"), "value": ident("a")},
                {"type": "Property", "key": ident("b"), "value": {
                    "type": "ArrayPattern",
                    "elements": [
                        None,
                        ident("c"),
                        {"type": "AssignmentPattern", "left": ident("d"), "right": {"type": "Literal", "value": 1}},
                        {"type": "RestElement", "argument": ident("e")},
                    ],
                }},
                {"type": "RestElement", "argument": ident("f")},
            ],
        }
        assert [node["name"] for node in get_pattern_identifiers(pattern)] == ["a", "c", "d", "e", "f"]

    def test_non_patterns(self):
        """Test that non-binding values yield nothing."""
        assert get_pattern_identifiers(None) == []
        assert get_pattern_identifiers({"type": "MemberExpression"}) == []


class TestBindingIdentifier:
    """Test classification of identifier occurrences."""

    def test_function_name_and_params(self):
        """Test function names and parameters."""
        name, param, other = ident("f"), ident("p"), ident("x")
        fn = {"type": "FunctionDeclaration", "id": name, "params": [
            {"type": "AssignmentPattern", "left": param, "right": other},
        ]}
        assert is_binding_identifier(name, fn)
        assert is_binding_identifier(param, fn)
        assert not is_binding_identifier(other, fn)

    def test_property_keys(self):
        """Test that non-shorthand property keys bind but shorthand ones don't."""
        key, value = ident("k"), ident("v")
        prop = {"type": "Property", "key": key, "value": value}
        assert is_binding_identifier(key, prop)
        assert not is_binding_identifier(value, prop)

        shorthand = ident("s")
        shorthand_prop = {"type": "Property", "key": shorthand, "value": shorthand}
        assert not is_binding_identifier(shorthand, shorthand_prop)

    def test_member_property(self):
        """Test member expression objects and properties."""
        obj, prop = ident("console"), ident("log")
        member = {"type": "MemberExpression", "object": obj, "property": prop}
        assert is_binding_identifier(prop, member)
        assert not is_binding_identifier(obj, member)

    def test_declarators_classes_and_catch(self):
        """Test declarator, class, method and catch positions."""
        target, init = ident("t"), ident("i")
        declarator = {"type": "VariableDeclarator", "id": target, "init": init}
        assert is_binding_identifier(target, declarator)
        assert not is_binding_identifier(init, declarator)

        class_id = ident("C")
        assert is_binding_identifier(class_id, {"type": "ClassDeclaration", "id": class_id})

        method_key = ident("m")
        assert is_binding_identifier(method_key, {"type": "MethodDefinition", "key": method_key})

        error = ident("err")
        assert is_binding_identifier(error, {"type": "CatchClause", "param": error, "body": None})
        assert not is_binding_identifier(ident("x"), {"type": "CatchClause", "param": None})

    def test_references(self):
        """Test plain reads and missing parents."""
        x = ident("x")
        assert not is_binding_identifier(x, {"type": "ReturnStatement", "argument": x})
        assert not is_binding_identifier(x, None)


class TestUndeclaredIdentifiers:
    """Test the undeclared identifier analysis."""

    def test_simple_function(self):
        """Test a free variable in a function body."""
        fn = first_statement("function f(x){ return x + y; }")
        assert get_undeclared_identifiers_in_function(fn) == ["y"]

    def test_arrow_function_patterns(self):
        """Test destructured parameters and member properties."""
        declaration = first_statement(
            "const fn = (a, {b, c: [d]}, ...rest) => a + b + d + rest.length + e + console.log(e)"
        )
        arrow = declaration["declarations"][0]["init"]
        assert get_undeclared_identifiers_in_function(arrow) == ["e", "console"]

    def test_hoisted_declarations(self):
        """Test that functions declared after their use are not reported."""
        fn = first_statement("function g() { h(); function h() {} return z; }")
        assert get_undeclared_identifiers_in_function(fn) == ["z"]

    def test_no_duplicates(self):
        """Test that repeated references are reported once."""
        fn = first_statement("function g() { return [u, v, u, v.w]; }")
        assert get_undeclared_identifiers_in_function(fn) == ["u", "v"]


class TestScopeTrackerNode:
    """Test the declaration record itself."""

    def test_accessors_by_type(self):
        """Test that only the matching accessor returns the owner."""
        owner = {"type": "CatchClause", "start": 4, "end": 20}
        record = ScopeTrackerNode("CatchParam", ident("e"), "1", owner)
        assert record.catch_node is owner
        assert record.fn_node is None
        assert record.variable_node is None
        assert record.import_node is None
        assert (record.start, record.end) == (4, 20)
        assert record.is_under_scope("")
        assert not record.is_under_scope("1")
