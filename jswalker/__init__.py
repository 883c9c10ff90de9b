"""
jswalker: AST traversal for JavaScript and TypeScript.

This package provides a mutation-safe depth-first walker over ESTree-shaped
ASTs, a scope tracker that follows the walk, and a tree-sitter based parser
that produces the ASTs.
"""

from .types import (
    Node, Lang, SourceType, SKIP, REMOVE, Skip, Remove, Replace, Directive,
    WalkerCallbackContext, WalkerEnterContext, WalkerEnter, WalkerLeave,
    ParseDiagnostic, ParseResult
)

from .utils import is_node, iter_fields, is_child_scope

from .walker import WalkerBase, WalkerSync

from .scope_tracker import (
    ScopeTracker, ScopeTrackerNode, get_pattern_identifiers, is_binding_identifier,
    get_undeclared_identifiers_in_function
)

from .parser import LANG_RE, detect_lang, parse_sync

from .walk import walk, parse_and_walk

from .config import (
    WalkerConfig, load_config, get_default_config, save_config, find_config_file
)

__all__ = [
    # Types
    "Node", "Lang", "SourceType", "SKIP", "REMOVE", "Skip", "Remove", "Replace", "Directive",
    "WalkerCallbackContext", "WalkerEnterContext", "WalkerEnter", "WalkerLeave",
    "ParseDiagnostic", "ParseResult",

    # Utils
    "is_node", "iter_fields", "is_child_scope",

    # Walker
    "WalkerBase", "WalkerSync", "walk", "parse_and_walk",

    # Scope tracking
    "ScopeTracker", "ScopeTrackerNode", "get_pattern_identifiers", "is_binding_identifier",
    "get_undeclared_identifiers_in_function",

    # Parser
    "LANG_RE", "detect_lang", "parse_sync",

    # Config
    "WalkerConfig", "load_config", "get_default_config", "save_config", "find_config_file"
]
