"""
Entry points: walk an existing tree, or parse source text and walk the result.
"""

import logging
from typing import Any, Dict, Optional, Union

from .config import WalkerConfig, get_default_config
from .parser import detect_lang, parse_sync
from .scope_tracker import ScopeTracker
from .types import Node, ParseResult, WalkerEnter, WalkerLeave
from .walker import WalkerSync

logger = logging.getLogger(__name__)

_OPTION_KEYS = frozenset({"enter", "leave", "scope_tracker", "parse_options"})


def walk(
    input: Node,
    enter: Optional[WalkerEnter] = None,
    leave: Optional[WalkerLeave] = None,
    scope_tracker: Optional[ScopeTracker] = None,
) -> Optional[Node]:
    """
    Walk an AST with enter and leave callbacks.

    Args:
        input: The root node
        enter: Called before a node's children are visited
        leave: Called after a node's children have been visited
        scope_tracker: Tracker notified of every node, before the callbacks run

    Returns:
        The root after all mutations, or None if it was removed
    """
    return WalkerSync(enter=enter, leave=leave, scope_tracker=scope_tracker).traverse(input)


def parse_and_walk(
    code: str,
    filename: str,
    callback_or_options: Union[WalkerEnter, Dict[str, Any], None] = None,
    *,
    enter: Optional[WalkerEnter] = None,
    leave: Optional[WalkerLeave] = None,
    scope_tracker: Optional[ScopeTracker] = None,
    parse_options: Optional[Dict[str, Any]] = None,
    config: Optional[WalkerConfig] = None,
) -> ParseResult:
    """
    Parse source code and walk the resulting AST.

    The language is inferred from the filename unless ``parse_options["lang"]``
    overrides it.

    Args:
        code: Source text
        filename: Name of the source file, used for language detection
        callback_or_options: An enter callback, or a dict with any of
            ``enter``, ``leave``, ``scope_tracker`` and ``parse_options``
        enter: Enter callback
        leave: Leave callback
        scope_tracker: Tracker notified of every node
        parse_options: ``lang`` and/or ``source_type`` overrides
        config: Defaults for the parse options; the built-in defaults if None

    Returns:
        The ParseResult, including its diagnostics. The program reflects the
        mutations made by the callbacks.
    """
    if callable(callback_or_options):
        enter = callback_or_options
    elif isinstance(callback_or_options, dict):
        unknown = set(callback_or_options) - _OPTION_KEYS
        if unknown:
            raise TypeError(f"Unknown walk options: {', '.join(sorted(unknown))}")
        enter = callback_or_options.get("enter", enter)
        leave = callback_or_options.get("leave", leave)
        scope_tracker = callback_or_options.get("scope_tracker", scope_tracker)
        parse_options = callback_or_options.get("parse_options", parse_options)
    elif callback_or_options is not None:
        raise TypeError("Expected an enter callback or a dict of walk options")

    config = config or get_default_config()
    parse_options = parse_options or {}

    lang = parse_options.get("lang") or detect_lang(filename, config.default_lang)
    source_type = parse_options.get("source_type") or config.source_type

    result = parse_sync(filename, code, lang=lang, source_type=source_type)
    if result.has_errors:
        logger.debug(f"Walking {filename} despite {len(result.errors)} syntax error(s)")

    program = walk(result.program, enter=enter, leave=leave, scope_tracker=scope_tracker)
    if program is not None:
        result.program = program
    return result
