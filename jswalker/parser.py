"""
Parsing of JavaScript and TypeScript sources into ESTree programs.

Sources are parsed with tree-sitter (``tree-sitter-javascript`` for js/jsx,
``tree-sitter-typescript`` for ts/tsx) and lowered to ESTree dicts by
ESTreeBuilder. Syntax errors never raise; they are returned as diagnostics.
"""

import logging
import re
from typing import Dict, Optional, Union

import tree_sitter
import tree_sitter_javascript
import tree_sitter_typescript

from .estree import ESTreeBuilder, collect_comments_and_errors
from .types import Lang, ParseResult, SourceType

logger = logging.getLogger(__name__)


# Trailing extension, optionally marked as CommonJS or ES module (.cjs, .mts, ...)
LANG_RE = re.compile(r"\.[cm]?(?P<lang>jsx|tsx|js|ts)$")

SUPPORTED_LANGS = ("js", "jsx", "ts", "tsx")

_languages: Dict[str, tree_sitter.Language] = {}


def detect_lang(filename: str, default: Lang = "js") -> Lang:
    """
    Infer the language variant from a filename.

    Args:
        filename: File name or path, only its suffix is inspected
        default: Language used when the suffix is not recognised

    Returns:
        One of "js", "jsx", "ts", "tsx"
    """
    match = LANG_RE.search(filename)
    if match is None:
        return default
    return match.group("lang")


def get_language(lang: str) -> tree_sitter.Language:
    """Get (and cache) the tree-sitter grammar for a language variant."""
    if lang not in SUPPORTED_LANGS:
        raise ValueError(f"Unsupported language: {lang!r}. Expected one of {', '.join(SUPPORTED_LANGS)}")

    # js and jsx share one grammar
    cache_key = "js" if lang in ("js", "jsx") else lang
    if cache_key not in _languages:
        if cache_key == "js":
            language = tree_sitter.Language(tree_sitter_javascript.language())
        elif cache_key == "ts":
            language = tree_sitter.Language(tree_sitter_typescript.language_typescript())
        else:
            language = tree_sitter.Language(tree_sitter_typescript.language_tsx())
        _languages[cache_key] = language
        logger.debug(f"Loaded tree-sitter grammar for {cache_key}")
    return _languages[cache_key]


def _create_parser(lang: str) -> tree_sitter.Parser:
    # Parsers hold per-parse state, so each call gets its own
    parser = tree_sitter.Parser()
    parser.language = get_language(lang)
    return parser


def parse_sync(
    filename: str,
    source: Union[str, bytes],
    lang: Optional[str] = None,
    source_type: SourceType = "module",
) -> ParseResult:
    """
    Parse a source file into an ESTree program.

    Args:
        filename: Used to detect the language when lang is not given
        source: Source text
        lang: Force a language variant ("js", "jsx", "ts" or "tsx")
        source_type: "module" or "script"

    Returns:
        ParseResult with the program, comments and syntax diagnostics

    Raises:
        ValueError: If lang is not a supported language variant
    """
    if lang is None:
        lang = detect_lang(filename)
    elif lang not in SUPPORTED_LANGS:
        raise ValueError(f"Unsupported language: {lang!r}. Expected one of {', '.join(SUPPORTED_LANGS)}")

    if isinstance(source, bytes):
        source_bytes = source
        source_text = source.decode("utf-8", errors="ignore")
    else:
        source_bytes = source.encode("utf-8")
        source_text = source

    tree = _create_parser(lang).parse(source_bytes)
    root = tree.root_node

    comments, errors = collect_comments_and_errors(root, source_bytes)
    if errors:
        logger.debug(f"{filename}: {len(errors)} syntax error(s)")

    program = ESTreeBuilder(source_bytes, source_type).build(root)

    return ParseResult(
        program=program,
        comments=comments,
        errors=errors,
        lang=lang,
        source_type=source_type,
        source=source_text,
    )
