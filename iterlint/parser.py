# Tree-sitter setup and parsing: parse JavaScript source into tree-sitter trees.

import logging
from typing import Optional

import tree_sitter
from tree_sitter import Language
from tree_sitter_javascript import language as _js_language_capsule

logger = logging.getLogger(__name__)

# JavaScript grammar: wrap tree-sitter-javascript capsule for use with tree_sitter.Parser
_JS_LANGUAGE = Language(_js_language_capsule())


def get_js_language() -> Language:
    """Return the Tree-sitter Language object for JavaScript."""
    return _JS_LANGUAGE


def create_parser() -> tree_sitter.Parser:
    """
    Create a Parser configured for JavaScript.

    Parsers are not shared between threads; scans running in parallel each
    create their own.
    """
    return tree_sitter.Parser(_JS_LANGUAGE)


def parse_bytes(
    source: bytes,
    parser: Optional[tree_sitter.Parser] = None,
) -> tree_sitter.Tree:
    """
    Parse JavaScript source bytes.

    Args:
        source: UTF-8 encoded JavaScript source.
        parser: Optional parser instance; if None, a new one is created.

    Returns:
        The parse tree. tree.root_node.has_error is set when the source has
        syntax errors; the tree is still usable (error recovery).
    """
    if parser is None:
        parser = create_parser()
    tree = parser.parse(source)
    if tree.root_node.has_error:
        logger.warning("Parse completed with errors: root=%s", tree.root_node.type)
    else:
        logger.debug("Parse succeeded: root=%s", tree.root_node.type)
    return tree
