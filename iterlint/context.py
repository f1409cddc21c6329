# Per-file analysis context: file path, source bytes, and the generic syntax tree.
# Handles reading/parsing JavaScript files, unreadable files, and logging of
# node/function counts so trees are ready for the traversal engine.

import logging
from pathlib import Path
from typing import Optional

from tree_sitter import Parser

from iterlint.parser import create_parser, parse_bytes
from iterlint.syntax import SyntaxNode, from_tree_sitter

logger = logging.getLogger(__name__)

STDIN_PATH = Path("<stdin>")

FUNCTION_KINDS = frozenset(
    {
        "arrow_function",
        "function",
        "function_expression",
        "function_declaration",
        "generator_function",
        "generator_function_declaration",
        "method_definition",
    }
)


def count_tree_stats(root: SyntaxNode) -> tuple[int, int]:
    """Return (total node count, function count) for the tree."""
    nodes = 0
    functions = 0
    for n in root.walk():
        nodes += 1
        if n.kind in FUNCTION_KINDS:
            functions += 1
    return nodes, functions


class FileContext:
    """
    Per-file state for one scan: path, raw source bytes, and syntax tree.

    The tree is read-only for the lifetime of a scan.
    """

    def __init__(
        self,
        path: Path,
        source: bytes,
        root: SyntaxNode,
        *,
        has_parse_errors: bool = False,
    ) -> None:
        self.path = path
        self.source = source
        self.root = root
        self.has_parse_errors = has_parse_errors


def context_from_source(
    source: bytes,
    path: Path = STDIN_PATH,
    parser: Optional[Parser] = None,
) -> FileContext:
    """
    Parse in-memory JavaScript source into a FileContext.

    Syntax errors do not fail: the context is returned with
    has_parse_errors=True and whatever tree error recovery produced.
    """
    tree = parse_bytes(source, parser=parser)
    has_errors = tree.root_node.has_error
    if has_errors:
        logger.warning("File %s parsed with syntax errors; tree may be incomplete", path)

    root = from_tree_sitter(tree.root_node, source)
    node_count, func_count = count_tree_stats(root)
    logger.info(
        "Parsed %s: %d nodes, %d function(s)%s",
        path,
        node_count,
        func_count,
        " (with parse errors)" if has_errors else "",
    )
    return FileContext(path=path, source=source, root=root, has_parse_errors=has_errors)


def create_context(
    path: Path,
    parser: Optional[Parser] = None,
) -> Optional[FileContext]:
    """
    Read a JavaScript file and parse it into a FileContext.

    Returns:
        FileContext if the file was read, None if it could not be read
        (the error is logged).
    """
    try:
        source = path.read_bytes()
    except OSError as e:
        logger.error("Failed to read file %s: %s", path, e)
        return None
    if parser is None:
        parser = create_parser()
    return context_from_source(source, path=path, parser=parser)
