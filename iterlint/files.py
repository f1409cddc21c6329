"""
File system discovery: walk directories and collect JavaScript source files.

Typical usage:
    from pathlib import Path
    from iterlint.files import find_js_files

    sources = find_js_files(Path("./web"))
    sources = find_js_files(Path("./web"), ignore_dirs={"vendor"})
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Set

logger = logging.getLogger(__name__)

JS_EXTENSIONS: frozenset[str] = frozenset({".js", ".mjs", ".cjs", ".jsx"})

# Default directories to ignore during discovery
DEFAULT_IGNORE_DIRS: Set[str] = {
    # Dependencies and bundler output
    "node_modules",
    "bower_components",
    "vendor",
    "dist",
    "build",
    "out",
    ".next",
    ".nuxt",
    # Coverage reports ship instrumented copies of the sources
    "coverage",
    ".nyc_output",
    # Version control
    ".git",
    ".svn",
    ".hg",
    # Editors and caches
    ".vscode",
    ".idea",
    ".cache",
    "__pycache__",
}


def is_js_file(path: Path) -> bool:
    """
    Check if a file is a JavaScript source file.

    Examples:
        >>> is_js_file(Path("app.js"))
        True
        >>> is_js_file(Path("lib/util.MJS"))
        True
        >>> is_js_file(Path("types.d.ts"))
        False
    """
    return path.suffix.lower() in JS_EXTENSIONS


def is_minified(path: Path) -> bool:
    """Bundled `*.min.js` files are generated, not authored."""
    return path.name.lower().endswith(".min.js")


def should_ignore_directory(dir_path: Path, ignore_dirs: Set[str]) -> bool:
    """Only the directory name is compared (case-sensitive)."""
    return dir_path.name in ignore_dirs


def find_js_files(
    root: Path,
    ignore_dirs: Optional[Set[str]] = None,
    follow_symlinks: bool = False,
    filter_fn: Optional[Callable[[Path], bool]] = None,
) -> list[Path]:
    """
    Recursively find JavaScript sources under root.

    Args:
        root: Directory to start from.
        ignore_dirs: Directory names to skip. If None, uses DEFAULT_IGNORE_DIRS.
        follow_symlinks: Follow symbolic links (skipped by default).
        filter_fn: Optional extra predicate; only paths it accepts are kept.

    Returns:
        Sorted list of matching files (deterministic scan order).

    Raises:
        FileNotFoundError: root does not exist.
        NotADirectoryError: root is not a directory.
    """
    if ignore_dirs is None:
        ignore_dirs = DEFAULT_IGNORE_DIRS

    root = root.resolve()
    if not root.exists():
        logger.error("Root directory does not exist: %s", root)
        raise FileNotFoundError(f"Root directory does not exist: {root}")
    if not root.is_dir():
        logger.error("Root path is not a directory: %s", root)
        raise NotADirectoryError(f"Root path is not a directory: {root}")

    logger.info("Starting discovery from: %s", root)
    collected: list[Path] = []

    def _walk_directory(current_dir: Path) -> None:
        try:
            for entry in current_dir.iterdir():
                if entry.is_symlink() and not follow_symlinks:
                    logger.debug("Skipping symlink: %s", entry)
                    continue
                if entry.is_dir():
                    if should_ignore_directory(entry, ignore_dirs):
                        logger.debug("Ignoring directory: %s", entry)
                        continue
                    _walk_directory(entry)
                elif entry.is_file() and is_js_file(entry) and not is_minified(entry):
                    if filter_fn is not None and not filter_fn(entry):
                        continue
                    collected.append(entry)
        except PermissionError as e:
            logger.warning("Permission denied accessing directory %s: %s", current_dir, e)
        except OSError as e:
            logger.warning("Error accessing directory %s: %s", current_dir, e)

    _walk_directory(root)
    collected.sort()
    logger.info("Discovery complete: found %d file(s) in %s", len(collected), root)
    return collected
