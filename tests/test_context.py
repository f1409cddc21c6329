"""Tests for iterlint.context: FileContext, create_context, context_from_source, counts."""

from pathlib import Path

from iterlint.context import (
    STDIN_PATH,
    context_from_source,
    count_tree_stats,
    create_context,
)


def test_count_tree_stats():
    ctx = context_from_source(b"function names(xs) { return xs.map(x => x.name); }")
    nodes, funcs = count_tree_stats(ctx.root)
    assert nodes > 1
    assert funcs == 2


def test_context_from_source_defaults_to_stdin_path():
    ctx = context_from_source(b"run();")
    assert ctx.path == STDIN_PATH
    assert ctx.root.kind == "program"
    assert ctx.has_parse_errors is False


def test_create_context_reads_file(tmp_path):
    js_file = tmp_path / "app.js"
    js_file.write_bytes(b"items.forEach(item => item.save());\n")
    ctx = create_context(js_file)
    assert ctx is not None
    assert ctx.path == js_file
    assert ctx.source == b"items.forEach(item => item.save());\n"
    assert ctx.root.kind == "program"


def test_create_context_nonexistent(caplog):
    ctx = create_context(Path("/nonexistent/app.js"))
    assert ctx is None
    assert "Failed to read" in caplog.text


def test_create_context_malformed_still_returns_context(tmp_path):
    js_file = tmp_path / "bad.js"
    js_file.write_bytes(b"items.forEach(item => { item.save( }\n")
    ctx = create_context(js_file)
    assert ctx is not None
    assert ctx.has_parse_errors is True
