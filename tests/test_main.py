"""Tests for the typer CLI (lint and rules commands)."""

import json
import textwrap

import pytest
from typer.testing import CliRunner

from iterlint.main import app

runner = CliRunner()

INDEXED_LOOP = """\
for (let i = 0; i < employees.length; i++) {
  employees[i].save();
}
"""

CLEAN = """\
const salarySum = employees
  .filter(e => e.yearsAtCompany > 4)
  .map(e => e.salary)
  .reduce((sum, salary) => sum + salary, 0);
"""


@pytest.fixture
def project(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "loop.js").write_text(INDEXED_LOOP)
    (tmp_path / "src" / "clean.js").write_text(CLEAN)
    return tmp_path


def _invoke(*args: str, **kwargs):
    return runner.invoke(app, list(args), env={"COLUMNS": "200"}, **kwargs)


def test_lint_reports_findings_and_fails(project):
    result = _invoke("lint", str(project / "src"))
    assert result.exit_code == 1
    assert "1 finding" in result.stdout


def test_lint_clean_file_passes(project):
    result = _invoke("lint", str(project / "src" / "clean.js"))
    assert result.exit_code == 0
    assert "No iteration misuses found" in result.stdout


def test_lint_json_output(project):
    result = _invoke("lint", str(project / "src" / "loop.js"), "--format", "json")
    assert result.exit_code == 1
    records = json.loads(result.stdout)
    assert len(records) == 1
    record = records[0]
    assert record["category"] == "IndexedLoopWithoutIndexUse"
    assert record["suggestedFix"] == "forEach"
    assert record["line"] == 1
    assert record["column"] == 1
    assert record["file"].endswith("loop.js")


def test_lint_severity_threshold(project):
    result = _invoke("lint", str(project / "src"), "--severity", "error")
    assert result.exit_code == 0


def test_lint_disable_category(project):
    result = _invoke("lint", str(project / "src"), "--disable", "indexed-loop-without-index-use")
    assert result.exit_code == 0


def test_lint_config_file_raises_severity(project):
    config = project / "iterlint.yaml"
    config.write_text("IndexedLoopWithoutIndexUse: error\n")
    result = _invoke(
        "lint", str(project / "src"), "--config", str(config), "--severity", "error", "--format", "json"
    )
    assert result.exit_code == 1
    assert json.loads(result.stdout)[0]["severity"] == "error"


def test_lint_unknown_disabled_category_is_config_error(project):
    result = _invoke("lint", str(project / "src"), "--disable", "NoSuchRule")
    assert result.exit_code == 2
    assert "Configuration error" in result.output


def test_lint_bad_config_file(project):
    config = project / "bad.yaml"
    config.write_text(textwrap.dedent("MapForSideEffectOnly: sometimes\n"))
    result = _invoke("lint", str(project / "src"), "--config", str(config))
    assert result.exit_code == 2


def test_lint_stdin():
    result = _invoke("lint", "-", "--format", "json", input="items.map(i => i.save());\n")
    assert result.exit_code == 1
    [record] = json.loads(result.stdout)
    assert record["category"] == "MapForSideEffectOnly"
    assert record["file"] == "<stdin>"


def test_lint_missing_path(tmp_path):
    result = _invoke("lint", str(tmp_path / "missing"))
    assert result.exit_code == 2


def test_lint_non_js_file(tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("hello")
    result = _invoke("lint", str(notes))
    assert result.exit_code == 2


def test_lint_malformed_file_reported(project):
    (project / "src" / "broken.js").write_text("employees.map();\n")
    result = _invoke("lint", str(project / "src"), "--format", "json")
    assert "scan aborted" in result.output
    assert result.exit_code == 1


def test_lint_malformed_stdin_reported():
    result = _invoke("lint", "-", input="xs.map();\n")
    assert "<stdin>: scan aborted" in result.output
    assert "no callback" in result.output
    assert result.exit_code == 0


def test_rules_lists_categories():
    result = _invoke("rules")
    assert result.exit_code == 0
    for category in (
        "IndexedLoopWithoutIndexUse",
        "MapForSideEffectOnly",
        "ForEachBuildingCollection",
        "ForEachWithFilterConditional",
        "AccumulatorPatternManual",
    ):
        assert category in result.stdout
