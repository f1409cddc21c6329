"""Unit tests for the AccumulatorPatternManual matcher."""

from pathlib import Path

import pytest

from iterlint.context import context_from_source
from iterlint.rules.accumulator import AccumulatorPatternManualMatcher
from iterlint.traversal import IterationScan


def _run_rule(source: str) -> list:
    ctx = context_from_source(source.encode(), path=Path("test.js"))
    matcher = AccumulatorPatternManualMatcher()
    findings = []
    for it in IterationScan(ctx.root, ctx.path):
        finding = matcher.match(it)
        if finding is not None:
            findings.append(finding)
    return findings


def test_filtered_for_each_accumulator():
    """Scenario D: salarySum incremented inside a filtered forEach."""
    source = """
let salarySum = 0;
employees
  .filter(employee => employee.yearsAtCompany > 4)
  .forEach(employee => {
    salarySum += employee.salary;
  });
"""
    findings = _run_rule(source)
    assert len(findings) == 1
    assert findings[0].category == "AccumulatorPatternManual"
    assert findings[0].suggested_fix == "filter + map + reduce"
    assert "'salarySum'" in findings[0].message
    assert "after filter" in findings[0].message


def test_guarded_accumulator():
    source = """
let salarySum = 0;
employees.forEach(employee => {
  if (employee.yearsAtCompany > 4) {
    salarySum += employee.salary;
  }
});
"""
    findings = _run_rule(source)
    assert len(findings) == 1
    assert "move the condition into filter" in findings[0].message


@pytest.mark.parametrize(
    "seed, update",
    [
        ("0", "total += x.price"),
        ("1", "total *= x.factor"),
        ("0", "total = total + x.price"),
        ("0", "total = x.price + total"),
        ("[]", "total = total.concat(x.tags)"),
        ("''", "total += x.code"),
    ],
)
def test_associative_updates(seed, update):
    source = f"var total = {seed};\nitems.forEach(x => {{ {update}; }});\n"
    assert len(_run_rule(source)) == 1


def test_boolean_seed_not_flagged():
    source = "let ok = true;\nitems.forEach(x => { ok = ok && x.ok; });\n"
    assert _run_rule(source) == []


def test_non_associative_update_not_flagged():
    source = "let total = 100;\nitems.forEach(x => { total -= x.price; });\n"
    assert _run_rule(source) == []


def test_other_variable_not_flagged():
    source = "let total = 0;\nitems.forEach(x => { other += x.price; });\n"
    assert _run_rule(source) == []


def test_more_than_one_effect_not_flagged():
    source = "let total = 0;\nitems.forEach(x => { total += x.price; x.save(); });\n"
    assert _run_rule(source) == []


def test_filter_map_reduce_not_flagged():
    """Scenario E shape: no accumulator variable at all."""
    source = """
const salarySum = employees
  .filter(e => e.yearsAtCompany > 4)
  .map(e => e.salary)
  .reduce((sum, salary) => sum + salary, 0);
"""
    assert _run_rule(source) == []
