"""Tests for TerminalRunReporter."""

from unittest.mock import Mock

import pytest
from rich.console import Console

from transmute.domain.entities import DependencyChange, FileResult, Outcome, RewriteEvent, RunResult
from transmute.infrastructure.reporters import TerminalRunReporter


@pytest.fixture
def console() -> Console:
    return Console(record=True, width=200, color_system=None)


def _run() -> RunResult:
    changed = FileResult(
        "ATest.java",
        "old",
        unit=Mock(),
        text="new",
        passes=2,
        imports_added=["org.junit.jupiter.api.Test"],
        imports_removed=["org.junit.Test"],
        events=[
            RewriteEvent("transmute.junit5.ExpectedExceptionToAssertThrows", "ATest.java", "7:5", Outcome.APPLIED),
            RewriteEvent(
                "transmute.junit5.ExpectedExceptionToAssertThrows",
                "ATest.java",
                "12:5",
                Outcome.SKIPPED,
                "expectMessage has no equivalent",
            ),
            RewriteEvent("transmute.cleanup.RemoveEmptyTests", "ATest.java", "-", Outcome.NOT_APPLICABLE),
        ],
        dependency_changes=[DependencyChange.add("org.junit.jupiter", "junit-jupiter", "5.x", "test")],
    )
    untouched = FileResult("BTest.java", "same", unit=Mock(), text="same", passes=1)
    return RunResult([changed, untouched])


class TestReportRun:
    def test_files_diagnostics_and_dependencies(self, console) -> None:
        TerminalRunReporter(console).report_run(_run())
        text = console.export_text()

        assert "ATest.java" in text and "BTest.java" in text
        assert "+org.junit.jupiter.api.Test" in text
        assert "-org.junit.Test" in text
        assert "7:5" in text
        assert "expectMessage has no equivalent" in text
        assert "transmute.cleanup.RemoveEmptyTests" not in text
        assert "org.junit.jupiter:junit-jupiter:5.x" in text
        assert "1 applied, 1 skipped" in text
        assert "1 changed, 0 failed, 2 files" in text

    def test_hide_skipped(self, console) -> None:
        TerminalRunReporter(console).report_run(_run(), show_skipped=False)
        text = console.export_text()

        assert "expectMessage has no equivalent" not in text
        assert "7:5" in text

    def test_failed_file(self, console) -> None:
        failed = FileResult(
            "Broken.java",
            "class {",
            events=[RewriteEvent("transmute.pipeline", "Broken.java", "-", Outcome.FAILED, "syntax error")],
        )
        TerminalRunReporter(console).report_run(RunResult([failed]))
        text = console.export_text()

        assert "failed" in text
        assert "syntax error" in text
        assert "0 changed, 1 failed, 1 files" in text
        assert "Dependency changes" not in text

    def test_unconverged_file(self, console) -> None:
        result = FileResult("A.java", "a", unit=Mock(), text="b", passes=3, converged=False)
        TerminalRunReporter(console).report_run(RunResult([result]))
        assert "not converged" in console.export_text()


class TestCatalogReports:
    def test_report_recipes(self, console) -> None:
        TerminalRunReporter(console).report_recipes(
            [{"name": "transmute.junit5.IgnoreToDisabled", "display_name": "Ignore to Disabled", "kind": "list"}]
        )
        text = console.export_text()
        assert "transmute.junit5.IgnoreToDisabled" in text
        assert "Ignore to Disabled" in text

    def test_report_description_lists_runs_in_order(self, console) -> None:
        TerminalRunReporter(console).report_description(
            {
                "name": "my.List",
                "display_name": "My list",
                "description": "Does two things.",
                "tags": ["junit"],
                "estimated_effort": 5,
                "kind": "list",
                "recipes": [
                    {"name": "transmute.cleanup.RemoveEmptyTests", "options": {}},
                    {"name": "transmute.java.ChangeType", "options": {"old_fully_qualified_type_name": "a.B"}},
                ],
            }
        )
        lines = console.export_text().splitlines()
        text = "\n".join(lines)

        assert "Runs, in order" in text
        assert "Tags: junit" in text
        assert "Estimated effort: 5 min" in text
        first = next(i for i, line in enumerate(lines) if "RemoveEmptyTests" in line)
        second = next(i for i, line in enumerate(lines) if "old_fully_qualified_type_name=a.B" in line)
        assert first < second
