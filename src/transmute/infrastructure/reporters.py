"""Terminal reporter implementation using rich tables."""

from collections import Counter
from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.table import Table

from transmute.domain.entities import Outcome

if TYPE_CHECKING:
    from transmute.domain.entities import FileResult, RunResult

_OUTCOME_STYLES = {
    Outcome.APPLIED: "green",
    Outcome.SKIPPED: "yellow",
    Outcome.NOT_APPLICABLE: "dim",
    Outcome.FAILED: "bold red",
}


class TerminalRunReporter:
    """Renders run results and catalog listings. Implements RunReporter."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def report_run(self, result: "RunResult", show_skipped: bool = True) -> None:
        self._render_files(result)
        self._render_events(result, show_skipped)
        self._render_dependency_changes(result)
        failed = len(result.failed_files)
        summary = f"{len(result.changed_files)} changed, {failed} failed, {len(result.files)} files"
        self.console.print(f"[bold]{summary}[/]" if not failed else f"[bold red]{summary}[/]")

    def _render_files(self, result: "RunResult") -> None:
        table = Table(title="Files")
        table.add_column("File")
        table.add_column("Status")
        table.add_column("Passes", justify="right")
        table.add_column("Imports")
        for file_result in result.files:
            table.add_row(
                file_result.path,
                self._status(file_result),
                str(file_result.passes),
                self._imports(file_result),
            )
        self.console.print(table)

    @staticmethod
    def _status(file_result: "FileResult") -> str:
        if file_result.failed:
            return "[bold red]failed[/]"
        if not file_result.converged:
            return "[yellow]not converged[/]"
        return "[green]changed[/]" if file_result.changed else "unchanged"

    @staticmethod
    def _imports(file_result: "FileResult") -> str:
        parts = [f"+{name}" for name in file_result.imports_added]
        parts.extend(f"-{name}" for name in file_result.imports_removed)
        return "\n".join(parts)

    def _render_events(self, result: "RunResult", show_skipped: bool) -> None:
        hidden = {Outcome.NOT_APPLICABLE} if show_skipped else {Outcome.NOT_APPLICABLE, Outcome.SKIPPED}
        events = [e for e in result.events if e.outcome not in hidden]
        if not events:
            return
        table = Table(title="Diagnostics")
        table.add_column("Recipe")
        table.add_column("Location")
        table.add_column("Outcome")
        table.add_column("Detail")
        for event in events:
            style = _OUTCOME_STYLES[event.outcome]
            table.add_row(
                event.recipe,
                f"{event.path}:{event.location}",
                f"[{style}]{event.outcome.value}[/]",
                event.detail,
            )
        self.console.print(table)
        counts = Counter(e.outcome.value for e in events)
        self.console.print(", ".join(f"{n} {outcome}" for outcome, n in sorted(counts.items())))

    def _render_dependency_changes(self, result: "RunResult") -> None:
        changes = result.dependency_changes
        if not changes:
            return
        table = Table(title="Dependency changes")
        table.add_column("Change")
        table.add_column("Dependency")
        table.add_column("Scope")
        for change in changes:
            table.add_row(change.kind, change.coordinates, change.scope or "")
        self.console.print(table)

    def report_recipes(self, rows: list[dict[str, object]]) -> None:
        table = Table(title="Recipes")
        table.add_column("Name")
        table.add_column("Display name")
        table.add_column("Kind")
        for row in rows:
            table.add_row(str(row["name"]), str(row.get("display_name", "")), str(row.get("kind", "")))
        self.console.print(table)

    def report_description(self, description: dict[str, object]) -> None:
        self.console.print(f"[bold]{description['name']}[/]")
        if description.get("display_name"):
            self.console.print(str(description["display_name"]))
        if description.get("description"):
            self.console.print(f"[dim]{description['description']}[/]")
        tags = description.get("tags") or []
        if tags:
            self.console.print("Tags: " + ", ".join(str(t) for t in tags))  # type: ignore[union-attr]
        if description.get("estimated_effort") is not None:
            self.console.print(f"Estimated effort: {description['estimated_effort']} min")
        table = Table(title="Runs, in order")
        table.add_column("#", justify="right")
        table.add_column("Recipe")
        table.add_column("Options")
        for index, entry in enumerate(description.get("recipes") or [], start=1):  # type: ignore[arg-type]
            options = ", ".join(f"{k}={v}" for k, v in entry["options"].items())
            table.add_row(str(index), entry["name"], options)
        self.console.print(table)
