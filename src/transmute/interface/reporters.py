"""Protocol for run reporting - no infrastructure imports."""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from transmute.domain.entities import RunResult


class RunReporter(Protocol):
    """Protocol for reporting pipeline results and catalog contents."""

    def report_run(self, result: "RunResult", show_skipped: bool = True) -> None:
        """Report per-file outcomes, diagnostics and dependency changes."""
        ...

    def report_recipes(self, rows: list[dict[str, object]]) -> None:
        """List catalog entries (name, display name, kind)."""
        ...

    def report_description(self, description: dict[str, object]) -> None:
        """Show one recipe's metadata and its flattened recipe list."""
        ...
