"""CLI entry points for transmute - Thin Controller using Typer."""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import typer

from transmute.domain.config import ConfigurationLoader
from transmute.domain.errors import TransmuteError
from transmute.domain.protocols import (
    CatalogProtocol,
    FileSystemProtocol,
    FrontEndProtocol,
    PrinterProtocol,
    TelemetryPort,
)
from transmute.domain.types import TypeModel
from transmute.interface.reporters import RunReporter
from transmute.use_cases.run_pipeline import RunPipelineUseCase

EXIT_FAILURES = 1
EXIT_USAGE = 2


@dataclass(frozen=True)
class CLIDependencies:
    """Explicit dependencies for the CLI. All dependencies injected at composition root."""

    config_loader: ConfigurationLoader
    telemetry: TelemetryPort
    catalog: CatalogProtocol
    reporter: RunReporter
    filesystem: FileSystemProtocol
    printer: PrinterProtocol
    # Loading the stub classpath is deferred until a command transforms files.
    front_end_provider: Callable[[], FrontEndProtocol]
    type_model_provider: Callable[[], TypeModel]


class CLIAppFactory:
    """Creates the Typer app."""

    @staticmethod
    def create_app(deps: CLIDependencies) -> typer.Typer:
        """Create the Typer app with explicitly injected dependencies."""
        app = typer.Typer(
            name="transmute",
            help="transmute: rule-driven Java source rewrites. Run 'transmute run PATH' to migrate; 'transmute recipes' to list recipes.",
            add_completion=False,
        )

        def _session_start() -> None:
            deps.telemetry.handshake()

        @app.command()
        def run(
            path: Path = typer.Argument(..., help="Java file or directory to transform"),  # noqa: B008
            recipe: Optional[str] = typer.Option(
                None, "--recipe", "-r", help="Recipe or recipe list to run (default: [tool.transmute] recipe)"
            ),
            dry_run: bool = typer.Option(False, "--dry-run", help="Report changes without writing files"),
            workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Files processed in parallel"),
            max_passes: Optional[int] = typer.Option(
                None, "--max-passes", min=1, help="Upper bound on re-running the recipe list per file"
            ),
            hide_skipped: bool = typer.Option(False, "--hide-skipped", help="Only show applied and failed sites"),
        ) -> None:
            """Run a recipe over Java sources and report what changed."""
            _session_start()
            try:
                use_case = RunPipelineUseCase(
                    front_end=deps.front_end_provider(),
                    printer=deps.printer,
                    filesystem=deps.filesystem,
                    catalog=deps.catalog,
                    type_model=deps.type_model_provider(),
                    telemetry=deps.telemetry,
                    config_loader=deps.config_loader,
                )
                result = use_case.execute(
                    str(path),
                    recipe_name=recipe,
                    dry_run=dry_run,
                    workers=workers,
                    max_passes=max_passes,
                )
            except TransmuteError as error:
                deps.telemetry.error(str(error))
                sys.exit(EXIT_USAGE)
            deps.reporter.report_run(result, show_skipped=not hide_skipped)
            if result.has_failures():
                sys.exit(EXIT_FAILURES)

        @app.command()
        def recipes() -> None:
            """List every recipe and recipe list in the catalog."""
            rows = []
            for name in deps.catalog.names():
                description = deps.catalog.describe(name)
                rows.append(
                    {
                        "name": name,
                        "display_name": description.get("display_name", ""),
                        "kind": description.get("kind", ""),
                    }
                )
            deps.reporter.report_recipes(rows)

        @app.command()
        def describe(name: str = typer.Argument(..., help="Recipe or recipe list name")) -> None:
            """Show a recipe's metadata and the recipes it runs, in order."""
            try:
                description = deps.catalog.describe(name)
            except TransmuteError as error:
                deps.telemetry.error(str(error))
                sys.exit(EXIT_USAGE)
            deps.reporter.report_description(description)

        return app
