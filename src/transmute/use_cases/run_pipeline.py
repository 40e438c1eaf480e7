"""Use Case: Run Pipeline - apply a recipe list to every source file until nothing changes."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Optional

from transmute.domain.entities import FileResult, Outcome, RewriteEvent, RunResult
from transmute.domain.errors import FrontEndError
from transmute.domain.protocols import (
    CatalogProtocol,
    FileSystemProtocol,
    FrontEndProtocol,
    PrinterProtocol,
    TelemetryPort,
)
from transmute.domain.recipe import Recipe
from transmute.domain.tree import CompilationUnit
from transmute.domain.types import TypeModel

if TYPE_CHECKING:
    from transmute.domain.config import ConfigurationLoader

logger = logging.getLogger(__name__)

PIPELINE = "transmute.pipeline"


def line_separator(text: str) -> str:
    """The line ending of the first line: files written with CRLF are parsed as LF and written back with CRLF."""
    first = text.find("\n")
    return "\r\n" if first > 0 and text[first - 1] == "\r" else "\n"


class CancellationToken:
    """Cooperative cancellation, checked between files."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


class RunPipelineUseCase:
    """Parse, transform, print and (unless dry-running) write back every matching file."""

    def __init__(
        self,
        front_end: FrontEndProtocol,
        printer: PrinterProtocol,
        filesystem: FileSystemProtocol,
        catalog: CatalogProtocol,
        type_model: TypeModel,
        telemetry: TelemetryPort,
        config_loader: "ConfigurationLoader",
    ) -> None:
        self.front_end = front_end
        self.printer = printer
        self.filesystem = filesystem
        self.catalog = catalog
        self.type_model = type_model
        self.telemetry = telemetry
        self.config_loader = config_loader

    def execute(
        self,
        target_path: str,
        recipe_name: Optional[str] = None,
        dry_run: bool = False,
        workers: Optional[int] = None,
        max_passes: Optional[int] = None,
        token: Optional[CancellationToken] = None,
    ) -> RunResult:
        """
        Run ``recipe_name`` (default: the configured recipe) over ``target_path``.

        Args:
            target_path: A source file or a directory searched with the configured include glob.
            recipe_name: Catalog name of a recipe or recipe list.
            dry_run: Compute and report changes without writing files.
            workers: Number of files processed concurrently.
            max_passes: Upper bound on re-running the whole recipe list over one file.
            token: Checked before each file is started.

        Returns:
            RunResult with one FileResult per input file, in input order.
            Files not started because of cancellation are left out.
        """
        name = recipe_name or self.config_loader.recipe
        recipes = self.catalog.resolve(name)
        workers = workers or self.config_loader.workers
        max_passes = max_passes or self.config_loader.max_passes
        token = token or CancellationToken()

        resolved = self.filesystem.resolve_path(target_path)
        paths = self.filesystem.glob_source_files(resolved, self.config_loader.include)
        self.telemetry.step(f"Running {name} ({len(recipes)} recipes) on {len(paths)} files")

        def process(path: str) -> Optional[FileResult]:
            if token.is_cancelled:
                return None
            return self.run_file(path, recipes, max_passes, dry_run)

        if workers > 1 and len(paths) > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="transmute") as pool:
                outcomes = list(pool.map(process, paths))
        else:
            outcomes = [process(path) for path in paths]

        result = RunResult(files=[o for o in outcomes if o is not None], cancelled=token.is_cancelled)
        if result.cancelled:
            self.telemetry.warning(f"Run cancelled after {len(result.files)} of {len(paths)} files")
        changed = len(result.changed_files)
        verb = "would change" if dry_run else "changed"
        self.telemetry.step(f"Done: {verb} {changed} of {len(result.files)} files")
        return result

    def run_file(self, path: str, recipes: list[Recipe], max_passes: int, dry_run: bool = False) -> FileResult:
        """Transform one file. Never raises: failures become FAILED events on the result."""
        text = ""
        try:
            text = self.filesystem.read_text(path)
            newline = line_separator(text)
            result = FileResult(path=path, original_text=text)
            unit = self.front_end.parse(text.replace(newline, "\n"), path)
        except FrontEndError as error:
            self.telemetry.error(f"Excluded {path}: {error.reason}")
            return self._failed(path, text, error.reason)
        except OSError as error:
            self.telemetry.error(f"Cannot read {path}: {error}")
            return self._failed(path, text, str(error))

        try:
            final = self.transform(unit, recipes, max_passes, result)
            if final is not unit:
                result.text = self.printer.print(final).replace("\n", newline)
            else:
                result.text = text
            result.unit = final
            if result.changed and not dry_run:
                self.filesystem.write_text(path, result.text)
        except Exception as error:  # one file never aborts the run
            logger.exception("Unexpected failure while transforming %s", path)
            self.telemetry.error(f"Failed {path}: {error}")
            result.unit = None
            result.events.append(RewriteEvent(PIPELINE, path, "-", Outcome.FAILED, str(error)))
        return result

    def transform(
        self, unit: CompilationUnit, recipes: list[Recipe], max_passes: int, result: FileResult
    ) -> CompilationUnit:
        """Re-run the recipe list from the top until a full pass changes nothing."""
        current = unit
        for pass_number in range(1, max_passes + 1):
            result.passes = pass_number
            start = current
            for recipe in recipes:
                run = recipe.run(current, self.type_model)
                for event in run.events:
                    if event not in result.events:
                        result.events.append(event)
                for change in run.dependency_changes:
                    if change not in result.dependency_changes:
                        result.dependency_changes.append(change)
                result.imports_added.extend(i for i in run.imports_added if i not in result.imports_added)
                result.imports_removed.extend(i for i in run.imports_removed if i not in result.imports_removed)
                current = run.unit
            if current is start or current.deep_equals(start):
                logger.debug("%s: fixed point after %d passes", unit.path, pass_number)
                return current
        result.converged = False
        self.telemetry.warning(f"{unit.path}: no fixed point after {max_passes} passes; keeping the last result")
        return current

    @staticmethod
    def _failed(path: str, text: str, reason: str) -> FileResult:
        result = FileResult(path=path, original_text=text)
        result.events.append(RewriteEvent(PIPELINE, path, "-", Outcome.FAILED, reason))
        return result
