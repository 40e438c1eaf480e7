"""Domain entities: diagnostics, dependency side effects and run results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from transmute.domain.tree import CompilationUnit


class Outcome(Enum):
    """What happened when a recipe met a site (or a whole file)."""

    APPLIED = "applied"
    SKIPPED = "skipped"
    NOT_APPLICABLE = "not_applicable"
    FAILED = "failed"


class RecipeState(Enum):
    """Per file and recipe: PENDING -> SKIPPED | VISITING -> RECONCILING -> DONE."""

    PENDING = "pending"
    SKIPPED = "skipped"
    VISITING = "visiting"
    RECONCILING = "reconciling"
    DONE = "done"


@dataclass(frozen=True)
class RewriteEvent:
    """One diagnostic produced while running a recipe over a file."""

    recipe: str
    path: str
    location: str
    outcome: Outcome
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.path}:{self.location} [{self.recipe}] {self.outcome.value}: {self.detail}"


@dataclass(frozen=True)
class DependencyChange:
    """Opaque build-metadata side effect; applied by whatever owns the build file."""

    kind: str
    group_id: str
    artifact_id: str
    version: Optional[str] = None
    scope: Optional[str] = None

    ADD = "add"
    REMOVE = "remove"

    @classmethod
    def add(
        cls,
        group_id: str,
        artifact_id: str,
        version: Optional[str] = None,
        scope: Optional[str] = None,
    ) -> "DependencyChange":
        return cls(cls.ADD, group_id, artifact_id, version, scope)

    @classmethod
    def remove(cls, group_id: str, artifact_id: str) -> "DependencyChange":
        return cls(cls.REMOVE, group_id, artifact_id)

    @property
    def coordinates(self) -> str:
        text = f"{self.group_id}:{self.artifact_id}"
        if self.version:
            text += f":{self.version}"
        return text

    def __str__(self) -> str:
        suffix = f" ({self.scope})" if self.scope else ""
        return f"{self.kind} {self.coordinates}{suffix}"


@dataclass
class FileResult:
    """Outcome of the whole recipe list on one file."""

    path: str
    original_text: str
    unit: Optional[CompilationUnit] = None
    text: Optional[str] = None
    passes: int = 0
    converged: bool = True
    imports_added: list[str] = field(default_factory=list)
    imports_removed: list[str] = field(default_factory=list)
    events: list[RewriteEvent] = field(default_factory=list)
    dependency_changes: list[DependencyChange] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.unit is None or any(e.outcome is Outcome.FAILED for e in self.events)

    @property
    def changed(self) -> bool:
        return self.text is not None and self.text != self.original_text


@dataclass
class RunResult:
    """Results for every input file, in input order."""

    files: list[FileResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def events(self) -> list[RewriteEvent]:
        return [event for result in self.files for event in result.events]

    @property
    def changed_files(self) -> list[FileResult]:
        return [result for result in self.files if result.changed]

    @property
    def failed_files(self) -> list[FileResult]:
        return [result for result in self.files if result.failed]

    @property
    def dependency_changes(self) -> list[DependencyChange]:
        """Every side effect requested by any file, de-duplicated, first occurrence first."""
        seen: list[DependencyChange] = []
        for result in self.files:
            for change in result.dependency_changes:
                if change not in seen:
                    seen.append(change)
        return seen

    def has_failures(self) -> bool:
        return bool(self.failed_files)
