"""Build-metadata side effects. These recipes never touch the tree."""

from typing import Any, Optional

from transmute.domain.entities import DependencyChange
from transmute.domain.recipe import Recipe
from transmute.domain.search import UsesType
from transmute.domain.tree import CompilationUnit


class AddDependency(Recipe):
    """Request a dependency, optionally only for files that use a given type."""

    name = "transmute.build.AddDependency"
    display_name = "Add dependency"
    description = "Record that the build needs a dependency, optionally only when a type is in use."

    def __init__(
        self,
        group_id: str,
        artifact_id: str,
        version: Optional[str] = None,
        scope: Optional[str] = None,
        only_if_using: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.group_id = group_id
        self.artifact_id = artifact_id
        self.version = version
        self.scope = scope
        self.only_if_using = only_if_using

    @property
    def options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"group_id": self.group_id, "artifact_id": self.artifact_id}
        for key in ("version", "scope", "only_if_using"):
            value = getattr(self, key)
            if value is not None:
                options[key] = value
        return options

    def is_applicable(self, unit: CompilationUnit) -> bool:
        return self.only_if_using is None or UsesType(self.only_if_using)(unit)

    def dependency_changes(self, unit: CompilationUnit) -> list[DependencyChange]:
        return [DependencyChange.add(self.group_id, self.artifact_id, self.version, self.scope)]


class RemoveDependency(Recipe):
    name = "transmute.build.RemoveDependency"
    display_name = "Remove dependency"
    description = "Record that the build no longer needs a dependency."

    def __init__(self, group_id: str, artifact_id: str) -> None:
        super().__init__()
        self.group_id = group_id
        self.artifact_id = artifact_id

    @property
    def options(self) -> dict[str, Any]:
        return {"group_id": self.group_id, "artifact_id": self.artifact_id}

    def dependency_changes(self, unit: CompilationUnit) -> list[DependencyChange]:
        return [DependencyChange.remove(self.group_id, self.artifact_id)]
