"""General-purpose Java refactorings used by the migration lists."""

import dataclasses
from typing import Any

from transmute.domain.entities import Outcome
from transmute.domain.recipe import Recipe
from transmute.domain.search import UsesType
from transmute.domain.tree import CompilationUnit, ImportDeclaration, MethodInvocation, TypeName
from transmute.domain.types import ClassType
from transmute.domain.visitor import RecipeVisitor


class ChangeType(Recipe):
    """
    Change every reference to one type into a reference to another.

    Type names written fully qualified stay fully qualified; simple names are
    renamed and the imports follow. Static imports of the old type are
    rewritten in place so that statically imported members keep resolving.
    """

    name = "transmute.java.ChangeType"
    display_name = "Change type"
    description = "Change a given type to another."

    def __init__(self, old_fully_qualified_type_name: str, new_fully_qualified_type_name: str) -> None:
        super().__init__()
        if not old_fully_qualified_type_name or not new_fully_qualified_type_name:
            raise ValueError("ChangeType needs both the old and the new fully qualified type name")
        self.old_fqn = old_fully_qualified_type_name
        self.new_fqn = new_fully_qualified_type_name

    @property
    def options(self) -> dict[str, Any]:
        return {
            "old_fully_qualified_type_name": self.old_fqn,
            "new_fully_qualified_type_name": self.new_fqn,
        }

    def is_applicable(self, unit: CompilationUnit) -> bool:
        return UsesType(self.old_fqn)(unit)

    def get_visitor(self) -> RecipeVisitor:
        return ChangeTypeVisitor(self.old_fqn, self.new_fqn)


class ChangeTypeVisitor(RecipeVisitor):
    def __init__(self, old_fqn: str, new_fqn: str) -> None:
        super().__init__()
        self.old_fqn = old_fqn
        self.new_fqn = new_fqn
        self.old_simple = old_fqn.rsplit(".", 1)[-1]
        self.new_simple = new_fqn.rsplit(".", 1)[-1]

    def _renamed(self, fqn: str) -> str:
        return self.new_fqn + fqn[len(self.old_fqn):]

    def _is_old(self, fqn: str) -> bool:
        return fqn == self.old_fqn or fqn.startswith(self.old_fqn + ".")

    def leave_ImportDeclaration(self, original_node: ImportDeclaration, updated_node: ImportDeclaration) -> Any:
        if not updated_node.static or not self._is_old(updated_node.type_name):
            return updated_node
        self.report(Outcome.APPLIED, f"static import moved to {self.new_fqn}", original_node)
        return updated_node.with_changes(qualified_name=self._renamed(updated_node.qualified_name))

    def leave_TypeName(self, original_node: TypeName, updated_node: TypeName) -> Any:
        java_type = updated_node.type
        if not isinstance(java_type, ClassType) or not self._is_old(java_type.fqn):
            return updated_node
        written = updated_node.name
        if self._is_old(written):
            renamed = self._renamed(written)
        else:
            head, _, rest = written.partition(".")
            if head != self.old_simple:
                return updated_node
            renamed = self.new_simple + ("." + rest if rest else "")
            self.maybe_remove_import(self.old_fqn)
            self.maybe_add_import(self.new_fqn)
        self.report(Outcome.APPLIED, f"{written} -> {renamed}", original_node)
        return updated_node.with_changes(
            name=renamed,
            type=dataclasses.replace(java_type, fqn=self._renamed(java_type.fqn)),
        )

    def leave_MethodInvocation(self, original_node: MethodInvocation, updated_node: MethodInvocation) -> Any:
        method_type = updated_node.method_type
        if method_type is None or not self._is_old(method_type.declaring_type.fqn):
            return updated_node
        declaring = method_type.declaring_type
        moved = dataclasses.replace(
            method_type, declaring_type=dataclasses.replace(declaring, fqn=self._renamed(declaring.fqn))
        )
        return updated_node.with_changes(method_type=moved)
