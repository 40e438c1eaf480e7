"""Import bookkeeping: requests collected during a traversal, reconciled once at the end."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from transmute.domain.tree import (
    CompilationUnit,
    Identifier,
    ImportDeclaration,
    MethodInvocation,
    RawExpression,
    RawStatement,
    TypeName,
    walk,
)
from transmute.domain.types import ClassType


_WORD = re.compile(r"[A-Za-z_$][\w$]*")


class RequestKind(Enum):
    ADD = "add"
    MAYBE_REMOVE = "maybe_remove"


@dataclass(frozen=True)
class ImportRequest:
    fqn: str
    member: Optional[str]
    kind: RequestKind

    def describe(self) -> str:
        if self.member:
            return f"import static {self.fqn}.{self.member}"
        return f"import {self.fqn}"


@dataclass(frozen=True)
class ReconciledImports:
    unit: CompilationUnit
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


@dataclass
class _References:
    types: set[str] = field(default_factory=set)
    static_members: set[tuple[str, str]] = field(default_factory=set)
    # Simple names that did not resolve; they keep any import that could supply them.
    unresolved: set[str] = field(default_factory=set)

    @classmethod
    def scan(cls, unit: CompilationUnit) -> "_References":
        found = cls()
        for node in walk(unit):
            if isinstance(node, ImportDeclaration):
                continue
            if isinstance(node, TypeName):
                found._add_type_name(node)
            elif isinstance(node, MethodInvocation) and node.select is None:
                method_type = node.method_type
                if method_type is None:
                    found.unresolved.add(node.name)
                elif method_type.is_static:
                    found.static_members.add((method_type.declaring_type.fqn, node.name))
            elif isinstance(node, Identifier):
                # Static fields are not distinguishable from other names here.
                found.unresolved.add(node.name)
            elif isinstance(node, (RawStatement, RawExpression)):
                found.unresolved.update(_WORD.findall(node.text))
        return found

    def _add_type_name(self, node: TypeName) -> None:
        head = node.name.split(".", 1)[0]
        if not isinstance(node.type, ClassType):
            self.unresolved.add(head)
            return
        fqn = node.type.fqn
        if node.name == fqn:
            return
        nested_depth = node.name.count(".")
        outer = fqn.rsplit(".", nested_depth)[0] if nested_depth else fqn
        self.types.add(outer)


def _package_of(fqn: str) -> str:
    return fqn.rsplit(".", 1)[0] if "." in fqn else ""


class ImportLedger:
    """
    Per-traversal list of import requests.

    An added import appears only if the final tree references the symbol and
    nothing already makes it visible. A removal happens only when nothing in
    the final tree (including unresolved names) could still need it.
    """

    def __init__(self) -> None:
        self._requests: list[ImportRequest] = []

    def __len__(self) -> int:
        return len(self._requests)

    @property
    def requests(self) -> tuple[ImportRequest, ...]:
        return tuple(self._requests)

    def request_add(self, fqn: str, member: Optional[str] = None) -> None:
        request = ImportRequest(fqn, member, RequestKind.ADD)
        if request not in self._requests:
            self._requests.append(request)

    def request_remove_if_unused(self, fqn: str, member: Optional[str] = None) -> None:
        request = ImportRequest(fqn, member, RequestKind.MAYBE_REMOVE)
        if request not in self._requests:
            self._requests.append(request)

    def reconcile(self, unit: CompilationUnit) -> ReconciledImports:
        if not self._requests:
            return ReconciledImports(unit)
        references = _References.scan(unit)
        imports = list(unit.imports)
        removed: list[str] = []
        added: list[str] = []
        for request in self._requests:
            if request.kind is not RequestKind.MAYBE_REMOVE:
                continue
            for index, declaration in enumerate(imports):
                if self._matches(declaration, request) and not self._still_used(declaration, references):
                    imports = self._without(imports, index)
                    removed.append(declaration.describe())
                    break
        for request in self._requests:
            if request.kind is not RequestKind.ADD:
                continue
            if not self._needs_import(request, unit, imports, references):
                continue
            declaration = ImportDeclaration(
                f"{request.fqn}.{request.member}" if request.member else request.fqn,
                static=request.member is not None,
            )
            imports = self._insert_sorted(imports, declaration)
            added.append(declaration.describe())
        self._requests.clear()
        if not added and not removed:
            return ReconciledImports(unit)
        return ReconciledImports(unit.with_changes(imports=tuple(imports)), tuple(added), tuple(removed))

    @staticmethod
    def _matches(declaration: ImportDeclaration, request: ImportRequest) -> bool:
        if request.member is not None:
            if not declaration.static:
                return False
            if request.member == "*":
                return declaration.wildcard and declaration.qualified_name == request.fqn
            return not declaration.wildcard and declaration.qualified_name == f"{request.fqn}.{request.member}"
        if declaration.static:
            return False
        if request.fqn.endswith(".*"):
            return declaration.wildcard and declaration.qualified_name == request.fqn[:-2]
        return not declaration.wildcard and declaration.qualified_name == request.fqn

    @staticmethod
    def _still_used(declaration: ImportDeclaration, references: _References) -> bool:
        if declaration.static:
            if declaration.wildcard:
                owner = declaration.qualified_name
                return any(o == owner for o, _ in references.static_members) or bool(references.unresolved)
            owner, member = declaration.type_name, declaration.member or ""
            return (owner, member) in references.static_members or member in references.unresolved
        if declaration.wildcard:
            package = declaration.qualified_name
            return any(_package_of(t) == package for t in references.types) or bool(references.unresolved)
        return (
            declaration.qualified_name in references.types
            or declaration.simple_name in references.unresolved
        )

    @staticmethod
    def _needs_import(
        request: ImportRequest,
        unit: CompilationUnit,
        imports: list[ImportDeclaration],
        references: _References,
    ) -> bool:
        if request.member is not None:
            if (request.fqn, request.member) not in references.static_members:
                return False
            for declaration in imports:
                if not declaration.static:
                    continue
                if declaration.wildcard and declaration.qualified_name == request.fqn:
                    return False
                if not declaration.wildcard and declaration.member == request.member:
                    return False
            return True
        if request.fqn not in references.types:
            return False
        package = _package_of(request.fqn)
        if package in ("java.lang", unit.package_name or ""):
            return False
        simple = request.fqn.rsplit(".", 1)[-1]
        for declaration in imports:
            if declaration.static:
                continue
            if declaration.wildcard and declaration.qualified_name == package:
                return False
            if not declaration.wildcard and declaration.simple_name == simple:
                # Either already imported or the simple name is taken by another type.
                return False
        return True

    @staticmethod
    def _without(imports: list[ImportDeclaration], index: int) -> list[ImportDeclaration]:
        removed = imports[index]
        remaining = imports[:index] + imports[index + 1:]
        if index < len(remaining):
            following = remaining[index]
            if removed.blank_lines_before > following.blank_lines_before:
                remaining[index] = following.with_changes(
                    blank_lines_before=removed.blank_lines_before, source=following.source
                )
        return remaining

    @staticmethod
    def _insert_sorted(
        imports: list[ImportDeclaration], declaration: ImportDeclaration
    ) -> list[ImportDeclaration]:
        group = [i for i, existing in enumerate(imports) if existing.static == declaration.static]
        result = list(imports)
        if not group:
            if declaration.static:
                result.append(declaration.with_changes(blank_lines_before=1 if result else 0))
                return result
            # Non-static imports precede the static block.
            first_static = result[0] if result else None
            if first_static is not None:
                result[0] = first_static.with_changes(blank_lines_before=1, source=first_static.source)
            result.insert(0, declaration)
            return result
        for index in group:
            existing = result[index]
            if existing.qualified_name <= declaration.qualified_name:
                continue
            previous = result[index - 1] if index > 0 else None
            if (
                existing.blank_lines_before
                and previous is not None
                and previous.static == declaration.static
                and _root(previous) == _root(declaration) != _root(existing)
            ):
                result.insert(index, declaration)
                return result
            result[index] = existing.with_changes(blank_lines_before=0, source=existing.source)
            result.insert(index, declaration.with_changes(blank_lines_before=existing.blank_lines_before))
            return result
        result.insert(group[-1] + 1, declaration)
        return result


def _root(declaration: ImportDeclaration) -> str:
    return declaration.qualified_name.split(".", 1)[0]
