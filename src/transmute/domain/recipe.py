"""Recipe base class: metadata, applicability gate, visitor factory and templates."""

import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping, Optional

from transmute.domain.entities import DependencyChange, Outcome, RecipeState, RewriteEvent
from transmute.domain.template import Template, TemplateCompiler, TemplateKind
from transmute.domain.tree import CompilationUnit
from transmute.domain.types import TypeModel
from transmute.domain.visitor import RecipeVisitor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateSpec:
    """Uncompiled template declaration, compiled once by ``Recipe.prepare``."""

    text: str
    kind: TemplateKind = TemplateKind.STATEMENTS
    imports: tuple[str, ...] = ()
    static_imports: tuple[str, ...] = ()


@dataclass
class RecipeRun:
    """Result of one recipe over one file."""

    recipe: str
    state: RecipeState
    unit: CompilationUnit
    changed: bool = False
    events: list[RewriteEvent] = field(default_factory=list)
    imports_added: tuple[str, ...] = ()
    imports_removed: tuple[str, ...] = ()
    dependency_changes: list[DependencyChange] = field(default_factory=list)


class Recipe:
    """
    A named, self-contained rewrite.

    Subclasses set the metadata class attributes, declare their templates in
    ``TEMPLATES`` and implement ``get_visitor``. Instances hold only their
    options and compiled templates, so one instance is shared by every file
    and worker.
    """

    name: ClassVar[str] = ""
    display_name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    tags: ClassVar[tuple[str, ...]] = ()
    # Minutes a developer would need to make the change by hand.
    estimated_effort: ClassVar[Optional[int]] = None
    TEMPLATES: ClassVar[Mapping[str, TemplateSpec]] = {}

    def __init__(self) -> None:
        self._templates: Optional[dict[str, Template]] = None if self.TEMPLATES else {}

    def __repr__(self) -> str:
        options = ", ".join(f"{k}={v!r}" for k, v in self.options.items())
        return f"{type(self).__name__}({options})"

    @property
    def options(self) -> dict[str, Any]:
        """Constructor arguments, as given in a catalog entry."""
        return {}

    @property
    def templates(self) -> dict[str, Template]:
        if self._templates is None:
            raise RuntimeError(f"{self.name} has templates and must be prepared before use")
        return self._templates

    @property
    def is_prepared(self) -> bool:
        return self._templates is not None

    def prepare(self, compiler: TemplateCompiler) -> "Recipe":
        """Compile every declared template. Raises TemplateSyntaxError for a broken template."""
        if self._templates is None:
            self._templates = {
                key: compiler.compile(spec.text, spec.kind, spec.imports, spec.static_imports)
                for key, spec in self.TEMPLATES.items()
            }
        return self

    def is_applicable(self, unit: CompilationUnit) -> bool:
        return True

    def get_visitor(self) -> Optional[RecipeVisitor]:
        """A fresh visitor for one traversal; None for recipes that only emit side effects."""
        return None

    def dependency_changes(self, unit: CompilationUnit) -> list[DependencyChange]:
        return []

    def run(self, unit: CompilationUnit, model: TypeModel) -> RecipeRun:
        """Gate, traverse and reconcile one file."""
        if not self.is_applicable(unit):
            logger.debug("%s: %s not applicable", unit.path, self.name)
            event = RewriteEvent(self.name, unit.path, "-", Outcome.NOT_APPLICABLE)
            return RecipeRun(self.name, RecipeState.SKIPPED, unit, events=[event])
        visitor = self.get_visitor()
        current = unit
        events: list[RewriteEvent] = []
        added: tuple[str, ...] = ()
        removed: tuple[str, ...] = ()
        if visitor is not None:
            visitor.recipe_name = self.name
            state = RecipeState.VISITING
            logger.debug("%s: %s %s", unit.path, self.name, state.value)
            traversed = visitor.traverse(unit, model)
            state = RecipeState.RECONCILING
            logger.debug("%s: %s %s", unit.path, self.name, state.value)
            result = visitor.reconcile(traversed)
            current, events = result.unit, result.events
            added, removed = result.imports_added, result.imports_removed
        changed = current is not unit and not current.deep_equals(unit)
        return RecipeRun(
            recipe=self.name,
            state=RecipeState.DONE,
            unit=current if changed else unit,
            changed=changed,
            events=events,
            imports_added=added,
            imports_removed=removed,
            dependency_changes=self.dependency_changes(current),
        )
