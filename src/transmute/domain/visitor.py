"""
Traversal engine for recipes.

``RecipeVisitor`` is a libcst ``CSTTransformer`` over the Java tree: hooks
are ``visit_<Node>(node)`` and ``leave_<Node>(original_node, updated_node)``,
and a leave hook replaces a node by returning something else
(``cst.RemoveFromParent()`` deletes it, ``cst.FlattenSentinel`` splices
several nodes). On top of that the visitor tracks the cursor, owns the
per-traversal message bag and import ledger, and wraps template synthesis.
"""

import logging
import weakref
from dataclasses import dataclass, field
from typing import Any, Optional, TypeVar

import libcst as cst

from transmute.domain.attribution import TypeAttributor
from transmute.domain.coordinates import Coordinate
from transmute.domain.cursor import Cursor, MessageBag
from transmute.domain.entities import Outcome, RewriteEvent
from transmute.domain.errors import TemplateError
from transmute.domain.imports import ImportLedger, ReconciledImports
from transmute.domain.template import Binding, SynthesisSite, Template, TemplateSynthesizer
from transmute.domain.tree import ClassDeclaration, CompilationUnit, JNode
from transmute.domain.types import TypeModel

logger = logging.getLogger(__name__)

N = TypeVar("N", bound=JNode)

_MISSING = object()


@dataclass
class TraversalResult:
    unit: CompilationUnit
    events: list[RewriteEvent] = field(default_factory=list)
    imports_added: tuple[str, ...] = ()
    imports_removed: tuple[str, ...] = ()


class RecipeVisitor(cst.CSTTransformer):
    """Base class for every recipe's visitor. One instance serves one traversal at a time."""

    def __init__(self) -> None:
        super().__init__()
        self.recipe_name = type(self).__name__
        self.synthesizer = TemplateSynthesizer()
        self._reset(None, TypeModel())

    def _reset(self, unit: Optional[CompilationUnit], model: TypeModel) -> None:
        self._unit = unit
        self._model = model
        self._site_model: Optional[TypeModel] = None
        self._cursor: Optional[Cursor] = None
        self._bag = MessageBag()
        self._ledger = ImportLedger()
        self._superseded: "weakref.WeakSet[JNode]" = weakref.WeakSet()
        self.events: list[RewriteEvent] = []

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def transform(self, unit: CompilationUnit, model: Optional[TypeModel] = None) -> TraversalResult:
        """Traverse ``unit`` and reconcile imports once."""
        traversed = self.traverse(unit, model)
        return self.reconcile(traversed)

    def traverse(self, unit: CompilationUnit, model: Optional[TypeModel] = None) -> CompilationUnit:
        self._reset(unit, model or TypeModel())
        updated = unit.visit(self)
        if not isinstance(updated, CompilationUnit):
            raise TypeError(f"{self.recipe_name} replaced the compilation unit with {type(updated).__name__}")
        leaked = len(self._bag)
        if leaked:
            logger.debug("%s: %d unread messages discarded", self.recipe_name, leaked)
        return updated

    def reconcile(self, unit: CompilationUnit) -> TraversalResult:
        reconciled: ReconciledImports = self._ledger.reconcile(unit)
        events = list(self.events)
        self._cursor = None
        self._bag = MessageBag()
        return TraversalResult(reconciled.unit, events, reconciled.added, reconciled.removed)

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def on_visit(self, node: cst.CSTNode) -> bool:
        if isinstance(node, JNode):
            self._cursor = self._cursor.push(node) if self._cursor else Cursor(node)
        return super().on_visit(node)

    def on_leave(self, original_node: cst.CSTNode, updated_node: cst.CSTNode) -> Any:  # type: ignore[override]
        result = super().on_leave(original_node, updated_node)
        if isinstance(original_node, JNode):
            self._bag.discard(original_node.node_id)
            if self._cursor is not None:
                self._cursor = self._cursor.parent
        return result

    @property
    def cursor(self) -> Cursor:
        if self._cursor is None:
            raise RuntimeError("the cursor is only available during a traversal")
        return self._cursor

    @property
    def unit(self) -> Optional[CompilationUnit]:
        """The compilation unit as it was when this traversal started."""
        return self._unit

    @property
    def type_model(self) -> TypeModel:
        return self._model

    def enclosing(self, node_type: type[N]) -> Optional[N]:
        return self.cursor.first_enclosing(node_type)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def put_message_on_first_enclosing(self, node_type: type[JNode], key: str, value: Any) -> bool:
        """Store ``value`` on the nearest ancestor of ``node_type``; False if there is none."""
        owner = self.cursor.first_enclosing(node_type)
        if owner is None:
            return False
        self._bag.put(owner.node_id, key, value)
        return True

    def get_message_on_first_enclosing(self, node_type: type[JNode], key: str, default: Any = None) -> Any:
        owner = self.cursor.first_enclosing(node_type)
        if owner is None:
            return default
        return self._bag.get(owner.node_id, key, default)

    def poll_message(self, key: str, default: Any = None) -> Any:
        """Remove and return the message stored under the node being visited."""
        return self._bag.poll(self.cursor.value.node_id, key, default)

    def get_nearest_message(self, key: str, default: Any = None) -> Any:
        for frame in self.cursor.frames():
            value = self._bag.get(frame.value.node_id, key, _MISSING)
            if value is not _MISSING:
                return value
        return default

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def maybe_add_import(self, fqn: str, member: Optional[str] = None) -> None:
        self._ledger.request_add(fqn, member)

    def maybe_remove_import(self, fqn: str, member: Optional[str] = None) -> None:
        self._ledger.request_remove_if_unused(fqn, member)

    # ------------------------------------------------------------------
    # Templates and diagnostics
    # ------------------------------------------------------------------

    def apply_template(
        self,
        template: Template,
        coordinate: Coordinate,
        *args: Binding,
        enclosing_class: Optional[ClassDeclaration] = None,
    ) -> Any:
        """
        Synthesize ``template`` at ``coordinate``.

        Returns the replacement node (see ``TemplateSynthesizer.synthesize``)
        or ``None`` when synthesis failed; the failure is logged and recorded
        as a SKIPPED event and the caller keeps the original code.
        """
        site = SynthesisSite(
            model=self._synthesis_model(),
            unit=self._unit,
            path=self.cursor.path() if self._cursor is not None else (),
            enclosing_class=enclosing_class,
            superseded=self._superseded,
        )
        try:
            result = self.synthesizer.synthesize(template, coordinate, site, *args)
        except TemplateError as error:
            logger.debug("%s: template not applied at %s: %s", self.recipe_name, coordinate.target.location, error)
            self.report(Outcome.SKIPPED, str(error), coordinate.target)
            return None
        for fqn in template.imports:
            if not fqn.endswith(".*"):
                self.maybe_add_import(fqn)
        for qualified in template.static_imports:
            owner, member = qualified.rsplit(".", 1)
            if member != "*":
                self.maybe_add_import(owner, member)
        return result

    def _synthesis_model(self) -> TypeModel:
        if self._site_model is None:
            if self._unit is None:
                self._site_model = self._model
            else:
                attributor = TypeAttributor(self._model)
                self._site_model = self._model.merged(attributor.declared_classes(self._unit))
        return self._site_model

    def report(self, outcome: Outcome, detail: str = "", node: Optional[JNode] = None) -> None:
        if node is None and self._cursor is not None:
            node = self._cursor.value
        self.events.append(
            RewriteEvent(
                recipe=self.recipe_name,
                path=self._unit.path if self._unit is not None else "",
                location=node.location if node is not None else "?",
                outcome=outcome,
                detail=detail,
            )
        )
