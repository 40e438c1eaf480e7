"""
Code templates: compiled once when a recipe is prepared, bound per site.

Template text is Java with positional slots::

    #{any()}              any expression
    #{any(java.lang.Class)}  an expression whose type is assignable to the given type
    #{identifier()}       a name (str) or an existing Identifier / TypeName
    #{statements()}       a Block or a sequence of statements

Synthesis substitutes the bound sub-trees, attributes every node the
template itself introduced, and splices the result at a coordinate.
"""

import re
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol, Sequence, Union

import libcst as cst

from transmute.domain.attribution import FragmentScope, ImportScope, TypeAttributor, visible_variables
from transmute.domain.coordinates import Coordinate, CoordinateKind
from transmute.domain.errors import FrontEndError, StaleCoordinateError, TemplateError, TemplateSyntaxError
from transmute.domain.tree import (
    Block,
    ClassDeclaration,
    CompilationUnit,
    Expression,
    ExpressionStatement,
    Identifier,
    JNode,
    MethodDeclaration,
    MethodInvocation,
    TypeName,
    next_node_id,
    walk,
)
from transmute.domain.types import PRIMITIVE_KEYWORDS, ClassType, JavaType, Primitive, TypeModel

_SLOT = re.compile(r"#\{([^}]*)\}")
_SLOT_BODY = re.compile(r"^\s*(any|identifier|statements)\s*\(\s*([\w.$\[\]]*)\s*\)\s*$")
_SLOT_NAME = re.compile(r"^__slot\d+__$")


class TemplateKind(Enum):
    EXPRESSION = "expression"
    STATEMENTS = "statements"
    MEMBERS = "members"


class SlotKind(Enum):
    ANY = "any"
    IDENTIFIER = "identifier"
    STATEMENTS = "statements"


@dataclass(frozen=True)
class Slot:
    index: int
    kind: SlotKind
    type_name: Optional[str] = None

    @property
    def placeholder(self) -> str:
        return f"__slot{self.index}__"

    @property
    def required_type(self) -> Optional[JavaType]:
        if self.type_name is None:
            return None
        if self.type_name in PRIMITIVE_KEYWORDS:
            return Primitive(self.type_name)
        return ClassType(self.type_name)


@dataclass(frozen=True)
class Template:
    """A validated template. Immutable and shared by every worker."""

    text: str
    kind: TemplateKind
    slots: tuple[Slot, ...]
    fragment: tuple[JNode, ...]
    imports: tuple[str, ...] = ()
    static_imports: tuple[str, ...] = ()


class FragmentParser(Protocol):
    def parse_fragment(self, text: str, kind: str) -> tuple[JNode, ...]:
        """Parse code that is an expression, a statement list or a list of class members."""
        ...


class TemplateCompiler:
    """First stage: rewrite slots to placeholders, parse, and validate."""

    def __init__(self, parser: FragmentParser) -> None:
        self.parser = parser

    def compile(
        self,
        text: str,
        kind: TemplateKind = TemplateKind.STATEMENTS,
        imports: Sequence[str] = (),
        static_imports: Sequence[str] = (),
    ) -> Template:
        slots: list[Slot] = []

        def replace(match: "re.Match[str]") -> str:
            parsed = _SLOT_BODY.match(match.group(1))
            if parsed is None:
                raise TemplateSyntaxError(text, f"unknown slot #{{{match.group(1)}}}")
            slot_kind = SlotKind(parsed.group(1))
            type_name = parsed.group(2) or None
            if type_name is not None and slot_kind is not SlotKind.ANY:
                raise TemplateSyntaxError(text, f"only any() slots take a type: {match.group(0)}")
            slot = Slot(len(slots), slot_kind, type_name)
            slots.append(slot)
            if slot_kind is SlotKind.STATEMENTS:
                return "{ %s(); }" % slot.placeholder
            return slot.placeholder

        source = _SLOT.sub(replace, text)
        try:
            fragment = self.parser.parse_fragment(source, kind.value)
        except FrontEndError as error:
            raise TemplateSyntaxError(text, error.reason) from error
        if kind is TemplateKind.EXPRESSION and len(fragment) != 1:
            raise TemplateSyntaxError(text, "an expression template must produce exactly one expression")
        for slot in slots:
            occurrences = _count_placeholder(fragment, slot)
            if occurrences != 1:
                raise TemplateSyntaxError(
                    text, f"slot {slot.index} appears {occurrences} times after parsing"
                )
        return Template(text, kind, tuple(slots), fragment, tuple(imports), tuple(static_imports))


def _is_statements_placeholder(node: JNode) -> Optional[str]:
    if not isinstance(node, Block) or len(node.statements) != 1:
        return None
    statement = node.statements[0]
    if isinstance(statement, ExpressionStatement) and isinstance(statement.expression, MethodInvocation):
        call = statement.expression
        if call.select is None and not call.arguments and _SLOT_NAME.match(call.name):
            return call.name
    return None


def _count_placeholder(fragment: Sequence[JNode], slot: Slot) -> int:
    count = 0
    for root in fragment:
        statement_calls: set[int] = set()
        for node in walk(root):
            if slot.kind is SlotKind.STATEMENTS:
                if _is_statements_placeholder(node) == slot.placeholder:
                    count += 1
                continue
            if _is_statements_placeholder(node):
                statement_calls.update(n.node_id for n in walk(node))
            if node.node_id in statement_calls:
                continue
            if isinstance(node, (Identifier, TypeName)) and node.name == slot.placeholder:
                count += 1
            elif getattr(node, "name", None) == slot.placeholder and not isinstance(node, (Identifier, TypeName)):
                count += 1
    return count


class _Instantiate(cst.CSTTransformer):
    """Copies a compiled fragment with fresh node ids."""

    def on_leave(self, original_node: cst.CSTNode, updated_node: cst.CSTNode) -> cst.CSTNode:  # type: ignore[override]
        if isinstance(updated_node, JNode):
            return updated_node.with_changes(node_id=next_node_id(), source=None, span=None)
        return updated_node


Binding = Union[JNode, str, Sequence[JNode], None]


class _Substitute(cst.CSTTransformer):
    def __init__(self, slots: dict[str, tuple[Slot, Any]]) -> None:
        super().__init__()
        self.slots = slots
        self.bound_ids: set[int] = set()
        self._stack: list[JNode] = []

    def on_visit(self, node: cst.CSTNode) -> bool:
        if isinstance(node, JNode):
            self._stack.append(node)
        return super().on_visit(node)

    def on_leave(self, original_node: cst.CSTNode, updated_node: cst.CSTNode) -> Any:  # type: ignore[override]
        if isinstance(original_node, JNode):
            self._stack.pop()
        result = super().on_leave(original_node, updated_node)
        if isinstance(result, JNode) and not isinstance(result, (Identifier, TypeName)):
            name = getattr(result, "name", None)
            if isinstance(name, str) and name in self.slots:
                slot, value = self.slots[name]
                if slot.kind is SlotKind.IDENTIFIER:
                    return result.with_changes(name=_name_of(value))
        return result

    def leave_Identifier(self, original_node: Identifier, updated_node: Identifier) -> JNode:
        return self._replace_name(updated_node, type_position=False)

    def leave_TypeName(self, original_node: TypeName, updated_node: TypeName) -> JNode:
        return self._replace_name(updated_node, type_position=True)

    def _replace_name(self, node: Union[Identifier, TypeName], type_position: bool) -> JNode:
        if node.name not in self.slots:
            return node
        slot, value = self.slots[node.name]
        if isinstance(value, JNode):
            self.bound_ids.add(value.node_id)
            return value
        if type_position:
            return TypeName(_name_of(value))
        return Identifier(_name_of(value))

    def leave_Block(self, original_node: Block, updated_node: Block) -> Any:
        placeholder = _is_statements_placeholder(updated_node)
        if placeholder is None or placeholder not in self.slots:
            return updated_node
        _, value = self.slots[placeholder]
        statements = tuple(value.statements if isinstance(value, Block) else value)
        self.bound_ids.update(s.node_id for s in statements)
        parent = self._stack[-1] if self._stack else None
        if isinstance(parent, Block):
            return cst.FlattenSentinel(statements) if statements else cst.RemoveFromParent()
        if isinstance(value, Block):
            return value
        return Block(statements)


def _name_of(value: Any) -> str:
    if isinstance(value, str):
        return value
    return str(getattr(value, "name"))


@dataclass
class SynthesisSite:
    """
    What the synthesizer knows about the place it is splicing into.

    ``path`` is the traversal path (root first) at the moment of synthesis;
    ``enclosing_class`` overrides the innermost class when the caller has
    already rebuilt it; ``superseded`` records containers replaced by earlier
    splices in the same traversal.
    """

    model: TypeModel
    unit: Optional[CompilationUnit]
    path: Sequence[JNode] = ()
    enclosing_class: Optional[ClassDeclaration] = None
    superseded: "weakref.WeakSet[JNode]" = field(default_factory=weakref.WeakSet)


class TemplateSynthesizer:
    """Second stage: bind, attribute and splice."""

    def synthesize(self, template: Template, coordinate: Coordinate, site: SynthesisSite, *args: Binding) -> Any:
        """
        Return the node that replaces ``coordinate.target``: the new container
        for insertions, the new method for REPLACE_BODY, or the replacement
        (a node or a ``FlattenSentinel``) for REPLACE.
        """
        self._check_coordinate(template, coordinate, site)
        self._bind(template, args, site.model)
        substitute = _Substitute({s.placeholder: (s, v) for s, v in zip(template.slots, args)})
        nodes: list[JNode] = []
        for root in template.fragment:
            fresh = root.visit(_Instantiate())
            replaced = fresh.visit(substitute)
            if isinstance(replaced, cst.FlattenSentinel):
                nodes.extend(replaced.nodes)
            elif isinstance(replaced, JNode):
                nodes.append(replaced)
        scope = self._scope(template, coordinate, site)
        attributor = TypeAttributor(site.model)
        attributed: list[JNode] = []
        unresolved: list[str] = []
        for node in nodes:
            result, missing = attributor.attribute_fragment(node, scope, frozenset(substitute.bound_ids))
            attributed.append(result)
            unresolved.extend(missing)
        if unresolved:
            raise TemplateError(
                f"template symbols did not resolve: {', '.join(sorted(set(unresolved)))}", unresolved
            )
        return self._splice(template, coordinate, attributed, site)

    @staticmethod
    def _check_coordinate(template: Template, coordinate: Coordinate, site: SynthesisSite) -> None:
        target = coordinate.target
        if target in site.superseded:
            raise StaleCoordinateError(
                f"{type(target).__name__} at {target.location} was already replaced in this traversal"
            )
        if template.kind is TemplateKind.EXPRESSION:
            if coordinate.kind is not CoordinateKind.REPLACE or not isinstance(target, Expression):
                raise TemplateError("expression templates can only replace an expression")
        elif template.kind is TemplateKind.STATEMENTS:
            if coordinate.inserts_into_container and not isinstance(target, Block):
                raise TemplateError("statement templates insert into blocks")
            if coordinate.kind is CoordinateKind.REPLACE_BODY and not isinstance(target, MethodDeclaration):
                raise TemplateError("replace_body() requires a method declaration")
        elif template.kind is TemplateKind.MEMBERS:
            if coordinate.inserts_into_container and not isinstance(target, ClassDeclaration):
                raise TemplateError("member templates insert into class bodies")
            if coordinate.kind is CoordinateKind.REPLACE_BODY:
                raise TemplateError("member templates cannot replace a method body")
        if coordinate.kind in (CoordinateKind.BEFORE, CoordinateKind.AFTER):
            if not any(child is coordinate.anchor for child in _container_children(target)):
                raise StaleCoordinateError(
                    f"anchor is not a child of {type(target).__name__} at {target.location}"
                )

    @staticmethod
    def _bind(template: Template, args: Sequence[Binding], model: TypeModel) -> None:
        if len(args) != len(template.slots):
            raise TemplateError(f"template takes {len(template.slots)} arguments, got {len(args)}")
        for slot, value in zip(template.slots, args):
            if slot.kind is SlotKind.ANY:
                if not isinstance(value, Expression):
                    raise TemplateError(f"slot {slot.index} expects an expression, got {type(value).__name__}")
                required = slot.required_type
                if required is not None and not model.is_assignable(required, value.type):
                    raise TemplateError(
                        f"slot {slot.index} expects {slot.type_name}, got {value.type or 'an unresolved type'}"
                    )
            elif slot.kind is SlotKind.IDENTIFIER:
                if not isinstance(value, (str, Identifier, TypeName)):
                    raise TemplateError(f"slot {slot.index} expects a name, got {type(value).__name__}")
            elif not isinstance(value, Block) and not (
                isinstance(value, (list, tuple)) and all(isinstance(v, JNode) for v in value)
            ):
                raise TemplateError(f"slot {slot.index} expects statements, got {type(value).__name__}")

    @staticmethod
    def _scope(template: Template, coordinate: Coordinate, site: SynthesisSite) -> FragmentScope:
        path = list(site.path)
        if site.enclosing_class is not None:
            path.append(site.enclosing_class)
        container: Optional[JNode] = None
        stop_index: Optional[int] = None
        target = coordinate.target
        if isinstance(target, (Block, ClassDeclaration, MethodDeclaration)):
            container = target
            children = _container_children(target)
            if coordinate.kind is CoordinateKind.FIRST:
                stop_index = 0
            elif coordinate.kind in (CoordinateKind.BEFORE, CoordinateKind.AFTER):
                position = next(i for i, c in enumerate(children) if c is coordinate.anchor)
                stop_index = position + (1 if coordinate.kind is CoordinateKind.AFTER else 0)
            elif coordinate.kind is CoordinateKind.REPLACE_BODY:
                stop_index = 0
        classes = tuple(
            n.type.fqn for n in path if isinstance(n, ClassDeclaration) and isinstance(n.type, ClassType)
        )
        return FragmentScope(
            model=site.model,
            imports=ImportScope.from_unit(site.unit, template.imports, template.static_imports),
            enclosing_classes=_dedupe(classes),
            variables=visible_variables(path, container, stop_index),
        )

    @staticmethod
    def _splice(template: Template, coordinate: Coordinate, nodes: list[JNode], site: SynthesisSite) -> Any:
        target = coordinate.target
        if template.kind is TemplateKind.MEMBERS:
            nodes = [n.with_changes(blank_lines_before=1, source=n.source) for n in nodes]
        if coordinate.kind is CoordinateKind.REPLACE:
            site.superseded.add(target)
            if template.kind is TemplateKind.EXPRESSION or len(nodes) == 1:
                first = nodes[0]
                return first.with_changes(
                    comments=target.comments,
                    blank_lines_before=target.blank_lines_before,
                    trailing_comment=target.trailing_comment,
                    source=first.source,
                )
            return cst.FlattenSentinel(nodes) if nodes else cst.RemoveFromParent()
        if coordinate.kind is CoordinateKind.REPLACE_BODY:
            assert isinstance(target, MethodDeclaration)
            site.superseded.add(target)
            return target.with_changes(body=Block(tuple(nodes)))
        children = list(_container_children(target))
        if coordinate.kind is CoordinateKind.FIRST:
            position = 0
        elif coordinate.kind is CoordinateKind.LAST:
            position = len(children)
        else:
            anchor_index = next(i for i, c in enumerate(children) if c is coordinate.anchor)
            position = anchor_index + (1 if coordinate.kind is CoordinateKind.AFTER else 0)
        children[position:position] = nodes
        site.superseded.add(target)
        if isinstance(target, Block):
            return target.with_changes(statements=tuple(children))
        return target.with_changes(members=tuple(children))


def _container_children(node: JNode) -> tuple[JNode, ...]:
    if isinstance(node, Block):
        return node.statements
    if isinstance(node, ClassDeclaration):
        return node.members
    return ()


def _dedupe(names: tuple[str, ...]) -> tuple[str, ...]:
    seen: list[str] = []
    for name in names:
        if name not in seen:
            seen.append(name)
    return tuple(seen)
