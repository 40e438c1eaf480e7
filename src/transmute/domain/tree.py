"""
Immutable Java syntax tree.

Nodes are frozen dataclasses built on ``libcst.CSTNode`` so that libcst's
``CSTTransformer`` / ``CSTVisitor`` machinery (``visit_X`` / ``leave_X``,
``RemoveFromParent``, ``FlattenSentinel``, ``deep_equals``) drives traversal
and replacement. Structural fields take part in ``deep_equals``; metadata
(identity, source text, resolved types) is declared with ``compare=False``.
"""

import dataclasses
import itertools
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Iterator, Optional

import libcst as cst

from transmute.domain.types import ClassType, JavaType, MethodType

if TYPE_CHECKING:
    from transmute.domain.coordinates import CoordinateFactory

_node_ids = itertools.count(1)


def next_node_id() -> int:
    return next(_node_ids)


@dataclass(frozen=True)
class Span:
    """Source position: 1-based lines, 0-based columns."""

    line: int
    column: int
    end_line: int
    end_column: int
    # Indentation of the line the node starts on; continuation lines are relative to it.
    indent: int = 0

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


def _meta(default: Any = None, **kwargs: Any) -> Any:
    if "default_factory" in kwargs:
        return field(compare=False, kw_only=True, repr=False, **kwargs)
    return field(default=default, compare=False, kw_only=True, repr=False)


@lru_cache(maxsize=None)
def _child_fields(node_type: type) -> tuple[dataclasses.Field, ...]:  # type: ignore[type-arg]
    return tuple(f for f in dataclasses.fields(node_type) if f.compare)


def _same_text(old: object, new: object) -> bool:
    return (
        isinstance(old, JNode)
        and isinstance(new, JNode)
        and new.source is not None
        and new.source == old.source
    )


def _unchanged(old: object, new: object) -> bool:
    if old is new:
        return True
    if isinstance(old, tuple) and isinstance(new, tuple):
        return len(old) == len(new) and all(_unchanged(a, b) for a, b in zip(old, new))
    if isinstance(old, JNode) or isinstance(new, JNode):
        return _same_text(old, new)
    return old == new


@dataclass(frozen=True)
class JNode(cst.CSTNode):
    """Base of every Java node. ``node_id`` survives ``with_changes``."""

    node_id: int = _meta(default_factory=next_node_id)
    span: Optional[Span] = _meta()
    # Verbatim text of an untouched node; cleared on any structural change.
    source: Optional[str] = _meta()
    comments: tuple[str, ...] = _meta(())
    blank_lines_before: int = _meta(0)
    # Comments on the line where the node ends, with the whitespace before them.
    trailing_comment: str = _meta("")

    def with_changes(self, **changes: Any) -> Any:
        if "source" not in changes and any(
            f.name in changes for f in _child_fields(type(self))
        ):
            changes["source"] = None
        return dataclasses.replace(self, **changes)

    def _visit_and_replace_children(self, visitor: Any) -> "JNode":
        changes: dict[str, Any] = {}
        verbatim = self.source is not None
        for child_field in _child_fields(type(self)):
            value = getattr(self, child_field.name)
            if isinstance(value, JNode):
                visitor.on_visit_attribute(self, child_field.name)
                updated = value.visit(visitor)
                visitor.on_leave_attribute(self, child_field.name)
                if isinstance(updated, cst.RemovalSentinel):
                    if child_field.default is not None:
                        raise TypeError(
                            f"{type(self).__name__}.{child_field.name} cannot be removed"
                        )
                    updated = None
                elif isinstance(updated, cst.FlattenSentinel):
                    raise TypeError(
                        f"{type(self).__name__}.{child_field.name} holds a single node"
                    )
                if updated is not value:
                    changes[child_field.name] = updated
                    verbatim = verbatim and _same_text(value, updated)
            elif isinstance(value, tuple) and any(isinstance(v, JNode) for v in value):
                visitor.on_visit_attribute(self, child_field.name)
                updated_items = self._visit_sequence(value, visitor)
                visitor.on_leave_attribute(self, child_field.name)
                if len(updated_items) != len(value) or any(
                    a is not b for a, b in zip(updated_items, value)
                ):
                    changes[child_field.name] = updated_items
                    verbatim = verbatim and len(updated_items) == len(value) and all(
                        a is b or _same_text(b, a) for a, b in zip(updated_items, value)
                    )
        if not changes:
            return self
        if verbatim:
            changes["source"] = self.source
        return self.with_changes(**changes)

    @staticmethod
    def _visit_sequence(items: tuple[Any, ...], visitor: Any) -> tuple[Any, ...]:
        result: list[Any] = []
        for item in items:
            if not isinstance(item, JNode):
                result.append(item)
                continue
            updated = item.visit(visitor)
            if isinstance(updated, cst.RemovalSentinel):
                continue
            if isinstance(updated, cst.FlattenSentinel):
                result.extend(updated.nodes)
            else:
                result.append(updated)
        return tuple(result)

    def _codegen_impl(self, state: Any) -> None:
        raise NotImplementedError("Java trees are printed by JavaPrinter, not libcst codegen")

    @property
    def coordinates(self) -> "CoordinateFactory":
        from transmute.domain.coordinates import CoordinateFactory

        return CoordinateFactory(self)

    @property
    def location(self) -> str:
        return str(self.span) if self.span is not None else "?"


def iter_children(node: JNode) -> Iterator[JNode]:
    for child_field in _child_fields(type(node)):
        value = getattr(node, child_field.name)
        if isinstance(value, JNode):
            yield value
        elif isinstance(value, tuple):
            for item in value:
                if isinstance(item, JNode):
                    yield item


def walk(node: JNode) -> Iterator[JNode]:
    """Pre-order iteration over ``node`` and all its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(iter_children(current))))


# ---------------------------------------------------------------------------
# Expressions and type trees
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Expression(JNode):
    type: Optional[JavaType] = _meta()


@dataclass(frozen=True)
class TypeTree(Expression):
    """A type written in source; ``type`` holds its resolution."""


@dataclass(frozen=True)
class TypeName(TypeTree):
    """Simple or dotted type name. Also used for a class name in select position."""

    name: str

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    @property
    def is_qualified(self) -> bool:
        return "." in self.name


@dataclass(frozen=True)
class ParameterizedType(TypeTree):
    base: TypeName
    type_arguments: tuple[TypeTree, ...] = ()


@dataclass(frozen=True)
class ArrayTypeTree(TypeTree):
    element: TypeTree


@dataclass(frozen=True)
class PrimitiveTypeTree(TypeTree):
    keyword: str


@dataclass(frozen=True)
class WildcardTypeTree(TypeTree):
    bound_kind: Optional[str] = None
    bound: Optional[TypeTree] = None


@dataclass(frozen=True)
class UnionTypeTree(TypeTree):
    alternatives: tuple[TypeTree, ...] = ()


@dataclass(frozen=True)
class Literal(Expression):
    value: str
    kind: str


@dataclass(frozen=True)
class Identifier(Expression):
    name: str


@dataclass(frozen=True)
class FieldAccess(Expression):
    target: Expression
    name: str


@dataclass(frozen=True)
class MethodInvocation(Expression):
    select: Optional[Expression]
    name: str
    arguments: tuple[Expression, ...] = ()
    type_arguments: tuple[TypeTree, ...] = ()
    method_type: Optional[MethodType] = _meta()


@dataclass(frozen=True)
class NewClass(Expression):
    class_type: TypeTree
    arguments: tuple[Expression, ...] = ()


@dataclass(frozen=True)
class Parameter(JNode):
    annotations: tuple["Annotation", ...]
    modifiers: tuple[str, ...]
    type_expression: Optional[TypeTree]
    name: str
    varargs: bool = False


@dataclass(frozen=True)
class Lambda(Expression):
    parameters: tuple[Parameter, ...]
    body: JNode
    parenthesized: bool = True


@dataclass(frozen=True)
class MemberReference(Expression):
    target: Expression
    name: str


@dataclass(frozen=True)
class ClassLiteral(Expression):
    class_type: TypeTree


@dataclass(frozen=True)
class Assignment(Expression):
    target: Expression
    value: Expression
    operator: str = "="


@dataclass(frozen=True)
class Binary(Expression):
    left: Expression
    operator: str
    right: Expression


@dataclass(frozen=True)
class Parenthesized(Expression):
    expression: Expression


@dataclass(frozen=True)
class ArrayInitializer(Expression):
    elements: tuple[Expression, ...] = ()


@dataclass(frozen=True)
class RawExpression(Expression):
    """Expression the engine does not model; kept as text and never descended into."""

    text: str


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Statement(JNode):
    pass


@dataclass(frozen=True)
class Block(Statement):
    statements: tuple[JNode, ...] = ()
    end_comments: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.statements and not self.end_comments


@dataclass(frozen=True)
class ExpressionStatement(Statement):
    expression: Expression


@dataclass(frozen=True)
class Annotation(JNode):
    annotation_type: TypeName
    arguments: tuple[Expression, ...] = ()
    has_parentheses: bool = False

    @property
    def simple_name(self) -> str:
        return self.annotation_type.simple_name


@dataclass(frozen=True)
class VariableDeclarator(JNode):
    name: str
    initializer: Optional[Expression] = None
    dimensions: int = 0
    type: Optional[JavaType] = _meta()


@dataclass(frozen=True)
class VariableDeclarations(Statement):
    """Local variable or field declaration, possibly with several declarators."""

    annotations: tuple[Annotation, ...]
    modifiers: tuple[str, ...]
    type_expression: TypeTree
    variables: tuple[VariableDeclarator, ...]


@dataclass(frozen=True)
class Return(Statement):
    expression: Optional[Expression] = None


@dataclass(frozen=True)
class If(Statement):
    condition: Expression
    then: Statement
    otherwise: Optional[Statement] = None


@dataclass(frozen=True)
class Catch(JNode):
    parameter: Parameter
    body: Block


@dataclass(frozen=True)
class Try(Statement):
    body: Block
    catches: tuple[Catch, ...] = ()
    finally_block: Optional[Block] = None


@dataclass(frozen=True)
class Throw(Statement):
    expression: Expression


@dataclass(frozen=True)
class RawStatement(Statement):
    """Statement or member the engine does not model; printed as recorded."""

    text: str


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MethodDeclaration(JNode):
    annotations: tuple[Annotation, ...]
    modifiers: tuple[str, ...]
    type_parameters: tuple[str, ...]
    return_type: Optional[TypeTree]
    name: str
    parameters: tuple[Parameter, ...] = ()
    throws: tuple[TypeTree, ...] = ()
    body: Optional[Block] = None
    method_type: Optional[MethodType] = _meta()

    @property
    def is_constructor(self) -> bool:
        return self.return_type is None

    def has_annotation(self, simple_name: str) -> bool:
        return any(a.simple_name == simple_name for a in self.annotations)


_CLASS_HEADER = ("annotations", "modifiers", "kind", "name", "type_parameters", "extends", "implements")


@dataclass(frozen=True)
class ClassDeclaration(JNode):
    annotations: tuple[Annotation, ...]
    modifiers: tuple[str, ...]
    kind: str
    name: str
    type_parameters: tuple[str, ...] = ()
    extends: Optional[TypeTree] = None
    implements: tuple[TypeTree, ...] = ()
    members: tuple[JNode, ...] = ()
    end_comments: tuple[str, ...] = ()
    type: Optional[ClassType] = _meta()
    # Verbatim text up to and including the opening brace; cleared when the header changes.
    header_source: Optional[str] = _meta()

    def with_changes(self, **changes: Any) -> Any:
        if "header_source" not in changes and any(
            name in changes and not _unchanged(getattr(self, name), changes[name]) for name in _CLASS_HEADER
        ):
            changes["header_source"] = None
        return super().with_changes(**changes)

    @property
    def methods(self) -> list[MethodDeclaration]:
        return [m for m in self.members if isinstance(m, MethodDeclaration)]

    @property
    def fields(self) -> list[VariableDeclarations]:
        return [m for m in self.members if isinstance(m, VariableDeclarations)]


@dataclass(frozen=True)
class ImportDeclaration(JNode):
    qualified_name: str
    static: bool = False
    wildcard: bool = False

    @property
    def type_name(self) -> str:
        """Imported type (or package, for a plain wildcard)."""
        if self.static and not self.wildcard:
            return self.qualified_name.rsplit(".", 1)[0]
        return self.qualified_name

    @property
    def member(self) -> Optional[str]:
        if self.static and not self.wildcard:
            return self.qualified_name.rsplit(".", 1)[1]
        return None

    @property
    def simple_name(self) -> str:
        return self.qualified_name.rsplit(".", 1)[-1]

    def describe(self) -> str:
        text = "import static " if self.static else "import "
        return text + self.qualified_name + (".*" if self.wildcard else "")


@dataclass(frozen=True)
class CompilationUnit(JNode):
    package_name: Optional[str]
    imports: tuple[ImportDeclaration, ...] = ()
    classes: tuple[ClassDeclaration, ...] = ()
    end_comments: tuple[str, ...] = ()
    path: str = _meta("")
