"""Insertion points for synthesized code, derived from a specific node."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from transmute.domain.tree import Block, ClassDeclaration, JNode, MethodDeclaration


class CoordinateKind(Enum):
    REPLACE = "replace"
    REPLACE_BODY = "replace_body"
    BEFORE = "before"
    AFTER = "after"
    FIRST = "first"
    LAST = "last"


@dataclass(frozen=True)
class Coordinate:
    """
    Where a template is spliced.

    ``target`` is the node replaced (REPLACE), the method whose body is
    replaced (REPLACE_BODY) or the container (a Block or ClassDeclaration)
    receiving new children. ``anchor`` is the sibling for BEFORE / AFTER.
    A coordinate is only valid against the exact node it was derived from.
    """

    kind: CoordinateKind
    target: JNode
    anchor: Optional[JNode] = None

    @property
    def inserts_into_container(self) -> bool:
        return self.kind in (
            CoordinateKind.BEFORE,
            CoordinateKind.AFTER,
            CoordinateKind.FIRST,
            CoordinateKind.LAST,
        )


class CoordinateFactory:
    """Returned by ``JNode.coordinates``."""

    def __init__(self, node: JNode) -> None:
        self._node = node

    def replace(self) -> Coordinate:
        return Coordinate(CoordinateKind.REPLACE, self._node)

    def replace_body(self) -> Coordinate:
        if not isinstance(self._node, MethodDeclaration):
            raise TypeError("replace_body() is only defined for method declarations")
        return Coordinate(CoordinateKind.REPLACE_BODY, self._node)

    def first_statement(self) -> Coordinate:
        return Coordinate(CoordinateKind.FIRST, self._container(Block))

    def last_statement(self) -> Coordinate:
        return Coordinate(CoordinateKind.LAST, self._container(Block))

    def first_member(self) -> Coordinate:
        return Coordinate(CoordinateKind.FIRST, self._container(ClassDeclaration))

    def last_member(self) -> Coordinate:
        return Coordinate(CoordinateKind.LAST, self._container(ClassDeclaration))

    def before(self, anchor: JNode) -> Coordinate:
        return Coordinate(CoordinateKind.BEFORE, self._container(Block, ClassDeclaration), anchor)

    def after(self, anchor: JNode) -> Coordinate:
        return Coordinate(CoordinateKind.AFTER, self._container(Block, ClassDeclaration), anchor)

    def _container(self, *kinds: type) -> JNode:
        if not isinstance(self._node, kinds):
            names = " or ".join(k.__name__ for k in kinds)
            raise TypeError(f"coordinate requires a {names}, got {type(self._node).__name__}")
        return self._node
