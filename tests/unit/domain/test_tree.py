"""Tests for the Java tree nodes."""

import pytest

from transmute.domain.coordinates import CoordinateKind
from transmute.domain.tree import (
    Block,
    ClassDeclaration,
    ExpressionStatement,
    Identifier,
    ImportDeclaration,
    Literal,
    MethodDeclaration,
    MethodInvocation,
    Span,
    iter_children,
    walk,
)
from transmute.domain.types import STRING


def _call(name: str = "run") -> ExpressionStatement:
    return ExpressionStatement(MethodInvocation(None, name, (Literal("1", "int"),)))


class TestJNode:
    """Structural equality, source retention and identity."""

    def test_deep_equals_ignores_metadata(self) -> None:
        """Ids, spans and resolved types do not take part in comparison."""
        first = Identifier("x", span=Span(1, 1, 1, 2), type=STRING)
        second = Identifier("x")

        assert first.node_id != second.node_id
        assert first.deep_equals(second)
        assert not first.deep_equals(Identifier("y"))

    def test_structural_change_drops_source_text(self) -> None:
        """A node whose children changed is no longer printed verbatim."""
        call = MethodInvocation(None, "run", source="run()")

        renamed = call.with_changes(name="go")
        retyped = call.with_changes(type=STRING)

        assert renamed.source is None
        assert retyped.source == "run()"
        assert renamed.node_id == call.node_id

    def test_explicit_source_survives_structural_change(self) -> None:
        """Callers may keep the text when they know it still matches."""
        call = MethodInvocation(None, "run", source="run()")
        assert call.with_changes(name="go", source="go()").source == "go()"

    def test_class_header_text_follows_the_header(self) -> None:
        """Member edits keep the written header; renaming the class drops it."""
        declaration = ClassDeclaration((), (), "class", "A", header_source="class A   {")

        with_member = declaration.with_changes(members=(MethodDeclaration((), (), (), None, "A"),))
        renamed = declaration.with_changes(name="B")
        same_name = declaration.with_changes(name="A", members=())

        assert with_member.source is None
        assert with_member.header_source == "class A   {"
        assert same_name.header_source == "class A   {"
        assert renamed.header_source is None

    def test_walk_is_preorder(self) -> None:
        """Parents come before their children, children in field order."""
        statement = _call()
        block = Block((statement,))

        kinds = [type(n).__name__ for n in walk(block)]

        assert kinds == ["Block", "ExpressionStatement", "MethodInvocation", "Literal"]
        assert list(iter_children(block)) == [statement]

    def test_location_without_span(self) -> None:
        assert Identifier("x").location == "?"

    def test_block_is_empty_only_without_comments(self) -> None:
        """A comment-only body counts as intentional."""
        assert Block().is_empty
        assert not Block(end_comments=("// todo",)).is_empty
        assert not Block((_call(),)).is_empty

    def test_method_helpers(self) -> None:
        """Constructors have no return type."""
        constructor = MethodDeclaration((), (), (), None, "ATest", body=Block())
        assert constructor.is_constructor


class TestImportDeclaration:
    """Imports know their owner type and member."""

    def test_static_member_import(self) -> None:
        declaration = ImportDeclaration("org.junit.Assert.assertEquals", static=True)

        assert declaration.type_name == "org.junit.Assert"
        assert declaration.member == "assertEquals"
        assert declaration.describe() == "import static org.junit.Assert.assertEquals"

    def test_wildcard_import(self) -> None:
        """A wildcard names a package (or a type, when static)."""
        declaration = ImportDeclaration("java.util", wildcard=True)

        assert declaration.type_name == "java.util"
        assert declaration.member is None
        assert declaration.describe() == "import java.util.*"

    def test_simple_name(self) -> None:
        assert ImportDeclaration("java.util.List").simple_name == "List"


class TestCoordinates:
    """Coordinates are derived from the node they insert into."""

    def test_block_coordinates(self) -> None:
        """Statement positions need a block."""
        first = _call("a")
        block = Block((first,))

        assert block.coordinates.first_statement().kind is CoordinateKind.FIRST
        assert block.coordinates.last_statement().target is block
        after = block.coordinates.after(first)
        assert after.kind is CoordinateKind.AFTER
        assert after.anchor is first
        assert after.inserts_into_container

    def test_member_coordinates_require_a_class(self) -> None:
        """Asking a block for member positions is a programming error."""
        with pytest.raises(TypeError, match="ClassDeclaration"):
            Block().coordinates.first_member()

        declaration = ClassDeclaration((), (), "class", "ATest")
        assert declaration.coordinates.last_member().target is declaration

    def test_replace_body_only_for_methods(self) -> None:
        with pytest.raises(TypeError, match="method declarations"):
            Block().coordinates.replace_body()

    def test_replace_is_not_an_insertion(self) -> None:
        coordinate = Identifier("x").coordinates.replace()
        assert coordinate.kind is CoordinateKind.REPLACE
        assert not coordinate.inserts_into_container
