"""Tests for the tree-sitter Java front end."""

import pytest

from tests.recipe_test_utils import java
from transmute.domain.errors import FrontEndError
from transmute.domain.tree import (
    ClassDeclaration,
    ExpressionStatement,
    Lambda,
    MethodDeclaration,
    MethodInvocation,
    VariableDeclarations,
)
from transmute.domain.types import STRING, ClassType

SOURCE = java(
    """
    package com.example;

    import java.util.List;

    import static org.junit.Assert.assertEquals;

    /** Holds names. */
    public class Names {
        private List<String> names;

        // counts them
        int count() {
            return names.size();
        }

        void check() {
            assertEquals(1L, 2L);
            Runnable r = () -> count();
        }
    }
    """
)


class TestParse:
    def test_structure(self, front_end) -> None:
        unit = front_end.parse(SOURCE, "Names.java")

        assert unit.path == "Names.java"
        assert unit.package_name == "com.example"
        assert [i.describe() for i in unit.imports] == [
            "import java.util.List",
            "import static org.junit.Assert.assertEquals",
        ]
        declaration = unit.classes[0]
        assert isinstance(declaration, ClassDeclaration)
        assert declaration.name == "Names"
        assert declaration.modifiers == ("public",)
        assert [type(m) for m in declaration.members] == [VariableDeclarations, MethodDeclaration, MethodDeclaration]

    def test_comments_and_blank_lines_are_kept(self, front_end) -> None:
        declaration = front_end.parse(SOURCE).classes[0]

        assert declaration.comments == ("/** Holds names. */",)
        count = declaration.members[1]
        assert count.comments == ("// counts them",)
        assert count.blank_lines_before == 1

    def test_same_line_comments_trail_their_node(self, front_end) -> None:
        """A comment after a statement on its line is not the next statement's leading comment."""
        unit = front_end.parse(
            java(
                """
                class A   {
                    int x = 1;  // one
                    // about y
                    int y = 2; /* two */
                }
                """
            )
        )
        declaration = unit.classes[0]
        x, y = declaration.members

        assert x.trailing_comment == "  // one"
        assert y.comments == ("// about y",)
        assert y.trailing_comment == " /* two */"
        assert declaration.end_comments == ()
        assert declaration.header_source == "class A   {"

    def test_types_are_attributed(self, front_end) -> None:
        """Declared fields, stub methods and static imports resolve."""
        declaration = front_end.parse(SOURCE).classes[0]
        assert declaration.type == ClassType("com.example.Names")

        field = declaration.members[0]
        assert field.variables[0].type == ClassType("java.util.List", (STRING,))

        call = declaration.members[2].body.statements[0].expression
        assert isinstance(call, MethodInvocation)
        assert call.method_type.declaring_type.fqn == "org.junit.Assert"
        assert [str(p) for p in call.method_type.parameter_types] == ["long", "long"]

    def test_lambda_body(self, front_end) -> None:
        check = front_end.parse(SOURCE).classes[0].members[2]
        lambda_node = check.body.statements[1].variables[0].initializer

        assert isinstance(lambda_node, Lambda)
        assert lambda_node.parameters == ()
        assert isinstance(lambda_node.body, MethodInvocation)

    def test_syntax_error_is_reported_with_position(self, front_end) -> None:
        with pytest.raises(FrontEndError) as raised:
            front_end.parse("class A {\n    void run( {\n}\n", "A.java")

        assert raised.value.path == "A.java"
        assert "A.java" in str(raised.value)


class TestFragments:
    def test_statement_fragment(self, front_end) -> None:
        statements = front_end.parse_fragment("a();\nb();", "statements")
        assert [s.expression.name for s in statements if isinstance(s, ExpressionStatement)] == ["a", "b"]

    def test_unknown_kind(self, front_end) -> None:
        with pytest.raises(ValueError, match="unknown fragment kind"):
            front_end.parse_fragment("a()", "module")

    def test_declared_classes(self, front_end) -> None:
        """Symbol records are produced without attributing bodies."""
        infos = front_end.declared_classes(SOURCE)

        assert [i.fqn for i in infos] == ["com.example.Names"]
        assert sorted(m.name for m in infos[0].methods) == ["check", "count"]
        assert [f.name for f in infos[0].fields] == ["names"]
