"""Tests for JavaPrinter."""

from tests.recipe_test_utils import java, run_recipe
from transmute.domain.rules.cleanup import RemoveEmptyTests
from transmute.domain.tree import (
    Block,
    ClassDeclaration,
    ClassLiteral,
    CompilationUnit,
    ExpressionStatement,
    ImportDeclaration,
    Lambda,
    Literal,
    MethodDeclaration,
    MethodInvocation,
    NewClass,
    PrimitiveTypeTree,
    Throw,
    TypeName,
)

ODD_FORMATTING = java(
    """
    import java.util.List;
    class   Odd {
      void  run( ) {
            List<String>   xs = null ;   // keep me
      }


      int other() { return 1; }
    }
    """
)


class TestVerbatimPrinting:
    """Untouched code comes out exactly as it went in."""

    def test_round_trip_is_exact(self, front_end, printer) -> None:
        assert printer.print(front_end.parse(ODD_FORMATTING)) == ODD_FORMATTING

    def test_untouched_siblings_keep_their_formatting(self, front_end, printer) -> None:
        """Renaming one method regenerates only that method."""
        unit = front_end.parse(ODD_FORMATTING)
        declaration = unit.classes[0]
        run, other = declaration.members
        edited = unit.with_changes(
            classes=(declaration.with_changes(members=(run.with_changes(name="go"), other)),)
        )

        text = printer.print(edited)

        assert "int other() { return 1; }" in text
        assert "List<String>   xs = null ;   // keep me" in text
        assert "class   Odd {" in text
        assert "void go() {" in text

    def test_regenerated_class_keeps_sibling_layout(self, front_end, printer) -> None:
        """Removing a member leaves the header, trailing comments and blank lines of the rest alone."""
        outcome = run_recipe(
            RemoveEmptyTests(),
            """
            import org.junit.jupiter.api.Test;

            class T   {
                int   x =  1 ;   // trailing
                String s  =   null; /* c */

                @Test
                void empty() {
                }

                @Test
                void works() {
                    int y = x;
                }
            }
            """,
            front_end,
            printer,
        )

        assert outcome.text == java(
            """
            import org.junit.jupiter.api.Test;

            class T   {
                int   x =  1 ;   // trailing
                String s  =   null; /* c */

                @Test
                void works() {
                    int y = x;
                }
            }
            """
        )


class TestCanonicalPrinting:
    """Synthesized code uses four-space indentation."""

    def test_generated_unit(self, printer) -> None:
        call = MethodInvocation(None, "assertThrows", (
            ClassLiteral(TypeName("IllegalStateException")),
            Lambda((), Block((Throw(NewClass(TypeName("IllegalStateException"))),))),
        ))
        method = MethodDeclaration(
            (), ("public",), (), PrimitiveTypeTree("void"), "fails", body=Block((ExpressionStatement(call),))
        )
        unit = CompilationUnit(
            "com.example",
            imports=(ImportDeclaration("org.junit.jupiter.api.Assertions.assertThrows", static=True),),
            classes=(ClassDeclaration((), ("public",), "class", "ATest", members=(method,)),),
        )

        assert printer.print(unit) == java(
            """
            package com.example;

            import static org.junit.jupiter.api.Assertions.assertThrows;

            public class ATest {
                public void fails() {
                    assertThrows(IllegalStateException.class, () -> {
                        throw new IllegalStateException();
                    });
                }
            }
            """
        )

    def test_literals_are_printed_as_written(self, printer) -> None:
        statement = ExpressionStatement(MethodInvocation(None, "sleep", (Literal("10L", "long"),)))
        method = MethodDeclaration((), (), (), PrimitiveTypeTree("void"), "run", body=Block((statement,)))
        unit = CompilationUnit(None, classes=(ClassDeclaration((), (), "class", "A", members=(method,)),))

        assert "        sleep(10L);" in printer.print(unit).split("\n")
