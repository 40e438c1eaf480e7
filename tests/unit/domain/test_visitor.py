"""Tests for RecipeVisitor traversal services."""

import libcst as cst
import pytest

from tests.recipe_test_utils import java
from transmute.domain.entities import Outcome
from transmute.domain.template import TemplateKind
from transmute.domain.tree import ClassDeclaration, ExpressionStatement, MethodDeclaration, MethodInvocation
from transmute.domain.visitor import RecipeVisitor

SOURCE = java(
    """
    import java.util.Map;

    class ATest {
        void first() {
            a();
            b();
        }

        void second() {
            c();
        }
    }
    """
)


class CountingVisitor(RecipeVisitor):
    """Counts calls per method through messages on the enclosing declaration."""

    def __init__(self) -> None:
        super().__init__()
        self.counts: dict[str, int] = {}
        self.leaked: list[object] = []

    def visit_MethodInvocation(self, node: MethodInvocation) -> None:
        count = self.get_message_on_first_enclosing(MethodDeclaration, "calls", 0)
        self.put_message_on_first_enclosing(MethodDeclaration, "calls", count + 1)

    def leave_MethodDeclaration(self, original_node, updated_node):
        self.counts[updated_node.name] = self.get_message_on_first_enclosing(MethodDeclaration, "calls", 0)
        return updated_node

    def leave_ClassDeclaration(self, original_node, updated_node):
        self.leaked.append(self.get_nearest_message("calls"))
        return updated_node


class RemovingVisitor(RecipeVisitor):
    """Deletes every call to b() and drops the unused Map import."""

    def leave_ExpressionStatement(self, original_node, updated_node):
        expression = updated_node.expression
        if isinstance(expression, MethodInvocation) and expression.name == "b":
            self.report(Outcome.APPLIED, "removed b()")
            return cst.RemoveFromParent()
        return updated_node

    def leave_CompilationUnit(self, original_node, updated_node):
        self.maybe_remove_import("java.util.Map")
        return updated_node


class TestMessages:
    """Messages are scoped to the node they were put on."""

    def test_messages_do_not_leak_between_siblings(self, front_end, type_model) -> None:
        visitor = CountingVisitor()
        visitor.transform(front_end.parse(SOURCE), type_model)

        assert visitor.counts == {"first": 2, "second": 1}

    def test_messages_are_dropped_when_owner_is_left(self, front_end, type_model) -> None:
        """After a method is left, its messages are not visible from the class."""
        visitor = CountingVisitor()
        visitor.transform(front_end.parse(SOURCE), type_model)

        assert visitor.leaked == [None]

    def test_put_without_enclosing_node_is_refused(self, front_end, type_model) -> None:
        results: list[bool] = []

        class Probe(RecipeVisitor):
            def visit_ClassDeclaration(self, node: ClassDeclaration) -> None:
                results.append(self.put_message_on_first_enclosing(MethodDeclaration, "key", 1))

        Probe().transform(front_end.parse(SOURCE), type_model)

        assert results == [False]

    def test_cursor_only_during_traversal(self) -> None:
        with pytest.raises(RuntimeError, match="during a traversal"):
            _ = RecipeVisitor().cursor


class TestTransform:
    """Edits, events and import reconciliation."""

    def test_removal_and_import_cleanup(self, front_end, printer, type_model) -> None:
        result = RemovingVisitor().transform(front_end.parse(SOURCE), type_model)

        text = printer.print(result.unit)
        assert "b();" not in text
        assert "a();" in text
        assert "import java.util.Map;" not in text
        assert result.imports_removed == ("import java.util.Map",)
        assert [e.detail for e in result.events] == ["removed b()"]
        assert result.events[0].outcome is Outcome.APPLIED

    def test_untouched_unit_is_returned_as_is(self, front_end, type_model) -> None:
        unit = front_end.parse(SOURCE)
        assert CountingVisitor().transform(unit, type_model).unit is unit

    def test_events_reset_between_traversals(self, front_end, type_model) -> None:
        """One visitor instance can serve several files in turn."""
        visitor = RemovingVisitor()
        visitor.transform(front_end.parse(SOURCE), type_model)
        second = visitor.transform(front_end.parse(SOURCE), type_model)

        assert len(second.events) == 1

    def test_failed_template_is_reported_and_keeps_code(self, compiler, front_end, type_model) -> None:
        """A template that cannot be bound leaves the original node and records a SKIPPED event."""
        template = compiler.compile("#{any(java.lang.String)}.isEmpty()", TemplateKind.EXPRESSION)

        class Rewriter(RecipeVisitor):
            def leave_ExpressionStatement(self, original_node, updated_node):
                call = updated_node.expression
                replaced = self.apply_template(template, call.coordinates.replace(), call)
                if replaced is None:
                    return updated_node
                return ExpressionStatement(replaced)

        unit = front_end.parse(SOURCE)
        result = Rewriter().transform(unit, type_model)

        assert result.unit is unit
        assert {e.outcome for e in result.events} == {Outcome.SKIPPED}
        assert all("slot 0" in e.detail for e in result.events)
