"""Small assertion and test-body cleanups."""

from typing import Any, Optional

import libcst as cst

from transmute.domain.entities import Outcome
from transmute.domain.matchers import MethodMatcher
from transmute.domain.recipe import Recipe, TemplateSpec
from transmute.domain.search import FindEmptyMethods, UsesMethod
from transmute.domain.template import TemplateKind
from transmute.domain.tree import CompilationUnit, Expression, Literal, MethodDeclaration, MethodInvocation
from transmute.domain.types import NULL
from transmute.domain.visitor import RecipeVisitor

ASSERTIONS = "org.junit.jupiter.api.Assertions"
ASSERT_EQUALS = MethodMatcher(f"{ASSERTIONS} assertEquals(..)")


def _is_null(expression: Expression) -> bool:
    return (isinstance(expression, Literal) and expression.kind == "null") or expression.type == NULL


class AssertEqualsNullToAssertNull(Recipe):
    """``assertEquals(a, null)`` and ``assertEquals(null, a)`` become ``assertNull(a)``."""

    name = "transmute.cleanup.AssertEqualsNullToAssertNull"
    display_name = "`assertEquals(a, null)` to `assertNull(a)`"
    description = "Using `assertNull(a)` is simpler and more clear."
    tags = ("testing", "junit")
    estimated_effort = 1
    TEMPLATES = {
        "static": TemplateSpec(
            "assertNull(#{any(java.lang.Object)})",
            TemplateKind.EXPRESSION,
            static_imports=(f"{ASSERTIONS}.assertNull",),
        ),
        "static_message": TemplateSpec(
            "assertNull(#{any(java.lang.Object)}, #{any()})",
            TemplateKind.EXPRESSION,
            static_imports=(f"{ASSERTIONS}.assertNull",),
        ),
        "qualified": TemplateSpec(
            "Assertions.assertNull(#{any(java.lang.Object)})",
            TemplateKind.EXPRESSION,
            imports=(ASSERTIONS,),
        ),
        "qualified_message": TemplateSpec(
            "Assertions.assertNull(#{any(java.lang.Object)}, #{any()})",
            TemplateKind.EXPRESSION,
            imports=(ASSERTIONS,),
        ),
    }

    def is_applicable(self, unit: CompilationUnit) -> bool:
        return UsesMethod(ASSERT_EQUALS)(unit)

    def get_visitor(self) -> RecipeVisitor:
        return AssertEqualsNullVisitor(self)


class AssertEqualsNullVisitor(RecipeVisitor):
    def __init__(self, recipe: AssertEqualsNullToAssertNull) -> None:
        super().__init__()
        self.recipe = recipe

    def leave_MethodInvocation(self, original_node: MethodInvocation, updated_node: MethodInvocation) -> Any:
        if not ASSERT_EQUALS.matches(original_node) or len(updated_node.arguments) not in (2, 3):
            return updated_node
        actual = self._non_null_operand(updated_node.arguments[0], updated_node.arguments[1])
        if actual is None:
            return updated_node
        qualified = updated_node.select is not None
        key = "qualified" if qualified else "static"
        bindings: list[Expression] = [actual]
        if len(updated_node.arguments) == 3:
            key += "_message"
            bindings.append(updated_node.arguments[2])
        replaced = self.apply_template(
            self.recipe.templates[key], updated_node.coordinates.replace(), *bindings
        )
        if replaced is None:
            return updated_node
        if not qualified:
            self.maybe_remove_import(ASSERTIONS, "assertEquals")
        self.report(Outcome.APPLIED, "assertEquals with null replaced by assertNull", original_node)
        return replaced

    @staticmethod
    def _non_null_operand(first: Expression, second: Expression) -> Optional[Expression]:
        if _is_null(first) and not _is_null(second):
            return second
        if _is_null(second) and not _is_null(first):
            return first
        return None


class RemoveEmptyTests(Recipe):
    name = "transmute.cleanup.RemoveEmptyTests"
    display_name = "Remove empty tests without comments"
    description = "Removes empty methods with a `@Test` annotation if the body does not have comments."
    tags = ("RSPEC-1186",)
    estimated_effort = 2

    def is_applicable(self, unit: CompilationUnit) -> bool:
        return FindEmptyMethods(match_constructors=False)(unit)

    def get_visitor(self) -> RecipeVisitor:
        return RemoveEmptyTestsVisitor()


class RemoveEmptyTestsVisitor(RecipeVisitor):
    def leave_MethodDeclaration(self, original_node: MethodDeclaration, updated_node: MethodDeclaration) -> Any:
        if not self._has_test_annotation(updated_node) or updated_node.is_constructor:
            return updated_node
        # Abstract and interface methods have no body and are contracts, not empty tests.
        if updated_node.body is None or not updated_node.body.is_empty:
            return updated_node
        self.report(Outcome.APPLIED, f"removed empty test {updated_node.name}()", original_node)
        return cst.RemoveFromParent()

    @staticmethod
    def _has_test_annotation(method: MethodDeclaration) -> bool:
        return any(
            a.simple_name == "Test" and not a.annotation_type.is_qualified for a in method.annotations
        )
