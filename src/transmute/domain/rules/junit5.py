"""JUnit 4 to JUnit Jupiter migrations."""

from dataclasses import dataclass, field
from typing import Any, Optional

from transmute.domain.entities import Outcome
from transmute.domain.matchers import is_of_class_type
from transmute.domain.recipe import Recipe, TemplateSpec
from transmute.domain.search import UsesType
from transmute.domain.template import Binding
from transmute.domain.tree import (
    ClassDeclaration,
    CompilationUnit,
    Expression,
    ExpressionStatement,
    JNode,
    MethodDeclaration,
    MethodInvocation,
    VariableDeclarations,
    walk,
)
from transmute.domain.types import CLASS, STRING, ClassType
from transmute.domain.visitor import RecipeVisitor

EXPECTED_EXCEPTION = "org.junit.rules.ExpectedException"
RULE = "org.junit.Rule"
MATCHER = ClassType("org.hamcrest.Matcher")
ASSERT_THROWS = "org.junit.jupiter.api.Assertions.assertThrows"
ASSERT_TRUE = "org.junit.jupiter.api.Assertions.assertTrue"
ASSERT_THAT = "org.hamcrest.MatcherAssert.assertThat"

EXPECTED_CALLS = "expectedExceptionCalls"


def _assert_that(subject: str) -> TemplateSpec:
    return TemplateSpec(
        f"assertThat({subject}, #{{any(org.hamcrest.Matcher)}});", static_imports=(ASSERT_THAT,)
    )


@dataclass
class ExpectedExceptionCalls:
    """Calls on an ``ExpectedException`` rule found in one method, in source order."""

    expect: list[MethodInvocation] = field(default_factory=list)
    expect_message: list[MethodInvocation] = field(default_factory=list)
    expect_cause: list[MethodInvocation] = field(default_factory=list)
    unsupported: list[MethodInvocation] = field(default_factory=list)

    def record(self, call: MethodInvocation) -> None:
        bucket = {
            "expect": self.expect,
            "expectMessage": self.expect_message,
            "expectCause": self.expect_cause,
        }.get(call.name, self.unsupported)
        bucket.append(call)

    @property
    def all_calls(self) -> list[MethodInvocation]:
        return self.expect + self.expect_message + self.expect_cause + self.unsupported


@dataclass
class AssertThrowsPlan:
    """What a method's expectations turn into: the thrown type and the follow-up assertions."""

    expected_type: Optional[Expression]
    followups: list[tuple[str, Expression]]


class ExpectedExceptionToAssertThrows(Recipe):
    """
    Replace JUnit 4 ``@Rule ExpectedException`` with ``Assertions.assertThrows``.

    Supported rule methods: ``expect(Class)``, ``expect(Matcher)``,
    ``expectMessage(String)``, ``expectMessage(Matcher)`` and
    ``expectCause(Matcher)``. A method using anything else on the rule is left
    alone, and so is the rule field while any method still uses it.
    """

    name = "transmute.junit5.ExpectedExceptionToAssertThrows"
    display_name = "JUnit 4 `ExpectedException` To JUnit Jupiter's `assertThrows()`"
    description = "Replace usages of JUnit 4's `@Rule ExpectedException` with JUnit 5's `Assertions.assertThrows()`."
    tags = ("testing", "junit")
    estimated_effort = 5
    TEMPLATES = {
        "assert_throws": TemplateSpec(
            "assertThrows(#{any(java.lang.Class)}, () -> #{statements()});",
            static_imports=(ASSERT_THROWS,),
        ),
        "assert_throws_bound": TemplateSpec(
            "Throwable exception = assertThrows(#{any(java.lang.Class)}, () -> #{statements()});",
            static_imports=(ASSERT_THROWS,),
        ),
        "assert_throws_any": TemplateSpec(
            "assertThrows(Exception.class, () -> #{statements()});",
            static_imports=(ASSERT_THROWS,),
        ),
        "assert_throws_any_bound": TemplateSpec(
            "Throwable exception = assertThrows(Exception.class, () -> #{statements()});",
            static_imports=(ASSERT_THROWS,),
        ),
        "message_contains": TemplateSpec(
            "assertTrue(exception.getMessage().contains(#{any(java.lang.String)}));",
            static_imports=(ASSERT_TRUE,),
        ),
        "exception_matches": _assert_that("exception"),
        "message_matches": _assert_that("exception.getMessage()"),
        "cause_matches": _assert_that("exception.getCause()"),
    }

    def is_applicable(self, unit: CompilationUnit) -> bool:
        return UsesType(EXPECTED_EXCEPTION)(unit)

    def get_visitor(self) -> RecipeVisitor:
        return ExpectedExceptionVisitor(self)


def _is_rule_call(node: JNode) -> bool:
    if not isinstance(node, MethodInvocation) or node.method_type is None:
        return False
    method_type = node.method_type
    return method_type.declaring_type.fqn == EXPECTED_EXCEPTION and not method_type.is_static


def _rule_statement_call(statement: JNode) -> Optional[MethodInvocation]:
    if isinstance(statement, ExpressionStatement) and _is_rule_call(statement.expression):
        return statement.expression  # type: ignore[return-value]
    return None


class ExpectedExceptionVisitor(RecipeVisitor):
    def __init__(self, recipe: ExpectedExceptionToAssertThrows) -> None:
        super().__init__()
        self.recipe = recipe

    # -- collect ---------------------------------------------------------------

    def visit_MethodInvocation(self, node: MethodInvocation) -> Optional[bool]:
        if not _is_rule_call(node):
            return None
        calls = self.get_message_on_first_enclosing(MethodDeclaration, EXPECTED_CALLS)
        if calls is None:
            calls = ExpectedExceptionCalls()
            if not self.put_message_on_first_enclosing(MethodDeclaration, EXPECTED_CALLS, calls):
                return None
        calls.record(node)
        return None

    # -- rewrite methods -------------------------------------------------------

    def leave_MethodDeclaration(self, original_node: MethodDeclaration, updated_node: MethodDeclaration) -> Any:
        calls: Optional[ExpectedExceptionCalls] = self.poll_message(EXPECTED_CALLS)
        if calls is None or updated_node.body is None:
            return updated_node
        if calls.unsupported:
            names = ", ".join(sorted({c.name for c in calls.unsupported}))
            self.report(Outcome.SKIPPED, f"unsupported ExpectedException call: {names}", original_node)
            return updated_node
        statement_calls = {
            call.node_id for call in map(_rule_statement_call, updated_node.body.statements) if call is not None
        }
        if any(call.node_id not in statement_calls for call in calls.all_calls):
            self.report(Outcome.SKIPPED, "ExpectedException used outside the method's top-level statements", original_node)
            return updated_node
        plan = self._plan(calls)
        if plan is None:
            self.report(Outcome.SKIPPED, "unsupported ExpectedException argument", original_node)
            return updated_node
        body = updated_node.body.with_changes(
            statements=tuple(s for s in updated_node.body.statements if _rule_statement_call(s) is None)
        )
        rewritten = self._wrap_body(updated_node, plan, body)
        if rewritten is None:
            return updated_node
        self.report(Outcome.APPLIED, "ExpectedException replaced by assertThrows", original_node)
        return rewritten

    def _plan(self, calls: ExpectedExceptionCalls) -> Optional[AssertThrowsPlan]:
        expected_types: list[Expression] = []
        exception_matchers: list[Expression] = []
        messages: list[Expression] = []
        message_matchers: list[Expression] = []
        cause_matchers: list[Expression] = []
        for call in calls.expect:
            argument = self._single_argument(call)
            if argument is None:
                return None
            if self._is_matcher(argument):
                exception_matchers.append(argument)
            elif is_of_class_type(argument.type, CLASS.fqn):
                expected_types.append(argument)
            else:
                return None
        for call in calls.expect_message:
            argument = self._single_argument(call)
            if argument is None:
                return None
            if self._is_matcher(argument):
                message_matchers.append(argument)
            elif argument.type == STRING:
                messages.append(argument)
            else:
                return None
        for call in calls.expect_cause:
            argument = self._single_argument(call)
            if argument is None or not self._is_matcher(argument):
                return None
            cause_matchers.append(argument)
        if len(expected_types) > 1:
            return None
        followups = (
            [("message_contains", m) for m in messages]
            + [("exception_matches", m) for m in exception_matchers]
            + [("message_matches", m) for m in message_matchers]
            + [("cause_matches", m) for m in cause_matchers]
        )
        return AssertThrowsPlan(expected_types[0] if expected_types else None, followups)

    @staticmethod
    def _single_argument(call: MethodInvocation) -> Optional[Expression]:
        return call.arguments[0] if len(call.arguments) == 1 else None

    def _is_matcher(self, argument: Expression) -> bool:
        return argument.type is not None and self.type_model.is_assignable(MATCHER, argument.type)

    def _wrap_body(self, method: MethodDeclaration, plan: AssertThrowsPlan, body: Any) -> Optional[MethodDeclaration]:
        key = "assert_throws" if plan.expected_type is not None else "assert_throws_any"
        if plan.followups:
            key += "_bound"
        arguments: list[Binding] = [body]
        if plan.expected_type is not None:
            arguments.insert(0, plan.expected_type)
        rewritten = self.apply_template(
            self.recipe.templates[key], method.coordinates.replace_body(), *arguments
        )
        if rewritten is None:
            return None
        for template_key, argument in plan.followups:
            assert rewritten.body is not None
            new_body = self.apply_template(
                self.recipe.templates[template_key], rewritten.body.coordinates.last_statement(), argument
            )
            if new_body is None:
                return None
            rewritten = rewritten.with_changes(body=new_body)
        return rewritten

    # -- remove the rule field -----------------------------------------------

    def leave_ClassDeclaration(self, original_node: ClassDeclaration, updated_node: ClassDeclaration) -> Any:
        rule_fields = [m for m in updated_node.members if self._is_rule_field(m)]
        if not rule_fields:
            return updated_node
        remaining = tuple(m for m in updated_node.members if not self._is_rule_field(m))
        if any(self._uses_rule(member) for member in remaining):
            self.report(Outcome.SKIPPED, "ExpectedException field kept: still in use", rule_fields[0])
            return updated_node
        for rule_field in rule_fields:
            self.report(Outcome.APPLIED, "removed ExpectedException field", rule_field)
        self.maybe_remove_import(RULE)
        self.maybe_remove_import(EXPECTED_EXCEPTION)
        return updated_node.with_changes(members=remaining)

    @staticmethod
    def _is_rule_field(member: JNode) -> bool:
        return isinstance(member, VariableDeclarations) and is_of_class_type(
            member.type_expression.type, EXPECTED_EXCEPTION
        )

    @staticmethod
    def _uses_rule(member: JNode) -> bool:
        for node in walk(member):
            if isinstance(node, MethodInvocation) and _is_rule_call(node):
                return True
            if isinstance(node, Expression) and is_of_class_type(node.type, EXPECTED_EXCEPTION):
                return True
        return False
