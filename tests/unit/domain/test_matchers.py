"""Tests for MethodMatcher and TypeMatcher."""

import pytest

from transmute.domain.matchers import MethodMatcher, TypeMatcher, erased_name, qualify
from transmute.domain.tree import Identifier, MethodInvocation
from transmute.domain.types import (
    OBJECT,
    STRING,
    ArrayType,
    ClassInfo,
    ClassType,
    MethodType,
    Primitive,
    TypeModel,
    TypeVariable,
)

ASSERT = ClassType("org.junit.Assert")
ASSERT_EQUALS = MethodType(ASSERT, "assertEquals", (OBJECT, OBJECT), is_static=True)
ASSERT_EQUALS_MESSAGE = MethodType(ASSERT, "assertEquals", (STRING, OBJECT, OBJECT), is_static=True)
ASSERT_EQUALS_LONG = MethodType(ASSERT, "assertEquals", (Primitive("long"), Primitive("long")), is_static=True)


class TestMethodMatcher:
    """Patterns of the form 'declaring.Type name(params)'."""

    def test_exact_parameters(self) -> None:
        """Simple parameter names resolve against java.lang."""
        matcher = MethodMatcher("org.junit.Assert assertEquals(Object, Object)")

        assert matcher.matches(ASSERT_EQUALS)
        assert not matcher.matches(ASSERT_EQUALS_MESSAGE)
        assert not matcher.matches(ASSERT_EQUALS_LONG)

    def test_arity_must_match_exactly(self) -> None:
        owner = ClassType("com.example.Flags")
        matcher = MethodMatcher("com.example.Flags set(String, boolean)")

        assert matcher.matches(MethodType(owner, "set", (STRING, Primitive("boolean"))))
        assert not matcher.matches(MethodType(owner, "set", (STRING,)))
        assert not matcher.matches(MethodType(owner, "set", (STRING, Primitive("boolean"), Primitive("int"))))

    def test_trailing_dots_accept_any_remaining_parameters(self) -> None:
        matcher = MethodMatcher("org.junit.Assert assertEquals(String, ..)")

        assert matcher.matches(ASSERT_EQUALS_MESSAGE)
        assert not matcher.matches(ASSERT_EQUALS)

    def test_star_matches_exactly_one_parameter(self) -> None:
        matcher = MethodMatcher("org.junit.Assert assertEquals(*, *)")

        assert matcher.matches(ASSERT_EQUALS)
        assert matcher.matches(ASSERT_EQUALS_LONG)
        assert not matcher.matches(ASSERT_EQUALS_MESSAGE)

    def test_empty_parameter_list(self) -> None:
        """'()' only matches methods without parameters."""
        matcher = MethodMatcher("org.junit.Assert fail()")
        assert matcher.matches(MethodType(ASSERT, "fail"))
        assert not matcher.matches(MethodType(ASSERT, "fail", (STRING,)))

    def test_without_parameter_list_any_overload_matches(self) -> None:
        matcher = MethodMatcher("org.junit.Assert assertEquals")
        assert all(matcher.matches(m) for m in (ASSERT_EQUALS, ASSERT_EQUALS_MESSAGE, ASSERT_EQUALS_LONG))

    def test_globs_in_type_and_name(self) -> None:
        """'*' in the type stays within one package segment; in the name it matches anything."""
        assert MethodMatcher("org.junit.* assert*(..)").matches(ASSERT_EQUALS)
        assert not MethodMatcher("org.* assertEquals(..)").matches(ASSERT_EQUALS)

    def test_unresolved_call_never_matches(self) -> None:
        """A call without a method type is not guessed at from its name."""
        matcher = MethodMatcher("org.junit.Assert assertEquals(..)")

        assert not matcher.matches(MethodInvocation(None, "assertEquals"))
        assert not matcher.matches(None)
        assert not matcher.matches(Identifier("assertEquals"))

    def test_matches_invocation_nodes(self) -> None:
        call = MethodInvocation(None, "assertEquals", method_type=ASSERT_EQUALS)
        assert MethodMatcher("org.junit.Assert assertEquals(..)").matches(call)

    def test_override_matching_uses_supertypes(self) -> None:
        """With match_overrides a subclass declaration counts as the supertype's method."""
        base = ClassType("com.example.Base")
        child = ClassType("com.example.Child")
        model = TypeModel(
            {
                "com.example.Base": ClassInfo("com.example.Base"),
                "com.example.Child": ClassInfo("com.example.Child", supertypes=(base,)),
            }
        )
        declared = MethodType(child, "run")

        assert not MethodMatcher("com.example.Base run()").matches(declared, model)
        assert MethodMatcher("com.example.Base run()", match_overrides=True).matches(declared, model)

    def test_generic_parameters_are_erased(self) -> None:
        """Type variables compare as their bound."""
        method = MethodType(ClassType("java.util.List"), "add", (TypeVariable("E"),))
        assert MethodMatcher("java.util.List add(Object)").matches(method)

    @pytest.mark.parametrize(
        "pattern",
        ["", "assertEquals", "org.junit.Assert assertEquals(.., String)"],
    )
    def test_invalid_patterns_are_rejected(self, pattern: str) -> None:
        with pytest.raises(ValueError):
            MethodMatcher(pattern)


class TestTypeMatcher:
    def test_exact_and_subtype_matches(self) -> None:
        """Subtypes only match when asked for and when the model knows the hierarchy."""
        model = TypeModel(
            {
                "java.lang.IllegalArgumentException": ClassInfo(
                    "java.lang.IllegalArgumentException",
                    supertypes=(ClassType("java.lang.RuntimeException"),),
                )
            }
        )
        illegal = ClassType("java.lang.IllegalArgumentException")

        assert TypeMatcher("java.lang.IllegalArgumentException").matches(illegal)
        assert not TypeMatcher("java.lang.RuntimeException").matches(illegal, model)
        assert TypeMatcher("java.lang.RuntimeException", match_subtypes=True).matches(illegal, model)

    def test_expressions_and_type_variables(self) -> None:
        assert TypeMatcher("java.lang.String").matches(Identifier("s", type=STRING))
        assert TypeMatcher("java.lang.String").matches(TypeVariable("T", STRING))
        assert not TypeMatcher("java.lang.String").matches(Identifier("s"))
        assert not TypeMatcher("java.lang.String").matches(Primitive("int"))


def test_pattern_spelling_helpers() -> None:
    """qualify and erased_name agree on how types are written."""
    assert qualify("String[]") == "java.lang.String[]"
    assert qualify("int") == "int"
    assert qualify("java.util.List<String>") == "java.util.List"
    assert erased_name(ArrayType(Primitive("int"))) == "int[]"
    assert erased_name(TypeVariable("T")) == "java.lang.Object"
