"""Signature patterns for methods and types."""

import re
from typing import Optional, Union

from transmute.domain.tree import Expression, JNode, MethodDeclaration, MethodInvocation
from transmute.domain.types import (
    PRIMITIVE_KEYWORDS,
    ArrayType,
    ClassType,
    JavaType,
    MethodType,
    TypeModel,
    TypeVariable,
)

ANY_PARAMETERS = ".."
ANY_PARAMETER = "*"

_PATTERN = re.compile(r"^\s*(?P<type>[\w.$*]+)\s+(?P<name>[\w$*<>]+)\s*(?:\((?P<params>.*)\))?\s*$")


def erased_name(java_type: JavaType) -> str:
    """Erased spelling of a type as written in a signature pattern."""
    if isinstance(java_type, ClassType):
        return java_type.fqn
    if isinstance(java_type, ArrayType):
        return erased_name(java_type.element) + "[]"
    if isinstance(java_type, TypeVariable):
        return java_type.bound.fqn if java_type.bound else "java.lang.Object"
    return java_type.keyword


def qualify(type_name: str) -> str:
    """Resolve a pattern's simple type names against java.lang."""
    dims = ""
    while type_name.endswith("[]"):
        type_name = type_name[:-2].strip()
        dims += "[]"
    type_name = re.sub(r"<.*>$", "", type_name)
    if (
        "." in type_name
        or "*" in type_name
        or type_name in PRIMITIVE_KEYWORDS
        or type_name == ANY_PARAMETERS
    ):
        return type_name + dims
    return f"java.lang.{type_name}{dims}"


def glob_pattern(pattern: str) -> "re.Pattern[str]":
    return re.compile("^" + re.escape(pattern).replace(r"\*", "[^.]*") + "$")


def _split_parameters(text: str) -> list[str]:
    params: list[str] = []
    depth = 0
    current = ""
    for char in text:
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
        if char == "," and depth == 0:
            params.append(current.strip())
            current = ""
        else:
            current += char
    if current.strip():
        params.append(current.strip())
    return params


class MethodMatcher:
    """
    Matches invocations and declarations by ``"decl.Type name(T1, T2, ..)"``.

    A trailing ``..`` accepts any number of remaining parameters and ``*``
    any single parameter. Without a parameter list only the declaring type
    and the name are compared. ``*`` globs within the type and the name.
    Calls whose method type could not be resolved never match.
    """

    def __init__(self, pattern: str, match_overrides: bool = False) -> None:
        parsed = _PATTERN.match(pattern)
        if parsed is None:
            raise ValueError(f"Invalid method pattern: {pattern!r}")
        self.pattern = pattern
        self.match_overrides = match_overrides
        self._type = glob_pattern(qualify(parsed.group("type")))
        self._name = re.compile(
            "^" + re.escape(parsed.group("name")).replace(r"\*", ".*") + "$"
        )
        params = parsed.group("params")
        self._parameters: Optional[list[str]] = None
        if params is not None:
            self._parameters = [qualify(p) for p in _split_parameters(params)]
            if ANY_PARAMETERS in self._parameters[:-1]:
                raise ValueError(f"'..' must be the last parameter: {pattern!r}")

    def __repr__(self) -> str:
        return f"MethodMatcher({self.pattern!r})"

    def matches(
        self,
        target: Union[MethodType, JNode, None],
        type_model: Optional[TypeModel] = None,
    ) -> bool:
        method_type = self._method_type(target)
        if method_type is None:
            return False
        if not self._name.match(method_type.name):
            return False
        if not self._matches_declaring_type(method_type.declaring_type, type_model):
            return False
        if self._parameters is None:
            return True
        return self._matches_parameters([erased_name(p) for p in method_type.parameter_types])

    @staticmethod
    def _method_type(target: Union[MethodType, JNode, None]) -> Optional[MethodType]:
        if isinstance(target, MethodType):
            return target
        if isinstance(target, (MethodInvocation, MethodDeclaration)):
            return target.method_type
        return None

    def _matches_declaring_type(self, declaring: ClassType, type_model: Optional[TypeModel]) -> bool:
        if self._type.match(declaring.fqn):
            return True
        if self.match_overrides and type_model is not None:
            return any(self._type.match(a) for a in type_model.ancestors(declaring.fqn))
        return False

    def _matches_parameters(self, actual: list[str]) -> bool:
        expected = self._parameters or []
        if expected and expected[-1] == ANY_PARAMETERS:
            prefix = expected[:-1]
            if len(actual) < len(prefix):
                return False
            actual = actual[: len(prefix)]
            expected = prefix
        if len(actual) != len(expected):
            return False
        return all(e == ANY_PARAMETER or glob_pattern(e).match(a) for e, a in zip(expected, actual))


class TypeMatcher:
    """Qualified-name match, optionally accepting subtypes through the type model."""

    def __init__(self, fqn: str, match_subtypes: bool = False) -> None:
        self.fqn = fqn
        self.match_subtypes = match_subtypes

    def __repr__(self) -> str:
        return f"TypeMatcher({self.fqn!r})"

    def matches(
        self,
        target: Union[JavaType, Expression, None],
        type_model: Optional[TypeModel] = None,
    ) -> bool:
        java_type = target.type if isinstance(target, Expression) else target
        if isinstance(java_type, TypeVariable):
            java_type = java_type.bound
        if not isinstance(java_type, ClassType):
            return False
        if java_type.fqn == self.fqn:
            return True
        if self.match_subtypes and type_model is not None:
            return type_model.is_subtype(java_type.fqn, self.fqn)
        return False


def is_of_class_type(java_type: Optional[JavaType], fqn: str) -> bool:
    return isinstance(java_type, ClassType) and java_type.fqn == fqn
