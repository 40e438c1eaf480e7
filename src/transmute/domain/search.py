"""Whole-file searches used as recipe applicability tests."""

import re
from typing import Callable, Optional, Union

import libcst as cst

from transmute.domain.matchers import MethodMatcher, glob_pattern
from transmute.domain.tree import (
    CompilationUnit,
    Expression,
    ImportDeclaration,
    JNode,
    MethodDeclaration,
    MethodInvocation,
    VariableDeclarator,
)
from transmute.domain.types import ArrayType, ClassType, JavaType, MethodType, TypeModel

ApplicabilityTest = Callable[[CompilationUnit], bool]


class _SearchVisitor(cst.CSTVisitor):
    """Stops descending as soon as a hit is recorded."""

    def __init__(self) -> None:
        super().__init__()
        self.found = False

    def __call__(self, unit: CompilationUnit) -> bool:
        self.found = False
        unit.visit(self)
        return self.found

    def on_visit(self, node: cst.CSTNode) -> bool:
        if self.found:
            return False
        if isinstance(node, JNode) and self.is_hit(node):
            self.found = True
            return False
        return True

    def is_hit(self, node: JNode) -> bool:
        raise NotImplementedError


def _mentions(java_type: Optional[JavaType], fqn_pattern: "re.Pattern[str]") -> bool:
    if isinstance(java_type, ClassType):
        return bool(fqn_pattern.match(java_type.fqn)) or any(
            _mentions(t, fqn_pattern) for t in java_type.type_arguments
        )
    if isinstance(java_type, ArrayType):
        return _mentions(java_type.element, fqn_pattern)
    return False


def _method_mentions(method_type: Optional[MethodType], fqn_pattern: "re.Pattern[str]") -> bool:
    if method_type is None:
        return False
    return (
        _mentions(method_type.declaring_type, fqn_pattern)
        or _mentions(method_type.return_type, fqn_pattern)
        or any(_mentions(p, fqn_pattern) for p in method_type.parameter_types)
    )


class UsesType(_SearchVisitor):
    """True when a file imports or references a type matching ``fqn`` (``*`` globs allowed)."""

    def __init__(self, fqn: str) -> None:
        super().__init__()
        self.fqn = fqn
        self._pattern = glob_pattern(fqn)

    def is_hit(self, node: JNode) -> bool:
        if isinstance(node, ImportDeclaration):
            return bool(self._pattern.match(node.type_name))
        if isinstance(node, Expression) and _mentions(node.type, self._pattern):
            return True
        if isinstance(node, MethodInvocation):
            return _method_mentions(node.method_type, self._pattern)
        if isinstance(node, VariableDeclarator):
            return _mentions(node.type, self._pattern)
        return False


class UsesMethod(_SearchVisitor):
    """True when a file calls or declares a method matching the pattern."""

    def __init__(self, matcher: Union[MethodMatcher, str], type_model: Optional[TypeModel] = None) -> None:
        super().__init__()
        self.matcher = MethodMatcher(matcher) if isinstance(matcher, str) else matcher
        self.type_model = type_model

    def is_hit(self, node: JNode) -> bool:
        if isinstance(node, (MethodInvocation, MethodDeclaration)):
            return self.matcher.matches(node, self.type_model)
        return False


class FindEmptyMethods(_SearchVisitor):
    """True when some method (optionally constructor) has a body with no statements and no comments."""

    def __init__(self, match_constructors: bool = False) -> None:
        super().__init__()
        self.match_constructors = match_constructors

    def is_hit(self, node: JNode) -> bool:
        if not isinstance(node, MethodDeclaration) or node.body is None:
            return False
        if node.is_constructor and not self.match_constructors:
            return False
        return node.body.is_empty


def any_of(*tests: ApplicabilityTest) -> ApplicabilityTest:
    def check(unit: CompilationUnit) -> bool:
        return any(test(unit) for test in tests)

    return check


def all_of(*tests: ApplicabilityTest) -> ApplicabilityTest:
    def check(unit: CompilationUnit) -> bool:
        return all(test(unit) for test in tests)

    return check
