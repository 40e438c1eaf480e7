"""Built-in recipes, keyed by the name a catalog refers to them by."""

from transmute.domain.recipe import Recipe
from transmute.domain.rules.build import AddDependency, RemoveDependency
from transmute.domain.rules.cleanup import AssertEqualsNullToAssertNull, RemoveEmptyTests
from transmute.domain.rules.java import ChangeType
from transmute.domain.rules.junit5 import ExpectedExceptionToAssertThrows
from transmute.domain.rules.mockito import PowerMockitoMockStaticToMockito

__all__ = [
    "AddDependency",
    "AssertEqualsNullToAssertNull",
    "BUILTIN_RECIPES",
    "ChangeType",
    "ExpectedExceptionToAssertThrows",
    "PowerMockitoMockStaticToMockito",
    "RemoveDependency",
    "RemoveEmptyTests",
]

BUILTIN_RECIPES: dict[str, type[Recipe]] = {
    recipe.name: recipe
    for recipe in (
        AddDependency,
        AssertEqualsNullToAssertNull,
        ChangeType,
        ExpectedExceptionToAssertThrows,
        PowerMockitoMockStaticToMockito,
        RemoveDependency,
        RemoveEmptyTests,
    )
}
