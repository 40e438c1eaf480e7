"""Tests for the dependency side-effect recipes."""

from tests.recipe_test_utils import java
from transmute.domain.entities import DependencyChange, RecipeState
from transmute.domain.rules.build import AddDependency, RemoveDependency

JUPITER_TEST = java(
    """
    import org.junit.jupiter.api.Test;

    class ATest {
        @Test
        void works() {
        }
    }
    """
)


class TestAddDependency:
    """AddDependency only records a change; the tree is never touched."""

    def test_requested_when_type_in_use(self, front_end, type_model) -> None:
        """onlyIfUsing matches the file's imports."""
        recipe = AddDependency(
            "org.junit.jupiter", "junit-jupiter", "5.x", scope="test", only_if_using="org.junit.jupiter.api.Test"
        )
        unit = front_end.parse(JUPITER_TEST, "ATest.java")
        run = recipe.run(unit, type_model)

        assert run.state is RecipeState.DONE
        assert not run.changed
        assert run.unit is unit
        assert run.dependency_changes == [DependencyChange.add("org.junit.jupiter", "junit-jupiter", "5.x", "test")]

    def test_not_requested_when_type_unused(self, front_end, type_model) -> None:
        """A file that never uses the type produces nothing."""
        recipe = AddDependency("org.mockito", "mockito-inline", only_if_using="org.mockito.MockedStatic")
        run = recipe.run(front_end.parse(JUPITER_TEST, "ATest.java"), type_model)

        assert run.state is RecipeState.SKIPPED
        assert run.dependency_changes == []

    def test_options_omit_unset_values(self) -> None:
        """Only given options appear."""
        assert AddDependency("g", "a").options == {"group_id": "g", "artifact_id": "a"}


class TestRemoveDependency:
    def test_always_requested(self, front_end, type_model) -> None:
        """Removal is requested for every file."""
        run = RemoveDependency("junit", "junit").run(front_end.parse(JUPITER_TEST, "ATest.java"), type_model)

        assert run.dependency_changes == [DependencyChange.remove("junit", "junit")]
        assert str(run.dependency_changes[0]) == "remove junit:junit"
