"""Tests for applicability searches."""

from tests.recipe_test_utils import java
from transmute.domain.search import FindEmptyMethods, UsesMethod, UsesType, all_of, any_of

TEST_CLASS = java(
    """
    import static org.junit.Assert.assertEquals;

    import java.util.List;

    import org.junit.Test;

    class ATest {
        ATest() {
        }

        @Test
        void compares() {
            assertEquals(1L, 1L);
        }

        void pending() {
            // not written yet
        }
    }
    """
)


class TestUsesType:
    def test_import_counts_as_use(self, front_end) -> None:
        unit = front_end.parse(TEST_CLASS)
        assert UsesType("java.util.List")(unit)
        assert UsesType("org.junit.*")(unit)

    def test_unrelated_type(self, front_end) -> None:
        assert not UsesType("org.mockito.Mockito")(front_end.parse(TEST_CLASS))

    def test_reference_without_import(self, front_end) -> None:
        """Fully qualified references are found through their resolved type."""
        unit = front_end.parse("class A {\n    java.util.List<String> names;\n}\n")
        assert UsesType("java.util.List")(unit)


class TestUsesMethod:
    def test_matches_resolved_call(self, front_end) -> None:
        unit = front_end.parse(TEST_CLASS)
        assert UsesMethod("org.junit.Assert assertEquals(..)")(unit)
        assert not UsesMethod("org.junit.Assert assertNull(..)")(unit)


class TestFindEmptyMethods:
    def test_constructors_only_when_asked(self, front_end) -> None:
        """The empty constructor is the only empty body; the commented method does not count."""
        unit = front_end.parse(TEST_CLASS)
        assert not FindEmptyMethods()(unit)
        assert FindEmptyMethods(match_constructors=True)(unit)


def test_combinators(front_end) -> None:
    unit = front_end.parse(TEST_CLASS)
    uses_list = UsesType("java.util.List")
    uses_mockito = UsesType("org.mockito.Mockito")

    assert any_of(uses_mockito, uses_list)(unit)
    assert not all_of(uses_mockito, uses_list)(unit)
    assert all_of(uses_list)(unit)
