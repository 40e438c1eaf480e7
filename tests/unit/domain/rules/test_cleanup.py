"""Tests for the assertion and empty-test cleanups."""

import pytest

from tests.recipe_test_utils import forced_visit, normalize, rewrite_run, run_recipe
from transmute.domain.entities import Outcome
from transmute.domain.rules.cleanup import AssertEqualsNullToAssertNull, RemoveEmptyTests


@pytest.fixture
def assert_null(compiler):
    return AssertEqualsNullToAssertNull().prepare(compiler)


class TestAssertEqualsNullToAssertNull:
    """assertEquals with a null operand becomes assertNull."""

    def test_null_on_either_side(self, assert_null, front_end, printer) -> None:
        """The non-null operand is kept, and so is a message argument."""
        outcome = rewrite_run(
            assert_null,
            """
            import static org.junit.jupiter.api.Assertions.assertEquals;

            class ATest {
                void test() {
                    String s = null;
                    assertEquals(null, s);
                    assertEquals(s, null, "message");
                }
            }
            """,
            """
            import static org.junit.jupiter.api.Assertions.assertNull;

            class ATest {
                void test() {
                    String s = null;
                    assertNull(s);
                    assertNull(s, "message");
                }
            }
            """,
            front_end,
            printer,
        )
        assert len(outcome.with_outcome(Outcome.APPLIED)) == 2

    def test_assert_equals_import_kept_while_used(self, assert_null, front_end, printer) -> None:
        """Other assertEquals calls keep their static import."""
        outcome = run_recipe(
            assert_null,
            """
            import static org.junit.jupiter.api.Assertions.assertEquals;

            class ATest {
                void test() {
                    String s = "a";
                    assertEquals(null, s);
                    assertEquals("a", s);
                }
            }
            """,
            front_end,
            printer,
        )
        lines = [line.strip() for line in normalize(outcome.text)]
        assert "import static org.junit.jupiter.api.Assertions.assertEquals;" in lines
        assert "import static org.junit.jupiter.api.Assertions.assertNull;" in lines
        assert "assertNull(s);" in lines
        assert "assertEquals(\"a\", s);" in lines

    def test_qualified_call_stays_qualified(self, assert_null, front_end, printer) -> None:
        """Assertions.assertEquals(x, null) becomes Assertions.assertNull(x)."""
        outcome = run_recipe(
            assert_null,
            """
            import org.junit.jupiter.api.Assertions;

            class ATest {
                void test() {
                    Object value = new Object();
                    Assertions.assertEquals(value, null);
                }
            }
            """,
            front_end,
            printer,
        )
        lines = [line.strip() for line in normalize(outcome.text)]
        assert "Assertions.assertNull(value);" in lines
        assert "import org.junit.jupiter.api.Assertions;" in lines

    def test_both_null_is_left_alone(self, assert_null, front_end, printer) -> None:
        """There is no operand to keep."""
        rewrite_run(
            assert_null,
            """
            import static org.junit.jupiter.api.Assertions.assertEquals;

            class ATest {
                void test() {
                    assertEquals(null, null);
                }
            }
            """,
            None,
            front_end,
            printer,
        )

    def test_junit4_assert_is_not_matched(self, assert_null, front_end, printer) -> None:
        """org.junit.Assert.assertEquals is a different method."""
        outcome = rewrite_run(
            assert_null,
            """
            import static org.junit.Assert.assertEquals;

            class ATest {
                void test() {
                    String s = null;
                    assertEquals(null, s);
                }
            }
            """,
            None,
            front_end,
            printer,
        )
        assert [e.outcome for e in outcome.events] == [Outcome.NOT_APPLICABLE]


class TestRemoveEmptyTests:
    """Empty @Test methods without comments are deleted."""

    def test_removes_only_empty_uncommented_tests(self, front_end, printer) -> None:
        """Commented tests and non-test methods stay."""
        rewrite_run(
            RemoveEmptyTests(),
            """
            import org.junit.jupiter.api.Test;

            class ATest {
                @Test
                void empty() {
                }

                @Test
                void commented() {
                    // nothing to check yet
                }

                void helper() {
                }
            }
            """,
            """
            import org.junit.jupiter.api.Test;

            class ATest {

                @Test
                void commented() {
                    // nothing to check yet
                }

                void helper() {
                }
            }
            """,
            front_end,
            printer,
        )

    def test_no_empty_methods_is_not_applicable(self, front_end, printer) -> None:
        """FindEmptyMethods gates the visitor."""
        outcome = run_recipe(
            RemoveEmptyTests(),
            """
            import org.junit.jupiter.api.Test;

            class ATest {
                @Test
                void works() {
                    int x = 1;
                }
            }
            """,
            front_end,
            printer,
        )
        assert not outcome.changed
        assert outcome.with_outcome(Outcome.NOT_APPLICABLE)

    def test_abstract_test_contract_is_kept(self, front_end, printer) -> None:
        """A bodiless @Test method declares a contract for subclasses and is not empty."""
        rewrite_run(
            RemoveEmptyTests(),
            """
            import org.junit.jupiter.api.Test;

            abstract class ContractTest {
                @Test
                public abstract void contract();

                @Test
                void empty() {
                }
            }
            """,
            """
            import org.junit.jupiter.api.Test;

            abstract class ContractTest {
                @Test
                public abstract void contract();
            }
            """,
            front_end,
            printer,
        )

    def test_only_abstract_tests_is_not_applicable(self, front_end) -> None:
        """The visitor agrees with the gate when it is run anyway."""
        applicable, changed = forced_visit(
            RemoveEmptyTests(),
            """
            import org.junit.jupiter.api.Test;

            interface ContractTest {
                @Test
                void contract();
            }
            """,
            front_end,
        )
        assert not applicable
        assert not changed
