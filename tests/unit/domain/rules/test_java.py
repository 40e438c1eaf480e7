"""Tests for ChangeType."""

import pytest

from tests.recipe_test_utils import normalize, rewrite_run, run_recipe
from transmute.domain.rules.java import ChangeType


class TestChangeType:
    """References to one type become references to another."""

    def test_simple_names_and_imports_follow(self, front_end, printer) -> None:
        """The annotation is renamed and the import swapped."""
        rewrite_run(
            ChangeType("org.junit.Ignore", "org.junit.jupiter.api.Disabled"),
            """
            import org.junit.Ignore;
            import org.junit.Test;

            class ATest {
                @Ignore
                @Test
                void skipped() {
                }
            }
            """,
            """
            import org.junit.Test;
            import org.junit.jupiter.api.Disabled;

            class ATest {
                @Disabled
                @Test
                void skipped() {
                }
            }
            """,
            front_end,
            printer,
        )

    def test_fully_qualified_reference_stays_qualified(self, front_end, printer) -> None:
        """No import is added for a name written in full."""
        outcome = run_recipe(
            ChangeType("org.junit.Ignore", "org.junit.jupiter.api.Disabled"),
            """
            import org.junit.Test;

            class ATest {
                @org.junit.Ignore
                @Test
                void skipped() {
                }
            }
            """,
            front_end,
            printer,
        )
        lines = [line.strip() for line in normalize(outcome.text)]
        assert "@org.junit.jupiter.api.Disabled" in lines
        assert "import org.junit.jupiter.api.Disabled;" not in lines

    def test_static_import_moves_to_new_type(self, front_end, printer) -> None:
        """Statically imported members keep resolving against the new owner."""
        outcome = run_recipe(
            ChangeType("org.junit.Assume", "org.junit.jupiter.api.Assumptions"),
            """
            import static org.junit.Assume.assumeTrue;

            class ATest {
                void test() {
                    assumeTrue(true);
                }
            }
            """,
            front_end,
            printer,
        )
        lines = [line.strip() for line in normalize(outcome.text)]
        assert "import static org.junit.jupiter.api.Assumptions.assumeTrue;" in lines
        assert "assumeTrue(true);" in lines

    def test_unrelated_file_is_untouched(self, front_end, printer) -> None:
        """Files that never mention the old type are not applicable."""
        rewrite_run(
            ChangeType("org.junit.Ignore", "org.junit.jupiter.api.Disabled"),
            """
            class Plain {
                void run() {
                }
            }
            """,
            None,
            front_end,
            printer,
        )

    def test_both_names_required(self) -> None:
        """A catalog entry missing either name is rejected."""
        with pytest.raises(ValueError, match="both the old and the new"):
            ChangeType("org.junit.Ignore", "")

    def test_options_round_trip_catalog_keys(self) -> None:
        """options mirror the constructor arguments."""
        recipe = ChangeType("a.B", "c.D")
        assert recipe.options == {
            "old_fully_qualified_type_name": "a.B",
            "new_fully_qualified_type_name": "c.D",
        }
        assert "old_fully_qualified_type_name='a.B'" in repr(recipe)
