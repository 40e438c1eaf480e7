"""Every built-in recipe's gate agrees with what its visitor would do."""

import pytest

from tests.recipe_test_utils import forced_visit
from transmute.domain.rules import (
    AddDependency,
    AssertEqualsNullToAssertNull,
    ChangeType,
    ExpectedExceptionToAssertThrows,
    PowerMockitoMockStaticToMockito,
    RemoveEmptyTests,
)

JUNIT4_ASSERT_EQUALS = """
import static org.junit.Assert.assertEquals;

class ATest {
    void test() {
        String s = null;
        assertEquals(null, s);
    }
}
"""

ABSTRACT_TESTS_ONLY = """
import org.junit.jupiter.api.Test;

abstract class ContractTest {
    @Test
    public abstract void contract();

    @Test
    void works() {
        int x = 1;
    }
}
"""

MAP_ONLY = """
import java.util.Map;

class Holder {
    private Map<String, String> values = null;
}
"""

OTHER_RULE = """
import org.junit.Rule;
import org.junit.Test;
import org.junit.rules.TemporaryFolder;

class FolderTest {
    @Rule
    public TemporaryFolder folder = new TemporaryFolder();

    @Test
    void createsFile() throws Exception {
        folder.newFile("a.txt");
    }
}
"""

INSTANCE_MOCKING = """
import static org.mockito.Mockito.mock;
import static org.mockito.Mockito.when;

import java.util.List;

class MockTest {
    void stubs() {
        List<String> list = mock(List.class);
        when(list.size());
    }
}
"""

NO_JUPITER = """
class Plain {
}
"""


@pytest.mark.parametrize(
    ("make_recipe", "source"),
    [
        pytest.param(lambda c: AssertEqualsNullToAssertNull().prepare(c), JUNIT4_ASSERT_EQUALS, id="assert-null"),
        pytest.param(lambda c: RemoveEmptyTests(), ABSTRACT_TESTS_ONLY, id="remove-empty-tests"),
        pytest.param(
            lambda c: ChangeType("java.util.List", "java.util.Collection"), MAP_ONLY, id="change-type"
        ),
        pytest.param(
            lambda c: ExpectedExceptionToAssertThrows().prepare(c), OTHER_RULE, id="expected-exception"
        ),
        pytest.param(
            lambda c: PowerMockitoMockStaticToMockito().prepare(c), INSTANCE_MOCKING, id="mock-static"
        ),
        pytest.param(
            lambda c: AddDependency("org.junit.jupiter", "junit-jupiter", only_if_using="org.junit.jupiter.api.*"),
            NO_JUPITER,
            id="add-dependency",
        ),
    ],
)
def test_rejected_file_is_left_alone_by_the_visitor(make_recipe, source, compiler, front_end) -> None:
    """A file the gate turns away is one the visitor would not have changed either."""
    recipe = make_recipe(compiler)

    applicable, changed = forced_visit(recipe, source, front_end)

    assert not applicable
    assert not changed
