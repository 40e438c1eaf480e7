"""Tests for the traversal cursor and message bag."""

from transmute.domain.cursor import Cursor, MessageBag
from transmute.domain.tree import Block, ClassDeclaration, Identifier, MethodDeclaration


class TestCursor:
    def test_path_and_enclosing_lookup(self) -> None:
        """The path runs root first; first_enclosing searches from the current node outwards."""
        declaration = ClassDeclaration((), (), "class", "ATest")
        method = MethodDeclaration((), (), (), None, "ATest")
        block = Block()
        cursor = Cursor(declaration).push(method).push(block)

        assert cursor.path() == [declaration, method, block]
        assert cursor.first_enclosing(MethodDeclaration) is method
        assert cursor.first_enclosing(Block) is block
        assert cursor.first_enclosing(Identifier) is None
        assert cursor.parent_value() is method

    def test_root_has_no_parent(self) -> None:
        assert Cursor(Block()).parent_value() is None


class TestMessageBag:
    """Messages belong to one owner node."""

    def test_put_get_poll(self) -> None:
        bag = MessageBag()
        bag.put(1, "calls", ["a"])

        assert bag.get(1, "calls") == ["a"]
        assert bag.get(2, "calls", "none") == "none"
        assert bag.poll(1, "calls") == ["a"]
        assert bag.poll(1, "calls", "gone") == "gone"

    def test_discard_drops_every_key_of_an_owner(self) -> None:
        """Leaving a node forgets what was stored on it."""
        bag = MessageBag()
        bag.put(1, "a", 1)
        bag.put(1, "b", 2)
        bag.put(2, "a", 3)

        bag.discard(1)

        assert len(bag) == 1
        assert bag.get(2, "a") == 3
