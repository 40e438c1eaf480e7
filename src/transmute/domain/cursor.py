"""Traversal path and the per-traversal message bag."""

from dataclasses import dataclass
from typing import Any, Iterator, Optional, TypeVar

from transmute.domain.tree import JNode

N = TypeVar("N", bound=JNode)


@dataclass(frozen=True)
class Cursor:
    """Immutable path from the root to the node currently being visited."""

    value: JNode
    parent: Optional["Cursor"] = None

    def push(self, node: JNode) -> "Cursor":
        return Cursor(node, self)

    def frames(self) -> Iterator["Cursor"]:
        """This frame, then each ancestor frame up to the root."""
        frame: Optional[Cursor] = self
        while frame is not None:
            yield frame
            frame = frame.parent

    def path(self) -> list[JNode]:
        return [f.value for f in reversed(list(self.frames()))]

    def first_enclosing(self, node_type: type[N]) -> Optional[N]:
        for frame in self.frames():
            if isinstance(frame.value, node_type):
                return frame.value
        return None

    def parent_value(self) -> Optional[JNode]:
        return self.parent.value if self.parent is not None else None


class MessageBag:
    """
    Messages keyed by (ancestor node id, key).

    Owned by one traversal; the owner's entries are dropped when the
    traversal leaves that node, so nothing leaks to siblings or later files.
    """

    def __init__(self) -> None:
        self._by_owner: dict[int, dict[str, Any]] = {}

    def __len__(self) -> int:
        return sum(len(v) for v in self._by_owner.values())

    def put(self, owner_id: int, key: str, value: Any) -> None:
        self._by_owner.setdefault(owner_id, {})[key] = value

    def get(self, owner_id: int, key: str, default: Any = None) -> Any:
        return self._by_owner.get(owner_id, {}).get(key, default)

    def poll(self, owner_id: int, key: str, default: Any = None) -> Any:
        messages = self._by_owner.get(owner_id)
        if not messages or key not in messages:
            return default
        return messages.pop(key)

    def discard(self, owner_id: int) -> None:
        self._by_owner.pop(owner_id, None)
