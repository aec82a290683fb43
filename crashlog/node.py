"""A tree of decoded Crash Log registers."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field as dataclass_field
from typing import Any, Iterable, Iterator, Optional, Union


class NodeType(enum.Enum):
    """Kind of a node in the register tree."""

    ROOT = "root"
    SECTION = "section"
    RECORD = "record"
    FIELD = "field"


@dataclass(eq=True)
class Node:
    """Node of the Crash Log register tree.

    Field nodes carry an integer ``value``; other kinds leave it as ``None``.
    Children are stored by name and always iterated in alphabetical order.
    """

    name: str = ""
    description: str = ""
    kind: NodeType = NodeType.ROOT
    value: Optional[int] = None
    _children: dict[str, "Node"] = dataclass_field(
        default_factory=dict, init=False, repr=False
    )

    @classmethod
    def root(cls) -> "Node":
        """Return a new, empty root node."""
        return cls()

    @classmethod
    def section(cls, name: str) -> "Node":
        """Return a new section node."""
        return cls(name=name.lower(), kind=NodeType.SECTION)

    @classmethod
    def record(cls, name: str) -> "Node":
        """Return a new record node."""
        return cls(name=name.lower(), kind=NodeType.RECORD)

    @classmethod
    def field(cls, name: str, value: int) -> "Node":
        """Return a new field node holding ``value``."""
        return cls(name=name.lower(), kind=NodeType.FIELD, value=value)

    def set_value(self, value: int) -> None:
        """Turn this node into a field node holding ``value``."""
        self.kind = NodeType.FIELD
        self.value = value

    def get(self, name: str) -> Optional["Node"]:
        """Return the child called ``name``, or ``None``."""
        return self._children.get(name)

    def get_by_path(self, path: str) -> Optional["Node"]:
        """Return the node at a dot-separated ``path`` below this node, or ``None``."""
        node: Optional[Node] = self
        for name in path.split("."):
            node = node.get(name)
            if node is None:
                return None
        return node

    def _merge_instance(self, other: "Node") -> None:
        base = other.name
        instance = 0
        while other.name in self._children:
            other.name = f"{base}{instance}"
            instance += 1
        self.add(other)

    def merge(self, other: "Node") -> None:
        """Merge the children of ``other`` into this node.

        Sections are merged recursively; clashing records and fields are
        kept side by side under numbered names.
        """
        for child in other.children():
            existing = self._children.get(child.name)
            if existing is None:
                self.add(child)
            elif existing.kind in (NodeType.RECORD, NodeType.FIELD):
                self._merge_instance(child)
            else:
                existing.merge(child)

    def add(self, node: "Node") -> None:
        """Add ``node`` as a child, replacing any child of the same name."""
        self._children[node.name] = node

    def create_hierarchy(self, path: Union[str, Iterable[str]]) -> "Node":
        """Create the sections along ``path`` where missing and return the last node.

        ``path`` is either a dot-separated string or an iterable of names.
        """
        names = path.split(".") if isinstance(path, str) else path
        node = self
        for name in names:
            child = node.get(name)
            if child is None:
                child = Node.section(name)
                node.add(child)
            node = child
        return node

    def children(self) -> Iterator["Node"]:
        """Iterate over the children in alphabetical order of their names."""
        for name in sorted(self._children):
            yield self._children[name]

    def _children_json(self) -> dict[str, Any]:
        return {
            name: self._children[name].to_json_value()
            for name in sorted(self._children)
        }

    def to_json_value(self) -> Any:
        """Return the JSON-ready representation of this node."""
        if self.kind is NodeType.FIELD:
            text = f"0x{(self.value or 0):x}"
            if not self._children:
                return text
            return {"_value": text, **self._children_json()}
        if self.kind is NodeType.ROOT:
            return {"crashlog_data": self._children_json()}
        return self._children_json()

    def to_json(self) -> str:
        """Return this node serialised as compact JSON."""
        return json.dumps(self.to_json_value(), separators=(",", ":"))