"""Component registry owned by a document."""

import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

from oagraph.models.base import Node, NodeKind

logger = logging.getLogger(__name__)

ComponentKey = Tuple[NodeKind, str]


class ComponentRegistry:
    """Insertion-ordered ``(kind, id) -> node`` mapping.

    Registration is first-write-wins: registering an existing key leaves
    the original entry in place.
    """

    def __init__(self):
        self._entries: Dict[ComponentKey, Node] = {}
        self.extensions: Dict[str, Any] = {}

    def register(self, kind: NodeKind, reference_id: str, node: Node) -> bool:
        """Insert ``node`` unless ``(kind, reference_id)`` is taken.

        Args:
            kind: Component kind
            reference_id: Component name
            node: Element to register

        Returns:
            True if the entry was inserted
        """
        if node is None:
            raise ValueError("Cannot register None as a component")
        key = (NodeKind(kind), reference_id)
        if key in self._entries:
            return False
        self._entries[key] = node
        logger.debug(f"Registered component {key[0].value}/{reference_id}")
        return True

    def get(self, kind: NodeKind, reference_id: str) -> Optional[Node]:
        return self._entries.get((kind, reference_id))

    def remove(self, kind: NodeKind, reference_id: str) -> Optional[Node]:
        """Drop an entry, returning it if it existed."""
        return self._entries.pop((kind, reference_id), None)

    def items_of(self, kind: NodeKind) -> List[Tuple[str, Node]]:
        """``(id, node)`` pairs of one kind in registration order."""
        return [(key[1], node) for key, node in self._entries.items() if key[0] == kind]

    def kinds(self) -> List[NodeKind]:
        """Kinds with at least one entry, in section order."""
        present = {key[0] for key in self._entries}
        return [kind for kind in NodeKind if kind in present]

    def counts(self) -> Dict[str, int]:
        """Entry count per section name."""
        return {kind.value: len(self.items_of(kind)) for kind in self.kinds()}

    def keys(self) -> List[ComponentKey]:
        return list(self._entries)

    def items(self) -> List[Tuple[ComponentKey, Node]]:
        return list(self._entries.items())

    def is_empty(self) -> bool:
        return not self._entries and not self.extensions

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __getitem__(self, key: ComponentKey) -> Node:
        return self._entries[key]

    def __iter__(self) -> Iterator[ComponentKey]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ComponentRegistry({self.counts()})"
