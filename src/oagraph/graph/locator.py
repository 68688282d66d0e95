"""Find the node at a document-relative JSON pointer."""

import logging
from typing import Any, Optional

from oagraph.graph.walker import Visitor, Walker
from oagraph.models.base import Node, NodeKind
from oagraph.models.reference import ReferenceDescriptor, ReferenceHolder

logger = logging.getLogger(__name__)


class NodeLocator(Visitor):
    """Walks a document and keeps the first node found at ``pointer``.

    A holder found at the pointer is resolved, unless it is the holder
    doing the lookup (``exclude``).
    """

    def __init__(
        self,
        pointer: str,
        kind: Optional[NodeKind] = None,
        exclude: Optional[ReferenceDescriptor] = None,
    ):
        super().__init__()
        self.target_pointer = pointer[1:] if pointer.startswith("#") else pointer
        self.kind = kind
        self.exclude = exclude
        self.found: Optional[Node] = None

    def find(self, root: Node) -> Optional[Node]:
        Walker(self).walk(root)
        if self.found is None:
            logger.debug(f"Nothing found at {self.target_pointer}")
        return self.found

    def visit_node(self, node: Any) -> None:
        if self._here() and self._accepts(node):
            self.found = node

    def visit_reference_holder(self, node: Node) -> None:
        if not self._here():
            return
        if isinstance(node, ReferenceHolder):
            if node.reference == self.exclude:
                return
            node = node.resolve()
        if node is not None and self._accepts(node):
            self.found = node

    def _here(self) -> bool:
        return self.found is None and self.pointer == self.target_pointer

    def _accepts(self, node: Any) -> bool:
        return self.kind is None or getattr(node, "kind", None) == self.kind
