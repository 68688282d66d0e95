"""Reference consolidation: fill the component registry from the graph."""

import logging
from typing import Optional

from oagraph.graph.walker import Visitor, walk
from oagraph.models.base import Node, NodeKind
from oagraph.models.components import ComponentRegistry
from oagraph.models.document import Document
from oagraph.models.reference import ReferenceHolder

logger = logging.getLogger(__name__)


class ReferenceConsolidator(Visitor):
    """Registers every reachable, addressable reusable node.

    Holders register their resolved target under the holder's id; elements
    carrying their own descriptor register themselves. Anonymous inline
    elements are left where they are, as are unresolved holders and
    pointer-addressed ones.
    """

    def __init__(self, registry: ComponentRegistry):
        super().__init__()
        self.registry = registry
        self.added = 0

    def visit_reference_holder(self, node: Node) -> None:
        reference = node.reference
        if reference.kind == NodeKind.TAG or reference.is_pointer:
            return

        target: Optional[Node] = node
        if isinstance(node, ReferenceHolder):
            target = node.resolve()
            if target is None:
                logger.debug(f"Skipping unresolved reference at {self.path_string}")
                return

        if self.registry.register(reference.kind, reference.id, target):
            self.added += 1


def consolidate(document: Document) -> ComponentRegistry:
    """Register every reference target reachable from ``document``.

    First registration wins, so running this twice adds nothing the second
    time. External targets are copied into the registry under the id the
    holder used.

    Args:
        document: Document whose registry is filled

    Returns:
        The document's component registry
    """
    if document is None:
        raise ValueError("document must not be None")
    consolidator = ReferenceConsolidator(document.components)
    walk(document, consolidator, descend_into_references=True)
    logger.info(f"Consolidated {consolidator.added} components into the registry")
    return document.components
