"""Reference check: every holder in a document should resolve."""

import logging

from oagraph.diagnostics import Diagnostic, DiagnosticKind
from oagraph.graph.walker import Visitor, walk
from oagraph.models.base import Node, NodeKind
from oagraph.models.document import Document
from oagraph.models.reference import ReferenceHolder

logger = logging.getLogger(__name__)


class ReferenceChecker(Visitor):
    """Forces resolution of each holder and records the misses."""

    def __init__(self, diagnostic: Diagnostic):
        super().__init__()
        self.diagnostic = diagnostic
        self.checked = 0

    def visit_reference_holder(self, node: Node) -> None:
        # Operation tags need not be declared in the tag list
        if not isinstance(node, ReferenceHolder) or node.kind == NodeKind.TAG:
            return
        self.checked += 1
        if node.resolve() is None:
            self.diagnostic.add_warning(
                f"Unresolved reference {node.reference.to_pointer()}",
                self.path_string,
                DiagnosticKind.UNRESOLVED_REFERENCE,
            )


def check_references(document: Document) -> Diagnostic:
    """Walk ``document`` and report every holder that does not resolve.

    Args:
        document: Document to check

    Returns:
        Diagnostic with one ``UNRESOLVED_REFERENCE`` warning per miss
    """
    if document is None:
        raise ValueError("document must not be None")
    diagnostic = Diagnostic()
    checker = ReferenceChecker(diagnostic)
    walk(document, checker)
    logger.debug(f"Checked {checker.checked} references, {len(diagnostic.warnings)} unresolved")
    return diagnostic
