"""State shared by every loader during one read."""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from oagraph.diagnostics import Diagnostic, DiagnosticKind
from oagraph.exceptions import MalformedReferenceError
from oagraph.models.base import SpecVersion
from oagraph.models.document import Document

logger = logging.getLogger(__name__)


def error_kind(exc: Exception) -> DiagnosticKind:
    """Diagnostic kind recorded for a node-level failure."""
    if isinstance(exc, MalformedReferenceError):
        return DiagnosticKind.MALFORMED_REFERENCE
    return DiagnosticKind.PARSE_ERROR


class ParsingContext:
    """Diagnostic, detected dialect, host document and pointer stack.

    Args:
        diagnostic: Collector the read reports into
        version: Detected dialect
        document: Document under construction; holders created by the
            reader use it as their host
    """

    def __init__(
        self,
        diagnostic: Optional[Diagnostic] = None,
        version: SpecVersion = SpecVersion.V3,
        document: Optional[Document] = None,
    ):
        self.diagnostic = diagnostic if diagnostic is not None else Diagnostic()
        self.version = SpecVersion(version)
        self.document = document if document is not None else Document()
        self._pointers: List[str] = []

    @property
    def pointer(self) -> str:
        """Pointer of the element currently being loaded."""
        return self._pointers[-1] if self._pointers else ""

    @contextmanager
    def at(self, pointer: str) -> Iterator[None]:
        self._pointers.append(pointer)
        try:
            yield
        finally:
            self._pointers.pop()

    def record(self, exc: Exception, pointer: Optional[str] = None) -> None:
        """Record a node-level failure as an error diagnostic."""
        location = getattr(exc, "pointer", None) or pointer or self.pointer
        self.diagnostic.add_error(str(exc), location, error_kind(exc))

    def error(self, message: str, pointer: Optional[str] = None, kind: DiagnosticKind = DiagnosticKind.PARSE_ERROR) -> None:
        self.diagnostic.add_error(message, self.pointer if pointer is None else pointer, kind)

    def warning(self, message: str, pointer: Optional[str] = None, kind: DiagnosticKind = DiagnosticKind.UNKNOWN_FIELD) -> None:
        self.diagnostic.add_warning(message, self.pointer if pointer is None else pointer, kind)

    @property
    def is_v31(self) -> bool:
        return self.version == SpecVersion.V3_1
