"""Exception hierarchy for oagraph.

Expected data-quality problems are reported as diagnostics, not raised.
These exceptions cover local-fatal conditions (a single node cannot be
built) and are caught at the reader's field boundary.
"""


class OagraphError(Exception):
    """Base class for all oagraph errors."""


class MalformedReferenceError(OagraphError):
    """A reference descriptor is missing its id or has an unparseable pointer."""

    def __init__(self, message: str, reference: str | None = None):
        super().__init__(message)
        self.reference = reference


class ReaderError(OagraphError):
    """A parse node does not have the shape a field table expects."""

    def __init__(self, message: str, pointer: str | None = None):
        super().__init__(message)
        self.pointer = pointer


class RuntimeExpressionError(OagraphError):
    """A runtime expression string does not match the expression grammar."""
