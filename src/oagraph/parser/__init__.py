"""Reading 2.0, 3.0 and 3.1 documents into the graph model."""

from oagraph.parser.context import ParsingContext
from oagraph.parser.nodes import ListNode, MapNode, ParseNode, ValueNode
from oagraph.parser.reader import (
    ReaderRegistry,
    ReadResult,
    create_default_registry,
    detect_version,
    load_document,
    read_document,
)
from oagraph.parser.v2 import V2Reader
from oagraph.parser.v3 import V3Reader

__all__ = [
    "ListNode",
    "MapNode",
    "ParseNode",
    "ParsingContext",
    "ReadResult",
    "ReaderRegistry",
    "V2Reader",
    "V3Reader",
    "ValueNode",
    "create_default_registry",
    "detect_version",
    "load_document",
    "read_document",
]
