"""Graph traversal: walker, visitor base, loop detection."""

from oagraph.graph.locator import NodeLocator
from oagraph.graph.loops import LoopDetector
from oagraph.graph.walker import CurrentKeys, Visitor, Walker, walk

__all__ = [
    "CurrentKeys",
    "LoopDetector",
    "NodeLocator",
    "Visitor",
    "Walker",
    "walk",
]
